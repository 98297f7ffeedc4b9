from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleUpdate


class DuplicateError(Exception):
    """Raised when a unique constraint is violated (e.g., immatriculation unique)."""


def create_vehicle(db: Session, data: VehicleCreate) -> Vehicle:
    obj = Vehicle(immatriculation=data.immatriculation, is_active=data.is_active)
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError("Vehicle already exists (unique constraint hit).") from e
    db.refresh(obj)
    return obj


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle | None:
    return db.get(Vehicle, vehicle_id)


def list_vehicles(db: Session, is_active: bool | None = None) -> list[Vehicle]:
    stmt = select(Vehicle).order_by(Vehicle.immatriculation.asc())
    if is_active is not None:
        stmt = stmt.where(Vehicle.is_active == is_active)
    return list(db.execute(stmt).scalars().all())


def update_vehicle(db: Session, vehicle_id: int, data: VehicleUpdate) -> Vehicle | None:
    obj = db.get(Vehicle, vehicle_id)
    if not obj:
        return None

    patch = data.model_dump(exclude_unset=True)
    for k, v in patch.items():
        setattr(obj, k, v)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError("Update violates unique constraint.") from e

    db.refresh(obj)
    return obj


def delete_vehicle(db: Session, vehicle_id: int, mode: str = "soft") -> bool:
    """
    mode:
      - "soft": sets is_active=False
      - "hard": deletes the row
    """
    obj = db.get(Vehicle, vehicle_id)
    if not obj:
        return False

    if mode == "hard":
        db.delete(obj)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateError("Vehicle is still referenced by transport slips.") from e
        return True

    obj.is_active = False
    db.commit()
    return True
