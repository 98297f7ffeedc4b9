from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.supplier import Supplier
from app.schemas.supplier import SupplierCreate, SupplierUpdate


class DuplicateError(Exception):
    """Raised when a unique constraint is violated."""


def create_supplier(db: Session, data: SupplierCreate, user_email: str = "system@local") -> Supplier:
    obj = Supplier(
        nom=data.nom,
        telephone=data.telephone,
        email=data.email,
        contact_nom=data.contact_nom,
        deletion_indicator=data.deletion_indicator,
        created_by=user_email,
        last_changed_by=user_email,
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError("Supplier already exists (unique constraint hit).") from e
    db.refresh(obj)
    return obj


def get_supplier(db: Session, row_id: int) -> Supplier | None:
    return db.get(Supplier, row_id)


def list_suppliers(
    db: Session,
    skip: int = 0,
    limit: int = 50,
    include_deleted: bool = False,
    q: str | None = None,
) -> list[Supplier]:
    stmt = select(Supplier).offset(skip).limit(limit).order_by(Supplier.nom.asc(), Supplier.id.asc())

    if not include_deleted:
        stmt = stmt.where(Supplier.deletion_indicator.is_(False))

    if q:
        stmt = stmt.where(Supplier.nom.ilike(f"%{q.strip()}%"))

    return list(db.execute(stmt).scalars().all())


def update_supplier(
    db: Session,
    row_id: int,
    data: SupplierUpdate,
    user_email: str = "system@local",
) -> Supplier | None:
    obj = db.get(Supplier, row_id)
    if not obj:
        return None

    patch = data.model_dump(exclude_unset=True)
    for k, v in patch.items():
        setattr(obj, k, v)
    obj.last_changed_by = user_email

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError("Update violates unique constraint.") from e

    db.refresh(obj)
    return obj


def delete_supplier(db: Session, row_id: int, mode: str = "soft") -> bool:
    """
    mode:
      - "soft": sets deletion_indicator=True (freight slips keep their carrier)
      - "hard": deletes the row
    """
    obj = db.get(Supplier, row_id)
    if not obj:
        return False

    if mode == "hard":
        db.delete(obj)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateError("Supplier is still referenced by freight slips.") from e
        return True

    obj.deletion_indicator = True
    db.commit()
    return True
