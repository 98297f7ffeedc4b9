from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.crud.vehicles import (
    DuplicateError,
    create_vehicle,
    delete_vehicle,
    get_vehicle,
    list_vehicles,
    update_vehicle,
)
from app.db.session import get_db
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", response_model=VehicleOut, status_code=status.HTTP_201_CREATED)
def create_vehicle_api(payload: VehicleCreate, db: Session = Depends(get_db)):
    try:
        return create_vehicle(db, payload)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=list[VehicleOut])
def list_vehicles_api(
    is_active: bool | None = Query(None),
    db: Session = Depends(get_db),
):
    return list_vehicles(db, is_active=is_active)


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle_api(vehicle_id: int, db: Session = Depends(get_db)):
    obj = get_vehicle(db, vehicle_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return obj


@router.patch("/{vehicle_id}", response_model=VehicleOut)
def update_vehicle_api(vehicle_id: int, payload: VehicleUpdate, db: Session = Depends(get_db)):
    try:
        obj = update_vehicle(db, vehicle_id, payload)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not obj:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return obj


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle_api(
    vehicle_id: int,
    mode: str = Query("soft", pattern="^(soft|hard)$"),
    db: Session = Depends(get_db),
):
    try:
        ok = delete_vehicle(db, vehicle_id, mode=mode)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not ok:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return None
