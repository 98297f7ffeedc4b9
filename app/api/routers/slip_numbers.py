from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.slip_number_config import (
    SlipNumberAllocation,
    SlipNumberConfigOut,
    SlipNumberConfigUpdate,
)
from app.services.slip_number_service import (
    SlipNumberAllocationError,
    SlipNumberService,
    normalize_slip_type,
)

# We use a prefix to group all sequence-related settings
router = APIRouter(
    prefix="/api/v1/slip-numbers",
    tags=["System Settings - Slip Numbers"],
)


def _slip_type_or_400(slip_type: str):
    try:
        return normalize_slip_type(slip_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[SlipNumberConfigOut])
def fetch_all_sequences(db: Session = Depends(get_db)):
    """One row per slip type once its first number has been allocated."""
    return SlipNumberService(db).list_configs()


@router.get("/{slip_type}", response_model=SlipNumberConfigOut)
def fetch_sequence(slip_type: str, db: Session = Depends(get_db)):
    config = SlipNumberService(db).get_config(_slip_type_or_400(slip_type))
    if not config:
        raise HTTPException(status_code=404, detail="Sequence configuration not found")
    return config


@router.post(
    "/{slip_type}/allocate",
    response_model=SlipNumberAllocation,
    status_code=status.HTTP_201_CREATED,
)
def allocate_number(slip_type: str, db: Session = Depends(get_db)):
    """Consume the next number of the sequence (the number is never handed out again)."""
    parsed = _slip_type_or_400(slip_type)
    try:
        number = SlipNumberService(db).allocate(parsed)
    except SlipNumberAllocationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return SlipNumberAllocation(type=parsed, number=number)


@router.patch("/{slip_type}", response_model=SlipNumberConfigOut)
def modify_sequence(
    slip_type: str,
    payload: SlipNumberConfigUpdate,
    db: Session = Depends(get_db),
):
    """Manual prefix change or counter reset."""
    updated = SlipNumberService(db).update_config(_slip_type_or_400(slip_type), payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Sequence configuration not found")
    return updated
