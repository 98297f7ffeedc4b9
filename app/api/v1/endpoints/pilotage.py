from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.pilotage import PilotageSummary
from app.services.pilotage_service import build_pilotage_summary

router = APIRouter()


@router.get("/summary", response_model=PilotageSummary)
def get_pilotage_summary(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: Session = Depends(get_db),
):
    """Deliveries, charterings, margin and revenue for the selected day or week."""
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    return build_pilotage_summary(db, start_date, end_date)
