from __future__ import annotations

import math
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.slip import FreightSlip, TransportSlip
from app.schemas.pilotage import PilotageSummary


def _in_range(stmt, model, start_date: date | None, end_date: date | None):
    if start_date is not None:
        stmt = stmt.where(model.loading_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(model.loading_date <= end_date)
    return stmt


def build_pilotage_summary(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
) -> PilotageSummary:
    """
    Dashboard figures for slips loading within [start_date, end_date].
    Margin and revenue come from freight slips and are floored to whole euros.
    """
    transport_count = db.execute(
        _in_range(select(func.count(TransportSlip.id)), TransportSlip, start_date, end_date)
    ).scalar_one()

    freight_count, margin_sum, revenue_sum = db.execute(
        _in_range(
            select(
                func.count(FreightSlip.id),
                func.coalesce(func.sum(FreightSlip.margin), 0.0),
                func.coalesce(func.sum(FreightSlip.selling_price), 0.0),
            ),
            FreightSlip,
            start_date,
            end_date,
        )
    ).one()

    return PilotageSummary(
        start_date=start_date,
        end_date=end_date,
        transport_count=int(transport_count or 0),
        freight_count=int(freight_count or 0),
        total_margin=math.floor(float(margin_sum or 0)),
        revenue=math.floor(float(revenue_sum or 0)),
    )
