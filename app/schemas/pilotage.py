from datetime import date
from typing import Optional

from pydantic import BaseModel


class PilotageSummary(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    transport_count: int = 0
    freight_count: int = 0
    total_margin: int = 0
    revenue: int = 0
