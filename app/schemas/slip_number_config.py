from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import SlipType


class SlipNumberConfigUpdate(BaseModel):
    prefix: Optional[str] = Field(default=None, min_length=1, max_length=20)
    current_number: Optional[int] = Field(default=None, ge=0)


class SlipNumberConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: SlipType
    prefix: str
    current_number: int


class SlipNumberAllocation(BaseModel):
    type: SlipType
    number: str
