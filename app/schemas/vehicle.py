from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VehicleBase(BaseModel):
    immatriculation: str = Field(min_length=1, max_length=20)
    is_active: bool = True

    @field_validator("immatriculation")
    @classmethod
    def _normalize_plate(cls, value: str) -> str:
        return value.strip().upper()


class VehicleCreate(VehicleBase):
    pass


class VehicleUpdate(BaseModel):
    immatriculation: Optional[str] = Field(default=None, min_length=1, max_length=20)
    is_active: Optional[bool] = None

    @field_validator("immatriculation")
    @classmethod
    def _normalize_plate(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else None


class VehicleOut(VehicleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
