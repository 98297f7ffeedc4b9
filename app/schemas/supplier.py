from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SupplierBase(BaseModel):
    nom: str = Field(min_length=1, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    contact_nom: Optional[str] = Field(default=None, max_length=255)

    deletion_indicator: bool = False


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    nom: Optional[str] = Field(default=None, min_length=1, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    contact_nom: Optional[str] = Field(default=None, max_length=255)

    deletion_indicator: Optional[bool] = None


class SupplierOut(SupplierBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    created_by: str
