from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from app.models.enums import SlipStatus

DEFAULT_FREIGHT_PAYMENT_METHOD = "Virement 30j FDM"

_NUMERIC_FIELDS = {
    "price",
    "purchase_price",
    "selling_price",
    "margin",
    "margin_rate",
    "volume",
    "weight",
    "metre",
    "kilometers",
}
_TIME_FIELDS = {
    "loading_time",
    "loading_time_start",
    "loading_time_end",
    "delivery_time",
    "delivery_time_start",
    "delivery_time_end",
}


def clean_slip_payload(data: Any) -> Any:
    """
    Normalize form-style payloads:
    - empty foreign keys ("*_id": "") become null
    - null, empty or non-numeric numeric fields become 0
    - empty time fields become null
    """
    if not isinstance(data, dict):
        return data

    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if key.endswith("_id") and value == "":
            cleaned[key] = None
        elif key in _NUMERIC_FIELDS and value is None:
            cleaned[key] = 0
        elif key in _NUMERIC_FIELDS and isinstance(value, str):
            try:
                cleaned[key] = float(value.strip())
            except ValueError:
                cleaned[key] = 0
        elif key in _TIME_FIELDS and value == "":
            cleaned[key] = None
        else:
            cleaned[key] = value
    return cleaned


class SlipDocument(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=1000)


class ClientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nom: str
    email: Optional[str] = None


class SupplierSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nom: str
    telephone: Optional[str] = None
    contact_nom: Optional[str] = None


class VehicleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    immatriculation: str


class SlipFields(BaseModel):
    client_id: Optional[int] = Field(default=None, ge=1)

    loading_date: date
    loading_time: Optional[time] = None
    loading_time_start: Optional[time] = None
    loading_time_end: Optional[time] = None
    loading_address: Optional[str] = None
    loading_contact: Optional[str] = None

    delivery_date: date
    delivery_time: Optional[time] = None
    delivery_time_start: Optional[time] = None
    delivery_time_end: Optional[time] = None
    delivery_address: Optional[str] = None
    delivery_contact: Optional[str] = None

    goods_description: Optional[str] = None
    volume: Optional[float] = None
    weight: Optional[float] = None
    vehicle_type: Optional[str] = "T1"
    custom_vehicle_type: Optional[str] = None
    exchange_type: Optional[str] = None
    tailgate: bool = False

    instructions: Optional[str] = None
    price: float = 0
    payment_method: Optional[str] = None
    observations: Optional[str] = None
    photo_required: bool = True
    order_number: Optional[str] = None
    documents: list[SlipDocument] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _clean(cls, data: Any) -> Any:
        return clean_slip_payload(data)


class SlipCreateBase(SlipFields):
    status: SlipStatus = SlipStatus.PENDING


class SlipUpdateBase(BaseModel):
    """Partial update; `number` is not accepted here and is never changed."""

    status: Optional[SlipStatus] = None
    client_id: Optional[int] = Field(default=None, ge=1)

    loading_date: Optional[date] = None
    loading_time: Optional[time] = None
    loading_time_start: Optional[time] = None
    loading_time_end: Optional[time] = None
    loading_address: Optional[str] = None
    loading_contact: Optional[str] = None

    delivery_date: Optional[date] = None
    delivery_time: Optional[time] = None
    delivery_time_start: Optional[time] = None
    delivery_time_end: Optional[time] = None
    delivery_address: Optional[str] = None
    delivery_contact: Optional[str] = None

    goods_description: Optional[str] = None
    volume: Optional[float] = None
    weight: Optional[float] = None
    vehicle_type: Optional[str] = None
    custom_vehicle_type: Optional[str] = None
    exchange_type: Optional[str] = None
    tailgate: Optional[bool] = None

    instructions: Optional[str] = None
    price: Optional[float] = None
    payment_method: Optional[str] = None
    observations: Optional[str] = None
    photo_required: Optional[bool] = None
    order_number: Optional[str] = None
    documents: Optional[list[SlipDocument]] = None

    @model_validator(mode="before")
    @classmethod
    def _clean(cls, data: Any) -> Any:
        return clean_slip_payload(data)


class SlipOutBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: str
    status: SlipStatus
    client_id: Optional[int] = None
    client: Optional[ClientSummary] = None

    loading_date: date
    loading_time: Optional[time] = None
    loading_time_start: Optional[time] = None
    loading_time_end: Optional[time] = None
    loading_address: Optional[str] = None
    loading_contact: Optional[str] = None

    delivery_date: date
    delivery_time: Optional[time] = None
    delivery_time_start: Optional[time] = None
    delivery_time_end: Optional[time] = None
    delivery_address: Optional[str] = None
    delivery_contact: Optional[str] = None

    goods_description: Optional[str] = None
    volume: Optional[float] = None
    weight: Optional[float] = None
    vehicle_type: Optional[str] = None
    custom_vehicle_type: Optional[str] = None
    exchange_type: Optional[str] = None
    tailgate: bool = False

    instructions: Optional[str] = None
    price: float = 0
    payment_method: Optional[str] = None
    observations: Optional[str] = None
    photo_required: bool = True
    order_number: Optional[str] = None
    documents: list[SlipDocument] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime
    created_by: str
    last_changed_by: str


# --- Transport ---


class TransportSlipCreate(SlipCreateBase):
    vehicle_id: Optional[int] = Field(default=None, ge=1)
    loading_instructions: Optional[str] = None
    unloading_instructions: Optional[str] = None
    kilometers: Optional[float] = Field(default=None, ge=0)


class TransportSlipUpdate(SlipUpdateBase):
    vehicle_id: Optional[int] = Field(default=None, ge=1)
    loading_instructions: Optional[str] = None
    unloading_instructions: Optional[str] = None
    kilometers: Optional[float] = Field(default=None, ge=0)


class TransportSlipOut(SlipOutBase):
    vehicle_id: Optional[int] = None
    vehicle: Optional[VehicleSummary] = None
    loading_instructions: Optional[str] = None
    unloading_instructions: Optional[str] = None
    kilometers: Optional[float] = None

    @computed_field
    @property
    def price_per_km(self) -> Optional[float]:
        if not self.kilometers or self.kilometers <= 0:
            return None
        return round(self.price / self.kilometers, 2)


# --- Freight ---


class FreightSlipCreate(SlipCreateBase):
    supplier_id: Optional[int] = Field(default=None, ge=1)
    metre: Optional[float] = None
    commercial_id: Optional[str] = None
    payment_method: Optional[str] = DEFAULT_FREIGHT_PAYMENT_METHOD
    purchase_price: float = 0
    selling_price: float = 0


class FreightSlipUpdate(SlipUpdateBase):
    supplier_id: Optional[int] = Field(default=None, ge=1)
    metre: Optional[float] = None
    commercial_id: Optional[str] = None
    purchase_price: Optional[float] = None
    selling_price: Optional[float] = None


class FreightSlipOut(SlipOutBase):
    supplier_id: Optional[int] = None
    supplier: Optional[SupplierSummary] = None
    metre: Optional[float] = None
    commercial_id: Optional[str] = None
    purchase_price: float = 0
    selling_price: float = 0
    margin: float = 0
    margin_rate: float = 0


class SlipStatusUpdate(BaseModel):
    status: SlipStatus
