from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.client import Client
from app.models.enums import SlipStatus, SlipType
from app.models.slip import FreightSlip, TransportSlip
from app.models.supplier import Supplier
from app.models.vehicle import Vehicle
from app.schemas.slip import (
    FreightSlipCreate,
    FreightSlipUpdate,
    TransportSlipCreate,
    TransportSlipUpdate,
)
from app.services.slip_number_service import SlipNumberService, normalize_slip_type

logger = logging.getLogger(__name__)

SLIP_MODELS: dict[SlipType, type[TransportSlip] | type[FreightSlip]] = {
    SlipType.TRANSPORT: TransportSlip,
    SlipType.FREIGHT: FreightSlip,
}


class SlipNotFoundError(LookupError):
    pass


class SlipValidationError(ValueError):
    pass


def compute_margin(purchase_price: float | None, selling_price: float | None) -> tuple[float, float]:
    """Return (margin, margin_rate in percent of the selling price)."""
    purchase = float(purchase_price or 0)
    selling = float(selling_price or 0)
    margin = selling - purchase
    rate = (margin / selling) * 100 if selling > 0 else 0.0
    return margin, rate


def _normalize_vehicle_type(values: dict) -> None:
    # custom_vehicle_type only carries meaning when vehicle_type is "Autre".
    if "vehicle_type" in values and values["vehicle_type"] != "Autre":
        values["custom_vehicle_type"] = None


class SlipService:
    def __init__(self, db: Session, number_service: SlipNumberService | None = None):
        self.db = db
        self.number_service = number_service or SlipNumberService(db)

    def _check_references(
        self,
        *,
        client_id: int | None = None,
        supplier_id: int | None = None,
        vehicle_id: int | None = None,
    ) -> None:
        if client_id is not None and self.db.get(Client, client_id) is None:
            raise SlipValidationError(f"Client {client_id} not found.")
        if supplier_id is not None and self.db.get(Supplier, supplier_id) is None:
            raise SlipValidationError(f"Supplier {supplier_id} not found.")
        if vehicle_id is not None and self.db.get(Vehicle, vehicle_id) is None:
            raise SlipValidationError(f"Vehicle {vehicle_id} not found.")

    def _insert(self, slip: TransportSlip | FreightSlip) -> TransportSlip | FreightSlip:
        self.db.add(slip)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # The allocated number stays consumed; the sequence shows a gap.
            logger.warning("slip_insert_failed number=%s error=%s", slip.number, exc)
            raise SlipValidationError(f"Error creating slip {slip.number}: {exc.orig}") from exc
        self.db.refresh(slip)
        return slip

    def create_transport_slip(self, data: TransportSlipCreate, user_email: str) -> TransportSlip:
        self._check_references(client_id=data.client_id, vehicle_id=data.vehicle_id)
        values = data.model_dump(mode="python")
        _normalize_vehicle_type(values)

        number = self.number_service.allocate(SlipType.TRANSPORT)
        slip = TransportSlip(
            **values,
            number=number,
            created_by=user_email,
            last_changed_by=user_email,
        )
        return self._insert(slip)

    def create_freight_slip(self, data: FreightSlipCreate, user_email: str) -> FreightSlip:
        self._check_references(client_id=data.client_id, supplier_id=data.supplier_id)
        values = data.model_dump(mode="python")
        _normalize_vehicle_type(values)
        values["margin"], values["margin_rate"] = compute_margin(
            values.get("purchase_price"), values.get("selling_price")
        )

        number = self.number_service.allocate(SlipType.FREIGHT)
        slip = FreightSlip(
            **values,
            number=number,
            created_by=user_email,
            last_changed_by=user_email,
        )
        return self._insert(slip)

    def get_slip(self, slip_type: SlipType | str, slip_id: int) -> TransportSlip | FreightSlip:
        model = SLIP_MODELS[normalize_slip_type(slip_type)]
        slip = self.db.get(model, slip_id)
        if slip is None:
            raise SlipNotFoundError(f"{model.__tablename__} row {slip_id} not found")
        return slip

    def list_slips(
        self,
        slip_type: SlipType | str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[TransportSlip] | list[FreightSlip]:
        slip_type = normalize_slip_type(slip_type)
        model = SLIP_MODELS[slip_type]
        stmt = select(model).options(selectinload(model.client))
        if slip_type == SlipType.TRANSPORT:
            stmt = stmt.options(selectinload(TransportSlip.vehicle))
        else:
            stmt = stmt.options(selectinload(FreightSlip.supplier))

        if start_date is not None:
            stmt = stmt.where(model.loading_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(model.loading_date <= end_date)

        stmt = stmt.order_by(model.created_at.desc(), model.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def update_transport_slip(
        self, slip_id: int, data: TransportSlipUpdate, user_email: str
    ) -> TransportSlip:
        slip = self.get_slip(SlipType.TRANSPORT, slip_id)
        patch = data.model_dump(exclude_unset=True, mode="python")
        self._check_references(
            client_id=patch.get("client_id"),
            vehicle_id=patch.get("vehicle_id"),
        )
        _normalize_vehicle_type(patch)
        return self._apply_patch(slip, patch, user_email)

    def update_freight_slip(
        self, slip_id: int, data: FreightSlipUpdate, user_email: str
    ) -> FreightSlip:
        slip = self.get_slip(SlipType.FREIGHT, slip_id)
        patch = data.model_dump(exclude_unset=True, mode="python")
        self._check_references(
            client_id=patch.get("client_id"),
            supplier_id=patch.get("supplier_id"),
        )
        _normalize_vehicle_type(patch)
        if "purchase_price" in patch or "selling_price" in patch:
            patch["margin"], patch["margin_rate"] = compute_margin(
                patch.get("purchase_price", slip.purchase_price),
                patch.get("selling_price", slip.selling_price),
            )
        return self._apply_patch(slip, patch, user_email)

    def _apply_patch(self, slip, patch: dict, user_email: str):
        for key, value in patch.items():
            setattr(slip, key, value)
        slip.last_changed_by = user_email
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise SlipValidationError(f"Error updating slip {slip.number}: {exc.orig}") from exc
        self.db.refresh(slip)
        return slip

    def update_slip_status(
        self,
        slip_id: int,
        status: SlipStatus,
        slip_type: SlipType | str,
        user_email: str,
    ) -> TransportSlip | FreightSlip:
        slip = self.get_slip(slip_type, slip_id)
        slip.status = status
        slip.last_changed_by = user_email
        self.db.commit()
        self.db.refresh(slip)
        logger.info("slip_status_updated number=%s status=%s", slip.number, status.value)
        return slip
