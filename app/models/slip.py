from datetime import date, time

from sqlalchemy import JSON, Boolean, Date, Float, ForeignKey, String, Text, Time
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.client import Client
from app.models.enums import SlipStatus, enum_values
from app.models.mixins import AuditMixin
from app.models.supplier import Supplier
from app.models.vehicle import Vehicle


class SlipColumnsMixin(AuditMixin):
    """Columns shared by transport and freight slips."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Allocated once at creation from slip_number_configs; never reassigned.
    number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    status: Mapped[SlipStatus] = mapped_column(
        SAEnum(SlipStatus, name="slip_status_enum", values_callable=enum_values),
        nullable=False,
        default=SlipStatus.PENDING,
    )

    client_id: Mapped[int | None] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Loading: either a fixed time or a start/end window
    loading_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    loading_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    loading_time_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    loading_time_end: Mapped[time | None] = mapped_column(Time, nullable=True)
    loading_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    loading_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Delivery
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    delivery_time_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    delivery_time_end: Mapped[time | None] = mapped_column(Time, nullable=True)
    delivery_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    delivery_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Goods
    goods_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    volume: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    vehicle_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    custom_vehicle_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    exchange_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    tailgate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Attached document references: [{"name": ..., "url": ...}]
    documents: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )


class TransportSlip(SlipColumnsMixin, Base):
    """
    Delivery executed with an own vehicle (CMR bordereau).
    """
    __tablename__ = "transport_slips"

    vehicle_id: Mapped[int | None] = mapped_column(
        ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
    )
    loading_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    unloading_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    kilometers: Mapped[float | None] = mapped_column(Float, nullable=True)

    client: Mapped[Client | None] = relationship("Client")
    vehicle: Mapped[Vehicle | None] = relationship("Vehicle")

    def __repr__(self) -> str:
        return f"<TransportSlip(number='{self.number}', status='{self.status}')>"


class FreightSlip(SlipColumnsMixin, Base):
    """
    Brokerage: the transport is subcontracted to a supplier (affrètement).
    """
    __tablename__ = "freight_slips"

    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    metre: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Email or name of the commercial owning the deal.
    commercial_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    purchase_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    selling_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    margin: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    margin_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    client: Mapped[Client | None] = relationship("Client")
    supplier: Mapped[Supplier | None] = relationship("Supplier")

    def __repr__(self) -> str:
        return f"<FreightSlip(number='{self.number}', status='{self.status}')>"
