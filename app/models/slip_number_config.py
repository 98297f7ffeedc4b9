from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.enums import SlipType, enum_values


class SlipNumberConfig(Base):
    """
    One counter row per slip sequence.
    Display numbers are "<prefix> <current_number padded to 4 digits>".
    """
    __tablename__ = "slip_number_configs"

    __table_args__ = (
        CheckConstraint("current_number >= 0", name="ck_slip_number_configs_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    type: Mapped[SlipType] = mapped_column(
        SAEnum(SlipType, name="slip_type_enum", values_callable=enum_values),
        nullable=False,
        unique=True,
    )

    # Year at first use (e.g. '2025'); never rotated automatically.
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    current_number: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SlipNumberConfig(type='{self.type}', prefix='{self.prefix}', current={self.current_number})>"
