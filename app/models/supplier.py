from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import AuditMixin


class Supplier(AuditMixin, Base):
    """
    Subcontracted carrier ("fournisseur") executing freight slips.
    """
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    nom: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    telephone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_nom: Mapped[str | None] = mapped_column(String(255), nullable=True)

    deletion_indicator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, nom='{self.nom}')>"
