"""Service catalog model."""

from decimal import Decimal

from sqlalchemy import String, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Service(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    base_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)

    def __repr__(self) -> str:
        return f"<Service {self.name}>"
