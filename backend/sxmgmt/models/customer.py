import uuid
"""Customer model - client registry entries and portal identities."""

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Text, Numeric, Date, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin
from sxmgmt.models.user import AccountStatus


class CustomerStatus(str, enum.Enum):
    LEAD = "Lead"
    PROSPECT = "Prospect"
    ACTIVE = "Active"
    CHURNED = "Churned"


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(
        Enum(CustomerStatus), default=CustomerStatus.LEAD, nullable=False, index=True
    )
    account_status: Mapped[str] = mapped_column(
        Enum(AccountStatus), default=AccountStatus.PENDING, nullable=False, index=True
    )

    # Registry figures - maintained by hand and by portal payments, not derived from projects
    lifetime_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)

    last_contact: Mapped[date | None] = mapped_column(Date)
    description: Mapped[str | None] = mapped_column(Text)
    industry: Mapped[str | None] = mapped_column(String(255))
    hashed_password: Mapped[str | None] = mapped_column(String(255))

    assigned_to_id: Mapped["uuid.UUID | None"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )

    # Relationships
    assigned_to = relationship("User", back_populates="assigned_customers")
    projects = relationship(
        "Project", back_populates="client", cascade="all, delete-orphan", lazy="selectin"
    )
    tickets = relationship(
        "Ticket", back_populates="client", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Customer {self.company}: {self.name}>"
