import uuid
"""Support ticket & message models."""

import enum

from sqlalchemy import String, Text, Integer, Boolean, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class TicketStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Ticket(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_client_status", "client_id", "status"),
    )

    reference: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(TicketStatus), default=TicketStatus.OPEN, nullable=False, index=True
    )
    priority: Mapped[str] = mapped_column(
        Enum(TicketPriority), default=TicketPriority.MEDIUM, nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), default="Technical", nullable=False)

    # Denormalised at creation so the queue can render without joins
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_company: Mapped[str | None] = mapped_column(String(255))

    # Foreign keys
    client_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped["uuid.UUID | None"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), index=True
    )

    # Relationships
    client = relationship("Customer", back_populates="tickets")
    messages = relationship(
        "TicketMessage", back_populates="ticket", cascade="all, delete-orphan",
        lazy="selectin", order_by="TicketMessage.sequence",
    )

    def __repr__(self) -> str:
        return f"<Ticket {self.reference} {self.status}>"


class TicketMessage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "ticket_messages"
    __table_args__ = (
        UniqueConstraint("ticket_id", "sequence", name="uq_ticket_messages_sequence"),
    )

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    sender_id: Mapped["uuid.UUID | None"] = mapped_column(UUID(as_uuid=True))
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    attachments: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)

    ticket_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )

    ticket = relationship("Ticket", back_populates="messages")

    def __repr__(self) -> str:
        return f"<TicketMessage #{self.sequence} by {self.sender_name}>"
