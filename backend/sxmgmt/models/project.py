import uuid
"""Project models: project record, tasks, payment ledger, expected collections."""

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Column, String, Text, Numeric, Date, Enum, ForeignKey, Index, Table,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class ProjectStatus(str, enum.Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class TaskStatus(str, enum.Enum):
    TODO = "Todo"
    DOING = "Doing"
    DONE = "Done"


class PaymentType(str, enum.Enum):
    UPFRONT = "UPFRONT"
    PROGRESS = "PROGRESS"
    FINAL = "FINAL"
    VARIATION = "VARIATION"


DEFAULT_PAYMENT_RATES = {"first": 25, "second": 25, "third": 25, "final": 25}


project_staff = Table(
    "project_staff",
    Base.metadata,
    Column("project_id", UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

project_services = Table(
    "project_services",
    Base.metadata,
    Column("project_id", UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Project(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_client_status", "client_id", "status"),
    )

    reference: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Enum(ProjectStatus), default=ProjectStatus.PLANNING, nullable=False, index=True
    )

    # Commercials
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    costs: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    payment_rates: Mapped[dict] = mapped_column(JSONB, default=lambda: dict(DEFAULT_PAYMENT_RATES), nullable=False)
    award_ref: Mapped[str | None] = mapped_column(String(100))
    invoice_ref: Mapped[str | None] = mapped_column(String(100))
    guarantees: Mapped[str | None] = mapped_column(Text)
    financial_notes: Mapped[str | None] = mapped_column(Text)

    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    attachments: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)

    # Foreign keys
    client_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    admin_id: Mapped["uuid.UUID | None"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )

    # Relationships
    client = relationship("Customer", back_populates="projects")
    lead = relationship("User", back_populates="led_projects")
    staff = relationship("User", secondary=project_staff, lazy="selectin")
    services = relationship("Service", secondary=project_services, lazy="selectin")
    tasks = relationship(
        "ProjectTask", back_populates="project", cascade="all, delete-orphan",
        lazy="selectin", order_by="ProjectTask.created_at",
    )
    payments = relationship(
        "ProjectPayment", back_populates="project", cascade="all, delete-orphan",
        lazy="selectin", order_by="ProjectPayment.created_at",
    )
    expected_collections = relationship(
        "ExpectedCollection", back_populates="project", cascade="all, delete-orphan",
        lazy="selectin", order_by="ExpectedCollection.expected_date",
    )

    def __repr__(self) -> str:
        return f"<Project {self.reference} value={self.value}>"


class ProjectTask(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "project_tasks"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(Enum(TaskStatus), default=TaskStatus.TODO, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)

    project_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project = relationship("Project", back_populates="tasks")

    def __repr__(self) -> str:
        return f"<ProjectTask {self.title!r} {self.status}>"


class ProjectPayment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Collected payment. Rows are only ever appended."""

    __tablename__ = "project_payments"
    __table_args__ = (
        Index("ix_project_payments_project_paid_on", "project_id", "paid_on"),
        CheckConstraint("amount > 0", name="ck_project_payments_amount_positive"),
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    paid_on: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    payment_type: Mapped[str | None] = mapped_column(Enum(PaymentType))
    invoice_ref: Mapped[str | None] = mapped_column(String(100))

    project_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    recorded_by_id: Mapped["uuid.UUID | None"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )

    project = relationship("Project", back_populates="payments")

    def __repr__(self) -> str:
        return f"<ProjectPayment {self.amount} on {self.paid_on}>"


class ExpectedCollection(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "expected_collections"

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    expected_date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)

    project_id: Mapped["uuid.UUID"] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project = relationship("Project", back_populates="expected_collections")
