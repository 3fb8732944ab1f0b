"""Project schemas: project record, tasks, payments, financial figures."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sxmgmt.models.project import PaymentType, ProjectStatus, TaskStatus
from sxmgmt.schemas.common import Attachment, PartialUpdate


class PaymentRates(BaseModel):
    first: Decimal = Field(default=Decimal("25"), ge=0, le=100)
    second: Decimal = Field(default=Decimal("25"), ge=0, le=100)
    third: Decimal = Field(default=Decimal("25"), ge=0, le=100)
    final: Decimal = Field(default=Decimal("25"), ge=0, le=100)


# ── Tasks ──────────────────────────────────────────
class TaskCreate(BaseModel):
    title: str = Field(..., max_length=500)
    status: TaskStatus = TaskStatus.TODO
    due_date: date | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Task title must not be blank")
        return v


class TaskUpdate(PartialUpdate):
    required_fields = frozenset({"status"})

    status: TaskStatus | None = None
    due_date: date | None = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    status: TaskStatus
    due_date: date | None


# ── Payments ledger ────────────────────────────────
class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    paid_on: date | None = None
    note: str | None = "Progress collection"
    payment_type: PaymentType | None = None
    invoice_ref: str | None = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: Decimal
    paid_on: date
    note: str | None
    payment_type: PaymentType | None
    invoice_ref: str | None
    recorded_by_id: UUID | None
    created_at: datetime


class ExpectedCollectionCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    expected_date: date
    note: str | None = None


class ExpectedCollectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: Decimal
    expected_date: date
    note: str | None


# ── Financial figures ──────────────────────────────
class FinancialsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: Decimal
    tax_rate: Decimal
    vat: Decimal
    total_payable: Decimal
    collected: Decimal
    outstanding: Decimal
    costs: Decimal
    profit: Decimal
    margin_percent: Decimal
    collection_percent: Decimal
    is_cleared: bool


def _required_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Project name is required")
    return v


# ── Project ────────────────────────────────────────
class ProjectCreate(BaseModel):
    name: str = Field(..., max_length=2000)
    description: str | None = None
    client_id: UUID
    admin_id: UUID | None = None
    staff_ids: list[UUID] = Field(default_factory=list)
    service_ids: list[UUID] = Field(default_factory=list)
    value: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    costs: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    tax_rate: Decimal | None = Field(None, ge=0, le=1)
    award_ref: str | None = Field(None, max_length=100)
    invoice_ref: str | None = Field(None, max_length=100)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date | None = None
    end_date: date | None = None
    tasks: list[TaskCreate] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _required_name(v)


class ProjectUpdate(PartialUpdate):
    required_fields = frozenset({"name", "value", "costs", "status"})

    name: str | None = Field(None, max_length=2000)
    description: str | None = None
    admin_id: UUID | None = None
    staff_ids: list[UUID] | None = None
    service_ids: list[UUID] | None = None
    value: Decimal | None = Field(None, ge=0, decimal_places=2)
    costs: Decimal | None = Field(None, ge=0, decimal_places=2)
    tax_rate: Decimal | None = Field(None, ge=0, le=1)
    payment_rates: PaymentRates | None = None
    award_ref: str | None = Field(None, max_length=100)
    invoice_ref: str | None = Field(None, max_length=100)
    guarantees: str | None = None
    financial_notes: str | None = None
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return v if v is None else _required_name(v)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    name: str
    description: str | None
    client_id: UUID
    admin_id: UUID | None
    staff_ids: list[UUID]
    service_ids: list[UUID]
    value: Decimal
    costs: Decimal
    tax_rate: Decimal
    payment_rates: dict
    award_ref: str | None
    invoice_ref: str | None
    guarantees: str | None
    financial_notes: str | None
    status: ProjectStatus
    start_date: date | None
    end_date: date | None
    attachments: list[Attachment]
    tasks: list[TaskResponse]
    payments: list[PaymentResponse]
    expected_collections: list[ExpectedCollectionResponse]
    financials: FinancialsResponse
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse]
    total: int
