"""Customer (client registry) schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from sxmgmt.models.customer import CustomerStatus
from sxmgmt.models.user import AccountStatus
from sxmgmt.schemas.common import PartialUpdate


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    status: CustomerStatus = CustomerStatus.LEAD
    total_price: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    industry: str | None = Field(None, max_length=255)
    description: str | None = None


class CustomerCreate(CustomerBase):
    password: str | None = Field(None, min_length=8)


class CustomerUpdate(PartialUpdate):
    required_fields = frozenset({
        "name", "company", "email", "status", "account_status",
        "lifetime_value", "total_price", "paid_amount",
    })

    name: str | None = Field(None, min_length=1, max_length=255)
    company: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    status: CustomerStatus | None = None
    account_status: AccountStatus | None = None
    lifetime_value: Decimal | None = Field(None, ge=0, decimal_places=2)
    total_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    paid_amount: Decimal | None = Field(None, ge=0, decimal_places=2)
    last_contact: date | None = None
    assigned_to_id: UUID | None = None
    industry: str | None = Field(None, max_length=255)
    description: str | None = None


class CustomerResponse(CustomerBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    account_status: AccountStatus
    lifetime_value: Decimal
    paid_amount: Decimal
    last_contact: date | None
    assigned_to_id: UUID | None
    created_at: datetime
    updated_at: datetime


class CustomerListResponse(BaseModel):
    items: list[CustomerResponse]
    total: int
    page: int
    size: int
    pending_approvals: int
