"""Service catalog schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sxmgmt.schemas.common import PartialUpdate


class ServiceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    base_price: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(PartialUpdate):
    required_fields = frozenset({"name", "base_price"})

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    base_price: Decimal | None = Field(None, ge=0, decimal_places=2)


class ServiceResponse(ServiceBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
