"""Staff administration schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from sxmgmt.models.user import AccountStatus, UserRole


class CrudFlags(BaseModel):
    view: bool = True
    create: bool = False
    edit: bool = False
    delete: bool = False


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: Literal["ADMIN", "STAFF"] = "STAFF"
    password: str = Field(..., min_length=8)


class StaffUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: Literal["ADMIN", "STAFF"] | None = None
    status: AccountStatus | None = None
    password: str | None = Field(None, min_length=8)
    avatar_url: str | None = Field(None, max_length=500)
    permissions: list[str] | None = None
    crud_permissions: dict[str, CrudFlags] | None = None
    project_access: Literal["ALL"] | list[UUID] | None = None


class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: UserRole
    status: AccountStatus
    avatar_url: str | None
    mfa_enabled: bool
    is_root: bool
    permissions: list[str]
    crud_permissions: dict[str, CrudFlags]
    project_access: Literal["ALL"] | list[str]
    created_at: datetime
    updated_at: datetime
