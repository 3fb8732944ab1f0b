import uuid
"""Staff user model - admins and staff members with per-view permissions."""

import enum
from typing import Any

from sqlalchemy import String, Boolean, Enum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CLIENT = "CLIENT"  # portal identity, never stored in the users table


class AccountStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(UserRole), default=UserRole.STAFF, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(AccountStatus), default=AccountStatus.APPROVED, nullable=False
    )
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    company: Mapped[str | None] = mapped_column(String(255))
    mfa_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_root: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Access control: list of view names, {view: {view, create, edit, delete}}, "ALL" | [project ids]
    permissions: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    crud_permissions: Mapped[dict] = mapped_column(JSONB, default=dict, nullable=False)
    project_access: Mapped[Any] = mapped_column(JSONB, default="ALL", nullable=False)

    # Relationships
    assigned_customers = relationship("Customer", back_populates="assigned_to")
    led_projects = relationship("Project", back_populates="lead")

    def __repr__(self) -> str:
        return f"<User {self.email} {self.role}>"
