"""Audit log - append-only record of administrative changes.

Rows are never updated or deleted by the application.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import String, DateTime, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import UUIDPrimaryKeyMixin


class AuditLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_action_datetime", "action_datetime"),
    )

    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    action_datetime: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "service.update"
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64))
    before_change: Mapped[Any] = mapped_column(JSONB)
    after_change: Mapped[Any] = mapped_column(JSONB)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} by {self.user_email}>"
