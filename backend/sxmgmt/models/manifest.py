"""System manifest - single row holding the UI configuration document."""

from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sxmgmt.db.base import Base
from sxmgmt.models.mixins import TimestampMixin

MANIFEST_ROW_ID = 1


class SystemManifest(TimestampMixin, Base):
    __tablename__ = "system_manifest"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=MANIFEST_ROW_ID)
    data: Mapped[dict] = mapped_column(JSONB, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<SystemManifest updated_by={self.updated_by}>"
