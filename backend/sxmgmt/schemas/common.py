"""Shared schema pieces."""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field, model_validator


class Attachment(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str
    type: str = "application/octet-stream"
    size: int | None = Field(None, ge=0)
    uploaded_at: datetime | None = None


class PartialUpdate(BaseModel):
    """PATCH body. Every field is optional, but ``required_fields`` may not be sent as null."""

    required_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = sorted(k for k in cls.required_fields if k in data and data[k] is None)
            if nulls:
                raise ValueError(f"Cannot be null: {', '.join(nulls)}")
        return data
