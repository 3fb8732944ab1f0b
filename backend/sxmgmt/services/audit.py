"""Audit trail recording."""

import enum
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.inspection import inspect as sa_inspect

from sxmgmt.models.audit import AuditLog

logger = logging.getLogger(__name__)

# Never copied into audit snapshots
REDACTED_FIELDS = frozenset({"hashed_password", "password"})


def to_jsonable(value: Any) -> Any:
    """Convert a value (ORM row, pydantic model, dict, scalar) into JSON-safe data."""
    if isinstance(value, enum.Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items() if k not in REDACTED_FIELDS}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    mapper = sa_inspect(value, raiseerr=False)
    if mapper is not None and hasattr(mapper, "mapper"):
        return {
            attr.key: to_jsonable(getattr(value, attr.key))
            for attr in mapper.mapper.column_attrs
            if attr.key not in REDACTED_FIELDS
        }
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump())
    return str(value)


def snapshot(value: Any) -> Any:
    return to_jsonable(value)


async def record_action(
    db: AsyncSession,
    actor,
    action: str,
    entity_type: str,
    entity_id: Any = None,
    before: Any = None,
    after: Any = None,
) -> AuditLog:
    """Append an audit entry. The caller commits."""
    entry = AuditLog(
        user_name=actor.name,
        user_email=actor.email,
        action_datetime=datetime.now(timezone.utc),
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        before_change=snapshot(before),
        after_change=snapshot(after),
    )
    db.add(entry)
    logger.info("Audit: %s %s %s by %s", action, entity_type, entity_id, actor.email)
    return entry
