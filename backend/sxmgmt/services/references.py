"""Human-facing record references (PRJ-1234, TKT-5678)."""

import secrets

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

PROJECT_PREFIX = "PRJ"
TICKET_PREFIX = "TKT"


def generate_reference(prefix: str) -> str:
    """Random four-digit reference, e.g. TKT-4821."""
    return f"{prefix}-{1000 + secrets.randbelow(9000)}"


async def unique_reference(db: AsyncSession, column, prefix: str, attempts: int = 10) -> str:
    """Draw references until one is not yet used in ``column``."""
    for _ in range(attempts):
        candidate = generate_reference(prefix)
        result = await db.execute(select(column).where(column == candidate))
        if result.scalar_one_or_none() is None:
            return candidate
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Could not allocate a unique {prefix} reference",
    )
