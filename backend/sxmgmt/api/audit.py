"""Audit registry endpoint. Only administrators hold AUDIT_LOG:view."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_permission
from sxmgmt.db.base import get_db
from sxmgmt.models.audit import AuditLog
from sxmgmt.schemas.audit import AuditLogResponse, AuditLogListResponse
from sxmgmt.schemas.auth import CurrentUser

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    search: str | None = Query(None, description="Matches actor name or email"),
    current_user: CurrentUser = Depends(require_permission("AUDIT_LOG:view")),
    db: AsyncSession = Depends(get_db),
):
    """Audit entries, newest first."""
    offset = (page - 1) * size

    query = select(AuditLog)
    if search:
        query = query.where(
            or_(
                AuditLog.user_name.ilike(f"%{search}%"),
                AuditLog.user_email.ilike(f"%{search}%"),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.order_by(AuditLog.action_datetime.desc()).offset(offset).limit(size)
    result = await db.execute(query)
    items = result.scalars().all()

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(e) for e in items],
        total=total,
        page=page,
        size=size,
    )
