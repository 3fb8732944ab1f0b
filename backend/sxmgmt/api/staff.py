"""Staff administration endpoints: provisioning, view grants, CRUD flags, project access."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_permission
from sxmgmt.core.permissions import DEFAULT_STAFF_VIEWS, View, normalize_access, toggle_view
from sxmgmt.core.security import hash_password
from sxmgmt.db.base import get_db
from sxmgmt.models.project import Project
from sxmgmt.models.user import User, UserRole, AccountStatus
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.staff import StaffCreate, StaffUpdate, StaffResponse
from sxmgmt.services.audit import record_action, snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["staff"])


async def get_staff_or_404(db: AsyncSession, staff_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == staff_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )
    return user


async def ensure_email_free(db: AsyncSession, email: str, exclude_id: UUID | None = None) -> None:
    query = select(User).where(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )


def apply_view_grants(
    current_views: list[str],
    current_crud: dict,
    requested_views: list[str],
    requested_crud: dict | None,
) -> tuple[list[str], dict]:
    """Move from the current grants to the requested ones one view at a time.

    Newly granted views start with view-only flags, revoked views lose their
    CRUD entry, and explicit flags in ``requested_crud`` win for granted views.
    """
    views, crud = normalize_access(current_views, current_crud)
    wanted = set(requested_views)
    for view in View:
        if (view.value in views) != (view.value in wanted):
            views, crud = toggle_view(views, crud, view)
    if requested_crud:
        for view, flags in requested_crud.items():
            if view in views:
                crud[view] = dict(flags)
    return normalize_access(views, crud)


async def existing_project_ids(db: AsyncSession, project_ids: list[UUID]) -> list[str]:
    if not project_ids:
        return []
    result = await db.execute(select(Project.id).where(Project.id.in_(project_ids)))
    found = set(result.scalars().all())
    if len(found) != len(set(project_ids)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    return [str(pid) for pid in dict.fromkeys(project_ids)]


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    current_user: CurrentUser = Depends(require_permission("ADMIN_MGMT:view")),
    db: AsyncSession = Depends(get_db),
):
    """All staff records, oldest first."""
    result = await db.execute(select(User).order_by(User.created_at))
    return [StaffResponse.model_validate(u) for u in result.scalars().all()]


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: UUID,
    current_user: CurrentUser = Depends(require_permission("STAFF_EDIT:view")),
    db: AsyncSession = Depends(get_db),
):
    user = await get_staff_or_404(db, staff_id)
    return StaffResponse.model_validate(user)


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    body: StaffCreate,
    current_user: CurrentUser = Depends(require_permission("ADMIN_MGMT:create")),
    db: AsyncSession = Depends(get_db),
):
    """Provision a staff member with the default grants."""
    await ensure_email_free(db, body.email)

    user = User(
        name=body.name.strip(),
        email=body.email.lower(),
        hashed_password=hash_password(body.password),
        role=UserRole(body.role),
        status=AccountStatus.APPROVED,
        permissions=list(DEFAULT_STAFF_VIEWS),
        crud_permissions={},
        project_access="ALL",
    )
    db.add(user)
    await db.flush()

    await record_action(db, current_user, "staff.create", "User", user.id, after=user)
    await db.commit()
    await db.refresh(user)

    logger.info("Staff member %s provisioned as %s by %s", user.email, body.role, current_user.email)
    return StaffResponse.model_validate(user)


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: UUID,
    body: StaffUpdate,
    current_user: CurrentUser = Depends(require_permission("ADMIN_MGMT:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Update identity, role, view grants, CRUD flags or project access."""
    user = await get_staff_or_404(db, staff_id)
    before = snapshot(user)

    if body.email and body.email.lower() != user.email.lower():
        await ensure_email_free(db, body.email, exclude_id=staff_id)
        user.email = body.email.lower()

    if body.name is not None:
        user.name = body.name.strip()
    if body.role is not None:
        if user.is_root and body.role != UserRole.ADMIN.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Root administrator must keep the ADMIN role",
            )
        user.role = UserRole(body.role)
    if body.status is not None:
        user.status = body.status
    if body.password:
        user.hashed_password = hash_password(body.password)
    if body.avatar_url is not None:
        user.avatar_url = body.avatar_url

    if body.permissions is not None or body.crud_permissions is not None:
        requested_crud = (
            {k: v.model_dump() for k, v in body.crud_permissions.items()}
            if body.crud_permissions is not None else None
        )
        user.permissions, user.crud_permissions = apply_view_grants(
            user.permissions or [],
            user.crud_permissions or {},
            body.permissions if body.permissions is not None else (user.permissions or []),
            requested_crud,
        )
    if body.project_access == "ALL":
        user.project_access = "ALL"
    elif body.project_access is not None:
        user.project_access = await existing_project_ids(db, body.project_access)

    await record_action(db, current_user, "staff.update", "User", user.id, before=before, after=user)
    await db.commit()
    await db.refresh(user)

    logger.info("Staff member %s updated by %s", user.email, current_user.email)
    return StaffResponse.model_validate(user)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_staff(
    staff_id: UUID,
    current_user: CurrentUser = Depends(require_permission("ADMIN_MGMT:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Remove a staff member. The root administrator cannot be deleted."""
    user = await get_staff_or_404(db, staff_id)

    if user.is_root:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Root administrator cannot be deleted",
        )

    await record_action(db, current_user, "staff.delete", "User", user.id, before=user)
    await db.delete(user)
    await db.commit()

    logger.info("Staff member %s removed by %s", user.email, current_user.email)
