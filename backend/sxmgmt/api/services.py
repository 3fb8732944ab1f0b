"""Service catalog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_permission, require_staff
from sxmgmt.db.base import get_db
from sxmgmt.models.service import Service
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.service import ServiceCreate, ServiceUpdate, ServiceResponse
from sxmgmt.services.audit import record_action, snapshot

router = APIRouter(prefix="/services", tags=["services"])


async def get_service_or_404(db: AsyncSession, service_id: UUID) -> Service:
    result = await db.execute(select(Service).where(Service.id == service_id))
    service = result.scalar_one_or_none()
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found",
        )
    return service


@router.get("", response_model=list[ServiceResponse])
async def list_services(
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Catalog listing. Any staff member may read it, e.g. to pick services for a project."""
    result = await db.execute(select(Service).order_by(Service.name))
    return [ServiceResponse.model_validate(s) for s in result.scalars().all()]


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    body: ServiceCreate,
    current_user: CurrentUser = Depends(require_permission("SERVICES_CATALOG:create")),
    db: AsyncSession = Depends(get_db),
):
    service = Service(**body.model_dump())
    db.add(service)
    await db.flush()

    await record_action(db, current_user, "service.create", "Service", service.id, after=service)
    await db.commit()
    await db.refresh(service)

    return ServiceResponse.model_validate(service)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: UUID,
    body: ServiceUpdate,
    current_user: CurrentUser = Depends(require_permission("SERVICES_CATALOG:edit")),
    db: AsyncSession = Depends(get_db),
):
    service = await get_service_or_404(db, service_id)
    before = snapshot(service)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    await record_action(db, current_user, "service.update", "Service", service.id, before=before, after=service)
    await db.commit()
    await db.refresh(service)

    return ServiceResponse.model_validate(service)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    current_user: CurrentUser = Depends(require_permission("SERVICES_CATALOG:delete")),
    db: AsyncSession = Depends(get_db),
):
    service = await get_service_or_404(db, service_id)

    await record_action(db, current_user, "service.delete", "Service", service.id, before=service)
    await db.delete(service)
    await db.commit()
