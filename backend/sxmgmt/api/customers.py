"""Client registry (CRM) endpoints with view-permission enforcement."""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_permission
from sxmgmt.core.security import hash_password
from sxmgmt.db.base import get_db
from sxmgmt.models.customer import Customer, CustomerStatus
from sxmgmt.models.user import AccountStatus, User
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)
from sxmgmt.services.audit import record_action, snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


async def get_customer_or_404(db: AsyncSession, customer_id: UUID) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer


async def ensure_email_free(db: AsyncSession, email: str, exclude_id: UUID | None = None) -> None:
    query = select(Customer).where(func.lower(Customer.email) == email.lower())
    if exclude_id is not None:
        query = query.where(Customer.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer with this email already exists",
        )


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    search: str | None = None,
    account_status: AccountStatus | None = None,
    status_filter: CustomerStatus | None = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_permission("CRM:view")),
    db: AsyncSession = Depends(get_db),
):
    """List clients with pagination, search over name/company/email and status filters."""
    offset = (page - 1) * size

    query = select(Customer)

    if search:
        query = query.where(
            or_(
                Customer.name.ilike(f"%{search}%"),
                Customer.company.ilike(f"%{search}%"),
                Customer.email.ilike(f"%{search}%"),
            )
        )
    if account_status:
        query = query.where(Customer.account_status == account_status)
    if status_filter:
        query = query.where(Customer.status == status_filter)

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    # Pending approvals are counted across the whole registry
    pending_result = await db.execute(
        select(func.count()).select_from(Customer).where(
            Customer.account_status == AccountStatus.PENDING
        )
    )
    pending = pending_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Customer.created_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in items],
        total=total,
        page=page,
        size=size,
        pending_approvals=pending,
    )


@router.get("/pending/count", response_model=int)
async def pending_approval_count(
    current_user: CurrentUser = Depends(require_permission("CRM:view")),
    db: AsyncSession = Depends(get_db),
):
    """Number of client accounts waiting for approval."""
    result = await db.execute(
        select(func.count()).select_from(Customer).where(
            Customer.account_status == AccountStatus.PENDING
        )
    )
    return result.scalar_one()


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("CLIENT_DETAIL:view")),
    db: AsyncSession = Depends(get_db),
):
    """Get a single client by ID."""
    customer = await get_customer_or_404(db, customer_id)
    return CustomerResponse.model_validate(customer)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: CustomerCreate,
    current_user: CurrentUser = Depends(require_permission("CRM:create")),
    db: AsyncSession = Depends(get_db),
):
    """Register a client on their behalf. Staff-created accounts are approved immediately."""
    await ensure_email_free(db, body.email)

    data = body.model_dump(exclude={"password"})
    data["email"] = body.email.lower()
    customer = Customer(
        **data,
        account_status=AccountStatus.APPROVED,
        lifetime_value=Decimal("0.00"),
        paid_amount=Decimal("0.00"),
        assigned_to_id=current_user.id,
        hashed_password=hash_password(body.password) if body.password else None,
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    body: CustomerUpdate,
    current_user: CurrentUser = Depends(require_permission("CRM:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Update registry fields of a client."""
    customer = await get_customer_or_404(db, customer_id)

    if body.email and body.email.lower() != customer.email.lower():
        await ensure_email_free(db, body.email, exclude_id=customer_id)
    if body.assigned_to_id is not None:
        assignee = await db.execute(select(User.id).where(User.id == body.assigned_to_id))
        if assignee.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Staff member not found",
            )

    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "email" and value:
            value = value.lower()
        setattr(customer, field, value)

    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


async def _set_account_status(
    db: AsyncSession, customer_id: UUID, account_status: AccountStatus, actor: CurrentUser
) -> CustomerResponse:
    customer = await get_customer_or_404(db, customer_id)
    customer.account_status = account_status
    await db.commit()
    await db.refresh(customer)
    logger.info("Client %s account set to %s by %s", customer.email, account_status.value, actor.email)
    return CustomerResponse.model_validate(customer)


@router.post("/{customer_id}/approve", response_model=CustomerResponse)
async def approve_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("CRM:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Grant portal access to a pending client."""
    return await _set_account_status(db, customer_id, AccountStatus.APPROVED, current_user)


@router.post("/{customer_id}/reject", response_model=CustomerResponse)
async def reject_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("CRM:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Refuse portal access."""
    return await _set_account_status(db, customer_id, AccountStatus.REJECTED, current_user)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("CRM:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Delete a client together with their projects and tickets."""
    customer = await get_customer_or_404(db, customer_id)
    before = snapshot(customer)

    await record_action(db, current_user, "customer.delete", "Customer", customer.id, before=before)
    await db.delete(customer)
    await db.commit()
