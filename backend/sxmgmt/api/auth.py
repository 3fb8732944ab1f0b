"""Authentication endpoints: staff login, client portal login, client self-registration, profile."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import get_current_user
from sxmgmt.core.permissions import effective_permissions, landing_view
from sxmgmt.core.security import hash_password, verify_password, create_access_token
from sxmgmt.db.base import get_db
from sxmgmt.models.customer import Customer, CustomerStatus
from sxmgmt.models.user import User, UserRole, AccountStatus
from sxmgmt.schemas.auth import (
    LoginRequest,
    TokenResponse,
    ClientRegisterRequest,
    ClientRegisterResponse,
    CurrentUser,
    MeResponse,
    ProfileUpdate,
)
from sxmgmt.services.audit import record_action, snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def staff_permissions(user: User) -> list[str]:
    return effective_permissions(user.role, user.permissions, user.crud_permissions, user.is_root)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Staff sign-in with email + password."""
    result = await db.execute(
        select(User).where(func.lower(User.email) == body.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning("Rejected staff login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid staff credentials",
        )

    if user.status != AccountStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff account is not approved",
        )

    role = UserRole(user.role).value
    token = create_access_token(
        subject_id=user.id,
        kind="staff",
        name=user.name,
        email=user.email,
        role=role,
        permissions=staff_permissions(user),
    )
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        kind="staff",
        role=role,
        landing_view=landing_view(user.role, user.permissions, user.is_root).value,
    )


@router.post("/client/login", response_model=TokenResponse)
async def client_login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Client portal sign-in. Only approved accounts get a token."""
    result = await db.execute(
        select(Customer).where(func.lower(Customer.email) == body.email.lower())
    )
    customer = result.scalar_one_or_none()

    if not customer or not verify_password(body.password, customer.hashed_password):
        logger.warning("Rejected client login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid client credentials",
        )

    if customer.account_status != AccountStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Identity profile is currently pending administrative authorization",
        )

    token = create_access_token(
        subject_id=customer.id,
        kind="client",
        name=customer.name,
        email=customer.email,
        role=UserRole.CLIENT.value,
        permissions=effective_permissions(UserRole.CLIENT, None, None),
    )
    return TokenResponse(
        access_token=token,
        user_id=customer.id,
        kind="client",
        role=UserRole.CLIENT.value,
        landing_view=landing_view(UserRole.CLIENT, None).value,
    )


@router.post(
    "/register",
    response_model=ClientRegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_client(body: ClientRegisterRequest, db: AsyncSession = Depends(get_db)):
    """Client self-registration. The account waits for staff approval."""
    existing = await db.execute(
        select(Customer).where(func.lower(Customer.email) == body.email.lower())
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    # New applications go to the longest-serving staff member
    owner_result = await db.execute(select(User).order_by(User.created_at).limit(1))
    owner = owner_result.scalar_one_or_none()

    customer = Customer(
        name=body.name.strip(),
        company=body.company.strip(),
        email=body.email.lower(),
        phone="Not provided",
        status=CustomerStatus.LEAD,
        account_status=AccountStatus.PENDING,
        lifetime_value=0,
        total_price=0,
        paid_amount=0,
        last_contact=date.today(),
        assigned_to_id=owner.id if owner else None,
        hashed_password=hash_password(body.password),
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    logger.info("Client registration pending approval: %s (%s)", customer.email, customer.company)
    return ClientRegisterResponse(
        customer_id=customer.id,
        account_status=AccountStatus.PENDING.value,
    )


async def _load_identity(db: AsyncSession, current_user: CurrentUser):
    model = Customer if current_user.is_client else User
    result = await db.execute(select(model).where(model.id == current_user.id))
    identity = result.scalar_one_or_none()
    if not identity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return identity


def _me_response(identity, current_user: CurrentUser) -> MeResponse:
    if current_user.is_client:
        return MeResponse(
            id=identity.id,
            email=identity.email,
            name=identity.name,
            kind="client",
            role=UserRole.CLIENT.value,
            permissions=effective_permissions(UserRole.CLIENT, None, None),
            is_active=identity.account_status == AccountStatus.APPROVED,
            company=identity.company,
            landing_view=landing_view(UserRole.CLIENT, None).value,
        )
    return MeResponse(
        id=identity.id,
        email=identity.email,
        name=identity.name,
        kind="staff",
        role=UserRole(identity.role).value,
        permissions=staff_permissions(identity),
        is_active=identity.status == AccountStatus.APPROVED,
        company=identity.company,
        avatar_url=identity.avatar_url,
        landing_view=landing_view(identity.role, identity.permissions, identity.is_root).value,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Full profile of the signed-in staff member or client, with effective permissions."""
    identity = await _load_identity(db, current_user)
    return _me_response(identity, current_user)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    body: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update own name, password or avatar. Clients can only change their name."""
    identity = await _load_identity(db, current_user)
    before = snapshot(identity)

    if body.name is not None:
        identity.name = body.name.strip()
    if not current_user.is_client:
        if body.password:
            identity.hashed_password = hash_password(body.password)
        if body.avatar_url is not None:
            identity.avatar_url = body.avatar_url

    await record_action(
        db,
        current_user,
        "profile.update",
        "Customer" if current_user.is_client else "User",
        identity.id,
        before=before,
        after=identity,
    )
    await db.commit()
    await db.refresh(identity)

    return _me_response(identity, current_user)


@router.get("/companies", response_model=list[str])
async def list_companies(db: AsyncSession = Depends(get_db)):
    """Company names already on file, for the registration form."""
    result = await db.execute(
        select(Customer.company).distinct().order_by(Customer.company)
    )
    return [name for name in result.scalars().all() if name]
