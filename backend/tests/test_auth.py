"""Unit tests for auth: security utils, view permissions, dependencies and login endpoints."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from jose import JWTError

from sxmgmt.core.security import hash_password, verify_password, create_access_token, decode_access_token
from sxmgmt.core.permissions import (
    ALL_STAFF_PERMISSIONS,
    CLIENT_PERMISSIONS,
    View,
    can_access_project,
    effective_permissions,
    landing_view,
    normalize_access,
    toggle_view,
)
from sxmgmt.models.user import AccountStatus, UserRole
from sxmgmt.schemas.auth import CurrentUser, LoginRequest


def _token(**overrides) -> str:
    claims = dict(
        subject_id=uuid.uuid4(),
        kind="staff",
        name="Sarah Kim",
        email="sarah.k@securelogx.com",
        role="STAFF",
        permissions=["DASHBOARD:view"],
    )
    claims.update(overrides)
    return create_access_token(**claims)


# ── Password hashing ──────────────────────────────

def test_hash_and_verify():
    plain = "SecurePass123!"
    hashed = hash_password(plain)
    assert hashed != plain
    assert verify_password(plain, hashed)
    assert not verify_password("wrong", hashed)


def test_verify_without_stored_hash():
    """Clients created by staff without a password cannot sign in."""
    assert not verify_password("anything", None)
    assert not verify_password("anything", "")


# ── JWT ────────────────────────────────────────────

def test_create_and_decode_token():
    uid = uuid.uuid4()
    token = _token(subject_id=uid, kind="client", role="CLIENT", permissions=CLIENT_PERMISSIONS)
    payload = decode_access_token(token)
    assert payload["sub"] == str(uid)
    assert payload["kind"] == "client"
    assert payload["role"] == "CLIENT"
    assert payload["email"] == "sarah.k@securelogx.com"
    assert "CLIENT_PORTAL:view" in payload["permissions"]


def test_expired_token():
    token = _token(expires_delta=timedelta(seconds=-1))
    with pytest.raises(JWTError):
        decode_access_token(token)


# ── View permissions ──────────────────────────────

def test_admin_gets_every_staff_permission():
    perms = effective_permissions(UserRole.ADMIN, [], {})
    assert set(perms) == set(ALL_STAFF_PERMISSIONS)
    assert "AUDIT_LOG:view" in perms
    assert "CLIENT_PORTAL:view" not in perms


def test_root_flag_overrides_role():
    perms = effective_permissions(UserRole.STAFF, [], {}, is_root=True)
    assert "ADMIN_MGMT:delete" in perms


def test_staff_view_grants_and_crud_flags():
    perms = effective_permissions(
        UserRole.STAFF,
        ["CRM", "TICKETS"],
        {"CRM": {"view": True, "create": True, "edit": False, "delete": False}},
    )
    assert "CRM:view" in perms
    assert "CRM:create" in perms
    assert "CRM:edit" not in perms
    assert "TICKETS:view" in perms
    assert "TICKETS:edit" not in perms
    # Sub-view follows its parent, CRUD flags included
    assert "CLIENT_DETAIL:view" in perms
    assert "CLIENT_DETAIL:create" in perms
    # Always allowed
    assert "SETTINGS:view" in perms
    assert "SETTINGS:edit" in perms
    assert "STAFF_EDIT:view" in perms
    # Not granted
    assert "PROJECT_PIPELINE:view" not in perms
    assert perms == sorted(perms)


def test_staff_never_gets_audit_log():
    perms = effective_permissions(UserRole.STAFF, ["AUDIT_LOG", "DASHBOARD"], {"AUDIT_LOG": {"view": True}})
    assert "AUDIT_LOG:view" not in perms
    assert "DASHBOARD:view" in perms


def test_unknown_views_are_ignored():
    perms = effective_permissions(UserRole.STAFF, ["LEGACY_VIEW"], {})
    assert not any(p.startswith("LEGACY_VIEW") for p in perms)


def test_client_permissions():
    assert effective_permissions(UserRole.CLIENT, ["CRM"], {}) == CLIENT_PERMISSIONS


def test_toggle_view_grants_with_default_flags():
    views, crud = toggle_view(["DASHBOARD"], {}, View.CRM)
    assert views == ["DASHBOARD", "CRM"]
    assert crud["CRM"] == {"view": True, "create": False, "edit": False, "delete": False}


def test_toggle_view_revokes_and_drops_flags():
    views, crud = toggle_view(["DASHBOARD", "CRM"], {"CRM": {"view": True, "edit": True}}, View.CRM)
    assert views == ["DASHBOARD"]
    assert "CRM" not in crud


def test_toggle_view_does_not_mutate_inputs():
    views = ["DASHBOARD"]
    crud = {}
    toggle_view(views, crud, View.TICKETS)
    assert views == ["DASHBOARD"]
    assert crud == {}


def test_normalize_access_drops_stale_entries():
    views, crud = normalize_access(
        ["CRM", "BOGUS", "CLIENT_PORTAL"],
        {"CRM": {"edit": 1, "bogus": True}, "TICKETS": {"view": True}},
    )
    assert views == ["CRM"]
    assert crud == {"CRM": {"view": True, "create": False, "edit": True, "delete": False}}


@pytest.mark.parametrize(
    "role,views,is_root,expected",
    [
        (UserRole.CLIENT, None, False, View.CLIENT_PORTAL),
        (UserRole.ADMIN, [], False, View.DASHBOARD),
        (UserRole.STAFF, [], True, View.DASHBOARD),
        (UserRole.STAFF, ["DASHBOARD"], False, View.DASHBOARD),
        (UserRole.STAFF, ["TICKETS"], False, View.SETTINGS),
    ],
)
def test_landing_view(role, views, is_root, expected):
    assert landing_view(role, views, is_root) == expected


def test_can_access_project():
    pid = str(uuid.uuid4())
    assert can_access_project("ALL", pid)
    assert can_access_project([pid], pid)
    assert not can_access_project([], pid)
    assert not can_access_project(None, pid)


# ── Dependencies ──────────────────────────────────

@pytest.mark.asyncio
async def test_get_current_user_from_token():
    from sxmgmt.core.deps import get_current_user

    uid = uuid.uuid4()
    user = await get_current_user(_token(subject_id=uid))
    assert user.id == uid
    assert user.name == "Sarah Kim"
    assert user.kind == "staff"
    assert not user.is_client


@pytest.mark.asyncio
async def test_get_current_user_rejects_garbage():
    from sxmgmt.core.deps import get_current_user

    with pytest.raises(HTTPException) as exc:
        await get_current_user("not-a-token")
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_require_permission_lists_missing():
    from sxmgmt.core.deps import require_permission

    checker = require_permission("CRM:view", "CRM:delete")
    user = CurrentUser(
        id=uuid.uuid4(), email="a@b.co", name="A", kind="staff",
        role="STAFF", permissions=["CRM:view"], is_active=True,
    )
    with pytest.raises(HTTPException) as exc:
        await checker(user)
    assert exc.value.status_code == 403
    assert "CRM:delete" in exc.value.detail


@pytest.mark.asyncio
async def test_staff_and_client_split():
    from sxmgmt.core.deps import require_client, require_staff

    client = CurrentUser(
        id=uuid.uuid4(), email="c@acme.inc", name="C", kind="client",
        role="CLIENT", permissions=CLIENT_PERMISSIONS, is_active=True,
    )
    staff = client.model_copy(update={"kind": "staff", "role": "STAFF"})

    assert await require_client(client) is client
    assert await require_staff(staff) is staff
    with pytest.raises(HTTPException) as exc:
        await require_staff(client)
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        await require_client(staff)
    assert exc.value.status_code == 403


# ── Login endpoints ───────────────────────────────

def _db_returning(obj):
    mock_db = AsyncMock()
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = obj
    mock_db.execute.return_value = mock_result
    mock_db.add = MagicMock()
    return mock_db


def _staff_record(**overrides):
    user = MagicMock()
    user.id = uuid.uuid4()
    user.name = "Sarah Kim"
    user.email = "sarah.k@securelogx.com"
    user.hashed_password = hash_password("password123")
    user.role = UserRole.STAFF
    user.status = AccountStatus.APPROVED
    user.permissions = ["DASHBOARD", "TICKETS", "SETTINGS"]
    user.crud_permissions = {}
    user.is_root = False
    for key, value in overrides.items():
        setattr(user, key, value)
    return user


@pytest.mark.asyncio
async def test_staff_login_success():
    from sxmgmt.api.auth import login

    user = _staff_record()
    response = await login(
        LoginRequest(email="Sarah.K@securelogx.com", password="password123"), _db_returning(user)
    )
    assert response.kind == "staff"
    assert response.role == "STAFF"
    assert response.landing_view == "DASHBOARD"
    payload = decode_access_token(response.access_token)
    assert "TICKETS:view" in payload["permissions"]
    assert "CRM:view" not in payload["permissions"]


@pytest.mark.asyncio
async def test_staff_login_wrong_password():
    from sxmgmt.api.auth import login

    with pytest.raises(HTTPException) as exc:
        await login(LoginRequest(email="sarah.k@securelogx.com", password="nope"), _db_returning(_staff_record()))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Invalid staff credentials"


@pytest.mark.asyncio
async def test_staff_login_unapproved():
    from sxmgmt.api.auth import login

    user = _staff_record(status=AccountStatus.PENDING)
    with pytest.raises(HTTPException) as exc:
        await login(LoginRequest(email="sarah.k@securelogx.com", password="password123"), _db_returning(user))
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_client_login_pending_account():
    from sxmgmt.api.auth import client_login

    customer = MagicMock()
    customer.hashed_password = hash_password("clientpassword")
    customer.account_status = AccountStatus.PENDING

    with pytest.raises(HTTPException) as exc:
        await client_login(
            LoginRequest(email="m.chen@globaltech.com", password="clientpassword"), _db_returning(customer)
        )
    assert exc.value.status_code == 403
    assert "pending administrative authorization" in exc.value.detail


@pytest.mark.asyncio
async def test_client_login_success():
    from sxmgmt.api.auth import client_login

    customer = MagicMock()
    customer.id = uuid.uuid4()
    customer.name = "Sarah Jenkins"
    customer.email = "s.jenkins@acme.inc"
    customer.hashed_password = hash_password("clientpassword")
    customer.account_status = AccountStatus.APPROVED

    response = await client_login(
        LoginRequest(email="s.jenkins@acme.inc", password="clientpassword"), _db_returning(customer)
    )
    assert response.kind == "client"
    assert response.landing_view == "CLIENT_PORTAL"
    assert decode_access_token(response.access_token)["sub"] == str(customer.id)


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts():
    from sxmgmt.api.auth import register_client
    from sxmgmt.schemas.auth import ClientRegisterRequest

    body = ClientRegisterRequest(
        name="Sarah Jenkins", email="S.Jenkins@acme.inc", company="Acme Inc.", password="longenough"
    )
    with pytest.raises(HTTPException) as exc:
        await register_client(body, _db_returning(MagicMock()))
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_register_creates_pending_lead():
    from sxmgmt.api.auth import register_client
    from sxmgmt.models.customer import CustomerStatus
    from sxmgmt.schemas.auth import ClientRegisterRequest

    owner = MagicMock()
    owner.id = uuid.uuid4()

    no_match = MagicMock()
    no_match.scalar_one_or_none.return_value = None
    owner_result = MagicMock()
    owner_result.scalar_one_or_none.return_value = owner

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [no_match, owner_result]

    async def fake_refresh(obj):
        obj.id = uuid.uuid4()

    mock_db.refresh.side_effect = fake_refresh

    body = ClientRegisterRequest(
        name="Layla Hassan", email="Layla@Orbit.sa", company="Orbit", password="longenough"
    )
    response = await register_client(body, mock_db)

    created = mock_db.add.call_args[0][0]
    assert created.email == "layla@orbit.sa"
    assert created.status == CustomerStatus.LEAD
    assert created.account_status == AccountStatus.PENDING
    assert created.phone == "Not provided"
    assert created.assigned_to_id == owner.id
    assert created.paid_amount == 0
    assert verify_password("longenough", created.hashed_password)
    assert response.account_status == "PENDING"
    mock_db.commit.assert_awaited_once()
