"""Unit tests for the client registry (CRM) API."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from sxmgmt.models.customer import Customer, CustomerStatus
from sxmgmt.models.user import AccountStatus
from sxmgmt.schemas.customer import CustomerCreate, CustomerUpdate


def _staff_user():
    user = MagicMock()
    user.id = uuid.uuid4()
    user.name = "Securelogx Admin"
    user.email = "admin@securelogx.com"
    user.is_client = False
    return user


def _customer(**overrides) -> Customer:
    now = datetime(2026, 5, 10, tzinfo=timezone.utc)
    customer = Customer(
        id=uuid.uuid4(),
        name="Michael Chen",
        company="Global Tech Solutions",
        email="m.chen@globaltech.com",
        phone="+1 555-9876",
        status=CustomerStatus.PROSPECT,
        account_status=AccountStatus.PENDING,
        lifetime_value=Decimal("0.00"),
        total_price=Decimal("5000.00"),
        paid_amount=Decimal("0.00"),
        created_at=now,
        updated_at=now,
    )
    for key, value in overrides.items():
        setattr(customer, key, value)
    return customer


def _result(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    return result


def _mock_db(*results):
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = list(results)
    return mock_db


@pytest.mark.asyncio
async def test_create_customer_duplicate_email_case_insensitive():
    """Email uniqueness ignores case."""
    from sxmgmt.api.customers import create_customer

    mock_db = _mock_db(_result(_customer()))
    body = CustomerCreate(name="M. Chen", company="GTS", email="M.CHEN@globaltech.com")

    with pytest.raises(HTTPException) as exc:
        await create_customer(body, _staff_user(), mock_db)
    assert exc.value.status_code == 409
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_customer_is_approved_and_assigned_to_creator():
    from sxmgmt.api.customers import create_customer

    mock_db = _mock_db(_result(None))
    current_user = _staff_user()

    async def fake_refresh(obj):
        obj.id = uuid.uuid4()
        obj.created_at = obj.updated_at = datetime.now(timezone.utc)

    mock_db.refresh.side_effect = fake_refresh

    body = CustomerCreate(
        name="Nora Saleh",
        company="Delta Logistics",
        email="Nora@Delta.sa",
        total_price=Decimal("8000.00"),
        password="portalpass",
    )
    response = await create_customer(body, current_user, mock_db)

    created = mock_db.add.call_args[0][0]
    assert created.account_status == AccountStatus.APPROVED
    assert created.assigned_to_id == current_user.id
    assert created.lifetime_value == Decimal("0.00")
    assert created.paid_amount == Decimal("0.00")
    assert created.hashed_password
    assert response.email == "nora@delta.sa"
    assert response.total_price == Decimal("8000.00")


@pytest.mark.asyncio
async def test_get_customer_not_found():
    from sxmgmt.api.customers import get_customer

    with pytest.raises(HTTPException) as exc:
        await get_customer(uuid.uuid4(), _staff_user(), _mock_db(_result(None)))
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_update_customer_email_conflict():
    from sxmgmt.api.customers import update_customer

    customer = _customer()
    mock_db = _mock_db(_result(customer), _result(_customer(email="taken@acme.inc")))

    with pytest.raises(HTTPException) as exc:
        await update_customer(customer.id, CustomerUpdate(email="taken@acme.inc"), _staff_user(), mock_db)
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_update_customer_same_email_other_case_skips_check():
    from sxmgmt.api.customers import update_customer

    customer = _customer()
    mock_db = _mock_db(_result(customer))

    response = await update_customer(
        customer.id,
        CustomerUpdate(email="M.Chen@GlobalTech.com", status=CustomerStatus.ACTIVE),
        _staff_user(),
        mock_db,
    )
    assert mock_db.execute.await_count == 1
    assert response.email == "m.chen@globaltech.com"
    assert response.status == CustomerStatus.ACTIVE


def test_customer_update_rejects_null_required_fields():
    with pytest.raises(ValueError):
        CustomerUpdate(name=None)
    with pytest.raises(ValueError):
        CustomerUpdate.model_validate({"paid_amount": None})
    assert CustomerUpdate(phone=None, assigned_to_id=None).model_dump(exclude_unset=True) == {
        "phone": None, "assigned_to_id": None,
    }


@pytest.mark.asyncio
async def test_update_customer_unknown_assignee():
    from sxmgmt.api.customers import update_customer

    customer = _customer()
    mock_db = _mock_db(_result(customer), _result(None))

    with pytest.raises(HTTPException) as exc:
        await update_customer(customer.id, CustomerUpdate(assigned_to_id=uuid.uuid4()), _staff_user(), mock_db)
    assert exc.value.status_code == 404
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_customer_reassigns_to_existing_staff():
    from sxmgmt.api.customers import update_customer

    customer = _customer()
    staff_id = uuid.uuid4()
    mock_db = _mock_db(_result(customer), _result(staff_id))

    response = await update_customer(customer.id, CustomerUpdate(assigned_to_id=staff_id), _staff_user(), mock_db)
    assert response.assigned_to_id == staff_id


@pytest.mark.asyncio
async def test_approve_and_reject():
    from sxmgmt.api.customers import approve_customer, reject_customer

    customer = _customer()
    response = await approve_customer(customer.id, _staff_user(), _mock_db(_result(customer)))
    assert response.account_status == AccountStatus.APPROVED

    response = await reject_customer(customer.id, _staff_user(), _mock_db(_result(customer)))
    assert response.account_status == AccountStatus.REJECTED


@pytest.mark.asyncio
async def test_delete_customer_is_audited():
    from sxmgmt.api.customers import delete_customer
    from sxmgmt.models.audit import AuditLog

    customer = _customer(hashed_password="secret-hash")
    mock_db = _mock_db(_result(customer))

    await delete_customer(customer.id, _staff_user(), mock_db)

    entry = mock_db.add.call_args[0][0]
    assert isinstance(entry, AuditLog)
    assert entry.action == "customer.delete"
    assert entry.entity_id == str(customer.id)
    assert entry.before_change["email"] == "m.chen@globaltech.com"
    assert "hashed_password" not in entry.before_change
    assert entry.after_change is None
    mock_db.delete.assert_awaited_once_with(customer)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_list_customers_reports_pending_count():
    from sxmgmt.api.customers import list_customers

    count_result = MagicMock()
    count_result.scalar_one.return_value = 2
    pending_result = MagicMock()
    pending_result.scalar_one.return_value = 1
    items_result = MagicMock()
    items_result.scalars.return_value.all.return_value = [
        _customer(),
        _customer(email="s.jenkins@acme.inc", account_status=AccountStatus.APPROVED),
    ]
    mock_db = _mock_db(count_result, pending_result, items_result)

    response = await list_customers(
        page=1, size=50, search="acme", account_status=None, status_filter=None,
        current_user=_staff_user(), db=mock_db,
    )
    assert response.total == 2
    assert response.pending_approvals == 1
    assert len(response.items) == 2
