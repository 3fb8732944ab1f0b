"""Unit tests for the client portal."""

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from sxmgmt.models.customer import Customer, CustomerStatus
from sxmgmt.models.manifest import MANIFEST_ROW_ID, SystemManifest
from sxmgmt.models.project import Project, ProjectPayment, ProjectStatus
from sxmgmt.models.ticket import TicketPriority, TicketStatus
from sxmgmt.models.user import AccountStatus
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.ticket import TicketCreate

NOW = datetime(2026, 4, 2, 9, 30, tzinfo=timezone.utc)


def _customer(**overrides) -> Customer:
    customer = Customer(
        id=uuid.uuid4(),
        name="Sarah Jenkins",
        company="Acme Inc.",
        email="s.jenkins@acme.inc",
        phone="+1 555-0123",
        status=CustomerStatus.ACTIVE,
        account_status=AccountStatus.APPROVED,
        lifetime_value=Decimal("15000.00"),
        total_price=Decimal("15000.00"),
        paid_amount=Decimal("15000.00"),
        created_at=NOW,
        updated_at=NOW,
    )
    for key, value in overrides.items():
        setattr(customer, key, value)
    return customer


def _client_user(customer: Customer) -> CurrentUser:
    return CurrentUser(
        id=customer.id, email=customer.email, name=customer.name,
        kind="client", role="CLIENT", permissions=["CLIENT_PORTAL:view"], is_active=True,
    )


def _project(client_id, value="10000.00", paid=None) -> Project:
    project = Project(
        id=uuid.uuid4(), reference="PRJ-2231", name="SOC rollout", client_id=client_id,
        value=Decimal(value), costs=Decimal("0.00"), tax_rate=Decimal("0.15"),
        payment_rates={"first": 25, "second": 25, "third": 25, "final": 25},
        status=ProjectStatus.ACTIVE, attachments=[], created_at=NOW, updated_at=NOW,
    )
    if paid:
        project.payments.append(
            ProjectPayment(id=uuid.uuid4(), amount=Decimal(paid), paid_on=date(2026, 3, 1),
                           note="Progress collection", created_at=NOW, updated_at=NOW)
        )
    return project


def _result(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    return result


def _scalars(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


def _mock_db(*results):
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = list(results)
    return mock_db


async def _stamp_ticket(ticket):
    ticket.id = ticket.id or uuid.uuid4()
    ticket.created_at = ticket.updated_at = NOW
    for message in ticket.messages:
        message.id = message.id or uuid.uuid4()
        message.created_at = NOW


# ── Tickets ───────────────────────────────────────

@pytest.mark.asyncio
async def test_open_ticket_starts_thread_with_description():
    from sxmgmt.api.portal import open_ticket

    customer = _customer()
    mock_db = _mock_db(_result(customer), _result(None))
    mock_db.refresh.side_effect = _stamp_ticket

    body = TicketCreate(
        subject="  VPN drops every hour  ",
        description="The tunnel disconnects at the top of each hour.",
        priority=TicketPriority.HIGH,
        category="Network",
    )
    response = await open_ticket(body, _client_user(customer), mock_db)

    assert response.reference.startswith("TKT-")
    assert response.subject == "VPN drops every hour"
    assert response.status == TicketStatus.OPEN
    assert response.client_name == "Sarah Jenkins"
    assert response.client_company == "Acme Inc."
    assert len(response.messages) == 1
    first = response.messages[0]
    assert first.sequence == 1
    assert first.text == body.description
    assert first.is_admin is False


@pytest.mark.asyncio
async def test_open_ticket_for_someone_elses_project():
    from sxmgmt.api.portal import open_ticket

    customer = _customer()
    mock_db = _mock_db(_result(customer), _result(None))
    body = TicketCreate(subject="Invoice", description="Wrong amount", project_id=uuid.uuid4())

    with pytest.raises(HTTPException) as exc:
        await open_ticket(body, _client_user(customer), mock_db)
    assert exc.value.status_code == 404
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_reply_to_foreign_ticket_is_not_found():
    from sxmgmt.api.portal import reply_to_own_ticket
    from sxmgmt.schemas.ticket import TicketReply

    customer = _customer()
    with pytest.raises(HTTPException) as exc:
        await reply_to_own_ticket(uuid.uuid4(), TicketReply(text="hello"), _client_user(customer),
                                  _mock_db(_result(None)))
    assert exc.value.status_code == 404


# ── Finance ───────────────────────────────────────

def test_finance_summary_uses_ledgers_and_registry():
    from sxmgmt.api.portal import finance_summary

    customer = _customer(paid_amount=Decimal("4000.00"))
    projects = [_project(customer.id, paid="5000.00"), _project(customer.id, value="2000.00")]
    summary = finance_summary(customer, projects, "SAR")

    assert summary.total_payable == Decimal("13800.00")
    assert summary.collected == Decimal("5000.00")
    assert summary.outstanding == Decimal("8800.00")
    assert summary.paid_amount == Decimal("4000.00")
    assert summary.currency == "SAR"


@pytest.mark.asyncio
async def test_finance_summary_uses_manifest_currency():
    from sxmgmt.api.portal import get_finance_summary

    customer = _customer()
    stored = SystemManifest(id=MANIFEST_ROW_ID, data={"global": {"currency": "AED"}})
    mock_db = _mock_db(_result(customer), _scalars([_project(customer.id)]), _result(stored))

    summary = await get_finance_summary(_client_user(customer), mock_db)

    assert summary.currency == "AED"
    assert summary.total_payable == Decimal("11500.00")


@pytest.mark.asyncio
async def test_make_payment_updates_registry():
    from sxmgmt.api.portal import PortalPayment, make_payment

    customer = _customer(last_contact=date(2025, 1, 1))
    mock_db = _mock_db(_result(customer), _scalars([]), _result(None))

    summary = await make_payment(PortalPayment(amount=Decimal("250.00")), _client_user(customer), mock_db)

    assert customer.paid_amount == Decimal("15250.00")
    assert customer.lifetime_value == Decimal("15250.00")
    assert customer.last_contact == date.today()
    assert summary.paid_amount == Decimal("15250.00")
    assert summary.currency == "SAR"
    mock_db.commit.assert_awaited_once()


def test_portal_payment_must_be_positive():
    from sxmgmt.api.portal import PortalPayment

    with pytest.raises(ValueError):
        PortalPayment(amount=Decimal("-5.00"))


@pytest.mark.asyncio
async def test_list_own_projects():
    from sxmgmt.api.portal import list_own_projects

    customer = _customer()
    projects = [_project(customer.id, paid="11500.00")]
    response = await list_own_projects(_client_user(customer), _mock_db(_scalars(projects)))

    assert len(response) == 1
    assert response[0].financials.outstanding == Decimal("0.00")
