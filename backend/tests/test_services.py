"""Unit tests for the service catalog API and audit recording."""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from sxmgmt.models.service import Service
from sxmgmt.schemas.service import ServiceCreate, ServiceUpdate
from sxmgmt.services.audit import to_jsonable


def _admin():
    user = MagicMock()
    user.name = "Securelogx Admin"
    user.email = "admin@securelogx.com"
    return user


def _service(**overrides) -> Service:
    now = datetime(2026, 2, 1, tzinfo=timezone.utc)
    service = Service(
        id=uuid.uuid4(),
        name="Cloud Migration",
        description="Planned move of workloads to managed cloud hosting.",
        base_price=Decimal("12000.00"),
        created_at=now,
        updated_at=now,
    )
    for key, value in overrides.items():
        setattr(service, key, value)
    return service


def _result(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    return result


def _mock_db(*results):
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = list(results)
    return mock_db


# ── Snapshot serialisation ────────────────────────

class _Colour(str, Enum):
    RED = "red"


def test_to_jsonable_scalars():
    uid = uuid.uuid4()
    data = to_jsonable({
        "price": Decimal("12.50"),
        "id": uid,
        "day": date(2026, 1, 2),
        "colour": _Colour.RED,
        "password": "hunter2",
        "tags": ("a", 1),
    })
    assert data == {
        "price": "12.50",
        "id": str(uid),
        "day": "2026-01-02",
        "colour": "red",
        "tags": ["a", 1],
    }


def test_to_jsonable_orm_row_and_model():
    service = _service()
    row = to_jsonable(service)
    assert row["name"] == "Cloud Migration"
    assert row["base_price"] == "12000.00"

    model = to_jsonable(ServiceCreate(name="Audit", base_price=Decimal("5000.00")))
    assert model == {"name": "Audit", "description": None, "base_price": "5000.00"}


# ── Endpoints ─────────────────────────────────────

@pytest.mark.asyncio
async def test_create_service_is_audited():
    from sxmgmt.api.services import create_service

    mock_db = _mock_db()

    async def fake_flush():
        added = mock_db.add.call_args_list[0][0][0]
        added.id = uuid.uuid4()
        added.created_at = added.updated_at = datetime.now(timezone.utc)

    mock_db.flush.side_effect = fake_flush

    response = await create_service(
        ServiceCreate(name="Endpoint Protection", base_price=Decimal("3500.00")), _admin(), mock_db
    )
    assert response.name == "Endpoint Protection"
    audit = mock_db.add.call_args_list[1][0][0]
    assert audit.action == "service.create"
    assert audit.before_change is None
    assert audit.after_change["base_price"] == "3500.00"


@pytest.mark.asyncio
async def test_update_service_records_before_and_after():
    from sxmgmt.api.services import update_service

    service = _service()
    mock_db = _mock_db(_result(service))

    response = await update_service(
        service.id, ServiceUpdate(base_price=Decimal("13000.00")), _admin(), mock_db
    )
    assert response.base_price == Decimal("13000.00")
    audit = mock_db.add.call_args[0][0]
    assert audit.action == "service.update"
    assert audit.before_change["base_price"] == "12000.00"
    assert audit.after_change["base_price"] == "13000.00"
    assert audit.user_email == "admin@securelogx.com"


def test_service_update_rejects_null_price():
    with pytest.raises(ValueError):
        ServiceUpdate.model_validate({"base_price": None})
    assert ServiceUpdate(description=None).model_dump(exclude_unset=True) == {"description": None}


@pytest.mark.asyncio
async def test_delete_service_not_found():
    from sxmgmt.api.services import delete_service

    with pytest.raises(HTTPException) as exc:
        await delete_service(uuid.uuid4(), _admin(), _mock_db(_result(None)))
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_service():
    from sxmgmt.api.services import delete_service

    service = _service()
    mock_db = _mock_db(_result(service))
    await delete_service(service.id, _admin(), mock_db)

    assert mock_db.add.call_args[0][0].action == "service.delete"
    mock_db.delete.assert_awaited_once_with(service)
