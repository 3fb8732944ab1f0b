"""Seed an empty database with the initial staff, clients, ticket, catalog and manifest.

Initial accounts:
┌──────────────────────────┬────────────────────────┬───────┬──────────────────────────────┐
│ Name                     │ Email                  │ Role  │ Views                        │
├──────────────────────────┼────────────────────────┼───────┼──────────────────────────────┤
│ Securelogx Admin (root)  │ admin@securelogx.com   │ ADMIN │ all                          │
│ Sarah Kim                │ sarah.k@securelogx.com │ STAFF │ DASHBOARD, TICKETS, SETTINGS │
│ Sarah Jenkins (client)   │ s.jenkins@acme.inc     │   -   │ portal (approved)            │
│ Michael Chen (client)    │ m.chen@globaltech.com  │   -   │ pending approval             │
└──────────────────────────┴────────────────────────┴───────┴──────────────────────────────┘

Run with ``python -m sxmgmt.db.seed``. Nothing is inserted when staff already exist.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.permissions import MANAGEABLE_VIEWS, View, normalize_access
from sxmgmt.core.security import hash_password
from sxmgmt.db.base import async_session
from sxmgmt.models import (
    AccountStatus,
    Customer,
    CustomerStatus,
    Service,
    SystemManifest,
    Ticket,
    TicketMessage,
    TicketPriority,
    TicketStatus,
    User,
    UserRole,
)
from sxmgmt.models.manifest import MANIFEST_ROW_ID
from sxmgmt.schemas.manifest import ManifestDocument

logger = logging.getLogger(__name__)

ADMIN_VIEWS = [v.value for v in MANAGEABLE_VIEWS] + [View.SETTINGS.value]
STAFF_VIEWS = [View.DASHBOARD.value, View.TICKETS.value, View.SETTINGS.value]

SERVICE_CATALOG = [
    ("Infrastructure Audit", "Full review of network, server and endpoint posture.", Decimal("5000.00")),
    ("Cloud Migration", "Planned move of workloads to managed cloud hosting.", Decimal("12000.00")),
    ("Endpoint Protection", "Managed antivirus and device hardening per seat.", Decimal("3500.00")),
]


def build_staff() -> list[User]:
    admin_views, admin_crud = normalize_access(ADMIN_VIEWS, {})
    staff_views, staff_crud = normalize_access(STAFF_VIEWS, {})
    return [
        User(
            name="Securelogx Admin",
            email="admin@securelogx.com",
            hashed_password=hash_password("P@ssw0rd"),
            role=UserRole.ADMIN,
            status=AccountStatus.APPROVED,
            avatar_url="https://picsum.photos/seed/admin/100/100",
            is_root=True,
            permissions=admin_views,
            crud_permissions=admin_crud,
            project_access="ALL",
        ),
        User(
            name="Sarah Kim",
            email="sarah.k@securelogx.com",
            hashed_password=hash_password("password123"),
            role=UserRole.STAFF,
            status=AccountStatus.APPROVED,
            avatar_url="https://picsum.photos/seed/sarahk/100/100",
            permissions=staff_views,
            crud_permissions=staff_crud,
            project_access="ALL",
        ),
    ]


def build_customers(owner: User) -> list[Customer]:
    return [
        Customer(
            name="Sarah Jenkins",
            company="Acme Inc.",
            email="s.jenkins@acme.inc",
            phone="+1 555-0123",
            status=CustomerStatus.ACTIVE,
            account_status=AccountStatus.APPROVED,
            lifetime_value=Decimal("12500.00"),
            total_price=Decimal("15000.00"),
            paid_amount=Decimal("8500.00"),
            last_contact=date(2024, 5, 10),
            assigned_to=owner,
            hashed_password=hash_password("clientpassword"),
        ),
        Customer(
            name="Michael Chen",
            company="Global Tech Solutions",
            email="m.chen@globaltech.com",
            phone="+1 555-9876",
            status=CustomerStatus.PROSPECT,
            account_status=AccountStatus.PENDING,
            lifetime_value=Decimal("0.00"),
            total_price=Decimal("5000.00"),
            paid_amount=Decimal("0.00"),
            last_contact=date(2024, 5, 12),
            assigned_to=owner,
        ),
    ]


def build_ticket(client: Customer) -> Ticket:
    text = "Every time I try to click on the billing tab, the page refreshes and logs me out."
    ticket = Ticket(
        reference="TKT-1001",
        subject="Cannot access billing dashboard",
        description=text,
        status=TicketStatus.OPEN,
        priority=TicketPriority.HIGH,
        category="Billing",
        client=client,
        client_name=client.name,
        client_company=client.company,
    )
    ticket.messages.append(
        TicketMessage(sequence=1, sender_name=client.name, text=text, is_admin=False, attachments=[])
    )
    return ticket


async def seed(db: AsyncSession) -> bool:
    """Insert the initial records. Returns False when the database is already populated."""
    existing = await db.execute(select(func.count()).select_from(User))
    if existing.scalar_one() > 0:
        logger.info("Seed skipped: staff records already present")
        return False

    staff = build_staff()
    db.add_all(staff)
    customers = build_customers(owner=staff[0])
    db.add_all(customers)
    await db.flush()

    ticket = build_ticket(customers[0])
    ticket.messages[0].sender_id = customers[0].id
    db.add(ticket)

    db.add_all(
        Service(name=name, description=description, base_price=price)
        for name, description, price in SERVICE_CATALOG
    )
    db.add(SystemManifest(id=MANIFEST_ROW_ID, data=ManifestDocument().to_storage(), updated_by="seed"))

    await db.commit()
    logger.info(
        "Seeded %d staff, %d customers, 1 ticket, %d services",
        len(staff), len(customers), len(SERVICE_CATALOG),
    )
    return True


async def main() -> None:
    async with async_session() as db:
        await seed(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
