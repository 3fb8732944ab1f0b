"""Client portal endpoints. Every query is scoped to the signed-in client."""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.api.manifest import load_manifest
from sxmgmt.api.projects import project_to_response
from sxmgmt.api.tickets import append_message
from sxmgmt.core.deps import require_client
from sxmgmt.db.base import get_db
from sxmgmt.models.customer import Customer
from sxmgmt.models.project import Project
from sxmgmt.models.ticket import Ticket, TicketMessage, TicketStatus
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.common import Attachment
from sxmgmt.schemas.project import ProjectResponse
from sxmgmt.schemas.ticket import TicketCreate, TicketReply, TicketResponse
from sxmgmt.services.finance import client_balance, money
from sxmgmt.services.references import TICKET_PREFIX, unique_reference
from sxmgmt.services.uploads import store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["portal"])


class FinanceSummary(BaseModel):
    currency: str
    # Derived from the project ledgers
    total_payable: Decimal = Field(..., decimal_places=2)
    collected: Decimal = Field(..., decimal_places=2)
    outstanding: Decimal = Field(..., decimal_places=2)
    # Registry figures
    total_price: Decimal = Field(..., decimal_places=2)
    paid_amount: Decimal = Field(..., decimal_places=2)
    lifetime_value: Decimal = Field(..., decimal_places=2)


class PortalPayment(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)


async def get_client_or_404(db: AsyncSession, client_id: UUID) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == client_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )
    return customer


async def get_own_ticket_or_404(db: AsyncSession, ticket_id: UUID, client_id: UUID) -> Ticket:
    result = await db.execute(
        select(Ticket).where(Ticket.id == ticket_id, Ticket.client_id == client_id)
    )
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found",
        )
    return ticket


async def own_projects(db: AsyncSession, client_id: UUID) -> list[Project]:
    result = await db.execute(
        select(Project).where(Project.client_id == client_id).order_by(Project.created_at.desc())
    )
    return list(result.scalars().all())


def finance_summary(customer: Customer, projects: list[Project], currency: str) -> FinanceSummary:
    balance = client_balance(projects)
    return FinanceSummary(
        currency=currency,
        total_payable=balance.total_payable,
        collected=balance.collected,
        outstanding=balance.outstanding,
        total_price=money(customer.total_price),
        paid_amount=money(customer.paid_amount),
        lifetime_value=money(customer.lifetime_value),
    )


# ── Tickets ───────────────────────────────────────

@router.get("/tickets", response_model=list[TicketResponse])
async def list_own_tickets(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Ticket).where(Ticket.client_id == current_user.id).order_by(Ticket.updated_at.desc())
    )
    return [TicketResponse.model_validate(t) for t in result.scalars().all()]


@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def open_ticket(
    body: TicketCreate,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    """Open a support ticket. The description becomes the first message of the thread."""
    customer = await get_client_or_404(db, current_user.id)

    if body.project_id:
        project_result = await db.execute(
            select(Project.id).where(Project.id == body.project_id, Project.client_id == customer.id)
        )
        if project_result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Project not found",
            )

    reference = await unique_reference(db, Ticket.reference, TICKET_PREFIX)
    ticket = Ticket(
        reference=reference,
        subject=body.subject.strip(),
        description=body.description,
        status=TicketStatus.OPEN,
        priority=body.priority,
        category=body.category,
        client_id=customer.id,
        client_name=customer.name,
        client_company=customer.company,
        project_id=body.project_id,
        messages=[
            TicketMessage(
                sequence=1,
                sender_id=customer.id,
                sender_name=customer.name,
                text=body.description,
                is_admin=False,
                attachments=[a.model_dump(mode="json") for a in body.attachments],
            )
        ],
    )
    db.add(ticket)
    await db.commit()
    await db.refresh(ticket)

    logger.info("Ticket %s opened by client %s", ticket.reference, customer.email)
    return TicketResponse.model_validate(ticket)


@router.post("/tickets/{ticket_id}/reply", response_model=TicketResponse)
async def reply_to_own_ticket(
    ticket_id: UUID,
    body: TicketReply,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_own_ticket_or_404(db, ticket_id, current_user.id)
    append_message(ticket, current_user, body)

    await db.commit()
    await db.refresh(ticket)

    return TicketResponse.model_validate(ticket)


@router.post("/tickets/{ticket_id}/attachments", response_model=Attachment, status_code=status.HTTP_201_CREATED)
async def upload_own_ticket_attachment(
    ticket_id: UUID,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_own_ticket_or_404(db, ticket_id, current_user.id)
    return await store_upload(file, f"tickets/{ticket.id}")


# ── Projects & finance ────────────────────────────

@router.get("/projects", response_model=list[ProjectResponse])
async def list_own_projects(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    projects = await own_projects(db, current_user.id)
    return [project_to_response(p) for p in projects]


@router.get("/finance", response_model=FinanceSummary)
async def get_finance_summary(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    customer = await get_client_or_404(db, current_user.id)
    projects = await own_projects(db, customer.id)
    manifest = await load_manifest(db)
    return finance_summary(customer, projects, manifest.global_.currency)


@router.post("/payments", response_model=FinanceSummary)
async def make_payment(
    body: PortalPayment,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(get_db),
):
    """Record a payment made from the portal against the client's registry balance."""
    customer = await get_client_or_404(db, current_user.id)

    customer.paid_amount = money(customer.paid_amount) + body.amount
    customer.lifetime_value = money(customer.lifetime_value) + body.amount
    customer.last_contact = date.today()

    await db.commit()
    await db.refresh(customer)

    logger.info("Portal payment of %s received from %s", body.amount, customer.email)
    projects = await own_projects(db, customer.id)
    manifest = await load_manifest(db)
    return finance_summary(customer, projects, manifest.global_.currency)
