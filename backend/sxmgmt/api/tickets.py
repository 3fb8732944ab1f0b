"""Support desk endpoints: ticket queue, threaded replies, status changes, attachments."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_permission
from sxmgmt.db.base import get_db
from sxmgmt.models.ticket import Ticket, TicketMessage, TicketPriority, TicketStatus
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.common import Attachment
from sxmgmt.schemas.ticket import (
    TicketReply,
    TicketStatusUpdate,
    TicketResponse,
    TicketListResponse,
)
from sxmgmt.services.uploads import store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])


def append_message(ticket: Ticket, sender: CurrentUser, body: TicketReply) -> TicketMessage:
    """Add a reply at the end of the thread and bump the ticket's update time."""
    sequence = max((m.sequence for m in ticket.messages), default=0) + 1
    message = TicketMessage(
        sequence=sequence,
        sender_id=sender.id,
        sender_name=sender.name,
        text=body.text.strip(),
        is_admin=not sender.is_client,
        attachments=[a.model_dump(mode="json") for a in body.attachments],
    )
    ticket.messages.append(message)
    ticket.updated_at = datetime.now(timezone.utc)
    return message


async def get_ticket_or_404(db: AsyncSession, ticket_id: UUID) -> Ticket:
    result = await db.execute(select(Ticket).where(Ticket.id == ticket_id))
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found",
        )
    return ticket


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    search: str | None = None,
    status_filter: TicketStatus | None = Query(None, alias="status"),
    priority: TicketPriority | None = None,
    current_user: CurrentUser = Depends(require_permission("TICKETS:view")),
    db: AsyncSession = Depends(get_db),
):
    """Support queue with search over reference, subject and client, plus status/priority filters."""
    offset = (page - 1) * size

    query = select(Ticket)

    if search:
        query = query.where(
            or_(
                Ticket.reference.ilike(f"%{search}%"),
                Ticket.subject.ilike(f"%{search}%"),
                Ticket.client_name.ilike(f"%{search}%"),
                Ticket.client_company.ilike(f"%{search}%"),
            )
        )
    if status_filter:
        query = query.where(Ticket.status == status_filter)
    if priority:
        query = query.where(Ticket.priority == priority)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Ticket.updated_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return TicketListResponse(
        items=[TicketResponse.model_validate(t) for t in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: UUID,
    current_user: CurrentUser = Depends(require_permission("TICKETS:view")),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_ticket_or_404(db, ticket_id)
    return TicketResponse.model_validate(ticket)


@router.post("/{ticket_id}/reply", response_model=TicketResponse)
async def reply_to_ticket(
    ticket_id: UUID,
    body: TicketReply,
    current_user: CurrentUser = Depends(require_permission("TICKETS:view")),
    db: AsyncSession = Depends(get_db),
):
    """Post a staff reply to the thread."""
    ticket = await get_ticket_or_404(db, ticket_id)
    append_message(ticket, current_user, body)

    await db.commit()
    await db.refresh(ticket)

    return TicketResponse.model_validate(ticket)


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(
    ticket_id: UUID,
    body: TicketStatusUpdate,
    current_user: CurrentUser = Depends(require_permission("TICKETS:edit")),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_ticket_or_404(db, ticket_id)
    previous = ticket.status
    ticket.status = body.status
    ticket.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(ticket)

    logger.info("Ticket %s moved %s -> %s by %s", ticket.reference, previous, body.status.value, current_user.email)
    return TicketResponse.model_validate(ticket)


@router.post("/{ticket_id}/attachments", response_model=Attachment, status_code=status.HTTP_201_CREATED)
async def upload_ticket_attachment(
    ticket_id: UUID,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_permission("TICKETS:view")),
    db: AsyncSession = Depends(get_db),
):
    """Store a file to be sent with the next reply."""
    ticket = await get_ticket_or_404(db, ticket_id)
    return await store_upload(file, f"tickets/{ticket.id}")
