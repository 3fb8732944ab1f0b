"""Support ticket schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sxmgmt.models.ticket import TicketPriority, TicketStatus
from sxmgmt.schemas.common import Attachment


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sequence: int
    sender_id: UUID | None
    sender_name: str
    text: str
    is_admin: bool
    attachments: list[Attachment]
    created_at: datetime


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: str = Field(default="Technical", max_length=100)
    priority: TicketPriority = TicketPriority.MEDIUM
    project_id: UUID | None = None
    attachments: list[Attachment] = Field(default_factory=list)


class TicketReply(BaseModel):
    text: str = ""
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def not_empty(self) -> "TicketReply":
        if not self.text.strip() and not self.attachments:
            raise ValueError("A reply needs text or at least one attachment")
        return self


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    client_id: UUID
    client_name: str
    client_company: str | None
    project_id: UUID | None
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category: str
    messages: list[MessageResponse]
    created_at: datetime
    updated_at: datetime


class TicketListResponse(BaseModel):
    items: list[TicketResponse]
    total: int
    page: int
    size: int
