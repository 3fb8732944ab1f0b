"""SQLAlchemy models for SX MGMT."""

from sxmgmt.models.user import User, UserRole, AccountStatus
from sxmgmt.models.customer import Customer, CustomerStatus
from sxmgmt.models.service import Service
from sxmgmt.models.project import (
    Project,
    ProjectTask,
    ProjectPayment,
    ExpectedCollection,
    ProjectStatus,
    TaskStatus,
    PaymentType,
)
from sxmgmt.models.ticket import Ticket, TicketMessage, TicketStatus, TicketPriority
from sxmgmt.models.audit import AuditLog
from sxmgmt.models.manifest import SystemManifest

__all__ = [
    "User",
    "UserRole",
    "AccountStatus",
    "Customer",
    "CustomerStatus",
    "Service",
    "Project",
    "ProjectTask",
    "ProjectPayment",
    "ExpectedCollection",
    "ProjectStatus",
    "TaskStatus",
    "PaymentType",
    "Ticket",
    "TicketMessage",
    "TicketStatus",
    "TicketPriority",
    "AuditLog",
    "SystemManifest",
]
