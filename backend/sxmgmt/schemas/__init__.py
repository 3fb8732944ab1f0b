from sxmgmt.schemas.customer import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerListResponse,
)
from sxmgmt.schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectListResponse,
    TaskCreate, TaskUpdate, PaymentCreate, ExpectedCollectionCreate,
)
from sxmgmt.schemas.ticket import (
    TicketCreate, TicketReply, TicketStatusUpdate, TicketResponse, TicketListResponse,
)
from sxmgmt.schemas.service import ServiceCreate, ServiceUpdate, ServiceResponse
from sxmgmt.schemas.staff import StaffCreate, StaffUpdate, StaffResponse
from sxmgmt.schemas.manifest import ManifestDocument, PublicManifest

__all__ = [
    "CustomerCreate", "CustomerUpdate", "CustomerResponse", "CustomerListResponse",
    "ProjectCreate", "ProjectUpdate", "ProjectResponse", "ProjectListResponse",
    "TaskCreate", "TaskUpdate", "PaymentCreate", "ExpectedCollectionCreate",
    "TicketCreate", "TicketReply", "TicketStatusUpdate", "TicketResponse", "TicketListResponse",
    "ServiceCreate", "ServiceUpdate", "ServiceResponse",
    "StaffCreate", "StaffUpdate", "StaffResponse",
    "ManifestDocument", "PublicManifest",
]
