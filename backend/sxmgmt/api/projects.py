"""Project pipeline endpoints: projects, tasks, payment ledger, collections, attachments, statements."""

import logging
from dataclasses import asdict
from datetime import date, datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.api.manifest import load_manifest
from sxmgmt.core.config import settings
from sxmgmt.core.deps import require_permission
from sxmgmt.core.permissions import allowed_project_ids, can_access_project
from sxmgmt.db.base import get_db
from sxmgmt.models.customer import Customer
from sxmgmt.models.project import (
    DEFAULT_PAYMENT_RATES,
    ExpectedCollection,
    Project,
    ProjectPayment,
    ProjectStatus,
    ProjectTask,
)
from sxmgmt.models.service import Service
from sxmgmt.models.user import User, UserRole
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.project import (
    ExpectedCollectionCreate,
    ExpectedCollectionResponse,
    FinancialsResponse,
    PaymentCreate,
    PaymentResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from sxmgmt.services.audit import record_action
from sxmgmt.services.finance import project_financials
from sxmgmt.services.references import PROJECT_PREFIX, unique_reference
from sxmgmt.services.statement import (
    StatementData,
    StatementLine,
    StatementPayment,
    format_statement_text,
    generate_statement_lines,
)
from sxmgmt.services.uploads import store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def financials_response(project: Project) -> FinancialsResponse:
    figures = project_financials(project)
    return FinancialsResponse(**asdict(figures), is_cleared=figures.is_cleared)


def project_to_response(project: Project) -> ProjectResponse:
    """Serialise a project with its children and derived figures."""
    return ProjectResponse(
        id=project.id,
        reference=project.reference,
        name=project.name,
        description=project.description,
        client_id=project.client_id,
        admin_id=project.admin_id,
        staff_ids=[u.id for u in project.staff],
        service_ids=[s.id for s in project.services],
        value=project.value,
        costs=project.costs,
        tax_rate=project.tax_rate,
        payment_rates=project.payment_rates or dict(DEFAULT_PAYMENT_RATES),
        award_ref=project.award_ref,
        invoice_ref=project.invoice_ref,
        guarantees=project.guarantees,
        financial_notes=project.financial_notes,
        status=project.status,
        start_date=project.start_date,
        end_date=project.end_date,
        attachments=project.attachments or [],
        tasks=[TaskResponse.model_validate(t) for t in project.tasks],
        payments=[PaymentResponse.model_validate(p) for p in project.payments],
        expected_collections=[ExpectedCollectionResponse.model_validate(c) for c in project.expected_collections],
        financials=financials_response(project),
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


async def project_access_of(db: AsyncSession, current_user: CurrentUser):
    """"ALL" or the list of project ids a staff member may see."""
    if current_user.role == UserRole.ADMIN.value:
        return "ALL"
    result = await db.execute(select(User.project_access).where(User.id == current_user.id))
    access = result.scalar_one_or_none()
    return "ALL" if access is None else access


def scope_to_access(query, access):
    """Restrict a project query to what a project access value allows."""
    if access == "ALL":
        return query
    return query.where(Project.id.in_(allowed_project_ids(access)))


async def get_project_or_404(db: AsyncSession, project_id: UUID, current_user: CurrentUser) -> Project:
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    access = await project_access_of(db, current_user)
    if not can_access_project(access, str(project.id)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No access to this project",
        )
    return project


async def _load_by_ids(db: AsyncSession, model, ids: list[UUID], label: str) -> list:
    if not ids:
        return []
    result = await db.execute(select(model).where(model.id.in_(ids)))
    found = result.scalars().all()
    if len(found) != len(set(ids)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )
    return list(found)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    client_id: UUID | None = None,
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    """Projects visible to the caller, newest first."""
    query = select(Project)

    if client_id:
        query = query.where(Project.client_id == client_id)
    if status_filter:
        query = query.where(Project.status == status_filter)

    query = scope_to_access(query, await project_access_of(db, current_user))

    result = await db.execute(query.order_by(Project.created_at.desc()))
    items = result.scalars().all()

    return ProjectListResponse(
        items=[project_to_response(p) for p in items],
        total=len(items),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_or_404(db, project_id, current_user)
    return project_to_response(project)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_CREATE:create")),
    db: AsyncSession = Depends(get_db),
):
    """Open a project for an existing client."""
    client_result = await db.execute(select(Customer).where(Customer.id == body.client_id))
    if not client_result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )

    staff = await _load_by_ids(db, User, body.staff_ids, "Staff member")
    services = await _load_by_ids(db, Service, body.service_ids, "Service")
    reference = await unique_reference(db, Project.reference, PROJECT_PREFIX)

    project = Project(
        reference=reference,
        name=body.name,
        description=body.description,
        client_id=body.client_id,
        admin_id=body.admin_id or current_user.id,
        value=body.value,
        costs=body.costs,
        tax_rate=settings.VAT_RATE if body.tax_rate is None else body.tax_rate,
        payment_rates=dict(DEFAULT_PAYMENT_RATES),
        award_ref=body.award_ref,
        invoice_ref=body.invoice_ref,
        status=body.status,
        start_date=body.start_date,
        end_date=body.end_date,
        attachments=[],
        staff=staff,
        services=services,
        tasks=[ProjectTask(title=t.title, status=t.status, due_date=t.due_date) for t in body.tasks],
        payments=[],
        expected_collections=[],
    )
    db.add(project)
    await db.flush()

    await record_action(db, current_user, "project.create", "Project", project.id, after=project)
    await db.commit()
    await db.refresh(project)

    logger.info("Project %s opened for client %s by %s", project.reference, body.client_id, current_user.email)
    return project_to_response(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Update general, commercial and schedule fields."""
    project = await get_project_or_404(db, project_id, current_user)

    data = body.model_dump(exclude_unset=True)
    if "staff_ids" in data:
        project.staff = await _load_by_ids(db, User, data.pop("staff_ids") or [], "Staff member")
    if "service_ids" in data:
        project.services = await _load_by_ids(db, Service, data.pop("service_ids") or [], "Service")
    if "payment_rates" in data:
        rates = data.pop("payment_rates")
        project.payment_rates = (
            {k: float(v) for k, v in rates.items()} if rates else dict(DEFAULT_PAYMENT_RATES)
        )
    if data.get("tax_rate", 0) is None:
        data["tax_rate"] = settings.VAT_RATE

    for field, value in data.items():
        setattr(project, field, value)

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


# ── Tasks ─────────────────────────────────────────

def _find_task(project: Project, task_id: UUID) -> ProjectTask:
    for task in project.tasks:
        if task.id == task_id:
            return task
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.post("/{project_id}/tasks", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def add_task(
    project_id: UUID,
    body: TaskCreate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_or_404(db, project_id, current_user)
    project.tasks.append(ProjectTask(title=body.title, status=body.status, due_date=body.due_date))

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


@router.patch("/{project_id}/tasks/{task_id}", response_model=ProjectResponse)
async def update_task(
    project_id: UUID,
    task_id: UUID,
    body: TaskUpdate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_or_404(db, project_id, current_user)
    task = _find_task(project, task_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(task, field, value)

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


@router.delete("/{project_id}/tasks/{task_id}", response_model=ProjectResponse)
async def remove_task(
    project_id: UUID,
    task_id: UUID,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_or_404(db, project_id, current_user)
    project.tasks.remove(_find_task(project, task_id))

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


# ── Payment ledger ────────────────────────────────

@router.post("/{project_id}/payments", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    project_id: UUID,
    body: PaymentCreate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Append a collected payment to the project ledger."""
    project = await get_project_or_404(db, project_id, current_user)

    project.payments.append(
        ProjectPayment(
            amount=body.amount,
            paid_on=body.paid_on or date.today(),
            note=body.note or "Progress collection",
            payment_type=body.payment_type,
            invoice_ref=body.invoice_ref,
            recorded_by_id=current_user.id,
        )
    )

    await db.commit()
    await db.refresh(project)

    logger.info("Payment of %s recorded on %s by %s", body.amount, project.reference, current_user.email)
    return project_to_response(project)


@router.post("/{project_id}/collections", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def add_expected_collection(
    project_id: UUID,
    body: ExpectedCollectionCreate,
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Schedule an expected collection."""
    project = await get_project_or_404(db, project_id, current_user)
    project.expected_collections.append(
        ExpectedCollection(amount=body.amount, expected_date=body.expected_date, note=body.note)
    )

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


# ── Attachments ───────────────────────────────────

@router.post("/{project_id}/attachments", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def upload_project_attachment(
    project_id: UUID,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_permission("PROJECT_PIPELINE:edit")),
    db: AsyncSession = Depends(get_db),
):
    """Attach a document to the project."""
    project = await get_project_or_404(db, project_id, current_user)
    attachment = await store_upload(file, f"projects/{project.id}")

    # Reassign so the JSONB column is flagged dirty
    project.attachments = [*(project.attachments or []), attachment.model_dump(mode="json")]

    await db.commit()
    await db.refresh(project)

    return project_to_response(project)


# ── Statement ─────────────────────────────────────

@router.get("/{project_id}/statement/data", response_model=StatementData)
async def get_statement_data(
    project_id: UUID,
    current_user: CurrentUser = Depends(require_permission("FINANCIAL_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    """Account statement figures for a project."""
    project = await get_project_or_404(db, project_id, current_user)
    manifest = await load_manifest(db)
    figures = project_financials(project)
    client_result = await db.execute(select(Customer).where(Customer.id == project.client_id))
    client = client_result.scalar_one_or_none()

    return StatementData(
        company_name=manifest.global_.site_title,
        currency=manifest.global_.currency,
        project_reference=project.reference,
        project_name=project.name,
        issued_at=datetime.now(timezone.utc),
        award_ref=project.award_ref,
        invoice_ref=project.invoice_ref,
        client_name=client.name if client else "Unknown Client",
        client_company=client.company if client else None,
        contract_value=figures.value,
        tax_rate=figures.tax_rate,
        vat=figures.vat,
        total_payable=figures.total_payable,
        payments=[
            StatementPayment(
                paid_on=p.paid_on,
                amount=p.amount,
                note=p.note,
                invoice_ref=p.invoice_ref,
            )
            for p in project.payments
        ],
        collected=figures.collected,
        outstanding=figures.outstanding,
    )


@router.get("/{project_id}/statement/preview", response_model=list[StatementLine])
async def get_statement_preview(
    project_id: UUID,
    current_user: CurrentUser = Depends(require_permission("FINANCIAL_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    data = await get_statement_data(project_id, current_user, db)
    return generate_statement_lines(data)


@router.get("/{project_id}/statement/text", response_class=Response)
async def get_statement_text(
    project_id: UUID,
    current_user: CurrentUser = Depends(require_permission("FINANCIAL_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    data = await get_statement_data(project_id, current_user, db)
    return Response(content=format_statement_text(data), media_type="text/plain; charset=utf-8")
