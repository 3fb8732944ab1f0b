"""Dashboard and financial pipeline reporting."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.api.manifest import load_manifest
from sxmgmt.api.projects import project_access_of, scope_to_access
from sxmgmt.core.config import settings
from sxmgmt.core.deps import require_permission
from sxmgmt.db.base import get_db
from sxmgmt.models.audit import AuditLog
from sxmgmt.models.customer import Customer
from sxmgmt.models.project import Project, ProjectStatus
from sxmgmt.models.ticket import Ticket
from sxmgmt.schemas.audit import AuditLogResponse
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.services.finance import (
    collections_by_quarter,
    dashboard_stats,
    fiscal_period,
    monthly_trend,
    pipeline_totals,
    project_financials,
    project_health,
    ticket_load,
)

router = APIRouter(prefix="/reports", tags=["reports"])

RECENT_ACTIVITY_LIMIT = 5


# Response schemas
class TrendPoint(BaseModel):
    month: str
    value: Decimal = Field(..., decimal_places=2)


class DashboardReport(BaseModel):
    currency: str
    pipeline_value: Decimal = Field(..., decimal_places=2)
    vat: Decimal = Field(..., decimal_places=2)
    total_revenue: Decimal = Field(..., decimal_places=2)
    collected: Decimal = Field(..., decimal_places=2)
    realized_percent: Decimal
    open_tickets: int
    active_projects: int
    year: int
    trend: list[TrendPoint]
    ticket_load: dict[str, int]
    project_health: dict[str, int]
    recent_activity: list[AuditLogResponse]


class FinancialRow(BaseModel):
    project_id: str
    reference: str
    name: str
    client: str
    status: ProjectStatus
    value: Decimal = Field(..., decimal_places=2)
    tax_rate: Decimal
    vat: Decimal = Field(..., decimal_places=2)
    total_payable: Decimal = Field(..., decimal_places=2)
    collected: Decimal = Field(..., decimal_places=2)
    outstanding: Decimal = Field(..., decimal_places=2)
    collection_percent: Decimal
    is_cleared: bool


class FinancialReport(BaseModel):
    currency: str
    deal_value: Decimal = Field(..., decimal_places=2)
    vat_liability: Decimal = Field(..., decimal_places=2)
    total_receivables: Decimal = Field(..., decimal_places=2)
    collected: Decimal = Field(..., decimal_places=2)
    outstanding: Decimal = Field(..., decimal_places=2)
    collection_percent: Decimal
    items: list[FinancialRow]


class QuarterAmount(BaseModel):
    quarter: int
    amount: Decimal = Field(..., decimal_places=2)


class CollectionsReport(BaseModel):
    fiscal_year: int
    start_month: int
    quarters: list[QuarterAmount]
    total: Decimal = Field(..., decimal_places=2)


async def _visible_projects(db: AsyncSession, current_user: CurrentUser) -> list[Project]:
    """Projects the caller may see under their project access."""
    query = scope_to_access(select(Project), await project_access_of(db, current_user))
    result = await db.execute(query.order_by(Project.created_at.desc()))
    return list(result.scalars().all())


@router.get("/dashboard", response_model=DashboardReport)
async def dashboard_report(
    current_user: CurrentUser = Depends(require_permission("DASHBOARD:view")),
    db: AsyncSession = Depends(get_db),
):
    """Headline figures, this year's booking trend, support load and recent activity."""
    projects = await _visible_projects(db, current_user)
    tickets_result = await db.execute(select(Ticket))
    tickets = list(tickets_result.scalars().all())

    recent = []
    if "AUDIT_LOG:view" in current_user.permissions:
        audit_result = await db.execute(
            select(AuditLog).order_by(AuditLog.action_datetime.desc()).limit(RECENT_ACTIVITY_LIMIT)
        )
        recent = [AuditLogResponse.model_validate(e) for e in audit_result.scalars().all()]
    manifest = await load_manifest(db)

    today = date.today()
    stats = dashboard_stats(projects, tickets)

    return DashboardReport(
        currency=manifest.global_.currency,
        pipeline_value=stats.pipeline_value,
        vat=stats.vat,
        total_revenue=stats.total_revenue,
        collected=stats.collected,
        realized_percent=stats.realized_percent,
        open_tickets=stats.open_tickets,
        active_projects=stats.active_projects,
        year=today.year,
        trend=[TrendPoint(month=m, value=v) for m, v in monthly_trend(projects, today.year, today.month)],
        ticket_load=ticket_load(tickets),
        project_health=project_health(projects),
        recent_activity=recent,
    )


@router.get("/financials", response_model=FinancialReport)
async def financial_report(
    current_user: CurrentUser = Depends(require_permission("FINANCIAL_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    """Pipeline totals and per-project receivables."""
    projects = await _visible_projects(db, current_user)
    clients_result = await db.execute(select(Customer.id, Customer.company))
    companies = {row.id: row.company for row in clients_result.all()}
    manifest = await load_manifest(db)

    rows = []
    for project in projects:
        figures = project_financials(project)
        rows.append(
            FinancialRow(
                project_id=str(project.id),
                reference=project.reference,
                name=project.name,
                client=companies.get(project.client_id) or "Unknown Client",
                status=project.status,
                value=figures.value,
                tax_rate=figures.tax_rate,
                vat=figures.vat,
                total_payable=figures.total_payable,
                collected=figures.collected,
                outstanding=figures.outstanding,
                collection_percent=figures.collection_percent,
                is_cleared=figures.is_cleared,
            )
        )

    totals = pipeline_totals(projects)
    return FinancialReport(
        currency=manifest.global_.currency,
        deal_value=totals.deal_value,
        vat_liability=totals.vat_liability,
        total_receivables=totals.total_receivables,
        collected=totals.collected,
        outstanding=totals.outstanding,
        collection_percent=totals.collection_percent,
        items=rows,
    )


@router.get("/collections", response_model=CollectionsReport)
async def collections_report(
    fiscal_year: int | None = Query(None, ge=2000, le=2100),
    start_month: int | None = Query(None, ge=1, le=12, description="Defaults to FISCAL_YEAR_START_MONTH"),
    current_user: CurrentUser = Depends(require_permission("FINANCIAL_PIPELINE:view")),
    db: AsyncSession = Depends(get_db),
):
    """Collected payments per quarter of a fiscal year (the current one by default)."""
    start_month = start_month or settings.FISCAL_YEAR_START_MONTH
    if fiscal_year is None:
        fiscal_year, _ = fiscal_period(date.today(), start_month)

    projects = await _visible_projects(db, current_user)
    buckets = collections_by_quarter(projects, fiscal_year, start_month)

    return CollectionsReport(
        fiscal_year=fiscal_year,
        start_month=start_month,
        quarters=[QuarterAmount(quarter=q, amount=a) for q, a in sorted(buckets.quarters.items())],
        total=buckets.total,
    )
