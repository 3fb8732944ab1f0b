"""Project financials: VAT, collections, outstanding balances, margins.

Every figure is derived on demand from a project's contract value, its own
tax rate and its payment ledger. Nothing here is cached or persisted.

Percentages are guarded: a zero denominator yields 0, never NaN/Infinity.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from sxmgmt.core.config import settings
from sxmgmt.models.project import ProjectStatus
from sxmgmt.models.ticket import TicketStatus

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

CLOSED_TICKET_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


def _d(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    return _d(value).quantize(CENT)


def percent(part, whole) -> Decimal:
    """part / whole * 100 rounded to 0.1, or 0 when whole is 0."""
    whole = _d(whole)
    if whole == 0:
        return Decimal("0.0")
    return (_d(part) / whole * HUNDRED).quantize(Decimal("0.1"))


def tax_rate_of(project) -> Decimal:
    rate = getattr(project, "tax_rate", None)
    return settings.VAT_RATE if rate is None else _d(rate)


# ── Per-project figures ───────────────────────────

def collected(payments: Iterable) -> Decimal:
    return sum((_d(p.amount) for p in payments or []), ZERO)


def vat_amount(project) -> Decimal:
    return _d(project.value) * tax_rate_of(project)


def total_payable(project) -> Decimal:
    return _d(project.value) + vat_amount(project)


def outstanding(project) -> Decimal:
    """Payable balance. Negative when the client has over-paid."""
    return total_payable(project) - collected(project.payments)


@dataclass
class ProjectFinancials:
    value: Decimal
    tax_rate: Decimal
    vat: Decimal
    total_payable: Decimal
    collected: Decimal
    outstanding: Decimal
    costs: Decimal
    profit: Decimal
    margin_percent: Decimal
    collection_percent: Decimal

    @property
    def is_cleared(self) -> bool:
        return self.outstanding <= 0


def project_financials(project) -> ProjectFinancials:
    value = _d(project.value)
    costs = _d(getattr(project, "costs", None))
    vat = vat_amount(project)
    payable = value + vat
    paid = collected(project.payments)
    profit = value - costs
    return ProjectFinancials(
        value=money(value),
        tax_rate=tax_rate_of(project),
        vat=money(vat),
        total_payable=money(payable),
        collected=money(paid),
        outstanding=money(payable - paid),
        costs=money(costs),
        profit=money(profit),
        margin_percent=percent(profit, value),
        collection_percent=percent(paid, payable),
    )


# ── Portfolio figures ─────────────────────────────

@dataclass
class PipelineTotals:
    deal_value: Decimal = ZERO
    vat_liability: Decimal = ZERO
    collected: Decimal = ZERO
    outstanding: Decimal = ZERO

    @property
    def total_receivables(self) -> Decimal:
        return self.deal_value + self.vat_liability

    @property
    def collection_percent(self) -> Decimal:
        return percent(self.collected, self.total_receivables)


def pipeline_totals(projects: Iterable) -> PipelineTotals:
    totals = PipelineTotals()
    for project in projects:
        vat = vat_amount(project)
        paid = collected(project.payments)
        totals.deal_value += _d(project.value)
        totals.vat_liability += vat
        totals.collected += paid
        totals.outstanding += _d(project.value) + vat - paid
    totals.deal_value = money(totals.deal_value)
    totals.vat_liability = money(totals.vat_liability)
    totals.collected = money(totals.collected)
    totals.outstanding = money(totals.outstanding)
    return totals


@dataclass
class ClientBalance:
    total_payable: Decimal
    collected: Decimal
    outstanding: Decimal


def client_balance(projects: Iterable) -> ClientBalance:
    """Balance across one client's projects, from the project ledgers."""
    totals = pipeline_totals(projects)
    return ClientBalance(
        total_payable=money(totals.total_receivables),
        collected=totals.collected,
        outstanding=totals.outstanding,
    )


@dataclass
class DashboardStats:
    pipeline_value: Decimal
    vat: Decimal
    total_revenue: Decimal
    collected: Decimal
    realized_percent: Decimal
    open_tickets: int
    active_projects: int


def dashboard_stats(projects: list, tickets: list) -> DashboardStats:
    totals = pipeline_totals(projects)
    return DashboardStats(
        pipeline_value=totals.deal_value,
        vat=totals.vat_liability,
        total_revenue=money(totals.total_receivables),
        collected=totals.collected,
        realized_percent=totals.collection_percent,
        open_tickets=sum(1 for t in tickets if t.status not in CLOSED_TICKET_STATUSES),
        active_projects=sum(1 for p in projects if p.status == ProjectStatus.ACTIVE),
    )


# ── Chart series ──────────────────────────────────

def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def monthly_trend(projects: Iterable, year: int, upto_month: int = 12) -> list[tuple[str, Decimal]]:
    """Contract value booked per month of ``year``, January through ``upto_month``.

    Months without projects report 0.
    """
    buckets = [ZERO] * 12
    for project in projects:
        created = _as_date(project.created_at)
        if created is not None and created.year == year:
            buckets[created.month - 1] += _d(project.value)
    return [(MONTH_NAMES[i], money(buckets[i])) for i in range(max(0, min(upto_month, 12)))]


def ticket_load(tickets: Iterable) -> dict[str, int]:
    """Support load buckets; empty buckets are omitted."""
    counts = Counter(t.status for t in tickets)
    load = {
        "Open": counts[TicketStatus.OPEN],
        "Pending": counts[TicketStatus.PENDING],
        "Active": counts[TicketStatus.IN_PROGRESS],
        "Closed": counts[TicketStatus.CLOSED] + counts[TicketStatus.RESOLVED],
    }
    return {name: n for name, n in load.items() if n > 0}


def project_health(projects: Iterable) -> dict[str, int]:
    counts = Counter(p.status for p in projects)
    return {
        "Planning": counts[ProjectStatus.PLANNING],
        "Active": counts[ProjectStatus.ACTIVE],
        "On Hold": counts[ProjectStatus.ON_HOLD],
        "Done": counts[ProjectStatus.COMPLETED],
    }


# ── Fiscal periods ────────────────────────────────

def fiscal_period(day: date, start_month: int | None = None) -> tuple[int, int]:
    """Return (fiscal_year, quarter) for ``day``.

    The fiscal year starts on the first of ``start_month`` and is named after
    the calendar year in which it ends. With start_month=1 this is the
    calendar year.
    """
    start_month = start_month or settings.FISCAL_YEAR_START_MONTH
    if not 1 <= start_month <= 12:
        raise ValueError(f"start_month must be 1..12, got {start_month}")
    offset = (day.month - start_month) % 12
    quarter = offset // 3 + 1
    fiscal_year = day.year if (start_month == 1 or day.month < start_month) else day.year + 1
    return fiscal_year, quarter


@dataclass
class QuarterBuckets:
    fiscal_year: int
    quarters: dict[int, Decimal] = field(default_factory=lambda: {q: ZERO for q in (1, 2, 3, 4)})

    @property
    def total(self) -> Decimal:
        return money(sum(self.quarters.values(), ZERO))


def collections_by_quarter(projects: Iterable, fiscal_year: int, start_month: int | None = None) -> QuarterBuckets:
    """Collected payments per quarter of ``fiscal_year``."""
    buckets = QuarterBuckets(fiscal_year=fiscal_year)
    for project in projects:
        for payment in project.payments or []:
            year, quarter = fiscal_period(_as_date(payment.paid_on), start_month)
            if year == fiscal_year:
                buckets.quarters[quarter] += _d(payment.amount)
    buckets.quarters = {q: money(v) for q, v in buckets.quarters.items()}
    return buckets
