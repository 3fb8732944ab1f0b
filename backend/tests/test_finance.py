"""Unit tests for project financial computations."""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from sxmgmt.models.project import ProjectStatus
from sxmgmt.models.ticket import TicketStatus
from sxmgmt.services.finance import (
    client_balance,
    collected,
    collections_by_quarter,
    dashboard_stats,
    fiscal_period,
    monthly_trend,
    outstanding,
    percent,
    pipeline_totals,
    project_financials,
    project_health,
    ticket_load,
    total_payable,
    vat_amount,
)


def _payment(amount, paid_on=date(2026, 3, 1)):
    return SimpleNamespace(amount=Decimal(amount), paid_on=paid_on)


def _project(value="10000.00", costs="0.00", tax_rate="0.15", payments=(), status=ProjectStatus.ACTIVE,
             created_at=datetime(2026, 1, 15, 9, 0)):
    return SimpleNamespace(
        value=Decimal(value),
        costs=Decimal(costs),
        tax_rate=None if tax_rate is None else Decimal(tax_rate),
        payments=list(payments),
        status=status,
        created_at=created_at,
    )


# ── Per-project figures ───────────────────────────

def test_vat_and_total_payable():
    project = _project("10000.00")
    assert vat_amount(project) == Decimal("1500.00")
    assert total_payable(project) == Decimal("11500.00")


def test_vat_uses_project_rate():
    project = _project("10000.00", tax_rate="0.05")
    assert vat_amount(project) == Decimal("500.00")


def test_missing_rate_falls_back_to_configured_vat():
    project = _project("200.00", tax_rate=None)
    assert vat_amount(project) == Decimal("30.00")


def test_collected_and_outstanding():
    project = _project("10000.00", payments=[_payment("2875.00"), _payment("2875.00")])
    assert collected(project.payments) == Decimal("5750.00")
    assert outstanding(project) == Decimal("5750.00")


def test_overpayment_goes_negative_and_clears():
    project = _project("1000.00", payments=[_payment("1200.00")])
    figures = project_financials(project)
    assert figures.outstanding == Decimal("-50.00")
    assert figures.is_cleared


def test_project_financials_bundle():
    project = _project("10000.00", costs="6000.00", payments=[_payment("5750.00")])
    figures = project_financials(project)
    assert figures.vat == Decimal("1500.00")
    assert figures.total_payable == Decimal("11500.00")
    assert figures.profit == Decimal("4000.00")
    assert figures.margin_percent == Decimal("40.0")
    assert figures.collection_percent == Decimal("50.0")
    assert not figures.is_cleared


def test_zero_value_project_has_guarded_percentages():
    figures = project_financials(_project("0.00", costs="250.00"))
    assert figures.margin_percent == Decimal("0.0")
    assert figures.collection_percent == Decimal("0.0")
    assert figures.profit == Decimal("-250.00")
    assert figures.is_cleared


def test_percent_guard():
    assert percent(5, 0) == Decimal("0.0")
    assert percent(1, 3) == Decimal("33.3")


# ── Portfolio figures ─────────────────────────────

def test_pipeline_totals():
    projects = [
        _project("10000.00", payments=[_payment("11500.00")]),
        _project("5000.00", tax_rate="0.00", payments=[_payment("1000.00")]),
    ]
    totals = pipeline_totals(projects)
    assert totals.deal_value == Decimal("15000.00")
    assert totals.vat_liability == Decimal("1500.00")
    assert totals.total_receivables == Decimal("16500.00")
    assert totals.collected == Decimal("12500.00")
    assert totals.outstanding == Decimal("4000.00")
    assert totals.collection_percent == Decimal("75.8")


def test_empty_pipeline():
    totals = pipeline_totals([])
    assert totals.total_receivables == Decimal("0.00")
    assert totals.collection_percent == Decimal("0.0")


def test_client_balance_from_ledgers():
    balance = client_balance([_project("2000.00", payments=[_payment("300.00")])])
    assert balance.total_payable == Decimal("2300.00")
    assert balance.collected == Decimal("300.00")
    assert balance.outstanding == Decimal("2000.00")


def test_dashboard_stats():
    projects = [
        _project("10000.00", payments=[_payment("5750.00")]),
        _project("4000.00", status=ProjectStatus.PLANNING),
    ]
    tickets = [
        SimpleNamespace(status=TicketStatus.OPEN),
        SimpleNamespace(status=TicketStatus.IN_PROGRESS),
        SimpleNamespace(status=TicketStatus.RESOLVED),
        SimpleNamespace(status=TicketStatus.CLOSED),
    ]
    stats = dashboard_stats(projects, tickets)
    assert stats.pipeline_value == Decimal("14000.00")
    assert stats.vat == Decimal("2100.00")
    assert stats.total_revenue == Decimal("16100.00")
    assert stats.collected == Decimal("5750.00")
    assert stats.realized_percent == Decimal("35.7")
    assert stats.open_tickets == 2
    assert stats.active_projects == 1


# ── Chart series ──────────────────────────────────

def test_monthly_trend_has_no_filler():
    projects = [
        _project("1000.00", created_at=datetime(2026, 1, 3)),
        _project("500.00", created_at=datetime(2026, 1, 20)),
        _project("750.00", created_at=datetime(2026, 3, 9)),
        _project("9999.00", created_at=datetime(2025, 3, 9)),
    ]
    trend = monthly_trend(projects, 2026, upto_month=4)
    assert trend == [
        ("Jan", Decimal("1500.00")),
        ("Feb", Decimal("0.00")),
        ("Mar", Decimal("750.00")),
        ("Apr", Decimal("0.00")),
    ]


def test_ticket_load_omits_empty_buckets():
    tickets = [
        SimpleNamespace(status=TicketStatus.OPEN),
        SimpleNamespace(status=TicketStatus.OPEN),
        SimpleNamespace(status=TicketStatus.RESOLVED),
        SimpleNamespace(status=TicketStatus.CLOSED),
    ]
    assert ticket_load(tickets) == {"Open": 2, "Closed": 2}


def test_project_health_counts():
    projects = [
        _project(status=ProjectStatus.ACTIVE),
        _project(status=ProjectStatus.ACTIVE),
        _project(status=ProjectStatus.ON_HOLD),
    ]
    assert project_health(projects) == {"Planning": 0, "Active": 2, "On Hold": 1, "Done": 0}


# ── Fiscal periods ────────────────────────────────

@pytest.mark.parametrize(
    "day,start_month,expected",
    [
        (date(2026, 1, 1), 1, (2026, 1)),
        (date(2026, 12, 31), 1, (2026, 4)),
        (date(2026, 6, 30), 7, (2026, 4)),
        (date(2026, 7, 1), 7, (2027, 1)),
        (date(2027, 3, 15), 4, (2027, 4)),
        (date(2026, 4, 1), 4, (2027, 1)),
    ],
)
def test_fiscal_period(day, start_month, expected):
    assert fiscal_period(day, start_month) == expected


def test_fiscal_period_rejects_bad_month():
    with pytest.raises(ValueError):
        fiscal_period(date(2026, 1, 1), 13)


def test_collections_by_quarter():
    projects = [
        _project(payments=[
            _payment("100.00", date(2026, 7, 10)),   # FY2027 Q1
            _payment("200.00", date(2026, 12, 1)),   # FY2027 Q2
            _payment("50.00", date(2027, 6, 30)),    # FY2027 Q4
            _payment("999.00", date(2026, 6, 30)),   # FY2026
        ]),
        _project(payments=[_payment("25.00", date(2026, 8, 1))]),
    ]
    buckets = collections_by_quarter(projects, 2027, start_month=7)
    assert buckets.quarters == {
        1: Decimal("125.00"),
        2: Decimal("200.00"),
        3: Decimal("0.00"),
        4: Decimal("50.00"),
    }
    assert buckets.total == Decimal("375.00")
