"""Project account statement generation (plain-text and structured lines)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

WIDTH = 48


class StatementLine(BaseModel):
    """Single line in a statement."""
    text: str
    align: Literal["left", "center", "right"] = "left"
    bold: bool = False


class StatementPayment(BaseModel):
    paid_on: date
    amount: Decimal = Field(..., decimal_places=2)
    note: str | None = None
    invoice_ref: str | None = None


class StatementData(BaseModel):
    """Everything needed to render a project statement."""
    # Issuer
    company_name: str
    currency: str = "SAR"

    # Project
    project_reference: str
    project_name: str
    issued_at: datetime
    award_ref: str | None = None
    invoice_ref: str | None = None

    # Client
    client_name: str
    client_company: str | None = None

    # Figures
    contract_value: Decimal = Field(..., decimal_places=2)
    tax_rate: Decimal
    vat: Decimal = Field(..., decimal_places=2)
    total_payable: Decimal = Field(..., decimal_places=2)
    payments: list[StatementPayment]
    collected: Decimal = Field(..., decimal_places=2)
    outstanding: Decimal = Field(..., decimal_places=2)

    footer_message: str = "Thank you for your business."


def _amount(currency: str, value: Decimal) -> str:
    return f"{currency} {value:,.2f}"


def generate_statement_lines(data: StatementData) -> list[StatementLine]:
    """Lay out a statement as formatted lines."""
    lines: list[StatementLine] = []
    cur = data.currency

    # Header
    lines.append(StatementLine(text=data.company_name, align="center", bold=True))
    lines.append(StatementLine(text="ACCOUNT STATEMENT", align="center"))
    lines.append(StatementLine(text="=" * WIDTH, align="center"))

    lines.append(StatementLine(text=f"Project: {data.project_reference}", bold=True))
    lines.append(StatementLine(text=data.project_name))
    lines.append(StatementLine(text=f"Issued: {data.issued_at.strftime('%Y-%m-%d %H:%M')}"))
    if data.award_ref:
        lines.append(StatementLine(text=f"Award ref: {data.award_ref}"))
    if data.invoice_ref:
        lines.append(StatementLine(text=f"Invoice ref: {data.invoice_ref}"))

    client = data.client_name
    if data.client_company:
        client = f"{client} ({data.client_company})"
    lines.append(StatementLine(text=f"Client: {client}"))

    lines.append(StatementLine(text="-" * WIDTH))

    # Contract
    vat_label = f"VAT {data.tax_rate * 100:.0f}%"
    lines.append(StatementLine(text=f"Contract value: {_amount(cur, data.contract_value)}", align="right"))
    lines.append(StatementLine(text=f"{vat_label}: {_amount(cur, data.vat)}", align="right"))
    lines.append(StatementLine(text=f"Total payable: {_amount(cur, data.total_payable)}", align="right", bold=True))

    lines.append(StatementLine(text="-" * WIDTH))

    # Ledger
    lines.append(StatementLine(text="Payments received", bold=True))
    if not data.payments:
        lines.append(StatementLine(text="  (none)"))
    for payment in data.payments:
        entry = f"  {payment.paid_on.isoformat()}  {_amount(cur, payment.amount)}"
        if payment.invoice_ref:
            entry += f"  [{payment.invoice_ref}]"
        lines.append(StatementLine(text=entry))
        if payment.note:
            lines.append(StatementLine(text=f"    {payment.note}"))

    lines.append(StatementLine(text="=" * WIDTH))
    lines.append(StatementLine(text=f"Collected: {_amount(cur, data.collected)}", align="right"))
    if data.outstanding <= 0:
        lines.append(StatementLine(text="Outstanding: CLEARED", align="right", bold=True))
    else:
        lines.append(StatementLine(
            text=f"Outstanding: {_amount(cur, data.outstanding)}",
            align="right",
            bold=True,
        ))

    # Footer
    lines.append(StatementLine(text="=" * WIDTH))
    lines.append(StatementLine(text=data.footer_message, align="center"))

    return lines


def format_statement_text(data: StatementData) -> str:
    """Plain text statement for download/preview."""
    lines = generate_statement_lines(data)
    rendered = []
    for line in lines:
        if line.align == "center":
            rendered.append(line.text.center(WIDTH).rstrip())
        elif line.align == "right":
            rendered.append(line.text.rjust(WIDTH))
        else:
            rendered.append(line.text)
    return "\n".join(rendered)
