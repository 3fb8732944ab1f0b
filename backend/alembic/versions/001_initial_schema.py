"""Initial database schema - staff, customers, services, projects, ledger, tickets, audit, manifest

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum types store member names, matching sqlalchemy.Enum(<PyEnum>) on the models
ENUMS = {
    "userrole": ("ADMIN", "STAFF", "CLIENT"),
    "accountstatus": ("PENDING", "APPROVED", "REJECTED"),
    "customerstatus": ("LEAD", "PROSPECT", "ACTIVE", "CHURNED"),
    "projectstatus": ("PLANNING", "ACTIVE", "COMPLETED", "ON_HOLD"),
    "taskstatus": ("TODO", "DOING", "DONE"),
    "paymenttype": ("UPFRONT", "PROGRESS", "FINAL", "VARIATION"),
    "ticketstatus": ("OPEN", "IN_PROGRESS", "PENDING", "RESOLVED", "CLOSED"),
    "ticketpriority": ("LOW", "MEDIUM", "HIGH", "URGENT"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # --- Users (staff) ---
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", _enum("userrole"), nullable=False),
        sa.Column("status", _enum("accountstatus"), nullable=False),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("company", sa.String(255)),
        sa.Column("mfa_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_root", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("permissions", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("crud_permissions", postgresql.JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("project_access", postgresql.JSONB, nullable=False, server_default=sa.text("'\"ALL\"'::jsonb")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- Customers ---
    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(50)),
        sa.Column("status", _enum("customerstatus"), nullable=False),
        sa.Column("account_status", _enum("accountstatus"), nullable=False),
        sa.Column("lifetime_value", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("paid_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("last_contact", sa.Date),
        sa.Column("description", sa.Text),
        sa.Column("industry", sa.String(255)),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("assigned_to_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_customers_email", "customers", ["email"])
    op.create_index("ix_customers_company", "customers", ["company"])
    op.create_index("ix_customers_status", "customers", ["status"])
    op.create_index("ix_customers_account_status", "customers", ["account_status"])
    op.create_index("ix_customers_assigned_to_id", "customers", ["assigned_to_id"])

    # --- Services ---
    op.create_table(
        "services",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("base_price", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        *_timestamps(),
    )
    op.create_index("ix_services_name", "services", ["name"])

    # --- Projects ---
    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("reference", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("status", _enum("projectstatus"), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("costs", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("payment_rates", postgresql.JSONB, nullable=False),
        sa.Column("award_ref", sa.String(100)),
        sa.Column("invoice_ref", sa.String(100)),
        sa.Column("guarantees", sa.Text),
        sa.Column("financial_notes", sa.Text),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("attachments", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("admin_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_projects_reference", "projects", ["reference"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_admin_id", "projects", ["admin_id"])
    op.create_index("ix_projects_client_status", "projects", ["client_id", "status"])

    op.create_table(
        "project_staff",
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "project_services",
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("service_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    )

    # --- Project children ---
    op.create_table(
        "project_tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", _enum("taskstatus"), nullable=False),
        sa.Column("due_date", sa.Date),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_project_tasks_project_id", "project_tasks", ["project_id"])

    op.create_table(
        "project_payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("paid_on", sa.Date, nullable=False),
        sa.Column("note", sa.Text),
        sa.Column("payment_type", _enum("paymenttype")),
        sa.Column("invoice_ref", sa.String(100)),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recorded_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_project_payments_amount_positive"),
    )
    op.create_index("ix_project_payments_project_paid_on", "project_payments", ["project_id", "paid_on"])

    op.create_table(
        "expected_collections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("expected_date", sa.Date, nullable=False),
        sa.Column("note", sa.Text),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_expected_collections_project_id", "expected_collections", ["project_id"])

    # --- Tickets ---
    op.create_table(
        "tickets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("reference", sa.String(20), nullable=False, unique=True),
        sa.Column("subject", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("status", _enum("ticketstatus"), nullable=False),
        sa.Column("priority", _enum("ticketpriority"), nullable=False),
        sa.Column("category", sa.String(100), nullable=False, server_default=sa.text("'Technical'")),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_company", sa.String(255)),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_tickets_reference", "tickets", ["reference"])
    op.create_index("ix_tickets_status", "tickets", ["status"])
    op.create_index("ix_tickets_project_id", "tickets", ["project_id"])
    op.create_index("ix_tickets_client_status", "tickets", ["client_id", "status"])

    op.create_table(
        "ticket_messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("sequence", sa.Integer, nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True)),
        sa.Column("sender_name", sa.String(255), nullable=False),
        sa.Column("text", sa.Text, nullable=False, server_default=sa.text("''")),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("attachments", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("ticket_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("ticket_id", "sequence", name="uq_ticket_messages_sequence"),
    )
    op.create_index("ix_ticket_messages_ticket_id", "ticket_messages", ["ticket_id"])

    # --- Audit log ---
    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("action_datetime", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64)),
        sa.Column("before_change", postgresql.JSONB),
        sa.Column("after_change", postgresql.JSONB),
    )
    op.create_index("ix_audit_logs_user_email", "audit_logs", ["user_email"])
    op.create_index("ix_audit_logs_action_datetime", "audit_logs", ["action_datetime"])

    # --- System manifest ---
    op.create_table(
        "system_manifest",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("data", postgresql.JSONB, nullable=False),
        sa.Column("updated_by", sa.String(255)),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("system_manifest")
    op.drop_table("audit_logs")
    op.drop_table("ticket_messages")
    op.drop_table("tickets")
    op.drop_table("expected_collections")
    op.drop_table("project_payments")
    op.drop_table("project_tasks")
    op.drop_table("project_services")
    op.drop_table("project_staff")
    op.drop_table("projects")
    op.drop_table("services")
    op.drop_table("customers")
    op.drop_table("users")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
