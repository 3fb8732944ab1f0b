"""System manifest schemas - branding, labels, email transport and legal text.

Defaults reproduce the shipped configuration; a fresh install seeds them.
"""

from typing import Literal

from pydantic import BaseModel, Field

from sxmgmt.core.config import settings

MASK = "••••••••"


class GlobalSettings(BaseModel):
    logo_url: str = ""
    primary_color: str = Field(default="#006B35", pattern=r"^#[0-9A-Fa-f]{6}$")
    site_title: str = "SX MGMT"
    currency: str = Field(default_factory=lambda: settings.CURRENCY, min_length=3, max_length=3)
    logo_width: int = Field(default=120, ge=50, le=300)
    logo_height: int = Field(default=32, ge=20, le=100)


class AuthSettings(BaseModel):
    login_title: str = ""
    login_subtitle: str = ""
    banner_url: str = ""
    login_bg_color: str = "#1A1A1A"
    login_bg_image_url: str = ""
    terms_content: str = (
        "By accessing this platform, you agree to comply with our infrastructure security "
        "protocols and confidentiality requirements. All actions are logged."
    )
    privacy_content: str = (
        "Securelogx Co. ensures end-to-end data encryption. Your project data and identity "
        "remain stored in secured local systems according to high-security standards."
    )


class SmtpAuth(BaseModel):
    user: str = "notifications@securelogx.com"
    password: str = ""


class EmailSettings(BaseModel):
    provider: Literal["SMTP", "SENDGRID", "MAILGUN", "SES"] = "SMTP"
    host: str = "smtp.securelogx.com"
    port: int = Field(default=587, ge=1, le=65535)
    encryption: Literal["NONE", "TLS", "SSL"] = "TLS"
    auth: SmtpAuth = Field(default_factory=SmtpAuth)
    from_email: str = "no-reply@securelogx.com"
    from_name: str = "SX Support Desk"
    notifications_enabled: bool = True
    incoming_enabled: bool = False
    incoming_host: str = "imap.securelogx.com"
    incoming_port: int = Field(default=993, ge=1, le=65535)
    incoming_encryption: Literal["NONE", "SSL", "TLS"] = "SSL"
    incoming_user: str = "support@securelogx.com"
    incoming_password: str = ""
    fetch_interval: int = Field(default=5, ge=1, description="Minutes between mailbox polls")


class NavigationLabels(BaseModel):
    dashboard: str = "Insights"
    crm: str = "Client Registry"
    projects: str = "Project Pipeline"
    financials: str = "Financials"
    tickets: str = "Support Queue"
    admin: str = "Staff Mgmt"
    settings: str = "Settings"
    services: str = "Services"
    audit: str = "Audit Registry"


class DashboardLabels(BaseModel):
    title: str = "Executive Intelligence"
    subtitle: str = "Consolidated monitoring of Securelogx infrastructure performance."
    stat1: str = "Pipeline Value"
    stat2: str = "Collected Liquidity"
    stat3: str = "Support Load"
    stat4: str = "Operations"


class CrmLabels(BaseModel):
    title: str = "Client Registry"
    subtitle: str = "Manage client identities and account approvals."
    register_button: str = "Register New Client"


class ProjectLabels(BaseModel):
    title: str = "Project Management"
    subtitle: str = "Manage leads and detailed active project lifecycles."
    stage1: str = "Lead"
    stage2: str = "Prospect"
    stage3: str = "Active"
    stage4: str = "Churned"


class TicketLabels(BaseModel):
    title: str = "Support Desk"
    priority_urgent: str = "Urgent"
    priority_high: str = "High"
    priority_medium: str = "Medium"
    priority_low: str = "Low"


class ClientPortalLabels(BaseModel):
    title: str = "Client Hub"
    welcome_message: str = "Portal secured by Securelogx Co."
    tab_support: str = "Support"
    tab_finance: str = "Finance"


class ManifestDocument(BaseModel):
    """The whole manifest. Updates replace it wholesale."""
    global_: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    auth: AuthSettings = Field(default_factory=AuthSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    navigation: NavigationLabels = Field(default_factory=NavigationLabels)
    dashboard: DashboardLabels = Field(default_factory=DashboardLabels)
    crm: CrmLabels = Field(default_factory=CrmLabels)
    projects: ProjectLabels = Field(default_factory=ProjectLabels)
    tickets: TicketLabels = Field(default_factory=TicketLabels)
    client_portal: ClientPortalLabels = Field(default_factory=ClientPortalLabels)

    model_config = {"populate_by_name": True}

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)

    def masked(self) -> "ManifestDocument":
        """Copy with mail credentials hidden."""
        doc = self.model_copy(deep=True)
        if doc.email.auth.password:
            doc.email.auth.password = MASK
        if doc.email.incoming_password:
            doc.email.incoming_password = MASK
        return doc


class PublicManifest(BaseModel):
    """What the login screen and the navigation need before sign-in."""
    global_: GlobalSettings = Field(alias="global")
    auth: AuthSettings
    navigation: NavigationLabels
    client_portal: ClientPortalLabels

    model_config = {"populate_by_name": True}
