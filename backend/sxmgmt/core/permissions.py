"""View-based access control.

Staff access is granted per application view, with optional CRUD flags per
view. Both collapse into flat permission strings (``"<VIEW>:<action>"``) that
are embedded in the access token and checked by ``require_permission``.

┌────────────────────┬───────┬──────────────────────────────────────┐
│ View               │ Admin │ Staff                                │
├────────────────────┼───────┼──────────────────────────────────────┤
│ DASHBOARD          │  all  │ if granted (default grant)           │
│ CRM                │  all  │ if granted + CRUD flags              │
│ CLIENT_DETAIL      │  all  │ follows CRM                          │
│ PROJECT_PIPELINE   │  all  │ if granted + CRUD flags              │
│ PROJECT_CREATE     │  all  │ follows PROJECT_PIPELINE             │
│ FINANCIAL_PIPELINE │  all  │ if granted + CRUD flags              │
│ TICKETS            │  all  │ if granted + CRUD flags              │
│ SERVICES_CATALOG   │  all  │ if granted + CRUD flags              │
│ ADMIN_MGMT         │  all  │ if granted + CRUD flags              │
│ SETTINGS           │  all  │ always (own profile)                 │
│ STAFF_EDIT         │  all  │ always (view only)                   │
│ AUDIT_LOG          │  all  │ never                                │
│ CLIENT_PORTAL      │   -   │ clients only                         │
└────────────────────┴───────┴──────────────────────────────────────┘
"""

import enum
import logging
from typing import Any
from uuid import UUID

from sxmgmt.models.user import UserRole

logger = logging.getLogger(__name__)


class View(str, enum.Enum):
    DASHBOARD = "DASHBOARD"
    TICKETS = "TICKETS"
    CRM = "CRM"
    PROJECT_PIPELINE = "PROJECT_PIPELINE"
    FINANCIAL_PIPELINE = "FINANCIAL_PIPELINE"
    ADMIN_MGMT = "ADMIN_MGMT"
    CLIENT_PORTAL = "CLIENT_PORTAL"
    SETTINGS = "SETTINGS"
    CLIENT_DETAIL = "CLIENT_DETAIL"
    SERVICES_CATALOG = "SERVICES_CATALOG"
    STAFF_EDIT = "STAFF_EDIT"
    PROJECT_CREATE = "PROJECT_CREATE"
    AUDIT_LOG = "AUDIT_LOG"


class CrudAction(str, enum.Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


# Views an administrator can hand out from the staff editor
MANAGEABLE_VIEWS: list[View] = [
    View.DASHBOARD,
    View.CRM,
    View.PROJECT_PIPELINE,
    View.FINANCIAL_PIPELINE,
    View.TICKETS,
    View.SERVICES_CATALOG,
    View.ADMIN_MGMT,
]

ALWAYS_ALLOWED_VIEWS: frozenset[View] = frozenset({View.SETTINGS, View.STAFF_EDIT})

# Sub-views that follow the grant (and CRUD flags) of their parent view
INHERITED_VIEWS: dict[View, View] = {
    View.CLIENT_DETAIL: View.CRM,
    View.PROJECT_CREATE: View.PROJECT_PIPELINE,
}

DEFAULT_STAFF_VIEWS: list[str] = [View.DASHBOARD.value]
DEFAULT_CRUD: dict[str, bool] = {"view": True, "create": False, "edit": False, "delete": False}


def permission(view: View, action: CrudAction) -> str:
    return f"{view.value}:{action.value}"


STAFF_VIEWS = [v for v in View if v is not View.CLIENT_PORTAL]
ALL_STAFF_PERMISSIONS: list[str] = [permission(v, a) for v in STAFF_VIEWS for a in CrudAction]
CLIENT_PERMISSIONS: list[str] = [
    permission(View.CLIENT_PORTAL, CrudAction.VIEW),
    permission(View.CLIENT_PORTAL, CrudAction.CREATE),
    permission(View.SETTINGS, CrudAction.VIEW),
]


def _parse_views(views: list[str] | None) -> set[View]:
    parsed = set()
    for raw in views or []:
        try:
            parsed.add(View(raw))
        except ValueError:
            continue  # stale view names from older records carry no access
    return parsed


def effective_permissions(
    role: str,
    views: list[str] | None,
    crud: dict[str, Any] | None,
    is_root: bool = False,
) -> list[str]:
    """Flatten a staff member's view grants and CRUD flags into permission strings."""
    if is_root or role == UserRole.ADMIN:
        return list(ALL_STAFF_PERMISSIONS)
    if role == UserRole.CLIENT:
        return list(CLIENT_PERMISSIONS)

    granted = _parse_views(views) - {View.AUDIT_LOG, View.CLIENT_PORTAL}
    granted |= {child for child, parent in INHERITED_VIEWS.items() if parent in granted}
    crud = crud or {}

    result = {permission(v, CrudAction.VIEW) for v in granted | ALWAYS_ALLOWED_VIEWS}
    result.add(permission(View.SETTINGS, CrudAction.EDIT))  # own profile
    for view in granted:
        flags = crud.get(INHERITED_VIEWS.get(view, view).value) or {}
        for action in (CrudAction.CREATE, CrudAction.EDIT, CrudAction.DELETE):
            if flags.get(action.value):
                result.add(permission(view, action))
    return sorted(result)


def toggle_view(
    views: list[str], crud: dict[str, dict[str, bool]], view: View
) -> tuple[list[str], dict[str, dict[str, bool]]]:
    """Grant or revoke a view, keeping the CRUD map in step.

    Granting seeds the default flags (view only); revoking drops the entry.
    """
    views = list(views)
    crud = {k: dict(v) for k, v in crud.items()}
    if view.value in views:
        views.remove(view.value)
        crud.pop(view.value, None)
    else:
        views.append(view.value)
        crud.setdefault(view.value, dict(DEFAULT_CRUD))
    return views, crud


def normalize_access(
    views: list[str], crud: dict[str, dict[str, bool]]
) -> tuple[list[str], dict[str, dict[str, bool]]]:
    """Drop unknown views and CRUD entries for views that are not granted."""
    valid = [v.value for v in View if v.value in views and v is not View.CLIENT_PORTAL]
    cleaned = {}
    for view in valid:
        flags = dict(DEFAULT_CRUD)
        flags.update({k: bool(val) for k, val in (crud.get(view) or {}).items() if k in DEFAULT_CRUD})
        cleaned[view] = flags
    return valid, cleaned


def landing_view(role: str, views: list[str] | None, is_root: bool = False) -> View:
    """First screen after login."""
    if role == UserRole.CLIENT:
        return View.CLIENT_PORTAL
    if is_root or role == UserRole.ADMIN or View.DASHBOARD.value in (views or []):
        return View.DASHBOARD
    return View.SETTINGS


def can_access_project(project_access: Any, project_id: str) -> bool:
    return project_access == "ALL" or project_id in (project_access or [])


def allowed_project_ids(project_access: Any) -> list[UUID]:
    """Project ids in a restricted access list; entries that are not UUIDs match nothing."""
    ids = []
    for pid in project_access or []:
        try:
            ids.append(UUID(str(pid)))
        except ValueError:
            logger.warning("Ignoring malformed project id %r in project access", pid)
    return ids
