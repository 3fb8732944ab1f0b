"""System manifest endpoints: branding, labels, email settings and legal text."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgmt.core.deps import require_role, require_staff
from sxmgmt.db.base import get_db
from sxmgmt.models.manifest import MANIFEST_ROW_ID, SystemManifest
from sxmgmt.schemas.auth import CurrentUser
from sxmgmt.schemas.manifest import MASK, ManifestDocument, PublicManifest
from sxmgmt.services.audit import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manifest", tags=["manifest"])


async def _load_row(db: AsyncSession) -> SystemManifest | None:
    result = await db.execute(select(SystemManifest).where(SystemManifest.id == MANIFEST_ROW_ID))
    return result.scalar_one_or_none()


async def load_manifest(db: AsyncSession) -> ManifestDocument:
    """Stored manifest, or the shipped defaults when nothing has been saved yet."""
    row = await _load_row(db)
    if row is None:
        return ManifestDocument()
    return ManifestDocument.model_validate(row.data)


def keep_masked_secrets(incoming: ManifestDocument, stored: ManifestDocument) -> ManifestDocument:
    """Secrets sent back as the mask keep their stored value."""
    if incoming.email.auth.password == MASK:
        incoming.email.auth.password = stored.email.auth.password
    if incoming.email.incoming_password == MASK:
        incoming.email.incoming_password = stored.email.incoming_password
    return incoming


@router.get("/public", response_model=PublicManifest)
async def get_public_manifest(db: AsyncSession = Depends(get_db)):
    """Sections the sign-in screen needs. No authentication required."""
    doc = await load_manifest(db)
    return PublicManifest(
        global_=doc.global_,
        auth=doc.auth,
        navigation=doc.navigation,
        client_portal=doc.client_portal,
    )


@router.get("", response_model=ManifestDocument)
async def get_manifest(
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Full manifest with mail credentials masked."""
    doc = await load_manifest(db)
    return doc.masked()


@router.put("", response_model=ManifestDocument)
async def replace_manifest(
    body: ManifestDocument,
    current_user: CurrentUser = Depends(require_role("ADMIN")),
    db: AsyncSession = Depends(get_db),
):
    """Replace the whole manifest."""
    row = await _load_row(db)
    stored = ManifestDocument() if row is None else ManifestDocument.model_validate(row.data)
    doc = keep_masked_secrets(body, stored)

    if row is None:
        row = SystemManifest(id=MANIFEST_ROW_ID, data=doc.to_storage(), updated_by=current_user.email)
        db.add(row)
    else:
        row.data = doc.to_storage()
        row.updated_by = current_user.email

    await record_action(
        db,
        current_user,
        "manifest.update",
        "SystemManifest",
        MANIFEST_ROW_ID,
        before=stored.masked().to_storage(),
        after=doc.masked().to_storage(),
    )
    await db.commit()

    logger.info("Manifest replaced by %s", current_user.email)
    return doc.masked()
