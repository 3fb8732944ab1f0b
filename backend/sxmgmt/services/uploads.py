"""Attachment storage on local disk, served through the /uploads static mount."""

import uuid
from datetime import datetime, timezone
from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from sxmgmt.core.config import settings
from sxmgmt.schemas.common import Attachment

CHUNK_SIZE = 64 * 1024


def max_upload_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


def _safe_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return "bin"
    ext = filename.rsplit(".", 1)[-1].lower()
    return ext if ext.isalnum() and len(ext) <= 10 else "bin"


async def store_upload(file: UploadFile, subdir: str) -> Attachment:
    """Persist an uploaded file of any type and describe it as an Attachment."""
    limit = max_upload_bytes()
    if file.size and file.size > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB",
        )

    # Read in chunks to limit memory usage
    chunks = []
    total_size = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > limit:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB",
            )
        chunks.append(chunk)

    target_dir = Path(settings.UPLOAD_DIR) / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}.{_safe_extension(file.filename)}"
    (target_dir / filename).write_bytes(b"".join(chunks))

    return Attachment(
        name=file.filename or filename,
        url=f"/uploads/{subdir}/{filename}",
        type=file.content_type or "application/octet-stream",
        size=total_size,
        uploaded_at=datetime.now(timezone.utc),
    )
