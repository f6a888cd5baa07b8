"""
Helpers shared by the route modules.
"""

from __future__ import annotations

import io
import logging
import math
from typing import Iterable, Optional

from fastapi import HTTPException, Request, UploadFile
from PIL import Image, UnidentifiedImageError

from cms.config import get_settings
from cms.db import DbClient, IntegrityViolation
from cms.queue import JobQueue, NotificationJob
from shared.image_url import (
    DEFAULT_BUCKET,
    IMAGE_MIME_TYPES,
    resolve_image_url,
    resolve_image_url_with_fallback,
)
from shared.text_utils import blank_to_none

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


def get_or_404(db: DbClient, table: str, row_id: str, detail: str) -> dict:
    row = db.get(table, row_id)
    if not row:
        raise HTTPException(status_code=404, detail=detail)
    return row


def page_window(page: int, limit: int) -> int:
    """Offset of the first row on ``page`` (1-based)."""
    return (max(page, 1) - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def blank_fields_to_none(values: dict, fields: Iterable[str]) -> dict:
    cleaned = dict(values)
    for name in fields:
        if name in cleaned:
            cleaned[name] = blank_to_none(cleaned[name])
    return cleaned


def required_text(values: dict, field: str, detail: str) -> str:
    """Trimmed text of ``field``; 400 with ``detail`` when it is blank or not a string."""
    value = values.get(field)
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(status_code=400, detail=detail)
    return value.strip()


def integrity_error(
    exc: IntegrityViolation,
    unique: Optional[dict] = None,
    foreign_key: Optional[dict] = None,
) -> HTTPException:
    """Map a constraint violation to a 400 with the message for its column."""
    if exc.kind == "not_null":
        return HTTPException(status_code=400, detail=f"Missing required field: {exc.column}")
    messages = (unique if exc.kind == "unique" else foreign_key) or {}
    detail = messages.get(exc.column) or messages.get(None) or str(exc)
    return HTTPException(status_code=400, detail=detail)


def queue_notification(
    queue: JobQueue, kind: str, record_id: str, payload: Optional[dict] = None
) -> bool:
    """Enqueue an email job. Failures are logged; the request still succeeds."""
    try:
        queue.enqueue(NotificationJob(kind=kind, record_id=record_id, payload=payload or {}))
    except Exception:
        logger.exception("Failed to queue %s notification for %s", kind, record_id)
        return False
    return True


def client_details(request: Request) -> dict:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else None
        )
    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("user-agent"),
        "referrer": request.headers.get("referer"),
    }


async def read_upload(file: UploadFile, max_bytes: int, too_large: str) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file provided")
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=too_large)
    return data


def require_image(file: UploadFile) -> None:
    if (file.content_type or "").lower() not in IMAGE_MIME_TYPES:
        raise HTTPException(
            status_code=400, detail="Invalid file type. Only images are allowed."
        )


def image_dimensions(data: bytes) -> tuple[Optional[int], Optional[int]]:
    """Pixel size of an uploaded image; (None, None) for formats Pillow can't read (SVG)."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None, None


def public_image_url(
    path: Optional[str], bucket: str = DEFAULT_BUCKET, fallback: Optional[str] = None
) -> str:
    """Public URL for a stored image path, or ``fallback`` when there is none."""
    base_url = get_settings().public_storage_url
    if fallback is not None:
        return resolve_image_url_with_fallback(path, fallback, bucket, base_url)
    return resolve_image_url(path, bucket, base_url)


def with_public_images(values: dict, bucket: str = DEFAULT_BUCKET) -> dict:
    """Copy of ``values`` with each ``*image_url`` field made public."""
    resolved = {
        key: public_image_url(value, bucket)
        for key, value in values.items()
        if key.endswith("image_url") and isinstance(value, str) and value
    }
    return dict(values, **resolved)
