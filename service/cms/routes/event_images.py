"""
Event image uploads. Featured, hero and logo uploads also set the matching
URL column on the event.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq
from cms.dependencies import get_db_client, get_storage_client
from cms.routes.common import (
    MAX_IMAGE_BYTES,
    image_dimensions,
    integrity_error,
    read_upload,
    require_image,
)
from cms.routes.events import find_event
from cms.storage import StorageClient
from shared.image_url import BUCKETS, build_storage_filename
from shared.types import EVENT_IMAGE_URL_COLUMNS, EventImageType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["event-images"])

IMAGES = "event_images"


def _event_or_404(db: DbClient, id_or_slug: str) -> dict:
    event = find_event(db, id_or_slug)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/{id_or_slug}/images")
def list_event_images(
    id_or_slug: str,
    type: str | None = None,
    include_inactive: bool = False,
    db: DbClient = Depends(get_db_client),
):
    event = _event_or_404(db, id_or_slug)
    filters = [eq("event_id", event["id"])]
    if type:
        filters.append(eq("image_type", type))
    if not include_inactive:
        filters.append(eq("is_active", True))
    images = db.select(IMAGES, filters, [Order("display_order"), Order("created_at")])

    grouped = {image_type.value: [] for image_type in EventImageType}
    for image in images:
        grouped.setdefault(image["image_type"], []).append(image)
    return {
        "images": {
            "featured": grouped["featured"],
            "hero": grouped["hero"],
            "logo": grouped["logo"],
            "gallery": grouped["gallery"],
        },
        "total": len(images),
    }


@router.post("/{event_id}/images", status_code=201, dependencies=[Depends(require_admin)])
async def upload_event_image(
    event_id: str,
    file: UploadFile = File(...),
    image_type: str = Form(EventImageType.GALLERY.value),
    alt_text: str | None = Form(None),
    caption: str | None = Form(None),
    display_order: int = Form(0),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    event = _event_or_404(db, event_id)
    try:
        kind = EventImageType(image_type)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid image type") from None
    require_image(file)
    data = await read_upload(file, MAX_IMAGE_BYTES, "File size must be less than 10MB")

    filename = build_storage_filename(kind.value, file.filename or "image")
    path = f"{event['id']}/{filename}"
    storage.upload_bytes(BUCKETS["events"], path, data, file.content_type or "image/jpeg")
    width, height = image_dimensions(data)

    try:
        image = db.insert(
            IMAGES,
            {
                "event_id": event["id"],
                "filename": filename,
                "original_filename": file.filename,
                "file_path": path,
                "file_size": len(data),
                "mime_type": file.content_type,
                "alt_text": alt_text,
                "caption": caption,
                "width": width,
                "height": height,
                "display_order": display_order,
                "image_type": kind.value,
            },
        )
    except IntegrityViolation as exc:
        storage.delete(BUCKETS["events"], [path])
        raise integrity_error(exc) from exc

    url = storage.public_url(BUCKETS["events"], path)
    column = EVENT_IMAGE_URL_COLUMNS.get(kind)
    if column:
        db.update("events", event["id"], {column: url})
    logger.info("Uploaded %s image for event %s", kind.value, event["id"])
    return {"success": True, "image": dict(image, url=url)}


@router.delete("/{event_id}/images/{image_id}", dependencies=[Depends(require_admin)])
def delete_event_image(
    event_id: str,
    image_id: str,
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    image = db.find_one(IMAGES, [eq("id", image_id), eq("event_id", event_id)])
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    db.delete_where(IMAGES, [eq("id", image_id)])
    try:
        storage.delete(BUCKETS["events"], [image["file_path"]])
    except Exception:
        logger.exception("Failed to delete storage object %s", image["file_path"])
    return {"success": True, "message": "Image deleted successfully"}
