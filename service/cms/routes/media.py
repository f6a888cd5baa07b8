"""
Image library shared by the admin editors, plus presigned storage URLs.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq
from cms.dependencies import get_db_client, get_storage_client
from cms.routes.common import (
    MAX_IMAGE_BYTES,
    get_or_404,
    image_dimensions,
    integrity_error,
    page_window,
    read_upload,
    require_image,
    total_pages,
)
from cms.schemas import SignUrlResponse
from cms.storage import StorageClient
from shared.image_url import BUCKETS, DEFAULT_BUCKET, build_storage_filename, is_image_filename
from shared.page_catalog import storage_buckets

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])

ASSETS = "media_assets"


def known_buckets() -> list[str]:
    buckets = list(BUCKETS.values())
    for bucket in storage_buckets():
        if bucket not in buckets:
            buckets.append(bucket)
    return buckets


def _check_bucket(bucket: str) -> None:
    if bucket not in known_buckets():
        raise HTTPException(status_code=400, detail=f"Unknown bucket: {bucket}")


def _object_path(folder: str | None, filename: str) -> str:
    folder = (folder or "").strip("/")
    return f"{folder}/{filename}" if folder else filename


@router.get("/images")
def list_images(
    bucket: str = DEFAULT_BUCKET,
    folder: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    _check_bucket(bucket)
    filters = [eq("bucket", bucket)]
    if folder:
        filters.append(eq("folder", folder.strip("/")))
    offset = page_window(page, limit)
    total = db.count(ASSETS, filters)
    if total:
        rows = db.select(
            ASSETS, filters, [Order("created_at", descending=True)], limit=limit, offset=offset
        )
        images = [dict(row, url=storage.public_url(bucket, row["path"])) for row in rows]
    else:
        # Objects uploaded outside the API have no rows; list the bucket itself.
        prefix = f"{folder.strip('/')}/" if folder else ""
        objects = [obj for obj in storage.list(bucket, prefix) if is_image_filename(obj["name"])]
        total = len(objects)
        images = [
            {
                "id": None,
                "bucket": bucket,
                "path": obj["name"],
                "filename": obj["name"].rsplit("/", 1)[-1],
                "file_size": obj["size"],
                "created_at": obj["last_modified"],
                "url": storage.public_url(bucket, obj["name"]),
            }
            for obj in objects[offset : offset + limit]
        ]
    return {
        "images": images,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }


@router.post("/images/upload", status_code=201, dependencies=[Depends(require_admin)])
async def upload_image(
    file: UploadFile = File(...),
    bucket: str = Form(DEFAULT_BUCKET),
    folder: str | None = Form(None),
    alt_text: str | None = Form(None),
    prefix: str = Form("image"),
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    _check_bucket(bucket)
    require_image(file)
    data = await read_upload(file, MAX_IMAGE_BYTES, "File size must be less than 10MB")

    filename = build_storage_filename(prefix, file.filename or "image")
    path = _object_path(folder, filename)
    storage.upload_bytes(bucket, path, data, file.content_type or "image/jpeg")
    width, height = image_dimensions(data)
    try:
        asset = db.insert(
            ASSETS,
            {
                "bucket": bucket,
                "path": path,
                "folder": (folder or "").strip("/") or None,
                "filename": filename,
                "original_filename": file.filename,
                "mime_type": file.content_type,
                "file_size": len(data),
                "width": width,
                "height": height,
                "alt_text": alt_text,
            },
        )
    except IntegrityViolation as exc:
        storage.delete(bucket, [path])
        raise integrity_error(exc) from exc
    logger.info("Uploaded %s to %s", path, bucket)
    return {"success": True, "image": dict(asset, url=storage.public_url(bucket, path))}


@router.delete("/images/{asset_id}", dependencies=[Depends(require_admin)])
def delete_image(
    asset_id: str,
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    asset = get_or_404(db, ASSETS, asset_id, "Image not found")
    storage.delete(asset["bucket"], [asset["path"]])
    db.delete_where(ASSETS, [eq("id", asset_id)])
    return {"success": True, "message": "Image deleted successfully"}


@router.get(
    "/sign-url",
    response_model=SignUrlResponse,
    dependencies=[Depends(require_admin)],
)
def sign_url(
    path: str = Query(..., description="Object path in storage"),
    bucket: str = Query(DEFAULT_BUCKET),
    op: str = Query("get", pattern="^(get|put)$"),
    expires_in: int = Query(3600, ge=60, le=86400),
    storage: StorageClient = Depends(get_storage_client),
):
    _check_bucket(bucket)
    if op == "get":
        url = storage.presign_get(bucket, path, expires_in=expires_in)
    else:
        url = storage.presign_put(bucket, path, expires_in=expires_in)
    return SignUrlResponse(url=url, bucket=bucket, path=path, method=op)
