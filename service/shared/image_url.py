"""
Public URL construction for objects in the site's storage buckets.
"""

from __future__ import annotations

import os
import secrets
import time
from typing import Optional

DEFAULT_BUCKET = "images"
PLACEHOLDER_IMAGE = "/images/placeholder.jpg"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
IMAGE_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

# Buckets the site reads from outside of the page catalog.
BUCKETS = {
    "general": DEFAULT_BUCKET,
    "events": "event-images",
    "blogs": "blog-images",
    "cities": "city-images",
    "contact": "contact-images",
    "company_profile": "company-profile-documents",
}


def public_object_url(base_url: str, bucket: str, path: str) -> str:
    """Supabase public object URL for ``bucket``/``path``."""
    return f"{base_url.rstrip('/')}/storage/v1/object/public/{bucket}/{path.lstrip('/')}"


def resolve_image_url(
    image_path: Optional[str],
    bucket: str = DEFAULT_BUCKET,
    base_url: str = "",
) -> str:
    """
    Absolute URLs and site-relative paths pass through; bare object paths are
    turned into public storage URLs. Empty input gives "".
    """
    if not image_path:
        return ""
    if image_path.startswith(("http://", "https://")):
        return image_path
    if image_path.startswith("/"):
        return image_path
    if not base_url:
        return image_path
    return public_object_url(base_url, bucket, image_path)


def resolve_image_url_with_fallback(
    image_path: Optional[str],
    fallback: str = PLACEHOLDER_IMAGE,
    bucket: str = DEFAULT_BUCKET,
    base_url: str = "",
) -> str:
    return resolve_image_url(image_path, bucket, base_url) or fallback


def is_image_filename(filename: str) -> bool:
    return (filename or "").lower().endswith(IMAGE_EXTENSIONS)


def file_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lstrip(".").lower()


def build_storage_filename(
    prefix: str,
    original_filename: str,
    timestamp_ms: Optional[int] = None,
    token: Optional[str] = None,
) -> str:
    """``<prefix>-<millis>-<random>.<ext>``, keeping the upload's extension."""
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    token = token or secrets.token_hex(6)
    ext = file_extension(original_filename)
    name = f"{prefix}-{timestamp_ms}-{token}"
    return f"{name}.{ext}" if ext else name
