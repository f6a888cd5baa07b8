"""
Company profile PDF downloads and the versioned privacy policy.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile

from cms.auth import require_admin
from cms.config import get_settings
from cms.db import DbClient, IntegrityViolation, Order, eq, neq
from cms.dependencies import get_db_client, get_storage_client
from cms.routes.common import get_or_404, integrity_error, read_upload, required_text
from cms.schemas import PrivacyPolicyPayload
from cms.storage import StorageClient
from shared.image_url import BUCKETS, build_storage_filename

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])

DOCUMENTS = "company_profile_documents"
POLICIES = "privacy_policy"
PROFILE_BUCKET = BUCKETS["company_profile"]
MAX_PDF_BYTES = 100 * 1024 * 1024


def _with_url(storage: StorageClient, document: dict) -> dict:
    return {
        "document": document,
        "download_url": storage.public_url(PROFILE_BUCKET, document["file_path"]),
    }


def _demote_others(db: DbClient, document_id: str) -> None:
    db.update_where(
        DOCUMENTS, [eq("is_current", True), neq("id", document_id)], {"is_current": False}
    )


@router.get("/company-profile")
def get_company_profile(
    all: bool = False,
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    if all:
        documents = db.select(DOCUMENTS, order_by=[Order("created_at", descending=True)])
        current = next(
            (doc for doc in documents if doc["is_current"] and doc["is_active"]), None
        )
        return {
            "success": True,
            "documents": [_with_url(storage, doc) for doc in documents],
            "current": _with_url(storage, current) if current else None,
        }
    document = db.find_one(DOCUMENTS, [eq("is_current", True), eq("is_active", True)])
    if not document:
        raise HTTPException(
            status_code=404, detail="No current company profile document found"
        )
    return dict(_with_url(storage, document), success=True)


@router.get("/company-profile/{document_id}")
def get_company_profile_document(
    document_id: str,
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    document = get_or_404(db, DOCUMENTS, document_id, "Document not found")
    return dict(_with_url(storage, document), success=True)


@router.post("/company-profile", status_code=201, dependencies=[Depends(require_admin)])
async def upload_company_profile(
    file: UploadFile = File(...),
    title: str | None = Form(None),
    description: str | None = Form(None),
    version: str | None = Form(None),
    is_current: bool = Form(False),
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    if not (title or "").strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if file.content_type != "application/pdf":
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")
    data = await read_upload(file, MAX_PDF_BYTES, "File size must be less than 100MB")

    filename = build_storage_filename("company-profile", file.filename or "profile.pdf")
    storage.upload_bytes(PROFILE_BUCKET, filename, data, "application/pdf")
    try:
        document = db.insert(
            DOCUMENTS,
            {
                "filename": filename,
                "original_filename": file.filename,
                "file_path": filename,
                "file_size": len(data),
                "mime_type": file.content_type,
                "title": title.strip(),
                "description": (description or "").strip() or None,
                "version": (version or "").strip() or "1.0",
                "is_current": is_current,
            },
        )
    except IntegrityViolation as exc:
        storage.delete(PROFILE_BUCKET, [filename])
        raise integrity_error(exc) from exc
    if is_current:
        _demote_others(db, document["id"])
    logger.info("Uploaded company profile %s (%d bytes)", filename, len(data))
    return dict(_with_url(storage, document), success=True)


@router.put("/company-profile/{document_id}", dependencies=[Depends(require_admin)])
def update_company_profile(
    document_id: str,
    payload: dict = Body(...),
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    existing = get_or_404(db, DOCUMENTS, document_id, "Document not found")
    allowed = ("title", "description", "version", "is_active", "is_current")
    values = {key: payload[key] for key in allowed if key in payload}
    if "title" in values:
        values["title"] = required_text(values, "title", "Title cannot be empty")
    if values.get("is_current") and not values.get("is_active", existing["is_active"]):
        raise HTTPException(status_code=400, detail="Document not found or not active")
    for key in ("title", "description", "version"):
        if isinstance(values.get(key), str):
            values[key] = values[key].strip() or None
    try:
        document = db.update(DOCUMENTS, document_id, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    if values.get("is_current"):
        _demote_others(db, document_id)
    return dict(_with_url(storage, document), success=True)


@router.delete("/company-profile/{document_id}", dependencies=[Depends(require_admin)])
def delete_company_profile(
    document_id: str,
    storage: StorageClient = Depends(get_storage_client),
    db: DbClient = Depends(get_db_client),
):
    document = get_or_404(db, DOCUMENTS, document_id, "Document not found")
    db.delete_where(DOCUMENTS, [eq("id", document_id)])
    try:
        storage.delete(PROFILE_BUCKET, [document["file_path"]])
    except Exception:
        logger.exception("Failed to delete storage object %s", document["file_path"])
    return {"success": True, "message": "Document deleted successfully"}


def _current_policy(db: DbClient):
    rows = db.select(
        POLICIES, [eq("is_active", True)], [Order("version", descending=True)], limit=1
    )
    return rows[0] if rows else None


def _policy_values(payload: PrivacyPolicyPayload) -> dict:
    values = payload.values()
    title = (values.get("title") or "").strip()
    content = (values.get("content") or "").strip()
    if not title or not content:
        raise HTTPException(status_code=400, detail="Title and content are required")
    values["title"] = title
    values["content"] = content
    values["contact_email"] = (
        (values.get("contact_email") or "").strip() or get_settings().privacy_contact_email
    )
    values.pop("id", None)
    return values


@router.get("/privacy-policy")
def get_privacy_policy(db: DbClient = Depends(get_db_client)):
    policy = _current_policy(db)
    if not policy:
        raise HTTPException(status_code=404, detail="Privacy policy not found")
    return {"success": True, "data": policy}


@router.post("/privacy-policy", status_code=201, dependencies=[Depends(require_admin)])
def create_privacy_policy(
    payload: PrivacyPolicyPayload, db: DbClient = Depends(get_db_client)
):
    values = _policy_values(payload)
    values.update(version=1, is_active=True)
    return {"success": True, "data": db.insert(POLICIES, values)}


@router.put("/privacy-policy", dependencies=[Depends(require_admin)])
def update_privacy_policy(
    payload: PrivacyPolicyPayload, db: DbClient = Depends(get_db_client)
):
    """Publish a new version; earlier versions stay stored but inactive."""
    values = _policy_values(payload)
    current = _current_policy(db)
    db.update_where(POLICIES, [eq("is_active", True)], {"is_active": False})
    values.update(version=(current["version"] + 1) if current else 1, is_active=True)
    policy = db.insert(POLICIES, values)
    logger.info("Published privacy policy version %d", policy["version"])
    return {"success": True, "data": policy}
