"""
Contact page: the public enquiry form, the admin inbox and the editable
page content (hero, form settings, group companies, map).
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq, gte, ilike_any, lte
from cms.dependencies import get_db_client, get_queue_client
from cms.queue import CONTACT_REPLY, CONTACT_SUBMISSION, JobQueue
from cms.routes.common import (
    client_details,
    get_or_404,
    integrity_error,
    page_window,
    queue_notification,
    required_text,
    total_pages,
)
from cms.schemas import ContactSubmissionPayload, ReplyPayload
from shared.spam import score_contact_submission
from shared.stats import submission_stats
from shared.text_utils import clean_optional, is_valid_email
from shared.time_utils import now_iso
from shared.types import SubmissionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])

SUBMISSIONS = "contact_form_submissions"
HERO = "contact_hero_section"
FORM_SETTINGS = "contact_form_settings"
COMPANIES = "contact_group_companies"
MAP = "contact_map_settings"
EDITABLE_FIELDS = ("status", "admin_notes", "handled_by", "is_spam")

DEFAULT_HERO = {
    "id": "default",
    "title": "Contact Us",
    "subtitle": (
        "Our team is standing by to answer your questions and direct you to the "
        "expertise you need for your next event"
    ),
    "background_image_url": None,
    "is_active": True,
}
DEFAULT_FORM_SETTINGS = {
    "id": "default",
    "form_title": "Feel Free To Write",
    "form_subtitle": "",
    "success_message": "Thank You for Your Message!",
    "success_description": (
        "We've received your inquiry and will get back to you within 24 hours."
    ),
    "sidebar_phone": "+971 54 347 4645",
    "sidebar_email": "info@chronicleexhibts.ae",
    "sidebar_address": (
        "Al Qouz Industrial Area 1st. No. 5B, Warehouse 14 P.O. Box 128046, Dubai - UAE"
    ),
    "enable_file_upload": True,
    "max_file_size_mb": 10,
    "allowed_file_types": [".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"],
    "require_terms_agreement": True,
    "terms_text": "By clicking submit, you agree to our Terms and Conditions",
    "is_active": True,
}
DEFAULT_COMPANIES = [
    {
        "id": "default-1",
        "region": "Triumfo Europe",
        "description": "European operations and services",
        "address": "Zum see 7, 14542 Werder (Havel), Germany",
        "phone": "+49 (0) 33 2774 99-100",
        "email": "enquiry@triumfo.de",
        "sort_order": 1,
        "is_active": True,
    },
    {
        "id": "default-2",
        "region": "Triumfo United States",
        "description": "North American operations and services",
        "address": "2782 Abels Ln, Las Vegas, NV 89115, USA",
        "phone": "+1 702 992 0440",
        "email": "enquiry@triumfo.us",
        "sort_order": 2,
        "is_active": True,
    },
    {
        "id": "default-3",
        "region": "Triumfo India",
        "description": "Indian operations and services",
        "address": "A-65 Sector-83, Phase II, Noida - 201305, India",
        "phone": "+91-0120-4690699",
        "email": "enquiry@triumfo.in",
        "sort_order": 3,
        "is_active": True,
    },
]
DEFAULT_MAP = {
    "id": "default",
    "map_embed_url": "https://www.google.com/maps/embed?pb=chronicle-exhibition-organizing",
    "map_title": "Dubai World Trade Centre Location",
    "map_height": 400,
    "parking_title": "On-site parking at Dubai World Trade Centre",
    "parking_description": (
        "PLAN YOUR ARRIVAL BY EXPLORING OUR USEFUL PARKING AND ACCESSIBILITY MAPS."
    ),
    "parking_background_image": None,
    "parking_maps_download_url": "#",
    "google_maps_url": "https://maps.google.com",
    "show_parking_section": True,
    "show_map_section": True,
    "is_active": True,
}


def _required(values: dict, fields: dict) -> None:
    for name, message in fields.items():
        required_text(values, name, message)


def _active(db: DbClient, table: str) -> Optional[dict]:
    return db.find_one(table, [eq("is_active", True)])


def _save_active(db: DbClient, table: str, values: dict) -> dict:
    """Update the active row of a single-record table, creating it if absent."""
    existing = _active(db, table)
    try:
        if existing:
            return db.update(table, existing["id"], values)
        return db.insert(table, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc


@router.post("/submit", status_code=201)
def submit_contact_form(
    payload: ContactSubmissionPayload,
    request: Request,
    db: DbClient = Depends(get_db_client),
    queue: JobQueue = Depends(get_queue_client),
):
    values = {key: clean_optional(value) for key, value in payload.values().items()}
    _required(
        values,
        {
            "name": "Name is required",
            "email": "Email is required",
            "message": "Message is required",
        },
    )
    values["email"] = values["email"].lower()
    if not is_valid_email(values["email"]):
        raise HTTPException(status_code=400, detail="Invalid email format")

    spam = score_contact_submission(
        values["name"], values["email"], values["message"], values.get("company_name")
    )
    for field in ("id", "status", "admin_notes", "handled_by", "handled_at"):
        values.pop(field, None)
    values.update(client_details(request))
    values["agreed_to_terms"] = bool(payload.agreed_to_terms)
    values["is_spam"] = spam.is_spam
    values["spam_score"] = spam.score
    values["status"] = (
        SubmissionStatus.SPAM.value if spam.is_spam else SubmissionStatus.NEW.value
    )

    try:
        submission = db.insert(SUBMISSIONS, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc

    if spam.is_spam:
        logger.info(
            "Contact submission %s flagged as spam (%.2f): %s",
            submission["id"],
            spam.score,
            "; ".join(spam.reasons),
        )
    else:
        queue_notification(queue, CONTACT_SUBMISSION, submission["id"])
    return {
        "success": True,
        "data": {
            "id": submission["id"],
            "message": "Thank you for your message. We will get back to you soon!",
        },
    }


@router.get("/submissions", dependencies=[Depends(require_admin)])
def list_contact_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    is_spam: Optional[bool] = None,
    db: DbClient = Depends(get_db_client),
):
    filters = []
    if status and status != "all":
        filters.append(eq("status", status))
    if search:
        filters.append(ilike_any(("name", "email", "company_name", "message"), search))
    if start_date:
        filters.append(gte("created_at", start_date))
    if end_date:
        filters.append(lte("created_at", end_date))
    if is_spam is not None:
        filters.append(eq("is_spam", is_spam))

    offset = page_window(page, limit)
    total = db.count(SUBMISSIONS, filters)
    rows = db.select(
        SUBMISSIONS,
        filters,
        [Order("created_at", descending=True)],
        limit=limit,
        offset=offset,
    )
    return {
        "submissions": rows,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }


@router.get("/submissions/stats", dependencies=[Depends(require_admin)])
def contact_submission_stats(db: DbClient = Depends(get_db_client)):
    return {"stats": submission_stats(db.select(SUBMISSIONS))}


@router.get("/submissions/{submission_id}", dependencies=[Depends(require_admin)])
def get_contact_submission(submission_id: str, db: DbClient = Depends(get_db_client)):
    return {"submission": get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")}


@router.patch("/submissions/{submission_id}", dependencies=[Depends(require_admin)])
def update_contact_submission(
    submission_id: str,
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")
    changes = {key: value for key, value in payload.items() if key in EDITABLE_FIELDS}
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if changes.get("handled_by"):
        changes["handled_at"] = now_iso()
    try:
        submission = db.update(SUBMISSIONS, submission_id, changes)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    return {"success": True, "submission": submission}


@router.delete("/submissions/{submission_id}", dependencies=[Depends(require_admin)])
def delete_contact_submission(submission_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")
    db.delete_where(SUBMISSIONS, [eq("id", submission_id)])
    return {"success": True, "message": "Submission deleted successfully"}


@router.post("/submissions/{submission_id}/reply", dependencies=[Depends(require_admin)])
def reply_to_submission(
    submission_id: str,
    payload: ReplyPayload,
    db: DbClient = Depends(get_db_client),
    queue: JobQueue = Depends(get_queue_client),
):
    message = (payload.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")
    get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")
    submission = db.update(
        SUBMISSIONS,
        submission_id,
        {"status": SubmissionStatus.REPLIED.value, "admin_notes": message},
    )
    queue_notification(queue, CONTACT_REPLY, submission_id, {"message": message})
    return {"success": True, "submission": submission}


@router.get("/hero")
def get_contact_hero(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _active(db, HERO)}


@router.put("/hero", dependencies=[Depends(require_admin)])
def save_contact_hero(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    _required(payload, {"title": "Title is required"})
    return {"success": True, "data": _save_active(db, HERO, payload)}


@router.get("/form-settings")
def get_form_settings(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _active(db, FORM_SETTINGS)}


@router.put("/form-settings", dependencies=[Depends(require_admin)])
def save_form_settings(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    _required(payload, {"form_title": "Form title is required"})
    size = payload.get("max_file_size_mb")
    if size is not None and not (isinstance(size, int) and 1 <= size <= 100):
        raise HTTPException(
            status_code=400, detail="Max file size must be between 1 and 100 MB"
        )
    return {"success": True, "data": _save_active(db, FORM_SETTINGS, payload)}


@router.get("/companies")
def list_companies(
    include_inactive: bool = False, db: DbClient = Depends(get_db_client)
):
    filters = [] if include_inactive else [eq("is_active", True)]
    return {"success": True, "data": db.select(COMPANIES, filters, [Order("sort_order")])}


@router.post("/companies", status_code=201, dependencies=[Depends(require_admin)])
def create_company(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    _required(payload, {"region": "Region is required"})
    try:
        company = db.insert(COMPANIES, payload)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    return {"success": True, "data": company}


@router.put("/companies/{company_id}", dependencies=[Depends(require_admin)])
def update_company(
    company_id: str, payload: dict = Body(...), db: DbClient = Depends(get_db_client)
):
    get_or_404(db, COMPANIES, company_id, "Company not found")
    if "region" in payload:
        _required(payload, {"region": "Region is required"})
    try:
        company = db.update(COMPANIES, company_id, payload)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    return {"success": True, "data": company}


@router.delete("/companies/{company_id}", dependencies=[Depends(require_admin)])
def delete_company(company_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, COMPANIES, company_id, "Company not found")
    db.delete_where(COMPANIES, [eq("id", company_id)])
    return {"success": True, "message": "Company deleted successfully"}


@router.get("/map")
def get_map_settings(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _active(db, MAP)}


@router.put("/map", dependencies=[Depends(require_admin)])
def save_map_settings(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    _required(payload, {"map_embed_url": "Map embed URL is required"})
    return {"success": True, "data": _save_active(db, MAP, payload)}


@router.get("/page-data")
def contact_page_data(db: DbClient = Depends(get_db_client)):
    """Everything the public contact page renders, with defaults for unset pieces."""
    companies = db.select(COMPANIES, [eq("is_active", True)], [Order("sort_order")])
    return {
        "success": True,
        "data": {
            "hero": _active(db, HERO) or DEFAULT_HERO,
            "formSettings": _active(db, FORM_SETTINGS) or DEFAULT_FORM_SETTINGS,
            "groupCompanies": companies or DEFAULT_COMPANIES,
            "mapSettings": _active(db, MAP) or DEFAULT_MAP,
        },
    }
