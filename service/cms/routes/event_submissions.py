"""
Event enquiry form: public submit plus the admin inbox.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq, ilike_any, in_
from cms.dependencies import get_db_client, get_queue_client
from cms.queue import EVENT_SUBMISSION, JobQueue
from cms.routes.common import (
    client_details,
    get_or_404,
    integrity_error,
    page_window,
    queue_notification,
    total_pages,
)
from cms.schemas import BulkSubmissionAction, BulkSubmissionDelete, EventSubmissionPayload
from shared.spam import is_event_submission_spam
from shared.text_utils import clean_optional, is_valid_email
from shared.time_utils import now_iso
from shared.types import SubmissionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events/submissions", tags=["event-submissions"])

SUBMISSIONS = "event_form_submissions"
SORTABLE_FIELDS = ("created_at", "updated_at", "name", "email", "status")
EDITABLE_FIELDS = ("status", "admin_notes", "handled_by", "is_spam")

BULK_ACTIONS = {
    "mark_read": {"status": SubmissionStatus.READ.value},
    "mark_unread": {"status": SubmissionStatus.NEW.value},
    "mark_replied": {"status": SubmissionStatus.REPLIED.value},
    "archive": {"status": SubmissionStatus.ARCHIVED.value},
    "mark_spam": {"is_spam": True, "status": SubmissionStatus.ARCHIVED.value},
    "mark_not_spam": {"is_spam": False, "status": SubmissionStatus.NEW.value},
}


def with_event_title(rows: list[dict], db: DbClient) -> list[dict]:
    event_ids = {row["event_id"] for row in rows if row.get("event_id")}
    events = {}
    if event_ids:
        events = {
            event["id"]: event
            for event in db.select("events", [in_("id", event_ids)])
        }
    return [
        dict(
            row,
            event_title=(events.get(row.get("event_id")) or {}).get("title"),
            event_slug=(events.get(row.get("event_id")) or {}).get("slug"),
        )
        for row in rows
    ]


@router.post("", status_code=201)
def submit_event_enquiry(
    payload: EventSubmissionPayload,
    request: Request,
    db: DbClient = Depends(get_db_client),
    queue: JobQueue = Depends(get_queue_client),
):
    values = {key: clean_optional(value) for key, value in payload.values().items()}
    if not values.get("name") or not values.get("email"):
        raise HTTPException(status_code=400, detail="Name and email are required")
    if not is_valid_email(values["email"]):
        raise HTTPException(status_code=400, detail="Invalid email format")
    values["email"] = values["email"].lower()

    if values.get("event_id") and not db.get("events", values["event_id"]):
        raise HTTPException(status_code=400, detail="Event not found")

    spam = is_event_submission_spam(values["name"], values["email"], values.get("message"))
    values.update(client_details(request))
    values["is_spam"] = spam
    values["spam_score"] = 1.0 if spam else 0.0
    values["status"] = (
        SubmissionStatus.ARCHIVED.value if spam else SubmissionStatus.NEW.value
    )
    for field in ("id", "admin_notes", "handled_by", "handled_at"):
        values.pop(field, None)

    try:
        submission = db.insert(SUBMISSIONS, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc

    if spam:
        logger.info("Event submission %s flagged as spam", submission["id"])
    else:
        queue_notification(queue, EVENT_SUBMISSION, submission["id"])
    return {
        "success": True,
        "message": "Thank you for your enquiry. We will get back to you soon.",
        "submission_id": submission["id"],
    }


@router.get("", dependencies=[Depends(require_admin)])
def list_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    event_id: Optional[str] = None,
    search: Optional[str] = None,
    is_spam: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: DbClient = Depends(get_db_client),
):
    filters = []
    if status:
        filters.append(eq("status", status))
    if event_id:
        filters.append(eq("event_id", event_id))
    if is_spam is not None:
        filters.append(eq("is_spam", is_spam))
    if search:
        filters.append(ilike_any(("name", "email", "company_name", "message"), search))
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "created_at"

    offset = page_window(page, limit)
    total = db.count(SUBMISSIONS, filters)
    rows = db.select(
        SUBMISSIONS,
        filters,
        [Order(sort_by, descending=sort_order.lower() != "asc")],
        limit=limit,
        offset=offset,
    )
    pages = total_pages(total, limit)
    return {
        "submissions": with_event_title(rows, db),
        "pagination": {
            "current_page": page,
            "total_pages": pages,
            "total_count": total,
            "per_page": limit,
            "has_next": page < pages,
            "has_prev": page > 1,
        },
    }


@router.put("", dependencies=[Depends(require_admin)])
def bulk_update_submissions(
    payload: BulkSubmissionAction,
    db: DbClient = Depends(get_db_client),
):
    if not payload.action or not payload.submission_ids:
        raise HTTPException(status_code=400, detail="Invalid request data")
    if payload.action == "update":
        changes = {
            key: value
            for key, value in (payload.data or {}).items()
            if key in EDITABLE_FIELDS
        }
    elif payload.action in BULK_ACTIONS:
        changes = dict(BULK_ACTIONS[payload.action])
    else:
        raise HTTPException(status_code=400, detail="Invalid action")
    if changes.get("handled_by"):
        changes["handled_at"] = now_iso()

    try:
        rows = db.update_where(SUBMISSIONS, [in_("id", payload.submission_ids)], changes)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    logger.info("Bulk %s applied to %d event submissions", payload.action, len(rows))
    return {"success": True, "updated_count": len(rows), "submissions": rows}


@router.delete("", dependencies=[Depends(require_admin)])
def bulk_delete_submissions(
    payload: BulkSubmissionDelete,
    db: DbClient = Depends(get_db_client),
):
    if not payload.submission_ids:
        raise HTTPException(status_code=400, detail="Invalid request data")
    deleted = db.delete_where(SUBMISSIONS, [in_("id", payload.submission_ids)])
    return {"success": True, "deleted_count": len(deleted)}


@router.get("/{submission_id}", dependencies=[Depends(require_admin)])
def get_submission(submission_id: str, db: DbClient = Depends(get_db_client)):
    row = get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")
    return {"submission": with_event_title([row], db)[0]}


@router.patch("/{submission_id}", dependencies=[Depends(require_admin)])
def update_submission(
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
        row = db.update(SUBMISSIONS, submission_id, changes)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    return {"success": True, "submission": row}


@router.delete("/{submission_id}", dependencies=[Depends(require_admin)])
def delete_submission(submission_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, SUBMISSIONS, submission_id, "Submission not found")
    db.delete_where(SUBMISSIONS, [eq("id", submission_id)])
    return {"success": True, "message": "Submission deleted successfully"}
