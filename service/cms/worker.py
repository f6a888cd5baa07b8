"""
Worker loop that turns queued notification jobs into Web3Forms emails.

Failed sends are re-queued until a job has been attempted ``MAX_ATTEMPTS``
times, then logged and dropped.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from cms.config import get_settings
from cms.db import DbClient
from cms.dependencies import get_db_client, get_notifier, get_queue_client
from cms.notifications import NotificationError, Notifier, form_type_from_message
from cms.queue import (
    CONTACT_REPLY,
    CONTACT_SUBMISSION,
    EVENT_SUBMISSION,
    JobQueue,
    NotificationJob,
)
from shared.types import FormType

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

SUBMISSION_TABLES = {
    CONTACT_SUBMISSION: "contact_form_submissions",
    CONTACT_REPLY: "contact_form_submissions",
    EVENT_SUBMISSION: "event_form_submissions",
}


def build_notification(job: NotificationJob, db: DbClient) -> Optional[dict]:
    """Email data for ``job``; None when the submission no longer exists."""
    table = SUBMISSION_TABLES.get(job.kind)
    if table is None:
        logger.warning("Unknown notification kind %s", job.kind)
        return None
    row = db.get(table, job.record_id)
    if not row:
        return None

    admin_url = get_settings().admin_panel_url.rstrip("/")
    data = dict(row)
    if job.kind == EVENT_SUBMISSION:
        data["form_type"] = FormType.EVENT.value
        data["submission_url"] = f"{admin_url}/pages/events/submissions?id={row['id']}"
        if row.get("event_id"):
            event = db.get("events", row["event_id"])
            if event:
                data["event_title"] = event["title"]
    elif job.kind == CONTACT_SUBMISSION:
        data["form_type"] = form_type_from_message(row.get("message")).value
        data["submission_url"] = f"{admin_url}/pages/contact?submission={row['id']}"
    else:
        data["form_type"] = FormType.CONTACT.value
        data["subject"] = f"Reply sent to {row['name']}"
        data["message"] = job.payload.get("message") or row.get("admin_notes") or ""
        data["submission_url"] = f"{admin_url}/pages/contact?submission={row['id']}"
    return data


def process_job(
    job: NotificationJob, db: DbClient, queue: JobQueue, notifier: Notifier
) -> bool:
    """Send one notification; re-queue on failure. Returns True when sent."""
    data = build_notification(job, db)
    if data is None:
        logger.warning(
            "Received %s job for %s but no DB record found", job.kind, job.record_id
        )
        return False

    job.attempts += 1
    try:
        notifier.send(data)
    except NotificationError:
        if job.attempts < MAX_ATTEMPTS:
            logger.warning(
                "[%s] Notification attempt %d failed; re-queueing",
                job.record_id,
                job.attempts,
            )
            queue.enqueue(job)
        else:
            logger.exception(
                "[%s] Giving up on %s notification after %d attempts",
                job.record_id,
                job.kind,
                job.attempts,
            )
        return False
    logger.info("[%s] Sent %s notification", job.record_id, job.kind)
    return True


def process_next(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[JobQueue] = None,
    notifier: Optional[Notifier] = None,
    block: bool = True,
    timeout: Optional[int] = None,
) -> bool:
    """
    Fetch and process one job from the queue. Returns True if a job was taken.
    """
    db = db or get_db_client()
    queue = queue or get_queue_client()
    notifier = notifier or get_notifier()

    job = queue.dequeue(block=block, timeout=timeout)
    if job is None:
        return False
    process_job(job, db, queue, notifier)
    return True


def run_loop(poll_interval_seconds: float = 2.0) -> None:
    """
    Simple polling loop that blocks on the queue. Intended to be run under systemd/supervisor.
    """
    logging.basicConfig(level=logging.INFO)
    db = get_db_client()
    queue = get_queue_client()
    notifier = get_notifier()
    while True:
        processed = process_next(
            db=db,
            queue=queue,
            notifier=notifier,
            block=True,
            timeout=int(poll_interval_seconds),
        )
        if not processed:
            time.sleep(poll_interval_seconds)


if __name__ == "__main__":
    run_loop()
