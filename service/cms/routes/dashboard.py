"""
Admin home page counters and the recent activity feed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cms.auth import require_admin
from cms.db import DbClient, Order, eq, gte, not_null
from cms.dependencies import get_db_client
from shared.page_catalog import PAGE_CATALOG
from shared.stats import (
    blog_activity,
    city_activity,
    event_activity,
    merge_recent_activity,
    submission_activity,
)
from shared.time_utils import start_of_day, to_iso, utc_now
from shared.types import BlogStatus

router = APIRouter(prefix="/admin", tags=["dashboard"], dependencies=[Depends(require_admin)])


def _newest(db: DbClient, table: str, limit: int) -> list[dict]:
    return db.select(table, order_by=[Order("created_at", descending=True)], limit=limit)


@router.get("/dashboard")
def admin_dashboard(db: DbClient = Depends(get_db_client)):
    today = to_iso(start_of_day(utc_now()))
    stats = {
        "total_pages": len(PAGE_CATALOG),
        "total_events": db.count("events"),
        "published_events": db.count(
            "events", [eq("is_active", True), not_null("published_at")]
        ),
        "total_blog_posts": db.count("blog_posts"),
        "published_blogs": db.count(
            "blog_posts", [eq("status", BlogStatus.PUBLISHED.value)]
        ),
        "total_cities": db.count("cities"),
        "total_submissions": db.count("contact_form_submissions"),
        "submissions_today": db.count(
            "contact_form_submissions", [gte("created_at", today)]
        ),
    }
    activity = (
        [event_activity(row) for row in _newest(db, "events", 3)]
        + [blog_activity(row) for row in _newest(db, "blog_posts", 3)]
        + [city_activity(row) for row in _newest(db, "cities", 2)]
        + [submission_activity(row) for row in _newest(db, "contact_form_submissions", 3)]
    )
    return {"stats": stats, "recent_activity": merge_recent_activity(activity)}
