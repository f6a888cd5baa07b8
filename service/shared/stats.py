"""
Counting helpers behind the admin dashboards.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from shared.text_utils import truncate
from shared.time_utils import parse_datetime, start_of_day, start_of_month, utc_now
from shared.types import SubmissionStatus, TrendDirection

RECENT_ACTIVITY_LIMIT = 10


def calculate_trend(current: int, previous: int) -> dict:
    """Compare two period counts as ``{value, percentage, direction}``."""
    if previous == 0:
        return {
            "value": current,
            "percentage": 100.0 if current > 0 else 0.0,
            "direction": (
                TrendDirection.UP.value if current > 0 else TrendDirection.NEUTRAL.value
            ),
        }
    percentage = (current - previous) / previous * 100
    if percentage > 0:
        direction = TrendDirection.UP
    elif percentage < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.NEUTRAL
    return {
        "value": current,
        "percentage": abs(percentage),
        "direction": direction.value,
    }


def submission_stats(rows: Iterable[dict], now: Optional[datetime] = None) -> dict:
    now = now or utc_now()
    today = start_of_day(now)
    this_week = now - timedelta(days=7)
    this_month = start_of_month(now)

    stats = {
        "total": 0,
        "new": 0,
        "read": 0,
        "replied": 0,
        "archived": 0,
        "spam": 0,
        "today": 0,
        "this_week": 0,
        "this_month": 0,
    }
    status_keys = {
        SubmissionStatus.NEW.value,
        SubmissionStatus.READ.value,
        SubmissionStatus.REPLIED.value,
        SubmissionStatus.ARCHIVED.value,
    }
    for row in rows:
        stats["total"] += 1
        if row.get("status") in status_keys:
            stats[row["status"]] += 1
        if row.get("is_spam"):
            stats["spam"] += 1
        created = parse_datetime(row.get("created_at"))
        if created is None:
            continue
        if created >= today:
            stats["today"] += 1
        if created >= this_week:
            stats["this_week"] += 1
        if created >= this_month:
            stats["this_month"] += 1
    return stats


def activity_entry(kind: str, title: str, timestamp: str, status: str) -> dict:
    return {"type": kind, "title": title, "timestamp": timestamp, "status": status}


def event_activity(event: dict) -> dict:
    published = bool(event.get("published_at")) and bool(event.get("is_active"))
    return activity_entry(
        "event",
        f"Event: {event.get('title')}",
        event.get("created_at"),
        "published" if published else "draft",
    )


def blog_activity(post: dict) -> dict:
    return activity_entry(
        "blog", f"Blog: {post.get('title')}", post.get("created_at"), post.get("status")
    )


def city_activity(city: dict) -> dict:
    return activity_entry(
        "city",
        f"City: {city.get('name')}",
        city.get("created_at"),
        "active" if city.get("is_active") else "inactive",
    )


def submission_activity(submission: dict) -> dict:
    preview = truncate(submission.get("message") or "", 50)
    return activity_entry(
        "form",
        f"Form: {submission.get('name')} - {preview}",
        submission.get("created_at"),
        submission.get("status"),
    )


def merge_recent_activity(
    entries: Iterable[dict], limit: int = RECENT_ACTIVITY_LIMIT
) -> list[dict]:
    """Newest first, entries without a parseable timestamp last."""
    floor = datetime.min.replace(tzinfo=utc_now().tzinfo)
    ordered = sorted(
        entries,
        key=lambda entry: parse_datetime(entry.get("timestamp")) or floor,
        reverse=True,
    )
    return ordered[:limit]
