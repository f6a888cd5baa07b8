"""
Event routes: public listing, detail, search and statistics plus admin CRUD.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query

from cms.auth import is_admin_request, require_admin
from cms.db import (
    DbClient,
    IntegrityViolation,
    Order,
    eq,
    gte,
    ilike_any,
    in_,
    is_null,
    lt,
    lte,
    neq,
    not_null,
)
from cms.dependencies import get_db_client, get_storage_client
from cms.routes.common import (
    blank_fields_to_none,
    integrity_error,
    page_window,
    public_image_url,
    total_pages,
    with_public_images,
)
from cms.schemas import BulkEventAction, BulkEventDelete, EventSearchRequest
from cms.storage import StorageClient
from shared.events_listing import (
    ALL_FILTER,
    DEFAULT_CARDS_TO_SHOW,
    CarouselWindow,
    build_listing,
    format_date_range,
)
from shared.image_url import BUCKETS, PLACEHOLDER_IMAGE
from shared.search import build_suggestions, normalize_query, rank_events
from shared.stats import calculate_trend
from shared.text_utils import is_uuid, slugify
from shared.time_utils import days_ago_iso, now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

EVENTS = "events"
RELATED_EVENTS_LIMIT = 6
NULLABLE_FIELDS = ("category_id", "start_date", "end_date", "published_at")
SEARCH_FIELDS = ("title", "description", "organizer", "venue")
SORTABLE_FIELDS = (
    "created_at",
    "updated_at",
    "title",
    "start_date",
    "end_date",
    "display_order",
    "organizer",
    "published_at",
)
UNIQUE_MESSAGES = {
    "slug": "An event with this URL slug already exists",
    "title": "An event with this title already exists",
}
FOREIGN_KEY_MESSAGES = {
    "category_id": "Invalid category selected. Please choose a valid category.",
    None: "Invalid category selected. Please choose a valid category.",
}
SEARCH_TOO_SHORT = "Search query must be at least 2 characters long"


def public_filters() -> list:
    return [eq("is_active", True), not_null("published_at")]


def with_category(events: list[dict], db: DbClient) -> list[dict]:
    """Attach category_name/slug/color and public image URLs to each event row."""
    category_ids = {event["category_id"] for event in events if event.get("category_id")}
    categories = {}
    if category_ids:
        categories = {
            row["id"]: row
            for row in db.select("event_categories", [in_("id", category_ids)])
        }
    enriched = []
    for event in events:
        category = categories.get(event.get("category_id")) or {}
        enriched.append(
            dict(
                with_public_images(event, BUCKETS["events"]),
                category_name=category.get("name"),
                category_slug=category.get("slug"),
                category_color=category.get("color"),
                card_image_url=public_image_url(
                    event.get("featured_image_url"), BUCKETS["events"], PLACEHOLDER_IMAGE
                ),
            )
        )
    return enriched


def prepare_event_values(values: dict, existing: Optional[dict] = None) -> dict:
    """Clean an event payload: blank ids/dates to null, slug and date_range filled in."""
    values = blank_fields_to_none(values, NULLABLE_FIELDS)
    if existing is None and not values.get("slug") and values.get("title"):
        values["slug"] = slugify(values["title"])
    merged = dict(existing or {}, **values)
    if not merged.get("date_range") and merged.get("start_date"):
        values["date_range"] = format_date_range(merged["start_date"], merged.get("end_date"))
    return values


def find_event(db: DbClient, id_or_slug: str) -> Optional[dict]:
    field = "id" if is_uuid(id_or_slug) else "slug"
    return db.find_one(EVENTS, [eq(field, id_or_slug)])


def _sort(sort_by: str, sort_order: str) -> list[Order]:
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "created_at"
    return [Order(sort_by, descending=sort_order.lower() != "asc")]


def _delete_event_images(db: DbClient, storage: StorageClient, event_ids: list[str]) -> None:
    images = db.delete_where("event_images", [in_("event_id", event_ids)])
    paths = [image["file_path"] for image in images if image.get("file_path")]
    if not paths:
        return
    try:
        storage.delete(BUCKETS["events"], paths)
    except Exception:
        logger.exception("Failed to remove %d event image objects", len(paths))


@router.get("")
def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category_slug: Optional[str] = None,
    is_featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    is_active: bool = True,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: DbClient = Depends(get_db_client),
):
    filters = [eq("is_active", is_active)]
    if is_active:
        filters.append(not_null("published_at"))
    if category_slug:
        category = db.find_one("event_categories", [eq("slug", category_slug)])
        if not category:
            return {
                "events": [],
                "total": 0,
                "page": page,
                "limit": limit,
                "has_more": False,
                "total_pages": 0,
            }
        filters.append(eq("category_id", category["id"]))
    if is_featured is not None:
        filters.append(eq("is_featured", is_featured))
    if search:
        filters.append(ilike_any(("title", "description", "organizer"), search))
    if start_date:
        filters.append(gte("start_date", start_date))
    if end_date:
        filters.append(lte("end_date", end_date))

    offset = page_window(page, limit)
    total = db.count(EVENTS, filters)
    events = db.select(
        EVENTS, filters, _sort(sort_by, sort_order), limit=limit, offset=offset
    )
    return {
        "events": with_category(events, db),
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": total > offset + limit,
        "total_pages": total_pages(total, limit),
    }


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_event(
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    values = prepare_event_values(payload)
    values.pop("id", None)
    try:
        event = db.insert(EVENTS, values)
    except IntegrityViolation as exc:
        logger.warning("Rejected event create: %s", exc)
        raise integrity_error(exc, UNIQUE_MESSAGES, FOREIGN_KEY_MESSAGES) from exc
    logger.info("Created event %s (%s)", event["id"], event["slug"])
    return {"success": True, "event": with_category([event], db)[0]}


@router.put("", dependencies=[Depends(require_admin)])
def bulk_update_events(
    payload: BulkEventAction,
    db: DbClient = Depends(get_db_client),
):
    if not payload.action or payload.event_ids is None:
        raise HTTPException(status_code=400, detail="Invalid request data")

    actions = {
        "activate": {"is_active": True},
        "deactivate": {"is_active": False},
        "feature": {"is_featured": True},
        "unfeature": {"is_featured": False},
        "publish": {"published_at": now_iso(), "is_active": True},
        "unpublish": {"published_at": None},
    }
    if payload.action == "update":
        changes = blank_fields_to_none(payload.data or {}, NULLABLE_FIELDS)
    elif payload.action in actions:
        changes = actions[payload.action]
    else:
        raise HTTPException(status_code=400, detail="Invalid action")

    try:
        events = db.update_where(EVENTS, [in_("id", payload.event_ids)], changes)
    except IntegrityViolation as exc:
        raise integrity_error(exc, UNIQUE_MESSAGES, FOREIGN_KEY_MESSAGES) from exc
    logger.info("Bulk %s applied to %d events", payload.action, len(events))
    return {"success": True, "updated_count": len(events), "events": events}


@router.delete("", dependencies=[Depends(require_admin)])
def bulk_delete_events(
    payload: BulkEventDelete,
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    if payload.event_ids is None:
        raise HTTPException(status_code=400, detail="Invalid request data")
    _delete_event_images(db, storage, payload.event_ids)
    deleted = db.delete_where(EVENTS, [in_("id", payload.event_ids)])
    logger.info("Deleted %d events", len(deleted))
    return {
        "success": True,
        "deleted_count": len(deleted),
        "deleted_events": [{"id": row["id"], "title": row["title"]} for row in deleted],
    }


@router.get("/listing")
def events_listing(
    month: str = ALL_FILTER,
    index: int = 0,
    cards: int = Query(DEFAULT_CARDS_TO_SHOW, ge=1, le=12),
    db: DbClient = Depends(get_db_client),
):
    """Month filter options and the carousel page for the public What's On gallery."""
    events = db.select(
        EVENTS,
        public_filters(),
        [Order("start_date"), Order("display_order"), Order("created_at", descending=True)],
    )
    try:
        return build_listing(with_category(events, db), month=month, index=index, cards_to_show=cards)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/search")
def search_events(
    q: Optional[str] = None,
    query: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = None,
    event_type: Optional[str] = Query(None, alias="type"),
    venue: Optional[str] = None,
    organizer: Optional[str] = None,
    db: DbClient = Depends(get_db_client),
):
    term = normalize_query(q or query)
    if term is None:
        raise HTTPException(status_code=400, detail=SEARCH_TOO_SHORT)

    filters = public_filters() + [ilike_any(SEARCH_FIELDS, term)]
    if event_type:
        filters.append(ilike_any(("event_type",), event_type))
    if venue:
        filters.append(ilike_any(("venue",), venue))
    if organizer:
        filters.append(ilike_any(("organizer",), organizer))
    results = with_category(db.select(EVENTS, filters), db)
    if category:
        results = [event for event in results if event["category_slug"] == category]

    ranked = rank_events(results, term)
    offset = page_window(page, limit)
    return {
        "results": ranked[offset : offset + limit],
        "total": len(ranked),
        "query": term,
        "page": page,
        "limit": limit,
        "has_more": len(ranked) > offset + limit,
        "filters": {
            "category_slug": category,
            "event_type": event_type,
            "venue": venue,
            "organizer": organizer,
        },
    }


@router.post("/search")
def advanced_search_events(
    payload: EventSearchRequest,
    db: DbClient = Depends(get_db_client),
):
    term = normalize_query(payload.query)
    if term is None:
        raise HTTPException(status_code=400, detail=SEARCH_TOO_SHORT)

    filters = public_filters() + [ilike_any(SEARCH_FIELDS, term)]
    options = payload.filters
    if options.get("category_id"):
        filters.append(eq("category_id", options["category_id"]))
    for name in ("event_type", "industry", "audience", "venue", "organizer"):
        if options.get(name):
            filters.append(ilike_any((name,), options[name]))
    if options.get("is_featured") is not None:
        filters.append(eq("is_featured", bool(options["is_featured"])))
    if options.get("start_date"):
        filters.append(gte("start_date", options["start_date"]))
    if options.get("end_date"):
        filters.append(lte("end_date", options["end_date"]))

    sort_by = "start_date" if payload.sort_by == "date" else payload.sort_by
    if sort_by == "relevance":
        order = [Order("is_featured", descending=True), Order("created_at", descending=True)]
    else:
        order = _sort(sort_by, payload.sort_order)

    rows = with_category(db.select(EVENTS, filters, order), db)
    results = rank_events(rows, term, sort_by_score=sort_by == "relevance")
    offset = page_window(payload.page, payload.limit)
    return {
        "results": results[offset : offset + payload.limit],
        "total": len(results),
        "query": term,
        "page": payload.page,
        "limit": payload.limit,
        "has_more": len(results) > offset + payload.limit,
        "filters": options,
        "sort_by": payload.sort_by,
        "sort_order": payload.sort_order,
    }


@router.get("/search/suggestions")
def search_suggestions(
    q: str = "",
    limit: int = Query(5, ge=1, le=20),
    db: DbClient = Depends(get_db_client),
):
    term = normalize_query(q)
    if term is None:
        return {"suggestions": []}
    events = db.select(
        EVENTS, public_filters() + [ilike_any(("title", "organizer", "venue"), term)]
    )
    return {"suggestions": build_suggestions(events, term, limit=limit), "query": term}


def event_statistics(db: DbClient) -> dict:
    now = now_iso()
    return {
        "total_events": db.count(EVENTS),
        "active_events": db.count(EVENTS, [eq("is_active", True)]),
        "featured_events": db.count(EVENTS, [eq("is_featured", True)]),
        "total_categories": db.count("event_categories"),
        "active_categories": db.count("event_categories", [eq("is_active", True)]),
        "total_submissions": db.count("event_form_submissions"),
        "new_submissions": db.count("event_form_submissions", [eq("status", "new")]),
        "upcoming_events": db.count(EVENTS, public_filters() + [gte("start_date", now)]),
        "past_events": db.count(EVENTS, public_filters() + [lt("end_date", now)]),
        "draft_events": db.count(EVENTS, [is_null("published_at")]),
        "recent_submissions": db.count(
            "event_form_submissions", [gte("created_at", days_ago_iso(7))]
        ),
    }


@router.get("/statistics", dependencies=[Depends(require_admin)])
def get_statistics(db: DbClient = Depends(get_db_client)):
    return {"statistics": event_statistics(db)}


@router.get("/statistics/dashboard", dependencies=[Depends(require_admin)])
def get_statistics_dashboard(db: DbClient = Depends(get_db_client)):
    recent_events = with_category(
        db.select(EVENTS, order_by=[Order("created_at", descending=True)], limit=10), db
    )
    upcoming_events = with_category(
        db.select(
            EVENTS,
            public_filters() + [gte("start_date", now_iso())],
            [Order("start_date")],
            limit=5,
        ),
        db,
    )
    submissions = db.select(
        "event_form_submissions", order_by=[Order("created_at", descending=True)], limit=10
    )
    titles = {
        row["id"]: row["title"]
        for row in db.select(
            EVENTS, [in_("id", {s["event_id"] for s in submissions if s.get("event_id")})]
        )
    }
    recent_submissions = [
        dict(submission, event_title=titles.get(submission.get("event_id")))
        for submission in submissions
    ]
    categories = [
        dict(
            category,
            event_count=db.count(
                EVENTS, [eq("category_id", category["id"]), eq("is_active", True)]
            ),
        )
        for category in db.select(
            "event_categories", [eq("is_active", True)], [Order("display_order")]
        )
    ]
    thirty_days_ago = days_ago_iso(30)
    current = db.count(EVENTS, [gte("created_at", thirty_days_ago)])
    previous = db.count(
        EVENTS, [gte("created_at", days_ago_iso(60)), lt("created_at", thirty_days_ago)]
    )
    return {
        "dashboard": {
            "statistics": event_statistics(db),
            "recent_events": recent_events,
            "upcoming_events": upcoming_events,
            "recent_submissions": recent_submissions,
            "categories": categories,
            "trends": {"events": calculate_trend(current, previous)},
        }
    }


@router.get("/{id_or_slug}")
def get_event(
    id_or_slug: str,
    admin: bool = False,
    authorization: Optional[str] = Header(default=None),
    db: DbClient = Depends(get_db_client),
):
    event = find_event(db, id_or_slug)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    # drafts and hidden events are only visible to admin reads
    if not (event.get("is_active") and event.get("published_at")) and not (
        admin and is_admin_request(authorization)
    ):
        raise HTTPException(status_code=404, detail="Event not found")

    related = db.select(
        EVENTS,
        public_filters() + [neq("id", event["id"])],
        [Order("created_at", descending=True)],
        limit=RELATED_EVENTS_LIMIT,
    )
    if not related:
        related = db.select(
            EVENTS,
            [eq("is_active", True), neq("id", event["id"])],
            [Order("created_at", descending=True)],
            limit=RELATED_EVENTS_LIMIT,
        )
    gallery = db.select(
        "event_images",
        [eq("event_id", event["id"]), eq("is_active", True), eq("image_type", "gallery")],
        [Order("display_order")],
    )
    gallery = [
        dict(image, url=public_image_url(image["file_path"], BUCKETS["events"]))
        for image in gallery
    ]
    window = CarouselWindow(total=len(related), wrap=True)
    return {
        "event": dict(with_category([event], db)[0], gallery_images=gallery),
        "related_events": with_category(related, db),
        "related_carousel": window.as_dict(),
    }


@router.put("/{event_id}", dependencies=[Depends(require_admin)])
def update_event(
    event_id: str,
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    existing = find_event(db, event_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Event not found")
    values = prepare_event_values(payload, existing)
    try:
        event = db.update(EVENTS, existing["id"], values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, UNIQUE_MESSAGES, FOREIGN_KEY_MESSAGES) from exc
    logger.info("Updated event %s", existing["id"])
    return {"success": True, "event": with_category([event], db)[0]}


@router.delete("/{event_id}", dependencies=[Depends(require_admin)])
def delete_event(
    event_id: str,
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    existing = find_event(db, event_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Event not found")
    _delete_event_images(db, storage, [existing["id"]])
    db.delete_where(EVENTS, [eq("id", existing["id"])])
    logger.info("Deleted event %s", existing["id"])
    return {"success": True, "message": "Event deleted successfully"}
