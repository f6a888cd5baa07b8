"""
Blog posts, categories and tags.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq, ilike_any, in_, lte, neq
from cms.dependencies import get_db_client
from cms.routes.common import (
    blank_fields_to_none,
    get_or_404,
    integrity_error,
    page_window,
    required_text,
)
from cms.schemas import BlogPostPayload
from shared.text_utils import calculate_reading_time, format_reading_time, slugify, unique_slug
from shared.time_utils import now_iso
from shared.types import BlogStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])

POSTS = "blog_posts"
CATEGORIES = "blog_categories"
TAGS = "blog_tags"
POST_TAGS = "blog_post_tags"
SORTABLE_FIELDS = ("published_at", "created_at", "updated_at", "title", "view_count")
NULLABLE_FIELDS = ("category_id", "scheduled_publish_at", "published_at")
FOREIGN_KEY_MESSAGES = {None: "Invalid category selected"}


def generate_slug(db: DbClient, table: str, text: str, exclude_id: Optional[str] = None) -> str:
    base = slugify(text) or "item"
    filters = [ilike_any(("slug",), base)]
    if exclude_id:
        filters.append(neq("id", exclude_id))
    existing = [row["slug"] for row in db.select(table, filters)]
    return unique_slug(text, existing)


def published_filters() -> list:
    return [eq("status", BlogStatus.PUBLISHED.value), lte("published_at", now_iso())]


def tags_by_post(db: DbClient, post_ids) -> dict[str, list[dict]]:
    links = db.select(POST_TAGS, [in_("post_id", post_ids)]) if post_ids else []
    tag_ids = {link["tag_id"] for link in links}
    tags = {tag["id"]: tag for tag in db.select(TAGS, [in_("id", tag_ids)])} if tag_ids else {}
    grouped: dict[str, list[dict]] = {}
    for link in links:
        tag = tags.get(link["tag_id"])
        if tag:
            grouped.setdefault(link["post_id"], []).append(tag)
    return grouped


def post_summaries(db: DbClient, posts: list[dict]) -> list[dict]:
    category_ids = {post["category_id"] for post in posts if post.get("category_id")}
    categories = (
        {row["id"]: row for row in db.select(CATEGORIES, [in_("id", category_ids)])}
        if category_ids
        else {}
    )
    tags = tags_by_post(db, {post["id"] for post in posts})
    summaries = []
    for post in posts:
        category = categories.get(post.get("category_id")) or {}
        minutes = calculate_reading_time(post.get("content") or "")
        summaries.append(
            {
                "id": post["id"],
                "title": post["title"],
                "slug": post["slug"],
                "excerpt": post.get("excerpt"),
                "featured_image_url": post.get("featured_image_url"),
                "featured_image_alt": post.get("featured_image_alt"),
                "published_at": post.get("published_at"),
                "status": post["status"],
                "is_featured": post["is_featured"],
                "category_name": category.get("name"),
                "category_slug": category.get("slug"),
                "category_color": category.get("color"),
                "view_count": post["view_count"],
                "tags": [tag["name"] for tag in tags.get(post["id"], [])],
                "reading_time": minutes,
                "reading_time_text": format_reading_time(minutes),
            }
        )
    return summaries


def check_tags(db: DbClient, tag_ids: list[str]) -> list[str]:
    """Distinct ``tag_ids``; 400 when any of them is not a stored tag."""
    unique_ids = list(dict.fromkeys(tag_ids))
    if unique_ids and db.count(TAGS, [in_("id", unique_ids)]) != len(unique_ids):
        raise HTTPException(status_code=400, detail="Invalid tag selected")
    return unique_ids


def link_tags(db: DbClient, post_id: str, tag_ids: list[str]) -> None:
    """Replace the post's tag links with ``tag_ids``."""
    db.delete_where(POST_TAGS, [eq("post_id", post_id)])
    for tag_id in dict.fromkeys(tag_ids):
        try:
            db.insert(POST_TAGS, {"post_id": post_id, "tag_id": tag_id})
        except IntegrityViolation as exc:
            raise HTTPException(status_code=400, detail="Invalid tag selected") from exc


def related_posts(db: DbClient, post_id: str, limit: int) -> list[dict]:
    """Same-category posts first, then the most recent others."""
    post = db.get(POSTS, post_id)
    if not post:
        return []
    filters = published_filters() + [neq("id", post_id)]
    order = [Order("published_at", descending=True)]
    related = []
    if post.get("category_id"):
        related = db.select(
            POSTS, filters + [eq("category_id", post["category_id"])], order, limit=limit
        )
    if len(related) < limit:
        seen = {row["id"] for row in related}
        for row in db.select(POSTS, filters, order, limit=limit + len(seen)):
            if row["id"] not in seen and len(related) < limit:
                related.append(row)
    return related


@router.get("/posts")
def list_posts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    status: str = BlogStatus.PUBLISHED.value,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    sort_by: str = "published_at",
    sort_order: str = "desc",
    related_to: Optional[str] = None,
    exclude: Optional[str] = None,
    db: DbClient = Depends(get_db_client),
):
    if related_to:
        posts = post_summaries(db, related_posts(db, related_to, page_size))
        return {
            "posts": posts,
            "total_count": len(posts),
            "page": 1,
            "page_size": page_size,
            "has_more": False,
        }

    empty = {"posts": [], "total_count": 0, "page": page, "page_size": page_size, "has_more": False}
    filters = []
    if status == BlogStatus.PUBLISHED.value:
        filters.extend(published_filters())
    elif status != "all":
        filters.append(eq("status", status))
    if category:
        row = db.find_one(CATEGORIES, [eq("slug", category)])
        if not row:
            return empty
        filters.append(eq("category_id", row["id"]))
    if tag:
        row = db.find_one(TAGS, [eq("slug", tag)])
        if not row:
            return empty
        post_ids = [link["post_id"] for link in db.select(POST_TAGS, [eq("tag_id", row["id"])])]
        filters.append(in_("id", post_ids))
    if featured:
        filters.append(eq("is_featured", True))
    if search:
        filters.append(ilike_any(("title", "excerpt"), search))
    if exclude:
        filters.append(neq("id", exclude))
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "published_at"

    offset = page_window(page, page_size)
    total = db.count(POSTS, filters)
    posts = db.select(
        POSTS,
        filters,
        [Order(sort_by, descending=sort_order.lower() != "asc")],
        limit=page_size,
        offset=offset,
    )
    return {
        "posts": post_summaries(db, posts),
        "total_count": total,
        "page": page,
        "page_size": page_size,
        "has_more": total > offset + page_size,
    }


@router.post("/posts", status_code=201, dependencies=[Depends(require_admin)])
def create_post(payload: BlogPostPayload, db: DbClient = Depends(get_db_client)):
    values = blank_fields_to_none(payload.values(), NULLABLE_FIELDS)
    tag_ids = check_tags(db, values.pop("tag_ids", None) or [])
    title = (values.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    values["title"] = title
    values["slug"] = values.get("slug") or generate_slug(db, POSTS, title)
    values.setdefault("status", BlogStatus.DRAFT.value)
    values["published_at"] = (
        now_iso() if values["status"] == BlogStatus.PUBLISHED.value else None
    )
    values.pop("view_count", None)
    try:
        post = db.insert(POSTS, values)
    except IntegrityViolation as exc:
        raise integrity_error(
            exc, {"slug": "A post with this slug already exists"}, FOREIGN_KEY_MESSAGES
        ) from exc
    link_tags(db, post["id"], tag_ids)
    logger.info("Created blog post %s", post["slug"])
    return {"success": True, "post": post}


@router.get("/posts/{slug}")
def get_post(slug: str, db: DbClient = Depends(get_db_client)):
    post = db.find_one(POSTS, published_filters() + [eq("slug", slug)])
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    post = db.update(POSTS, post["id"], {"view_count": post["view_count"] + 1})
    category = db.get(CATEGORIES, post["category_id"]) if post.get("category_id") else None
    minutes = calculate_reading_time(post.get("content") or "")
    return {
        "post": dict(
            post,
            category=category,
            tags=tags_by_post(db, [post["id"]]).get(post["id"], []),
            reading_time=minutes,
            reading_time_text=format_reading_time(minutes),
        )
    }


@router.put("/posts/{slug}", dependencies=[Depends(require_admin)])
def update_post(slug: str, payload: BlogPostPayload, db: DbClient = Depends(get_db_client)):
    existing = db.find_one(POSTS, [eq("slug", slug)]) or db.get(POSTS, slug)
    if not existing:
        raise HTTPException(status_code=404, detail="Post not found")
    values = blank_fields_to_none(payload.values(), NULLABLE_FIELDS)
    tag_ids = values.pop("tag_ids", None)
    if tag_ids is not None:
        tag_ids = check_tags(db, tag_ids)
    if "title" in values and not (values["title"] or "").strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if (
        values.get("status") == BlogStatus.PUBLISHED.value
        and existing["status"] != BlogStatus.PUBLISHED.value
        and not values.get("published_at")
    ):
        values["published_at"] = now_iso()
    try:
        post = db.update(POSTS, existing["id"], values)
    except IntegrityViolation as exc:
        raise integrity_error(
            exc, {"slug": "A post with this slug already exists"}, FOREIGN_KEY_MESSAGES
        ) from exc
    if tag_ids is not None:
        link_tags(db, existing["id"], tag_ids)
    return {"success": True, "post": post}


@router.delete("/posts/{slug}", dependencies=[Depends(require_admin)])
def delete_post(slug: str, db: DbClient = Depends(get_db_client)):
    existing = db.find_one(POSTS, [eq("slug", slug)]) or db.get(POSTS, slug)
    if not existing:
        raise HTTPException(status_code=404, detail="Post not found")
    db.delete_where(POSTS, [eq("id", existing["id"])])
    logger.info("Deleted blog post %s", existing["slug"])
    return {"success": True, "message": "Post deleted successfully"}


@router.get("/categories")
def list_blog_categories(
    include_inactive: bool = False, db: DbClient = Depends(get_db_client)
):
    filters = [] if include_inactive else [eq("is_active", True)]
    categories = db.select(CATEGORIES, filters, [Order("sort_order"), Order("name")])
    return {
        "categories": [
            dict(category, post_count=db.count(POSTS, [eq("category_id", category["id"])]))
            for category in categories
        ]
    }


@router.post("/categories", status_code=201, dependencies=[Depends(require_admin)])
def create_blog_category(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    name = required_text(payload, "name", "Name is required")
    values = dict(payload, name=name)
    values["slug"] = payload.get("slug") or generate_slug(db, CATEGORIES, name)
    try:
        category = db.insert(CATEGORIES, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, {"slug": "A category with this slug already exists"}) from exc
    return {"success": True, "category": category}


@router.put("/categories/{category_id}", dependencies=[Depends(require_admin)])
def update_blog_category(
    category_id: str, payload: dict = Body(...), db: DbClient = Depends(get_db_client)
):
    get_or_404(db, CATEGORIES, category_id, "Category not found")
    values = dict(payload)
    if "name" in values:
        values["name"] = required_text(values, "name", "Name is required")
        if "slug" not in values:
            values["slug"] = generate_slug(db, CATEGORIES, values["name"], exclude_id=category_id)
    try:
        category = db.update(CATEGORIES, category_id, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, {"slug": "A category with this slug already exists"}) from exc
    return {"success": True, "category": category}


@router.delete("/categories/{category_id}", dependencies=[Depends(require_admin)])
def delete_blog_category(category_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, CATEGORIES, category_id, "Category not found")
    in_use = db.count(POSTS, [eq("category_id", category_id)])
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category: {in_use} post(s) still use it",
        )
    db.delete_where(CATEGORIES, [eq("id", category_id)])
    return {"success": True, "message": "Category deleted successfully"}


@router.get("/tags")
def list_tags(db: DbClient = Depends(get_db_client)):
    tags = db.select(TAGS, order_by=[Order("name")])
    return {
        "tags": [
            dict(tag, post_count=db.count(POST_TAGS, [eq("tag_id", tag["id"])]))
            for tag in tags
        ]
    }


@router.post("/tags", status_code=201, dependencies=[Depends(require_admin)])
def create_tag(payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    name = required_text(payload, "name", "Name is required")
    values = dict(payload, name=name)
    values["slug"] = payload.get("slug") or generate_slug(db, TAGS, name)
    try:
        tag = db.insert(TAGS, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, {"slug": "A tag with this slug already exists"}) from exc
    return {"success": True, "tag": tag}


@router.put("/tags/{tag_id}", dependencies=[Depends(require_admin)])
def update_tag(tag_id: str, payload: dict = Body(...), db: DbClient = Depends(get_db_client)):
    get_or_404(db, TAGS, tag_id, "Tag not found")
    values = dict(payload)
    if "name" in values:
        values["name"] = required_text(values, "name", "Name is required")
        if "slug" not in values:
            values["slug"] = generate_slug(db, TAGS, values["name"], exclude_id=tag_id)
    try:
        tag = db.update(TAGS, tag_id, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, {"slug": "A tag with this slug already exists"}) from exc
    return {"success": True, "tag": tag}


@router.delete("/tags/{tag_id}", dependencies=[Depends(require_admin)])
def delete_tag(tag_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, TAGS, tag_id, "Tag not found")
    db.delete_where(TAGS, [eq("id", tag_id)])
    return {"success": True, "message": "Tag deleted successfully"}
