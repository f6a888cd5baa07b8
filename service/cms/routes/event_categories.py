"""
Event categories and the events page hero.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq
from cms.dependencies import get_db_client
from cms.routes.common import get_or_404, integrity_error, required_text
from shared.text_utils import slugify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

CATEGORIES = "event_categories"
HERO = "events_hero"
CATEGORY_UNIQUE = {"slug": "A category with this slug already exists"}


@router.get("/categories")
def list_categories(
    is_active: Optional[bool] = None,
    include_counts: bool = False,
    db: DbClient = Depends(get_db_client),
):
    filters = [eq("is_active", is_active)] if is_active is not None else []
    categories = db.select(CATEGORIES, filters, [Order("display_order"), Order("name")])
    if include_counts:
        categories = [
            dict(
                category,
                event_count=db.count(
                    "events", [eq("category_id", category["id"]), eq("is_active", True)]
                ),
            )
            for category in categories
        ]
    return {"categories": categories}


@router.post("/categories", status_code=201, dependencies=[Depends(require_admin)])
def create_category(
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    name = required_text(payload, "name", "Category name is required")
    values = dict(payload, name=name)
    values["slug"] = payload.get("slug") or slugify(name)
    try:
        category = db.insert(CATEGORIES, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, CATEGORY_UNIQUE) from exc
    logger.info("Created event category %s", category["slug"])
    return {"success": True, "category": category}


@router.get("/categories/{category_id}")
def get_category(category_id: str, db: DbClient = Depends(get_db_client)):
    return {"category": get_or_404(db, CATEGORIES, category_id, "Category not found")}


@router.put("/categories/{category_id}", dependencies=[Depends(require_admin)])
def update_category(
    category_id: str,
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    get_or_404(db, CATEGORIES, category_id, "Category not found")
    values = dict(payload)
    if "name" in values:
        values["name"] = required_text(values, "name", "Category name is required")
        if "slug" not in values:
            values["slug"] = slugify(values["name"])
    try:
        category = db.update(CATEGORIES, category_id, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, CATEGORY_UNIQUE) from exc
    return {"success": True, "category": category}


@router.delete("/categories/{category_id}", dependencies=[Depends(require_admin)])
def delete_category(category_id: str, db: DbClient = Depends(get_db_client)):
    get_or_404(db, CATEGORIES, category_id, "Category not found")
    in_use = db.count("events", [eq("category_id", category_id)])
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category: {in_use} event(s) still use it",
        )
    db.delete_where(CATEGORIES, [eq("id", category_id)])
    logger.info("Deleted event category %s", category_id)
    return {"success": True, "message": "Category deleted successfully"}


@router.get("/hero")
def get_hero(db: DbClient = Depends(get_db_client)):
    hero = db.find_one(HERO, [eq("is_active", True)])
    if not hero:
        raise HTTPException(status_code=404, detail="Hero section not found")
    return {"hero": hero}


@router.put("/hero", dependencies=[Depends(require_admin)])
def save_hero(
    payload: dict = Body(...),
    db: DbClient = Depends(get_db_client),
):
    """Update the active hero in place, or create it on first save."""
    required_text(payload, "main_heading", "Main heading is required")
    opacity = payload.get("background_overlay_opacity")
    if opacity is not None:
        try:
            opacity = float(opacity)
        except (TypeError, ValueError):
            opacity = -1.0
        if not 0 <= opacity <= 1:
            raise HTTPException(
                status_code=400, detail="Overlay opacity must be between 0 and 1"
            )
        payload = dict(payload, background_overlay_opacity=opacity)

    existing = db.find_one(HERO, [eq("is_active", True)])
    try:
        if existing:
            hero = db.update(HERO, existing["id"], payload)
        else:
            hero = db.insert(HERO, payload)
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    return {"success": True, "hero": hero}
