"""
Catalog-driven page content. Every editable block on the marketing pages is
a (page, section) row holding JSON content, optionally with ordered items.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq, in_
from cms.dependencies import get_db_client
from cms.routes.common import integrity_error, with_public_images
from cms.schemas import ReorderPayload, SectionItemPayload, SectionPayload
from shared.image_url import DEFAULT_BUCKET
from shared.page_catalog import (
    PAGE_CATALOG,
    SectionSpec,
    UnknownSection,
    get_section_spec,
    list_pages,
    validate_item_content,
    validate_section_content,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pages", tags=["pages"])

SECTIONS = "page_sections"
ITEMS = "section_items"


def _spec_or_404(page: str, section: str) -> SectionSpec:
    try:
        return get_section_spec(page, section)
    except UnknownSection as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _spec_with_items(page: str, section: str) -> SectionSpec:
    spec = _spec_or_404(page, section)
    if not spec.has_items:
        raise HTTPException(
            status_code=404, detail=f"Section '{section}' on page '{page}' has no items"
        )
    return spec


def _missing_fields_error(missing: list[str]) -> HTTPException:
    return HTTPException(
        status_code=400, detail=f"Missing required fields: {', '.join(missing)}"
    )


def _find_section(db: DbClient, page: str, section: str) -> Optional[dict]:
    return db.find_one(SECTIONS, [eq("page", page), eq("section", section)])


def _section_row(db: DbClient, page: str, section: str) -> dict:
    """The stored section, created empty on first item write."""
    row = _find_section(db, page, section)
    if row:
        return row
    return db.insert(SECTIONS, {"page": page, "section": section, "content": {}})


def _items(db: DbClient, section_id: str, active_only: bool = False) -> list[dict]:
    filters = [eq("section_id", section_id)]
    if active_only:
        filters.append(eq("is_active", True))
    return db.select(ITEMS, filters, [Order("display_order"), Order("created_at")])


def _item_or_404(db: DbClient, section: Optional[dict], item_id: str) -> dict:
    item = db.get(ITEMS, item_id)
    if not item or not section or item["section_id"] != section["id"]:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.get("")
def get_catalog():
    return {"pages": list_pages()}


@router.get("/{page}")
def get_page(page: str, db: DbClient = Depends(get_db_client)):
    """All active sections of ``page`` keyed by section; unsaved sections are null."""
    specs = PAGE_CATALOG.get(page)
    if specs is None:
        raise HTTPException(status_code=404, detail=f"Unknown page: {page}")
    rows = {
        row["section"]: row
        for row in db.select(SECTIONS, [eq("page", page), eq("is_active", True)])
    }
    item_rows = db.select(
        ITEMS,
        [in_("section_id", [row["id"] for row in rows.values()]), eq("is_active", True)],
        [Order("display_order"), Order("created_at")],
    )
    sections = {}
    for spec in specs:
        row = rows.get(spec.key)
        if row is None:
            sections[spec.key] = None
            continue
        bucket = spec.bucket or DEFAULT_BUCKET
        row = dict(row, content=with_public_images(row["content"] or {}, bucket))
        if spec.has_items:
            row["items"] = [
                dict(item, content=with_public_images(item["content"] or {}, bucket))
                for item in item_rows
                if item["section_id"] == row["id"]
            ]
        sections[spec.key] = row
    return {"page": page, "sections": sections}


@router.get("/{page}/sections/{section}")
def get_section(page: str, section: str, db: DbClient = Depends(get_db_client)):
    spec = _spec_or_404(page, section)
    row = _find_section(db, page, section)
    if row and spec.has_items:
        row["items"] = _items(db, row["id"])
    return {"spec": spec.as_dict(), "section": row}


@router.put("/{page}/sections/{section}", dependencies=[Depends(require_admin)])
def save_section(
    page: str,
    section: str,
    payload: SectionPayload,
    db: DbClient = Depends(get_db_client),
):
    spec = _spec_or_404(page, section)
    missing = validate_section_content(spec, payload.content)
    if missing:
        raise _missing_fields_error(missing)
    values = {"content": payload.content, "is_active": payload.is_active}
    existing = _find_section(db, page, section)
    try:
        if existing:
            row = db.update(SECTIONS, existing["id"], values)
        else:
            row = db.insert(SECTIONS, dict(values, page=page, section=section))
    except IntegrityViolation as exc:
        raise integrity_error(exc) from exc
    logger.info("Saved section %s/%s", page, section)
    return {"success": True, "section": row}


@router.get("/{page}/sections/{section}/items")
def list_items(
    page: str,
    section: str,
    include_inactive: bool = False,
    db: DbClient = Depends(get_db_client),
):
    _spec_with_items(page, section)
    row = _find_section(db, page, section)
    items = _items(db, row["id"], active_only=not include_inactive) if row else []
    return {"items": items}


@router.post(
    "/{page}/sections/{section}/items",
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_item(
    page: str,
    section: str,
    payload: SectionItemPayload,
    db: DbClient = Depends(get_db_client),
):
    spec = _spec_with_items(page, section)
    missing = validate_item_content(spec, payload.content)
    if missing:
        raise _missing_fields_error(missing)
    row = _section_row(db, page, section)
    display_order = payload.display_order
    if display_order is None:
        existing = _items(db, row["id"])
        display_order = max((item["display_order"] for item in existing), default=-1) + 1
    item = db.insert(
        ITEMS,
        {
            "section_id": row["id"],
            "content": payload.content,
            "is_active": payload.is_active,
            "display_order": display_order,
        },
    )
    return {"success": True, "item": item}


@router.post(
    "/{page}/sections/{section}/items/reorder", dependencies=[Depends(require_admin)]
)
def reorder_items(
    page: str,
    section: str,
    payload: ReorderPayload,
    db: DbClient = Depends(get_db_client),
):
    _spec_with_items(page, section)
    row = _find_section(db, page, section)
    known = {item["id"] for item in _items(db, row["id"])} if row else set()
    unknown = [item_id for item_id in payload.ids if item_id not in known]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Items do not belong to this section: {', '.join(unknown)}",
        )
    for index, item_id in enumerate(payload.ids):
        db.update(ITEMS, item_id, {"display_order": index})
    return {"success": True, "items": _items(db, row["id"]) if row else []}


@router.put(
    "/{page}/sections/{section}/items/{item_id}", dependencies=[Depends(require_admin)]
)
def update_item(
    page: str,
    section: str,
    item_id: str,
    payload: SectionItemPayload,
    db: DbClient = Depends(get_db_client),
):
    spec = _spec_with_items(page, section)
    _item_or_404(db, _find_section(db, page, section), item_id)
    missing = validate_item_content(spec, payload.content)
    if missing:
        raise _missing_fields_error(missing)
    values = {"content": payload.content, "is_active": payload.is_active}
    if payload.display_order is not None:
        values["display_order"] = payload.display_order
    return {"success": True, "item": db.update(ITEMS, item_id, values)}


@router.delete(
    "/{page}/sections/{section}/items/{item_id}", dependencies=[Depends(require_admin)]
)
def delete_item(
    page: str,
    section: str,
    item_id: str,
    db: DbClient = Depends(get_db_client),
):
    _spec_with_items(page, section)
    _item_or_404(db, _find_section(db, page, section), item_id)
    db.delete_where(ITEMS, [eq("id", item_id)])
    return {"success": True, "message": "Item deleted successfully"}
