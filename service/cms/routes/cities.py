"""
City landing pages with their nested service lists.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from cms.auth import require_admin
from cms.db import DbClient, IntegrityViolation, Order, eq, ilike_any, in_, neq
from cms.dependencies import get_db_client
from cms.routes.common import integrity_error, page_window, total_pages
from cms.schemas import CityPayload, CityServicePayload
from shared.text_utils import slugify, unique_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cities", tags=["cities"])

CITIES = "cities"
SERVICES = "city_services"
UNIQUE_MESSAGES = {"slug": "A city with this slug already exists"}


def services_by_city(db: DbClient, city_ids) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    if not city_ids:
        return grouped
    for service in db.select(
        SERVICES, [in_("city_id", city_ids)], [Order("display_order"), Order("created_at")]
    ):
        grouped.setdefault(service["city_id"], []).append(service)
    return grouped


def replace_services(
    db: DbClient, city_id: str, services: list[CityServicePayload]
) -> list[dict]:
    db.delete_where(SERVICES, [eq("city_id", city_id)])
    return [
        db.insert(
            SERVICES,
            {
                "city_id": city_id,
                "name": service.name,
                "description": service.description,
                "is_active": service.is_active,
                "display_order": index,
            },
        )
        for index, service in enumerate(services)
        if service.name.strip()
    ]


def _city_slug(db: DbClient, name: str, exclude_id: Optional[str] = None) -> str:
    filters = [ilike_any(("slug",), slugify(name))]
    if exclude_id:
        filters.append(neq("id", exclude_id))
    return unique_slug(name, [row["slug"] for row in db.select(CITIES, filters)])


def _find_city(db: DbClient, slug: str) -> dict:
    city = db.find_one(CITIES, [eq("slug", slug)]) or db.get(CITIES, slug)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return city


@router.get("")
def list_cities(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    country_code: Optional[str] = None,
    include_relations: bool = False,
    db: DbClient = Depends(get_db_client),
):
    filters = []
    if search:
        filters.append(ilike_any(("name", "description", "country_code"), search))
    if is_active is not None:
        filters.append(eq("is_active", is_active))
    if country_code:
        filters.append(eq("country_code", country_code.upper()))

    offset = page_window(page, limit)
    total = db.count(CITIES, filters)
    cities = db.select(
        CITIES,
        filters,
        [Order("display_order"), Order("name")],
        limit=limit,
        offset=offset,
    )
    if include_relations:
        services = services_by_city(db, {city["id"] for city in cities})
        cities = [dict(city, services=services.get(city["id"], [])) for city in cities]
    return {
        "cities": cities,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages(total, limit),
        },
    }


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_city(payload: CityPayload, db: DbClient = Depends(get_db_client)):
    values = payload.values()
    services = values.pop("services", None)
    name = (values.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="City name is required")
    values["name"] = name
    values["slug"] = values.get("slug") or _city_slug(db, name)
    if isinstance(values.get("country_code"), str):
        values["country_code"] = values["country_code"].upper()
    try:
        city = db.insert(CITIES, values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, UNIQUE_MESSAGES) from exc
    city["services"] = replace_services(db, city["id"], payload.services or []) if services else []
    logger.info("Created city %s", city["slug"])
    return {"success": True, "city": city}


@router.get("/{slug}")
def get_city(slug: str, db: DbClient = Depends(get_db_client)):
    city = _find_city(db, slug)
    return {"city": dict(city, services=services_by_city(db, [city["id"]]).get(city["id"], []))}


@router.put("/{slug}", dependencies=[Depends(require_admin)])
def update_city(slug: str, payload: CityPayload, db: DbClient = Depends(get_db_client)):
    existing = _find_city(db, slug)
    values = payload.values()
    values.pop("services", None)
    if "name" in values:
        if not (values["name"] or "").strip():
            raise HTTPException(status_code=400, detail="City name is required")
        if "slug" not in values and values["name"] != existing["name"]:
            values["slug"] = _city_slug(db, values["name"], exclude_id=existing["id"])
    if isinstance(values.get("country_code"), str):
        values["country_code"] = values["country_code"].upper()
    try:
        city = db.update(CITIES, existing["id"], values)
    except IntegrityViolation as exc:
        raise integrity_error(exc, UNIQUE_MESSAGES) from exc
    if payload.services is not None:
        city["services"] = replace_services(db, existing["id"], payload.services)
    else:
        city["services"] = services_by_city(db, [existing["id"]]).get(existing["id"], [])
    return {"success": True, "city": city}


@router.delete("/{slug}", dependencies=[Depends(require_admin)])
def delete_city(slug: str, db: DbClient = Depends(get_db_client)):
    city = _find_city(db, slug)
    db.delete_where(CITIES, [eq("id", city["id"])])
    logger.info("Deleted city %s", city["slug"])
    return {"success": True, "message": "City deleted successfully"}
