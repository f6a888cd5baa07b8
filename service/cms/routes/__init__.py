"""
API routers, assembled in registration order.

Routers with fixed ``/events/...`` paths are included before the events
router so ``/events/{id_or_slug}`` does not capture them.
"""

from fastapi import APIRouter

from cms.routes import (
    blog,
    cities,
    contact,
    dashboard,
    documents,
    event_categories,
    event_images,
    event_submissions,
    events,
    media,
    pages,
)

router = APIRouter()
for module in (
    event_categories,
    event_submissions,
    events,
    event_images,
    contact,
    blog,
    cities,
    pages,
    media,
    documents,
    dashboard,
):
    router.include_router(module.router)
