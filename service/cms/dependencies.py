"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from cms.config import get_settings
from cms.db import DbClient, InMemoryDbClient, PostgresDbClient
from cms.notifications import InMemoryNotifier, Notifier, Web3FormsNotifier
from cms.queue import InMemoryJobQueue, JobQueue, RedisJobQueue
from cms.storage import InMemoryStorageClient, StorageClient, SupabaseStorageClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_queue_client: JobQueue | None = None
_notifier: Notifier | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so content persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_endpoint:
        _storage_client = InMemoryStorageClient(
            base_url=settings.public_storage_url or "https://example.test"
        )
    else:
        _storage_client = SupabaseStorageClient(
            endpoint=settings.storage_endpoint,
            region=settings.storage_region,
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
            public_base_url=settings.public_storage_url,
        )
    return _storage_client


def get_queue_client() -> JobQueue:
    """
    Return a singleton queue client for dispatching notification jobs to workers.
    """
    global _queue_client
    if _queue_client:
        return _queue_client

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _queue_client = RedisJobQueue(
            url=settings.redis_url,
            queue_key=settings.redis_queue_key,
        )
    else:
        _queue_client = InMemoryJobQueue()
    return _queue_client


def get_notifier() -> Notifier:
    global _notifier
    if _notifier:
        return _notifier

    settings = get_settings()
    if settings.web3forms_access_key and not settings.use_in_memory_backends:
        _notifier = Web3FormsNotifier(
            access_key=settings.web3forms_access_key, url=settings.web3forms_url
        )
    else:
        logger.info("WEB3FORMS_ACCESS_KEY not set; notifications are recorded in memory")
        _notifier = InMemoryNotifier()
    return _notifier
