"""
Queue abstraction for notification dispatching.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production. Jobs travel as JSON strings.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

CONTACT_SUBMISSION = "contact_submission"
EVENT_SUBMISSION = "event_submission"
CONTACT_REPLY = "contact_reply"


@dataclass
class NotificationJob:
    kind: str
    record_id: str
    attempts: int = 0
    payload: dict = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "NotificationJob":
        data = json.loads(raw)
        return cls(
            kind=data["kind"],
            record_id=data["record_id"],
            attempts=int(data.get("attempts", 0)),
            payload=data.get("payload") or {},
        )


class JobQueue(Protocol):
    """Minimal queue interface for dispatching notification jobs to workers."""

    def enqueue(self, job: NotificationJob) -> None:
        ...

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[NotificationJob]:
        ...


@dataclass
class InMemoryJobQueue:
    """Simple FIFO queue for testing/dev."""

    items: list[str] = field(default_factory=list)

    def enqueue(self, job: NotificationJob) -> None:
        self.items.append(job.to_json())

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[NotificationJob]:
        if not self.items:
            return None
        return NotificationJob.from_json(self.items.pop(0))


@dataclass
class RedisJobQueue:
    """Redis-backed queue using list push/pop operations."""

    url: str
    queue_key: str = "cms:notifications"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def enqueue(self, job: NotificationJob) -> None:
        self.client.rpush(self.queue_key, job.to_json())

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[NotificationJob]:
        try:
            if block:
                result = self.client.blpop(self.queue_key, timeout=timeout or 0)
                if result is None:
                    return None
                _, raw = result
            else:
                raw = self.client.lpop(self.queue_key)
                if raw is None:
                    return None
            return NotificationJob.from_json(raw.decode("utf-8"))
        except redis_exceptions.ConnectionError:
            # Connection resets can happen on managed Redis. Treat as empty queue
            # and allow the worker loop to retry.
            self.client = redis.Redis.from_url(self.url)
            return None
