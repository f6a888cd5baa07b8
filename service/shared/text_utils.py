"""
Text helpers shared by the content routes: slugs, HTML stripping and
reading-time estimates for blog posts.
"""

from __future__ import annotations

import math
import re
from typing import Iterable

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

DEFAULT_WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    """Lower-case ``text`` and collapse every non-alphanumeric run into '-'."""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower())
    return slug.strip("-")


def unique_slug(text: str, existing: Iterable[str]) -> str:
    """
    Return ``slugify(text)``, suffixed with -2, -3, ... until it is not in
    ``existing``.
    """
    base = slugify(text) or "item"
    taken = set(existing)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value or ""))


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def strip_html(content: str) -> str:
    return HTML_TAG_PATTERN.sub("", content or "")


def blank_to_none(value):
    """Empty or whitespace-only strings become None; other values pass through."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def clean_optional(value):
    """Trim a string, mapping blank results to None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def truncate(text: str, length: int = 50) -> str:
    if len(text) > length:
        return text[:length] + "..."
    return text


def calculate_reading_time(
    content: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
) -> int:
    """Minutes needed to read ``content``; 0 for no content, otherwise at least 1."""
    if not content:
        return 0
    words = [word for word in strip_html(content).split() if word]
    return max(1, math.ceil(len(words) / words_per_minute))


def format_reading_time(minutes: int) -> str:
    return f"{minutes} min read"


def get_reading_time(
    content: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
) -> str:
    return format_reading_time(calculate_reading_time(content, words_per_minute))
