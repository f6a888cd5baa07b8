"""
Relevance scoring and type-ahead suggestions for the events search box.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

MIN_QUERY_LENGTH = 2

# Field weights; featured events get a small boost on top.
RELEVANCE_WEIGHTS = (
    ("title", 3.0),
    ("description", 2.0),
    ("organizer", 1.5),
    ("venue", 1.0),
)
FEATURED_BOOST = 0.5

SUGGESTION_FIELDS = ("title", "organizer", "venue")


def normalize_query(query: Optional[str]) -> Optional[str]:
    """Trimmed query, or None when it is too short to search on."""
    term = (query or "").strip()
    return term if len(term) >= MIN_QUERY_LENGTH else None


def contains_term(value, term: str) -> bool:
    return isinstance(value, str) and term.lower() in value.lower()


def relevance_score(event: dict, term: str) -> float:
    score = sum(
        weight for field, weight in RELEVANCE_WEIGHTS if contains_term(event.get(field), term)
    )
    if event.get("is_featured"):
        score += FEATURED_BOOST
    return score


def rank_events(events: Iterable[dict], term: str, sort_by_score: bool = True) -> list[dict]:
    """Copies of ``events`` with ``relevance_score`` set, best first when asked."""
    scored = [dict(event, relevance_score=relevance_score(event, term)) for event in events]
    if sort_by_score:
        # sorted() is stable, so ties keep the incoming order.
        scored = sorted(scored, key=lambda event: event["relevance_score"], reverse=True)
    return scored


def build_suggestions(events: Sequence[dict], term: str, limit: int = 5) -> list[dict]:
    """
    Titles, then organizers, then venues containing ``term``; each text once.
    """
    suggestions: list[dict] = []
    seen: set[str] = set()
    for field in SUGGESTION_FIELDS:
        for event in events:
            value = event.get(field)
            if not contains_term(value, term) or value in seen:
                continue
            seen.add(value)
            suggestions.append({"text": value, "type": field})
    return suggestions[:limit]
