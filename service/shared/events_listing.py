"""
Month filtering and carousel paging for the public "What's On" events page.

Events arrive as plain row dicts. An event is placed on the calendar by its
``start_date``/``end_date`` columns when they are set, otherwise by parsing the
free-text ``date_range`` the editors type (``"24 MAY - 1 JUN 2025"``).
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from shared.time_utils import parse_date

ALL_FILTER = "All"
DEFAULT_CARDS_TO_SHOW = 3
# Bounds the filter options one event contributes so a typo'd end year stays cheap.
MAX_MONTHS_PER_EVENT = 24

MONTH_NAMES = [name.lower() for name in calendar.month_name[1:]]

_RANGE_SPLIT = re.compile(r"\s*[-–—]\s*")
_RANGE_PART = re.compile(
    r"^(?P<day>\d{1,2})(?:\s+(?P<month>[A-Za-z]+)\.?)?(?:,?\s+(?P<year>\d{4}))?$"
)
_MONTH_LABEL = re.compile(r"^(?P<month>[A-Za-z]+)\.?(?:\s+(?P<year>\d{4}))?$")
_YEAR = re.compile(r"\b(\d{4})\b")
_WORD = re.compile(r"[A-Za-z]+")


def month_from_name(name: str) -> Optional[int]:
    """Map 'jun', 'June', 'sept' to a month number; None when unknown."""
    token = (name or "").strip().lower().rstrip(".")
    if len(token) < 3:
        return None
    for index, full_name in enumerate(MONTH_NAMES, start=1):
        if full_name.startswith(token):
            return index
    return None


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def parse_month_label(label: str) -> Optional[tuple[Optional[int], int]]:
    """
    Parse a filter label into ``(year, month)``.

    ``"All"`` returns None. A label without a year yields ``(None, month)``.
    Raises ValueError for anything else.
    """
    text = (label or "").strip()
    if not text or text.lower() == ALL_FILTER.lower():
        return None
    match = _MONTH_LABEL.match(text)
    if not match:
        raise ValueError(f"Unrecognised month filter: {label!r}")
    month = month_from_name(match.group("month"))
    if month is None:
        raise ValueError(f"Unrecognised month filter: {label!r}")
    year = int(match.group("year")) if match.group("year") else None
    return year, month


def parse_date_range_text(text: str) -> Optional[tuple[date, date]]:
    """
    Parse editor-entered ranges such as ``"27 - 29 MAY 2025"``,
    ``"24 MAY - 1 JUN 2025"``, ``"30 DEC 2025 - 2 JAN 2026"`` or
    ``"27 MAY 2025"``. Missing month/year on the start side are taken from the
    end side. Returns None when the text cannot be placed on the calendar.
    """
    parts = _RANGE_SPLIT.split((text or "").strip())
    if not parts or len(parts) > 2:
        return None
    matches = [_RANGE_PART.match(part.strip()) for part in parts]
    if any(match is None for match in matches):
        return None

    end_match = matches[-1]
    end_month = month_from_name(end_match.group("month") or "")
    if end_month is None or not end_match.group("year"):
        return None
    end_year = int(end_match.group("year"))

    start_match = matches[0]
    start_month = end_month
    if start_match.group("month"):
        start_month = month_from_name(start_match.group("month"))
        if start_month is None:
            return None
    if start_match.group("year"):
        start_year = int(start_match.group("year"))
    elif start_month > end_month:
        start_year = end_year - 1
    else:
        start_year = end_year

    try:
        start = date(start_year, start_month, int(start_match.group("day")))
        end = date(end_year, end_month, int(end_match.group("day")))
    except ValueError:
        return None
    if end < start:
        return None
    return start, end


def event_date_span(event: dict) -> Optional[tuple[date, date]]:
    """The calendar span of an event, from its dates or its date_range text."""
    start = parse_date(event.get("start_date"))
    if start:
        end = parse_date(event.get("end_date")) or start
        return (start, end) if end >= start else (start, start)
    return parse_date_range_text(event.get("date_range") or "")


def _months_in_span(start: date, end: date) -> list[tuple[int, int]]:
    months: list[tuple[int, int]] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        if len(months) >= MAX_MONTHS_PER_EVENT:
            break
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def _text_mentions_month(text: str, year: Optional[int], month: int) -> bool:
    lowered = text.lower()
    abbreviation = MONTH_NAMES[month - 1][:3]
    if not re.search(rf"\b{abbreviation}", lowered):
        return False
    years = _YEAR.findall(lowered)
    if year is not None and years:
        return str(year) in years
    return True


def _text_months(text: str) -> set[tuple[int, int]]:
    """Every (year, month) pairing of the month names and years written in ``text``."""
    years = {int(year) for year in _YEAR.findall(text)}
    months = {month_from_name(word) for word in _WORD.findall(text)}
    months.discard(None)
    return {(year, month) for year in years for month in months}


def _overlaps(start: date, end: date, year: int, month: int) -> bool:
    last_day = calendar.monthrange(year, month)[1]
    return start <= date(year, month, last_day) and end >= date(year, month, 1)


def event_matches_month(event: dict, year: Optional[int], month: int) -> bool:
    span = event_date_span(event)
    if span:
        start, end = span
        years = [year] if year is not None else range(start.year, end.year + 1)
        return any(_overlaps(start, end, y, month) for y in years)
    return _text_mentions_month(event.get("date_range") or "", year, month)


def filter_events_by_month(events: Sequence[dict], label: str) -> list[dict]:
    """Events touching the month named by ``label``, in their original order."""
    parsed = parse_month_label(label)
    if parsed is None:
        return list(events)
    year, month = parsed
    return [event for event in events if event_matches_month(event, year, month)]


def month_filter_options(events: Iterable[dict]) -> list[str]:
    """``["All", "May 2025", "June 2025", ...]`` for every month any event touches."""
    seen: set[tuple[int, int]] = set()
    for event in events:
        span = event_date_span(event)
        if span:
            seen.update(_months_in_span(*span))
        else:
            seen.update(_text_months(event.get("date_range") or ""))
    return [ALL_FILTER] + [month_label(y, m) for y, m in sorted(seen)]


def format_date_range(start, end=None) -> str:
    """Render a start/end pair the way the events cards display it."""
    start_date = parse_date(start)
    if start_date is None:
        return ""
    end_date = parse_date(end) or start_date

    def _day_month(value: date) -> str:
        return f"{value.day} {calendar.month_abbr[value.month].upper()}"

    if end_date == start_date:
        return f"{_day_month(start_date)} {start_date.year}"
    if (start_date.year, start_date.month) == (end_date.year, end_date.month):
        return (
            f"{start_date.day} - {end_date.day} "
            f"{calendar.month_abbr[end_date.month].upper()} {end_date.year}"
        )
    if start_date.year == end_date.year:
        return f"{_day_month(start_date)} - {_day_month(end_date)} {end_date.year}"
    return (
        f"{_day_month(start_date)} {start_date.year} - "
        f"{_day_month(end_date)} {end_date.year}"
    )


@dataclass(frozen=True)
class CarouselWindow:
    """
    Index arithmetic for a fixed-width card carousel.

    Without ``wrap`` the arrows stop at either end (the What's On gallery);
    with ``wrap`` they cycle (the related-events carousel).
    """

    total: int
    cards_to_show: int = DEFAULT_CARDS_TO_SHOW
    index: int = 0
    wrap: bool = False
    max_index: int = field(init=False)

    def __post_init__(self):
        if self.cards_to_show < 1:
            raise ValueError("cards_to_show must be at least 1")
        if self.total < 0:
            raise ValueError("total cannot be negative")
        max_index = max(0, self.total - self.cards_to_show)
        object.__setattr__(self, "max_index", max_index)
        object.__setattr__(self, "index", min(max(self.index, 0), max_index))

    def _moved(self, index: int) -> "CarouselWindow":
        return CarouselWindow(
            total=self.total,
            cards_to_show=self.cards_to_show,
            index=index,
            wrap=self.wrap,
        )

    @property
    def can_go_next(self) -> bool:
        return self.index < self.max_index

    @property
    def can_go_previous(self) -> bool:
        return self.index > 0

    @property
    def show_navigation(self) -> bool:
        return self.total > self.cards_to_show

    @property
    def offset_percent(self) -> float:
        return -self.index * 100.0 / self.cards_to_show

    def next(self) -> "CarouselWindow":
        if self.can_go_next:
            return self._moved(self.index + 1)
        return self._moved(0) if self.wrap else self

    def previous(self) -> "CarouselWindow":
        if self.can_go_previous:
            return self._moved(self.index - 1)
        return self._moved(self.max_index) if self.wrap else self

    def reset(self) -> "CarouselWindow":
        return self._moved(0)

    def visible(self, items: Sequence) -> list:
        return list(items[self.index : self.index + self.cards_to_show])

    def as_dict(self) -> dict:
        return {
            "index": self.index,
            "max_index": self.max_index,
            "cards_to_show": self.cards_to_show,
            "total": self.total,
            "can_go_next": self.can_go_next,
            "can_go_previous": self.can_go_previous,
            "show_navigation": self.show_navigation,
            "offset_percent": self.offset_percent,
        }


def build_listing(
    events: Sequence[dict],
    month: str = ALL_FILTER,
    index: int = 0,
    cards_to_show: int = DEFAULT_CARDS_TO_SHOW,
) -> dict:
    """Everything the events gallery renders for one filter/position."""
    filtered = filter_events_by_month(events, month)
    window = CarouselWindow(total=len(filtered), cards_to_show=cards_to_show, index=index)
    return {
        "filters": month_filter_options(events),
        "selected_filter": month or ALL_FILTER,
        "events": filtered,
        "carousel": window.as_dict(),
        "visible_events": window.visible(filtered),
    }
