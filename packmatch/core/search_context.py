"""Optional search context: time of day, area, minimum score.

Context never creates a match on its own. It only nudges records that
already scored on the query, so a search without options scores exactly as
the base signal table says.
"""

import re
from dataclasses import dataclass

from packmatch.core.schemas_search import IndexRecord, TimeOfDay

# Checked in order; the first bucket with a hit wins
_TIME_CUES: tuple[tuple[TimeOfDay, tuple[str, ...]], ...] = (
    (TimeOfDay.LATE_NIGHT, ("late night", "midnight", "after 10", "after hours", "1am", "2am")),
    (TimeOfDay.MORNING, ("morning", "breakfast", "early", "5am", "6am", "7am")),
    (TimeOfDay.AFTERNOON, ("lunch", "afternoon", "12pm", "1pm", "2pm")),
    (TimeOfDay.EVENING, ("dinner", "evening", "7pm", "8pm", "9pm")),
)

_TIME_PATTERNS = tuple(
    (bucket, re.compile(r"\b(?:" + "|".join(re.escape(c) for c in cues) + r")\b"))
    for bucket, cues in _TIME_CUES
)

# Content cues are coarser than clock buckets
_COMPATIBLE_TIMES: dict[TimeOfDay, frozenset[TimeOfDay]] = {
    TimeOfDay.MORNING: frozenset({TimeOfDay.EARLY_MORNING, TimeOfDay.MORNING}),
    TimeOfDay.AFTERNOON: frozenset({TimeOfDay.AFTERNOON}),
    TimeOfDay.EVENING: frozenset({TimeOfDay.EVENING}),
    TimeOfDay.LATE_NIGHT: frozenset({TimeOfDay.LATE_NIGHT, TimeOfDay.NIGHT}),
}


@dataclass(frozen=True)
class SearchOptions:
    """
    Per-query context for the local search.

    Attributes:
        time_of_day: Boost advice suited to this time, lightly demote the rest
        area: Boost advice that names this neighbourhood
        min_score: Drop results scoring below this before fallback is decided
    """

    time_of_day: TimeOfDay | None = None
    area: str | None = None
    min_score: int | None = None


NO_OPTIONS = SearchOptions()


def infer_time_of_day(text: str) -> TimeOfDay | None:
    """Time bucket a piece of advice is written for, or None if timeless."""
    lowered = text.lower()
    for bucket, pattern in _TIME_PATTERNS:
        if pattern.search(lowered):
            return bucket
    return None


def record_time_of_day(record: IndexRecord) -> TimeOfDay | None:
    return infer_time_of_day(" ".join([record.micro_title, *record.actions]))


def time_fits(record: IndexRecord, time_of_day: TimeOfDay) -> bool:
    """True when the record is timeless or written for ``time_of_day``."""
    inferred = record_time_of_day(record)
    return inferred is None or time_of_day in _COMPATIBLE_TIMES[inferred]


def record_mentions_area(record: IndexRecord, area: str) -> bool:
    """Whole-word, case-insensitive mention of ``area`` in the record."""
    needle = " ".join(area.split())
    if not needle:
        return False
    pattern = re.compile(rf"(?<!\w){re.escape(needle)}(?!\w)", re.IGNORECASE)
    return bool(pattern.search(record.searchable_text))
