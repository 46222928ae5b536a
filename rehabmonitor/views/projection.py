"""
views.projection
~~~~~~~~~~~~~~~~

Read-only aggregates over a materialized record list.

Every function is pure: it takes the records of the current snapshot and
returns a new value, so the display layer can recompute everything after
each refresh without keeping derived state around.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..records.model import Intensity, RehabRecord


def count(records: Sequence[RehabRecord]) -> int:
    return len(records)


def average_duration(records: Sequence[RehabRecord]) -> float:
    """Mean session duration in minutes; ``0.0`` for an empty list."""
    if not records:
        return 0.0
    return sum(r.duration for r in records) / len(records)


def count_by_intensity(records: Sequence[RehabRecord], level: Intensity | str) -> int:
    level = Intensity(level)
    return sum(1 for r in records if r.intensity is level)


def filter_records(records: Sequence[RehabRecord], term: str) -> List[RehabRecord]:
    """
    Case-insensitive search over exercise type and intensity.

    A record matches when ``term`` is a substring of either field.  An
    empty term matches everything.
    """
    needle = term.lower()
    return [
        r
        for r in records
        if needle in r.exercise_type.lower() or needle in r.intensity.value.lower()
    ]


def sorted_newest_first(records: Sequence[RehabRecord]) -> List[RehabRecord]:
    # sorted() is stable; equal timestamps keep their input order
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def progress_scores(records: Sequence[RehabRecord]) -> List[int]:
    """Progress score of each session, in display order, for the progress chart."""
    return [r.progress_score for r in records]


@dataclass(frozen=True)
class SessionStats:
    total: int
    average_duration: float
    high_intensity: int
    progress: Tuple[int, ...]


def summarize(records: Sequence[RehabRecord]) -> SessionStats:
    """Figures shown in the statistics panel."""
    return SessionStats(
        total=count(records),
        average_duration=average_duration(records),
        high_intensity=count_by_intensity(records, Intensity.HIGH),
        progress=tuple(progress_scores(records)),
    )
