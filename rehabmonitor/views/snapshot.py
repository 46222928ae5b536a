"""Immutable result of one refresh."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..records.model import Intensity, RehabRecord
from . import projection


@dataclass(frozen=True)
class RecordSnapshot:
    """
    Records materialized by a single refresh, newest first.

    A refresh builds a new snapshot and replaces the old one; a snapshot is
    never patched.  The query helpers delegate to :mod:`.projection`.
    """

    records: Tuple[RehabRecord, ...] = ()
    taken_at: float = field(default_factory=time.time)

    @classmethod
    def build(cls, records: Iterable[RehabRecord], taken_at: Optional[float] = None) -> "RecordSnapshot":
        ordered = tuple(projection.sorted_newest_first(list(records)))
        if taken_at is None:
            return cls(ordered)
        return cls(ordered, taken_at)

    def __len__(self) -> int:
        return len(self.records)

    def count(self) -> int:
        return projection.count(self.records)

    def average_duration(self) -> float:
        return projection.average_duration(self.records)

    def count_by_intensity(self, level: Intensity | str) -> int:
        return projection.count_by_intensity(self.records, level)

    def search(self, term: str) -> List[RehabRecord]:
        return projection.filter_records(self.records, term)

    def stats(self) -> projection.SessionStats:
        return projection.summarize(self.records)
