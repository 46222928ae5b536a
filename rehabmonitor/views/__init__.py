"""Read-only projections over the latest record snapshot."""

from .projection import (
    SessionStats,
    average_duration,
    count,
    count_by_intensity,
    filter_records,
    progress_scores,
    sorted_newest_first,
    summarize,
)
from .snapshot import RecordSnapshot
