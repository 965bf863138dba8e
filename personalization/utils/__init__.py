"""Shared utilities for time, similarity, and reading time."""

from .reading_time import ReadingTimeStats, estimate_reading_time, is_read_to_completion
from .similarity import cosine_similarity
from .time import days_since, hours_since, parse_timestamp, utc_now

__all__ = [
    "ReadingTimeStats",
    "estimate_reading_time",
    "is_read_to_completion",
    "cosine_similarity",
    "days_since",
    "hours_since",
    "parse_timestamp",
    "utc_now",
]
