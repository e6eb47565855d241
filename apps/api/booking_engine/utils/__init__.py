"""Utility modules."""

from booking_engine.utils.pagination import PaginationParams, get_pagination
from booking_engine.utils.time_format import format_minutes, parse_time_of_day

__all__ = [
    "PaginationParams",
    "get_pagination",
    "format_minutes",
    "parse_time_of_day",
]
