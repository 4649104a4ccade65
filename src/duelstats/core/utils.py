"""
Utility helpers for duelstats.

This module provides:
- A timing decorator for the heavier aggregations
- Half-up rounding and safe averaging
- Epoch-millisecond to local datetime conversion
"""

import logging
import math
import time
from collections.abc import Callable, Iterable
from datetime import datetime, tzinfo
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time.

    Usage:
        @timed
        def compute_something():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
        return result

    return wrapper  # type: ignore


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity (2.5 -> 3)."""
    return math.floor(value + 0.5)


def mean_or_zero(values: Iterable[float]) -> float:
    """Arithmetic mean, or 0.0 for an empty sample set."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def to_local_datetime(epoch_ms: int, tz: tzinfo | None = None) -> datetime:
    """
    Convert an epoch-millisecond timestamp to an aware datetime.

    Args:
        epoch_ms: Milliseconds since the Unix epoch
        tz: Target zone; None means the system local zone

    Returns:
        Timezone-aware datetime
    """
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=tz)
    if tz is None:
        dt = dt.astimezone()
    return dt


def month_key(epoch_ms: int, tz: tzinfo | None = None) -> str:
    """Return the "YYYY-MM" bucket key for a timestamp."""
    return to_local_datetime(epoch_ms, tz).strftime("%Y-%m")


def day_key(epoch_ms: int, tz: tzinfo | None = None) -> str:
    """Return the "YYYY-MM-DD" key for a timestamp."""
    return to_local_datetime(epoch_ms, tz).strftime("%Y-%m-%d")


def format_duration(minutes: int) -> str:
    """
    Format a duration in minutes to a short string.

    Returns:
        "45m", "1h 30m" or "2h"
    """
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Format an already-scaled percentage value."""
    return f"{value:.{decimals}f}%"
