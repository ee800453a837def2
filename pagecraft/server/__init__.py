"""Filesystem-backed page and transient caches."""

from .cache import PageCache, PageCacheEntry
from .cache_support import normalize_cache_key
from .transients import (
    DAY_IN_SECONDS,
    HOUR_IN_SECONDS,
    MINUTE_IN_SECONDS,
    MONTH_IN_SECONDS,
    WEEK_IN_SECONDS,
    YEAR_IN_SECONDS,
    TransientStore,
)

__all__ = [
    "DAY_IN_SECONDS",
    "HOUR_IN_SECONDS",
    "MINUTE_IN_SECONDS",
    "MONTH_IN_SECONDS",
    "PageCache",
    "PageCacheEntry",
    "TransientStore",
    "WEEK_IN_SECONDS",
    "YEAR_IN_SECONDS",
    "normalize_cache_key",
]
