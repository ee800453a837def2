"""Named values with a time-to-live, persisted in a single JSON file."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from .cache_support import handle_expiry, read_json_map, wall_clock, write_json_map

__all__ = [
    "DAY_IN_SECONDS",
    "HOUR_IN_SECONDS",
    "MINUTE_IN_SECONDS",
    "MONTH_IN_SECONDS",
    "TransientStore",
    "WEEK_IN_SECONDS",
    "YEAR_IN_SECONDS",
]

MINUTE_IN_SECONDS = 60
HOUR_IN_SECONDS = 60 * MINUTE_IN_SECONDS
DAY_IN_SECONDS = 24 * HOUR_IN_SECONDS
WEEK_IN_SECONDS = 7 * DAY_IN_SECONDS
MONTH_IN_SECONDS = 30 * DAY_IN_SECONDS
YEAR_IN_SECONDS = 365 * DAY_IN_SECONDS

_MISSING = object()


class TransientStore:
    """Shared key/value cache with lazy, read-time expiration.

    Every mutation rewrites the whole file. Two processes writing at the same
    time may lose one of the updates; the last writer wins.
    """

    def __init__(self, path: Path, *, clock: Callable[[], float] | None = None) -> None:
        self._path = Path(path)
        self._clock = clock or wall_clock

    @property
    def path(self) -> Path:
        return self._path

    def get(self, name: str, default: Any = None) -> Any:
        records = read_json_map(self._path)
        record = records.get(name)
        if not isinstance(record, dict):
            return default

        def evict() -> None:
            del records[name]
            write_json_map(self._path, records)

        if handle_expiry(float(record.get("expires_at", 0)), self._clock(), on_expire=evict):
            return default
        return record.get("value")

    def set(self, name: str, value: Any, ttl_seconds: float) -> None:
        records = read_json_map(self._path)
        records[name] = {"value": value, "expires_at": self._clock() + float(ttl_seconds)}
        write_json_map(self._path, records)

    def delete(self, name: str) -> bool:
        records = read_json_map(self._path)
        if name not in records:
            return False
        del records[name]
        write_json_map(self._path, records)
        return True

    def remember(self, name: str, ttl_seconds: float, producer: Callable[[], Any]) -> Any:
        """Return the stored value or store and return ``producer()``."""

        cached = self.get(name, _MISSING)
        if cached is not _MISSING:
            return cached
        value = producer()
        self.set(name, value, ttl_seconds)
        return value

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(read_json_map(self._path)))
