"""Full-page HTML cache with one file per request path."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .cache_support import CACHE_SUFFIX, decode_key, encode_key

__all__ = ["PageCache", "PageCacheEntry"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageCacheEntry:
    """Lightweight snapshot of an on-disk page."""

    key: str | None
    path: Path
    size: int
    modified_at: datetime


class PageCache:
    """Disk-backed storage for rendered documents.

    Writes are plain overwrites without locking or atomic rename; concurrent
    writers to the same key leave whichever write landed last.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{encode_key(key)}{CACHE_SUFFIX}"

    def get(self, key: str) -> bytes | None:
        try:
            return self.path_for(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Page cache read failed for %s: %s", key, exc)
            return None

    def set(self, key: str, content: bytes | str) -> bool:
        payload = content.encode("utf-8") if isinstance(content, str) else content
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self.path_for(key).write_bytes(payload)
        except OSError as exc:
            logger.debug("Page cache write failed for %s: %s", key, exc)
            return False
        return True

    def purge(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def purge_all(self) -> int:
        removed = 0
        for cache_file in self._iter_files():
            cache_file.unlink(missing_ok=True)
            removed += 1
        return removed

    def entries(self) -> list[PageCacheEntry]:
        return [
            PageCacheEntry(
                key=decode_key(cache_file.name[: -len(CACHE_SUFFIX)]),
                path=cache_file,
                size=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )
            for cache_file in self._iter_files()
            if (stat := self._stat(cache_file)) is not None
        ]

    def _iter_files(self) -> list[Path]:
        if not self._directory.is_dir():
            return []
        return sorted(self._directory.glob(f"*{CACHE_SUFFIX}"))

    def _stat(self, path: Path) -> os.stat_result | None:
        try:
            return path.stat()
        except FileNotFoundError:
            return None
