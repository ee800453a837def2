"""Pydantic response models for the cache administration API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..cache import PageCacheEntry


class PageCacheEntryResponse(BaseModel):
    """Serializable view of one cached page."""

    key: str | None = Field(..., description="Decoded request path, if the file name decodes.")
    file: str
    size: int
    modified_at: datetime

    @classmethod
    def from_entry(cls, entry: PageCacheEntry) -> "PageCacheEntryResponse":
        return cls(
            key=entry.key,
            file=entry.path.name,
            size=entry.size,
            modified_at=entry.modified_at,
        )


class PageCacheListing(BaseModel):
    count: int
    entries: list[PageCacheEntryResponse] = Field(default_factory=list)


class PurgeResponse(BaseModel):
    purged: int


class TransientDeleteResponse(BaseModel):
    name: str
    deleted: bool
