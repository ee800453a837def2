"""HTTP helpers serving assembled pages and the cache administration API."""

from .app import PageRoute, create_cache_router, create_site_app
from .models import PageCacheEntryResponse, PageCacheListing, PurgeResponse, TransientDeleteResponse

__all__ = [
    "PageCacheEntryResponse",
    "PageCacheListing",
    "PageRoute",
    "PurgeResponse",
    "TransientDeleteResponse",
    "create_cache_router",
    "create_site_app",
]
