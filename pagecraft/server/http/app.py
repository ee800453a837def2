"""HTTP application wiring for document assembly and the page cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from ...config import SiteSettings
from ...diagnostics import DiagnosticsContext
from ...document import DocumentAssembler, PageRequest, RenderedPage
from ...paths import PathResolver
from ..cache import PageCache
from ..cache_support import normalize_cache_key
from ..transients import TransientStore
from .models import (
    PageCacheEntryResponse,
    PageCacheListing,
    PurgeResponse,
    TransientDeleteResponse,
)

PageHandler = Callable[[DocumentAssembler, DiagnosticsContext], str]
SiteSetup = Callable[[DocumentAssembler], None]


@dataclass(frozen=True)
class PageRoute:
    """A page body producer bound to a request path."""

    handler: PageHandler
    name: str = ""


@dataclass(frozen=True)
class SiteRuntimeState:
    """Objects shared across HTTP handlers."""

    settings: SiteSettings
    page_cache: PageCache
    transients: TransientStore
    pages: Mapping[str, PageRoute]
    setup: SiteSetup | None


def create_site_app(
    settings: SiteSettings,
    pages: Mapping[str, PageRoute | PageHandler],
    *,
    setup: SiteSetup | None = None,
    include_cache_router: bool | None = None,
) -> FastAPI:
    """Create a FastAPI app that renders one document per GET request.

    ``pages`` maps request paths to handlers. ``setup`` runs against every
    fresh :class:`DocumentAssembler` before the page handler, for site-wide
    metadata such as styles, metas and the footer.

    The unauthenticated cache router is mounted outside production only,
    unless ``include_cache_router`` says otherwise.
    """

    resolver = PathResolver.from_settings(settings)
    page_cache = PageCache(resolver.resolve(settings.cache_path))
    transients = TransientStore(resolver.resolve(settings.transient_path))
    routes = {
        normalize_cache_key(path): route if isinstance(route, PageRoute) else PageRoute(route, name=path)
        for path, route in pages.items()
    }

    app = FastAPI()
    app.state.site_state = SiteRuntimeState(
        settings=settings,
        page_cache=page_cache,
        transients=transients,
        pages=routes,
        setup=setup,
    )
    if include_cache_router is None:
        include_cache_router = not settings.production
    if include_cache_router:
        app.include_router(create_cache_router(page_cache, transients))
    app.include_router(_PAGE_ROUTER)
    return app


def create_cache_router(page_cache: PageCache, transients: TransientStore) -> APIRouter:
    """Build a router that inspects and purges the filesystem caches."""

    router = APIRouter(prefix="/_cache")

    def get_page_cache() -> PageCache:
        return page_cache

    def get_transients() -> TransientStore:
        return transients

    @router.get(
        "/pages",
        name="cache-pages",
        response_model=PageCacheListing,
        summary="List cached pages with their decoded keys",
    )
    def list_cached_pages(cache: PageCache = Depends(get_page_cache)) -> PageCacheListing:
        entries = [PageCacheEntryResponse.from_entry(entry) for entry in cache.entries()]
        return PageCacheListing(count=len(entries), entries=entries)

    @router.delete("/pages", name="cache-purge-all", response_model=PurgeResponse)
    def purge_all_pages(cache: PageCache = Depends(get_page_cache)) -> PurgeResponse:
        return PurgeResponse(purged=cache.purge_all())

    @router.delete("/pages/{key:path}", name="cache-purge", response_model=PurgeResponse)
    def purge_page(key: str, cache: PageCache = Depends(get_page_cache)) -> PurgeResponse:
        cache_key = normalize_cache_key("/" + key)
        existed = cache.path_for(cache_key).exists()
        cache.purge(cache_key)
        return PurgeResponse(purged=int(existed))

    @router.delete(
        "/transients/{name}",
        name="transient-delete",
        response_model=TransientDeleteResponse,
    )
    def delete_transient(
        name: str, store: TransientStore = Depends(get_transients)
    ) -> TransientDeleteResponse:
        return TransientDeleteResponse(name=name, deleted=store.delete(name))

    return router


_PAGE_ROUTER = APIRouter()


def _get_site_state(request: Request) -> SiteRuntimeState:
    state = getattr(request.app.state, "site_state", None)
    if state is None:
        raise RuntimeError("Site runtime state is not configured")
    return state


@_PAGE_ROUTER.get("/{path:path}", name="page-render", include_in_schema=False)
async def render_page(
    path: str,
    request: Request,
    state: SiteRuntimeState = Depends(_get_site_state),
) -> Response:
    page_request = PageRequest(
        path=request.url.path,
        query=dict(request.query_params),
        method=request.method,
    )
    route = state.pages.get(page_request.cache_key)
    if route is None:
        raise HTTPException(status_code=404, detail="Page not found")
    rendered = await run_in_threadpool(_render, state, route, page_request)
    return Response(
        rendered.content,
        media_type="text/html; charset=utf-8",
        headers={"X-Page-Cache": "hit" if rendered.from_cache else "miss"},
    )


def _render(
    state: SiteRuntimeState, route: PageRoute, page_request: PageRequest
) -> RenderedPage:
    diagnostics = DiagnosticsContext(
        method=page_request.method, route_name=route.name or page_request.path
    )
    document = DocumentAssembler(
        state.settings, page_request, page_cache=state.page_cache
    )
    if state.setup is not None:
        state.setup(document)
    body = route.handler(document, diagnostics)
    return document.render(body, diagnostics)


__all__ = ["PageRoute", "create_cache_router", "create_site_app"]
