"""Request-scoped document assembly with full-page caching."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping
from urllib.parse import parse_qsl

from .components import ComponentLoader
from .config import SiteSettings
from .diagnostics import DiagnosticsContext, render_diagnostics
from .errors import DocumentClosedError
from .hooks import (
    AFTER_BODY,
    AFTER_HEAD,
    BEFORE_BODY,
    BEFORE_HEAD,
    BOTTOM_BODY,
    BOTTOM_HEAD,
    TOP_BODY,
    TOP_HEAD,
    HookRegistry,
)
from .minify import minify_html
from .paths import PathResolver
from .resources import Resource, ResourcePipeline, format_attributes
from .server.cache import PageCache
from .server.cache_support import normalize_cache_key

__all__ = [
    "AttributeTarget",
    "DocumentAssembler",
    "DocumentState",
    "PageRequest",
    "RenderState",
    "RenderedPage",
]

logger = logging.getLogger(__name__)

_CDN_TAGS = frozenset({"link", "script"})


class RenderState(str, Enum):
    ACCUMULATING = "accumulating"
    CACHE_CHECK = "cache_check"
    BUILDING = "building"
    CACHING = "caching"
    EMITTED = "emitted"


class AttributeTarget(str, Enum):
    HTML = "html"
    BODY = "body"
    LANG = "lang"
    TITLE = "title"
    CHARSET = "charset"


# Filter target -> DocumentState field holding its value.
_ATTRIBUTE_FIELDS: Mapping[AttributeTarget, str] = MappingProxyType(
    {
        AttributeTarget.HTML: "html_attributes",
        AttributeTarget.BODY: "body_attributes",
        AttributeTarget.LANG: "lang",
        AttributeTarget.TITLE: "title",
        AttributeTarget.CHARSET: "charset",
    }
)


@dataclass
class DocumentState:
    """Page metadata accumulated before the render call."""

    title: str = ""
    project_name: str = ""
    lang: str = "en"
    charset: str = "UTF-8"
    html_attributes: dict[str, str] = field(default_factory=dict)
    body_attributes: dict[str, str] = field(default_factory=dict)
    favicon: str = ""
    header: str = ""
    footer: str = ""
    metas: list[str] = field(default_factory=list)
    cdns: list[tuple[str, str]] = field(default_factory=list)
    ajax_variable: str = ""
    ajax_url: str = ""
    minify: bool = False
    cache_enabled: bool = False


@dataclass(frozen=True)
class PageRequest:
    """The normalized request a document is assembled for."""

    path: str = "/"
    query: Mapping[str, str] = field(default_factory=dict)
    method: str = "GET"

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", MappingProxyType(dict(self.query)))

    @classmethod
    def from_url(cls, url: str, *, method: str = "GET") -> "PageRequest":
        path, _, query = url.split("#", 1)[0].partition("?")
        return cls(path=path or "/", query=dict(parse_qsl(query)), method=method)

    @property
    def cache_key(self) -> str:
        return normalize_cache_key(self.path)


@dataclass(frozen=True)
class RenderedPage:
    """Bytes emitted by the terminal render call."""

    content: bytes
    from_cache: bool
    cache_key: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class DocumentAssembler:
    """Accumulate page state for one request and render it exactly once."""

    def __init__(
        self,
        settings: SiteSettings,
        request: PageRequest | None = None,
        *,
        page_cache: PageCache | None = None,
        resolver: PathResolver | None = None,
    ) -> None:
        self._settings = settings
        self._request = request or PageRequest()
        self._resolver = resolver or PathResolver.from_settings(settings)
        self._page_cache = page_cache or PageCache(self._resolver.resolve(settings.cache_path))
        self._components = ComponentLoader(
            self._resolver,
            settings.components_path,
            shared_variables={"settings": settings, "request": self._request},
        )
        self._hooks = HookRegistry(
            file_renderer=self._components.render_file,
            file_exists=self._resolver.exists,
        )
        self._resources = ResourcePipeline(settings, self._resolver)
        self._document = DocumentState()
        self._state = RenderState.ACCUMULATING

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def document(self) -> DocumentState:
        return self._document

    @property
    def request(self) -> PageRequest:
        return self._request

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    @property
    def resources(self) -> ResourcePipeline:
        return self._resources

    @property
    def page_cache(self) -> PageCache:
        return self._page_cache

    # Page metadata

    def activate_minify(self) -> None:
        self._document.minify = True

    def enable_cache(self) -> None:
        self._document.cache_enabled = True

    def disable_cache(self) -> None:
        self._document.cache_enabled = False

    def set_project_name(self, project_name: str) -> None:
        self._document.project_name = project_name
        self.set_title(project_name)

    def set_title(self, title: str) -> None:
        self._document.title = title

    def set_favicon(self, favicon: str) -> None:
        self._document.favicon = favicon

    def set_lang(self, lang: str) -> None:
        self._document.lang = lang

    def get_lang(self) -> str:
        return self._document.lang

    def set_charset(self, charset: str) -> None:
        self._document.charset = charset

    def add_html_attribute(self, name: str, value: Any = "") -> None:
        self._document.html_attributes[name] = str(value)

    def add_body_attribute(self, name: str, value: Any = "") -> None:
        self._document.body_attributes[name] = str(value)

    def add_meta(self, attributes: str) -> None:
        self._document.metas.append(attributes)

    def add_cdn(self, tag: str, attributes: str) -> None:
        tag = tag.lower()
        if tag not in _CDN_TAGS:
            logger.warning("Invalid CDN type: %s", tag)
        self._document.cdns.append((tag, attributes))

    def set_ajax_url(self, variable: str = "ajax_url") -> None:
        self._document.ajax_variable = variable
        self._document.ajax_url = self._resolver.url(self._settings.ajax_path)

    def url(self, path: str = "") -> str:
        return self._resolver.url(path)

    def apply_attribute_filter(self, target: str, transform: Callable[[Any], Any]) -> Any:
        """Replace the title or an attribute collection with ``transform(value)``.

        Unknown targets are reported and leave the document untouched.
        """

        try:
            resolved = AttributeTarget(target.lower())
        except ValueError:
            logger.warning("Invalid HTML tag: %s", target)
            return None
        field_name = _ATTRIBUTE_FIELDS[resolved]
        filtered = transform(getattr(self._document, field_name))
        setattr(self._document, field_name, filtered)
        return filtered

    # Header, footer and components

    def add_header(
        self, content: str | Mapping[str, Any] = "", variables: Mapping[str, Any] | None = None
    ) -> None:
        loaded = self._components.load_content(
            self._components.component_path("header"), content, variables
        )
        if loaded is not None:
            self._document.header = loaded

    def remove_header(self) -> None:
        self._document.header = ""

    def add_footer(
        self, content: str | Mapping[str, Any] = "", variables: Mapping[str, Any] | None = None
    ) -> None:
        loaded = self._components.load_content(
            self._components.component_path("footer"), content, variables
        )
        if loaded is not None:
            self._document.footer = loaded

    def remove_footer(self) -> None:
        self._document.footer = ""

    def component(self, name: str, variables: Mapping[str, Any] | None = None) -> str:
        return self._components.component(name, variables, minify=self.minify)

    def component_hook(
        self,
        hook_name: str,
        component: str,
        variables: Mapping[str, Any] | None = None,
        priority: int = 0,
    ) -> None:
        self._hooks.register(hook_name, self.component(component, variables), priority)

    # Hooks

    def add_hook(self, hook_name: str, source: Any, priority: int = 0) -> None:
        self._hooks.register(hook_name, source, priority)

    def hook(self, hook_name: str) -> str:
        """Resolve a custom hook for embedding it in page content."""

        return self._hooks.resolve(hook_name)

    # Resources

    def add_style(
        self, path: str, attributes: str | Mapping[str, Any] = "", from_root: bool = False
    ) -> Resource | None:
        return self._resources.add_style(path, attributes, from_root)

    def add_script(
        self, path: str, attributes: str | Mapping[str, Any] = "", from_root: bool = False
    ) -> Resource | None:
        return self._resources.add_script(path, attributes, from_root)

    def compress(self, path: str) -> str:
        return self._resources.compress(path)

    def locate_module_asset(
        self,
        module_name: str,
        extension: str = "min.js",
        auto_add: bool = True,
        attributes: str | Mapping[str, Any] = "",
    ) -> str:
        return self._resources.locate_module_asset(module_name, extension, auto_add, attributes)

    # Rendering

    def minify(self, html: str) -> str:
        return minify_html(html) if self._document.minify else html

    def render(
        self, body: str = "", diagnostics: DiagnosticsContext | None = None
    ) -> RenderedPage:
        """Serve the cached page or build, cache and return a fresh one."""

        if self._state is not RenderState.ACCUMULATING:
            raise DocumentClosedError("The document has already been rendered")
        self._state = RenderState.CACHE_CHECK
        key = self._request.cache_key
        if self._document.cache_enabled:
            bypass = self._apply_bypass_signals(key)
            if not bypass and self._settings.production:
                cached = self._page_cache.get(key)
                if cached is not None:
                    return self._emit(cached, from_cache=True, key=key)

        self._state = RenderState.BUILDING
        html = self._build(body)

        self._state = RenderState.CACHING
        html = self.minify(html)
        content = html.encode("utf-8")
        if self._document.cache_enabled:
            self._page_cache.set(key, content)

        if self._settings.debug and not self._settings.production:
            context = diagnostics or DiagnosticsContext(method=self._request.method)
            overlay = render_diagnostics(context, self._settings.as_table())
            content += self.minify(overlay).encode("utf-8")
        return self._emit(content, from_cache=False, key=key)

    def _emit(self, content: bytes, *, from_cache: bool, key: str) -> RenderedPage:
        self._state = RenderState.EMITTED
        return RenderedPage(content=content, from_cache=from_cache, cache_key=key)

    def _apply_bypass_signals(self, key: str) -> bool:
        query = self._request.query
        clear_all = self._settings.cache_clear_all_key
        if clear_all and query.get(clear_all) == clear_all:
            removed = self._page_cache.purge_all()
            logger.info("Purged %d cached pages", removed)
            return True
        clear_current = self._settings.cache_clear_current_key
        if clear_current and query.get(clear_current) == clear_current:
            self._page_cache.purge(key)
            logger.info("Purged cached page %s", key)
            return True
        return False

    def _build(self, body: str) -> str:
        doc = self._document
        resolve = self._hooks.resolve
        closing_hook = BOTTOM_BODY if self._settings.distinct_bottom_body else BEFORE_BODY
        parts = [
            "<!DOCTYPE html>",
            f'<html lang="{doc.lang}"{format_attributes(doc.html_attributes)}>',
            resolve(BEFORE_HEAD),
            "<head>",
            resolve(TOP_HEAD),
            f'<meta charset="{doc.charset}">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            *(f"<meta {meta}>" for meta in doc.metas),
            f"<title>{doc.title or self._settings.app_name}</title>",
            self._ajax_script(),
            f'<link rel="icon" type="image/x-icon" href="{self._resolver.url(doc.favicon)}">',
            *(_cdn_tag(tag, attributes) for tag, attributes in doc.cdns),
            self._resources.render_styles(),
            self._resources.render_scripts(),
            resolve(BOTTOM_HEAD),
            "</head>",
            resolve(AFTER_HEAD),
            resolve(BEFORE_BODY),
            f"<body{format_attributes(doc.body_attributes)}>",
            resolve(TOP_BODY),
            doc.header,
            self.minify(body),
            resolve(closing_hook),
            doc.footer,
            "</body>",
            resolve(AFTER_BODY),
            "</html>",
        ]
        return "\n".join(part for part in parts if part)

    def _ajax_script(self) -> str:
        if not self._document.ajax_url:
            return ""
        return f"<script>let {self._document.ajax_variable} = '{self._document.ajax_url}'</script>"


def _cdn_tag(tag: str, attributes: str) -> str:
    opening = f"<{tag} {attributes}>"
    return opening + f"</{tag}>" if tag == "script" else opening
