"""Request-scoped HTML document assembly with full-page and transient caches."""

from .components import ComponentLoader
from .config import SiteSettings
from .diagnostics import DatabaseCall, DiagnosticsContext, render_diagnostics
from .document import (
    AttributeTarget,
    DocumentAssembler,
    DocumentState,
    PageRequest,
    RenderState,
    RenderedPage,
)
from .errors import (
    ComponentNotFoundError,
    DocumentClosedError,
    MissingModuleError,
    MissingSourceFileError,
    PageAssemblyError,
    SettingsError,
)
from .hooks import CANONICAL_HOOKS, HookRegistry
from .minify import minify_asset, minify_html
from .paths import PathResolver
from .resources import Resource, ResourceKind, ResourcePipeline
from .server import PageCache, TransientStore, normalize_cache_key

__all__ = [
    "AttributeTarget",
    "CANONICAL_HOOKS",
    "ComponentLoader",
    "ComponentNotFoundError",
    "DatabaseCall",
    "DiagnosticsContext",
    "DocumentAssembler",
    "DocumentClosedError",
    "DocumentState",
    "HookRegistry",
    "MissingModuleError",
    "MissingSourceFileError",
    "PageAssemblyError",
    "PageCache",
    "PageRequest",
    "PathResolver",
    "RenderState",
    "RenderedPage",
    "Resource",
    "ResourceKind",
    "ResourcePipeline",
    "SettingsError",
    "SiteSettings",
    "TransientStore",
    "minify_asset",
    "minify_html",
    "normalize_cache_key",
    "render_diagnostics",
]
