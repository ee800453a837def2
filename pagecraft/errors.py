"""Error types raised while assembling pages."""


class PageAssemblyError(RuntimeError):
    """Base class for fatal page assembly failures."""

    __slots__ = ()


class SettingsError(ValueError):
    """Raised when site settings contain invalid values."""

    __slots__ = ()


class MissingModuleError(PageAssemblyError):
    """Raised when a third-party asset directory or file cannot be found."""

    __slots__ = ()


class MissingSourceFileError(PageAssemblyError):
    """Raised when required source content is neither inline nor on disk."""

    __slots__ = ()


class ComponentNotFoundError(MissingSourceFileError):
    """Raised when a component template does not exist."""

    __slots__ = ()


class DocumentClosedError(PageAssemblyError):
    """Raised when a document is rendered after it has been emitted."""

    __slots__ = ()


__all__ = [
    "ComponentNotFoundError",
    "DocumentClosedError",
    "MissingModuleError",
    "MissingSourceFileError",
    "PageAssemblyError",
    "SettingsError",
]
