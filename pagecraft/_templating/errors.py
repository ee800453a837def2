"""Error types used by the component template renderer."""


class TemplateApplicationError(RuntimeError):
    """Raised when a component template cannot be rendered."""

    __slots__ = ()
