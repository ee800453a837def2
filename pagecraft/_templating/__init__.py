"""Internal ``{{ name }}`` substitution used for component files."""

from .errors import TemplateApplicationError
from .renderer import TemplateRenderer

__all__ = [
    "TemplateApplicationError",
    "TemplateRenderer",
]
