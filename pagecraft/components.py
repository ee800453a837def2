"""Component files and header/footer content loading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from ._templating import TemplateRenderer
from .errors import ComponentNotFoundError, MissingSourceFileError
from .paths import PathResolver

__all__ = ["COMPONENT_SUFFIX", "ComponentLoader"]

logger = logging.getLogger(__name__)

COMPONENT_SUFFIX = ".html"


class ComponentLoader:
    """Render component templates found under the components directory."""

    def __init__(
        self,
        resolver: PathResolver,
        components_path: str,
        *,
        shared_variables: Mapping[str, Any] | None = None,
    ) -> None:
        self._resolver = resolver
        self._components_path = components_path
        self._shared = dict(shared_variables or {})

    @property
    def components_path(self) -> str:
        return self._components_path

    def render_file(self, path: str | Path, variables: Mapping[str, Any] | None = None) -> str:
        """Render the project-relative template at ``path``."""

        file_path = self._resolver.resolve(path)
        template = file_path.read_text(encoding="utf-8")
        bag = {**self._shared, **(variables or {})}
        return TemplateRenderer(bag).render(template)

    def component_path(self, name: str) -> str:
        stem = name[: -len(COMPONENT_SUFFIX)] if name.endswith(COMPONENT_SUFFIX) else name
        return f"{self._components_path}{stem}{COMPONENT_SUFFIX}"

    def component(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        *,
        minify: Callable[[str], str] | None = None,
    ) -> str:
        relative = self.component_path(name)
        if not self._resolver.exists(relative):
            raise ComponentNotFoundError(
                f"Component '{name}' not found in {self._resolver.resolve(relative)}"
            )
        rendered = self.render_file(relative, variables)
        return minify(rendered) if minify else rendered

    def load_content(
        self,
        default_path: str | None,
        content: str | Mapping[str, Any] | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Resolve header/footer style content.

        Inline text wins. A mapping passed as ``content`` becomes the variable
        bag for the default file; otherwise the default file is rendered with
        ``variables``. A missing default file is reported and yields ``None``.
        """

        if not default_path and not content:
            raise MissingSourceFileError("No content and no default file were provided")
        if isinstance(content, Mapping):
            variables = content
        elif content:
            return str(content)
        if not default_path or not self._resolver.exists(default_path):
            logger.warning("Content file does not exist: %s", default_path)
            return None
        return self.render_file(default_path, variables)
