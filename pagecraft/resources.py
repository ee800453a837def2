"""Stylesheet and script registration, minified artifacts and module assets."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

from .config import SiteSettings
from .errors import MissingModuleError, MissingSourceFileError
from .minify import minify_asset
from .paths import PathResolver

__all__ = [
    "MINIFIED_DIRECTORY",
    "MODULES_ROOT",
    "Resource",
    "ResourceKind",
    "ResourcePipeline",
    "format_attributes",
]

logger = logging.getLogger(__name__)

MINIFIED_DIRECTORY = "_min"
MODULES_ROOT = "node_modules"


class ResourceKind(str, Enum):
    STYLE = "style"
    SCRIPT = "script"

    @property
    def label(self) -> str:
        return "stylesheet" if self is ResourceKind.STYLE else "script"


_EXTENSION_KINDS: Mapping[str, ResourceKind] = {
    "css": ResourceKind.STYLE,
    "js": ResourceKind.SCRIPT,
}


@dataclass(frozen=True)
class Resource:
    """A validated style or script reference."""

    kind: ResourceKind
    path: str
    url: str
    attributes: str = ""

    def render(self) -> str:
        if self.kind is ResourceKind.STYLE:
            return f'<link rel="stylesheet" href="{self.url}"{self.attributes}>'
        return f'<script src="{self.url}"{self.attributes}></script>'


def format_attributes(attributes: str | Mapping[str, Any] | None) -> str:
    """Render attributes as a string starting with a space, or ``""``."""

    if not attributes:
        return ""
    if isinstance(attributes, Mapping):
        return "".join(
            f' {key}="{html.escape(str(value), quote=True)}"'
            for key, value in attributes.items()
        )
    return f" {attributes}"


class ResourcePipeline:
    """Collect the stylesheets and scripts embedded in a document."""

    def __init__(self, settings: SiteSettings, resolver: PathResolver | None = None) -> None:
        self._settings = settings
        self._resolver = resolver or PathResolver.from_settings(settings)
        self._resources: dict[ResourceKind, list[Resource]] = {
            ResourceKind.STYLE: [],
            ResourceKind.SCRIPT: [],
        }
        self._base_paths: Mapping[ResourceKind, str] = {
            ResourceKind.STYLE: settings.style_path or "",
            ResourceKind.SCRIPT: settings.script_path or "",
        }

    @property
    def styles(self) -> tuple[Resource, ...]:
        return tuple(self._resources[ResourceKind.STYLE])

    @property
    def scripts(self) -> tuple[Resource, ...]:
        return tuple(self._resources[ResourceKind.SCRIPT])

    def add_style(
        self,
        path: str,
        attributes: str | Mapping[str, Any] | None = "",
        from_root: bool = False,
    ) -> Resource | None:
        return self._add(ResourceKind.STYLE, path, attributes, from_root)

    def add_script(
        self,
        path: str,
        attributes: str | Mapping[str, Any] | None = "",
        from_root: bool = False,
    ) -> Resource | None:
        return self._add(ResourceKind.SCRIPT, path, attributes, from_root)

    def render_styles(self) -> str:
        return "".join(resource.render() for resource in self.styles)

    def render_scripts(self) -> str:
        return "".join(resource.render() for resource in self.scripts)

    def compress(self, path: str) -> str:
        """Write a minified sibling of ``path`` and return its relative path.

        The artifact lives in ``_min/`` under the style or script base path
        and is rewritten only when its content changed. Paths that are not
        ``.css`` or ``.js`` are returned unchanged.
        """

        kind = _EXTENSION_KINDS.get(PurePosixPath(path).suffix.lstrip(".").lower())
        if kind is None:
            return path
        base_path = self._base_paths[kind]
        source = self._resolver.resolve(base_path + path)
        try:
            content = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MissingSourceFileError(
                f"{source} - File does not exist or is not readable"
            ) from exc
        if content == "":
            return ""

        minified = minify_asset(content)
        relative = PurePosixPath(path.lstrip("/"))
        artifact_name = relative.with_name(f"{relative.stem}.min{relative.suffix}")
        artifact_relative = f"{MINIFIED_DIRECTORY}/{artifact_name.as_posix()}"
        artifact = self._resolver.resolve(base_path + artifact_relative)
        if not _has_content(artifact, minified):
            artifact.parent.mkdir(parents=True, exist_ok=True)
            artifact.write_text(minified, encoding="utf-8")
        return artifact_relative

    def locate_module_asset(
        self,
        module_name: str,
        extension: str = "min.js",
        auto_add: bool = True,
        attributes: str | Mapping[str, Any] | None = "",
    ) -> str:
        """Find the first ``*.<extension>`` file of an installed module."""

        module_dir = self._resolver.resolve(f"{MODULES_ROOT}/{module_name.lower()}")
        if not module_dir.is_dir():
            raise MissingModuleError(f"Module '{module_name}' not found.")
        found = _find_first(module_dir, extension)
        if found is None:
            raise MissingModuleError(
                f"No file with extension '{extension}' found for module '{module_name}'."
            )
        link_path = self._resolver.relative(found)
        if auto_add:
            kind = _EXTENSION_KINDS.get(extension.rsplit(".", 1)[-1].lower())
            if kind is not None:
                self._add(kind, link_path, attributes, True)
        return link_path

    def _add(
        self,
        kind: ResourceKind,
        path: str,
        attributes: str | Mapping[str, Any] | None,
        from_root: bool,
    ) -> Resource | None:
        if not path:
            return None
        full_path = path if from_root else self._base_paths[kind] + path
        file_path = self._resolver.resolve(full_path)
        if not file_path.is_file():
            logger.warning("Could not find %s file => '%s'", kind.label, full_path)
            return None
        if file_path.stat().st_size == 0:
            logger.warning("Skipping empty %s file => '%s'", kind.label, full_path)
            return None
        resource = Resource(
            kind=kind,
            path=full_path,
            url=self._resolver.url(full_path),
            attributes=format_attributes(attributes),
        )
        self._resources[kind].append(resource)
        return resource


def _has_content(path: Path, expected: str) -> bool:
    try:
        return path.read_text(encoding="utf-8") == expected
    except (OSError, UnicodeDecodeError):
        return False


def _find_first(directory: Path, extension: str) -> Path | None:
    suffix = f".{extension}"
    children = sorted(directory.iterdir())
    for child in children:
        if child.is_file() and child.name.endswith(suffix):
            return child
    for child in children:
        if child.is_dir():
            found = _find_first(child, extension)
            if found is not None:
                return found
    return None
