"""Project path and public URL resolution shared by the page components."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import SiteSettings

__all__ = ["PathResolver"]


@dataclass(frozen=True)
class PathResolver:
    """Map project-relative paths onto the filesystem and the public site."""

    root: Path
    base_url: str = "/"

    @classmethod
    def from_settings(cls, settings: SiteSettings) -> "PathResolver":
        return cls(root=settings.root, base_url=settings.base_url)

    def resolve(self, relative: str | Path = "") -> Path:
        """Return the filesystem path for ``relative`` under the project root."""

        text = str(relative).lstrip("/")
        return self.root / text if text else self.root

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the project root using forward slashes."""

        return path.relative_to(self.root).as_posix()

    def url(self, relative: str | Path = "") -> str:
        return self.base_url + str(relative).lstrip("/")

    def exists(self, relative: str | Path) -> bool:
        if not str(relative):
            return False
        return self.resolve(relative).is_file()
