"""Named extension points resolved into document fragments."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator

__all__ = [
    "AFTER_BODY",
    "AFTER_HEAD",
    "BEFORE_BODY",
    "BEFORE_HEAD",
    "BOTTOM_BODY",
    "BOTTOM_HEAD",
    "CANONICAL_HOOKS",
    "HookRegistration",
    "HookRegistry",
    "TOP_BODY",
    "TOP_HEAD",
]

logger = logging.getLogger(__name__)

BEFORE_HEAD = "before_head"
TOP_HEAD = "top_head"
BOTTOM_HEAD = "bottom_head"
AFTER_HEAD = "after_head"
BEFORE_BODY = "before_body"
TOP_BODY = "top_body"
BOTTOM_BODY = "bottom_body"
AFTER_BODY = "after_body"

CANONICAL_HOOKS: tuple[str, ...] = (
    BEFORE_HEAD,
    TOP_HEAD,
    BOTTOM_HEAD,
    AFTER_HEAD,
    BEFORE_BODY,
    TOP_BODY,
    BOTTOM_BODY,
    AFTER_BODY,
)


@dataclass(frozen=True)
class HookRegistration:
    """A content source attached to a hook with its priority."""

    name: str
    source: Any
    priority: int = 0
    sequence: int = 0


class HookRegistry:
    """Ordered content producers keyed by hook name.

    ``file_renderer`` renders a source that names an existing file; it
    receives the path and returns the captured output. ``file_exists``
    decides whether a string source is such a path.
    """

    def __init__(
        self,
        *,
        file_renderer: Callable[[str], str] | None = None,
        file_exists: Callable[[str], bool] | None = None,
    ) -> None:
        self._registrations: defaultdict[str, list[HookRegistration]] = defaultdict(list)
        self._file_renderer = file_renderer or _read_text
        self._file_exists = file_exists or _is_file
        self._sequence = 0

    def register(self, hook_name: str, source: Any, priority: int = 0) -> HookRegistration:
        registration = HookRegistration(
            name=hook_name, source=source, priority=int(priority), sequence=self._sequence
        )
        self._sequence += 1
        self._registrations[hook_name].append(registration)
        return registration

    def registrations(self, hook_name: str) -> tuple[HookRegistration, ...]:
        # sorted() is stable, so equal priorities keep registration order.
        return tuple(
            sorted(self._registrations.get(hook_name, ()), key=lambda item: -item.priority)
        )

    def resolve(self, hook_name: str) -> str:
        return "".join(self._iter_fragments(hook_name))

    def names(self) -> tuple[str, ...]:
        return tuple(name for name, items in self._registrations.items() if items)

    def __contains__(self, hook_name: object) -> bool:
        return bool(self._registrations.get(hook_name))  # type: ignore[arg-type]

    def _iter_fragments(self, hook_name: str) -> Iterator[str]:
        for registration in self.registrations(hook_name):
            source = registration.source
            if callable(source):
                content = source()
                if isinstance(content, str):
                    yield content
            elif isinstance(source, (str, Path)) and self._is_existing_file(source):
                yield self._file_renderer(str(source))
            elif isinstance(source, str):
                yield source
            else:
                logger.warning("Invalid content source for the hook: %s", hook_name)

    def _is_existing_file(self, source: str | Path) -> bool:
        text = str(source)
        # Markup is never a path; skip the filesystem probe for it.
        if not text or "<" in text or "\n" in text:
            return False
        try:
            return self._file_exists(text)
        except (OSError, ValueError):
            return False


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _is_file(path: str) -> bool:
    return Path(path).is_file()
