"""Support utilities shared across cache components."""

from __future__ import annotations

import base64
import binascii
import json
import time
from pathlib import Path
from typing import Any, Callable

__all__ = [
    "CACHE_SUFFIX",
    "decode_key",
    "encode_key",
    "handle_expiry",
    "normalize_cache_key",
    "read_json_map",
    "wall_clock",
    "write_json_map",
]

CACHE_SUFFIX = ".cache"


def wall_clock() -> float:
    return time.time()


def normalize_cache_key(path: str) -> str:
    """Return the cache key for a request path.

    The query string and fragment are dropped and trailing slashes trimmed,
    so ``/about/?x=1`` and ``/about`` share an entry. The root stays ``/``.
    A leading ``//`` is part of the path, never a network location.
    """

    trimmed = path.split("?", 1)[0].split("#", 1)[0].rstrip("/")
    if not trimmed:
        return "/"
    return trimmed if trimmed.startswith("/") else "/" + trimmed


def encode_key(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii")


def decode_key(encoded: str) -> str | None:
    try:
        return base64.urlsafe_b64decode(encoded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None


def handle_expiry(
    expires_at: float, now: float, *, on_expire: Callable[[], None]
) -> bool:
    if now < expires_at:
        return False
    on_expire()
    return True


def read_json_map(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def write_json_map(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, sort_keys=True), encoding="utf-8")
