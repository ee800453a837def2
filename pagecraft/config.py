"""Site settings resolved from a string-keyed configuration lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .errors import SettingsError

__all__ = ["SiteSettings", "coerce_flag"]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})

# Configuration key -> SiteSettings field.
_KEY_FIELDS: Mapping[str, str] = MappingProxyType(
    {
        "ROOT_PATH": "root",
        "BASE_URL": "base_url",
        "APP_NAME": "app_name",
        "PRODUCTION": "production",
        "DEBUG_BAR": "debug",
        "STYLE_PATH": "style_path",
        "SCRIPT_PATH": "script_path",
        "COMPONENTS_PATH": "components_path",
        "CACHE_PATH": "cache_path",
        "TRANSIENT_PATH": "transient_path",
        "AJAX_PATH": "ajax_path",
        "CACHE_CLEAR_CURRENT": "cache_clear_current_key",
        "CACHE_CLEAR_ALL": "cache_clear_all_key",
        "DISTINCT_BOTTOM_BODY": "distinct_bottom_body",
    }
)
_FLAG_FIELDS = frozenset({"production", "debug", "distinct_bottom_body"})


def coerce_flag(value: Any, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_STRINGS:
            return True
        if token in _FALSE_STRINGS:
            return False
    raise SettingsError(f"Setting '{name}' must be a boolean flag, got {value!r}")


@dataclass(frozen=True)
class SiteSettings:
    """Page assembly configuration shared by every request of a site.

    Relative paths (``style_path``, ``cache_path`` ...) are resolved against
    ``root``. Directory-like paths keep their trailing slash so they can be
    concatenated with file names the same way the configuration spells them.
    """

    root: Path = Path(".")
    base_url: str = "/"
    app_name: str = ""
    production: bool = False
    debug: bool = False
    style_path: str = "web/css/"
    script_path: str = "web/js/"
    components_path: str = "web/components/"
    cache_path: str = "cache/pages/"
    transient_path: str = "storage/transients.json"
    ajax_path: str = "ajax"
    cache_clear_current_key: str | None = None
    cache_clear_all_key: str | None = None
    distinct_bottom_body: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        for name in _FLAG_FIELDS:
            object.__setattr__(self, name, coerce_flag(getattr(self, name), name=name))
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if not self.transient_path:
            msg = "transient_path must not be empty"
            raise SettingsError(msg)
        for name in ("cache_clear_current_key", "cache_clear_all_key"):
            value = getattr(self, name)
            if value is not None and not str(value):
                object.__setattr__(self, name, None)
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_mapping(cls, lookup: Mapping[str, Any]) -> "SiteSettings":
        """Build settings from upper-case configuration keys.

        Keys without a dedicated field are kept in :attr:`extra` so that
        :meth:`get` and the diagnostics overlay still see them.
        """

        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in lookup.items():
            field_name = _KEY_FIELDS.get(str(key).upper())
            if field_name is None:
                extra[str(key)] = value
                continue
            values[field_name] = value
        return cls(**values, extra=extra)

    def get(self, key: str, default: Any = None) -> Any:
        """String-keyed configuration lookup."""

        field_name = _KEY_FIELDS.get(key.upper())
        if field_name is not None:
            return getattr(self, field_name)
        return self.extra.get(key, default)

    def as_table(self) -> dict[str, Any]:
        table = {key: getattr(self, name) for key, name in _KEY_FIELDS.items()}
        table.update(self.extra)
        return table
