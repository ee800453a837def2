"""Formatting utilities for component templates."""

from __future__ import annotations

import html
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from .errors import TemplateApplicationError

__all__ = [
    "DEFAULT_DATE_FORMATS",
    "DEFAULT_NUMBER_FORMATS",
    "escape",
    "format_date",
    "format_number",
    "stringify",
]

DEFAULT_DATE_FORMATS: Mapping[str, str] = {
    "iso": "ISO",
    "yyyy-mm-dd": "%Y-%m-%d",
    "dd.mm.yyyy": "%d.%m.%Y",
    "month-name": "%B %d, %Y",
    "day-month-name": "%d %B %Y",
}

DEFAULT_NUMBER_FORMATS: Mapping[str, str] = {
    "integer": "d",
    "decimal": ",.2f",
    "percent": ".0%",
}


def _parse_date(value: Any) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise TemplateApplicationError(
                f"date_format cannot parse '{value}' as an ISO date"
            ) from exc
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    raise TemplateApplicationError("date_format requires a date, datetime or ISO string")


def format_date(value: Any, format_key: str, formats: Mapping[str, str] = DEFAULT_DATE_FORMATS) -> str:
    """Format ``value`` using a named format or a literal ``strftime`` pattern."""

    parsed = _parse_date(value)
    format_definition = formats.get(format_key, format_key)
    if format_definition == "ISO":
        return parsed.isoformat()
    return parsed.strftime(format_definition)


def format_number(value: Any, format_key: str, formats: Mapping[str, str] = DEFAULT_NUMBER_FORMATS) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise TemplateApplicationError("number_format requires a numeric value")
    format_definition = formats.get(format_key)
    if format_definition is None:
        raise TemplateApplicationError(f"Unknown number format '{format_key}'")
    return format(value, format_definition)


def escape(value: Any) -> str:
    return html.escape(stringify(value), quote=True)


def stringify(value: Any) -> str:
    """Serialise values to text suitable for embedding in markup."""

    match value:
        case None:
            return ""
        case bool() as boolean:
            return "true" if boolean else "false"
        case datetime() as dt:
            return dt.isoformat()
        case date() as current_date:
            return current_date.isoformat()

    return str(value)
