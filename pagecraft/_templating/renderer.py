"""Placeholder substitution for component files."""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .errors import TemplateApplicationError
from .formatters import escape, format_date, format_number, stringify

__all__ = ["MODIFIERS", "PLACEHOLDER", "TemplateRenderer"]

PLACEHOLDER = re.compile(r"\{\{\s*(?P<expression>.*?)\s*\}\}")


def _coalesce(value: Any, default: Any = None) -> Any:
    return default if value is None else value


def _text_modifier(name: str, transform: Callable[[str], str]) -> Callable[[Any], str]:
    def apply(value: Any) -> str:
        if not isinstance(value, str):
            raise TemplateApplicationError(f"{name} requires a text value")
        return transform(value)

    return apply


def _date_format(value: Any, format_key: str = "month-name") -> str:
    return format_date(value, format_key)


def _number_format(value: Any, format_key: str = "decimal") -> str:
    return format_number(value, format_key)


MODIFIERS: Mapping[str, Callable[..., Any]] = MappingProxyType(
    {
        "coalesce": _coalesce,
        "escape": escape,
        "upper": _text_modifier("upper", str.upper),
        "lower": _text_modifier("lower", str.lower),
        "date_format": _date_format,
        "number_format": _number_format,
    }
)


@dataclass(frozen=True)
class _Modifier:
    name: str
    args: tuple[Any, ...] = ()
    kwargs: tuple[tuple[str, Any], ...] = ()

    def apply(self, value: Any) -> Any:
        handler = MODIFIERS.get(self.name)
        if handler is None:
            raise TemplateApplicationError(f"Unknown modifier '{self.name}'")
        try:
            return handler(value, *self.args, **dict(self.kwargs))
        except TypeError as exc:
            raise TemplateApplicationError(
                f"Modifier '{self.name}' received unexpected arguments"
            ) from exc


@dataclass(frozen=True)
class _Expression:
    lookup: ast.expr
    modifiers: tuple[_Modifier, ...]


def _literal(node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except ValueError as exc:
        raise TemplateApplicationError("Modifier arguments must be literals") from exc


def _parse_modifier(text: str) -> _Modifier:
    try:
        node = ast.parse(text, mode="eval").body
    except SyntaxError as exc:
        raise TemplateApplicationError(f"Invalid modifier '{text}'") from exc
    match node:
        case ast.Name(id=name):
            return _Modifier(name)
        case ast.Call(func=ast.Name(id=name), args=args, keywords=keywords):
            if any(keyword.arg is None for keyword in keywords):
                raise TemplateApplicationError(f"Invalid modifier '{text}'")
            return _Modifier(
                name,
                tuple(_literal(arg) for arg in args),
                tuple((keyword.arg, _literal(keyword.value)) for keyword in keywords),
            )
    raise TemplateApplicationError("Modifiers must be names or function calls")


@lru_cache(maxsize=256)
def _parse_expression(text: str) -> _Expression:
    lookup_text, *modifier_texts = (part.strip() for part in text.split("|"))
    if not lookup_text:
        raise TemplateApplicationError("Empty template expression")
    try:
        lookup = ast.parse(lookup_text, mode="eval").body
    except SyntaxError as exc:
        raise TemplateApplicationError(f"Invalid path expression '{lookup_text}'") from exc
    modifiers = tuple(_parse_modifier(part) for part in modifier_texts if part)
    return _Expression(lookup, modifiers)


class TemplateRenderer:
    """Substitute ``{{ expression | modifier }}`` placeholders.

    A lookup may be a variable name followed by attribute access
    (``user.name``) or subscripts (``user['name']``, ``items[0]``).
    Names starting with an underscore are never resolved.
    """

    def __init__(self, variables: Mapping[str, Any] | None = None) -> None:
        if variables is not None and not isinstance(variables, Mapping):
            raise TemplateApplicationError("Template variables must be a mapping")
        self._scope = dict(variables or {})

    def render(self, template: str) -> str:
        return PLACEHOLDER.sub(self._substitute, template)

    def evaluate(self, expression: str) -> Any:
        parsed = _parse_expression(expression.strip())
        value = self._lookup(parsed.lookup)
        for modifier in parsed.modifiers:
            value = modifier.apply(value)
        return value

    def _substitute(self, match: re.Match[str]) -> str:
        return stringify(self.evaluate(match.group("expression")))

    def _lookup(self, node: ast.expr) -> Any:
        match node:
            case ast.Name(id=name):
                if name not in self._scope:
                    raise TemplateApplicationError(
                        f"Variable '{name}' is not defined for this template"
                    )
                return self._scope[name]
            case ast.Attribute(value=owner, attr=attr):
                return _attribute(self._lookup(owner), attr)
            case ast.Subscript(value=owner, slice=index):
                return _item(self._lookup(owner), self._lookup(index))
            case ast.Constant(value=constant):
                return constant
        raise TemplateApplicationError("Unsupported expression in template")


def _attribute(owner: Any, attr: str) -> Any:
    if not attr.startswith("_"):
        if isinstance(owner, Mapping) and attr in owner:
            return owner[attr]
        if hasattr(owner, attr):
            return getattr(owner, attr)
    raise TemplateApplicationError(f"Attribute '{attr}' is not accessible in templates")


def _item(owner: Any, key: Any) -> Any:
    if isinstance(owner, Mapping):
        if key not in owner:
            raise TemplateApplicationError(f"Key '{key}' is missing from the mapping")
        return owner[key]
    if isinstance(owner, (list, tuple)) and isinstance(key, int):
        if -len(owner) <= key < len(owner):
            return owner[key]
        raise TemplateApplicationError(f"Index {key} is out of range")
    raise TemplateApplicationError("Indexed access is only supported for mappings and sequences")
