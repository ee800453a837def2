"""Whitespace and comment stripping for documents and static assets."""

from __future__ import annotations

import re

__all__ = ["minify_asset", "minify_html"]

_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")
_BETWEEN_TAGS = re.compile(r">\s+<")

# Applied in order; the line comment rule skips "://" so URLs survive.
_ASSET_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?<![:\\])//[^\n\r]*"), ""),
    (re.compile(r"/\*.*?\*/", re.DOTALL), ""),
    (re.compile(r"\s*([{}:;,=()])\s*"), r"\1"),
    (re.compile(r";\s*}"), "}"),
    (re.compile(r"\s+"), " "),
)


def _strip_comments(html: str) -> str:
    previous = None
    while previous != html:
        previous = html
        html = _HTML_COMMENT.sub("", html)
    return html


def minify_html(html: str) -> str:
    """Collapse whitespace, drop comments and whitespace between tags.

    ``minify_html(minify_html(s)) == minify_html(s)`` holds for every ``s``.
    """

    minified = _strip_comments(html)
    minified = _WHITESPACE.sub(" ", minified)
    return _BETWEEN_TAGS.sub("><", minified)


def minify_asset(source: str) -> str:
    """Apply the stylesheet/script rule set used for ``_min`` artifacts."""

    minified = source
    for pattern, replacement in _ASSET_RULES:
        minified = pattern.sub(replacement, minified)
    return minified.strip()
