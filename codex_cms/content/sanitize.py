"""
Block payload sanitization.

Block `data` is stored as an opaque structure, so every string that can end up
rendered as markup is cleaned against an allow-list before it is persisted.
"""

from __future__ import annotations

import re
from typing import Any

import bleach
from bleach.css_sanitizer import CSSSanitizer

ALLOWED_TAGS = frozenset(
    {
        "div", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6",
        "a", "img", "ul", "ol", "li", "strong", "em", "br", "u", "s",
        "blockquote", "code", "pre", "hr", "section", "article",
        "header", "footer", "nav", "aside", "main", "figure", "figcaption",
        "table", "thead", "tbody", "tr", "th", "td",
    }
)

ALLOWED_ATTRIBUTES = [
    "href", "src", "alt", "title", "class", "id", "target", "rel",
    "width", "height", "loading", "decoding", "fetchpriority", "style",
]

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "tel"})

RICH_TEXT_KEYS = frozenset({"content", "description", "body", "text", "html"})

# Inline event handlers and prototype-pollution vectors never survive.
_DISALLOWED_KEY_RE = re.compile(r"^(on[a-z]+|__proto__|constructor|prototype)$", re.IGNORECASE)
_MARKUP_RE = re.compile(r"<[^>]*>")

# Nested `data` wrappers produced by the editor are unwrapped up to this depth.
MAX_UNWRAP_DEPTH = 10

_css_sanitizer = CSSSanitizer()


def sanitize_rich_text(html: str) -> str:
    if not html:
        return ""
    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        css_sanitizer=_css_sanitizer,
        strip=True,
        strip_comments=True,
    )


def _looks_like_block(value: Any) -> bool:
    return isinstance(value, dict) and (
        isinstance(value.get("type"), str)
        or isinstance(value.get("visible"), bool)
        or isinstance(value.get("id"), str)
    )


def unwrap_editor_payload(data: Any) -> Any:
    """Strip `{"data": {...block...}}` layers the editor wraps around a block."""
    current = data
    depth = 0
    while (
        isinstance(current, dict)
        and isinstance(current.get("data"), dict)
        and _looks_like_block(current["data"])
        and depth < MAX_UNWRAP_DEPTH
    ):
        current = current["data"]
        depth += 1
    return current


def _sanitize_value(value: Any, *, key: str | None = None) -> Any:
    if isinstance(value, str):
        if (key is not None and key.lower() in RICH_TEXT_KEYS) or _MARKUP_RE.search(value):
            return sanitize_rich_text(value)
        return value
    if isinstance(value, list):
        return [_sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {
            k: _sanitize_value(v, key=k)
            for k, v in value.items()
            if not _DISALLOWED_KEY_RE.match(str(k))
        }
    return value


def sanitize_block_data(data: Any) -> Any:
    """Return a sanitized deep copy of a block payload. The input is not mutated."""
    if not isinstance(data, dict):
        return data
    return _sanitize_value(unwrap_editor_payload(data))
