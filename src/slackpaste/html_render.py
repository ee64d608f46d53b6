"""HTML rendering utilities: SafeHtml, escape_html, html_tag, HtmlRenderer.

Two tools for two jobs:

- ``html_tag("a", name, href=url)`` builds one element; children and
  attribute values are auto-escaped unless marked ``SafeHtml``.
- ``HtmlRenderer`` turns renderable content (``SafeHtml``, plain text or a
  sequence of either) into markup inside a target element.  The visitor
  commit phase uses it for ``Render`` directives.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from slackpaste.markup import Element

__all__ = [
    "HtmlRenderer",
    "Renderer",
    "SafeHtml",
    "escape_html",
    "html_tag",
    "join_html",
]

# Elements serialised without a closing tag.
_VOID_TAGS = frozenset(("br", "hr", "img", "input", "meta", "link", "wbr"))


class SafeHtml(str):
    """Mark a string as trusted HTML that should not be escaped."""


def escape_html(text: str) -> SafeHtml:
    """Escape ``& < > " '`` in *text*.

    A ``SafeHtml`` instance is returned unchanged, so escaping twice is a no-op.
    """
    if isinstance(text, SafeHtml):
        return text
    return SafeHtml(html.escape(text, quote=True))


def join_html(parts: Iterable[str]) -> SafeHtml:
    """Concatenate *parts*, escaping any that are not ``SafeHtml``."""
    return SafeHtml("".join(escape_html(part) for part in parts))


def html_tag(name: str, *children: str | None, **attrs: str | None) -> SafeHtml:
    """Build ``<name attr="...">children</name>``.

    Attribute names take a trailing underscore for Python keywords
    (``class_`` becomes ``class``) and underscores elsewhere become hyphens.
    ``None`` attributes and children are skipped.
    """
    parts = [f"<{name}"]
    for key, value in attrs.items():
        if value is None:
            continue
        attr = key.rstrip("_").replace("_", "-")
        parts.append(f' {attr}="{escape_html(value)}"')
    if name in _VOID_TAGS and not children:
        parts.append(" />")
        return SafeHtml("".join(parts))
    parts.append(">")
    parts.append(join_html(child for child in children if child is not None))
    parts.append(f"</{name}>")
    return SafeHtml("".join(parts))


@runtime_checkable
class Renderer(Protocol):
    """Capability that writes renderable content into a target element."""

    def render(self, content: object, target: Element) -> None:
        """Render *content* as the children of *target*."""
        ...


class HtmlRenderer:
    """Default renderer for ``SafeHtml``, text and sequences of those."""

    def to_html(self, content: object) -> SafeHtml:
        if content is None:
            return SafeHtml("")
        if isinstance(content, str):
            return escape_html(content)
        if isinstance(content, Iterable):
            return SafeHtml("".join(self.to_html(item) for item in content))
        msg = f"cannot render {type(content).__name__} as HTML"
        raise TypeError(msg)

    def render(self, content: object, target: Element) -> None:
        target.set_inner_html(self.to_html(content))
