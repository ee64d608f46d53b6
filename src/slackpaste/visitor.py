"""Selector-dispatch visitor over a parsed markup tree.

A visitor subclass declares an ordered list of ``Registration`` triples
(phase, CSS selector, callback).  ``parse()`` builds a ``Document``, walks it
depth-first firing matching ENTER callbacks before an element's descendants
and EXIT callbacks after them, then commits any replacement directives the
callbacks returned.

Usage:
    class Headings(HTMLVisitor):
        def __init__(self) -> None:
            self.titles: list[str] = []
            super().__init__()

        def registrations(self):
            return [on_enter("h1, h2", self.heading)]

        def heading(self, el):
            self.titles.append(el.text)

        def get_results(self):
            return self.titles

    Headings().parse("<h1>A</h1><p>x</p><h2>B</h2>")  # ["A", "B"]

Directives are keyed by ``Element.node_id`` and applied in reverse recording
order once the walk is over, so handlers always see the original tree shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from slackpaste.html_render import HtmlRenderer
from slackpaste.markup import parse_markup

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from typing import TypeAlias

    from slackpaste.html_render import Renderer
    from slackpaste.markup import Document, Element

    Handler: TypeAlias = Callable[[Element], Replacement | None]

__all__ = [
    "NO_REPLACEMENT",
    "REMOVE",
    "HTMLVisitor",
    "Markup",
    "NoReplacement",
    "Phase",
    "Registration",
    "Remove",
    "Render",
    "Replacement",
    "on_enter",
    "on_exit",
]

logger = logging.getLogger(__name__)


class Phase(Enum):
    ENTER = "enter"
    EXIT = "exit"


@dataclass(frozen=True)
class Registration:
    """A callback bound to a (phase, selector) pair."""

    phase: Phase
    selector: str
    callback: Handler


def on_enter(selector: str, callback: Handler) -> Registration:
    return Registration(Phase.ENTER, selector, callback)


def on_exit(selector: str, callback: Handler) -> Registration:
    return Registration(Phase.EXIT, selector, callback)


# ---------------------------------------------------------------------------
# Replacement directives
# ---------------------------------------------------------------------------
class Replacement:
    """Base of the directives a handler may return."""

    __slots__ = ()


@dataclass(frozen=True)
class NoReplacement(Replacement):
    """Leave the element alone (same as returning ``None``)."""


@dataclass(frozen=True)
class Remove(Replacement):
    """Detach the element and its subtree."""


@dataclass(frozen=True)
class Markup(Replacement):
    """Replace the element with *markup*, re-parsed as HTML."""

    markup: str


@dataclass(frozen=True)
class Render(Replacement):
    """Replace the element with *content* as rendered by the visitor's renderer."""

    content: Any


NO_REPLACEMENT = NoReplacement()
REMOVE = Remove()


# ---------------------------------------------------------------------------
# Visitor
# ---------------------------------------------------------------------------
class HTMLVisitor:
    """Base class for selector-keyed extraction rules.

    Subclasses override ``registrations()`` and ``get_results()``.  Any
    result-accumulator state belongs to the subclass and is not reset between
    ``parse()`` calls.
    """

    def __init__(self, *, renderer: Renderer | None = None) -> None:
        self.renderer: Renderer = renderer if renderer is not None else HtmlRenderer()
        self.document: Document | None = None
        self._replacements: dict[int, Replacement] = {}
        enter, exit_ = self._collect_handlers()
        self.enter_handlers: Mapping[str, Handler] = MappingProxyType(enter)
        self.exit_handlers: Mapping[str, Handler] = MappingProxyType(exit_)

    def registrations(self) -> Sequence[Registration]:
        """Return the (phase, selector, callback) triples in firing order."""
        return ()

    def _collect_handlers(self) -> tuple[dict[str, Handler], dict[str, Handler]]:
        enter: dict[str, Handler] = {}
        exit_: dict[str, Handler] = {}
        for registration in self.registrations():
            table = enter if registration.phase is Phase.ENTER else exit_
            if registration.selector in table:
                # Last registration wins; the first insertion position is kept.
                logger.debug(
                    "%s: %s handler for %r registered twice, keeping the later one",
                    type(self).__name__,
                    registration.phase.value,
                    registration.selector,
                )
            table[registration.selector] = registration.callback
        return enter, exit_

    def parse(self, raw_markup: str) -> Any:
        """Parse *raw_markup*, run the handlers, commit, return ``get_results()``.

        Exceptions from the parser or from a handler propagate unchanged; in
        that case nothing is committed.
        """
        self._replacements = {}
        self.document = parse_markup(raw_markup)
        if raw_markup.strip():
            try:
                self._walk(self.document.root)
            except BaseException:
                self._replacements = {}
                raise
            self._commit()
        return self.get_results()

    def get_results(self) -> Any:
        """Return the extraction result.  Subclasses override this."""
        return None

    # -- traversal ----------------------------------------------------------

    def _walk(self, element: Element) -> None:
        self._dispatch(element, self.enter_handlers)
        # Children are captured up front; handlers may touch attributes.
        for child in element.children:
            self._walk(child)
        self._dispatch(element, self.exit_handlers)

    def _dispatch(self, element: Element, handlers: Mapping[str, Handler]) -> None:
        for selector, handler in handlers.items():
            if not element.matches(selector):
                continue
            result = handler(element)
            if result is None or isinstance(result, NoReplacement):
                continue
            if not isinstance(result, Replacement):
                msg = (
                    f"handler for {selector!r} returned {type(result).__name__}, "
                    "expected a Replacement or None"
                )
                raise TypeError(msg)
            self._replacements[element.node_id] = result

    # -- commit -------------------------------------------------------------

    def _commit(self) -> None:
        """Apply queued directives, most recently recorded first."""
        document = self.document
        assert document is not None  # noqa: S101
        pending = list(self._replacements.items())
        self._replacements = {}
        for node_id, directive in reversed(pending):
            element = document.element(node_id)
            if element.detached:
                logger.debug(
                    "Skipping %s for %r: element already detached",
                    type(directive).__name__,
                    element,
                )
                continue
            match directive:
                case Remove():
                    element.remove()
                case Markup(markup=markup):
                    element.replace_with(markup)
                case Render(content=content):
                    element.replace_with(self._render(content))
                case _:
                    msg = f"unknown replacement directive: {directive!r}"
                    raise TypeError(msg)

    def _render(self, content: Any) -> str:
        """Render *content* into a scratch element and read the markup back."""
        scratch = parse_markup("").root
        self.renderer.render(content, scratch)
        return scratch.inner_html
