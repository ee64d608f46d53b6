"""Markup tree adapter over selectolax's lexbor backend.

Wraps ``LexborHTMLParser`` nodes in ``Element`` objects that carry a stable
integer ``node_id``.  selectolax hands out a fresh Python wrapper for every
access to a node, so object identity cannot be used to key anything across a
walk; the id is assigned once per element at parse time (document order) and
the ``Document`` keeps one canonical ``Element`` per live node.

Usage:
    from slackpaste.markup import parse_markup

    doc = parse_markup("<p>Hello <b>world</b></p>")
    for child in doc.root.children:
        print(child.tag, child.text)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from selectolax.lexbor import LexborHTMLParser

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ["Document", "Element", "parse_markup"]

logger = logging.getLogger(__name__)


def _is_element(node: Any) -> bool:
    """Return True for element nodes.

    selectolax reports text as ``-text``, comments as ``_comment`` and the
    doctype as ``!doctype``; real tags never start with those characters.
    """
    tag = node.tag
    return bool(tag) and tag[0] not in "-_!#"


def _fragment_nodes(markup: str) -> list[Any]:
    """Parse *markup* as a body fragment and return its top-level nodes."""
    body = LexborHTMLParser(markup).body
    if body is None:
        return []
    return list(body.iter(include_text=True))


def parse_markup(text: str) -> Document:
    """Parse a raw markup string into a ``Document``.

    Parser errors (for example ``TypeError`` for non-string input) are not
    caught.
    """
    return Document(LexborHTMLParser(text))


class Element:
    """A single element of a ``Document``.

    Attribute changes go straight to the underlying node.  Structural changes
    (``replace_with``, ``remove``) mark this element and its descendants as
    detached.
    """

    def __init__(self, document: Document, node: Any, node_id: int) -> None:
        self._document = document
        self._node = node
        self.node_id = node_id
        self.detached = False

    def __repr__(self) -> str:
        return f"<Element {self.tag} #{self.node_id}>"

    @property
    def document(self) -> Document:
        return self._document

    @property
    def tag(self) -> str:
        return self._node.tag

    @property
    def attrs(self) -> dict[str, str | None]:
        return dict(self._node.attributes)

    @property
    def text(self) -> str:
        return self._node.text(deep=True) or ""

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        return self._node.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        self._node.attrs[name] = value
        self._document.invalidate()

    def remove_attribute(self, name: str) -> None:
        """Remove attribute *name*; a missing attribute is ignored."""
        attrs = self._node.attrs
        if name in attrs:
            del attrs[name]
            self._document.invalidate()

    # -- navigation ---------------------------------------------------------

    @property
    def children(self) -> list[Element]:
        """Element children in document order (text and comments skipped)."""
        return [
            self._document.wrap(child)
            for child in self._node.iter(include_text=False)
            if _is_element(child)
        ]

    @property
    def first_child(self) -> Element | None:
        children = self.children
        return children[0] if children else None

    @property
    def parent(self) -> Element | None:
        parent = self._node.parent
        if parent is None or not _is_element(parent):
            return None
        return self._document.wrap(parent)

    @property
    def next_sibling(self) -> Element | None:
        sibling = self._node.next
        while sibling is not None and not _is_element(sibling):
            sibling = sibling.next
        if sibling is None:
            return None
        return self._document.wrap(sibling)

    def iter_subtree(self) -> Iterator[Element]:
        """Yield this element and all descendant elements in document order."""
        for node in self._node.traverse(include_text=False):
            if _is_element(node):
                yield self._document.wrap(node)

    # -- selectors ----------------------------------------------------------

    def matches(self, selector: str) -> bool:
        """Return True if this element itself matches *selector*."""
        return self._node.mem_id in self._document.selector_hits(selector)

    def query(self, selector: str) -> Element | None:
        node = self._node.css_first(selector)
        if node is None:
            return None
        return self._document.wrap(node)

    def query_all(self, selector: str) -> list[Element]:
        return [self._document.wrap(node) for node in self._node.css(selector)]

    # -- serialisation ------------------------------------------------------

    def serialize(self) -> str:
        """Return the outer HTML of this element."""
        return self._node.html or ""

    @property
    def inner_html(self) -> str:
        return "".join(
            (child.html or "") for child in self._node.iter(include_text=True)
        )

    def set_inner_html(self, markup: str) -> None:
        """Replace all children with the nodes parsed from *markup*."""
        for child in list(self._node.iter(include_text=True)):
            if _is_element(child):
                self._document.forget(self._document.wrap(child))
            child.decompose()
        for node in _fragment_nodes(markup):
            self._node.insert_child(node)
        self._document.invalidate()

    # -- mutation -----------------------------------------------------------

    def replace_with(self, markup: str) -> None:
        """Put the nodes parsed from *markup* in this element's place.

        Empty markup removes the element.
        """
        for node in _fragment_nodes(markup):
            self._node.insert_before(node)
        self.remove()

    def remove(self) -> None:
        """Detach this element and its subtree from the tree."""
        self._document.forget(self)
        self._node.decompose()
        self._document.invalidate()


class Document:
    """The parsed tree for one markup input.

    Every element present at parse time is registered in document order, so
    ``node_id`` doubles as an index into the arena.
    """

    def __init__(self, tree: LexborHTMLParser) -> None:
        self._tree = tree
        self._arena: list[Element] = []
        self._by_mem_id: dict[int, Element] = {}
        self._hits: dict[str, frozenset[int]] = {}
        top = tree.root
        if top is not None:
            for node in top.traverse(include_text=False):
                if _is_element(node):
                    self.wrap(node)
        logger.debug("Parsed document with %d elements", len(self._arena))

    def __len__(self) -> int:
        return len(self._arena)

    @property
    def tree(self) -> LexborHTMLParser:
        return self._tree

    @property
    def root(self) -> Element:
        """The ``<body>`` element, where traversal starts."""
        body = self._tree.body
        if body is None:
            msg = "parsed document has no body element"
            raise ValueError(msg)
        return self.wrap(body)

    def element(self, node_id: int) -> Element:
        return self._arena[node_id]

    def wrap(self, node: Any) -> Element:
        """Return the canonical ``Element`` for a live selectolax node."""
        mem_id = node.mem_id
        element = self._by_mem_id.get(mem_id)
        if element is None:
            element = Element(self, node, len(self._arena))
            self._arena.append(element)
            self._by_mem_id[mem_id] = element
        return element

    def forget(self, element: Element) -> None:
        """Mark *element* and its descendants as detached.

        Detached elements leave the identity map, so a node allocated later at
        the same address gets a fresh ``Element``.
        """
        members = [element, *element.iter_subtree()]
        for member in members:
            member.detached = True
            self._by_mem_id.pop(member._node.mem_id, None)

    def selector_hits(self, selector: str) -> frozenset[int]:
        """Return the ``mem_id``s of every live node matching *selector*.

        lexbor's ``css_matches`` also answers True when only a descendant
        matches, so membership is tested against a document-wide query.
        Results are cached until the tree changes.
        """
        hits = self._hits.get(selector)
        if hits is None:
            top = self._tree.root
            nodes = top.css(selector) if top is not None else []
            hits = frozenset(node.mem_id for node in nodes)
            self._hits[selector] = hits
        return hits

    def invalidate(self) -> None:
        """Drop cached selector results after a mutation."""
        self._hits.clear()

    def serialize(self) -> str:
        """Return the inner HTML of ``<body>``."""
        return self.root.inner_html
