from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Mapping

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger("xpathpicker.engine")

_XML_INVALID_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")


class Node:
    """Read-only view of one element inside a :class:`Document`.

    Nodes are created and cached by their document, so the same element always
    maps to the same ``Node`` object and identity comparison is meaningful.
    """

    __slots__ = ("_document", "_element")

    def __init__(self, document: Document, element: etree._Element) -> None:
        self._document = document
        self._element = element

    @property
    def document(self) -> Document:
        return self._document

    @property
    def tag(self) -> str:
        return str(self._element.tag).lower()

    @property
    def attributes(self) -> dict[str, str]:
        return {str(key): str(value) for key, value in self._element.attrib.items()}

    def attr(self, name: str) -> str | None:
        value = self._element.get(name)
        if value is None:
            return None
        return str(value)

    @property
    def text(self) -> str:
        return str(self._element.xpath("string()")).strip()

    @property
    def parent(self) -> Node | None:
        parent = self._element.getparent()
        if parent is None:
            return None
        return self._document.node_for(parent)

    @property
    def children(self) -> list[Node]:
        return [self._document.node_for(child) for child in self._element if _is_element(child)]

    @property
    def outer_html(self) -> str:
        return etree.tostring(self._element, encoding="unicode", method="html", with_tail=False)

    def __repr__(self) -> str:
        return f"<Node {self.tag} attrs={len(self._element.attrib)}>"


class Document:
    def __init__(self, root: etree._Element) -> None:
        self._root = root
        self._nodes: dict[etree._Element, Node] = {}
        self._keys: dict[int, Node] = {}

    @classmethod
    def from_html(cls, markup: str) -> Document:
        return cls(lxml_html.document_fromstring(markup))

    @classmethod
    def from_snapshot(cls, payload: Mapping[str, Any]) -> Document:
        """Build a document from the JSON tree produced by the page snapshot script.

        Each element entry is ``{"tag", "attrs", "children", "key"}``; children
        are either element entries or plain strings for text nodes.
        """
        keyed: dict[int, etree._Element] = {}
        root = _build_snapshot_element(payload, keyed)
        if root is None:
            raise ValueError("Snapshot payload does not describe an element.")
        document = cls(root)
        document._keys = {key: document.node_for(element) for key, element in keyed.items()}
        return document

    @property
    def root(self) -> Node:
        return self.node_for(self._root)

    def node_for(self, element: etree._Element) -> Node:
        node = self._nodes.get(element)
        if node is None:
            node = Node(self, element)
            self._nodes[element] = node
        return node

    def node_by_key(self, key: int) -> Node | None:
        return self._keys.get(key)

    def iter_nodes(self) -> Iterator[Node]:
        for element in self._root.iter():
            if _is_element(element):
                yield self.node_for(element)

    def evaluate(self, expression: str, context: Node | None = None) -> list[Node]:
        """Run an XPath query and return the matching element nodes.

        Raises ``lxml.etree.XPathError`` when the expression cannot be compiled
        or evaluated; callers that must not fail catch it at their seam.
        """
        scope = context._element if context is not None else self._root
        result = scope.xpath(expression)
        if not isinstance(result, list):
            return []
        return [self.node_for(item) for item in result if isinstance(item, etree._Element) and _is_element(item)]

    def select_one(self, expression: str) -> Node:
        matches = self.evaluate(expression)
        if len(matches) != 1:
            raise ValueError(f"Expected exactly one node for {expression!r}, found {len(matches)}.")
        return matches[0]


def _is_element(element: Any) -> bool:
    return isinstance(element.tag, str)


def _build_snapshot_element(
    payload: Mapping[str, Any],
    keyed: dict[int, etree._Element],
) -> etree._Element | None:
    tag = str(payload.get("tag") or "").strip().lower()
    try:
        element = etree.Element(tag)
    except ValueError:
        logger.debug("Skipping snapshot element with unsupported tag %r", tag)
        return None

    attrs = payload.get("attrs") or {}
    if isinstance(attrs, Mapping):
        for name, value in attrs.items():
            try:
                element.set(str(name), _XML_INVALID_CHARS.sub("", str(value)))
            except ValueError:
                logger.debug("Skipping unsupported attribute %r on <%s>", name, tag)

    key = payload.get("key")
    if isinstance(key, int):
        keyed[key] = element

    last: etree._Element | None = None
    for child in payload.get("children") or []:
        if isinstance(child, str):
            child = _XML_INVALID_CHARS.sub("", child)
            if last is None:
                element.text = (element.text or "") + child
            else:
                last.tail = (last.tail or "") + child
            continue
        if not isinstance(child, Mapping):
            continue
        built = _build_snapshot_element(child, keyed)
        if built is None:
            continue
        element.append(built)
        last = built
    return element
