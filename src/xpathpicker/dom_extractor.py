from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .dom import Document, Node

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

PICKER_ID_PREFIX = "__xpathpicker"

# Keys are positions in document.getElementsByTagName('*'), so the page script
# and the snapshot agree on element identity without touching the DOM.
SNAPSHOT_SCRIPT = r"""
({ target, key, skipPrefix }) => {
  const all = Array.from(document.getElementsByTagName('*'));
  const keys = new Map(all.map((el, index) => [el, index]));
  const skip = (el) => typeof el.id === 'string' && el.id.startsWith(skipPrefix);

  function walk(el) {
    const attrs = {};
    for (const attr of Array.from(el.attributes || [])) {
      attrs[attr.name] = attr.value;
    }
    const children = [];
    for (const child of Array.from(el.childNodes)) {
      if (child.nodeType === Node.TEXT_NODE) {
        children.push(child.nodeValue || '');
      } else if (child.nodeType === Node.ELEMENT_NODE && !skip(child)) {
        children.push(walk(child));
      }
    }
    return { tag: el.tagName.toLowerCase(), key: keys.get(el), attrs, children };
  }

  let targetKey = null;
  if (target && keys.has(target)) {
    targetKey = keys.get(target);
  } else if (typeof key === 'number') {
    targetKey = key;
  }
  return { tree: walk(document.documentElement), targetKey };
}
"""


def document_from_payload(payload: Any) -> tuple[Document, Node | None]:
    tree = payload.get("tree") if isinstance(payload, Mapping) else None
    if not isinstance(tree, Mapping):
        raise ValueError("Page snapshot returned no document tree.")
    document = Document.from_snapshot(tree)
    key = payload.get("targetKey")
    node = document.node_by_key(key) if isinstance(key, int) else None
    return document, node


def extract_document(page: Page) -> Document:
    document, _node = _snapshot(page)
    return document


def capture_target(page: Page, element: ElementHandle) -> tuple[Document, Node | None]:
    return _snapshot(page, target=element)


def capture_key(page: Page, key: int) -> tuple[Document, Node | None]:
    return _snapshot(page, key=key)


def _snapshot(
    page: Page,
    *,
    target: ElementHandle | None = None,
    key: int | None = None,
) -> tuple[Document, Node | None]:
    payload = page.evaluate(
        SNAPSHOT_SCRIPT,
        {"target": target, "key": key, "skipPrefix": PICKER_ID_PREFIX},
    )
    return document_from_payload(payload)
