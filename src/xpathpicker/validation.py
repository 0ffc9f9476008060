from __future__ import annotations

from dataclasses import dataclass
import logging

from lxml import etree

from .dom import Node

logger = logging.getLogger("xpathpicker.engine")


@dataclass(frozen=True, slots=True)
class LocatorValidation:
    unique: bool
    match_count: int
    message: str


def evaluate_locator(target: Node, expression: str, context: Node | None = None) -> list[Node] | None:
    """Evaluate ``expression`` in the document that owns ``target``.

    Returns None instead of raising when the expression is malformed, uses
    syntax the query engine does not support, or carries characters that are
    not XML compatible.
    """
    text = str(expression or "").strip()
    if not text:
        return None
    try:
        return target.document.evaluate(text, context)
    except (etree.XPathError, ValueError) as exc:
        logger.debug("Discarding invalid locator %r: %s", text, exc)
        return None


def count_locator_matches(target: Node, expression: str, context: Node | None = None) -> int:
    matches = evaluate_locator(target, expression, context)
    return len(matches) if matches is not None else 0


def resolves_uniquely_to(expression: str, target: Node, context: Node | None = None) -> bool:
    matches = evaluate_locator(target, expression, context)
    return matches is not None and len(matches) == 1 and matches[0] is target


def validate_locator(expression: str, target: Node) -> LocatorValidation:
    matches = evaluate_locator(target, expression)
    if matches is None:
        return LocatorValidation(False, 0, "Locator could not be evaluated.")
    if not matches:
        return LocatorValidation(False, 0, "Locator does not match any element.")
    if len(matches) > 1:
        return LocatorValidation(False, len(matches), "Locator is not unique in DOM.")
    if matches[0] is not target:
        return LocatorValidation(False, 1, "Locator resolves to a different element.")
    return LocatorValidation(True, 1, "Locator is unique.")
