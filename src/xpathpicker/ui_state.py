from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .action_catalog import suggest_action
from .config import DEFAULT_CONFIG, EngineConfig
from .dom import Node
from .locator_generator import DEFAULT_CLASSIFIER, compute_locator
from .models import Locator, PickResult
from .selector_rules import StabilityClassifier, normalize_space

PickerState = Literal["Idle", "Armed", "Highlighted", "Resolved"]

PICKER_HINT = "Press ESC to cancel, or click to select this element"


@dataclass(frozen=True, slots=True)
class PickerSession:
    """Snapshot of one interactive picking session.

    Handlers never mutate a session; each returns the next one.
    """

    state: PickerState = "Idle"
    highlighted: Node | None = None
    preview: Locator | None = None
    result: PickResult | None = None

    @property
    def active(self) -> bool:
        return self.state in ("Armed", "Highlighted")


def arm_session(session: PickerSession) -> PickerSession:
    if session.active:
        return session
    return PickerSession(state="Armed")


def on_hover(
    session: PickerSession,
    node: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> PickerSession:
    if not session.active:
        return session
    if session.highlighted is node and session.preview is not None:
        return session
    preview = compute_locator(node, config=config, classifier=classifier)
    return PickerSession(state="Highlighted", highlighted=node, preview=preview)


def on_click(
    session: PickerSession,
    node: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> PickerSession:
    if not session.active:
        return session
    locator = compute_locator(node, config=config, classifier=classifier)
    result = PickResult(locator=locator, action=suggest_action(node), html=node.outer_html)
    return PickerSession(state="Resolved", result=result)


def on_escape(session: PickerSession) -> PickerSession:
    if not session.active:
        return session
    return PickerSession()


def complete_session(session: PickerSession) -> tuple[PickerSession, PickResult | None]:
    if session.state != "Resolved":
        return session, None
    return PickerSession(), session.result


def describe_element(node: Node, locator: Locator | None) -> list[str]:
    parts = [node.tag]
    element_id = node.attr("id")
    if element_id:
        parts.append(f'id="{element_id}"')
    classes = normalize_space(node.attr("class"))
    if classes:
        parts.append(f'class="{classes}"')

    lines = [f"Element: <{' '.join(parts)}>"]
    if locator is not None:
        suffix = "" if locator.unique else " (not unique)"
        lines.append(f"Likely XPath: {locator.expression}{suffix}")
    lines.append(PICKER_HINT)
    return lines
