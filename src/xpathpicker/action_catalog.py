from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .dom import Node

ActionKey = Literal["click", "fill", "check", "selectOption"]


@dataclass(frozen=True, slots=True)
class ActionSpec:
    key: ActionKey
    label: str
    description: str


ACTION_CATALOG: tuple[ActionSpec, ...] = (
    ActionSpec(key="click", label="click()", description="Click the element."),
    ActionSpec(key="fill", label="fill()", description="Type a value into the field."),
    ActionSpec(key="check", label="check()", description="Tick a checkbox or radio button."),
    ActionSpec(key="selectOption", label="selectOption()", description="Pick an option of a select box."),
)

_CHECKABLE_INPUT_TYPES = {"checkbox", "radio"}


def action_spec(key: ActionKey) -> ActionSpec:
    for spec in ACTION_CATALOG:
        if spec.key == key:
            return spec
    raise KeyError(key)


def suggest_action(node: Node) -> ActionSpec:
    tag = node.tag
    if tag == "input":
        input_type = (node.attr("type") or "").strip().lower()
        return action_spec("check" if input_type in _CHECKABLE_INPUT_TYPES else "fill")
    if tag == "select":
        return action_spec("selectOption")
    if tag == "textarea":
        return action_spec("fill")
    return action_spec("click")


def format_selection(expression: str, action: ActionSpec) -> str:
    return f"{expression} → {action.label}"
