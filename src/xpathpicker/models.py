from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .action_catalog import ActionSpec
    from .dom import Node

CandidateCategory = Literal["Text", "Relative", "Direct", "FullPath"]

CATEGORY_PRIORITY: tuple[CandidateCategory, ...] = ("Text", "Relative", "Direct", "FullPath")

CATEGORY_SCORES: dict[CandidateCategory, int] = {
    "Text": 15,
    "Relative": 10,
    "Direct": 8,
    "FullPath": 5,
}


@dataclass(frozen=True, slots=True)
class Candidate:
    expression: str
    score: int
    category: CandidateCategory


@dataclass(frozen=True, slots=True)
class AnchorResult:
    node: Node
    hops: int


@dataclass(frozen=True, slots=True)
class Locator:
    expression: str
    category: CandidateCategory
    unique: bool = True


@dataclass(frozen=True, slots=True)
class PickResult:
    locator: Locator
    action: ActionSpec
    html: str
