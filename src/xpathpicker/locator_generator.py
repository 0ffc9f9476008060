from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_CONFIG, EngineConfig
from .dom import Node
from .models import CATEGORY_SCORES, AnchorResult, Candidate, CandidateCategory, Locator
from .scoring import pick_best
from .selector_rules import HeuristicStabilityClassifier, StabilityClassifier, xpath_literal
from .validation import resolves_uniquely_to

DEFAULT_CLASSIFIER = HeuristicStabilityClassifier()


@dataclass(slots=True)
class DomAnalyzer:
    """Per-node predicate helpers shared by every path builder."""

    node: Node
    config: EngineConfig = DEFAULT_CONFIG
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER

    @property
    def tag(self) -> str:
        return self.node.tag or "*"

    def is_text_bearing(self) -> bool:
        return self.tag in self.config.text_tags

    def short_text(self, limit: int) -> str | None:
        if not self.is_text_bearing():
            return None
        text = self.node.text
        if not text or len(text) >= limit:
            return None
        return text

    def stable_text(self) -> str | None:
        text = self.short_text(self.config.exact_text_limit)
        if text and self.classifier.is_static(text):
            return text
        return None

    def stable_attribute(self) -> tuple[str, str] | None:
        for attr in self.config.identifier_attributes:
            value = self.node.attr(attr)
            if value and self.classifier.is_static(value):
                return attr, value
        return None

    def has_stable_identifier(self) -> bool:
        return self.stable_text() is not None or self.stable_attribute() is not None

    def exact_text_predicate(self, text: str) -> str:
        return f"{self.tag}[text()={xpath_literal(text)}]"

    def contains_text_predicate(self, text: str) -> str:
        prefix = text[: self.config.contains_prefix]
        return f"{self.tag}[contains(text(),{xpath_literal(prefix)})]"

    def attribute_predicate(self, attr: str, value: str) -> str:
        return f"{self.tag}[@{attr}={xpath_literal(value)}]"

    def position_segment(self) -> str:
        parent = self.node.parent
        if parent is None:
            return self.tag
        siblings = [child for child in parent.children if child.tag == self.node.tag]
        if len(siblings) > 1:
            index = next(position for position, child in enumerate(siblings, start=1) if child is self.node)
            return f"{self.tag}[{index}]"
        return self.tag


def find_anchor(
    target: Node,
    max_hops: int | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> AnchorResult:
    """Return the nearest node, starting at ``target``, with a stable identifier.

    Hops ``0..max_hops`` are examined. When nothing qualifies the target itself
    is returned, which callers read as "no anchor".
    """
    limit = config.max_hops if max_hops is None else max_hops
    current: Node | None = target
    hops = 0
    while current is not None and hops <= limit:
        if DomAnalyzer(current, config, classifier).has_stable_identifier():
            return AnchorResult(node=current, hops=hops)
        current = current.parent
        hops += 1
    return AnchorResult(node=target, hops=0)


def build_anchor_expression(
    anchor: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> str | None:
    analyzer = DomAnalyzer(anchor, config, classifier)
    options: list[str] = []
    text = analyzer.short_text(config.exact_text_limit)
    if text:
        options.append(f"//{analyzer.exact_text_predicate(text)}")
        options.append(f"//{analyzer.contains_text_predicate(text)}")
    for attr in config.identifier_attributes:
        value = anchor.attr(attr)
        if value and classifier.is_static(value):
            options.append(f"//{analyzer.attribute_predicate(attr, value)}")

    for option in options:
        if resolves_uniquely_to(option, anchor):
            return option
    return None


def build_relative_path(
    anchor: Node,
    target: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> str | None:
    anchor_expression = build_anchor_expression(anchor, config=config, classifier=classifier)
    if anchor_expression is None:
        return None
    if anchor is target:
        return anchor_expression

    segments: list[str] = []
    current = target
    while current is not anchor:
        parent = current.parent
        if parent is None:
            # anchor is not an ancestor of target
            return None
        segments.append(_relative_segment(current, parent, config, classifier))
        current = parent

    segments.reverse()
    return f"{anchor_expression}/{'/'.join(segments)}"


def _relative_segment(
    node: Node,
    parent: Node,
    config: EngineConfig,
    classifier: StabilityClassifier,
) -> str:
    analyzer = DomAnalyzer(node, config, classifier)
    text = analyzer.short_text(config.exact_text_limit)
    if text:
        for predicate in (analyzer.exact_text_predicate(text), analyzer.contains_text_predicate(text)):
            if resolves_uniquely_to(predicate, node, context=parent):
                return predicate

    attribute = analyzer.stable_attribute()
    if attribute:
        return analyzer.attribute_predicate(*attribute)
    return analyzer.position_segment()


def build_full_path(
    target: Node,
    max_depth: int | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> str:
    limit = config.max_depth if max_depth is None else max_depth
    segments: list[str] = []
    current: Node | None = target
    depth = 0
    while current is not None and depth < limit:
        analyzer = DomAnalyzer(current, config, classifier)
        text = analyzer.stable_text()
        if text:
            segments.append(analyzer.exact_text_predicate(text))
            break
        attribute = analyzer.stable_attribute()
        if attribute:
            segments.append(analyzer.attribute_predicate(*attribute))
            break
        segments.append(analyzer.position_segment())
        current = current.parent
        depth += 1

    if not segments:
        segments.append(DomAnalyzer(target, config, classifier).position_segment())
    segments.reverse()
    return "//" + "/".join(segments)


def build_direct_expression(
    target: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> str | None:
    analyzer = DomAnalyzer(target, config, classifier)
    attribute = analyzer.stable_attribute()
    if not attribute:
        return None
    return f"//{analyzer.attribute_predicate(*attribute)}"


class CandidateFactory:
    def __init__(
        self,
        target: Node,
        config: EngineConfig = DEFAULT_CONFIG,
        classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
    ) -> None:
        self.target = target
        self.config = config
        self.classifier = classifier
        self.analyzer = DomAnalyzer(target, config, classifier)
        self._candidates: list[Candidate] = []

    def generate(self) -> list[Candidate]:
        self._add_text_candidate()
        self._add_relative_candidate()
        self._add_direct_candidate()
        self._add_full_path_candidate()
        return list(self._candidates)

    def _add(self, category: CandidateCategory, expression: str) -> None:
        self._candidates.append(Candidate(expression=expression, score=CATEGORY_SCORES[category], category=category))

    def _add_text_candidate(self) -> None:
        text = self.analyzer.short_text(self.config.text_limit)
        if not text:
            return

        if len(text) < self.config.exact_text_limit and self.classifier.is_static(text):
            exact = f"//{self.analyzer.exact_text_predicate(text)}"
            if resolves_uniquely_to(exact, self.target):
                self._add("Text", exact)
                return

        contains = f"//{self.analyzer.contains_text_predicate(text)}"
        if resolves_uniquely_to(contains, self.target):
            self._add("Text", contains)

    def _add_relative_candidate(self) -> None:
        anchor = find_anchor(self.target, config=self.config, classifier=self.classifier)
        if anchor.node is self.target:
            return
        path = build_relative_path(anchor.node, self.target, config=self.config, classifier=self.classifier)
        if path:
            self._add("Relative", path)

    def _add_direct_candidate(self) -> None:
        expression = build_direct_expression(self.target, config=self.config, classifier=self.classifier)
        if expression:
            self._add("Direct", expression)

    def _add_full_path_candidate(self) -> None:
        self._add("FullPath", build_full_path(self.target, config=self.config, classifier=self.classifier))


def generate_candidates(
    target: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> list[Candidate]:
    return CandidateFactory(target, config, classifier).generate()


def compute_locator(
    target: Node,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
) -> Locator:
    """Infer the most stable unique XPath for ``target``.

    Always returns an expression; ``Locator.unique`` is False when no candidate
    could be verified against the current tree.
    """
    if not isinstance(target, Node):
        raise ValueError(f"Expected a document node, got {type(target).__name__}.")
    candidates = generate_candidates(target, config=config, classifier=classifier)
    return pick_best(candidates, target)
