from __future__ import annotations

import re
from dataclasses import dataclass
from math import log2
from typing import Protocol

TEXT_TAGS = frozenset(
    {"a", "button", "h1", "h2", "h3", "h4", "h5", "h6", "label", "li", "p", "span", "td", "th"}
)

ATTRIBUTE_PRIORITY = ("name", "class", "aria-label", "data-testid", "data-id", "role", "title")

# Autogenerated ids, hashes and UUID fragments.
_GENERATED_FRAGMENT = re.compile(r"\d{2,}|__|\[\d+\]|[a-f0-9]{8}")
_DYNAMIC_LAYOUT_NAME = re.compile(r"^(row|col|btn|container|wrapper)\d+$")

_FRAMEWORK_TOKEN_PATTERNS = (
    re.compile(r"(^|[-_:])(mui|css|ng|react|vue|ember|svelte|jdt|j_idt|sc)([-_:]|$)", re.IGNORECASE),
    re.compile(r"^ant-[a-z0-9_-]+$", re.IGNORECASE),
)

_ABSOLUTE_XPATH_PREFIXES = ("/html", "/body", "/div", "//html")


class StabilityClassifier(Protocol):
    def is_static(self, value: str | None) -> bool: ...


def is_static(value: str | None) -> bool:
    """Return True when ``value`` looks hand-authored rather than generated."""
    if not value:
        return False
    if _GENERATED_FRAGMENT.search(value):
        return False
    if value.startswith(":") or len(value) < 3:
        return False
    if _DYNAMIC_LAYOUT_NAME.match(value):
        return False
    return True


@dataclass(frozen=True, slots=True)
class HeuristicStabilityClassifier:
    def is_static(self, value: str | None) -> bool:
        return is_static(value)


@dataclass(frozen=True, slots=True)
class ValueStability:
    value: str
    stable: bool
    dynamic: bool
    score: float
    entropy: float
    digit_ratio: float
    reasons: tuple[str, ...]


def normalize_space(value: str | None, limit: int = 200) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def shannon_entropy(value: str) -> float:
    text = value.strip()
    if not text:
        return 0.0
    total = len(text)
    frequencies: dict[str, int] = {}
    for char in text:
        frequencies[char] = frequencies.get(char, 0) + 1

    entropy = 0.0
    for count in frequencies.values():
        probability = count / total
        entropy -= probability * log2(probability)
    return entropy


def digit_ratio(value: str) -> float:
    text = value.strip()
    if not text:
        return 0.0
    digits = sum(1 for char in text if char.isdigit())
    return digits / len(text)


def has_framework_fingerprint(value: str) -> bool:
    text = value.strip()
    if not text:
        return False
    return any(pattern.search(text) for pattern in _FRAMEWORK_TOKEN_PATTERNS)


def analyze_value_stability(value: str | None) -> ValueStability:
    normalized = normalize_space(value)
    if not normalized:
        return ValueStability(normalized, False, True, 0.0, 0.0, 0.0, ("empty",))

    reasons: list[str] = []
    score = 100.0
    entropy_value = shannon_entropy(normalized)
    digit_value = digit_ratio(normalized)

    if not is_static(normalized):
        score -= 60
        reasons.append("generated-pattern")
    if len(normalized) > 120:
        score -= 20
        reasons.append("too-long")
    if digit_value > 0.4:
        score -= 45
        reasons.append("digit-ratio>40%")
    elif digit_value > 0.25:
        score -= 18
        reasons.append("digit-ratio>25%")

    if entropy_value >= 4.2 and len(normalized) >= 8:
        score -= 35
        reasons.append("high-entropy")
    elif entropy_value >= 3.7 and len(normalized) >= 8:
        score -= 16
        reasons.append("medium-entropy")

    framework = has_framework_fingerprint(normalized)
    if framework:
        score -= 40
        reasons.append("framework-token")

    dynamic = digit_value > 0.4 or entropy_value >= 4.2 or framework or "generated-pattern" in reasons
    bounded = max(0.0, min(100.0, score))
    return ValueStability(
        value=normalized,
        stable=bounded >= 55 and not dynamic,
        dynamic=dynamic,
        score=round(bounded, 2),
        entropy=round(entropy_value, 4),
        digit_ratio=round(digit_value, 4),
        reasons=tuple(reasons),
    )


@dataclass(frozen=True, slots=True)
class ScoredStabilityClassifier:
    """Stricter classifier that also rejects high-entropy and framework-generated values."""

    threshold: float = 55.0

    def is_static(self, value: str | None) -> bool:
        if not is_static(value):
            return False
        analysis = analyze_value_stability(value)
        return not analysis.dynamic and analysis.score >= self.threshold


def xpath_literal(value: str) -> str:
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    pieces = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{piece}"' for piece in pieces) + ")"


def is_absolute_xpath(locator: str) -> bool:
    return locator.strip().startswith(_ABSOLUTE_XPATH_PREFIXES)
