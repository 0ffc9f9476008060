from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .dom import Node
from .models import CATEGORY_PRIORITY, Candidate, Locator
from .validation import resolves_uniquely_to

logger = logging.getLogger("xpathpicker.engine")


def rank_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Order candidates by category priority, then by score, keeping input order on ties."""
    priority = {category: index for index, category in enumerate(CATEGORY_PRIORITY)}
    return sorted(
        candidates,
        key=lambda item: (priority.get(item.category, len(priority)), -item.score),
    )


def pick_best(candidates: Sequence[Candidate], target: Node) -> Locator:
    if not candidates:
        raise ValueError("No locator candidates to rank.")

    for candidate in rank_candidates(candidates):
        if not candidate.expression:
            continue
        # Re-verify: the tree may have changed since the candidate was built.
        if resolves_uniquely_to(candidate.expression, target):
            return Locator(candidate.expression, candidate.category, unique=True)

    best = max(candidates, key=lambda item: item.score)
    logger.info("No unique locator for <%s>; falling back to %s", target.tag, best.expression)
    return Locator(best.expression, best.category, unique=False)
