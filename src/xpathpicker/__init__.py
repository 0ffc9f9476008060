from .dom import Document, Node
from .locator_generator import compute_locator, generate_candidates
from .models import Candidate, Locator, PickResult
from .selector_rules import HeuristicStabilityClassifier, ScoredStabilityClassifier, is_static

__version__ = "0.1.0"

__all__ = [
    "Candidate",
    "Document",
    "HeuristicStabilityClassifier",
    "Locator",
    "Node",
    "PickResult",
    "ScoredStabilityClassifier",
    "compute_locator",
    "generate_candidates",
    "is_static",
]
