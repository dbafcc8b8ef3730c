"""Claims adjudication: coverage resolution, fraud heuristic, adjudicator, lookup."""

from .adjudicator import ClaimAdjudicator
from .coverage import decide_coverage, resolve_coverage
from .fraud import is_fraudulent
from .lookup import ClaimLookup
from .models import ClaimResult, ClaimSummary, CoverageDecision

__all__ = [
    "ClaimAdjudicator",
    "ClaimLookup",
    "ClaimResult",
    "ClaimSummary",
    "CoverageDecision",
    "decide_coverage",
    "is_fraudulent",
    "resolve_coverage",
]
