"""Match engine for evaluating job postings against candidate notification filters.

This package provides:
- setting_matches / matches / evaluate / find_matches: the pure matching rules
- MatchResult: which of a candidate's filters matched a job
"""

from .engine import evaluate, find_matches, matches, setting_matches
from .models import MatchResult

__all__ = [
    "evaluate",
    "find_matches",
    "matches",
    "setting_matches",
    "MatchResult",
]
