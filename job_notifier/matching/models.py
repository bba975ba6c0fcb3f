"""Data models for the match engine."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class MatchResult:
    """Result of evaluating one candidate's filters against one job.

    Attributes:
        candidate_id: Candidate that was evaluated
        is_match: True if at least one saved filter matched
        matched_setting_ids: Ids of every filter that matched, in saved order
    """

    candidate_id: str
    is_match: bool
    matched_setting_ids: List[str] = field(default_factory=list)
