"""Result types and exceptions for mailbox delivery."""

from dataclasses import dataclass, field
from typing import List


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when the mailbox context template cannot be rendered."""

    pass


@dataclass
class DeliveryResult:
    """Outcome of delivering one job event to all candidate mailboxes.

    Attributes:
        job_id: Id of the delivered job event
        candidates_evaluated: Number of candidates run through the match engine
        matched_candidate_ids: Ids of candidates that received an entry, in evaluation order
        delivered_count: Number of mailbox entries written
    """

    job_id: str
    candidates_evaluated: int = 0
    matched_candidate_ids: List[str] = field(default_factory=list)
    delivered_count: int = 0

    @property
    def matched_count(self) -> int:
        return len(self.matched_candidate_ids)
