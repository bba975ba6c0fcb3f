"""Mailbox delivery service: fan a job event out to matching candidates.

For one job event the service opens a single database session, reads every
candidate with their notification filters once, runs the match engine, and
appends one mailbox row per matched candidate before committing. The caller
(the queue consumer) acknowledges the message only after deliver() returns.
"""

import logging
from typing import Optional

from job_notifier.domain.models import JobPostingEvent
from job_notifier.logging import get_logger
from job_notifier.logging.context import log_context
from job_notifier.matching import find_matches
from job_notifier.persistence import CandidateRepository, MailboxRepository, get_session

from .models import DeliveryResult
from .templates import MailboxEntryBuilder

logger = get_logger(__name__, component="delivery")


class MailboxDeliveryService:
    """Delivers job events into candidate mailboxes.

    Storage and template errors propagate unchanged so the consumer can decide
    between retry and dead-lettering; nothing is committed in that case.
    """

    def __init__(
        self,
        entry_builder: Optional[MailboxEntryBuilder] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.entry_builder = entry_builder or MailboxEntryBuilder()
        self.logger = logger_instance or logger

    def deliver(self, event: JobPostingEvent) -> DeliveryResult:
        """Append a mailbox entry for every candidate whose filters match the job.

        Args:
            event: Normalized job posting

        Returns:
            DeliveryResult summarizing the evaluation and the rows written

        Raises:
            PersistenceError: If reading candidates or writing entries fails
            NotificationTemplateError: If the entry context cannot be rendered
        """
        with log_context(job_id=event.id):
            result = DeliveryResult(job_id=event.id)

            with get_session() as session:
                candidates = CandidateRepository(session).list_all()
                result.candidates_evaluated = len(candidates)

                candidates_by_id = {candidate.id: candidate for candidate in candidates}
                matched = [
                    candidates_by_id[match.candidate_id]
                    for match in find_matches(candidates, event)
                ]
                if matched:
                    entry = self.entry_builder.build(event)

                    for candidate in matched:
                        self.logger.info(
                            f"Job {event.id} matches candidate {candidate.id}",
                            extra={
                                "event": "delivery.match",
                                "candidate_id": candidate.id,
                                "candidate_name": candidate.full_name,
                                "candidate_email": candidate.email,
                            },
                        )

                    result.delivered_count = MailboxRepository(session).append_many(
                        (candidate.id, entry, event.id) for candidate in matched
                    )
                    result.matched_candidate_ids = [candidate.id for candidate in matched]

            self.logger.info(
                f"Delivered job {event.id} to {result.delivered_count} of "
                f"{result.candidates_evaluated} candidates",
                extra={
                    "event": "delivery.completed",
                    "company_name": event.company_name,
                    "role": event.role,
                    "candidates_evaluated": result.candidates_evaluated,
                    "matched_count": result.matched_count,
                    "delivered_count": result.delivered_count,
                },
            )
            return result
