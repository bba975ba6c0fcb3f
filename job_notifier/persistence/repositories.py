"""Data access layer (repositories) for candidates, filters, and mailboxes.

Repositories operate inside the caller's session and never commit; the
get_session() context manager commits once the caller's unit of work is done.
They return domain models rather than ORM models.
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from job_notifier.domain.models import (
    Candidate,
    MailboxEntry,
    NotificationSetting,
    NotificationSettingInput,
)
from job_notifier.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import CandidateModel, MailboxEntryModel, NotificationSettingModel

logger = logging.getLogger(__name__)


def _require_candidate_model(session: Session, candidate_id: str) -> CandidateModel:
    candidate_model = session.get(CandidateModel, candidate_id)
    if candidate_model is None:
        raise RecordNotFoundError(f"Candidate {candidate_id} not found")
    return candidate_model


class CandidateRepository:
    """Repository for candidate records."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, candidate_id: str, include_mailbox: bool = False) -> Optional[Candidate]:
        """Retrieve a candidate with its notification filters.

        Args:
            candidate_id: Candidate identifier
            include_mailbox: Also load the mailbox entries

        Returns:
            Candidate domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            candidate_model = self.session.get(CandidateModel, candidate_id)
            if candidate_model is None:
                return None

            settings = NotificationSettingRepository(self.session).list_for_candidate(candidate_id)
            mailbox = (
                MailboxRepository(self.session).list_for_candidate(candidate_id)
                if include_mailbox
                else []
            )
            return candidate_model.to_domain(settings=settings, mailbox=mailbox)

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving candidate {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve candidate: {e}") from e

    def require(self, candidate_id: str, include_mailbox: bool = False) -> Candidate:
        """Like get(), but raise RecordNotFoundError for an unknown candidate."""
        candidate = self.get(candidate_id, include_mailbox=include_mailbox)
        if candidate is None:
            raise RecordNotFoundError(f"Candidate {candidate_id} not found")
        return candidate

    def exists(self, candidate_id: str) -> bool:
        try:
            return self.session.get(CandidateModel, candidate_id) is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking candidate {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to check candidate: {e}") from e

    def list_all(self) -> List[Candidate]:
        """Load every candidate with its notification filters (mailboxes excluded).

        Two queries regardless of candidate count: one for candidates, one for
        all filters, grouped in memory.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            candidate_models = self.session.execute(
                select(CandidateModel).order_by(CandidateModel.created_at, CandidateModel.id)
            ).scalars().all()

            setting_models = self.session.execute(
                select(NotificationSettingModel).order_by(NotificationSettingModel.seq)
            ).scalars().all()

            settings_by_candidate: Dict[str, List[NotificationSetting]] = defaultdict(list)
            for setting_model in setting_models:
                settings_by_candidate[setting_model.candidate_id].append(setting_model.to_domain())

            return [
                candidate_model.to_domain(settings=settings_by_candidate.get(candidate_model.id))
                for candidate_model in candidate_models
            ]

        except SQLAlchemyError as e:
            logger.error(f"Error listing candidates: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list candidates: {e}") from e

    def upsert(self, candidate: Candidate) -> Candidate:
        """Insert a new candidate or update name and email of an existing one.

        Embedded filters and mailbox entries are ignored here; use
        import_candidate() to bring those along.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(CandidateModel, candidate.id)

            if existing:
                existing.full_name = candidate.full_name
                existing.email = candidate.email
            else:
                self.session.add(CandidateModel.from_domain(candidate))

            self.session.flush()
            return self.require(candidate.id)

        except IntegrityError as e:
            logger.error(f"Integrity error upserting candidate {candidate.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert candidate: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting candidate {candidate.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert candidate: {e}") from e

    def import_candidate(self, candidate: Candidate) -> bool:
        """Store a candidate from an external data file.

        New candidates are stored with their embedded filters (ids kept) and
        mailbox. Existing candidates only get name and email refreshed, so a
        re-import never duplicates mailbox entries.

        Returns:
            True if the candidate was newly created
        """
        created = not self.exists(candidate.id)
        self.upsert(candidate)

        if created:
            setting_repo = NotificationSettingRepository(self.session)
            for setting in candidate.notification_settings:
                setting_repo.create(candidate.id, setting.criteria(), setting_id=setting.id)

            MailboxRepository(self.session).append_many(
                (candidate.id, entry, None) for entry in candidate.mailbox
            )

        return created


class NotificationSettingRepository:
    """Repository for a candidate's notification filters."""

    def __init__(self, session: Session):
        self.session = session

    def list_for_candidate(self, candidate_id: str) -> List[NotificationSetting]:
        """List a candidate's filters in creation order (no existence check)."""
        try:
            stmt = (
                select(NotificationSettingModel)
                .where(NotificationSettingModel.candidate_id == candidate_id)
                .order_by(NotificationSettingModel.seq)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing filters for candidate {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list notification filters: {e}") from e

    def create(
        self,
        candidate_id: str,
        criteria: NotificationSettingInput,
        setting_id: Optional[str] = None,
    ) -> NotificationSetting:
        """Save a new filter for a candidate.

        Args:
            candidate_id: Owner of the filter
            criteria: The three optional criterion lists
            setting_id: Explicit id (imports only); a UUID is generated otherwise

        Raises:
            RecordNotFoundError: If the candidate does not exist
            DataIntegrityError: If the candidate already has a filter with setting_id
            PersistenceError: If database error occurs
        """
        try:
            _require_candidate_model(self.session, candidate_id)

            setting_model = NotificationSettingModel(
                setting_id=setting_id or str(uuid.uuid4()),
                candidate_id=candidate_id,
                company_names=criteria.company_names,
                job_roles=criteria.job_roles,
                keywords=criteria.keywords,
                created_at=format_timestamp(utc_now(), include_microseconds=True),
            )
            self.session.add(setting_model)
            self.session.flush()
            return setting_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating filter for {candidate_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create notification filter: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating filter for {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create notification filter: {e}") from e

    def replace(
        self, candidate_id: str, setting_id: str, criteria: NotificationSettingInput
    ) -> NotificationSetting:
        """Replace all three criterion lists of a filter, keeping its id.

        Raises:
            RecordNotFoundError: If candidate or filter does not exist
            PersistenceError: If database error occurs
        """
        try:
            setting_model = self._require_setting_model(candidate_id, setting_id)
            setting_model.company_names = criteria.company_names
            setting_model.job_roles = criteria.job_roles
            setting_model.keywords = criteria.keywords
            setting_model.updated_at = format_timestamp(utc_now(), include_microseconds=True)
            self.session.flush()
            return setting_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error replacing filter {setting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update notification filter: {e}") from e

    def delete(self, candidate_id: str, setting_id: str) -> None:
        """Delete one filter.

        Raises:
            RecordNotFoundError: If candidate or filter does not exist
            PersistenceError: If database error occurs
        """
        try:
            self._require_setting_model(candidate_id, setting_id)
            self.session.execute(
                delete(NotificationSettingModel).where(
                    NotificationSettingModel.candidate_id == candidate_id,
                    NotificationSettingModel.setting_id == setting_id,
                )
            )
            self.session.flush()

        except SQLAlchemyError as e:
            logger.error(f"Error deleting filter {setting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete notification filter: {e}") from e

    def _require_setting_model(self, candidate_id: str, setting_id: str) -> NotificationSettingModel:
        _require_candidate_model(self.session, candidate_id)

        stmt = select(NotificationSettingModel).where(
            NotificationSettingModel.candidate_id == candidate_id,
            NotificationSettingModel.setting_id == setting_id,
        )
        setting_model = self.session.execute(stmt).scalar_one_or_none()
        if setting_model is None:
            raise RecordNotFoundError(
                f"Notification filter {setting_id} not found for candidate {candidate_id}"
            )
        return setting_model


class MailboxRepository:
    """Repository for candidate mailboxes (append-only)."""

    def __init__(self, session: Session):
        self.session = session

    def append(
        self, candidate_id: str, entry: MailboxEntry, job_id: Optional[str] = None
    ) -> MailboxEntry:
        """Append one entry to a candidate's mailbox.

        Raises:
            RecordNotFoundError: If the candidate does not exist
            PersistenceError: If database error occurs
        """
        try:
            _require_candidate_model(self.session, candidate_id)
            entry_model = MailboxEntryModel.from_domain(candidate_id, entry, job_id=job_id)
            self.session.add(entry_model)
            self.session.flush()
            return entry_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error appending mailbox entry for {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to append mailbox entry: {e}") from e

    def append_many(self, items: Iterable[Tuple[str, MailboxEntry, Optional[str]]]) -> int:
        """Append entries for several candidates in one flush.

        Args:
            items: (candidate_id, entry, job_id) tuples; candidates must exist

        Returns:
            Number of entries appended

        Raises:
            DataIntegrityError: If a candidate id does not exist
            PersistenceError: If database error occurs
        """
        try:
            entry_models = [
                MailboxEntryModel.from_domain(candidate_id, entry, job_id=job_id)
                for candidate_id, entry, job_id in items
            ]
            if not entry_models:
                return 0

            self.session.add_all(entry_models)
            self.session.flush()
            return len(entry_models)

        except IntegrityError as e:
            logger.error(f"Integrity error appending mailbox entries: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to append mailbox entries: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error appending mailbox entries: {e}", exc_info=True)
            raise PersistenceError(f"Failed to append mailbox entries: {e}") from e

    def list_for_candidate(self, candidate_id: str) -> List[MailboxEntry]:
        """List a candidate's mailbox in delivery order (no existence check)."""
        try:
            stmt = (
                select(MailboxEntryModel)
                .where(MailboxEntryModel.candidate_id == candidate_id)
                .order_by(MailboxEntryModel.seq)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing mailbox for {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list mailbox: {e}") from e

    def count_for_candidate(self, candidate_id: str) -> int:
        try:
            stmt = select(func.count()).select_from(MailboxEntryModel).where(
                MailboxEntryModel.candidate_id == candidate_id
            )
            return self.session.execute(stmt).scalar_one()

        except SQLAlchemyError as e:
            logger.error(f"Error counting mailbox for {candidate_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count mailbox entries: {e}") from e
