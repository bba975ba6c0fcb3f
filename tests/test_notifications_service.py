"""Unit tests for MailboxDeliveryService."""

from unittest.mock import Mock, patch

import pytest

from job_notifier.domain.models import MailboxEntry
from job_notifier.notifications import (
    MailboxDeliveryService,
    MailboxEntryBuilder,
    NotificationTemplateError,
)
from job_notifier.persistence import (
    CandidateRepository,
    MailboxRepository,
    NotificationSettingRepository,
    PersistenceError,
    close_database,
    get_session,
    init_database,
)
from tests.helpers import make_candidate, make_criteria, make_job


def seed_candidate(candidate_id, *criteria_list, **candidate_kwargs):
    with get_session() as session:
        CandidateRepository(session).upsert(make_candidate(candidate_id, **candidate_kwargs))
        settings = NotificationSettingRepository(session)
        for criteria in criteria_list:
            settings.create(candidate_id, criteria)


def mailbox_of(candidate_id):
    with get_session() as session:
        return MailboxRepository(session).list_for_candidate(candidate_id)


class TestMailboxDeliveryService:
    """Test suite for MailboxDeliveryService.deliver()."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_matching_candidate_gets_one_entry(self):
        """Test a matched candidate gains exactly one entry; an unsubscribed one none."""
        seed_candidate("subscribed", make_criteria(company_names=["Globex"]))
        seed_candidate("unsubscribed")
        job = make_job(company_name="globex", role="engineer", description="Build pipelines")

        result = MailboxDeliveryService().deliver(job)

        subscribed = mailbox_of("subscribed")
        assert len(subscribed) == 1
        assert subscribed[0].sender == "Globex"
        assert "Build pipelines" in subscribed[0].context
        assert mailbox_of("unsubscribed") == []

        assert result.job_id == job.id
        assert result.candidates_evaluated == 2
        assert result.matched_candidate_ids == ["subscribed"]
        assert result.delivered_count == 1

    def test_no_candidates(self):
        """Test delivery over an empty candidate store is a no-op."""
        result = MailboxDeliveryService().deliver(make_job())

        assert result.candidates_evaluated == 0
        assert result.delivered_count == 0
        assert result.matched_count == 0

    def test_all_matched_candidates_receive_the_same_entry(self):
        """Test every matched candidate gets an identical entry from one build."""
        for index in range(5):
            seed_candidate(f"c-{index}", make_criteria(keywords=["python"]))
        seed_candidate("other", make_criteria(keywords=["haskell"]))

        result = MailboxDeliveryService().deliver(make_job(description="Python services"))

        assert result.delivered_count == 5
        entries = [mailbox_of(f"c-{index}") for index in range(5)]
        assert all(len(mailbox) == 1 for mailbox in entries)
        assert len({mailbox[0].date for mailbox in entries}) == 1
        assert mailbox_of("other") == []

    def test_redelivery_appends_duplicate_entry(self):
        """Test delivering the same event twice yields two entries (no dedup key)."""
        seed_candidate("cand-1", make_criteria())
        job = make_job()

        service = MailboxDeliveryService()
        service.deliver(job)
        service.deliver(job)

        assert len(mailbox_of("cand-1")) == 2

    def test_template_error_writes_nothing(self):
        """Test a rendering failure propagates and no entry is committed."""
        seed_candidate("cand-1", make_criteria())
        builder = Mock(spec=MailboxEntryBuilder)
        builder.build.side_effect = NotificationTemplateError("bad template")

        with pytest.raises(NotificationTemplateError):
            MailboxDeliveryService(entry_builder=builder).deliver(make_job())

        assert mailbox_of("cand-1") == []

    def test_storage_error_rolls_back_all_entries(self):
        """Test a failing write leaves no partial delivery behind."""
        seed_candidate("c-1", make_criteria())
        seed_candidate("c-2", make_criteria())

        with patch.object(
            MailboxRepository, "append_many", side_effect=PersistenceError("disk full")
        ):
            with pytest.raises(PersistenceError):
                MailboxDeliveryService().deliver(make_job())

        assert mailbox_of("c-1") == []
        assert mailbox_of("c-2") == []

    def test_entry_built_by_injected_builder(self):
        """Test the injected builder's entry is what gets stored."""
        seed_candidate("cand-1", make_criteria())
        builder = Mock(spec=MailboxEntryBuilder)
        builder.build.return_value = MailboxEntry(date=42, sender="X", context="ctx")

        MailboxDeliveryService(entry_builder=builder).deliver(make_job())

        assert mailbox_of("cand-1") == [MailboxEntry(date=42, sender="X", context="ctx")]
