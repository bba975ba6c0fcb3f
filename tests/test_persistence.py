"""Unit tests for persistence layer."""

import pytest
from sqlalchemy import text

from job_notifier.domain.models import MailboxEntry
from job_notifier.persistence import (
    CandidateRepository,
    DatabaseConnectionError,
    DataIntegrityError,
    MailboxRepository,
    NotificationSettingRepository,
    RecordNotFoundError,
    close_database,
    get_session,
    init_database,
)
from job_notifier.persistence.schema import CandidateModel, MailboxEntryModel
from tests.helpers import make_candidate, make_criteria, make_setting


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_success(self, tmp_path):
        """Test successful database initialization."""
        db_file = tmp_path / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        with get_session() as session:
            assert session is not None

        close_database()

    def test_init_database_creates_parent_directories(self, tmp_path):
        """Test initialization creates parent directories if missing."""
        db_file = tmp_path / "subdir" / "nested" / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        close_database()

    def test_init_database_invalid_url_raises_error(self):
        """Test initialization with invalid URL raises DatabaseConnectionError."""
        with pytest.raises(DatabaseConnectionError):
            init_database("")

        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_schema_creation_is_idempotent(self, tmp_path):
        """Test schema creation can run multiple times."""
        db_url = f"sqlite:///{tmp_path / 'test.db'}"

        init_database(db_url)
        init_database(db_url)

        with get_session() as session:
            result = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {"candidates", "notification_settings", "mailbox_entries"} <= tables
        close_database()

    def test_get_session_before_init_raises(self):
        """Test get_session() fails clearly when the database is not initialized."""
        close_database()

        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass


class TestSessionManagement:
    """Tests for session management."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        """Setup test database before each test."""
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_session_commits_on_success(self):
        """Test session commits transaction on successful exit."""
        with get_session() as session:
            session.add(CandidateModel.from_domain(make_candidate()))

        with get_session() as session:
            assert session.get(CandidateModel, "cand-1") is not None

    def test_session_rolls_back_on_exception(self):
        """Test session rolls back transaction on exception."""
        with pytest.raises(ValueError):
            with get_session() as session:
                session.add(CandidateModel.from_domain(make_candidate()))
                session.flush()
                raise ValueError("boom")

        with get_session() as session:
            assert session.get(CandidateModel, "cand-1") is None


class TestCandidateRepository:
    """Tests for CandidateRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_upsert_inserts_new_candidate(self):
        """Test upsert stores a new candidate."""
        with get_session() as session:
            stored = CandidateRepository(session).upsert(make_candidate())

        assert stored.id == "cand-1"
        assert stored.full_name == "Ada Lovelace"
        assert stored.email == "ada@example.com"
        assert stored.notification_settings == []

    def test_upsert_updates_existing_candidate(self):
        """Test upsert refreshes name and email of an existing candidate."""
        with get_session() as session:
            CandidateRepository(session).upsert(make_candidate())

        with get_session() as session:
            CandidateRepository(session).upsert(
                make_candidate(full_name="Ada King", email="ada.king@example.com")
            )

        with get_session() as session:
            candidate = CandidateRepository(session).require("cand-1")

        assert candidate.full_name == "Ada King"
        assert candidate.email == "ada.king@example.com"

    def test_get_unknown_candidate_returns_none(self):
        """Test get() returns None for an unknown id."""
        with get_session() as session:
            assert CandidateRepository(session).get("missing") is None

    def test_require_unknown_candidate_raises(self):
        """Test require() raises RecordNotFoundError for an unknown id."""
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                CandidateRepository(session).require("missing")

    def test_exists(self):
        """Test exists() reflects stored candidates."""
        with get_session() as session:
            repo = CandidateRepository(session)
            repo.upsert(make_candidate())

            assert repo.exists("cand-1") is True
            assert repo.exists("cand-2") is False

    def test_list_all_groups_settings_by_candidate(self):
        """Test list_all() attaches each candidate's own filters in creation order."""
        with get_session() as session:
            candidates = CandidateRepository(session)
            settings = NotificationSettingRepository(session)
            candidates.upsert(make_candidate("c-1"))
            candidates.upsert(make_candidate("c-2", email=None))
            settings.create("c-1", make_criteria(keywords=["python"]), setting_id="s-1")
            settings.create("c-2", make_criteria(company_names=["acme"]), setting_id="s-2")
            settings.create("c-1", make_criteria(job_roles=["qa"]), setting_id="s-3")

        with get_session() as session:
            listed = {c.id: c for c in CandidateRepository(session).list_all()}

        assert set(listed) == {"c-1", "c-2"}
        assert [s.id for s in listed["c-1"].notification_settings] == ["s-1", "s-3"]
        assert [s.id for s in listed["c-2"].notification_settings] == ["s-2"]
        assert listed["c-2"].email is None

    def test_get_include_mailbox(self):
        """Test get(include_mailbox=True) loads mailbox entries."""
        with get_session() as session:
            CandidateRepository(session).upsert(make_candidate())
            MailboxRepository(session).append(
                "cand-1", MailboxEntry(date=1, sender="Globex", context="hello")
            )

        with get_session() as session:
            repo = CandidateRepository(session)
            without = repo.get("cand-1")
            with_mailbox = repo.get("cand-1", include_mailbox=True)

        assert without.mailbox == []
        assert [entry.context for entry in with_mailbox.mailbox] == ["hello"]

    def test_import_candidate_keeps_embedded_filters_and_mailbox(self):
        """Test importing a new candidate stores its filters (ids kept) and mailbox."""
        candidate = make_candidate(
            settings=[make_setting("legacy-1", keywords=["rust"])],
            mailbox=[MailboxEntry(date=1000, sender="Acme", context="old entry")],
        )

        with get_session() as session:
            created = CandidateRepository(session).import_candidate(candidate)

        with get_session() as session:
            stored = CandidateRepository(session).require("cand-1", include_mailbox=True)

        assert created is True
        assert [s.id for s in stored.notification_settings] == ["legacy-1"]
        assert stored.notification_settings[0].keywords == ["rust"]
        assert stored.mailbox == [MailboxEntry(date=1000, sender="Acme", context="old entry")]

    def test_reimport_does_not_duplicate_mailbox(self):
        """Test importing an existing candidate only refreshes name and email."""
        candidate = make_candidate(
            mailbox=[MailboxEntry(date=1000, sender="Acme", context="old entry")]
        )

        with get_session() as session:
            CandidateRepository(session).import_candidate(candidate)
        with get_session() as session:
            created = CandidateRepository(session).import_candidate(
                candidate.model_copy(update={"full_name": "Renamed"})
            )

        with get_session() as session:
            stored = CandidateRepository(session).require("cand-1", include_mailbox=True)

        assert created is False
        assert stored.full_name == "Renamed"
        assert len(stored.mailbox) == 1

    def test_import_candidates_sharing_a_filter_id(self):
        """Test two candidates may each own a filter with the same id."""
        with get_session() as session:
            repo = CandidateRepository(session)
            repo.import_candidate(
                make_candidate("cand-a", settings=[make_setting("f-1", keywords=["python"])])
            )
            repo.import_candidate(
                make_candidate("cand-b", settings=[make_setting("f-1", keywords=["rust"])])
            )

        with get_session() as session:
            repo = CandidateRepository(session)
            first = repo.require("cand-a")
            second = repo.require("cand-b")

        assert [s.id for s in first.notification_settings] == ["f-1"]
        assert [s.id for s in second.notification_settings] == ["f-1"]
        assert first.notification_settings[0].keywords == ["python"]
        assert second.notification_settings[0].keywords == ["rust"]


class TestNotificationSettingRepository:
    """Tests for NotificationSettingRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        with get_session() as session:
            CandidateRepository(session).upsert(make_candidate())
        yield
        close_database()

    def test_create_generates_unique_ids(self):
        """Test created filters get distinct non-empty ids."""
        with get_session() as session:
            repo = NotificationSettingRepository(session)
            first = repo.create("cand-1", make_criteria(keywords=["python"]))
            second = repo.create("cand-1", make_criteria(keywords=["python"]))

        assert first.id
        assert second.id
        assert first.id != second.id

    def test_create_then_read_round_trip(self):
        """Test criteria read back exactly as given, None and [] preserved."""
        criteria = make_criteria(company_names=["Globex"], job_roles=[], keywords=None)

        with get_session() as session:
            created = NotificationSettingRepository(session).create("cand-1", criteria)

        with get_session() as session:
            listed = NotificationSettingRepository(session).list_for_candidate("cand-1")

        assert len(listed) == 1
        assert listed[0].id == created.id
        assert listed[0].company_names == ["Globex"]
        assert listed[0].job_roles == []
        assert listed[0].keywords is None

    def test_create_for_unknown_candidate_raises(self):
        """Test creating a filter for an unknown candidate raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationSettingRepository(session).create("missing", make_criteria())

    def test_create_with_duplicate_id_raises(self):
        """Test an explicit filter id cannot be reused."""
        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                repo = NotificationSettingRepository(session)
                repo.create("cand-1", make_criteria(), setting_id="dup")
                repo.create("cand-1", make_criteria(), setting_id="dup")

    def test_replace_preserves_id_and_replaces_all_lists(self):
        """Test replace() swaps all three lists and keeps the id."""
        with get_session() as session:
            created = NotificationSettingRepository(session).create(
                "cand-1", make_criteria(company_names=["acme"], keywords=["go"])
            )

        with get_session() as session:
            replaced = NotificationSettingRepository(session).replace(
                "cand-1", created.id, make_criteria(job_roles=["qa"])
            )

        assert replaced.id == created.id
        assert replaced.company_names is None
        assert replaced.job_roles == ["qa"]
        assert replaced.keywords is None

    def test_replace_unknown_filter_raises(self):
        """Test replacing an unknown filter raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationSettingRepository(session).replace("cand-1", "nope", make_criteria())

    def test_replace_unknown_candidate_raises(self):
        """Test replacing under an unknown candidate raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationSettingRepository(session).replace("missing", "nope", make_criteria())

    def test_delete_removes_only_that_filter(self):
        """Test delete() removes one filter and keeps the others."""
        with get_session() as session:
            repo = NotificationSettingRepository(session)
            keep = repo.create("cand-1", make_criteria(keywords=["a"]))
            drop = repo.create("cand-1", make_criteria(keywords=["b"]))

        with get_session() as session:
            NotificationSettingRepository(session).delete("cand-1", drop.id)

        with get_session() as session:
            remaining = NotificationSettingRepository(session).list_for_candidate("cand-1")

        assert [s.id for s in remaining] == [keep.id]

    def test_delete_filter_of_other_candidate_raises(self):
        """Test a filter id is scoped to its owning candidate."""
        with get_session() as session:
            CandidateRepository(session).upsert(make_candidate("cand-2"))
            other = NotificationSettingRepository(session).create("cand-2", make_criteria())

        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationSettingRepository(session).delete("cand-1", other.id)


class TestMailboxRepository:
    """Tests for MailboxRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        with get_session() as session:
            CandidateRepository(session).upsert(make_candidate("cand-1"))
            CandidateRepository(session).upsert(make_candidate("cand-2"))
        yield
        close_database()

    def test_append_preserves_delivery_order(self):
        """Test entries are listed in the order they were appended."""
        with get_session() as session:
            repo = MailboxRepository(session)
            repo.append("cand-1", MailboxEntry(date=3, sender="C", context="third"))
            repo.append("cand-1", MailboxEntry(date=1, sender="A", context="first"))

        with get_session() as session:
            entries = MailboxRepository(session).list_for_candidate("cand-1")

        assert [entry.context for entry in entries] == ["third", "first"]

    def test_append_for_unknown_candidate_raises(self):
        """Test appending to an unknown candidate raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                MailboxRepository(session).append(
                    "missing", MailboxEntry(date=1, sender="A", context="x")
                )

    def test_append_many_writes_one_row_per_candidate(self):
        """Test append_many() stores the entry for every listed candidate."""
        entry = MailboxEntry(date=5, sender="Globex", context="hello")

        with get_session() as session:
            written = MailboxRepository(session).append_many(
                [("cand-1", entry, "job-1"), ("cand-2", entry, "job-1")]
            )

        with get_session() as session:
            repo = MailboxRepository(session)
            assert repo.list_for_candidate("cand-1") == [entry]
            assert repo.list_for_candidate("cand-2") == [entry]
            job_ids = {row.job_id for row in session.query(MailboxEntryModel).all()}

        assert written == 2
        assert job_ids == {"job-1"}

    def test_append_many_with_nothing_returns_zero(self):
        """Test append_many() with no items is a no-op."""
        with get_session() as session:
            assert MailboxRepository(session).append_many([]) == 0

    def test_append_many_unknown_candidate_raises_integrity_error(self):
        """Test the candidate foreign key rejects unknown candidates."""
        entry = MailboxEntry(date=5, sender="Globex", context="hello")

        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                MailboxRepository(session).append_many([("missing", entry, None)])

        with get_session() as session:
            assert MailboxRepository(session).count_for_candidate("missing") == 0

    def test_duplicate_entries_are_allowed(self):
        """Test the mailbox has no dedup key; identical entries are both kept."""
        entry = MailboxEntry(date=5, sender="Globex", context="hello")

        with get_session() as session:
            repo = MailboxRepository(session)
            repo.append("cand-1", entry, job_id="job-1")
            repo.append("cand-1", entry, job_id="job-1")

        with get_session() as session:
            assert MailboxRepository(session).count_for_candidate("cand-1") == 2
