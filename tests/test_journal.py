"""Unit tests for the sync journal."""

import tempfile
from pathlib import Path

import pytest

from pyocsync.exceptions import JournalError
from pyocsync.sync.journal import (
    JOURNAL_PREFIX,
    SelectiveSyncListType,
    SyncJournal,
    make_db_name,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def journal(temp_dir):
    """Open a journal in the temporary directory."""
    with SyncJournal(temp_dir / "._sync_test.db") as journal:
        yield journal


class TestMakeDbName:
    """Tests for journal file naming."""

    def test_name_format(self):
        """Test the journal file name shape."""
        name = make_db_name("https://cloud.example.com", "/", "alice")
        assert name.startswith(JOURNAL_PREFIX)
        assert name.endswith(".db")
        assert len(name) == len(JOURNAL_PREFIX) + 12 + len(".db")

    def test_name_is_stable(self):
        """Test that the same setup always maps to the same journal."""
        assert make_db_name("https://a", "/x", "u") == make_db_name(
            "https://a", "/x", "u"
        )

    def test_name_depends_on_setup(self):
        """Test that user, URL and folder each change the name."""
        base = make_db_name("https://a", "/x", "u")
        assert make_db_name("https://b", "/x", "u") != base
        assert make_db_name("https://a", "/y", "u") != base
        assert make_db_name("https://a", "/x", "v") != base


class TestSyncJournal:
    """Tests for SyncJournal."""

    def test_creates_database_file(self, temp_dir):
        """Test that opening creates the database."""
        path = temp_dir / "._sync_new.db"
        with SyncJournal(path):
            pass
        assert path.exists()

    def test_selective_sync_lists_are_separate(self, journal):
        """Test that list types do not overwrite each other."""
        journal.set_selective_sync_list(SelectiveSyncListType.BLACKLIST, ["A/"])
        journal.set_selective_sync_list(SelectiveSyncListType.WHITELIST, ["B/"])

        assert journal.get_selective_sync_list(SelectiveSyncListType.BLACKLIST) == [
            "A/"
        ]
        assert journal.get_selective_sync_list(SelectiveSyncListType.WHITELIST) == [
            "B/"
        ]

    def test_set_replaces_list(self, journal):
        """Test that setting a list replaces the previous entries."""
        blacklist = SelectiveSyncListType.BLACKLIST
        journal.set_selective_sync_list(blacklist, ["A/", "B/"])
        journal.set_selective_sync_list(blacklist, ["C/"])
        assert journal.get_selective_sync_list(blacklist) == ["C/"]

    def test_list_survives_reopen(self, temp_dir):
        """Test that lists persist across runs."""
        path = temp_dir / "._sync_persist.db"
        with SyncJournal(path) as journal:
            journal.set_selective_sync_list(
                SelectiveSyncListType.BLACKLIST, ["Documents/"]
            )
        with SyncJournal(path) as journal:
            assert journal.get_selective_sync_list(
                SelectiveSyncListType.BLACKLIST
            ) == ["Documents/"]

    def test_remote_discovery_marks(self, journal):
        """Test scheduling, listing and clearing rediscovery marks."""
        journal.schedule_path_for_remote_discovery("C/")
        journal.schedule_path_for_remote_discovery("A/")
        journal.schedule_path_for_remote_discovery("A/")

        assert journal.paths_scheduled_for_remote_discovery() == ["A/", "C/"]

        journal.clear_remote_discovery()
        assert journal.paths_scheduled_for_remote_discovery() == []

    def test_last_sync(self, journal):
        """Test recording a successful pass."""
        assert journal.last_sync() is None
        journal.mark_synced()
        assert journal.last_sync() is not None

    def test_metadata_values(self, journal):
        """Test reading and overwriting metadata."""
        assert journal.get_value("key") is None
        journal.set_value("key", "one")
        journal.set_value("key", "two")
        assert journal.get_value("key") == "two"

    def test_open_failure_raises_journal_error(self, temp_dir):
        """Test that an unusable location raises JournalError."""
        journal = SyncJournal(temp_dir / "missing" / "dir" / "._sync_x.db")
        with pytest.raises(JournalError, match="Cannot open sync journal"):
            journal.open()
