"""Sync journal database.

The journal lives inside the synced directory and records state that has
to survive between runs: the selective sync lists and the remote folders
that must be rediscovered from scratch on the next pass.
"""

import hashlib
import logging
import sqlite3
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..exceptions import JournalError

logger = logging.getLogger(__name__)

JOURNAL_PREFIX = "._sync_"


class SelectiveSyncListType(Enum):
    """Kinds of selective sync lists stored in the journal."""

    BLACKLIST = 1
    """Remote folders excluded from sync"""

    WHITELIST = 2
    """Remote folders explicitly included"""

    UNDECIDED = 3
    """Big remote folders awaiting a decision"""


def make_db_name(url: str, folder: str, user: str) -> str:
    """Build the journal file name for a sync setup.

    The name is derived from user, server URL and remote folder so that
    several setups can share one local directory.

    Args:
        url: Credential-free server URL
        folder: Remote folder
        user: Login name

    Returns:
        File name such as ``._sync_2ab8f10c43de.db``
    """
    key = f"{user}@{url}:{folder}"
    digest = hashlib.md5(key.encode("utf-8")).digest()
    return f"{JOURNAL_PREFIX}{digest[:6].hex()}.db"


class SyncJournal:
    """sqlite3-backed journal for one sync setup.

    The connection is opened lazily and kept for the lifetime of the
    object; the same journal is reused across sync passes. Passes run on
    a worker thread, one at a time, so the connection is shared with it.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._db: Optional[sqlite3.Connection] = None

    def _connection(self) -> sqlite3.Connection:
        if self._db is None:
            try:
                self._db = sqlite3.connect(
                    str(self.db_path), check_same_thread=False
                )
                self._create_tables(self._db)
            except sqlite3.Error as e:
                self._db = None
                raise JournalError(
                    f"Cannot open sync journal {self.db_path}: {e}"
                ) from e
            logger.debug(f"Opened sync journal {self.db_path}")
        return self._db

    @staticmethod
    def _create_tables(db: sqlite3.Connection) -> None:
        db.execute(
            """
            CREATE TABLE IF NOT EXISTS selectivesync (
                path VARCHAR(4096),
                type INTEGER
            )
            """
        )
        db.execute(
            """
            CREATE TABLE IF NOT EXISTS remote_discovery (
                path VARCHAR(4096) PRIMARY KEY
            )
            """
        )
        db.execute(
            """
            CREATE TABLE IF NOT EXISTS metadata (
                key VARCHAR(256) PRIMARY KEY,
                value VARCHAR(4096)
            )
            """
        )
        db.commit()

    def open(self) -> "SyncJournal":
        """Open the database, creating it if needed.

        Raises:
            JournalError: If the database cannot be opened
        """
        self._connection()
        return self

    def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            self._db.close()
            self._db = None

    def __enter__(self) -> "SyncJournal":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_selective_sync_list(self, list_type: SelectiveSyncListType) -> list[str]:
        """Read a selective sync list.

        Raises:
            JournalError: If the list cannot be read
        """
        try:
            rows = (
                self._connection()
                .execute(
                    "SELECT path FROM selectivesync WHERE type = ? ORDER BY rowid",
                    (list_type.value,),
                )
                .fetchall()
            )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot read selective sync list: {e}") from e
        return [row[0] for row in rows]

    def set_selective_sync_list(
        self, list_type: SelectiveSyncListType, paths: list[str]
    ) -> None:
        """Replace a selective sync list.

        Raises:
            JournalError: If the list cannot be written
        """
        db = self._connection()
        try:
            with db:
                db.execute(
                    "DELETE FROM selectivesync WHERE type = ?", (list_type.value,)
                )
                db.executemany(
                    "INSERT INTO selectivesync (path, type) VALUES (?, ?)",
                    [(path, list_type.value) for path in paths],
                )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot write selective sync list: {e}") from e
        logger.debug(f"Stored {len(paths)} entries in {list_type.name.lower()}")

    def schedule_path_for_remote_discovery(self, path: str) -> None:
        """Mark a remote folder to be rediscovered from scratch.

        Raises:
            JournalError: If the mark cannot be written
        """
        db = self._connection()
        try:
            with db:
                db.execute(
                    "INSERT OR IGNORE INTO remote_discovery (path) VALUES (?)",
                    (path,),
                )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot schedule {path} for discovery: {e}") from e
        logger.debug(f"Scheduled {path} for remote discovery")

    def paths_scheduled_for_remote_discovery(self) -> list[str]:
        """Get the remote folders awaiting rediscovery, sorted."""
        try:
            rows = (
                self._connection()
                .execute("SELECT path FROM remote_discovery ORDER BY path")
                .fetchall()
            )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot read remote discovery marks: {e}") from e
        return [row[0] for row in rows]

    def clear_remote_discovery(self) -> None:
        """Drop all rediscovery marks after a complete pass."""
        db = self._connection()
        try:
            with db:
                db.execute("DELETE FROM remote_discovery")
        except sqlite3.Error as e:
            raise JournalError(f"Cannot clear remote discovery marks: {e}") from e

    def get_value(self, key: str) -> Optional[str]:
        """Read a metadata value, or None if it was never set."""
        try:
            row = (
                self._connection()
                .execute("SELECT value FROM metadata WHERE key = ?", (key,))
                .fetchone()
            )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot read journal metadata {key}: {e}") from e
        return row[0] if row else None

    def set_value(self, key: str, value: str) -> None:
        """Write a metadata value."""
        db = self._connection()
        try:
            with db:
                db.execute(
                    "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise JournalError(f"Cannot write journal metadata {key}: {e}") from e

    def last_sync(self) -> Optional[str]:
        """ISO timestamp of the last successful pass, if any."""
        return self.get_value("last_sync")

    def mark_synced(self) -> None:
        """Record a successful pass."""
        self.set_value("last_sync", datetime.now().isoformat())
