"""Sync engine interface used by the sync loop driver."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

from ..account import Account
from ..exceptions import EngineError, JournalError
from .excludes import ExcludedFiles
from .journal import SyncJournal

logger = logging.getLogger(__name__)


class FollowUpSync(Enum):
    """Whether the engine wants another pass after the current one."""

    NO_FOLLOW_UP = "none"
    IMMEDIATE = "immediate"
    """Remote or local state changed during the pass"""

    DELAYED = "delayed"


class SyncEngine:
    """Base class for engines that propagate changes in one pass.

    A pass is started with :meth:`start_sync`, which returns a future that
    resolves to True on success. Passes run on a single worker thread, so
    at most one pass is in flight at any time. After the future resolves,
    :meth:`is_another_sync_needed` tells whether a follow-up pass is due.

    Subclasses implement :meth:`run_pass`.
    """

    def __init__(
        self,
        account: Account,
        local_path: str,
        remote_path: str,
        journal: SyncJournal,
        excluded_files: Optional[ExcludedFiles] = None,
    ):
        """Initialize the engine.

        Args:
            account: Bootstrapped account (capabilities and user merged in)
            local_path: Local directory, ending with a separator
            remote_path: Remote folder below the account's dav path
            journal: Journal shared by all passes
            excluded_files: Loaded exclude lists
        """
        self.account = account
        self.local_path = local_path
        self.remote_path = remote_path
        self.journal = journal
        self.excluded_files = excluded_files or ExcludedFiles()
        self.ignore_hidden_files = True
        self.upload_limit = 0
        self.download_limit = 0

        self._another_sync_needed = FollowUpSync.NO_FOLLOW_UP
        self._sync_error_callbacks: list[Callable[[str], None]] = []
        self._current: Optional[Future] = None
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="sync-pass"
        )

    def set_ignore_hidden_files(self, ignore: bool) -> None:
        self.ignore_hidden_files = ignore

    def set_network_limits(self, upload: int, download: int) -> None:
        """Set transfer limits in bytes/sec; 0 means unlimited."""
        self.upload_limit = upload
        self.download_limit = download

    def on_sync_error(self, callback: Callable[[str], None]) -> None:
        """Register a callback for non-fatal errors reported during a pass."""
        self._sync_error_callbacks.append(callback)

    def emit_sync_error(self, message: str) -> None:
        for callback in self._sync_error_callbacks:
            callback(message)

    def request_follow_up(self, kind: FollowUpSync = FollowUpSync.IMMEDIATE) -> None:
        """Ask for another pass once the current one has finished."""
        self._another_sync_needed = kind

    def is_another_sync_needed(self) -> FollowUpSync:
        return self._another_sync_needed

    def start_sync(self) -> "Future[bool]":
        """Start one sync pass in the background.

        Returns:
            Future resolving to the pass result

        Raises:
            EngineError: If a pass is already running
        """
        if self._current is not None and not self._current.done():
            raise EngineError("A sync pass is already running")

        self._another_sync_needed = FollowUpSync.NO_FOLLOW_UP
        self._current = self._executor.submit(self._run_pass_reporting_errors)
        return self._current

    def _run_pass_reporting_errors(self) -> bool:
        try:
            return self.run_pass()
        except (EngineError, JournalError) as e:
            logger.debug("Sync pass aborted", exc_info=True)
            self.emit_sync_error(str(e))
            return False

    def run_pass(self) -> bool:
        """Execute one pass synchronously.

        Returns:
            True if the pass succeeded
        """
        raise NotImplementedError

    def close(self) -> None:
        """Wait for a running pass and release the worker thread."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "SyncEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
