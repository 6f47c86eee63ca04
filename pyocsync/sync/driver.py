"""Drives the sync engine to convergence.

The driver prepares the shared resources once (exclude lists, selective
sync blacklist), then runs engine passes until the engine stops asking
for a follow-up pass or the retry limit is reached.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..account import Account
from ..config import config
from ..exceptions import ExcludeListError, JournalError
from ..options import SyncOptions
from ..utils import format_rate
from .engine import FollowUpSync, SyncEngine
from .excludes import ExcludedFiles, assemble_exclude_files
from .journal import SyncJournal, make_db_name
from .selective import apply_selective_sync_file

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass(frozen=True)
class SyncContext:
    """Everything a sync pass needs; built once after the bootstrap."""

    options: SyncOptions
    url: str
    """Credential-free server URL"""

    folder: str
    """Remote folder to sync"""

    account: Account
    user: str

    @property
    def journal_path(self) -> Path:
        """Location of the journal inside the synced directory."""
        name = make_db_name(self.url, self.folder, self.user)
        return Path(self.options.source_dir) / name


class DriverState(Enum):
    """States of the sync loop."""

    PREPARING = "preparing"
    RUNNING = "running"
    FOLLOW_UP_REQUIRED = "follow_up_required"
    DONE = "done"
    FAILED = "failed"


EngineFactory = Callable[[SyncContext, SyncJournal, ExcludedFiles], SyncEngine]


class SyncLoopDriver:
    """Runs sync passes with a bounded number of follow-up passes."""

    def __init__(
        self,
        context: SyncContext,
        engine_factory: EngineFactory,
        journal: Optional[SyncJournal] = None,
        excluded_files: Optional[ExcludedFiles] = None,
        system_exclude_file: Optional[str] = None,
    ):
        """Initialize the driver.

        Args:
            context: Sync context, reused unchanged for every pass
            engine_factory: Creates the engine for this run
            journal: Journal to use (defaults to the one in the source dir)
            excluded_files: Exclude list holder (created if not given)
            system_exclude_file: System default exclude list (uses config
                if not provided)
        """
        self.context = context
        self.engine_factory = engine_factory
        self.journal = journal or SyncJournal(context.journal_path)
        self.excluded_files = excluded_files or ExcludedFiles()
        self.system_exclude_file = system_exclude_file or config.system_exclude_file

        self.state = DriverState.PREPARING
        self.restart_count = 0
        self.pass_count = 0
        self._prepared = False

    @property
    def retry_limit(self) -> int:
        return self.context.options.max_sync_retries

    def prepare(self) -> None:
        """Load exclude lists and apply the selective sync list.

        Runs once, before the first pass.

        Raises:
            ExcludeListError: If an exclude list cannot be loaded
            JournalError: If the journal cannot be opened or written
        """
        if self._prepared:
            return

        options = self.context.options
        try:
            assemble_exclude_files(
                self.excluded_files, options.exclude, self.system_exclude_file
            )
            self.journal.open()
            apply_selective_sync_file(self.journal, options.unsynced_folders)
        except (ExcludeListError, JournalError):
            self.state = DriverState.FAILED
            raise
        self._prepared = True

    def _create_engine(self) -> SyncEngine:
        options = self.context.options
        engine = self.engine_factory(self.context, self.journal, self.excluded_files)
        engine.set_ignore_hidden_files(options.ignore_hidden_files)
        engine.set_network_limits(options.uplimit, options.downlimit)
        engine.on_sync_error(lambda message: logger.warning(f"Sync error: {message}"))
        logger.debug(
            f"Network limits: up {format_rate(options.uplimit)}, "
            f"down {format_rate(options.downlimit)}"
        )
        return engine

    def run(self) -> int:
        """Prepare, then run passes until the engine has converged.

        Returns:
            Process exit status derived from the last pass

        Raises:
            ExcludeListError: If preparation fails; no pass is run
        """
        self.prepare()

        engine = self._create_engine()
        try:
            result = self._run_passes(engine)
        finally:
            engine.close()
            self.journal.close()
        return EXIT_SUCCESS if result else EXIT_FAILURE

    def _run_passes(self, engine: SyncEngine) -> bool:
        while True:
            self.state = DriverState.RUNNING
            self.pass_count += 1
            result = engine.start_sync().result()

            if engine.is_another_sync_needed() is FollowUpSync.NO_FOLLOW_UP:
                self.state = DriverState.DONE
                return result

            self.state = DriverState.FOLLOW_UP_REQUIRED
            if self.restart_count < self.retry_limit:
                self.restart_count += 1
                logger.debug(
                    "Restarting sync, because another sync is needed "
                    f"{self.restart_count}"
                )
                continue

            logger.warning(
                "Another sync is needed, but not done because restart count "
                f"is exceeded {self.restart_count}"
            )
            self.state = DriverState.DONE
            return result
