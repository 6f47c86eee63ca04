"""Sync engine that delegates propagation to ``rclone bisync``.

rclone talks WebDAV to the server and does the actual diffing, transfers,
conflict handling and bandwidth shaping. This module only translates the
tool's configuration into an rclone command line and maps the exit code
back to a pass result.
"""

import logging
import os
import subprocess
from typing import Callable, Optional

from ..account import Account
from ..config import config
from ..exceptions import EngineError
from .driver import SyncContext
from .engine import FollowUpSync, SyncEngine
from .excludes import ExcludedFiles
from .journal import JOURNAL_PREFIX, SelectiveSyncListType, SyncJournal

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def format_bwlimit(upload: int, download: int) -> Optional[str]:
    """Build an rclone ``--bwlimit`` value from limits in bytes/sec.

    Examples:
        >>> format_bwlimit(0, 0) is None
        True
        >>> format_bwlimit(50000, 0)
        '50000B:off'
    """
    if upload <= 0 and download <= 0:
        return None

    def side(limit: int) -> str:
        return f"{limit}B" if limit > 0 else "off"

    return f"{side(upload)}:{side(download)}"


class RcloneSyncEngine(SyncEngine):
    """Runs one ``rclone bisync`` invocation per sync pass."""

    # rclone exit codes
    EXIT_SUCCESS = 0
    EXIT_RETRYABLE = 1
    EXIT_USAGE_ERROR = 2
    EXIT_CRITICAL = 7

    def __init__(
        self,
        account: Account,
        local_path: str,
        remote_path: str,
        journal: SyncJournal,
        excluded_files: Optional[ExcludedFiles] = None,
        rclone_path: Optional[str] = None,
        runner: Runner = subprocess.run,
    ):
        super().__init__(account, local_path, remote_path, journal, excluded_files)
        self.rclone_path = rclone_path or config.rclone_path
        self._run = runner
        self._obscured_password: Optional[str] = None

    def _obscure_password(self) -> str:
        """rclone only accepts obscured WebDAV passwords."""
        if self._obscured_password is None:
            password = self.account.credentials.password
            if not password:
                self._obscured_password = ""
                return ""
            try:
                result = self._run(
                    [self.rclone_path, "obscure", "-"],
                    input=password,
                    capture_output=True,
                    text=True,
                    check=True,
                )
            except (OSError, subprocess.CalledProcessError) as e:
                raise EngineError(f"Failed to run rclone: {e}") from e
            self._obscured_password = result.stdout.strip()
        return self._obscured_password

    def blacklisted_folders(self) -> list[str]:
        """Remote folders excluded through selective sync."""
        return self.journal.get_selective_sync_list(SelectiveSyncListType.BLACKLIST)

    def needs_resync(self) -> bool:
        """Whether bisync has to rebuild its listings on this pass."""
        scheduled = self.journal.paths_scheduled_for_remote_discovery()
        if scheduled:
            logger.info(f"Rediscovering {len(scheduled)} remote folder(s)")
            return True
        return self.journal.last_sync() is None

    def build_command(self, resync: bool = False) -> list[str]:
        """Build the rclone bisync command line for one pass."""
        credentials = self.account.credentials
        cmd = [
            self.rclone_path,
            "bisync",
            self.local_path.rstrip("/") or "/",
            f":webdav:{self.remote_path}",
            f"--webdav-url={self.account.dav_url()}",
            "--webdav-vendor=owncloud",
            f"--webdav-user={credentials.user}",
            f"--exclude=/{JOURNAL_PREFIX}*.db*",
            "--verbose",
        ]

        for path in self.excluded_files.paths:
            cmd.append(f"--exclude-from={path}")

        for folder in self.blacklisted_folders():
            cmd.append(f"--exclude=/{folder.strip('/')}/**")

        if self.ignore_hidden_files:
            cmd.extend(["--exclude=.*", "--exclude=.*/**"])

        bwlimit = format_bwlimit(self.upload_limit, self.download_limit)
        if bwlimit:
            cmd.append(f"--bwlimit={bwlimit}")

        if credentials.ssl_trusted:
            cmd.append("--no-check-certificate")

        # Conflict copies carry the name of the user who caused them
        owner = self.account.dav_display_name or self.account.dav_user
        if owner:
            cmd.append(f"--conflict-suffix=conflict-{owner}")

        if resync:
            cmd.append("--resync")
        return cmd

    def build_env(self) -> dict[str, str]:
        """Environment for rclone, carrying the secret and proxy settings."""
        env = dict(os.environ)
        password = self._obscure_password()
        if password:
            env["RCLONE_WEBDAV_PASS"] = password
        proxy_url = self.account.proxy_url
        if proxy_url:
            env["HTTP_PROXY"] = proxy_url
            env["HTTPS_PROXY"] = proxy_url
        return env

    def run_pass(self) -> bool:
        resync = self.needs_resync()
        cmd = self.build_command(resync=resync)
        env = self.build_env()

        logger.debug(f"Running command: {' '.join(cmd)}")
        try:
            process = self._run(cmd, capture_output=True, text=True, env=env)
        except OSError as e:
            raise EngineError(f"Failed to run rclone: {e}") from e

        self._report_output(process.stdout or "", process.stderr or "")
        exit_code = process.returncode
        logger.info(f"rclone exited with code {exit_code}")

        if exit_code == self.EXIT_SUCCESS:
            if resync:
                self.journal.clear_remote_discovery()
            self.journal.mark_synced()
            return True

        if exit_code == self.EXIT_RETRYABLE:
            self.request_follow_up(FollowUpSync.IMMEDIATE)
        elif exit_code == self.EXIT_CRITICAL:
            self.emit_sync_error(
                "Bisync state is corrupted, the next run rebuilds it with --resync"
            )
            self.journal.schedule_path_for_remote_discovery("/")
        else:
            self.emit_sync_error(f"rclone failed with exit code {exit_code}")
        return False

    def _report_output(self, stdout: str, stderr: str) -> None:
        for line in stdout.splitlines() + stderr.splitlines():
            if "ERROR" in line:
                self.emit_sync_error(line.strip())
            else:
                logger.debug(line)


def create_rclone_engine(
    context: SyncContext, journal: SyncJournal, excluded: ExcludedFiles
) -> RcloneSyncEngine:
    """Engine factory used by the command line tool."""
    return RcloneSyncEngine(
        context.account,
        context.options.source_dir,
        context.folder,
        journal,
        excluded,
    )
