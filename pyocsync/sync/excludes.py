"""Exclude pattern lists handed to the sync engine."""

import logging
import os
from typing import Optional

from ..exceptions import ExcludeListError
from ..utils import is_comment_or_blank

logger = logging.getLogger(__name__)


class ExcludedFiles:
    """Ordered set of exclude list files and the patterns loaded from them.

    Files are registered first and loaded together by
    :meth:`reload_exclude_files`. The engine consumes both the file paths
    and the loaded patterns.
    """

    def __init__(self) -> None:
        self._paths: list[str] = []
        self.patterns: list[str] = []

    @property
    def paths(self) -> list[str]:
        """Registered exclude list files, in registration order."""
        return list(self._paths)

    def add_exclude_file_path(self, path: str) -> None:
        """Register an exclude list file; duplicates are ignored."""
        if path not in self._paths:
            self._paths.append(path)
            logger.debug(f"Registered exclude list {path}")

    def reload_exclude_files(self) -> bool:
        """Load all registered files as a unit.

        Returns:
            True if every registered file was loaded. On failure the
            previously loaded patterns are left untouched.
        """
        patterns: list[str] = []
        for path in self._paths:
            try:
                with open(path, encoding="utf-8") as f:
                    lines = f.read().splitlines()
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Cannot load exclude list {path}: {e}")
                return False
            patterns.extend(line for line in lines if not is_comment_or_blank(line))

        self.patterns = patterns
        logger.debug(
            f"Loaded {len(patterns)} exclude pattern(s) "
            f"from {len(self._paths)} file(s)"
        )
        return True


def assemble_exclude_files(
    excluded: ExcludedFiles,
    user_exclude_file: Optional[str],
    system_exclude_file: str,
) -> ExcludedFiles:
    """Register the user and system exclude lists and load them.

    The user list is always registered when given. The system list is
    registered when no user list was given, or when it exists on disk.

    Args:
        excluded: Exclude list holder of the engine
        user_exclude_file: Path given with ``--exclude``, if any
        system_exclude_file: Path of the system default list

    Returns:
        The same ExcludedFiles, loaded

    Raises:
        ExcludeListError: If any registered file cannot be loaded
    """
    has_user_exclude_file = bool(user_exclude_file)

    if user_exclude_file:
        excluded.add_exclude_file_path(user_exclude_file)
    if not has_user_exclude_file or os.path.exists(system_exclude_file):
        excluded.add_exclude_file_path(system_exclude_file)

    if not excluded.reload_exclude_files():
        raise ExcludeListError(
            "Cannot load system exclude list or list supplied via --exclude"
        )
    return excluded

