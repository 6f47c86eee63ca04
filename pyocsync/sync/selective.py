"""Selective sync: remote folders excluded from synchronization.

The list of excluded remote folders is persisted in the journal as the
selective sync blacklist. When a new list is supplied, every folder that
was added or removed is scheduled for remote rediscovery, so the engine
evaluates it from scratch instead of trusting cached discovery data.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from ..exceptions import JournalError
from ..utils import is_comment_or_blank
from .journal import SelectiveSyncListType, SyncJournal

logger = logging.getLogger(__name__)


def normalize_folder_path(path: str) -> str:
    """Ensure a remote folder path ends with a slash.

    Examples:
        >>> normalize_folder_path("Documents")
        'Documents/'
        >>> normalize_folder_path("Shared/")
        'Shared/'
    """
    return path if path.endswith("/") else path + "/"


def parse_selective_sync_list(text: str) -> list[str]:
    """Parse the contents of an unsynced folders file.

    Blank lines and lines starting with ``#`` are dropped; every other
    line is normalized to end with a slash.

    Examples:
        >>> parse_selective_sync_list("# comment\\n\\nDocuments\\nShared/\\n")
        ['Documents/', 'Shared/']
    """
    return [
        normalize_folder_path(line)
        for line in text.splitlines()
        if not is_comment_or_blank(line)
    ]


def read_selective_sync_file(path: str) -> Optional[list[str]]:
    """Read an unsynced folders file.

    Args:
        path: File with one remote folder per line (UTF-8)

    Returns:
        Parsed folder list, or None if the file could not be read
    """
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(
            "Could not open file containing the list of unsynced folders: "
            f"{path} ({e})"
        )
        return None
    return parse_selective_sync_list(text)


def changed_paths(old: Iterable[str], new: Iterable[str]) -> set[str]:
    """Paths that were removed from or added to the list.

    Examples:
        >>> sorted(changed_paths(["A/", "B/"], ["B/", "C/"]))
        ['A/', 'C/']
    """
    return set(old) ^ set(new)


def reconcile_selective_sync(journal: SyncJournal, new_list: list[str]) -> set[str]:
    """Replace the persisted blacklist and schedule changed folders.

    If the old blacklist cannot be read nothing is changed, so existing
    state is never overwritten blindly.

    Args:
        journal: Open sync journal
        new_list: Normalized folder list to persist

    Returns:
        The folders scheduled for remote rediscovery
    """
    try:
        old_list = journal.get_selective_sync_list(SelectiveSyncListType.BLACKLIST)
    except JournalError as e:
        logger.warning(f"Keeping previous selective sync list: {e}")
        return set()

    changes = changed_paths(old_list, new_list)
    for path in sorted(changes):
        journal.schedule_path_for_remote_discovery(path)

    journal.set_selective_sync_list(SelectiveSyncListType.BLACKLIST, new_list)
    if changes:
        logger.info(f"Selective sync list changed for {len(changes)} folder(s)")
    return changes


def apply_selective_sync_file(
    journal: SyncJournal, path: Optional[str]
) -> Optional[set[str]]:
    """Load an unsynced folders file and reconcile it with the journal.

    Nothing happens when no file is given, when the file cannot be read,
    or when it contains no entries; the engine then runs with whatever
    blacklist is already persisted.

    Returns:
        The folders scheduled for rediscovery, or None if skipped
    """
    if not path:
        return None

    new_list = read_selective_sync_file(path)
    if not new_list:
        return None
    return reconcile_selective_sync(journal, new_list)
