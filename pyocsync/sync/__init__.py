"""Sync orchestration for pyocsync - exclude lists, selective sync and passes."""

from .driver import DriverState, EngineFactory, SyncContext, SyncLoopDriver
from .engine import FollowUpSync, SyncEngine
from .excludes import ExcludedFiles, assemble_exclude_files
from .journal import SelectiveSyncListType, SyncJournal, make_db_name
from .rclone import RcloneSyncEngine, create_rclone_engine
from .selective import (
    apply_selective_sync_file,
    changed_paths,
    normalize_folder_path,
    parse_selective_sync_list,
    read_selective_sync_file,
    reconcile_selective_sync,
)

__all__ = [
    "SyncLoopDriver",
    "SyncContext",
    "DriverState",
    "EngineFactory",
    "SyncEngine",
    "FollowUpSync",
    "RcloneSyncEngine",
    "create_rclone_engine",
    "ExcludedFiles",
    "assemble_exclude_files",
    "SyncJournal",
    "SelectiveSyncListType",
    "make_db_name",
    "normalize_folder_path",
    "parse_selective_sync_list",
    "read_selective_sync_file",
    "changed_paths",
    "reconcile_selective_sync",
    "apply_selective_sync_file",
]
