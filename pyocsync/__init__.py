"""pyocsync - command line sync client for ownCloud-compatible servers."""

from .account import Account, Credentials, ServerTarget, split_target_url
from .api import OcsClient
from .exceptions import (
    BootstrapError,
    ConfigError,
    EngineError,
    ExcludeListError,
    JournalError,
    OcsAPIError,
    OcsAuthenticationError,
    OcsInvalidResponseError,
    OcsNetworkError,
    OcsNotFoundError,
    OcsPermissionError,
    ProxyConfigError,
    PyOcSyncError,
    SourceDirError,
    UsageError,
    VersionRequested,
)
from .options import SyncOptions, resolve_options

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Account",
    "Credentials",
    "ServerTarget",
    "split_target_url",
    "OcsClient",
    "SyncOptions",
    "resolve_options",
    "PyOcSyncError",
    "UsageError",
    "VersionRequested",
    "ConfigError",
    "SourceDirError",
    "ProxyConfigError",
    "ExcludeListError",
    "JournalError",
    "BootstrapError",
    "EngineError",
    "OcsAPIError",
    "OcsNetworkError",
    "OcsAuthenticationError",
    "OcsPermissionError",
    "OcsNotFoundError",
    "OcsInvalidResponseError",
]
