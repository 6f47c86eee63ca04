"""Custom exceptions for pyocsync."""


class PyOcSyncError(Exception):
    """Base exception for all pyocsync errors."""

    pass


class UsageError(PyOcSyncError):
    """Raised when the command line cannot be parsed."""

    pass


class VersionRequested(PyOcSyncError):
    """Raised when the version flag was given instead of a sync job."""

    pass


class ConfigError(PyOcSyncError):
    """Raised when the environment or configuration is invalid."""

    pass


class SourceDirError(ConfigError):
    """Raised when the local source directory does not exist."""

    def __init__(self, source_dir: str):
        self.source_dir = source_dir
        super().__init__(f"Source dir '{source_dir}' does not exist.")


class ProxyConfigError(ConfigError):
    """Raised when the proxy spec is not of the form scheme://host:port."""

    def __init__(self, proxy: str):
        self.proxy = proxy
        super().__init__(
            "Could not read httpproxy. The proxy should have the format "
            '"http://hostname:port".'
        )


class ExcludeListError(ConfigError):
    """Raised when a registered exclude file cannot be loaded."""

    pass


class JournalError(PyOcSyncError):
    """Raised when the sync journal database cannot be read or written."""

    pass


class BootstrapError(PyOcSyncError):
    """Raised when capabilities or user identity cannot be fetched."""

    pass


class EngineError(PyOcSyncError):
    """Raised when the sync engine cannot be configured or started."""

    pass


class OcsAPIError(PyOcSyncError):
    """Base exception for OCS API errors."""

    pass


class OcsNetworkError(OcsAPIError):
    """Raised when a network error occurs."""

    pass


class OcsAuthenticationError(OcsAPIError):
    """Raised when authentication fails."""

    pass


class OcsPermissionError(OcsAPIError):
    """Raised when the user lacks permission for an operation."""

    pass


class OcsNotFoundError(OcsAPIError):
    """Raised when a requested endpoint does not exist."""

    pass


class OcsInvalidResponseError(OcsAPIError):
    """Raised when the server response is not valid OCS JSON."""

    pass
