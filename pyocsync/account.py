"""Account handle and server URL handling."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import unquote, urlsplit, urlunsplit

from .utils import DEFAULT_DAV_PATH

logger = logging.getLogger(__name__)

# Custom schemes accepted on the command line, mapped to HTTP schemes
_SCHEME_ALIASES = {"owncloud": "http", "ownclouds": "https"}


@dataclass(frozen=True)
class Credentials:
    """Resolved login for the server."""

    user: str
    password: str = field(repr=False)
    ssl_trusted: bool = False


@dataclass(frozen=True)
class ServerTarget:
    """A target URL split into server base URL and remote folder."""

    url: str
    """Server base URL without credentials and without the dav path"""

    folder: str
    """Remote folder, starting with / and without trailing / (except root)"""

    host: str
    url_user: str = ""
    url_password: str = field(default="", repr=False)


def normalize_dav_path(dav_path: str) -> str:
    """Strip leading and ensure a trailing slash on a dav path.

    Examples:
        >>> normalize_dav_path("/remote.php/dav/files/alice")
        'remote.php/dav/files/alice/'
    """
    dav_path = dav_path.lstrip("/")
    if dav_path and not dav_path.endswith("/"):
        dav_path += "/"
    return dav_path


def split_target_url(
    target_url: str, dav_path: str = DEFAULT_DAV_PATH
) -> ServerTarget:
    """Split the command line URL into server URL and remote folder.

    The dav path is appended when the URL does not already contain it.
    Everything after the dav path is the remote folder to sync.

    Args:
        target_url: URL as given on the command line
        dav_path: WebDAV path of the server

    Returns:
        ServerTarget with credential-free base URL and folder

    Examples:
        >>> url = "https://bob:pw@cloud.example.com/remote.php/webdav/Docs/"
        >>> t = split_target_url(url)
        >>> t.url, t.folder, t.url_user
        ('https://cloud.example.com', '/Docs', 'bob')
    """
    dav_path = normalize_dav_path(dav_path) or DEFAULT_DAV_PATH

    if not target_url.endswith("/"):
        target_url += "/"
    if dav_path not in target_url:
        target_url += dav_path
    if "://" not in target_url:
        target_url = "http://" + target_url

    parts = urlsplit(target_url)
    scheme = _SCHEME_ALIASES.get(parts.scheme, parts.scheme)

    splitted = parts.path.split("/" + dav_path)
    base_path = splitted[0]
    folder = "/" + (splitted[1] if len(splitted) > 1 else "")
    if folder.endswith("/") and folder != "/":
        folder = folder[:-1]

    host = parts.hostname or ""
    # IPv6 literals keep their brackets in the netloc
    netloc = f"[{host}]" if ":" in host else host
    if parts.port:
        netloc = f"{netloc}:{parts.port}"

    return ServerTarget(
        url=urlunsplit((scheme, netloc, base_path, "", "")),
        folder=unquote(folder),
        host=host,
        url_user=unquote(parts.username or ""),
        url_password=unquote(parts.password or ""),
    )


@dataclass
class Account:
    """Server account used by the bootstrap and the sync engine.

    Capabilities and the user identity are merged in by the capability
    bootstrap before the first sync pass and are read-only afterwards.
    """

    url: str
    credentials: Credentials
    dav_path: str = DEFAULT_DAV_PATH
    proxy: Optional[tuple[str, int]] = None
    capabilities: dict[str, Any] = field(default_factory=dict)
    server_version: str = ""
    dav_user: str = ""
    dav_display_name: str = ""

    def __post_init__(self) -> None:
        self.dav_path = normalize_dav_path(self.dav_path)

    @property
    def proxy_url(self) -> Optional[str]:
        """HTTP proxy URL, if a proxy is configured."""
        if self.proxy is None:
            return None
        host, port = self.proxy
        return f"http://{host}:{port}"

    def dav_url(self) -> str:
        """WebDAV endpoint of the account, with a trailing slash."""
        return f"{self.url.rstrip('/')}/{self.dav_path}"

    def set_capabilities(self, capabilities: dict[str, Any]) -> None:
        """Merge server capabilities and extract the server version."""
        self.capabilities = dict(capabilities)
        core = capabilities.get("core")
        status = core.get("status") if isinstance(core, dict) else None
        version = status.get("version") if isinstance(status, dict) else None
        self.server_version = str(version) if version else ""
        logger.debug(f"Server version: {self.server_version or 'unknown'}")

    def set_user(self, user_id: str, display_name: str) -> None:
        """Merge the authenticated user's identity."""
        self.dav_user = user_id
        self.dav_display_name = display_name
