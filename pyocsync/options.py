"""Command line option resolution for the sync tool.

The command line has the shape ``[OPTION]... <source_dir> <server_url>``.
The last two tokens are always the positionals; everything before them is
scanned left to right as flags. A flag that takes a value only consumes the
next token when that token does not itself look like a flag.
"""

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Optional

from .exceptions import (
    ProxyConfigError,
    SourceDirError,
    UsageError,
    VersionRequested,
)
from .utils import DEFAULT_MAX_SYNC_RETRIES, RATE_LIMIT_UNIT, parse_int

logger = logging.getLogger(__name__)

VERSION_FLAGS = ("-v", "--version")


@dataclass(frozen=True)
class SyncOptions:
    """Validated options for a single sync run."""

    source_dir: str
    """Absolute local directory, always ending with a path separator"""

    target_url: str
    """Server URL as given on the command line"""

    proxy: Optional[str] = None
    user: str = ""
    password: str = field(default="", repr=False)
    silent: bool = False
    trust_ssl: bool = False
    use_netrc: bool = False
    interactive: bool = True
    ignore_hidden_files: bool = True
    exclude: str = ""
    """User supplied exclude list file"""

    unsynced_folders: str = ""
    """File listing remote folders excluded from sync (selective sync)"""

    dav_path: str = ""
    max_sync_retries: int = DEFAULT_MAX_SYNC_RETRIES
    uplimit: int = 0
    """Upload limit in bytes/sec, 0 for unlimited"""

    downlimit: int = 0
    """Download limit in bytes/sec, 0 for unlimited"""

    log_debug: bool = False


def looks_like_flag(token: Optional[str]) -> bool:
    """Check whether a token would be read as a flag rather than a value.

    A value-taking flag only consumes the following token when this
    returns False. Values that genuinely start with a dash can therefore
    not be passed; this is a known limitation of the command line format.

    Examples:
        >>> looks_like_flag("--user")
        True
        >>> looks_like_flag("-")
        True
        >>> looks_like_flag("alice")
        False
        >>> looks_like_flag(None)
        True
    """
    if token is None:
        return True
    return token.startswith("-")


def normalize_source_dir(source_dir: str) -> str:
    """Return the absolute form of a source dir with a trailing separator.

    Raises:
        SourceDirError: If the directory does not exist
    """
    if not source_dir.endswith("/"):
        source_dir += "/"
    if not os.path.exists(source_dir):
        raise SourceDirError(source_dir)
    absolute = os.path.abspath(source_dir)
    if not absolute.endswith("/"):
        absolute += "/"
    return absolute


def parse_proxy(proxy: str) -> tuple[str, int]:
    """Split a proxy spec of the form ``scheme://host:port``.

    Args:
        proxy: Proxy specification

    Returns:
        Tuple of (host, port)

    Raises:
        ProxyConfigError: If the spec does not have exactly three
            colon-separated segments or the port is not a number

    Examples:
        >>> parse_proxy("http://192.168.178.23:8080")
        ('192.168.178.23', 8080)
    """
    parts = proxy.split(":")
    if len(parts) != 3:
        raise ProxyConfigError(proxy)

    host = parts[1]
    if host.startswith("//"):
        host = host[2:]

    port = parse_int(parts[2])
    if port is None:
        raise ProxyConfigError(proxy)
    return host, port


def _int_value(flag: str, value: str) -> int:
    number = parse_int(value)
    if number is None:
        raise UsageError(f"Option {flag} expects a number, got '{value}'")
    return number


# Flags that take a value, mapped to (field name, converter)
_VALUE_FLAGS: dict[str, tuple[str, Callable[[str, str], object]]] = {
    "--httpproxy": ("proxy", lambda flag, value: value),
    "-u": ("user", lambda flag, value: value),
    "--user": ("user", lambda flag, value: value),
    "-p": ("password", lambda flag, value: value),
    "--password": ("password", lambda flag, value: value),
    "--exclude": ("exclude", lambda flag, value: value),
    "--unsyncedfolders": ("unsynced_folders", lambda flag, value: value),
    "--davpath": ("dav_path", lambda flag, value: value),
    "--max-sync-retries": ("max_sync_retries", _int_value),
    "--uplimit": (
        "uplimit",
        lambda flag, value: _int_value(flag, value) * RATE_LIMIT_UNIT,
    ),
    "--downlimit": (
        "downlimit",
        lambda flag, value: _int_value(flag, value) * RATE_LIMIT_UNIT,
    ),
}

# Switches, mapped to (field name, value set when present)
_SWITCH_FLAGS: dict[str, tuple[str, bool]] = {
    "-s": ("silent", True),
    "--silent": ("silent", True),
    "--trust": ("trust_ssl", True),
    "-n": ("use_netrc", True),
    "-h": ("ignore_hidden_files", False),
    "--non-interactive": ("interactive", False),
    "--logdebug": ("log_debug", True),
}


def parse_flags(tokens: Sequence[str]) -> dict[str, object]:
    """Parse the flag tokens that precede the two positionals.

    Args:
        tokens: Flag tokens in command line order

    Returns:
        Mapping of SyncOptions field names to parsed values

    Raises:
        UsageError: On an unknown flag or a flag missing its value
        VersionRequested: If a version flag is present
    """
    values: dict[str, object] = {}
    i = 0
    while i < len(tokens):
        option = tokens[i]
        next_token = tokens[i + 1] if i + 1 < len(tokens) else None

        if option in VERSION_FLAGS:
            raise VersionRequested()
        if option in _SWITCH_FLAGS:
            name, value = _SWITCH_FLAGS[option]
            values[name] = value
            i += 1
        elif option in _VALUE_FLAGS:
            if next_token is None or looks_like_flag(next_token):
                raise UsageError(f"Option {option} requires a value")
            name, convert = _VALUE_FLAGS[option]
            values[name] = convert(option, next_token)
            i += 2
        else:
            raise UsageError(f"Unknown option: {option}")
    return values


def resolve_options(args: Sequence[str]) -> SyncOptions:
    """Build validated sync options from raw command line tokens.

    Args:
        args: Command line tokens without the program name

    Returns:
        Validated, immutable SyncOptions

    Raises:
        VersionRequested: If a version flag is among the flags, or is the
            only argument
        UsageError: If the command line is malformed
        SourceDirError: If the source directory does not exist
    """
    args = list(args)
    # The two positionals are never flags, even if they look like one
    flag_tokens = args[:-2] if len(args) >= 2 else args
    if any(arg in VERSION_FLAGS for arg in flag_tokens):
        raise VersionRequested()
    if len(args) < 2:
        raise UsageError("Missing <source_dir> and <server_url>")

    target_url = args.pop()
    source_dir = args.pop()
    if not target_url or not source_dir:
        raise UsageError("Empty <source_dir> or <server_url>")

    # Flags first, so a typo is reported as a usage error.
    values = parse_flags(args)
    source_dir = normalize_source_dir(source_dir)

    options = SyncOptions(source_dir=source_dir, target_url=target_url, **values)
    logger.debug(f"Resolved options: {options}")
    return options
