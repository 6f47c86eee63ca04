"""Utility functions and defaults for pyocsync."""

from typing import Optional

# =============================================================================
# Defaults for the command line tool
# =============================================================================

# Number of follow-up passes allowed after the first sync pass
DEFAULT_MAX_SYNC_RETRIES: int = 3

# WebDAV path appended to the server URL unless already present
DEFAULT_DAV_PATH: str = "remote.php/webdav/"

# HTTP settings for the OCS client
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0

# Rate limit flags are given in kilobytes per second
RATE_LIMIT_UNIT: int = 1000

# Marker for comment lines in list files
COMMENT_MARKER: str = "#"


# =============================================================================
# Formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format a byte count in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def format_rate(bytes_per_second: int) -> str:
    """Format a transfer limit for log output.

    Args:
        bytes_per_second: Limit in bytes/sec, 0 meaning unlimited

    Returns:
        Formatted limit (e.g., "500.0 KB/s", "unlimited")

    Examples:
        >>> format_rate(0)
        'unlimited'
        >>> format_rate(2048)
        '2.0 KB/s'
    """
    if bytes_per_second <= 0:
        return "unlimited"
    return f"{format_size(bytes_per_second)}/s"


def is_comment_or_blank(line: str, marker: str = COMMENT_MARKER) -> bool:
    """Check whether a list file line carries no entry.

    Examples:
        >>> is_comment_or_blank("   ")
        True
        >>> is_comment_or_blank("# note")
        True
        >>> is_comment_or_blank("Documents")
        False
    """
    return not line.strip() or line.startswith(marker)


def parse_int(value: str) -> Optional[int]:
    """Parse a decimal integer, returning None if it is not one.

    Examples:
        >>> parse_int("42")
        42
        >>> parse_int("-1")
        -1
        >>> parse_int("ten") is None
        True
    """
    try:
        return int(value.strip())
    except ValueError:
        return None
