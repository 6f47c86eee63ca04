"""Credential resolution for the sync tool.

The login is looked up in four places. Later sources override earlier
ones, but only with non-empty values:

1. user and password embedded in the target URL
2. ``--user`` / ``--password``
3. the netrc file, keyed by server host (only with ``-n``)
4. interactive prompts for whatever is still empty (unless
   ``--non-interactive``)
"""

import logging
import netrc
from typing import Callable, Optional, Protocol

import click

from .account import Credentials, ServerTarget
from .options import SyncOptions

logger = logging.getLogger(__name__)

NetrcLookup = Callable[[str], Optional[tuple[str, str]]]


class Prompter(Protocol):
    """Asks the operator for missing login data."""

    def ask_user(self) -> str: ...

    def ask_password(self, user: str) -> str: ...


class TerminalPrompter:
    """Prompts on the controlling terminal.

    The password prompt does not echo input. Echo is restored by click
    on every exit path, including an interrupt.
    """

    def ask_user(self) -> str:
        return click.prompt(
            "Please enter user name", default="", show_default=False
        ).strip()

    def ask_password(self, user: str) -> str:
        return click.prompt(
            f"Password for user {user}",
            default="",
            show_default=False,
            hide_input=True,
        )


def netrc_lookup(
    host: str, netrc_file: Optional[str] = None
) -> Optional[tuple[str, str]]:
    """Look up login and password for a host in the netrc file.

    Args:
        host: Server host name
        netrc_file: Explicit netrc path (defaults to ~/.netrc)

    Returns:
        Tuple of (login, password), or None if no entry matched or the
        file could not be read
    """
    try:
        entries = netrc.netrc(netrc_file)
    except FileNotFoundError:
        logger.debug("No netrc file found")
        return None
    except (netrc.NetrcParseError, OSError) as e:
        logger.warning(f"Could not parse netrc file: {e}")
        return None

    auth = entries.authenticators(host)
    if auth is None:
        logger.debug(f"No netrc entry for host {host}")
        return None
    login, _account, password = auth
    return login or "", password or ""


def resolve_credentials(
    target: ServerTarget,
    options: SyncOptions,
    prompter: Optional[Prompter] = None,
    lookup: Optional[NetrcLookup] = None,
) -> Credentials:
    """Resolve the effective login from all credential sources.

    Args:
        target: Parsed server target, carrying any URL-embedded login
        options: Validated command line options
        prompter: Interactive prompter (defaults to the terminal)
        lookup: netrc lookup function (defaults to ~/.netrc)

    Returns:
        Resolved credentials. Empty user or password are passed on as is.
    """
    user = target.url_user
    password = target.url_password

    if options.user:
        user = options.user
    if options.password:
        password = options.password

    if options.use_netrc:
        found = (lookup or netrc_lookup)(target.host)
        if found is not None:
            netrc_user, netrc_password = found
            if netrc_user:
                user = netrc_user
            if netrc_password:
                password = netrc_password

    if options.interactive:
        prompter = prompter or TerminalPrompter()
        if not user:
            user = prompter.ask_user()
        if not password:
            password = prompter.ask_password(user)

    if not user:
        logger.debug("No user name resolved, continuing without one")
    return Credentials(user=user, password=password, ssl_trusted=options.trust_ssl)
