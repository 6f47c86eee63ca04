"""Capability and identity bootstrap performed before any sync pass."""

import logging

from .account import Account
from .api import OcsClient
from .exceptions import BootstrapError, OcsAPIError

logger = logging.getLogger(__name__)


def fetch_capabilities(client: OcsClient, account: Account) -> None:
    """Fetch server capabilities and merge them into the account.

    Raises:
        BootstrapError: If the server cannot be reached or answers badly
    """
    try:
        capabilities = client.get_capabilities()
    except OcsAPIError as e:
        raise BootstrapError(f"Error connecting to server: {e}") from e

    logger.debug(f"Server capabilities {capabilities}")
    account.set_capabilities(capabilities)


def fetch_user(client: OcsClient, account: Account) -> None:
    """Fetch the authenticated user's identity and merge it into the account.

    Raises:
        BootstrapError: If the identity request fails
    """
    try:
        data = client.get_user()
    except OcsAPIError as e:
        raise BootstrapError(f"Could not fetch user identity: {e}") from e

    user_id = str(data.get("id") or "")
    display_name = str(data.get("display-name") or "")
    logger.debug(f"Authenticated as {user_id!r} ({display_name!r})")
    account.set_user(user_id, display_name)


def bootstrap_account(client: OcsClient, account: Account) -> Account:
    """Run the two bootstrap requests in order.

    The identity request is only issued after the capabilities request has
    completed successfully. Both must succeed before the account is handed
    to the sync engine.

    Args:
        client: OCS client bound to the account
        account: Account to populate

    Returns:
        The populated account

    Raises:
        BootstrapError: If either request fails
    """
    fetch_capabilities(client, account)
    fetch_user(client, account)
    return account
