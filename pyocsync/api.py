"""OCS API client for ownCloud-compatible servers."""

from __future__ import annotations

import random
import time
from typing import Any

import httpx

from .account import Account
from .config import config
from .exceptions import (
    OcsAPIError,
    OcsAuthenticationError,
    OcsInvalidResponseError,
    OcsNetworkError,
    OcsNotFoundError,
    OcsPermissionError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY

CAPABILITIES_ENDPOINT = "ocs/v1.php/cloud/capabilities"
USER_ENDPOINT = "ocs/v1.php/cloud/user"


class OcsClient:
    """Client for the OCS JSON API of an account's server."""

    def __init__(
        self,
        account: Account,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float | None = None,
    ):
        """Initialize the OCS client.

        Args:
            account: Account providing server URL, login, proxy and SSL trust
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (uses config if not provided)
        """
        self.account = account
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout if timeout is not None else config.timeout

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            credentials = self.account.credentials
            kwargs: dict[str, Any] = {}
            if self.account.proxy_url:
                kwargs["proxy"] = self.account.proxy_url
            self._client = httpx.Client(
                auth=httpx.BasicAuth(credentials.user, credentials.password),
                headers={"OCS-APIRequest": "true", "Accept": "application/json"},
                timeout=httpx.Timeout(self.timeout),
                verify=not credentials.ssl_trusted,
                follow_redirects=True,
                **kwargs,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> OcsClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Transient failures
        if isinstance(exception, OcsNetworkError):
            return True

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise OcsAuthenticationError(
                "Invalid user name or password for the server"
            ) from e
        elif status_code == 403:
            raise OcsPermissionError(
                "Access forbidden - check your permissions"
            ) from e
        elif status_code == 404:
            raise OcsNotFoundError("Resource not found") from e

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                meta = e.response.json().get("ocs", {}).get("meta", {})
                if isinstance(meta, dict) and meta.get("message"):
                    error_msg = f"{error_msg}: {meta['message']}"
        except (ValueError, AttributeError):
            pass

        error = OcsAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path relative to the server URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            OcsAPIError: If the request fails after all retries
        """
        url = f"{self.account.url.rstrip('/')}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                if response.content and "json" not in content_type:
                    # Usually a login or maintenance page
                    if "text/html" in content_type:
                        raise OcsInvalidResponseError(
                            "Server returned HTML instead of JSON - "
                            "check the server URL"
                        )
                    raise OcsInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )

                if response.content:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise OcsInvalidResponseError(
                            "Invalid JSON response from server"
                        ) from e
                return {}

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error
                if should_retry:
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e
            except OcsAPIError:
                raise
            except httpx.RequestError as e:
                error = OcsNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise OcsAPIError("Request failed after all retry attempts")

    def _get_ocs_data(self, endpoint: str) -> dict[str, Any]:
        """GET an OCS endpoint and return its ``ocs.data`` object.

        Raises:
            OcsInvalidResponseError: If the envelope is missing
            OcsAPIError: If the server reports an OCS failure
        """
        result = self._request("GET", endpoint, params={"format": "json"})
        ocs = result.get("ocs") if isinstance(result, dict) else None
        if not isinstance(ocs, dict):
            raise OcsInvalidResponseError(f"Missing OCS envelope in {endpoint}")

        meta = ocs.get("meta") or {}
        if isinstance(meta, dict) and meta.get("status") == "failure":
            raise OcsAPIError(
                f"{endpoint} failed: {meta.get('message') or meta.get('statuscode')}"
            )

        data = ocs.get("data")
        return data if isinstance(data, dict) else {}

    def get_capabilities(self) -> dict[str, Any]:
        """Get the server capabilities.

        Returns:
            Capabilities map (``ocs.data.capabilities``)

        Example:
            >>> caps = client.get_capabilities()
            >>> caps["core"]["status"]["version"]
            '10.13.4.1'
        """
        capabilities = self._get_ocs_data(CAPABILITIES_ENDPOINT).get("capabilities")
        return capabilities if isinstance(capabilities, dict) else {}

    def get_user(self) -> dict[str, Any]:
        """Get the authenticated user.

        Returns:
            User data with at least ``id`` and ``display-name``
        """
        return self._get_ocs_data(USER_ENDPOINT)
