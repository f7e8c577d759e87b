"""
API Client Utility

Provides a small HTTP client for polling the dashboard's JSON endpoints.
Handles error mapping, JSON response parsing, and logging.
"""

from typing import Optional, Dict, Any
import asyncio
import aiohttp

from subnetdash.core.setup import logger
from subnetdash.utils.errors import NetworkError, ApiResponseError


class CLIAPIClient:
    """CLI-specific API client context manager.

    Creates an independent session for one-time CLI commands and polling
    loops, automatically closing it when done.

    Usage:
        async with cli_api_client() as client:
            data = await client.get_json("http://host/api/miners")
    """

    def __init__(self, timeout_seconds: float = 30.0):
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None
        self._client: Optional['APIClient'] = None

    async def __aenter__(self) -> 'APIClient':
        """Enter context: create independent session and client"""
        connector = aiohttp.TCPConnector(
            limit=10,
            force_close=False,
            keepalive_timeout=60,
            enable_cleanup_closed=True,
        )

        timeout = aiohttp.ClientTimeout(
            total=self.timeout_seconds,
            connect=min(10.0, self.timeout_seconds),
        )

        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            connector_owner=True
        )

        self._client = APIClient(self._session)
        return self._client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit context: close session"""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("CLIAPIClient: Closed independent session")
        return False  # Don't suppress exceptions


class APIClient:
    """HTTP client for the dashboard's read-only endpoints."""

    def __init__(self, session: aiohttp.ClientSession):
        """Initialize API client.

        Args:
            session: ClientSession owned by the caller
        """
        self._session = session

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make GET request and decode the JSON body.

        Args:
            url: Absolute endpoint URL
            params: Optional query parameters
            headers: Optional request headers

        Returns:
            Decoded JSON payload

        Raises:
            NetworkError: On network/connection errors
            ApiResponseError: On non-2xx response or invalid JSON
        """
        logger.debug(f"GET {url}")

        try:
            async with self._session.get(url, params=params, headers=headers) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise ApiResponseError(f"HTTP {response.status}: {body[:200]}", response.status, url, body)

                try:
                    return await response.json(content_type=None)
                except Exception:
                    raw = await response.text()
                    raise ApiResponseError(f"Invalid JSON response: {raw[:200]}", response.status, url, raw)

        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error during GET {url}: {e}", url, e)
        except asyncio.TimeoutError as e:
            # ClientTimeout expiry is not a ClientError
            raise NetworkError(f"Timeout during GET {url}", url, e)


def cli_api_client(timeout_seconds: float = 30.0) -> CLIAPIClient:
    """Create CLI-specific API client context manager.

    Args:
        timeout_seconds: Total request timeout

    Returns:
        CLIAPIClient context manager
    """
    return CLIAPIClient(timeout_seconds)
