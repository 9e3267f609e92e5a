"""HTTP client for downloading calendar feeds."""

import ipaddress
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from .exceptions import (
    FeedContentError,
    FeedFetchError,
    FeedHTTPError,
    FeedNetworkError,
    FeedTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

BROWSER_HEADERS = {
    "Accept": "text/calendar,text/plain,*/*",
    "Accept-Language": "en-US,en;q=0.9",
}


class FeedFetcher:
    """Async HTTP client for downloading feed documents.

    Each call performs exactly one GET request. Failures are raised as
    ``FeedFetchError`` subclasses and are never retried here; the sync driver
    decides what a failed organization means for the run.
    """

    def __init__(self, settings: Any, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize feed fetcher.

        Args:
            settings: Application settings
            transport: Optional httpx transport, used to stub the network in tests
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport

        logger.debug("Feed fetcher initialized")

    async def __aenter__(self) -> "FeedFetcher":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client exists."""
        if self.client is None or self.client.is_closed:
            request_timeout = float(getattr(self.settings, "request_timeout", 30))
            timeout = httpx.Timeout(
                connect=min(10.0, request_timeout),
                read=request_timeout,
                write=10.0,
                pool=30.0,
            )

            headers = {"User-Agent": getattr(self.settings, "user_agent", None) or DEFAULT_USER_AGENT}
            headers.update(BROWSER_HEADERS)

            # Request hooks run for every redirect hop, not only the first URL
            self.client = httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers=headers,
                transport=self._transport,
                event_hooks={"request": [self._check_request]},
            )
        return self.client

    async def _check_request(self, request: httpx.Request) -> None:
        url = str(request.url)
        if not self._validate_url(url):
            raise FeedFetchError("Redirect target blocked for security reasons", url=url)

    async def close(self) -> None:
        """Close HTTP client."""
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    def _validate_url(self, url: str) -> bool:
        """Reject URLs that are not plain HTTP(S) to a public host.

        Args:
            url: URL to validate

        Returns:
            True if the URL may be requested, False otherwise
        """
        try:
            parsed = urlparse(url)
        except ValueError:
            logger.warning(f"Blocked malformed feed URL: {url!r}")
            return False

        if parsed.scheme not in ("http", "https"):
            logger.warning(f"Blocked non-HTTP(S) feed URL scheme: {parsed.scheme!r}")
            return False

        hostname = parsed.hostname
        if not hostname:
            logger.warning(f"Blocked feed URL with empty hostname: {url!r}")
            return False

        if not getattr(self.settings, "block_private_networks", True):
            return True

        if hostname.lower() in ("localhost", "localhost.localdomain"):
            logger.warning(f"Blocked private feed host: {hostname}")
            return False

        try:
            ip = ipaddress.ip_address(hostname)
        except ValueError:
            return True

        if ip.is_private or ip.is_loopback or ip.is_link_local:
            logger.warning(f"Blocked private/localhost feed address: {hostname}")
            return False

        return True

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> bytes:
        """Download a feed document.

        Args:
            url: Feed URL
            headers: Extra request headers (e.g. an API token); merged over the
                browser-like defaults

        Returns:
            Raw response body

        Raises:
            FeedHTTPError: Response status was not 2xx
            FeedTimeoutError: Request exceeded the configured timeout
            FeedNetworkError: Transport-level failure
            FeedFetchError: URL or a redirect target was rejected before it was requested
        """
        if not self._validate_url(url):
            raise FeedFetchError("URL blocked for security reasons", url=url)

        client = await self._ensure_client()

        try:
            logger.debug(f"Fetching feed from {url}")
            response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching feed from {url}: {e}")
            raise FeedTimeoutError(f"Request timeout fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            logger.error(f"Network error fetching feed from {url}: {e}")
            raise FeedNetworkError(f"Network error: {e}", url=url) from e

        if not response.is_success:
            logger.error(f"HTTP error fetching feed from {url}: {response.status_code}")
            raise FeedHTTPError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                url=url,
            )

        logger.debug(f"Successfully fetched feed ({len(response.content)} bytes) from {url}")
        return response.content

    async def fetch_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        """Download a feed document and decode it as UTF-8 text."""
        body = await self.fetch(url, headers)
        return body.decode("utf-8", errors="replace")

    async def fetch_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
        """Download a feed document and decode it as JSON.

        Raises:
            FeedContentError: Body is not valid JSON
        """
        body = await self.fetch(url, headers)
        try:
            return json.loads(body)
        except ValueError as e:
            raise FeedContentError(f"Failed to parse JSON response: {e}", url=url) from e
