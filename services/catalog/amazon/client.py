"""HTTP client for Amazon search result pages."""

from __future__ import annotations

import httpx

from core.config import DEFAULT_USER_AGENT
from core.logging import get_logger
from core.result import Result, failure, success
from services.catalog.errors import CatalogError, HttpStatusError, NetworkError

logger = get_logger(__name__)

SOURCE_CODE = "amazon"

DEFAULT_BASE_URL = "https://www.amazon.com"

# Default timeout for page requests
DEFAULT_TIMEOUT = 15.0


def browser_headers(user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    """Build a browser-like request signature to get past basic bot filters."""
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


class AmazonClient:
    """
    HTTP client for Amazon search pages.

    Fetches raw HTML; parsing lives in ``services.catalog.amazon.parser``.

    Attributes:
        base_url: Marketplace origin (e.g. https://www.amazon.com).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Marketplace origin.
            timeout: Request timeout in seconds.
            user_agent: User agent sent with every request.
            transport: Optional transport (tests use ``httpx.MockTransport``).

        Raises:
            ValueError: If base_url is empty.
        """
        if not base_url:
            msg = "base_url is required"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=browser_headers(self.user_agent),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def search_url(self, query: str) -> str:
        """Return the search page URL for a query."""
        return str(httpx.URL(f"{self.base_url}/s", params={"k": query}))

    async def fetch_search_page(self, query: str) -> Result[str, CatalogError]:
        """
        Fetch the search results page for a query.

        Args:
            query: Free-text search query.

        Returns:
            Result containing the page HTML or CatalogError.
        """
        client = await self._get_client()
        url = self.search_url(query)

        logger.info("Fetching Amazon search page", query=query)

        try:
            response = await client.get(url)
        except httpx.TimeoutException:
            logger.error("Amazon request timeout", query=query)
            return failure(NetworkError(source=SOURCE_CODE, message="Request timeout"))
        except httpx.RequestError as e:
            logger.error("Amazon request error", query=query, error=str(e))
            return failure(
                NetworkError(source=SOURCE_CODE, message="Request failed", details=str(e))
            )

        if not response.is_success:
            logger.error(
                "Amazon search page error",
                query=query,
                status_code=response.status_code,
            )
            return failure(
                HttpStatusError(
                    source=SOURCE_CODE,
                    status_code=response.status_code,
                    reason_phrase=response.reason_phrase,
                    details=response.text[:500],
                )
            )

        return success(response.text)
