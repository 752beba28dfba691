"""Amazon catalog adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.catalog.amazon.client import DEFAULT_BASE_URL, SOURCE_CODE, AmazonClient
from services.catalog.amazon.parser import extract_search_results
from services.catalog.base import SearchResult
from services.catalog.errors import CatalogError, ParseError

if TYPE_CHECKING:
    from services.catalog.base import SearchParams

logger = get_logger(__name__)


class AmazonAdapter:
    """
    Adapter for the Amazon catalog.

    Implements the CatalogAdapter protocol by fetching the public search
    page and extracting result containers.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: AmazonClient | None = None,
    ) -> None:
        """
        Initialize the Amazon adapter.

        Args:
            base_url: Marketplace origin.
            client: Optional pre-configured client for testing.
        """
        self._client = client or AmazonClient(base_url=base_url)

    @property
    def source_code(self) -> str:
        """Return the catalog code."""
        return SOURCE_CODE

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, CatalogError]:
        """
        Search for products on Amazon.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult or CatalogError.
        """
        page = await self._client.fetch_search_page(params.query)
        if isinstance(page, Failure):
            return failure(page.error)

        try:
            products = extract_search_results(
                page.value,
                max_results=params.max_results,
                base_url=self._client.base_url,
            )
        except Exception as e:
            # The document itself could not be parsed
            logger.error("Failed to parse Amazon search page", query=params.query, error=str(e))
            return failure(
                ParseError(
                    source=SOURCE_CODE,
                    message="Failed to parse search results",
                    details=str(e),
                )
            )

        logger.info("Amazon search completed", query=params.query, results=len(products))

        return success(
            SearchResult(
                query=params.query,
                products=tuple(products),
                source=SOURCE_CODE,
            )
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
