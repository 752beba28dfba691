"""searchProducts tool."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from core.logging import get_logger
from core.result import Failure
from services.catalog.base import MAX_RESULTS, MIN_RESULTS, SearchParams
from services.tools.base import ToolExecutionError, ToolKind, ToolSpec

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from services.catalog.base import CatalogAdapter
    from services.catalog.enrichment import ProductEnricher

logger = get_logger(__name__)

TOOL_NAME = "searchProducts"
DEFAULT_TOOL_RESULTS = 3

LOADING: dict[str, Any] = {"state": "loading"}


class SearchProductsInput(BaseModel):
    """Arguments of searchProducts."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(
        min_length=1,
        description="The search query for products (e.g., 'wireless headphones')",
    )
    max_results: int = Field(
        default=DEFAULT_TOOL_RESULTS,
        ge=MIN_RESULTS,
        le=MAX_RESULTS,
        alias="maxResults",
        description="Maximum number of products to return",
    )


def create_search_tool(
    adapter: CatalogAdapter,
    enricher: ProductEnricher | None = None,
) -> ToolSpec:
    """
    Build the searchProducts tool over a catalog.

    Args:
        adapter: Catalog to search.
        enricher: Optional enrichment applied to non-empty results.
    """

    async def execute(tool_input: SearchProductsInput) -> AsyncIterator[dict[str, Any]]:
        yield LOADING

        query = tool_input.query
        result = await adapter.search(SearchParams(query=query, max_results=tool_input.max_results))
        if isinstance(result, Failure):
            logger.error(
                "Product search failed",
                query=query,
                source=adapter.source_code,
                error=result.error.message,
            )
            raise ToolExecutionError(f"Error searching products: {result.error.message}")

        products = list(result.value.products)
        if not products:
            yield {"state": "ready", "products": [], "message": f'No products found for "{query}"'}
            return

        if enricher is not None:
            products = await enricher.enhance(products, query)

        yield {
            "state": "ready",
            "products": [product.to_dict() for product in products],
            "query": query,
            "totalResults": len(products),
        }

    return ToolSpec(
        name=TOOL_NAME,
        description=(
            "Search for products on Amazon and return product information "
            "including names, prices, images, ratings, and URLs"
        ),
        input_model=SearchProductsInput,
        kind=ToolKind.AUTOMATIC,
        execute=execute,
    )
