"""Base types and protocols for catalog adapters."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from core.result import Result
    from services.catalog.errors import CatalogError

# Sentinels for fields that could not be extracted. The presentation layer
# branches on these exact strings, so they are never replaced by None.
NAME_NOT_FOUND = "Product name not found"
PRICE_NOT_AVAILABLE = "Price not available"
IMAGE_NOT_FOUND = "Image not found"
RATING_NOT_AVAILABLE = "Rating not available"
URL_NOT_FOUND = "URL not found"

MIN_RESULTS = 1
MAX_RESULTS = 10
DEFAULT_RESULTS = 5


@dataclass(frozen=True, slots=True)
class ReviewSummary:
    """
    Generated summary of what reviewers like and dislike.

    Attributes:
        likes: Ordered list of positive points.
        dislikes: Ordered list of negative points.
    """

    likes: tuple[str, ...] = ()
    dislikes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize for the wire."""
        return {"likes": list(self.likes), "dislikes": list(self.dislikes)}


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """
    Normalized product extracted from a catalog search.

    Attributes:
        id: Stable opaque identifier (catalog item id or URL hash).
        name: Product title or NAME_NOT_FOUND.
        price: Formatted price ("$12.99") or PRICE_NOT_AVAILABLE.
        image_url: Image URL or IMAGE_NOT_FOUND.
        rating: "X out of 5" or RATING_NOT_AVAILABLE.
        url: Absolute product URL or URL_NOT_FOUND.
        badge: Merchandising label added by enrichment.
        review_summary: Likes/dislikes added by enrichment.
    """

    id: str
    name: str = NAME_NOT_FOUND
    price: str = PRICE_NOT_AVAILABLE
    image_url: str = IMAGE_NOT_FOUND
    rating: str = RATING_NOT_AVAILABLE
    url: str = URL_NOT_FOUND
    badge: str | None = None
    review_summary: ReviewSummary | None = None

    @property
    def has_url(self) -> bool:
        """Return True when a product URL was extracted."""
        return self.url != URL_NOT_FOUND

    def with_insight(
        self,
        badge: str | None,
        review_summary: ReviewSummary | None,
    ) -> ProductRecord:
        """Return a copy carrying enrichment data."""
        return replace(self, badge=badge, review_summary=review_summary)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for tool output and the chat stream."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "imageUrl": self.image_url,
            "rating": self.rating,
            "url": self.url,
        }
        if self.badge is not None:
            data["badge"] = self.badge
        if self.review_summary is not None:
            data["reviewSummary"] = self.review_summary.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProductRecord:
        """Rebuild a record from its wire form."""
        summary = data.get("reviewSummary")
        return cls(
            id=str(data.get("id") or data.get("url") or ""),
            name=data.get("name", NAME_NOT_FOUND),
            price=data.get("price", PRICE_NOT_AVAILABLE),
            image_url=data.get("imageUrl", IMAGE_NOT_FOUND),
            rating=data.get("rating", RATING_NOT_AVAILABLE),
            url=data.get("url", URL_NOT_FOUND),
            badge=data.get("badge"),
            review_summary=ReviewSummary(
                likes=tuple(summary.get("likes", ())),
                dislikes=tuple(summary.get("dislikes", ())),
            )
            if summary
            else None,
        )


@dataclass(frozen=True, slots=True)
class SearchParams:
    """
    Parameters for a catalog search.

    Attributes:
        query: Free-text search query.
        max_results: Maximum number of products to return (1-10).
    """

    query: str
    max_results: int = DEFAULT_RESULTS

    def __post_init__(self) -> None:
        """Validate search parameters."""
        if not self.query or not self.query.strip():
            msg = "query cannot be empty"
            raise ValueError(msg)
        if self.max_results < MIN_RESULTS:
            msg = f"max_results must be at least {MIN_RESULTS}"
            raise ValueError(msg)
        if self.max_results > MAX_RESULTS:
            msg = f"max_results cannot exceed {MAX_RESULTS}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    Result of a catalog search.

    Attributes:
        query: The query that was searched.
        products: Products extracted, in page order.
        source: Code of the catalog searched.
    """

    query: str
    products: tuple[ProductRecord, ...] = field(default_factory=tuple)
    source: str = ""

    @property
    def count(self) -> int:
        """Return number of products in this result."""
        return len(self.products)


@runtime_checkable
class CatalogAdapter(Protocol):
    """
    Protocol defining the interface for catalog adapters.

    All catalog implementations must conform to this protocol.
    """

    @property
    def source_code(self) -> str:
        """Return the unique code for this catalog."""
        ...

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, CatalogError]:
        """
        Search for products in the catalog.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult on success or CatalogError on failure.
        """
        ...

    async def close(self) -> None:
        """Release resources held by the adapter."""
        ...
