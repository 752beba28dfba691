"""AI enrichment of search results with badges and review summaries."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ValidationError

from core.logging import get_logger
from core.result import Failure
from services.catalog.base import ReviewSummary
from services.gemini.prompts import ENRICHMENT_PROMPT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from core.result import Result
    from services.catalog.base import ProductRecord
    from services.gemini.types import GeminiError

logger = get_logger(__name__)

MAX_LIKES = 3
MAX_DISLIKES = 2

KNOWN_BADGES: dict[str, str] = {
    badge.lower(): badge
    for badge in (
        "Best Overall",
        "Best Budget",
        "Top Choice",
        "Great Value",
        "Most Durable",
        "Premium Pick",
    )
}


class JsonGenerator(Protocol):
    """Anything that turns a prompt into a JSON object."""

    async def generate_json(
        self,
        prompt: str,
        *,
        temperature: float = 0.2,
    ) -> Result[dict[str, Any], GeminiError]:
        """Generate a JSON object."""
        ...


class ProductInsight(BaseModel):
    """Insight generated for one product."""

    id: str
    badge: str | None = None
    likes: list[str] = []
    dislikes: list[str] = []


class EnrichmentResponse(BaseModel):
    """Top-level shape of the enrichment document."""

    insights: list[ProductInsight]


def normalize_badge(badge: str | None) -> str | None:
    """Map a badge to its canonical spelling, keeping unknown labels trimmed."""
    if badge is None:
        return None
    cleaned = " ".join(badge.split())
    if not cleaned:
        return None
    return KNOWN_BADGES.get(cleaned.lower(), cleaned)


def _clean_phrases(phrases: list[str], limit: int) -> tuple[str, ...]:
    cleaned = (phrase.strip() for phrase in phrases)
    return tuple(phrase for phrase in cleaned if phrase)[:limit]


class ProductEnricher:
    """
    Adds badges and like/dislike summaries to search results.

    Enrichment is best effort: whatever goes wrong, the products come back
    unchanged.
    """

    def __init__(self, generator: JsonGenerator) -> None:
        self._generator = generator

    async def enhance(
        self,
        products: Sequence[ProductRecord],
        query: str,
    ) -> list[ProductRecord]:
        """
        Enrich products with AI-generated insights.

        Args:
            products: Search results, in display order.
            query: The query that produced them.

        Returns:
            Products in the same order; those with a matching insight are
            replaced by enriched copies.
        """
        if not products:
            return []

        try:
            insights = await self._fetch_insights(products, query)
        except Exception as e:
            logger.warning("Product enrichment failed", query=query, error=str(e))
            return list(products)

        if insights is None:
            return list(products)

        enriched = []
        for product in products:
            insight = insights.get(product.id)
            if insight is None:
                enriched.append(product)
                continue
            enriched.append(
                product.with_insight(
                    badge=normalize_badge(insight.badge),
                    review_summary=ReviewSummary(
                        likes=_clean_phrases(insight.likes, MAX_LIKES),
                        dislikes=_clean_phrases(insight.dislikes, MAX_DISLIKES),
                    ),
                )
            )

        logger.info(
            "Products enriched",
            query=query,
            total=len(products),
            matched=sum(1 for p in products if p.id in insights),
        )
        return enriched

    async def _fetch_insights(
        self,
        products: Sequence[ProductRecord],
        query: str,
    ) -> dict[str, ProductInsight] | None:
        summary = [
            {"id": p.id, "name": p.name, "price": p.price, "rating": p.rating}
            for p in products
        ]
        prompt = ENRICHMENT_PROMPT.format(query=query, products=json.dumps(summary, indent=2))

        result = await self._generator.generate_json(prompt)
        if isinstance(result, Failure):
            logger.warning(
                "Product enrichment failed",
                query=query,
                error=result.error.message,
                details=result.error.details,
            )
            return None

        try:
            response = EnrichmentResponse.model_validate(result.value)
        except ValidationError as e:
            logger.warning("Unexpected enrichment response", query=query, error=str(e))
            return None

        known_ids = {p.id for p in products}
        return {
            insight.id: insight for insight in response.insights if insight.id in known_ids
        }
