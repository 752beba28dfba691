"""Offline catalog backed by fixed sample products."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.result import Result, success
from services.catalog.base import ProductRecord, SearchResult

if TYPE_CHECKING:
    from services.catalog.base import SearchParams
    from services.catalog.errors import CatalogError

SOURCE_CODE = "mock"

SAMPLE_PRODUCTS: tuple[ProductRecord, ...] = (
    ProductRecord(
        id="B07GV2S1GS",
        name=(
            "Amazon Basics 5 Cup Drip Coffee Maker, Coffee Machine with Glass Coffee Pot "
            "(0.8 Qt), Auto Shut-off, Black"
        ),
        price="$22.99",
        image_url="https://m.media-amazon.com/images/I/71h3jZGKjfL._AC_SX466_.jpg",
        rating="4.2 out of 5",
        url="https://www.amazon.com/dp/B07GV2S1GS",
    ),
    ProductRecord(
        id="B0BR8PVS5N",
        name=(
            "Hot & Iced Coffee Maker with Bold Setting, Single Serve Coffee Maker for K Cup "
            "and Grounds, 6-14 Oz Brew Sizes"
        ),
        price="$53.99",
        image_url="https://m.media-amazon.com/images/I/81vQGvKj8tL._AC_SX466_.jpg",
        rating="4.2 out of 5",
        url="https://www.amazon.com/dp/B0BR8PVS5N",
    ),
    ProductRecord(
        id="B08PKPMVXC",
        name=(
            "CHULUX Slim Single Serve Coffee Maker for K Pods, One Cup Coffee Maker Fits "
            '7.3" Travel Mugs, Coffee Machine'
        ),
        price="$39.99",
        image_url="https://m.media-amazon.com/images/I/71tQqQBQvdL._AC_SX466_.jpg",
        rating="4.2 out of 5",
        url="https://www.amazon.com/dp/B08PKPMVXC",
    ),
)


class FixtureCatalogAdapter:
    """
    Catalog adapter that never touches the network.

    Products whose name shares a word with the query are returned; a query
    matching nothing returns an empty result, like a real catalog would.
    """

    def __init__(self, products: tuple[ProductRecord, ...] = SAMPLE_PRODUCTS) -> None:
        self._products = products

    @property
    def source_code(self) -> str:
        """Return the catalog code."""
        return SOURCE_CODE

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, CatalogError]:
        """Return sample products matching the query."""
        words = {word for word in params.query.lower().split() if len(word) > 2}
        matches = [
            product
            for product in self._products
            if words & set(product.name.lower().replace(",", " ").split())
        ]
        return success(
            SearchResult(
                query=params.query,
                products=tuple(matches[: params.max_results]),
                source=SOURCE_CODE,
            )
        )

    async def close(self) -> None:
        """Nothing to release."""
