"""Catalog search adapters package."""

from services.catalog.base import (
    CatalogAdapter,
    ProductRecord,
    ReviewSummary,
    SearchParams,
    SearchResult,
)
from services.catalog.errors import CatalogError, ErrorCode
from services.catalog.factory import CatalogFactory, create_catalog_factory

__all__ = [
    "CatalogAdapter",
    "CatalogError",
    "CatalogFactory",
    "ErrorCode",
    "ProductRecord",
    "ReviewSummary",
    "SearchParams",
    "SearchResult",
    "create_catalog_factory",
]
