"""Factory for creating and selecting catalog adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.result import Failure, Success
from services.catalog.amazon import AmazonAdapter, AmazonClient
from services.catalog.fixtures import FixtureCatalogAdapter

if TYPE_CHECKING:
    from core.config import CatalogSettings
    from core.result import Result
    from services.catalog.base import CatalogAdapter


class AdapterNotFoundError(Exception):
    """Raised when a catalog adapter is not found."""

    def __init__(self, source_code: str) -> None:
        """Initialize with the catalog code."""
        self.source_code = source_code
        super().__init__(f"No adapter registered for catalog: {source_code}")


class CatalogFactory:
    """
    Registry of catalog adapters keyed by catalog code.

    Example:
        >>> factory = CatalogFactory()
        >>> factory.register("amazon", AmazonAdapter())
        >>> adapter = factory.get_adapter("amazon")
    """

    def __init__(self) -> None:
        """Initialize the factory with an empty registry."""
        self._adapters: dict[str, CatalogAdapter] = {}

    def register(self, source_code: str, adapter: CatalogAdapter) -> None:
        """
        Register an adapter for a catalog.

        Raises:
            ValueError: If source_code is empty.
        """
        if not source_code:
            msg = "source_code cannot be empty"
            raise ValueError(msg)
        self._adapters[source_code] = adapter

    def get_adapter(
        self,
        source_code: str,
    ) -> Result[CatalogAdapter, AdapterNotFoundError]:
        """
        Get an adapter by catalog code.

        Args:
            source_code: Code of the catalog.

        Returns:
            Result containing the adapter or AdapterNotFoundError.
        """
        adapter = self._adapters.get(source_code)
        if adapter is None:
            return Failure(AdapterNotFoundError(source_code))
        return Success(adapter)

    def is_registered(self, source_code: str) -> bool:
        """Check if a catalog is registered."""
        return source_code in self._adapters

    @property
    def registered_codes(self) -> list[str]:
        """Return list of all registered catalog codes."""
        return list(self._adapters.keys())

    async def close(self) -> None:
        """Close every registered adapter."""
        for adapter in self._adapters.values():
            await adapter.close()


def create_catalog_factory(settings: CatalogSettings) -> CatalogFactory:
    """Build a factory with the live and offline catalogs registered."""
    factory = CatalogFactory()
    factory.register(
        "amazon",
        AmazonAdapter(
            client=AmazonClient(
                base_url=settings.base_url,
                timeout=settings.timeout,
                user_agent=settings.user_agent,
            )
        ),
    )
    factory.register("mock", FixtureCatalogAdapter())
    return factory
