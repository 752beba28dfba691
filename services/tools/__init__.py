"""Tools the chat model can call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from services.tools.base import (
    ToolExecutionError,
    ToolInputError,
    ToolKind,
    ToolRegistry,
    ToolSpec,
)
from services.tools.compare import create_compare_tool
from services.tools.followups import create_followups_tool
from services.tools.interaction import ASK_FOR_CONFIRMATION, GET_LOCATION
from services.tools.search import create_search_tool

if TYPE_CHECKING:
    from services.catalog.base import CatalogAdapter
    from services.catalog.enrichment import JsonGenerator, ProductEnricher


def build_default_registry(
    catalog: CatalogAdapter,
    generator: JsonGenerator,
    enricher: ProductEnricher | None = None,
) -> ToolRegistry:
    """Register the shopping tools."""
    return ToolRegistry(
        [
            create_search_tool(catalog, enricher),
            create_compare_tool(generator),
            create_followups_tool(generator),
            ASK_FOR_CONFIRMATION,
            GET_LOCATION,
        ]
    )


__all__ = [
    "ToolExecutionError",
    "ToolInputError",
    "ToolKind",
    "ToolRegistry",
    "ToolSpec",
    "build_default_registry",
]
