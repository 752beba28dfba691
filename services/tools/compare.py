"""compareItems tool."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.logging import get_logger
from core.result import Failure
from services.gemini.prompts import COMPARISON_PROMPT
from services.tools.base import ToolExecutionError, ToolKind, ToolSpec

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from services.catalog.enrichment import JsonGenerator

logger = get_logger(__name__)

TOOL_NAME = "compareItems"


class CompareItemsInput(BaseModel):
    """Arguments of compareItems."""

    model_config = ConfigDict(populate_by_name=True)

    products: list[str] = Field(
        min_length=2,
        description="Names of the products to compare",
    )
    comparison_type: str = Field(
        default="general",
        alias="comparisonType",
        description="Aspect to focus on, e.g. 'price', 'features', 'general'",
    )


class ComparisonCategory(BaseModel):
    name: str
    winner: str
    explanation: str


class Comparison(BaseModel):
    summary: str
    categories: list[ComparisonCategory] = []
    recommendation: str


def create_compare_tool(generator: JsonGenerator) -> ToolSpec:
    """Build the compareItems tool."""

    async def execute(tool_input: CompareItemsInput) -> AsyncIterator[dict[str, Any]]:
        prompt = COMPARISON_PROMPT.format(
            products=json.dumps(tool_input.products),
            comparison_type=tool_input.comparison_type,
        )
        result = await generator.generate_json(prompt)
        if isinstance(result, Failure):
            logger.error("Comparison failed", products=tool_input.products, error=result.error.message)
            raise ToolExecutionError(f"Error comparing products: {result.error.message}")

        try:
            comparison = Comparison.model_validate(result.value)
        except ValidationError as e:
            logger.error("Unexpected comparison response", error=str(e))
            raise ToolExecutionError("Error comparing products: unexpected response") from e

        yield {"comparison": comparison.model_dump()}

    return ToolSpec(
        name=TOOL_NAME,
        description="Compare two or more products side by side and recommend one",
        input_model=CompareItemsInput,
        kind=ToolKind.AUTOMATIC,
        execute=execute,
    )
