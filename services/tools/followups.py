"""suggestFollowups tool."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from core.logging import get_logger
from core.result import Failure
from services.gemini.prompts import FOLLOWUPS_PROMPT
from services.tools.base import ToolExecutionError, ToolKind, ToolSpec

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from services.catalog.enrichment import JsonGenerator

logger = get_logger(__name__)

TOOL_NAME = "suggestFollowups"
MAX_SUGGESTIONS = 3


class SuggestFollowupsInput(BaseModel):
    """Arguments of suggestFollowups."""

    query: str = Field(min_length=1, description="The search the user just ran")
    products: list[str] = Field(
        default_factory=list,
        description="Names of the products that were shown",
    )


class Followups(BaseModel):
    refinements: list[str] = []
    questions: list[str] = []
    alternatives: list[str] = []


def create_followups_tool(generator: JsonGenerator) -> ToolSpec:
    """Build the suggestFollowups tool."""

    async def execute(tool_input: SuggestFollowupsInput) -> AsyncIterator[dict[str, Any]]:
        prompt = FOLLOWUPS_PROMPT.format(
            query=tool_input.query,
            products=json.dumps(tool_input.products),
        )
        result = await generator.generate_json(prompt)
        if isinstance(result, Failure):
            logger.error("Follow-up suggestion failed", query=tool_input.query, error=result.error.message)
            raise ToolExecutionError(f"Error suggesting follow-ups: {result.error.message}")

        try:
            followups = Followups.model_validate(result.value)
        except ValidationError as e:
            logger.error("Unexpected follow-up response", error=str(e))
            raise ToolExecutionError("Error suggesting follow-ups: unexpected response") from e

        yield {
            "followups": {
                "refinements": followups.refinements[:MAX_SUGGESTIONS],
                "questions": followups.questions[:MAX_SUGGESTIONS],
                "alternatives": followups.alternatives[:MAX_SUGGESTIONS],
            }
        }

    return ToolSpec(
        name=TOOL_NAME,
        description="Suggest refined searches, questions and alternatives after a product search",
        input_model=SuggestFollowupsInput,
        kind=ToolKind.AUTOMATIC,
        execute=execute,
    )
