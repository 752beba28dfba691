"""Gemini AI service for tool-calling chat and JSON generation."""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING, Any

from google.genai import types

from core.logging import get_logger
from core.result import Result, failure, success
from services.gemini.converters import to_model_contents, to_model_tools
from services.gemini.prompts import JSON_SYSTEM_PROMPT
from services.gemini.types import FunctionCallRequest, GeminiError, TextDelta

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from google.genai import Client

    from services.chat.types import Message
    from services.gemini.types import ModelChunk, ToolDeclaration

logger = get_logger(__name__)


def new_tool_call_id() -> str:
    """Generate a tool call id for calls the provider left unnamed."""
    return f"call_{uuid.uuid4().hex[:24]}"


class GeminiService:
    """
    Service wrapping Google Gemini.

    Streams one reasoning round at a time for the chat loop and generates
    JSON documents for the enrichment, comparison and follow-up tools.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
    ) -> None:
        """
        Initialize Gemini service.

        Args:
            api_key: Google AI API key.
            model: Gemini model to use.

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            msg = "API key is required"
            raise ValueError(msg)

        self._api_key = api_key
        self._model = model
        self._client: Client | None = None

    def _get_client(self) -> Client:
        """Get or create the Gemini client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def stream_step(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        system_instruction: str,
    ) -> AsyncIterator[ModelChunk]:
        """
        Stream one reasoning round.

        Text is yielded as it arrives; function calls are yielded once
        complete. Automatic function calling is disabled so the caller
        decides what to execute.

        Raises:
            GeminiError: If the request or the stream fails.
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=to_model_tools(tools) or None,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        contents = to_model_contents(messages)

        try:
            client = self._get_client()
            stream = await client.aio.models.generate_content_stream(
                model=self._model,
                contents=contents,
                config=config,
            )
            async for chunk in stream:
                for part in _chunk_parts(chunk):
                    if part.function_call is not None:
                        call = part.function_call
                        yield FunctionCallRequest(
                            id=call.id or new_tool_call_id(),
                            name=call.name or "",
                            args=dict(call.args or {}),
                        )
                    elif part.text and not part.thought:
                        yield TextDelta(text=part.text)
        except Exception as e:
            logger.error("Gemini stream error", error=str(e))
            raise GeminiError("Failed to generate a response", details=str(e)) from e

    async def generate_json(
        self,
        prompt: str,
        *,
        temperature: float = 0.2,
    ) -> Result[dict[str, Any], GeminiError]:
        """
        Generate a JSON object from a prompt.

        Args:
            prompt: Prompt describing the expected document.
            temperature: Sampling temperature.

        Returns:
            Result containing the parsed object or GeminiError.
        """
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config={
                    "system_instruction": JSON_SYSTEM_PROMPT,
                    "temperature": temperature,
                    "response_mime_type": "application/json",
                },
            )
        except Exception as e:
            logger.error("Gemini API error", error=str(e))
            return failure(GeminiError("Failed to generate content", details=str(e)))

        if not response.text:
            logger.error("Empty response from Gemini")
            return failure(GeminiError("Empty response from AI"))

        return self._parse_json_response(response.text)

    def _parse_json_response(self, response_text: str) -> Result[dict[str, Any], GeminiError]:
        """Parse a JSON object from a Gemini response."""
        # Strip markdown code fences if present
        text = response_text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse Gemini response", response=text, error=str(e))
            return failure(GeminiError("Invalid JSON response from AI", details=str(e)))

        if not isinstance(data, dict):
            return failure(GeminiError("Expected a JSON object from AI"))
        return success(data)


def _chunk_parts(chunk: types.GenerateContentResponse) -> list[types.Part]:
    if not chunk.candidates:
        return []
    content = chunk.candidates[0].content
    if content is None or not content.parts:
        return []
    return list(content.parts)
