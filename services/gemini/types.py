"""Types for Gemini AI service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class TextDelta:
    """A fragment of model text, in stream order."""

    text: str


@dataclass(frozen=True, slots=True)
class FunctionCallRequest:
    """
    A complete function call requested by the model.

    Attributes:
        id: Call identifier; generated locally when the provider omits it.
        name: Tool name.
        args: Raw, unvalidated arguments.
    """

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


type ModelChunk = TextDelta | FunctionCallRequest


@dataclass(frozen=True, slots=True)
class ToolDeclaration:
    """Name, description and JSON schema of a callable tool."""

    name: str
    description: str
    parameters: dict[str, Any]


class GeminiError(Exception):
    """Base exception for Gemini service errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize GeminiError."""
        super().__init__(message)
        self.message = message
        self.details = details
