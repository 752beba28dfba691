"""Gemini AI service package."""

from services.gemini.service import GeminiService
from services.gemini.types import (
    FunctionCallRequest,
    GeminiError,
    TextDelta,
    ToolDeclaration,
)

__all__ = [
    "FunctionCallRequest",
    "GeminiError",
    "GeminiService",
    "TextDelta",
    "ToolDeclaration",
]
