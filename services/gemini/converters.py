"""Conversion between chat messages and Gemini request contents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from google.genai import types

from services.chat.types import Role, StepStartPart, TextPart, ToolPart, ToolState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.chat.types import Message, MessagePart, ToolInvocation
    from services.gemini.types import ToolDeclaration


def _split_steps(parts: Sequence[MessagePart]) -> list[list[MessagePart]]:
    steps: list[list[MessagePart]] = [[]]
    for part in parts:
        if isinstance(part, StepStartPart):
            steps.append([])
        else:
            steps[-1].append(part)
    return [step for step in steps if step]


def _function_response(invocation: ToolInvocation) -> dict[str, Any]:
    if invocation.state == ToolState.OUTPUT_ERROR:
        return {"error": invocation.error_text or "Tool failed"}
    return {"output": invocation.output}


def to_model_contents(messages: Sequence[Message]) -> list[types.Content]:
    """
    Convert a chat history into Gemini contents.

    Each assistant step becomes a model turn (text and function calls)
    followed by a user turn with the function responses. Tool parts that
    are not yet resolved are omitted, as are empty steps.

    Args:
        messages: Chat history, oldest first.

    Returns:
        Contents in the order Gemini expects.
    """
    contents: list[types.Content] = []
    for message in messages:
        if message.role == Role.USER:
            if message.text:
                contents.append(types.Content(role="user", parts=[types.Part(text=message.text)]))
            continue

        for step in _split_steps(message.parts):
            model_parts: list[types.Part] = []
            response_parts: list[types.Part] = []
            for part in step:
                if isinstance(part, TextPart) and part.text:
                    model_parts.append(types.Part(text=part.text))
                elif isinstance(part, ToolPart) and part.invocation.is_resolved:
                    invocation = part.invocation
                    model_parts.append(
                        types.Part(
                            function_call=types.FunctionCall(
                                name=invocation.tool_name,
                                args=invocation.input or {},
                            )
                        )
                    )
                    response_parts.append(
                        types.Part.from_function_response(
                            name=invocation.tool_name,
                            response=_function_response(invocation),
                        )
                    )
            if model_parts:
                contents.append(types.Content(role="model", parts=model_parts))
            if response_parts:
                contents.append(types.Content(role="user", parts=response_parts))
    return contents


def to_model_tools(declarations: Sequence[ToolDeclaration]) -> list[types.Tool]:
    """Wrap tool declarations as a single Gemini tool."""
    if not declarations:
        return []
    return [
        types.Tool(
            function_declarations=[
                types.FunctionDeclaration(
                    name=declaration.name,
                    description=declaration.description,
                    parameters_json_schema=declaration.parameters,
                )
                for declaration in declarations
            ]
        )
    ]
