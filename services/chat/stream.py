"""UI message stream events and their server-sent-events encoding."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

type StreamEvent = dict[str, Any]

STREAM_HEADER = "x-vercel-ai-ui-message-stream"
STREAM_VERSION = "v1"
DONE = "[DONE]"


def start(message_id: str) -> StreamEvent:
    return {"type": "start", "messageId": message_id}


def start_step() -> StreamEvent:
    return {"type": "start-step"}


def text_start(text_id: str) -> StreamEvent:
    return {"type": "text-start", "id": text_id}


def text_delta(text_id: str, delta: str) -> StreamEvent:
    return {"type": "text-delta", "id": text_id, "delta": delta}


def text_end(text_id: str) -> StreamEvent:
    return {"type": "text-end", "id": text_id}


def tool_input_start(tool_call_id: str, tool_name: str) -> StreamEvent:
    return {"type": "tool-input-start", "toolCallId": tool_call_id, "toolName": tool_name}


def tool_input_available(tool_call_id: str, tool_name: str, tool_input: dict[str, Any]) -> StreamEvent:
    return {
        "type": "tool-input-available",
        "toolCallId": tool_call_id,
        "toolName": tool_name,
        "input": tool_input,
    }


def tool_input_error(
    tool_call_id: str,
    tool_name: str,
    tool_input: dict[str, Any],
    error_text: str,
) -> StreamEvent:
    return {
        "type": "tool-input-error",
        "toolCallId": tool_call_id,
        "toolName": tool_name,
        "input": tool_input,
        "errorText": error_text,
    }


def tool_output_available(tool_call_id: str, output: Any, *, preliminary: bool = False) -> StreamEvent:
    event: StreamEvent = {"type": "tool-output-available", "toolCallId": tool_call_id, "output": output}
    if preliminary:
        event["preliminary"] = True
    return event


def tool_output_error(tool_call_id: str, error_text: str) -> StreamEvent:
    return {"type": "tool-output-error", "toolCallId": tool_call_id, "errorText": error_text}


def finish_step() -> StreamEvent:
    return {"type": "finish-step"}


def finish() -> StreamEvent:
    return {"type": "finish"}


def error(error_text: str) -> StreamEvent:
    return {"type": "error", "errorText": error_text}


def encode_event(event: StreamEvent | str) -> bytes:
    """Encode one event as an SSE ``data:`` frame."""
    payload = event if isinstance(event, str) else json.dumps(event, separators=(",", ":"))
    return f"data: {payload}\n\n".encode()


async def encode_sse(events: AsyncIterable[StreamEvent]) -> AsyncIterator[bytes]:
    """Encode a stream of events, terminated by ``[DONE]``."""
    async for event in events:
        yield encode_event(event)
    yield encode_event(DONE)
