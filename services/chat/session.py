"""Conversation state rebuilt from, and applied to, the UI message stream."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from services.chat.types import (
    Message,
    Role,
    StepStartPart,
    TextPart,
    ToolInvocation,
    ToolPart,
)

if TYPE_CHECKING:
    from services.chat.stream import StreamEvent


def new_message_id() -> str:
    """Generate a message id."""
    return uuid.uuid4().hex


class ToolResultsPendingError(Exception):
    """Raised when a turn is requested while tool calls still await results."""

    def __init__(self, tool_call_ids: list[str]) -> None:
        """Initialize with the unresolved call ids."""
        self.tool_call_ids = tool_call_ids
        super().__init__(f"Tool results pending for: {', '.join(tool_call_ids)}")


class UnknownToolCallError(KeyError):
    """Raised when a tool call id is not present in the conversation."""


class ConversationSession:
    """
    Ordered messages of one conversation.

    The in-progress assistant message is mutated only through ``apply``,
    which consumes the same events the client receives, so the server copy
    and the client copy of a message stay identical.
    """

    def __init__(self, messages: list[Message] | None = None) -> None:
        self.messages: list[Message] = list(messages or [])
        self._current: Message | None = None
        self._open_text: dict[str, TextPart] = {}

    @classmethod
    def from_dicts(cls, data: list[dict[str, Any]]) -> ConversationSession:
        """
        Rebuild a session from wire messages.

        Raises:
            MessageFormatError: If a message is malformed.
        """
        return cls([Message.from_dict(item) for item in data])

    def to_dicts(self) -> list[dict[str, Any]]:
        """Serialize every message for the wire."""
        return [message.to_dict() for message in self.messages]

    @property
    def last_message(self) -> Message | None:
        """Return the latest message, if any."""
        return self.messages[-1] if self.messages else None

    @property
    def current_message(self) -> Message | None:
        """Return the assistant message being streamed, if any."""
        return self._current

    def add_user_message(self, text: str) -> Message:
        """Append a user text message."""
        message = Message(id=new_message_id(), role=Role.USER, parts=[TextPart(text=text)])
        self.messages.append(message)
        return message

    def record_order(self, product_name: str, checkout_intent_id: str) -> Message:
        """Append the confirmation message for a completed checkout."""
        return self.add_user_message(
            f"Order placed for {product_name}! Checkout Intent ID: {checkout_intent_id}"
        )

    def pending_tool_calls(self) -> list[ToolInvocation]:
        """Return unresolved tool calls of the last assistant message."""
        last = self.last_message
        if last is None or last.role != Role.ASSISTANT:
            return []
        return [inv for inv in last.tool_invocations if not inv.is_resolved]

    def last_assistant_message_is_complete_with_tool_calls(self) -> bool:
        """
        Return True if the turn should resume the last assistant message.

        That is the case when the last message is from the assistant, its
        last step has at least one tool call, and all of them are resolved.
        """
        last = self.last_message
        if last is None or last.role != Role.ASSISTANT:
            return False
        tool_parts = [part for part in last.last_step() if isinstance(part, ToolPart)]
        return bool(tool_parts) and all(part.invocation.is_resolved for part in tool_parts)

    def ensure_ready_for_turn(self) -> None:
        """
        Check that a new turn may run.

        Raises:
            ToolResultsPendingError: If tool calls still await results.
        """
        pending = self.pending_tool_calls()
        if pending:
            raise ToolResultsPendingError([inv.tool_call_id for inv in pending])

    def find_tool_invocation(self, tool_call_id: str) -> ToolInvocation:
        """
        Find a tool invocation anywhere in the conversation.

        Raises:
            UnknownToolCallError: If no invocation has that id.
        """
        for message in reversed(self.messages):
            for invocation in message.tool_invocations:
                if invocation.tool_call_id == tool_call_id:
                    return invocation
        raise UnknownToolCallError(tool_call_id)

    def add_tool_result(self, tool_call_id: str, output: Any) -> None:
        """Supply the output of a tool call, typically a manual one."""
        self.find_tool_invocation(tool_call_id).resolve(output)

    def add_tool_error(self, tool_call_id: str, error_text: str) -> None:
        """Mark a tool call as failed."""
        self.find_tool_invocation(tool_call_id).fail(error_text)

    def apply(self, event: StreamEvent) -> StreamEvent:
        """
        Apply a stream event to the in-progress assistant message.

        Returns:
            The same event, so callers can apply and forward in one step.
        """
        handler = _HANDLERS.get(event["type"])
        if handler is not None:
            handler(self, event)
        return event

    def _on_start(self, event: StreamEvent) -> None:
        last = self.last_message
        if last is not None and last.role == Role.ASSISTANT and last.id == event["messageId"]:
            self._current = last
        else:
            self._current = Message(id=event["messageId"], role=Role.ASSISTANT)
            self.messages.append(self._current)
        self._open_text.clear()

    def _message(self) -> Message:
        if self._current is None:
            msg = "No assistant message in progress"
            raise RuntimeError(msg)
        return self._current

    def _on_start_step(self, event: StreamEvent) -> None:
        self._message().parts.append(StepStartPart())

    def _on_text_start(self, event: StreamEvent) -> None:
        part = TextPart()
        self._message().parts.append(part)
        self._open_text[event["id"]] = part

    def _on_text_delta(self, event: StreamEvent) -> None:
        self._open_text[event["id"]].text += event["delta"]

    def _on_text_end(self, event: StreamEvent) -> None:
        self._open_text.pop(event["id"], None)

    def _invocation(self, event: StreamEvent) -> ToolInvocation:
        message = self._message()
        for invocation in message.tool_invocations:
            if invocation.tool_call_id == event["toolCallId"]:
                return invocation
        invocation = ToolInvocation(tool_call_id=event["toolCallId"], tool_name=event["toolName"])
        message.parts.append(ToolPart(invocation=invocation))
        return invocation

    def _on_tool_input_start(self, event: StreamEvent) -> None:
        self._invocation(event)

    def _on_tool_input_available(self, event: StreamEvent) -> None:
        self._invocation(event).provide_input(event["input"])

    def _on_tool_input_error(self, event: StreamEvent) -> None:
        invocation = self._invocation(event)
        invocation.provide_input(event["input"])
        invocation.fail(event["errorText"])

    def _on_tool_output_available(self, event: StreamEvent) -> None:
        invocation = self._invocation(event)
        if event.get("preliminary"):
            invocation.report_progress(event["output"])
        else:
            invocation.resolve(event["output"])

    def _on_tool_output_error(self, event: StreamEvent) -> None:
        self._invocation(event).fail(event["errorText"])


_HANDLERS = {
    "start": ConversationSession._on_start,
    "start-step": ConversationSession._on_start_step,
    "text-start": ConversationSession._on_text_start,
    "text-delta": ConversationSession._on_text_delta,
    "text-end": ConversationSession._on_text_end,
    "tool-input-start": ConversationSession._on_tool_input_start,
    "tool-input-available": ConversationSession._on_tool_input_available,
    "tool-input-error": ConversationSession._on_tool_input_error,
    "tool-output-available": ConversationSession._on_tool_output_available,
    "tool-output-error": ConversationSession._on_tool_output_error,
}
