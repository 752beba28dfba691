"""Types for chat messages and tool invocations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Message sender role."""

    USER = "user"
    ASSISTANT = "assistant"


class ToolState(str, Enum):
    """Lifecycle states of a tool invocation."""

    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"

    @property
    def is_terminal(self) -> bool:
        """Return True for states an invocation never leaves."""
        return self in {ToolState.OUTPUT_AVAILABLE, ToolState.OUTPUT_ERROR}


_TRANSITIONS: dict[ToolState, frozenset[ToolState]] = {
    ToolState.INPUT_STREAMING: frozenset({ToolState.INPUT_AVAILABLE}),
    ToolState.INPUT_AVAILABLE: frozenset({ToolState.OUTPUT_AVAILABLE, ToolState.OUTPUT_ERROR}),
    ToolState.OUTPUT_AVAILABLE: frozenset(),
    ToolState.OUTPUT_ERROR: frozenset(),
}


class MessageFormatError(ValueError):
    """Raised when a wire message or part cannot be decoded."""


class InvalidToolTransitionError(Exception):
    """Raised when a tool invocation is moved against its lifecycle."""

    def __init__(self, tool_call_id: str, current: ToolState, target: ToolState) -> None:
        """Initialize with the offending transition."""
        self.tool_call_id = tool_call_id
        self.current = current
        self.target = target
        super().__init__(
            f"Tool call {tool_call_id} cannot move from {current.value} to {target.value}"
        )


@dataclass(slots=True)
class ToolInvocation:
    """
    A single tool call requested by the model.

    State only moves forward along
    input-streaming -> input-available -> output-available | output-error.

    Attributes:
        tool_call_id: Identifier of the call, unique within a conversation.
        tool_name: Registered name of the tool.
        state: Current lifecycle state.
        input: Validated tool input, once available.
        output: Final output, once available.
        error_text: Human-readable error, for output-error.
        preliminary_output: Latest progress output (e.g. the loading signal).
    """

    tool_call_id: str
    tool_name: str
    state: ToolState = ToolState.INPUT_STREAMING
    input: dict[str, Any] | None = None
    output: Any = None
    error_text: str | None = None
    preliminary_output: Any = None

    @property
    def is_resolved(self) -> bool:
        """Return True once the invocation reached a terminal state."""
        return self.state.is_terminal

    def _move_to(self, target: ToolState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidToolTransitionError(self.tool_call_id, self.state, target)
        self.state = target

    def provide_input(self, tool_input: dict[str, Any]) -> None:
        """Record the complete input for the call."""
        self._move_to(ToolState.INPUT_AVAILABLE)
        self.input = tool_input

    def report_progress(self, output: Any) -> None:
        """Record a preliminary output without leaving input-available."""
        if self.state != ToolState.INPUT_AVAILABLE:
            raise InvalidToolTransitionError(self.tool_call_id, self.state, self.state)
        self.preliminary_output = output

    def resolve(self, output: Any) -> None:
        """Record the final output."""
        self._move_to(ToolState.OUTPUT_AVAILABLE)
        self.output = output
        self.preliminary_output = None

    def fail(self, error_text: str) -> None:
        """Record a failure."""
        self._move_to(ToolState.OUTPUT_ERROR)
        self.error_text = error_text
        self.preliminary_output = None


@dataclass(slots=True)
class TextPart:
    """Free text produced by the user or the model."""

    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        return {"type": "text", "text": self.text}


@dataclass(slots=True)
class StepStartPart:
    """Boundary between two reasoning rounds of one assistant message."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        return {"type": "step-start"}


@dataclass(slots=True)
class ToolPart:
    """A tool invocation embedded in an assistant message."""

    invocation: ToolInvocation

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire, as ``tool-<name>``."""
        inv = self.invocation
        data: dict[str, Any] = {
            "type": f"tool-{inv.tool_name}",
            "toolCallId": inv.tool_call_id,
            "state": inv.state.value,
        }
        if inv.input is not None:
            data["input"] = inv.input
        if inv.state == ToolState.OUTPUT_AVAILABLE:
            data["output"] = inv.output
        elif inv.state == ToolState.OUTPUT_ERROR:
            data["errorText"] = inv.error_text
        elif inv.preliminary_output is not None:
            data["output"] = inv.preliminary_output
            data["preliminary"] = True
        return data


type MessagePart = TextPart | StepStartPart | ToolPart


def part_from_dict(data: dict[str, Any]) -> MessagePart:
    """
    Decode a wire message part.

    Raises:
        MessageFormatError: If the part type is unknown or malformed.
    """
    part_type = data.get("type")
    if part_type == "text":
        return TextPart(text=str(data.get("text", "")))
    if part_type == "step-start":
        return StepStartPart()
    if isinstance(part_type, str) and part_type.startswith("tool-"):
        try:
            state = ToolState(data.get("state", ToolState.INPUT_AVAILABLE.value))
            tool_call_id = data["toolCallId"]
        except (KeyError, ValueError) as e:
            msg = f"Invalid tool part: {e}"
            raise MessageFormatError(msg) from e
        invocation = ToolInvocation(
            tool_call_id=str(tool_call_id),
            tool_name=part_type.removeprefix("tool-"),
            state=state,
            input=data.get("input"),
            output=data.get("output") if state == ToolState.OUTPUT_AVAILABLE else None,
            error_text=data.get("errorText") if state == ToolState.OUTPUT_ERROR else None,
        )
        return ToolPart(invocation=invocation)
    msg = f"Unsupported message part type: {part_type!r}"
    raise MessageFormatError(msg)


@dataclass(slots=True)
class Message:
    """
    A chat message made of ordered parts.

    Attributes:
        id: Stable message identifier.
        role: Who sent the message.
        parts: Ordered parts; only ever appended to.
    """

    id: str
    role: Role
    parts: list[MessagePart] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Return the concatenated text of all text parts."""
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        """Return all tool invocations in part order."""
        return [part.invocation for part in self.parts if isinstance(part, ToolPart)]

    def last_step(self) -> list[MessagePart]:
        """Return the parts after the final step boundary."""
        for index in range(len(self.parts) - 1, -1, -1):
            if isinstance(self.parts[index], StepStartPart):
                return self.parts[index + 1 :]
        return list(self.parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        return {
            "id": self.id,
            "role": self.role.value,
            "parts": [part.to_dict() for part in self.parts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """
        Decode a wire message.

        Messages carrying only ``content`` (no parts) are accepted as a
        single text part.

        Raises:
            MessageFormatError: If the message is malformed.
        """
        try:
            role = Role(data["role"])
            message_id = str(data["id"])
        except (KeyError, ValueError) as e:
            msg = f"Invalid message: {e}"
            raise MessageFormatError(msg) from e

        raw_parts = data.get("parts")
        if raw_parts is None:
            content = data.get("content", "")
            raw_parts = [{"type": "text", "text": content}] if content else []
        if not isinstance(raw_parts, list):
            msg = "Message parts must be a list"
            raise MessageFormatError(msg)

        return cls(id=message_id, role=role, parts=[part_from_dict(p) for p in raw_parts])
