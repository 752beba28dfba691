"""Tests for ConversationSession."""

from __future__ import annotations

from typing import Any

import pytest

from services.chat import stream as events
from services.chat.session import (
    ConversationSession,
    ToolResultsPendingError,
    UnknownToolCallError,
)
from services.chat.types import Role, StepStartPart, TextPart, ToolPart, ToolState


def assistant_with_tool(state: str) -> dict[str, Any]:
    part: dict[str, Any] = {
        "type": "tool-askForConfirmation",
        "toolCallId": "call_1",
        "state": state,
        "input": {"message": "Buy it?"},
    }
    if state == "output-available":
        part["output"] = "Yes, confirmed."
    return {
        "id": "a1",
        "role": "assistant",
        "parts": [{"type": "step-start"}, part],
    }


USER = {"id": "u1", "role": "user", "parts": [{"type": "text", "text": "Buy the kettle"}]}


class TestApply:
    """Tests for ConversationSession.apply."""

    def test_builds_assistant_message(self) -> None:
        """Applied events should build the assistant message part by part."""
        session = ConversationSession.from_dicts([USER])

        for event in [
            events.start("a1"),
            events.start_step(),
            events.text_start("t1"),
            events.text_delta("t1", "Let me "),
            events.text_delta("t1", "search."),
            events.text_end("t1"),
            events.tool_input_start("call_1", "searchProducts"),
            events.tool_input_available("call_1", "searchProducts", {"query": "kettle"}),
            events.tool_output_available("call_1", {"state": "loading"}, preliminary=True),
            events.tool_output_available("call_1", {"state": "ready", "products": []}),
            events.finish_step(),
            events.finish(),
        ]:
            assert session.apply(event) is event

        message = session.last_message
        assert message is not None
        assert message.id == "a1"
        assert message.role == Role.ASSISTANT
        assert isinstance(message.parts[0], StepStartPart)
        assert message.parts[1] == TextPart("Let me search.")
        tool = message.parts[2]
        assert isinstance(tool, ToolPart)
        assert tool.invocation.state == ToolState.OUTPUT_AVAILABLE
        assert tool.invocation.output == {"state": "ready", "products": []}

    def test_tool_input_error(self) -> None:
        """A tool-input-error event should leave the call failed."""
        session = ConversationSession()
        session.apply(events.start("a1"))
        session.apply(events.tool_input_error("call_1", "weather", {}, "Unknown tool: weather"))

        invocation = session.find_tool_invocation("call_1")
        assert invocation.state == ToolState.OUTPUT_ERROR
        assert invocation.error_text == "Unknown tool: weather"

    def test_start_resumes_matching_assistant_message(self) -> None:
        """A start event with the last assistant id should continue that message."""
        session = ConversationSession.from_dicts([USER, assistant_with_tool("output-available")])

        session.apply(events.start("a1"))
        session.apply(events.start_step())

        assert len(session.messages) == 2
        assert session.current_message is session.last_message
        assert len(session.messages[1].parts) == 3

    def test_start_with_new_id_appends(self) -> None:
        """A start event with a fresh id should append a new message."""
        session = ConversationSession.from_dicts([USER])

        session.apply(events.start("a2"))

        assert [m.id for m in session.messages] == ["u1", "a2"]


class TestToolResults:
    """Tests for pending tool calls and client-supplied results."""

    def test_pending_blocks_turn(self) -> None:
        """ensure_ready_for_turn should name the unresolved calls."""
        session = ConversationSession.from_dicts([USER, assistant_with_tool("input-available")])

        with pytest.raises(ToolResultsPendingError) as exc_info:
            session.ensure_ready_for_turn()

        assert exc_info.value.tool_call_ids == ["call_1"]
        assert session.last_assistant_message_is_complete_with_tool_calls() is False

    def test_add_tool_result_completes_step(self) -> None:
        """Resolving the last call should make the message resumable."""
        session = ConversationSession.from_dicts([USER, assistant_with_tool("input-available")])

        session.add_tool_result("call_1", "Yes, confirmed.")

        session.ensure_ready_for_turn()
        assert session.last_assistant_message_is_complete_with_tool_calls() is True

    def test_text_only_assistant_is_not_resumable(self) -> None:
        """A last step without tool calls should not be resumed."""
        session = ConversationSession.from_dicts(
            [USER, {"id": "a1", "role": "assistant", "content": "Here you go."}]
        )

        assert session.last_assistant_message_is_complete_with_tool_calls() is False

    def test_unknown_tool_call(self) -> None:
        """add_tool_result should raise for ids not in the conversation."""
        session = ConversationSession.from_dicts([USER])

        with pytest.raises(UnknownToolCallError):
            session.add_tool_result("call_404", "x")

    def test_add_tool_error(self) -> None:
        """add_tool_error should fail the call."""
        session = ConversationSession.from_dicts([USER, assistant_with_tool("input-available")])

        session.add_tool_error("call_1", "Location unavailable")

        assert session.find_tool_invocation("call_1").state == ToolState.OUTPUT_ERROR


class TestRecordOrder:
    """Tests for ConversationSession.record_order."""

    def test_appends_confirmation(self) -> None:
        """record_order should append exactly one user message."""
        session = ConversationSession.from_dicts([USER])

        session.record_order("Electric Kettle", "ci_123")

        assert len(session.messages) == 2
        assert session.messages[-1].role == Role.USER
        assert session.messages[-1].text == "Order placed for Electric Kettle! Checkout Intent ID: ci_123"

    def test_to_dicts_round_trip(self) -> None:
        """to_dicts should produce wire messages that decode to the same session."""
        session = ConversationSession.from_dicts([USER, assistant_with_tool("output-available")])

        assert ConversationSession.from_dicts(session.to_dicts()).to_dicts() == session.to_dicts()
