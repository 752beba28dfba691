"""Tests for UI stream events and SSE framing."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from services.chat import stream as events
from tests.fakes import decode_sse


async def _two_events() -> AsyncIterator[events.StreamEvent]:
    yield events.start("m1")
    yield events.finish()


class TestEvents:
    """Tests for event builders."""

    def test_final_output_has_no_preliminary_flag(self) -> None:
        """Only preliminary outputs should carry the flag."""
        assert "preliminary" not in events.tool_output_available("call_1", {"state": "ready"})
        assert events.tool_output_available("call_1", {}, preliminary=True)["preliminary"] is True

    def test_encode_event(self) -> None:
        """encode_event should write one compact data frame."""
        assert events.encode_event(events.text_delta("t1", "Hi")) == (
            b'data: {"type":"text-delta","id":"t1","delta":"Hi"}\n\n'
        )


class TestSse:
    """Tests for SSE encoding."""

    @pytest.mark.asyncio
    async def test_encode_sse_appends_done(self) -> None:
        """The stream should end with the [DONE] sentinel."""
        frames = [frame async for frame in events.encode_sse(_two_events())]

        assert frames[-1] == b"data: [DONE]\n\n"
        assert len(frames) == 3

    @pytest.mark.asyncio
    async def test_encoded_frames_decode(self) -> None:
        """Encoded frames should decode back to the events, up to [DONE]."""
        body = b"".join([frame async for frame in events.encode_sse(_two_events())]).decode()

        decoded = decode_sse(body.splitlines())

        assert decoded == [{"type": "start", "messageId": "m1"}, {"type": "finish"}]

    def test_decode_ignores_other_lines(self) -> None:
        """Comments and blank lines should be skipped."""
        lines = [": keep-alive", "", 'data: {"type":"finish"}', "data: [DONE]", 'data: {"x":1}']

        assert decode_sse(lines) == [{"type": "finish"}]
