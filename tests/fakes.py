"""Test doubles for the model, JSON generation and the checkout gateway, plus an SSE reader."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

from core.result import Result, failure, success
from services.chat.stream import DONE, StreamEvent
from services.commerce.errors import CommerceError
from services.commerce.types import Buyer, CheckoutIntent
from services.gemini.types import GeminiError, ModelChunk


class ScriptedModel:
    """
    Reasoning model replaying one scripted round per call.

    Once the script runs out, the last round is repeated.
    """

    def __init__(self, rounds: Sequence[Sequence[ModelChunk] | Exception]) -> None:
        self.rounds = list(rounds)
        self.calls: list[list[Any]] = []

    async def stream_step(
        self,
        messages: Sequence[Any],
        tools: Sequence[Any],
        system_instruction: str,
    ) -> AsyncIterator[ModelChunk]:
        index = min(len(self.calls), len(self.rounds) - 1)
        self.calls.append(list(messages))
        round_ = self.rounds[index]
        if isinstance(round_, Exception):
            raise round_
        for chunk in round_:
            yield chunk


class FakeJsonGenerator:
    """JSON generator returning a canned document or error."""

    def __init__(self, document: dict[str, Any] | None = None, error: GeminiError | None = None) -> None:
        self.document = document or {}
        self.error = error
        self.prompts: list[str] = []

    async def generate_json(
        self,
        prompt: str,
        *,
        temperature: float = 0.2,
    ) -> Result[dict[str, Any], GeminiError]:
        self.prompts.append(prompt)
        if self.error is not None:
            return failure(self.error)
        return success(self.document)


type Reply = dict[str, Any] | CommerceError


def _result(reply: Reply) -> Result[CheckoutIntent, CommerceError]:
    if isinstance(reply, CommerceError):
        return failure(reply)
    return success(CheckoutIntent.from_dict(reply))


class FakeGateway:
    """
    Checkout gateway replaying scripted intent documents.

    ``polls`` are consumed one per get; the last one repeats.
    """

    def __init__(
        self,
        created: Reply,
        polls: Sequence[Reply] = (),
        confirmed: Reply | None = None,
        order_polls: Sequence[Reply] = (),
    ) -> None:
        self.created = created
        self.polls = list(polls)
        self.confirmed = confirmed
        self.order_polls = list(order_polls)
        self.calls: list[tuple[str, Any]] = []
        self._in_order_phase = False
        self.closed = False

    async def create_checkout_intent(
        self, buyer: Buyer, product_url: str, quantity: int = 1
    ) -> Result[CheckoutIntent, CommerceError]:
        self.calls.append(("create", (buyer, product_url, quantity)))
        return _result(self.created)

    async def get_checkout_intent(self, checkout_intent_id: str) -> Result[CheckoutIntent, CommerceError]:
        self.calls.append(("get", checkout_intent_id))
        script = self.order_polls if self._in_order_phase else self.polls
        reply = script.pop(0) if len(script) > 1 else script[0]
        return _result(reply)

    async def confirm_checkout_intent(
        self, checkout_intent_id: str, payment_method_id: str
    ) -> Result[CheckoutIntent, CommerceError]:
        self.calls.append(("confirm", (checkout_intent_id, payment_method_id)))
        self._in_order_phase = True
        assert self.confirmed is not None
        return _result(self.confirmed)

    async def close(self) -> None:
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


def decode_sse(lines: Iterable[str]) -> list[StreamEvent]:
    """Decode SSE ``data:`` lines back into events, stopping at ``[DONE]``."""
    decoded: list[StreamEvent] = []
    for line in lines:
        if not line.startswith("data: "):
            continue
        payload = line.removeprefix("data: ").strip()
        if payload == DONE:
            break
        decoded.append(json.loads(payload))
    return decoded
