"""Tests for the Rye checkout intents client."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from pydantic import SecretStr

from core.config import RyeSettings
from core.result import Failure, Success
from services.commerce.client import RyeClient, create_rye_client
from services.commerce.errors import ErrorCode
from services.commerce.types import Buyer, IntentState

INTENT = {"id": "ci_123", "state": "created", "productUrl": "https://www.amazon.com/dp/B07GV2S1GS"}


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    seen: list[httpx.Request] | None = None,
) -> RyeClient:
    def record(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return RyeClient(
        api_key="rye-key",
        shopper_ip="203.0.113.7",
        base_url="https://staging.api.rye.com/",
        transport=httpx.MockTransport(record),
    )


class TestRyeClientInit:
    """Tests for RyeClient initialization."""

    def test_requires_api_key(self) -> None:
        """An empty key should be rejected."""
        with pytest.raises(ValueError, match="Rye API key is required"):
            RyeClient(api_key="")

    def test_from_settings(self) -> None:
        """create_rye_client should use the resolved base URL."""
        client = create_rye_client(
            RyeSettings(api_key=SecretStr("rye-key"), environment="production"),
            shopper_ip="198.51.100.1",
        )

        assert client.base_url == "https://api.rye.com"
        assert client.shopper_ip == "198.51.100.1"


class TestCheckoutIntentCalls:
    """Tests for the checkout intent endpoints."""

    @pytest.mark.asyncio
    async def test_create(self, buyer_data: dict[str, str]) -> None:
        """create should POST the buyer, quantity and product URL with auth headers."""
        seen: list[httpx.Request] = []
        client = make_client(lambda _: httpx.Response(200, json=INTENT), seen)

        result = await client.create_checkout_intent(
            Buyer.from_dict(buyer_data), "https://www.amazon.com/dp/B07GV2S1GS", 2
        )
        await client.close()

        assert isinstance(result, Success)
        assert result.value.id == "ci_123"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://staging.api.rye.com/api/v1/checkout-intents"
        assert request.headers["Authorization"] == "Bearer rye-key"
        assert request.headers["X-Shopper-IP"] == "203.0.113.7"
        assert json.loads(request.content) == {
            "buyer": buyer_data,
            "quantity": 2,
            "productUrl": "https://www.amazon.com/dp/B07GV2S1GS",
        }

    @pytest.mark.asyncio
    async def test_get(self) -> None:
        """get should read the intent by id."""
        seen: list[httpx.Request] = []
        client = make_client(
            lambda _: httpx.Response(200, json={**INTENT, "state": "completed"}), seen
        )

        result = await client.get_checkout_intent("ci_123")

        assert isinstance(result, Success)
        assert result.value.state == IntentState.COMPLETED
        assert seen[0].url.path == "/api/v1/checkout-intents/ci_123"

    @pytest.mark.asyncio
    async def test_confirm(self) -> None:
        """confirm should send the payment token."""
        seen: list[httpx.Request] = []
        client = make_client(
            lambda _: httpx.Response(200, json={**INTENT, "state": "placing_order"}), seen
        )

        await client.confirm_checkout_intent("ci_123", "tok_visa")

        assert seen[0].url.path == "/api/v1/checkout-intents/ci_123/confirm"
        assert json.loads(seen[0].content) == {
            "paymentMethod": {"type": "stripe_token", "stripeToken": "tok_visa"}
        }

    @pytest.mark.asyncio
    async def test_api_error(self) -> None:
        """Non-success responses should carry the status and body."""
        client = make_client(lambda _: httpx.Response(404, text="Not found"))

        result = await client.get_checkout_intent("ci_404")

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.HTTP
        assert result.error.status_code == 404
        assert result.error.message == "Rye API Error (404): Not found"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Timeouts should become retryable network errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        result = await make_client(handler).get_checkout_intent("ci_123")

        assert isinstance(result, Failure)
        assert result.error.message == "Request timeout"
        assert result.error.is_retryable

    @pytest.mark.asyncio
    async def test_unexpected_body(self) -> None:
        """A body without an intent id should become a parse error."""
        client = make_client(lambda _: httpx.Response(200, json={"state": "created"}))

        result = await client.get_checkout_intent("ci_123")

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PARSE
