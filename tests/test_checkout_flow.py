"""Tests for the checkout flow."""

from __future__ import annotations

from typing import Any

import pytest

from core.result import Result
from services.catalog.base import ProductRecord
from services.chat.session import ConversationSession
from services.commerce.errors import ApiError, BuyerValidationError, CheckoutFlowError, CommerceError
from services.commerce.flow import (
    CREATE_FAILED_MESSAGE,
    OFFER_FAILED_MESSAGE,
    OFFER_TIMEOUT_MESSAGE,
    ORDER_FAILED_MESSAGE,
    PAYMENT_FAILED_MESSAGE,
    CheckoutFlow,
    CheckoutStep,
)
from services.commerce.polling import RetryPolicy
from services.commerce.types import CheckoutIntent
from tests.fakes import FakeGateway

FAST = RetryPolicy(interval=0, max_attempts=5)

OFFER = {
    "cost": {
        "subtotal": {"amountSubunits": 2299},
        "tax": {"amountSubunits": 204},
        "total": {"amountSubunits": 2503},
    }
}


def intent(state: str, **extra: Any) -> dict[str, Any]:
    return {"id": "ci_123", "state": state, **extra}


def awaiting() -> dict[str, Any]:
    return intent("awaiting_confirmation", offer=OFFER)


class CancellingGateway(FakeGateway):
    """Gateway that cancels the flow while a poll is in flight."""

    flow: CheckoutFlow | None = None

    async def get_checkout_intent(self, checkout_intent_id: str) -> Result[CheckoutIntent, CommerceError]:
        result = await super().get_checkout_intent(checkout_intent_id)
        if self.flow is not None:
            self.flow.cancel()
        return result


def make_flow(gateway: FakeGateway, product: ProductRecord, **kwargs: Any) -> CheckoutFlow:
    return CheckoutFlow(gateway, product, offer_policy=FAST, order_policy=FAST, **kwargs)


class TestSubmitBuyer:
    """Tests for CheckoutFlow.submit_buyer."""

    @pytest.mark.asyncio
    async def test_offer_after_polling(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """The flow should reach PAYMENT once the offer is in."""
        gateway = FakeGateway(
            created=intent("created"),
            polls=[intent("created"), intent("awaiting_confirmation"), awaiting()],
        )
        flow = make_flow(gateway, product)

        step = await flow.submit_buyer(buyer_data)

        assert step == CheckoutStep.PAYMENT
        assert flow.history == [
            CheckoutStep.BUYER_INFO,
            CheckoutStep.PREPARING_OFFER,
            CheckoutStep.PAYMENT,
        ]
        assert flow.offer is not None
        assert flow.offer.total.format() == "$25.03"
        assert gateway.count("get") == 3

    @pytest.mark.asyncio
    async def test_offer_already_in(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """No poll should happen when the create response carries the offer."""
        gateway = FakeGateway(created=awaiting())
        flow = make_flow(gateway, product)

        assert await flow.submit_buyer(buyer_data, quantity=2) == CheckoutStep.PAYMENT
        assert gateway.count("get") == 0
        assert gateway.calls[0][1][1:] == (product.url, 2)

    @pytest.mark.asyncio
    async def test_missing_field_makes_no_call(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """Buyer validation should fail before any network call."""
        buyer_data["postalCode"] = ""
        gateway = FakeGateway(created=awaiting())
        flow = make_flow(gateway, product)

        with pytest.raises(BuyerValidationError, match="postalCode"):
            await flow.submit_buyer(buyer_data)

        assert gateway.calls == []
        assert flow.step == CheckoutStep.BUYER_INFO

    @pytest.mark.asyncio
    async def test_create_failure(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """A failed create should return to BUYER_INFO with an error."""
        gateway = FakeGateway(created=ApiError(422, "invalid address"))
        flow = make_flow(gateway, product)

        assert await flow.submit_buyer(buyer_data) == CheckoutStep.BUYER_INFO
        assert flow.error == CREATE_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_offer_timeout(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """An offer that never arrives should return to BUYER_INFO."""
        gateway = FakeGateway(created=intent("created"), polls=[intent("created")])
        flow = make_flow(gateway, product)

        assert await flow.submit_buyer(buyer_data) == CheckoutStep.BUYER_INFO
        assert flow.error == OFFER_TIMEOUT_MESSAGE
        assert gateway.count("get") == FAST.max_attempts

    @pytest.mark.asyncio
    async def test_intent_failed_before_offer(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """An intent failing while pricing should return to BUYER_INFO."""
        gateway = FakeGateway(created=intent("created"), polls=[intent("failed")])
        flow = make_flow(gateway, product)

        assert await flow.submit_buyer(buyer_data) == CheckoutStep.BUYER_INFO
        assert flow.error == OFFER_FAILED_MESSAGE

    def test_product_without_url(self) -> None:
        """Products without a URL cannot be checked out."""
        with pytest.raises(ValueError, match="no URL"):
            CheckoutFlow(FakeGateway(created=awaiting()), ProductRecord(id="x"))


class TestSubmitPayment:
    """Tests for CheckoutFlow.submit_payment."""

    @pytest.mark.asyncio
    async def test_completed_records_order_once(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """A completed order should add exactly one confirmation message."""
        gateway = FakeGateway(
            created=awaiting(),
            confirmed=intent("placing_order"),
            order_polls=[intent("placing_order"), intent("completed")],
        )
        session = ConversationSession()

        def on_complete(bought: ProductRecord, settled: CheckoutIntent) -> None:
            session.record_order(bought.name, settled.id)

        flow = make_flow(gateway, product, on_complete=on_complete)
        await flow.submit_buyer(buyer_data)

        step = await flow.submit_payment("tok_visa")

        assert step == CheckoutStep.COMPLETED
        assert flow.history[-2:] == [CheckoutStep.PLACING_ORDER, CheckoutStep.COMPLETED]
        assert [m.text for m in session.messages] == [
            f"Order placed for {product.name}! Checkout Intent ID: ci_123"
        ]
        assert gateway.count("confirm") == 1

    @pytest.mark.asyncio
    async def test_failed_order(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """A failed order should not notify and should keep the reason."""
        gateway = FakeGateway(
            created=awaiting(),
            confirmed=intent("placing_order"),
            order_polls=[intent("failed", failureReason={"message": "Out of stock"})],
        )
        completed: list[CheckoutIntent] = []
        flow = make_flow(gateway, product, on_complete=lambda _, i: completed.append(i))
        await flow.submit_buyer(buyer_data)

        assert await flow.submit_payment("tok_visa") == CheckoutStep.FAILED
        assert flow.failure_reason == "Out of stock"
        assert flow.error == ORDER_FAILED_MESSAGE
        assert completed == []

    @pytest.mark.asyncio
    async def test_order_timeout(self, product: ProductRecord, buyer_data: dict[str, str]) -> None:
        """An order that never settles should fail with a timeout reason."""
        gateway = FakeGateway(
            created=awaiting(),
            confirmed=intent("placing_order"),
            order_polls=[intent("placing_order")],
        )
        flow = make_flow(gateway, product)
        await flow.submit_buyer(buyer_data)

        assert await flow.submit_payment("tok_visa") == CheckoutStep.FAILED
        assert flow.failure_reason == "timeout"

    @pytest.mark.asyncio
    async def test_confirm_failure_stays_on_payment(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """A declined payment should leave the flow on PAYMENT for a retry."""
        gateway = FakeGateway(created=awaiting(), confirmed=ApiError(402, "card declined"))
        flow = make_flow(gateway, product)
        await flow.submit_buyer(buyer_data)

        assert await flow.submit_payment("tok_declined") == CheckoutStep.PAYMENT
        assert flow.error == PAYMENT_FAILED_MESSAGE

        gateway.confirmed = intent("completed")
        assert await flow.submit_payment("tok_visa") == CheckoutStep.COMPLETED
        assert gateway.count("confirm") == 2

    @pytest.mark.asyncio
    async def test_payment_requires_offer(self, product: ProductRecord) -> None:
        """Paying before the offer should be rejected."""
        flow = make_flow(FakeGateway(created=awaiting()), product)

        with pytest.raises(CheckoutFlowError):
            await flow.submit_payment("tok_visa")


class TestCancel:
    """Tests for CheckoutFlow.cancel."""

    @pytest.mark.asyncio
    async def test_cancel_blocks_further_actions(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """A cancelled flow should not accept payment."""
        gateway = FakeGateway(created=awaiting())
        flow = make_flow(gateway, product)
        await flow.submit_buyer(buyer_data)

        flow.cancel()

        assert flow.step == CheckoutStep.CANCELLED
        assert flow.is_cancelled
        with pytest.raises(CheckoutFlowError):
            await flow.submit_payment("tok_visa")
        assert gateway.count("confirm") == 0

    @pytest.mark.asyncio
    async def test_cancel_after_completion_is_noop(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """Cancelling a finished flow should change nothing."""
        gateway = FakeGateway(created=awaiting(), confirmed=intent("completed"))
        flow = make_flow(gateway, product)
        await flow.submit_buyer(buyer_data)
        await flow.submit_payment("tok_visa")

        flow.cancel()

        assert flow.step == CheckoutStep.COMPLETED

    @pytest.mark.asyncio
    async def test_cancel_while_order_poll_in_flight(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """A completed response landing after cancel should not complete the flow."""
        gateway = CancellingGateway(
            created=awaiting(),
            confirmed=intent("placing_order"),
            order_polls=[intent("completed")],
        )
        session = ConversationSession()
        flow = make_flow(
            gateway,
            product,
            on_complete=lambda bought, settled: session.record_order(bought.name, settled.id),
        )
        gateway.flow = flow
        await flow.submit_buyer(buyer_data)

        step = await flow.submit_payment("tok_visa")

        assert step == CheckoutStep.CANCELLED
        assert flow.history[-2:] == [CheckoutStep.PLACING_ORDER, CheckoutStep.CANCELLED]
        assert flow.failure_reason is None
        assert session.messages == []

    @pytest.mark.asyncio
    async def test_cancel_while_offer_poll_in_flight(
        self, product: ProductRecord, buyer_data: dict[str, str]
    ) -> None:
        """An offer landing after cancel should not move the flow to PAYMENT."""
        gateway = CancellingGateway(created=intent("created"), polls=[awaiting()])
        flow = make_flow(gateway, product)
        gateway.flow = flow

        step = await flow.submit_buyer(buyer_data)

        assert step == CheckoutStep.CANCELLED
        assert CheckoutStep.PAYMENT not in flow.history
        assert flow.error is None
