"""Checkout flow: buyer details, offer, payment, order."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from core.logging import get_logger
from core.result import Failure
from services.commerce.errors import CheckoutFlowError, CheckoutPollTimeoutError
from services.commerce.polling import RetryPolicy, poll_until
from services.commerce.types import Buyer, IntentState

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.result import Result
    from services.catalog.base import ProductRecord
    from services.commerce.errors import CommerceError
    from services.commerce.types import CheckoutIntent, Offer

logger = get_logger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create checkout intent. Please check your details and try again."
OFFER_FAILED_MESSAGE = "We couldn't get a price for this product. Please try again."
OFFER_TIMEOUT_MESSAGE = "Pricing is taking too long. Please try again."
PAYMENT_FAILED_MESSAGE = "Payment failed. Please check your payment details and try again."
ORDER_FAILED_MESSAGE = "Your order could not be placed."


class CheckoutStep(str, Enum):
    """Where a checkout flow is."""

    BUYER_INFO = "buyer_info"
    PREPARING_OFFER = "preparing_offer"
    PAYMENT = "payment"
    PLACING_ORDER = "placing_order"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Return True for steps a flow never leaves."""
        return self in {CheckoutStep.COMPLETED, CheckoutStep.FAILED, CheckoutStep.CANCELLED}


class CheckoutGateway(Protocol):
    """Remote checkout intent operations (implemented by ``RyeClient``)."""

    async def create_checkout_intent(
        self, buyer: Buyer, product_url: str, quantity: int = 1
    ) -> Result[CheckoutIntent, CommerceError]: ...

    async def get_checkout_intent(
        self, checkout_intent_id: str
    ) -> Result[CheckoutIntent, CommerceError]: ...

    async def confirm_checkout_intent(
        self, checkout_intent_id: str, payment_method_id: str
    ) -> Result[CheckoutIntent, CommerceError]: ...


type CompletionCallback = Callable[[ProductRecord, CheckoutIntent], None]


def _offer_settled(intent: CheckoutIntent) -> bool:
    return intent.is_ready_for_payment or intent.state.is_terminal


def _order_settled(intent: CheckoutIntent) -> bool:
    return intent.state.is_terminal


class CheckoutFlow:
    """
    Drives one purchase of one product through a checkout intent.

    State lives on the flow instance only; separate flows share nothing.
    After ``cancel()`` no poll is scheduled and a response still in flight
    is discarded.

    Attributes:
        product: Product being bought.
        step: Current step.
        intent: Latest copy of the remote intent.
        error: Message for the user about the last failed action.
        failure_reason: Why the order failed, once FAILED.
        history: Steps entered, in order, starting with BUYER_INFO.
    """

    def __init__(
        self,
        gateway: CheckoutGateway,
        product: ProductRecord,
        on_complete: CompletionCallback | None = None,
        offer_policy: RetryPolicy | None = None,
        order_policy: RetryPolicy | None = None,
    ) -> None:
        if not product.has_url:
            msg = "Product has no URL to check out"
            raise ValueError(msg)

        self.product = product
        self.step = CheckoutStep.BUYER_INFO
        self.intent: CheckoutIntent | None = None
        self.error: str | None = None
        self.failure_reason: str | None = None
        self.history: list[CheckoutStep] = [CheckoutStep.BUYER_INFO]

        self._gateway = gateway
        self._on_complete = on_complete
        self._offer_policy = offer_policy or RetryPolicy(interval=2.0)
        self._order_policy = order_policy or RetryPolicy(interval=1.0)
        self._cancelled = asyncio.Event()
        self._confirming = False
        self._confirmed = False
        self._completion_notified = False

    @property
    def offer(self) -> Offer | None:
        """Return the current offer, if one was computed."""
        return self.intent.offer if self.intent is not None else None

    @property
    def is_cancelled(self) -> bool:
        """Return True once the flow was cancelled."""
        return self._cancelled.is_set()

    def _move(self, step: CheckoutStep) -> None:
        if self.is_cancelled or self.step == step:
            return
        logger.info(
            "Checkout step changed",
            product_url=self.product.url,
            checkout_intent_id=self.intent.id if self.intent else None,
            from_step=self.step.value,
            to_step=step.value,
        )
        self.step = step
        self.history.append(step)

    def _require(self, step: CheckoutStep) -> None:
        if self.step != step:
            msg = f"Cannot do this while the checkout is at {self.step.value}"
            raise CheckoutFlowError(msg)

    async def submit_buyer(self, buyer_data: Buyer | dict[str, Any], quantity: int = 1) -> CheckoutStep:
        """
        Create the intent and wait for its offer.

        Args:
            buyer_data: Buyer, or its camelCase wire form.
            quantity: Units to order.

        Returns:
            PAYMENT when the offer is in; BUYER_INFO with ``error`` set if
            anything failed; CANCELLED if cancelled meanwhile.

        Raises:
            BuyerValidationError: If a required buyer field is missing.
            CheckoutFlowError: If the flow is not collecting buyer details.
            ValueError: If quantity is below 1.
        """
        self._require(CheckoutStep.BUYER_INFO)
        buyer = buyer_data if isinstance(buyer_data, Buyer) else Buyer.from_dict(buyer_data)
        if quantity < 1:
            msg = "quantity must be at least 1"
            raise ValueError(msg)

        self.error = None
        self._move(CheckoutStep.PREPARING_OFFER)

        created = await self._gateway.create_checkout_intent(buyer, self.product.url, quantity)
        if self.is_cancelled:
            return self.step
        if isinstance(created, Failure):
            logger.error("Checkout intent creation failed", error=created.error.message)
            return self._back_to_buyer_info(CREATE_FAILED_MESSAGE)

        intent = created.value
        self.intent = intent
        if not _offer_settled(intent):
            try:
                polled = await poll_until(
                    intent.id,
                    self._gateway.get_checkout_intent,
                    _offer_settled,
                    self._offer_policy,
                    self._cancelled,
                )
            except CheckoutPollTimeoutError:
                return self._back_to_buyer_info(OFFER_TIMEOUT_MESSAGE)

            if polled is None:
                return self.step
            if isinstance(polled, Failure):
                logger.error(
                    "Checkout offer poll failed",
                    checkout_intent_id=intent.id,
                    error=polled.error.message,
                )
                return self._back_to_buyer_info(OFFER_FAILED_MESSAGE)
            intent = polled.value
            self.intent = intent

        if not intent.is_ready_for_payment:
            logger.warning(
                "Checkout intent settled without an offer",
                checkout_intent_id=intent.id,
                state=intent.state.value,
                failure_reason=intent.failure_reason,
            )
            return self._back_to_buyer_info(OFFER_FAILED_MESSAGE)

        self._move(CheckoutStep.PAYMENT)
        return self.step

    def _back_to_buyer_info(self, message: str) -> CheckoutStep:
        if not self.is_cancelled:
            self.error = message
            self._move(CheckoutStep.BUYER_INFO)
        return self.step

    async def submit_payment(self, payment_method_id: str) -> CheckoutStep:
        """
        Confirm the intent with a payment method and wait for the order.

        At most one confirmation succeeds per flow. A failed confirmation
        leaves the flow on PAYMENT with ``error`` set, so it can be retried.

        Returns:
            COMPLETED or FAILED once settled; PAYMENT after a failed
            confirmation; CANCELLED if cancelled meanwhile.

        Raises:
            CheckoutFlowError: If the flow is not waiting for payment, or a
                confirmation is already in flight.
            ValueError: If payment_method_id is empty.
        """
        self._require(CheckoutStep.PAYMENT)
        if not payment_method_id:
            msg = "payment_method_id is required"
            raise ValueError(msg)
        if self._confirming or self._confirmed or self.intent is None:
            msg = "Payment is already being confirmed"
            raise CheckoutFlowError(msg)

        self.error = None
        self._confirming = True
        try:
            confirmed = await self._gateway.confirm_checkout_intent(self.intent.id, payment_method_id)
        finally:
            self._confirming = False

        if self.is_cancelled:
            return self.step
        if isinstance(confirmed, Failure):
            logger.error(
                "Checkout confirmation failed",
                checkout_intent_id=self.intent.id,
                error=confirmed.error.message,
            )
            self.error = PAYMENT_FAILED_MESSAGE
            return self.step

        self._confirmed = True
        intent = confirmed.value
        self.intent = intent
        self._move(CheckoutStep.PLACING_ORDER)

        if not intent.state.is_terminal:
            try:
                polled = await poll_until(
                    intent.id,
                    self._gateway.get_checkout_intent,
                    _order_settled,
                    self._order_policy,
                    self._cancelled,
                )
            except CheckoutPollTimeoutError:
                self._fail("timeout")
                return self.step

            if polled is None:
                return self.step
            if isinstance(polled, Failure):
                logger.error(
                    "Checkout order poll failed",
                    checkout_intent_id=intent.id,
                    error=polled.error.message,
                )
                self._fail(polled.error.message)
                return self.step
            intent = polled.value
            self.intent = intent

        if intent.state == IntentState.COMPLETED:
            self._complete(intent)
        else:
            self._fail(intent.failure_reason or "failed")
        return self.step

    def _complete(self, intent: CheckoutIntent) -> None:
        self._move(CheckoutStep.COMPLETED)
        if self._completion_notified or self._on_complete is None:
            return
        self._completion_notified = True
        self._on_complete(self.product, intent)

    def _fail(self, reason: str) -> None:
        if self.is_cancelled:
            return
        self.failure_reason = reason
        self.error = ORDER_FAILED_MESSAGE
        self._move(CheckoutStep.FAILED)

    def cancel(self) -> None:
        """
        Close the flow.

        The remote intent is left as it is. Cancelling a finished flow does
        nothing.
        """
        if self.step.is_terminal:
            return
        logger.info("Checkout cancelled", product_url=self.product.url, step=self.step.value)
        self.step = CheckoutStep.CANCELLED
        self.history.append(CheckoutStep.CANCELLED)
        self._cancelled.set()
