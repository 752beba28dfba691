"""Checkout intents over the Rye commerce API."""

from services.commerce.client import RyeClient, create_rye_client
from services.commerce.errors import (
    BuyerValidationError,
    CheckoutFlowError,
    CheckoutPollTimeoutError,
    CommerceError,
)
from services.commerce.flow import CheckoutFlow, CheckoutStep
from services.commerce.polling import RetryPolicy, poll_until
from services.commerce.types import Buyer, CheckoutIntent, IntentState, Money, Offer

__all__ = [
    "Buyer",
    "BuyerValidationError",
    "CheckoutFlow",
    "CheckoutFlowError",
    "CheckoutIntent",
    "CheckoutPollTimeoutError",
    "CheckoutStep",
    "CommerceError",
    "IntentState",
    "Money",
    "Offer",
    "RetryPolicy",
    "RyeClient",
    "create_rye_client",
    "poll_until",
]
