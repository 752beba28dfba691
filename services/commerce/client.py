"""HTTP client for the Rye checkout intents API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from core.config import RYE_STAGING_URL
from core.logging import get_logger
from core.result import Result, failure, success
from services.commerce.errors import ApiError, CommerceError, NetworkError, ParseError
from services.commerce.types import CheckoutIntent

if TYPE_CHECKING:
    from core.config import RyeSettings
    from services.commerce.types import Buyer

logger = get_logger(__name__)

INTENTS_PATH = "/api/v1/checkout-intents"
DEFAULT_SHOPPER_IP = "127.0.0.1"
DEFAULT_TIMEOUT = 30.0


class RyeClient:
    """
    Async client for checkout intents.

    Every call returns a Result; nothing is retried here, polling callers
    decide what to do with retryable errors.

    Attributes:
        base_url: API origin.
        shopper_ip: IP address of the end user, forwarded to Rye.
    """

    def __init__(
        self,
        api_key: str,
        shopper_ip: str = DEFAULT_SHOPPER_IP,
        base_url: str = RYE_STAGING_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Rye API key.
            shopper_ip: End-user IP sent as ``X-Shopper-IP``.
            base_url: API origin.
            timeout: Request timeout in seconds.
            transport: Optional transport (tests use ``httpx.MockTransport``).

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            msg = "Rye API key is required"
            raise ValueError(msg)

        self._api_key = api_key
        self.shopper_ip = shopper_ip or DEFAULT_SHOPPER_IP
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                    "X-Shopper-IP": self.shopper_ip,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Result[CheckoutIntent, CommerceError]:
        client = await self._get_client()

        try:
            response = await client.request(method, path, json=json)
        except httpx.TimeoutException:
            logger.error("Rye request timeout", method=method, path=path)
            return failure(NetworkError(message="Request timeout"))
        except httpx.RequestError as e:
            logger.error("Rye request error", method=method, path=path, error=str(e))
            return failure(NetworkError(message=f"Network error: {e}", details=str(e)))

        if not response.is_success:
            logger.error(
                "Rye API error",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            return failure(ApiError(response.status_code, response.text))

        try:
            return success(CheckoutIntent.from_dict(response.json()))
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Unexpected Rye response", path=path, error=str(e))
            return failure(ParseError(details=str(e)))

    async def create_checkout_intent(
        self,
        buyer: Buyer,
        product_url: str,
        quantity: int = 1,
    ) -> Result[CheckoutIntent, CommerceError]:
        """Create a checkout intent for a product."""
        logger.info("Creating checkout intent", product_url=product_url, quantity=quantity)
        return await self._request(
            "POST",
            INTENTS_PATH,
            json={"buyer": buyer.to_dict(), "quantity": quantity, "productUrl": product_url},
        )

    async def get_checkout_intent(self, checkout_intent_id: str) -> Result[CheckoutIntent, CommerceError]:
        """Fetch the current state of a checkout intent."""
        return await self._request("GET", f"{INTENTS_PATH}/{checkout_intent_id}")

    async def confirm_checkout_intent(
        self,
        checkout_intent_id: str,
        payment_method_id: str,
    ) -> Result[CheckoutIntent, CommerceError]:
        """Confirm a checkout intent with a tokenized payment method."""
        logger.info("Confirming checkout intent", checkout_intent_id=checkout_intent_id)
        return await self._request(
            "POST",
            f"{INTENTS_PATH}/{checkout_intent_id}/confirm",
            json={"paymentMethod": {"type": "stripe_token", "stripeToken": payment_method_id}},
        )


def create_rye_client(settings: RyeSettings, shopper_ip: str = DEFAULT_SHOPPER_IP) -> RyeClient:
    """Build a client from settings for one shopper."""
    return RyeClient(
        api_key=settings.api_key.get_secret_value(),
        shopper_ip=shopper_ip,
        base_url=settings.base_url,
        timeout=settings.timeout,
    )
