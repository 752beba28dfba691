"""API views for checkout intents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.serializers import (
    ConfirmCheckoutIntentSerializer,
    CreateCheckoutIntentSerializer,
    GetCheckoutIntentSerializer,
)
from core.config import get_settings
from core.logging import get_logger
from core.result import Failure
from services.commerce import Buyer, BuyerValidationError, create_rye_client

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from rest_framework.request import Request

    from core.result import Result
    from services.commerce import CheckoutIntent, CommerceError, RyeClient

logger = get_logger(__name__)

DEFAULT_SHOPPER_IP = "127.0.0.1"


def shopper_ip(request: Request) -> str:
    """Return the end user's IP from proxy headers, falling back to localhost."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.headers.get("X-Real-IP", "").strip() or DEFAULT_SHOPPER_IP


def _call_rye(
    request: Request,
    call: Callable[[RyeClient], Awaitable[Result[CheckoutIntent, CommerceError]]],
) -> Result[CheckoutIntent, CommerceError]:
    """Run one Rye call on a client scoped to this request."""
    client = create_rye_client(get_settings().rye, shopper_ip=shopper_ip(request))

    async def run() -> Result[CheckoutIntent, CommerceError]:
        try:
            return await call(client)
        finally:
            await client.close()

    return async_to_sync(run)()


def _error(message: str, http_status: int, details: str | None = None) -> Response:
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return Response(body, status=http_status)


class CreateCheckoutIntentView(APIView):
    """Create a checkout intent for a product."""

    @extend_schema(request=CreateCheckoutIntentSerializer)
    def post(self, request: Request) -> Response:
        """Validate the buyer and create the intent upstream."""
        serializer = CreateCheckoutIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(
                "Missing required fields: buyer, productUrl, and quantity are required",
                status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        try:
            buyer = Buyer.from_dict(data["buyer"])
        except BuyerValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        try:
            result = _call_rye(
                request,
                lambda client: client.create_checkout_intent(
                    buyer, data["productUrl"], data["quantity"]
                ),
            )
        except ValueError as e:
            logger.error("Rye client unavailable", error=str(e))
            return _error("Failed to create checkout intent", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

        if isinstance(result, Failure):
            return _error(
                "Failed to create checkout intent",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                result.error.message,
            )

        logger.info("Checkout intent created", checkout_intent_id=result.value.id)
        return Response({"success": True, "checkoutIntent": result.value.to_dict()})


class GetCheckoutIntentView(APIView):
    """Read the current state of a checkout intent."""

    @extend_schema(
        parameters=[OpenApiParameter("checkoutIntentId", str, OpenApiParameter.QUERY, required=True)]
    )
    def get(self, request: Request) -> Response:
        """Fetch the intent upstream."""
        serializer = GetCheckoutIntentSerializer(data=request.query_params)
        if not serializer.is_valid():
            return _error("Missing required parameter: checkoutIntentId", status.HTTP_400_BAD_REQUEST)

        checkout_intent_id = serializer.validated_data["checkoutIntentId"]
        try:
            result = _call_rye(request, lambda client: client.get_checkout_intent(checkout_intent_id))
        except ValueError as e:
            logger.error("Rye client unavailable", error=str(e))
            return _error("Failed to fetch checkout intent", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

        if isinstance(result, Failure):
            return _error(
                "Failed to fetch checkout intent",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                result.error.message,
            )

        return Response({"success": True, "checkoutIntent": result.value.to_dict()})


class ConfirmCheckoutIntentView(APIView):
    """Confirm a checkout intent with a tokenized payment method."""

    @extend_schema(request=ConfirmCheckoutIntentSerializer)
    def post(self, request: Request) -> Response:
        """Submit the payment method upstream."""
        serializer = ConfirmCheckoutIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(
                "Missing required fields: checkoutIntentId and paymentMethodId are required",
                status.HTTP_400_BAD_REQUEST,
            )

        checkout_intent_id = serializer.validated_data["checkoutIntentId"]
        payment_method_id = serializer.validated_data["paymentMethodId"]
        try:
            result = _call_rye(
                request,
                lambda client: client.confirm_checkout_intent(checkout_intent_id, payment_method_id),
            )
        except ValueError as e:
            logger.error("Rye client unavailable", error=str(e))
            return _error("Failed to confirm payment", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

        if isinstance(result, Failure):
            return _error(
                "Failed to confirm payment",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                result.error.message,
            )

        logger.info("Checkout intent confirmed", checkout_intent_id=checkout_intent_id)
        return Response(
            {
                "success": True,
                "checkoutIntent": result.value.to_dict(),
                "message": "Payment confirmed successfully",
            }
        )
