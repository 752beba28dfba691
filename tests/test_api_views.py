"""Tests for checkout API views."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.api.views import shopper_ip
from core.result import failure, success
from services.commerce.errors import ApiError
from services.commerce.types import CheckoutIntent

INTENT = CheckoutIntent.from_dict({"id": "ci_123", "state": "created"})


@pytest.fixture()
def rye() -> Iterator[MagicMock]:
    """Patch the per-request Rye client factory."""
    client = MagicMock()
    client.create_checkout_intent = AsyncMock(return_value=success(INTENT))
    client.get_checkout_intent = AsyncMock(return_value=success(INTENT))
    client.confirm_checkout_intent = AsyncMock(return_value=success(INTENT))
    client.close = AsyncMock()
    with patch("apps.api.views.create_rye_client", return_value=client) as factory:
        factory.client = client
        yield factory


def create_body(buyer: dict[str, str]) -> dict[str, Any]:
    return {"buyer": buyer, "productUrl": "https://www.amazon.com/dp/B07GV2S1GS", "quantity": 1}


class TestShopperIp:
    """Tests for shopper_ip."""

    def test_forwarded_for_first_entry(self) -> None:
        """The first X-Forwarded-For entry should win."""
        request = MagicMock()
        request.headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "X-Real-IP": "10.0.0.2"}

        assert shopper_ip(request) == "203.0.113.7"

    def test_real_ip_then_default(self) -> None:
        """X-Real-IP should be used next, then localhost."""
        request = MagicMock()
        request.headers = {"X-Real-IP": "198.51.100.4"}
        assert shopper_ip(request) == "198.51.100.4"

        request.headers = {}
        assert shopper_ip(request) == "127.0.0.1"


class TestCreateCheckoutIntentView:
    """Tests for CreateCheckoutIntentView."""

    def test_creates_intent(
        self, api_client: APIClient, rye: MagicMock, buyer_data: dict[str, str]
    ) -> None:
        """A valid request should return the created intent."""
        response = api_client.post(
            reverse("api:create-intent"),
            create_body(buyer_data),
            format="json",
            HTTP_X_FORWARDED_FOR="203.0.113.7",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "checkoutIntent": INTENT.to_dict()}
        assert rye.call_args.kwargs["shopper_ip"] == "203.0.113.7"
        rye.client.close.assert_awaited_once()

    def test_missing_top_level_field(self, api_client: APIClient, rye: MagicMock) -> None:
        """A request without productUrl should be rejected."""
        response = api_client.post(
            reverse("api:create-intent"), {"buyer": {}, "quantity": 1}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "productUrl" in response.json()["error"]
        rye.assert_not_called()

    def test_missing_buyer_field(
        self, api_client: APIClient, rye: MagicMock, buyer_data: dict[str, str]
    ) -> None:
        """The error should name the missing buyer field and make no upstream call."""
        buyer_data["phone"] = ""

        response = api_client.post(
            reverse("api:create-intent"), create_body(buyer_data), format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Missing required buyer field: phone"}
        rye.assert_not_called()

    def test_upstream_failure(
        self, api_client: APIClient, rye: MagicMock, buyer_data: dict[str, str]
    ) -> None:
        """Upstream errors should map to 500 with details."""
        rye.client.create_checkout_intent.return_value = failure(ApiError(422, "bad address"))

        response = api_client.post(
            reverse("api:create-intent"), create_body(buyer_data), format="json"
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "error": "Failed to create checkout intent",
            "details": "Rye API Error (422): bad address",
        }
        rye.client.close.assert_awaited_once()

    def test_not_configured(
        self, api_client: APIClient, buyer_data: dict[str, str]
    ) -> None:
        """A missing API key should map to 500."""
        with patch(
            "apps.api.views.create_rye_client",
            side_effect=ValueError("Rye API key is required"),
        ):
            response = api_client.post(
                reverse("api:create-intent"), create_body(buyer_data), format="json"
            )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["details"] == "Rye API key is required"


class TestGetCheckoutIntentView:
    """Tests for GetCheckoutIntentView."""

    def test_gets_intent(self, api_client: APIClient, rye: MagicMock) -> None:
        """The intent id should come from the query string."""
        response = api_client.get(reverse("api:get-intent"), {"checkoutIntentId": "ci_123"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["checkoutIntent"]["id"] == "ci_123"
        rye.client.get_checkout_intent.assert_awaited_once_with("ci_123")

    def test_missing_id(self, api_client: APIClient, rye: MagicMock) -> None:
        """A request without the id should be rejected."""
        response = api_client.get(reverse("api:get-intent"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Missing required parameter: checkoutIntentId"}
        rye.assert_not_called()


class TestConfirmCheckoutIntentView:
    """Tests for ConfirmCheckoutIntentView."""

    def test_confirms_intent(self, api_client: APIClient, rye: MagicMock) -> None:
        """A confirmed intent should include the success message."""
        response = api_client.post(
            reverse("api:confirm-intent"),
            {"checkoutIntentId": "ci_123", "paymentMethodId": "tok_visa"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Payment confirmed successfully"
        rye.client.confirm_checkout_intent.assert_awaited_once_with("ci_123", "tok_visa")

    def test_missing_payment_method(self, api_client: APIClient, rye: MagicMock) -> None:
        """A request without the payment method should be rejected."""
        response = api_client.post(
            reverse("api:confirm-intent"), {"checkoutIntentId": "ci_123"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        rye.assert_not_called()

    def test_declined(self, api_client: APIClient, rye: MagicMock) -> None:
        """A declined payment should map to 500 with details."""
        rye.client.confirm_checkout_intent.return_value = failure(ApiError(402, "card declined"))

        response = api_client.post(
            reverse("api:confirm-intent"),
            {"checkoutIntentId": "ci_123", "paymentMethodId": "tok_declined"},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == "Failed to confirm payment"
