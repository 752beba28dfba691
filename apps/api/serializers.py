"""API serializers for chat and checkout requests."""

from __future__ import annotations

from rest_framework import serializers


class ChatRequestSerializer(serializers.Serializer):
    """Body of a chat turn: the whole conversation so far."""

    id = serializers.CharField(required=False, allow_blank=True, max_length=200)
    messages = serializers.ListField(child=serializers.DictField(), allow_empty=False)


class CreateCheckoutIntentSerializer(serializers.Serializer):
    """
    Body of a create-intent request.

    Buyer fields are validated separately, in a fixed order, so the error
    names the first missing field.
    """

    buyer = serializers.DictField()
    productUrl = serializers.CharField()  # noqa: N815
    quantity = serializers.IntegerField(min_value=1)


class GetCheckoutIntentSerializer(serializers.Serializer):
    """Query of a get-intent request."""

    checkoutIntentId = serializers.CharField()  # noqa: N815


class ConfirmCheckoutIntentSerializer(serializers.Serializer):
    """Body of a confirm-intent request."""

    checkoutIntentId = serializers.CharField()  # noqa: N815
    paymentMethodId = serializers.CharField()  # noqa: N815
