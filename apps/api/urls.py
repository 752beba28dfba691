"""URL configuration for the API application."""

from django.urls import path

from apps.api.views import (
    ConfirmCheckoutIntentView,
    CreateCheckoutIntentView,
    GetCheckoutIntentView,
)
from apps.chat.views import chat_stream

app_name = "api"

urlpatterns = [
    path("chat/", chat_stream, name="chat"),
    path("checkout/create-intent/", CreateCheckoutIntentView.as_view(), name="create-intent"),
    path("checkout/get-intent/", GetCheckoutIntentView.as_view(), name="get-intent"),
    path("checkout/confirm-intent/", ConfirmCheckoutIntentView.as_view(), name="confirm-intent"),
]
