"""Chat app configuration."""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application (stream view and terminal chat)."""

    name = "apps.chat"
    verbose_name = "Chat"
