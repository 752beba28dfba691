"""API app configuration."""

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """Configuration for the API application."""

    name = "apps.api"
    verbose_name = "Shopping Assistant API"

    def ready(self) -> None:
        """Configure structured logging once the app registry is loaded."""
        from core.config import get_settings
        from core.logging import configure_from_settings

        configure_from_settings(get_settings())
