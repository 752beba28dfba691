"""Wiring of the chat service from application settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.result import Failure
from services.catalog.enrichment import ProductEnricher
from services.catalog.factory import create_catalog_factory
from services.chat.service import ChatService
from services.gemini.service import GeminiService
from services.tools import build_default_registry

if TYPE_CHECKING:
    from core.config import Settings


def create_chat_service(settings: Settings, catalog_source: str | None = None) -> ChatService:
    """
    Build a chat service with the shopping tools.

    Args:
        settings: Application settings.
        catalog_source: Catalog code overriding ``CATALOG_SOURCE``.

    Raises:
        ValueError: If Gemini is not configured.
        AdapterNotFoundError: If the catalog code is unknown.
    """
    gemini = GeminiService(
        api_key=settings.gemini.api_key.get_secret_value(),
        model=settings.gemini.model,
    )
    catalog = create_catalog_factory(settings.catalog).get_adapter(
        catalog_source or settings.catalog.source
    )
    if isinstance(catalog, Failure):
        raise catalog.error

    enricher = ProductEnricher(gemini) if settings.chat.enhance_products else None
    registry = build_default_registry(catalog.value, gemini, enricher)
    return ChatService(
        model=gemini,
        registry=registry,
        max_steps=settings.chat.max_steps,
        resources=(catalog.value,),
    )
