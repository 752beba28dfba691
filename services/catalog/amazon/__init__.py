"""Amazon catalog adapter package."""

from services.catalog.amazon.adapter import AmazonAdapter
from services.catalog.amazon.client import AmazonClient

__all__ = ["AmazonAdapter", "AmazonClient"]
