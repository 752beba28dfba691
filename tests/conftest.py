"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

import pytest
from django.test import Client
from rest_framework.test import APIClient

from services.catalog.base import ProductRecord


@pytest.fixture()
def test_client() -> Client:
    """Return a Django test client."""
    return Client()


@pytest.fixture()
def api_client() -> APIClient:
    """Return a DRF test client."""
    return APIClient()


@pytest.fixture()
def buyer_data() -> dict[str, str]:
    """Return a complete buyer in wire form."""
    return {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phone": "+15555550100",
        "address1": "1 Analytical Way",
        "address2": "",
        "city": "New York",
        "province": "NY",
        "country": "US",
        "postalCode": "10001",
    }


@pytest.fixture()
def product() -> ProductRecord:
    """Return a product with a URL."""
    return ProductRecord(
        id="B07GV2S1GS",
        name="Amazon Basics 5 Cup Drip Coffee Maker",
        price="$22.99",
        image_url="https://m.media-amazon.com/images/I/71h3jZGKjfL.jpg",
        rating="4.2 out of 5",
        url="https://www.amazon.com/dp/B07GV2S1GS",
    )
