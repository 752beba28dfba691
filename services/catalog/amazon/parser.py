"""HTML extraction for Amazon search result pages."""

from __future__ import annotations

import hashlib
import re
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from core.logging import get_logger
from services.catalog.base import (
    IMAGE_NOT_FOUND,
    NAME_NOT_FOUND,
    PRICE_NOT_AVAILABLE,
    RATING_NOT_AVAILABLE,
    URL_NOT_FOUND,
    ProductRecord,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import Tag

logger = get_logger(__name__)

RESULT_SELECTOR = '[data-component-type="s-search-result"]'

_PRICE_NOISE = re.compile(r"[^\d.,]")
_DECIMAL = re.compile(r"(\d+\.?\d*)")

# Per-field failures are expected when markup drifts
_FIELD_ERRORS = (AttributeError, KeyError, TypeError, ValueError, IndexError)


def clean_price(price_text: str | None) -> str:
    """
    Normalize scraped price text.

    Keeps digits and separators only and prefixes a dollar sign.

    Args:
        price_text: Raw text from the page.

    Returns:
        "$<number>" or PRICE_NOT_AVAILABLE.
    """
    if not price_text:
        return PRICE_NOT_AVAILABLE

    cleaned = _PRICE_NOISE.sub("", price_text).strip().strip(".,")
    if cleaned:
        return f"${cleaned}"
    return PRICE_NOT_AVAILABLE


def parse_rating(alt_text: str | None) -> str:
    """Turn "4.5 out of 5 stars" style text into "4.5 out of 5"."""
    if not alt_text:
        return RATING_NOT_AVAILABLE
    match = _DECIMAL.search(alt_text)
    if match:
        return f"{match.group(1)} out of 5"
    return RATING_NOT_AVAILABLE


def resolve_url(href: str | None, base_url: str) -> str:
    """Resolve a possibly relative product link against the marketplace origin."""
    if not href:
        return URL_NOT_FOUND
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(f"{base_url.rstrip('/')}/", href.lstrip("/"))


def extract_search_results(
    html_content: str,
    max_results: int,
    base_url: str,
) -> list[ProductRecord]:
    """
    Extract products from a search results page.

    Each result container is processed independently; a field that cannot
    be read keeps its sentinel and a container that cannot be read at all
    is skipped.

    Args:
        html_content: Page HTML.
        max_results: Maximum number of containers to read.
        base_url: Marketplace origin for relative links.

    Returns:
        Extracted products in page order.
    """
    soup = BeautifulSoup(html_content, "html.parser")
    products: list[ProductRecord] = []

    for index, container in enumerate(soup.select(RESULT_SELECTOR)[:max_results]):
        try:
            products.append(_parse_container(container, index, base_url))
        except _FIELD_ERRORS as e:
            logger.warning("Skipping unparseable search result", index=index, error=str(e))

    return products


def _parse_container(container: Tag, index: int, base_url: str) -> ProductRecord:
    """Parse a single search result container into a ProductRecord."""
    name = _extract_field("name", index, lambda: _parse_name(container), NAME_NOT_FOUND)
    url = _extract_field("url", index, lambda: _parse_url(container, base_url), URL_NOT_FOUND)
    price = _extract_field("price", index, lambda: _parse_price(container), PRICE_NOT_AVAILABLE)
    image_url = _extract_field("image", index, lambda: _parse_image(container), IMAGE_NOT_FOUND)
    rating = _extract_field(
        "rating", index, lambda: _parse_rating(container), RATING_NOT_AVAILABLE
    )

    return ProductRecord(
        id=_product_id(container, url, index),
        name=name,
        price=price,
        image_url=image_url,
        rating=rating,
        url=url,
    )


def _extract_field(field: str, index: int, parse: Callable[[], str], sentinel: str) -> str:
    """Run one field parser, degrading to the sentinel on failure."""
    try:
        return parse() or sentinel
    except _FIELD_ERRORS as e:
        logger.warning("Failed to extract field", field=field, index=index, error=str(e))
        return sentinel


def _parse_name(container: Tag) -> str:
    elem = container.select_one("a h2 span") or container.select_one("h2 span")
    if elem is None:
        return NAME_NOT_FOUND
    return elem.get_text().strip() or NAME_NOT_FOUND


def _parse_url(container: Tag, base_url: str) -> str:
    elem = container.select_one("a[href]")
    if elem is None:
        return URL_NOT_FOUND
    href = elem.get("href")
    return resolve_url(href if isinstance(href, str) else None, base_url)


def _parse_price(container: Tag) -> str:
    whole = container.select_one(".a-price-whole")
    if whole is None:
        return PRICE_NOT_AVAILABLE
    text = whole.get_text().strip().rstrip(".")
    fraction = container.select_one(".a-price-fraction")
    if fraction is not None and fraction.get_text().strip():
        text = f"{text}.{fraction.get_text().strip()}"
    return clean_price(text)


def _parse_image(container: Tag) -> str:
    elem = container.select_one("img.s-image")
    if elem is None:
        return IMAGE_NOT_FOUND
    src = elem.get("src")
    return src if isinstance(src, str) and src else IMAGE_NOT_FOUND


def _parse_rating(container: Tag) -> str:
    elem = container.select_one(".a-icon-alt")
    if elem is None:
        return RATING_NOT_AVAILABLE
    return parse_rating(elem.get_text())


def _product_id(container: Tag, url: str, index: int) -> str:
    """Use the ASIN when present, otherwise a hash of the product URL."""
    asin = container.get("data-asin")
    if isinstance(asin, str) and asin:
        return asin
    if url != URL_NOT_FOUND:
        return hashlib.sha1(url.encode(), usedforsecurity=False).hexdigest()[:12]
    return f"result-{index}"
