"""Shared test fixtures for the catalog test suite."""

import logging
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from catalog.config import SearchSettings
from catalog.field_mapping import FieldMapping

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0)

PRODUCT_FEED_HEADER = (
    "product_id,product_name,brand,category_name,category_description,sku_id,"
    "sku_name,sku_image,sku_description,color,aggregateRating,category_id"
)


@pytest.fixture(autouse=True)
def reset_catalog_logger():
    """Drop handlers installed by setup_logging between tests."""
    yield
    logger = logging.getLogger("catalog")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fixed_now():
    """Clock returning a constant timestamp."""
    return lambda: FIXED_NOW


@pytest.fixture
def simple_mapping():
    """Mapping for a small id/name/price/brand feed."""
    return FieldMapping.parse("id:id,name:name,price:price,brand:brand")


@pytest.fixture
def product_feed_bytes():
    """Two rows in the product_feed.csv export layout (no price column)."""
    rows = [
        PRODUCT_FEED_HEADER,
        "P1,Basic Tee,Acme,Shirts,All shirts,SKU1,Basic Tee - Red,"
        "http://img.example.com/1.jpg,Red cotton tee,Red,4.5,C10",
        "P2,Hoodie,Acme,Sweaters,Warm things,SKU2,Hoodie - Grey,"
        "http://img.example.com/2.jpg,\"Grey, heavy hoodie\",Grey,n/a,C11",
    ]
    return ("\n".join(rows) + "\n").encode("utf-8")


@pytest.fixture
def search_settings():
    """Fully configured settings for the apparel index."""
    return SearchSettings(
        endpoint="https://shop.search.windows.net/",
        api_key="test-key",
        index_name="apparel-products",
        api_version="2023-11-01",
        timeout=5,
    )


@pytest.fixture
def mock_session():
    """requests.Session stand-in returning an empty result page."""
    session = MagicMock()
    session.post.return_value.json.return_value = {"value": []}
    return session
