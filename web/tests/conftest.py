"""Shared test fixtures for the web test suite."""

import logging
from unittest.mock import MagicMock

import pytest

from catalog.search import ApparelSearchResponse, ProductSearchService
from web.app import create_app


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
def search_service():
    """ProductSearchService stand-in with empty results."""
    service = MagicMock(spec=ProductSearchService)
    service.backend = None
    service.apparel_backend = None
    service.get_product_by_id.return_value = None
    service.search_products.return_value = []
    service.search_products_by_category.return_value = []
    service.search_products_by_brand.return_value = []
    service.search_products_by_price_range.return_value = []
    service.search_apparel_by_brand.return_value = []
    service.search_apparel_by_color.return_value = []
    service.search_apparel_by_material.return_value = []
    service.upload_products.return_value = True
    service.apparel_semantic_search.return_value = ApparelSearchResponse.empty("tee")
    return service


@pytest.fixture
def client(search_service):
    """Create Flask test client backed by the mock search service."""
    app = create_app(search_service=search_service)
    app.config["TESTING"] = True

    with app.test_client() as test_client:
        yield test_client
