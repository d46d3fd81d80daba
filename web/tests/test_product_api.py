"""Test product API endpoints."""

import io
import logging
from decimal import Decimal

import pytest

from catalog.errors import StreamError
from catalog.models import ApparelProduct, Product
from catalog.search import ApparelSearchResponse, ApparelSearchResult
import web.api

FEED = b"id,name,price,brand\n1,Shirt,$19.99,Acme\n2,Broken\n3,Hat,5,Acme\n"


def _upload(client, url, data=FEED, filename="feed.csv", **form):
    form["file"] = (io.BytesIO(data), filename)
    return client.post(url, data=form, content_type="multipart/form-data")


class TestGetProduct:
    """Test GET /api/products/<id> endpoint."""

    def test_found(self, client, search_service):
        search_service.get_product_by_id.return_value = Product(id="P1", name="Tee", price=Decimal("9.99"))
        response = client.get("/api/products/P1")

        assert response.status_code == 200
        assert response.json["id"] == "P1"
        assert response.json["price"] == 9.99
        search_service.get_product_by_id.assert_called_once_with("P1")

    def test_not_found(self, client):
        response = client.get("/api/products/missing")
        assert response.status_code == 404
        assert "error" in response.json


class TestUploadCsv:
    """Test POST /api/products/upload-csv endpoint."""

    def test_parses_upload(self, client):
        response = _upload(client, "/api/products/upload-csv", mapping="id:id,name:name,price:price,brand:brand")

        assert response.status_code == 200
        data = response.json
        assert data["message"] == "Successfully parsed 2 products"
        assert data["totalProducts"] == 2
        assert [p["name"] for p in data["products"]] == ["Shirt", "Hat"]
        assert data["products"][0]["price"] == 19.99
        assert data["skippedRows"][0]["line_number"] == 3

    def test_default_mapping_is_product_feed(self, client):
        feed = b"product_id,product_name,sku_name\nP1,Tee,Tee - Red\n"
        response = _upload(client, "/api/products/upload-csv", data=feed)
        assert response.json["products"][0]["name"] == "Tee - Red"

    def test_missing_file(self, client):
        response = client.post("/api/products/upload-csv", data={}, content_type="multipart/form-data")
        assert response.status_code == 400

    def test_wrong_extension(self, client):
        response = _upload(client, "/api/products/upload-csv", filename="feed.txt")
        assert response.status_code == 400
        assert "CSV" in response.json["error"]

    def test_empty_file(self, client):
        response = _upload(client, "/api/products/upload-csv", data=b"")
        assert response.status_code == 400

    def test_latin1_row_does_not_fail_upload(self, client):
        feed = b"id,name\n1,Shirt\n2,Caf\xe9\n3,Hat\n"
        response = _upload(client, "/api/products/upload-csv", data=feed, mapping="id:id,name:name")

        assert response.status_code == 200
        assert response.json["totalProducts"] == 3
        assert response.json["undecodableLines"] == [3]
        assert response.json["products"][2]["name"] == "Hat"


class TestUploadCsvToSearch:
    """Test POST /api/products/upload-csv-to-search endpoint."""

    def test_success(self, client, search_service):
        response = _upload(
            client, "/api/products/upload-csv-to-search", mapping="id:id,name:name,price:price,brand:brand"
        )

        assert response.status_code == 200
        assert response.json["status"] == "success"
        products = search_service.upload_products.call_args[0][0]
        assert [p.id for p in products] == ["1", "3"]

    def test_upload_failure(self, client, search_service):
        search_service.upload_products.return_value = False
        response = _upload(client, "/api/products/upload-csv-to-search")
        assert response.status_code == 500
        assert response.json["status"] == "error"


class TestProductSearch:
    """Test product search endpoints."""

    def test_get_search(self, client, search_service):
        search_service.search_products.return_value = [Product(id="1", name="Tee")]
        response = client.get(
            "/api/products/search", query_string={"q": "tee", "filter": "brand eq 'Acme'", "top": "5"}
        )

        assert response.status_code == 200
        assert response.json[0]["name"] == "Tee"
        search_service.search_products.assert_called_once_with("tee", "brand eq 'Acme'", 5)

    def test_get_search_defaults(self, client, search_service):
        client.get("/api/products/search")
        search_service.search_products.assert_called_once_with("*", None, 10)

    def test_post_search(self, client, search_service):
        response = client.post("/api/products/search", json={"query": "tee", "top": 3})
        assert response.status_code == 200
        search_service.search_products.assert_called_once_with("tee", None, 3)

    def test_post_search_invalid_body(self, client):
        response = client.post("/api/products/search", data="not json", content_type="text/plain")
        assert response.status_code == 400

    def test_post_search_bad_top(self, client):
        response = client.post("/api/products/search", json={"query": "tee", "top": "ten"})
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [{"query": 5}, {"query": ["tee"]}, {"filter": 1}, {"filter": {"brand": "Acme"}}])
    def test_post_search_wrong_types(self, client, search_service, body):
        response = client.post("/api/products/search", json=body)
        assert response.status_code == 400
        search_service.search_products.assert_not_called()

    def test_category_and_brand(self, client, search_service):
        client.get("/api/products/search/category/Shirts")
        search_service.search_products_by_category.assert_called_once_with("Shirts", 10)
        client.get("/api/products/search/brand/Acme?top=2")
        search_service.search_products_by_brand.assert_called_once_with("Acme", 2)

    def test_price_range(self, client, search_service):
        response = client.get("/api/products/search/price?minPrice=10&maxPrice=50")
        assert response.status_code == 200
        search_service.search_products_by_price_range.assert_called_once_with(10.0, 50.0, 10)

    def test_price_range_requires_bounds(self, client, search_service):
        assert client.get("/api/products/search/price?minPrice=10").status_code == 400
        assert client.get("/api/products/search/price?minPrice=a&maxPrice=5").status_code == 400
        search_service.search_products_by_price_range.assert_not_called()


class TestApparelSemanticSearch:
    """Test apparel semantic search endpoints."""

    def test_post(self, client, search_service):
        search_service.apparel_semantic_search.return_value = ApparelSearchResponse(
            query="tee",
            total_results=1,
            results=[ApparelSearchResult(product_id="A1", title="Tee", price=19.0)],
        )
        response = client.post(
            "/api/products/apparel/semantic-search",
            json={"search": "tee", "brandFilter": "Nike", "maxPrice": 50},
        )

        assert response.status_code == 200
        assert response.json["totalResults"] == 1
        assert response.json["results"][0]["product_id"] == "A1"
        request = search_service.apparel_semantic_search.call_args[0][0]
        assert request.brand_filter == "Nike"
        assert request.max_price == 50.0

    def test_post_blank_search(self, client, search_service):
        response = client.post("/api/products/apparel/semantic-search", json={"search": "  "})
        assert response.status_code == 400
        search_service.apparel_semantic_search.assert_not_called()

    def test_post_bad_facets(self, client):
        response = client.post(
            "/api/products/apparel/semantic-search", json={"search": "tee", "facets": "brand"}
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [
        {"search": 123},
        {"search": "tee", "facets": [1]},
        {"search": "tee", "brandFilter": ["Nike"]},
        {"search": "tee", "select": ["title"]},
    ])
    def test_post_wrong_types(self, client, search_service, body):
        response = client.post("/api/products/apparel/semantic-search", json=body)
        assert response.status_code == 400
        search_service.apparel_semantic_search.assert_not_called()

    def test_get(self, client, search_service):
        response = client.get("/api/products/apparel/semantic-search?query=tee&top=3")
        assert response.status_code == 200
        request = search_service.apparel_semantic_search.call_args[0][0]
        assert request.search == "tee"
        assert request.top == 3
        assert request.facets

    def test_get_requires_query(self, client):
        assert client.get("/api/products/apparel/semantic-search").status_code == 400


class TestApparelLookups:
    """Test apparel brand/color/material endpoints."""

    def test_color(self, client, search_service):
        search_service.search_apparel_by_color.return_value = [ApparelProduct(id="A1", name="Tee", color="Red")]
        response = client.get("/api/products/apparel/search/color/Red")

        assert response.status_code == 200
        assert response.json[0]["title"] == "Tee"
        assert response.json[0]["product_id"] == "A1"
        search_service.search_apparel_by_color.assert_called_once_with("Red", 10)

    def test_brand_and_material(self, client, search_service):
        client.get("/api/products/apparel/search/brand/Acme")
        search_service.search_apparel_by_brand.assert_called_once_with("Acme", 10)
        client.get("/api/products/apparel/search/material/Wool")
        search_service.search_apparel_by_material.assert_called_once_with("Wool", 10)


class TestHealth:
    def test_health(self, client, search_service):
        response = client.get("/api/products/health")
        assert response.status_code == 200
        assert response.json["status"] == "ok"
        assert response.json["productIndexConfigured"] is False
        search_service.get_product_by_id.assert_not_called()


def test_upload_failures_reach_catalog_log(client, caplog, monkeypatch):
    """Web errors are logged under the catalog logger tree."""

    def failing_ingest(data, mapping):
        raise StreamError("disk gone")

    monkeypatch.setattr(web.api, "ingest_csv", failing_ingest)
    with caplog.at_level(logging.ERROR, logger="catalog"):
        response = _upload(client, "/api/products/upload-csv")

    assert response.status_code == 500
    records = [r for r in caplog.records if r.name == "catalog.web"]
    assert len(records) == 1
    assert records[0].exc_info is not None
