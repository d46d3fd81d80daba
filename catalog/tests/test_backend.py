"""Tests for the Azure AI Search REST backend."""

import pytest
import requests

from catalog.backend import AzureSearchBackend, _request_body, build_backend, create_session
from catalog.config import SearchSettings
from catalog.errors import BackendUnavailable
from catalog.query_builder import ApparelSearchRequest, QuerySpec, build_query


class TestSearchSettings:
    """Tests for SearchSettings.from_env."""

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("AZURE_APPAREL_SEARCH_ENDPOINT", "https://x.search.windows.net")
        monkeypatch.setenv("AZURE_APPAREL_SEARCH_API_KEY", "secret")
        monkeypatch.delenv("AZURE_APPAREL_SEARCH_INDEX_NAME", raising=False)
        settings = SearchSettings.from_env("AZURE_APPAREL_SEARCH")
        assert settings.endpoint == "https://x.search.windows.net"
        assert settings.index_name == "apparel-products"
        assert settings.is_configured

    def test_missing_key_is_not_configured(self, monkeypatch):
        monkeypatch.setenv("AZURE_SEARCH_ENDPOINT", "https://x.search.windows.net")
        monkeypatch.setenv("AZURE_SEARCH_API_KEY", "   ")
        settings = SearchSettings.from_env("AZURE_SEARCH")
        assert settings.api_key is None
        assert not settings.is_configured


class TestRequestBody:
    def test_semantic_query(self):
        body = _request_body(build_query(ApparelSearchRequest(
            search="tee", brand_filter="Acme", facets=["brand"], select="product_id,title",
        )))
        assert body == {
            "search": "tee",
            "top": 10,
            "skip": 0,
            "count": True,
            "filter": "brand eq 'Acme'",
            "facets": ["brand"],
            "select": "product_id,title",
            "queryType": "semantic",
            "semanticConfiguration": "apparel-sem-config",
        }

    def test_keyword_query_is_minimal(self):
        body = _request_body(QuerySpec(query_text="*", top=3))
        assert body == {"search": "*", "top": 3, "skip": 0, "count": False}


class TestAzureSearchBackend:
    """Tests for AzureSearchBackend."""

    def test_posts_to_docs_search(self, search_settings, mock_session):
        backend = AzureSearchBackend(search_settings, session=mock_session)
        backend.search(QuerySpec(query_text="tee"))

        args, kwargs = mock_session.post.call_args
        assert args[0] == "https://shop.search.windows.net/indexes/apparel-products/docs/search"
        assert kwargs["params"] == {"api-version": "2023-11-01"}
        assert kwargs["timeout"] == 5
        assert kwargs["json"]["search"] == "tee"

    def test_parses_page(self, search_settings, mock_session):
        mock_session.post.return_value.json.return_value = {
            "@odata.count": 7,
            "@search.facets": {"brand": [{"value": "Acme", "count": 3}]},
            "value": [{
                "@search.score": 1.5,
                "@search.highlights": {"title": ["<em>Tee</em>"]},
                "product_id": "A1",
                "title": "Tee",
            }],
        }
        page = AzureSearchBackend(search_settings, session=mock_session).search(QuerySpec())

        assert page.total_count == 7
        assert page.facets["brand"][0]["count"] == 3
        hit = page.hits[0]
        assert hit.document == {"product_id": "A1", "title": "Tee"}
        assert hit.score == 1.5
        assert hit.highlights == {"title": ["<em>Tee</em>"]}

    def test_missing_count_and_facets(self, search_settings, mock_session):
        page = AzureSearchBackend(search_settings, session=mock_session).search(QuerySpec())
        assert page.total_count is None
        assert page.facets == {}
        assert page.hits == []

    def test_connection_error(self, search_settings, mock_session):
        mock_session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(BackendUnavailable, match="refused"):
            AzureSearchBackend(search_settings, session=mock_session).search(QuerySpec())

    def test_http_error(self, search_settings, mock_session):
        mock_session.post.return_value.raise_for_status.side_effect = requests.HTTPError("403")
        with pytest.raises(BackendUnavailable):
            AzureSearchBackend(search_settings, session=mock_session).search(QuerySpec())

    def test_invalid_json(self, search_settings, mock_session):
        mock_session.post.return_value.json.side_effect = ValueError("no json")
        with pytest.raises(BackendUnavailable):
            AzureSearchBackend(search_settings, session=mock_session).search(QuerySpec())

    def test_unconfigured_settings_rejected(self):
        with pytest.raises(BackendUnavailable):
            AzureSearchBackend(SearchSettings(endpoint=None, api_key=None, index_name="products"))

    def test_upload_is_accepted(self, search_settings, mock_session):
        backend = AzureSearchBackend(search_settings, session=mock_session)
        assert backend.upload_documents([{"id": "1"}, {"id": "2"}]) is True
        mock_session.post.assert_not_called()


class TestBuildBackend:
    def test_unconfigured_gives_none(self):
        assert build_backend(SearchSettings(endpoint="https://x", api_key=None, index_name="p")) is None

    def test_configured(self, search_settings):
        backend = build_backend(search_settings)
        assert backend.index_name == "apparel-products"
        assert backend.session.headers["api-key"] == "test-key"


def test_create_session_headers():
    session = create_session("abc")
    assert session.headers["api-key"] == "abc"
    assert session.headers["Content-Type"] == "application/json"
