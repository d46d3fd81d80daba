"""Search backend client for the Azure AI Search REST API."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests  # type: ignore[import-untyped]

from catalog.config import SearchSettings
from catalog.errors import BackendUnavailable
from catalog.logging_config import get_logger, log_catalog_event
from catalog.query_builder import QuerySpec

__all__ = [
    "SearchHit",
    "SearchPage",
    "AzureSearchBackend",
    "build_backend",
    "create_session",
]

logger = get_logger("backend")

_SEARCH_META_PREFIX = "@search."


@dataclass
class SearchHit:
    """One result row: the raw document, its score and any highlights."""

    document: Dict[str, Any]
    score: Optional[float] = None
    highlights: Optional[Dict[str, List[str]]] = None


@dataclass
class SearchPage:
    """Backend response for one query."""

    hits: List[SearchHit] = field(default_factory=list)
    total_count: Optional[int] = None
    facets: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


def create_session(api_key: str) -> requests.Session:
    """Create a Session carrying the index API key."""
    session = requests.Session()
    session.headers.update({
        "api-key": api_key,
        "Content-Type": "application/json",
        "Accept": "application/json",
    })
    return session


def _request_body(query: QuerySpec) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "search": query.query_text,
        "top": query.top,
        "skip": query.skip,
        "count": query.include_total_count,
    }
    if query.filter:
        body["filter"] = query.filter
    if query.facets:
        body["facets"] = list(query.facets)
    if query.select:
        body["select"] = ",".join(query.select)
    if query.query_type == "semantic" and query.semantic_configuration_name:
        body["queryType"] = "semantic"
        body["semanticConfiguration"] = query.semantic_configuration_name
    return body


def _parse_hit(item: Mapping[str, Any]) -> SearchHit:
    document = {k: v for k, v in item.items() if not k.startswith(_SEARCH_META_PREFIX)}
    return SearchHit(
        document=document,
        score=item.get("@search.score"),
        highlights=item.get("@search.highlights"),
    )


class AzureSearchBackend:
    """Executes queries against one index.

    Each call is a single blocking round trip without retries. Transport
    and HTTP errors are raised as :class:`BackendUnavailable`.
    """

    def __init__(self, settings: SearchSettings, session: Optional[requests.Session] = None):
        if not settings.is_configured:
            raise BackendUnavailable(
                f"Search index '{settings.index_name}' has no endpoint or API key configured"
            )
        self.settings = settings
        self.session = session or create_session(settings.api_key or "")

    @property
    def index_name(self) -> str:
        return self.settings.index_name

    def _docs_url(self, action: str) -> str:
        endpoint = (self.settings.endpoint or "").rstrip("/")
        return f"{endpoint}/indexes/{self.settings.index_name}/docs/{action}"

    def search(self, query: QuerySpec) -> SearchPage:
        """Run one query and return the parsed result page."""
        try:
            resp = self.session.post(
                self._docs_url("search"),
                params={"api-version": self.settings.api_version},
                json=_request_body(query),
                timeout=self.settings.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise BackendUnavailable(f"Search request to '{self.index_name}' failed: {e}") from e

        return SearchPage(
            hits=[_parse_hit(item) for item in payload.get("value", [])],
            total_count=payload.get("@odata.count"),
            facets=payload.get("@search.facets") or {},
        )

    def upload_documents(self, documents: Sequence[Mapping[str, Any]]) -> bool:
        """Stand-in for bulk indexing: logs what would be uploaded."""
        # TODO: send a "mergeOrUpload" batch to docs/index once the index schema is settled
        log_catalog_event(
            "upload_stub",
            {
                "message": f"Would upload {len(documents)} documents to '{self.index_name}'",
                "index": self.index_name,
                "document_ids": [doc.get("id") for doc in documents],
            },
            logger_name="backend",
        )
        return True


def build_backend(settings: SearchSettings) -> Optional[AzureSearchBackend]:
    """Build a backend, or None when the index is not configured."""
    if not settings.is_configured:
        logger.info(f"Search index '{settings.index_name}' not configured; backend disabled")
        return None
    return AzureSearchBackend(settings)
