"""Product and apparel search on top of the search backend.

Backend failures never escape this module: searches degrade to empty
results and uploads report ``False``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from catalog.backend import AzureSearchBackend, SearchHit, SearchPage, build_backend
from catalog.config import APPAREL_INDEX_ENV_PREFIX, DEFAULT_TOP, PRODUCT_INDEX_ENV_PREFIX, SearchSettings
from catalog.documents import (
    apparel_products_from_documents,
    product_from_document,
    product_to_document,
    products_from_documents,
)
from catalog.errors import BackendUnavailable
from catalog.logging_config import get_logger, log_catalog_event
from catalog.models import ApparelProduct, Product
from catalog.query_builder import (
    ApparelSearchRequest,
    QuerySpec,
    brand_query,
    build_query,
    category_query,
    color_query,
    keyword_query,
    material_query,
    price_range_query,
)

__all__ = [
    "FacetValue",
    "ApparelSearchResult",
    "ApparelSearchResponse",
    "ProductSearchService",
]

logger = get_logger("search")


@dataclass
class FacetValue:
    value: Any
    count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "count": self.count}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_str_list(value: Any) -> List[str]:
    return [str(item) for item in value] if isinstance(value, list) else []


@dataclass
class ApparelSearchResult:
    """One apparel hit as returned to API callers."""

    product_id: Optional[str] = None
    title: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    description: Optional[str] = None
    review_text: Optional[str] = None
    key_phrases: List[str] = field(default_factory=list)
    entities: List[str] = field(default_factory=list)
    review_sentiment_label: Optional[str] = None
    review_positive_score: Optional[float] = None
    score: Optional[float] = None
    highlights: Optional[Dict[str, List[str]]] = None

    @classmethod
    def from_hit(cls, hit: SearchHit) -> "ApparelSearchResult":
        doc = hit.document
        return cls(
            product_id=_as_str(doc.get("product_id")),
            title=_as_str(doc.get("title")),
            brand=_as_str(doc.get("brand")),
            color=_as_str(doc.get("color")),
            size=_as_str(doc.get("size")),
            material=_as_str(doc.get("material")),
            price=_as_float(doc.get("price")),
            rating=_as_float(doc.get("rating")),
            description=_as_str(doc.get("description")),
            review_text=_as_str(doc.get("review_text")),
            key_phrases=_as_str_list(doc.get("keyPhrases")),
            entities=_as_str_list(doc.get("entities")),
            review_sentiment_label=_as_str(doc.get("reviewSentimentLabel")),
            review_positive_score=_as_float(doc.get("reviewPositiveScore")),
            score=hit.score,
            highlights=hit.highlights,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "brand": self.brand,
            "color": self.color,
            "size": self.size,
            "material": self.material,
            "price": self.price,
            "rating": self.rating,
            "description": self.description,
            "review_text": self.review_text,
            "keyPhrases": self.key_phrases,
            "entities": self.entities,
            "reviewSentimentLabel": self.review_sentiment_label,
            "reviewPositiveScore": self.review_positive_score,
            "score": self.score,
            "highlights": self.highlights,
        }


@dataclass
class ApparelSearchResponse:
    query: Optional[str]
    total_results: int = 0
    results: List[ApparelSearchResult] = field(default_factory=list)
    facets: Dict[str, List[FacetValue]] = field(default_factory=dict)
    search_time_ms: int = 0
    error: Optional[str] = None

    @classmethod
    def empty(cls, query: Optional[str], error: Optional[str] = None) -> "ApparelSearchResponse":
        return cls(query=query, error=error)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "query": self.query,
            "totalResults": self.total_results,
            "results": [r.to_dict() for r in self.results],
            "facets": {
                name: [v.to_dict() for v in values] for name, values in self.facets.items()
            },
            "searchTime": self.search_time_ms,
        }
        if self.error:
            data["error"] = self.error
        return data


def _facet_values(raw: Dict[str, List[Dict[str, Any]]]) -> Dict[str, List[FacetValue]]:
    facets: Dict[str, List[FacetValue]] = {}
    for name, buckets in raw.items():
        values = []
        for bucket in buckets:
            # Interval facets report "from"/"to" instead of "value"
            value = bucket.get("value", bucket.get("from"))
            values.append(FacetValue(value=value, count=bucket.get("count")))
        facets[name] = values
    return facets


class ProductSearchService:
    """Searches the generic product index and the apparel index.

    Either backend may be ``None`` (not configured); calls against it
    then return empty results.
    """

    def __init__(
        self,
        backend: Optional[AzureSearchBackend] = None,
        apparel_backend: Optional[AzureSearchBackend] = None,
    ):
        self.backend = backend
        self.apparel_backend = apparel_backend

    @classmethod
    def from_env(cls) -> "ProductSearchService":
        return cls(
            backend=build_backend(SearchSettings.from_env(PRODUCT_INDEX_ENV_PREFIX)),
            apparel_backend=build_backend(SearchSettings.from_env(APPAREL_INDEX_ENV_PREFIX)),
        )

    def _execute(self, backend: Optional[AzureSearchBackend], query: QuerySpec, label: str) -> Optional[SearchPage]:
        if backend is None:
            logger.warning(f"{label} search backend is not configured")
            return None
        try:
            page = backend.search(query)
        except BackendUnavailable as e:
            log_catalog_event(
                "search_failed",
                {"message": f"{label} search failed: {e}", "query": query.to_dict()},
                level=logging.ERROR,
                logger_name="search",
            )
            return None
        log_catalog_event(
            "search_executed",
            {
                "message": f"{label} search returned {len(page.hits)} hits",
                "query_text": query.query_text,
                "filter": query.filter,
                "hits": len(page.hits),
            },
            level=logging.DEBUG,
            logger_name="search",
        )
        return page

    # -------------------------------------------------------------------------
    # Generic products
    # -------------------------------------------------------------------------

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        query = QuerySpec(query_text=product_id, filter=f"product_id eq '{product_id}'", top=1)
        page = self._execute(self.backend, query, "Product")
        if page is None or not page.hits:
            return None
        return product_from_document(page.hits[0].document)

    def search(self, query: QuerySpec) -> List[Product]:
        page = self._execute(self.backend, query, "Product")
        if page is None:
            return []
        return products_from_documents(hit.document for hit in page.hits)

    def search_products(self, search_text: Optional[str], filter_expression: Optional[str] = None,
                        top: int = DEFAULT_TOP) -> List[Product]:
        return self.search(keyword_query(search_text, filter_expression, top))

    def search_products_by_category(self, category: str, top: int = DEFAULT_TOP) -> List[Product]:
        return self.search(category_query(category, top))

    def search_products_by_brand(self, brand: str, top: int = DEFAULT_TOP) -> List[Product]:
        return self.search(brand_query(brand, top))

    def search_products_by_price_range(self, min_price: float, max_price: float,
                                       top: int = DEFAULT_TOP) -> List[Product]:
        return self.search(price_range_query(min_price, max_price, top))

    def upload_products(self, products: List[Product]) -> bool:
        """Hand products to the index; False when the backend is missing or fails."""
        if self.backend is None:
            logger.warning("Product search backend is not configured; nothing uploaded")
            return False
        documents = [product_to_document(p) for p in products]
        try:
            return self.backend.upload_documents(documents)
        except BackendUnavailable:
            logger.exception("Error uploading products to the search index")
            return False

    # -------------------------------------------------------------------------
    # Apparel
    # -------------------------------------------------------------------------

    def search_apparel(self, query: QuerySpec) -> List[ApparelProduct]:
        page = self._execute(self.apparel_backend, query, "Apparel")
        if page is None:
            return []
        return apparel_products_from_documents(hit.document for hit in page.hits)

    def search_apparel_products(self, search_text: Optional[str], filter_expression: Optional[str] = None,
                                top: int = DEFAULT_TOP) -> List[ApparelProduct]:
        return self.search_apparel(keyword_query(search_text, filter_expression, top))

    def search_apparel_by_brand(self, brand: str, top: int = DEFAULT_TOP) -> List[ApparelProduct]:
        return self.search_apparel(brand_query(brand, top))

    def search_apparel_by_color(self, color: str, top: int = DEFAULT_TOP) -> List[ApparelProduct]:
        return self.search_apparel(color_query(color, top))

    def search_apparel_by_material(self, material: str, top: int = DEFAULT_TOP) -> List[ApparelProduct]:
        return self.search_apparel(material_query(material, top))

    def apparel_semantic_search(self, request: ApparelSearchRequest) -> ApparelSearchResponse:
        """Semantic search over the apparel index.

        Args:
            request: Structured request; facets and filters are normalized
                by the query builder

        Returns:
            ApparelSearchResponse; empty with ``error`` set on failure
        """
        if self.apparel_backend is None:
            return ApparelSearchResponse.empty(
                request.search, "Apparel search backend is not configured"
            )

        started = time.perf_counter()
        query = build_query(request)
        logger.info(
            f"Apparel semantic search: query={query.query_text!r} filter={query.filter!r} "
            f"facets={query.facets} top={query.top} skip={query.skip}"
        )

        page = self._execute(self.apparel_backend, query, "Apparel")
        if page is None:
            return ApparelSearchResponse.empty(request.search, "Error performing apparel semantic search")

        results = [ApparelSearchResult.from_hit(hit) for hit in page.hits]
        return ApparelSearchResponse(
            query=request.search,
            total_results=page.total_count if page.total_count is not None else len(results),
            results=results,
            facets=_facet_values(page.facets),
            search_time_ms=int((time.perf_counter() - started) * 1000),
        )
