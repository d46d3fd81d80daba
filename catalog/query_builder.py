"""Assemble search queries: filter expressions, facets and semantic options."""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from catalog.config import (
    DEFAULT_APPAREL_FACETS,
    DEFAULT_APPAREL_SELECT,
    DEFAULT_SEMANTIC_CONFIGURATION,
    DEFAULT_TOP,
    RATING_FACET,
    WILDCARD_QUERY,
)

__all__ = [
    "ApparelSearchRequest",
    "QuerySpec",
    "FilterBuilder",
    "build_query",
    "build_filter",
    "build_safe_filter",
    "sanitize_facets",
    "keyword_query",
    "category_query",
    "brand_query",
    "color_query",
    "material_query",
    "price_range_query",
]

Number = Union[int, float]


@dataclass
class ApparelSearchRequest:
    """Structured semantic search request for the apparel index."""

    search: Optional[str] = None
    query_type: str = "semantic"
    semantic_configuration: str = DEFAULT_SEMANTIC_CONFIGURATION
    facets: Optional[List[str]] = None
    select: Optional[str] = None
    top: int = DEFAULT_TOP
    skip: int = 0
    count: bool = True

    # Apparel filter shortcuts, combined in this order
    brand_filter: Optional[str] = None
    color_filter: Optional[str] = None
    size_filter: Optional[str] = None
    material_filter: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None

    # JSON body key -> attribute
    JSON_KEYS: ClassVar[Dict[str, str]] = {
        "search": "search",
        "queryType": "query_type",
        "semanticConfiguration": "semantic_configuration",
        "facets": "facets",
        "select": "select",
        "top": "top",
        "skip": "skip",
        "count": "count",
        "brandFilter": "brand_filter",
        "colorFilter": "color_filter",
        "sizeFilter": "size_filter",
        "materialFilter": "material_filter",
        "minPrice": "min_price",
        "maxPrice": "max_price",
        "minRating": "min_rating",
    }

    # Attributes that must be strings when present
    STRING_ATTRS: ClassVar[Tuple[str, ...]] = (
        "search",
        "query_type",
        "semantic_configuration",
        "select",
        "brand_filter",
        "color_filter",
        "size_filter",
        "material_filter",
    )

    @classmethod
    def simple(cls, search: str, top: int = DEFAULT_TOP) -> "ApparelSearchRequest":
        """Request with the default apparel facets and projection."""
        return cls(
            search=search,
            top=top,
            facets=list(DEFAULT_APPAREL_FACETS),
            select=DEFAULT_APPAREL_SELECT,
        )

    @classmethod
    def from_json(cls, body: Dict[str, Any]) -> "ApparelSearchRequest":
        """Build a request from a camelCase JSON body; unknown keys are ignored.

        Raises:
            ValueError: If a value has the wrong type
        """
        kwargs: Dict[str, Any] = {}
        for key, attr in cls.JSON_KEYS.items():
            if body.get(key) is not None:
                kwargs[attr] = body[key]

        try:
            for attr in ("top", "skip"):
                if attr in kwargs:
                    kwargs[attr] = int(kwargs[attr])
            for attr in ("min_price", "max_price", "min_rating"):
                if attr in kwargs:
                    kwargs[attr] = float(kwargs[attr])
        except TypeError as e:
            raise ValueError(f"invalid numeric value: {e}") from e
        for attr in cls.STRING_ATTRS:
            if attr in kwargs and not isinstance(kwargs[attr], str):
                raise ValueError(f"{attr} must be a string")
        if "facets" in kwargs and not (
            isinstance(kwargs["facets"], list) and all(isinstance(f, str) for f in kwargs["facets"])
        ):
            raise ValueError("facets must be a list of strings")
        if "count" in kwargs and not isinstance(kwargs["count"], bool):
            raise ValueError("count must be a boolean")
        return cls(**kwargs)

    def build_filter_string(self) -> Optional[str]:
        return build_filter(self)


@dataclass
class QuerySpec:
    """Everything the search backend needs to execute one query."""

    query_text: str = WILDCARD_QUERY
    filter: Optional[str] = None
    facets: List[str] = field(default_factory=list)
    select: List[str] = field(default_factory=list)
    top: int = DEFAULT_TOP
    skip: int = 0
    include_total_count: bool = False
    query_type: Optional[str] = None
    semantic_configuration_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _format_number(value: Number) -> str:
    """Render numbers the way the filter grammar has always received them (50 -> 50.0)."""
    return str(float(value))


def _quote(value: str, escape: bool) -> str:
    if escape:
        value = value.replace("'", "''")
    return f"'{value}'"


class FilterBuilder:
    """Accumulates ``and``-joined OData comparisons.

    With ``escape_literals=False`` string values are interpolated as-is,
    which lets a caller inject filter syntax. ``escape_literals=True``
    doubles single quotes so each value stays a single literal.
    """

    def __init__(self, escape_literals: bool = False):
        self.escape_literals = escape_literals
        self._clauses: List[str] = []

    def eq(self, field_name: str, value: Optional[str]) -> "FilterBuilder":
        if value is not None and value.strip():
            self._clauses.append(f"{field_name} eq {_quote(value, self.escape_literals)}")
        return self

    def ge(self, field_name: str, value: Optional[Number]) -> "FilterBuilder":
        if value is not None:
            self._clauses.append(f"{field_name} ge {_format_number(value)}")
        return self

    def le(self, field_name: str, value: Optional[Number]) -> "FilterBuilder":
        if value is not None:
            self._clauses.append(f"{field_name} le {_format_number(value)}")
        return self

    def build(self) -> Optional[str]:
        return " and ".join(self._clauses) if self._clauses else None


def _apparel_filter(request: ApparelSearchRequest, escape_literals: bool) -> Optional[str]:
    return (
        FilterBuilder(escape_literals=escape_literals)
        .eq("brand", request.brand_filter)
        .eq("color", request.color_filter)
        .eq("size", request.size_filter)
        .eq("material", request.material_filter)
        .ge("price", request.min_price)
        .le("price", request.max_price)
        .ge("rating", request.min_rating)
        .build()
    )


def build_filter(request: ApparelSearchRequest) -> Optional[str]:
    """Filter expression for the request's shortcuts, values unescaped."""
    return _apparel_filter(request, escape_literals=False)


def build_safe_filter(request: ApparelSearchRequest) -> Optional[str]:
    """Same as :func:`build_filter` but with quote-escaped string literals."""
    return _apparel_filter(request, escape_literals=True)


def sanitize_facets(facets: Optional[List[str]]) -> List[str]:
    """Replace any rating facet with a count facet; keep the rest verbatim."""
    return [RATING_FACET if "rating" in facet else facet for facet in facets or []]


def _split_select(select: Optional[str]) -> List[str]:
    if not select or not select.strip():
        return []
    return [name.strip() for name in select.split(",") if name.strip()]


def _query_text(search: Optional[str]) -> str:
    return search if search and search.strip() else WILDCARD_QUERY


def build_query(request: ApparelSearchRequest, safe: bool = False) -> QuerySpec:
    """Assemble the backend query for a semantic search request.

    Args:
        request: The structured request
        safe: Escape string literals in the filter

    Returns:
        QuerySpec ready for the backend
    """
    return QuerySpec(
        query_text=_query_text(request.search),
        filter=build_safe_filter(request) if safe else build_filter(request),
        facets=sanitize_facets(request.facets),
        select=_split_select(request.select),
        top=request.top,
        skip=request.skip,
        include_total_count=request.count,
        query_type=request.query_type,
        semantic_configuration_name=request.semantic_configuration,
    )


# =============================================================================
# Convenience queries: wildcard text with one pre-built clause
# =============================================================================

def keyword_query(search_text: Optional[str], filter_expression: Optional[str] = None,
                  top: int = DEFAULT_TOP) -> QuerySpec:
    """Plain keyword search with an optional caller-supplied filter."""
    if filter_expression is not None and not filter_expression.strip():
        filter_expression = None
    return QuerySpec(query_text=_query_text(search_text), filter=filter_expression, top=top)


def category_query(category: str, top: int = DEFAULT_TOP) -> QuerySpec:
    return keyword_query(WILDCARD_QUERY, f"category eq '{category}'", top)


def brand_query(brand: str, top: int = DEFAULT_TOP) -> QuerySpec:
    return keyword_query(WILDCARD_QUERY, f"brand eq '{brand}'", top)


def color_query(color: str, top: int = DEFAULT_TOP) -> QuerySpec:
    return keyword_query(WILDCARD_QUERY, f"color eq '{color}'", top)


def material_query(material: str, top: int = DEFAULT_TOP) -> QuerySpec:
    return keyword_query(WILDCARD_QUERY, f"material eq '{material}'", top)


def price_range_query(min_price: Number, max_price: Number, top: int = DEFAULT_TOP) -> QuerySpec:
    clause = FilterBuilder().ge("price", min_price).le("price", max_price).build()
    return keyword_query(WILDCARD_QUERY, clause, top)
