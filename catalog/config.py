"""Configuration and constants for catalog ingestion and search."""

import os
from dataclasses import dataclass
from typing import List, Optional

__all__ = [
    "DEFAULT_CURRENCY",
    "DATE_FORMAT",
    "SCHEMA_CONTEXT",
    "WILDCARD_QUERY",
    "DEFAULT_TOP",
    "DEFAULT_SEMANTIC_CONFIGURATION",
    "RATING_FACET",
    "DEFAULT_APPAREL_FACETS",
    "DEFAULT_APPAREL_SELECT",
    "SEARCH_API_VERSION",
    "SEARCH_REQUEST_TIMEOUT",
    "PRODUCT_INDEX_ENV_PREFIX",
    "APPAREL_INDEX_ENV_PREFIX",
    "SearchSettings",
]

# Defaults applied to materialized products
DEFAULT_CURRENCY = "USD"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SCHEMA_CONTEXT = "https://schema.org/"

# Query defaults
WILDCARD_QUERY = "*"
DEFAULT_TOP = int(os.getenv("SEARCH_DEFAULT_TOP", "10"))
DEFAULT_SEMANTIC_CONFIGURATION = "apparel-sem-config"

# Ratings are continuous, so value facets are rejected by the index.
RATING_FACET = "rating,count:10"

DEFAULT_APPAREL_FACETS: List[str] = [
    "brand,count:10,sort:count",
    "color,count:10,sort:count",
    "size,count:10,sort:count",
    "material,count:10,sort:count",
    "rating,interval:0.5",
    "price,interval:25",
    "reviewSentimentLabel,count:3",
]

DEFAULT_APPAREL_SELECT = (
    "product_id,title,brand,color,size,material,price,rating,description,"
    "review_text,keyPhrases,reviewSentimentLabel,reviewPositiveScore"
)

# Search backend (Azure AI Search REST API)
SEARCH_API_VERSION = os.getenv("AZURE_SEARCH_API_VERSION", "2023-11-01")
SEARCH_REQUEST_TIMEOUT = float(os.getenv("SEARCH_REQUEST_TIMEOUT", "15"))

PRODUCT_INDEX_ENV_PREFIX = "AZURE_SEARCH"
APPAREL_INDEX_ENV_PREFIX = "AZURE_APPAREL_SEARCH"

_DEFAULT_INDEX_NAMES = {
    PRODUCT_INDEX_ENV_PREFIX: "products",
    APPAREL_INDEX_ENV_PREFIX: "apparel-products",
}


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    value = value.strip()
    return value or default


@dataclass(frozen=True)
class SearchSettings:
    """Connection settings for one search index."""

    endpoint: Optional[str]
    api_key: Optional[str]
    index_name: str
    api_version: str = SEARCH_API_VERSION
    timeout: float = SEARCH_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        """A client is only built when both endpoint and key are present."""
        return bool(self.endpoint) and bool(self.api_key)

    @classmethod
    def from_env(cls, prefix: str = PRODUCT_INDEX_ENV_PREFIX) -> "SearchSettings":
        """Read ``<prefix>_ENDPOINT``, ``<prefix>_API_KEY`` and ``<prefix>_INDEX_NAME``."""
        return cls(
            endpoint=_get_env(f"{prefix}_ENDPOINT"),
            api_key=_get_env(f"{prefix}_API_KEY"),
            index_name=_get_env(
                f"{prefix}_INDEX_NAME", _DEFAULT_INDEX_NAMES.get(prefix, "products")
            ),
        )
