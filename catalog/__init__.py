"""Product catalog ingestion and search package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog.config import DEFAULT_CURRENCY, SearchSettings
from catalog.csv_utils import tokenize_line
from catalog.documents import (
    apparel_from_product,
    apparel_product_from_document,
    apparel_product_to_document,
    product_from_document,
    product_to_document,
)
from catalog.errors import BackendUnavailable, FieldError, RowError, StreamError
from catalog.field_mapping import FieldMapping
from catalog.ingest import IngestReport, ingest_csv, parse_csv
from catalog.materializer import RowOutcome, materialize_row
from catalog.models import ApparelProduct, Product
from catalog.query_builder import ApparelSearchRequest, QuerySpec, build_query
from catalog.search import ProductSearchService

__all__ = [
    # Version
    "__version__",
    # Config
    "DEFAULT_CURRENCY",
    "SearchSettings",
    # Models
    "Product",
    "ApparelProduct",
    "FieldMapping",
    "ApparelSearchRequest",
    "QuerySpec",
    # Errors and diagnostics
    "StreamError",
    "BackendUnavailable",
    "FieldError",
    "RowError",
    # Ingestion
    "tokenize_line",
    "materialize_row",
    "RowOutcome",
    "parse_csv",
    "ingest_csv",
    "IngestReport",
    # Query and documents
    "build_query",
    "product_from_document",
    "apparel_product_from_document",
    "product_to_document",
    "apparel_product_to_document",
    "apparel_from_product",
    # Search
    "ProductSearchService",
]
