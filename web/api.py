"""API endpoints for product lookup, feed uploads and search.

Routes live under ``/api/products``:
1. Lookup - fetch one product by id
2. Feed upload - parse a CSV feed, optionally hand it to the search index
3. Search - keyword, category, brand and price range searches
4. Apparel - semantic search with facets and structured filters
"""

from typing import Optional, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request

from catalog.documents import apparel_product_to_document, product_to_document
from catalog.errors import StreamError
from catalog.field_mapping import FieldMapping
from catalog.ingest import IngestReport, ingest_csv
from catalog.logging_config import get_logger, log_catalog_event
from catalog.query_builder import ApparelSearchRequest
from catalog.search import ProductSearchService

from .config import DEFAULT_TOP

__all__ = ["api", "SEARCH_SERVICE_KEY"]

logger = get_logger("web")

# Key under app.extensions holding the ProductSearchService
SEARCH_SERVICE_KEY = "product_search"

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api/products")

ApiResponse = Union[Tuple[Response, int], Response]


def _service() -> ProductSearchService:
    return current_app.extensions[SEARCH_SERVICE_KEY]


def _top() -> int:
    return request.args.get("top", DEFAULT_TOP, type=int)


def _products_response(products) -> Response:
    return jsonify([product_to_document(p) for p in products])


def _apparel_response(products) -> Response:
    return jsonify([apparel_product_to_document(p) for p in products])


def _parse_upload() -> Tuple[Optional[IngestReport], Optional[ApiResponse]]:
    """Parse the uploaded feed in ``file`` with the optional ``mapping`` form field.

    Returns (report, None) on success or (None, error_response).
    """
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return None, (jsonify({"error": "Please select a file to upload"}), 400)
    if not upload.filename.lower().endswith(".csv"):
        return None, (jsonify({"error": "Please upload a CSV file"}), 400)

    data = upload.read()
    if not data:
        return None, (jsonify({"error": "Uploaded file is empty"}), 400)

    mapping_config = request.form.get("mapping", "").strip()
    mapping = FieldMapping.parse(mapping_config) if mapping_config else FieldMapping.product_feed()

    try:
        report = ingest_csv(data, mapping)
    except StreamError as e:
        logger.exception(f"Error processing CSV upload {upload.filename}")
        return None, (jsonify({"error": f"Error processing CSV file: {e}"}), 500)

    log_catalog_event(
        "csv_uploaded",
        {
            "message": f"Parsed upload {upload.filename}",
            "filename": upload.filename,
            "products": report.total_products,
            "skipped_rows": len(report.skipped_rows),
        },
        logger_name="web",
    )
    return report, None


# =============================================================================
# Lookup and feed upload
# =============================================================================


@api.route("/<product_id>", methods=["GET"])
def get_product(product_id: str) -> ApiResponse:
    product = _service().get_product_by_id(product_id)
    if product is None:
        return jsonify({"error": f"Product {product_id} not found"}), 404
    return jsonify(product_to_document(product))


@api.route("/upload-csv", methods=["POST"])
def upload_csv() -> ApiResponse:
    """Parse a CSV feed and return the products.

    Form fields:
        file: the CSV feed
        mapping: optional "column:field,column:field" mapping

    Response JSON:
        {
            "message": "Successfully parsed 2 products",
            "totalProducts": 2,
            "products": [...],
            "skippedRows": [...],
            "fieldErrors": [...],
            "linesRead": 3
        }
    """
    report, error = _parse_upload()
    if error is not None:
        return error

    return jsonify({
        "message": f"Successfully parsed {report.total_products} products",
        "products": [product_to_document(p) for p in report.products],
        **report.summary(),
    })


@api.route("/upload-csv-to-search", methods=["POST"])
def upload_csv_to_search() -> ApiResponse:
    report, error = _parse_upload()
    if error is not None:
        return error

    uploaded = _service().upload_products(report.products)
    if not uploaded:
        return jsonify({
            "status": "error",
            "message": "Failed to upload products to search index",
            **report.summary(),
        }), 500

    return jsonify({
        "status": "success",
        "message": f"Successfully uploaded {report.total_products} products to search index",
        **report.summary(),
    })


# =============================================================================
# Product search
# =============================================================================


@api.route("/search", methods=["GET"])
def search_products_get() -> ApiResponse:
    query = request.args.get("q", "*")
    filter_expression = request.args.get("filter")
    return _products_response(_service().search_products(query, filter_expression, _top()))


@api.route("/search", methods=["POST"])
def search_products_post() -> ApiResponse:
    """Keyword search with a JSON body: {"query": "...", "filter": "...", "top": 10}."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    query = data.get("query", "*")
    if not isinstance(query, str):
        return jsonify({"error": "query must be a string"}), 400

    filter_expression = data.get("filter")
    if filter_expression is not None and not isinstance(filter_expression, str):
        return jsonify({"error": "filter must be a string"}), 400

    top = data.get("top", DEFAULT_TOP)
    if not isinstance(top, int) or isinstance(top, bool):
        return jsonify({"error": "top must be an integer"}), 400

    products = _service().search_products(query, filter_expression, top)
    return _products_response(products)


@api.route("/search/category/<category>", methods=["GET"])
def search_by_category(category: str) -> ApiResponse:
    return _products_response(_service().search_products_by_category(category, _top()))


@api.route("/search/brand/<brand>", methods=["GET"])
def search_by_brand(brand: str) -> ApiResponse:
    return _products_response(_service().search_products_by_brand(brand, _top()))


@api.route("/search/price", methods=["GET"])
def search_by_price_range() -> ApiResponse:
    min_price = request.args.get("minPrice", type=float)
    max_price = request.args.get("maxPrice", type=float)
    if min_price is None or max_price is None:
        return jsonify({"error": "minPrice and maxPrice are required numbers"}), 400
    return _products_response(
        _service().search_products_by_price_range(min_price, max_price, _top())
    )


# =============================================================================
# Apparel search
# =============================================================================


@api.route("/apparel/semantic-search", methods=["POST"])
def apparel_semantic_search_post() -> ApiResponse:
    """Semantic apparel search.

    Request JSON:
        {
            "search": "summer t-shirt",
            "brandFilter": "Nike",
            "maxPrice": 50,
            "facets": ["brand,count:20", "rating"],
            "top": 10
        }

    Response JSON:
        {"query": ..., "totalResults": ..., "results": [...], "facets": {...}, "searchTime": ...}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        search_request = ApparelSearchRequest.from_json(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if not search_request.search or not search_request.search.strip():
        return jsonify({"error": "search is required"}), 400

    response = _service().apparel_semantic_search(search_request)
    return jsonify(response.to_dict())


@api.route("/apparel/semantic-search", methods=["GET"])
def apparel_semantic_search_get() -> ApiResponse:
    query = request.args.get("query", "").strip()
    if not query:
        return jsonify({"error": "query is required"}), 400

    search_request = ApparelSearchRequest.simple(query, top=_top())
    return jsonify(_service().apparel_semantic_search(search_request).to_dict())


@api.route("/apparel/search/brand/<brand>", methods=["GET"])
def apparel_by_brand(brand: str) -> ApiResponse:
    return _apparel_response(_service().search_apparel_by_brand(brand, _top()))


@api.route("/apparel/search/color/<color>", methods=["GET"])
def apparel_by_color(color: str) -> ApiResponse:
    return _apparel_response(_service().search_apparel_by_color(color, _top()))


@api.route("/apparel/search/material/<material>", methods=["GET"])
def apparel_by_material(material: str) -> ApiResponse:
    return _apparel_response(_service().search_apparel_by_material(material, _top()))


@api.route("/health", methods=["GET"])
def health() -> ApiResponse:
    service = _service()
    return jsonify({
        "status": "ok",
        "productIndexConfigured": service.backend is not None,
        "apparelIndexConfigured": service.apparel_backend is not None,
    })
