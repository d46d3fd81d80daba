"""Turn one tokenized feed row into a Product using a field mapping."""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Sequence

from catalog.config import DATE_FORMAT, DEFAULT_CURRENCY
from catalog.errors import FieldError
from catalog.field_mapping import FieldMapping
from catalog.logging_config import get_logger, log_catalog_event
from catalog.models import Product

__all__ = ["RowOutcome", "materialize_row", "parse_price", "parse_bool"]

logger = get_logger("materializer")

_PRICE_STRIP = re.compile(r"[^\d.\-]", re.ASCII)
_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", re.ASCII)
_TRUE_VALUES = frozenset({"true", "yes", "y", "1"})
LIST_SEPARATOR = ";"

# Plain string slots, keyed by lowercased target name
_STRING_SLOTS: Dict[str, str] = {
    "id": "id",
    "name": "name",
    "description": "description",
    "brand": "brand",
    "category": "category",
    "currency": "currency",
    "sku": "sku",
    "image": "image",
    "manufacturer": "manufacturer",
    "model": "model",
}

_IN_STOCK = {"instock", "in_stock", "in-stock"}
_STOCK_QUANTITY = {"stockquantity", "stock_quantity", "stock-quantity"}
_SPECIFICATIONS = {"specifications", "specs"}
_CREATED_AT = {"createdat", "created_at", "created-at"}
_UPDATED_AT = {"updatedat", "updated_at", "updated-at"}
_CATEGORY_ID = {"categoryid", "category_id", "category-id"}


@dataclass
class RowOutcome:
    """Result of materializing one row."""

    product: Optional[Product]
    field_errors: List[FieldError] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.product is not None


def parse_price(value: str) -> Decimal:
    """Drop everything except digits, ``.`` and ``-`` and parse as Decimal.

    ``"$1,234.56"`` becomes ``Decimal("1234.56")``. Grouping with dots
    (``"1.234,56"``) is not understood and yields ``Decimal("1.23456")``.

    Raises:
        ValueError: If nothing parseable remains
    """
    cleaned = _PRICE_STRIP.sub("", value)
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal after stripping: {cleaned!r}") from e


def parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _split_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(LIST_SEPARATOR) if part.strip()]


def _parse_int(value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _parse_timestamp(value: str) -> datetime:
    if not _TIMESTAMP.fullmatch(value):
        raise ValueError(f"expected YYYY-MM-DD HH:MM:SS, got {value!r}")
    return datetime.strptime(value, DATE_FORMAT)


def _parse_rating(value: str):
    if _DECIMAL.fullmatch(value):
        return float(value)
    return value


def _set_field(product: Product, target: str, value: str) -> None:
    """Assign one mapped value to the product.

    Raises ValueError/TypeError when the value cannot be coerced; the
    caller turns that into a FieldError.
    """
    key = target.lower()

    if key in _STRING_SLOTS:
        setattr(product, _STRING_SLOTS[key], value)
    elif key == "price":
        product.price = parse_price(value)
    elif key == "tags":
        product.tags = _split_list(value)
    elif key in _IN_STOCK:
        product.in_stock = parse_bool(value)
    elif key in _STOCK_QUANTITY:
        product.stock_quantity = _parse_int(value)
    elif key in _SPECIFICATIONS:
        product.specifications = _split_list(value)
    elif key in _CREATED_AT:
        product.created_at = _parse_timestamp(value)
    elif key in _UPDATED_AT:
        product.updated_at = _parse_timestamp(value)
    # Generic products have no slots for these; they stay custom attributes
    elif key == "color":
        product.add_custom_attribute("color", value)
    elif key == "rating":
        product.add_custom_attribute("rating", _parse_rating(value))
    elif key in _CATEGORY_ID:
        product.add_custom_attribute("categoryId", value)
    else:
        product.add_custom_attribute(target, value)


def _apply_defaults(product: Product, now: Callable[[], datetime]) -> None:
    if not product.id:
        product.id = str(uuid.uuid4())
    if product.created_at is None:
        product.created_at = now()
    if product.updated_at is None:
        product.updated_at = now()
    if not product.currency:
        product.currency = DEFAULT_CURRENCY


def materialize_row(
    headers: Sequence[str],
    values: Sequence[str],
    mapping: FieldMapping,
    now: Callable[[], datetime] = datetime.now,
) -> RowOutcome:
    """Build a Product from one row.

    Only the first ``min(len(headers), len(values))`` columns are used;
    width mismatches are rejected earlier by the ingestion pipeline.
    A field that fails to coerce is reported and left unset. Any other
    failure skips the whole row.

    Args:
        headers: Column names from the header line
        values: Field values of this row
        mapping: Column-to-field mapping
        now: Clock used for defaulted timestamps

    Returns:
        RowOutcome with the product (or None) and field diagnostics
    """
    field_errors: List[FieldError] = []
    try:
        row = {
            header.strip(): value.strip()
            for header, value in zip(headers, values)
        }

        product = Product()
        for column, target in mapping.items():
            value = row.get(column)
            if not value:
                continue
            try:
                _set_field(product, target, value)
            except (ValueError, TypeError) as e:
                log_catalog_event(
                    "field_error",
                    {"message": f"Could not set field {target!r} from value {value!r}: {e}",
                     "field": target, "value": value},
                    level=logging.WARNING,
                    logger_name="materializer",
                )
                field_errors.append(FieldError(field=target, value=value, reason=str(e)))

        _apply_defaults(product, now)
        return RowOutcome(product=product, field_errors=field_errors)

    except Exception as e:
        logger.exception("Error mapping feed row to Product")
        return RowOutcome(product=None, field_errors=field_errors, error=str(e))
