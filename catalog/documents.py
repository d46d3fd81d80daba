"""Convert schema-less search documents to typed products and back.

The conversion is structural: each dataclass field has a document key
(its name, or ``metadata["document_key"]``) and a declared type, and
values are coerced to that type. Unknown document keys are ignored and
unset entity fields are left out of produced documents. Conversion
failures are logged and reported as ``None``.
"""

import dataclasses
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import (
    Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar, Union,
    get_args, get_origin, get_type_hints,
)

from catalog.errors import MappingError
from catalog.logging_config import get_logger
from catalog.models import ApparelProduct, Product, document_key

__all__ = [
    "product_from_document",
    "apparel_product_from_document",
    "product_to_document",
    "apparel_product_to_document",
    "products_from_documents",
    "apparel_products_from_documents",
    "apparel_from_product",
]

logger = get_logger("documents")

T = TypeVar("T", bound=Product)

_SCALARS = (str, int, float, bool)


def _unwrap_optional(hint: Any) -> Any:
    if get_origin(hint) is Union:
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _coerce(value: Any, hint: Any, key: str) -> Any:
    """Coerce a decoded JSON value to the declared field type."""
    target = _unwrap_optional(hint)
    origin = get_origin(target)

    def mismatch() -> MappingError:
        return MappingError(f"{key}: cannot convert {type(value).__name__} {value!r}")

    if origin is list:
        if not isinstance(value, list):
            raise mismatch()
        return [_coerce(item, str, key) for item in value]

    if origin is dict:
        if not isinstance(value, Mapping):
            raise mismatch()
        result: Dict[str, Any] = {}
        for name, item in value.items():
            if item is not None and not isinstance(item, _SCALARS):
                raise MappingError(f"{key}.{name}: custom attributes must be scalars")
            result[str(name)] = item
        return result

    if target is str:
        if not isinstance(value, _SCALARS):
            raise mismatch()
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    if target is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        raise mismatch()

    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        if target in (int, float, Decimal):
            raise mismatch()

    try:
        if target is int:
            if isinstance(value, float) and not value.is_integer():
                raise mismatch()
            return int(value)
        if target is float:
            return float(value)
        if target is Decimal:
            return Decimal(str(value))
    except (ValueError, InvalidOperation) as e:
        raise mismatch() from e

    if target is datetime:
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise mismatch()
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise mismatch() from e

    raise MappingError(f"{key}: unsupported field type {target!r}")


def _decode(cls: Type[T], document: Mapping[str, Any]) -> T:
    if not isinstance(document, Mapping):
        raise MappingError(f"expected a mapping, got {type(document).__name__}")

    hints = get_type_hints(cls)
    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        key = document_key(f)
        value = document.get(key)
        if value is not None:
            kwargs[f.name] = _coerce(value, hints[f.name], key)

    # Aliases only fill fields the canonical keys left empty
    for alias, field_name in cls.DOCUMENT_ALIASES.items():
        value = document.get(alias)
        if value is not None and field_name not in kwargs:
            kwargs[field_name] = _coerce(value, hints[field_name], alias)

    return cls(**kwargs)


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _encode(entity: Product) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    for f in dataclasses.fields(entity):
        value = getattr(entity, f.name)
        if value is not None:
            document[document_key(f)] = _to_json(value)
    for alias, field_name in type(entity).DOCUMENT_ALIASES.items():
        value = getattr(entity, field_name)
        if value is not None:
            document[alias] = _to_json(value)
    return document


def _safe_decode(cls: Type[T], document: Optional[Mapping[str, Any]]) -> Optional[T]:
    if document is None:
        return None
    try:
        return _decode(cls, document)
    except (MappingError, TypeError) as e:
        logger.warning(f"Error mapping document to {cls.__name__}: {e}")
        return None


def product_from_document(document: Optional[Mapping[str, Any]]) -> Optional[Product]:
    return _safe_decode(Product, document)


def apparel_product_from_document(document: Optional[Mapping[str, Any]]) -> Optional[ApparelProduct]:
    return _safe_decode(ApparelProduct, document)


def product_to_document(product: Optional[Product]) -> Optional[Dict[str, Any]]:
    """Produce a search document for a product (``None`` for ``None``)."""
    if product is None:
        return None
    return _encode(product)


def apparel_product_to_document(product: Optional[ApparelProduct]) -> Optional[Dict[str, Any]]:
    """Like :func:`product_to_document`, adding ``title`` and ``product_id``."""
    if product is None:
        return None
    return _encode(product)


def products_from_documents(documents: Iterable[Mapping[str, Any]]) -> List[Product]:
    """Map documents, dropping the ones that fail."""
    return [p for p in (product_from_document(d) for d in documents) if p is not None]


def apparel_products_from_documents(documents: Iterable[Mapping[str, Any]]) -> List[ApparelProduct]:
    return [p for p in (apparel_product_from_document(d) for d in documents) if p is not None]


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def apparel_from_product(product: Optional[Product]) -> Optional[ApparelProduct]:
    """View a generic product as apparel.

    Generic feeds keep color, size, material, rating and review text in
    custom attributes; they are lifted into the apparel slots here. A
    non-numeric rating is left out.
    """
    if product is None:
        return None

    shared = {
        f.name: getattr(product, f.name)
        for f in dataclasses.fields(Product)
        if f.name != "schema_type"
    }
    shared["custom_attributes"] = dict(product.custom_attributes)
    apparel = ApparelProduct(**shared)

    apparel.color = _optional_str(product.get_custom_attribute("color"))
    apparel.size = _optional_str(product.get_custom_attribute("size"))
    apparel.material = _optional_str(product.get_custom_attribute("material"))
    apparel.review_text = _optional_str(product.get_custom_attribute("review_text"))

    rating = product.get_custom_attribute("rating")
    if isinstance(rating, (int, float)) and not isinstance(rating, bool):
        apparel.rating = float(rating)

    return apparel
