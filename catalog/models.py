"""Data models for catalog products."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Union

from catalog.config import SCHEMA_CONTEXT

__all__ = ["CustomValue", "Product", "ApparelProduct", "document_key"]

# Custom attributes hold scalars only
CustomValue = Union[str, int, float, bool, None]
_CUSTOM_VALUE_TYPES = (str, int, float, bool, type(None))


def _doc(key: str) -> Dict[str, str]:
    return {"document_key": key}


def document_key(f: Any) -> str:
    """Return the search document key for a dataclass field."""
    return f.metadata.get("document_key", f.name)


@dataclass
class Product:
    """A generic catalog product as stored in the search index.

    Fields without a fixed slot go into ``custom_attributes``, an ordered
    mapping of attribute name to a scalar value.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    sku: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[datetime] = field(default=None, metadata=_doc("createdAt"))
    updated_at: Optional[datetime] = field(default=None, metadata=_doc("updatedAt"))
    in_stock: bool = field(default=False, metadata=_doc("inStock"))
    stock_quantity: int = field(default=0, metadata=_doc("stockQuantity"))
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    specifications: Optional[List[str]] = None
    custom_attributes: Dict[str, CustomValue] = field(
        default_factory=dict, metadata=_doc("customAttributes")
    )

    # JSON-LD markers
    schema_context: str = field(default=SCHEMA_CONTEXT, metadata=_doc("@context"))
    schema_type: str = field(default="Product", metadata=_doc("@type"))

    # Extra document keys accepted when decoding: document key -> field name
    DOCUMENT_ALIASES: ClassVar[Dict[str, str]] = {}

    def add_custom_attribute(self, key: str, value: CustomValue) -> None:
        if not isinstance(value, _CUSTOM_VALUE_TYPES):
            raise TypeError(
                f"Custom attribute {key!r} must be a scalar, got {type(value).__name__}"
            )
        self.custom_attributes[key] = value

    def get_custom_attribute(self, key: str, default: CustomValue = None) -> CustomValue:
        return self.custom_attributes.get(key, default)

    def remove_custom_attribute(self, key: str) -> None:
        self.custom_attributes.pop(key, None)

    def has_custom_attribute(self, key: str) -> bool:
        return key in self.custom_attributes


@dataclass
class ApparelProduct(Product):
    """Apparel specialization of :class:`Product`.

    Title, brand, price and description live in the base slots, so the
    apparel view and the generic view always agree. ``title`` is the
    apparel name for ``name``.
    """

    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    rating: Optional[float] = None
    review_text: Optional[str] = field(default=None, metadata=_doc("review_text"))
    schema_type: str = field(default="ApparelProduct", metadata=_doc("@type"))

    DOCUMENT_ALIASES: ClassVar[Dict[str, str]] = {"title": "name", "product_id": "id"}

    @property
    def title(self) -> Optional[str]:
        return self.name

    @title.setter
    def title(self, value: Optional[str]) -> None:
        self.name = value

    def has_required_fields(self) -> bool:
        """Check that the fields needed for an apparel listing are present."""
        return bool(self.id and self.title and self.brand and self.price is not None)
