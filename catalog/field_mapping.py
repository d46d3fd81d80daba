"""Column-to-field mapping tables for product feeds."""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple

__all__ = [
    "FieldMapping",
    "PRODUCT_FEED_MAPPING",
]

# Preset for the product_feed.csv export. Order matters: when two columns
# target the same field, the later entry wins (sku_name over product_name,
# sku_description over category_description).
PRODUCT_FEED_MAPPING: List[Tuple[str, str]] = [
    ("product_id", "id"),
    ("product_name", "name"),
    ("brand", "brand"),
    ("category_name", "category"),
    ("category_description", "description"),
    ("sku_id", "sku"),
    ("sku_name", "name"),
    ("sku_image", "image"),
    ("sku_description", "description"),
    ("color", "color"),  # custom attribute
    ("aggregateRating", "rating"),  # custom attribute
    ("category_id", "categoryId"),  # custom attribute
]


class FieldMapping:
    """Ordered mapping from feed column name to product field name."""

    ENTRY_SEPARATOR = ","
    PAIR_SEPARATOR = ":"

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def product_feed(cls) -> "FieldMapping":
        """Preset mapping for the product_feed.csv layout."""
        return cls(dict(PRODUCT_FEED_MAPPING))

    # The default mapping is the product feed layout
    default = product_feed

    @classmethod
    def from_dict(cls, mapping: Mapping[str, str]) -> "FieldMapping":
        return cls(mapping)

    @classmethod
    def parse(cls, config: Optional[str]) -> "FieldMapping":
        """Parse the compact ``column1:field1,column2:field2`` format.

        Entries that do not contain exactly one ``:`` or that name no
        target field are skipped.

        Args:
            config: Mapping string, may be None or blank

        Returns:
            A new FieldMapping (empty for blank input)
        """
        entries: Dict[str, str] = {}
        if not config or not config.strip():
            return cls(entries)

        for pair in config.split(cls.ENTRY_SEPARATOR):
            parts = pair.split(cls.PAIR_SEPARATOR)
            if len(parts) != 2:
                continue
            column, target = (part.strip() for part in parts)
            if not target:
                continue
            entries[column] = target
        return cls(entries)

    def get(self, column: str) -> Optional[str]:
        return self._entries.get(column)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def to_config_string(self) -> str:
        """Render back to the compact string format."""
        return self.ENTRY_SEPARATOR.join(
            f"{column}{self.PAIR_SEPARATOR}{target}" for column, target in self._entries.items()
        )

    def __contains__(self, column: object) -> bool:
        return column in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldMapping):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"FieldMapping({self._entries!r})"
