"""Exception types and per-record diagnostics."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

__all__ = [
    "CatalogError",
    "StreamError",
    "BackendUnavailable",
    "MappingError",
    "FieldError",
    "RowError",
]


class CatalogError(Exception):
    """Base class for catalog errors."""
    pass


class StreamError(CatalogError, OSError):
    """Raised when an uploaded feed cannot be read at all."""
    pass


class BackendUnavailable(CatalogError):
    """Raised when the search backend is not configured or unreachable."""
    pass


class MappingError(CatalogError):
    """Raised when a document cannot be converted to an entity."""
    pass


@dataclass
class FieldError:
    """A single field that could not be coerced; the row is still kept."""

    field: str
    value: str
    reason: str
    line_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RowError:
    """A row that was skipped during ingestion."""

    line_number: int
    reason: str
    observed_columns: Optional[int] = None
    expected_columns: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
