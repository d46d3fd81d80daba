"""CSV feed ingestion: bytes in, Products out."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from catalog.csv_utils import REPLACEMENT_CHAR, FeedSource, iter_lines, tokenize_line
from catalog.errors import FieldError, RowError
from catalog.field_mapping import FieldMapping
from catalog.logging_config import get_logger, log_catalog_event
from catalog.materializer import materialize_row
from catalog.models import Product

__all__ = ["IngestReport", "ingest_csv", "parse_csv"]

logger = get_logger("ingest")


@dataclass
class IngestReport:
    """Products parsed from a feed plus everything that went wrong."""

    products: List[Product] = field(default_factory=list)
    skipped_rows: List[RowError] = field(default_factory=list)
    field_errors: List[FieldError] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    lines_read: int = 0
    # Lines that held bytes invalid in the feed encoding; they are still parsed
    undecodable_lines: List[int] = field(default_factory=list)

    @property
    def total_products(self) -> int:
        return len(self.products)

    def summary(self) -> Dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "skippedRows": [row.to_dict() for row in self.skipped_rows],
            "fieldErrors": [err.to_dict() for err in self.field_errors],
            "linesRead": self.lines_read,
            "undecodableLines": list(self.undecodable_lines),
        }


def _skip_row(report: IngestReport, row_error: RowError) -> None:
    report.skipped_rows.append(row_error)
    log_catalog_event(
        "row_skipped",
        {"message": f"Skipping line {row_error.line_number}: {row_error.reason}", **row_error.to_dict()},
        level=logging.WARNING,
        logger_name="ingest",
    )


def ingest_csv(
    source: FeedSource,
    mapping: Optional[FieldMapping] = None,
    now: Callable[[], datetime] = datetime.now,
) -> IngestReport:
    """Parse a delimited product feed.

    Blank lines are ignored everywhere. The first non-blank line is the
    header row. Data rows whose column count differs from the header are
    skipped and reported; so are rows that fail to materialize.

    Args:
        source: Binary stream, bytes or text stream with the feed
        mapping: Column-to-field mapping (default: product feed preset)
        now: Clock used for defaulted timestamps

    Returns:
        IngestReport with products in file order

    Raises:
        StreamError: If the source cannot be read
    """
    mapping = mapping if mapping is not None else FieldMapping.product_feed()
    report = IngestReport()
    headers: Optional[List[str]] = None

    for line_number, line in iter_lines(source):
        report.lines_read = line_number
        if not line.strip():
            continue

        if REPLACEMENT_CHAR in line:
            report.undecodable_lines.append(line_number)
            log_catalog_event(
                "undecodable_bytes",
                {"message": f"Line {line_number} has bytes that are not valid UTF-8", "line_number": line_number},
                level=logging.WARNING,
                logger_name="ingest",
            )

        if headers is None:
            headers = tokenize_line(line)
            report.headers = headers
            continue

        values = tokenize_line(line)
        if len(values) != len(headers):
            _skip_row(report, RowError(
                line_number=line_number,
                reason=f"has {len(values)} columns but expected {len(headers)}",
                observed_columns=len(values),
                expected_columns=len(headers),
            ))
            continue

        outcome = materialize_row(headers, values, mapping, now=now)
        for err in outcome.field_errors:
            err.line_number = line_number
            report.field_errors.append(err)

        if outcome.product is None:
            _skip_row(report, RowError(
                line_number=line_number,
                reason=f"could not map row: {outcome.error}",
            ))
            continue

        report.products.append(outcome.product)

    log_catalog_event(
        "csv_parsed",
        {
            "message": f"Parsed {report.total_products} products from {report.lines_read} lines",
            "products": report.total_products,
            "skipped_rows": len(report.skipped_rows),
            "field_errors": len(report.field_errors),
        },
        logger_name="ingest",
    )
    return report


def parse_csv(source: FeedSource, mapping: Optional[FieldMapping] = None) -> List[Product]:
    """Parse a feed and return only the products.

    Raises:
        StreamError: If the source cannot be read
    """
    return ingest_csv(source, mapping).products
