"""Command-line interface for feed parsing and query previews."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

__all__ = ["main", "parse_args", "build_request_from_args"]

from catalog.documents import product_to_document
from catalog.errors import StreamError
from catalog.field_mapping import FieldMapping
from catalog.ingest import IngestReport, ingest_csv
from catalog.logging_config import setup_logging
from catalog.query_builder import ApparelSearchRequest, build_query


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parse product feeds and preview search queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Parse a feed with the product feed preset and print a summary
  python -m catalog.cli --csv data/product_feed.csv

  # Parse with a custom mapping and export products as JSON
  python -m catalog.cli --csv data/feed.csv --mapping "id:id,title:name,cost:price" --export-json out.json

  # Show the query that would be sent for an apparel search
  python -m catalog.cli --build-query --search "summer t-shirt" --brand Nike --max-price 50
        """,
    )

    # Feed parsing
    parser.add_argument("--csv", metavar="PATH", help="Feed file to parse")
    parser.add_argument(
        "--mapping",
        metavar="SPEC",
        help="Column mapping as 'column:field,column:field' (default: product feed preset)",
    )
    parser.add_argument("--export-json", metavar="PATH", help="Write parsed products to a JSON file")
    parser.add_argument("--show-mapping", action="store_true", help="Print the active mapping and exit")

    # Query preview
    parser.add_argument("--build-query", action="store_true", help="Print the assembled search query")
    parser.add_argument("--search", help="Search text (default: *)")
    parser.add_argument("--brand", help="Brand filter")
    parser.add_argument("--color", help="Color filter")
    parser.add_argument("--size", help="Size filter")
    parser.add_argument("--material", help="Material filter")
    parser.add_argument("--min-price", type=float, help="Minimum price")
    parser.add_argument("--max-price", type=float, help="Maximum price")
    parser.add_argument("--min-rating", type=float, help="Minimum rating")
    parser.add_argument(
        "--facet",
        action="append",
        metavar="FACET",
        help="Facet expression, repeatable (default: apparel facet set)",
    )
    parser.add_argument("--top", type=int, default=10, help="Number of results (default: 10)")
    parser.add_argument("--skip", type=int, default=0, help="Results to skip (default: 0)")
    parser.add_argument("--safe-filter", action="store_true", help="Escape quotes in filter values")

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser.parse_args(argv)


def build_request_from_args(args: argparse.Namespace) -> ApparelSearchRequest:
    request = ApparelSearchRequest.simple(args.search or "", top=args.top)
    if args.facet:
        request.facets = list(args.facet)
    request.skip = args.skip
    request.brand_filter = args.brand
    request.color_filter = args.color
    request.size_filter = args.size
    request.material_filter = args.material
    request.min_price = args.min_price
    request.max_price = args.max_price
    request.min_rating = args.min_rating
    return request


def _print_report(report: IngestReport) -> None:
    print(f"Parsed {report.total_products} products from {report.lines_read} lines")
    if report.skipped_rows:
        print(f"Skipped {len(report.skipped_rows)} rows:")
        for row in report.skipped_rows:
            print(f"  line {row.line_number}: {row.reason}")
    if report.field_errors:
        print(f"{len(report.field_errors)} field values could not be converted:")
        for err in report.field_errors:
            print(f"  line {err.line_number}: {err.field}={err.value!r} ({err.reason})")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING, log_to_file=False)

    mapping = FieldMapping.parse(args.mapping) if args.mapping else FieldMapping.product_feed()

    if args.show_mapping:
        for column, target in mapping.items():
            print(f"{column} -> {target}")
        return 0

    if args.build_query:
        query = build_query(build_request_from_args(args), safe=args.safe_filter)
        print(json.dumps(query.to_dict(), indent=2))
        return 0

    if not args.csv:
        print("Nothing to do: pass --csv, --build-query or --show-mapping", file=sys.stderr)
        return 2

    try:
        with open(args.csv, "rb") as f:
            report = ingest_csv(f, mapping)
    except (StreamError, OSError) as e:
        print(f"Error reading {args.csv}: {e}", file=sys.stderr)
        return 1

    _print_report(report)

    if args.export_json:
        out_path = Path(args.export_json)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "products": [product_to_document(p) for p in report.products],
            **report.summary(),
        }
        out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Exported {report.total_products} products to {out_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
