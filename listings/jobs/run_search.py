"""CLI job that runs one listings search and prints the records as JSON."""

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from listings.core.aggregator import build_default_aggregator
from listings.core.config import get_settings

logger = logging.getLogger(__name__)


def run_search_job(*, search: str, location: str, limit: int) -> list:
    search = search.strip()
    location = location.strip()
    if not search or not location:
        raise ValueError("Both search and location are required")

    aggregator = build_default_aggregator(get_settings())
    records = aggregator.aggregate(search, location, limit)
    logger.info("Completed search: %d listings for %r in %r", len(records), search, location)
    return [record.to_dict() for record in records]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape business listings from Yelp, Google Maps and Yellow Pages")
    parser.add_argument("--search", dest="search", required=True, help="Business type to search, e.g. 'pizza'")
    parser.add_argument("--location", dest="location", required=True, help="City or area, e.g. 'Boston'")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=get_settings().default_limit,
        help="Maximum number of listings to return (1-100)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 1 <= args.limit <= 100:
        parser.error("--limit must be between 1 and 100")

    try:
        data = run_search_job(search=args.search, location=args.location, limit=args.limit)
    except ValueError as exc:
        parser.error(str(exc))

    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
