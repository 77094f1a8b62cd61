"""Concurrent fan-out over every listing source with a synthetic fallback."""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from listings.core.config import Settings, get_settings
from listings.etl.fallback import FallbackGenerator
from listings.models import ListingRecord
from listings.vendors import google_maps, yelp, yellowpages
from listings.vendors.base import ExtractionStrategy, SourceExtractor

logger = logging.getLogger(__name__)

# Declaration order doubles as merge priority.
DEFAULT_STRATEGIES: Sequence[ExtractionStrategy] = (
    yelp.STRATEGY,
    google_maps.STRATEGY,
    yellowpages.STRATEGY,
)


class Aggregator:
    """Run all extractors in parallel and merge their output in source order."""

    def __init__(self, extractors: Sequence[SourceExtractor], fallback: FallbackGenerator) -> None:
        self.extractors = list(extractors)
        self.fallback = fallback

    def aggregate(self, search: str, location: str, limit: int) -> List[ListingRecord]:
        if limit <= 0:
            return []

        logger.info("Scraping listings: %r in %r (limit=%d)", search, location, limit)
        try:
            merged = self._collect(search, location, limit)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Listing extraction failed, using fallback data: %s", exc)
            return self.fallback.generate(search, location, limit)

        if not merged:
            logger.warning("No live listings for %r in %r; using fallback data", search, location)
            return self.fallback.generate(search, location, limit)

        logger.info("Found %d live listings", len(merged))
        return merged[:limit]

    def _collect(self, search: str, location: str, limit: int) -> List[ListingRecord]:
        if not self.extractors:
            return []

        with ThreadPoolExecutor(
            max_workers=len(self.extractors), thread_name_prefix="listing-source"
        ) as executor:
            futures = [
                executor.submit(extractor.extract, search, location, limit) for extractor in self.extractors
            ]
            # result() in submission order keeps the merge independent of completion order
            batches = [future.result() for future in futures]

        merged: List[ListingRecord] = []
        for batch in batches:
            merged.extend(batch)
        return merged


def build_default_aggregator(
    settings: Optional[Settings] = None,
    *,
    rng: Optional[random.Random] = None,
) -> Aggregator:
    """Wire the Yelp, Google Maps and Yellow Pages extractors with the fallback generator."""
    settings = settings or get_settings()
    rng = rng or random.Random()
    # each extractor runs on its own thread, so each gets its own seeded generator
    extractors = [
        SourceExtractor(
            strategy,
            timeout=settings.scrape_timeout,
            rng=random.Random(rng.getrandbits(64)),
        )
        for strategy in DEFAULT_STRATEGIES
    ]
    return Aggregator(extractors, FallbackGenerator(rng=rng))
