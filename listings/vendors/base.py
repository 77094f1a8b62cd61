"""HTML listing extraction shared by every scraped source."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Set
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag

from listings.etl.fallback import MAX_RATING, MIN_RATING, random_address, random_rating
from listings.etl.transform import clean_address, clean_business_name, encode_component, extract_rating
from listings.models import ListingRecord, utc_timestamp

logger = logging.getLogger(__name__)

_SESSION = requests.Session()
REQUEST_TIMEOUT = 15
BROWSER_HEADERS: Mapping[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}


@dataclass(frozen=True)
class ExtractionStrategy:
    """Selector rules describing how one listing site lays out its search results.

    ``card_selector`` widens the scope used for address and rating lookups to the
    closest enclosing card; without it those fields are read from the listing node.
    Leaving ``rating_selector`` empty means the site exposes no usable rating.
    """

    source: str
    base_url: str
    build_url: Callable[[str, str], str]
    listing_selector: str
    name_selector: str
    link_selector: str
    address_selector: str
    rating_selector: Optional[str] = None
    card_selector: Optional[str] = None


class SourceExtractor:
    """Fetch one search page and turn its listing nodes into ListingRecords."""

    def __init__(
        self,
        strategy: ExtractionStrategy,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[Any] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.strategy = strategy
        self.headers: Dict[str, str] = dict(headers if headers is not None else BROWSER_HEADERS)
        self.timeout = timeout
        self.session = session
        self.rng = rng or random.Random()

    @property
    def source(self) -> str:
        return self.strategy.source

    def extract(self, search: str, location: str, limit: int) -> List[ListingRecord]:
        """Return up to ``limit`` listings; any fetch or parse failure yields ``[]``."""
        if limit <= 0:
            return []

        try:
            url = self.strategy.build_url(search, location)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s scraping failed building the search URL: %s", self.source, exc)
            return []
        logger.info("Searching %s: %r in %r", self.source, search, location)

        soup = self._fetch(url)
        if soup is None:
            return []

        try:
            nodes = soup.select(self.strategy.listing_selector)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s scraping failed while parsing %s: %s", self.source, url, exc)
            return []

        records: List[ListingRecord] = []
        for node in nodes:
            if len(records) >= limit:
                break
            try:
                record = self._extract_record(node, search, location)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Skipping malformed %s listing: %s", self.source, exc)
                continue
            if record is not None:
                records.append(record)

        logger.info("Extracted %d listings from %s", len(records), self.source)
        return records

    def _fetch(self, url: str) -> Optional[BeautifulSoup]:
        http = self.session if self.session is not None else _SESSION
        try:
            response = http.get(url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("%s scraping failed: %s", self.source, exc)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning("%s scraping failed: HTTP %s for %s", self.source, response.status_code, url)
            return None

        try:
            return BeautifulSoup(response.text, "html.parser")
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s returned unparsable HTML: %s", self.source, exc)
            return None

    def _extract_record(self, node: Tag, search: str, location: str) -> Optional[ListingRecord]:
        strategy = self.strategy

        name_node = node.select_one(strategy.name_selector)
        name = name_node.get_text(" ", strip=True) if name_node else ""
        link_node = node.select_one(strategy.link_selector)
        href = (link_node.get("href") or "").strip() if link_node else ""
        if not name or not href:
            return None

        link = self._absolute_link(href)
        if link is None:
            return None

        name = clean_business_name(name)
        if not name:
            return None

        scope = node
        if strategy.card_selector:
            scope = node.css.closest(strategy.card_selector) or node

        raw_address = _joined_text(scope, strategy.address_selector) or f"{location} area"
        address = clean_address(raw_address) or random_address(location, self.rng)

        return ListingRecord(
            name=name,
            address=address,
            rating=self._rating(scope),
            link=link,
            source=strategy.source,
            type=search,
            timestamp=utc_timestamp(),
        )

    def _absolute_link(self, href: str) -> Optional[str]:
        link = urljoin(self.strategy.base_url, href)
        parsed = urlparse(link)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            return None
        return link

    def _rating(self, scope: Tag) -> float:
        """Parse the listing's rating, synthesizing one when none is usable."""
        if self.strategy.rating_selector:
            matches = scope.select(self.strategy.rating_selector)
            if matches:
                label = matches[0].get("aria-label")
                text = label if label else " ".join(m.get_text(" ", strip=True) for m in matches)
                rating = extract_rating(text)
                if rating is not None and MIN_RATING <= rating <= MAX_RATING:
                    return rating
        return random_rating(self.rng)


def _joined_text(scope: Tag, selector: str) -> str:
    """Join the text of matching nodes, skipping matches nested in an earlier match."""
    taken: Set[int] = set()
    parts: List[str] = []
    for node in scope.select(selector):
        if any(id(parent) in taken for parent in node.parents):
            continue
        taken.add(id(node))
        parts.append(node.get_text(" ", strip=True))
    return " ".join(part for part in parts if part)
