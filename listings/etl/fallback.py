"""Synthetic listing generator used when no source yields live records."""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from listings.etl.transform import MAX_NAME_LENGTH, clean_address, encode_component
from listings.models import ListingRecord, utc_timestamp

logger = logging.getLogger(__name__)

# (name, domain) pairs keyed by lower-cased search term
FALLBACK_CATALOG: Mapping[str, Tuple[Tuple[str, str], ...]] = {
    "pizza": (
        ("Domino's Pizza", "dominos.com"),
        ("Pizza Hut", "pizzahut.com"),
        ("Papa John's", "papajohns.com"),
        ("Little Caesars", "littlecaesars.com"),
        ("Local Pizzeria", "slice.com"),
    ),
    "coffee": (
        ("Starbucks", "starbucks.com"),
        ("Dunkin'", "dunkindonuts.com"),
        ("Local Coffee Shop", "yelp.com"),
        ("Coffee Bean", "coffeebean.com"),
        ("Cafe Express", "tripadvisor.com"),
    ),
    "hotel": (
        ("Marriott", "marriott.com"),
        ("Hilton", "hilton.com"),
        ("Hyatt", "hyatt.com"),
        ("Holiday Inn", "ihg.com"),
        ("Local Hotel", "booking.com"),
    ),
    "restaurant": (
        ("Local Restaurant", "opentable.com"),
        ("Fine Dining", "tripadvisor.com"),
        ("Family Restaurant", "yelp.com"),
        ("Bistro", "google.com/maps"),
        ("Eatery", "yellowpages.com"),
    ),
}

# (name template, domain) pairs for search terms missing from the catalog
GENERIC_TEMPLATES: Tuple[Tuple[str, str], ...] = (
    ("Best {term}", "yelp.com"),
    ("{term} House", "google.com/maps"),
    ("{location} {term}", "tripadvisor.com"),
    ("{term} Express", "yellowpages.com"),
    ("Premium {term}", "opentable.com"),
)

STREETS: Tuple[str, ...] = (
    "Main St",
    "Oak Ave",
    "Pine St",
    "Maple Dr",
    "Elm St",
    "Broadway",
    "5th Ave",
    "Park Ave",
)
STREET_NUMBERS: Tuple[str, ...] = ("123", "456", "789", "321", "654", "100", "200", "300")

MIN_RATING = 3.0
MAX_RATING = 5.0


def random_rating(rng: random.Random) -> float:
    """Uniform rating in [3.0, 5.0] rounded to one decimal."""
    return round(rng.uniform(MIN_RATING, MAX_RATING), 1)


def random_address(
    location: str,
    rng: random.Random,
    streets: Sequence[str] = STREETS,
    numbers: Sequence[str] = STREET_NUMBERS,
) -> str:
    street = rng.choice(streets)
    number = rng.choice(numbers)
    return clean_address(f"{number} {street}, {location}")


class FallbackGenerator:
    """Produce plausible, schema-valid listings for a search term and location.

    The structure of the output is deterministic (names, domains, links); only
    ratings and street addresses are drawn from the injected random source.
    """

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        catalog: Mapping[str, Sequence[Tuple[str, str]]] = FALLBACK_CATALOG,
        templates: Sequence[Tuple[str, str]] = GENERIC_TEMPLATES,
        streets: Sequence[str] = STREETS,
        numbers: Sequence[str] = STREET_NUMBERS,
    ) -> None:
        self.rng = rng or random.Random()
        self.catalog: Dict[str, Sequence[Tuple[str, str]]] = {
            key.lower(): entries for key, entries in catalog.items()
        }
        self.templates = templates
        self.streets = streets
        self.numbers = numbers

    def candidates(self, search: str, location: str) -> List[Tuple[str, str]]:
        """Return the (name, domain) pairs used for ``search``, in output order."""
        known = self.catalog.get(search.strip().lower())
        if known is not None:
            return list(known)
        return [
            (template.format(term=search, location=location), domain)
            for template, domain in self.templates
        ]

    def generate(self, search: str, location: str, limit: int) -> List[ListingRecord]:
        if limit <= 0:
            return []

        candidates = self.candidates(search, location)[:limit]
        query = encode_component(f"{search} {location}")
        logger.info(
            "Generating %d fallback listings for search=%r location=%r", len(candidates), search, location
        )

        records: List[ListingRecord] = []
        for name, domain in candidates:
            records.append(
                ListingRecord(
                    name=name[:MAX_NAME_LENGTH].strip(),
                    address=random_address(location, self.rng, self.streets, self.numbers),
                    rating=random_rating(self.rng),
                    link=f"https://{domain}/search?q={query}",
                    source=domain,
                    type=search,
                    timestamp=utc_timestamp(),
                )
            )
        return records
