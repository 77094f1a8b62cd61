"""Yelp search result extraction rules."""

from listings.vendors.base import ExtractionStrategy, encode_component

BASE_URL = "https://www.yelp.com"


def build_search_url(search: str, location: str) -> str:
    return f"{BASE_URL}/search?find_desc={encode_component(search)}&find_loc={encode_component(location)}"


# Yelp renders obfuscated class names such as "businessName__09f24__EYSZE";
# substring matches survive most hash rotations.
STRATEGY = ExtractionStrategy(
    source="yelp.com",
    base_url=BASE_URL,
    build_url=build_search_url,
    listing_selector='[class*="businessName"], [class*="container_"], .businessName__09f24__EYSZE',
    name_selector="a, h3, h4",
    link_selector="a",
    address_selector='[class*="address"], [class*="location"]',
    rating_selector='[class*="rating"], [class*="star"]',
    card_selector='[class*="container"], [class*="card"]',
)
