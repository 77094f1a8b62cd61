"""Google Maps search result extraction rules."""

from listings.vendors.base import ExtractionStrategy, encode_component

BASE_URL = "https://www.google.com"


def build_search_url(search: str, location: str) -> str:
    return f"{BASE_URL}/maps/search/{encode_component(f'{search} {location}')}"


STRATEGY = ExtractionStrategy(
    source="google.com/maps",
    base_url=BASE_URL,
    build_url=build_search_url,
    listing_selector='[class*="section-result"], [class*="place"], .bfdHYd',
    name_selector='[class*="title"], [class*="name"], h3',
    link_selector="a",
    address_selector='[class*="address"], [class*="location"]',
    rating_selector='[class*="rating"]',
)
