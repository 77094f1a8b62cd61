"""Yellow Pages search result extraction rules."""

from listings.vendors.base import ExtractionStrategy, encode_component

BASE_URL = "https://www.yellowpages.com"


def build_search_url(search: str, location: str) -> str:
    return (
        f"{BASE_URL}/search?search_terms={encode_component(search)}"
        f"&geo_location_terms={encode_component(location)}"
    )


# Result cards carry no machine-readable rating, so ratings are always synthesized.
STRATEGY = ExtractionStrategy(
    source="yellowpages.com",
    base_url=BASE_URL,
    build_url=build_search_url,
    listing_selector='.result, .business-result, [class*="listing"]',
    name_selector=".business-name, h2, h3 a",
    link_selector="a.business-name, h2 a, h3 a",
    address_selector=".adr, .address, .street-address",
)
