"""Core data models shared by the listings extraction pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict


def utc_timestamp() -> str:
    """Return the current UTC instant as an ISO-8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class ListingRecord:
    """One business listing, either scraped live or synthesized as a fallback."""

    name: str
    address: str
    rating: float
    link: str
    source: str
    type: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
