import random
import threading
from urllib.parse import urlparse

import pytest
import requests

from listings.core import aggregator
from listings.core.aggregator import Aggregator, build_default_aggregator
from listings.core.config import Settings
from listings.etl.fallback import FallbackGenerator
from listings.models import ListingRecord
from listings.vendors import base


def make_record(name, source):
    return ListingRecord(
        name=name,
        address="1 Main St, Boston",
        rating=4.0,
        link=f"https://{source}/biz/{name.lower()}",
        source=source,
        type="pizza",
        timestamp="2024-01-01T00:00:00.000Z",
    )


class FakeExtractor:
    def __init__(self, records=None, error=None, wait_for=None, done=None):
        self.records = records or []
        self.error = error
        self.wait_for = wait_for
        self.done = done
        self.calls = []

    def extract(self, search, location, limit):
        self.calls.append((search, location, limit))
        if self.wait_for is not None:
            self.wait_for.wait(timeout=2)
        try:
            if self.error is not None:
                raise self.error
            return list(self.records)
        finally:
            if self.done is not None:
                self.done.set()


def without_timestamp(records):
    return [{k: v for k, v in r.to_dict().items() if k != "timestamp"} for r in records]


def test_merge_follows_source_order_not_completion_order():
    c_finished = threading.Event()
    source_a = FakeExtractor([make_record("A1", "a.com"), make_record("A2", "a.com")], wait_for=c_finished)
    source_b = FakeExtractor([make_record("B1", "b.com")])
    source_c = FakeExtractor([make_record("C1", "c.com")], done=c_finished)

    records = Aggregator([source_a, source_b, source_c], FallbackGenerator()).aggregate("pizza", "Boston", 10)

    assert [r.name for r in records] == ["A1", "A2", "B1", "C1"]


def test_each_extractor_receives_full_limit_and_merge_truncates():
    sources = [FakeExtractor([make_record(f"{s}{i}", f"{s}.com") for i in range(3)]) for s in "ABC"]

    records = Aggregator(sources, FallbackGenerator()).aggregate("pizza", "Boston", 4)

    assert [r.name for r in records] == ["A0", "A1", "A2", "B0"]
    assert all(source.calls == [("pizza", "Boston", 4)] for source in sources)


def test_all_sources_empty_returns_fallback_output():
    sources = [FakeExtractor(), FakeExtractor(), FakeExtractor()]
    records = Aggregator(sources, FallbackGenerator(rng=random.Random(9))).aggregate("pizza", "Boston", 3)

    expected = FallbackGenerator(rng=random.Random(9)).generate("pizza", "Boston", 3)
    assert without_timestamp(records) == without_timestamp(expected)


def test_live_results_suppress_fallback_padding():
    live = [make_record("Live1", "yelp.com"), make_record("Live2", "yelp.com")]
    sources = [FakeExtractor(live), FakeExtractor(), FakeExtractor()]

    records = Aggregator(sources, FallbackGenerator()).aggregate("pizza", "Boston", 10)

    assert records == live


def test_unexpected_extractor_exception_degrades_to_fallback(caplog):
    sources = [
        FakeExtractor([make_record("A1", "a.com")]),
        FakeExtractor(error=RuntimeError("boom")),
        FakeExtractor(),
    ]

    with caplog.at_level("ERROR"):
        records = Aggregator(sources, FallbackGenerator()).aggregate("xylophone repair", "Reno", 5)

    assert [r.name for r in records] == [
        "Best xylophone repair",
        "xylophone repair House",
        "Reno xylophone repair",
        "xylophone repair Express",
        "Premium xylophone repair",
    ]
    assert "using fallback data" in " ".join(caplog.messages)


def test_zero_limit_returns_empty_without_scraping():
    source = FakeExtractor([make_record("A1", "a.com")])
    assert Aggregator([source], FallbackGenerator()).aggregate("pizza", "Boston", 0) == []
    assert source.calls == []


@pytest.fixture
def offline(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("network disabled")

    monkeypatch.setattr(base._SESSION, "get", fail)


def test_default_aggregator_wires_sources_in_priority_order():
    agg = build_default_aggregator(Settings(api_key="k", scrape_timeout=3), rng=random.Random(1))

    assert [e.source for e in agg.extractors] == ["yelp.com", "google.com/maps", "yellowpages.com"]
    assert all(e.timeout == 3 for e in agg.extractors)
    assert aggregator.DEFAULT_STRATEGIES[0].source == "yelp.com"


def test_pizza_boston_when_every_source_fails(offline):
    agg = build_default_aggregator(Settings(api_key="k"), rng=random.Random(1))
    records = agg.aggregate("pizza", "Boston", 3)

    assert [r.name for r in records] == ["Domino's Pizza", "Pizza Hut", "Papa John's"]
    for record in records:
        assert record.address.endswith(", Boston")
        assert urlparse(record.link).netloc == record.source


@pytest.mark.parametrize(
    "search, location, limit",
    [("pizza", "Boston", 1), ("coffee", "Seattle", 10), ("bike repair", "Denver", 100)],
)
def test_result_invariants_hold_offline(offline, search, location, limit):
    records = build_default_aggregator(Settings(api_key="k")).aggregate(search, location, limit)

    assert 0 < len(records) <= limit
    for record in records:
        assert all(value for value in record.to_dict().values())
        assert 3.0 <= record.rating <= 5.0
        assert len(record.name) <= 50
        parsed = urlparse(record.link)
        assert parsed.scheme in {"http", "https"} and parsed.netloc


def test_lone_surrogate_in_search_still_yields_fallback(offline):
    records = build_default_aggregator(Settings(api_key="k"), rng=random.Random(1)).aggregate(
        "pizza\ud800", "Boston", 3
    )

    assert len(records) == 3
    assert all(r.type == "pizza\ud800" for r in records)
    assert all("%ED%A0%80" in r.link for r in records)
