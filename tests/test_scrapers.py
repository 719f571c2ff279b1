import httpx
import pytest

from leaseiq.adapters.clients.firecrawl import FirecrawlClient
from leaseiq.adapters.scrapers.extraction import ExtractionScraper, fallback_source_id
from leaseiq.adapters.scrapers.registry import SOURCE_REGISTRY, enabled_sources, get_spec
from leaseiq.domain.types import ListingSource, ScrapeConfig

from conftest import FakeExtraction


def test_registry_covers_every_source_and_disables_blocked_ones():
    assert set(SOURCE_REGISTRY) == set(ListingSource)
    enabled = enabled_sources()
    assert len(enabled) == 13
    assert ListingSource.craigslist not in enabled
    assert ListingSource.facebook not in enabled


def test_search_url_building():
    se = get_spec(ListingSource.streeteasy)
    assert se.build_search_url(ScrapeConfig()) == "https://streeteasy.com/for-rent/nyc"
    assert (
        se.build_search_url(ScrapeConfig(location="brooklyn", min_price=2000, max_price=3000, bedrooms=2))
        == "https://streeteasy.com/for-rent/brooklyn?price_min=2000&price_max=3000&beds=2"
    )

    apts = get_spec("apartments_com")
    assert apts.build_search_url(ScrapeConfig(max_price=4000)) == "https://www.apartments.com/new-york-ny/?max-price=4000"

    assert get_spec(ListingSource.trulia).build_search_url(ScrapeConfig(url="https://override.test/x")) == (
        "https://override.test/x"
    )


def test_unknown_source_raises_key_error():
    with pytest.raises(KeyError):
        get_spec("myspace")


def test_fallback_source_id_slug():
    assert fallback_source_id({"address": "12 Oak  Ln, Queens", "price": 1900}) == "12-oak-ln,-queens-1900"
    assert fallback_source_id({"address": "12 Oak Ln"}) == "12-oak-ln-"


async def test_scrape_filters_and_fills_fallbacks():
    fake = FakeExtraction(
        {
            "streeteasy.com": [
                {"listingId": "a1", "address": "1 A St, New York, NY 10001", "price": 2000, "listingUrl": "https://se/a1"},
                {"address": "2 B St, New York, NY 10002", "price": 2100},
                {"description": "no address, no id"},
                {"listingId": "c3"},
            ]
        }
    )
    scraper = ExtractionScraper.for_source(ListingSource.streeteasy, fake)
    raws = await scraper.scrape(ScrapeConfig())

    assert [r.source_id for r in raws] == ["a1", "2-b-st,-new-york,-ny-10002-2100", "c3"]
    assert raws[0].source_url == "https://se/a1"
    assert raws[1].source_url == "https://streeteasy.com/for-rent/nyc"
    assert all(r.source is ListingSource.streeteasy for r in raws)


async def test_scrape_respects_max_listings():
    fake = FakeExtraction({"zillow.com": [{"listingId": str(i), "address": f"{i} X St"} for i in range(10)]})
    raws = await ExtractionScraper.for_source("zillow", fake).scrape(ScrapeConfig(max_listings=3))
    assert len(raws) == 3


async def test_failed_extraction_yields_nothing_unless_asked_to_raise():
    fake = FakeExtraction({"zillow.com": httpx.ConnectError("boom")})
    scraper = ExtractionScraper.for_source("zillow", fake)

    assert await scraper.scrape(ScrapeConfig()) == []
    with pytest.raises(httpx.ConnectError):
        await scraper.scrape(ScrapeConfig(), raise_errors=True)


async def test_firecrawl_client_request_and_payload_shapes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.read()
        return httpx.Response(200, json={"success": True, "data": {"json": {"listings": [{"listingId": "1"}, "junk"]}}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fc = FirecrawlClient(api_key="fc-test", base_url="https://fc.test/v1", client=client)
        out = await fc.extract_listings("https://streeteasy.com/for-rent/nyc", {"type": "object"})

    assert out == [{"listingId": "1"}]
    assert seen["url"] == "https://fc.test/v1/scrape"
    assert seen["auth"] == "Bearer fc-test"
    assert b'"formats":["json"]' in seen["body"].replace(b" ", b"")


async def test_firecrawl_client_accepts_extract_and_top_level_shapes():
    payloads = [
        {"success": True, "data": {"extract": {"listings": [{"listingId": "e"}]}}},
        {"listings": [{"listingId": "t"}]},
        {"success": True, "data": {"markdown": "# nothing"}},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payloads.pop(0))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fc = FirecrawlClient(api_key="k", base_url="https://fc.test/v1", client=client)
        assert await fc.extract_listings("u", {}) == [{"listingId": "e"}]
        assert await fc.extract_listings("u", {}) == [{"listingId": "t"}]
        assert await fc.extract_listings("u", {}) == []
