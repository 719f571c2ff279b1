# leaseiq/adapters/scrapers/registry.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from ...domain.types import ListingSource, ScrapeConfig
from .base import LISTING_SCHEMA


@dataclass(frozen=True)
class SourceSpec:
    """
    Everything that differs between sources: where to search and how the site
    spells its filter query params. `query_params` maps ScrapeConfig field names
    (min_price, max_price, bedrooms, page) to the site's parameter names.
    """
    source: ListingSource
    url_template: str
    default_location: str = ""
    query_params: dict[str, str] = field(default_factory=dict)
    schema: dict[str, Any] = field(default_factory=lambda: LISTING_SCHEMA)
    enabled: bool = True

    def build_search_url(self, config: ScrapeConfig) -> str:
        if config.url:
            return config.url

        base = self.url_template.format(location=config.location or self.default_location)
        params: list[tuple[str, Any]] = []
        for field_name, param_name in self.query_params.items():
            value = getattr(config, field_name, None)
            if value:
                params.append((param_name, value))
        return f"{base}?{urlencode(params)}" if params else base


_SPECS: tuple[SourceSpec, ...] = (
    SourceSpec(
        ListingSource.streeteasy,
        "https://streeteasy.com/for-rent/{location}",
        default_location="nyc",
        query_params={"min_price": "price_min", "max_price": "price_max", "bedrooms": "beds", "page": "page"},
    ),
    SourceSpec(
        ListingSource.zillow,
        "https://www.zillow.com/{location}/rentals/",
        default_location="new-york-ny",
    ),
    SourceSpec(
        ListingSource.apartments_com,
        "https://www.apartments.com/{location}/",
        default_location="new-york-ny",
        query_params={"min_price": "min-price", "max_price": "max-price", "bedrooms": "beds"},
    ),
    SourceSpec(ListingSource.trulia, "https://www.trulia.com/for_rent/New_York,NY/"),
    SourceSpec(ListingSource.realtor, "https://www.realtor.com/apartments/New-York_NY"),
    SourceSpec(
        ListingSource.zumper,
        "https://www.zumper.com/apartments-for-rent/{location}",
        default_location="new-york-ny",
    ),
    SourceSpec(ListingSource.renthop, "https://www.renthop.com/search/{location}", default_location="nyc"),
    SourceSpec(ListingSource.rent_com, "https://www.rent.com/new-york/apartments"),
    SourceSpec(
        ListingSource.hotpads,
        "https://hotpads.com/{location}/apartments-for-rent",
        default_location="new-york-ny",
    ),
    SourceSpec(ListingSource.apartment_guide, "https://www.apartmentguide.com/apartments/New-York/New-York/"),
    SourceSpec(ListingSource.rentals_com, "https://www.rentals.com/New-York/New-York/"),
    SourceSpec(ListingSource.apartment_list, "https://www.apartmentlist.com/ny/new-york"),
    SourceSpec(
        ListingSource.padmapper,
        "https://www.padmapper.com/apartments/{location}",
        default_location="new-york-ny",
    ),
    # Blocked by the extraction provider; kept so they can be re-enabled.
    SourceSpec(
        ListingSource.craigslist,
        "https://newyork.craigslist.org/{location}",
        default_location="search/aap",
        query_params={"min_price": "min_price", "max_price": "max_price", "bedrooms": "bedrooms"},
        enabled=False,
    ),
    SourceSpec(
        ListingSource.facebook,
        "https://www.facebook.com/marketplace/{location}/propertyrentals",
        default_location="newyork",
        query_params={"min_price": "minPrice", "max_price": "maxPrice", "bedrooms": "bedrooms"},
        enabled=False,
    ),
)

SOURCE_REGISTRY: dict[ListingSource, SourceSpec] = {s.source: s for s in _SPECS}


def get_spec(source: ListingSource | str) -> SourceSpec:
    try:
        return SOURCE_REGISTRY[ListingSource(source)]
    except (KeyError, ValueError):
        raise KeyError(f"Unknown listing source: {source}") from None


def enabled_sources() -> list[ListingSource]:
    return [s.source for s in _SPECS if s.enabled]
