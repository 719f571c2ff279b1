# leaseiq/service_layer/deduplication.py
from __future__ import annotations

import logging
from enum import Enum

from ..domain.matching import is_fuzzy_match
from ..domain.types import Coordinates, NormalizedListing
from .storage import ListingStore

log = logging.getLogger(__name__)


class MatchTier(str, Enum):
    source_id = "source_id"
    address = "address"
    fuzzy = "fuzzy"


class DeduplicationEngine:
    """
    Decides insert vs merge. Tiers run in a fixed order, each more permissive
    than the last, and the first hit wins:

      1. same (source, source_id)
      2. same full address string
      3. same city/state/beds/baths bucket, address similarity >= 0.90 and
         price within 5% when both are known
    """

    def __init__(self, store: ListingStore) -> None:
        self.store = store

    async def find_match(self, listing: NormalizedListing) -> tuple[str, MatchTier] | None:
        hit = await self.store.find_by_source_id(listing.source, listing.source_id)
        if hit is not None:
            return hit.id, MatchTier.source_id

        hit = await self.store.find_by_address(listing.address.full_address)
        if hit is not None:
            return hit.id, MatchTier.address

        a = listing.address
        for cand in await self.store.fuzzy_candidates(a.city, a.state, listing.bedrooms, listing.bathrooms):
            if is_fuzzy_match(
                a.full_address,
                listing.price.amount,
                listing.bedrooms,
                listing.bathrooms,
                cand.full_address,
                cand.price_amount,
                cand.bedrooms,
                cand.bathrooms,
            ):
                return cand.id, MatchTier.fuzzy
        return None

    async def find_duplicate(self, listing: NormalizedListing) -> str | None:
        m = await self.find_match(listing)
        if m is None:
            return None
        log.debug("duplicate via %s: %s -> %s", m[1].value, listing.source_id, m[0])
        return m[0]

    async def merge_listing(
        self, listing_id: str, listing: NormalizedListing, coordinates: Coordinates | None = None
    ) -> bool:
        return await self.store.update_listing(listing_id, listing, coordinates)
