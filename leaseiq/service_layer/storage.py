# leaseiq/service_layer/storage.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..adapters.repos.listings import listing_row_from, merge_into
from ..domain.types import Coordinates, ListingSource, NormalizedListing
from ..models import Listing
from .unit_of_work import SessionFactory, SqlAlchemyUnitOfWork

log = logging.getLogger(__name__)


class ListingStore:
    """
    Transactional persistence for canonical listings. Every write runs in its
    own unit of work so a listing row and its source rows land together or not
    at all.
    """

    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        self.session_factory = session_factory

    def uow(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)

    async def insert_listing(self, listing: NormalizedListing, coordinates: Coordinates | None = None) -> str:
        now = datetime.utcnow()
        async with self.uow() as uow:
            row = listing_row_from(listing, coordinates, now)
            uow.listings.add(row)
            await uow.session.flush()
            listing_id = row.id
        log.debug("inserted listing %s (%s)", listing_id, listing.address.full_address)
        return listing_id

    async def update_listing(
        self, listing_id: str, listing: NormalizedListing, coordinates: Coordinates | None = None
    ) -> bool:
        """Merge into an existing row. Returns False when the row is gone."""
        now = datetime.utcnow()
        async with self.uow() as uow:
            row = await uow.listings.get(listing_id)
            if row is None:
                log.warning("merge target %s not found", listing_id)
                return False
            merge_into(row, listing, coordinates, now)
        return True

    async def get_listing(self, listing_id: str) -> Listing | None:
        async with self.uow() as uow:
            return await uow.listings.get(listing_id)

    async def find_by_source_id(self, source: ListingSource, source_id: str) -> Listing | None:
        async with self.uow() as uow:
            return await uow.listings.find_by_source_id(source, source_id)

    async def find_by_address(self, full_address: str) -> Listing | None:
        async with self.uow() as uow:
            return await uow.listings.find_by_address(full_address)

    async def fuzzy_candidates(
        self, city: str, state: str, bedrooms: float | None, bathrooms: float | None
    ) -> list[Listing]:
        async with self.uow() as uow:
            return await uow.listings.fuzzy_candidates(city, state, bedrooms, bathrooms)

    async def mark_inactive(self, listing_id: str) -> bool:
        async with self.uow() as uow:
            row = await uow.listings.get(listing_id)
            if row is None:
                return False
            row.is_active = False
            row.updated_at = datetime.utcnow()
        return True

    async def mark_stale_listings_inactive(self, days_old: int, now: datetime | None = None) -> int:
        """Flip is_active off for rows not updated within `days_old` days. Never deletes."""
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=days_old)
        async with self.uow() as uow:
            count = await uow.listings.mark_stale(cutoff, now)
        log.info("marked %d listings inactive (not updated since %s)", count, cutoff.isoformat())
        return count
