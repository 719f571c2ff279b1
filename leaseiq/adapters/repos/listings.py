# leaseiq/adapters/repos/listings.py
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import Coordinates, ListingSource, NormalizedListing
from ...models import Listing, ListingSourceRef


def _opt_dict(obj) -> dict | None:
    return asdict(obj) if obj is not None else None


def listing_row_from(listing: NormalizedListing, coords: Coordinates | None, now: datetime) -> Listing:
    a = listing.address
    row = Listing(
        street=a.street,
        city=a.city,
        state=a.state,
        zip_code=a.zip_code,
        full_address=a.full_address,
        latitude=coords.latitude if coords else None,
        longitude=coords.longitude if coords else None,
        price_amount=listing.price.amount,
        price_currency=listing.price.currency,
        price_period=listing.price.period,
        bedrooms=listing.bedrooms,
        bathrooms=listing.bathrooms,
        square_feet=listing.square_feet,
        description=listing.description,
        images=list(listing.images),
        floor_plan_images=list(listing.floor_plan_images),
        amenities=list(listing.amenities),
        pet_policy=_opt_dict(listing.pet_policy),
        broker_fee=_opt_dict(listing.broker_fee),
        building_type=listing.building_type,
        year_built=listing.year_built,
        total_units=listing.total_units,
        parking=listing.parking,
        lease_length=listing.lease_length,
        security_deposit=listing.security_deposit,
        application_fee=listing.application_fee,
        available_date=listing.available_date,
        utilities=listing.utilities.as_dict(),
        laundry=listing.laundry,
        heating=listing.heating,
        cooling=listing.cooling,
        contact_phone=listing.contact_phone,
        contact_email=listing.contact_email,
        scraped_at=listing.scraped_at,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    row.sources = [
        ListingSourceRef(
            source=listing.source,
            source_url=listing.source_url,
            source_id=listing.source_id,
            first_seen_at=listing.scraped_at,
            last_seen_at=listing.scraped_at,
        )
    ]
    return row


# Scalars copied on merge when the incoming value is not None.
_MERGE_SCALARS = (
    "bedrooms",
    "bathrooms",
    "square_feet",
    "building_type",
    "year_built",
    "total_units",
    "parking",
    "lease_length",
    "security_deposit",
    "application_fee",
    "available_date",
    "laundry",
    "heating",
    "cooling",
    "contact_phone",
    "contact_email",
)

# Lists copied on merge when the incoming value is non-empty.
_MERGE_LISTS = ("images", "floor_plan_images", "amenities")


def merge_into(row: Listing, listing: NormalizedListing, coords: Coordinates | None, now: datetime) -> bool:
    """
    Fold a fresh observation into a stored row without regressing any
    populated field. Returns True when a new source reference was added.
    """
    added_ref = False
    ref = next(
        (r for r in row.sources if r.source == listing.source and r.source_id == listing.source_id),
        None,
    )
    if ref is None:
        row.sources.append(
            ListingSourceRef(
                source=listing.source,
                source_url=listing.source_url,
                source_id=listing.source_id,
                first_seen_at=listing.scraped_at,
                last_seen_at=listing.scraped_at,
            )
        )
        added_ref = True
    else:
        ref.last_seen_at = listing.scraped_at
        ref.source_url = listing.source_url or ref.source_url

    if listing.price.amount:
        row.price_amount = listing.price.amount
        row.price_currency = listing.price.currency
        row.price_period = listing.price.period

    for name in _MERGE_SCALARS:
        v = getattr(listing, name)
        if v is not None:
            setattr(row, name, v)

    if listing.description:
        row.description = listing.description

    for name in _MERGE_LISTS:
        v = getattr(listing, name)
        if v:
            setattr(row, name, list(v))

    if listing.pet_policy is not None:
        row.pet_policy = asdict(listing.pet_policy)
    if listing.broker_fee is not None:
        row.broker_fee = asdict(listing.broker_fee)

    # Utilities only ever gain flags.
    incoming = listing.utilities.as_dict()
    if any(incoming.values()):
        merged = dict(row.utilities or {})
        for k, v in incoming.items():
            merged[k] = bool(merged.get(k)) or v
        row.utilities = merged

    if coords is not None and (row.latitude is None or row.longitude is None):
        row.latitude = coords.latitude
        row.longitude = coords.longitude

    row.scraped_at = listing.scraped_at
    row.is_active = True
    row.updated_at = now
    return added_ref


class ListingsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, listing_id: str) -> Listing | None:
        return await self.session.get(Listing, listing_id)

    async def find_by_source_id(self, source: ListingSource, source_id: str) -> Listing | None:
        stmt = (
            select(Listing)
            .join(ListingSourceRef, ListingSourceRef.listing_id == Listing.id)
            .where(ListingSourceRef.source == source, ListingSourceRef.source_id == source_id)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalars().first()

    async def find_by_address(self, full_address: str) -> Listing | None:
        if not full_address:
            return None
        stmt = select(Listing).where(Listing.full_address == full_address).order_by(Listing.created_at).limit(1)
        return (await self.session.execute(stmt)).scalars().first()

    async def fuzzy_candidates(
        self, city: str, state: str, bedrooms: float | None, bathrooms: float | None
    ) -> list[Listing]:
        stmt = select(Listing).where(Listing.city == city, Listing.state == state)
        stmt = stmt.where(Listing.bedrooms.is_(None) if bedrooms is None else Listing.bedrooms == bedrooms)
        stmt = stmt.where(Listing.bathrooms.is_(None) if bathrooms is None else Listing.bathrooms == bathrooms)
        stmt = stmt.order_by(Listing.created_at)
        return list((await self.session.execute(stmt)).scalars().all())

    def add(self, row: Listing) -> None:
        self.session.add(row)

    async def mark_stale(self, cutoff: datetime, now: datetime) -> int:
        stmt = (
            update(Listing)
            .where(Listing.is_active == True)  # noqa: E712
            .where(Listing.updated_at < cutoff)
            .values(is_active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        return int(res.rowcount or 0)
