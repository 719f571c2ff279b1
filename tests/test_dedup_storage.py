from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select, update

from leaseiq.domain.types import Coordinates, ListingSource
from leaseiq.models import Listing, ListingSourceRef


async def _count(async_session_maker, model) -> int:
    async with async_session_maker() as s:
        return (await s.execute(select(func.count()).select_from(model))).scalar_one()


async def _ingest(dedup, store, listing, coords=None) -> str:
    """The insert-or-merge step the orchestrator runs under its locks."""
    existing = await dedup.find_duplicate(listing)
    if existing and await dedup.merge_listing(existing, listing, coords):
        return existing
    return await store.insert_listing(listing, coords)


async def test_inserted_listing_conforms_to_schema(store, listing_factory):
    lid = await store.insert_listing(listing_factory(amenities=["gym"]), Coordinates(40.75, -73.99))
    row = await store.get_listing(lid)

    assert row is not None
    assert len(row.sources) == 1
    assert row.full_address == "123 Main St, New York, NY 10001"
    assert row.price_amount > 0
    assert row.is_active is True
    assert (row.latitude, row.longitude) == (40.75, -73.99)
    assert row.amenities == ["Fitness Center"]
    assert row.utilities == {"electric": False, "gas": False, "water": False, "internet": False, "trash": False}


async def test_same_source_id_twice_is_one_listing(store, dedup, listing_factory, async_session_maker):
    t1 = datetime(2024, 1, 1)
    t2 = t1 + timedelta(hours=3)
    id1 = await _ingest(dedup, store, listing_factory(scraped_at=t1))
    id2 = await _ingest(dedup, store, listing_factory(scraped_at=t2))

    assert id1 == id2
    assert await _count(async_session_maker, Listing) == 1
    row = await store.get_listing(id1)
    assert len(row.sources) == 1
    assert row.sources[0].first_seen_at == t1
    assert row.sources[0].last_seen_at == t2


async def test_exact_address_from_other_source_merges(store, dedup, listing_factory):
    id1 = await _ingest(dedup, store, listing_factory())
    id2 = await _ingest(dedup, store, listing_factory(source=ListingSource.zillow, source_id="z-77", bedrooms=None))

    assert id1 == id2
    row = await store.get_listing(id1)
    assert {(r.source, r.source_id) for r in row.sources} == {
        (ListingSource.streeteasy, "se-1"),
        (ListingSource.zillow, "z-77"),
    }
    # unknown bedrooms did not overwrite the known value
    assert row.bedrooms == 2


A = "123 Main Street Apt 4, Brooklyn, NY 11201"
B = "123 Main Street Apt 4B, Brooklyn, NY 11201"


@pytest.mark.parametrize("first,second", [(A, B), (B, A)])
async def test_fuzzy_match_is_order_independent(first, second, store, dedup, listing_factory, async_session_maker):
    await _ingest(dedup, store, listing_factory(address=first, price=2500))
    await _ingest(
        dedup,
        store,
        listing_factory(address=second, price=2550, source=ListingSource.renthop, source_id="rh-1"),
    )
    assert await _count(async_session_maker, Listing) == 1
    assert await _count(async_session_maker, ListingSourceRef) == 2


async def test_fuzzy_match_rejects_different_bedrooms(store, dedup, listing_factory, async_session_maker):
    await _ingest(dedup, store, listing_factory(address=A, bedrooms=2))
    await _ingest(
        dedup,
        store,
        listing_factory(address=B, bedrooms=3, source=ListingSource.renthop, source_id="rh-1"),
    )
    assert await _count(async_session_maker, Listing) == 2


async def test_fuzzy_match_rejects_price_outside_tolerance(store, dedup, listing_factory, async_session_maker):
    await _ingest(dedup, store, listing_factory(address=A, price=2500))
    await _ingest(
        dedup,
        store,
        listing_factory(address=B, price=2900, source=ListingSource.renthop, source_id="rh-1"),
    )
    assert await _count(async_session_maker, Listing) == 2


async def test_merge_never_regresses_populated_fields(store, dedup, listing_factory):
    lid = await _ingest(
        dedup,
        store,
        listing_factory(images=["a.jpg", "b.jpg"], description="Sunny", pet_policy="Cats OK"),
        Coordinates(40.7, -74.0),
    )
    await _ingest(
        dedup,
        store,
        listing_factory(price=None, images=[], description=None, pet_policy=None, source_id="se-1"),
        Coordinates(1.0, 1.0),
    )

    row = await store.get_listing(lid)
    assert row.images == ["a.jpg", "b.jpg"]
    assert row.description == "Sunny"
    assert row.price_amount == 2500
    assert row.pet_policy["allowed"] is True
    assert (row.latitude, row.longitude) == (40.7, -74.0)


async def test_merge_overwrites_with_newer_non_empty_values(store, dedup, listing_factory):
    lid = await _ingest(dedup, store, listing_factory(images=["a.jpg"]))
    await _ingest(dedup, store, listing_factory(price=2600, images=["c.jpg"], square_feet=700))

    row = await store.get_listing(lid)
    assert row.price_amount == 2600
    assert row.images == ["c.jpg"]
    assert row.square_feet == 700


async def test_merge_reactivates_listing(store, dedup, listing_factory):
    lid = await _ingest(dedup, store, listing_factory())
    assert await store.mark_inactive(lid)
    assert (await store.get_listing(lid)).is_active is False

    await _ingest(dedup, store, listing_factory())
    assert (await store.get_listing(lid)).is_active is True


async def test_stale_sweep_deactivates_without_deleting(store, listing_factory, async_session_maker):
    old_id = await store.insert_listing(listing_factory(source_id="old", address="1 Old St, New York, NY 10001"))
    fresh_id = await store.insert_listing(listing_factory(source_id="new", address="2 New St, New York, NY 10001"))

    async with async_session_maker() as s:
        await s.execute(
            update(Listing).where(Listing.id == old_id).values(updated_at=datetime.utcnow() - timedelta(days=45))
        )
        await s.commit()

    assert await store.mark_stale_listings_inactive(30) == 1
    assert await store.mark_stale_listings_inactive(30) == 0

    assert (await store.get_listing(old_id)).is_active is False
    assert (await store.get_listing(fresh_id)).is_active is True
    assert await _count(async_session_maker, Listing) == 2


async def test_failed_write_leaves_nothing_behind(store, listing_factory, async_session_maker):
    await store.insert_listing(listing_factory())
    # Same (source, source_id) on a new row violates the unique source ref.
    with pytest.raises(Exception):
        await store.insert_listing(listing_factory(address="999 Elsewhere, New York, NY 10001"))

    assert await _count(async_session_maker, Listing) == 1
    assert await _count(async_session_maker, ListingSourceRef) == 1
