# leaseiq/domain/normalize.py
from __future__ import annotations

import re
from datetime import datetime, timezone

from .address import split_address
from .types import BrokerFee, NormalizedListing, ParsedListing, PetPolicy, Price, Utilities

_DOLLAR_RE = re.compile(r"\$(\d+)")
_PERCENT_RE = re.compile(r"(\d+)%")

# Ordered: first matching rule wins ("washer" must not beat "dishwasher").
_AMENITY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("a/c", "air conditioning"), "Air Conditioning"),
    (("dishwasher",), "Dishwasher"),
    (("washer", "laundry"), "Washer/Dryer"),
    (("parking", "garage"), "Parking"),
    (("gym", "fitness"), "Fitness Center"),
    (("pool",), "Pool"),
    (("doorman", "concierge"), "Doorman"),
    (("elevator",), "Elevator"),
    (("balcony", "terrace"), "Balcony"),
    (("hardwood",), "Hardwood Floors"),
)


def normalize_price(amount: float | None) -> Price:
    # Extraction output is treated as monthly USD; no unit conversion.
    return Price(amount=float(amount) if amount else 0.0)


def normalize_amenity(name: str) -> str:
    lower = name.lower()
    for needles, canonical in _AMENITY_RULES:
        if any(n in lower for n in needles):
            return canonical
    return name


def normalize_amenities(amenities: list[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for a in amenities:
        n = normalize_amenity(a)
        if n in seen:
            continue
        seen.add(n)
        out.append(n)
    return out


def normalize_pet_policy(text: str | None) -> PetPolicy | None:
    if not text:
        return None
    lower = text.lower()
    allowed = "allowed" in lower or "friendly" in lower or "ok" in lower
    m = _DOLLAR_RE.search(text)
    return PetPolicy(allowed=allowed, restrictions=text, deposit=int(m.group(1)) if m else None)


def normalize_broker_fee(text: str | None) -> BrokerFee | None:
    if not text:
        return None
    lower = text.lower()
    required = "no fee" not in lower and "no broker" not in lower
    pm = _PERCENT_RE.search(text)
    am = _DOLLAR_RE.search(text)
    return BrokerFee(
        required=required,
        amount=int(am.group(1)) if am else None,
        percentage=int(pm.group(1)) if pm else None,
    )


def parse_available_date(text: str | None) -> datetime | None:
    if not text:
        return None
    s = text.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    # Stored naive UTC, like every other timestamp column.
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def normalize_listing(parsed: ParsedListing) -> NormalizedListing:
    return NormalizedListing(
        source=parsed.source,
        source_url=parsed.source_url,
        source_id=parsed.source_id,
        address=split_address(parsed.address),
        price=normalize_price(parsed.price),
        scraped_at=parsed.scraped_at,
        bedrooms=parsed.bedrooms,
        bathrooms=parsed.bathrooms,
        square_feet=parsed.square_feet,
        description=parsed.description,
        images=list(parsed.images),
        floor_plan_images=list(parsed.floor_plan_images),
        amenities=normalize_amenities(parsed.amenities),
        pet_policy=normalize_pet_policy(parsed.pet_policy),
        broker_fee=normalize_broker_fee(parsed.broker_fee),
        building_type=parsed.building_type,
        year_built=parsed.year_built,
        total_units=parsed.total_units,
        parking=parsed.parking,
        lease_length=parsed.lease_length,
        security_deposit=parsed.security_deposit,
        application_fee=parsed.application_fee,
        available_date=parse_available_date(parsed.available_date),
        utilities=parsed.utilities or Utilities(),
        laundry=parsed.laundry,
        heating=parsed.heating,
        cooling=parsed.cooling,
        contact_phone=parsed.contact_phone,
        contact_email=parsed.contact_email,
    )
