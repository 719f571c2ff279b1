# leaseiq/domain/parsing.py
from __future__ import annotations

import logging
from typing import Any

from .types import ParsedListing, RawListing, Utilities

log = logging.getLogger(__name__)

_TRUTHY = {"yes", "true", "y", "1", "included"}


def to_int(x: Any) -> int | None:
    if x is None or x == "" or isinstance(x, bool):
        return None
    if isinstance(x, str):
        x = x.replace(",", "").replace("$", "").strip()
        if not x:
            return None
    try:
        return int(float(x))
    except (TypeError, ValueError):
        return None


def to_float(x: Any) -> float | None:
    if x is None or x == "" or isinstance(x, bool):
        return None
    if isinstance(x, str):
        x = x.replace(",", "").replace("$", "").strip()
        if not x:
            return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def to_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def to_bool(x: Any) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)):
        return x != 0
    if isinstance(x, str):
        return x.strip().lower() in _TRUTHY
    return False


def to_str_list(x: Any) -> list[str]:
    """Arrays keep their non-null elements, stringified. Anything else is empty."""
    if not isinstance(x, (list, tuple)):
        return []
    out: list[str] = []
    for item in x:
        if item is None:
            continue
        s = str(item).strip()
        if s:
            out.append(s)
    return out


def get_first(payload: dict[str, Any], *keys: str) -> Any:
    """Return first non-empty key from payload."""
    for k in keys:
        v = payload.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def _utilities(payload: dict[str, Any]) -> Utilities | None:
    u = payload.get("utilities")
    if isinstance(u, dict):
        return Utilities(
            electric=to_bool(u.get("electric")),
            gas=to_bool(u.get("gas")),
            water=to_bool(u.get("water")),
            internet=to_bool(u.get("internet")),
            trash=to_bool(u.get("trash")),
        )
    if isinstance(u, (list, tuple)):
        names = {s.lower() for s in to_str_list(u)}
        return Utilities(
            electric="electric" in names or "electricity" in names,
            gas="gas" in names,
            water="water" in names,
            internet="internet" in names or "wifi" in names,
            trash="trash" in names,
        )
    return None


def parse_listing(raw: RawListing) -> ParsedListing | None:
    """
    Coerce a loosely typed extraction payload into a ParsedListing.

    Returns None when the payload has neither an address nor a price; that is
    a drop, not an error.
    """
    p = raw.raw_payload or {}

    address = to_str(get_first(p, "address", "fullAddress", "streetAddress"))
    price = to_float(get_first(p, "price", "rent", "monthlyRent"))

    if address is None and price is None:
        log.debug("parse drop source=%s source_id=%s: no address and no price", raw.source.value, raw.source_id)
        return None

    return ParsedListing(
        source=raw.source,
        source_url=raw.source_url,
        source_id=raw.source_id,
        address=address,
        price=price,
        scraped_at=raw.scraped_at,
        bedrooms=to_float(get_first(p, "bedrooms", "beds")),
        bathrooms=to_float(get_first(p, "bathrooms", "baths")),
        square_feet=to_int(get_first(p, "squareFeet", "sqft")),
        description=to_str(p.get("description")),
        images=to_str_list(p.get("images")),
        floor_plan_images=to_str_list(p.get("floorPlanImages")),
        amenities=to_str_list(p.get("amenities")),
        pet_policy=to_str(p.get("petPolicy")),
        broker_fee=to_str(p.get("brokerFee")),
        building_type=to_str(p.get("buildingType")),
        year_built=to_int(p.get("yearBuilt")),
        total_units=to_int(p.get("totalUnits")),
        parking=to_str(p.get("parking")),
        lease_length=to_str(p.get("leaseLength")),
        security_deposit=to_float(p.get("securityDeposit")),
        application_fee=to_float(p.get("applicationFee")),
        available_date=to_str(p.get("availableDate")),
        utilities=_utilities(p),
        laundry=to_str(p.get("laundry")),
        heating=to_str(p.get("heating")),
        cooling=to_str(p.get("cooling")),
        contact_phone=to_str(get_first(p, "contactPhone", "phone")),
        contact_email=to_str(get_first(p, "contactEmail", "email")),
    )
