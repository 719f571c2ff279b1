# leaseiq/domain/address.py
from __future__ import annotations

import re

from .types import Address, Coordinates

_STATE_ZIP_RE = re.compile(r"([A-Z]{2})\s*(\d{5})")

_NYC_BOROUGHS = {"manhattan", "brooklyn", "queens", "bronx", "staten island"}

# Inclusive zip ranges per borough.
_NYC_ZIP_RANGES: tuple[tuple[int, int], ...] = (
    (10001, 10282),  # Manhattan
    (10301, 10314),  # Staten Island
    (10451, 10475),  # Bronx
    (11004, 11109),  # Queens
    (11201, 11256),  # Brooklyn
)

# The service-area gate also takes the outer Queens zips.
_SERVICE_AREA_ZIP_RANGES = _NYC_ZIP_RANGES + ((11351, 11697),)

_NYC_BOUNDS = {
    "lat_min": 40.4774,
    "lat_max": 40.9176,
    "lng_min": -74.2591,
    "lng_max": -73.7004,
}


def is_nyc_zip(zip_code: str | None, *, extended: bool = False) -> bool:
    if not zip_code:
        return False
    try:
        z = int(zip_code[:5])
    except ValueError:
        return False
    ranges = _SERVICE_AREA_ZIP_RANGES if extended else _NYC_ZIP_RANGES
    return any(lo <= z <= hi for lo, hi in ranges)


def within_nyc_bounds(coords: Coordinates | None) -> bool:
    if coords is None:
        return False
    return (
        _NYC_BOUNDS["lat_min"] <= coords.latitude <= _NYC_BOUNDS["lat_max"]
        and _NYC_BOUNDS["lng_min"] <= coords.longitude <= _NYC_BOUNDS["lng_max"]
    )


def split_address(raw: str | None) -> Address:
    """
    Best-effort comma split: "street, city, ST 12345".

    With three or more segments the last one is searched for "ST 12345";
    when that fails the whole segment is taken as the state. Unit numbers and
    odd formatting degrade the split, they are not corrected here because dedup
    keys off the same output.
    """
    if not raw:
        return Address(street="", city="", state="", zip_code="", full_address="")

    parts = [p.strip() for p in raw.split(",")]
    street = parts[0] if len(parts) >= 1 else ""
    city = parts[1] if len(parts) >= 2 else ""
    state = ""
    zip_code = ""

    if len(parts) >= 3:
        last = parts[-1]
        m = _STATE_ZIP_RE.search(last)
        if m:
            state, zip_code = m.group(1), m.group(2)
        else:
            state = last

    if state.lower() == "new york":
        state = "NY"

    city_l = city.lower()
    if city_l in _NYC_BOROUGHS and not state:
        state = "NY"
    if city_l == "new york" and is_nyc_zip(zip_code):
        state = "NY"

    return Address(street=street, city=city, state=state, zip_code=zip_code, full_address=raw)


def in_service_area(area: str, address: Address, coords: Coordinates | None) -> bool:
    """
    Gate for a configured service area. Empty area accepts everything.

    "nyc": coordinates inside the city bounding box, or (no coordinates) a
    city zip code.
    """
    area = (area or "").strip().lower()
    if not area:
        return True
    if area == "nyc":
        if coords is not None:
            return within_nyc_bounds(coords)
        return is_nyc_zip(address.zip_code, extended=True)
    raise ValueError(f"Unknown service area: {area!r}")
