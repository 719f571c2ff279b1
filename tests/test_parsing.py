from datetime import datetime

from leaseiq.domain.parsing import parse_listing, to_bool, to_float, to_int, to_str_list
from leaseiq.domain.types import ListingSource, RawListing


def _raw(payload: dict) -> RawListing:
    return RawListing(
        source=ListingSource.zillow,
        source_url="https://www.zillow.com/x",
        source_id="z-1",
        raw_payload=payload,
        scraped_at=datetime(2024, 5, 1),
    )


def test_scalar_coercions():
    assert to_int("1,200") == 1200
    assert to_int("") is None
    assert to_int(None) is None
    assert to_int("n/a") is None
    assert to_float("$2,500") == 2500.0
    assert to_float(1.5) == 1.5
    assert to_float(True) is None

    assert to_bool("Yes") is True
    assert to_bool("no") is False
    assert to_bool(1) is True
    assert to_bool(None) is False


def test_arrays_drop_nulls_and_stringify():
    assert to_str_list(["a", None, 3, "  ", "b"]) == ["a", "3", "b"]
    assert to_str_list("not-a-list") == []
    assert to_str_list(None) == []


def test_listing_without_address_and_price_is_dropped():
    assert parse_listing(_raw({"listingId": "z-1", "description": "nice"})) is None
    assert parse_listing(_raw({"address": "", "price": None})) is None


def test_listing_with_only_price_survives():
    parsed = parse_listing(_raw({"price": "3100"}))
    assert parsed is not None
    assert parsed.address is None
    assert parsed.price == 3100.0


def test_full_payload_coercion():
    parsed = parse_listing(
        _raw(
            {
                "address": " 10 W 20th St, New York, NY 10011 ",
                "price": "4,200",
                "bedrooms": "2",
                "bathrooms": 1.5,
                "squareFeet": "850",
                "images": ["a.jpg", None, "b.jpg"],
                "amenities": ["Gym", None],
                "petPolicy": "Cats OK",
                "brokerFee": "No fee",
                "yearBuilt": "1925",
                "availableDate": "2024-06-01",
                "utilities": {"water": "yes", "gas": True, "electric": 0},
                "contactPhone": "555-0100",
            }
        )
    )
    assert parsed is not None
    assert parsed.address == "10 W 20th St, New York, NY 10011"
    assert parsed.price == 4200.0
    assert parsed.bedrooms == 2.0
    assert parsed.bathrooms == 1.5
    assert parsed.square_feet == 850
    assert parsed.images == ["a.jpg", "b.jpg"]
    assert parsed.amenities == ["Gym"]
    assert parsed.year_built == 1925
    assert parsed.utilities is not None
    assert parsed.utilities.water is True
    assert parsed.utilities.gas is True
    assert parsed.utilities.electric is False
    assert parsed.contact_phone == "555-0100"
    assert parsed.source is ListingSource.zillow
    assert parsed.source_id == "z-1"
