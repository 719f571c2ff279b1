from datetime import datetime

from leaseiq.domain.address import in_service_area, is_nyc_zip, split_address
from leaseiq.domain.normalize import (
    normalize_amenities,
    normalize_broker_fee,
    normalize_pet_policy,
    normalize_price,
    parse_available_date,
)
from leaseiq.domain.types import Coordinates


def test_address_split_with_state_zip():
    a = split_address("123 Main St, New York, NY 10001")
    assert (a.street, a.city, a.state, a.zip_code) == ("123 Main St", "New York", "NY", "10001")
    assert a.full_address == "123 Main St, New York, NY 10001"


def test_address_last_segment_without_zip_is_state():
    a = split_address("5 Elm Ave, Hoboken, New Jersey")
    assert a.state == "New Jersey"
    assert a.zip_code == ""

    a = split_address("5 Elm Ave, Albany, new york")
    assert a.state == "NY"


def test_address_short_and_empty():
    a = split_address("77 Broadway")
    assert (a.street, a.city, a.state) == ("77 Broadway", "", "")

    a = split_address("77 Broadway, Brooklyn")
    assert a.city == "Brooklyn"
    assert a.state == "NY"

    a = split_address(None)
    assert a.full_address == ""


def test_address_with_unit_degrades_without_fixing():
    # Four segments: the unit shifts nothing but city stays the second segment.
    a = split_address("1 Main St, Apt 4, New York, NY 10001")
    assert a.street == "1 Main St"
    assert a.city == "Apt 4"
    assert a.state == "NY"


def test_price_defaults():
    assert normalize_price(None).amount == 0
    p = normalize_price(2500)
    assert (p.amount, p.currency, p.period.value) == (2500.0, "USD", "monthly")


def test_amenities_vocabulary_and_dedup():
    out = normalize_amenities(["A/C", "central air conditioning", "Dishwasher", "In-unit washer", "Roof Terrace", "Gym", "Bike room"])
    assert out == ["Air Conditioning", "Dishwasher", "Washer/Dryer", "Balcony", "Fitness Center", "Bike room"]


def test_amenities_keep_first_occurrence_order():
    assert normalize_amenities(["garage", "Pool", "Parking"]) == ["Parking", "Pool"]


def test_pet_policy():
    assert normalize_pet_policy(None) is None
    p = normalize_pet_policy("Cats allowed, $500 deposit")
    assert p.allowed is True
    assert p.deposit == 500
    assert p.restrictions == "Cats allowed, $500 deposit"

    assert normalize_pet_policy("No pets").allowed is False
    assert normalize_pet_policy("Pet friendly").allowed is True


def test_broker_fee_default_true_bias():
    assert normalize_broker_fee(None) is None
    assert normalize_broker_fee("No fee!").required is False
    assert normalize_broker_fee("no broker fee").required is False

    f = normalize_broker_fee("15% of annual rent")
    assert f.required is True
    assert f.percentage == 15

    f = normalize_broker_fee("One month, $3000")
    assert f.required is True
    assert f.amount == 3000


def test_available_date():
    assert parse_available_date("2024-06-01") == datetime(2024, 6, 1)
    assert parse_available_date("2024-06-01T04:00:00Z") == datetime(2024, 6, 1, 4, 0, 0)
    assert parse_available_date("Immediately") is None
    assert parse_available_date(None) is None


def test_nyc_service_area_gate():
    addr = split_address("1 Main St, New York, NY 10001")
    assert is_nyc_zip("11201")
    assert not is_nyc_zip("90001")
    assert in_service_area("", addr, None)
    assert in_service_area("nyc", addr, Coordinates(40.75, -73.99))
    assert not in_service_area("nyc", addr, Coordinates(34.05, -118.24))
    assert in_service_area("nyc", addr, None)
    assert not in_service_area("nyc", split_address("1 Main St, Los Angeles, CA 90001"), None)


def test_outer_queens_zips_pass_the_gate_but_do_not_infer_state():
    assert not is_nyc_zip("11432")
    assert is_nyc_zip("11432", extended=True)

    # only the borough table rewrites the state of a "New York" address
    assert split_address("1 Main St, New York, NJ 10001").state == "NY"
    assert split_address("1 Main St, New York, NJ 11432").state == "NJ"
    assert in_service_area("nyc", split_address("89-00 Sutphin Blvd, Jamaica, NY 11432"), None)
