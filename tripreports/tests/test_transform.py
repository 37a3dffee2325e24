import pytest

from tripreports.transform import transform_fuel_record, transform_trip_record, transform_trip_records, transform_vehicle
from tripreports.utils import parse_amount

from .conftest import raw_fuel, raw_trip


def test_distance_cost_uses_estimated_distance_times_rate():
    record = transform_trip_record(raw_trip(estimated="100"), distance_rate=1.2)

    assert record.calculated_distance_cost == pytest.approx(120.0)


def test_totals_invariant():
    record = transform_trip_record(
        raw_trip(estimated="50", allowance="250", trip_fee="150", items=["40.50", "9.50"]),
        distance_rate=2,
    )

    assert record.supplies_cost == pytest.approx(50.0)
    assert record.driver_expenses == pytest.approx(250 + 100 + 50)
    assert record.total_costs == pytest.approx(record.driver_expenses + 150)


def test_missing_and_malformed_values_become_zero():
    raw = {"id": 3, "departureDate": "2025-10-01", "totalAllowance": "abc", "tripFee": None,
           "tripItems": [{"totalPrice": "n/a"}, "junk"]}

    record = transform_trip_record(raw, distance_rate=1.2)

    assert record.allowance == 0
    assert record.trip_fee == 0
    assert record.estimated_distance == 0
    assert record.supplies_cost == 0
    assert record.total_costs == 0
    assert len(record.items) == 1


def test_empty_items_means_no_supplies():
    record = transform_trip_record(raw_trip(items=[]), distance_rate=1.2)

    assert record.items == []
    assert record.supplies_cost == 0


def test_transform_is_pure():
    raw = raw_trip(items=["12"])

    assert transform_trip_record(raw, 1.2) == transform_trip_record(raw, 1.2)


def test_related_fields():
    record = transform_trip_record(raw_trip(vehicle_id=9, plate="1กข-99"), distance_rate=1.2)

    assert record.vehicle_id == 9
    assert record.license_plate == "1กข-99"
    assert record.customer_name == "ACME"
    assert record.items == []


def test_vehicle_relation_and_legacy_driver_fields():
    with_relation = transform_vehicle({
        "id": "4", "licensePlate": "A-1",
        "mainDriver": {"driverName": "Main", "driverLicense": "L1", "driverImage": "m.jpg"},
        "backupDriver": None, "backupDriverName": "Spare",
    })
    assert with_relation.id == 4
    assert with_relation.main_driver.license == "L1"
    assert with_relation.backup_driver.name == "Spare"

    assert transform_vehicle({"licensePlate": "no id"}) is None
    assert transform_vehicle(None) is None


def test_transform_many_keeps_order():
    records = transform_trip_records([raw_trip(id=2), raw_trip(id=1)], 1.2)

    assert [r.id for r in records] == [2, 1]


@pytest.mark.parametrize("value, expected", [
    ("12.5 km", 12.5),
    ("1e2", 100.0),
    (" -3", -3.0),
    ("", 0.0),
    ("abc", 0.0),
    (None, 0.0),
    (True, 0.0),
    (float("nan"), 0.0),
    (7, 7.0),
])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_fuel_record():
    fuel = transform_fuel_record(raw_fuel(litres="45.5 L", odometer="12345", main_image="somchai.jpg"))

    assert fuel.fuel_amount == 45.5
    assert fuel.odometer == 12345
    assert fuel.vehicle_id == 7
    assert fuel.license_plate == "70-1234"
    assert fuel.driver_image == "somchai.jpg"


def test_fuel_record_driver_falls_back_to_vehicle():
    raw = raw_fuel(driver="", odometer=None, main_image="somchai.jpg")
    raw["vehicle"]["mainDriver"]["driverName"] = "Somchai"

    fuel = transform_fuel_record(raw)

    assert fuel.odometer is None
    assert fuel.display_driver == "Somchai"
    assert fuel.driver_image == "somchai.jpg"


def test_fuel_record_image_only_for_the_assigned_driver():
    raw = raw_fuel(driver="Relief Driver", driver_type="other", main_image="somchai.jpg")
    raw["vehicle"]["mainDriver"]["driverName"] = "Somchai"

    assert transform_fuel_record(raw).driver_image is None
