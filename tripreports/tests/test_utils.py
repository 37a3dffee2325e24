from datetime import datetime

import pytest

from tripreports.utils import (
    driver_type_label,
    format_distance,
    format_number,
    parse_trip_date,
    starts_with_number,
    thai_date,
    travel_period,
    vehicle_type_label,
)


def test_parse_trip_date_formats():
    assert parse_trip_date("2025-10-05") == datetime(2025, 10, 5)
    assert parse_trip_date("2025-10-04T17:00:00.000Z") == datetime(2025, 10, 4, 17)
    assert parse_trip_date("05/10/2025") == datetime(2025, 10, 5)
    assert parse_trip_date("not a date") is None
    assert parse_trip_date("") is None


def test_thai_dates():
    assert thai_date("2025-10-05") == "05/10/2568"
    assert thai_date(None) == "-"
    assert travel_period("2025-10-05", "2025-10-05") == "05/10/2568"
    assert travel_period("2025-10-05", "2025-10-07") == "05/10/2568 - 07/10/2568"
    assert travel_period("2025-10-05", "") == "05/10/2568"


@pytest.mark.parametrize("value, expected", [
    (1234.5, "1,234.5"),
    (1200, "1,200"),
    (0, "0"),
    ("12.346", "12.35"),
    (None, "0"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_format_distance_rounds():
    assert format_distance(1234.6) == "1,235"


def test_vehicle_type_label():
    assert vehicle_type_label("Truck") == "รถบรรทุก"
    assert vehicle_type_label("ForkLift") == "โฟล์คลิฟท์"
    assert vehicle_type_label("Van") == "Van"
    assert vehicle_type_label(None) == ""


@pytest.mark.parametrize("text, expected", [
    ("12", True),
    (" 1.5 km", True),
    ("-3", True),
    ("abc", False),
    ("", False),
    ("  ", False),
])
def test_starts_with_number(text, expected):
    assert starts_with_number(text) is expected


def test_driver_type_label():
    assert driver_type_label("backup") == "คนขับรอง"
    assert driver_type_label("other") == "คนขับแทน"
    assert driver_type_label("") == "คนขับหลัก"
    assert driver_type_label("unknown") == "คนขับหลัก"
