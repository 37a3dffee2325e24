from __future__ import annotations

import calendar
from dataclasses import replace
from datetime import date, datetime
from typing import List, Optional, Tuple

from .aggregation import driver_key
from .models import FuelRecord, TripRecord, Vehicle
from .utils import parse_trip_date

_UNDATED = datetime.max


def month_range(year: int, month: Optional[int] = None) -> Tuple[date, date]:
    """First and last day of the month, or of the whole year when month is None."""
    if month:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
    return date(year, 1, 1), date(year, 12, 31)


def sort_by_date(records, date_attr: str):
    """Ascending by the named date field; undated records go last, ties keep their order."""
    return sorted(records, key=lambda r: parse_trip_date(getattr(r, date_attr)) or _UNDATED)


def sort_by_trip_date(records: List[TripRecord]) -> List[TripRecord]:
    return sort_by_date(records, "trip_date")


def driver_options(records: List[TripRecord]) -> List[str]:
    """Distinct driver names for the driver dropdown.

    Built from the unfiltered month/year result so picking a driver never
    shrinks the list it was picked from.
    """
    names = {r.driver_name.strip() for r in records if r.driver_name and r.driver_name.strip()}
    return sorted(names)


def filter_records(records: List[TripRecord], driver_name: Optional[str] = None) -> List[TripRecord]:
    if driver_name:
        records = [r for r in records if r.driver_name == driver_name]
    return sort_by_trip_date(records)


def progressive_distance_cost(trip_distance: float, distance_before: float,
                              rate: float, free_threshold: float) -> float:
    """Charge only the kilometres of this trip that fall beyond the free allowance."""
    if trip_distance <= 0:
        return 0.0
    distance_after = distance_before + trip_distance
    if distance_after <= free_threshold:
        return 0.0
    if distance_before >= free_threshold:
        return trip_distance * rate
    return (distance_after - free_threshold) * rate


def _with_distance_cost(record: TripRecord, distance_cost: float) -> TripRecord:
    driver_expenses = record.allowance + distance_cost + record.supplies_cost
    return replace(
        record,
        calculated_distance_cost=distance_cost,
        driver_expenses=driver_expenses,
        total_costs=driver_expenses + record.trip_fee,
    )


def apply_free_distance(records: List[TripRecord], rate: float, free_threshold: float) -> List[TripRecord]:
    """Re-price distance per driver with the first `free_threshold` km free.

    Each driver's trips are walked in date order while their estimated
    distance accumulates. A threshold of 0 or less keeps flat pricing and
    returns the records untouched.
    """
    if free_threshold <= 0:
        return list(records)
    cumulative = {}
    repriced = {}
    for record in sort_by_trip_date(records):
        key = driver_key(record)
        before = cumulative.get(key, 0.0)
        cost = progressive_distance_cost(record.estimated_distance, before, rate, free_threshold)
        cumulative[key] = before + record.estimated_distance
        repriced[id(record)] = _with_distance_cost(record, cost)
    return [repriced[id(r)] for r in records]


def vehicle_options(records: List[FuelRecord]) -> List[Vehicle]:
    """Vehicles that have fuel records, by licence plate; built from the unfiltered period."""
    seen = {}
    for r in records:
        if r.vehicle is not None:
            seen.setdefault(r.vehicle.id, r.vehicle)
    return sorted(seen.values(), key=lambda v: (v.license_plate, v.id))


def filter_fuel_records(records: List[FuelRecord], vehicle_id: Optional[int] = None) -> List[FuelRecord]:
    if vehicle_id is not None:
        records = [r for r in records if r.vehicle_id == vehicle_id]
    return sort_by_date(records, "fuel_date")
