"""
Map raw trip-record and fuel-record JSON from the fleet API to dataclasses.

The API sends money and distances as decimal strings. Every one of them goes
through parse_amount, so a missing or malformed value becomes 0.0.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .models import Driver, FuelRecord, TripItem, TripRecord, Vehicle
from .utils import parse_amount


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _driver(name: Any, license: Any = None, image: Any = None) -> Optional[Driver]:
    if not name:
        return None
    return Driver(name=_text(name), license=_text(license), image=image or None)


def _related_driver(raw: Any) -> Optional[Driver]:
    if not isinstance(raw, dict):
        return None
    return _driver(raw.get("driverName"), raw.get("driverLicense"), raw.get("driverImage"))


def transform_vehicle(raw: Optional[Dict[str, Any]]) -> Optional[Vehicle]:
    """Build a Vehicle from either the relation shape or the legacy flat fields."""
    if not isinstance(raw, dict):
        return None
    vehicle_id = _optional_int(raw.get("id"))
    if vehicle_id is None:
        return None
    main = _related_driver(raw.get("mainDriver")) or _driver(
        raw.get("driverName") or raw.get("car_driver_name"),
        image=raw.get("driverImage"),
    )
    backup = _related_driver(raw.get("backupDriver")) or _driver(
        raw.get("backupDriverName") or raw.get("backup_driver_name"),
        image=raw.get("backupDriverImage"),
    )
    return Vehicle(
        id=vehicle_id,
        license_plate=_text(raw.get("licensePlate")),
        brand=_text(raw.get("brand")),
        model=_text(raw.get("model")),
        vehicle_type=_text(raw.get("vehicleType")),
        car_image=raw.get("carImage") or None,
        main_driver=main,
        backup_driver=backup,
    )


def transform_trip_items(raw_items: Any) -> List[TripItem]:
    if not isinstance(raw_items, list):
        return []
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        item = raw.get("item") if isinstance(raw.get("item"), dict) else {}
        items.append(TripItem(
            code=_text(item.get("ptPart")),
            description=" ".join(filter(None, [item.get("ptDesc1"), item.get("ptDesc2")])),
            quantity=parse_amount(raw.get("quantity")),
            unit=_text(raw.get("unit")),
            unit_price=parse_amount(raw.get("unitPrice")),
            total_price=parse_amount(raw.get("totalPrice") or raw.get("total_price")),
        ))
    return items


def transform_trip_record(raw: Dict[str, Any], distance_rate: float) -> TripRecord:
    items = transform_trip_items(raw.get("tripItems"))
    supplies = sum((item.total_price for item in items), 0.0)

    allowance = parse_amount(raw.get("totalAllowance"))
    estimated_distance = parse_amount(raw.get("estimatedDistance"))
    calculated_distance_cost = estimated_distance * distance_rate
    trip_fee = parse_amount(raw.get("tripFee"))

    driver_expenses = allowance + calculated_distance_cost + supplies
    total_costs = driver_expenses + trip_fee

    customer = raw.get("customer") if isinstance(raw.get("customer"), dict) else {}
    vehicle = transform_vehicle(raw.get("vehicle"))
    vehicle_id = _optional_int(raw.get("vehicleId"))
    if vehicle_id is None and vehicle is not None:
        vehicle_id = vehicle.id

    return TripRecord(
        id=_optional_int(raw.get("id")) or 0,
        trip_date=_text(raw.get("departureDate")),
        vehicle_id=vehicle_id,
        vehicle=vehicle,
        driver_name=_text(raw.get("driverName")),
        driver_license=_text(raw.get("driverLicense")),
        driver_image=raw.get("driverImage") or None,
        driver_type=_text(raw.get("driverType")) or "main",
        departure_time=_text(raw.get("departureTime")),
        return_date=_text(raw.get("returnDate")),
        return_time=_text(raw.get("returnTime")),
        odometer_before=parse_amount(raw.get("odometerBefore")),
        odometer_after=parse_amount(raw.get("odometerAfter")),
        customer_name=_text(customer.get("cmName")),
        document_number=_text(raw.get("documentNumber")),
        days=parse_amount(raw.get("days")),
        actual_distance=parse_amount(raw.get("actualDistance")),
        estimated_distance=estimated_distance,
        fuel_cost=parse_amount(raw.get("fuelCost")),
        toll_fee=parse_amount(raw.get("tollFee")),
        repair_cost=parse_amount(raw.get("repairCost")),
        distance_check_fee=parse_amount(raw.get("distanceCheckFee")),
        calculated_distance_cost=calculated_distance_cost,
        supplies_cost=supplies,
        allowance=allowance,
        trip_fee=trip_fee,
        driver_expenses=driver_expenses,
        total_costs=total_costs,
        items=items,
        remark=_text(raw.get("remark")),
        created_by=_text(raw.get("createdBy")),
        created_at=_text(raw.get("createdAt")),
        updated_by=_text(raw.get("updatedBy")),
        updated_at=_text(raw.get("updatedAt")),
    )


def transform_trip_records(raws: Iterable[Dict[str, Any]], distance_rate: float) -> List[TripRecord]:
    return [transform_trip_record(raw, distance_rate) for raw in raws]


def transform_fuel_record(raw: Dict[str, Any]) -> FuelRecord:
    vehicle = transform_vehicle(raw.get("vehicle"))
    vehicle_id = _optional_int(raw.get("vehicleId"))
    if vehicle_id is None and vehicle is not None:
        vehicle_id = vehicle.id
    odometer = raw.get("odometer")
    return FuelRecord(
        id=_optional_int(raw.get("id")) or 0,
        fuel_date=_text(raw.get("fuelDate")),
        vehicle_id=vehicle_id,
        vehicle=vehicle,
        fuel_amount=parse_amount(raw.get("fuelAmount")),
        odometer=parse_amount(odometer) if odometer not in (None, "") else None,
        remark=_text(raw.get("remark")),
        driver_type=_text(raw.get("driverType")) or "main",
        driver_name=_text(raw.get("driverName")),
        driver_license=_text(raw.get("driverLicense")),
        created_by=_text(raw.get("createdBy")),
        created_at=_text(raw.get("createdAt")),
    )


def transform_fuel_records(raws: Iterable[Dict[str, Any]]) -> List[FuelRecord]:
    return [transform_fuel_record(raw) for raw in raws]
