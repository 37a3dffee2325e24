"""
Report summaries over trip records, overall and per driver or vehicle.

Sums are straight float accumulation; rounding is left to the templates and
the PDF renderer.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import pandas as pd
from django.conf import settings

from .models import FuelGroup, FuelRecord, FuelSummary, GroupSummary, ReportSummary, TripRecord, Vehicle

COST_FIELDS = [
    "allowance",
    "calculated_distance_cost",
    "supplies_cost",
    "trip_fee",
    "driver_expenses",
    "total_costs",
    "fuel_cost",
    "toll_fee",
    "repair_cost",
    "distance_check_fee",
]

DISTANCE_FIELDS = ["distance", "actual_distance", "estimated_distance"]

FRAME_COLUMNS = ["id", "trip_date", "driver_name", "vehicle_id"] + DISTANCE_FIELDS + COST_FIELDS


def unspecified_label() -> str:
    return getattr(settings, "UNSPECIFIED_DRIVER_LABEL", "ไม่ระบุ")


def records_frame(records: Iterable[TripRecord]) -> pd.DataFrame:
    rows = [
        {
            "id": r.id,
            "trip_date": r.trip_date,
            "driver_name": r.driver_name,
            "vehicle_id": r.vehicle_id,
            "distance": r.distance,
            "actual_distance": r.actual_distance,
            "estimated_distance": r.estimated_distance,
            **{name: getattr(r, name) for name in COST_FIELDS},
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _summary_from_frame(frame: pd.DataFrame) -> ReportSummary:
    count = len(frame)
    if count == 0:
        return ReportSummary()
    totals = {name: float(frame[name].sum()) for name in COST_FIELDS}
    total_distance = float(frame["distance"].sum())
    names = frame["driver_name"].fillna("")
    return ReportSummary(
        total_trips=count,
        total_distance=total_distance,
        actual_distance=float(frame["actual_distance"].sum()),
        estimated_distance=float(frame["estimated_distance"].sum()),
        average_distance=total_distance / count,
        average_cost=totals["total_costs"] / count,
        drivers_count=int(names[names != ""].nunique()),
        **totals,
    )


def summarize(records: List[TripRecord]) -> ReportSummary:
    return _summary_from_frame(records_frame(records))


def driver_key(record: TripRecord) -> str:
    """Drivers are told apart by exact name only; trip records carry no driver id."""
    name = record.driver_name or ""
    return name if name.strip() else unspecified_label()


def _grouped(records: List[TripRecord], keys: List[object], labels: Dict[object, str]) -> List[GroupSummary]:
    frame = records_frame(records)
    frame["group"] = pd.Series(keys, index=frame.index, dtype=object)
    groups = []
    for key, rows in frame.groupby("group", sort=False, dropna=False):
        members = [records[i] for i in rows.index]
        groups.append(GroupSummary(
            key=key,
            label=labels.get(key, str(key)),
            records=members,
            summary=_summary_from_frame(rows),
        ))
    return groups


def group_by_driver(records: List[TripRecord]) -> List[GroupSummary]:
    """One group per driver name, in order of first appearance."""
    keys = [driver_key(r) for r in records]
    return _grouped(records, keys, {k: k for k in keys})


def group_by_vehicle(records: List[TripRecord], vehicles: Optional[List[Vehicle]] = None) -> List[GroupSummary]:
    """One group per vehicle id; labelled with the licence plate when it is known."""
    plates = {v.id: v.license_plate for v in vehicles or [] if v.license_plate}
    for r in records:
        if r.vehicle is not None and r.vehicle.license_plate:
            plates.setdefault(r.vehicle.id, r.vehicle.license_plate)
    fallback = unspecified_label()
    keys = [r.vehicle_id if r.vehicle_id is not None else fallback for r in records]
    labels = {k: plates.get(k, str(k)) for k in keys}
    return _grouped(records, keys, labels)


# --- fuel records ---

def fuel_frame(records: Iterable[FuelRecord]) -> pd.DataFrame:
    rows = [{"id": r.id, "vehicle_id": r.vehicle_id, "fuel_amount": r.fuel_amount} for r in records]
    return pd.DataFrame(rows, columns=["id", "vehicle_id", "fuel_amount"])


def _fuel_summary_from_frame(frame: pd.DataFrame) -> FuelSummary:
    count = len(frame)
    if count == 0:
        return FuelSummary()
    total = float(frame["fuel_amount"].sum())
    return FuelSummary(
        total_records=count,
        total_fuel=total,
        average_fuel=total / count,
        vehicles_count=int(frame["vehicle_id"].nunique(dropna=False)),
    )


def summarize_fuel(records: List[FuelRecord]) -> FuelSummary:
    return _fuel_summary_from_frame(fuel_frame(records))


def group_fuel_by_vehicle(records: List[FuelRecord], vehicles: Optional[List[Vehicle]] = None) -> List[FuelGroup]:
    """One group per vehicle id, in order of first appearance."""
    known = {v.id: v for v in vehicles or []}
    for r in records:
        if r.vehicle is not None:
            known.setdefault(r.vehicle.id, r.vehicle)
    fallback = unspecified_label()
    frame = fuel_frame(records)
    keys = [r.vehicle_id if r.vehicle_id is not None else fallback for r in records]
    frame["group"] = pd.Series(keys, index=frame.index, dtype=object)
    groups = []
    for key, rows in frame.groupby("group", sort=False, dropna=False):
        vehicle = known.get(key)
        label = vehicle.license_plate if vehicle and vehicle.license_plate else str(key)
        groups.append(FuelGroup(
            key=key,
            label=label,
            vehicle=vehicle,
            records=[records[i] for i in rows.index],
            summary=_fuel_summary_from_frame(rows),
        ))
    return groups
