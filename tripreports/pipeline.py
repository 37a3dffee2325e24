"""
Fetch -> transform -> price -> filter -> summarise, for one report request.
Fuel records skip the pricing step.

Each request builds its own pipeline; nothing is kept between requests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .aggregation import group_by_driver, group_by_vehicle, group_fuel_by_vehicle, summarize, summarize_fuel
from .client import FleetApiClient
from .filters import (apply_free_distance, driver_options, filter_fuel_records, filter_records,
                      month_range, vehicle_options)
from .models import (FuelGroup, FuelRecord, FuelSummary, GroupSummary, RateSettings, ReportSummary,
                     TripRecord, Vehicle)
from .transform import transform_fuel_records, transform_trip_records, transform_vehicle
from .utils import to_buddhist_year

THAI_MONTHS = [
    "มกราคม", "กุมภาพันธ์", "มีนาคม", "เมษายน", "พฤษภาคม", "มิถุนายน",
    "กรกฎาคม", "สิงหาคม", "กันยายน", "ตุลาคม", "พฤศจิกายน", "ธันวาคม",
]
LATIN_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class VehicleNotFound(Exception):
    pass


@dataclass
class ReportPeriod:
    year: int
    month: Optional[int]
    start: date
    end: date

    @classmethod
    def of(cls, year: int, month: Optional[int] = None) -> "ReportPeriod":
        start, end = month_range(year, month)
        return cls(year=year, month=month, start=start, end=end)

    @property
    def label(self) -> str:
        """Thai month and Buddhist year, e.g. "ตุลาคม 2568"."""
        year = to_buddhist_year(self.year)
        if not self.month:
            return f"ปี {year}"
        return f"{THAI_MONTHS[self.month - 1]} {year}"

    @property
    def latin_label(self) -> str:
        year = to_buddhist_year(self.year)
        if not self.month:
            return f"Year {year} (B.E.)"
        return f"{LATIN_MONTHS[self.month - 1]} {year} (B.E.)"


@dataclass
class DriverReport:
    period: ReportPeriod
    rates: RateSettings
    driver_name: Optional[str]
    records: List[TripRecord]
    summary: ReportSummary
    groups: List[GroupSummary]
    drivers: List[str] = field(default_factory=list)


@dataclass
class VehicleReport:
    period: ReportPeriod
    rates: RateSettings
    vehicle: Vehicle
    records: List[TripRecord]
    summary: ReportSummary


@dataclass
class VehicleOverview:
    period: ReportPeriod
    rates: RateSettings
    summary: ReportSummary
    groups: List[GroupSummary]


@dataclass
class FuelReport:
    period: ReportPeriod
    vehicle: Optional[Vehicle]
    records: List[FuelRecord]
    summary: FuelSummary
    groups: List[FuelGroup]
    vehicles: List[Vehicle] = field(default_factory=list)

class ReportPipeline:
    def __init__(self, client: Optional[FleetApiClient] = None, logger=None):
        self.client = client or FleetApiClient()
        self.log = logger or logging.getLogger(__name__)

    def priced_records(self, period: ReportPeriod):
        """Rate settings plus every trip in the period, priced and in API order."""
        rates = self.client.load_rate_settings()
        raws = self.client.fetch_trip_records(period.start, period.end)
        records = transform_trip_records(raws, rates.distance_rate)
        records = apply_free_distance(records, rates.distance_rate, rates.free_distance_threshold)
        self.log.debug("%s: %d trip records, rate=%s free=%s", period.latin_label, len(records),
                       rates.distance_rate, rates.free_distance_threshold)
        return rates, records

    def driver_report(self, year: int, month: Optional[int] = None,
                      driver_name: Optional[str] = None) -> DriverReport:
        period = ReportPeriod.of(year, month)
        rates, all_records = self.priced_records(period)
        drivers = driver_options(all_records)
        if driver_name and driver_name not in drivers:
            self.log.info("Driver %r has no trips in %s, showing all drivers", driver_name, period.latin_label)
            driver_name = None
        records = filter_records(all_records, driver_name)
        return DriverReport(
            period=period,
            rates=rates,
            driver_name=driver_name or None,
            records=records,
            summary=summarize(records),
            groups=group_by_driver(records),
            drivers=drivers,
        )

    def find_trip(self, trip_id: int, year: int, month: Optional[int] = None) -> Optional[TripRecord]:
        _, records = self.priced_records(ReportPeriod.of(year, month))
        return next((r for r in records if r.id == trip_id), None)

    def vehicles(self) -> List[Vehicle]:
        return [v for v in map(transform_vehicle, self.client.list_vehicles()) if v is not None]

    def vehicle_report(self, vehicle_id: int, year: int, month: Optional[int] = None) -> VehicleReport:
        period = ReportPeriod.of(year, month)
        rates, all_records = self.priced_records(period)
        records = filter_records([r for r in all_records if r.vehicle_id == vehicle_id])

        vehicle = next((v for v in self.vehicles() if v.id == vehicle_id), None)
        if vehicle is None:
            vehicle = next((r.vehicle for r in records if r.vehicle is not None), None)
        if vehicle is None:
            raise VehicleNotFound(f"Vehicle {vehicle_id} not found")
        return VehicleReport(period=period, rates=rates, vehicle=vehicle,
                             records=records, summary=summarize(records))

    def vehicles_overview(self, year: int, month: Optional[int] = None) -> VehicleOverview:
        period = ReportPeriod.of(year, month)
        rates, records = self.priced_records(period)
        records = filter_records(records)
        return VehicleOverview(
            period=period,
            rates=rates,
            summary=summarize(records),
            groups=group_by_vehicle(records, self.vehicles()),
        )

    def fuel_report(self, year: int, month: Optional[int] = None,
                    vehicle_id: Optional[int] = None) -> FuelReport:
        period = ReportPeriod.of(year, month)
        all_records = transform_fuel_records(self.client.fetch_fuel_records(period.start, period.end))
        vehicles = vehicle_options(all_records)
        vehicle = next((v for v in vehicles if v.id == vehicle_id), None)
        if vehicle_id is not None and vehicle is None:
            self.log.info("Vehicle %s has no fuel records in %s, showing all vehicles",
                          vehicle_id, period.latin_label)
        records = filter_fuel_records(all_records, vehicle.id if vehicle else None)
        self.log.debug("%s: %d fuel records", period.latin_label, len(records))
        return FuelReport(
            period=period,
            vehicle=vehicle,
            records=records,
            summary=summarize_fuel(records),
            groups=group_fuel_by_vehicle(records, vehicles),
            vehicles=vehicles,
        )
