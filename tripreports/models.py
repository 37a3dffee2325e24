"""
Report data shapes. Trips, vehicles and drivers live in the fleet API;
nothing here is persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Driver:
    name: str
    license: str = ""
    image: Optional[str] = None


@dataclass
class Vehicle:
    id: int
    license_plate: str = ""
    brand: str = ""
    model: str = ""
    vehicle_type: str = ""
    car_image: Optional[str] = None
    main_driver: Optional[Driver] = None
    backup_driver: Optional[Driver] = None

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}".strip()


@dataclass
class TripItem:
    code: str = ""
    description: str = ""
    quantity: float = 0.0
    unit: str = ""
    unit_price: float = 0.0
    total_price: float = 0.0


@dataclass
class TripRecord:
    id: int
    trip_date: str  # departure date as sent by the API
    vehicle_id: Optional[int] = None
    vehicle: Optional[Vehicle] = None
    driver_name: str = ""
    driver_license: str = ""
    driver_image: Optional[str] = None
    driver_type: str = "main"
    departure_time: str = ""
    return_date: str = ""
    return_time: str = ""
    odometer_before: float = 0.0
    odometer_after: float = 0.0
    customer_name: str = ""
    document_number: str = ""
    days: float = 0.0
    actual_distance: float = 0.0
    estimated_distance: float = 0.0
    fuel_cost: float = 0.0
    toll_fee: float = 0.0
    repair_cost: float = 0.0
    distance_check_fee: float = 0.0  # persisted fee, not the rate-based cost
    calculated_distance_cost: float = 0.0  # estimated_distance * distance rate
    supplies_cost: float = 0.0
    allowance: float = 0.0
    trip_fee: float = 0.0
    driver_expenses: float = 0.0
    total_costs: float = 0.0
    items: List[TripItem] = field(default_factory=list)
    remark: str = ""
    created_by: str = ""
    created_at: str = ""
    updated_by: str = ""
    updated_at: str = ""

    @property
    def distance(self) -> float:
        """Distance used by summaries: actual when recorded, else estimated."""
        return self.actual_distance or self.estimated_distance

    @property
    def license_plate(self) -> str:
        return self.vehicle.license_plate if self.vehicle else ""


@dataclass
class RateSettings:
    distance_rate: float = 1.2
    free_distance_threshold: float = 0.0


@dataclass
class ReportSummary:
    total_trips: int = 0
    total_distance: float = 0.0
    actual_distance: float = 0.0
    estimated_distance: float = 0.0
    average_distance: float = 0.0
    total_costs: float = 0.0
    average_cost: float = 0.0
    drivers_count: int = 0
    allowance: float = 0.0
    calculated_distance_cost: float = 0.0
    supplies_cost: float = 0.0
    trip_fee: float = 0.0
    driver_expenses: float = 0.0
    fuel_cost: float = 0.0
    toll_fee: float = 0.0
    repair_cost: float = 0.0
    distance_check_fee: float = 0.0

    @property
    def operating_costs(self) -> float:
        """Vehicle-side spend as shown on the by-vehicle report."""
        return (self.allowance + self.fuel_cost + self.toll_fee
                + self.repair_cost + self.distance_check_fee)


@dataclass
class GroupSummary:
    key: object
    label: str
    records: List[TripRecord]
    summary: ReportSummary


@dataclass
class FuelRecord:
    id: int
    fuel_date: str
    vehicle_id: Optional[int] = None
    vehicle: Optional[Vehicle] = None
    fuel_amount: float = 0.0  # litres
    odometer: Optional[float] = None
    remark: str = ""
    driver_type: str = "main"
    driver_name: str = ""
    driver_license: str = ""
    created_by: str = ""
    created_at: str = ""

    def _assigned_driver(self) -> Optional[Driver]:
        if self.vehicle is None:
            return None
        if self.driver_type == "backup":
            return self.vehicle.backup_driver
        return self.vehicle.main_driver

    @property
    def display_driver(self) -> str:
        """The recorded driver name, falling back to the vehicle's assigned driver."""
        if self.driver_name:
            return self.driver_name
        assigned = self._assigned_driver()
        return assigned.name if assigned else ""

    @property
    def driver_image(self) -> Optional[str]:
        assigned = self._assigned_driver()
        if assigned is None or not assigned.image:
            return None
        if self.driver_name and assigned.name != self.driver_name:
            return None
        return assigned.image

    @property
    def license_plate(self) -> str:
        return self.vehicle.license_plate if self.vehicle else ""


@dataclass
class FuelSummary:
    total_records: int = 0
    total_fuel: float = 0.0
    average_fuel: float = 0.0
    vehicles_count: int = 0


@dataclass
class FuelGroup:
    key: object
    label: str
    vehicle: Optional[Vehicle]
    records: List[FuelRecord]
    summary: FuelSummary
