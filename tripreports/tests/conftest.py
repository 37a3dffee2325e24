import threading
from urllib.parse import unquote

import fitz
import pytest

from tripreports.client import FleetApiClient
from tripreports.models import TripRecord, Vehicle
from tripreports.pipeline import ReportPipeline

BASE_URL = "http://fleet.test"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeFleetApi:
    """Stands in for requests.Session against the fleet back-office API."""

    def __init__(self, trips=(), vehicles=(), settings=None, drivers=None, images=None,
                 fail_paths=(), error=None, fuel=()):
        self.trips = list(trips)
        self.fuel = list(fuel)
        self.vehicles = list(vehicles)
        self.settings = dict(settings or {})
        self.drivers = dict(drivers or {})
        self.images = dict(images or {})
        self.fail_paths = tuple(fail_paths)
        self.error = error
        self.headers = {}
        self.calls = []
        self._lock = threading.Lock()

    def paths(self):
        return [url[len(BASE_URL):].split("?")[0] for url, _ in self.calls]

    def get(self, url, params=None, timeout=None):
        with self._lock:
            self.calls.append((url, dict(params or {})))
        if self.error is not None:
            raise self.error
        path = url[len(BASE_URL):]
        if path.startswith(self.fail_paths):
            return FakeResponse(500, {"error": "boom"})

        if path == "/api/trip-records":
            page, limit = params["page"], params["limit"]
            chunk = self.trips[(page - 1) * limit:page * limit]
            return FakeResponse(200, {"trips": chunk, "pagination": {"total": len(self.trips), "page": page}})
        if path == "/api/fuel-records":
            page, limit = params["page"], params["limit"]
            chunk = self.fuel[(page - 1) * limit:page * limit]
            return FakeResponse(200, {"data": chunk, "pagination": {"total": len(self.fuel), "page": page}})
        if path == "/api/vehicles":
            return FakeResponse(200, {"data": self.vehicles})
        if path.startswith("/api/system-settings/"):
            key = path.rsplit("/", 1)[1]
            if key in self.settings:
                return FakeResponse(200, {"key": key, "value": self.settings[key]})
            return FakeResponse(404, {"error": "not found"})
        if path.startswith("/api/drivers/by-license/"):
            licence = unquote(path.rsplit("/", 1)[1])
            if licence in self.drivers:
                return FakeResponse(200, {"driver": {"driverImage": self.drivers[licence]}})
            return FakeResponse(404, {"error": "not found"})
        if path.startswith("/api/serve-image"):
            image = unquote(path.split("path=", 1)[1])
            if image in self.images:
                return FakeResponse(200, content=self.images[image])
        return FakeResponse(404, {"error": "not found"})


def raw_trip(id=1, departure="2025-10-05T00:00:00.000Z", driver="สมชาย ใจดี", licence="DL-001",
             estimated="100", allowance="300", trip_fee="200", items=(), vehicle_id=7,
             plate="70-1234", **extra):
    trip = {
        "id": id,
        "vehicleId": vehicle_id,
        "departureDate": departure,
        "returnDate": departure,
        "driverName": driver,
        "driverLicense": licence,
        "estimatedDistance": estimated,
        "actualDistance": estimated,
        "totalAllowance": allowance,
        "tripFee": trip_fee,
        "fuelCost": "0",
        "tollFee": "0",
        "repairCost": "0",
        "tripItems": [{"totalPrice": price, "item": {"ptPart": "P1", "ptDesc1": "Rope"}} for price in items],
        "customer": {"cmName": "ACME"},
        "vehicle": {"id": vehicle_id, "licensePlate": plate, "brand": "Isuzu", "model": "D-Max",
                    "vehicleType": "Pickup"},
        "remark": "",
    }
    trip.update(extra)
    return trip



def raw_fuel(id=1, fuel_date="2025-10-05T00:00:00.000Z", litres="40", vehicle_id=7, plate="70-1234",
             driver="สมชาย ใจดี", driver_type="main", odometer=12000, main_image=None, **extra):
    fuel = {
        "id": id,
        "vehicleId": vehicle_id,
        "fuelDate": fuel_date,
        "fuelAmount": litres,
        "odometer": odometer,
        "remark": "",
        "driverType": driver_type,
        "driverName": driver,
        "driverLicense": "DL-001",
        "vehicle": {"id": vehicle_id, "licensePlate": plate, "brand": "Isuzu", "model": "D-Max",
                    "vehicleType": "Pickup",
                    "mainDriver": {"driverName": driver, "driverImage": main_image, "driverLicense": "DL-001"}},
    }
    fuel.update(extra)
    return fuel

def record(id=1, driver="A", total=0.0, trip_date="2025-10-01", distance=0.0, vehicle_id=None, **extra):
    return TripRecord(id=id, trip_date=trip_date, driver_name=driver, total_costs=total,
                      estimated_distance=distance, vehicle_id=vehicle_id, **extra)


def png_bytes(size=8):
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, size, size), False)
    pix.clear_with(180)
    return pix.tobytes("png")


@pytest.fixture
def fleet_api():
    return FakeFleetApi


@pytest.fixture
def fleet_client():
    def build(api, page_size=2, token=""):
        return FleetApiClient(base_url=BASE_URL, token=token, timeout=1, page_size=page_size,
                              max_workers=3, session=api)
    return build


@pytest.fixture
def pipeline_for(fleet_client):
    def build(api, page_size=2):
        return ReportPipeline(fleet_client(api, page_size=page_size))
    return build


@pytest.fixture(autouse=True)
def rate_defaults(settings):
    settings.DEFAULT_DISTANCE_RATE = 1.2
    settings.DEFAULT_FREE_DISTANCE_THRESHOLD = 0
    settings.UNSPECIFIED_DRIVER_LABEL = "ไม่ระบุ"
    settings.REPORT_FONT_FILE = ""


@pytest.fixture
def vehicle():
    return Vehicle(id=7, license_plate="70-1234", brand="Isuzu", model="D-Max", vehicle_type="Pickup")
