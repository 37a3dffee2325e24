import pytest

from tripreports.client import FleetApiError
from tripreports.pipeline import ReportPeriod, VehicleNotFound

from .conftest import FakeFleetApi, raw_fuel, raw_trip


@pytest.fixture
def api():
    return FakeFleetApi(
        trips=[
            raw_trip(id=1, departure="2025-10-20", driver="A", allowance="500", estimated="0", trip_fee="0"),
            raw_trip(id=2, departure="2025-10-02", driver="B", allowance="100", estimated="0", trip_fee="0",
                     vehicle_id=8, plate="80-0001"),
            raw_trip(id=3, departure="2025-10-05", driver="A", allowance="300", estimated="0", trip_fee="0"),
        ],
        vehicles=[{"id": 7, "licensePlate": "70-1234", "brand": "Isuzu", "model": "D-Max"}],
    )


def test_period_labels():
    period = ReportPeriod.of(2025, 10)

    assert period.label == "ตุลาคม 2568"
    assert period.latin_label == "October 2568 (B.E.)"
    assert ReportPeriod.of(2025).end.day == 31


def test_all_drivers(pipeline_for, api):
    report = pipeline_for(api).driver_report(2025, 10)

    assert report.driver_name is None
    assert [r.id for r in report.records] == [2, 3, 1]
    assert report.drivers == ["A", "B"]
    assert report.summary.total_costs == 900
    assert {g.key: g.summary.total_costs for g in report.groups} == {"B": 100, "A": 800}


def test_single_driver_keeps_full_dropdown(pipeline_for, api):
    report = pipeline_for(api).driver_report(2025, 10, "A")

    assert report.driver_name == "A"
    assert [r.id for r in report.records] == [3, 1]
    assert report.drivers == ["A", "B"]


def test_unknown_driver_falls_back_to_all(pipeline_for, api):
    report = pipeline_for(api).driver_report(2025, 10, "Nobody")

    assert report.driver_name is None
    assert len(report.records) == 3


def test_free_distance_setting_is_applied(pipeline_for):
    api = FakeFleetApi(
        trips=[raw_trip(id=1, estimated="80", allowance="0", trip_fee="0")],
        settings={"distance_rate": "2", "free_distance_threshold": "50"},
    )

    report = pipeline_for(api).driver_report(2025, 10)

    assert report.records[0].calculated_distance_cost == 60
    assert report.rates.free_distance_threshold == 50


def test_find_trip(pipeline_for, api):
    pipeline = pipeline_for(api)

    assert pipeline.find_trip(3, 2025, 10).allowance == 300
    assert pipeline.find_trip(99, 2025, 10) is None


def test_vehicle_report(pipeline_for, api):
    report = pipeline_for(api).vehicle_report(7, 2025, 10)

    assert report.vehicle.license_plate == "70-1234"
    assert [r.id for r in report.records] == [3, 1]
    assert report.summary.allowance == 800


def test_vehicle_known_only_from_trips(pipeline_for, api):
    report = pipeline_for(api).vehicle_report(8, 2025, 10)

    assert report.vehicle.license_plate == "80-0001"


def test_unknown_vehicle(pipeline_for, api):
    with pytest.raises(VehicleNotFound):
        pipeline_for(api).vehicle_report(404, 2025, 10)


def test_vehicles_overview(pipeline_for, api):
    overview = pipeline_for(api).vehicles_overview(2025, 10)

    assert [(g.key, g.label) for g in overview.groups] == [(8, "80-0001"), (7, "70-1234")]
    assert overview.summary.total_trips == 3


def test_api_failure_propagates(pipeline_for):
    with pytest.raises(FleetApiError):
        pipeline_for(FakeFleetApi(fail_paths=("/api/trip-records",))).driver_report(2025, 10)


@pytest.fixture
def fuel_api():
    return FakeFleetApi(fuel=[
        raw_fuel(id=1, fuel_date="2025-10-20T00:00:00.000Z", litres="40"),
        raw_fuel(id=2, fuel_date="2025-10-02T00:00:00.000Z", litres="25", vehicle_id=8, plate="80-0001"),
        raw_fuel(id=3, fuel_date="2025-10-05T00:00:00.000Z", litres="35"),
    ])


def test_fuel_report_all_vehicles(pipeline_for, fuel_api):
    report = pipeline_for(fuel_api).fuel_report(2025, 10)

    assert report.vehicle is None
    assert [r.id for r in report.records] == [2, 3, 1]
    assert report.summary.total_fuel == 100
    assert report.summary.vehicles_count == 2
    assert [(g.label, g.summary.total_fuel) for g in report.groups] == [("80-0001", 25), ("70-1234", 75)]
    assert [v.license_plate for v in report.vehicles] == ["70-1234", "80-0001"]
    assert fuel_api.calls[0][1]["startDate"] == "2025-10-01"


def test_fuel_report_one_vehicle_keeps_full_dropdown(pipeline_for, fuel_api):
    report = pipeline_for(fuel_api).fuel_report(2025, 10, vehicle_id=7)

    assert report.vehicle.license_plate == "70-1234"
    assert [r.id for r in report.records] == [3, 1]
    assert report.summary.average_fuel == 37.5
    assert len(report.vehicles) == 2


def test_fuel_report_unknown_vehicle_shows_all(pipeline_for, fuel_api):
    report = pipeline_for(fuel_api).fuel_report(2025, 10, vehicle_id=99)

    assert report.vehicle is None
    assert len(report.records) == 3
