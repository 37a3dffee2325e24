import pytest
import requests

from tripreports.client import FleetApiError

from .conftest import BASE_URL, FakeFleetApi, raw_fuel, raw_trip


def test_pages_are_fetched_and_joined_in_order(fleet_client):
    api = FakeFleetApi(trips=[raw_trip(id=i) for i in range(1, 8)])

    records = fleet_client(api, page_size=2).fetch_trip_records()

    assert [r["id"] for r in records] == [1, 2, 3, 4, 5, 6, 7]
    assert sorted(params["page"] for _, params in api.calls) == [1, 2, 3, 4]


def test_single_page_makes_one_request(fleet_client):
    api = FakeFleetApi(trips=[raw_trip(id=1)])

    assert len(fleet_client(api, page_size=10).fetch_trip_records()) == 1
    assert len(api.calls) == 1


def test_date_window_is_sent(fleet_client):
    from datetime import date

    api = FakeFleetApi()
    fleet_client(api).fetch_trip_records(date(2025, 10, 1), date(2025, 10, 31))

    assert api.calls[0][1]["startDate"] == "2025-10-01"
    assert api.calls[0][1]["endDate"] == "2025-10-31"


def test_http_error_raises(fleet_client):
    api = FakeFleetApi(fail_paths=("/api/trip-records",))

    with pytest.raises(FleetApiError) as excinfo:
        fleet_client(api).fetch_trip_records()

    assert excinfo.value.status == 500


def test_connection_error_raises(fleet_client):
    api = FakeFleetApi(error=requests.ConnectionError("refused"))

    with pytest.raises(FleetApiError):
        fleet_client(api).list_vehicles()


def test_bearer_token(fleet_client):
    api = FakeFleetApi()
    fleet_client(api, token="secret")

    assert api.headers["Authorization"] == "Bearer secret"


def test_rate_settings_from_api(fleet_client):
    api = FakeFleetApi(settings={"distance_rate": "1.5", "free_distance_threshold": "200"})

    rates = fleet_client(api).load_rate_settings()

    assert rates.distance_rate == 1.5
    assert rates.free_distance_threshold == 200


def test_rate_settings_fall_back_to_defaults(fleet_client):
    assert fleet_client(FakeFleetApi()).load_rate_settings().distance_rate == 1.2

    invalid = FakeFleetApi(settings={"distance_rate": "-3", "free_distance_threshold": "abc"})
    rates = fleet_client(invalid).load_rate_settings()
    assert rates.distance_rate == 1.2
    assert rates.free_distance_threshold == 0

    broken = FakeFleetApi(fail_paths=("/api/system-settings",))
    assert fleet_client(broken).load_rate_settings().distance_rate == 1.2


def test_driver_image_lookup(fleet_client):
    client = fleet_client(FakeFleetApi(drivers={"DL 1/2": "driver.jpg"}))

    assert client.get_driver_image("DL 1/2") == "driver.jpg"
    assert client.get_driver_image("missing") is None
    assert client.get_driver_image("") is None


def test_driver_image_lookup_swallows_server_errors(fleet_client):
    client = fleet_client(FakeFleetApi(fail_paths=("/api/drivers",)))

    assert client.get_driver_image("DL-1") is None


@pytest.mark.parametrize("path, expected", [
    ("https://cdn.test/a.jpg", "https://cdn.test/a.jpg"),
    ("a.jpg", f"{BASE_URL}/api/serve-image?path=/uploads/driver/a.jpg"),
    ("/uploads/car/b.png", f"{BASE_URL}/api/serve-image?path=/uploads/car/b.png"),
    ("/static/c.png", f"{BASE_URL}/static/c.png"),
])
def test_image_url(fleet_client, path, expected):
    assert fleet_client(FakeFleetApi()).image_url(path) == expected


def test_fetch_image(fleet_client):
    client = fleet_client(FakeFleetApi(images={"/uploads/driver/a.jpg": b"jpeg"}))

    assert client.fetch_image("a.jpg") == b"jpeg"
    assert client.fetch_image("missing.jpg") is None
    assert client.fetch_image(None) is None


def test_non_numeric_setting_uses_configured_default(fleet_client, settings):
    settings.DEFAULT_FREE_DISTANCE_THRESHOLD = 25
    api = FakeFleetApi(settings={"free_distance_threshold": "abc"})

    assert fleet_client(api).load_rate_settings().free_distance_threshold == 25


def test_fuel_records_are_paged_like_trips(fleet_client):
    api = FakeFleetApi(fuel=[raw_fuel(id=i) for i in range(1, 6)])

    records = fleet_client(api, page_size=2).fetch_fuel_records()

    assert [r["id"] for r in records] == [1, 2, 3, 4, 5]
    assert api.paths() == ["/api/fuel-records"] * 3
