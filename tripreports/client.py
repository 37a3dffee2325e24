"""
HTTP client for the fleet back-office API.

Trips, fuel records, vehicles, drivers and system settings all come from there; this app
only reads.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from django.conf import settings

from .models import RateSettings
from .utils import parse_amount, starts_with_number

logger = logging.getLogger(__name__)

DISTANCE_RATE_KEY = "distance_rate"
FREE_DISTANCE_THRESHOLD_KEY = "free_distance_threshold"
DRIVER_UPLOAD_PREFIX = "/uploads/driver/"


class FleetApiError(Exception):
    def __init__(self, message, url=None, status=None):
        super().__init__(message)
        self.url = url
        self.status = status


class FleetApiClient:
    def __init__(self, base_url=None, token=None, timeout=None, page_size=None,
                 max_workers=None, session=None):
        self.base_url = (base_url or settings.FLEET_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.FLEET_API_TIMEOUT
        self.page_size = page_size or settings.FLEET_API_PAGE_SIZE
        self.max_workers = max_workers or settings.FLEET_API_MAX_WORKERS
        self.session = session or requests.Session()
        token = token if token is not None else settings.FLEET_API_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path):
        return f"{self.base_url}{path}"

    def _get(self, path, params=None, allow_missing=False):
        url = self._url(path)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FleetApiError(f"Request to {url} failed: {exc}", url=url) from exc
        if allow_missing and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise FleetApiError(f"{url} returned HTTP {response.status_code}",
                                url=url, status=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise FleetApiError(f"{url} returned invalid JSON", url=url,
                                status=response.status_code) from exc

    # --- paged collections ---

    @staticmethod
    def _page_records(payload):
        if not isinstance(payload, dict):
            return []
        return list(payload.get("trips") or payload.get("data") or [])

    def _page(self, path, page, params):
        return self._get(path, params={**params, "page": page, "limit": self.page_size})

    def _fetch_all(self, path, start_date=None, end_date=None) -> List[Dict[str, Any]]:
        """Every record of a paged collection in the date window.

        Page 1 tells us the total; pages 2..N are then requested together and
        appended in page order.
        """
        params = {}
        if start_date:
            params["startDate"] = start_date.isoformat()
        if end_date:
            params["endDate"] = end_date.isoformat()

        first = self._page(path, 1, params)
        records = self._page_records(first)
        pagination = first.get("pagination") if isinstance(first, dict) else None
        total = int(parse_amount((pagination or {}).get("total")))
        total_pages = math.ceil(total / self.page_size) if total else 1
        logger.debug("%s %s: total=%d pages=%d", path, params, total, total_pages)

        if total_pages > 1:
            remaining = range(2, total_pages + 1)
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                pages = pool.map(lambda page: self._page(path, page, params), remaining)
                for payload in pages:
                    records.extend(self._page_records(payload))
        return records

    def fetch_trip_records(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Dict[str, Any]]:
        return self._fetch_all("/api/trip-records", start_date, end_date)

    def fetch_fuel_records(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Dict[str, Any]]:
        return self._fetch_all("/api/fuel-records", start_date, end_date)

    # --- reference data ---

    def list_vehicles(self) -> List[Dict[str, Any]]:
        payload = self._get("/api/vehicles")
        if isinstance(payload, list):
            return payload
        return list(payload.get("data") or payload.get("vehicles") or [])

    def get_setting(self, key: str) -> Optional[str]:
        payload = self._get(f"/api/system-settings/{quote(key)}", allow_missing=True)
        if not payload:
            return None
        value = payload.get("value")
        if value is None and isinstance(payload.get("data"), dict):
            value = payload["data"].get("value")
        return None if value is None else str(value)

    def _numeric_setting(self, key, default, minimum, inclusive):
        try:
            raw = self.get_setting(key)
        except FleetApiError as exc:
            logger.warning("Could not load setting %s, using %s: %s", key, default, exc)
            return default
        if raw is None:
            return default
        value = parse_amount(raw)
        valid = value >= minimum if inclusive else value > minimum
        if not valid or not starts_with_number(raw):
            logger.warning("Ignoring setting %s=%r, using %s", key, raw, default)
            return default
        return value

    def load_rate_settings(self) -> RateSettings:
        return RateSettings(
            distance_rate=self._numeric_setting(
                DISTANCE_RATE_KEY, settings.DEFAULT_DISTANCE_RATE, 0, inclusive=False),
            free_distance_threshold=self._numeric_setting(
                FREE_DISTANCE_THRESHOLD_KEY, settings.DEFAULT_FREE_DISTANCE_THRESHOLD, 0, inclusive=True),
        )

    # --- driver images ---

    def get_driver_image(self, license: str) -> Optional[str]:
        license = (license or "").strip()
        if not license:
            return None
        try:
            payload = self._get(f"/api/drivers/by-license/{quote(license, safe='')}", allow_missing=True)
        except FleetApiError as exc:
            logger.warning("Driver lookup for licence %s failed: %s", license, exc)
            return None
        if not payload:
            return None
        return (payload.get("driver") or {}).get("driverImage") or None

    def image_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = DRIVER_UPLOAD_PREFIX + path
        if path.startswith("/uploads/"):
            return f"{self._url('/api/serve-image')}?path={quote(path)}"
        return self._url(path)

    def fetch_image(self, path: Optional[str]) -> Optional[bytes]:
        """Image bytes, or None when there is no path or the download fails."""
        if not path:
            return None
        url = self.image_url(path)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Image download %s failed: %s", url, exc)
            return None
        if response.status_code != 200 or not response.content:
            logger.warning("Image download %s returned HTTP %s", url, response.status_code)
            return None
        return response.content
