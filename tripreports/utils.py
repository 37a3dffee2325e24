import math
import re
from datetime import date, datetime

import pandas as pd

_LEADING_NUMBER = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

VEHICLE_TYPE_LABELS = {
    "truck": "รถบรรทุก",
    "pickup": "รถกระบะ",
    "forklift": "โฟล์คลิฟท์",
}

DRIVER_TYPE_LABELS = {
    "main": "คนขับหลัก",
    "backup": "คนขับรอง",
    "other": "คนขับแทน",
}

BUDDHIST_ERA_OFFSET = 543


def parse_amount(value):
    """Read a money/distance value from the API.

    Numbers pass through; strings are read up to the first non-numeric
    character ("12.5 km" -> 12.5). Anything absent or unreadable is 0.0 so a
    bad cell shows up as a zero-cost line rather than breaking the report.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(1))
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def starts_with_number(text) -> bool:
    return _LEADING_NUMBER.match(str(text)) is not None


def parse_trip_date(value):
    """Parse ISO timestamps and Thai-style DD/MM/YYYY dates. Returns None when unreadable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    dayfirst = "/" in text
    parsed = pd.to_datetime(text, errors="coerce", dayfirst=dayfirst, utc=True)
    if pd.isna(parsed):
        return None
    return parsed.tz_convert(None).to_pydatetime()


def to_buddhist_year(year):
    return int(year) + BUDDHIST_ERA_OFFSET


def thai_date(value):
    """dd/mm/<Buddhist year>, or '-' when the date is unreadable."""
    parsed = parse_trip_date(value)
    if parsed is None:
        return "-"
    return f"{parsed.day:02d}/{parsed.month:02d}/{to_buddhist_year(parsed.year)}"


def short_date(value):
    parsed = parse_trip_date(value)
    return parsed.strftime("%d/%m/%Y") if parsed else "-"


def travel_period(departure, return_date):
    start = thai_date(departure)
    end = thai_date(return_date) if return_date else "-"
    if end == "-" or end == start:
        return start
    return f"{start} - {end}"


def vehicle_type_label(vehicle_type):
    if not vehicle_type:
        return ""
    return VEHICLE_TYPE_LABELS.get(vehicle_type.lower(), vehicle_type)


def driver_type_label(driver_type):
    return DRIVER_TYPE_LABELS.get(driver_type or "main", DRIVER_TYPE_LABELS["main"])


def format_number(value, decimals=2):
    """Thousands separators, up to `decimals` places, trailing zeros dropped."""
    number = parse_amount(value)
    if number == 0:
        return "0"
    text = f"{number:,.{decimals}f}"
    if decimals and "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_distance(value):
    return format_number(round(parse_amount(value)), decimals=0)
