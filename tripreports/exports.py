"""
Spreadsheet exports of the driver and fuel reports.
"""
import csv
from io import BytesIO

import pandas as pd

from .aggregation import driver_key
from .utils import driver_type_label, short_date, to_buddhist_year, vehicle_type_label

CSV_COLUMNS = [
    "วันที่เดินทาง",
    "พนักงานขับรถ",
    "ทะเบียนรถ",
    "ยี่ห้อ/รุ่น",
    "ประเภทรถ",
    "ลูกค้า",
    "ระยะทางจริง (กม.)",
    "ระยะทางประมาณ (กม.)",
    "ค่าใช้จ่ายคนขับ",
    "ค่าเที่ยว",
    "รวมค่าใช้จ่าย",
    "หมายเหตุ",
]

SUMMARY_COLUMNS = [
    "พนักงานขับรถ",
    "จำนวนเที่ยว",
    "ระยะทางรวม (กม.)",
    "ระยะทางเฉลี่ย (กม.)",
    "เบี้ยเลี้ยง",
    "ค่าระยะทาง",
    "ค่าวัสดุ",
    "ค่าเที่ยว",
    "รวมค่าใช้จ่าย",
]

FUEL_CSV_COLUMNS = [
    "วันที่เติมน้ำมัน",
    "ทะเบียนรถ",
    "ยี่ห้อ",
    "รุ่น",
    "ประเภทรถ",
    "คนขับ",
    "ประเภทคนขับ",
    "ปริมาณน้ำมัน (ลิตร)",
    "เลขไมล์",
    "หมายเหตุ",
]


def detail_frame(records):
    rows = []
    for r in records:
        vehicle = r.vehicle
        rows.append([
            short_date(r.trip_date),
            driver_key(r),
            r.license_plate,
            vehicle.display_name if vehicle else "",
            vehicle_type_label(vehicle.vehicle_type) if vehicle else "",
            r.customer_name,
            r.actual_distance,
            r.estimated_distance,
            r.driver_expenses,
            r.trip_fee,
            r.total_costs,
            r.remark,
        ])
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def summary_frame(groups, total=None):
    rows = [
        [g.label, g.summary.total_trips, g.summary.total_distance, g.summary.average_distance,
         g.summary.allowance, g.summary.calculated_distance_cost, g.summary.supplies_cost,
         g.summary.trip_fee, g.summary.total_costs]
        for g in groups
    ]
    if total is not None:
        rows.append(["รวมทั้งหมด", total.total_trips, total.total_distance, total.average_distance,
                     total.allowance, total.calculated_distance_cost, total.supplies_cost,
                     total.trip_fee, total.total_costs])
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def records_to_csv(records) -> bytes:
    """UTF-8 with BOM so Excel opens the Thai headers correctly; every cell quoted."""
    return detail_frame(records).to_csv(index=False, quoting=csv.QUOTE_ALL).encode("utf-8-sig")



def fuel_frame(records):
    rows = []
    for r in records:
        vehicle = r.vehicle
        rows.append([
            short_date(r.fuel_date),
            r.license_plate or "-",
            vehicle.brand if vehicle else "",
            (vehicle.model if vehicle else "") or "-",
            vehicle_type_label(vehicle.vehicle_type) if vehicle else "",
            r.display_driver or "-",
            driver_type_label(r.driver_type),
            r.fuel_amount,
            f"{r.odometer:g}" if r.odometer is not None else "-",
            r.remark or "-",
        ])
    return pd.DataFrame(rows, columns=FUEL_CSV_COLUMNS)


def fuel_records_to_csv(records) -> bytes:
    return fuel_frame(records).to_csv(index=False, quoting=csv.QUOTE_ALL).encode("utf-8-sig")

def report_to_xlsx(report) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        detail_frame(report.records).to_excel(writer, sheet_name="Trips", index=False)
        summary_frame(report.groups, report.summary).to_excel(writer, sheet_name="Drivers", index=False)
    return buffer.getvalue()


def _period_suffix(period):
    suffix = str(to_buddhist_year(period.year))
    if period.month:
        suffix += f"-{period.month:02d}"
    return suffix


def export_filename(report, extension):
    """driver-report-<driver|all>-<Buddhist year>[-MM].<ext>"""
    return f"driver-report-{report.driver_name or 'all'}-{_period_suffix(report.period)}.{extension}"


def vehicle_filename(report, extension):
    plate = report.vehicle.license_plate or str(report.vehicle.id)
    return f"vehicle-report-{plate}-{_period_suffix(report.period)}.{extension}"


def fuel_filename(report, extension):
    target = (report.vehicle.license_plate or str(report.vehicle.id)) if report.vehicle else "all"
    return f"fuel-report-{target}-{_period_suffix(report.period)}.{extension}"
