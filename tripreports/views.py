import logging
from dataclasses import asdict

from django.conf import settings
from django.contrib import messages
from django.core.paginator import Paginator
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import content_disposition_header

from .cache import DriverImageCache
from .client import FleetApiClient, FleetApiError
from .exports import (export_filename, fuel_filename, fuel_records_to_csv, records_to_csv, report_to_xlsx,
                      vehicle_filename)
from .forms import ReportFilterForm
from .pdf import DISPOSITIONS, ReportRenderError, render_driver_report, render_fuel_report, render_vehicle_report
from .pipeline import ReportPipeline, VehicleNotFound

logger = logging.getLogger(__name__)

ROWS_PER_PAGE = 20
LOAD_ERROR = "ไม่สามารถโหลดข้อมูลการเดินทางได้ กรุณาลองใหม่อีกครั้ง"
NO_TRIPS = "ไม่พบข้อมูลการเดินทางในช่วงเวลาที่เลือก"
NO_FUEL = "ไม่พบข้อมูลการเติมน้ำมันในช่วงเวลาที่เลือก"


def build_pipeline():
    return ReportPipeline(FleetApiClient(), logger=logger)


def _back_to(name, request, *args):
    url = reverse(name, args=args)
    query = request.GET.urlencode()
    return redirect(f"{url}?{query}" if query else url)


def _pdf_response(content, filename, mode):
    resp = HttpResponse(content, content_type="application/pdf")
    resp["Content-Disposition"] = content_disposition_header(mode == "download", filename)
    return resp


def _filters(request):
    form = ReportFilterForm(request.GET or None)
    year, month = form.period()
    return year, month, form.driver_name()


def _with_photos(client, records):
    """Pair each record with its driver avatar URL, one licence lookup per driver."""
    images = DriverImageCache(client)
    images.prefetch(r.driver_license for r in records if not r.driver_image)
    rows = []
    for r in records:
        path = r.driver_image or images.peek(r.driver_license)
        rows.append((r, client.image_url(path) if path else None))
    return rows


# --- driver report ---

def driver_report(request):
    year, month, driver = _filters(request)
    report = None
    pipeline = build_pipeline()
    try:
        report = pipeline.driver_report(year, month, driver)
    except FleetApiError as exc:
        logger.error("Driver report %s/%s failed: %s", year, month, exc)
        messages.error(request, LOAD_ERROR)

    drivers = report.drivers if report else []
    form = ReportFilterForm(
        request.GET or None,
        initial={"year": year, "month": month, "driver": driver},
        drivers=drivers,
    )
    if report is not None and not report.records:
        messages.warning(request, NO_TRIPS)

    page_obj = Paginator(report.records if report else [], ROWS_PER_PAGE).get_page(request.GET.get("page"))
    query = request.GET.copy()
    query.pop("page", None)
    return render(request, "tripreports/driver_report.html", {
        "form": form,
        "report": report,
        "page_obj": page_obj,
        "rows": _with_photos(pipeline.client, page_obj.object_list),
        "query": query.urlencode(),
        "first_index": page_obj.start_index() if report else 0,
    })


def trip_detail(request, trip_id):
    year, month, _ = _filters(request)
    pipeline = build_pipeline()
    try:
        record = pipeline.find_trip(trip_id, year, month)
    except FleetApiError as exc:
        logger.error("Trip %s detail failed: %s", trip_id, exc)
        return HttpResponse(LOAD_ERROR, status=502)
    if record is None:
        return HttpResponse("Trip not found", status=404)
    image = DriverImageCache(pipeline.client).for_record(record)
    return render(request, "tripreports/trip_detail.html", {
        "record": record,
        "driver_image_url": pipeline.client.image_url(image) if image else None,
    })


def driver_report_pdf(request, mode):
    if mode not in DISPOSITIONS:
        raise Http404("Unknown export mode")
    year, month, driver = _filters(request)
    pipeline = build_pipeline()
    try:
        report = pipeline.driver_report(year, month, driver)
        photo = None
        if report.driver_name and report.records:
            image = DriverImageCache(pipeline.client).for_record(report.records[0])
            photo = pipeline.client.fetch_image(image)
        content = render_driver_report(report, photo=photo, disposition=mode,
                                       font_file=settings.REPORT_FONT_FILE, logger=logger)
    except (FleetApiError, ReportRenderError) as exc:
        logger.error("Driver report PDF failed: %s", exc)
        messages.error(request, f"ไม่สามารถสร้างรายงาน PDF ได้: {exc}")
        return _back_to("driver_report", request)
    return _pdf_response(content, export_filename(report, "pdf"), mode)


def driver_report_csv(request):
    year, month, driver = _filters(request)
    try:
        report = build_pipeline().driver_report(year, month, driver)
    except FleetApiError as exc:
        logger.error("Driver report CSV failed: %s", exc)
        messages.error(request, LOAD_ERROR)
        return _back_to("driver_report", request)
    resp = HttpResponse(records_to_csv(report.records), content_type="text/csv; charset=utf-8")
    resp["Content-Disposition"] = content_disposition_header(True, export_filename(report, "csv"))
    return resp


def driver_report_xlsx(request):
    year, month, driver = _filters(request)
    try:
        report = build_pipeline().driver_report(year, month, driver)
    except FleetApiError as exc:
        logger.error("Driver report XLSX failed: %s", exc)
        messages.error(request, LOAD_ERROR)
        return _back_to("driver_report", request)
    resp = HttpResponse(
        report_to_xlsx(report),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    resp["Content-Disposition"] = content_disposition_header(True, export_filename(report, "xlsx"))
    return resp


def driver_summary_json(request):
    year, month, driver = _filters(request)
    try:
        report = build_pipeline().driver_report(year, month, driver)
    except FleetApiError as exc:
        logger.error("Driver summary failed: %s", exc)
        return JsonResponse({"error": str(exc)}, status=502)
    return JsonResponse({
        "year": report.period.year,
        "month": report.period.month,
        "driver": report.driver_name,
        "rates": asdict(report.rates),
        "summary": asdict(report.summary),
        "groups": [
            {"key": g.key, "label": g.label, "summary": asdict(g.summary)}
            for g in report.groups
        ],
    }, json_dumps_params={"ensure_ascii": False})


# --- vehicle reports ---

def vehicles_overview(request):
    year, month, _ = _filters(request)
    overview = None
    try:
        overview = build_pipeline().vehicles_overview(year, month)
    except FleetApiError as exc:
        logger.error("Vehicle overview %s/%s failed: %s", year, month, exc)
        messages.error(request, LOAD_ERROR)
    if overview is not None and not overview.groups:
        messages.warning(request, NO_TRIPS)
    form = ReportFilterForm(request.GET or None, initial={"year": year, "month": month})
    return render(request, "tripreports/vehicles.html", {
        "form": form,
        "overview": overview,
        "query": request.GET.urlencode(),
    })


def vehicle_report(request, vehicle_id):
    year, month, _ = _filters(request)
    report = None
    try:
        report = build_pipeline().vehicle_report(vehicle_id, year, month)
    except VehicleNotFound as exc:
        raise Http404(str(exc))
    except FleetApiError as exc:
        logger.error("Vehicle %s report failed: %s", vehicle_id, exc)
        messages.error(request, LOAD_ERROR)
    if report is not None and not report.records:
        messages.warning(request, NO_TRIPS)
    form = ReportFilterForm(request.GET or None, initial={"year": year, "month": month})
    return render(request, "tripreports/vehicle_report.html", {
        "form": form,
        "report": report,
        "vehicle_id": vehicle_id,
        "query": request.GET.urlencode(),
    })


def vehicle_report_pdf(request, vehicle_id, mode):
    if mode not in DISPOSITIONS:
        raise Http404("Unknown export mode")
    year, month, _ = _filters(request)
    try:
        report = build_pipeline().vehicle_report(vehicle_id, year, month)
        content = render_vehicle_report(report, disposition=mode,
                                        font_file=settings.REPORT_FONT_FILE, logger=logger)
    except VehicleNotFound as exc:
        raise Http404(str(exc))
    except (FleetApiError, ReportRenderError) as exc:
        logger.error("Vehicle %s PDF failed: %s", vehicle_id, exc)
        messages.error(request, f"ไม่สามารถสร้างรายงาน PDF ได้: {exc}")
        return _back_to("vehicle_report", request, vehicle_id)
    return _pdf_response(content, vehicle_filename(report, "pdf"), mode)


# --- fuel records ---

def _fuel_filters(request):
    form = ReportFilterForm(request.GET or None)
    year, month = form.period()
    return year, month, form.vehicle_id()


def fuel_report(request):
    year, month, vehicle_id = _fuel_filters(request)
    report = None
    pipeline = build_pipeline()
    try:
        report = pipeline.fuel_report(year, month, vehicle_id)
    except FleetApiError as exc:
        logger.error("Fuel report %s/%s failed: %s", year, month, exc)
        messages.error(request, LOAD_ERROR)
    if report is not None and not report.records:
        messages.warning(request, NO_FUEL)

    form = ReportFilterForm(
        request.GET or None,
        initial={"year": year, "month": month, "vehicle": vehicle_id},
        vehicles=report.vehicles if report else [],
    )
    page_obj = Paginator(report.records if report else [], ROWS_PER_PAGE).get_page(request.GET.get("page"))
    query = request.GET.copy()
    query.pop("page", None)
    return render(request, "tripreports/fuel_report.html", {
        "form": form,
        "report": report,
        "page_obj": page_obj,
        "rows": _with_photos(pipeline.client, page_obj.object_list),
        "query": query.urlencode(),
        "first_index": page_obj.start_index() if report else 0,
    })


def fuel_report_pdf(request, mode):
    if mode not in DISPOSITIONS:
        raise Http404("Unknown export mode")
    year, month, vehicle_id = _fuel_filters(request)
    try:
        report = build_pipeline().fuel_report(year, month, vehicle_id)
        content = render_fuel_report(report, disposition=mode,
                                     font_file=settings.REPORT_FONT_FILE, logger=logger)
    except (FleetApiError, ReportRenderError) as exc:
        logger.error("Fuel report PDF failed: %s", exc)
        messages.error(request, f"ไม่สามารถสร้างรายงาน PDF ได้: {exc}")
        return _back_to("fuel_report", request)
    return _pdf_response(content, fuel_filename(report, "pdf"), mode)


def fuel_report_csv(request):
    year, month, vehicle_id = _fuel_filters(request)
    try:
        report = build_pipeline().fuel_report(year, month, vehicle_id)
    except FleetApiError as exc:
        logger.error("Fuel report CSV failed: %s", exc)
        messages.error(request, LOAD_ERROR)
        return _back_to("fuel_report", request)
    resp = HttpResponse(fuel_records_to_csv(report.records), content_type="text/csv; charset=utf-8")
    resp["Content-Disposition"] = content_disposition_header(True, fuel_filename(report, "csv"))
    return resp
