"""
PDF rendering for trip-cost and fuel reports with PyMuPDF.

A report is a list of sections. Each section is a list of measured blocks
that layout.paginate places onto A4 pages; the footer pass then stamps
"Page N/Total" on all of them, and only then is anything drawn.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

import fitz  # PyMuPDF

from .layout import Block, Page, paginate, stamp_footers
from .utils import format_distance, format_number, short_date, travel_period

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 28
FOOTER_SPACE = 24
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
CONTENT_HEIGHT = PAGE_HEIGHT - 2 * MARGIN - FOOTER_SPACE

LINE_HEIGHT = 14
ROW_HEIGHT = 16
NOTE_HEIGHT = 11
PHOTO_SIZE = 56
CELL_FONT_SIZE = 7.5

HEADER_FILL = (0.31, 0.51, 0.74)
TOTAL_FILL = (0.85, 0.88, 0.95)
SUMMARY_FILL = (0.96, 0.97, 0.99)
GRID = (0.63, 0.63, 0.63)
MUTED = (0.38, 0.38, 0.38)
AVATAR_FILL = (0.38, 0.49, 0.55)
WHITE = (1, 1, 1)
BLACK = (0, 0, 0)

DISPOSITIONS = ("download", "print", "preview")
PRINT_ON_OPEN = "<</S/JavaScript/JS(this.print({bUI:true});)>>"


class ReportRenderError(Exception):
    """The report cannot be produced; no partial document is returned."""


@dataclass
class Column:
    title: str
    width: float
    align: str = "left"


@dataclass
class Row:
    columns: Sequence[Column]
    cells: Sequence[str]
    style: str = "body"  # head | body | total
    note: str = ""


@dataclass
class Title:
    title: str
    lines: List[str] = field(default_factory=list)
    show_photo: bool = False
    photo: Optional[bytes] = None
    photo_label: str = ""


@dataclass
class Summary:
    items: List[tuple]  # (label, value)


@dataclass
class Heading:
    text: str
    detail: str = ""


def title_block(title: Title) -> Block:
    height = LINE_HEIGHT * (1.6 + len(title.lines)) + 8
    if title.show_photo:
        height = max(height, PHOTO_SIZE + 12)
    return Block(height, title, "title")


def summary_block(summary: Summary) -> Block:
    lines = (len(summary.items) + 1) // 2
    return Block(lines * LINE_HEIGHT + 14, summary, "summary")


def heading_block(heading: Heading) -> Block:
    return Block(LINE_HEIGHT * 2 + 6, heading, "heading")


def row_block(row: Row) -> Block:
    return Block(ROW_HEIGHT + (NOTE_HEIGHT if row.note else 0), row, row.style)


def table_header(columns: Sequence[Column]) -> Block:
    return row_block(Row(columns, [c.title for c in columns], style="head"))


def stack_block(blocks: List[Block]) -> Block:
    """Blocks kept together on one page; the first is a heading over its own table header."""
    return Block(sum(b.height for b in blocks), blocks, "stack", headed=True)


class PdfReport:
    """
    Collects sections, lays them out, then draws them into one PDF.

    Each section starts on a new page. ``repeat_header`` (usually the table
    header row) is drawn again at the top of the section's continuation pages.
    """

    def __init__(self, font_file: str = "", printed_at: Optional[datetime] = None, logger=None):
        if font_file and not os.path.exists(font_file):
            raise ReportRenderError(f"Report font file not found: {font_file}")
        self.font_file = font_file
        self.printed_at = printed_at or datetime.now()
        self.log = logger or logging.getLogger(__name__)
        self.sections: List[tuple] = []
        if font_file:
            self._font = self._bold_font = fitz.Font(fontfile=font_file)
        else:
            self._font = fitz.Font("helv")
            self._bold_font = fitz.Font("hebo")

    def add_section(self, blocks: List[Block], repeat_header: Optional[Block] = None) -> None:
        self.sections.append((blocks, repeat_header))

    def layout(self) -> List[Page]:
        """Place every block, then stamp footers once the page count is final."""
        if not self.sections:
            raise ReportRenderError("Nothing to render")
        pages: List[Page] = []
        for blocks, repeat_header in self.sections:
            pages.extend(paginate(blocks, CONTENT_HEIGHT, repeat_header=repeat_header))
        for number, page in enumerate(pages, start=1):
            page.number = number
        return stamp_footers(pages, self.printed_at.strftime("%d/%m/%Y %H:%M:%S"))

    def render(self, disposition: str = "download") -> bytes:
        if disposition not in DISPOSITIONS:
            raise ReportRenderError(f"Unknown output mode: {disposition}")
        pages = self.layout()
        doc = fitz.open()
        try:
            for laid_out in pages:
                page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
                for placement in laid_out.placements:
                    self._draw_block(page, placement.block, MARGIN + placement.y)
                self._draw_footer(page, laid_out.footer)
            if disposition == "print":
                doc.xref_set_key(doc.pdf_catalog(), "OpenAction", PRINT_ON_OPEN)
            self.log.debug("Rendered report: %d pages, mode=%s", len(pages), disposition)
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()

    # --- drawing ---

    def _text(self, page, x, y, text, size=8, bold=False, color=BLACK):
        kwargs = {"fontsize": size, "color": color}
        if self.font_file:
            kwargs.update(fontname="report", fontfile=self.font_file)
        else:
            kwargs["fontname"] = "hebo" if bold else "helv"
        page.insert_text(fitz.Point(x, y), text, **kwargs)

    def _width(self, text, size, bold=False):
        font = self._bold_font if bold else self._font
        return font.text_length(text, fontsize=size)

    def _fit(self, text, width, size, bold=False):
        text = text or ""
        if self._width(text, size, bold) <= width:
            return text
        while text and self._width(text + "..", size, bold) > width:
            text = text[:-1]
        return text + ".."

    def _draw_block(self, page, block: Block, top):
        if block.kind == "stack":
            for inner in block.payload:
                self._draw_block(page, inner, top)
                top += inner.height
        elif block.kind == "title":
            self._draw_title(page, block.payload, top)
        elif block.kind == "summary":
            self._draw_summary(page, block.payload, top, block.height)
        elif block.kind == "heading":
            self._draw_heading(page, block.payload, top)
        else:
            self._draw_row(page, block.payload, top, block.height)

    def _draw_row(self, page, row: Row, top, height):
        bold = row.style in ("head", "total")
        fill = {"head": HEADER_FILL, "total": TOTAL_FILL}.get(row.style)
        color = WHITE if row.style == "head" else BLACK
        page.draw_rect(fitz.Rect(MARGIN, top, MARGIN + CONTENT_WIDTH, top + height),
                       color=GRID, fill=fill, width=0.4)
        x = MARGIN
        for column, value in zip(row.columns, row.cells):
            text = self._fit(str(value), column.width - 6, CELL_FONT_SIZE, bold)
            if column.align == "right":
                tx = x + column.width - 3 - self._width(text, CELL_FONT_SIZE, bold)
            else:
                tx = x + 3
            self._text(page, tx, top + 11, text, size=CELL_FONT_SIZE, bold=bold, color=color)
            x += column.width
        if row.note:
            note = self._fit(row.note, CONTENT_WIDTH - 12, 6.5)
            self._text(page, MARGIN + 6, top + ROW_HEIGHT + 8, note, size=6.5, color=MUTED)

    def _draw_photo(self, page, title: Title, top):
        rect = fitz.Rect(PAGE_WIDTH - MARGIN - PHOTO_SIZE, top, PAGE_WIDTH - MARGIN, top + PHOTO_SIZE)
        if title.photo:
            try:
                page.insert_image(rect, stream=title.photo, keep_proportion=True)
                return
            except Exception as exc:  # MuPDF raises its own error types for bad image data
                self.log.warning("Driver photo could not be drawn, using placeholder: %s", exc)
        radius = PHOTO_SIZE / 2
        center = fitz.Point(rect.x0 + radius, rect.y0 + radius)
        page.draw_circle(center, radius, color=AVATAR_FILL, fill=AVATAR_FILL)
        initials = "".join(part[:1] for part in title.photo_label.split()[:2]).upper() or "?"
        width = self._width(initials, 18, bold=True)
        self._text(page, center.x - width / 2, center.y + 6, initials, size=18, bold=True, color=WHITE)

    def _draw_title(self, page, title: Title, top):
        self._text(page, MARGIN, top + LINE_HEIGHT, title.title, size=13, bold=True)
        y = top + LINE_HEIGHT * 1.6
        for line in title.lines:
            y += LINE_HEIGHT
            self._text(page, MARGIN, y, line, size=9, color=MUTED)
        if title.show_photo:
            self._draw_photo(page, title, top)

    def _draw_summary(self, page, summary: Summary, top, height):
        page.draw_rect(fitz.Rect(MARGIN, top + 2, MARGIN + CONTENT_WIDTH, top + height - 4),
                       color=GRID, fill=SUMMARY_FILL, width=0.4)
        half = CONTENT_WIDTH / 2
        for index, (label, value) in enumerate(summary.items):
            x = MARGIN + 8 + (index % 2) * half
            y = top + 14 + (index // 2) * LINE_HEIGHT
            self._text(page, x, y, f"{label}:", size=8.5, color=MUTED)
            value = str(value)
            self._text(page, x + half - 20 - self._width(value, 8.5, True), y, value, size=8.5, bold=True)

    def _draw_heading(self, page, heading: Heading, top):
        self._text(page, MARGIN, top + LINE_HEIGHT, heading.text, size=10.5, bold=True)
        if heading.detail:
            self._text(page, MARGIN, top + LINE_HEIGHT * 2, heading.detail, size=8, color=MUTED)

    def _draw_footer(self, page, footer):
        y = PAGE_HEIGHT - MARGIN + 6
        self._text(page, MARGIN, y, footer.left, size=7, color=MUTED)
        self._text(page, PAGE_WIDTH - MARGIN - self._width(footer.right, 7), y, footer.right,
                   size=7, color=MUTED)


# --- report compositions ---

TRIP_COLUMNS = [
    Column("No.", 24, "right"),
    Column("Travel date", 84),
    Column("Plate", 52),
    Column("Customer", 75),
    Column("Act km", 38, "right"),
    Column("Est km", 38, "right"),
    Column("Allowance", 46, "right"),
    Column("Distance", 46, "right"),
    Column("Supplies", 42, "right"),
    Column("Trip fee", 42, "right"),
    Column("Total", 52, "right"),
]

DRIVER_COLUMNS = [
    Column("No.", 24, "right"),
    Column("Driver", 139),
    Column("Trips", 40, "right"),
    Column("Km", 56, "right"),
    Column("Avg km", 52, "right"),
    Column("Allowance", 58, "right"),
    Column("Distance", 58, "right"),
    Column("Trip fee", 50, "right"),
    Column("Total", 62, "right"),
]

FUEL_COLUMNS = [
    Column("No.", 24, "right"),
    Column("Date", 64),
    Column("Driver", 130),
    Column("Driver type", 60),
    Column("Litres", 60, "right"),
    Column("Odometer", 70, "right"),
    Column("Remark", 131),
]

FUEL_VEHICLE_COLUMNS = [
    Column("No.", 24, "right"),
    Column("Plate", 80),
    Column("Vehicle", 150),
    Column("Type", 80),
    Column("Refuels", 60, "right"),
    Column("Litres", 70, "right"),
    Column("Avg / refuel", 75, "right"),
]

FUEL_DRIVER_TYPES = {"main": "Main", "backup": "Backup", "other": "Relief"}


def _trip_row(index, record) -> Block:
    return row_block(Row(
        TRIP_COLUMNS,
        [
            str(index),
            travel_period(record.trip_date, record.return_date),
            record.license_plate or "-",
            record.customer_name or "-",
            format_distance(record.actual_distance),
            format_distance(record.estimated_distance),
            format_number(record.allowance),
            format_number(record.calculated_distance_cost),
            format_number(record.supplies_cost),
            format_number(record.trip_fee),
            format_number(record.total_costs),
        ],
        note=record.remark if record.remark not in ("", "-") else "",
    ))


def _trip_total_row(summary) -> Block:
    return row_block(Row(
        TRIP_COLUMNS,
        ["", "Total", "", f"{summary.total_trips} trips",
         format_distance(summary.actual_distance),
         format_distance(summary.estimated_distance),
         format_number(summary.allowance),
         format_number(summary.calculated_distance_cost),
         format_number(summary.supplies_cost),
         format_number(summary.trip_fee),
         format_number(summary.total_costs)],
        style="total",
    ))


def _driver_row(label, summary, index="", style="body") -> Block:
    return row_block(Row(
        DRIVER_COLUMNS,
        [str(index), label, str(summary.total_trips),
         format_distance(summary.total_distance),
         format_distance(summary.average_distance),
         format_number(summary.allowance),
         format_number(summary.calculated_distance_cost),
         format_number(summary.trip_fee),
         format_number(summary.total_costs)],
        style=style,
    ))


def _summary_items(summary, rates):
    return [
        ("Trips", summary.total_trips),
        ("Drivers", summary.drivers_count),
        ("Total distance (km)", format_distance(summary.total_distance)),
        ("Average distance (km)", format_distance(summary.average_distance)),
        ("Allowance", format_number(summary.allowance)),
        ("Distance cost", format_number(summary.calculated_distance_cost)),
        ("Supplies", format_number(summary.supplies_cost)),
        ("Trip fee", format_number(summary.trip_fee)),
        ("Total costs", format_number(summary.total_costs)),
        ("Average cost / trip", format_number(summary.average_cost)),
        ("Distance rate", f"{format_number(rates.distance_rate)} / km"),
    ]


def trip_table(records, summary) -> List[Block]:
    """Header, one row per trip, then the total row; every column total sums its own rows."""
    blocks = [table_header(TRIP_COLUMNS)]
    blocks += [_trip_row(i, r) for i, r in enumerate(records, start=1)]
    blocks.append(_trip_total_row(summary))
    return blocks


def _grouped_table(heading: Heading, table: List[Block]) -> List[Block]:
    """Keep the heading, the table header and the first row on the same page."""
    return [stack_block([heading_block(heading)] + table[:2])] + table[2:]


def render_driver_report(report, photo: Optional[bytes] = None, disposition="download",
                         font_file="", printed_at=None, logger=None) -> bytes:
    """Single-driver trip report, or the all-drivers overview followed by one section per driver."""
    if not report.records:
        raise ReportRenderError("No trip records to export")
    pdf = PdfReport(font_file=font_file, printed_at=printed_at, logger=logger)
    period = f"Period: {report.period.latin_label}"
    summary = summary_block(Summary(_summary_items(report.summary, report.rates)))

    if report.driver_name:
        licence = report.records[0].driver_license or "-"
        title = Title("Driver Trip Cost Report",
                      [f"Driver: {report.driver_name}", f"Licence: {licence}", period],
                      show_photo=True, photo=photo, photo_label=report.driver_name)
        rows = trip_table(report.records, report.summary)
        pdf.add_section([title_block(title), summary] + rows, repeat_header=rows[0])
        return pdf.render(disposition)

    driver_header = table_header(DRIVER_COLUMNS)
    overview = [title_block(Title("Driver Trip Cost Report", ["Driver: all", period])), summary, driver_header]
    overview += [_driver_row(g.label, g.summary, i) for i, g in enumerate(report.groups, start=1)]
    overview.append(_driver_row("Grand total", report.summary, style="total"))
    pdf.add_section(overview, repeat_header=driver_header)

    details = []
    for index, group in enumerate(report.groups, start=1):
        gs = group.summary
        heading = Heading(
            f"{index}. {group.label}",
            f"{gs.total_trips} trips, {format_distance(gs.total_distance)} km, "
            f"total {format_number(gs.total_costs)}",
        )
        details += _grouped_table(heading, trip_table(group.records, gs))
    pdf.add_section(details, repeat_header=table_header(TRIP_COLUMNS))
    return pdf.render(disposition)


def render_vehicle_report(report, disposition="download", font_file="", printed_at=None,
                          logger=None) -> bytes:
    if not report.records:
        raise ReportRenderError("No trip records to export")
    vehicle = report.vehicle
    s = report.summary
    pdf = PdfReport(font_file=font_file, printed_at=printed_at, logger=logger)
    title = Title("Vehicle Trip Report", [
        f"Vehicle: {vehicle.license_plate} {vehicle.display_name}".strip(),
        f"Type: {vehicle.vehicle_type or '-'}",
        f"Period: {report.period.latin_label}",
    ])
    costs = Summary([
        ("Trips", s.total_trips),
        ("Total distance (km)", format_distance(s.total_distance)),
        ("Average distance (km)", format_distance(s.average_distance)),
        ("Allowance", format_number(s.allowance)),
        ("Fuel", format_number(s.fuel_cost)),
        ("Toll", format_number(s.toll_fee)),
        ("Repair", format_number(s.repair_cost)),
        ("Distance check", format_number(s.distance_check_fee)),
        ("Grand total", format_number(s.operating_costs)),
    ])
    rows = trip_table(report.records, s)
    pdf.add_section([title_block(title), summary_block(costs)] + rows, repeat_header=rows[0])
    return pdf.render(disposition)


# --- fuel records ---

def _fuel_row(index, record) -> Block:
    return row_block(Row(
        FUEL_COLUMNS,
        [
            str(index),
            short_date(record.fuel_date) or "-",
            record.display_driver or "-",
            FUEL_DRIVER_TYPES.get(record.driver_type, FUEL_DRIVER_TYPES["main"]),
            format_number(record.fuel_amount),
            format_distance(record.odometer) if record.odometer else "-",
            record.remark or "-",
        ],
    ))


def _fuel_total_row(summary, label="Total") -> Block:
    return row_block(Row(
        FUEL_COLUMNS,
        ["", label, f"{summary.total_records} refuels", "",
         format_number(summary.total_fuel), "", ""],
        style="total",
    ))


def fuel_table(records, summary) -> List[Block]:
    blocks = [table_header(FUEL_COLUMNS)]
    blocks += [_fuel_row(i, r) for i, r in enumerate(records, start=1)]
    blocks.append(_fuel_total_row(summary))
    return blocks


def _fuel_vehicle_row(index, group) -> Block:
    vehicle = group.vehicle
    s = group.summary
    return row_block(Row(
        FUEL_VEHICLE_COLUMNS,
        [str(index), group.label,
         vehicle.display_name if vehicle else "-",
         (vehicle.vehicle_type if vehicle else "") or "-",
         str(s.total_records), format_number(s.total_fuel), format_number(s.average_fuel)],
    ))


def _fuel_summary_items(summary):
    return [
        ("Vehicles", summary.vehicles_count),
        ("Refuels", summary.total_records),
        ("Total fuel (L)", format_number(summary.total_fuel)),
        ("Average / refuel (L)", format_number(summary.average_fuel)),
    ]


def render_fuel_report(report, disposition="download", font_file="", printed_at=None,
                       logger=None) -> bytes:
    """One vehicle's refuels, or a per-vehicle overview followed by one section per vehicle."""
    if not report.records:
        raise ReportRenderError("No fuel records to export")
    pdf = PdfReport(font_file=font_file, printed_at=printed_at, logger=logger)
    period = f"Period: {report.period.latin_label}"
    totals = summary_block(Summary(_fuel_summary_items(report.summary)))

    if report.vehicle is not None:
        vehicle = report.vehicle
        title = Title("Fuel Records Report", [
            f"Vehicle: {vehicle.license_plate} {vehicle.display_name}".strip(),
            f"Type: {vehicle.vehicle_type or '-'}",
            period,
        ])
        rows = fuel_table(report.records, report.summary)
        pdf.add_section([title_block(title), totals] + rows, repeat_header=rows[0])
        return pdf.render(disposition)

    vehicle_header = table_header(FUEL_VEHICLE_COLUMNS)
    s = report.summary
    overview = [title_block(Title("Fuel Records Report", ["Vehicle: all", period])), totals, vehicle_header]
    overview += [_fuel_vehicle_row(i, g) for i, g in enumerate(report.groups, start=1)]
    overview.append(row_block(Row(
        FUEL_VEHICLE_COLUMNS,
        ["", "Grand total", f"{s.vehicles_count} vehicles", "", str(s.total_records),
         format_number(s.total_fuel), format_number(s.average_fuel)],
        style="total",
    )))
    pdf.add_section(overview, repeat_header=vehicle_header)

    details = []
    for index, group in enumerate(report.groups, start=1):
        gs = group.summary
        heading = Heading(
            f"{index}. {group.label}",
            f"{gs.total_records} refuels, {format_number(gs.total_fuel)} L, "
            f"average {format_number(gs.average_fuel)} L",
        )
        details += _grouped_table(heading, fuel_table(group.records, gs))
    pdf.add_section(details, repeat_header=table_header(FUEL_COLUMNS))
    return pdf.render(disposition)
