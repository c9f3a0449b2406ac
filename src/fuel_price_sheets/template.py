"""Template filler — projects a PriceState onto the fixed comparison workbook."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from fuel_price_sheets import SURVEY_WINDOW
from fuel_price_sheets.cells import format_template_date
from fuel_price_sheets.errors import (
    HeaderNotFound,
    SectionNotFound,
    SectionWriteError,
    TemplateError,
    TemplateSheetMissing,
)
from fuel_price_sheets.header import DATE_LABEL, NATIONAL_LABEL, HeaderLocation, locate_header
from fuel_price_sheets.models import ExportReport, PrefRow, PriceState, Section
from fuel_price_sheets.names import normalize_name
from fuel_price_sheets.regions import (
    BOUNDARY_REASSIGNMENTS,
    FUEL_TITLE,
    LEGACY_GROUPS,
    REGION_TITLE,
    label_variants,
    legacy_group_prefectures,
    section_id,
    section_title,
    split_section_id,
)
from fuel_price_sheets.schema import migrate

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "ガソリン価格比較表.xlsx"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEMPLATE_SHEET = "比較表まとめ"


@dataclass(frozen=True)
class TemplateLayout:
    sheet: str
    header_row: int
    data_start_row: int


# Nominal positions; the real header rows may drift after template edits.
SECTION_LAYOUTS: dict[str, TemplateLayout] = {
    "regular-east": TemplateLayout(TEMPLATE_SHEET, 1, 2),
    "high-east": TemplateLayout(TEMPLATE_SHEET, 7, 8),
    "diesel-east": TemplateLayout(TEMPLATE_SHEET, 13, 14),
    "regular-west": TemplateLayout(TEMPLATE_SHEET, 21, 22),
    "high-west": TemplateLayout(TEMPLATE_SHEET, 27, 28),
    "diesel-west": TemplateLayout(TEMPLATE_SHEET, 33, 34),
}


# ── Aggregation ──────────────────────────────────────────────────


def _find_row(sections: list[Section], prefecture: str) -> PrefRow | None:
    for s in sections:
        row = s.row_for(prefecture)
        if row is not None:
            return row
    return None


def aggregate_legacy_section(state: PriceState, legacy_id: str) -> Section:
    """Concatenate the region sections behind *legacy_id* in region order.

    Boundary prefectures are moved between groups according to
    :data:`BOUNDARY_REASSIGNMENTS`.
    """
    fuel, group = split_section_id(legacy_id)
    if group not in LEGACY_GROUPS:
        raise ValueError(f"Not a legacy section id: {legacy_id!r}")

    members = [
        s for s in (state.section(section_id(fuel, r)) for r in LEGACY_GROUPS[group])
        if s is not None
    ]
    if not members:
        raise SectionNotFound(legacy_id)

    moved_out = {p for p, (src, _dst) in BOUNDARY_REASSIGNMENTS.items() if src == group}
    moved_in = [p for p, (_src, dst) in BOUNDARY_REASSIGNMENTS.items() if dst == group]

    rows: list[PrefRow] = []
    seen: set[str] = set()
    for s in members:
        for row in s.rows:
            if row.prefecture in moved_out or row.prefecture in seen:
                continue
            rows.append(row)
            seen.add(row.prefecture)

    fuel_sections = [s for s in state.sections if s.fuel == fuel]
    for prefecture in moved_in:
        row = _find_row(fuel_sections, prefecture)
        if row is not None and prefecture not in seen:
            rows.append(row)
            seen.add(prefecture)

    first = members[0]
    return Section(
        id=legacy_id,
        title=section_title(fuel, group),
        fuel=fuel,
        region=group,
        survey_dates=list(first.survey_dates),
        national=list(first.national),
        rows=rows,
    )


# ── Filling ──────────────────────────────────────────────────────


def _row_lookup(section: Section) -> dict[str, PrefRow]:
    lookup: dict[str, PrefRow] = {}
    for row in section.rows:
        for label in label_variants(row.prefecture):
            lookup.setdefault(normalize_name(label), row)
    return lookup


def _belongs_to(section: Section) -> Callable[[HeaderLocation], bool]:
    """Reject headers whose column-A label names another fuel or group."""
    others = [t for f, t in FUEL_TITLE.items() if f != section.fuel]
    others += [REGION_TITLE[g] for g in LEGACY_GROUPS if g != section.region]

    def _accept(header: HeaderLocation) -> bool:
        return not any(normalize_name(t) in header.label for t in others)

    return _accept


def fill_section(ws: Worksheet, section: Section, layout: TemplateLayout) -> HeaderLocation:
    """Write *section* into the block described by *layout*.

    Unmatched template columns and unmatched prefectures are left untouched.
    Every target cell is checked before the first write, so a block holding
    a merged cell raises :class:`SectionWriteError` and stays unmodified.
    """
    header = locate_header(ws, layout.header_row, target=section.id, accept=_belongs_to(section))
    start = layout.data_start_row + header.offset
    lookup = _row_lookup(section)

    writes: list[tuple[Cell | MergedCell, object]] = []
    for i, survey_date in enumerate(section.survey_dates):
        row_idx = start + i
        writes.append((ws.cell(row=row_idx, column=header.date_col), format_template_date(survey_date)))
        writes.append((ws.cell(row=row_idx, column=header.national_col), section.national[i]))
        for label, col in header.columns.items():
            pref_row = lookup.get(label)
            if pref_row is None:
                continue
            writes.append((ws.cell(row=row_idx, column=col), pref_row.prices[i]))

    for cell, _value in writes:
        if isinstance(cell, MergedCell):
            raise SectionWriteError(section.id, cell.coordinate, "merged cell")
    for cell, value in writes:
        cell.value = value

    if header.offset:
        logger.info("%s: header found at row %d (offset %+d)", section.id, header.row, header.offset)
    return header


def fill_template(wb: Workbook, state: PriceState) -> ExportReport:
    """Fill every legacy section of the template; failures skip that section only.

    A ``ValueError`` while aggregating (inconsistent survey series across the
    member regions) also skips just that section.
    """
    state = migrate(state)
    report = ExportReport()
    for legacy_id, layout in SECTION_LAYOUTS.items():
        try:
            if layout.sheet not in wb.sheetnames:
                raise TemplateSheetMissing(layout.sheet)
            section = aggregate_legacy_section(state, legacy_id)
            fill_section(wb[layout.sheet], section, layout)
        except (TemplateError, HeaderNotFound, ValueError) as exc:
            logger.warning("Skipped %s: %s", legacy_id, exc)
            report.skipped[legacy_id] = str(exc)
            continue
        report.filled.append(legacy_id)
    return report


def export_workbook(state: PriceState, template: bytes) -> tuple[bytes, ExportReport]:
    """Fill a copy of *template* and return the workbook bytes plus the report."""
    wb = load_workbook(BytesIO(template))
    report = fill_template(wb, state)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue(), report


# ── Blank template ───────────────────────────────────────────────

HEADER_FONT = Font(bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
PRICE_FMT = "0.0"


def _template_label(prefecture: str) -> str:
    variants = label_variants(prefecture)
    # Okinawa is labelled with its prefectural suffix in the distributed sheet.
    return variants[1] if prefecture == "沖縄" else variants[0]


def new_template_workbook(window: int = SURVEY_WINDOW) -> Workbook:
    """Build an empty comparison workbook laid out as :data:`SECTION_LAYOUTS`."""
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet(TEMPLATE_SHEET)
    ws.title = TEMPLATE_SHEET

    for legacy_id, layout in SECTION_LAYOUTS.items():
        fuel, group = split_section_id(legacy_id)
        labels = [section_title(fuel, group), DATE_LABEL, NATIONAL_LABEL]
        labels.extend(_template_label(p) for p in legacy_group_prefectures(group))
        for col, label in enumerate(labels, 1):
            cell = ws.cell(row=layout.header_row, column=col, value=label)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = HEADER_ALIGN
        for r in range(layout.data_start_row, layout.data_start_row + window):
            for col in range(3, len(labels) + 1):
                ws.cell(row=r, column=col).number_format = PRICE_FMT

    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 12
    ws.freeze_panes = "B1"
    return wb

