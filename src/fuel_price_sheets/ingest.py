"""Ingest builder — weekly publication workbook to PriceState."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from fuel_price_sheets import LEGACY_SCHEMA_VERSION, SCHEMA_VERSION, SURVEY_WINDOW
from fuel_price_sheets.cells import as_iso_date, as_price, to_cell_value
from fuel_price_sheets.errors import MissingColumns, MissingSheet, NotEnoughSurveyRows
from fuel_price_sheets.header import DATE_LABEL, NATIONAL_LABEL, HeaderLocation, scan_header_row
from fuel_price_sheets.models import PrefRow, PriceState, Section, latest_survey_date
from fuel_price_sheets.names import normalize_name
from fuel_price_sheets.regions import (
    FUEL_SHEET_NAME,
    FUELS,
    LEGACY_GROUPS,
    REGION_PREFECTURES,
    legacy_group_prefectures,
    section_id,
    section_title,
)
from fuel_price_sheets.utils import utc_stamp

logger = logging.getLogger(__name__)

SOURCE_HEADER_ROW = 1


def _read_source_header(ws: Worksheet) -> HeaderLocation:
    found = scan_header_row(ws, SOURCE_HEADER_ROW)
    if found is not None:
        return found

    # Report exactly which of the two key labels is absent.
    labels = {
        normalize_name(c)
        for c in next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
    }
    missing = [label for label in (DATE_LABEL, NATIONAL_LABEL) if label not in labels]
    raise MissingColumns(ws.title, missing or [DATE_LABEL, NATIONAL_LABEL])


def last_dated_rows(ws: Worksheet, date_col: int, *, first_row: int = 2, window: int = SURVEY_WINDOW) -> list[int]:
    """Row numbers of the last *window* rows with a non-empty date, ascending."""
    rows: list[int] = []
    for row_idx, (value,) in enumerate(
        ws.iter_rows(min_row=first_row, min_col=date_col, max_col=date_col, values_only=True),
        start=first_row,
    ):
        if not to_cell_value(value).is_empty:
            rows.append(row_idx)
    return sorted(rows[-window:])


class _SheetSeries:
    """Header and the dated rows of one fuel sheet, read once."""

    def __init__(self, ws: Worksheet, *, window: int) -> None:
        self.sheet = ws.title
        self.header = _read_source_header(ws)
        rows = last_dated_rows(ws, self.header.date_col, first_row=self.header.row + 1, window=window)
        if len(rows) < window:
            raise NotEnoughSurveyRows(ws.title, len(rows), window)
        self._values = {
            r: next(ws.iter_rows(min_row=r, max_row=r, values_only=True)) for r in rows
        }
        self.rows = rows
        self.survey_dates = [as_iso_date(to_cell_value(self._cell(r, self.header.date_col))) for r in rows]
        self.national = [as_price(to_cell_value(self._cell(r, self.header.national_col))) for r in rows]

    def _cell(self, row: int, col: int) -> object:
        values = self._values[row]
        return values[col - 1] if col <= len(values) else None

    def pref_rows(self, prefectures: Sequence[str]) -> list[PrefRow]:
        result: list[PrefRow] = []
        for prefecture in prefectures:
            col = self.header.columns.get(normalize_name(prefecture))
            if col is None:
                logger.debug("%s: no column for %s", self.sheet, prefecture)
                continue
            prices = [as_price(to_cell_value(self._cell(r, col))) for r in self.rows]
            result.append(PrefRow(prefecture=prefecture, prices=prices))
        return result

    def section(self, fuel: str, region: str, prefectures: Sequence[str]) -> Section:
        return Section(
            id=section_id(fuel, region),
            title=section_title(fuel, region),
            fuel=fuel,
            region=region,
            survey_dates=list(self.survey_dates),
            national=list(self.national),
            rows=self.pref_rows(prefectures),
        )


def build_sections_from_sheet(
    ws: Worksheet, fuel: str, *, schema: int = SCHEMA_VERSION, window: int = SURVEY_WINDOW
) -> list[Section]:
    """Build one section per region (or per legacy group) from a fuel sheet."""
    series = _SheetSeries(ws, window=window)
    if schema == LEGACY_SCHEMA_VERSION:
        return [
            series.section(fuel, group, legacy_group_prefectures(group))
            for group in LEGACY_GROUPS
        ]
    return [
        series.section(fuel, region, prefectures)
        for region, prefectures in REGION_PREFECTURES.items()
    ]


def build_price_state(
    wb: Workbook,
    *,
    schema: int = SCHEMA_VERSION,
    window: int = SURVEY_WINDOW,
    now: datetime | None = None,
) -> PriceState:
    """Build a :class:`PriceState` from the three fuel sheets of *wb*.

    Raises
    ------
    MissingSheet
        If any of the fuel sheets is absent.
    MissingColumns, NotEnoughSurveyRows
        If a fuel sheet lacks the key header columns or enough dated rows.
    """
    missing = [FUEL_SHEET_NAME[f] for f in FUELS if FUEL_SHEET_NAME[f] not in wb.sheetnames]
    if missing:
        raise MissingSheet(missing)

    sections: list[Section] = []
    for fuel in FUELS:
        ws = wb[FUEL_SHEET_NAME[fuel]]
        sections.extend(build_sections_from_sheet(ws, fuel, schema=schema, window=window))
        logger.info("Read sheet %s", ws.title)

    return PriceState(
        last_survey_date=latest_survey_date(sections),
        updated_at=utc_stamp(now),
        sections=sections,
        schema_version=schema,
    )
