"""Shared fixtures: in-memory publication workbooks and templates."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import Workbook

from fuel_price_sheets.models import PrefRow, PriceState, Section
from fuel_price_sheets.regions import (
    FUEL_SHEET_NAME,
    FUELS,
    REGION_PREFECTURES,
    section_id,
    section_title,
)
from fuel_price_sheets.template import new_template_workbook

SURVEY_DATES = [
    datetime(2025, 1, 20),
    datetime(2025, 1, 27),
    datetime(2025, 2, 3),
    datetime(2025, 2, 10),
    datetime(2025, 2, 17),
    datetime(2025, 2, 24),
    datetime(2025, 3, 3),
]
LAST5_ISO = ["2025-02-03", "2025-02-10", "2025-02-17", "2025-02-24", "2025-03-03"]

FUEL_BASE = {"regular": 180.0, "high": 191.0, "diesel": 160.0}
ALL_PREFECTURES = [p for prefs in REGION_PREFECTURES.values() for p in prefs]

# Source headers are inconsistently spaced.
_SPACED_LABELS = {"東京": "東　京", "大阪": " 大阪 ", "神奈川": "神奈川 "}


def source_price(fuel: str, prefecture: str, row_offset: int) -> float:
    return round(FUEL_BASE[fuel] + row_offset + ALL_PREFECTURES.index(prefecture) / 10, 1)


def national_price(fuel: str, row_offset: int) -> float:
    return FUEL_BASE[fuel] + row_offset + 0.5


def _fill_sheet(
    ws,  # type: ignore[no-untyped-def]
    fuel: str,
    *,
    dates: list[object],
    omit: Iterable[str],
    header_labels: tuple[str, str],
) -> None:
    prefectures = [p for p in ALL_PREFECTURES if p not in set(omit)]
    ws.cell(row=1, column=1, value="週")
    ws.cell(row=1, column=2, value=header_labels[0])
    ws.cell(row=1, column=3, value=header_labels[1])
    for col, p in enumerate(prefectures, 4):
        ws.cell(row=1, column=col, value=_SPACED_LABELS.get(p, p))

    for offset, d in enumerate(dates):
        r = 2 + offset
        ws.cell(row=r, column=1, value=offset + 1)
        ws.cell(row=r, column=2, value=d)
        ws.cell(row=r, column=3, value=national_price(fuel, offset))
        for col, p in enumerate(prefectures, 4):
            ws.cell(row=r, column=col, value=source_price(fuel, p, offset))

    # Footnote row without a date must not count as a survey.
    ws.cell(row=2 + len(dates) + 1, column=1, value="※ 税込価格")


@pytest.fixture
def make_source_workbook() -> Callable[..., Workbook]:
    def _make(
        *,
        dates: list[object] | None = None,
        omit: Iterable[str] = (),
        skip_fuels: Iterable[str] = (),
        header_labels: tuple[str, str] = ("調査日", "全国"),
    ) -> Workbook:
        wb = Workbook()
        default = wb.active
        if default is not None:
            wb.remove(default)
        for fuel in FUELS:
            if fuel in set(skip_fuels):
                continue
            ws = wb.create_sheet(title=FUEL_SHEET_NAME[fuel])
            _fill_sheet(
                ws,
                fuel,
                dates=list(SURVEY_DATES if dates is None else dates),
                omit=omit,
                header_labels=header_labels,
            )
        return wb

    return _make


@pytest.fixture
def source_workbook(make_source_workbook: Callable[..., Workbook]) -> Workbook:
    return make_source_workbook()


def workbook_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def source_bytes(source_workbook: Workbook) -> bytes:
    return workbook_bytes(source_workbook)


@pytest.fixture
def template_bytes() -> bytes:
    return workbook_bytes(new_template_workbook())


@pytest.fixture
def make_state() -> Callable[..., PriceState]:
    """Build a current-schema state without going through a workbook."""

    def _make(
        *,
        last: str = "2025-03-03",
        dates: list[str] | None = None,
        zero: Iterable[str] = (),
    ) -> PriceState:
        survey = list(LAST5_ISO if dates is None else dates)
        survey[-1] = last
        zeroed = set(zero)
        sections: list[Section] = []
        for fuel in FUELS:
            for region, prefs in REGION_PREFECTURES.items():
                rows = [
                    PrefRow(
                        prefecture=p,
                        prices=[0.0] * len(survey) if p in zeroed
                        else [source_price(fuel, p, i) for i in range(len(survey))],
                    )
                    for p in prefs
                ]
                sections.append(
                    Section(
                        id=section_id(fuel, region),
                        title=section_title(fuel, region),
                        fuel=fuel,
                        region=region,
                        survey_dates=list(survey),
                        national=[national_price(fuel, i) for i in range(len(survey))],
                        rows=rows,
                    )
                )
        return PriceState(
            last_survey_date=last,
            updated_at="2025-03-04T00:00:00+00:00",
            sections=sections,
        )

    return _make
