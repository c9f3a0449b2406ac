"""Template filler: aggregation, boundary move, drift, partial success."""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO

import pytest
from conftest import LAST5_ISO, national_price, source_price, workbook_bytes
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from fuel_price_sheets import LEGACY_SCHEMA_VERSION
from fuel_price_sheets.errors import SectionNotFound
from fuel_price_sheets.ingest import build_price_state
from fuel_price_sheets.models import PrefRow, PriceState, Section
from fuel_price_sheets.template import (
    EXPORT_FILENAME,
    SECTION_LAYOUTS,
    TEMPLATE_SHEET,
    XLSX_MIME,
    aggregate_legacy_section,
    export_workbook,
    fill_section,
    fill_template,
    new_template_workbook,
)


def _header_cols(ws: Worksheet, row: int) -> dict[str, int]:
    return {
        str(cell.value): cell.column
        for cell in ws[row]
        if cell.value is not None
    }


def test_export_constants() -> None:
    assert EXPORT_FILENAME == "ガソリン価格比較表.xlsx"
    assert XLSX_MIME == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def test_boundary_prefecture_moves_to_east(make_state: Callable[..., PriceState]) -> None:
    state = make_state()

    east = aggregate_legacy_section(state, "regular-east")
    west = aggregate_legacy_section(state, "regular-west")

    east_names = [r.prefecture for r in east.rows]
    west_names = [r.prefecture for r in west.rows]
    assert "新潟" in east_names
    assert "新潟" not in west_names
    assert east_names[0] == "北海道"
    assert east_names[-1] == "新潟"
    assert west_names[:2] == ["富山", "石川"]
    assert len(east_names) + len(west_names) == 47


def test_aggregate_concatenates_in_region_order(make_state: Callable[..., PriceState]) -> None:
    state = make_state()

    west = aggregate_legacy_section(state, "diesel-west")

    assert west.id == "diesel-west"
    assert west.region == "west"
    assert west.title == "軽油（西日本）"
    assert west.survey_dates == LAST5_ISO
    names = [r.prefecture for r in west.rows]
    assert names.index("愛知") < names.index("三重") < names.index("鳥取") < names.index("沖縄")


def test_aggregate_without_member_sections_raises(make_state: Callable[..., PriceState]) -> None:
    state = make_state()
    state.sections = [s for s in state.sections if s.fuel != "high"]

    with pytest.raises(SectionNotFound, match="high-east"):
        aggregate_legacy_section(state, "high-east")


def test_round_trip_fills_documented_cells(source_workbook: Workbook) -> None:
    state = build_price_state(source_workbook)
    wb = new_template_workbook()

    report = fill_template(wb, state)

    assert report.filled == list(SECTION_LAYOUTS)
    assert report.skipped == {}
    ws = wb[TEMPLATE_SHEET]

    # regular-east: header row 1, data rows 2-6
    cols = _header_cols(ws, 1)
    assert ws.cell(row=2, column=cols["調査日"]).value == "2025/2/3"
    assert ws.cell(row=6, column=cols["調査日"]).value == "2025/3/3"
    assert ws.cell(row=2, column=cols["全国"]).value == national_price("regular", 2)
    assert ws.cell(row=6, column=cols["東京"]).value == source_price("regular", "東京", 6)
    assert ws.cell(row=4, column=cols["新潟"]).value == source_price("regular", "新潟", 4)

    # diesel-west: header row 33, data rows 34-38; 沖縄県 matches 沖縄
    cols = _header_cols(ws, 33)
    assert ws.cell(row=34, column=cols["全国"]).value == national_price("diesel", 2)
    assert ws.cell(row=38, column=cols["沖縄県"]).value == source_price("diesel", "沖縄", 6)
    assert ws.cell(row=36, column=cols["大阪"]).value == source_price("diesel", "大阪", 4)


def test_unmatched_columns_are_left_untouched(make_state: Callable[..., PriceState]) -> None:
    wb = new_template_workbook()
    ws = wb[TEMPLATE_SHEET]
    last_col = ws.max_column + 1
    ws.cell(row=1, column=last_col, value="備考")
    ws.cell(row=2, column=last_col, value="keep me")

    fill_template(wb, make_state())

    assert ws.cell(row=2, column=last_col).value == "keep me"
    assert ws.cell(row=3, column=last_col).value is None


def test_missing_prefecture_leaves_template_cell_blank(
    make_source_workbook: Callable[..., Workbook],
) -> None:
    state = build_price_state(make_source_workbook(omit=["高知"]))
    wb = new_template_workbook()

    fill_template(wb, state)

    ws = wb[TEMPLATE_SHEET]
    cols = _header_cols(ws, 21)
    assert ws.cell(row=22, column=cols["高知"]).value is None
    assert ws.cell(row=22, column=cols["香川"]).value is not None


def test_drifted_header_shifts_data_block(make_state: Callable[..., PriceState]) -> None:
    wb = new_template_workbook()
    ws = wb[TEMPLATE_SHEET]
    ws.insert_rows(7, amount=2)  # high-east header now sits on row 9

    layout = SECTION_LAYOUTS["high-east"]
    section = aggregate_legacy_section(make_state(), "high-east")
    header = fill_section(ws, section, layout)

    assert header.row == 9
    assert header.offset == 2
    cols = _header_cols(ws, 9)
    assert ws.cell(row=10, column=cols["調査日"]).value == "2025/2/3"
    assert ws.cell(row=14, column=cols["北海道"]).value == source_price("high", "北海道", 4)
    assert ws.cell(row=8, column=cols["調査日"]).value is None


def test_section_failure_is_skipped_not_fatal(make_state: Callable[..., PriceState]) -> None:
    wb = new_template_workbook()
    ws = wb[TEMPLATE_SHEET]
    for cell in ws[27]:
        cell.value = None  # wipe the high-west header

    report = fill_template(wb, make_state())

    assert "high-west" in report.skipped
    assert "rows 7-37" in report.skipped["high-west"]
    assert report.partial
    assert report.filled == [sid for sid in SECTION_LAYOUTS if sid != "high-west"]
    cols = _header_cols(ws, 33)
    assert ws.cell(row=34, column=cols["全国"]).value == national_price("diesel", 0)


def test_merged_cell_in_data_block_skips_only_that_section(
    make_state: Callable[..., PriceState],
) -> None:
    wb = new_template_workbook()
    ws = wb[TEMPLATE_SHEET]
    ws.merge_cells("D28:E28")

    report = fill_template(wb, make_state())

    assert set(report.skipped) == {"high-west"}
    assert "merged cell" in report.skipped["high-west"]
    assert "E28" in report.skipped["high-west"]
    assert report.filled == [sid for sid in SECTION_LAYOUTS if sid != "high-west"]
    # Nothing in the rejected block was written.
    assert ws["B28"].value is None
    assert ws["C29"].value is None
    assert ws.cell(row=22, column=2).value == "2025/2/3"


def test_inconsistent_region_series_skips_only_that_section(
    make_state: Callable[..., PriceState],
) -> None:
    state = make_state()
    short = Section(
        id="regular-kinki",
        title="レギュラー（近畿）",
        fuel="regular",
        region="kinki",
        survey_dates=LAST5_ISO[1:],
        national=[national_price("regular", i) for i in range(1, 5)],
        rows=[PrefRow("大阪", [source_price("regular", "大阪", i) for i in range(1, 5)])],
    )
    sections = [short if s.id == "regular-kinki" else s for s in state.sections]
    wb = new_template_workbook()

    report = fill_template(
        wb, PriceState(state.last_survey_date, state.updated_at, sections)
    )

    assert list(report.skipped) == ["regular-west"]
    assert len(report.filled) == 5


def test_missing_template_sheet_skips_every_section(make_state: Callable[..., PriceState]) -> None:
    wb = new_template_workbook()
    wb[TEMPLATE_SHEET].title = "Sheet1"

    report = fill_template(wb, make_state())

    assert report.filled == []
    assert set(report.skipped) == set(SECTION_LAYOUTS)
    assert all("比較表まとめ" in reason for reason in report.skipped.values())


def test_legacy_state_is_migrated_before_filling(source_workbook: Workbook) -> None:
    legacy = build_price_state(source_workbook, schema=LEGACY_SCHEMA_VERSION)
    wb = new_template_workbook()

    report = fill_template(wb, legacy)

    assert report.skipped == {}
    ws = wb[TEMPLATE_SHEET]
    cols = _header_cols(ws, 1)
    assert ws.cell(row=6, column=cols["新潟"]).value == source_price("regular", "新潟", 6)


def test_export_workbook_returns_loadable_bytes(source_workbook: Workbook) -> None:
    state = build_price_state(source_workbook)
    template = workbook_bytes(new_template_workbook())

    payload, report = export_workbook(state, template)

    assert not report.partial
    ws = load_workbook(BytesIO(payload))[TEMPLATE_SHEET]
    cols = _header_cols(ws, 7)
    assert ws.cell(row=12, column=cols["全国"]).value == national_price("high", 6)
    assert ws.cell(row=7, column=1).value == "ハイオク（東日本）"
    assert ws.cell(row=7, column=1).font.bold
