"""Header row location — finds the survey-date / national header near a nominal row."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from openpyxl.worksheet.worksheet import Worksheet

from fuel_price_sheets.errors import HeaderNotFound
from fuel_price_sheets.names import normalize_name

DATE_LABEL = "調査日"
NATIONAL_LABEL = "全国"

MAX_UP = 20
MAX_DOWN = 10

# Column A holds the fuel label in some layouts; never a prefecture.
_RESERVED_COLUMN = 1


@dataclass(frozen=True)
class HeaderLocation:
    row: int
    nominal_row: int
    date_col: int
    national_col: int
    columns: dict[str, int] = field(default_factory=dict)
    label: str = ""

    @property
    def offset(self) -> int:
        """Actual minus nominal header row."""
        return self.row - self.nominal_row


def scan_header_row(ws: Worksheet, row: int, *, nominal_row: int | None = None) -> HeaderLocation | None:
    """Read *row* as a header; ``None`` unless both key labels are present."""
    date_col = 0
    national_col = 0
    label = ""
    columns: dict[str, int] = {}

    max_col = ws.max_column
    if row < 1 or row > ws.max_row or max_col < 1:
        return None
    values = next(ws.iter_rows(min_row=row, max_row=row, max_col=max_col, values_only=True))
    for col, value in enumerate(values, 1):
        name = normalize_name(value)
        if not name:
            continue
        if name == DATE_LABEL and not date_col:
            date_col = col
        elif name == NATIONAL_LABEL and not national_col:
            national_col = col
        elif col == _RESERVED_COLUMN:
            label = name
        else:
            columns.setdefault(name, col)

    if not date_col or not national_col:
        return None
    return HeaderLocation(
        row=row,
        nominal_row=row if nominal_row is None else nominal_row,
        date_col=date_col,
        national_col=national_col,
        columns=columns,
        label=label,
    )


def candidate_rows(nominal_row: int, *, up: int = MAX_UP, down: int = MAX_DOWN) -> list[int]:
    """Rows to probe: upward from *nominal_row* first, then downward."""
    upward = [r for r in range(nominal_row, nominal_row - up - 1, -1) if r >= 1]
    downward = list(range(nominal_row + 1, nominal_row + down + 1))
    return upward + downward


def locate_header(
    ws: Worksheet,
    nominal_row: int,
    *,
    target: str = "",
    up: int = MAX_UP,
    down: int = MAX_DOWN,
    accept: Callable[[HeaderLocation], bool] | None = None,
) -> HeaderLocation:
    """Find the first header row in :func:`candidate_rows` order.

    Raises
    ------
    HeaderNotFound
        If no row within ``[nominal_row - up, nominal_row + down]`` holds both
        the survey-date and national labels (and passes *accept*, if given).
    """
    for row in candidate_rows(nominal_row, up=up, down=down):
        found = scan_header_row(ws, row, nominal_row=nominal_row)
        if found is not None and (accept is None or accept(found)):
            return found
    raise HeaderNotFound(target or ws.title, max(1, nominal_row - up), nominal_row + down)
