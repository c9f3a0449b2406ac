"""Cell value boundary — raw openpyxl values in, tagged values out."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, cast

import pandas as pd
from openpyxl.utils.datetime import from_excel

logger = logging.getLogger(__name__)

CellKind = Literal["text", "number", "date", "empty"]

_KANJI_DATE_SEP_RE = re.compile(r"[年月]")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_SHAPE_RE = re.compile(r"\d{1,4}[/.\-]\d{1,2}")


@dataclass(frozen=True)
class CellValue:
    kind: CellKind
    value: str | float | date | None = None

    @property
    def is_empty(self) -> bool:
        return self.kind == "empty"


EMPTY = CellValue("empty")


def to_cell_value(raw: Any) -> CellValue:
    """Classify any raw cell value.  Total: never raises."""
    if raw is None:
        return EMPTY
    if isinstance(raw, str):
        if not raw.strip():
            return EMPTY
        return CellValue("text", raw)
    if isinstance(raw, datetime):
        return CellValue("date", raw.date())
    if isinstance(raw, date):
        return CellValue("date", raw)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return CellValue("number", float(raw))
    return CellValue("text", str(raw))


# ── Dates ────────────────────────────────────────────────────────


def _parse_date_text(text: str) -> date | None:
    cleaned = _KANJI_DATE_SEP_RE.sub("/", text.strip()).replace("日", "")
    if not _DATE_SHAPE_RE.search(cleaned):
        return None
    parsed = pd.to_datetime(cleaned, errors="coerce", format="mixed")
    if pd.isna(parsed):
        return None
    return parsed.date()


def as_iso_date(cell: CellValue) -> str:
    """Render a survey-date cell as ``YYYY-MM-DD``.

    Text that cannot be parsed is returned verbatim.
    """
    if cell.kind == "empty":
        return ""
    if cell.kind == "date":
        return cast(date, cell.value).isoformat()
    if cell.kind == "number":
        serial = cast(float, cell.value)
        try:
            converted = from_excel(serial)
        except (ValueError, OverflowError):
            converted = None
        # Serials below 1 are time-of-day fractions, not dates.
        if not isinstance(converted, datetime):
            logger.debug("Serial %r is not a valid Excel date; kept as text", serial)
            return f"{serial:g}"
        return converted.date().isoformat()

    text = str(cell.value)
    parsed = _parse_date_text(text)
    if parsed is None:
        logger.debug("Unparseable survey date %r preserved verbatim", text)
        return text
    return parsed.isoformat()


def format_template_date(value: str) -> str:
    """``2025-03-03`` -> ``2025/3/3``; anything else passes through."""
    if not _ISO_DATE_RE.match(value):
        return value
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{d.year}/{d.month}/{d.day}"


# ── Prices ───────────────────────────────────────────────────────


def as_price(cell: CellValue) -> float:
    """Render a price cell as a non-negative float; 0.0 means no data."""
    if cell.kind == "number":
        value = cast(float, cell.value)
    elif cell.kind == "text":
        token = str(cell.value).strip().replace(",", "")
        try:
            value = float(token)
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(value) or value < 0:
        return 0.0
    return value
