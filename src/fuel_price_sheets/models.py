"""Data models — price state, sections, export report, run manifest."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any

from fuel_price_sheets import LEGACY_SCHEMA_VERSION, SCHEMA_VERSION
from fuel_price_sheets.regions import FUEL_SHEET_NAME, REGION_TITLE, section_id


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_price_list(values: Sequence[Any] | None, field_name: str) -> list[float]:
    if values is None or isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of numbers")
    prices: list[float] = []
    for item in values:
        if isinstance(item, bool) or not isinstance(item, Real):
            raise TypeError(f"{field_name} items must be numbers")
        value = float(item)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"{field_name} items must be finite and >= 0")
        prices.append(value)
    return prices


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} must be a mapping")
    return data


# ── Price state ──────────────────────────────────────────────────


@dataclass
class PrefRow:
    """One prefecture's prices, oldest survey first (0.0 = no data)."""

    prefecture: str
    prices: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.prefecture, str) or not self.prefecture:
            raise TypeError("prefecture must be a non-empty string")
        self.prices = _to_price_list(self.prices, "prices")

    def to_dict(self) -> dict[str, Any]:
        return {"prefecture": self.prefecture, "prices": list(self.prices)}

    @classmethod
    def from_dict(cls, data: Any) -> PrefRow:
        data = _require_mapping(data, "row")
        return cls(prefecture=data.get("prefecture", ""), prices=data.get("prices"))


@dataclass
class Section:
    """Survey dates, national series and prefecture rows for one fuel x region.

    Contract invariants: ``len(survey_dates) == len(national)``; every row's
    prices share that length; prefecture labels are unique.
    """

    id: str
    title: str
    fuel: str
    region: str
    survey_dates: list[str] = field(default_factory=list)
    national: list[float] = field(default_factory=list)
    rows: list[PrefRow] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.fuel not in FUEL_SHEET_NAME:
            raise ValueError(f"Unknown fuel: {self.fuel!r}")
        if self.region not in REGION_TITLE:
            raise ValueError(f"Unknown region: {self.region!r}")
        if self.id != section_id(self.fuel, self.region):
            raise ValueError(f"Section id {self.id!r} does not match {self.fuel}/{self.region}")
        self.survey_dates = _to_string_list(self.survey_dates, "survey_dates")
        self.national = _to_price_list(self.national, "national")
        if len(self.survey_dates) != len(self.national):
            raise ValueError("survey_dates and national must have the same length")

        seen: set[str] = set()
        for row in self.rows:
            if not isinstance(row, PrefRow):
                raise TypeError("rows items must be PrefRow")
            if len(row.prices) != len(self.survey_dates):
                raise ValueError(
                    f"{self.id}: prices for {row.prefecture} must have "
                    f"{len(self.survey_dates)} values"
                )
            if row.prefecture in seen:
                raise ValueError(f"{self.id}: duplicate prefecture {row.prefecture}")
            seen.add(row.prefecture)

    @property
    def window(self) -> int:
        return len(self.survey_dates)

    def row_for(self, prefecture: str) -> PrefRow | None:
        for row in self.rows:
            if row.prefecture == prefecture:
                return row
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "fuel": self.fuel,
            "region": self.region,
            "surveyDates": list(self.survey_dates),
            "national": list(self.national),
            "rows": [row.to_dict() for row in self.rows],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Section:
        data = _require_mapping(data, "section")
        rows = data.get("rows") or []
        if isinstance(rows, (str, Mapping)):
            raise TypeError("rows must be a sequence")
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            fuel=data.get("fuel", ""),
            region=data.get("region", ""),
            survey_dates=data.get("surveyDates"),
            national=data.get("national") or [],
            rows=[PrefRow.from_dict(r) for r in rows],
        )


@dataclass
class PriceState:
    """Normalised snapshot of one weekly publication.

    ``schema_version`` is 2 for the per-region layout and 1 for the legacy
    east/west layout.
    """

    last_survey_date: str
    updated_at: str
    sections: list[Section] = field(default_factory=list)
    schema_version: int = SCHEMA_VERSION

    def __post_init__(self) -> None:
        self.schema_version = _to_non_negative_int(self.schema_version, "schema_version")
        if self.schema_version not in (LEGACY_SCHEMA_VERSION, SCHEMA_VERSION):
            raise ValueError(f"Unsupported schema_version: {self.schema_version}")
        ids = [s.id for s in self.sections]
        if len(ids) != len(set(ids)):
            raise ValueError("section ids must be unique")

    def section(self, sid: str) -> Section | None:
        for s in self.sections:
            if s.id == sid:
                return s
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "lastSurveyDate": self.last_survey_date,
            "updatedAt": self.updated_at,
            "sections": [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: Any) -> PriceState:
        """Rebuild a state from its JSON form.

        Payloads written before versioning carry no ``schemaVersion``; their
        version is inferred from the section layout.
        """
        from fuel_price_sheets.schema import detect_schema_version

        data = _require_mapping(data, "state")
        raw_sections = data.get("sections") or []
        if isinstance(raw_sections, (str, Mapping)):
            raise TypeError("sections must be a sequence")
        sections = [Section.from_dict(s) for s in raw_sections]
        version = data.get("schemaVersion")
        if version is None:
            version = detect_schema_version(sections)
        return cls(
            last_survey_date=str(data.get("lastSurveyDate", "")),
            updated_at=str(data.get("updatedAt", "")),
            sections=sections,
            schema_version=version,
        )


def latest_survey_date(sections: Sequence[Section]) -> str:
    """Most recent survey date across *sections* (ISO strings sort by date)."""
    dates = [d for s in sections for d in s.survey_dates if d]
    return max(dates) if dates else ""


# ── Run artefacts ────────────────────────────────────────────────


@dataclass
class ExportReport:
    """Partial-success metadata for one template export."""

    filled: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.filled = _to_string_list(self.filled, "filled")
        self.skipped = dict(self.skipped)

    @property
    def partial(self) -> bool:
        return bool(self.skipped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filled": list(self.filled),
            "skipped": dict(self.skipped),
            "partial": self.partial,
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "fuel-price-sheets"
    version: str = ""
    command: str = ""
    input_path: str = ""
    created_at_utc: str = ""
    sha256: str = ""
    status: str = "success"
    last_survey_date: str = ""
    sections: int = 0
    message: str = ""
    error_code: int | None = None

    def __post_init__(self) -> None:
        self.sections = _to_non_negative_int(self.sections, "sections")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "command": self.command,
            "input_path": self.input_path,
            "created_at_utc": self.created_at_utc,
            "sha256": self.sha256,
            "status": self.status,
            "last_survey_date": self.last_survey_date,
            "sections": self.sections,
            "message": self.message,
            "error_code": self.error_code,
        }
