"""Exception hierarchy shared by ingest, export and the CLI."""

from __future__ import annotations


class FuelPriceError(Exception):
    """Base class for every error raised by this package."""


# ── Ingest ───────────────────────────────────────────────────────


class IngestError(FuelPriceError, ValueError):
    """The source workbook cannot be turned into a price state."""


class MissingSheet(IngestError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Required fuel sheet(s) not found: {', '.join(self.missing)}")


class MissingColumns(IngestError):
    def __init__(self, sheet: str, missing: list[str]) -> None:
        self.sheet = sheet
        self.missing = list(missing)
        super().__init__(
            f"Sheet {sheet!r}: header column(s) not found: {', '.join(self.missing)}"
        )


class NotEnoughSurveyRows(IngestError):
    def __init__(self, sheet: str, found: int, required: int) -> None:
        self.sheet = sheet
        self.found = found
        self.required = required
        super().__init__(
            f"Sheet {sheet!r}: {found} dated row(s) found, {required} required"
        )


# ── Header search ────────────────────────────────────────────────


class HeaderNotFound(FuelPriceError, LookupError):
    def __init__(self, target: str, first_row: int, last_row: int) -> None:
        self.target = target
        self.first_row = first_row
        self.last_row = last_row
        super().__init__(
            f"{target}: no header row with survey date and national columns "
            f"in rows {first_row}-{last_row}"
        )


# ── Export ───────────────────────────────────────────────────────


class TemplateError(FuelPriceError):
    """A single template section could not be filled."""


class SectionNotFound(TemplateError):
    def __init__(self, section_id: str) -> None:
        self.section_id = section_id
        super().__init__(f"No data sections available for {section_id!r}")


class TemplateSheetMissing(TemplateError):
    def __init__(self, sheet: str) -> None:
        self.sheet = sheet
        super().__init__(f"Template sheet not found: {sheet!r}")


class SectionWriteError(TemplateError):
    def __init__(self, section_id: str, coordinate: str, reason: str) -> None:
        self.section_id = section_id
        self.coordinate = coordinate
        super().__init__(f"{section_id}: cannot write {coordinate} ({reason})")


class NoStoredState(FuelPriceError):
    def __init__(self) -> None:
        super().__init__("まだデータが更新されていません")
