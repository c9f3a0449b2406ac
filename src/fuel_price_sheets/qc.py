"""Export report persistence."""

from __future__ import annotations

from pathlib import Path

from fuel_price_sheets.io import write_json
from fuel_price_sheets.models import ExportReport


def write_export_report(out_dir: Path, report: ExportReport) -> Path:
    """Write ``export_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "export_report.json", report.to_dict())
