"""I/O helpers — read workbook files, open workbooks, write JSON artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

# ── Loading ──────────────────────────────────────────────────────

_WORKBOOK_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")


def read_workbook_bytes(path: Path) -> bytes:
    """Return the raw bytes of an Excel workbook at *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is a directory or the extension is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".xls":
        raise ValueError(
            "Legacy .xls workbooks are not supported. "
            "Re-save the file as .xlsx and try again"
        )
    if suffix not in _WORKBOOK_SUFFIXES:
        raise ValueError(f"Unsupported file type: {suffix!r}. Use .xlsx or .xlsm")
    return path.read_bytes()


def open_workbook(data: bytes, *, data_only: bool = True) -> Workbook:
    """Open workbook *data*; ``data_only`` reads cached formula results."""
    try:
        return load_workbook(BytesIO(data), data_only=data_only)
    except (BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as exc:
        raise ValueError("Could not open workbook (corrupt or not an .xlsx file)") from exc


# ── JSON ─────────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path


def read_json(path: Path) -> Any:
    """Load JSON from *path*; raises ``ValueError`` on malformed content."""
    path = Path(path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed JSON in {path}: {exc.msg}") from exc


def write_bytes(path: Path, data: bytes) -> Path:
    """Atomically write *data* to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    tmp_path.write_bytes(data)
    tmp_path.replace(path)
    return path
