"""CLI entry point for fuel-price-sheets."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from fuel_price_sheets import __version__
from fuel_price_sheets.errors import FuelPriceError, IngestError, NoStoredState
from fuel_price_sheets.io import read_workbook_bytes, write_bytes, write_json
from fuel_price_sheets.models import PriceState, RunManifest
from fuel_price_sheets.pipeline import migrate_stored, run_export, run_update
from fuel_price_sheets.qc import write_export_report
from fuel_price_sheets.store import JsonFileStore
from fuel_price_sheets.template import EXPORT_FILENAME, new_template_workbook
from fuel_price_sheets.utils import sha256_bytes, utc_stamp

app = typer.Typer(
    name="fuelprice",
    help="fuel-price-sheets — Normalize weekly fuel price workbooks and refill the comparison template.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

STATE_DIR_ENV = "FUELPRICE_STATE_DIR"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fuel-price-sheets v{__version__}")
        raise typer.Exit()


def _write_manifest(
    out_dir: Path,
    command: str,
    created_at: str,
    *,
    input_file: Path | None = None,
    digest: str = "",
    state: PriceState | None = None,
    status: str = "success",
    message: str = "",
    error_code: int | None = None,
) -> Path:
    manifest = RunManifest(
        version=__version__,
        command=command,
        input_path=str(input_file.resolve()) if input_file is not None else "",
        created_at_utc=created_at,
        sha256=digest,
        status=status,
        last_survey_date=state.last_survey_date if state is not None else "",
        sections=len(state.sections) if state is not None else 0,
        message=message,
        error_code=error_code,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    out_dir: Path,
    command: str,
    created_at: str,
    message: str,
    *,
    input_file: Path | None = None,
    digest: str = "",
    error_code: int = 2,
) -> typer.Exit:
    manifest_path = _write_manifest(
        out_dir,
        command,
        created_at,
        input_file=input_file,
        digest=digest,
        status="failed",
        message=message,
        error_code=error_code,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _state_dir_option() -> Any:
    return typer.Option(
        Path("state"), "--state-dir", "-s",
        help="Directory holding the stored price state.",
        envvar=STATE_DIR_ENV,
    )


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """fuel-price-sheets CLI."""


# ── update command ───────────────────────────────────────────────


@app.command()
def update(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the weekly publication workbook (.xlsx).",
    ),
    state_dir: Path = _state_dir_option(),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes the manifest.",
    ),
) -> None:
    """Ingest a weekly workbook and store it when it is newer than the stored state."""
    echo = _printer(quiet)
    created_at = utc_stamp()
    state_dir.mkdir(parents=True, exist_ok=True)
    store = JsonFileStore(state_dir)

    if not quiet:
        console.print(Panel(
            f"[bold]fuel-price-sheets[/bold] v{__version__}\n"
            f"Input: {input_file}\nState: {store.path}",
            title="Update", border_style="blue",
        ))

    echo("[blue]>[/blue] Loading workbook …")
    try:
        source = read_workbook_bytes(input_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(state_dir, "update", created_at, str(exc), input_file=input_file)
    digest = sha256_bytes(source)

    try:
        echo("[blue]>[/blue] Building price state …")
        result = run_update(source, store)
    except (IngestError, ValueError) as exc:
        raise _fail(
            state_dir, "update", created_at, str(exc),
            input_file=input_file, digest=digest,
        )
    except Exception as exc:
        raise _fail(
            state_dir, "update", created_at,
            f"Unexpected internal error: {exc}",
            input_file=input_file, digest=digest, error_code=1,
        )

    manifest_path = _write_manifest(
        state_dir, "update", created_at,
        input_file=input_file, digest=digest, state=result.current, message=result.message,
    )
    echo(f"  Latest survey: {result.fresh.last_survey_date}")
    if result.stored is not None:
        echo(f"  Stored survey: {result.stored.last_survey_date}")
    echo(f"  Manifest -> {manifest_path}")

    if not quiet:
        style = "green" if result.written else "cyan"
        console.print(Panel(
            f"[{style}]{result.message}[/{style}] ({result.decision.reason})",
            title="Update Complete", border_style=style,
        ))


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    template_file: Path = typer.Option(
        ..., "--template", "-t",
        help="Path to the comparison template workbook.",
    ),
    state_dir: Path = _state_dir_option(),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the filled workbook and export report.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Fill the comparison template from the stored state."""
    echo = _printer(quiet)
    created_at = utc_stamp()
    out_dir.mkdir(parents=True, exist_ok=True)
    store = JsonFileStore(state_dir)

    try:
        template = read_workbook_bytes(template_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, "export", created_at, str(exc), input_file=template_file)
    digest = sha256_bytes(template)

    try:
        echo("[blue]>[/blue] Filling template …")
        payload, report = run_export(store, template)
    except (FuelPriceError, ValueError) as exc:
        raise _fail(
            out_dir, "export", created_at, str(exc),
            input_file=template_file, digest=digest,
        )
    except Exception as exc:
        raise _fail(
            out_dir, "export", created_at,
            f"Unexpected internal error: {exc}",
            input_file=template_file, digest=digest, error_code=1,
        )

    workbook_path = write_bytes(out_dir / EXPORT_FILENAME, payload)
    report_path = write_export_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir, "export", created_at,
        input_file=template_file,
        digest=digest,
        state=store.load(),
        status="partial" if report.partial else "success",
        message=f"{len(report.filled)} filled, {len(report.skipped)} skipped",
    )

    echo(f"  Workbook -> {workbook_path}")
    echo(f"  Report   -> {report_path}")
    echo(f"  Manifest -> {manifest_path}")
    if report.partial:
        for sid, reason in report.skipped.items():
            console.print(f"  [yellow]![/yellow] skipped {sid}: {reason}")


# ── show command ─────────────────────────────────────────────────


@app.command()
def show(
    state_dir: Path = _state_dir_option(),
) -> None:
    """Print the stored price state."""
    store = JsonFileStore(state_dir)
    try:
        state = store.load()
    except (TypeError, ValueError) as exc:
        _err(f"Stored state is unreadable: {exc}")
        raise typer.Exit(code=2)
    if state is None:
        _err(str(NoStoredState()))
        raise typer.Exit(code=2)

    console.print(
        f"Last survey: [bold]{state.last_survey_date}[/bold]  "
        f"updated {state.updated_at}  schema v{state.schema_version}"
    )
    for section in state.sections:
        tbl = RichTable(title=section.title, show_lines=False)
        tbl.add_column("都道府県", style="bold")
        for d in section.survey_dates:
            tbl.add_column(d, justify="right")
        tbl.add_row("全国", *(f"{v:.1f}" for v in section.national))
        for row in section.rows:
            cells = []
            for value, nat in zip(row.prices, section.national):
                text = f"{value:.1f}"
                cells.append(f"[red]{text}[/red]" if value > nat else text)
            tbl.add_row(row.prefecture, *cells)
        console.print(tbl)


# ── migrate command ──────────────────────────────────────────────


@app.command()
def migrate(
    state_dir: Path = _state_dir_option(),
) -> None:
    """Rewrite a legacy (east/west) stored state in the per-region schema."""
    store = JsonFileStore(state_dir)
    try:
        migrated = migrate_stored(store)
    except NoStoredState as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    if migrated is None:
        console.print("Stored state already uses the current schema.")
        return
    console.print(f"[green]Migrated[/green] to {len(migrated.sections)} sections -> {store.path}")


# ── template command ─────────────────────────────────────────────


@app.command()
def template(
    out: Path = typer.Option(
        Path(EXPORT_FILENAME), "--out",
        help="Where to write the blank comparison template.",
    ),
) -> None:
    """Write a blank comparison template."""
    out.parent.mkdir(parents=True, exist_ok=True)
    wb = new_template_workbook()
    wb.save(out)
    console.print(f"  Template -> {out}")
