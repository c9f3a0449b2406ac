"""Update + export orchestration — pure transforms wired to a passed-in store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fuel_price_sheets.errors import NoStoredState
from fuel_price_sheets.freshness import FreshnessDecision, decide_write
from fuel_price_sheets.ingest import build_price_state
from fuel_price_sheets.io import open_workbook
from fuel_price_sheets.models import ExportReport, PriceState
from fuel_price_sheets.schema import is_legacy, migrate
from fuel_price_sheets.store import StateStore
from fuel_price_sheets.template import export_workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateResult:
    decision: FreshnessDecision
    fresh: PriceState
    stored: PriceState | None

    @property
    def written(self) -> bool:
        return self.decision.write

    @property
    def current(self) -> PriceState:
        """The state the store holds after the update."""
        if self.written or self.stored is None:
            return self.fresh
        return self.stored

    @property
    def message(self) -> str:
        return self.decision.message


def run_update(source: bytes, store: StateStore, *, now: datetime | None = None) -> UpdateResult:
    """Build a state from *source* workbook bytes and save it when the gate says so.

    Ingest errors (:class:`~fuel_price_sheets.errors.IngestError`) propagate;
    nothing is written in that case.
    """
    wb = open_workbook(source)
    fresh = build_price_state(wb, now=now)
    stored = store.load()

    decision = decide_write(stored, fresh)
    if decision.write:
        store.save(fresh)
        logger.info("Saved state for %s (%s)", fresh.last_survey_date, decision.reason)
    else:
        logger.info("Stored state for %s is current", fresh.last_survey_date)
    return UpdateResult(decision=decision, fresh=fresh, stored=stored)


def run_export(store: StateStore, template: bytes) -> tuple[bytes, ExportReport]:
    """Fill *template* from the stored state.

    Raises
    ------
    NoStoredState
        If the store is empty.
    """
    state = store.load()
    if state is None:
        raise NoStoredState()
    return export_workbook(state, template)


def migrate_stored(store: StateStore) -> PriceState | None:
    """Rewrite a legacy stored state in the current schema; returns it if migrated."""
    state = store.load()
    if state is None:
        raise NoStoredState()
    if not is_legacy(state):
        return None
    migrated = migrate(state)
    store.save(migrated)
    return migrated
