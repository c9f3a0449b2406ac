"""Freshness gate — decide whether a freshly built state replaces the stored one."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from fuel_price_sheets.models import PriceState
from fuel_price_sheets.regions import COMPLETENESS_ANCHORS
from fuel_price_sheets.schema import is_legacy

WriteReason = Literal[
    "initial", "new_survey", "legacy_migration", "incomplete_repair", "already_current"
]

MESSAGES: dict[str, str] = {
    "initial": "最新データを取得しました",
    "new_survey": "最新データを取得しました",
    "legacy_migration": "データ形式を更新しました",
    "incomplete_repair": "不足していたデータを補完しました",
    "already_current": "データは最新です",
}


@dataclass(frozen=True)
class FreshnessDecision:
    write: bool
    reason: WriteReason

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]


def has_complete_boundary_data(state: PriceState) -> bool:
    """True when every anchor region carries real prices for its anchor prefecture."""
    for region, prefecture in COMPLETENESS_ANCHORS.items():
        sections = [s for s in state.sections if s.region == region]
        if not sections:
            return False
        for s in sections:
            row = s.row_for(prefecture)
            if row is None or not any(p > 0 for p in row.prices):
                return False
    return True


def decide_write(stored: PriceState | None, fresh: PriceState) -> FreshnessDecision:
    """Apply the gate: absence, new survey, legacy shape, incomplete data, in that order."""
    if stored is None:
        return FreshnessDecision(True, "initial")
    if stored.last_survey_date != fresh.last_survey_date:
        return FreshnessDecision(True, "new_survey")
    if is_legacy(stored):
        return FreshnessDecision(True, "legacy_migration")
    if not has_complete_boundary_data(stored):
        return FreshnessDecision(True, "incomplete_repair")
    return FreshnessDecision(False, "already_current")
