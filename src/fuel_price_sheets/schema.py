"""Schema versions — legacy detection and migration to the per-region layout."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fuel_price_sheets import LEGACY_SCHEMA_VERSION, SCHEMA_VERSION
from fuel_price_sheets.models import PrefRow, PriceState, Section
from fuel_price_sheets.regions import (
    FUELS,
    LEGACY_GROUPS,
    REGION_PREFECTURES,
    section_id,
    section_title,
)

logger = logging.getLogger(__name__)

LEGACY_SECTION_COUNT = 6
LEGACY_ID_MARKERS: tuple[str, ...] = ("-east", "-west")


def looks_legacy(sections: Sequence[Section]) -> bool:
    """Structural heuristic for payloads written before ``schemaVersion`` existed."""
    if len(sections) == LEGACY_SECTION_COUNT:
        return True
    return any(marker in s.id for s in sections for marker in LEGACY_ID_MARKERS)


def detect_schema_version(sections: Sequence[Section]) -> int:
    return LEGACY_SCHEMA_VERSION if looks_legacy(sections) else SCHEMA_VERSION


def is_legacy(state: PriceState) -> bool:
    return state.schema_version == LEGACY_SCHEMA_VERSION


def migrate(state: PriceState) -> PriceState:
    """Return *state* in the current schema.  Pure: *state* is not modified.

    Legacy east/west sections are pooled per fuel and re-partitioned into
    the canonical regions; prefectures without data are omitted.
    """
    if not is_legacy(state):
        return state

    sections: list[Section] = []
    for fuel in FUELS:
        legacy = [
            s for s in state.sections
            if s.fuel == fuel and s.region in LEGACY_GROUPS
        ]
        if not legacy:
            logger.warning("Legacy state has no sections for %s; dropped", fuel)
            continue

        pooled: dict[str, PrefRow] = {}
        for s in legacy:
            for row in s.rows:
                pooled.setdefault(row.prefecture, row)

        first = legacy[0]
        for region, prefectures in REGION_PREFECTURES.items():
            sections.append(
                Section(
                    id=section_id(fuel, region),
                    title=section_title(fuel, region),
                    fuel=fuel,
                    region=region,
                    survey_dates=list(first.survey_dates),
                    national=list(first.national),
                    rows=[
                        PrefRow(prefecture=p, prices=list(pooled[p].prices))
                        for p in prefectures
                        if p in pooled
                    ],
                )
            )

    logger.info("Migrated %d legacy sections to %d", len(state.sections), len(sections))
    return PriceState(
        last_survey_date=state.last_survey_date,
        updated_at=state.updated_at,
        sections=sections,
        schema_version=SCHEMA_VERSION,
    )
