"""State stores — load/save the price state under one fixed key."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from fuel_price_sheets import STATE_KEY
from fuel_price_sheets.io import read_json, write_json
from fuel_price_sheets.models import PriceState


class StateStore(Protocol):
    def load(self) -> PriceState | None: ...

    def save(self, state: PriceState) -> None: ...


class InMemoryStore:
    """Process-local store; starts empty unless seeded."""

    def __init__(self, state: PriceState | None = None) -> None:
        self._payload = state.to_dict() if state is not None else None
        self.saves = 0

    def load(self) -> PriceState | None:
        if self._payload is None:
            return None
        return PriceState.from_dict(self._payload)

    def save(self, state: PriceState) -> None:
        self._payload = state.to_dict()
        self.saves += 1


class JsonFileStore:
    """Stores the state as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path, key: str = STATE_KEY) -> None:
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def load(self) -> PriceState | None:
        if not self.path.exists():
            return None
        return PriceState.from_dict(read_json(self.path))

    def save(self, state: PriceState) -> None:
        write_json(self.path, state.to_dict())
