"""Shared helpers — content digests, UTC stamps."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def sha256_bytes(data: bytes) -> str:
    """Hex SHA-256 of an in-memory workbook payload."""
    return hashlib.sha256(data).hexdigest()


def utc_stamp(now: datetime | None = None) -> str:
    """ISO-8601 stamp of *now* (default: current time), normalized to UTC.

    Naive datetimes are taken to be UTC already.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()
