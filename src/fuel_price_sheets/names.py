"""Label normalisation shared by every header and prefecture matcher."""

from __future__ import annotations

import re

# Half-width whitespace plus the ideographic (full-width) space.
_WHITESPACE_RE = re.compile(r"[\s　]+")


def normalize_name(value: object) -> str:
    """Return *value* as a string with all half/full-width whitespace removed.

    ``None`` yields ``""``.  Idempotent: ``normalize_name(normalize_name(x))
    == normalize_name(x)``.
    """
    if value is None:
        return ""
    return _WHITESPACE_RE.sub("", str(value))
