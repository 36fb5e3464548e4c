"""Shared utility helpers for kryten-xboxlive."""

from __future__ import annotations

import re
from datetime import datetime, timezone

# OpenXBL sends .NET-style timestamps with 7 fractional digits
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def parse_timestamp(ts: str | None) -> datetime | None:
    """Parse an OpenXBL ISO-8601 timestamp to a timezone-aware datetime, or None."""
    if not ts:
        return None
    try:
        normalized = _FRACTION_RE.sub(r".\1", ts.strip())
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, TypeError):
        return None


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)
