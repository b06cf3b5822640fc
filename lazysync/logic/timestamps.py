"""RFC 3339 timestamp parsing shared by event decoding and listing sorts."""

from __future__ import annotations

import re
from datetime import datetime
from functools import lru_cache

_FRACTION_RE = re.compile(r"\.(\d+)")


@lru_cache(maxsize=4096)
def parse_rfc3339(text: str) -> float | None:
    """Epoch seconds for an RFC 3339 string, or None when it cannot be parsed.

    Fractions of any length are truncated to microseconds and a trailing
    ``Z`` is read as UTC, so nanosecond daemon timestamps parse as well.
    """
    if not text:
        return None
    normalized = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.timestamp()


__all__ = ["parse_rfc3339"]
