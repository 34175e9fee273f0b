from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def ensure_epoch_ms(ts) -> int:
    """
    Coerce a timestamp to epoch milliseconds.

    Values below 1e11 are taken to be seconds (anything in ms is past 1973).
    """
    if ts is None or isinstance(ts, bool):
        raise ValueError(f"invalid timestamp: {ts!r}")
    try:
        value = float(ts)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid timestamp: {ts!r}") from e
    if value < 0:
        raise ValueError(f"invalid timestamp: {ts!r}")
    if value < 1e11:
        return int(round(value * 1000))
    return int(value)


def to_datetime(ts_ms: int) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
