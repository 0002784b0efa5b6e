"""
Utility functions for the data stream output.

Includes event-time helpers and NDJSON readers.
"""

from __future__ import annotations

import gzip
import io
import json
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal
from pathlib import Path
from typing import Any, Iterator, Union

EventTime = Union[int, float, Decimal, datetime]

MAX_TIME_PRECISION = 9


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(dt: Union[str, datetime]) -> datetime:
    """Parse datetime from string or return datetime object."""
    if isinstance(dt, str):
        return datetime.fromisoformat(dt.replace("Z", "+00:00"))
    return dt


def _split_time(t: EventTime) -> tuple[datetime, int]:
    """Whole-second UTC datetime plus nanoseconds past that second."""
    if isinstance(t, bool):
        raise TypeError(f"event time must be numeric or datetime, got {t!r}")
    if isinstance(t, datetime):
        if t.tzinfo is None:
            t = t.replace(tzinfo=timezone.utc)
        t = t.astimezone(timezone.utc)
        return t.replace(microsecond=0), t.microsecond * 1000
    if isinstance(t, int):
        return datetime.fromtimestamp(t, tz=timezone.utc), 0
    if isinstance(t, (float, Decimal)):
        d = Decimal(str(t)) if isinstance(t, float) else t
        seconds = int(d.to_integral_value(rounding=ROUND_FLOOR))
        nanos = int(((d - seconds) * 1_000_000_000).to_integral_value())
        if nanos >= 1_000_000_000:
            seconds, nanos = seconds + 1, nanos - 1_000_000_000
        return datetime.fromtimestamp(seconds, tz=timezone.utc), nanos
    raise TypeError(f"event time must be numeric or datetime, got {type(t).__name__}")


def format_event_time(t: EventTime, precision: int = 3) -> str:
    """
    Render an event time as ISO-8601 in UTC.

    Args:
        t: Epoch seconds (int/float/Decimal) or a datetime (naive means UTC)
        precision: Number of fractional-second digits, 0..9

    Returns:
        e.g. ``2024-05-01T12:00:00.123+00:00`` for precision 3
    """
    if not 0 <= precision <= MAX_TIME_PRECISION:
        raise ValueError(f"precision must be within 0..{MAX_TIME_PRECISION}: {precision}")
    whole, nanos = _split_time(t)
    stamp = whole.strftime("%Y-%m-%dT%H:%M:%S")
    if precision:
        stamp += "." + f"{nanos:09d}"[:precision]
    return stamp + "+00:00"


def open_maybe_gzip(path: Union[str, Path]) -> io.TextIOBase:
    p = Path(path)
    if p.suffix == ".gz":
        return io.TextIOWrapper(gzip.open(p, "rb"), encoding="utf-8")
    return open(p, "r", encoding="utf-8")


def iter_ndjson(path: Union[str, Path]) -> Iterator[Any]:
    """Yield one decoded JSON value per non-blank line."""
    with open_maybe_gzip(path) as fh:
        for line in fh:
            line = line.strip()
            if line:
                yield json.loads(line)
