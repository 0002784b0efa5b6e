"""
Error sinks for records that could not be added to a bulk request.

The write path hands every failed record to an ErrorSink and moves on.
Sinks must not raise; a sink failure is logged and the batch continues.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from loguru import logger

from .utils import EventTime, iter_ndjson, utc_now


@runtime_checkable
class ErrorSink(Protocol):
    """Receives (tag, time, record, error) for every skipped record."""

    def emit_error_event(self, tag: str, time: EventTime, record: Any, error: Exception) -> None: ...


class LoggingErrorSink:
    """Default sink: one warning per skipped record."""

    def emit_error_event(self, tag: str, time: EventTime, record: Any, error: Exception) -> None:
        logger.warning(
            f"Dropping record tag={tag} time={time}: {type(error).__name__}: {error}"
        )


class CollectingErrorSink:
    """Keeps error events in memory, in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, EventTime, Any, Exception]] = []
        self._lock = threading.Lock()

    def emit_error_event(self, tag: str, time: EventTime, record: Any, error: Exception) -> None:
        with self._lock:
            self.events.append((tag, time, record, error))

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class DeadLetterRecord:
    tag: str
    time: Any
    record: Any
    error: str
    error_type: str
    failed_at: str


DEAD_LETTER_FIELDS = tuple(DeadLetterRecord.__dataclass_fields__)


def _dead_letter(obj: Any) -> Optional[DeadLetterRecord]:
    if not isinstance(obj, dict) or not all(k in obj for k in DEAD_LETTER_FIELDS):
        return None
    return DeadLetterRecord(**{k: obj[k] for k in DEAD_LETTER_FIELDS})


class DeadLetterFileSink:
    """
    Appends failed records to an NDJSON file for later inspection or replay.

    Values that JSON cannot represent are stored via ``str()``.
    """

    def __init__(self, path: Union[str, Path], *, mkdirs: bool = True):
        self.path = Path(path)
        if mkdirs:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def emit_error_event(self, tag: str, time: EventTime, record: Any, error: Exception) -> None:
        entry = {
            "tag": tag,
            "time": time,
            "record": record,
            "error": str(error),
            "error_type": type(error).__name__,
            "failed_at": utc_now().isoformat(),
        }
        try:
            line = json.dumps(entry, default=str)
        except (TypeError, ValueError):
            # circular or otherwise unencodable record
            entry["record"] = repr(record)
            line = json.dumps(entry, default=str)
        try:
            with self._lock, open(self.path, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as e:
            logger.error(f"Could not write dead letter to {self.path}: {e}")

    def replay(self, max_records: int = 1000) -> list[DeadLetterRecord]:
        if not self.path.exists():
            return []
        out: list[DeadLetterRecord] = []
        for obj in iter_ndjson(self.path):
            if len(out) >= max_records:
                break
            rec = _dead_letter(obj)
            if rec is None:
                logger.warning(f"Skipping malformed dead letter in {self.path}: {obj!r:.200}")
                continue
            out.append(rec)
        return out
