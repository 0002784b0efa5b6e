"""
Bulk request framing for data streams.

Every record becomes a ``{"create":{}}`` action line followed by its document line.
Data streams only accept ``create``, so no per-document metadata is ever emitted.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from .utils import EventTime, format_event_time

CREATE_OP = "create"
BODY_DELIMITER = b"\n"
TIMESTAMP_FIELD = "@timestamp"


def dump_json(obj: Any) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class BulkBatch:
    """One buffered chunk: a routing tag plus ordered (time, record) pairs."""

    tag: str
    entries: Sequence[tuple[EventTime, Any]]

    @classmethod
    def of(cls, tag: str, entries: Iterable[tuple[EventTime, Any]]) -> "BulkBatch":
        return cls(tag=tag, entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class SkippedRecord:
    tag: str
    time: EventTime
    record: Any
    error: Exception


@dataclass
class BuildResult:
    payload: bytes = b""
    record_count: int = 0
    skipped: list[SkippedRecord] = field(default_factory=list)
    dropped: int = 0

    @property
    def empty(self) -> bool:
        return self.record_count == 0


class BulkRequestBuilder:
    """
    Converts a BulkBatch into a newline-delimited bulk payload.

    Non-mapping records are dropped without a report. Records whose
    timestamping or serialization raises are collected in ``skipped``
    and contribute no lines. Builders hold no per-batch state and can be
    shared between threads.

    Usage:
        builder = BulkRequestBuilder(time_precision=3)
        result = builder.build(BulkBatch.of("app.logs", [(1714564800.5, {"msg": "hi"})]))
        client.bulk(index="my-logs", operations=result.payload)
    """

    def __init__(
        self,
        time_precision: int = 3,
        dumps: Optional[Callable[[Any], bytes]] = None,
    ):
        self._precision = time_precision
        self._dumps = dumps or dump_json
        self._header = self._dumps({CREATE_OP: {}}) + BODY_DELIMITER

    @property
    def time_precision(self) -> int:
        return self._precision

    def build(self, batch: BulkBatch) -> BuildResult:
        buf = bytearray()
        result = BuildResult()

        for time, record in batch.entries:
            if not isinstance(record, Mapping):
                result.dropped += 1
                continue
            try:
                buf += self._entry(time, record)
            except Exception as e:
                result.skipped.append(SkippedRecord(batch.tag, time, record, e))
                continue
            result.record_count += 1

        result.payload = bytes(buf)
        return result

    def _entry(self, time: EventTime, record: Mapping) -> bytes:
        # stamp a copy; the caller's record is reported untouched on failure
        doc = dict(record)
        doc[TIMESTAMP_FIELD] = format_event_time(time, self._precision)
        return self._header + self._dumps(doc) + BODY_DELIMITER
