"""
Write path for one buffered chunk at a time.

BUILDING -> SUBMITTING -> ACKNOWLEDGED | TRANSPORT_FAILED
BUILDING -> SKIPPED_EMPTY when no record survives building (no request is sent)

Transport failures and partial bulk failures are logged, never raised; the
buffering layer above decides whether to retry the chunk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter
from typing import Optional, Protocol

from loguru import logger

from .bulk import BuildResult, BulkBatch, BulkRequestBuilder
from .metrics import metrics_registry, record_build
from .models import BulkResponseSummary
from .sinks import ErrorSink, LoggingErrorSink


class BatchState(str, Enum):
    BUILDING = "building"
    SUBMITTING = "submitting"
    ACKNOWLEDGED = "acknowledged"
    TRANSPORT_FAILED = "transport_failed"
    SKIPPED_EMPTY = "skipped_empty"


class BufferState(Protocol):
    """Read-only view of the buffer feeding this output."""

    def storable(self) -> bool: ...


class AlwaysStorable:
    def storable(self) -> bool:
        return True


@dataclass
class WriteOutcome:
    tag: str
    state: BatchState = BatchState.BUILDING
    written: int = 0
    skipped: int = 0
    dropped: int = 0
    partial_failure: bool = False
    error: Optional[Exception] = None
    response: Optional[BulkResponseSummary] = None
    transitions: list[BatchState] = field(default_factory=lambda: [BatchState.BUILDING])

    def advance(self, state: BatchState) -> None:
        self.state = state
        self.transitions.append(state)

    @property
    def ok(self) -> bool:
        if self.partial_failure:
            return False
        return self.state in (BatchState.ACKNOWLEDGED, BatchState.SKIPPED_EMPTY)


def begin_outcome(
    batch: BulkBatch, built: BuildResult, error_sink: ErrorSink, data_stream: str
) -> WriteOutcome:
    """Shared BUILDING step: forward skipped records and account for them."""
    outcome = WriteOutcome(tag=batch.tag)
    for s in built.skipped:
        try:
            error_sink.emit_error_event(s.tag, s.time, s.record, s.error)
        except Exception as exc:
            logger.error(f"Error sink failed for tag={s.tag}: {type(exc).__name__}: {exc}")
    outcome.written = built.record_count
    outcome.skipped = len(built.skipped)
    outcome.dropped = built.dropped
    record_build(data_stream, skipped=outcome.skipped, dropped=outcome.dropped)
    return outcome


def finish_acknowledged(outcome: WriteOutcome, response, data_stream: str) -> WriteOutcome:
    summary = BulkResponseSummary.from_response(response)
    outcome.response = summary
    outcome.advance(BatchState.ACKNOWLEDGED)
    record_build(data_stream, written=outcome.written)
    if summary.errors:
        outcome.partial_failure = True
        metrics_registry.bulk_requests_total.labels(data_stream=data_stream, outcome="partial_failure").inc()
        logger.error(
            f"Could not bulk insert to Data Stream: {data_stream} "
            f"tag={outcome.tag} records={outcome.written} items={summary.items} took={summary.took}"
        )
    else:
        metrics_registry.bulk_requests_total.labels(data_stream=data_stream, outcome="acknowledged").inc()
        logger.debug(f"Bulk insert to {data_stream} ok: tag={outcome.tag} records={outcome.written}")
    return outcome


def finish_failed(outcome: WriteOutcome, exc: Exception, data_stream: str) -> WriteOutcome:
    outcome.error = exc
    outcome.advance(BatchState.TRANSPORT_FAILED)
    metrics_registry.bulk_requests_total.labels(data_stream=data_stream, outcome="transport_failed").inc()
    logger.error(
        f"Could not bulk insert to Data Stream: {data_stream} "
        f"tag={outcome.tag} records={outcome.written} {type(exc).__name__}: {exc}"
    )
    return outcome


class WriteCoordinator:
    """
    Turns buffered chunks into bulk requests against one data stream.

    Safe to call ``write`` from several threads: each call owns its payload,
    the client's connection pool is shared.

    Usage:
        coord = WriteCoordinator(es, "my-logs", BulkRequestBuilder(3))
        outcome = coord.write(BulkBatch.of("app", [(time.time(), {"msg": "hi"})]))
    """

    def __init__(
        self,
        client,
        data_stream_name: str,
        builder: Optional[BulkRequestBuilder] = None,
        *,
        error_sink: Optional[ErrorSink] = None,
        buffer: Optional[BufferState] = None,
    ):
        self._client = client
        self._name = data_stream_name
        self._builder = builder or BulkRequestBuilder()
        self._error_sink = error_sink if error_sink is not None else LoggingErrorSink()
        self._buffer = buffer if buffer is not None else AlwaysStorable()

    @property
    def data_stream_name(self) -> str:
        return self._name

    def write(self, batch: BulkBatch) -> WriteOutcome:
        built = self._builder.build(batch)
        outcome = begin_outcome(batch, built, self._error_sink, self._name)

        if built.empty:
            outcome.advance(BatchState.SKIPPED_EMPTY)
            logger.debug(f"Nothing to send for tag={batch.tag} (dropped={built.dropped})")
            return outcome

        outcome.advance(BatchState.SUBMITTING)
        t0 = perf_counter()
        try:
            response = self._client.bulk(index=self._name, operations=built.payload)
        except Exception as exc:
            return finish_failed(outcome, exc, self._name)
        finally:
            metrics_registry.bulk_write_latency.labels(data_stream=self._name).observe(perf_counter() - t0)
        return finish_acknowledged(outcome, response, self._name)

    def retry_stream_retryable(self) -> bool:
        return self._buffer.storable()

    def multi_workers_ready(self) -> bool:
        return True
