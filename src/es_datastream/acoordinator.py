from __future__ import annotations

from time import perf_counter
from typing import Optional

from loguru import logger

from .bulk import BulkBatch, BulkRequestBuilder
from .coordinator import (
    AlwaysStorable,
    BatchState,
    BufferState,
    WriteOutcome,
    begin_outcome,
    finish_acknowledged,
    finish_failed,
)
from .metrics import metrics_registry
from .sinks import ErrorSink, LoggingErrorSink


class AsyncWriteCoordinator:
    """
    Async twin of WriteCoordinator for AsyncElasticsearch.

    Building is CPU-only and runs inline; only the bulk call is awaited.
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

    async def write(self, batch: BulkBatch) -> WriteOutcome:
        built = self._builder.build(batch)
        outcome = begin_outcome(batch, built, self._error_sink, self._name)

        if built.empty:
            outcome.advance(BatchState.SKIPPED_EMPTY)
            logger.debug(f"Nothing to send for tag={batch.tag} (dropped={built.dropped})")
            return outcome

        outcome.advance(BatchState.SUBMITTING)
        t0 = perf_counter()
        try:
            response = await self._client.bulk(index=self._name, operations=built.payload)
        except Exception as exc:
            return finish_failed(outcome, exc, self._name)
        finally:
            metrics_registry.bulk_write_latency.labels(data_stream=self._name).observe(perf_counter() - t0)
        return finish_acknowledged(outcome, response, self._name)

    def retry_stream_retryable(self) -> bool:
        return self._buffer.storable()

    def multi_workers_ready(self) -> bool:
        return True
