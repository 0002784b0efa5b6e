from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from .acoordinator import AsyncWriteCoordinator
from .aprovisioning import AsyncProvisioningClient
from .bulk import BulkBatch, BulkRequestBuilder
from .config import OutputConfig
from .coordinator import BufferState, WriteOutcome
from .errors import MissingDependency
from .naming import ensure_valid_name
from .output import client_kwargs, require_apis
from .sinks import ErrorSink


def build_async_client(cfg: OutputConfig):
    try:
        from elasticsearch import AsyncElasticsearch
    except ImportError as e:
        raise MissingDependency(
            "'elasticsearch[async]' is required for the async data stream output"
        ) from e
    return AsyncElasticsearch(**client_kwargs(cfg))


class AsyncDataStreamOutput:
    """
    Async twin of DataStreamOutput.

    Usage:
        async with AsyncDataStreamOutput({"data_stream_name": "my-logs"}) as out:
            await out.write(batch)
    """

    def __init__(
        self,
        config: dict,
        *,
        client=None,
        error_sink: Optional[ErrorSink] = None,
        buffer: Optional[BufferState] = None,
        policy_path: Optional[Path] = None,
    ):
        self._cfg = OutputConfig.from_dict(config)
        self._client = client
        self._owns_client = client is None
        self._error_sink = error_sink
        self._buffer = buffer
        self._policy_path = policy_path
        self._coordinator: Optional[AsyncWriteCoordinator] = None

    @property
    def data_stream_name(self) -> str:
        return self._cfg.data_stream_name

    @property
    def configured(self) -> bool:
        return self._coordinator is not None

    async def configure(self) -> None:
        name = ensure_valid_name(self._cfg.data_stream_name)
        if self._client is None:
            self._client = build_async_client(self._cfg)
        require_apis(self._client)

        await AsyncProvisioningClient(self._client, self._policy_path).provision(name)

        self._coordinator = AsyncWriteCoordinator(
            self._client,
            name,
            BulkRequestBuilder(self._cfg.time_precision),
            error_sink=self._error_sink,
            buffer=self._buffer,
        )
        logger.info(f"Data stream output ready: <{name}>")

    async def write(self, batch: BulkBatch) -> WriteOutcome:
        if self._coordinator is None:
            raise RuntimeError("configure() must complete before write()")
        return await self._coordinator.write(batch)

    def retry_stream_retryable(self) -> bool:
        if self._coordinator is None:
            return False
        return self._coordinator.retry_stream_retryable()

    def multi_workers_ready(self) -> bool:
        return True

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None
        self._coordinator = None

    async def __aenter__(self) -> "AsyncDataStreamOutput":
        if not self.configured:
            await self.configure()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
