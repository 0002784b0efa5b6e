"""
Data stream output: configure once, then write buffered chunks.

Usage:
    out = DataStreamOutput({"data_stream_name": "my-logs", "hosts": ["http://es:9200"]})
    out.configure()          # validate name, provision, enable writes
    out.write(BulkBatch.of("app.access", records))
    out.close()
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from .bulk import BulkBatch, BulkRequestBuilder
from .config import OutputConfig
from .coordinator import BufferState, WriteCoordinator, WriteOutcome
from .errors import MissingDependency
from .naming import ensure_valid_name
from .provisioning import ProvisioningClient
from .sinks import ErrorSink

REQUIRED_APIS = (
    ("ilm", "put_lifecycle"),
    ("indices", "put_index_template"),
    ("indices", "get_data_stream"),
    ("indices", "create_data_stream"),
)


def client_kwargs(cfg: OutputConfig) -> dict:
    kwargs: dict = {
        "hosts": cfg.hosts,
        "verify_certs": cfg.verify_certs,
        "request_timeout": cfg.request_timeout,
    }
    if cfg.api_key:
        kwargs["api_key"] = cfg.api_key
    elif cfg.username:
        kwargs["basic_auth"] = (cfg.username, cfg.password or "")
    return kwargs


def build_client(cfg: OutputConfig):
    try:
        from elasticsearch import Elasticsearch
    except ImportError as e:
        raise MissingDependency("'elasticsearch' is required for the data stream output") from e
    return Elasticsearch(**client_kwargs(cfg))


def require_apis(client) -> None:
    """Fail fast when the client cannot manage ILM policies or data streams."""
    for namespace, method in REQUIRED_APIS:
        ns = getattr(client, namespace, None)
        if ns is None or not callable(getattr(ns, method, None)):
            raise MissingDependency(
                f"client does not provide {namespace}.{method}; "
                f"elasticsearch>=8 is required for data streams"
            )


class DataStreamOutput:
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
        self._coordinator: Optional[WriteCoordinator] = None

    @property
    def config(self) -> OutputConfig:
        return self._cfg

    @property
    def data_stream_name(self) -> str:
        return self._cfg.data_stream_name

    @property
    def client(self):
        return self._client

    @property
    def configured(self) -> bool:
        return self._coordinator is not None

    def configure(self) -> None:
        """Validate, provision and enable writes. Raises ConfigError on any failure."""
        name = ensure_valid_name(self._cfg.data_stream_name)
        if self._client is None:
            self._client = build_client(self._cfg)
        require_apis(self._client)

        ProvisioningClient(self._client, self._policy_path).provision(name)

        self._coordinator = WriteCoordinator(
            self._client,
            name,
            BulkRequestBuilder(self._cfg.time_precision),
            error_sink=self._error_sink,
            buffer=self._buffer,
        )
        logger.info(f"Data stream output ready: <{name}>")

    def write(self, batch: BulkBatch) -> WriteOutcome:
        if self._coordinator is None:
            raise RuntimeError("configure() must complete before write()")
        return self._coordinator.write(batch)

    def retry_stream_retryable(self) -> bool:
        if self._coordinator is None:
            return False
        return self._coordinator.retry_stream_retryable()

    def multi_workers_ready(self) -> bool:
        return True

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
        self._coordinator = None

    def __enter__(self) -> "DataStreamOutput":
        if not self.configured:
            self.configure()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
