"""
Elasticsearch Data Stream Output

Ships buffered log records into an Elasticsearch data stream, provisioning
the ILM policy, index template and data stream on startup.

Usage:
    from es_datastream import DataStreamOutput, BulkBatch

    out = DataStreamOutput({"data_stream_name": "my-logs", "hosts": ["http://localhost:9200"]})
    out.configure()
    out.write(BulkBatch.of("app.access", [(time.time(), {"message": "GET /"})]))
"""

from .aoutput import AsyncDataStreamOutput
from .bulk import BuildResult, BulkBatch, BulkRequestBuilder, SkippedRecord
from .config import OutputConfig, Settings, get_settings
from .coordinator import BatchState, BufferState, WriteCoordinator, WriteOutcome
from .acoordinator import AsyncWriteCoordinator
from .errors import (
    ConfigError,
    DataStreamError,
    InvalidDataStreamName,
    MissingDependency,
    ProvisioningError,
)
from .naming import ValidationResult, check_name, ensure_valid_name, validate
from .output import DataStreamOutput
from .provisioning import ProvisioningClient
from .aprovisioning import AsyncProvisioningClient
from .sinks import CollectingErrorSink, DeadLetterFileSink, ErrorSink, LoggingErrorSink

__version__ = "1.0.0"
__all__ = [
    "DataStreamOutput",
    "AsyncDataStreamOutput",
    "OutputConfig",
    "Settings",
    "get_settings",
    # naming
    "ValidationResult",
    "check_name",
    "validate",
    "ensure_valid_name",
    # provisioning
    "ProvisioningClient",
    "AsyncProvisioningClient",
    # bulk
    "BulkBatch",
    "BulkRequestBuilder",
    "BuildResult",
    "SkippedRecord",
    # write path
    "WriteCoordinator",
    "AsyncWriteCoordinator",
    "WriteOutcome",
    "BatchState",
    "BufferState",
    # error sinks
    "ErrorSink",
    "LoggingErrorSink",
    "CollectingErrorSink",
    "DeadLetterFileSink",
    # errors
    "DataStreamError",
    "ConfigError",
    "InvalidDataStreamName",
    "MissingDependency",
    "ProvisioningError",
]
