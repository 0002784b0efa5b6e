"""
Custom exceptions for the Elasticsearch data stream output.

Configuration-time failures are fatal and derive from ConfigError.
Write-time failures are never raised to callers; they are logged instead.
"""


class DataStreamError(Exception):
    """Base error for es_datastream."""

    pass


class ConfigError(DataStreamError):
    """Setup could not complete; the output must not start."""

    pass


class InvalidDataStreamName(ConfigError):
    """The configured data stream name breaks Elasticsearch naming rules."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class MissingDependency(ConfigError):
    """The installed client lacks an API the output needs."""

    pass


class ProvisioningError(ConfigError):
    """Creating the ILM policy, index template or data stream failed."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"Failed to create data stream: <{name}> {cause}")
        self.name = name
        self.cause = cause


def is_not_found(e: Exception) -> bool:
    from elasticsearch import NotFoundError

    return isinstance(e, NotFoundError)


def is_already_exists(e: Exception) -> bool:
    from elasticsearch import ApiError

    if not isinstance(e, ApiError):
        return False
    text = " ".join(str(x) for x in (e, getattr(e, "message", ""), getattr(e, "body", "")))
    return "resource_already_exists_exception" in text
