"""
Pytest configuration and fixtures for es-datastream.

Provides in-memory stand-ins for the Elasticsearch client so no cluster is needed.
"""

import asyncio
import sys

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ApiError, BadRequestError, NotFoundError

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def _api_error(cls, status: int, error_type: str) -> ApiError:
    meta = ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )
    body = {"error": {"type": error_type, "reason": error_type}, "status": status}
    return cls(message=error_type, meta=meta, body=body)


class FakeILM:
    def __init__(self, es):
        self._es = es

    def put_lifecycle(self, **kw):
        self._es.calls.append(("put_lifecycle", kw))
        self._es.policies[kw["name"]] = kw["policy"]
        return {"acknowledged": True}


class FakeIndices:
    def __init__(self, es):
        self._es = es

    def put_index_template(self, **kw):
        self._es.calls.append(("put_index_template", kw))
        self._es.templates[kw["name"]] = kw
        return {"acknowledged": True}

    def get_data_stream(self, name):
        self._es.calls.append(("get_data_stream", {"name": name}))
        if self._es.get_error is not None:
            raise self._es.get_error
        if name not in self._es.streams:
            raise _api_error(NotFoundError, 404, "index_not_found_exception")
        return {"data_streams": [{"name": name}]}

    def create_data_stream(self, name):
        self._es.calls.append(("create_data_stream", {"name": name}))
        if name in self._es.streams:
            raise _api_error(BadRequestError, 400, "resource_already_exists_exception")
        self._es.streams.add(name)
        return {"acknowledged": True}


class FakeES:
    """Records every call; bulk returns ``bulk_response`` or raises ``bulk_error``."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.policies: dict = {}
        self.templates: dict = {}
        self.streams: set[str] = set()
        self.bulk_requests: list[dict] = []
        self.bulk_response = {"errors": False, "took": 3, "items": []}
        self.bulk_error = None
        self.get_error = None
        self.closed = False
        self.ilm = FakeILM(self)
        self.indices = FakeIndices(self)

    def bulk(self, index, operations):
        self.calls.append(("bulk", {"index": index}))
        self.bulk_requests.append({"index": index, "operations": operations})
        if self.bulk_error is not None:
            raise self.bulk_error
        return self.bulk_response

    def close(self):
        self.closed = True


class _AsyncNamespace:
    def __init__(self, target):
        self._target = target

    def __getattr__(self, item):
        fn = getattr(self._target, item)

        async def _call(*args, **kwargs):
            await asyncio.sleep(0)  # simulate I/O
            return fn(*args, **kwargs)

        return _call


class AsyncFakeES:
    """Awaitable facade over FakeES sharing its state."""

    def __init__(self, sync: FakeES):
        self.sync = sync
        self.ilm = _AsyncNamespace(sync.ilm)
        self.indices = _AsyncNamespace(sync.indices)

    async def bulk(self, index, operations):
        await asyncio.sleep(0)
        return self.sync.bulk(index=index, operations=operations)

    async def close(self):
        self.sync.close()


@pytest.fixture
def fake_es():
    """In-memory Elasticsearch stand-in."""
    return FakeES()


@pytest.fixture
def async_fake_es(fake_es):
    """Async facade; inspect state through ``async_fake_es.sync``."""
    return AsyncFakeES(fake_es)


@pytest.fixture
def api_error():
    """Factory for real elasticsearch ApiError instances."""
    return _api_error


@pytest.fixture
def stream_name():
    return "my-logs"
