"""
Unit tests for BulkRequestBuilder.
"""

import json
from datetime import datetime, timezone

import pytest

from es_datastream.bulk import BulkBatch, BulkRequestBuilder

T = 1714564800.123  # 2024-05-01T12:00:00.123Z


def _lines(payload: bytes) -> list[str]:
    text = payload.decode("utf-8")
    assert text.endswith("\n")
    return text.split("\n")[:-1]


def test_mixed_batch_counts_and_reports():
    """Non-mappings vanish silently; stamping failures are reported."""
    builder = BulkRequestBuilder(time_precision=3)
    batch = BulkBatch.of(
        "app.logs",
        [
            (T, {"n": 1}),
            (T, "not a mapping"),
            (T, {"n": 2}),
            ("not-a-time", {"n": "bad"}),
            (T, {"n": 3}),
        ],
    )

    result = builder.build(batch)

    lines = _lines(result.payload)
    assert result.record_count == 3
    assert len(lines) == 6
    assert result.dropped == 1
    assert len(result.skipped) == 1
    skipped = result.skipped[0]
    assert skipped.tag == "app.logs"
    assert skipped.time == "not-a-time"
    assert skipped.record == {"n": "bad"}
    assert isinstance(skipped.error, TypeError)
    assert [json.loads(b)["n"] for b in lines[1::2]] == [1, 2, 3]


def test_headers_are_bare_create():
    result = BulkRequestBuilder().build(BulkBatch.of("t", [(T, {"a": 1}), (T, {"b": 2})]))
    lines = _lines(result.payload)
    assert lines[0::2] == ['{"create":{}}', '{"create":{}}']


def test_round_trip_with_milliseconds():
    result = BulkRequestBuilder(time_precision=3).build(BulkBatch.of("t", [(T, {"a": 1})]))
    body = json.loads(_lines(result.payload)[1])
    assert body == {"a": 1, "@timestamp": "2024-05-01T12:00:00.123+00:00"}


def test_unserializable_record_contributes_no_lines():
    builder = BulkRequestBuilder()
    bad = {"obj": object()}
    result = builder.build(BulkBatch.of("t", [(T, {"ok": True}), (T, bad)]))
    assert len(_lines(result.payload)) == 2
    assert result.record_count == 1
    assert result.skipped[0].record is bad


def test_original_record_not_mutated():
    record = {"a": 1}
    BulkRequestBuilder().build(BulkBatch.of("t", [(T, record)]))
    assert record == {"a": 1}


def test_empty_batch():
    result = BulkRequestBuilder().build(BulkBatch.of("t", []))
    assert result.payload == b""
    assert result.empty
    assert result.skipped == []


def test_all_dropped_is_empty():
    result = BulkRequestBuilder().build(BulkBatch.of("t", [(T, [1, 2]), (T, None)]))
    assert result.empty
    assert result.dropped == 2
    assert result.skipped == []


@pytest.mark.parametrize(
    "precision,expected",
    [
        (0, "2024-05-01T12:00:00+00:00"),
        (6, "2024-05-01T12:00:00.123000+00:00"),
        (9, "2024-05-01T12:00:00.123000000+00:00"),
    ],
)
def test_precision(precision, expected):
    result = BulkRequestBuilder(time_precision=precision).build(BulkBatch.of("t", [(T, {})]))
    assert json.loads(_lines(result.payload)[1])["@timestamp"] == expected


def test_datetime_event_time():
    t = datetime(2024, 5, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
    result = BulkRequestBuilder(time_precision=3).build(BulkBatch.of("t", [(t, {})]))
    assert json.loads(_lines(result.payload)[1])["@timestamp"] == "2024-05-01T12:00:00.500+00:00"


def test_existing_timestamp_overwritten():
    result = BulkRequestBuilder(time_precision=0).build(
        BulkBatch.of("t", [(T, {"@timestamp": "yesterday"})])
    )
    assert json.loads(_lines(result.payload)[1])["@timestamp"] == "2024-05-01T12:00:00+00:00"


def test_custom_serializer_failure_is_isolated():
    def dumps(obj):
        if obj.get("boom"):
            raise ValueError("cannot encode")
        return json.dumps(obj).encode()

    result = BulkRequestBuilder(dumps=dumps).build(
        BulkBatch.of("t", [(T, {"boom": True}), (T, {"fine": 1})])
    )
    assert result.record_count == 1
    assert str(result.skipped[0].error) == "cannot encode"
