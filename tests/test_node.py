"""
Originator telemetry node tests.
"""

import pytest

from app.core import interval as interval_module
from app.core.errors import (
    EncodingError,
    InvalidIntervalFormatError,
    NodeConfigurationError,
    StorageError,
    TelemetryNotSelectedError,
    UndefinedIntervalError,
)
from app.models.message import NodeFailure, NodeSuccess
from app.models.query import OrderBy
from app.models.telemetry import DoubleEntry, JsonEntry, LongEntry
from app.services.telemetry_node import GetTelemetryNode, NodeState

NOW = 10_000_000


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    monkeypatch.setattr(interval_module, "current_time_millis", lambda: NOW)


@pytest.fixture
def node():
    def _node(**configuration):
        telemetry_node = GetTelemetryNode()
        telemetry_node.init(configuration)
        return telemetry_node

    return _node


def test_init_moves_node_to_ready(node):
    telemetry_node = node(latestTsKeyNames=["temperature"])

    assert telemetry_node.state == NodeState.READY

    telemetry_node.destroy()
    assert telemetry_node.state == NodeState.UNINITIALIZED


def test_invalid_configuration_rejected():
    with pytest.raises(NodeConfigurationError):
        GetTelemetryNode().init({"fetchMode": "SOME"})


def test_uninitialized_node_refuses_messages(ctx, make_msg, run):
    with pytest.raises(RuntimeError):
        run(GetTelemetryNode().on_msg(ctx, make_msg()))


def test_no_keys_selected_fails(node, ctx, store, make_msg, run):
    outcome = run(node().on_msg(ctx, make_msg()))

    assert isinstance(outcome, NodeFailure)
    assert isinstance(outcome.error, TelemetryNotSelectedError)
    assert str(outcome.error) == "Telemetry is not selected!"
    assert store.queries == []


def test_first_value_written_to_metadata(node, ctx, store, device, make_msg, run):
    run(
        store.save_entries(
            "tenant-1",
            device,
            [
                DoubleEntry(key="temperature", ts=NOW - 90_000, value=21.5),
                DoubleEntry(key="temperature", ts=NOW - 80_000, value=22.5),
            ],
        )
    )
    msg = make_msg({"deviceName": "sensor-1"})

    outcome = run(node(latestTsKeyNames=["temperature"], fetchMode="FIRST").on_msg(ctx, msg))

    assert isinstance(outcome, NodeSuccess)
    assert outcome.msg.metadata == {"deviceName": "sensor-1", "temperature": "21.5"}
    assert outcome.msg.id == msg.id
    assert msg.metadata == {"deviceName": "sensor-1"}


def test_last_value_written_to_metadata(node, ctx, store, device, make_msg, run):
    run(
        store.save_entries(
            "tenant-1",
            device,
            [
                DoubleEntry(key="temperature", ts=NOW - 90_000, value=21.5),
                DoubleEntry(key="temperature", ts=NOW - 80_000, value=22.5),
            ],
        )
    )

    outcome = run(
        node(latestTsKeyNames=["temperature"], fetchMode="LAST").on_msg(ctx, make_msg())
    )

    assert outcome.msg.metadata["temperature"] == "22.5"
    assert store.queries[0].order == OrderBy.DESC


def test_all_values_written_as_array(node, ctx, store, device, make_msg, run):
    run(
        store.save_entries(
            "tenant-1",
            device,
            [
                LongEntry(key="count", ts=NOW - 100_000, value=1),
                LongEntry(key="count", ts=NOW - 90_000, value=2),
                LongEntry(key="count", ts=NOW - 30_000, value=3),
            ],
        )
    )

    outcome = run(
        node(
            latestTsKeyNames=["count", "missing"],
            fetchMode="ALL",
            orderBy="DESC",
            limit=0,
        ).on_msg(ctx, make_msg())
    )

    expected = f"[{{ts:{NOW - 90_000},value:2}},{{ts:{NOW - 100_000},value:1}}]"
    assert outcome.msg.metadata == {"count": expected}
    assert len(store.queries) == 2
    assert store.queries[0].limit == 1000


def test_aggregated_value(node, ctx, store, device, make_msg, run):
    run(
        store.save_entries(
            "tenant-1",
            device,
            [
                DoubleEntry(key="temperature", ts=NOW - 100_000, value=20.0),
                DoubleEntry(key="temperature", ts=NOW - 90_000, value=24.0),
            ],
        )
    )

    outcome = run(
        node(
            latestTsKeyNames=["temperature"], fetchMode="FIRST", aggregation="AVG"
        ).on_msg(ctx, make_msg())
    )

    assert outcome.msg.metadata["temperature"] == "22.0"
    assert store.queries[0].interval == 60_000


def test_key_names_resolved_from_metadata(node, ctx, store, device, make_msg, run):
    run(store.save_entries("tenant-1", device, [LongEntry(key="rssi", ts=NOW - 90_000, value=-70)]))

    outcome = run(
        node(latestTsKeyNames=["${metric}"]).on_msg(ctx, make_msg({"metric": "rssi"}))
    )

    assert outcome.msg.metadata["rssi"] == "-70"
    assert store.queries[0].key == "rssi"


def test_dynamic_interval(node, ctx, store, device, make_msg, run):
    run(store.save_entries("tenant-1", device, [LongEntry(key="rssi", ts=1500, value=-70)]))
    dynamic = node(
        latestTsKeyNames=["rssi"],
        useMetadataIntervalPatterns=True,
        startIntervalPattern="${startTs}",
        endIntervalPattern="${endTs}",
    )

    outcome = run(dynamic.on_msg(ctx, make_msg({"startTs": "1000", "endTs": "2000"})))

    assert outcome.msg.metadata["rssi"] == "-70"
    assert store.queries[0].start_ts == 1000
    assert store.queries[0].end_ts == 2000


def test_dynamic_interval_undefined(node, ctx, store, make_msg, run):
    dynamic = node(
        latestTsKeyNames=["rssi"],
        useMetadataIntervalPatterns=True,
        startIntervalPattern="${startTs}",
        endIntervalPattern="${endTs}",
    )
    msg = make_msg()

    outcome = run(dynamic.on_msg(ctx, msg))

    assert isinstance(outcome, NodeFailure)
    assert isinstance(outcome.error, UndefinedIntervalError)
    assert outcome.error.keys == ["startTs", "endTs"]
    assert outcome.msg is msg
    assert store.queries == []


def test_dynamic_interval_invalid_format(node, ctx, make_msg, run):
    dynamic = node(
        latestTsKeyNames=["rssi"],
        useMetadataIntervalPatterns=True,
        startIntervalPattern="${startTs}",
        endIntervalPattern="${endTs}",
    )

    outcome = run(dynamic.on_msg(ctx, make_msg({"startTs": "abc", "endTs": "2000"})))

    assert isinstance(outcome.error, InvalidIntervalFormatError)
    assert outcome.error.keys == ["startTs"]


def test_storage_failure_routed_to_failure(node, ctx, store, make_msg, run):
    store.error = StorageError("connection refused")
    msg = make_msg({"deviceName": "sensor-1"})

    outcome = run(node(latestTsKeyNames=["temperature"]).on_msg(ctx, msg))

    assert isinstance(outcome, NodeFailure)
    assert outcome.error is store.error
    assert outcome.msg.metadata == {"deviceName": "sensor-1"}


def test_encoding_failure_routed_to_failure(node, ctx, store, device, make_msg, run):
    run(store.save_entries("tenant-1", device, [JsonEntry(key="cfg", ts=NOW - 90_000, value="{")]))

    outcome = run(node(latestTsKeyNames=["cfg"], fetchMode="ALL").on_msg(ctx, make_msg()))

    assert isinstance(outcome, NodeFailure)
    assert isinstance(outcome.error, EncodingError)
