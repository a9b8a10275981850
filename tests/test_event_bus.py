"""
Message routing tests.
"""

from app.core.context import NodeContext
from app.core.errors import StorageError
from app.core.event_bus import FAILURE, SUCCESS, EventBus


def test_routed_messages_reach_subscribers(store, make_msg, run):
    received = []

    async def scenario():
        bus = EventBus()
        bus.subscribe(SUCCESS, received.append)
        bus.subscribe(FAILURE, received.append)
        ctx = NodeContext("tenant-1", store, bus)

        await bus.start()
        await ctx.tell_success(make_msg({"a": "1"}))
        await ctx.tell_failure(make_msg(), ValueError("boom"))
        await bus.queue.join()
        await bus.stop()
        return bus

    bus = run(scenario())

    assert sorted(event["relation"] for event in received) == [FAILURE, SUCCESS]
    failure = next(event for event in received if event["relation"] == FAILURE)
    assert isinstance(failure["error"], ValueError)
    assert str(failure["error"]) == "boom"
    success = next(event for event in received if event["relation"] == SUCCESS)
    assert success["error"] is None
    assert bus.delivered == {SUCCESS: 1, FAILURE: 1}


def test_failure_event_keeps_error_cause(store, make_msg, run):
    received = []
    cause = ConnectionError("refused")
    error = StorageError("Failed to read telemetry for dev-1")
    error.__cause__ = cause

    async def scenario():
        bus = EventBus()
        bus.subscribe(FAILURE, received.append)
        await bus.start()
        await NodeContext("tenant-1", store, bus).tell_failure(make_msg(), error)
        await bus.queue.join()
        await bus.stop()

    run(scenario())

    (event,) = received
    assert event["error"] is error
    assert event["error"].__cause__ is cause


def test_route_before_start_is_skipped(make_msg, run):
    bus = EventBus()

    run(bus.route(SUCCESS, make_msg()))

    assert bus.get_queue_size() == 0
    assert bus.delivered == {}


def test_handler_errors_do_not_stop_delivery(make_msg, run):
    received = []

    def broken(event):
        raise RuntimeError("handler failed")

    async def scenario():
        bus = EventBus()
        bus.subscribe(SUCCESS, broken)
        bus.subscribe(SUCCESS, received.append)
        await bus.start()
        await bus.route(SUCCESS, make_msg())
        await bus.queue.join()
        await bus.stop()

    run(scenario())

    assert len(received) == 1
