"""Event bus tests."""
import asyncio

import pytest

from prizereel.core.events import Event, EventBus, EventType, state_changed_event


class TestEventBus:
    """Publish / subscribe behaviour."""

    def test_subscribe_and_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.REVEAL, received.append)
        bus.emit(Event(EventType.REVEAL, data={"item_id": "pts-50"}))
        bus.emit(Event(EventType.RESET))
        assert [e.data["item_id"] for e in received] == ["pts-50"]

    def test_subscribe_all(self):
        bus = EventBus()
        received = []
        bus.subscribe_all(lambda e: received.append(e.type))
        bus.emit(Event(EventType.PLAY_REQUESTED))
        bus.emit(Event("custom"))
        assert received == [EventType.PLAY_REQUESTED, "custom"]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(EventType.ERROR, received.append)
        unsubscribe()
        bus.emit(Event(EventType.ERROR))
        assert received == []

    def test_handler_error_does_not_propagate(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        bus.subscribe(EventType.ERROR, broken)
        bus.subscribe(EventType.ERROR, received.append)
        bus.emit(Event(EventType.ERROR))
        assert len(received) == 1

    def test_history_limit_and_filter(self):
        bus = EventBus(history_limit=3)
        for event_type in (EventType.RESET, EventType.REVEAL, EventType.RESET, EventType.ERROR):
            bus.emit(Event(event_type))
        history = bus.get_history(limit=10)
        assert [e.type for e in history] == [EventType.REVEAL, EventType.RESET, EventType.ERROR]
        assert len(bus.get_history(EventType.RESET)) == 1
        bus.clear_history()
        assert bus.get_history() == []

    def test_state_changed_helper(self):
        event = state_changed_event("idle", "spinning")
        assert event.type == EventType.STATE_CHANGED
        assert event.data == {"from": "idle", "to": "spinning"}

    @pytest.mark.asyncio
    async def test_async_handler_scheduled_on_emit(self):
        bus = EventBus()
        received = asyncio.Event()

        async def handler(event):
            received.set()

        bus.subscribe(EventType.CLAIM_COMPLETE, handler)
        bus.emit(Event(EventType.CLAIM_COMPLETE))
        await asyncio.wait_for(received.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_emit_async_awaits_handlers(self):
        bus = EventBus()
        order = []

        async def slow(event):
            await asyncio.sleep(0.01)
            order.append("async")

        async def failing(event):
            raise RuntimeError("async handler bug")

        bus.subscribe(EventType.REVEAL, slow)
        bus.subscribe(EventType.REVEAL, failing)
        bus.subscribe(EventType.REVEAL, lambda e: order.append("sync"))
        await bus.emit_async(Event(EventType.REVEAL))
        assert order == ["sync", "async"]
