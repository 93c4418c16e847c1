"""
Event bus for the reel engine.

Publishes play lifecycle events to presentation collaborators (renderers,
announcers, sound) without the core depending on them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Awaitable
from enum import Enum, auto
from collections import defaultdict
import asyncio
import inspect
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Play lifecycle event types."""
    STATE_CHANGED = auto()

    PLAY_REQUESTED = auto()
    PRIZE_ALLOCATED = auto()
    ALLOCATION_FAILED = auto()

    REELS_SPINNING = auto()
    REELS_STOPPED = auto()
    CARD_SELECTED = auto()

    CLAW_DROP = auto()
    CLAW_CLOSE = auto()
    CLAW_LIFT = auto()

    REVEAL = auto()
    CLAIM_COMPLETE = auto()
    CLAIM_FAILED = auto()

    RESET = auto()
    ERROR = auto()


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: Event type (EventType enum or custom string)
        data: Event payload
        source: Component that emitted the event
        timestamp: Monotonic time the event was created
    """
    type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    timestamp: float = field(default_factory=time.monotonic)


SyncHandler = Callable[[Event], None]
AsyncHandler = Callable[[Event], Awaitable[None]]
Handler = SyncHandler | AsyncHandler


class EventBus:
    """
    Pub/sub hub between the engine and its collaborators.

    Handler failures are logged and never propagate into the engine.
    """

    def __init__(self, history_limit: int = 100) -> None:
        self._handlers: dict[EventType | str, list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []
        self._event_history: list[Event] = []
        self._history_limit = history_limit

    def subscribe(self, event_type: EventType | str, handler: Handler) -> Callable[[], None]:
        """
        Subscribe to an event type.

        Returns:
            Unsubscribe function
        """
        self._handlers[event_type].append(handler)
        logger.debug(f"Handler subscribed to {event_type}")

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Subscribe to every event. Returns an unsubscribe function."""
        self._global_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._global_handlers:
                self._global_handlers.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Emit an event to synchronous handlers. Async handlers are scheduled
        on the running loop if there is one."""
        self._add_to_history(event)

        for handler in self._handlers_for(event):
            if inspect.iscoroutinefunction(handler):
                self._schedule(handler, event)
                continue
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler: {e}")

    async def emit_async(self, event: Event) -> None:
        """Emit an event and await all handlers (sync and async)."""
        self._add_to_history(event)

        tasks = []
        for handler in self._handlers_for(event):
            if inspect.iscoroutinefunction(handler):
                tasks.append(asyncio.create_task(handler(event)))
            else:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(f"Error in sync handler: {e}")

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Error in async handler: {result}")

    def get_history(self, event_type: EventType | str | None = None, limit: int = 10) -> list[Event]:
        """Get recent events, optionally filtered by type."""
        history = self._event_history
        if event_type is not None:
            history = [e for e in history if e.type == event_type]
        return history[-limit:]

    def clear_history(self) -> None:
        self._event_history.clear()

    def _handlers_for(self, event: Event) -> list[Handler]:
        return list(self._handlers.get(event.type, [])) + list(self._global_handlers)

    def _schedule(self, handler: AsyncHandler, event: Event) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, async handler skipped for {event.type}")
            return

        task = loop.create_task(handler(event))
        task.add_done_callback(self._log_task_error)

    @staticmethod
    def _log_task_error(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Error in async handler: {task.exception()}")

    def _add_to_history(self, event: Event) -> None:
        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            self._event_history.pop(0)


def state_changed_event(old: str, new: str, source: str = "state_machine") -> Event:
    """Create a state change event."""
    return Event(EventType.STATE_CHANGED, data={"from": old, "to": new}, source=source)
