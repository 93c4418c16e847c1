"""Core framework components for prizereel."""

from .state import PlayState, PlaySession, PlayStateMachine
from .events import EventBus, Event, EventType
from .errors import (
    ReelError,
    InvalidTarget,
    EmptyWeightPool,
    NotAligned,
    AllocationFailed,
    ClaimFailed,
)

__all__ = [
    "PlayState",
    "PlaySession",
    "PlayStateMachine",
    "EventBus",
    "Event",
    "EventType",
    "ReelError",
    "InvalidTarget",
    "EmptyWeightPool",
    "NotAligned",
    "AllocationFailed",
    "ClaimFailed",
]
