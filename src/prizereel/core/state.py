"""
Play lifecycle state machine.

States:
    IDLE: Waiting for the player (reels idle-drifting)
    SPINNING: Play requested, reels spinning, allocator call in flight
    DECELERATING: Reels slowing toward their stop
    SELECTING: Claw grabbing / winning card being selected
    LIFTING: Claw lifting the prize (optional sub-state before reveal)
    REVEAL: Result shown to the player
    SETTLE: Reward claimed

This machine is the only component that decides what happens next. Illegal
events are no-ops: they return the unchanged state and leave the session
untouched.
"""

from enum import Enum
from dataclasses import dataclass, replace
from typing import Callable, Optional
import logging

from prizereel.catalog.models import ClaimResult, Item, PlayResult

logger = logging.getLogger(__name__)


class PlayState(Enum):
    """Play lifecycle states."""
    IDLE = "idle"
    SPINNING = "spinning"
    DECELERATING = "decelerating"
    SELECTING = "selecting"
    GRABBING = "selecting"  # alias used by the claw presentation
    LIFTING = "lifting"
    REVEAL = "reveal"
    SETTLE = "settle"


@dataclass
class PlaySession:
    """Per-play record. Exactly one is live at a time."""
    state: PlayState = PlayState.IDLE
    play_result: Optional[PlayResult] = None
    selected_item: Optional[Item] = None
    highlight_id: Optional[str] = None
    claim_result: Optional[ClaimResult] = None
    claim_error: Optional[str] = None
    error: Optional[str] = None

    @property
    def play_id(self) -> Optional[str]:
        return self.play_result.play_id if self.play_result else None


Listener = Callable[[PlayState, PlayState, PlaySession], None]


class PlayStateMachine:
    """
    Guards the play sequence.

    Every event method returns the resulting state. Events that are not valid
    from the current state log a warning and return the current state.
    """

    # Event name -> states it may be applied from
    VALID_SOURCES: dict[str, tuple[PlayState, ...]] = {
        "play": (PlayState.IDLE,),
        "attach_result": (PlayState.SPINNING,),
        "decelerate": (PlayState.SPINNING, PlayState.DECELERATING),
        "select": (PlayState.DECELERATING,),
        "lift": (PlayState.SELECTING,),
        "reveal": (PlayState.SELECTING, PlayState.LIFTING),
        "select_item": (
            PlayState.SPINNING,
            PlayState.DECELERATING,
            PlayState.SELECTING,
            PlayState.LIFTING,
        ),
        "claim": (PlayState.REVEAL,),
        "claim_failed": (PlayState.REVEAL,),
    }

    def __init__(self) -> None:
        self._session = PlaySession()
        self._listeners: list[Listener] = []
        logger.info("PlayStateMachine initialized with state: IDLE")

    @property
    def state(self) -> PlayState:
        return self._session.state

    @property
    def session(self) -> PlaySession:
        """Point-in-time copy of the session."""
        return replace(self._session)

    # Selectors
    def can_play(self) -> bool:
        return self._session.state == PlayState.IDLE

    def is_busy(self) -> bool:
        return self._session.state not in (PlayState.IDLE, PlayState.SETTLE)

    def is_reveal_open(self) -> bool:
        return self._session.state in (PlayState.REVEAL, PlayState.SETTLE)

    def can(self, event: str) -> bool:
        """Check if an event is valid from the current state."""
        sources = self.VALID_SOURCES.get(event)
        return sources is not None and self._session.state in sources

    # Events
    def play(self) -> PlayState:
        return self._apply(
            "play",
            PlayState.SPINNING,
            play_result=None,
            selected_item=None,
            highlight_id=None,
            claim_result=None,
            claim_error=None,
            error=None,
        )

    def attach_result(self, result: PlayResult) -> PlayState:
        """Store the allocator result. Late results (after a reset) are dropped."""
        return self._apply(
            "attach_result",
            None,
            play_result=result,
            selected_item=result.item,
            highlight_id=result.item.id,
        )

    def decelerate(self) -> PlayState:
        return self._apply("decelerate", PlayState.DECELERATING)

    def select(self) -> PlayState:
        return self._apply("select", PlayState.SELECTING)

    grab = select

    def lift(self) -> PlayState:
        return self._apply("lift", PlayState.LIFTING)

    def reveal(self) -> PlayState:
        return self._apply("reveal", PlayState.REVEAL)

    def select_item(self, item: Item) -> PlayState:
        """Record the item actually won when it is drawn from the visible set."""
        return self._apply("select_item", None, selected_item=item, highlight_id=item.id)

    def claim(self, result: ClaimResult) -> PlayState:
        return self._apply("claim", PlayState.SETTLE, claim_result=result, claim_error=None)

    def claim_failed(self, result: ClaimResult, message: str) -> PlayState:
        """Keep the reveal open with an inline error so the claim can be retried."""
        return self._apply("claim_failed", None, claim_result=result, claim_error=message)

    def reset(self) -> PlayState:
        """Return to IDLE from any state, clearing the session."""
        old_state = self._session.state
        self._session = PlaySession()
        logger.info(f"Play reset: {old_state.name} -> IDLE")
        self._notify(old_state)
        return self._session.state

    def error(self, message: str) -> PlayState:
        """Abort the play from any state, keeping the message for display."""
        old_state = self._session.state
        self._session.state = PlayState.IDLE
        self._session.error = message
        logger.warning(f"Play error in {old_state.name}: {message}")
        self._notify(old_state)
        return self._session.state

    # Listeners
    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _apply(self, event: str, to_state: Optional[PlayState], **updates) -> PlayState:
        if not self.can(event):
            logger.warning(f"Ignored event '{event}' in state {self._session.state.name}")
            return self._session.state

        old_state = self._session.state
        for key, value in updates.items():
            setattr(self._session, key, value)
        if to_state is not None:
            self._session.state = to_state
            logger.info(f"Play transition: {old_state.name} -> {to_state.name}")
        else:
            logger.debug(f"Play event '{event}' applied in {old_state.name}")

        self._notify(old_state)
        return self._session.state

    def _notify(self, old_state: PlayState) -> None:
        for listener in self._listeners:
            try:
                listener(old_state, self._session.state, self._session)
            except Exception as e:
                logger.error(f"Error in state listener: {e}")
