"""Step timeline for sequencing play animations.

A timeline is an ordered list of steps (wait, call, tween, until) with named
checkpoints. It is advanced by wall-clock deltas from the animation engine, so
the same sequence runs identically under the real frame loop and under tests
that feed deltas by hand.
"""

from typing import Any, Callable, Optional, List
from dataclasses import dataclass, field
from enum import Enum, auto
import logging

from prizereel.animation.easing import Easing, get_easing

logger = logging.getLogger(__name__)


class PlayState(Enum):
    """Timeline playback state."""

    STOPPED = auto()
    PLAYING = auto()
    FINISHED = auto()
    KILLED = auto()


class StepKind(Enum):
    """What a timeline step does while it is current."""

    LABEL = auto()   # Named checkpoint, zero duration
    CALL = auto()    # Run an action once, zero duration
    WAIT = auto()    # Hold for a fixed duration
    TWEEN = auto()   # Report eased progress over a fixed duration
    UNTIL = auto()   # Hold until a condition becomes true


@dataclass
class Step:
    """A single step in a timeline.

    Attributes:
        kind: Step behaviour
        duration: Duration in milliseconds (WAIT/TWEEN only)
        action: CALL action, or TWEEN progress callback taking eased progress
        easing: Curve applied to TWEEN progress
        condition: UNTIL predicate
        label: Checkpoint name for LABEL steps
    """

    kind: StepKind
    duration: float = 0.0
    action: Optional[Callable[..., Any]] = None
    easing: Easing | str = Easing.LINEAR
    condition: Optional[Callable[[], bool]] = None
    label: Optional[str] = None


@dataclass
class Timeline:
    """An ordered sequence of steps with named checkpoints.

    Attributes:
        name: Timeline identifier
        steps: Steps in execution order
        on_complete: Callback when the last step finishes
    """

    name: str
    steps: List[Step] = field(default_factory=list)
    on_complete: Optional[Callable[["Timeline"], None]] = None

    _state: PlayState = field(default=PlayState.STOPPED, repr=False)
    _index: int = field(default=0, repr=False)
    _step_time: float = field(default=0.0, repr=False)
    _elapsed: float = field(default=0.0, repr=False)
    _labels_reached: List[str] = field(default_factory=list, repr=False)

    # Building
    def add_label(self, name: str) -> "Timeline":
        """Add a named checkpoint at the current end of the sequence."""
        self.steps.append(Step(StepKind.LABEL, label=name))
        return self

    def call(self, action: Callable[[], Any]) -> "Timeline":
        """Run an action once when reached."""
        self.steps.append(Step(StepKind.CALL, action=action))
        return self

    def wait(self, duration_ms: float) -> "Timeline":
        """Hold for a fixed duration."""
        self.steps.append(Step(StepKind.WAIT, duration=max(0.0, duration_ms)))
        return self

    def tween(
        self,
        duration_ms: float,
        on_update: Callable[[float], Any],
        easing: Easing | str = Easing.LINEAR,
    ) -> "Timeline":
        """Report eased progress (0.0 to 1.0) to on_update for duration_ms."""
        get_easing(easing)  # fail fast on unknown curve names
        self.steps.append(
            Step(StepKind.TWEEN, duration=max(0.0, duration_ms), action=on_update, easing=easing)
        )
        return self

    def until(self, condition: Callable[[], bool]) -> "Timeline":
        """Hold until condition() returns True."""
        self.steps.append(Step(StepKind.UNTIL, condition=condition))
        return self

    # Playback control
    def play(self, from_start: bool = False) -> "Timeline":
        """Start playback."""
        if self._state == PlayState.KILLED:
            return self
        if from_start:
            self._index = 0
            self._step_time = 0.0
            self._elapsed = 0.0
            self._labels_reached = []
        self._state = PlayState.PLAYING
        return self

    def kill(self) -> "Timeline":
        """Stop immediately. Remaining steps never run."""
        if self._state not in (PlayState.FINISHED, PlayState.KILLED):
            self._state = PlayState.KILLED
            logger.debug(f"Timeline killed: {self.name} at step {self._index}")
        return self

    @property
    def state(self) -> PlayState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlayState.PLAYING

    @property
    def is_finished(self) -> bool:
        return self._state == PlayState.FINISHED

    @property
    def is_killed(self) -> bool:
        return self._state == PlayState.KILLED

    @property
    def elapsed(self) -> float:
        """Milliseconds of playback consumed so far."""
        return self._elapsed

    @property
    def current_label(self) -> Optional[str]:
        """Most recently reached checkpoint."""
        return self._labels_reached[-1] if self._labels_reached else None

    @property
    def labels_reached(self) -> List[str]:
        return list(self._labels_reached)

    @property
    def fixed_duration(self) -> float:
        """Sum of WAIT and TWEEN durations (UNTIL steps excluded)."""
        return sum(s.duration for s in self.steps if s.kind in (StepKind.WAIT, StepKind.TWEEN))

    def update(self, delta_ms: float) -> None:
        """Advance the timeline.

        Time left over from a finished step carries into the next one, so
        several short steps can complete within a single frame.
        """
        if self._state != PlayState.PLAYING:
            return

        remaining = max(0.0, delta_ms)
        self._elapsed += remaining

        while self._index < len(self.steps):
            step = self.steps[self._index]

            if step.kind == StepKind.LABEL:
                self._labels_reached.append(step.label or "")
                logger.debug(f"Timeline {self.name}: reached '{step.label}'")
                self._advance()
                continue

            if step.kind == StepKind.CALL:
                self._advance()
                if step.action:
                    step.action()
                # The action may have killed us
                if self._state != PlayState.PLAYING:
                    return
                continue

            if step.kind == StepKind.UNTIL:
                if step.condition is not None and not step.condition():
                    return
                self._advance()
                continue

            # WAIT / TWEEN
            needed = step.duration - self._step_time
            if remaining >= needed:
                remaining -= needed
                self._advance()
                if step.kind == StepKind.TWEEN and step.action:
                    step.action(get_easing(step.easing)(1.0))
                    if self._state != PlayState.PLAYING:
                        return
                continue

            self._step_time += remaining
            if step.kind == StepKind.TWEEN and step.action:
                t = self._step_time / step.duration
                step.action(get_easing(step.easing)(t))
            return

        self._state = PlayState.FINISHED
        logger.debug(f"Timeline finished: {self.name}")
        if self.on_complete:
            self.on_complete(self)

    def _advance(self) -> None:
        self._index += 1
        self._step_time = 0.0
