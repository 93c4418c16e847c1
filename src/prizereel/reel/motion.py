"""Per-reel motion model.

A reel is an endless strip whose wrapped position lives in [0, total_width).
Wrapping is seamless because total_width is a whole number of card pitches.
The unwrapped offset (position + wraps * total_width) is kept as well, so an
exact stop can land on a logical index several catalog cycles away.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import logging
import math
import random

from prizereel.animation.easing import Easing, ease_out_cubic, get_easing

logger = logging.getLogger(__name__)

DEFAULT_FREEZE_PROGRESS = 0.98
DEFAULT_VELOCITY_EPSILON = 0.01
ALIGN_TOLERANCE = 1e-6


class MotionMode(Enum):
    IDLE_DRIFT = auto()
    FREE_SPIN = auto()
    DECELERATING = auto()
    EXACT_STOP = auto()
    FROZEN = auto()


@dataclass
class ReelState:
    """Mutable motion state of one reel.

    Attributes:
        position: Wrapped scroll offset in [0, total_width)
        velocity: Pixels per frame, always >= 0
        direction: +1 scrolls the strip left, -1 scrolls it right
        frozen: Frozen reels ignore ticks
        wraps: Net number of full cycles wrapped so far
    """

    position: float = 0.0
    velocity: float = 0.0
    direction: int = 1
    frozen: bool = False
    wraps: int = 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ReelMotion:
    """Advances one reel per frame in one of several motion modes."""

    def __init__(
        self,
        pitch: float,
        item_count: int,
        direction: int = 1,
        freeze_progress: float = DEFAULT_FREEZE_PROGRESS,
        velocity_epsilon: float = DEFAULT_VELOCITY_EPSILON,
        name: str = "reel",
    ):
        if pitch <= 0:
            raise ValueError(f"pitch must be positive, got {pitch}")
        if item_count < 1:
            raise ValueError("item_count must be >= 1")
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")

        self.name = name
        self.pitch = pitch
        self.item_count = item_count
        self.freeze_progress = freeze_progress
        self.velocity_epsilon = velocity_epsilon

        self.state = ReelState(direction=direction)
        self.mode = MotionMode.IDLE_DRIFT

        # Active deceleration / exact stop parameters
        self._phase_start_ms = 0.0
        self._phase_duration_ms = 0.0
        self._initial_velocity = 0.0
        self._start_offset = 0.0
        self._target_offset = 0.0
        self._easing = get_easing(Easing.EASE_OUT_QUART)

    # Projections
    @property
    def total_width(self) -> float:
        return self.pitch * self.item_count

    @property
    def position(self) -> float:
        return self.state.position

    @property
    def velocity(self) -> float:
        return self.state.velocity

    @property
    def direction(self) -> int:
        return self.state.direction

    @property
    def frozen(self) -> bool:
        return self.state.frozen

    @property
    def offset(self) -> float:
        """Unwrapped scroll offset."""
        return self.state.position + self.state.wraps * self.total_width

    @property
    def translate_x(self) -> float:
        """Strip translation for the unwrapped offset."""
        return -self.offset

    @property
    def rendered_x(self) -> float:
        """Strip translation actually drawn (wrapped)."""
        return -self.state.position

    def set_offset(self, offset: float) -> None:
        """Place the reel at an unwrapped offset."""
        wraps = math.floor(offset / self.total_width)
        self.state.wraps = wraps
        self.state.position = offset - wraps * self.total_width
        # Guard against float residue at the upper edge
        if self.state.position >= self.total_width:
            self.state.position -= self.total_width
            self.state.wraps += 1

    # Mode changes
    def drift(self, velocity: float = 1.0) -> None:
        """Slow idle drift."""
        self.state.frozen = False
        self.state.velocity = velocity
        self.mode = MotionMode.IDLE_DRIFT

    def start_free_spin(self, velocity: float) -> None:
        """Constant-speed spin until told otherwise."""
        self.state.frozen = False
        self.state.velocity = velocity
        self.mode = MotionMode.FREE_SPIN
        logger.debug(f"{self.name}: free spin at {velocity:.2f} px/frame")

    def begin_deceleration(self, duration_ms: float, now_ms: float) -> None:
        """Ease the current velocity down to zero over duration_ms (cubic out)."""
        if self.state.frozen:
            return
        self._phase_start_ms = now_ms
        self._phase_duration_ms = duration_ms
        self._initial_velocity = self.state.velocity
        self.mode = MotionMode.DECELERATING
        if duration_ms <= 0:
            self.freeze()

    def begin_exact_stop(
        self,
        target_offset: float,
        duration_ms: float,
        now_ms: float,
        easing: Easing | str = "power3.out",
    ) -> None:
        """Tween the unwrapped offset to target_offset, then freeze there."""
        self._easing = get_easing(easing)
        self._phase_start_ms = now_ms
        self._phase_duration_ms = duration_ms
        self._start_offset = self.offset
        self._target_offset = target_offset
        self.state.frozen = False
        self.mode = MotionMode.EXACT_STOP
        logger.debug(
            f"{self.name}: exact stop {self._start_offset:.1f} -> {target_offset:.1f} "
            f"over {duration_ms:.0f}ms"
        )
        if duration_ms <= 0:
            self._finish_exact_stop()

    def freeze(self) -> None:
        self.state.frozen = True
        self.state.velocity = 0.0
        self.mode = MotionMode.FROZEN

    def unfreeze(self, velocity: float = 1.0) -> None:
        """Resume idle drift."""
        self.drift(velocity)

    def randomize(self, rng: Optional[random.Random] = None) -> None:
        """Jump to a random item-aligned start position."""
        rng = rng or random.Random()
        self.set_offset(rng.randrange(self.item_count) * self.pitch)

    # Grid alignment
    def snap_to_grid(self, left_margin: float = 0.0) -> None:
        """Move to the nearest position where a card edge sits on left_margin.

        The wrapped position ends up in [0, total_width).
        """
        boundary = _round_half_up((self.offset + left_margin) / self.pitch)
        self.set_offset(boundary * self.pitch - left_margin)

    def is_aligned(self, left_margin: float = 0.0, tolerance: float = ALIGN_TOLERANCE) -> bool:
        ratio = (self.state.position + left_margin) / self.pitch
        return abs(ratio - _round_half_up(ratio)) * self.pitch <= tolerance

    # Frame update
    def tick(self, now_ms: float) -> None:
        """Advance one frame."""
        if self.state.frozen:
            return

        if self.mode == MotionMode.EXACT_STOP:
            self._update_exact_stop(now_ms)
            return

        if self.mode == MotionMode.DECELERATING:
            self._update_deceleration(now_ms)
            if self.state.frozen:
                return

        self.state.position += self.state.velocity * self.state.direction
        self.wrap()

    def wrap(self) -> None:
        """Bring position back into [0, total_width). No-op when already inside."""
        position = self.state.position
        total = self.total_width
        if 0 <= position < total:
            return
        cycles = math.floor(position / total)
        self.state.position = position - cycles * total
        self.state.wraps += cycles
        if self.state.position >= total:
            self.state.position -= total
            self.state.wraps += 1

    def _progress(self, now_ms: float) -> float:
        if self._phase_duration_ms <= 0:
            return 1.0
        elapsed = now_ms - self._phase_start_ms
        return max(0.0, min(1.0, elapsed / self._phase_duration_ms))

    def _update_deceleration(self, now_ms: float) -> None:
        progress = self._progress(now_ms)
        eased = ease_out_cubic(progress)
        self.state.velocity = self._initial_velocity * (1 - eased)
        if progress >= self.freeze_progress or self.state.velocity < self.velocity_epsilon:
            self.freeze()
            logger.debug(f"{self.name}: decelerated to a stop at {self.state.position:.1f}")

    def _update_exact_stop(self, now_ms: float) -> None:
        progress = self._progress(now_ms)
        if progress >= 1.0:
            self._finish_exact_stop()
            return
        previous = self.offset
        eased = self._easing(progress)
        self.set_offset(self._start_offset + (self._target_offset - self._start_offset) * eased)
        self.state.velocity = abs(self.offset - previous)

    def _finish_exact_stop(self) -> None:
        self.set_offset(self._target_offset)
        self.freeze()
        logger.debug(f"{self.name}: stopped at offset {self._target_offset:.1f}")
