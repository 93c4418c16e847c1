"""Animation module for prizereel."""

from prizereel.animation.easing import Easing, get_easing
from prizereel.animation.timeline import Timeline, Step, StepKind, PlayState
from prizereel.animation.engine import AnimationEngine

__all__ = [
    # Easing
    "Easing",
    "get_easing",
    # Timeline
    "Timeline",
    "Step",
    "StepKind",
    "PlayState",
    # Engine
    "AnimationEngine",
]
