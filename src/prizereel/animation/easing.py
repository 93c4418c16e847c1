"""Easing curves for reel and sequence animations.

Every function maps normalized time t (0.0 to 1.0) to normalized progress.
The timeline-style names (``power2.out``, ``power3.out``) resolve to the same
numeric curves so sequences can be described the way designers name them.
"""

from enum import Enum, auto
from typing import Callable


class Easing(Enum):
    """Available easing curves."""

    LINEAR = auto()
    EASE_OUT_CUBIC = auto()
    EASE_OUT_QUART = auto()


EasingFunc = Callable[[float], float]


def linear(t: float) -> float:
    """No easing."""
    return t


def ease_out_cubic(t: float) -> float:
    """Decelerate to zero velocity. Used by the reel deceleration rule."""
    return 1 - pow(1 - t, 3)


def ease_out_quart(t: float) -> float:
    """Strong deceleration (``power3.out``), used to land on an exact target."""
    return 1 - pow(1 - t, 4)


_EASING_FUNCTIONS: dict[Easing, EasingFunc] = {
    Easing.LINEAR: linear,
    Easing.EASE_OUT_CUBIC: ease_out_cubic,
    Easing.EASE_OUT_QUART: ease_out_quart,
}

# Snake-case names plus the power names used in motion design tools
_EASING_BY_NAME: dict[str, Easing] = {
    "linear": Easing.LINEAR,
    "none": Easing.LINEAR,

    "ease_out_cubic": Easing.EASE_OUT_CUBIC,
    "power2.out": Easing.EASE_OUT_CUBIC,

    "ease_out_quart": Easing.EASE_OUT_QUART,
    "power3.out": Easing.EASE_OUT_QUART,
}


def get_easing(easing: Easing | str) -> EasingFunc:
    """Get an easing function by enum or name.

    Args:
        easing: Easing enum value or name (e.g. "ease_out_cubic", "power3.out")

    Returns:
        The easing function

    Raises:
        ValueError: If the name is not recognized
    """
    if isinstance(easing, str):
        easing_enum = _EASING_BY_NAME.get(easing.lower())
        if easing_enum is None:
            raise ValueError(f"Unknown easing function: {easing}")
        easing = easing_enum

    func = _EASING_FUNCTIONS.get(easing)
    if func is None:
        raise ValueError(f"No function registered for: {easing}")

    return func
