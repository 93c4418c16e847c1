"""Reel geometry, target selection and motion."""

from .geometry import (
    GridCell,
    ReelLayout,
    center_line,
    deceleration_distance,
    estimate_decel_ms,
    index_for_offset,
    index_for_translation,
    offset_for_index,
    translation_for_index,
)
from .selection import closed_form_target, min_target_index, select_target
from .picker import WeightedPicker
from .motion import MotionMode, ReelMotion, ReelState
from .controller import MultiReelController, VisibleCard

__all__ = [
    "GridCell",
    "ReelLayout",
    "center_line",
    "deceleration_distance",
    "estimate_decel_ms",
    "index_for_offset",
    "index_for_translation",
    "offset_for_index",
    "translation_for_index",
    "closed_form_target",
    "min_target_index",
    "select_target",
    "WeightedPicker",
    "MotionMode",
    "ReelMotion",
    "ReelState",
    "MultiReelController",
    "VisibleCard",
]
