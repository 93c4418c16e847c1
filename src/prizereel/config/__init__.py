"""Configuration for prizereel."""

from .settings import (
    Settings,
    ReelSettings,
    TimingSettings,
    BackendSettings,
    SPEED_MODE_FACTOR,
    get_settings,
)

__all__ = [
    "Settings",
    "ReelSettings",
    "TimingSettings",
    "BackendSettings",
    "SPEED_MODE_FACTOR",
    "get_settings",
]
