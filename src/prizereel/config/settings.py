"""
Engine settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Nested groups use a double underscore, e.g. PRIZEREEL_TIMING__DECEL_MS=900.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Speed mode runs every phase at this fraction of its normal duration
SPEED_MODE_FACTOR = 0.6


class ReelSettings(BaseSettings):
    """Reel layout and motion settings."""

    # Multi-row grid
    row_count: int = Field(default=3, ge=1)
    visible_columns: int = Field(default=5, ge=1)
    container_width: float = Field(default=1200.0, gt=0)
    container_height: float = Field(default=600.0, gt=0)
    gap: float = Field(default=16.0, ge=0)
    row_gap: float = Field(default=12.0, ge=0)
    card_scale: float = Field(default=0.85, gt=0, le=1.0)  # of row height

    # Single carousel
    viewport_width: float = Field(default=400.0, gt=0)
    item_width: float = Field(default=140.0, gt=0)
    min_laps: float = Field(default=1.5, ge=0)

    # Motion, in pixels per frame
    idle_velocity: float = Field(default=1.0, ge=0)
    spin_velocity_min: float = Field(default=12.75, ge=0)
    spin_velocity_max: float = Field(default=21.25, ge=0)
    single_spin_velocity: float = Field(default=24.0, ge=0)

    # Deceleration cut-offs
    freeze_progress: float = Field(default=0.98, gt=0, le=1.0)
    velocity_epsilon: float = Field(default=0.01, gt=0)

    @model_validator(mode="after")
    def _check_band(self) -> "ReelSettings":
        if self.spin_velocity_max < self.spin_velocity_min:
            raise ValueError("spin_velocity_max must be >= spin_velocity_min")
        return self


class TimingSettings(BaseSettings):
    """Phase durations in milliseconds."""

    spin_min_ms: float = 2000.0
    spin_max_ms: float = 3500.0
    decel_ms: float = 1200.0
    claw_delay_ms: float = 100.0
    drop_ms: float = 400.0
    grab_ms: float = 300.0
    lift_ms: float = 500.0
    reveal_ms: float = 300.0

    # Multi-candidate sequence
    multi_spin_ms: float = 4000.0
    multi_decel_ms: float = 1200.0
    highlight_hold_ms: float = 800.0

    def scaled(self, factor: float) -> "TimingSettings":
        """Copy with every duration multiplied by factor (rounded to whole ms)."""
        return self.model_copy(
            update={name: float(round(value * factor)) for name, value in self.model_dump().items()}
        )


class BackendSettings(BaseSettings):
    """Allocator and claim collaborator settings."""

    kind: Literal["mock", "http"] = "mock"

    # HTTP backend
    api_url: str = "http://localhost:8080"
    api_key: str = ""

    # Mock backend simulated latency
    play_latency_min_ms: float = 400.0
    play_latency_max_ms: float = 700.0
    claim_latency_min_ms: float = 100.0
    claim_latency_max_ms: float = 300.0

    # Timeouts
    allocator_timeout_s: float = Field(default=10.0, gt=0)
    claim_timeout_s: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    """Main engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="PRIZEREEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = False

    # Reveal style: one centered target, or a draw from the visible grid
    mode: Literal["single", "multi"] = "single"
    speed_mode: bool = False
    reduced_motion: bool = False
    fps: int = Field(default=60, ge=1)

    catalog_path: Optional[Path] = None
    seed: Optional[int] = None

    reel: ReelSettings = Field(default_factory=ReelSettings)
    timing: TimingSettings = Field(default_factory=TimingSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)

    @property
    def effective_timing(self) -> TimingSettings:
        """Timings with speed mode applied."""
        if self.speed_mode:
            return self.timing.scaled(SPEED_MODE_FACTOR)
        return self.timing


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
