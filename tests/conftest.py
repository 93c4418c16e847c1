"""Pytest fixtures for reel engine tests."""
import asyncio
import random
from typing import Any, Awaitable

import pytest

from prizereel.animation.engine import AnimationEngine
from prizereel.backend.base import PrizeAllocator, RewardClaimer
from prizereel.backend.mock import MockRewardBackend
from prizereel.catalog.catalog import Catalog, load_catalog
from prizereel.catalog.models import ClaimResult, Item, PlayResult
from prizereel.config.settings import BackendSettings, Settings, TimingSettings
from prizereel.core.errors import AllocationFailed, ClaimFailed
from prizereel.core.events import EventBus

FRAME_MS = 16.0


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: statistical tests that draw many samples"
    )


class FixedAllocator(PrizeAllocator):
    """Allocator that always returns the same item."""

    def __init__(self, item: Item, play_id: str = "play_test_1"):
        self.item = item
        self.play_id = play_id
        self.calls = 0

    async def play(self) -> PlayResult:
        self.calls += 1
        return PlayResult(play_id=self.play_id, item=self.item)


class FailingAllocator(PrizeAllocator):
    """Allocator that always fails."""

    async def play(self) -> PlayResult:
        raise AllocationFailed("backend down")


class CrashingAllocator(PrizeAllocator):
    """Allocator with a bug: raises something other than AllocationFailed."""

    async def play(self) -> PlayResult:
        raise RuntimeError("allocator bug")


class CrashingClaimer(RewardClaimer):
    """Claimer with a bug: raises something other than ClaimFailed."""

    async def claim(self, play_id: str, item: Item) -> ClaimResult:
        raise RuntimeError("claimer bug")


class GatedAllocator(PrizeAllocator):
    """Allocator that answers only once the gate is opened."""

    def __init__(self, item: Item):
        self.item = item
        self.gate = asyncio.Event()

    async def play(self) -> PlayResult:
        await self.gate.wait()
        return PlayResult(play_id="play_late", item=self.item)


class RejectingClaimer(RewardClaimer):
    """Claimer that reports a recoverable failure."""

    def __init__(self, raise_error: bool = False):
        self.raise_error = raise_error
        self.calls = 0

    async def claim(self, play_id: str, item: Item) -> ClaimResult:
        self.calls += 1
        if self.raise_error:
            raise ClaimFailed("claim service unavailable")
        return ClaimResult(play_id=play_id, item_id=item.id, success=False, error="ALREADY_CLAIMED")


async def drive(engine: AnimationEngine, awaitable: Awaitable[Any], max_frames: int = 5000) -> Any:
    """Run an awaitable while stepping the engine one frame per loop turn."""
    task = asyncio.ensure_future(awaitable)
    frames = 0
    while not task.done():
        await asyncio.sleep(0)
        if task.done():
            break
        engine.update(FRAME_MS)
        frames += 1
        if frames > max_frames:
            task.cancel()
            raise AssertionError(f"Sequence did not finish within {max_frames} frames")
    return task.result()


@pytest.fixture
def catalog() -> Catalog:
    """The bundled 14-item prize catalog."""
    return load_catalog()


@pytest.fixture
def small_catalog() -> Catalog:
    return Catalog([
        Item(id="a", weight=1),
        Item(id="b", weight=2),
        Item(id="c", weight=0),
        Item(id="d", weight=1),
    ])


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def engine() -> AnimationEngine:
    return AnimationEngine(fps=60)


@pytest.fixture
def events() -> EventBus:
    return EventBus(history_limit=500)


@pytest.fixture
def fast_timing() -> TimingSettings:
    """Short phase durations so a full play runs in a few dozen frames."""
    return TimingSettings(
        spin_min_ms=100,
        spin_max_ms=200,
        decel_ms=100,
        claw_delay_ms=16,
        drop_ms=32,
        grab_ms=32,
        lift_ms=32,
        reveal_ms=16,
        multi_spin_ms=200,
        multi_decel_ms=100,
        highlight_hold_ms=48,
    )


@pytest.fixture
def make_settings(fast_timing):
    """Factory for settings with fast timings and an instant mock backend."""
    def factory(**overrides) -> Settings:
        values = {
            "timing": fast_timing,
            "backend": BackendSettings(
                play_latency_min_ms=0,
                play_latency_max_ms=0,
                claim_latency_min_ms=0,
                claim_latency_max_ms=0,
                allocator_timeout_s=1.0,
                claim_timeout_s=1.0,
            ),
            "seed": 7,
        }
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def mock_backend(catalog, rng) -> MockRewardBackend:
    return MockRewardBackend(catalog, rng=rng, play_latency_ms=(0, 0), claim_latency_ms=(0, 0))
