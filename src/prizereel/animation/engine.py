"""Animation engine: the single frame loop for timelines and reels."""

from typing import Optional, Callable, Dict, List
from dataclasses import dataclass, field
import asyncio
import logging

from prizereel.animation.timeline import Timeline

logger = logging.getLogger(__name__)

# Called once per frame with the engine clock in milliseconds
Ticker = Callable[[float], None]


@dataclass
class ActiveAnimation:
    """Wrapper for an active timeline with metadata."""

    timeline: Timeline
    on_complete: Optional[Callable[[], None]] = None
    waiters: List[asyncio.Future] = field(default_factory=list, repr=False)


class AnimationEngine:
    """Central animation management system.

    Owns the engine clock, advances every active timeline and calls the
    registered tickers (reel controllers) once per frame. Everything that moves
    is advanced from here, so there is exactly one animation timeline per play.
    """

    def __init__(self, fps: int = 60):
        self._animations: Dict[str, ActiveAnimation] = {}
        self._tickers: List[Ticker] = []
        self._now_ms = 0.0
        self._fps = max(1, fps)
        self._running = False

        logger.debug("AnimationEngine initialized")

    # Clock
    @property
    def now_ms(self) -> float:
        """Engine clock in milliseconds (advances only through update)."""
        return self._now_ms

    def clock(self) -> float:
        """Callable form of now_ms for components that need a time source."""
        return self._now_ms

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def is_running(self) -> bool:
        return self._running

    # Tickers
    def add_ticker(self, ticker: Ticker) -> Callable[[], None]:
        """Register a per-frame callback. Returns an unregister function."""
        self._tickers.append(ticker)

        def remove() -> None:
            if ticker in self._tickers:
                self._tickers.remove(ticker)

        return remove

    # Timelines
    def play(
        self,
        timeline: Timeline,
        name: Optional[str] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> str:
        """Start playing a timeline, replacing any running one with the same name.

        Returns:
            The animation name
        """
        anim_name = name or timeline.name or f"anim_{len(self._animations)}"

        if anim_name in self._animations:
            self.stop(anim_name)

        self._animations[anim_name] = ActiveAnimation(
            timeline=timeline,
            on_complete=on_complete,
        )

        timeline.play(from_start=True)
        logger.debug(f"Animation started: {anim_name}")
        return anim_name

    def stop(self, name: str) -> bool:
        """Kill and remove a timeline. Pending waiters resolve to False.

        Returns:
            True if the animation was found and stopped
        """
        active = self._animations.pop(name, None)
        if active is None:
            return False

        active.timeline.kill()
        self._resolve_waiters(active, False)
        logger.debug(f"Animation stopped: {name}")
        return True

    def has_animation(self, name: str) -> bool:
        return name in self._animations

    def get_animation(self, name: str) -> Optional[Timeline]:
        active = self._animations.get(name)
        return active.timeline if active else None

    @property
    def animation_count(self) -> int:
        return len(self._animations)

    async def wait(self, name: str) -> bool:
        """Wait for a timeline to end.

        Returns:
            True if it finished, False if it was stopped or never existed
        """
        active = self._animations.get(name)
        if active is None:
            return False
        future = asyncio.get_running_loop().create_future()
        active.waiters.append(future)
        return await future

    # Frame update
    def update(self, delta_ms: float) -> None:
        """Advance the clock, all timelines and all tickers by one frame."""
        self._now_ms += delta_ms

        # Reels first so timeline conditions see this frame's positions
        for ticker in list(self._tickers):
            ticker(self._now_ms)

        completed: List[str] = []
        for name, active in list(self._animations.items()):
            active.timeline.update(delta_ms)
            if active.timeline.is_finished:
                completed.append(name)

        for name in completed:
            active = self._animations.pop(name, None)
            if active is None:
                continue
            if active.on_complete:
                active.on_complete()
            self._resolve_waiters(active, True)
            logger.debug(f"Animation completed: {name}")

    async def run(self) -> None:
        """Run the frame loop until stop_loop() is called."""
        loop = asyncio.get_running_loop()
        frame_s = 1.0 / self._fps
        last = loop.time()
        self._running = True
        logger.info(f"Animation loop started at {self._fps} fps")

        try:
            while self._running:
                await asyncio.sleep(frame_s)
                now = loop.time()
                self.update((now - last) * 1000)
                last = now
        finally:
            self._running = False
            logger.info("Animation loop stopped")

    def stop_loop(self) -> None:
        self._running = False

    @staticmethod
    def _resolve_waiters(active: ActiveAnimation, finished: bool) -> None:
        for future in active.waiters:
            if not future.done():
                future.set_result(finished)
        active.waiters.clear()
