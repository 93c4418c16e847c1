"""Multi-reel controller: stacked reels that spin together and freeze on a grid."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple
import asyncio
import logging
import math
import random

import numpy as np

from prizereel.catalog.catalog import Catalog
from prizereel.config.settings import ReelSettings
from prizereel.core.errors import NotAligned
from prizereel.reel.geometry import GridCell, ReelLayout
from prizereel.reel.motion import ALIGN_TOLERANCE, ReelMotion

logger = logging.getLogger(__name__)


# Historical spin band: (15 + U * 10) * 0.85 px/frame
DEFAULT_SPIN_MIN = 15 * 0.85
DEFAULT_SPIN_MAX = 25 * 0.85


@dataclass(frozen=True)
class VisibleCard:
    """A card fully visible in the frozen grid."""

    row: int
    col: int
    catalog_index: int
    item_id: str
    weight: float
    grid_cell: GridCell

    @property
    def id(self) -> str:
        return self.item_id


Waiter = Tuple[Callable[[], bool], asyncio.Future]


class MultiReelController:
    """Owns N reels sharing one layout.

    Even rows scroll with direction +1, odd rows with -1. The controller is
    registered as a ticker with the animation engine; async helpers resolve
    from inside tick() so they follow the engine clock.
    """

    def __init__(
        self,
        catalog: Catalog,
        layout: ReelLayout,
        rng: Optional[random.Random] = None,
        idle_velocity: float = 1.0,
        spin_velocity_min: float = DEFAULT_SPIN_MIN,
        spin_velocity_max: float = DEFAULT_SPIN_MAX,
        freeze_progress: float = 0.98,
        velocity_epsilon: float = 0.01,
        clock: Optional[Callable[[], float]] = None,
    ):
        if layout.item_count != len(catalog):
            raise ValueError(
                f"Layout item_count {layout.item_count} != catalog length {len(catalog)}"
            )

        self.catalog = catalog
        self.layout = layout
        self.idle_velocity = idle_velocity
        self.spin_velocity_min = spin_velocity_min
        self.spin_velocity_max = spin_velocity_max

        self._rng = rng or random.Random()
        self._clock = clock
        self._now_ms = 0.0
        self._waiters: List[Waiter] = []

        self.highlighted: Optional[Tuple[int, int]] = None
        self.hidden: Set[Tuple[int, int]] = set()

        self.reels: List[ReelMotion] = [
            ReelMotion(
                pitch=layout.pitch,
                item_count=len(catalog),
                direction=1 if row % 2 == 0 else -1,
                freeze_progress=freeze_progress,
                velocity_epsilon=velocity_epsilon,
                name=f"row{row}",
            )
            for row in range(layout.row_count)
        ]

        for reel in self.reels:
            reel.randomize(self._rng)
            reel.snap_to_grid(layout.left_margin)
            reel.drift(idle_velocity)

        logger.debug(f"MultiReelController: {len(self.reels)} reels, pitch {layout.pitch:.1f}")

    @classmethod
    def from_settings(
        cls,
        catalog: Catalog,
        settings: ReelSettings,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "MultiReelController":
        layout = ReelLayout.from_container(
            container_width=settings.container_width,
            container_height=settings.container_height,
            item_count=len(catalog),
            row_count=settings.row_count,
            visible_columns=settings.visible_columns,
            gap=settings.gap,
            row_gap=settings.row_gap,
            card_scale=settings.card_scale,
        )
        return cls(
            catalog,
            layout,
            rng=rng,
            idle_velocity=settings.idle_velocity,
            spin_velocity_min=settings.spin_velocity_min,
            spin_velocity_max=settings.spin_velocity_max,
            freeze_progress=settings.freeze_progress,
            velocity_epsilon=settings.velocity_epsilon,
            clock=clock,
        )

    # Clock
    def now_ms(self) -> float:
        return self._clock() if self._clock else self._now_ms

    # Layout
    def set_layout(self, layout: ReelLayout) -> None:
        """Apply a new layout (container resize), keeping each reel's item position."""
        if layout.item_count != len(self.catalog):
            raise ValueError("Layout item_count does not match catalog")
        scale = layout.pitch / self.layout.pitch
        for reel in self.reels:
            offset = reel.offset * scale
            reel.pitch = layout.pitch
            reel.set_offset(offset)
        self.layout = layout

    # Motion commands
    def start_continuous_spin(self) -> None:
        """Every reel free-spins at its own random velocity in the spin band."""
        self.clear_highlight()
        for row, reel in enumerate(self.reels):
            reel.state.direction = 1 if row % 2 == 0 else -1
            velocity = self._rng.uniform(self.spin_velocity_min, self.spin_velocity_max)
            reel.start_free_spin(velocity)

    def begin_deceleration(self, duration_ms: float) -> None:
        now = self.now_ms()
        for reel in self.reels:
            reel.begin_deceleration(duration_ms, now)

    async def stop_with_deceleration(self, duration_ms: float) -> bool:
        """Decelerate every reel and wait until all are frozen.

        Returns:
            True when all reels stopped, False if the wait was cancelled
        """
        self.begin_deceleration(duration_ms)
        return await self._wait_until(lambda: self.all_frozen)

    async def spin_for(self, duration_ms: float) -> bool:
        """Spin, then snap and freeze once duration_ms of engine time has passed."""
        self.start_continuous_spin()
        start = self.now_ms()
        finished = await self._wait_until(lambda: self.now_ms() - start >= duration_ms)
        if finished:
            self.snap_to_grid()
            self.freeze()
            logger.info("Reels stopped on grid")
        return finished

    def snap_to_grid(self) -> None:
        """Align every reel so a card edge sits on the left margin."""
        for reel in self.reels:
            reel.snap_to_grid(self.layout.left_margin)

    def freeze(self) -> None:
        for reel in self.reels:
            reel.freeze()

    def unfreeze(self) -> None:
        """Resume idle drift."""
        for reel in self.reels:
            reel.unfreeze(self.idle_velocity)

    @property
    def all_frozen(self) -> bool:
        return all(reel.frozen for reel in self.reels)

    # Grid queries
    def grid_position(self, row: int, col: int) -> GridCell:
        return self.layout.grid_cell(row, col)

    def get_visible_cards(self) -> List[VisibleCard]:
        """Cards fully visible in the grid, row by row, columns left to right.

        The first column holds the strip item whose left edge sits on the left
        margin; following columns continue through the catalog modulo its
        length, so catalogs shorter than the grid repeat ids across columns.

        Raises:
            NotAligned: If any reel is not snapped to the grid
        """
        layout = self.layout
        n = len(self.catalog)
        columns = layout.visible_columns
        tolerance = ALIGN_TOLERANCE * max(1.0, layout.pitch)

        cards: List[VisibleCard] = []
        for row, reel in enumerate(self.reels):
            if not reel.is_aligned(layout.left_margin, tolerance):
                raise NotAligned(row, 0, columns)

            start = math.floor((reel.position + layout.left_margin) / layout.pitch + 0.5)
            for col in range(columns):
                catalog_index = (start + col) % n
                item = self.catalog[catalog_index]
                cards.append(VisibleCard(
                    row=row,
                    col=col,
                    catalog_index=catalog_index,
                    item_id=item.id,
                    weight=item.weight,
                    grid_cell=layout.grid_cell(row, col),
                ))

        return cards

    # Presentation markers
    def highlight_card(self, row: int, col: int) -> None:
        self._check_cell(row, col)
        self.highlighted = (row, col)

    def clear_highlight(self) -> None:
        self.highlighted = None

    def hide_card(self, row: int, col: int) -> None:
        """Mark a cell empty (its card was picked up)."""
        self._check_cell(row, col)
        self.hidden.add((row, col))

    def reset_hidden_cards(self) -> None:
        self.hidden.clear()

    def _check_cell(self, row: int, col: int) -> None:
        if not (0 <= row < len(self.reels) and 0 <= col < self.layout.visible_columns):
            raise IndexError(f"Grid cell out of range: ({row}, {col})")

    # Projections
    def positions(self) -> np.ndarray:
        return np.array([reel.position for reel in self.reels], dtype=float)

    def translations(self) -> np.ndarray:
        """Rendered strip translation per reel."""
        return -self.positions()

    def velocities(self) -> np.ndarray:
        return np.array([reel.velocity for reel in self.reels], dtype=float)

    # Frame update
    def tick(self, now_ms: float) -> None:
        self._now_ms = now_ms
        for reel in self.reels:
            reel.tick(now_ms)

        if self._waiters:
            pending: List[Waiter] = []
            for condition, future in self._waiters:
                if future.done():
                    continue
                if condition():
                    future.set_result(True)
                else:
                    pending.append((condition, future))
            self._waiters = pending

    def cancel_waits(self) -> None:
        """Resolve outstanding waits with False."""
        for _, future in self._waiters:
            if not future.done():
                future.set_result(False)
        self._waiters = []

    async def _wait_until(self, condition: Callable[[], bool]) -> bool:
        if condition():
            return True
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((condition, future))
        return await future
