"""Reel geometry: logical item index <-> physical scroll offset.

Strip space is the endless line of items laid end to end. A scroll offset is
how far the strip has moved left, so the rendered translation is its negation.
The reference (center) line sits at half the viewport width.

    offset_for_index(i)   = i * w + w / 2 - center_line
    index_for_offset(o)   = floor((o + center_line) / w)
    index_for_translation(x) = floor((center_line - x) / w),  x = -offset

Example (viewport 400, item 140):
    offset_for_index(24) = 3430 - 200 = 3230
    index_for_translation(-200) = floor(400 / 140) = 2
"""

from dataclasses import dataclass
import math

# Heuristic deceleration speed in pixels per millisecond (200 px/s)
DECEL_PIXELS_PER_MS = 200 / 1000


def center_line(viewport_width: float) -> float:
    """Reference line position in viewport space."""
    return viewport_width / 2


def center_offset(index: int, item_width: float) -> float:
    """Center of the item at index, in strip space."""
    return index * item_width + item_width / 2


def offset_for_index(index: int, viewport_width: float, item_width: float) -> float:
    """Scroll offset that puts item index's center on the center line."""
    return center_offset(index, item_width) - center_line(viewport_width)


def index_for_offset(offset: float, viewport_width: float, item_width: float) -> int:
    """Logical index of the item under the center line at a scroll offset.

    Exact inverse of offset_for_index. Offsets on an item boundary belong to
    the item to the right.
    """
    return math.floor((offset + center_line(viewport_width)) / item_width)


def translation_for_index(index: int, viewport_width: float, item_width: float) -> float:
    """Rendered strip translation that centers item index."""
    return -offset_for_index(index, viewport_width, item_width)


def index_for_translation(translate_x: float, viewport_width: float, item_width: float) -> int:
    """Logical index under the center line for a rendered strip translation."""
    return math.floor((center_line(viewport_width) - translate_x) / item_width)


def deceleration_distance(current: float, target: float) -> float:
    """Absolute pixel distance left to travel."""
    return abs(target - current)


def estimate_decel_ms(distance: float, base_decel_ms: float, max_decel_ms: float | None = None) -> float:
    """Estimate deceleration duration from remaining distance.

    Longer distances take proportionally longer, capped at max_decel_ms
    (default 1.5x the base duration).
    """
    if max_decel_ms is None:
        max_decel_ms = base_decel_ms * 1.5
    return min(distance / DECEL_PIXELS_PER_MS, max_decel_ms)


@dataclass(frozen=True)
class GridCell:
    """Pixel center of a visible grid cell."""
    row: int
    col: int
    x: float
    y: float


@dataclass(frozen=True)
class ReelLayout:
    """Layout parameters shared by every reel of a grid.

    Attributes:
        card_size: Square card edge in pixels
        gap: Horizontal gap between cards
        item_count: Catalog length
        container_width: Visible container width
        container_height: Visible container height
        visible_columns: Columns that must be fully visible after a snap
        row_count: Number of reels stacked vertically
        row_gap: Vertical gap between reels
    """

    card_size: float
    gap: float
    item_count: int
    container_width: float
    container_height: float = 600.0
    visible_columns: int = 5
    row_count: int = 3
    row_gap: float = 12.0

    def __post_init__(self) -> None:
        if self.item_count < 1:
            raise ValueError("Layout needs at least one item")
        if self.card_size + self.gap <= 0:
            raise ValueError("Card pitch must be positive")

    @classmethod
    def from_container(
        cls,
        container_width: float,
        container_height: float,
        item_count: int,
        row_count: int = 3,
        visible_columns: int = 5,
        gap: float = 16.0,
        row_gap: float = 12.0,
        card_scale: float = 0.85,
    ) -> "ReelLayout":
        """Derive the card size from the container height (recompute on resize)."""
        row_height = (container_height - (row_count - 1) * row_gap) / row_count
        return cls(
            card_size=row_height * card_scale,
            gap=gap,
            item_count=item_count,
            container_width=container_width,
            container_height=container_height,
            visible_columns=visible_columns,
            row_count=row_count,
            row_gap=row_gap,
        )

    @property
    def pitch(self) -> float:
        """Distance between consecutive card origins (card + gap)."""
        return self.card_size + self.gap

    @property
    def total_width(self) -> float:
        """Strip length of one catalog cycle. Wrapping by this never splits a card."""
        return self.pitch * self.item_count

    @property
    def left_margin(self) -> float:
        """Left edge of the first visible column, centering the visible block."""
        block_width = self.visible_columns * self.pitch - self.gap
        return (self.container_width - block_width) / 2

    @property
    def row_height(self) -> float:
        return (self.container_height - (self.row_count - 1) * self.row_gap) / self.row_count

    @property
    def top_margin(self) -> float:
        used = self.row_height * self.row_count + self.row_gap * (self.row_count - 1)
        return (self.container_height - used) / 2

    def grid_cell(self, row: int, col: int) -> GridCell:
        """Pixel center of the card at (row, col)."""
        x = self.left_margin + col * self.pitch + self.card_size / 2
        y = self.top_margin + row * (self.row_height + self.row_gap) + self.row_height / 2
        return GridCell(row=row, col=col, x=x, y=y)
