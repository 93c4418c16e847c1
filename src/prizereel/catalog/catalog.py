"""Catalog: the ordered item sequence repeated endlessly along a reel."""

from pathlib import Path
from typing import Iterator, Sequence
import json
import logging

from prizereel.catalog.models import Item

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "prizes.json"


class Catalog:
    """Fixed-length, insertion-ordered item sequence.

    Logical indices are unbounded: index i addresses items[i mod N] with floored
    modulo, so negative indices work and item_at(i) == item_at(i + k*N).
    """

    def __init__(self, items: Sequence[Item]):
        if not items:
            raise ValueError("Catalog must contain at least one item")

        self._items: tuple[Item, ...] = tuple(items)
        self._positions: dict[str, int] = {}
        for index, item in enumerate(self._items):
            if item.id in self._positions:
                raise ValueError(f"Duplicate item id in catalog: {item.id!r}")
            self._positions[item.id] = index

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Item:
        return self._items[index]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._positions

    @property
    def items(self) -> tuple[Item, ...]:
        return self._items

    def item_at(self, logical_index: int) -> Item:
        """Item at an unbounded logical index (floored modulo)."""
        return self._items[logical_index % len(self._items)]

    def index_of(self, item_id: str) -> int:
        """Catalog position of an item id, or -1 if absent."""
        return self._positions.get(item_id, -1)

    def get(self, item_id: str) -> Item | None:
        index = self._positions.get(item_id)
        return self._items[index] if index is not None else None

    def weights(self) -> list[float]:
        return [item.weight for item in self._items]

    @property
    def total_weight(self) -> float:
        return sum(item.weight for item in self._items)


def load_catalog(path: Path | str | None = None) -> Catalog:
    """Load a catalog from a JSON list of item records.

    Args:
        path: JSON file path; defaults to the bundled prize fixture

    Returns:
        The loaded Catalog
    """
    path = Path(path) if path else DEFAULT_CATALOG_PATH
    with open(path, encoding="utf-8") as f:
        records = json.load(f)

    catalog = Catalog([Item.from_dict(record) for record in records])
    logger.info(f"Loaded catalog: {len(catalog)} items from {path.name}")
    return catalog
