"""Target selection in the endlessly repeated catalog.

Picks the logical index the reel should stop on: the earliest occurrence of
the allocated item that is at least min_laps full catalog cycles ahead of the
item currently under the center line.
"""

import logging
import math

from prizereel.catalog.catalog import Catalog
from prizereel.core.errors import InvalidTarget

logger = logging.getLogger(__name__)

# The target recurs every len(catalog) steps, so one scan past min_index is
# always enough; the extra room only guards against a bad catalog.
SCAN_CYCLES = 3


def min_target_index(catalog_length: int, from_index: int, min_laps: float) -> int:
    """Smallest index that satisfies the minimum-lap requirement."""
    return from_index + math.ceil(min_laps * catalog_length)


def closed_form_target(target_base_index: int, min_index: int, catalog_length: int) -> int:
    """Next occurrence of the catalog position target_base_index at or after min_index."""
    cycles = math.ceil((min_index - target_base_index) / catalog_length)
    return target_base_index + cycles * catalog_length


def select_target(catalog: Catalog, target_item_id: str, from_index: int, min_laps: float) -> int:
    """Choose the logical index to stop on.

    Args:
        catalog: Catalog the reel repeats
        target_item_id: Allocated item id
        from_index: Logical index currently under the center line
        min_laps: Minimum full cycles to travel first (may be fractional)

    Returns:
        Smallest index >= from_index + ceil(min_laps * N) holding the target

    Raises:
        InvalidTarget: If the target id is not in the catalog
        ValueError: If min_laps is negative
    """
    if min_laps < 0:
        raise ValueError(f"min_laps must be >= 0, got {min_laps}")

    target_base_index = catalog.index_of(target_item_id)
    if target_base_index < 0:
        raise InvalidTarget(target_item_id)

    length = len(catalog)
    min_index = min_target_index(length, from_index, min_laps)

    candidate = min_index
    for _ in range(length * SCAN_CYCLES):
        if catalog.item_at(candidate).id == target_item_id:
            logger.debug(
                f"Target {target_item_id} at index {candidate} "
                f"(from {from_index}, min {min_index})"
            )
            return candidate
        candidate += 1

    # Unreachable for a well-formed catalog
    logger.warning(f"Target scan exhausted for {target_item_id}, using closed form")
    return closed_form_target(target_base_index, min_index, length)
