"""Weighted random draw over a candidate list."""

from typing import Any, Sequence, TypeVar
import logging
import random

from prizereel.core.errors import EmptyWeightPool

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _weight_of(candidate: Any) -> float:
    if isinstance(candidate, tuple):
        return float(candidate[1])
    return float(candidate.weight)


def _id_of(candidate: Any) -> Any:
    if isinstance(candidate, tuple):
        return candidate[0]
    return candidate.id


class WeightedPicker:
    """Draws candidates with probability proportional to weight.

    Candidates are (id, weight) tuples or objects with id and weight
    attributes. Order is significant: given the same random source and order
    the draw is reproducible. Zero-weight candidates stay in the list (they can
    be shown) but can never win.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def pick(self, candidates: Sequence[Any]) -> Any:
        """Draw one candidate and return its id."""
        return _id_of(self.pick_entry(candidates))

    def pick_entry(self, candidates: Sequence[T]) -> T:
        """Draw one candidate and return it as given.

        Raises:
            EmptyWeightPool: If the total weight is not positive
            ValueError: If any weight is negative
        """
        weights = [_weight_of(c) for c in candidates]
        for candidate, weight in zip(candidates, weights):
            if weight < 0:
                raise ValueError(f"Negative weight for candidate {_id_of(candidate)!r}")

        total_weight = sum(weights)
        if total_weight <= 0:
            raise EmptyWeightPool(len(candidates))

        r = self._rng.random() * total_weight
        for candidate, weight in zip(candidates, weights):
            if weight <= 0:
                continue
            r -= weight
            if r <= 0:
                return candidate

        # Float rounding can leave a sliver; the last drawable candidate owns it
        return next(c for c, w in zip(reversed(candidates), reversed(weights)) if w > 0)
