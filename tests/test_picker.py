"""Weighted picker tests."""
import random
from collections import Counter

import pytest

from prizereel.core.errors import EmptyWeightPool
from prizereel.reel.picker import WeightedPicker


class FixedRNG:
    """Random source returning a fixed value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestWeightedPicker:
    """Weighted draw semantics."""

    def test_boundary_one_zero_always_first(self):
        picker = WeightedPicker(random.Random(3))
        for _ in range(1000):
            assert picker.pick([("a", 1), ("b", 0)]) == "a"

    def test_zero_weight_never_wins_even_at_draw_zero(self):
        picker = WeightedPicker(FixedRNG(0.0))
        assert picker.pick([("zero", 0), ("one", 1)]) == "one"

    def test_draw_walks_cumulative_weights(self):
        candidates = [("a", 1), ("b", 2), ("c", 1)]
        # r = u * 4; a covers (0, 1], b (1, 3], c (3, 4)
        assert WeightedPicker(FixedRNG(0.2)).pick(candidates) == "a"
        assert WeightedPicker(FixedRNG(0.25)).pick(candidates) == "a"
        assert WeightedPicker(FixedRNG(0.5)).pick(candidates) == "b"
        assert WeightedPicker(FixedRNG(0.9)).pick(candidates) == "c"

    def test_accepts_objects_with_id_and_weight(self, small_catalog):
        picker = WeightedPicker(FixedRNG(0.99))
        entry = picker.pick_entry(list(small_catalog))
        assert entry.id == "d"

    def test_empty_pool_raises(self):
        picker = WeightedPicker(random.Random(1))
        with pytest.raises(EmptyWeightPool):
            picker.pick([])
        with pytest.raises(EmptyWeightPool) as exc:
            picker.pick([("a", 0), ("b", 0)])
        assert exc.value.candidate_count == 2

    def test_negative_weight_rejected(self):
        picker = WeightedPicker(random.Random(1))
        with pytest.raises(ValueError):
            picker.pick([("a", 1), ("b", -1)])

    def test_same_seed_same_sequence(self):
        candidates = [("a", 5), ("b", 3), ("c", 2)]
        first = WeightedPicker(random.Random(99))
        second = WeightedPicker(random.Random(99))
        assert [first.pick(candidates) for _ in range(50)] == [
            second.pick(candidates) for _ in range(50)
        ]

    @pytest.mark.slow
    def test_distribution_converges(self):
        candidates = [("a", 5), ("b", 3), ("c", 2), ("never", 0)]
        picker = WeightedPicker(random.Random(2024))
        draws = 100_000
        counts = Counter(picker.pick(candidates) for _ in range(draws))

        assert counts["never"] == 0
        for item_id, weight in candidates[:3]:
            assert counts[item_id] / draws == pytest.approx(weight / 10, abs=0.01)
