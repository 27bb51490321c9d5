"""Tests for the deterministic RNG and the RandomSource helpers."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.core.enums import Domain
from horde.systems.rng import DeterministicRNG, key_to_int
from tests.helpers.world import FixedRandom


class TestDeterministicRNG:
    def test_same_inputs_same_value(self):
        a, b = DeterministicRNG(42), DeterministicRNG(42)
        assert a.next_float(Domain.DECISION, 7, 3) == b.next_float(Domain.DECISION, 7, 3)

    def test_domains_are_separated(self):
        rng = DeterministicRNG(42)
        values = {rng.next_float(d, 7, 3) for d in Domain}
        assert len(values) == len(Domain)

    def test_range(self):
        rng = DeterministicRNG(1)
        for counter in range(200):
            v = rng.next_float(Domain.DECISION, 1, 0, counter)
            assert 0.0 <= v < 1.0
            n = rng.next_int(Domain.DECISION, 1, 0, -2, 2, counter)
            assert -2 <= n <= 2

    def test_stream_matches_counters(self):
        rng = DeterministicRNG(3)
        stream = rng.stream(Domain.DECISION, "monster_group_1", 5)
        key = key_to_int("monster_group_1")
        expected = [rng.next_float(Domain.DECISION, key, 5, c) for c in range(3)]
        assert [stream.next() for _ in range(3)] == expected

    def test_key_to_int(self):
        assert key_to_int(12) == 12
        assert key_to_int("g1") == key_to_int("g1")
        assert key_to_int("g1") != key_to_int("g2")
        assert -(1 << 63) <= key_to_int("g1") < (1 << 63)


class TestRandomSourceHelpers:
    def test_chance(self):
        assert FixedRandom(0.2).chance(0.3)
        assert not FixedRandom(0.3).chance(0.3)

    def test_randint_bounds(self):
        assert FixedRandom(0.0).randint(1, 3) == 1
        assert FixedRandom(0.5).randint(1, 3) == 2
        assert FixedRandom(0.9999).randint(1, 3) == 3

    def test_choice(self):
        assert FixedRandom(0.6).choice(["a", "b", "c"]) == "b"

    def test_shuffled_keeps_items(self):
        items = [1, 2, 3, 4, 5]
        shuffled = FixedRandom(fallback=0.4).shuffled(items)
        assert sorted(shuffled) == items
        assert items == [1, 2, 3, 4, 5]

    def test_shuffled_zero_rotates(self):
        # j is always 0: each step swaps the tail element to the front
        assert FixedRandom(fallback=0.0).shuffled([1, 2, 3]) == [2, 3, 1]

    def test_weighted_index(self):
        assert FixedRandom(0.0).weighted_index([1.0, 1.0]) == 0
        assert FixedRandom(0.75).weighted_index([1.0, 1.0]) == 1
        assert FixedRandom(0.1).weighted_index([0.0, 2.0]) == 1
        assert FixedRandom(0.5).weighted_index([0.0, -1.0]) is None
