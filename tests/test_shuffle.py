from __future__ import annotations

import random
from collections import Counter

from quizdeck.quiz.shuffle import shuffle, shuffled_copy


class _RecordingRandom:
    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    def randint(self, low: int, high: int) -> int:
        self.calls.append((low, high))
        return low


def test_shuffle_is_a_permutation():
    items = list(range(20))
    result = shuffle(items, random.Random(3))
    assert result is items
    assert sorted(items) == list(range(20))


def test_shuffle_handles_trivial_sequences():
    assert shuffle([]) == []
    assert shuffle(["only"]) == ["only"]


def test_shuffle_draws_from_zero_to_i_descending():
    rng = _RecordingRandom()
    items = ["a", "b", "c", "d"]
    shuffle(items, rng)
    assert rng.calls == [(0, 3), (0, 2), (0, 1)]
    # j == 0 every time: each element is swapped with the head in turn
    assert items == ["b", "c", "d", "a"]


def test_shuffled_copy_leaves_input_untouched():
    original = [1, 2, 3, 4, 5]
    result = shuffled_copy(original, random.Random(7))
    assert original == [1, 2, 3, 4, 5]
    assert sorted(result) == original
    assert result is not original


def test_seeded_shuffle_is_reproducible():
    first = shuffled_copy(range(10), random.Random(42))
    second = shuffled_copy(range(10), random.Random(42))
    assert first == second


def test_every_permutation_is_reachable_and_roughly_uniform():
    rng = random.Random(1234)
    counts = Counter(tuple(shuffled_copy("abc", rng)) for _ in range(6000))
    assert len(counts) == 6
    for count in counts.values():
        assert 800 < count < 1200
