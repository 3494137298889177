import random

import pytest

from namecraft.app.services.variety_optimizer import (
    VarietyOptimizer,
    has_unique_pattern,
    smart_multiplier,
    variety_score,
)
from namecraft.core.models import GenerationRequest, GenerationResult
from namecraft.core.word_filter import WordFilter


class BrokenFilter:
    def is_accepted(self, name):
        raise RuntimeError("filter offline")


def make_optimizer(clock):
    word_filter = WordFilter(rng=random.Random(1), time_fn=clock)
    return VarietyOptimizer(word_filter, time_fn=clock), word_filter


@pytest.mark.parametrize(
    "requested, available, expected",
    [(4, 4, 1), (4, 9, 1), (4, 3, 2), (10, 2, 5), (4, 0, 5)],
)
def test_smart_multiplier(requested, available, expected):
    assert smart_multiplier(requested, available) == expected
    assert VarietyOptimizer.smart_multiplier(requested, available) == expected


def test_variety_score_bonuses():
    request = GenerationRequest(genre="rock", mood="energetic")

    assert variety_score(GenerationResult("Stormfire"), request) == pytest.approx(2.2)
    assert variety_score(GenerationResult("Echo", source="static"), GenerationRequest()) == pytest.approx(1.7)


def test_unique_pattern_detection():
    assert has_unique_pattern("Silver Stone Shadows")
    assert has_unique_pattern("Thunder")
    assert not has_unique_pattern("Red Sun")


def test_optimize_dedupes_and_caps_to_count(clock):
    optimizer, word_filter = make_optimizer(clock)
    generation = word_filter.start_new_generation()
    candidates = [
        GenerationResult("Iron Meadow"),
        GenerationResult("iron meadow"),
        GenerationResult("Velvet Comet"),
        GenerationResult("Cobalt Harbor"),
    ]

    chosen = optimizer.optimize(candidates, GenerationRequest(count=2), generation)

    assert len(chosen) == 2
    assert len({result.name.lower() for result in chosen}) == 2


def test_optimize_drops_names_repeating_recent_words(clock):
    optimizer, word_filter = make_optimizer(clock)
    generation = word_filter.start_new_generation()

    chosen = optimizer.optimize(
        [GenerationResult("Crimson Harbor"), GenerationResult("Crimson Tide")],
        GenerationRequest(count=2),
        generation,
    )

    assert [result.name for result in chosen] == ["Crimson Harbor"]


def test_optimize_limits_any_single_source(clock):
    optimizer, word_filter = make_optimizer(clock)
    generation = word_filter.start_new_generation()
    candidates = [
        GenerationResult("Iron Meadow"),
        GenerationResult("Velvet Comet"),
        GenerationResult("Cobalt Harbor"),
        GenerationResult("Silent Prairie"),
        GenerationResult("Golden Lantern", source="ai"),
    ]

    chosen = optimizer.optimize(candidates, GenerationRequest(count=5), generation)

    assert len(chosen) == 4
    assert sum(result.source == "pattern" for result in chosen) == 3
    assert any(result.source == "ai" for result in chosen)


def test_optimize_failure_returns_input_unchanged(clock):
    optimizer = VarietyOptimizer(BrokenFilter(), time_fn=clock)
    candidates = [GenerationResult("Iron Meadow"), GenerationResult("iron meadow")]

    assert optimizer.optimize(candidates, GenerationRequest(count=1), "gen_1_0") == candidates


def test_usage_metrics_expire_and_clear(clock):
    optimizer, word_filter = make_optimizer(clock)
    optimizer.optimize(
        [GenerationResult("Iron Meadow"), GenerationResult("Velvet Comet")],
        GenerationRequest(count=2),
        word_filter.start_new_generation(),
    )
    assert optimizer.stats()["variety_metrics_size"] == 2

    clock.advance(60 * 60 + 1)
    stats = optimizer.stats()
    assert stats["variety_metrics_size"] == 0
    assert stats["total_metrics_size"] == 2

    optimizer.clear_metrics()
    assert optimizer.stats()["total_metrics_size"] == 0
