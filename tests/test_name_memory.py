import random

from namecraft.core.name_memory import GlobalNameMemory, NameMemoryConfig, name_shape


def make_memory(clock, seed=3, config=None):
    return GlobalNameMemory(config, rng=random.Random(seed), time_fn=clock)


def test_unknown_names_are_never_rejected(clock):
    memory = make_memory(clock)
    assert not memory.should_reject_globally("Iron Meadow", "rock", "band")


def test_same_genre_repeat_rejected_within_the_hour(clock):
    memory = make_memory(clock)
    memory.add_name("Iron Meadow", "rock", "band", 80)

    clock.advance(59 * 60)
    assert memory.should_reject_globally("iron  meadow", "Rock", "band")

    clock.advance(2 * 60)
    assert not memory.should_reject_globally("Iron Meadow", "rock", "band")


def test_memory_is_keyed_by_content_type(clock):
    memory = make_memory(clock)
    memory.add_name("Paper Moon", "pop", "song")

    assert not memory.should_reject_globally("Paper Moon", "pop", "band")
    assert memory.should_reject_globally("Paper Moon", "pop", "song")


def test_hip_hop_spellings_share_a_genre(clock):
    memory = make_memory(clock)
    memory.add_name("Concrete Crown", "hiphop", "band")

    assert memory.should_reject_globally("Concrete Crown", "hip-hop", "band")


def test_related_genre_rejection_rate(clock):
    memory = make_memory(clock)
    memory.add_name("Iron Meadow", "rock", "band")
    clock.advance(2 * 60 * 60)

    assert memory.is_related_genre("rock", "metal")
    rejected = sum(memory.should_reject_globally("Iron Meadow", "metal", "band") for _ in range(2000))
    assert 480 < rejected < 720


def test_unrelated_genre_rejection_rate_and_expiry(clock):
    memory = make_memory(clock)
    memory.add_name("Iron Meadow", "rock", "band")
    clock.advance(2 * 60 * 60)

    rejected = sum(memory.should_reject_globally("Iron Meadow", "classical", "band") for _ in range(2000))
    assert 120 < rejected < 280

    clock.advance(23 * 60 * 60)
    assert not any(memory.should_reject_globally("Iron Meadow", "classical", "band") for _ in range(200))


def test_capacity_trims_oldest_records(clock):
    memory = make_memory(clock, config=NameMemoryConfig(capacity=10, trim_ratio=0.5))
    for index in range(11):
        clock.advance(1)
        memory.add_name(f"Name {index}", "rock", "band")

    assert memory.stats()["total_names"] == 5
    assert memory.recent_names(limit=1) == ["name 10"]


def test_stats_and_quality_summaries(clock):
    memory = make_memory(clock)
    memory.add_name("Iron Meadow", "rock", "band", 90)
    memory.add_name("Velvet Comet", "rock", "band", 70)
    memory.add_name("Solo", "jazz", "band")
    clock.advance(10 * 60)

    stats = memory.stats()
    assert stats["total_names"] == 3
    assert stats["oldest_age_minutes"] == 10
    assert stats["average_quality"] == round((90 + 70 + 75) / 3)

    rock = memory.genre_quality_stats("rock")
    assert rock == {"average_quality": 80, "high_quality_count": 1, "recent_count": 2}
    assert memory.common_patterns()[0] == "two_words"
    assert "meadow" in memory.recent_words()


def test_purge_and_reset(clock):
    memory = make_memory(clock)
    memory.add_name("Iron Meadow", "rock", "band")
    clock.advance(25 * 60 * 60)
    memory.add_name("Velvet Comet", "rock", "band")

    assert memory.purge_expired() == 1
    memory.reset()
    assert memory.stats() == {"total_names": 0, "oldest_age_minutes": 0, "average_quality": 0}


def test_name_shape():
    assert name_shape("Stormglass") == "single_word"
    assert name_shape("Velvet Comet") == "two_words"
    assert name_shape("The Quiet Voltage") == "multi_word"
