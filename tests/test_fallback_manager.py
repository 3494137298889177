import pytest

from conftest import StubAdapter, failing_adapter
from namecraft.app.services.fallback_manager import (
    EMERGENCY_SOURCE,
    EmergencyCache,
    FallbackManager,
    FallbackStrategy,
    _Success,
    fuse_results,
)
from namecraft.core.errors import AllSourcesExhausted, ProviderError, ProviderTimeout
from namecraft.core.models import FusedResult, NormalizedArtist, NormalizedTrack, NormalizedVocabulary
from namecraft.core.normalizer import source_trust_bonus

CONCEPTNET_DATA = {
    "edges": [
        {"end": {"label": "ember"}, "rel": {"label": "RelatedTo"}, "weight": 2.0},
        {"end": {"label": "granite"}, "rel": {"label": "HasProperty"}, "weight": 1.5},
    ]
}
POETRY_DATA = [{"title": "Hearth", "lines": ["Ember glows beneath the ash"]}]


def test_sources_follow_strategy_order_and_hint(clock, datamuse_words):
    manager = FallbackManager(
        [StubAdapter("poetrydb", POETRY_DATA), StubAdapter("datamuse", datamuse_words), StubAdapter("conceptnet")],
        time_fn=clock,
    )

    assert manager.order_sources("vocabulary") == ["datamuse", "conceptnet", "poetrydb"]
    assert manager.order_sources("vocabulary", "poetrydb") == ["poetrydb", "datamuse", "conceptnet"]
    assert manager.order_sources("vocabulary", "spotify") == ["datamuse", "conceptnet", "poetrydb"]
    assert manager.order_sources("lyrics") == ["poetrydb", "conceptnet"]


@pytest.mark.asyncio
async def test_failed_source_drops_behind_healthy_ones(clock):
    manager = FallbackManager(
        [failing_adapter("datamuse"), StubAdapter("conceptnet", CONCEPTNET_DATA)],
        time_fn=clock,
    )

    result = await manager.resolve("vocabulary", "fire")

    assert result.fallback_chain == ["datamuse", "conceptnet"]
    assert result.failed_sources == ["datamuse"]
    assert result.successful_sources == ["conceptnet"]
    assert manager.order_sources("vocabulary")[0] == "conceptnet"

    health = manager.get_provider_health()
    assert health["datamuse"]["success_rate"] == pytest.approx(40.0)
    assert health["conceptnet"]["success_rate"] == pytest.approx(55.0)
    assert health["datamuse"]["status"] == "degraded"


@pytest.mark.asyncio
async def test_timeouts_are_retried(clock, datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words, outcomes=[ProviderTimeout("datamuse", 5.0)])
    manager = FallbackManager([datamuse], time_fn=clock)

    result = await manager.resolve("vocabulary", "rock")

    assert len(datamuse.calls) == 2
    assert result.successful_sources == ["datamuse"]
    assert result.failed_sources == []


@pytest.mark.asyncio
async def test_retries_stop_at_strategy_limit(clock):
    datamuse = StubAdapter("datamuse", error=ProviderTimeout("datamuse", 5.0))
    manager = FallbackManager([datamuse], time_fn=clock)

    with pytest.raises(AllSourcesExhausted):
        await manager.resolve("vocabulary", "rock")

    assert len(datamuse.calls) == manager.strategy("vocabulary").retries


@pytest.mark.asyncio
async def test_provider_errors_move_to_next_source_without_retry(clock, datamuse_words):
    broken = failing_adapter("datamuse")
    backup = StubAdapter("conceptnet", CONCEPTNET_DATA)
    manager = FallbackManager([broken, backup], time_fn=clock)

    await manager.resolve("vocabulary", "rock")

    assert len(broken.calls) == 1
    assert len(backup.calls) == 1
    assert broken.calls[0][1]["domain"] == "vocabulary"


@pytest.mark.asyncio
async def test_first_confident_source_wins_without_fusion(clock, datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words)
    conceptnet = StubAdapter("conceptnet", CONCEPTNET_DATA)
    manager = FallbackManager([datamuse, conceptnet], time_fn=clock)

    result = await manager.resolve("vocabulary", "rock")

    assert conceptnet.calls == []
    assert result.fusion_used == "best_quality"
    assert result.confidence >= manager.strategy("vocabulary").min_confidence
    assert result.source_trust_bonus == 10
    assert not result.emergency_mode


@pytest.mark.asyncio
async def test_emergency_cache_serves_degraded_copy_until_expiry(clock, datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words)
    manager = FallbackManager([datamuse], time_fn=clock)
    fresh = await manager.resolve("vocabulary", "Rock")

    datamuse.error = ProviderError("datamuse", "HTTP 503", status=503)
    cached = await manager.resolve("vocabulary", "rock")

    assert cached.emergency_mode
    assert cached.confidence == pytest.approx(fresh.confidence * 0.8)
    assert cached.quality == pytest.approx(fresh.quality * 0.8)
    assert cached.fallback_chain == ["datamuse", EMERGENCY_SOURCE]
    assert cached.failed_sources == ["datamuse"]
    assert cached.successful_sources == []
    assert cached.data == fresh.data

    clock.advance(4 * 60 * 60 + 1)
    with pytest.raises(AllSourcesExhausted) as excinfo:
        await manager.resolve("vocabulary", "rock")
    assert excinfo.value.failed_sources == ("datamuse",)


@pytest.mark.asyncio
async def test_no_adapters_exhausts_immediately(clock):
    manager = FallbackManager(time_fn=clock)

    with pytest.raises(AllSourcesExhausted) as excinfo:
        await manager.resolve("vocabulary", "rock")

    assert excinfo.value.failed_sources == ()
    assert manager.get_fallback_stats()["vocabulary"]["failures"] == 1


@pytest.mark.asyncio
async def test_fusion_stops_after_three_sources_and_merges_vocabulary(clock, datamuse_words):
    llm = StubAdapter("llm", {"words": ["ember", "cinder"]})
    manager = FallbackManager(
        [
            StubAdapter("datamuse", datamuse_words),
            StubAdapter("conceptnet", CONCEPTNET_DATA),
            StubAdapter("poetrydb", POETRY_DATA),
            llm,
        ],
        time_fn=clock,
    )

    result = await manager.resolve("vocabulary", "fire", fusion=True)

    assert llm.calls == []
    assert result.fusion_used == "consensus"
    assert result.successful_sources == ["datamuse", "conceptnet", "poetrydb"]
    merged = result.primary
    assert isinstance(merged, NormalizedVocabulary)
    assert merged.source == "fused"
    assert merged.words[0].word == "ember"
    assert "relatedto" in merged.concepts
    assert merged.lines == ("Ember glows beneath the ash",)


@pytest.mark.asyncio
async def test_fused_confidence_never_exceeds_best_input(clock, datamuse_words):
    sources = [StubAdapter("datamuse", datamuse_words), StubAdapter("conceptnet", CONCEPTNET_DATA)]
    manager = FallbackManager(sources, time_fn=clock)
    singles = []
    for adapter in sources:
        single = await manager.resolve("vocabulary", "fire", adapter.name)
        singles.append(single.confidence)

    fused = await manager.resolve("vocabulary", "fire", fusion=True)

    assert fused.confidence <= max(singles)


def test_fuse_results_requires_input():
    with pytest.raises(ValueError):
        fuse_results("consensus", [])


def test_strategy_lookup_and_timeout_clamp(clock):
    manager = FallbackManager(time_fn=clock)

    with pytest.raises(ValueError):
        manager.strategy("podcast")
    assert FallbackStrategy("x", (), 50, 1, 1000).call_timeout == 5.0
    assert FallbackStrategy("x", (), 50, 1, 30000).call_timeout == 15.0

    manager.set_strategy(FallbackStrategy("podcast", ("llm",), 40, 1, 8000))
    assert manager.order_sources("podcast") == []


def test_emergency_cache_ttl_and_lru(clock):
    cache = EmergencyCache(ttl=10.0, max_entries=2, time_fn=clock)

    def result(query):
        return FusedResult(domain="vocabulary", query=query, data=[], confidence=80.0, quality=70.0)

    cache.put("a", result("a"))
    cache.put("b", result("b"))
    assert cache.get("a").query == "a"
    cache.put("c", result("c"))

    assert cache.get("b") is None
    assert len(cache) == 2

    clock.advance(11)
    assert cache.get("a") is None
    assert cache.sweep() == 1
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_stats_reset_and_lifecycle(clock, datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words)
    manager = FallbackManager([datamuse], time_fn=clock)

    async with manager:
        assert manager.running
        await manager.resolve("vocabulary", "rock")
        stats = manager.get_fallback_stats()["vocabulary"]
        assert stats["attempts"] == stats["successes"] == 1
        assert stats["avg_quality"] > 0

        manager.reset_stats()
        assert manager.get_fallback_stats() == {}
        assert manager.get_provider_health() == {}

    assert not manager.running
    assert datamuse.closed


@pytest.mark.asyncio
async def test_unexpected_adapter_exception_falls_through_to_next_source(clock, datamuse_words):
    broken = StubAdapter("conceptnet", error=RuntimeError("adapter bug"))
    datamuse = StubAdapter("datamuse", datamuse_words)
    manager = FallbackManager([broken, datamuse], time_fn=clock)

    result = await manager.resolve("vocabulary", "rock", "conceptnet")

    assert result.fallback_chain == ["conceptnet", "datamuse"]
    assert result.failed_sources == ["conceptnet"]
    assert result.successful_sources == ["datamuse"]
    assert len(broken.calls) == 1
    assert manager.get_provider_health()["conceptnet"]["status"] == "degraded"


@pytest.mark.asyncio
async def test_unreadable_payload_shape_is_a_provider_failure(clock):
    manager = FallbackManager([StubAdapter("conceptnet", {"edges": "not a list"})], time_fn=clock)

    with pytest.raises(AllSourcesExhausted):
        await manager.resolve("vocabulary", "rock")


@pytest.mark.asyncio
async def test_malformed_conceptnet_weight_still_resolves(clock):
    data = {"edges": [{"end": {"label": "thunder"}, "rel": {"label": "RelatedTo"}, "weight": "heavy"}]}
    manager = FallbackManager([StubAdapter("conceptnet", data)], time_fn=clock)

    result = await manager.resolve("vocabulary", "rock")

    assert result.successful_sources == ["conceptnet"]
    assert [word.word for word in result.vocabulary_words()] == ["thunder"]


def _artist(source, confidence, name="Granite Lanterns"):
    return NormalizedArtist(
        id=f"artist-{source}",
        name=name,
        normalized_name=name.lower().replace(" ", "-"),
        source=source,
        genres=("stoner-rock",),
        popularity=55.0,
        confidence=confidence,
    )


def _track(source, confidence, name="Voltage Cathedral"):
    return NormalizedTrack(
        id=f"track-{source}",
        name=name,
        normalized_name=name.lower().replace(" ", "-"),
        source=source,
        confidence=confidence,
        artists=("Granite Lanterns",),
    )


@pytest.mark.parametrize("method", ["weighted_average", "best_quality"])
@pytest.mark.parametrize("build", [_artist, _track])
def test_catalog_fusion_confidence_stays_bounded(method, build):
    successes = [
        _Success("spotify", build("spotify", 100.0), 96.0),
        _Success("lastfm", build("lastfm", 72.0), 81.0),
        _Success("musicbrainz", build("musicbrainz", 88.0, name="Other Name"), 90.0),
    ]

    data, confidence, quality = fuse_results(method, successes)

    best_input = max(success.entity.confidence for success in successes)
    bonus = max(source_trust_bonus(success.source) for success in successes)
    assert data
    assert confidence <= best_input + bonus
    assert confidence <= 100.0
    assert 0.0 <= quality <= 100.0


@pytest.mark.asyncio
async def test_fused_track_resolution_stays_bounded(clock):
    catalog = ("artist", "track", "genre")
    spotify = StubAdapter(
        "spotify",
        [{"name": "Voltage Cathedral", "artists": [{"name": "Granite Lanterns"}], "popularity": 60}],
        domains=catalog,
    )
    lastfm = StubAdapter("lastfm", {"name": "Voltage Cathedral", "listeners": "1200"}, domains=catalog)
    manager = FallbackManager([spotify, lastfm], time_fn=clock)

    result = await manager.resolve("track", "voltage cathedral", fusion=True)

    assert result.fusion_used == "weighted_average"
    assert result.successful_sources == ["spotify", "lastfm"]
    assert [entity.name for entity in result.data] == ["Voltage Cathedral"]
    assert result.confidence <= max(entity.confidence for entity in result.data) + result.source_trust_bonus
    assert result.confidence <= 100.0
