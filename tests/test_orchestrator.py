import pytest

from conftest import StubAdapter, build_orchestrator, failing_adapter
from namecraft.app.services.orchestrator import STATIC_CONTEXT, GenerationContext
from namecraft.core.errors import ValidationError
from namecraft.core.models import GenerationRequest
from namecraft.core.word_filter import significant_words
from namecraft.utils.telemetry import StructuredTelemetry


def assert_well_formed(response, count, word_count):
    names = response.names
    assert len(names) == count
    assert len({name.lower() for name in names}) == count
    for result in response.results:
        assert len(result.name.split()) == word_count
        assert result.phonetic is not None
        assert 0 <= result.phonetic.overall <= 100


@pytest.mark.asyncio
async def test_healthy_providers_feed_generation(datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words)
    orchestrator = build_orchestrator([datamuse])

    response = await orchestrator.generate(GenerationRequest(content_type="band", word_count=2, count=4, genre="rock"))

    assert_well_formed(response, 4, 2)
    assert not response.used_fallback
    assert "datamuse" in response.fallback_chain
    assert datamuse.calls[0][0] == "rock"
    assert response.generation_id.startswith("gen_1_")
    assert response.quality["context_confidence"] > 0


@pytest.mark.asyncio
async def test_provider_outage_falls_back_to_word_stores():
    orchestrator = build_orchestrator([failing_adapter("datamuse"), failing_adapter("conceptnet")])

    response = await orchestrator.generate({"type": "song", "wordCount": 3, "count": 5, "mood": "melancholic"})

    assert_well_formed(response, 5, 3)
    assert response.used_fallback
    assert STATIC_CONTEXT in response.fallback_chain
    for result in response.results:
        if result.source != "static":
            assert result.metadata["context"] == STATIC_CONTEXT


@pytest.mark.asyncio
async def test_no_adapters_still_returns_requested_count():
    orchestrator = build_orchestrator()

    response = await orchestrator.generate(GenerationRequest(word_count=1, count=6))

    assert_well_formed(response, 6, 1)
    assert response.used_fallback
    assert response.fallback_chain[0] == STATIC_CONTEXT


@pytest.mark.asyncio
async def test_open_word_count_stays_in_range(datamuse_words):
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words)])

    response = await orchestrator.generate(GenerationRequest(word_count="4+", count=4, genre="jazz"))

    assert len(response.results) == 4
    for result in response.results:
        assert 3 <= len(result.name.split()) <= 11


@pytest.mark.asyncio
async def test_static_fill_marks_degraded_results():
    orchestrator = build_orchestrator()

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=12))

    assert len(response.results) == 12
    static = [result for result in response.results if result.source == "static"]
    assert response.static_fill_count == len(static)
    assert response.degraded == bool(static)
    for result in static:
        assert not result.is_generated
        assert result.metadata["fallback"] is True


@pytest.mark.asyncio
async def test_stage_timings_are_recorded(datamuse_words):
    events = []
    telemetry = StructuredTelemetry(listeners=[lambda event, payload: events.append(event)])
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words)], telemetry=telemetry)

    response = await orchestrator.generate(GenerationRequest(count=3, genre="rock"))

    timings = response.telemetry["timings"]
    for stage in ("context", "filter", "patterns", "ranking", "variety"):
        assert stage in timings
    assert response.telemetry["counters"]["pattern_attempts"] > 0
    assert response.telemetry["metadata"]["generation_id"] == response.generation_id
    assert orchestrator.get_latest_telemetry()["name"] == "generation"
    assert events[0] == "trace_started"


@pytest.mark.asyncio
async def test_llm_names_seed_the_candidate_pool(datamuse_words):
    llm = StubAdapter("llm", {"names": ["Thunder", "Two Words"]})
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words), llm])

    response = await orchestrator.generate(
        GenerationRequest(word_count=1, count=3, genre="rock", mood="energetic")
    )

    name_calls = [options for _, options in llm.calls if options.get("mode") == "names"]
    assert len(name_calls) == 1
    assert name_calls[0]["word_count"] == 1
    assert name_calls[0]["count"] == 3

    by_name = {result.name: result for result in response.results}
    assert "Thunder" in by_name
    assert by_name["Thunder"].source == "ai"
    assert "Two Words" not in by_name


@pytest.mark.asyncio
async def test_fusion_request_blends_secondary_genre(datamuse_words):
    datamuse = StubAdapter("datamuse", datamuse_words)
    orchestrator = build_orchestrator([datamuse])

    response = await orchestrator.generate(
        GenerationRequest(word_count=3, count=4, genre="rock", secondary_genre="classical", enable_fusion=True)
    )

    assert_well_formed(response, 4, 3)
    assert {query for query, _ in datamuse.calls} == {"rock", "classical"}


@pytest.mark.asyncio
async def test_malformed_requests_raise_validation_error():
    orchestrator = build_orchestrator()

    with pytest.raises(ValidationError):
        await orchestrator.generate({"content_type": "podcast"})
    with pytest.raises(ValidationError):
        await orchestrator.generate({"word_count": "many"})


@pytest.mark.asyncio
async def test_results_are_remembered(datamuse_words):
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words)])

    response = await orchestrator.generate(GenerationRequest(count=4, genre="rock"))
    stats = orchestrator.stats()

    assert stats["name_memory"]["total_names"] == 4
    assert stats["word_filter"]["generation_counter"] == 1
    assert stats["fallback"]["vocabulary"]["successes"] == 1
    for name in response.names:
        assert orchestrator.word_filter.is_accepted(name)

    payload = response.to_dict()
    assert [entry["name"] for entry in payload["names"]] == response.names
    assert payload["usedFallback"] is False


CATALOG = ("artist", "track", "genre")
ROCK_CATALOG = {
    "artist": [{"name": "Granite Lanterns", "genres": ["stoner rock"], "popularity": 70}],
    "track": [{"name": "Voltage Cathedral", "artists": [{"name": "Granite Lanterns"}], "popularity": 60}],
    "genre": {"name": "rock", "genres": ["rock", "stoner rock", "garage rock"]},
}


@pytest.mark.asyncio
async def test_catalog_lookups_feed_terms_and_exclusions(datamuse_words):
    spotify = StubAdapter("spotify", domains=CATALOG, by_domain=ROCK_CATALOG)
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words), spotify])

    context = await orchestrator.gather_context(GenerationRequest(word_count=2, count=4, genre="rock"))

    assert isinstance(context, GenerationContext)
    assert {options["domain"] for _, options in spotify.calls} == set(CATALOG)
    assert {query for query, _ in spotify.calls} == {"rock"}
    for term in ("stoner", "garage", "voltage", "cathedral"):
        assert term in context.catalog_terms
    assert context.is_catalog_name("Granite  Lanterns")
    assert context.is_catalog_name("voltage cathedral")
    assert not context.used_fallback
    assert "spotify" in context.fallback_chain


@pytest.mark.asyncio
async def test_existing_artist_and_track_names_are_never_returned(datamuse_words):
    spotify = StubAdapter("spotify", domains=CATALOG, by_domain=ROCK_CATALOG)
    llm = StubAdapter("llm", {"names": ["Granite Lanterns", "Voltage Cathedral"]})
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words), spotify, llm])

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=4, genre="rock"))

    assert_well_formed(response, 4, 2)
    lowered = {name.lower() for name in response.names}
    assert "granite lanterns" not in lowered
    assert "voltage cathedral" not in lowered
    assert response.telemetry["counters"]["rejected.catalog"] >= 2
    assert response.quality["catalog_terms"] > 0
    assert response.quality["catalog_names"] == 2


@pytest.mark.asyncio
async def test_catalog_outage_does_not_switch_to_static_context(datamuse_words):
    spotify = failing_adapter("spotify", domains=CATALOG)
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words), spotify])

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=3, genre="rock"))

    assert_well_formed(response, 3, 2)
    assert not response.used_fallback
    assert STATIC_CONTEXT not in response.fallback_chain
    assert response.quality["catalog_terms"] == 0


@pytest.mark.asyncio
async def test_unexpected_provider_exception_still_generates():
    broken = StubAdapter("conceptnet", error=RuntimeError("adapter bug"))
    orchestrator = build_orchestrator([broken])

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=4, genre="rock"))

    assert_well_formed(response, 4, 2)
    assert broken.calls
    assert response.used_fallback
    assert STATIC_CONTEXT in response.fallback_chain


@pytest.mark.asyncio
async def test_malformed_conceptnet_weight_still_generates():
    data = {"edges": [{"end": {"label": "thunder"}, "weight": "heavy", "rel": {"label": "RelatedTo"}}]}
    orchestrator = build_orchestrator([StubAdapter("conceptnet", data)])

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=4, genre="rock"))

    assert_well_formed(response, 4, 2)


@pytest.mark.asyncio
async def test_llm_adapter_crash_is_not_fatal(datamuse_words):
    llm = StubAdapter("llm", error=RuntimeError("model client bug"))
    orchestrator = build_orchestrator([StubAdapter("datamuse", datamuse_words), llm])

    response = await orchestrator.generate(GenerationRequest(word_count=2, count=3, genre="rock"))

    assert_well_formed(response, 3, 2)
    assert all(result.source != "ai" for result in response.results)


@pytest.mark.asyncio
@pytest.mark.parametrize("with_provider", [True, False])
async def test_three_word_rock_band_names_share_at_most_one_word(datamuse_words, with_provider):
    adapters = [StubAdapter("datamuse", datamuse_words)] if with_provider else []
    orchestrator = build_orchestrator(adapters)

    response = await orchestrator.generate(
        GenerationRequest(content_type="band", word_count=3, count=4, genre="rock")
    )

    assert_well_formed(response, 4, 3)
    names = response.names
    for index, first in enumerate(names):
        for second in names[index + 1:]:
            shared = set(significant_words(first)) & set(significant_words(second))
            assert len(shared) < 2, (first, second)
