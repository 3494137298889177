import asyncio
import json

import httpx
import pytest

from conftest import FakeClock
from namecraft.app.settings import Settings
from namecraft.core.errors import ProviderError, ProviderTimeout
from providers import (
    DatamuseAdapter,
    LastFmAdapter,
    LLMCompletionAdapter,
    PoetryDbAdapter,
    RateLimiter,
    SpotifyAdapter,
    build_default_adapters,
)
from providers.payloads import DatamusePayload


def transport_for(handler):
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_datamuse_fetch_returns_tagged_payload(datamuse_words):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=datamuse_words)

    adapter = DatamuseAdapter(transport=transport_for(handler))
    payload = await adapter.fetch("Hard  Rock", {"domain": "vocabulary", "limit": 20})
    await adapter.aclose()

    assert isinstance(payload, DatamusePayload)
    assert payload.source == "datamuse"
    assert payload.kind == "vocabulary"
    assert payload.data == datamuse_words
    assert seen["path"] == "/words"
    assert seen["params"] == {"ml": "hard rock", "max": "20", "md": "prs"}


@pytest.mark.asyncio
async def test_server_errors_carry_status():
    adapter = DatamuseAdapter(transport=transport_for(lambda request: httpx.Response(503)))

    with pytest.raises(ProviderError) as excinfo:
        await adapter.fetch("rock", {"domain": "vocabulary"})
    await adapter.aclose()

    assert excinfo.value.status == 503
    assert excinfo.value.retryable
    assert not isinstance(excinfo.value, ProviderTimeout)


@pytest.mark.asyncio
async def test_malformed_json_is_a_provider_error():
    adapter = DatamuseAdapter(transport=transport_for(lambda request: httpx.Response(200, text="<html>")))

    with pytest.raises(ProviderError, match="malformed JSON"):
        await adapter.fetch("rock", {"domain": "vocabulary"})
    await adapter.aclose()


@pytest.mark.asyncio
async def test_empty_payload_is_a_provider_error():
    adapter = DatamuseAdapter(transport=transport_for(lambda request: httpx.Response(200, json=[])))

    with pytest.raises(ProviderError, match="empty payload"):
        await adapter.fetch("rock", {"domain": "vocabulary"})
    await adapter.aclose()


@pytest.mark.asyncio
async def test_transport_timeout_becomes_provider_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow upstream", request=request)

    adapter = DatamuseAdapter(timeout=2.0, transport=transport_for(handler))

    with pytest.raises(ProviderTimeout) as excinfo:
        await adapter.fetch("rock", {"domain": "vocabulary"})
    await adapter.aclose()

    assert excinfo.value.timeout == 2.0
    assert excinfo.value.retryable


@pytest.mark.asyncio
async def test_unsupported_domain_is_rejected_without_a_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    adapter = DatamuseAdapter(transport=transport_for(handler))
    with pytest.raises(ProviderError, match="not supported"):
        await adapter.fetch("radiohead", {"domain": "artist"})
    await adapter.aclose()

    assert calls == []


@pytest.mark.asyncio
async def test_poetrydb_miss_in_body_is_an_error():
    body = {"status": 404, "reason": "Not found"}
    adapter = PoetryDbAdapter(transport=transport_for(lambda request: httpx.Response(200, json=body)))

    with pytest.raises(ProviderError) as excinfo:
        await adapter.fetch("zzzz", {"domain": "lyrics"})
    await adapter.aclose()

    assert excinfo.value.status == 404


@pytest.mark.asyncio
async def test_spotify_genre_search_merges_artist_genres():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["q"] = request.url.params["q"]
        return httpx.Response(
            200,
            json={"artists": {"items": [{"genres": ["rock", "indie"]}, {"genres": ["indie", "shoegaze"]}]}},
        )

    adapter = SpotifyAdapter("token-123", transport=transport_for(handler))
    payload = await adapter.fetch("shoegaze", {"domain": "genre"})
    await adapter.aclose()

    assert payload.data == {"name": "shoegaze", "genres": ["rock", "indie", "shoegaze"]}
    assert seen["auth"] == "Bearer token-123"
    assert seen["q"] == 'genre:"shoegaze"'


@pytest.mark.asyncio
async def test_lastfm_error_body_raises():
    body = {"error": 6, "message": "The artist you supplied could not be found"}
    adapter = LastFmAdapter("key", transport=transport_for(lambda request: httpx.Response(200, json=body)))

    with pytest.raises(ProviderError, match="could not be found"):
        await adapter.fetch("nobody", {"domain": "artist"})
    await adapter.aclose()


@pytest.mark.asyncio
async def test_llm_completion_content_is_parsed_and_cleaned():
    seen = {}
    content = json.dumps({"names": ["Iron Meadow", "  ", "Velvet Comet"], "words": "not a list"})

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    adapter = LLMCompletionAdapter("secret", model="test-model", transport=transport_for(handler))
    payload = await adapter.fetch("storm", {"domain": "vocabulary", "mode": "names", "count": 2})
    await adapter.aclose()

    assert payload.data == {"names": ["Iron Meadow", "Velvet Comet"]}
    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["model"] == "test-model"
    assert "Suggest 2 original band names" in seen["body"]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_llm_non_json_content_is_an_error():
    body = {"choices": [{"message": {"content": "Sure! Here are some names"}}]}
    adapter = LLMCompletionAdapter("secret", transport=transport_for(lambda request: httpx.Response(200, json=body)))

    with pytest.raises(ProviderError, match="not valid JSON"):
        await adapter.fetch("storm", {"domain": "vocabulary"})
    await adapter.aclose()


def test_credentialed_adapters_require_credentials():
    with pytest.raises(ValueError):
        SpotifyAdapter("")
    with pytest.raises(ValueError):
        LastFmAdapter("")
    with pytest.raises(ValueError):
        LLMCompletionAdapter("")


def test_default_adapters_follow_settings():
    assert build_default_adapters(Settings(offline=True)) == []

    names = [adapter.name for adapter in build_default_adapters(Settings())]
    assert names == ["datamuse", "conceptnet", "poetrydb", "musicbrainz"]

    names = [adapter.name for adapter in build_default_adapters(Settings(spotify_token="t", xai_api_key="k"))]
    assert "spotify" in names
    assert "llm" in names
    assert "lastfm" not in names


def make_limiter(clock, sleeps, **kwargs):
    async def fake_sleep(delay):
        sleeps.append(delay)
        clock.advance(delay)

    return RateLimiter("test", time_fn=clock, sleep=fake_sleep, **kwargs)


@pytest.mark.asyncio
async def test_rate_limiter_spaces_starts():
    clock, sleeps = FakeClock(0.0), []
    limiter = make_limiter(clock, sleeps, min_interval=1.0)

    async with limiter:
        pass
    async with limiter:
        pass

    assert sleeps == [pytest.approx(1.0)]
    stats = limiter.stats()
    assert stats["total"] == 2
    assert stats["delayed"] == 1
    assert stats["active"] == 0


@pytest.mark.asyncio
async def test_rate_limiter_caps_bursts():
    clock, sleeps = FakeClock(0.0), []
    limiter = make_limiter(clock, sleeps, max_concurrent=2, burst_limit=2, burst_window=10.0)

    for _ in range(3):
        async with limiter:
            pass

    assert sleeps == [pytest.approx(10.0)]


@pytest.mark.asyncio
async def test_rate_limiter_bounds_concurrency():
    limiter = RateLimiter("serial", max_concurrent=1)
    active = 0
    peak = 0

    async def work():
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0)
        active -= 1
        return "done"

    results = await asyncio.gather(*(limiter.run(work) for _ in range(3)))

    assert results == ["done"] * 3
    assert peak == 1


def test_rate_limiter_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        RateLimiter("broken", max_concurrent=0)
