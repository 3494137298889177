import json

import pytest

from namecraft.app.app import NamecraftApp, main
from namecraft.app.settings import Settings
from namecraft.core.errors import ValidationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in ("NAMECRAFT_OFFLINE", "NAMECRAFT_DEFAULT_COUNT", "NAMECRAFT_SEED", "SPOTIFY_TOKEN", "LASTFM_API_KEY", "XAI_API_KEY"):
        monkeypatch.delenv(key, raising=False)


def test_offline_app_generates_from_word_stores():
    app = NamecraftApp(Settings(offline=True, seed=7))

    response = app.generate_names(content_type="song", word_count=3, count=3, genre="folk")

    assert len(response.results) == 3
    assert all(len(name.split()) == 3 for name in response.names)
    assert response.used_fallback
    assert app.get_latest_telemetry()["name"] == "generation"


def test_default_count_comes_from_settings():
    app = NamecraftApp(Settings(offline=True, seed=3, default_count=2))

    assert len(app.generate_names(word_count=1).results) == 2


def test_invalid_request_raises_before_generation():
    app = NamecraftApp(Settings(offline=True))

    with pytest.raises(ValidationError):
        app.generate_names(word_count=12)


def test_health_reports_missing_adapters():
    health = NamecraftApp(Settings(offline=True)).health()

    assert health["status"] == "degraded"
    assert health["adapters"] == []
    assert health["emergency_cache_entries"] == 0
    assert health["word_filter"]["generation_counter"] == 0


def test_cli_prints_json(capsys):
    assert main(["--offline", "--json", "--count", "3", "--words", "2"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert len(payload["names"]) == 3
    assert payload["usedFallback"] is True
    assert "static_word_stores" in payload["fallbackChain"]


def test_cli_prints_plain_lines(capsys):
    assert main(["--offline", "--count", "2", "--type", "song"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 3
    assert lines[-1] == "(offline word stores used)"


def test_cli_rejects_bad_word_count(capsys):
    assert main(["--offline", "--words", "many"]) == 2
    assert "invalid request" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_async_context_runs_background_tasks():
    async with NamecraftApp(Settings(offline=True, seed=7)) as app:
        assert app.running
        assert app.fallback_manager.running
        response = await app.agenerate_names(word_count=2, count=2)
        assert len(response.results) == 2

    assert not app.fallback_manager.running


@pytest.mark.asyncio
async def test_async_generation_starts_background_tasks():
    app = NamecraftApp(Settings(offline=True, seed=5))
    assert not app.running

    await app.agenerate_names(word_count=1, count=2)

    assert app.fallback_manager.running
    await app.aclose()
    assert not app.running


def test_sync_generation_leaves_no_tasks_running():
    app = NamecraftApp(Settings(offline=True, seed=7))

    app.generate_names(word_count=2, count=2)
    app.generate_names(word_count=2, count=2)

    assert not app.running
