from namecraft.app.settings import Settings
from namecraft.core.name_memory import NameMemoryConfig
from namecraft.core.word_filter import WordFilterConfig


def test_defaults_without_environment():
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.filter == WordFilterConfig()
    assert settings.memory == NameMemoryConfig()
    assert not settings.offline
    assert settings.seed is None


def test_environment_overrides_and_invalid_values():
    settings = Settings.from_env(
        {
            "NAMECRAFT_LOG_LEVEL": "debug",
            "NAMECRAFT_DEFAULT_COUNT": "7",
            "NAMECRAFT_PROVIDER_TIMEOUT": "0.01",
            "NAMECRAFT_FILTER_CROSS_TYPE_PROBABILITY": "1.5",
            "NAMECRAFT_FILTER_RECENT_PROBABILITY": "0.7",
            "NAMECRAFT_MEMORY_CAPACITY": "plenty",
            "NAMECRAFT_OFFLINE": "yes",
            "NAMECRAFT_SEED": "42",
            "SPOTIFY_TOKEN": "   ",
            "XAI_API_KEY": "xai-secret",
        }
    )

    assert settings.log_level == "DEBUG"
    assert settings.default_count == 7
    assert settings.provider_timeout == 10.0
    assert settings.filter.cross_type_reject_probability == 0.25
    assert settings.filter.recent_reject_probability == 0.7
    assert settings.memory.capacity == 500
    assert settings.offline
    assert settings.seed == 42
    assert settings.spotify_token is None
    assert settings.xai_api_key == "xai-secret"


def test_unparseable_seed_is_ignored():
    assert Settings.from_env({"NAMECRAFT_SEED": "lucky"}).seed is None


def test_redacted_hides_credentials():
    summary = Settings(lastfm_api_key="lastfm-secret", xai_api_key="xai-secret").redacted()

    assert summary["lastfm"] is True
    assert summary["llm"] is True
    assert summary["spotify"] is False
    assert "lastfm-secret" not in summary.values()
    assert "xai-secret" not in summary.values()
