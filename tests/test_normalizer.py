import pytest

from conftest import FakeClock
from namecraft.core.errors import ProviderError
from namecraft.core.models import NormalizedArtist, NormalizedGenre, NormalizedTrack, NormalizedVocabulary
from namecraft.core.normalizer import (
    DataNormalizer,
    canonical_genre,
    data_quality,
    normalize_genres,
    normalize_score,
    normalize_string,
    source_trust_bonus,
    vocabulary_quality,
    word_type,
)
from providers.payloads import RawPayload


@pytest.fixture
def normalizer():
    return DataNormalizer(time_fn=FakeClock())


def test_normalize_string_collapses_punctuation_and_spacing():
    assert normalize_string("  The Rolling  Stones!! ") == "the-rolling-stones"
    assert normalize_string("AC--DC") == "ac-dc"


def test_genre_aliases_dedupe_and_cap():
    genres = normalize_genres(["Hip Hop", "rap", "EDM", "techno", "jazz", "folk", "blues", "metal"])
    assert genres == ["hip-hop", "electronic", "techno", "jazz", "folk"]
    assert canonical_genre("Sea Shanty") == "sea-shanty"
    assert canonical_genre("") is None


def test_score_normalisation():
    assert normalize_score(0.42) == pytest.approx(42.0)
    assert normalize_score(250) == 100.0
    assert normalize_score("bogus") == 0.0
    assert normalize_score(float("nan")) == 0.0


@pytest.mark.parametrize(
    "word, expected",
    [("celebration", "noun"), ("furious", "adjective"), ("burning", "verb"), ("stone", "concept")],
)
def test_word_type_heuristics(word, expected):
    assert word_type(word) == expected


def test_vocabulary_filters_and_scores_words(normalizer, datamuse_words):
    entity = normalizer.normalize(RawPayload("vocabulary", "rock", datamuse_words), "datamuse", "vocabulary", context="rock")

    assert isinstance(entity, NormalizedVocabulary)
    words = [word.word for word in entity.words]
    assert "the" not in words
    assert "hard rock" not in words
    assert words[0] == "thunderous"
    first = entity.words[0]
    assert first.confidence == pytest.approx(min(100.0, 60 + 30 + 10))
    assert first.word_type == "adjective"
    assert "rock" in first.themes
    assert "energetic" in first.themes
    assert entity.confidence == pytest.approx(vocabulary_quality(entity))
    assert entity.confidence <= 100.0


def test_vocabulary_is_idempotent_apart_from_identity(normalizer, datamuse_words):
    payload = RawPayload("vocabulary", "rock", datamuse_words)
    first = normalizer.normalize(payload, "datamuse", "vocabulary", context="rock")
    second = normalizer.normalize(payload, "datamuse", "vocabulary", context="rock")

    assert first.same_content(second)
    assert first.words == second.words
    assert first.id.startswith("vocabulary-")


def test_empty_vocabulary_raises_provider_error(normalizer):
    with pytest.raises(ProviderError):
        normalizer.normalize([{"word": "of"}, {"word": "x"}], "datamuse", "vocabulary")


def test_conceptnet_edges_become_words_and_concepts(normalizer):
    data = {
        "edges": [
            {"end": {"label": "guitar"}, "rel": {"label": "RelatedTo"}, "weight": 2.0},
            {"end": {"label": "loud music"}, "rel": {"label": "HasProperty"}, "weight": 1.0},
        ]
    }
    entity = normalizer.normalize(data, "conceptnet", "vocabulary", context="rock")

    assert [word.word for word in entity.words] == ["guitar"]
    assert entity.concepts == ("relatedto", "hasproperty")


def test_poetrydb_lines_are_kept(normalizer):
    data = [{"title": "Ode", "lines": ["Thunder rolls over silver hills", ""]}]
    entity = normalizer.normalize(data, "poetrydb", "lyrics", context="storm")

    assert "thunder" in [word.word for word in entity.words]
    assert entity.lines == ("Thunder rolls over silver hills",)


def test_spotify_artist_confidence(normalizer):
    data = [{"name": "Radiohead", "genres": ["alternative rock", "art rock"], "popularity": 80, "id": "abc"}]
    entity = normalizer.normalize(RawPayload("artist", "radiohead", data), "spotify", "artist")

    assert isinstance(entity, NormalizedArtist)
    assert entity.normalized_name == "radiohead"
    assert entity.genres == ("alternative-rock", "art-rock")
    assert entity.confidence == 100.0
    assert entity.metadata["source_id"] == "abc"


def test_lastfm_artist_popularity_from_listeners(normalizer):
    data = {"name": "Muse", "stats": {"listeners": "999999"}, "tags": {"tag": [{"name": "rock"}]}}
    entity = normalizer.normalize(data, "lastfm", "artist")

    assert entity.popularity == pytest.approx(60.0)
    assert entity.genres == ("rock",)
    assert entity.confidence == 100.0


def test_musicbrainz_track_uses_title_and_credits(normalizer):
    data = {"title": "Airbag", "artist-credit": [{"artist": {"name": "Radiohead"}}], "rating": {"value": 4}}
    entity = normalizer.normalize(data, "musicbrainz", "track")

    assert isinstance(entity, NormalizedTrack)
    assert entity.name == "Airbag"
    assert entity.artists == ("Radiohead",)
    assert entity.popularity == pytest.approx(80.0)


def test_genre_payload_confidence_and_metadata(normalizer):
    data = {"name": "shoegaze", "genres": ["rock", "indie", "dark ambient"], "year": 1991}
    entity = normalizer.normalize(data, "spotify", "genre")

    assert isinstance(entity, NormalizedGenre)
    assert entity.name == "rock"
    assert entity.confidence == 40 + 3 * 10 + 20
    assert entity.metadata["era"] == "90s"
    assert "dark" in entity.metadata["mood_tags"]
    assert "indie-rock" in entity.related


def test_genre_payload_without_genres_is_rejected(normalizer):
    with pytest.raises(ProviderError):
        normalizer.normalize({"name": "nothing"}, "musicbrainz", "genre")


def test_non_object_catalog_payload_is_rejected(normalizer):
    with pytest.raises(ProviderError):
        normalizer.normalize([], "spotify", "artist")


def test_unknown_domain_is_a_programming_error(normalizer):
    with pytest.raises(ValueError):
        normalizer.normalize({}, "spotify", "podcast")


def test_quality_and_trust_helpers():
    assert source_trust_bonus("spotify") == 15
    assert source_trust_bonus("datamuse") == 10
    assert source_trust_bonus("unknown") == 0
    assert data_quality(None) == 0.0
    assert 0.0 <= data_quality(NormalizedArtist(id="x", name="A", normalized_name="a", source="spotify")) <= 100.0


def test_non_numeric_conceptnet_weight_scores_zero(normalizer):
    data = {"edges": [{"end": {"label": "thunder"}, "rel": {"label": "RelatedTo"}, "weight": "heavy"}]}
    entity = normalizer.normalize(data, "conceptnet", "vocabulary", context="rock")

    assert [word.word for word in entity.words] == ["thunder"]
    assert entity.words[0].score == 0.0


def test_null_genres_fall_back_to_empty(normalizer):
    data = [{"name": "Granite Lanterns", "genres": None, "artists": [{"name": "x", "genres": None}]}]
    entity = normalizer.normalize(RawPayload("artist", "granite", data), "spotify", "artist")

    assert entity.genres == ()
    assert entity.confidence == 50 + 20 + 15
