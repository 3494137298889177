import random

import pytest

from namecraft.core.word_stores import DEFAULT_WORD_STORES, STOP_WORDS, WordStores


def test_famous_names_match_case_and_spacing_insensitively():
    assert DEFAULT_WORD_STORES.is_famous_name("the  beatles")
    assert DEFAULT_WORD_STORES.is_famous_name("RADIOHEAD")
    assert not DEFAULT_WORD_STORES.is_famous_name("The Paper Lanterns")


def test_genre_and_mood_lookups_tolerate_missing_keys():
    stores = DEFAULT_WORD_STORES
    assert stores.genre_words(None) == ()
    assert stores.genre_words("no-such-genre") == ()
    assert stores.genre_words(" Rock ")
    assert stores.mood_terms(None) == ()


@pytest.mark.parametrize("word_count", [1, 2, 3, 4, 5, 7, 10])
def test_structured_phrase_has_exact_word_count(word_count):
    rng = random.Random(3)
    for _ in range(20):
        phrase = DEFAULT_WORD_STORES.structured_phrase(word_count, rng, genre="rock")
        assert len(phrase.split()) == word_count


def test_structured_phrase_three_words_starts_with_article():
    phrase = DEFAULT_WORD_STORES.structured_phrase(3, random.Random(1))
    assert phrase.split()[0] == "The"


@pytest.mark.parametrize("content_type", ["band", "song"])
@pytest.mark.parametrize("word_count", [1, 2, 3, 6])
def test_static_fallback_names_always_fill_the_request(content_type, word_count):
    names = DEFAULT_WORD_STORES.static_fallback_names(content_type, word_count, 12, random.Random(5))

    assert len(names) == 12
    assert len({name.lower() for name in names}) == 12
    assert all(len(name.split()) == word_count for name in names)


def test_static_fallback_names_respect_exclusions():
    excluded = ["The Quiet Voltage", "The Paper Lanterns"]
    names = DEFAULT_WORD_STORES.static_fallback_names("band", 3, 5, random.Random(2), exclude=excluded)

    lowered = {name.lower() for name in names}
    assert not lowered & {name.lower() for name in excluded}


def test_static_fallback_names_survive_tiny_vocabulary():
    stores = WordStores(adjectives=("Red",), nouns=("Sun",), static_pools={})
    names = stores.static_fallback_names("band", 2, 6, random.Random(0))

    assert len(names) == 6
    assert len(set(names)) == 6
    assert all(len(name.split()) == 2 for name in names)


def test_stop_words_cover_articles():
    assert {"the", "and", "of"} <= STOP_WORDS
