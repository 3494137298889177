import pytest

from namecraft.core.phonetic_flow import (
    PhoneticFlowAnalyzer,
    canonical_name,
    is_compound,
    quality_label,
    rhythm_score,
    score_pronunciation,
    score_uniqueness,
    unusual_letter_pairs,
)

SAMPLE_NAMES = [
    "Velvet Comet",
    "The Quiet Voltage",
    "Stormglass",
    "Xzqyvj",
    "Strengths Twelfths Sixths",
    "Aeiou Ooeea",
    "We Were Kings of the Empty Highway Again and Again",
    "404 Binary",
    "A",
]


@pytest.mark.parametrize("name", SAMPLE_NAMES)
def test_scores_stay_within_bounds(name):
    score = PhoneticFlowAnalyzer().score(name)

    assert 0 <= score.overall <= 100
    for part in (score.pronunciation, score.flow, score.memorability, score.uniqueness):
        assert 0.0 <= part <= 100.0


def test_scoring_ignores_case_and_spacing():
    analyzer = PhoneticFlowAnalyzer()
    assert analyzer.score("Velvet Comet") == analyzer.score("  velvet   COMET ")
    assert canonical_name("  velvet   COMET ") == "velvet comet"


def test_empty_name_scores_zero():
    score = PhoneticFlowAnalyzer().score("   ")
    assert score.overall == 0
    assert score.issues == ("empty name",)


def test_cache_tracks_hits_and_is_bounded():
    analyzer = PhoneticFlowAnalyzer(max_cache_entries=2)
    analyzer.score("Velvet Comet")
    analyzer.score("velvet comet")
    analyzer.score("Iron Meadow")
    analyzer.score("Cobalt Harbor")

    info = analyzer.cache_info()
    assert info["hits"] == 1
    assert info["misses"] == 3
    assert info["entries"] == 2

    analyzer.clear_cache()
    assert analyzer.cache_info() == {"entries": 0, "max_entries": 2, "hits": 0, "misses": 0}


def test_rank_orders_best_first_and_applies_minimum():
    analyzer = PhoneticFlowAnalyzer()
    ranked = analyzer.rank(SAMPLE_NAMES)

    overall = [score.overall for _, score in ranked]
    assert overall == sorted(overall, reverse=True)
    assert {name for name, _ in ranked} == set(SAMPLE_NAMES)

    threshold = overall[len(overall) // 2]
    filtered = analyzer.rank(SAMPLE_NAMES, minimum=threshold)
    assert all(score.overall >= threshold for _, score in filtered)


def test_difficult_clusters_reduce_pronunciation():
    issues = []
    assert score_pronunciation("sixth", ["sixth"], issues) == 90.0
    assert any("xth" in issue for issue in issues)


def test_rhythm_prefers_known_patterns():
    assert rhythm_score([1]) == 70.0
    assert rhythm_score([1, 2]) == 90.0
    assert rhythm_score([1, 4]) == 60.0


def test_compound_detection():
    assert is_compound("stormglass")
    assert not is_compound("glass")
    assert not is_compound("thunder")


@pytest.mark.parametrize(
    "overall, label",
    [(95, "excellent"), (80, "excellent"), (70, "good"), (55, "fair"), (10, "poor")],
)
def test_quality_labels(overall, label):
    assert quality_label(overall)[0] == label


def test_score_serialises_with_label():
    payload = PhoneticFlowAnalyzer().score("Velvet Comet").as_dict()
    assert set(payload) == {
        "overall", "pronunciation", "flow", "memorability", "uniqueness", "issues", "strengths", "label",
    }
    assert PhoneticFlowAnalyzer().quality_assessment("Velvet Comet")


def test_unusual_letter_pairs_are_bigrams():
    assert unusual_letter_pairs("Vyxen Lights") == ["vy", "yx"]
    assert unusual_letter_pairs("Vex Jazz") == []
    assert unusual_letter_pairs("Quiet Sky") == []


def test_uniqueness_rewards_rare_pairs_not_rare_letters():
    assert score_uniqueness("zyx", ["zyx"]) == 85.0
    assert score_uniqueness("zax", ["zax"]) == 70.0
    assert score_uniqueness("vex", ["vex"]) == 70.0
