"""Tests for base title scoring."""

from __future__ import annotations

import pytest

from animap.core.matching.normalizer import normalize_title, string_similarity
from animap.core.matching.scoring import (
    NEAR_EXACT_SCORE,
    SECONDARY_EXACT_SCORE,
    SECONDARY_NEAR_EXACT_SCORE,
    score_title,
    split_secondary_titles,
    word_match_score,
)


def test_identical_titles_score_one() -> None:
    """Titles equal after normalization always score exactly 1.0."""
    assert score_title("Attack on Titan", "attack on titan") == 1.0
    assert score_title("KAGUYA-SAMA: LOVE & WAR", "Kaguya-sama Love and War") == 1.0


@pytest.mark.parametrize(
    ("source", "candidate"),
    [
        ("Shingeki no Kyojin", "Shingeki no Kyojn"),
        ("Fullmetal Alchemist", "Fullmetal Alchemists"),
        ("Sword Art Online", "Sword Art Onlin"),
    ],
)
def test_near_exact_titles(source: str, candidate: str) -> None:
    """Edit distance of at most 2 on titles longer than 5 characters scores 0.95."""
    assert score_title(source, candidate) >= NEAR_EXACT_SCORE


def test_short_titles_are_not_near_exact() -> None:
    """Short titles need more than a small edit distance to score high."""
    assert score_title("K-On", "K-Oz") < NEAR_EXACT_SCORE


def test_secondary_title_exact_and_near() -> None:
    """Test secondary titles score just below the primary equivalents."""
    assert score_title("Shingeki no Kyojin", "Attack on Titan", "Shingeki no Kyojin") == (
        SECONDARY_EXACT_SCORE
    )
    assert score_title("Shingeki no Kyojin", "Attack on Titan", "SnK, Shingeki no Kyojin") == (
        SECONDARY_EXACT_SCORE
    )
    assert score_title("Shingeki no Kyojin", "Attack on Titan", "Shingeki no Kyojn") == (
        SECONDARY_NEAR_EXACT_SCORE
    )


def test_fuzzy_score_combines_words_and_similarity() -> None:
    """Without an exact match the score is 0.7 * words + 0.3 * similarity."""
    source = "Fullmetal Alchemist Brotherhood"
    candidate = "Fullmetal Alchemist"
    similarity = string_similarity(normalize_title(source), normalize_title(candidate))

    assert score_title(source, candidate) == pytest.approx(0.7 * (2 / 3) + 0.3 * similarity)


def test_year_in_title_does_not_hurt_word_score() -> None:
    assert word_match_score("Hunter x Hunter (2011)", "Hunter x Hunter") == 1.0
    assert score_title("Hunter x Hunter (2011)", "Hunter x Hunter") > 0.9


def test_word_match_score_sequel_phrases() -> None:
    """Different spellings of the same sequel line up word for word."""
    assert word_match_score("Overlord Season 2", "Overlord II") == 1.0
    assert word_match_score("Overlord 2nd Season", "Overlord S2") == 1.0


def test_word_match_score_partial_matches() -> None:
    """Substring matches count half, weighted by relative length."""
    score = word_match_score("Boku no Hero", "Bokunohero")
    assert score == pytest.approx(0.5 * (4 / 10 + 2 / 10 + 4 / 10) / 3)


def test_word_match_score_empty() -> None:
    assert word_match_score("", "Naruto") == 0.0
    assert word_match_score("Naruto", "") == 0.0


def test_best_secondary_fuzzy_score_wins() -> None:
    """The better of primary and secondary fuzzy scores is used."""
    without = score_title("Boku no Hero Academia", "My Hero Academia")
    with_secondary = score_title(
        "Boku no Hero Academia", "My Hero Academia", "Boku no Hero Academia the Movie"
    )
    assert with_secondary > without


def test_split_secondary_titles() -> None:
    assert split_secondary_titles("SnK, Shingeki no Kyojin ,") == ["SnK", "Shingeki no Kyojin"]
    assert split_secondary_titles(None) == []
