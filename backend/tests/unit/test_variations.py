"""Tests for word-variation expansion and synonym tables."""

from __future__ import annotations

import pytest

from animap.core.matching.variations import (
    ENGLISH_SYNONYMS,
    FRENCH_SYNONYMS,
    SynonymTable,
    WordVariationExpander,
    get_expander,
)


@pytest.fixture
def expander() -> WordVariationExpander:
    return WordVariationExpander(ENGLISH_SYNONYMS)


def test_variations_include_group_members(expander: WordVariationExpander) -> None:
    """A group key expands to all of its values."""
    assert {"season", "s", "sz"} <= expander.variations_of("Season")


def test_variations_are_bidirectional(expander: WordVariationExpander) -> None:
    """A group value expands to its key and its siblings."""
    assert {"two", "ii", "second", "2nd"} <= expander.variations_of("2")
    assert "2" in expander.variations_of("ii")
    assert "2nd season" in expander.variations_of("ii")


def test_variations_strip_numerals(expander: WordVariationExpander) -> None:
    variations = expander.variations_of("s2")
    assert "s" in variations
    assert "2nd season" in variations


def test_unknown_word_expands_to_itself(expander: WordVariationExpander) -> None:
    assert expander.variations_of("saison") == frozenset({"saison"})


def test_variations_are_memoized(expander: WordVariationExpander) -> None:
    """Lookups are memoized case-insensitively per expander."""
    first = expander.variations_of("Part")
    second = expander.variations_of("part")

    assert first is second
    assert expander.cache_size() == 1


def test_french_table_extends_english() -> None:
    """The French table keeps the English groups and adds French ones."""
    french = WordVariationExpander(FRENCH_SYNONYMS)

    assert "season" in french.variations_of("saison")
    assert "saison" in french.variations_of("season")
    assert "ii" in french.variations_of("deux")
    assert "sz" in french.variations_of("season")


def test_table_extend_merges_groups() -> None:
    """Test extending a table merges values of shared keys without duplicates."""
    extra = SynonymTable(name="extra", lexical={"two": ("duo", "2")}, sequels={})
    merged = ENGLISH_SYNONYMS.extend("merged", extra)

    assert merged.name == "merged"
    assert merged.lexical["two"] == ("2", "ii", "second", "2nd", "duo")
    assert merged.sequels == ENGLISH_SYNONYMS.sequels


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("overlord season 2", "overlord 2nd season"),
        ("overlord ii", "overlord 2nd season"),
        ("overlord second season", "overlord 2nd season"),
        ("overlord iii", "overlord 3rd season"),
        ("attack on titan last season", "attack on titan final season"),
        ("spy x family cour 2", "spy x family part 2"),
        ("frieren", "frieren"),
    ],
)
def test_canonicalize_phrases(
    expander: WordVariationExpander, text: str, expected: str
) -> None:
    """Sequel phrases are rewritten to their canonical key."""
    assert expander.canonicalize_phrases(text) == expected


def test_canonicalize_phrases_french() -> None:
    french = get_expander("french")
    assert french.canonicalize_phrases("mushoku tensei saison 2") == "mushoku tensei 2nd season"
    assert french.canonicalize_phrases("one piece partie 2") == "one piece part 2"


def test_get_expander_is_shared() -> None:
    assert get_expander("english") is get_expander("english")
    assert get_expander("english") is not get_expander("french")


def test_get_expander_unknown_table() -> None:
    with pytest.raises(KeyError):
        get_expander("klingon")
