"""Tests for season/part resolution."""

from __future__ import annotations

from datetime import date

import pytest

from animap.core.matching.config import DEFAULT_CONFIG
from animap.core.matching.models import SeasonCandidate, SourceIdentity
from animap.core.matching.seasons import (
    SEASON_RULES,
    SeasonQuery,
    SeasonResolver,
    canonical_candidates,
    is_non_canonical,
    is_split_cour,
    match_exact_season_part,
    months_between,
)


def _season(identifier: str, episodes: int | None = None, **kwargs) -> SeasonCandidate:
    return SeasonCandidate(identifier=identifier, episode_count=episodes, **kwargs)


@pytest.fixture
def resolver() -> SeasonResolver:
    return SeasonResolver(DEFAULT_CONFIG)


class TestSeasonCandidate:
    """Tests for season/part parsing on season entries."""

    def test_numbers_parsed_from_identifier(self) -> None:
        entry = SeasonCandidate(label="Saison 2 Partie 1", identifier="saison2-1")
        assert entry.season_number == 2
        assert entry.part_number == 1

    def test_numbers_parsed_from_label(self) -> None:
        entry = SeasonCandidate(label="Season 3 Part 2", identifier="abc123")
        assert entry.season_number == 3
        assert entry.part_number == 2

    def test_explicit_numbers_are_kept(self) -> None:
        entry = SeasonCandidate(identifier="saison3", season_number=1)
        assert entry.season_number == 1
        assert entry.part_number is None

    def test_unnumbered_entry(self) -> None:
        entry = SeasonCandidate(label="Film", identifier="film")
        assert entry.season_number is None
        assert entry.part_number is None


def test_season_query_from_source() -> None:
    source = SourceIdentity(titles=["Overlord II", "Overlord Season 2"], episodes=13)
    query = SeasonQuery.from_source(source)
    assert query == SeasonQuery(season=2, part=None, cue=2, episodes=13)


class TestSeasonRules:
    """Tests for the ordered season selection rules."""

    def test_rules_are_ordered(self) -> None:
        assert [method for method, _ in SEASON_RULES] == [
            "exact_season_part",
            "season",
            "part",
            "title_cue",
            "exact_episodes",
            "closest_episodes",
            "fallback",
        ]

    def test_exact_season_part_beats_episode_match(self, resolver: SeasonResolver) -> None:
        """Season and part both matching wins over an earlier episode-count match."""
        source = SourceIdentity(titles=["Mushoku Tensei Season 2 Part 2"], episodes=12)
        candidates = [
            _season("saison1", 23),
            _season("saison2-1", 12),
            _season("saison2-2", 12),
        ]

        match = resolver.select(source, candidates)

        assert match.method == "exact_season_part"
        assert match.identifier == "saison2-2"
        assert (match.season_number, match.part_number) == (2, 2)

    @pytest.mark.parametrize(
        ("candidates", "expected"),
        [
            ([_season("saison1"), _season("saison2-1"), _season("saison2-2")], "saison2-2"),
            ([_season("saison2-2"), _season("saison2-1")], "saison2-2"),
        ],
    )
    def test_exact_season_part_always_wins(
        self, candidates: list[SeasonCandidate], expected: str
    ) -> None:
        query = SeasonQuery(season=2, part=2, cue=None, episodes=None)
        chosen = match_exact_season_part(query, candidates, DEFAULT_CONFIG)
        assert chosen is not None
        assert chosen.identifier == expected

    def test_season_without_part(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Oshi no Ko Season 2"])
        match = resolver.select(source, [_season("saison1"), _season("saison2")])
        assert match.method == "season"
        assert match.identifier == "saison2"

    def test_part_only(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Spy x Family Part 2"])
        match = resolver.select(source, [_season("saison1"), _season("saison1-2")])
        assert match.method == "part"
        assert match.identifier == "saison1-2"

    def test_title_cue(self, resolver: SeasonResolver) -> None:
        """A bare 'II' names the season even when another entry matches episodes."""
        source = SourceIdentity(titles=["Overlord II"], episodes=13)
        candidates = [_season("saison1", 13), _season("saison2", 13), _season("saison3", 13)]

        match = resolver.select(source, candidates)

        assert match.method == "title_cue"
        assert match.identifier == "saison2"

    def test_exact_episodes(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Frieren"], episodes=28)
        match = resolver.select(source, [_season("saison1", 12), _season("saison2", 28)])
        assert match.method == "exact_episodes"
        assert match.identifier == "saison2"

    def test_closest_episodes_within_tolerance(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Frieren"], episodes=25)
        match = resolver.select(source, [_season("saison1", 12), _season("saison2", 24)])
        assert match.method == "closest_episodes"
        assert match.identifier == "saison2"

    def test_fallback_beyond_tolerance(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Frieren"], episodes=40)
        match = resolver.select(source, [_season("saison1", 12), _season("saison2", 24)])
        assert match.method == "fallback"
        assert match.identifier == "saison1"

    def test_fallback_skips_films_for_series(self, resolver: SeasonResolver) -> None:
        """Films are set aside when the source is a proper series."""
        source = SourceIdentity(titles=["Demon Slayer"], episodes=24)
        candidates = [_season("film", 1, label="Film"), _season("saison1")]

        match = resolver.select(source, candidates)

        assert match.method == "fallback"
        assert match.identifier == "saison1"

    def test_films_kept_for_short_sources(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Demon Slayer Mugen Train"], format="MOVIE", episodes=1)
        candidates = [_season("saison1", 26), _season("film", 1, label="Film")]

        match = resolver.select(source, candidates)

        assert match.method == "exact_episodes"
        assert match.identifier == "film"

    def test_empty_list(self, resolver: SeasonResolver) -> None:
        match = resolver.select(SourceIdentity(titles=["Frieren"]), [])
        assert match.method == "none"
        assert match.identifier is None


def test_non_canonical_markers_are_whole_words() -> None:
    assert is_non_canonical(_season("kai", label="Dragon Ball Kai"), DEFAULT_CONFIG)
    assert is_non_canonical(_season("oav"), DEFAULT_CONFIG)
    assert is_non_canonical(_season("films"), DEFAULT_CONFIG)
    assert not is_non_canonical(_season("saison1", label="Jujutsu Kaisen"), DEFAULT_CONFIG)


def test_canonical_candidates_keep_everything_if_nothing_left() -> None:
    only_films = [_season("film"), _season("ova")]
    assert canonical_candidates(only_films, 24, DEFAULT_CONFIG) == only_films


class TestSplitCour:
    """Tests for split-cour detection."""

    def test_months_between(self) -> None:
        assert months_between(date(2020, 1, 1), date(2020, 7, 1)) == 6
        assert months_between(date(2020, 7, 1), date(2020, 1, 1)) == 6
        assert months_between(date(2019, 10, 1), date(2020, 1, 1)) == 3

    @pytest.mark.parametrize(
        ("source_date", "source_episodes", "season_episodes", "expected"),
        [
            (date(2020, 7, 1), 12, 24, True),
            (date(2020, 4, 1), 3, 10, True),
            (date(2020, 7, 1), 7, 10, True),
            (date(2020, 3, 1), 12, 24, False),
            (date(2020, 8, 1), 12, 24, False),
            (date(2020, 7, 1), 8, 10, False),
            (date(2020, 7, 1), 2, 10, False),
            (None, 12, 24, False),
            (date(2020, 7, 1), None, 24, False),
        ],
    )
    def test_bounds(
        self,
        source_date: date | None,
        source_episodes: int | None,
        season_episodes: int,
        expected: bool,
    ) -> None:
        """Gap of 3-6 months and ratio of 0.3-0.7, both bounds inclusive."""
        assert (
            is_split_cour(
                source_date, source_episodes, date(2020, 1, 1), season_episodes, DEFAULT_CONFIG
            )
            is expected
        )

    def test_second_cour_is_flagged(self, resolver: SeasonResolver) -> None:
        """A 12-episode source matching a part-2 entry aired six months after season 1."""
        source = SourceIdentity(titles=["Some Show"], episodes=12)
        candidates = [
            _season("saison1", 24, season_number=1, air_date=date(2020, 1, 1)),
            _season(
                "saison1-2", 12, season_number=1, part_number=2, air_date=date(2020, 7, 1)
            ),
        ]

        match = resolver.select(source, candidates)

        assert match.identifier == "saison1-2"
        assert match.split_cour is True
        assert match.split_cour_parent == "saison1"

    def test_source_start_date_is_the_reference(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Some Show"], episodes=12, start_date=date(2020, 7, 5))
        candidates = [
            _season("saison1", 24, air_date=date(2020, 1, 10)),
            _season("saison1-2", 12, air_date=date(2020, 7, 5)),
        ]

        match = resolver.select(source, candidates)

        assert match.identifier == "saison1-2"
        assert match.split_cour is True

    def test_first_entry_is_not_split_cour(self, resolver: SeasonResolver) -> None:
        source = SourceIdentity(titles=["Some Show"], episodes=24)
        candidates = [
            _season("saison1", 24, air_date=date(2020, 1, 1)),
            _season("saison2", 24, air_date=date(2020, 7, 1)),
        ]

        match = resolver.select(source, candidates)

        assert match.identifier == "saison1"
        assert match.split_cour is False
        assert match.split_cour_parent is None
