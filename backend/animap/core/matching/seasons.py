"""Season/part resolution.

Given a resolved catalog record's season list, pick the entry that
corresponds to the source identity. Rules run in a fixed order and the
first one that produces a candidate wins:

1. exact_season_part - season and part both equal
2. season            - season equal, entry has no part qualifier
3. part              - part equal, source has no season number
4. title_cue         - bare "II"/"2" in a source title names the season
5. exact_episodes    - episode counts equal
6. closest_episodes  - episode counts within a small tolerance
7. fallback          - first canonical entry

Non-canonical entries (films, OVAs, "kai" re-cuts) are set aside up front
when the source is a proper series, unless nothing else is left.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

import structlog

from .config import MatchingConfig, get_matching_config
from .models import SeasonCandidate, SeasonMatch, SeasonMethod, SourceIdentity
from .normalizer import extract_season_info, sequel_cue

logger = structlog.get_logger("animap.matching.seasons")

_WORD_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class SeasonQuery:
    """What the source says about which season it is."""

    season: int | None
    part: int | None
    cue: int | None
    episodes: int | None

    @classmethod
    def from_source(cls, source: SourceIdentity) -> SeasonQuery:
        season = part = cue = None
        for title in source.titles:
            title_season, title_part = extract_season_info(title)
            if season is None:
                season = title_season
            if part is None:
                part = title_part
            if cue is None:
                cue = sequel_cue(title)
        return cls(season=season, part=part, cue=cue, episodes=source.episodes)


SeasonRule = Callable[[SeasonQuery, list[SeasonCandidate], MatchingConfig], SeasonCandidate | None]


def _first(candidates: list[SeasonCandidate], predicate) -> SeasonCandidate | None:
    return next((candidate for candidate in candidates if predicate(candidate)), None)


def match_exact_season_part(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if query.season is None or query.part is None:
        return None
    return _first(
        candidates, lambda c: c.season_number == query.season and c.part_number == query.part
    )


def match_season(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if query.season is None:
        return None
    return _first(candidates, lambda c: c.season_number == query.season and c.part_number is None)


def match_part(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if query.season is not None or query.part is None:
        return None
    return _first(candidates, lambda c: c.part_number == query.part)


def match_title_cue(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if query.cue is None:
        return None
    return _first(
        candidates, lambda c: c.season_number == query.cue and c.part_number is None
    ) or _first(candidates, lambda c: c.season_number == query.cue)


def match_exact_episodes(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if not query.episodes:
        return None
    return _first(candidates, lambda c: c.episode_count == query.episodes)


def match_closest_episodes(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    if not query.episodes:
        return None
    counted = [c for c in candidates if c.episode_count is not None]
    if not counted:
        return None
    closest = min(counted, key=lambda c: abs(c.episode_count - query.episodes))
    if abs(closest.episode_count - query.episodes) <= config.season_episode_tolerance:
        return closest
    return None


def match_fallback(
    query: SeasonQuery, candidates: list[SeasonCandidate], config: MatchingConfig
) -> SeasonCandidate | None:
    return candidates[0] if candidates else None


SEASON_RULES: list[tuple[SeasonMethod, SeasonRule]] = [
    ("exact_season_part", match_exact_season_part),
    ("season", match_season),
    ("part", match_part),
    ("title_cue", match_title_cue),
    ("exact_episodes", match_exact_episodes),
    ("closest_episodes", match_closest_episodes),
    ("fallback", match_fallback),
]


def is_non_canonical(candidate: SeasonCandidate, config: MatchingConfig) -> bool:
    words = set(_WORD_SPLIT.split(f"{candidate.identifier} {candidate.label}".lower()))
    return any(
        marker in words or f"{marker}s" in words for marker in config.non_canonical_season_markers
    )


def canonical_candidates(
    candidates: list[SeasonCandidate], episodes: int | None, config: MatchingConfig
) -> list[SeasonCandidate]:
    """Drop films/OVAs/kai entries for proper series, keeping all if none remain."""
    if not episodes or episodes <= config.season_fallback_min_episodes:
        return candidates
    filtered = [c for c in candidates if not is_non_canonical(c, config)]
    return filtered or candidates


def months_between(earlier: date, later: date) -> int:
    return abs((later.year - earlier.year) * 12 + (later.month - earlier.month))


def is_split_cour(
    source_date: date | None,
    source_episodes: int | None,
    season_date: date | None,
    season_episodes: int | None,
    config: MatchingConfig | None = None,
) -> bool:
    """Whether the source looks like the second cour of a season entry.

    True when the start dates are 3-6 months apart and the source's episode
    count is 30%-70% of the season's, bounds inclusive.

    Args:
        source_date: Start date of the source (or of its matched entry)
        source_episodes: Source episode count
        season_date: Start date of the season entry being compared
        season_episodes: Episode count of that season entry
        config: Matching configuration (if None, uses the default profile)

    Returns:
        True if the split-cour bounds are both met
    """
    if config is None:
        config = get_matching_config()

    if not (source_date and season_date and source_episodes and season_episodes):
        return False

    gap = months_between(source_date, season_date)
    if not config.split_cour_min_months <= gap <= config.split_cour_max_months:
        return False

    ratio = source_episodes / season_episodes
    return config.split_cour_min_ratio <= ratio <= config.split_cour_max_ratio


class SeasonResolver:
    """Picks a season entry for a source identity."""

    def __init__(
        self,
        config: MatchingConfig | None = None,
        rules: list[tuple[SeasonMethod, SeasonRule]] | None = None,
    ) -> None:
        self.config = config or get_matching_config()
        self.rules = rules if rules is not None else SEASON_RULES

    def select(self, source: SourceIdentity, candidates: list[SeasonCandidate]) -> SeasonMatch:
        """Select the season entry matching ``source``.

        Args:
            source: Source identity
            candidates: Season entries of the resolved record, in catalog order

        Returns:
            SeasonMatch naming the winning rule, or method "none" when the
            list is empty
        """
        if not candidates:
            return SeasonMatch(method="none")

        query = SeasonQuery.from_source(source)
        pool = canonical_candidates(candidates, query.episodes, self.config)

        for method, rule in self.rules:
            chosen = rule(query, pool, self.config)
            if chosen is None:
                continue

            parent = self._split_cour_parent(source, chosen, candidates)
            logger.debug(
                "Season selected",
                method=method,
                identifier=chosen.identifier,
                season=chosen.season_number,
                part=chosen.part_number,
                split_cour=parent is not None,
            )
            return SeasonMatch(
                identifier=chosen.identifier,
                method=method,
                label=chosen.label or None,
                season_number=chosen.season_number,
                part_number=chosen.part_number,
                split_cour=parent is not None,
                split_cour_parent=parent.identifier if parent else None,
            )

        return SeasonMatch(method="none")

    def _split_cour_parent(
        self,
        source: SourceIdentity,
        chosen: SeasonCandidate,
        candidates: list[SeasonCandidate],
    ) -> SeasonCandidate | None:
        """Find the earlier entry the chosen one continues, if any.

        The source's own start date is the reference; without one, the
        chosen entry's air date stands in for it.
        """
        reference = source.start_date or chosen.air_date
        if reference is None:
            return None

        for candidate in candidates:
            if candidate.identifier == chosen.identifier or candidate.air_date is None:
                continue
            if candidate.air_date >= reference:
                continue
            if is_split_cour(
                reference,
                source.episodes,
                candidate.air_date,
                candidate.episode_count,
                self.config,
            ):
                return candidate
        return None
