"""Contextual match criteria.

Each function evaluates a single signal (format, episode count, years,
season number, duration) between the source and one candidate, and returns
an additive score adjustment and a reason. Keeping them separate makes it
easy to:
- Test each signal independently
- Tune weights per catalog through MatchingConfig
- Add new signals
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import MatchingConfig, get_matching_config

_PRIMARY_FORMATS = ("TV", "MOVIE")
_TV_FAMILY = ("TV", "TV_SHORT")


def _same_format(source_format: str, candidate_format: str) -> bool:
    if source_format == candidate_format:
        return True
    return source_format in _TV_FAMILY and candidate_format in _TV_FAMILY


def match_format(
    source_format: str | None,
    candidate_format: str | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate format agreement.

    Args:
        source_format: Normalized source format (TV, MOVIE, OVA, ...)
        candidate_format: Normalized candidate format
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    if not source_format or not candidate_format:
        return 0.0, "Format unknown"

    if not _same_format(source_format, candidate_format):
        return 0.0, f"Format differs: {source_format} vs {candidate_format}"

    bonus = (
        config.format_match_primary
        if source_format in _PRIMARY_FORMATS or source_format in _TV_FAMILY
        else config.format_match_secondary
    )
    return bonus, f"Format match: {candidate_format} (+{bonus})"


def match_episodes(
    source_episodes: int | None,
    candidate_episodes: int | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate episode count agreement.

    Args:
        source_episodes: Source episode count
        candidate_episodes: Candidate episode count
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    if not source_episodes or not candidate_episodes:
        return 0.0, "Episode count unknown"

    if source_episodes == candidate_episodes:
        return config.episodes_exact, f"Episode count match: {source_episodes} (+{config.episodes_exact})"

    difference = abs(source_episodes - candidate_episodes)
    if difference <= config.episodes_close_tolerance:
        return (
            config.episodes_close,
            f"Episode count close: {candidate_episodes} vs {source_episodes} (+{config.episodes_close})",
        )

    return 0.0, f"Episode count differs: {candidate_episodes} vs {source_episodes}"


def match_years(
    source_years: Iterable[int],
    candidate_years: Iterable[int],
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate year overlap.

    Args:
        source_years: Years known for the source
        candidate_years: Years extracted from the candidate
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    source = set(source_years)
    candidate = set(candidate_years)
    if not source or not candidate:
        return 0.0, "Years unknown"

    shared = source & candidate
    if shared:
        return config.years_match, f"Year match: {min(shared)} (+{config.years_match})"

    return (
        config.years_mismatch,
        f"Year mismatch: {sorted(candidate)} vs {sorted(source)} ({config.years_mismatch})",
    )


def match_season_number(
    source_season: int | None,
    candidate_season: int | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate season number agreement.

    Args:
        source_season: Season number extracted from the source title
        candidate_season: Season number extracted from the candidate title
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    if source_season is None or candidate_season is None:
        return 0.0, "Season number unknown"

    if source_season == candidate_season:
        return config.season_match, f"Season match: {source_season} (+{config.season_match})"

    return (
        config.season_mismatch,
        f"Season mismatch: {candidate_season} vs {source_season} ({config.season_mismatch})",
    )


def match_duration(
    source_format: str | None,
    source_duration: int | None,
    candidate_duration: int | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate runtime agreement for movies.

    Only movies are compared; episode runtimes of series vary too little to
    tell entries apart.

    Args:
        source_format: Normalized source format
        source_duration: Source runtime in minutes
        candidate_duration: Candidate runtime in minutes
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    if source_format != "MOVIE" or not source_duration or not candidate_duration:
        return 0.0, "Duration not compared"

    difference = abs(source_duration - candidate_duration)
    if difference <= config.movie_duration_close_minutes:
        return (
            config.movie_duration_close,
            f"Duration close: {candidate_duration}m vs {source_duration}m (+{config.movie_duration_close})",
        )
    if difference > config.movie_duration_far_minutes:
        return (
            config.movie_duration_far,
            f"Duration far: {candidate_duration}m vs {source_duration}m ({config.movie_duration_far})",
        )
    return 0.0, f"Duration differs: {candidate_duration}m vs {source_duration}m"


def match_format_conflict(
    source_format: str | None,
    source_episodes: int | None,
    candidate_format: str | None,
    candidate_episodes: int | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Penalize a movie matched to a multi-episode series or the reverse.

    Args:
        source_format: Normalized source format
        source_episodes: Source episode count
        candidate_format: Normalized candidate format
        candidate_episodes: Candidate episode count
        config: Matching configuration (if None, uses the default profile)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = get_matching_config()

    if candidate_format == "MOVIE" and source_format in _TV_FAMILY and (source_episodes or 0) > 1:
        return config.format_conflict, f"Movie candidate for TV source ({config.format_conflict})"

    if source_format == "MOVIE" and candidate_format in _TV_FAMILY:
        if candidate_episodes is None or candidate_episodes > 1:
            return config.format_conflict, f"TV candidate for movie source ({config.format_conflict})"

    return 0.0, "No format conflict"


def match_long_runner(
    source_episodes: int | None,
    candidate_episodes: int | None,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Small bonus when both sides are long-running series."""
    if config is None:
        config = get_matching_config()

    threshold = config.long_runner_episodes
    if (source_episodes or 0) > threshold and (candidate_episodes or 0) > threshold:
        return config.long_runner, f"Both long-running (+{config.long_runner})"
    return 0.0, "Not long-running"
