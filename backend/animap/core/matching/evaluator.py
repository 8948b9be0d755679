"""Candidate evaluator - combines base title score and contextual criteria.

This module turns one (query, source, candidate) triple into a single
score with a list of reasons. Single-word false-positive guards reject
substring matches up front and cap compound titles once every bonus is in.
"""

from __future__ import annotations

import structlog

from .config import MatchingConfig, get_matching_config
from .criteria import (
    match_duration,
    match_episodes,
    match_format,
    match_format_conflict,
    match_long_runner,
    match_season_number,
    match_years,
)
from .models import CandidateRecord, SourceIdentity
from .normalizer import extract_season_number, extract_years, normalize_title, title_words
from .scoring import score_title, split_secondary_titles
from .variations import WordVariationExpander, get_expander

logger = structlog.get_logger("animap.matching")

# Distance kept between a compound-title score and the acceptance threshold
COMPOUND_TITLE_GAP = 0.01


class CandidateEvaluation:
    """Result of evaluating one candidate.

    Attributes:
        candidate: The evaluated record
        score: Final score (title score plus adjustments); not clamped
        details: List of strings explaining each criterion
        rejected: Whether this candidate must not be selected
        query: Title variant the candidate was scored against
    """

    def __init__(
        self,
        candidate: CandidateRecord,
        score: float,
        details: list[str],
        rejected: bool = False,
        query: str = "",
    ):
        self.candidate = candidate
        self.score = score
        self.details = details
        self.rejected = rejected
        self.query = query

    @property
    def foreign_id(self) -> str | None:
        return self.candidate.foreign_id

    def __repr__(self) -> str:
        status = "REJECTED" if self.rejected else "ACCEPTED"
        return (
            f"CandidateEvaluation(id={self.foreign_id!r}, score={self.score:.3f}, "
            f"status={status}, details={len(self.details)})"
        )


def source_years(source: SourceIdentity, query: str | None = None) -> set[int]:
    """Years known for the source: its release year plus any in the query title."""
    years = extract_years(query)
    if source.effective_year is not None:
        years.add(source.effective_year)
    return years


def source_season(source: SourceIdentity, query: str | None = None) -> int | None:
    """Season number from the query title, else from the source's own titles."""
    season = extract_season_number(query)
    if season is not None:
        return season
    for title in source.titles:
        season = extract_season_number(title)
        if season is not None:
            return season
    return None


def candidate_years(candidate: CandidateRecord) -> set[int]:
    return set(candidate.years) | extract_years(candidate.title, candidate.secondary_title)


def _candidate_word_sets(candidate: CandidateRecord) -> list[list[str]]:
    titles = [candidate.title, *split_secondary_titles(candidate.secondary_title)]
    return [words for words in (title_words(title) for title in titles) if words]


def check_single_word_query(
    query: str,
    candidate: CandidateRecord,
    config: MatchingConfig,
) -> tuple[bool, float, str | None]:
    """Guard single-word queries against substring and sequel false positives.

    A one-word query such as "Overlord" is rejected against a multi-word
    candidate that only contains it as a substring, or that buries it among
    many other words. Candidates carrying compound sequel markers ("Wars",
    "Hunters") keep a halved score.

    Returns:
        Tuple of (rejected, multiplier, reason)
    """
    query_words = title_words(query)
    if len(query_words) != 1:
        return False, 1.0, None

    word = query_words[0]
    word_sets = _candidate_word_sets(candidate)
    if not word_sets:
        return False, 1.0, None

    if any(words == [word] for words in word_sets):
        return False, 1.0, None

    exact_sets = [words for words in word_sets if word in words]
    if not exact_sets:
        if any(word in "".join(words) for words in word_sets):
            return True, 0.0, f"Substring-only match for single word '{word}'"
        return False, 1.0, None

    shortest = min(exact_sets, key=len)
    if len(shortest) > 1 + config.single_word_max_extra_words:
        return True, 0.0, f"Single word '{word}' lost in {len(shortest)}-word title"

    markers = set(config.compound_title_markers)
    if any(markers.intersection(words) for words in exact_sets):
        return (
            False,
            config.compound_title_multiplier,
            f"Compound title for single word '{word}' (x{config.compound_title_multiplier})",
        )
    return False, 1.0, None


def apply_compound_guard(
    score: float,
    multiplier: float,
    source: SourceIdentity,
    config: MatchingConfig,
) -> float:
    """Halve a compound-title score and keep it under the acceptance threshold.

    The multiplier applies to the fully adjusted score, context bonuses
    included.
    """
    if multiplier >= 1.0:
        return score
    ceiling = config.acceptance_for(source.format) - COMPOUND_TITLE_GAP
    return min(score * multiplier, ceiling)


def evaluate_candidate(
    query: str,
    source: SourceIdentity,
    candidate: CandidateRecord,
    config: MatchingConfig | None = None,
    expander: WordVariationExpander | None = None,
) -> CandidateEvaluation:
    """Evaluate a candidate against one title variant of the source.

    Args:
        query: Title variant that was searched
        source: Source identity (format, episodes, years, duration)
        candidate: Candidate returned by the catalog
        config: Matching configuration (if None, uses the default profile)
        expander: Word variation expander (if None, uses the config's table)

    Returns:
        CandidateEvaluation with score and details
    """
    if config is None:
        config = get_matching_config()
    if expander is None:
        expander = get_expander(config.synonym_table)

    rejected, multiplier, guard_reason = check_single_word_query(query, candidate, config)
    if rejected:
        logger.debug(
            "Rejecting candidate",
            query=query,
            candidate=candidate.title,
            reason=guard_reason,
        )
        return CandidateEvaluation(candidate, -1.0, [guard_reason or "Rejected"], True, query)

    title_score = score_title(query, candidate.title, candidate.secondary_title, expander)
    score = title_score
    details = [f"Title score: {title_score:.3f}"]
    if guard_reason:
        details.append(guard_reason)

    signals = (
        match_format(source.format, candidate.format, config),
        match_episodes(source.episodes, candidate.episodes, config),
        match_years(source_years(source, query), candidate_years(candidate), config),
        match_season_number(
            source_season(source, query), extract_season_number(candidate.title), config
        ),
        match_duration(source.format, source.duration, candidate.duration, config),
        match_format_conflict(
            source.format, source.episodes, candidate.format, candidate.episodes, config
        ),
        match_long_runner(source.episodes, candidate.episodes, config),
    )
    for adjustment, reason in signals:
        if adjustment:
            score += adjustment
            details.append(reason)
    score = apply_compound_guard(score, multiplier, source, config)

    logger.debug(
        "Evaluated candidate",
        query=query,
        candidate=candidate.title,
        foreign_id=candidate.foreign_id,
        score=round(score, 3),
    )
    return CandidateEvaluation(candidate, score, details, False, query)


def evaluate_alternative_candidate(
    base_title: str,
    source: SourceIdentity,
    candidate: CandidateRecord,
    config: MatchingConfig | None = None,
    expander: WordVariationExpander | None = None,
) -> CandidateEvaluation:
    """Evaluate a candidate found by the base-title retry.

    Only positive signals count here: the base title has lost its season
    and part markers, so mismatch penalties would punish the very entries
    the retry is looking for.
    """
    if config is None:
        config = get_matching_config()
    if expander is None:
        expander = get_expander(config.synonym_table)

    rejected, multiplier, guard_reason = check_single_word_query(base_title, candidate, config)
    if rejected:
        return CandidateEvaluation(candidate, -1.0, [guard_reason or "Rejected"], True, base_title)

    score = score_title(base_title, candidate.title, candidate.secondary_title, expander)
    details = [f"Base title score: {score:.3f}"]
    if guard_reason:
        details.append(guard_reason)

    signals = (
        match_format(source.format, candidate.format, config),
        match_episodes(source.episodes, candidate.episodes, config),
        match_years(source_years(source), candidate_years(candidate), config),
        match_season_number(
            source_season(source), extract_season_number(candidate.title), config
        ),
    )
    for adjustment, reason in signals:
        if adjustment > 0:
            score += adjustment
            details.append(reason)
    score = apply_compound_guard(score, multiplier, source, config)

    return CandidateEvaluation(candidate, score, details, False, base_title)
