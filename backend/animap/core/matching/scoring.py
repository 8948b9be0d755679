"""Base title scoring.

Scores one source title against one candidate title (and its optional
secondary titles) on a 0-1 scale before any contextual adjustment.
"""

from __future__ import annotations

from .normalizer import edit_distance, normalize_title, string_similarity
from .variations import WordVariationExpander, get_expander

EXACT_SCORE = 1.0
NEAR_EXACT_SCORE = 0.95
SECONDARY_EXACT_SCORE = 0.98
SECONDARY_NEAR_EXACT_SCORE = 0.92

NEAR_EXACT_MAX_DISTANCE = 2
NEAR_EXACT_MIN_LENGTH = 5

WORD_WEIGHT = 0.7
SIMILARITY_WEIGHT = 0.3
PARTIAL_MATCH_WEIGHT = 0.5


def split_secondary_titles(secondary_title: str | None) -> list[str]:
    """Split a comma-separated list of alternate titles."""
    if not secondary_title:
        return []
    return [part.strip() for part in secondary_title.split(",") if part.strip()]


def _exactness(source: str, candidate: str, exact: float, near: float) -> float | None:
    if not source or not candidate:
        return None
    if source == candidate:
        return exact
    if (
        len(source) > NEAR_EXACT_MIN_LENGTH
        and edit_distance(source, candidate) <= NEAR_EXACT_MAX_DISTANCE
    ):
        return near
    return None


def word_match_score(
    source_title: str,
    candidate_title: str,
    expander: WordVariationExpander | None = None,
) -> float:
    """Fraction of source words found in the candidate.

    A word counts as a full match when its variation set intersects the
    variation set of some candidate word, and as a partial match weighted by
    ``min(len) / max(len)`` when one word contains the other.

    Args:
        source_title: Raw source title
        candidate_title: Raw candidate title
        expander: Variation expander (default English)

    Returns:
        ``(matches + 0.5 * partial_matches) / source_word_count``
    """
    if expander is None:
        expander = get_expander()

    source_words = expander.canonicalize_phrases(
        normalize_title(source_title, remove_year=True)
    ).split()
    candidate_words = expander.canonicalize_phrases(
        normalize_title(candidate_title, remove_year=True)
    ).split()
    if not source_words or not candidate_words:
        return 0.0

    candidate_variations = [(word, expander.variations_of(word)) for word in candidate_words]

    matches = 0
    partial_matches = 0.0
    for source_word in source_words:
        source_variations = expander.variations_of(source_word)
        best_partial = 0.0
        full_match = False
        for candidate_word, variations in candidate_variations:
            if source_variations & variations:
                full_match = True
                break
            if source_word in candidate_word or candidate_word in source_word:
                shorter, longer = sorted((len(source_word), len(candidate_word)))
                best_partial = max(best_partial, shorter / longer)
        if full_match:
            matches += 1
        else:
            partial_matches += best_partial

    return (matches + PARTIAL_MATCH_WEIGHT * partial_matches) / len(source_words)


def _fuzzy_score(source_title: str, candidate_title: str, expander: WordVariationExpander) -> float:
    word_score = word_match_score(source_title, candidate_title, expander)
    similarity = string_similarity(normalize_title(source_title), normalize_title(candidate_title))
    return WORD_WEIGHT * word_score + SIMILARITY_WEIGHT * similarity


def score_title(
    source_title: str,
    candidate_title: str,
    secondary_title: str | None = None,
    expander: WordVariationExpander | None = None,
) -> float:
    """Score a candidate title against a source title.

    Exact and near-exact matches on the primary title short-circuit at 1.0
    and 0.95, then on any secondary title at 0.98 and 0.92. Otherwise the
    result is ``0.7 * word_score + 0.3 * string_similarity``, taking the best
    of the primary and secondary titles.

    Args:
        source_title: Title being searched for
        candidate_title: Candidate's primary title
        secondary_title: Candidate's alternate titles, comma-separated
        expander: Variation expander (default English)

    Returns:
        Score between 0.0 and 1.0
    """
    if expander is None:
        expander = get_expander()

    normalized_source = normalize_title(source_title)
    secondaries = split_secondary_titles(secondary_title)

    primary = _exactness(
        normalized_source, normalize_title(candidate_title), EXACT_SCORE, NEAR_EXACT_SCORE
    )
    if primary is not None:
        return primary

    for secondary in secondaries:
        found = _exactness(
            normalized_source,
            normalize_title(secondary),
            SECONDARY_EXACT_SCORE,
            SECONDARY_NEAR_EXACT_SCORE,
        )
        if found is not None:
            return found

    best = _fuzzy_score(source_title, candidate_title, expander)
    for secondary in secondaries:
        best = max(best, _fuzzy_score(source_title, secondary, expander))
    return best
