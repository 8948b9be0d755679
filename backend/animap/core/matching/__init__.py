"""Cross-catalog identity matching.

One generic engine (normalizer, variation expander, scorer, season resolver
and selector) parameterized per catalog by a MatchingConfig profile and a
synonym table.
"""

from .config import (
    CATALOG_PROFILES,
    DEFAULT_CONFIG,
    MatchingConfig,
    get_matching_config,
    reload_matching_config,
)
from .evaluator import CandidateEvaluation, evaluate_candidate
from .models import (
    CandidateRecord,
    MatchMethod,
    MatchResult,
    SeasonCandidate,
    SeasonMatch,
    SeasonMethod,
    SourceIdentity,
)
from .normalizer import normalize_title
from .scoring import score_title
from .seasons import SeasonResolver, is_split_cour
from .selector import CatalogSearch, DirectLookup, MatchSelector
from .variations import (
    ENGLISH_SYNONYMS,
    FRENCH_SYNONYMS,
    SynonymTable,
    WordVariationExpander,
    get_expander,
)

__all__ = [
    "CATALOG_PROFILES",
    "DEFAULT_CONFIG",
    "MatchingConfig",
    "get_matching_config",
    "reload_matching_config",
    "CandidateEvaluation",
    "evaluate_candidate",
    "CandidateRecord",
    "MatchMethod",
    "MatchResult",
    "SeasonCandidate",
    "SeasonMatch",
    "SeasonMethod",
    "SourceIdentity",
    "normalize_title",
    "score_title",
    "SeasonResolver",
    "is_split_cour",
    "CatalogSearch",
    "DirectLookup",
    "MatchSelector",
    "ENGLISH_SYNONYMS",
    "FRENCH_SYNONYMS",
    "SynonymTable",
    "WordVariationExpander",
    "get_expander",
]
