"""Cross-catalog anime identity resolution."""

from animap.core.engine import ResolutionEngine, resolve_identity, resolve_season
from animap.core.logging import configure_logging
from animap.core.matching.models import (
    CandidateRecord,
    MatchResult,
    SeasonCandidate,
    SeasonMatch,
    SourceIdentity,
)

__version__ = "0.1.0"

__all__ = [
    "CandidateRecord",
    "MatchResult",
    "ResolutionEngine",
    "SeasonCandidate",
    "SeasonMatch",
    "SourceIdentity",
    "configure_logging",
    "resolve_identity",
    "resolve_season",
]
