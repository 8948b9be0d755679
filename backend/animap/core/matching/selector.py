"""Match selector - queries a catalog per title variant and picks the winner.

Flow for one source identity against one catalog:

1. Query the catalog with each title variant in order, scoring every
   returned candidate. Stop after a variant that produced an excellent
   match.
2. If nothing made it into the pool, repeat with compact variants
   ("ReZero", text before a colon).
3. Pick a winner from the whole pool with the override rules, first rule
   to return a candidate wins.
4. If the winner is weak, retry once with the franchise base title.
5. If there is still nothing, look up direct identifiers when the catalog
   supports it.
6. Gate the result by the catalog's acceptance threshold.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from .config import MatchingConfig, get_matching_config
from .evaluator import (
    CandidateEvaluation,
    candidate_years,
    evaluate_alternative_candidate,
    evaluate_candidate,
    source_season,
    source_years,
)
from .models import CandidateRecord, MatchMethod, MatchResult, SourceIdentity
from .normalizer import extract_season_number, normalize_title
from .scoring import split_secondary_titles
from .titles import (
    alternative_base_title,
    build_compact_variants,
    build_slug_variations,
    build_title_variants,
)
from .variations import WordVariationExpander, get_expander

CatalogSearch = Callable[[str], Awaitable[list[CandidateRecord]]]
DirectLookup = Callable[[str], Awaitable[bool]]


@dataclass
class SearchState:
    """Everything collected while querying one catalog."""

    pool: dict[str, CandidateEvaluation] = field(default_factory=dict)
    tried: list[str] = field(default_factory=list)
    queries: int = 0
    failures: int = 0
    last_error: str | None = None

    @property
    def all_failed(self) -> bool:
        return self.queries > 0 and self.failures == self.queries

    @property
    def top_score(self) -> float:
        return max((entry.score for entry in self.pool.values()), default=0.0)

    def add(self, evaluation: CandidateEvaluation) -> None:
        """Add to the pool, keeping the best score per identifier and first-seen order."""
        foreign_id = evaluation.foreign_id
        if foreign_id is None:
            return
        existing = self.pool.get(foreign_id)
        if existing is None or evaluation.score > existing.score:
            self.pool[foreign_id] = evaluation


@dataclass(frozen=True)
class SelectionContext:
    """Source facts the override rules compare candidates against."""

    source: SourceIdentity
    tried: frozenset[str]
    years: frozenset[int]
    season: int | None
    top_score: float
    config: MatchingConfig


OverrideRule = Callable[[list[CandidateEvaluation], SelectionContext], CandidateEvaluation | None]


def pick_exact_title(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    """Highest scorer whose title equals a tried variant after normalization."""
    exact = []
    for entry in pool:
        titles = [entry.candidate.title, *split_secondary_titles(entry.candidate.secondary_title)]
        if any(normalize_title(title) in context.tried for title in titles):
            exact.append(entry)
    if not exact:
        return None
    return max(exact, key=lambda entry: entry.score)


def pick_exact_episode_format(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    source = context.source
    if not source.episodes or not source.format:
        return None
    for entry in pool:
        if entry.candidate.episodes == source.episodes and entry.candidate.format == source.format:
            return entry
    return None


def pick_year(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    if not context.years:
        return None
    for entry in pool:
        if context.years & candidate_years(entry.candidate):
            return entry
    return None


def pick_season_number(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    if context.season is None:
        return None
    for entry in pool:
        if extract_season_number(entry.candidate.title) == context.season:
            return entry
    return None


def pick_format_priority(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    """Best TV candidate within the margin of the top score, for TV sources."""
    if context.source.format != "TV":
        return None
    margin = context.config.format_priority_margin
    close = [
        entry
        for entry in pool
        if entry.candidate.format == "TV" and entry.score >= context.top_score - margin
    ]
    if not close:
        return None
    return max(close, key=lambda entry: entry.score)


def pick_highest_score(
    pool: list[CandidateEvaluation], context: SelectionContext
) -> CandidateEvaluation | None:
    if not pool:
        return None
    return max(pool, key=lambda entry: entry.score)


OVERRIDE_RULES: list[tuple[MatchMethod, OverrideRule]] = [
    ("exact_title", pick_exact_title),
    ("exact_episode_format", pick_exact_episode_format),
    ("year", pick_year),
    ("season_number", pick_season_number),
    ("format_priority", pick_format_priority),
    ("highest_score", pick_highest_score),
]


class MatchSelector:
    """Resolves a source identity against one catalog."""

    def __init__(
        self,
        config: MatchingConfig | None = None,
        expander: WordVariationExpander | None = None,
        rules: list[tuple[MatchMethod, OverrideRule]] | None = None,
    ) -> None:
        self.config = config or get_matching_config()
        self.expander = expander or get_expander(self.config.synonym_table)
        self.rules = rules if rules is not None else OVERRIDE_RULES
        self.logger = structlog.get_logger(f"animap.matching.selector.{self.config.name}")

    async def _query(
        self, search: CatalogSearch, variant: str, state: SearchState
    ) -> list[CandidateRecord]:
        """Run one catalog query, turning collaborator failures into an empty result."""
        state.queries += 1
        try:
            records = await search(variant)
        except Exception as e:
            state.failures += 1
            state.last_error = str(e) or type(e).__name__
            self.logger.warning(
                "Catalog query failed",
                query=variant,
                error=state.last_error,
                error_type=type(e).__name__,
            )
            return []

        usable = [record for record in records or [] if record.foreign_id]
        if len(usable) != len(records or []):
            self.logger.debug(
                "Dropped candidates without identifier",
                query=variant,
                dropped=len(records) - len(usable),
            )
        return usable

    async def _search_variants(
        self,
        source: SourceIdentity,
        variants: list[str],
        search: CatalogSearch,
        state: SearchState,
    ) -> None:
        for variant in variants:
            state.tried.append(variant)
            records = await self._query(search, variant, state)

            best_here = 0.0
            for record in records:
                evaluation = evaluate_candidate(
                    variant, source, record, self.config, self.expander
                )
                if evaluation.rejected or evaluation.score <= self.config.pool_minimum:
                    continue
                state.add(evaluation)
                best_here = max(best_here, evaluation.score)

            self.logger.debug(
                "Variant searched",
                query=variant,
                candidates=len(records),
                best_score=round(best_here, 3),
                pool_size=len(state.pool),
            )

            if best_here > self.config.excellent_match:
                self.logger.debug("Excellent match, stopping early", query=variant)
                break

    def choose(
        self, source: SourceIdentity, state: SearchState
    ) -> tuple[CandidateEvaluation, MatchMethod] | None:
        """Apply the override rules to the pool, first rule to pick a candidate wins.

        Rules see the pool highest score first; ties keep catalog order.
        """
        pool = sorted(state.pool.values(), key=lambda entry: entry.score, reverse=True)
        if not pool:
            return None

        tried_titles = state.tried or [source.primary_title]
        context = SelectionContext(
            source=source,
            tried=frozenset(normalize_title(title) for title in tried_titles),
            years=frozenset(source_years(source, source.primary_title)),
            season=source_season(source, source.primary_title),
            top_score=state.top_score,
            config=self.config,
        )
        for method, rule in self.rules:
            chosen = rule(pool, context)
            if chosen is not None:
                return chosen, method
        return None

    async def _search_alternative(
        self,
        source: SourceIdentity,
        search: CatalogSearch,
        state: SearchState,
    ) -> CandidateEvaluation | None:
        base_title = alternative_base_title(source, self.config)
        if base_title is None or normalize_title(base_title) in {
            normalize_title(title) for title in state.tried
        }:
            return None

        state.tried.append(base_title)
        records = await self._query(search, base_title, state)
        best: CandidateEvaluation | None = None
        for record in records:
            evaluation = evaluate_alternative_candidate(
                base_title, source, record, self.config, self.expander
            )
            if evaluation.rejected:
                continue
            if best is None or evaluation.score > best.score:
                best = evaluation

        self.logger.debug(
            "Base title searched",
            query=base_title,
            candidates=len(records),
            best_score=round(best.score, 3) if best else None,
        )
        return best

    async def _lookup_direct(
        self, source: SourceIdentity, direct_lookup: DirectLookup
    ) -> str | None:
        for slug in build_slug_variations(source):
            try:
                if await direct_lookup(slug):
                    return slug
            except Exception as e:
                self.logger.warning("Direct lookup failed", slug=slug, error=str(e))
        return None

    async def select(
        self,
        source: SourceIdentity,
        search: CatalogSearch,
        direct_lookup: DirectLookup | None = None,
    ) -> MatchResult:
        """Resolve ``source`` against the catalog behind ``search``.

        Args:
            source: Source identity
            search: Catalog search collaborator
            direct_lookup: Optional collaborator that tells whether an
                identifier exists in the catalog

        Returns:
            MatchResult; method "none" when nothing acceptable was found and
            "error" when every catalog query failed
        """
        state = SearchState()

        await self._search_variants(source, build_title_variants(source), search, state)

        if not state.pool:
            compact = build_compact_variants(source.titles, state.tried, self.config)
            if compact:
                self.logger.debug("Trying compact variants", variants=compact)
                await self._search_variants(source, compact, search, state)

        best: CandidateEvaluation | None = None
        method: MatchMethod = "none"
        chosen = self.choose(source, state)
        if chosen is not None:
            best, method = chosen

        best_score = best.score if best else 0.0
        if best_score < self.config.alternative_trigger:
            alternative = await self._search_alternative(source, search, state)
            if (
                alternative is not None
                and alternative.score > self.config.alternative_acceptance
                and alternative.score > best_score
            ):
                best, method = alternative, "alternative"

        if best is None and direct_lookup is not None:
            slug = await self._lookup_direct(source, direct_lookup)
            if slug is not None:
                self.logger.info("Matched by direct identifier", foreign_id=slug)
                return MatchResult(
                    score=self.config.direct_fallback_score,
                    foreign_id=slug,
                    method="direct_fallback",
                    query=slug,
                )

        if best is None:
            if state.all_failed:
                self.logger.warning(
                    "All catalog queries failed", queries=state.queries, error=state.last_error
                )
                return MatchResult.failed(state.last_error or "catalog unavailable")
            self.logger.info("No match found", title=source.primary_title, queries=state.queries)
            return MatchResult.not_found()

        threshold = self.config.acceptance_for(source.format)
        if best.score < threshold:
            self.logger.info(
                "Best match below acceptance threshold",
                title=source.primary_title,
                candidate=best.candidate.title,
                score=round(best.score, 3),
                threshold=threshold,
            )
            return MatchResult.not_found()

        self.logger.info(
            "Match selected",
            title=source.primary_title,
            candidate=best.candidate.title,
            foreign_id=best.foreign_id,
            method=method,
            score=round(best.score, 3),
        )
        return MatchResult(
            score=best.score,
            foreign_id=best.foreign_id,
            method=method,
            matched_title=best.candidate.title,
            query=best.query,
            details=best.details,
        )
