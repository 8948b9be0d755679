"""Resolution engine - the library boundary.

Two entry points for catalog integrations:

- ``resolve_identity(source, catalog)``: find ``source`` in another catalog
- ``resolve_season(foreign_id, source, season_catalog)``: pick the season
  entry of an already resolved record

Both always return a result with a defined method; collaborator failures
never escape. Results are cached per ``(primary_id, search string)`` in an
injected ResolutionCache.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping

import structlog
from structlog.contextvars import bound_contextvars

from animap.core import metrics
from animap.core.cache import ResolutionCache
from animap.core.config import get_settings
from animap.core.matching.config import MatchingConfig, get_matching_config
from animap.core.matching.models import MatchResult, SeasonCandidate, SeasonMatch, SourceIdentity
from animap.core.matching.normalizer import normalize_title
from animap.core.matching.seasons import SeasonResolver
from animap.core.matching.selector import CatalogSearch, DirectLookup, MatchSelector

logger = structlog.get_logger("animap.engine")

CatalogSeasonList = Callable[[str], Awaitable[list[SeasonCandidate]]]


class ResolutionEngine:
    """Runs identity and season resolution with caching and metrics."""

    def __init__(self, cache: ResolutionCache | None = None) -> None:
        """Initialize engine.

        Args:
            cache: Result cache shared by all resolutions through this
                engine; None disables caching
        """
        self.cache = cache

    def _cache_get(self, key: tuple[str, str] | None) -> MatchResult | SeasonMatch | None:
        if self.cache is None or key is None:
            return None
        cached = self.cache.get(key)
        event = "miss" if cached is None else "hit"
        metrics.resolution_cache_events_total.labels(event=event).inc()
        return cached

    def _cache_set(self, key: tuple[str, str] | None, value: MatchResult | SeasonMatch) -> None:
        # Failures are transient; only definite answers are cached
        if self.cache is None or key is None or value.method == "error":
            return
        self.cache.set(key, value)

    @staticmethod
    def _resolve_config(
        catalog_name: str, config: MatchingConfig | None
    ) -> tuple[MatchingConfig, bool]:
        """Config to resolve with, and whether its results may share the profile's cache."""
        profile = get_matching_config(catalog_name)
        if config is None:
            return profile, True
        return config, config == profile

    @staticmethod
    def identity_cache_key(source: SourceIdentity, catalog_name: str) -> tuple[str, str] | None:
        if not source.primary_id:
            return None
        return source.primary_id, f"{catalog_name}:identity:{normalize_title(source.primary_title)}"

    @staticmethod
    def season_cache_key(
        source: SourceIdentity, catalog_name: str, foreign_id: str
    ) -> tuple[str, str] | None:
        if not source.primary_id:
            return None
        return source.primary_id, f"{catalog_name}:season:{foreign_id}"

    async def resolve_identity(
        self,
        source: SourceIdentity,
        catalog: CatalogSearch,
        *,
        catalog_name: str = "default",
        config: MatchingConfig | None = None,
        direct_lookup: DirectLookup | None = None,
    ) -> MatchResult:
        """Find ``source`` in the catalog behind ``catalog``.

        Args:
            source: Source identity
            catalog: Search collaborator for the target catalog
            catalog_name: Matching profile and cache namespace
            config: Explicit matching configuration (overrides the profile;
                results are not cached unless it equals the profile)
            direct_lookup: Optional identifier-existence collaborator

        Returns:
            MatchResult with a defined method
        """
        config, cacheable = self._resolve_config(catalog_name, config)
        key = self.identity_cache_key(source, catalog_name) if cacheable else None

        with bound_contextvars(
            resolution_id=uuid.uuid4().hex, catalog=catalog_name, source_id=source.primary_id
        ):
            cached = self._cache_get(key)
            if isinstance(cached, MatchResult):
                logger.debug("Resolution cache hit", method=cached.method)
                return cached

            started = time.perf_counter()
            result = await MatchSelector(config).select(source, catalog, direct_lookup)
            elapsed = time.perf_counter() - started

            metrics.resolution_duration_seconds.labels(catalog=catalog_name).observe(elapsed)
            metrics.resolutions_total.labels(catalog=catalog_name, method=result.method).inc()
            if result.method == "error":
                metrics.catalog_query_failures_total.labels(catalog=catalog_name).inc()

            logger.info(
                "Identity resolved",
                title=source.primary_title,
                method=result.method,
                foreign_id=result.foreign_id,
                score=round(result.score, 3),
                duration_ms=round(elapsed * 1000, 1),
            )
            self._cache_set(key, result)
            return result

    async def resolve_season(
        self,
        foreign_id: str,
        source: SourceIdentity,
        season_catalog: CatalogSeasonList,
        *,
        catalog_name: str = "default",
        config: MatchingConfig | None = None,
    ) -> SeasonMatch:
        """Pick the season entry of ``foreign_id`` that corresponds to ``source``.

        Args:
            foreign_id: Identifier of the already resolved record
            source: Source identity
            season_catalog: Collaborator listing the record's season entries
            catalog_name: Matching profile and cache namespace
            config: Explicit matching configuration (overrides the profile;
                results are not cached unless it equals the profile)

        Returns:
            SeasonMatch with a defined method
        """
        config, cacheable = self._resolve_config(catalog_name, config)
        key = self.season_cache_key(source, catalog_name, foreign_id) if cacheable else None

        with bound_contextvars(
            resolution_id=uuid.uuid4().hex, catalog=catalog_name, foreign_id=foreign_id
        ):
            cached = self._cache_get(key)
            if isinstance(cached, SeasonMatch):
                logger.debug("Season cache hit", method=cached.method)
                return cached

            try:
                candidates = await season_catalog(foreign_id)
            except Exception as e:
                logger.warning(
                    "Season listing failed", error=str(e), error_type=type(e).__name__
                )
                metrics.season_resolutions_total.labels(catalog=catalog_name, method="error").inc()
                return SeasonMatch(method="error")

            match = SeasonResolver(config).select(source, list(candidates or []))
            metrics.season_resolutions_total.labels(catalog=catalog_name, method=match.method).inc()
            logger.info(
                "Season resolved",
                title=source.primary_title,
                method=match.method,
                identifier=match.identifier,
                split_cour=match.split_cour,
                candidates=len(candidates or []),
            )
            self._cache_set(key, match)
            return match

    async def resolve_across_catalogs(
        self,
        source: SourceIdentity,
        catalogs: Mapping[str, CatalogSearch],
    ) -> dict[str, MatchResult]:
        """Resolve one source against several catalogs concurrently.

        Args:
            source: Source identity
            catalogs: Search collaborator per catalog name (also the profile name)

        Returns:
            MatchResult per catalog name; a catalog whose resolution raised
            gets an "error" result without affecting the others
        """
        names = list(catalogs)
        outcomes = await asyncio.gather(
            *(
                self.resolve_identity(source, catalogs[name], catalog_name=name)
                for name in names
            ),
            return_exceptions=True,
        )

        results: dict[str, MatchResult] = {}
        for name, outcome in zip(names, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Resolution failed",
                    catalog=name,
                    title=source.primary_title,
                    exc_info=(type(outcome), outcome, outcome.__traceback__),
                )
                results[name] = MatchResult.failed(str(outcome) or type(outcome).__name__)
            else:
                results[name] = outcome
        return results


# Global engine instance (will be initialized on first use)
_engine: ResolutionEngine | None = None


def get_engine() -> ResolutionEngine:
    """Get the shared engine, with a cache sized from settings."""
    global _engine
    if _engine is None:
        settings = get_settings()
        cache: ResolutionCache | None = None
        if settings.resolution_cache_ttl > 0:
            cache = ResolutionCache(
                ttl_seconds=settings.resolution_cache_ttl,
                max_entries=settings.resolution_cache_max_entries,
            )
        _engine = ResolutionEngine(cache)
    return _engine


def reset_engine() -> None:
    """Drop the shared engine (and its cache); the next call builds a new one."""
    global _engine
    _engine = None


async def resolve_identity(
    source: SourceIdentity,
    catalog: CatalogSearch,
    **kwargs,
) -> MatchResult:
    """Resolve ``source`` with the shared engine. See ResolutionEngine.resolve_identity."""
    return await get_engine().resolve_identity(source, catalog, **kwargs)


async def resolve_season(
    foreign_id: str,
    source: SourceIdentity,
    season_catalog: CatalogSeasonList,
    **kwargs,
) -> SeasonMatch:
    """Resolve a season with the shared engine. See ResolutionEngine.resolve_season."""
    return await get_engine().resolve_season(foreign_id, source, season_catalog, **kwargs)
