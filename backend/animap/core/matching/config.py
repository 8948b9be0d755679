"""Matching configuration - scoring weights, thresholds and catalog profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace

import structlog

logger = structlog.get_logger("animap.matching.config")


@dataclass(frozen=True)
class MatchingConfig:
    """Weight table and thresholds for one catalog.

    Every catalog integration runs the same engine; only these numbers and
    the synonym table differ between them.
    """

    name: str = "default"
    synonym_table: str = "english"

    # Contextual adjustments
    format_match_primary: float = 0.15  # TV/TV, MOVIE/MOVIE
    format_match_secondary: float = 0.10  # OVA/OVA, SPECIAL/SPECIAL, ...
    episodes_exact: float = 0.20
    episodes_close: float = 0.10
    episodes_close_tolerance: int = 2
    years_match: float = 0.25
    years_mismatch: float = -0.30
    season_match: float = 0.20
    season_mismatch: float = -0.40
    movie_duration_close: float = 0.20
    movie_duration_close_minutes: int = 10
    movie_duration_far: float = -0.15
    movie_duration_far_minutes: int = 30
    format_conflict: float = -0.30
    long_runner: float = 0.10
    long_runner_episodes: int = 24

    # False-positive guards for single-word queries
    compound_title_multiplier: float = 0.5
    compound_title_markers: tuple[str, ...] = ("strike", "wars", "hunters", "slayer", "quest")
    single_word_max_extra_words: int = 2

    # Selection
    excellent_match: float = 0.90
    pool_minimum: float = 0.50
    format_priority_margin: float = 0.20
    acceptance_threshold: float = 0.40
    niche_acceptance_threshold: float = 0.40
    niche_formats: tuple[str, ...] = ("OVA", "SPECIAL", "ONA")

    # Base-title retry
    alternative_trigger: float = 0.60
    alternative_acceptance: float = 0.50
    alternative_min_length: int = 3

    # Direct identifier probing
    direct_fallback_score: float = 0.85
    compact_variant_min_length: int = 3

    # Season resolution
    season_episode_tolerance: int = 3
    season_fallback_min_episodes: int = 5
    non_canonical_season_markers: tuple[str, ...] = ("film", "movie", "oav", "ova", "kai")
    split_cour_min_months: int = 3
    split_cour_max_months: int = 6
    split_cour_min_ratio: float = 0.3
    split_cour_max_ratio: float = 0.7

    def acceptance_for(self, source_format: str | None) -> float:
        """Acceptance threshold for a source of the given format."""
        if source_format in self.niche_formats:
            return self.niche_acceptance_threshold
        return self.acceptance_threshold


DEFAULT_CONFIG = MatchingConfig()

CATALOG_PROFILES: dict[str, MatchingConfig] = {
    "default": DEFAULT_CONFIG,
    "hianime": replace(DEFAULT_CONFIG, name="hianime"),
    "animesama": replace(
        DEFAULT_CONFIG,
        name="animesama",
        synonym_table="french",
        excellent_match=0.85,
        pool_minimum=0.0,
        acceptance_threshold=0.30,
        niche_acceptance_threshold=0.20,
    ),
    "animepahe": replace(DEFAULT_CONFIG, name="animepahe", niche_acceptance_threshold=0.30),
    "animekai": replace(DEFAULT_CONFIG, name="animekai", niche_acceptance_threshold=0.30),
    "mal": replace(DEFAULT_CONFIG, name="mal", acceptance_threshold=0.50),
    "tmdb": replace(DEFAULT_CONFIG, name="tmdb", acceptance_threshold=0.50),
}

# Cached profiles (loaded from settings file)
_cached_profiles: dict[str, MatchingConfig] | None = None

_FIELD_NAMES = {f.name for f in fields(MatchingConfig)}


def _apply_overrides(base: MatchingConfig, overrides: dict[str, object]) -> MatchingConfig:
    known = {}
    for key, value in overrides.items():
        if key not in _FIELD_NAMES or key == "name":
            logger.warning("Ignoring unknown matching setting", profile=base.name, key=key)
            continue
        if isinstance(value, list):
            value = tuple(value)
        known[key] = value
    return replace(base, **known)


def _load_profiles() -> dict[str, MatchingConfig]:
    from animap.core.config import get_settings

    profiles = dict(CATALOG_PROFILES)
    settings_file = get_settings().config_dir / "settings.json"
    if not settings_file.exists():
        return profiles

    try:
        with settings_file.open("r") as f:
            matching_settings = json.load(f).get("matching") or {}
    except (OSError, ValueError) as e:
        logger.warning(
            "Failed to read matching settings, using defaults",
            path=str(settings_file),
            error=str(e),
        )
        return profiles

    for profile_name, overrides in matching_settings.items():
        if not isinstance(overrides, dict):
            continue
        base = profiles.get(profile_name) or replace(DEFAULT_CONFIG, name=profile_name)
        try:
            profiles[profile_name] = _apply_overrides(base, overrides)
        except TypeError as e:
            logger.warning("Invalid matching profile", profile=profile_name, error=str(e))

    return profiles


def get_matching_config(catalog: str = "default") -> MatchingConfig:
    """Get the matching configuration for a catalog.

    Profiles from settings.json (``{"matching": {"<catalog>": {...}}}``)
    override the built-in ones. Unknown catalogs get the default profile
    under their own name.

    Args:
        catalog: Catalog profile name

    Returns:
        MatchingConfig for that catalog
    """
    global _cached_profiles

    if _cached_profiles is None:
        _cached_profiles = _load_profiles()

    config = _cached_profiles.get(catalog)
    if config is None:
        config = _cached_profiles.get("default", DEFAULT_CONFIG)
        if config.name != catalog:
            config = replace(config, name=catalog)
    return config


def reload_matching_config() -> None:
    """Reload matching profiles from the settings file.

    Call this after updating settings to ensure new values are used.
    """
    global _cached_profiles
    _cached_profiles = None
    get_matching_config()

