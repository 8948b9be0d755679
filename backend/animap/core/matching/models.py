"""Data models for identity resolution."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .normalizer import extract_season_info, normalize_format, parse_duration, parse_season_slug

MatchMethod = Literal[
    "none",
    "exact_title",
    "exact_episode_format",
    "year",
    "season_number",
    "format_priority",
    "highest_score",
    "alternative",
    "direct_fallback",
    "error",
]

SeasonMethod = Literal[
    "none",
    "exact_season_part",
    "season",
    "part",
    "title_cue",
    "exact_episodes",
    "closest_episodes",
    "fallback",
    "error",
]

_UNMATCHED = ("none", "error")


class SourceIdentity(BaseModel):
    """An anime as known in the originating catalog."""

    model_config = ConfigDict(frozen=True)

    primary_id: str = Field(default="", description="Identifier in the source catalog (cache key)")
    titles: list[str] = Field(
        ..., min_length=1, description="Primary title first, then romanized/alternate titles"
    )
    format: str | None = Field(default=None, description="TV, MOVIE, OVA, SPECIAL, ONA, ...")
    episodes: int | None = Field(default=None, ge=0, description="Total episode count")
    year: int | None = Field(default=None, description="Release year")
    start_date: date | None = Field(default=None, description="First air date")
    duration: int | None = Field(default=None, description="Per-episode duration in minutes")

    @field_validator("titles")
    @classmethod
    def _clean_titles(cls, value: list[str]) -> list[str]:
        cleaned = list(dict.fromkeys(title.strip() for title in value if title and title.strip()))
        if not cleaned:
            raise ValueError("at least one non-blank title is required")
        return cleaned

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: str | None) -> str | None:
        return normalize_format(value)

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: int | str | None) -> int | None:
        return parse_duration(value)

    @property
    def primary_title(self) -> str:
        return self.titles[0]

    @property
    def effective_year(self) -> int | None:
        if self.year is not None:
            return self.year
        return self.start_date.year if self.start_date else None


class CandidateRecord(BaseModel):
    """One entry returned by a target catalog's search."""

    title: str = Field(..., description="Candidate's display title")
    secondary_title: str | None = Field(
        default=None, description="Native/alternate titles, comma-separated"
    )
    foreign_id: str | None = Field(
        default=None, description="Opaque identifier in the target catalog"
    )
    format: str | None = Field(default=None, description="Format tag as reported by the catalog")
    episodes: int | None = Field(default=None, ge=0, description="Episode count")
    duration: int | None = Field(default=None, description="Per-episode duration in minutes")
    years: list[int] = Field(default_factory=list, description="Years extracted from the listing")

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: str | None) -> str | None:
        return normalize_format(value)

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: int | str | None) -> int | None:
        return parse_duration(value)

    @field_validator("foreign_id", mode="before")
    @classmethod
    def _blank_id_is_missing(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class MatchResult(BaseModel):
    """Outcome of resolving a source identity against one catalog.

    ``foreign_id`` is present exactly when ``method`` names a rule that
    picked a candidate (anything other than ``none`` or ``error``).
    """

    score: float = Field(default=0.0, description="Confidence, clamped to [0, 1]")
    foreign_id: str | None = Field(
        default=None, description="Matched identifier in the target catalog"
    )
    method: MatchMethod = Field(default="none", description="Rule that produced this match")
    matched_title: str | None = Field(default=None, description="Title of the winning candidate")
    query: str | None = Field(default=None, description="Title variant that found the winner")
    details: list[str] = Field(default_factory=list, description="Scoring reasons, for debugging")

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return max(0.0, min(1.0, value))

    @model_validator(mode="after")
    def _check_identifier(self) -> MatchResult:
        if self.method in _UNMATCHED and self.foreign_id is not None:
            raise ValueError(f"method '{self.method}' cannot carry a foreign_id")
        if self.method not in _UNMATCHED and not self.foreign_id:
            raise ValueError(f"method '{self.method}' requires a foreign_id")
        return self

    @classmethod
    def not_found(cls) -> MatchResult:
        return cls(score=0.0, method="none")

    @classmethod
    def failed(cls, reason: str) -> MatchResult:
        return cls(score=0.0, method="error", details=[reason])

    @property
    def matched(self) -> bool:
        return self.foreign_id is not None


class SeasonCandidate(BaseModel):
    """A season-like sub-entry of an already resolved catalog record.

    Season and part numbers default to what can be parsed from the
    identifier, then from the label.
    """

    label: str = Field(default="", description="Display label, e.g. 'Saison 2 Partie 1'")
    identifier: str = Field(..., description="Season slug or identifier, e.g. 'saison2-1'")
    language: str = Field(default="", description="Language or track variant, e.g. 'vostfr'")
    episode_count: int | None = Field(default=None, ge=0, description="Episodes in this entry")
    season_number: int | None = Field(default=None, description="Parsed season number")
    part_number: int | None = Field(default=None, description="Parsed part/cour number")
    air_date: date | None = Field(default=None, description="First air date of this entry")

    @model_validator(mode="after")
    def _fill_numbers(self) -> SeasonCandidate:
        if self.season_number is not None and self.part_number is not None:
            return self
        for parsed in (parse_season_slug(self.identifier), extract_season_info(self.label)):
            season, part = parsed
            if self.season_number is None and season is not None:
                self.season_number = season
            if self.part_number is None and part is not None:
                self.part_number = part
        return self


class SeasonMatch(BaseModel):
    """The chosen season entry and why it was chosen."""

    identifier: str | None = Field(default=None, description="Selected SeasonCandidate identifier")
    method: SeasonMethod = Field(default="none", description="Rule that produced this match")
    label: str | None = Field(default=None, description="Selected entry's label")
    season_number: int | None = Field(default=None, description="Selected entry's season number")
    part_number: int | None = Field(default=None, description="Selected entry's part number")
    split_cour: bool = Field(
        default=False, description="Selected entry continues a split-cour season"
    )
    split_cour_parent: str | None = Field(
        default=None, description="Identifier of the first-cour entry when split_cour is set"
    )

    @model_validator(mode="after")
    def _check_identifier(self) -> SeasonMatch:
        if self.method in _UNMATCHED and self.identifier is not None:
            raise ValueError(f"method '{self.method}' cannot carry an identifier")
        if self.method not in _UNMATCHED and not self.identifier:
            raise ValueError(f"method '{self.method}' requires an identifier")
        return self
