"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Iterable

import pytest

from animap.core import engine
from animap.core.config import get_settings
from animap.core.matching import config as matching_config
from animap.core.matching.models import CandidateRecord, SourceIdentity


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary data directory for every test.

    Settings, matching profiles and the shared engine are all cached at
    module level, so they are dropped before and after each test.
    """
    monkeypatch.setenv("ANIMAP_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    matching_config._cached_profiles = None
    engine.reset_engine()

    yield tmp_path

    get_settings.cache_clear()
    matching_config._cached_profiles = None
    engine.reset_engine()


class FakeCatalog:
    """In-memory catalog search collaborator.

    Records every query. ``results`` maps a query to its candidates; queries
    not in the map get ``default``. Queries in ``failing`` raise.
    """

    def __init__(
        self,
        results: dict[str, list[CandidateRecord]] | None = None,
        default: list[CandidateRecord] | None = None,
        failing: Iterable[str] = (),
        fail_all: bool = False,
    ) -> None:
        self.results = results or {}
        self.default = default or []
        self.failing = set(failing)
        self.fail_all = fail_all
        self.calls: list[str] = []

    async def __call__(self, query: str) -> list[CandidateRecord]:
        self.calls.append(query)
        if self.fail_all or query in self.failing:
            raise ConnectionError(f"catalog unavailable for {query!r}")
        return list(self.results.get(query, self.default))


@pytest.fixture
def make_catalog():
    return FakeCatalog


@pytest.fixture
def rezero_source() -> SourceIdentity:
    return SourceIdentity(
        primary_id="108632",
        titles=[
            "Re:ZERO -Starting Life in Another World- 2nd Season",
            "Re:Zero kara Hajimeru Isekai Seikatsu 2nd Season",
        ],
        format="TV",
        episodes=25,
        year=2020,
    )


@pytest.fixture
def rezero_candidates() -> list[CandidateRecord]:
    return [
        CandidateRecord(title="Re:Zero Season 1", foreign_id="rezero-1", episodes=25, years=[2016]),
        CandidateRecord(title="Re:Zero Season 2", foreign_id="rezero-2", episodes=25, years=[2020]),
    ]
