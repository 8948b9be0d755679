"""AniList GraphQL client with retry logic.

Fetches source identities by AniList id and searches AniList by title,
returning the engine's data model.
"""

from __future__ import annotations

import asyncio
import random
from datetime import date
from typing import Any

import httpx

from animap.core.catalogs.base import CatalogClient, CatalogError
from animap.core.config import get_settings
from animap.core.matching.models import CandidateRecord, SourceIdentity

MEDIA_FIELDS = """
    id
    title { romaji english native userPreferred }
    synonyms
    episodes
    format
    seasonYear
    startDate { year month day }
    duration
"""

MEDIA_QUERY = (
    """
query ($id: Int) {
  Media(id: $id, type: ANIME) {"""
    + MEDIA_FIELDS
    + """  }
}
"""
)

SEARCH_QUERY = (
    """
query ($search: String, $perPage: Int) {
  Page(page: 1, perPage: $perPage) {
    media(search: $search, type: ANIME) {"""
    + MEDIA_FIELDS
    + """    }
  }
}
"""
)

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
MAX_RETRY_AFTER_SECONDS = 60.0


class AniListError(CatalogError):
    """AniList request failed or returned an unusable payload."""


def _start_date(media: dict[str, Any]) -> date | None:
    start = media.get("startDate") or {}
    year = start.get("year")
    if not year:
        return None
    try:
        return date(year, start.get("month") or 1, start.get("day") or 1)
    except (TypeError, ValueError):
        return None


def _media_titles(media: dict[str, Any]) -> list[str]:
    title = media.get("title") or {}
    ordered = [
        title.get("english"),
        title.get("romaji"),
        title.get("userPreferred"),
        *(media.get("synonyms") or []),
        title.get("native"),
    ]
    return list(dict.fromkeys(t.strip() for t in ordered if isinstance(t, str) and t.strip()))


def media_to_source(media: dict[str, Any]) -> SourceIdentity:
    """Convert an AniList Media object to a SourceIdentity.

    Raises:
        AniListError: If the media has no id or no usable title
    """
    titles = _media_titles(media)
    if media.get("id") is None or not titles:
        raise AniListError("AniList media without id or title")

    start = _start_date(media)
    return SourceIdentity(
        primary_id=str(media["id"]),
        titles=titles,
        format=media.get("format"),
        episodes=media.get("episodes"),
        year=media.get("seasonYear") or (start.year if start else None),
        start_date=start,
        duration=media.get("duration"),
    )


def media_to_candidate(media: dict[str, Any]) -> CandidateRecord | None:
    """Convert an AniList Media object to a CandidateRecord (None without a title)."""
    titles = _media_titles(media)
    if not titles:
        return None

    start = _start_date(media)
    years = {year for year in (media.get("seasonYear"), start.year if start else None) if year}
    return CandidateRecord(
        title=titles[0],
        secondary_title=", ".join(titles[1:]) or None,
        foreign_id=str(media["id"]) if media.get("id") is not None else None,
        format=media.get("format"),
        episodes=media.get("episodes"),
        duration=media.get("duration"),
        years=sorted(years),
    )


class AniListClient(CatalogClient):
    """AniList GraphQL client.

    Features:
    - Fixed per-request timeout
    - Exponential backoff retry on rate limits (429), server errors and
      network errors, honouring Retry-After when AniList sends it
    - Failures surface as AniListError so callers can treat them as an
      empty search
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        search_limit: int | None = None,
        backoff_base: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize AniList client.

        Args:
            base_url: GraphQL endpoint (default from settings)
            timeout: Per-request timeout in seconds (default from settings)
            max_retries: Retries after the first attempt (default from settings)
            search_limit: Results per search page (default from settings)
            backoff_base: Seconds for the first retry wait, doubled per attempt
            transport: Optional httpx transport (used by tests)
        """
        super().__init__("anilist")
        settings = get_settings()
        self.base_url = base_url or settings.anilist_url
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.search_limit = search_limit or settings.anilist_search_limit
        self.backoff_base = backoff_base
        self._transport = transport

    def _wait_time(self, attempt: int, response: httpx.Response | None = None) -> float:
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return min(float(retry_after), MAX_RETRY_AFTER_SECONDS)
        base_wait = self.backoff_base * 2**attempt
        return base_wait + random.uniform(0, base_wait * 0.5)

    async def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query with retry.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The ``data`` object of the response

        Raises:
            AniListError: For HTTP errors (after retries), network errors
                (after retries), GraphQL errors and malformed payloads
        """
        payload = {"query": query, "variables": variables}
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.post(
                        self.base_url,
                        json=payload,
                        headers={"Accept": "application/json"},
                    )
                    response.raise_for_status()
                    body = response.json()
            except httpx.HTTPStatusError as e:
                last_error = e
                status_code = e.response.status_code
                if status_code in RETRY_STATUS_CODES and attempt < self.max_retries:
                    wait_time = self._wait_time(attempt, e.response)
                    self.logger.warning(
                        "AniList request failed, retrying",
                        status_code=status_code,
                        attempt=attempt + 1,
                        wait_seconds=round(wait_time, 2),
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise AniListError(f"AniList returned HTTP {status_code}") from e
            except httpx.RequestError as e:
                last_error = e
                if attempt < self.max_retries:
                    wait_time = self._wait_time(attempt)
                    self.logger.warning(
                        "Network error, retrying",
                        error=str(e),
                        attempt=attempt + 1,
                        wait_seconds=round(wait_time, 2),
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise AniListError(f"AniList unreachable: {e}") from e
            except ValueError as e:
                raise AniListError("AniList returned invalid JSON") from e

            if not isinstance(body, dict):
                raise AniListError("AniList returned an unexpected payload")
            if body.get("errors"):
                messages = [error.get("message", "unknown") for error in body["errors"]]
                raise AniListError(f"AniList GraphQL error: {'; '.join(messages)}")
            data = body.get("data")
            if not isinstance(data, dict):
                raise AniListError("AniList response without data")
            return data

        raise AniListError("AniList request failed") from last_error

    async def get_source_identity(self, anilist_id: int) -> SourceIdentity:
        """Fetch one anime by AniList id.

        Args:
            anilist_id: AniList media id

        Returns:
            SourceIdentity with all known titles

        Raises:
            AniListError: If the request fails or the media does not exist
        """
        data = await self._post(MEDIA_QUERY, {"id": anilist_id})
        media = data.get("Media")
        if not media:
            raise AniListError(f"AniList media {anilist_id} not found")
        self.logger.debug("Fetched AniList media", anilist_id=anilist_id)
        return media_to_source(media)

    async def search(self, query: str) -> list[CandidateRecord]:
        """Search AniList anime by title."""
        data = await self._post(SEARCH_QUERY, {"search": query, "perPage": self.search_limit})
        media_list = (data.get("Page") or {}).get("media") or []
        candidates = [
            candidate
            for candidate in (media_to_candidate(media) for media in media_list)
            if candidate is not None
        ]
        self.logger.debug("AniList search", query=query[:50], results=len(candidates))
        return candidates

    async def exists(self, identifier: str) -> bool:
        if not identifier.isdigit():
            return False
        try:
            await self.get_source_identity(int(identifier))
        except AniListError:
            return False
        return True
