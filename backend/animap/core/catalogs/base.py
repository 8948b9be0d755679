"""Base abstract class for catalog clients."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from animap.core.matching.models import CandidateRecord, SeasonCandidate


class CatalogError(Exception):
    """A catalog could not be queried (network, HTTP status or payload error)."""


class CatalogClient(ABC):
    """Abstract base class for catalog clients.

    A client's bound methods are the collaborators the resolution engine
    consumes: ``search`` is a CatalogSearch, ``seasons`` a CatalogSeasonList
    and ``exists`` a DirectLookup.
    """

    def __init__(self, name: str) -> None:
        """Initialize catalog client.

        Args:
            name: Name of the catalog (for logging and matching profile lookup)
        """
        self.name = name
        self.logger = structlog.get_logger(f"animap.catalogs.{name.lower()}")

    @abstractmethod
    async def search(self, query: str) -> list[CandidateRecord]:
        """Search the catalog by title.

        Args:
            query: Title variant to search for

        Returns:
            Candidate records in catalog order

        Raises:
            CatalogError: If the catalog could not be queried
        """
        pass

    async def seasons(self, foreign_id: str) -> list[SeasonCandidate]:
        """List season-like sub-entries of a catalog record.

        Catalogs that do not split records by season return an empty list.
        """
        return []

    async def exists(self, identifier: str) -> bool:
        """Whether ``identifier`` names a record in this catalog.

        Catalogs without direct identifier lookups answer False.
        """
        return False
