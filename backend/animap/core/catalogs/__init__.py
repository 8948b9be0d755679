"""Catalog clients producing source identities and candidate records."""

from animap.core.catalogs.anilist import AniListClient, AniListError
from animap.core.catalogs.base import CatalogClient, CatalogError

__all__ = ["AniListClient", "AniListError", "CatalogClient", "CatalogError"]
