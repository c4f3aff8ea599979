"""Catalog client package — async HTTP interface to the song catalog.

WHY: Hosts build playback requests from catalog queries (all songs, a
category, a title search) and let users delete songs. The engine itself
never calls the catalog; this package is the collaborator hosts use.

HOW: Uses httpx.AsyncClient against a PostgREST-style ``songs`` table.
Rows are parsed into Song dataclasses and converted to engine Tracks.

RULES:
- All catalog HTTP calls go through CatalogClient
- Authentication is via the catalog API key from config
"""

from lyricsync.catalog.client import CatalogAPIError, CatalogClient
from lyricsync.catalog.models import CATEGORIES, Song

__all__ = ["CATEGORIES", "CatalogAPIError", "CatalogClient", "Song"]
