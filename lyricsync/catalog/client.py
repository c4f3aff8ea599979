"""Async HTTP client for the song catalog (PostgREST-style REST API).

WHY: Playback requests are built from catalog queries — play everything,
play one category, play what matches a title search — and the library
view deletes songs. Wrapping those calls in one client keeps HTTP details
out of hosts and tests.

HOW: Uses httpx.AsyncClient. CatalogClient is an async context manager:
enter it to get an authenticated connection pool, exit to close it.
fetch_tracks() issues a filtered, newest-first GET on the songs table and
converts rows to Tracks; delete_track() issues a filtered DELETE.

RULES:
- Always use the async context manager (async with CatalogClient() as c:)
- api_key defaults to load_catalog_key() from .env
- Rows come back newest first (order=created_at.desc)
- category "all" means no category filter; blank search means no title filter
- fetch_tracks raises CatalogAPIError on non-2xx responses
- delete_track reports failure as False (logged) rather than raising
"""

from __future__ import annotations

import logging
from typing import Dict, List

import httpx

from lyricsync.catalog.models import CATEGORIES, Song
from lyricsync.config import CATALOG_BASE_URL, CATALOG_TABLE, load_catalog_key
from lyricsync.core.models import Track

logger = logging.getLogger(__name__)


class CatalogAPIError(Exception):
    """Raised when the catalog returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Catalog API error {status_code}: {message}")


def build_song_query(category: str = "all", search: str = "") -> Dict[str, str]:
    """Build PostgREST query parameters for a song listing.

    Raises:
        ValueError: If ``category`` is neither "all" nor a known category.
    """
    params = {"select": "*", "order": "created_at.desc"}
    if category != "all":
        if category not in CATEGORIES:
            raise ValueError(
                "Unknown category '{}'. Available: all, {}".format(
                    category, ", ".join(CATEGORIES)
                )
            )
        params["category"] = f"eq.{category}"
    if search.strip():
        params["title"] = f"ilike.*{search.strip()}*"
    return params


class CatalogClient:
    """Async client for the catalog's songs table.

    Args:
        api_key: Catalog key; defaults to CATALOG_API_KEY from the environment.
        base_url: REST root; defaults to CATALOG_BASE_URL.
        table: Table name; defaults to CATALOG_TABLE.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        table: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_catalog_key()
        self._base_url = (base_url or CATALOG_BASE_URL).rstrip("/")
        self._table = table or CATALOG_TABLE
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> CatalogClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "apikey": self._api_key,
                "Authorization": f"Bearer {self._api_key}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(30.0, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "CatalogClient must be used as an async context manager: "
                "async with CatalogClient() as client: ..."
            )
        return self._client

    async def fetch_songs(self, category: str = "all", search: str = "") -> List[Song]:
        """Fetch catalog rows, newest first, optionally filtered.

        Args:
            category: "all" or one of CATEGORIES.
            search: Case-insensitive title substring; blank for no filter.

        Returns:
            Parsed Song rows.
        """
        client = self._ensure_client()
        resp = await client.get(
            f"/{self._table}",
            params=build_song_query(category, search),
        )
        if resp.status_code != 200:
            raise CatalogAPIError(resp.status_code, resp.text)
        return [Song.from_dict(row) for row in resp.json()]

    async def fetch_tracks(self, category: str = "all", search: str = "") -> List[Track]:
        """Fetch catalog rows and convert them to engine Tracks."""
        songs = await self.fetch_songs(category, search)
        logger.info(
            "Fetched %d track(s) from catalog (category=%s, search=%r)",
            len(songs),
            category,
            search,
        )
        return [song.to_track() for song in songs]

    async def delete_track(self, track_id: str) -> bool:
        """Delete one song by id.

        Returns:
            True on a 2xx response, False otherwise.
        """
        client = self._ensure_client()
        try:
            resp = await client.delete(
                f"/{self._table}",
                params={"id": f"eq.{track_id}"},
            )
        except httpx.HTTPError:
            logger.exception("Failed to delete track %s", track_id)
            return False
        if not 200 <= resp.status_code < 300:
            logger.warning(
                "Catalog refused to delete track %s: %s %s",
                track_id,
                resp.status_code,
                resp.text,
            )
            return False
        logger.info("Deleted track %s", track_id)
        return True
