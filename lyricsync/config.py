"""Configuration constants, playback tuning values, and .env loading.

WHY: Transport behaviour (seek step, restart threshold, volume step) and
the catalog/server endpoints are plain values that operators and tests
need to find quickly. Keeping them here instead of inside the controller
means the UX policy is visible in one file.

HOW: python-dotenv loads the .env file on import. Each value is a
module-level constant read from the environment with a default. The
load_catalog_key() function provides a clear error when the key is missing.

RULES:
- RESTART_THRESHOLD_S: "previous" restarts the current track above this
- SEEK_STEP_S / VOLUME_STEP: the arrow-key step sizes
- UPCOMING_HORIZON_S: lookahead horizon for the "upcoming" caption state
- Catalog key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


# ---------------------------------------------------------------------------
# Transport tuning
# ---------------------------------------------------------------------------

RESTART_THRESHOLD_S = _env_float("LYRICSYNC_RESTART_THRESHOLD_S", 3.0)
"""Elapsed seconds above which "previous" restarts the current track."""

SEEK_STEP_S = _env_float("LYRICSYNC_SEEK_STEP_S", 10.0)
VOLUME_STEP = _env_float("LYRICSYNC_VOLUME_STEP", 0.1)
DEFAULT_VOLUME = _env_float("LYRICSYNC_DEFAULT_VOLUME", 1.0)

# ---------------------------------------------------------------------------
# Caption display
# ---------------------------------------------------------------------------

UPCOMING_HORIZON_S = 10.0
"""Captions starting within this many seconds of now are "upcoming"."""

DEFAULT_UPCOMING_COUNT = int(os.getenv("LYRICSYNC_UPCOMING_COUNT", "2"))

# ---------------------------------------------------------------------------
# Catalog (PostgREST-style songs table)
# ---------------------------------------------------------------------------

CATALOG_BASE_URL = os.getenv("CATALOG_BASE_URL", "http://localhost:54321/rest/v1")
CATALOG_TABLE = os.getenv("CATALOG_TABLE", "songs")

# ---------------------------------------------------------------------------
# HTTP server / logging
# ---------------------------------------------------------------------------

SERVER_HOST = os.getenv("LYRICSYNC_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("LYRICSYNC_PORT", "8000"))
LOG_LEVEL = os.getenv("LYRICSYNC_LOG_LEVEL", "INFO").upper()


def load_catalog_key() -> str:
    """Load the catalog API key from the environment.

    WHY: The catalog backend rejects anonymous requests. Loading the key
    from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("CATALOG_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Catalog API key not configured. "
            "Add CATALOG_API_KEY to the .env file in the app folder."
        )
    return key
