"""Catalog row dataclass and its conversion to an engine Track.

WHY: The catalog stores songs with storage-flavoured field names
(audio_url, lyrics_content). The engine wants a Track with an audio
source and caption text. Parsing rows into a typed Song first catches
field mismatches at the boundary.

RULES:
- id, title and audio_url are required in every row
- lyrics_content is raw SRT text or null
- duration is whole seconds extracted at upload time, or null
- Unknown categories fall back to "other"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from lyricsync.core.models import Track

CATEGORIES: Tuple[str, ...] = ("anime", "movies", "pop", "music", "other")
"""Song categories; "all" is accepted as a filter meaning no category filter."""


@dataclass
class Song:
    """One row of the catalog's songs table."""

    id: str
    title: str
    audio_url: str
    category: str = "other"
    image_url: Optional[str] = None
    lyrics_content: Optional[str] = None
    duration: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Song:
        """Parse a Song from a raw catalog row."""
        category = data.get("category") or "other"
        if category not in CATEGORIES:
            category = "other"
        duration = data.get("duration")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            audio_url=data["audio_url"],
            category=category,
            image_url=data.get("image_url") or None,
            lyrics_content=data.get("lyrics_content") or None,
            duration=float(duration) if duration is not None else None,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_track(self) -> Track:
        return Track(
            id=self.id,
            audio_source=self.audio_url,
            caption_text=self.lyrics_content,
            title=self.title,
            category=self.category,
            image_url=self.image_url,
            duration_s=self.duration,
        )
