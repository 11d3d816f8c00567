"""
Library Matching

Indexes a user's library by normalized (title, artist) and rewrites
model-generated tracks into full-shape tracks, preferring library metadata
whenever a generated track matches a library record exactly.
"""

import math
import re
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .models import SOURCE_EXTERNAL, SOURCE_LIBRARY, Setlist, Track, make_full_track

_WHITESPACE = re.compile(r"\s+")


def normalize_text(s: Optional[str]) -> str:
    """Lower-case, trim and collapse whitespace runs to a single space.

    Anything that is not a string normalizes to "" and so never matches.
    """
    if not isinstance(s, str):
        return ""
    return _WHITESPACE.sub(" ", s.strip().lower())


def track_key(title: Optional[str], artist: Optional[str]) -> str:
    return f"{normalize_text(title)}::{normalize_text(artist)}"


def library_track_id(record: Mapping[str, Any]) -> Optional[str]:
    """Return the library record's identifier (``id`` then ``trackId``)."""
    for field in ("id", "trackId"):
        value = record.get(field)
        if value is not None and value != "":
            return str(value)
    return None


def _positive_duration(v: Any) -> bool:
    return (
        isinstance(v, (int, float))
        and not isinstance(v, bool)
        and math.isfinite(v)
        and v > 0
    )


class LibraryMatcher:
    """
    Exact-key matcher between generated tracks and a user's library.

    Matching is case- and whitespace-insensitive only; there is no fuzzy or
    partial title matching. On duplicate keys the first library record wins.
    """

    def __init__(self, library_tracks: Optional[Iterable[Mapping[str, Any]]] = None):
        self.library_tracks: List[Mapping[str, Any]] = list(library_tracks or [])
        self._index: Dict[str, Mapping[str, Any]] = {}
        self._build_index()

    def _build_index(self) -> None:
        self._index.clear()
        for record in self.library_tracks:
            if not isinstance(record, Mapping):
                continue
            key = track_key(record.get("title"), record.get("artist"))
            self._index.setdefault(key, record)

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, title: Optional[str], artist: Optional[str]) -> Optional[Mapping[str, Any]]:
        return self._index.get(track_key(title, artist))

    def merge_track(self, generated: Mapping[str, Any], user_id: Optional[str] = None) -> Track:
        """Rewrite one model-generated track into full shape."""
        record = self.lookup(generated.get("title"), generated.get("artist"))

        if record is None:
            return make_full_track(
                {},
                id=str(uuid.uuid4()),
                position=generated.get("position"),
                title=generated.get("title"),
                artist=generated.get("artist"),
                genre=generated.get("genre"),
                duration=generated.get("duration"),
                user_id=user_id,
                source=SOURCE_EXTERNAL,
                library_track_id=None,
            )

        lib_id = library_track_id(record)
        duration = record.get("duration")
        if not _positive_duration(duration):
            duration = generated.get("duration")

        return make_full_track(
            record,
            id=lib_id or str(uuid.uuid4()),
            position=generated.get("position"),
            genre=record.get("genre") or generated.get("genre"),
            duration=duration,
            user_id=record.get("userId") or record.get("user_id") or user_id,
            source=SOURCE_LIBRARY,
            library_track_id=lib_id,
        )

    def merge(self, payload: Mapping[str, Any], user_id: Optional[str] = None) -> Setlist:
        """
        Merge a validated setlist payload with the library.

        Returns a Setlist whose tracks are all full-shape.
        """
        tracks = [self.merge_track(t, user_id) for t in payload.get("tracks", [])]
        matched = sum(1 for t in tracks if t.source == SOURCE_LIBRARY)
        logger.debug(
            f"Library merge: {matched}/{len(tracks)} tracks matched "
            f"against {len(self._index)} library entries"
        )
        return Setlist(
            setlist_name=str(payload.get("setlistName", "")).strip(),
            genre=payload.get("genre"),
            tracks=tracks,
            explanation=payload.get("explanation") or "",
        )
