"""Aggregate statistics over a setlist's tracks."""

import math
from typing import Any, Iterable, Union

from .models import SOURCE_EXTERNAL, SOURCE_LIBRARY, Setlist, SetlistMeta


def _field(track: Any, name: str) -> Any:
    if isinstance(track, dict):
        return track.get(name)
    return getattr(track, name, None)


def track_duration(track: Any) -> Union[int, float]:
    """Duration in seconds, 0 when missing or not a finite number."""
    v = _field(track, "duration")
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        return 0
    return v


def total_duration_seconds(tracks: Iterable[Any]) -> Union[int, float]:
    return sum(track_duration(t) for t in tracks or [])


def compute_meta(setlist: Union[Setlist, Iterable[Any]]) -> SetlistMeta:
    """
    Count songs, sum durations and break tracks down by source.

    Tracks with an unknown or missing source count as external.
    """
    tracks = list(setlist.tracks if isinstance(setlist, Setlist) else setlist or [])

    breakdown = {SOURCE_LIBRARY: 0, SOURCE_EXTERNAL: 0}
    for t in tracks:
        source = _field(t, "source")
        breakdown[SOURCE_LIBRARY if source == SOURCE_LIBRARY else SOURCE_EXTERNAL] += 1

    return SetlistMeta(
        total_songs=len(tracks),
        total_duration_seconds=total_duration_seconds(tracks),
        sources_breakdown=breakdown,
    )
