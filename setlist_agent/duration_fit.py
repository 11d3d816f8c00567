"""
Duration Fitting

Trims a track list toward a target duration while always keeping the
required tracks.
"""

from typing import Any, Callable, List, Optional

from .meta import total_duration_seconds, track_duration
from .models import FitResult


def fit_tracks_to_target(
    tracks: List[Any],
    target_seconds: Optional[float],
    required_predicate: Callable[[Any], bool],
) -> FitResult:
    """
    Keep required tracks, then fill up to the target with the rest in order.

    Single greedy pass: an optional track that would push the running total
    past the target is skipped, never deferred. If the required tracks alone
    already exceed the target they are still all returned and ``exceeded``
    is set.

    Args:
        tracks: Track list (models or dicts carrying ``duration``).
        target_seconds: Target total duration; ``None`` or <= 0 disables fitting.
        required_predicate: Returns True for tracks that must be kept.

    Returns:
        FitResult with the fitted tracks and the ``exceeded`` flag.
    """
    if not target_seconds or target_seconds <= 0:
        return FitResult(tracks=list(tracks), exceeded=False)

    required: List[Any] = []
    optional: List[Any] = []
    for t in tracks:
        (required if required_predicate(t) else optional).append(t)

    out = list(required)
    current = total_duration_seconds(out)

    for t in optional:
        d = track_duration(t)
        if current + d > target_seconds:
            continue
        out.append(t)
        current += d

    return FitResult(
        tracks=out,
        exceeded=total_duration_seconds(required) > target_seconds,
    )
