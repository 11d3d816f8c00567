"""
Structural contract for setlist payloads returned by the model.

A payload must pass ``validate_setlist_payload`` before anything downstream
(library matching, meta, state updates) trusts it. ``turn_input_problem``
holds the caller-side limits shared by the HTTP and MCP boundaries.
"""

import math
from typing import Any, Optional

from .errors import SetlistValidationError

MIN_TRACKS = 3
NAME_MIN_CHARS = 3
NAME_MAX_CHARS = 50

PROMPT_MIN_CHARS = 5
PROMPT_MAX_CHARS = 500
REFINEMENT_MIN_CHARS = 1
REFINEMENT_MAX_CHARS = 500


def _is_number(v: Any) -> bool:
    # bool is an int subclass; True is not a duration
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_setlist_payload(payload: Any) -> bool:
    """
    Check a parsed setlist payload. The first violation raises.

    Order of checks:
    1. payload is an object
    2. setlistName is a string of 3-50 characters once trimmed
    3. tracks is a non-empty list
    4. at least three tracks
    5. per track: position == index + 1, non-empty title and artist,
       finite positive duration, genre absent/null or a string
    6. setlist-level genre and explanation absent/null or strings
    """
    if not isinstance(payload, dict):
        raise SetlistValidationError("Invalid setlist payload.")

    name = payload.get("setlistName")
    if not isinstance(name, str):
        raise SetlistValidationError("Setlist must include a setlistName.")
    if not NAME_MIN_CHARS <= len(name.strip()) <= NAME_MAX_CHARS:
        raise SetlistValidationError(
            f"setlistName must be {NAME_MIN_CHARS}-{NAME_MAX_CHARS} characters."
        )

    tracks = payload.get("tracks")
    if not isinstance(tracks, list) or not tracks:
        raise SetlistValidationError("Setlist must include at least one track.")

    if len(tracks) < MIN_TRACKS:
        raise SetlistValidationError(
            f"Setlist must include at least {MIN_TRACKS} tracks (MVP rule)."
        )

    for i, t in enumerate(tracks):
        if not isinstance(t, dict):
            raise SetlistValidationError(f"Track {i + 1} is not an object.")
        position = t.get("position")
        if not _is_number(position) or position != i + 1:
            raise SetlistValidationError("Track positions must be ordered 1..N.")
        title = t.get("title")
        if not isinstance(title, str) or not title:
            raise SetlistValidationError("Each track must have a title.")
        artist = t.get("artist")
        if not isinstance(artist, str) or not artist:
            raise SetlistValidationError("Each track must have an artist.")
        duration = t.get("duration")
        if not _is_number(duration) or not math.isfinite(duration) or duration <= 0:
            raise SetlistValidationError(
                "Each track must have a positive duration (seconds)."
            )
        genre = t.get("genre")
        if genre is not None and not isinstance(genre, str):
            raise SetlistValidationError("Track genre must be a string when present.")

    for field in ("genre", "explanation"):
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            raise SetlistValidationError(f"Setlist {field} must be a string when present.")

    return True


def turn_input_problem(body: Any) -> Optional[str]:
    """Return an error message for unacceptable caller input, else None."""
    if not isinstance(body, dict):
        return "Request body must be a JSON object"

    prompt = body.get("prompt")
    if not isinstance(prompt, str):
        return "prompt must be a string"
    if not PROMPT_MIN_CHARS <= len(prompt.strip()) <= PROMPT_MAX_CHARS:
        return f"Prompt must be between {PROMPT_MIN_CHARS} and {PROMPT_MAX_CHARS} characters."

    refinement = body.get("refinement")
    if refinement is not None:
        if not isinstance(refinement, str):
            return "refinement must be a string"
        if not REFINEMENT_MIN_CHARS <= len(refinement.strip()) <= REFINEMENT_MAX_CHARS:
            return (
                f"Refinement must be between {REFINEMENT_MIN_CHARS} "
                f"and {REFINEMENT_MAX_CHARS} characters."
            )
    return None
