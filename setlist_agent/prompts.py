"""
Prompt templates for the setlist agent.

One system prompt per branch of a turn (route, generate, regenerate, refine)
plus builders for the matching user prompts. Every generation template asks
for JSON only, in the setlist shape minus identifiers.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

LIBRARY_SAMPLE_LIMIT = 60
EXCLUDED_KEYS_LIMIT = 80

_SETLIST_SCHEMA = """{
  "setlistName": "string",
  "genre": "string",
  "tracks": [
    {
      "position": number,
      "title": "string",
      "artist": "string",
      "duration": number,
      "genre": "string"
    }
  ],
  "explanation": "string"
}"""

_DURATION_RULES = """- duration is in seconds and realistic: typically 150 to 330, never below 90
- position must start at 1 and increase by 1
- setlistName: 3-50 characters, no emojis, clean title"""


ROUTE_DECISION_PROMPT = """You are a setlist assistant.

Decide whether there is enough information to generate a usable setlist
WITHOUT asking a clarifying question.

Look for at least one of:
- Event type (church service, gig, rehearsal, wedding, party, ...)
- Music style or genre (afrobeats, worship, rock, jazz, ...)
- Duration (explicit or clearly implied)

If minimum viable context exists, respond ONLY with:
{"action":"generate"}

Otherwise respond ONLY with:
{"action":"clarify","question":"<ONE short targeted question>"}

Rules:
- Ask ONLY ONE question.
- Keep the question short and specific.
- The question must directly improve the setlist."""


GENERATE_SETLIST_PROMPT = f"""You generate a usable music setlist.

You MUST always return a usable setlist, never an empty one.

You will receive a user request and, optionally, a sample of the user's
library songs.

Priority:
1) Prefer songs from the user's library when they fit the request.
2) If the library lacks suitable songs, include other songs as external suggestions.

Silent defaults (never mention them):
- about 5 songs if no count was requested
- opening -> mid -> closing structure
- reasonable approximate durations when unknown

Return ONLY valid JSON:
{_SETLIST_SCHEMA}

Constraints:
- 3 to 6 tracks unless the user clearly asks otherwise
{_DURATION_RULES}
- genre: short label inferred from the request (e.g. "Afrobeats", "Worship", "Pop", "Jazz")
- per-track genre: the track's own genre label"""


REGENERATE_SETLIST_PROMPT = f"""You generate a NEW setlist for the SAME request as before.

- This is a regeneration: produce a different selection.
- Avoid reusing the previous setlist's tracks as much as possible.
- Prefer the user's library songs when they fit the request.
- You MUST always return a usable setlist.

Return ONLY valid JSON:
{_SETLIST_SCHEMA}

Constraints:
{_DURATION_RULES}
- keep the genre consistent with the original request
- setlistName should match the vibe and may change slightly"""


REFINE_SETLIST_PROMPT = f"""You refine an existing setlist from ONE user instruction.

This is NOT a full regeneration.

Hard rules:
- Do NOT ask questions.
- Update the existing setlist with minimal changes.
- Keep as many original tracks as possible unless the user explicitly wants them changed.
- If the user says "remove X", remove ONLY that track.
- If the user says "add more songs", keep existing tracks and add 1 to 3 unless a number is given.
- Preserve the opener -> mid -> closer structure.
- Prefer library songs when adding or replacing.
- Renumber positions from 1 after any change.

Return ONLY valid JSON:
{_SETLIST_SCHEMA}

Constraints:
- keep genre consistent unless the instruction explicitly changes it
- keep setlistName consistent unless the instruction changes the concept
{_DURATION_RULES}"""


# ---------------------------------------------------------------------------
# User prompt builders
# ---------------------------------------------------------------------------

def _target_hint(target_duration_minutes: Optional[float]) -> str:
    if not target_duration_minutes:
        return "not specified"
    return f"{target_duration_minutes:g}"


def library_sample(
    library_tracks: Optional[Iterable[Mapping[str, Any]]],
    limit: int = LIBRARY_SAMPLE_LIMIT,
) -> List[Dict[str, Any]]:
    """Compact view of the first ``limit`` library songs for the prompt."""
    sample = []
    for t in library_tracks or []:
        if len(sample) >= limit:
            break
        if not isinstance(t, Mapping) or not t.get("title"):
            continue
        entry = {"title": t.get("title"), "artist": t.get("artist")}
        if t.get("genre"):
            entry["genre"] = t.get("genre")
        if t.get("duration"):
            entry["duration"] = t.get("duration")
        sample.append(entry)
    return sample


def _library_block(library_tracks) -> str:
    sample = library_sample(library_tracks)
    if not sample:
        return "USER LIBRARY SONGS: none provided"
    return "USER LIBRARY SONGS (prefer these when they fit):\n" + json.dumps(sample, indent=2)


def route_user_prompt(prompt: str) -> str:
    return f'User prompt: "{prompt}"'


def generate_user_prompt(
    prompt: str,
    target_duration_minutes: Optional[float] = None,
    library_tracks=None,
) -> str:
    return f"""USER REQUEST:
"{prompt}"

Target duration minutes: {_target_hint(target_duration_minutes)}

{_library_block(library_tracks)}
"""


def regenerate_user_prompt(
    prompt: str,
    excluded_keys: List[str],
    target_duration_minutes: Optional[float] = None,
    library_tracks=None,
    setlist_name: Optional[str] = None,
    genre: Optional[str] = None,
) -> str:
    return f"""USER REQUEST (same as before):
"{prompt}"

Target duration minutes: {_target_hint(target_duration_minutes)}

PREVIOUS SETLIST NAME: {setlist_name or "unknown"}
PREVIOUS GENRE (stay consistent): {genre or "unknown"}

PREVIOUS SETLIST TRACKS (title::artist, avoid reusing these if possible):
{json.dumps(excluded_keys[:EXCLUDED_KEYS_LIMIT], indent=2)}

{_library_block(library_tracks)}

Generate a different setlist now.
"""


def refine_user_prompt(
    prompt: str,
    existing_setlist: Mapping[str, Any],
    refinement: str,
    target_duration_minutes: Optional[float] = None,
    library_tracks=None,
) -> str:
    return f"""ORIGINAL REQUEST (for context):
"{prompt}"

{_library_block(library_tracks)}

EXISTING SETLIST TO EDIT:
{json.dumps(existing_setlist, indent=2, default=str)}

USER REFINEMENT (ONE cycle max):
"{refinement}"

Target duration minutes (if relevant): {_target_hint(target_duration_minutes)}

Remember: minimal edits, keep most tracks, do not regenerate from scratch.
"""
