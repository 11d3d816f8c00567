"""
Data Models for the Setlist Agent

Conversation state, setlists, full-shape tracks and the turn request/result
types. Attributes are snake_case; the wire format is camelCase (dump with
``by_alias=True``).
"""

import uuid
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


FOLLOW_UP_DEFAULT = "Want to make changes?"
FOLLOW_UP_REFINEMENT_USED = "You can still edit manually in the app."
DEFAULT_CLARIFY_QUESTION = "What style or event is this setlist for?"

SOURCE_LIBRARY = "library"
SOURCE_EXTERNAL = "external"


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Track models
# ---------------------------------------------------------------------------

class Track(CamelModel):
    """Full-shape setlist track (post library enrichment)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="Unique track identifier"
    )
    position: Optional[int] = Field(None, description="1-based position in set")
    title: str = Field("", description="Track title")
    artist: str = Field("", description="Track artist")
    genre: Optional[str] = Field(None, description="Per-track genre")
    album: Optional[str] = Field(None, description="Album name")
    year: Optional[Union[int, str]] = Field(None, description="Release year")
    bpm: Optional[float] = Field(None, description="Beats per minute")
    key: Optional[str] = Field(None, description="Musical key")
    duration: Optional[Union[int, float]] = Field(None, description="Length in seconds")
    youtube_url: Optional[str] = Field(None, description="Video link, if looked up")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    user_id: Optional[str] = Field(None, description="Owner of the library record")
    source: str = Field(SOURCE_EXTERNAL, description="library or external")
    library_track_id: Optional[str] = Field(None, description="Matched library record id")

    @field_validator("id", "user_id", "library_track_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("genre", "album", "key", mode="before")
    @classmethod
    def _stringify_labels(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("bpm", mode="before")
    @classmethod
    def _lenient_bpm(cls, v):
        try:
            return None if v is None else float(v)
        except (TypeError, ValueError):
            return None

    @field_validator("tags", mode="before")
    @classmethod
    def _default_tags(cls, v):
        if not isinstance(v, list):
            return []
        return [str(tag) for tag in v]

    def duration_formatted(self) -> str:
        seconds = int(self.duration or 0)
        if seconds <= 0:
            return "0:00"
        return f"{seconds // 60}:{seconds % 60:02d}"


# Field names by every key they may arrive under (camelCase or snake_case).
_TRACK_FIELD_BY_KEY: Dict[str, str] = {}
for _name in Track.model_fields:
    _TRACK_FIELD_BY_KEY[_name] = _name
    _TRACK_FIELD_BY_KEY[to_camel(_name)] = _name


def make_full_track(base: Mapping[str, Any], **overrides: Any) -> Track:
    """
    Build a full-shape Track from an arbitrary record plus named overrides.

    Keys of ``base`` are accepted in camelCase or snake_case. Unknown keys are
    carried over as extra fields, except private ones (leading underscore).
    Every known field not supplied falls back to its model default.
    """
    data: Dict[str, Any] = {}
    for k, v in base.items():
        if k.startswith("_"):
            continue
        data[_TRACK_FIELD_BY_KEY.get(k, k)] = v
    data.update(overrides)
    return Track.model_validate(data)


# ---------------------------------------------------------------------------
# Setlist models
# ---------------------------------------------------------------------------

class Setlist(CamelModel):
    """A named, ordered list of full-shape tracks."""

    setlist_name: str = Field("", description="3-50 character title")
    genre: Optional[str] = Field(None, description="Setlist-level genre label")
    tracks: List[Track] = Field(default_factory=list)
    explanation: str = ""


class SetlistMeta(CamelModel):
    """Aggregate statistics derived from a track list."""

    total_songs: int = 0
    total_duration_seconds: Union[int, float] = 0
    sources_breakdown: Dict[str, int] = Field(
        default_factory=lambda: {SOURCE_LIBRARY: 0, SOURCE_EXTERNAL: 0}
    )


class FitResult(BaseModel):
    """Outcome of fitting a track list to a target duration."""

    tracks: List[Any]
    exceeded: bool = False


# ---------------------------------------------------------------------------
# Conversation state
# ---------------------------------------------------------------------------

class ConversationState(CamelModel):
    """
    Snapshot of a conversation, passed in by the caller and returned updated.

    Frozen: a turn never mutates the state it was given, it derives a new one
    with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    pending_prompt: Optional[str] = None
    clarification_asked: bool = False
    refinement_used: bool = False
    last_setlist: Optional[Setlist] = None
    original_prompt: Optional[str] = None
    setlist_name: Optional[str] = None
    setlist_genre: Optional[str] = None

    @field_validator("clarification_asked", "refinement_used", mode="before")
    @classmethod
    def _null_flags(cls, v):
        return False if v is None else v


# ---------------------------------------------------------------------------
# Turn request / result
# ---------------------------------------------------------------------------

class TurnRequest(CamelModel):
    """Input to a single resolver turn."""

    prompt: str
    target_duration_minutes: Optional[float] = None
    refinement: Optional[str] = None
    previous_setlist: Optional[Setlist] = None
    regenerate: bool = False
    user_id: Optional[str] = None
    library_tracks: Optional[List[Dict[str, Any]]] = None
    fit_to_duration: bool = False
    state: ConversationState = Field(default_factory=ConversationState)

    @property
    def target_seconds(self) -> Optional[float]:
        if not self.target_duration_minutes or self.target_duration_minutes <= 0:
            return None
        return self.target_duration_minutes * 60


class ClarifyResult(CamelModel):
    """The agent needs one answer before it can build a setlist."""

    type: Literal["clarify"] = "clarify"
    question: str
    state: ConversationState


class SetlistResult(CamelModel):
    """A setlist was produced (or, for a spent refinement, re-sent unchanged)."""

    type: Literal["setlist"] = "setlist"
    setlist: Setlist
    follow_up: str = FOLLOW_UP_DEFAULT
    total_songs: int = 0
    total_duration_seconds: Union[int, float] = 0
    sources_breakdown: Dict[str, int] = Field(default_factory=dict)
    duration_exceeded: bool = False
    state: ConversationState


TurnResult = Annotated[
    Union[ClarifyResult, SetlistResult], Field(discriminator="type")
]
