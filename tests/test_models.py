"""Unit tests for the data models and the full-track factory."""

import pytest
from pydantic import ValidationError
from setlist_agent.models import (
    ClarifyResult,
    ConversationState,
    SetlistResult,
    Setlist,
    TurnRequest,
    make_full_track,
)


class TestMakeFullTrack:
    def test_defaults(self):
        t = make_full_track({}, title="Song", artist="Band")
        assert t.id
        assert t.genre is None
        assert t.album is None
        assert t.year is None
        assert t.bpm is None
        assert t.key is None
        assert t.youtube_url is None
        assert t.tags == []
        assert t.user_id is None
        assert t.source == "external"
        assert t.library_track_id is None

    def test_camel_case_base_keys(self):
        t = make_full_track({"youtubeUrl": "https://y/1", "userId": 4, "title": "S"})
        assert t.youtube_url == "https://y/1"
        assert t.user_id == "4"

    def test_overrides_win(self):
        t = make_full_track({"title": "Base", "source": "external"}, title="Override", source="library")
        assert t.title == "Override"
        assert t.source == "library"

    def test_private_keys_dropped(self):
        t = make_full_track({"_id": "mongo", "title": "S"})
        assert "_id" not in t.model_dump(by_alias=True)

    def test_null_tags_become_empty(self):
        assert make_full_track({"tags": None}).tags == []

    def test_duration_formatted(self):
        assert make_full_track({}, duration=185).duration_formatted() == "3:05"
        assert make_full_track({}).duration_formatted() == "0:00"


class TestConversationState:
    def test_defaults(self):
        s = ConversationState()
        assert s.pending_prompt is None
        assert s.clarification_asked is False
        assert s.refinement_used is False
        assert s.last_setlist is None

    def test_camel_case_input(self):
        s = ConversationState.model_validate(
            {"pendingPrompt": "p", "clarificationAsked": True, "refinementUsed": None}
        )
        assert s.pending_prompt == "p"
        assert s.clarification_asked is True
        assert s.refinement_used is False

    def test_frozen(self):
        s = ConversationState()
        with pytest.raises(ValidationError):
            s.refinement_used = True

    def test_copy_on_write(self):
        s = ConversationState()
        s2 = s.model_copy(update={"refinement_used": True})
        assert s.refinement_used is False
        assert s2.refinement_used is True


class TestTurnRequest:
    def test_target_seconds(self):
        assert TurnRequest(prompt="abcde", target_duration_minutes=30).target_seconds == 1800

    def test_target_seconds_absent(self):
        assert TurnRequest(prompt="abcde").target_seconds is None
        assert TurnRequest(prompt="abcde", target_duration_minutes=0).target_seconds is None

    def test_previous_setlist_from_dict(self):
        req = TurnRequest.model_validate({
            "prompt": "abcde",
            "previousSetlist": {
                "setlistName": "Old",
                "tracks": [{"title": "A", "artist": "B", "duration": 100, "position": 1}],
            },
        })
        assert req.previous_setlist.tracks[0].title == "A"
        assert req.previous_setlist.tracks[0].id


class TestResults:
    def test_clarify_dump(self):
        dumped = ClarifyResult(question="Which event?", state=ConversationState()).model_dump(by_alias=True)
        assert dumped["type"] == "clarify"
        assert dumped["state"]["clarificationAsked"] is False

    def test_setlist_dump(self):
        result = SetlistResult(setlist=Setlist(setlist_name="X Set"), state=ConversationState())
        dumped = result.model_dump(by_alias=True)
        assert dumped["type"] == "setlist"
        assert dumped["followUp"] == "Want to make changes?"
        assert "totalDurationSeconds" in dumped


class TestStateFlagParsing:
    @pytest.mark.parametrize("raw, expected", [("false", False), ("true", True), (0, False), (1, True)])
    def test_string_and_int_flags(self, raw, expected):
        s = ConversationState.model_validate({"clarificationAsked": raw, "refinementUsed": raw})
        assert s.clarification_asked is expected
        assert s.refinement_used is expected

    def test_unparseable_flag_rejected(self):
        with pytest.raises(ValidationError):
            ConversationState.model_validate({"clarificationAsked": "maybe"})
