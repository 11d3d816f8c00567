"""
Turn Resolution

Decides, for one user turn, whether to refine the current setlist,
regenerate it, resolve a pending clarification, or route the prompt to
either a clarifying question or a fresh generation. Enforces the
one-clarification and one-refinement limits and returns the next
conversation state alongside the result.

Branch priority (first match wins):
1. refine      - refinement text and a previous setlist are present
2. regenerate  - the caller asked for a different setlist
3. clarified   - a clarifying question was asked and is now being answered
4. route       - ask the model whether to clarify or generate
"""

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .duration_fit import fit_tracks_to_target
from .json_extract import extract_json
from .library_matcher import LibraryMatcher, track_key
from .llm import ModelClient
from .meta import compute_meta
from .models import (
    DEFAULT_CLARIFY_QUESTION,
    FOLLOW_UP_DEFAULT,
    FOLLOW_UP_REFINEMENT_USED,
    SOURCE_LIBRARY,
    ClarifyResult,
    ConversationState,
    Setlist,
    SetlistResult,
    TurnRequest,
    TurnResult,
)
from .prompts import (
    EXCLUDED_KEYS_LIMIT,
    GENERATE_SETLIST_PROMPT,
    REFINE_SETLIST_PROMPT,
    REGENERATE_SETLIST_PROMPT,
    ROUTE_DECISION_PROMPT,
    generate_user_prompt,
    refine_user_prompt,
    regenerate_user_prompt,
    route_user_prompt,
)
from .validation import MIN_TRACKS, validate_setlist_payload
from .youtube import VideoLookup, attach_video_links

ROUTE_TEMPERATURE = 0.0
GENERATE_TEMPERATURE = 0.7
REGENERATE_TEMPERATURE = 0.85
REFINE_TEMPERATURE = 0.35


def previous_track_keys(setlist: Optional[Setlist], limit: int = EXCLUDED_KEYS_LIMIT) -> List[str]:
    """Distinct title::artist keys of a setlist, in track order, capped at ``limit``."""
    if setlist is None:
        return []
    keys: List[str] = []
    for t in setlist.tracks:
        key = track_key(t.title, t.artist)
        if key not in keys:
            keys.append(key)
    return keys[:limit]


class TurnResolver:
    """
    Conversation turn state machine.

    Stateless between calls: everything it knows about the conversation
    arrives in ``TurnRequest.state`` and leaves in the result's ``state``.
    The input state is never modified. Failures (malformed model output,
    validation errors, collaborator errors) propagate to the caller and no
    next state is produced.
    """

    def __init__(self, model: ModelClient, video_lookup: Optional[VideoLookup] = None):
        self.model = model
        self.video_lookup = video_lookup

    async def run_turn(self, request: TurnRequest) -> TurnResult:
        state = request.state

        if request.refinement and request.refinement.strip() and request.previous_setlist:
            return await self._refine(request, state)

        if request.regenerate:
            return await self._regenerate(request, state)

        if state.clarification_asked and state.pending_prompt:
            combined = f"{state.pending_prompt}\n\nClarification answer: {request.prompt}"
            logger.info("Turn: answering pending clarification")
            return await self._generate(request, state, combined, clear_clarification=True)

        return await self._route(request, state)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _refine(self, request: TurnRequest, state: ConversationState) -> SetlistResult:
        if state.refinement_used:
            logger.info("Turn: refinement already used, returning setlist unchanged")
            setlist = state.last_setlist or request.previous_setlist
            return self._setlist_result(
                setlist,
                state.model_copy(),
                follow_up=FOLLOW_UP_REFINEMENT_USED,
            )

        logger.info("Turn: refining setlist")
        user = refine_user_prompt(
            prompt=state.original_prompt or request.prompt,
            existing_setlist=request.previous_setlist.model_dump(by_alias=True),
            refinement=request.refinement,
            target_duration_minutes=request.target_duration_minutes,
            library_tracks=request.library_tracks,
        )
        setlist = await self._produce_setlist(request, REFINE_SETLIST_PROMPT, user, REFINE_TEMPERATURE)
        return await self._finish(request, state, setlist, {"refinement_used": True})

    async def _regenerate(self, request: TurnRequest, state: ConversationState) -> SetlistResult:
        previous = state.last_setlist or request.previous_setlist
        excluded = previous_track_keys(previous)
        logger.info(f"Turn: regenerating, excluding {len(excluded)} previous tracks")

        user = regenerate_user_prompt(
            prompt=state.original_prompt or request.prompt,
            excluded_keys=excluded,
            target_duration_minutes=request.target_duration_minutes,
            library_tracks=request.library_tracks,
            setlist_name=state.setlist_name,
            genre=state.setlist_genre,
        )
        setlist = await self._produce_setlist(
            request, REGENERATE_SETLIST_PROMPT, user, REGENERATE_TEMPERATURE
        )
        return await self._finish(request, state, setlist, {"refinement_used": False})

    async def _generate(
        self,
        request: TurnRequest,
        state: ConversationState,
        prompt: str,
        clear_clarification: bool = False,
    ) -> SetlistResult:
        user = generate_user_prompt(
            prompt,
            target_duration_minutes=request.target_duration_minutes,
            library_tracks=request.library_tracks,
        )
        setlist = await self._produce_setlist(
            request, GENERATE_SETLIST_PROMPT, user, GENERATE_TEMPERATURE
        )
        updates: Dict[str, Any] = {"refinement_used": False, "original_prompt": prompt}
        if clear_clarification:
            updates.update(pending_prompt=None, clarification_asked=False)
        return await self._finish(request, state, setlist, updates)

    async def _route(self, request: TurnRequest, state: ConversationState) -> TurnResult:
        decision = await self._chat_json(
            ROUTE_DECISION_PROMPT, route_user_prompt(request.prompt), ROUTE_TEMPERATURE
        )
        if not isinstance(decision, dict):
            decision = {}
        action = decision.get("action")
        logger.info(f"Turn: route decision '{action}'")

        if action != "clarify":
            return await self._generate(request, state, request.prompt)

        if state.clarification_asked:
            # one question per conversation; a second one becomes a generation
            logger.warning("Second clarification requested, generating instead")
            return await self._generate(
                request, state, request.prompt, clear_clarification=True
            )

        question = decision.get("question")
        if not isinstance(question, str) or not question.strip():
            question = DEFAULT_CLARIFY_QUESTION

        return ClarifyResult(
            question=question,
            state=state.model_copy(
                update={"pending_prompt": request.prompt, "clarification_asked": True}
            ),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _chat_json(self, system: str, user: str, temperature: float) -> Any:
        text = await self.model.complete(system, user, temperature)
        return extract_json(text)

    async def _produce_setlist(
        self, request: TurnRequest, system: str, user: str, temperature: float
    ) -> Setlist:
        """Call the model, validate its payload and merge it with the library."""
        payload = await self._chat_json(system, user, temperature)
        validate_setlist_payload(payload)
        matcher = LibraryMatcher(request.library_tracks)
        return matcher.merge(payload, user_id=request.user_id)

    def _fit_to_target(self, request: TurnRequest, setlist: Setlist) -> Tuple[Setlist, bool]:
        target = request.target_seconds
        if not request.fit_to_duration or target is None:
            return setlist, False

        fit = fit_tracks_to_target(
            setlist.tracks, target, lambda t: t.source == SOURCE_LIBRARY
        )
        if len(fit.tracks) < MIN_TRACKS:
            logger.warning(
                f"Duration fit would leave {len(fit.tracks)} tracks, keeping the full setlist"
            )
            return setlist, fit.exceeded

        tracks = [t.model_copy(update={"position": i}) for i, t in enumerate(fit.tracks, 1)]
        return setlist.model_copy(update={"tracks": tracks}), fit.exceeded

    async def _finish(
        self,
        request: TurnRequest,
        state: ConversationState,
        setlist: Setlist,
        updates: Dict[str, Any],
    ) -> SetlistResult:
        """Post-process a freshly produced setlist and derive the next state."""
        setlist, exceeded = self._fit_to_target(request, setlist)

        if self.video_lookup is not None:
            tracks = await attach_video_links(setlist.tracks, self.video_lookup)
            setlist = setlist.model_copy(update={"tracks": tracks})

        next_state = state.model_copy(
            update={
                **updates,
                "last_setlist": setlist,
                "setlist_name": setlist.setlist_name,
                "setlist_genre": setlist.genre,
            }
        )
        return self._setlist_result(setlist, next_state, duration_exceeded=exceeded)

    @staticmethod
    def _setlist_result(
        setlist: Setlist,
        next_state: ConversationState,
        follow_up: str = FOLLOW_UP_DEFAULT,
        duration_exceeded: bool = False,
    ) -> SetlistResult:
        meta = compute_meta(setlist)
        return SetlistResult(
            setlist=setlist,
            follow_up=follow_up,
            total_songs=meta.total_songs,
            total_duration_seconds=meta.total_duration_seconds,
            sources_breakdown=meta.sources_breakdown,
            duration_exceeded=duration_exceeded,
            state=next_state,
        )
