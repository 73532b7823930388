"""Session — owns the single state object and runs one player turn end-to-end.

Turn flow:
  1. Reject blank input; reject while another turn is in flight.
  2. Append the user message to a working copy of the state.
  3. Render the context block from the pre-append snapshot and call the LLM.
     A failed call appends a SYSTEM message, persists, and stops here.
  4. Segment the response → speaker header → debug fields.
  5. Append the model message (speaker, dialogue, raw debug text).
  6. Merge fields. On dissolution, surface the notice and replace the
     state (and the stored blob) with a fresh one; otherwise keep the merged state.
  7. Persist whichever state survived. The live state only changes once
     the save has succeeded.

Only step 3 suspends. Everything after the response arrives runs without
yielding, so two turns never interleave.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from rta_samvada.config import Settings
from rta_samvada.llm import LLM
from rta_samvada.models import Message, SessionState
from rta_samvada.prompts import render_context, render_system
from rta_samvada.storage import SessionStore

from .extractors import extract_fields
from .merge import apply_fields
from .segments import extract_speaker, segment

logger = logging.getLogger(__name__)

Acknowledge = Callable[[str], bool]

DISSOLUTION_NOTICE = "NARRATIVE DISSOLUTION INITIATED. YOUR IDENTITY HAS COLLAPSED."
RESET_PROMPT = "Restart Narrative?"
SILENT_RESPONSE = "The Sabhā remains silent. (Error connecting to reality engine)"
FAILURE_TEXT = "The threads of reality are tangled. Please try again."
SYSTEM_SPEAKER = "SYSTEM"


def auto_acknowledge(notice: str) -> bool:
    """Headless acknowledgment: accept every prompt."""
    return True


class SessionBusyError(RuntimeError):
    """Raised when input arrives while an LLM call is outstanding."""


@dataclass
class TurnResult:
    messages: list[Message] = field(default_factory=list)
    state: SessionState | None = None
    dissolved: bool = False
    notice: str | None = None


class Session:
    def __init__(
        self,
        store: SessionStore,
        llm: LLM,
        settings: Settings | None = None,
        acknowledge: Acknowledge = auto_acknowledge,
        state: SessionState | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._settings = settings or Settings()
        self._acknowledge = acknowledge
        self._state = state if state is not None else store.create()
        self._busy = False
        self._system = render_system(self._settings.labels)

    @classmethod
    def open(
        cls,
        store: SessionStore,
        llm: LLM,
        settings: Settings | None = None,
        acknowledge: Acknowledge = auto_acknowledge,
    ) -> Session:
        """Load the persisted state, or create and persist a fresh one."""
        state = store.load()
        if state is None:
            state = store.create()
            store.save(state)
            logger.info("Created new session %s", state.player_id)
        else:
            logger.info(
                "Resumed session %s (level=%d integrity=%d messages=%d)",
                state.player_id, state.current_level, state.integrity_score,
                len(state.session_history),
            )
        return cls(store, llm, settings=settings, acknowledge=acknowledge, state=state)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    def latest_debug(self) -> str | None:
        """Most recent non-empty debug panel in history."""
        for msg in reversed(self._state.session_history):
            if msg.debug:
                return msg.debug
        return None

    async def submit(self, text: str) -> TurnResult:
        """Run one player turn. See module docstring for the flow."""
        if not text or not text.strip():
            raise ValueError("Message is empty")
        if self._busy:
            raise SessionBusyError("A turn is already in progress")

        self._busy = True
        try:
            return await self._run_turn(text)
        finally:
            self._busy = False

    async def _run_turn(self, text: str) -> TurnResult:
        labels = self._settings.labels
        snapshot = self._state
        user_msg = Message(role="user", text=text)
        with_input = self._append(snapshot, user_msg)

        prompt = render_context(snapshot, text, self._settings.history_window)
        try:
            raw = await self._llm(self._system, prompt)
        except Exception as e:
            logger.warning("LLM call failed: %s", e)
            failure = Message(role="model", text=FAILURE_TEXT, speaker=SYSTEM_SPEAKER)
            self._commit(self._append(with_input, failure))
            return TurnResult(messages=[user_msg, failure], state=self._state)

        if not raw or not raw.strip():
            raw = SILENT_RESPONSE

        content, debug = segment(raw, labels)
        speaker, dialogue = extract_speaker(content)
        model_msg = Message(role="model", text=dialogue, speaker=speaker, debug=debug)
        with_reply = self._append(with_input, model_msg)

        fields = extract_fields(debug, labels)
        result = apply_fields(with_reply, fields, clamp=self._settings.clamp_ranges)

        if result.dissolved:
            logger.warning(
                "Narrative dissolution for %s (integrity=%d)",
                result.state.player_id, result.state.integrity_score,
            )
            try:
                self._acknowledge(DISSOLUTION_NOTICE)
            finally:
                self._replace_with_fresh()
            return TurnResult(
                messages=[user_msg, model_msg], state=self._state,
                dissolved=True, notice=DISSOLUTION_NOTICE,
            )

        self._commit(result.state)
        logger.info(
            "Turn accepted (level=%d integrity=%d contradictions=%d)",
            self._state.current_level, self._state.integrity_score,
            len(self._state.contradictions),
        )
        return TurnResult(messages=[user_msg, model_msg], state=self._state)

    def reset(self, confirm: bool = True) -> bool:
        """Discard the session and start over. Returns whether it happened."""
        if self._busy:
            raise SessionBusyError("Cannot reset while a turn is in progress")
        if confirm and not self._acknowledge(RESET_PROMPT):
            return False
        self._replace_with_fresh()
        return True

    def _replace_with_fresh(self) -> None:
        # save overwrites the old blob in one step, so nothing is cleared first
        self._commit(self._store.create())
        logger.info("Session reset, new player %s", self._state.player_id)

    def _commit(self, state: SessionState) -> None:
        """Persist `state`, then make it the live state."""
        self._store.save(state)
        self._state = state

    @staticmethod
    def _append(state: SessionState, message: Message) -> SessionState:
        history = [*state.session_history, message]
        return state.model_copy(update={"session_history": history})
