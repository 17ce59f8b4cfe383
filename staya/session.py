"""Session state machine: dossier intake, roster briefing, chat.

Phases:
  intake   → briefing   submit_dossier(), needs a named (or complete) dossier
  briefing → chat       deploy(), one dispatch of the fixed opening turn
  any      → intake     reset(), clears dossier and history

Chat turn flow (send):
  1. Ignore empty text, or any submission while a dispatch is in flight.
  2. Append the user message immediately; it is never rolled back.
  3. Dispatch the text with the prior history.
  4. Append one assistant message on success, one system notice on failure.

The opening turn follows the same rules except that no user message is
appended, and a failed opening still leaves the session in chat so the user
can retry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from staya.dispatch import Dispatcher
from staya.models import (
    DispatchOutcome,
    Dossier,
    FailureKind,
    Message,
    RosterEntry,
    SessionPhase,
    Success,
    TranscriptEntry,
)
from staya.prompts import OPENING_TURN
from staya.roster import list_roster
from staya.segments import parse_narrative

logger = logging.getLogger(__name__)

SILENCE = "Only silence hangs in the air..."

FAILURE_NOTICES: dict[FailureKind, str] = {
    "credential_missing": (
        "No API key is configured. Select an API key and try again."
    ),
    "model_unavailable": (
        "None of the configured models are available to this API key. "
        "Select a different key or model and try again."
    ),
    "transient": "Communication failure: the message could not be delivered. Try again.",
    "unknown": "Communication failure: the message could not be delivered. Try again.",
}

# Failure kinds the host should answer with its key/model picker
CREDENTIAL_ACTION_KINDS = frozenset({"credential_missing", "model_unavailable"})


class SessionError(ValueError):
    """Raised when a session operation is not allowed."""


class PhaseError(SessionError):
    """The operation is not valid in the current phase."""


class DossierError(SessionError):
    """The dossier does not satisfy the intake requirements."""


class Session:
    """One role-play session. Owns the dossier and the message history."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        on_credential_action: Callable[[], None] | None = None,
        require_complete_dossier: bool = False,
    ) -> None:
        self.dispatcher = dispatcher
        self.on_credential_action = on_credential_action
        self.require_complete_dossier = require_complete_dossier
        self.phase: SessionPhase = "intake"
        self.dossier = Dossier()
        self._messages: list[Message] = []
        self._in_flight = False
        self._epoch = 0  # bumped on reset; stale dispatch results are dropped

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def roster(self) -> list[RosterEntry]:
        return list_roster()

    def transcript(self) -> list[TranscriptEntry]:
        """History with parsed narrative segments for assistant messages."""
        entries = []
        for m in self._messages:
            segments = parse_narrative(m.content) if m.role == "assistant" else []
            entries.append(TranscriptEntry(**m.model_dump(), segments=segments))
        return entries

    # ------------------------------------------------------------------
    # Intake / briefing
    # ------------------------------------------------------------------

    def update_dossier(self, dossier: Dossier) -> Dossier:
        """Replace the dossier. Allowed until the session enters chat."""
        if self.phase == "chat":
            raise PhaseError("The dossier is sealed once the session is deployed")
        self.dossier = dossier
        return dossier

    def validate_dossier(self, dossier: Dossier) -> None:
        if self.require_complete_dossier:
            if not dossier.is_complete():
                raise DossierError("Every dossier field must be filled in")
        elif not dossier.has_name():
            raise DossierError("The dossier needs a name")

    def submit_dossier(self, dossier: Dossier | None = None) -> Dossier:
        """Intake → briefing. The phase stays intake if the dossier is rejected."""
        if self.phase != "intake":
            raise PhaseError(f"Cannot submit a dossier during {self.phase}")
        candidate = dossier if dossier is not None else self.dossier
        self.validate_dossier(candidate)
        self.dossier = candidate
        self.phase = "briefing"
        logger.info("session phase intake -> briefing (%s)", candidate.name)
        return candidate

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def deploy(self) -> Message | None:
        """Briefing → chat. Seeds the history with exactly one message."""
        if self.phase != "briefing":
            raise PhaseError(f"Cannot deploy during {self.phase}")
        self.phase = "chat"
        logger.info("session phase briefing -> chat")
        return await self._exchange(OPENING_TURN, history=[])

    async def send(self, text: str) -> bool:
        """Submit one user turn. Returns False when the submission is ignored."""
        if self.phase != "chat":
            raise PhaseError(f"Cannot chat during {self.phase}")
        if not text.strip() or self._in_flight:
            logger.debug("submission ignored (empty=%s in_flight=%s)", not text.strip(), self._in_flight)
            return False

        history = list(self._messages)
        self._messages.append(Message(role="user", content=text))
        await self._exchange(text, history=history)
        return True

    async def retry(self) -> bool:
        """Re-send the opening turn if the chat opened without a reply."""
        if self.phase != "chat":
            raise PhaseError(f"Cannot retry during {self.phase}")
        if self._in_flight or any(m.role != "system" for m in self._messages):
            return False
        await self._exchange(OPENING_TURN, history=[])
        return True

    def reset(self) -> None:
        """Back to intake. Clears the dossier and the message history."""
        logger.info("session reset from %s", self.phase)
        self.phase = "intake"
        self.dossier = Dossier()
        self._messages.clear()
        self._in_flight = False
        self._epoch += 1

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _exchange(self, text: str, history: list[Message]) -> Message | None:
        """Run one dispatch and append its result. None if reset meanwhile."""
        epoch = self._epoch
        self._in_flight = True
        try:
            outcome = await self.dispatcher.dispatch(text, self.dossier, history)
        finally:
            if epoch == self._epoch:
                self._in_flight = False

        if epoch != self._epoch:
            logger.info("session was reset during dispatch; reply dropped")
            return None
        return self._record(outcome)

    def _record(self, outcome: DispatchOutcome) -> Message:
        if isinstance(outcome, Success):
            message = Message(role="assistant", content=outcome.text or SILENCE)
            self._messages.append(message)
            return message

        logger.warning("dispatch failed (%s): %s", outcome.kind, outcome.message)
        message = Message(
            role="system",
            content=FAILURE_NOTICES[outcome.kind],
            failure=outcome.kind,
        )
        self._messages.append(message)
        if outcome.kind in CREDENTIAL_ACTION_KINDS and self.on_credential_action is not None:
            self.on_credential_action()
        return message
