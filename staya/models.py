"""Core domain models.

Every session operation, the dispatch layer and the narrative parser work
on these types. Pydantic is used for validation and serialisation at every
data boundary (host API, MCP tools, tests).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant", "system"]

SessionPhase = Literal["intake", "briefing", "chat"]

FailureKind = Literal[
    "credential_missing",
    "model_unavailable",   # every candidate rejected the credential/model
    "transient",
    "unknown",
]

DOSSIER_FIELDS = ("name", "age", "appearance", "personality", "role")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Dossier / roster
# ---------------------------------------------------------------------------

class Dossier(BaseModel):
    """The player's persona. All fields are free text."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    age: str = ""
    appearance: str = ""
    personality: str = ""
    role: str = ""

    def has_name(self) -> bool:
        return bool(self.name.strip())

    def is_complete(self) -> bool:
        return all(getattr(self, f).strip() for f in DOSSIER_FIELDS)


class RosterEntry(BaseModel):
    """An NPC from the key personnel catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    alias: str | None = None
    role: str
    age: str
    height: str
    description: str
    image: str


# ---------------------------------------------------------------------------
# Message history
# ---------------------------------------------------------------------------

class Message(BaseModel):
    """A single entry in the session's append-only message history."""

    role: Role
    content: str
    timestamp: str = Field(default_factory=now_iso)
    failure: FailureKind | None = None  # present on system notices only


# ---------------------------------------------------------------------------
# Dispatch outcomes
# ---------------------------------------------------------------------------

class Success(BaseModel):
    ok: Literal[True] = True
    text: str
    model: str = ""


class Failure(BaseModel):
    ok: Literal[False] = False
    kind: FailureKind
    message: str
    model: str = ""


DispatchOutcome = Union[Success, Failure]


# ---------------------------------------------------------------------------
# Narrative segments
# ---------------------------------------------------------------------------

class Header(BaseModel):
    """Per-turn HUD line: turn, date, time, season, weather, location."""

    type: Literal["header"] = "header"
    paragraph: int = 0
    text: str
    turn: str = ""
    date: str = ""
    time: str = ""
    season: str = ""
    weather: str = ""
    location: str = ""


class Dialogue(BaseModel):
    type: Literal["dialogue"] = "dialogue"
    paragraph: int = 0
    speaker: str
    line: str


class Monologue(BaseModel):
    type: Literal["monologue"] = "monologue"
    paragraph: int = 0
    text: str


class Narration(BaseModel):
    type: Literal["narration"] = "narration"
    paragraph: int = 0
    text: str


NarrativeSegment = Annotated[
    Union[Header, Dialogue, Monologue, Narration],
    Field(discriminator="type"),
]


class TranscriptEntry(Message):
    """A history message as the rendering layer sees it.

    Assistant messages carry their parsed segments next to the raw text.
    """

    segments: list[NarrativeSegment] = Field(default_factory=list)
