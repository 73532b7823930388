"""Core domain models.

The session state is a single pydantic record that is persisted whole after
every accepted mutation. FieldSet is the transient, partially-populated
result of reading one debug panel; its None-vs-empty distinctions never reach
the persisted record.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

Role = Literal["user", "model"]

DEFAULT_LEVEL = 1
DEFAULT_INTEGRITY = 100


class DevaName(str, Enum):
    """The five examiners who may speak a turn."""

    SMRTI = "SMṚTI"
    BUDDHI = "BUDDHI"
    MANAS = "MANAS"
    MAYA = "MĀYĀ"
    KARMA = "KARMA"


class Message(BaseModel):
    """A single entry in the session's append-only history."""

    role: Role
    text: str
    speaker: str | None = None  # model only; "" means a bare "[]" header
    debug: str | None = None  # model only; raw debug panel text

    @model_validator(mode="after")
    def _user_has_no_annotations(self) -> Message:
        if self.role == "user" and (self.speaker is not None or self.debug is not None):
            raise ValueError("user messages carry neither speaker nor debug")
        return self


def new_player_id() -> str:
    return f"soul_{uuid.uuid4().hex[:9]}"


class SessionState(BaseModel):
    player_id: str = Field(default_factory=new_player_id)
    current_level: int = DEFAULT_LEVEL
    integrity_score: int = DEFAULT_INTEGRITY
    established_facts: list[str] = Field(default_factory=list)
    narrative_timeline: list[str] = Field(default_factory=list)
    contradictions: list[str] = Field(default_factory=list)  # set semantics
    corrections: list[str] = Field(default_factory=list)
    emotional_profile: dict[str, Any] = Field(default_factory=dict)
    moral_profile: dict[str, Any] = Field(default_factory=dict)
    deva_opinions: dict[str, str] = Field(default_factory=dict)
    session_history: list[Message] = Field(default_factory=list)

    @classmethod
    def new(cls) -> SessionState:
        """Fresh state: default counters, empty containers, new player id."""
        return cls()


class FieldSet(BaseModel):
    """Values read from one debug panel. None means the label was absent."""

    integrity_score: int | None = None
    level: int | None = None
    contradiction_list: list[str] | None = None

    def is_empty(self) -> bool:
        return (
            self.integrity_score is None
            and self.level is None
            and self.contradiction_list is None
        )
