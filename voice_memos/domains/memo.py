"""
Domain models for memos and speech sessions.

This module defines the persisted Memo record, the observable state of the
memo cache, and the transient state of a speech recognition session.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

__all__ = [
    "Memo",
    "MemoState",
    "SpeechSessionStatus",
    "SpeechSessionState",
    "format_date",
    "truncate_text",
]


class Memo(BaseModel):
    """A short text note persisted in the local database."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Unique identifier, assigned at creation")
    text: str = Field(..., description="Memo content")
    created_at: datetime = Field(..., description="Creation time, never mutated")
    updated_at: datetime = Field(..., description="Time of the last successful write")

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        """Validate that the id is not empty."""
        if not v:
            raise ValueError("Memo id cannot be empty")
        return v

    @model_validator(mode="after")
    def check_timestamps(self) -> "Memo":
        """Validate that a memo is never updated before it was created."""
        if self.created_at > self.updated_at:
            raise ValueError("created_at must not be later than updated_at")
        return self


class MemoState(BaseModel):
    """Snapshot of the memo cache shared with every consumer."""

    memos: List[Memo] = Field(default_factory=list, description="Cached memos")
    loading: bool = Field(False, description="An operation is in flight")
    error: Optional[str] = Field(None, description="Last error message")


class SpeechSessionStatus(str, Enum):
    """Lifecycle states of a speech recognition session."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    LISTENING = "listening"
    UNSUPPORTED = "unsupported"


class SpeechSessionState(BaseModel):
    """Transient state of a speech session. Never persisted."""

    transcript: str = ""
    is_listening: bool = False
    error: Optional[str] = None


def format_date(value: datetime) -> str:
    """Format a timestamp for display in local time, e.g. ``05 Mar 2025, 14:07``."""
    return value.astimezone().strftime("%d %b %Y, %H:%M")


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to max_length characters, appending an ellipsis when shortened."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
