"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage-specific row types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLES = frozenset({ROLE_USER, ROLE_ASSISTANT})

SHRED_TOMBSTONE = "[SHREDDED]"


@dataclass(frozen=True)
class Conversation:
    """A logical grouping of turns for one user and one bot."""

    id: str
    user_id: str
    bot_type: str
    title: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Message:
    """One role-tagged utterance within a conversation."""

    id: str
    conversation_id: str
    role: str
    content: str
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MoodEntry:
    id: str
    user_id: str
    mood: str
    intensity: int
    music_recommendation: dict[str, Any]
    mindfulness_exercise: Optional[str]
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class GratitudeEntry:
    id: str
    user_id: str
    gratitude_text: str
    challenge_completed: bool
    challenge_description: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class DistortionRecord:
    """One detected distortion together with the reframe that was shown."""

    id: str
    user_id: str
    distortion_type: str
    original_thought: str
    reframed_thought: str
    created_at: datetime


@dataclass(frozen=True)
class VentingSession:
    id: str
    user_id: str
    content: str
    is_shredded: bool
    shredded_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class SleepSession:
    id: str
    user_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
