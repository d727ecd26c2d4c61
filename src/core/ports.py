"""Ports (interfaces) used by the core.

Ports define the minimal storage contract so that the core can be reused
with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from core.models import (
    Conversation,
    DistortionRecord,
    GratitudeEntry,
    Message,
    MoodEntry,
    SleepSession,
    VentingSession,
)


class StoragePort(Protocol):
    """Storage operations required by the recorder and the bot flows."""

    def create_conversation(self, conversation: Conversation) -> None:
        ...

    def find_conversation(self, user_id: str, bot_type: str) -> Optional[Conversation]:
        ...

    def touch_conversation(self, conversation_id: str, updated_at: datetime) -> None:
        ...

    def append_message(self, message: Message) -> None:
        ...

    def save_mood_entry(self, entry: MoodEntry) -> None:
        ...

    def save_gratitude_entry(self, entry: GratitudeEntry) -> None:
        ...

    def list_gratitude_entries(self, user_id: str, limit: int = 20) -> List[GratitudeEntry]:
        ...

    def save_distortion(self, record: DistortionRecord) -> None:
        ...

    def create_venting_session(self, session: VentingSession) -> None:
        ...

    def shred_venting_session(self, session_id: str, tombstone: str, shredded_at: datetime) -> bool:
        ...

    def start_sleep_session(self, session: SleepSession) -> None:
        ...
