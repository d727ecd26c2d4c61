"""Conversation and turn bookkeeping (core domain)."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Mapping, Optional
import uuid

from core.models import ROLES, Conversation, Message
from core.ports import StoragePort

LOGGER = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class SessionRecorder:
    """Creates or reuses conversations and appends turns to them.

    Messages are append-only: nothing here updates or deletes a stored turn.
    Storage errors propagate; callers decide whether a failed write matters.
    """

    def __init__(self, storage: StoragePort, clock: Callable[[], datetime] = utc_now) -> None:
        self._storage = storage
        self._clock = clock

    def ensure_conversation(
        self,
        user_id: str,
        bot_type: str,
        title: Optional[str] = None,
        reuse: bool = False,
    ) -> Conversation:
        """Return a conversation for (user, bot).

        With ``reuse`` the existing conversation for the pair is returned when
        there is one, so a user ends up with a single long-lived conversation
        for that bot.
        """

        if reuse:
            existing = self._storage.find_conversation(user_id, bot_type)
            if existing is not None:
                return existing

        now = self._clock()
        conversation = Conversation(
            id=new_id(),
            user_id=user_id,
            bot_type=bot_type,
            title=title,
            created_at=now,
            updated_at=now,
        )
        self._storage.create_conversation(conversation)
        LOGGER.debug("Created %s conversation %s", bot_type, conversation.id)
        return conversation

    def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Message:
        """Append one turn; content is stored exactly as given."""

        if role not in ROLES:
            raise ValueError(f"Unsupported role: {role}")

        message = Message(
            id=new_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=self._clock(),
            metadata=dict(metadata or {}),
        )
        self._storage.append_message(message)
        self._storage.touch_conversation(conversation_id, message.created_at)
        return message
