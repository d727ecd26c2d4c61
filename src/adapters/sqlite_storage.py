"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import List, Optional

from core.models import (
    Conversation,
    DistortionRecord,
    GratitudeEntry,
    Message,
    MoodEntry,
    SleepSession,
    VentingSession,
)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - conversations: one row per (user, bot) conversation
        - messages: append-only log of turns
        - mood_entries, gratitude_entries, cognitive_distortions: write-once
          records of the journaling bots
        - venting_sessions: vented text until it is shredded
        - sleep_sessions: one row per sleep guardian session start
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    bot_type TEXT NOT NULL,
                    title TEXT,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_conversations_user_bot ON conversations (user_id, bot_type)"
            )
            # messages keeps an autoincrement seq next to the public id so reads
            # come back in insertion order even when created_at values tie.
            # Fields:
            # - seq: insertion order (PRIMARY KEY)
            # - id: public message id
            # - conversation_id: owning conversation
            # - role: user or assistant
            # - content: text exactly as submitted
            # - metadata: JSON object, e.g. {"detected_emotion": "happy"}
            # - created_at: write timestamp
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    conversation_id TEXT NOT NULL REFERENCES conversations (id),
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS mood_entries (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    mood TEXT NOT NULL,
                    intensity INTEGER NOT NULL,
                    music_recommendation TEXT NOT NULL,
                    mindfulness_exercise TEXT,
                    notes TEXT,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS gratitude_entries (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    gratitude_text TEXT NOT NULL,
                    challenge_completed INTEGER NOT NULL DEFAULT 0,
                    challenge_description TEXT,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cognitive_distortions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    distortion_type TEXT NOT NULL,
                    original_thought TEXT NOT NULL,
                    reframed_thought TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            # venting_sessions rows are never deleted; shredding overwrites the
            # content with a tombstone and stamps shredded_at.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS venting_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    is_shredded INTEGER NOT NULL DEFAULT 0,
                    shredded_at TIMESTAMP,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sleep_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    start_time TIMESTAMP NOT NULL,
                    end_time TIMESTAMP
                )
                """
            )

    # -- conversations -------------------------------------------------------

    @staticmethod
    def _conversation(row: sqlite3.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            user_id=row["user_id"],
            bot_type=row["bot_type"],
            title=row["title"],
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def create_conversation(self, conversation: Conversation) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO conversations (id, user_id, bot_type, title, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    conversation.id,
                    conversation.user_id,
                    conversation.bot_type,
                    conversation.title,
                    _ts(conversation.created_at),
                    _ts(conversation.updated_at),
                ),
            )

    def find_conversation(self, user_id: str, bot_type: str) -> Optional[Conversation]:
        """Return the oldest conversation for a (user, bot) pair, if any."""

        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM conversations
                WHERE user_id = ? AND bot_type = ?
                ORDER BY created_at ASC
                LIMIT 1
                """,
                (user_id, bot_type),
            ).fetchone()
        return self._conversation(row) if row else None

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?",
                (conversation_id,),
            ).fetchone()
        return self._conversation(row) if row else None

    def touch_conversation(self, conversation_id: str, updated_at: datetime) -> None:
        # bot_type is never updated after insert.
        with self._connect() as conn:
            conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE id = ?",
                (_ts(updated_at), conversation_id),
            )

    # -- messages ------------------------------------------------------------

    def append_message(self, message: Message) -> None:
        """Persist a turn to the append-only messages table."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.conversation_id,
                    message.role,
                    message.content,
                    json.dumps(message.metadata),
                    _ts(message.created_at),
                ),
            )

    def list_messages(self, conversation_id: str) -> List[Message]:
        """Return a conversation's messages in the order they were appended."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM messages WHERE conversation_id = ? ORDER BY seq ASC",
                (conversation_id,),
            ).fetchall()
        return [
            Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                role=row["role"],
                content=row["content"],
                created_at=_parse_ts(row["created_at"]),
                metadata=json.loads(row["metadata"] or "{}"),
            )
            for row in rows
        ]

    # -- journaling records ----------------------------------------------------

    def save_mood_entry(self, entry: MoodEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO mood_entries (
                    id,
                    user_id,
                    mood,
                    intensity,
                    music_recommendation,
                    mindfulness_exercise,
                    notes,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.user_id,
                    entry.mood,
                    entry.intensity,
                    json.dumps(entry.music_recommendation),
                    entry.mindfulness_exercise,
                    entry.notes,
                    _ts(entry.created_at),
                ),
            )

    def list_mood_entries(self, user_id: str) -> List[MoodEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM mood_entries WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
        return [
            MoodEntry(
                id=row["id"],
                user_id=row["user_id"],
                mood=row["mood"],
                intensity=int(row["intensity"]),
                music_recommendation=json.loads(row["music_recommendation"]),
                mindfulness_exercise=row["mindfulness_exercise"],
                notes=row["notes"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]

    def save_gratitude_entry(self, entry: GratitudeEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO gratitude_entries (
                    id,
                    user_id,
                    gratitude_text,
                    challenge_completed,
                    challenge_description,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.user_id,
                    entry.gratitude_text,
                    int(entry.challenge_completed),
                    entry.challenge_description,
                    _ts(entry.created_at),
                ),
            )

    def list_gratitude_entries(self, user_id: str, limit: int = 20) -> List[GratitudeEntry]:
        """Return the newest entries first."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM gratitude_entries
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [
            GratitudeEntry(
                id=row["id"],
                user_id=row["user_id"],
                gratitude_text=row["gratitude_text"],
                challenge_completed=bool(row["challenge_completed"]),
                challenge_description=row["challenge_description"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]

    def save_distortion(self, record: DistortionRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO cognitive_distortions (
                    id,
                    user_id,
                    distortion_type,
                    original_thought,
                    reframed_thought,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.user_id,
                    record.distortion_type,
                    record.original_thought,
                    record.reframed_thought,
                    _ts(record.created_at),
                ),
            )

    def list_distortions(self, user_id: str) -> List[DistortionRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM cognitive_distortions WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
                (user_id,),
            ).fetchall()
        return [
            DistortionRecord(
                id=row["id"],
                user_id=row["user_id"],
                distortion_type=row["distortion_type"],
                original_thought=row["original_thought"],
                reframed_thought=row["reframed_thought"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]

    # -- venting ---------------------------------------------------------------

    def create_venting_session(self, session: VentingSession) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO venting_sessions (id, user_id, content, is_shredded, shredded_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.user_id,
                    session.content,
                    int(session.is_shredded),
                    _ts(session.shredded_at),
                    _ts(session.created_at),
                ),
            )

    def get_venting_session(self, session_id: str) -> Optional[VentingSession]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM venting_sessions WHERE id = ?",
                (session_id,),
            ).fetchone()
        if not row:
            return None
        return VentingSession(
            id=row["id"],
            user_id=row["user_id"],
            content=row["content"],
            is_shredded=bool(row["is_shredded"]),
            shredded_at=_parse_ts(row["shredded_at"]),
            created_at=_parse_ts(row["created_at"]),
        )

    def shred_venting_session(self, session_id: str, tombstone: str, shredded_at: datetime) -> bool:
        """Overwrite the content with a tombstone; True only if this call shredded it.

        The ``is_shredded = 0`` guard makes the transition one-way: a repeat
        call matches no row and leaves the first shredded_at untouched.
        """

        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE venting_sessions
                SET content = ?, is_shredded = 1, shredded_at = ?
                WHERE id = ? AND is_shredded = 0
                """,
                (tombstone, _ts(shredded_at), session_id),
            )
            return cur.rowcount == 1

    # -- sleep -----------------------------------------------------------------

    def start_sleep_session(self, session: SleepSession) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO sleep_sessions (id, user_id, start_time, end_time) VALUES (?, ?, ?, ?)",
                (session.id, session.user_id, _ts(session.start_time), _ts(session.end_time)),
            )

    def list_sleep_sessions(self, user_id: str) -> List[SleepSession]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM sleep_sessions WHERE user_id = ? ORDER BY start_time ASC",
                (user_id,),
            ).fetchall()
        return [
            SleepSession(
                id=row["id"],
                user_id=row["user_id"],
                start_time=_parse_ts(row["start_time"]),
                end_time=_parse_ts(row["end_time"]),
            )
            for row in rows
        ]
