"""Core turn processing.

This module is integration-agnostic. It only relies on the storage port,
enabling other frontends or storage adapters without changes here.

Classification and response selection happen first and never depend on
storage. Persistence is best-effort: a failed write is logged and the
computed response is still returned to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
import random
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from core.bots import (
    COGNITIVE_DISTORTION,
    DAILY_CHALLENGE,
    DISTORTIONS,
    GRATITUDE,
    MINDFULNESS_EXERCISES,
    MOOD_PLAYLISTS,
    MOODS,
    NO_CONVERSATION,
    REUSE,
    SLEEP_GUARDIAN,
    TRIPLE_M,
    BotDefinition,
    BotRegistry,
    DistortionInfo,
)
from core.catalog import select_for_result, select_response
from core.models import (
    ROLE_ASSISTANT,
    ROLE_USER,
    SHRED_TOMBSTONE,
    Conversation,
    DistortionRecord,
    GratitudeEntry,
    MoodEntry,
    SleepSession,
    VentingSession,
)
from core.ports import StoragePort
from core.recorder import SessionRecorder, new_id, utc_now
from core.rules_engine import classify
from core.state import MAX_INTENSITY, MIN_INTENSITY

LOGGER = logging.getLogger(__name__)

TITLE_CHARS = 50


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one turn as shown to the user."""

    bot_type: str
    categories: Tuple[str, ...]
    response: str
    conversation_id: Optional[str] = None
    context_label: Optional[str] = None


@dataclass(frozen=True)
class SessionStart:
    conversation: Optional[Conversation] = None
    sleep_session: Optional[SleepSession] = None
    greeting: Optional[str] = None


@dataclass(frozen=True)
class DistortionAnalysis:
    thought: str
    distortions: Tuple[DistortionInfo, ...]
    reframe: str


@dataclass(frozen=True)
class MoodRecommendation:
    mood: str
    intensity: int
    playlists: Tuple[str, ...]
    mindfulness_exercise: str


class SupportProcessor:
    """Runs bot turns and the record-keeping flows around them."""

    def __init__(
        self,
        registry: BotRegistry,
        storage: StoragePort,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._registry = registry
        self._storage = storage
        self._rng = rng or random.Random()
        self._clock = clock
        self._recorder = SessionRecorder(storage, clock=clock)

    @property
    def registry(self) -> BotRegistry:
        return self._registry

    def _attempt(self, action: str, func: Callable[..., Any], *args: Any) -> Tuple[bool, Any]:
        """Run a storage call; failures are logged and reported as (False, None)."""

        try:
            return True, func(*args)
        except Exception:
            LOGGER.exception("Failed to %s", action)
            return False, None

    def respond(self, bot_type: str, text: str, context_label: Optional[str] = None) -> TurnResult:
        """Classify text and pick a response without touching storage."""

        bot = self._registry.get(bot_type)
        if bot.table is not None:
            categories = classify(text, bot.table)
        elif bot.catalog.fallback_category:
            # Label-keyed bots: the context label picks the pool, falling back
            # to the catalog's designated pool until a label is available.
            categories = (context_label or bot.catalog.fallback_category,)
        else:
            raise ValueError(f"Bot {bot_type} does not respond to free text")

        response = select_for_result(categories, bot.catalog, self._rng)
        return TurnResult(
            bot_type=bot_type,
            categories=categories,
            response=response,
            context_label=context_label,
        )

    async def start_session(self, user_id: str, bot_type: str) -> SessionStart:
        """Open a bot session: fixed-title conversations and sleep tracking start here."""

        bot = self._registry.get(bot_type)
        conversation = None
        sleep_session = None

        if bot.conversation_policy not in (NO_CONVERSATION, REUSE) and bot.title:
            _, conversation = self._attempt(
                "create conversation",
                self._recorder.ensure_conversation,
                user_id,
                bot_type,
                bot.title,
            )

        if bot_type == SLEEP_GUARDIAN:
            sleep_session = SleepSession(id=new_id(), user_id=user_id, start_time=self._clock())
            stored, _ = self._attempt("start sleep session", self._storage.start_sleep_session, sleep_session)
            if not stored:
                LOGGER.info("Sleep session for %s started without tracking", user_id)

        return SessionStart(conversation=conversation, sleep_session=sleep_session, greeting=bot.greeting)

    def _conversation_for_turn(
        self, user_id: str, bot: BotDefinition, text: str, conversation_id: Optional[str]
    ) -> Optional[str]:
        if bot.conversation_policy == NO_CONVERSATION:
            return None
        if bot.conversation_policy == REUSE:
            _, conversation = self._attempt(
                "look up conversation",
                self._recorder.ensure_conversation,
                user_id,
                bot.bot_type,
                bot.title,
                True,
            )
            return conversation.id if conversation else None
        if conversation_id:
            return conversation_id
        _, conversation = self._attempt(
            "create conversation",
            self._recorder.ensure_conversation,
            user_id,
            bot.bot_type,
            bot.title or text[:TITLE_CHARS],
        )
        return conversation.id if conversation else None

    async def handle_turn(
        self,
        user_id: str,
        bot_type: str,
        text: str,
        conversation_id: Optional[str] = None,
        context_label: Optional[str] = None,
        pause: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> TurnResult:
        """Process one user turn through classification, selection and recording.

        ``pause`` runs between recording the user turn and the reply; it is
        where sessions put their artificial thinking time.
        """

        if not text or not text.strip():
            raise ValueError("Cannot process blank text")

        bot = self._registry.get(bot_type)
        result = self.respond(bot_type, text, context_label)

        conversation_id = self._conversation_for_turn(user_id, bot, text, conversation_id)
        if conversation_id:
            metadata = {"detected_emotion": context_label} if context_label else None
            self._attempt(
                "record user message",
                self._recorder.append_message,
                conversation_id,
                ROLE_USER,
                text,
                metadata,
            )

        if pause is not None:
            await pause()

        if conversation_id:
            metadata = {"analyzed_emotion": context_label} if context_label else None
            self._attempt(
                "record assistant message",
                self._recorder.append_message,
                conversation_id,
                ROLE_ASSISTANT,
                result.response,
                metadata,
            )
            LOGGER.info("Turn recorded for %s (%s)", bot_type, ", ".join(result.categories))

        return replace(result, conversation_id=conversation_id)

    async def analyze_thought(self, user_id: str, thought: str) -> DistortionAnalysis:
        """Spot distortions in a thought and store one record per distortion."""

        if not thought or not thought.strip():
            raise ValueError("Cannot analyze a blank thought")

        bot = self._registry.get(COGNITIVE_DISTORTION)
        categories = classify(thought, bot.table)
        reframe = select_for_result(categories, bot.catalog, self._rng)

        created_at = self._clock()
        for category in categories:
            record = DistortionRecord(
                id=new_id(),
                user_id=user_id,
                distortion_type=category,
                original_thought=thought,
                reframed_thought=reframe,
                created_at=created_at,
            )
            self._attempt("save distortion record", self._storage.save_distortion, record)

        return DistortionAnalysis(
            thought=thought,
            distortions=tuple(DISTORTIONS[category] for category in categories),
            reframe=reframe,
        )

    def suggest_mood(self, text: str) -> Optional[str]:
        """Guess a mood from free text; None when nothing in the text points to one."""

        category = classify(text, self._registry.get(TRIPLE_M).table)[0]
        return category if category in MOODS else None

    async def record_mood(
        self, user_id: str, mood: str, intensity: int, notes: Optional[str] = None
    ) -> MoodRecommendation:
        if mood not in MOODS:
            raise ValueError(f"Unknown mood: {mood}")
        if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
            raise ValueError(f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}")

        playlists = tuple(MOOD_PLAYLISTS[mood])
        exercise = MINDFULNESS_EXERCISES[mood]
        entry = MoodEntry(
            id=new_id(),
            user_id=user_id,
            mood=mood,
            intensity=intensity,
            music_recommendation={"playlists": list(playlists)},
            mindfulness_exercise=exercise,
            notes=notes or None,
            created_at=self._clock(),
        )
        self._attempt("save mood entry", self._storage.save_mood_entry, entry)
        return MoodRecommendation(
            mood=mood, intensity=intensity, playlists=playlists, mindfulness_exercise=exercise
        )

    def draw_challenge(self) -> str:
        return select_response(DAILY_CHALLENGE, self._registry.get(GRATITUDE).catalog, self._rng)

    async def record_gratitude(
        self, user_id: str, text: str, challenge: Optional[str] = None
    ) -> GratitudeEntry:
        """Save a gratitude entry; ``challenge`` is the accepted daily challenge, if any."""

        if not text or not text.strip():
            raise ValueError("Cannot save a blank gratitude entry")

        entry = GratitudeEntry(
            id=new_id(),
            user_id=user_id,
            gratitude_text=text,
            challenge_completed=challenge is not None,
            challenge_description=challenge,
            created_at=self._clock(),
        )
        self._attempt("save gratitude entry", self._storage.save_gratitude_entry, entry)
        return entry

    def gratitude_history(self, user_id: str, limit: int = 20) -> List[GratitudeEntry]:
        _, entries = self._attempt(
            "load gratitude entries", self._storage.list_gratitude_entries, user_id, limit
        )
        return entries or []

    async def vent(self, user_id: str, text: str) -> Optional[VentingSession]:
        """Store vented text until it is shredded; None when it could not be stored."""

        if not text or not text.strip():
            raise ValueError("Cannot vent blank text")

        session = VentingSession(
            id=new_id(),
            user_id=user_id,
            content=text,
            is_shredded=False,
            shredded_at=None,
            created_at=self._clock(),
        )
        stored, _ = self._attempt("save venting session", self._storage.create_venting_session, session)
        if not stored:
            return None
        return session

    async def shred(self, session_id: str) -> bool:
        """Overwrite a venting session with the tombstone.

        Returns True only for the call that actually shredded it; shredding an
        already shredded session changes nothing.
        """

        _, shredded = self._attempt(
            "shred venting session",
            self._storage.shred_venting_session,
            session_id,
            SHRED_TOMBSTONE,
            self._clock(),
        )
        if shredded:
            LOGGER.info("Venting session %s shredded", session_id)
        return bool(shredded)
