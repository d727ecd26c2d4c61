"""Interactive bot sessions.

A session owns the transient state of one user talking to one bot and the
single timer used for its processing delay. Resetting or closing a session
cancels that timer so nothing fires into a session that has moved on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from core.bots import MOODS, PER_SESSION, VENTING_SHREDDER
from core.config import SessionConfig
from core.emotion import EmotionSampler
from core.models import GratitudeEntry
from core.processor import MoodRecommendation, SupportProcessor, TurnResult
from core.state import (
    GratitudeState,
    GratitudeView,
    InvalidTransition,
    MoodState,
    TurnState,
    VentState,
    VentStep,
    accept_challenge,
    advance_shred,
    back_to_mood,
    back_to_write,
    begin_shred,
    begin_turn,
    choose_mood,
    complete_shred,
    entry_saved,
    fail_turn,
    finish_turn,
    reset_mood,
    reset_turn,
    reset_vent,
    set_intensity,
    show_recommendation,
    submit_vent,
    switch_view,
    tick,
)

LOGGER = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class _TimedSession:
    """Shared single-timer bookkeeping."""

    def __init__(self, sleep: Sleeper) -> None:
        self._sleep = sleep
        self._timer: Optional[asyncio.Task] = None
        # Timers cancelled by a reset, as opposed to the caller being cancelled.
        self._reset_timers: Set[asyncio.Future] = set()

    @property
    def busy(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def _run_timed(self, factory: Callable[[], Awaitable]):
        """Run ``factory()`` as the session timer; None when a reset cancelled it."""

        if self.busy:
            raise RuntimeError("Session is already processing")
        timer = asyncio.ensure_future(factory())
        self._timer = timer
        try:
            return await timer
        except asyncio.CancelledError:
            if timer in self._reset_timers:
                return None
            raise
        finally:
            self._reset_timers.discard(timer)
            if self._timer is timer:
                self._timer = None

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done():
            self._reset_timers.add(timer)
            timer.cancel()
            LOGGER.debug("Cancelled pending session timer")

    def close(self) -> None:
        self._cancel_timer()


class ChatSession(_TimedSession):
    """Input -> processing -> result loop for the chat-style bots."""

    def __init__(
        self,
        processor: SupportProcessor,
        bot_type: str,
        user_id: str,
        config: Optional[SessionConfig] = None,
        sampler: Optional[EmotionSampler] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        super().__init__(sleep)
        self._processor = processor
        self._bot = processor.registry.get(bot_type)
        self._user_id = user_id
        self._config = config or SessionConfig()
        self._sampler = sampler
        self._conversation_id: Optional[str] = None
        self.greeting: Optional[str] = None
        self.state = TurnState(countdown=self._config.countdown_seconds)

    @property
    def conversation_id(self) -> Optional[str]:
        return self._conversation_id

    @property
    def delay(self) -> float:
        override = self._config.processing_delay_seconds
        return self._bot.processing_delay if override is None else override

    async def start(self) -> Optional[str]:
        """Open the session and return the bot's greeting, if it has one."""

        started = await self._processor.start_session(self._user_id, self._bot.bot_type)
        if started.conversation is not None:
            self._conversation_id = started.conversation.id
        self.greeting = started.greeting
        return self.greeting

    async def _pause(self) -> None:
        remaining = self.delay
        while remaining > 0:
            step = min(1.0, remaining)
            await self._sleep(step)
            remaining -= step
            self.state = tick(self.state)

    async def submit(self, text: str) -> Optional[TurnResult]:
        """Run one turn; returns None if the session was reset mid-turn."""

        self.state = begin_turn(self.state, text)
        # Snapshot the label now; the sampler keeps running during the delay.
        label = self._sampler.current_label if self._sampler else None
        try:
            result = await self._run_timed(
                lambda: self._processor.handle_turn(
                    self._user_id,
                    self._bot.bot_type,
                    text,
                    conversation_id=self._conversation_id,
                    context_label=label,
                    pause=self._pause,
                )
            )
        except Exception:
            self.state = fail_turn(self.state)
            raise
        if result is None:
            return None

        if self._bot.conversation_policy == PER_SESSION:
            self._conversation_id = result.conversation_id
        self.state = finish_turn(self.state, result.categories, result.response)
        return result

    def reset(self) -> None:
        """Clear the per-turn fields; stored messages are left alone."""

        self._cancel_timer()
        self.state = reset_turn(self.state, countdown=self._config.countdown_seconds)
        # Untitled per-session bots start a fresh conversation per round.
        if self._bot.title is None:
            self._conversation_id = None


class ShredderSession(_TimedSession):
    """Write -> confirm -> shredding -> complete for the venting bot."""

    def __init__(
        self,
        processor: SupportProcessor,
        user_id: str,
        config: Optional[SessionConfig] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        super().__init__(sleep)
        self._processor = processor
        self._user_id = user_id
        self._config = config or SessionConfig()
        override = self._config.processing_delay_seconds
        bot_delay = processor.registry.get(VENTING_SHREDDER).processing_delay
        self._shred_delay = bot_delay if override is None else override
        self.state = VentState()

    async def write(self, text: str) -> bool:
        """Store the text and ask for confirmation; False if it could not be stored."""

        if self.state.step is not VentStep.WRITE:
            raise RuntimeError("Venting text can only be written in the write step")
        session = await self._processor.vent(self._user_id, text)
        if session is None:
            return False
        self.state = submit_vent(self.state, text, session.id)
        return True

    def back(self) -> None:
        self.state = back_to_write(self.state)

    async def _progress(self) -> None:
        while self.state.progress < 100:
            await self._sleep(self._config.shred_step_seconds)
            self.state = advance_shred(self.state)

    async def _shred_later(self, session_id: str) -> bool:
        await self._sleep(self._shred_delay)
        return await self._processor.shred(session_id)

    async def shred(self) -> bool:
        """Shred the stored text; False if storage could not be updated or a reset intervened."""

        self.state = begin_shred(self.state)
        session_id = self.state.session_id
        outcome = await self._run_timed(
            lambda: asyncio.gather(self._progress(), self._shred_later(session_id))
        )
        if outcome is None:
            return False
        self.state = complete_shred(self.state)
        return bool(outcome[1])

    def reset(self) -> None:
        self._cancel_timer()
        self.state = reset_vent(self.state)


class MoodSession:
    """Mood -> intensity -> recommendation for the mood tracker."""

    def __init__(self, processor: SupportProcessor, user_id: str) -> None:
        self._processor = processor
        self._user_id = user_id
        self.state = MoodState()
        self.recommendation: Optional[MoodRecommendation] = None

    def choose(self, mood: str) -> None:
        if mood not in MOODS:
            raise ValueError(f"Unknown mood: {mood}")
        self.state = choose_mood(self.state, mood)

    def describe(self, intensity: int, notes: Optional[str] = None) -> None:
        self.state = set_intensity(self.state, intensity, notes)

    def back(self) -> None:
        self.state = back_to_mood(self.state)

    async def submit(self) -> MoodRecommendation:
        recommendation = await self._processor.record_mood(
            self._user_id, self.state.mood, self.state.intensity, self.state.notes or None
        )
        self.state = show_recommendation(self.state)
        self.recommendation = recommendation
        return recommendation

    def reset(self) -> None:
        self.state = reset_mood(self.state)
        self.recommendation = None


class GratitudeSession:
    """Add entries with an optional daily challenge, and browse history."""

    def __init__(self, processor: SupportProcessor, user_id: str) -> None:
        self._processor = processor
        self._user_id = user_id
        self.state = GratitudeState(challenge=processor.draw_challenge())
        self.entries: List[GratitudeEntry] = processor.gratitude_history(user_id)

    @property
    def challenges_completed(self) -> int:
        return sum(1 for entry in self.entries if entry.challenge_completed)

    def accept(self, accepted: bool = True) -> None:
        self.state = accept_challenge(self.state, accepted)

    def show(self, view: GratitudeView) -> None:
        self.state = switch_view(self.state, view)

    async def submit(self, text: str) -> GratitudeEntry:
        if self.state.view is not GratitudeView.ADD:
            raise InvalidTransition("Entries can only be added from the add view")
        challenge = self.state.challenge if self.state.challenge_accepted else None
        entry = await self._processor.record_gratitude(self._user_id, text, challenge)
        self.state = entry_saved(self.state, self._processor.draw_challenge())
        self.entries = self._processor.gratitude_history(self._user_id)
        return entry
