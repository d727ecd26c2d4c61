from __future__ import annotations

import asyncio
import random

import pytest

from adapters.sqlite_storage import SQLiteStorage
from core.bots import FACE_DETECTION, MICRO_THERAPY, SLEEP_GUARDIAN, default_registry
from core.config import SessionConfig
from core.emotion import EmotionSampler
from core.models import SHRED_TOMBSTONE
from core.processor import SupportProcessor
from core.session import ChatSession, GratitudeSession, MoodSession, ShredderSession
from core.state import GratitudeView, InvalidTransition, MoodStep, TurnStep, VentStep


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class BlockingSleep:
    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def __call__(self, seconds: float) -> None:
        self.started.set()
        await asyncio.Event().wait()


class FirstCallBlocks:
    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.calls = 0

    async def __call__(self, seconds: float) -> None:
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await asyncio.Event().wait()
        await asyncio.sleep(0)


def _processor(tmp_path) -> tuple[SupportProcessor, SQLiteStorage]:
    storage = SQLiteStorage(str(tmp_path / "wellbots.db"))
    storage.init_db()
    return SupportProcessor(default_registry(), storage, rng=random.Random(0)), storage


def test_chat_turn_waits_bot_delay_and_counts_down(tmp_path) -> None:
    processor, storage = _processor(tmp_path)
    sleep = FakeSleep()
    session = ChatSession(processor, MICRO_THERAPY, "u1", sleep=sleep)

    result = asyncio.run(session.submit("I feel so anxious about the exam"))

    assert sleep.calls == [1.0, 1.0, 1.0]
    assert session.state.step is TurnStep.RESULT
    assert session.state.countdown == 57
    assert result.categories == ("anxious",)
    assert [m.role for m in storage.list_messages(result.conversation_id)] == ["user", "assistant"]

    session.reset()
    assert session.state.step is TurnStep.INPUT
    assert session.state.countdown == 60
    assert session.conversation_id is None


def test_config_delay_overrides_bot_delay(tmp_path) -> None:
    processor, _ = _processor(tmp_path)
    sleep = FakeSleep()
    session = ChatSession(
        processor, MICRO_THERAPY, "u1", config=SessionConfig(processing_delay_seconds=0), sleep=sleep
    )
    asyncio.run(session.submit("lonely tonight"))
    assert sleep.calls == []


def test_reset_cancels_pending_turn(tmp_path) -> None:
    processor, _ = _processor(tmp_path)

    async def scenario() -> None:
        sleep = BlockingSleep()
        session = ChatSession(processor, MICRO_THERAPY, "u1", sleep=sleep)
        pending = asyncio.ensure_future(session.submit("I feel sad"))
        await sleep.started.wait()
        assert session.busy

        with pytest.raises(InvalidTransition):
            await session.submit("again")

        session.reset()
        assert await pending is None
        assert not session.busy
        assert session.state.step is TurnStep.INPUT

    asyncio.run(scenario())


def test_submit_right_after_reset_starts_a_new_turn(tmp_path) -> None:
    processor, storage = _processor(tmp_path)

    async def scenario() -> None:
        sleep = FirstCallBlocks()
        session = ChatSession(processor, MICRO_THERAPY, "u1", sleep=sleep)
        pending = asyncio.ensure_future(session.submit("I feel sad"))
        await sleep.started.wait()

        session.reset()
        assert not session.busy
        second = await session.submit("I feel lonely")

        assert second.categories == ("lonely",)
        assert await pending is None
        assert not session.busy
        assert session.state.step is TurnStep.RESULT
        assert session.state.response == second.response
        roles = [m.role for m in storage.list_messages(second.conversation_id)]
        assert roles == ["user", "assistant"]

    asyncio.run(scenario())


def test_shredder_reset_cancels_pending_shred(tmp_path) -> None:
    processor, storage = _processor(tmp_path)

    async def scenario() -> None:
        sleep = BlockingSleep()
        session = ShredderSession(processor, "u1", sleep=sleep)
        assert await session.write("I am so angry")
        session_id = session.state.session_id
        pending = asyncio.ensure_future(session.shred())
        await sleep.started.wait()

        session.reset()
        assert await pending is False
        assert session.state.step is VentStep.WRITE
        assert storage.get_venting_session(session_id).is_shredded is False

    asyncio.run(scenario())


def test_sleep_guardian_greets_and_keeps_conversation(tmp_path) -> None:
    processor, storage = _processor(tmp_path)
    session = ChatSession(processor, SLEEP_GUARDIAN, "u1", sleep=FakeSleep())

    async def scenario() -> tuple:
        greeting = await session.start()
        first = await session.submit("I can't sleep")
        session.reset()
        second = await session.submit("I had a nightmare")
        return greeting, first, second

    greeting, first, second = asyncio.run(scenario())
    assert greeting.startswith("Good evening")
    assert first.conversation_id == second.conversation_id
    assert len(storage.list_sleep_sessions("u1")) == 1
    assert len(storage.list_messages(first.conversation_id)) == 4


def test_face_chat_uses_sampled_label(tmp_path) -> None:
    processor, storage = _processor(tmp_path)
    sampler = EmotionSampler()
    sampler.update({"happy": 0.9, "neutral": 0.1})
    session = ChatSession(processor, FACE_DETECTION, "u1", sampler=sampler, sleep=FakeSleep())

    async def scenario():
        await session.start()
        return await session.submit("hi there")

    result = asyncio.run(scenario())
    assert result.categories == ("happy",)
    assert result.conversation_id == session.conversation_id
    user_message = storage.list_messages(result.conversation_id)[0]
    assert user_message.metadata == {"detected_emotion": "happy"}


def test_shredder_flow(tmp_path) -> None:
    processor, storage = _processor(tmp_path)
    sleep = FakeSleep()
    session = ShredderSession(processor, "u1", sleep=sleep)

    async def scenario() -> bool:
        assert await session.write("I am furious with my landlord")
        assert session.state.step is VentStep.CONFIRM
        return await session.shred()

    assert asyncio.run(scenario()) is True
    assert session.state.step is VentStep.COMPLETE
    assert 1.5 in sleep.calls
    stored = storage.get_venting_session(session.state.session_id)
    assert stored.content == SHRED_TOMBSTONE
    assert stored.is_shredded

    with pytest.raises(InvalidTransition):
        asyncio.run(session.shred())


def test_shredder_back_keeps_text(tmp_path) -> None:
    processor, _ = _processor(tmp_path)
    session = ShredderSession(processor, "u1", sleep=FakeSleep())
    asyncio.run(session.write("never mind"))
    session.back()
    assert session.state.step is VentStep.WRITE
    assert session.state.text == "never mind"


def test_mood_session(tmp_path) -> None:
    processor, storage = _processor(tmp_path)
    session = MoodSession(processor, "u1")

    with pytest.raises(ValueError):
        session.choose("furious")

    session.choose("stressed")
    session.describe(8, "deadline")
    recommendation = asyncio.run(session.submit())

    assert session.state.step is MoodStep.RESULT
    assert recommendation.mood == "stressed"
    [entry] = storage.list_mood_entries("u1")
    assert entry.intensity == 8
    assert entry.notes == "deadline"

    session.reset()
    assert session.recommendation is None
    assert session.state.step is MoodStep.MOOD


def test_gratitude_session(tmp_path) -> None:
    processor, _ = _processor(tmp_path)
    session = GratitudeSession(processor, "u1")
    assert session.entries == []

    challenge = session.state.challenge
    session.accept()
    entry = asyncio.run(session.submit("my morning coffee"))

    assert entry.challenge_description == challenge
    assert session.state.view is GratitudeView.HISTORY
    assert not session.state.challenge_accepted
    assert session.challenges_completed == 1
    assert [e.gratitude_text for e in session.entries] == ["my morning coffee"]

    with pytest.raises(InvalidTransition):
        asyncio.run(session.submit("second entry"))

    session.show(GratitudeView.ADD)
    plain = asyncio.run(session.submit("a good book"))
    assert plain.challenge_completed is False
    assert len(session.entries) == 2
