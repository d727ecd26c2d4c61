from __future__ import annotations

import asyncio

from core.config import SamplerConfig
from core.emotion import EmotionSampler, dominant_label


def test_dominant_label_picks_highest_score() -> None:
    assert dominant_label({"sad": 0.2, "happy": 0.7, "neutral": 0.1}) == "happy"


def test_dominant_label_tie_keeps_first() -> None:
    assert dominant_label({"sad": 0.5, "happy": 0.5}) == "sad"


def test_dominant_label_empty() -> None:
    assert dominant_label({}) is None
    assert dominant_label(None) is None


def test_empty_update_keeps_previous_label() -> None:
    sampler = EmotionSampler()
    sampler.update({"angry": 0.9})
    sampler.update({})
    sampler.update(None)
    assert sampler.current_label == "angry"


def test_sampler_runs_until_stopped() -> None:
    frames = iter([{"neutral": 0.9}, {"happy": 0.8, "sad": 0.1}])

    async def source():
        return next(frames, None)

    async def scenario() -> None:
        sampler = EmotionSampler(SamplerConfig(period_seconds=0))
        sampler.start(source)
        assert sampler.running
        for _ in range(10):
            await asyncio.sleep(0)
        sampler.stop()
        assert not sampler.running
        assert sampler.current_label == "happy"

    asyncio.run(scenario())


def test_failing_source_is_logged_and_ignored(caplog) -> None:
    def source():
        raise RuntimeError("camera unplugged")

    async def scenario() -> EmotionSampler:
        sampler = EmotionSampler()
        sampler.update({"sad": 1.0})
        await sampler._sample_once(source)
        return sampler

    sampler = asyncio.run(scenario())
    assert sampler.current_label == "sad"
    assert "Error during expression sampling" in caplog.text
