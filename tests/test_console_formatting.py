from __future__ import annotations

from datetime import datetime, timezone

from adapters.console_formatting import (
    format_analysis,
    format_gratitude_history,
    format_recommendation,
    format_turn,
)
from core.bots import DISTORTIONS
from core.models import GratitudeEntry
from core.processor import DistortionAnalysis, MoodRecommendation, TurnResult


def test_format_turn() -> None:
    result = TurnResult(bot_type="micro_therapy", categories=("anxious",), response="Breathe.")
    assert format_turn(result, "60-Second Support").plain == "60-Second Support: Breathe."

    labeled = TurnResult(
        bot_type="face_detection", categories=("happy",), response="Smile!", context_label="happy"
    )
    assert "detected: happy" in format_turn(labeled, "Face-Aware Chat").plain


def test_format_analysis_lists_distortions_and_reframe() -> None:
    analysis = DistortionAnalysis(
        thought="I always fail",
        distortions=(DISTORTIONS["all_or_nothing"],),
        reframe="Find the middle ground.",
    )
    text = format_analysis(analysis).plain
    assert "\"I always fail\"" in text
    assert "All-or-Nothing Thinking" in text
    assert text.endswith("Find the middle ground.")


def test_format_recommendation() -> None:
    recommendation = MoodRecommendation(
        mood="calm", intensity=3, playlists=("Soft Jazz",), mindfulness_exercise="Walk slowly."
    )
    text = format_recommendation(recommendation).plain
    assert "calm (3/10)" in text
    assert "Soft Jazz" in text


def test_format_gratitude_history() -> None:
    assert "No entries yet" in format_gratitude_history([]).plain

    entries = [
        GratitudeEntry(
            id="g1",
            user_id="u1",
            gratitude_text="my friends",
            challenge_completed=True,
            challenge_description="Write a thank you note to someone",
            created_at=datetime(2024, 3, 1, 12, tzinfo=timezone.utc),
        )
    ]
    text = format_gratitude_history(entries).plain
    assert "Challenges completed: 1" in text
    assert "my friends" in text
    assert "Write a thank you note to someone" in text
