"""Console formatting helpers for the chat CLI.

Keeping formatting here keeps the core free of presentation details and
makes the terminal output consistent across bots.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rich.text import Text

from core.models import GratitudeEntry
from core.processor import DistortionAnalysis, MoodRecommendation, TurnResult

DIVIDER = "──────────────"


def format_bot_line(bot_name: str, content: str) -> Text:
    text = Text()
    text.append(f"{bot_name}: ", style="bold magenta")
    text.append(content)
    return text


def format_turn(result: TurnResult, bot_name: str) -> Text:
    """Render one bot reply, with the detected expression when there is one."""

    text = format_bot_line(bot_name, result.response)
    if result.context_label:
        text.append(f"\n  detected: {result.context_label}", style="dim italic")
    return text


def format_analysis(analysis: DistortionAnalysis) -> Text:
    text = Text()
    text.append("Your original thought:\n", style="bold")
    text.append(f"\"{analysis.thought}\"\n", style="italic")
    text.append(f"{DIVIDER}\n")
    text.append("Detected distortions:\n", style="bold")
    for info in analysis.distortions:
        text.append(f"• {info.name}", style="bold yellow")
        text.append(f" - {info.description}\n")
        text.append(f"  Example: {info.example}\n", style="dim italic")
    text.append(f"{DIVIDER}\n")
    text.append("Reframed perspective:\n", style="bold green")
    text.append(analysis.reframe, style="green")
    return text


def format_recommendation(recommendation: MoodRecommendation) -> Text:
    text = Text()
    text.append(f"Mood: {recommendation.mood} ({recommendation.intensity}/10)\n", style="bold")
    text.append("Music recommendations:\n", style="bold cyan")
    for playlist in recommendation.playlists:
        text.append(f"  ♪ {playlist}\n")
    text.append("Mindfulness exercise:\n", style="bold green")
    text.append(recommendation.mindfulness_exercise)
    return text


def format_gratitude_history(entries: Iterable[GratitudeEntry], limit: Optional[int] = None) -> Text:
    entries = list(entries)
    if limit is not None:
        entries = entries[:limit]
    if not entries:
        return Text("No entries yet. Start your gratitude journey!", style="italic")

    completed = sum(1 for entry in entries if entry.challenge_completed)
    text = Text()
    text.append(f"Entries: {len(entries)}  Challenges completed: {completed}\n", style="bold")
    for entry in entries:
        text.append(entry.created_at.astimezone().strftime("%b %d, %Y"), style="dim")
        text.append(f"  {entry.gratitude_text}\n")
        if entry.challenge_completed and entry.challenge_description:
            text.append(f"    ✓ {entry.challenge_description}\n", style="green")
    return text
