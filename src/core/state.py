"""Per-session state machines (core domain).

Each flow keeps its transient fields in a frozen state object; transitions
are plain functions returning a new state, so they can be tested without a
running session or timer.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class InvalidTransition(RuntimeError):
    """Raised when a transition is not allowed from the current step."""


def _require(current: Enum, *allowed: Enum) -> None:
    if current not in allowed:
        names = ", ".join(step.value for step in allowed)
        raise InvalidTransition(f"Cannot leave {current.value!r} here (expected {names})")


# ---------------------------------------------------------------------------
# Chat-style turn: input -> processing -> result -> (reset) -> input
# ---------------------------------------------------------------------------


class TurnStep(str, Enum):
    INPUT = "input"
    PROCESSING = "processing"
    RESULT = "result"


@dataclass(frozen=True)
class TurnState:
    step: TurnStep = TurnStep.INPUT
    input_text: str = ""
    categories: Tuple[str, ...] = ()
    response: str = ""
    countdown: int = 60


def begin_turn(state: TurnState, text: str) -> TurnState:
    _require(state.step, TurnStep.INPUT)
    if not text.strip():
        raise ValueError("Cannot submit blank text")
    return replace(state, step=TurnStep.PROCESSING, input_text=text)


def tick(state: TurnState) -> TurnState:
    """One countdown second while processing; never goes below zero."""

    if state.step is not TurnStep.PROCESSING or state.countdown <= 0:
        return state
    return replace(state, countdown=state.countdown - 1)


def finish_turn(state: TurnState, categories: Tuple[str, ...], response: str) -> TurnState:
    _require(state.step, TurnStep.PROCESSING)
    return replace(state, step=TurnStep.RESULT, categories=tuple(categories), response=response)


def fail_turn(state: TurnState) -> TurnState:
    """Go back to input keeping the text, so the user can retry."""

    _require(state.step, TurnStep.PROCESSING)
    return replace(state, step=TurnStep.INPUT)


def reset_turn(state: TurnState, countdown: int = 60) -> TurnState:
    return TurnState(countdown=countdown)


# ---------------------------------------------------------------------------
# Venting: write -> confirm -> shredding -> complete
# ---------------------------------------------------------------------------


class VentStep(str, Enum):
    WRITE = "write"
    CONFIRM = "confirm"
    SHREDDING = "shredding"
    COMPLETE = "complete"


SHRED_PROGRESS_STEP = 2


@dataclass(frozen=True)
class VentState:
    step: VentStep = VentStep.WRITE
    text: str = ""
    session_id: Optional[str] = None
    progress: int = 0


def submit_vent(state: VentState, text: str, session_id: str) -> VentState:
    _require(state.step, VentStep.WRITE)
    if not text.strip():
        raise ValueError("Cannot vent blank text")
    return replace(state, step=VentStep.CONFIRM, text=text, session_id=session_id)


def back_to_write(state: VentState) -> VentState:
    _require(state.step, VentStep.CONFIRM)
    return replace(state, step=VentStep.WRITE)


def begin_shred(state: VentState) -> VentState:
    _require(state.step, VentStep.CONFIRM)
    return replace(state, step=VentStep.SHREDDING, progress=0)


def advance_shred(state: VentState) -> VentState:
    _require(state.step, VentStep.SHREDDING)
    return replace(state, progress=min(state.progress + SHRED_PROGRESS_STEP, 100))


def complete_shred(state: VentState) -> VentState:
    _require(state.step, VentStep.SHREDDING)
    # The text only lives on in storage as a tombstone from here on.
    return replace(state, step=VentStep.COMPLETE, text="", progress=100)


def reset_vent(state: VentState) -> VentState:
    return VentState()


# ---------------------------------------------------------------------------
# Mood tracker: mood -> intensity -> result
# ---------------------------------------------------------------------------


class MoodStep(str, Enum):
    MOOD = "mood"
    INTENSITY = "intensity"
    RESULT = "result"


MIN_INTENSITY = 1
MAX_INTENSITY = 10


@dataclass(frozen=True)
class MoodState:
    step: MoodStep = MoodStep.MOOD
    mood: str = ""
    intensity: int = 5
    notes: str = ""


def choose_mood(state: MoodState, mood: str) -> MoodState:
    _require(state.step, MoodStep.MOOD)
    return replace(state, step=MoodStep.INTENSITY, mood=mood)


def set_intensity(state: MoodState, intensity: int, notes: Optional[str] = None) -> MoodState:
    _require(state.step, MoodStep.INTENSITY)
    if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
        raise ValueError(f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}")
    return replace(state, intensity=intensity, notes=state.notes if notes is None else notes)


def back_to_mood(state: MoodState) -> MoodState:
    _require(state.step, MoodStep.INTENSITY)
    return replace(state, step=MoodStep.MOOD)


def show_recommendation(state: MoodState) -> MoodState:
    _require(state.step, MoodStep.INTENSITY)
    return replace(state, step=MoodStep.RESULT)


def reset_mood(state: MoodState) -> MoodState:
    return MoodState()


# ---------------------------------------------------------------------------
# Gratitude journal: add <-> history
# ---------------------------------------------------------------------------


class GratitudeView(str, Enum):
    ADD = "add"
    HISTORY = "history"


@dataclass(frozen=True)
class GratitudeState:
    view: GratitudeView = GratitudeView.ADD
    challenge: str = ""
    challenge_accepted: bool = False


def accept_challenge(state: GratitudeState, accepted: bool = True) -> GratitudeState:
    _require(state.view, GratitudeView.ADD)
    return replace(state, challenge_accepted=accepted)


def entry_saved(state: GratitudeState, next_challenge: str) -> GratitudeState:
    """After a save: new challenge, flag cleared, history shown."""

    _require(state.view, GratitudeView.ADD)
    return GratitudeState(view=GratitudeView.HISTORY, challenge=next_challenge)


def switch_view(state: GratitudeState, view: GratitudeView) -> GratitudeState:
    return replace(state, view=view)
