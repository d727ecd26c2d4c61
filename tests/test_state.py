from __future__ import annotations

import pytest

from core.state import (
    GratitudeState,
    GratitudeView,
    InvalidTransition,
    MoodState,
    MoodStep,
    TurnState,
    TurnStep,
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
    reset_turn,
    set_intensity,
    show_recommendation,
    submit_vent,
    switch_view,
    tick,
)


def test_turn_cycle() -> None:
    state = begin_turn(TurnState(countdown=2), "I feel anxious")
    assert state.step is TurnStep.PROCESSING

    state = tick(tick(tick(state)))
    assert state.countdown == 0

    state = finish_turn(state, ("anxious",), "Breathe.")
    assert state.step is TurnStep.RESULT
    assert state.response == "Breathe."

    state = reset_turn(state, countdown=60)
    assert state == TurnState(countdown=60)


def test_turn_rejects_blank_and_double_submit() -> None:
    with pytest.raises(ValueError):
        begin_turn(TurnState(), "   ")
    state = begin_turn(TurnState(), "hello")
    with pytest.raises(InvalidTransition):
        begin_turn(state, "again")


def test_failed_turn_keeps_text() -> None:
    state = fail_turn(begin_turn(TurnState(), "hello"))
    assert state.step is TurnStep.INPUT
    assert state.input_text == "hello"


def test_tick_only_counts_while_processing() -> None:
    state = TurnState(countdown=5)
    assert tick(state).countdown == 5


def test_vent_flow() -> None:
    state = submit_vent(VentState(), "so angry", "v1")
    assert state.step is VentStep.CONFIRM

    state = back_to_write(state)
    assert state.step is VentStep.WRITE
    assert state.text == "so angry"

    state = begin_shred(submit_vent(state, "so angry", "v1"))
    for _ in range(60):
        state = advance_shred(state)
    assert state.progress == 100

    state = complete_shred(state)
    assert state.step is VentStep.COMPLETE
    assert state.text == ""


def test_vent_cannot_shred_from_write() -> None:
    with pytest.raises(InvalidTransition):
        begin_shred(VentState())


def test_mood_flow_and_intensity_bounds() -> None:
    state = choose_mood(MoodState(), "calm")
    assert state.step is MoodStep.INTENSITY

    with pytest.raises(ValueError):
        set_intensity(state, 0)
    with pytest.raises(ValueError):
        set_intensity(state, 11)

    state = set_intensity(state, 10, "after a walk")
    assert back_to_mood(state).step is MoodStep.MOOD
    assert show_recommendation(state).step is MoodStep.RESULT

    with pytest.raises(InvalidTransition):
        show_recommendation(MoodState())


def test_gratitude_views() -> None:
    state = accept_challenge(GratitudeState(challenge="Spend 10 minutes in nature"))
    assert state.challenge_accepted

    state = entry_saved(state, "Have a meaningful conversation")
    assert state.view is GratitudeView.HISTORY
    assert state.challenge == "Have a meaningful conversation"
    assert not state.challenge_accepted

    with pytest.raises(InvalidTransition):
        accept_challenge(state)
    assert switch_view(state, GratitudeView.ADD).view is GratitudeView.ADD
