"""Appointment status transition table."""
import pytest

from salon.domain.scheduling.lifecycle import VALID_TRANSITIONS, can_transition, is_terminal
from salon.enums import AppointmentStatus as S


@pytest.mark.parametrize(
    "current,new",
    [
        (S.SCHEDULED, S.CONFIRMED),
        (S.SCHEDULED, S.IN_PROGRESS),
        (S.SCHEDULED, S.CANCELLED),
        (S.CONFIRMED, S.IN_PROGRESS),
        (S.CONFIRMED, S.CANCELLED),
        (S.IN_PROGRESS, S.COMPLETED),
        (S.IN_PROGRESS, S.NO_SHOW),
    ],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)
    assert can_transition(current.value, new.value)


@pytest.mark.parametrize(
    "current,new",
    [
        (S.CONFIRMED, S.SCHEDULED),
        (S.IN_PROGRESS, S.CANCELLED),
        (S.SCHEDULED, S.COMPLETED),
        (S.SCHEDULED, S.NO_SHOW),
        (S.SCHEDULED, S.SCHEDULED),
    ],
)
def test_disallowed_transitions(current, new):
    assert not can_transition(current, new)


@pytest.mark.parametrize("terminal", [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
def test_terminal_states_have_no_exits(terminal):
    assert is_terminal(terminal)
    assert VALID_TRANSITIONS[terminal] == frozenset()
    assert not any(can_transition(terminal, other) for other in S)


def test_unknown_status_never_transitions():
    assert not can_transition("Paused", S.CONFIRMED)
    assert not can_transition(S.SCHEDULED, "Paused")
