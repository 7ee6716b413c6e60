import pytest

from session_control.core.exceptions import InvalidSessionStateError
from session_control.services import transition_validator
from session_control.utils.enums import SessionAction, SessionState


EXPECTED = {
    SessionState.CREATED: {SessionAction.START, SessionAction.ABANDON},
    SessionState.IN_PROGRESS: {
        SessionAction.PAUSE,
        SessionAction.SKIP_QUESTION,
        SessionAction.END,
        SessionAction.ABANDON,
    },
    SessionState.PAUSED: {SessionAction.RESUME, SessionAction.ABANDON},
    SessionState.COMPLETED: set(),
    SessionState.ABANDONED: set(),
    SessionState.ERROR: {SessionAction.ABANDON},
}


@pytest.mark.parametrize("state", list(SessionState))
@pytest.mark.parametrize("action", list(SessionAction))
def test_transition_table_is_exhaustive(state, action):
    if action in EXPECTED[state]:
        transition_validator.validate(state, action)
        assert transition_validator.is_allowed(state, action)
    else:
        with pytest.raises(InvalidSessionStateError) as exc_info:
            transition_validator.validate(state, action)
        assert exc_info.value.code == InvalidSessionStateError.INVALID_TRANSITION
        assert exc_info.value.current_state == state.value
        assert exc_info.value.attempted_action == action.value


def test_accepts_raw_boundary_strings():
    transition_validator.validate("PAUSED", "RESUME")

    with pytest.raises(InvalidSessionStateError) as exc_info:
        transition_validator.validate("COMPLETED", "START")
    assert "Cannot perform action 'START' from state 'COMPLETED'" in str(exc_info.value)


def test_unknown_action_string_is_rejected():
    with pytest.raises(ValueError):
        transition_validator.validate("IN_PROGRESS", "pause")
