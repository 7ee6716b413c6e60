from session_control.core.exceptions import InvalidSessionStateError
from session_control.utils.enums import SessionAction, SessionState


ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionAction]] = {
    SessionState.CREATED: frozenset({
        SessionAction.START,
        SessionAction.ABANDON,
    }),
    SessionState.IN_PROGRESS: frozenset({
        SessionAction.PAUSE,
        SessionAction.SKIP_QUESTION,
        SessionAction.END,
        SessionAction.ABANDON,
    }),
    SessionState.PAUSED: frozenset({
        SessionAction.RESUME,
        SessionAction.ABANDON,
    }),
    SessionState.COMPLETED: frozenset(),
    SessionState.ABANDONED: frozenset(),
    SessionState.ERROR: frozenset({SessionAction.ABANDON}),
}


def is_allowed(current_state: SessionState, action: SessionAction) -> bool:
    return action in ALLOWED_TRANSITIONS.get(SessionState(current_state), frozenset())


def validate(current_state: SessionState, action: SessionAction) -> None:
    """Raise InvalidSessionStateError unless ``action`` is legal from ``current_state``."""
    current_state = SessionState(current_state)
    action = SessionAction(action)

    if not is_allowed(current_state, action):
        raise InvalidSessionStateError(
            f"Cannot perform action '{action.value}' from state '{current_state.value}'",
            current_state,
            action,
        )
