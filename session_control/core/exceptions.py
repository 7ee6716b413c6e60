class SessionControlError(Exception):
    """Base class for errors surfaced to callers of the session controller."""

    code = "SESSION_CONTROL_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class SessionNotFoundError(SessionControlError):
    code = "SESSION_NOT_FOUND"
    status_code = 404

    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "session_id": self.session_id}


class InvalidSessionStateError(SessionControlError):
    """The requested action is not allowed right now.

    ``code`` tells a wrong-state rejection (``INVALID_STATE_TRANSITION``)
    apart from a configuration gate (``FEATURE_DISABLED``).
    """

    INVALID_TRANSITION = "INVALID_STATE_TRANSITION"
    FEATURE_DISABLED = "FEATURE_DISABLED"

    status_code = 400

    def __init__(self, message: str, current_state, attempted_action, code: str = INVALID_TRANSITION):
        super().__init__(message)
        self.current_state = getattr(current_state, "value", current_state)
        self.attempted_action = getattr(attempted_action, "value", attempted_action)
        self.code = code

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "current_state": self.current_state,
            "attempted_action": self.attempted_action,
        }


class ConcurrentModificationError(SessionControlError):
    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(self, session_id: str, expected_version: int):
        super().__init__(
            f"Session {session_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.session_id = session_id
        self.expected_version = expected_version

    def to_dict(self) -> dict:
        return {**super().to_dict(), "expected_version": self.expected_version}


class InvalidResponseError(SessionControlError):
    code = "INVALID_RESPONSE"


class NoMoreQuestionsError(SessionControlError):
    code = "NO_MORE_QUESTIONS"
    status_code = 404

    def __init__(self):
        super().__init__("No more questions available")


class InvalidMetadataError(SessionControlError):
    code = "INVALID_METADATA"

    def __init__(self, keys, message: str = "Control metadata may not overwrite tracked fields"):
        super().__init__(message + ": " + ", ".join(sorted(keys)))
        self.keys = sorted(keys)

    def to_dict(self) -> dict:
        return {**super().to_dict(), "keys": self.keys}
