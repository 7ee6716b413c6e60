from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Callable

from pydantic import ValidationError

from session_control.core.exceptions import InvalidMetadataError
from session_control.schemas.session import InterviewSessionSnapshot, SessionMetadata
from session_control.services import time_accountant
from session_control.utils.enums import SessionAction, SessionState

DEFAULT_REASON = "user_requested"

# Maintained by the controller only; callers cannot merge over them
PROTECTED_METADATA_KEYS = frozenset({
    "pause_count",
    "skip_count",
    "total_paused_time",
    "skipped_questions",
    "auto_skipped_questions",
    "auto_completed",
})


@dataclass
class SessionMutation:
    """Fields one control action changes. ``None`` leaves a field untouched."""

    metadata: SessionMetadata
    state: SessionState | None = None
    current_question_index: int | None = None
    started_at: datetime | None = None
    paused_at: datetime | None = None
    resumed_at: datetime | None = None
    completed_at: datetime | None = None
    duration: int | None = None

    def as_fields(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def apply(self, session: InterviewSessionSnapshot) -> InterviewSessionSnapshot:
        return session.model_copy(update=self.as_fields())


def merge_metadata(session: InterviewSessionSnapshot, extra: dict[str, Any] | None) -> dict[str, Any]:
    extra = extra or {}
    protected = PROTECTED_METADATA_KEYS.intersection(extra)
    if protected:
        raise InvalidMetadataError(protected)
    merged = {**session.metadata.model_dump(), **extra}
    try:
        SessionMetadata.model_validate(merged)
    except ValidationError as e:
        keys = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        raise InvalidMetadataError(keys or extra.keys(), "Control metadata has invalid values") from e
    return merged


def completion(session: InterviewSessionSnapshot, now: datetime, metadata: dict[str, Any]) -> SessionMutation:
    return SessionMutation(
        metadata=SessionMetadata.model_validate(metadata),
        state=SessionState.COMPLETED,
        completed_at=now,
        duration=time_accountant.session_duration(session, now),
    )


def _start(session, now, metadata, request):
    metadata.update(
        session_started=now.isoformat(),
        pause_count=0,
        skip_count=0,
        auto_skipped_questions=[],
    )
    return SessionMutation(
        metadata=SessionMetadata.model_validate(metadata),
        state=SessionState.IN_PROGRESS,
        started_at=now,
    )


def _pause(session, now, metadata, request):
    metadata.update(
        pause_count=session.metadata.pause_count + 1,
        last_paused_at=now.isoformat(),
    )
    return SessionMutation(
        metadata=SessionMetadata.model_validate(metadata),
        state=SessionState.PAUSED,
        paused_at=now,
    )


def _resume(session, now, metadata, request):
    paused_for = 0
    if session.paused_at is not None:
        paused_for = max(0, int((now - session.paused_at).total_seconds()))
    metadata.update(
        total_paused_time=session.metadata.total_paused_time + paused_for,
        last_resumed_at=now.isoformat(),
    )
    return SessionMutation(
        metadata=SessionMetadata.model_validate(metadata),
        state=SessionState.IN_PROGRESS,
        resumed_at=now,
    )


def _skip_question(session, now, metadata, request):
    index = session.current_question_index
    question = session.current_question
    metadata.update(
        skip_count=session.metadata.skip_count + 1,
        skipped_questions=[
            *session.metadata.model_dump()["skipped_questions"],
            {
                "question_id": question.id if question else None,
                "question_index": index,
                "reason": request.get("reason") or DEFAULT_REASON,
                "skipped_at": now,
            },
        ],
    )
    next_index = min(index + 1, len(session.questions))

    if next_index >= len(session.questions):
        mutation = completion(session, now, metadata)
    else:
        mutation = SessionMutation(metadata=SessionMetadata.model_validate(metadata))
    mutation.current_question_index = next_index
    return mutation


def _end(session, now, metadata, request):
    metadata.update(
        ended_at=now.isoformat(),
        end_reason=request.get("reason") or DEFAULT_REASON,
    )
    return completion(session, now, metadata)


def _abandon(session, now, metadata, request):
    metadata.update(
        abandoned_at=now.isoformat(),
        abandon_reason=request.get("reason") or DEFAULT_REASON,
    )
    return SessionMutation(
        metadata=SessionMetadata.model_validate(metadata),
        state=SessionState.ABANDONED,
        completed_at=now,
        duration=time_accountant.session_duration(session, now),
    )


_BUILDERS: dict[SessionAction, Callable[..., SessionMutation]] = {
    SessionAction.START: _start,
    SessionAction.PAUSE: _pause,
    SessionAction.RESUME: _resume,
    SessionAction.SKIP_QUESTION: _skip_question,
    SessionAction.END: _end,
    SessionAction.ABANDON: _abandon,
}


def build_mutation(
    session: InterviewSessionSnapshot,
    action: SessionAction,
    now: datetime,
    request_metadata: dict[str, Any] | None = None,
) -> SessionMutation:
    request_metadata = request_metadata or {}
    metadata = merge_metadata(session, request_metadata)
    return _BUILDERS[SessionAction(action)](session, now, metadata, request_metadata)
