"""Active-time accounting for interview sessions.

Every function here is pure: the caller passes ``now`` explicitly and the
session snapshot is never modified. Paused intervals are excluded from
active time, both the closed ones accumulated in
``metadata.total_paused_time`` and the one still open while the session
is PAUSED.
"""
from dataclasses import dataclass
from datetime import datetime

from session_control.schemas.session import InterviewSessionSnapshot
from session_control.utils.enums import SessionState


@dataclass(frozen=True)
class TimeCheck:
    exceeded: bool
    remaining: int | None  # seconds, None when no limit applies


NO_LIMIT = TimeCheck(exceeded=False, remaining=None)


def _elapsed(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds()


def _check(remaining: float) -> TimeCheck:
    if remaining <= 0:
        return TimeCheck(exceeded=True, remaining=0)
    return TimeCheck(exceeded=False, remaining=int(remaining))


def open_pause_seconds(session: InterviewSessionSnapshot, now: datetime) -> float:
    if session.state != SessionState.PAUSED or session.paused_at is None:
        return 0.0
    return max(0.0, _elapsed(session.paused_at, now))


def total_paused_time_as_of(session: InterviewSessionSnapshot, now: datetime) -> float:
    return session.metadata.total_paused_time + open_pause_seconds(session, now)


def session_time_status(session: InterviewSessionSnapshot, now: datetime) -> TimeCheck:
    if not session.config.duration or session.started_at is None:
        return NO_LIMIT

    active = _elapsed(session.started_at, now) - total_paused_time_as_of(session, now)
    return _check(session.config.duration * 60 - active)


def question_time_limit(session: InterviewSessionSnapshot) -> int | None:
    question = session.current_question
    if question is None:
        return None
    return question.time_limit or session.config.settings.time_per_question


def question_start_time(session: InterviewSessionSnapshot) -> datetime | None:
    """When the current question became active.

    Earliest response to the question if there is one; the session start
    for the first question; otherwise the end (or, failing that, the
    start) of the response preceding the cursor.
    """
    question = session.current_question
    if question is None:
        return None

    own = [r.started_at for r in session.responses if r.question_id == question.id]
    if own:
        return min(own)

    index = session.current_question_index
    if index == 0:
        return session.started_at

    previous = session.responses[:index]
    if previous:
        last = previous[-1]
        return last.completed_at or last.started_at
    return session.started_at


def question_time_status(session: InterviewSessionSnapshot, now: datetime) -> TimeCheck:
    time_limit = question_time_limit(session)
    if not time_limit:
        return NO_LIMIT

    started = question_start_time(session)
    if started is None:
        return NO_LIMIT

    return _check(time_limit - _elapsed(started, now))


def session_duration(session: InterviewSessionSnapshot, now: datetime) -> int:
    """Active duration in whole seconds, never negative."""
    if session.started_at is None:
        return 0

    total_elapsed = int(_elapsed(session.started_at, now))
    open_pause = int(open_pause_seconds(session, now))
    return max(0, total_elapsed - session.metadata.total_paused_time - open_pause)
