from session_control.schemas.session import InterviewSessionSnapshot, SessionStatus, TimeStatus
from session_control.services import time_accountant
from session_control.utils.enums import SessionState

QUESTION_WARNING_SECONDS = 30


def build_time_warnings(time_status: TimeStatus, session: InterviewSessionSnapshot) -> list[str]:
    warnings = []
    notifications = session.config.settings.notifications
    if not notifications.time_warnings:
        return warnings

    # Session time warnings
    remaining = time_status.session_time_remaining
    if remaining is not None and session.config.duration:
        total = session.config.duration * 60
        remaining_minutes = remaining // 60
        elapsed_percentage = (total - remaining) / total * 100

        for threshold in notifications.warning_thresholds or [75, 90]:
            if elapsed_percentage >= threshold and remaining_minutes > 0:
                warnings.append(f"{remaining_minutes} minutes remaining in interview")
                break

        if 0 < remaining < 60:
            warnings.append("Less than 1 minute remaining in interview")

    # Question time warnings
    question_remaining = time_status.question_time_remaining
    if question_remaining is not None and 0 < question_remaining <= QUESTION_WARNING_SECONDS:
        warnings.append(f"{question_remaining} seconds remaining for current question")

    return warnings


def build_status_view(status: SessionStatus) -> dict:
    session = status.session
    config_settings = session.config.settings
    in_progress = session.state == SessionState.IN_PROGRESS
    metadata = session.metadata

    return {
        "session_id": session.id,
        "state": session.state,
        "version": session.version,
        "current_question_index": session.current_question_index,
        "total_questions": len(session.questions),
        "duration": session.duration,
        "started_at": session.started_at,
        "paused_at": session.paused_at,
        "resumed_at": session.resumed_at,
        "completed_at": session.completed_at,

        "progress": {
            **status.progress.model_dump(),
            "can_pause": config_settings.allow_pause and in_progress,
            "can_skip": config_settings.allow_skip and in_progress,
            "can_resume": session.state == SessionState.PAUSED,
        },

        "time_status": {
            **status.time_status.model_dump(),
            "session_duration_limit": (
                session.config.duration * 60 if session.config.duration else None
            ),
            "question_time_limit": time_accountant.question_time_limit(session),
        },

        "metadata": {
            "pause_count": metadata.pause_count,
            "skip_count": metadata.skip_count,
            "total_paused_time": metadata.total_paused_time,
            "auto_skipped_questions": metadata.auto_skipped_questions,
            "skipped_questions": [s.model_dump() for s in metadata.skipped_questions],
        },
    }
