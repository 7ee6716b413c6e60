from datetime import datetime

from session_control.schemas.session import (
    InterviewConfig,
    InterviewSessionSnapshot,
    InterviewSettings,
    NotificationSettings,
    Progress,
    Question,
    SessionStatus,
    TimeStatus,
)
from session_control.services.status_report_builder import build_status_view, build_time_warnings
from session_control.utils.enums import SessionState


def session(duration=10, state=SessionState.IN_PROGRESS, **settings):
    return InterviewSessionSnapshot(
        id="s1",
        user_id="u1",
        config_id="c1",
        config=InterviewConfig(id="c1", duration=duration, settings=InterviewSettings(**settings)),
        state=state,
        questions=[Question(id="q1", text="?", time_limit=90)],
        started_at=datetime(2026, 3, 2, 9, 0, 0),
    )


def test_no_warnings_early_in_session():
    assert build_time_warnings(TimeStatus(session_time_remaining=500), session()) == []


def test_threshold_warning():
    # 10 minute session with 2 minutes left is 80% elapsed
    warnings = build_time_warnings(TimeStatus(session_time_remaining=120), session())
    assert warnings == ["2 minutes remaining in interview"]


def test_last_minute_warning():
    warnings = build_time_warnings(TimeStatus(session_time_remaining=45), session())
    assert warnings == ["Less than 1 minute remaining in interview"]


def test_question_warning():
    warnings = build_time_warnings(
        TimeStatus(session_time_remaining=500, question_time_remaining=20), session()
    )
    assert warnings == ["20 seconds remaining for current question"]


def test_custom_thresholds_and_disabled_warnings():
    custom = session(notifications=NotificationSettings(warning_thresholds=[50]))
    assert build_time_warnings(TimeStatus(session_time_remaining=290), custom) == [
        "4 minutes remaining in interview"
    ]

    muted = session(notifications=NotificationSettings(time_warnings=False))
    assert build_time_warnings(TimeStatus(session_time_remaining=30, question_time_remaining=5), muted) == []


def test_status_view_flags_follow_state_and_settings():
    paused = session(state=SessionState.PAUSED, allow_skip=False)
    view = build_status_view(SessionStatus(
        session=paused,
        time_status=TimeStatus(session_time_remaining=300),
        progress=Progress(
            current_question_index=0,
            total_questions=1,
            completed_questions=0,
            skipped_questions=0,
            progress_percentage=0,
        ),
    ))
    assert view["progress"]["can_resume"] is True
    assert view["progress"]["can_pause"] is False
    assert view["progress"]["can_skip"] is False
    assert view["time_status"]["session_duration_limit"] == 600
    assert view["time_status"]["question_time_limit"] == 90
