import logging
import math
from datetime import datetime
from typing import Any, Callable

from session_control.core.config import settings
from session_control.core.exceptions import (
    ConcurrentModificationError,
    InvalidResponseError,
    InvalidSessionStateError,
    NoMoreQuestionsError,
    SessionNotFoundError,
)
from session_control.schemas.session import (
    InterviewConfig,
    InterviewSessionSnapshot,
    InterviewSettings,
    InterviewSettingsOverride,
    Progress,
    Question,
    ResponseCreate,
    ResponseRecord,
    SessionMetadata,
    SessionStatus,
    TimeStatus,
)
from session_control.services import session_mutations, time_accountant, transition_validator
from session_control.services.session_mutations import SessionMutation
from session_control.services.session_repository import SessionRepository
from session_control.services.status_report_builder import build_time_warnings
from session_control.utils.clock import utcnow
from session_control.utils.enums import SessionAction, SessionState

logger = logging.getLogger(__name__)

SUBMIT_RESPONSE = "SUBMIT_RESPONSE"


def _percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    # Half rounds up
    return math.floor(part / whole * 100 + 0.5)


class SessionController:
    """Sole mutation entry point for interview sessions.

    Each control request is one load, validate, mutate, time-check and
    version-checked save. A save that loses a version race is reloaded
    and replayed up to ``conflict_retries`` times.
    """

    def __init__(
        self,
        repository: SessionRepository,
        clock: Callable[[], datetime] = utcnow,
        conflict_retries: int | None = None,
    ):
        self.repository = repository
        self.clock = clock
        if conflict_retries is None:
            conflict_retries = settings.SESSION_CONFLICT_RETRIES
        self.conflict_retries = conflict_retries

    # Session management

    def create_session(
        self,
        user_id: str,
        config: InterviewConfig,
        questions: list[Question],
        settings_override: InterviewSettingsOverride | None = None,
    ) -> InterviewSessionSnapshot:
        if settings_override is not None:
            merged = InterviewSettings.model_validate({
                **config.settings.model_dump(),
                **settings_override.model_dump(exclude_none=True),
            })
            config = config.model_copy(update={"settings": merged})

        session = self.repository.create_session(user_id, config, questions)
        logger.info(
            "Interview session created: session=%s user=%s config=%s questions=%d",
            session.id,
            user_id,
            config.id,
            len(questions),
        )
        return session

    def get_session(self, session_id: str) -> InterviewSessionSnapshot:
        session = self.repository.find_session_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_user_sessions(self, user_id: str) -> list[InterviewSessionSnapshot]:
        return self.repository.find_sessions_by_user_id(user_id)

    # Session control

    def control_session(
        self,
        session_id: str,
        action: SessionAction,
        metadata: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> InterviewSessionSnapshot:
        action = SessionAction(action)
        retries = 0
        while True:
            try:
                return self._control_once(session_id, action, metadata, expected_version)
            except ConcurrentModificationError:
                # A caller-pinned version is never replayed
                if expected_version is not None or retries >= self.conflict_retries:
                    raise
                retries += 1
                logger.info(
                    "Reloading session %s after version conflict on %s (retry %d)",
                    session_id,
                    action.value,
                    retries,
                )

    def _control_once(
        self,
        session_id: str,
        action: SessionAction,
        metadata: dict[str, Any] | None,
        expected_version: int | None,
    ) -> InterviewSessionSnapshot:
        now = self.clock()

        # 1. Load
        session = self.get_session(session_id)
        if expected_version is not None and session.version != expected_version:
            raise ConcurrentModificationError(session_id, expected_version)

        # 2-3. Transition table, then configuration gates
        transition_validator.validate(session.state, action)
        self._check_feature_gates(session, action)

        # 4. Action mutation
        mutation = session_mutations.build_mutation(session, action, now, metadata)
        fields = mutation.as_fields()
        updated = mutation.apply(session)

        # 5. Time limits may override the requested outcome
        if updated.state == SessionState.IN_PROGRESS:
            enforced = self._enforce_time_limits(updated, now)
            if enforced is not None:
                fields.update(enforced.as_fields())

        # 6. Persist
        saved = self.repository.update_session(session.id, fields, expected_version=session.version)
        logger.info(
            "Session control applied: session=%s action=%s %s -> %s",
            session.id,
            action.value,
            session.state.value,
            saved.state.value,
        )
        return saved

    @staticmethod
    def _check_feature_gates(session: InterviewSessionSnapshot, action: SessionAction) -> None:
        config_settings = session.config.settings
        if action == SessionAction.PAUSE and not config_settings.allow_pause:
            raise InvalidSessionStateError(
                "Pause is not allowed for this interview configuration",
                session.state,
                action,
                code=InvalidSessionStateError.FEATURE_DISABLED,
            )
        if action == SessionAction.SKIP_QUESTION and not config_settings.allow_skip:
            raise InvalidSessionStateError(
                "Skip is not allowed for this interview configuration",
                session.state,
                action,
                code=InvalidSessionStateError.FEATURE_DISABLED,
            )

    def _enforce_time_limits(
        self,
        session: InterviewSessionSnapshot,
        now: datetime,
    ) -> SessionMutation | None:
        if time_accountant.session_time_status(session, now).exceeded:
            logger.info(
                "Session time limit exceeded, auto-completing session %s (limit %s min)",
                session.id,
                session.config.duration,
            )
            metadata = session.metadata.model_dump()
            metadata.update(auto_completed=True, reason="session_time_limit_exceeded")
            return session_mutations.completion(session, now, metadata)

        if not time_accountant.question_time_status(session, now).exceeded:
            return None

        index = session.current_question_index
        logger.info(
            "Question time limit exceeded, auto-skipping question %d of session %s",
            index,
            session.id,
        )
        metadata = session.metadata.model_dump()
        metadata["auto_skipped_questions"] = [*metadata["auto_skipped_questions"], index]

        next_index = index + 1
        if next_index >= len(session.questions):
            metadata.update(auto_completed=True, reason="question_time_limit_exceeded")
            mutation = session_mutations.completion(session, now, metadata)
        else:
            mutation = SessionMutation(metadata=SessionMetadata.model_validate(metadata))
        mutation.current_question_index = next_index
        return mutation

    # Responses

    def submit_response(self, session_id: str, response: ResponseCreate) -> ResponseRecord:
        session = self.get_session(session_id)
        if session.state != SessionState.IN_PROGRESS:
            raise InvalidSessionStateError(
                "Cannot submit response for session not in progress",
                session.state,
                SUBMIT_RESPONSE,
            )
        if response.question_id not in {q.id for q in session.questions}:
            raise InvalidResponseError(
                f"Question {response.question_id} is not part of session {session_id}"
            )

        record = self.repository.create_response(session_id, response, completed_at=self.clock())
        logger.info(
            "Response submitted: session=%s question=%s skipped=%s",
            session_id,
            response.question_id,
            response.is_skipped,
        )
        return record

    def get_session_responses(self, session_id: str) -> list[ResponseRecord]:
        return self.get_session(session_id).responses

    # Read-only views

    def get_session_status(self, session_id: str) -> SessionStatus:
        session = self.get_session(session_id)
        now = self.clock()

        session_check = time_accountant.session_time_status(session, now)
        question_check = time_accountant.question_time_status(session, now)

        responses = session.responses
        skipped = sum(1 for r in responses if r.is_skipped)

        return SessionStatus(
            session=session,
            time_status=TimeStatus(
                session_time_remaining=session_check.remaining,
                question_time_remaining=question_check.remaining,
                session_time_exceeded=session_check.exceeded,
                question_time_exceeded=question_check.exceeded,
            ),
            progress=Progress(
                current_question_index=session.current_question_index,
                total_questions=len(session.questions),
                completed_questions=len(responses) - skipped,
                skipped_questions=skipped + session.metadata.skip_count,
                progress_percentage=_percentage(len(responses), len(session.questions)),
            ),
        )

    def get_current_question(self, session_id: str) -> dict:
        session = self.get_session(session_id)
        question = session.current_question
        if question is None:
            raise NoMoreQuestionsError()

        return {
            "question": question,
            "question_index": session.current_question_index,
            "total_questions": len(session.questions),
            "progress": _percentage(session.current_question_index, len(session.questions)),
        }

    def check_time_limits(self, session_id: str) -> dict:
        status = self.get_session_status(session_id)
        return {
            "session_id": status.session.id,
            "state": status.session.state,
            "time_status": status.time_status,
            "warnings": build_time_warnings(status.time_status, status.session),
        }
