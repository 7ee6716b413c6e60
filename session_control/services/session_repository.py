import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy.orm import Session

from session_control.core.exceptions import ConcurrentModificationError
from session_control.models.response import SessionResponse
from session_control.models.session import InterviewSession
from session_control.schemas.session import (
    InterviewConfig,
    InterviewSessionSnapshot,
    Question,
    ResponseCreate,
    ResponseRecord,
)
from session_control.utils.clock import utcnow
from session_control.utils.enums import SessionState

logger = logging.getLogger(__name__)

# Snapshot field name -> mapped attribute name
_COLUMN_FOR_FIELD = {"metadata": "session_metadata"}


def _to_column_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, SessionState):
        return value.value
    return value


class SessionRepository:
    """SQLAlchemy-backed session store with version-checked updates."""

    def __init__(self, db: Session):
        self.db = db

    def create_session(
        self,
        user_id: str,
        config: InterviewConfig,
        questions: list[Question],
    ) -> InterviewSessionSnapshot:
        row = InterviewSession(
            id=str(uuid4()),
            user_id=user_id,
            config_id=config.id,
            state=SessionState.CREATED.value,
            current_question_index=0,
            config=config.model_dump(mode="json"),
            questions=[q.model_dump(mode="json") for q in questions],
            session_metadata={},
            version=1,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return self._to_snapshot(row, [])

    def find_session_by_id(self, session_id: str) -> InterviewSessionSnapshot | None:
        row = self.db.query(InterviewSession).filter_by(id=session_id).first()
        if not row:
            return None
        return self._to_snapshot(row, self.find_responses_by_session_id(session_id))

    def find_sessions_by_user_id(self, user_id: str) -> list[InterviewSessionSnapshot]:
        rows = (
            self.db.query(InterviewSession)
            .filter(InterviewSession.user_id == user_id)
            .order_by(InterviewSession.created_at.desc())
            .all()
        )
        return [
            self._to_snapshot(row, self.find_responses_by_session_id(row.id))
            for row in rows
        ]

    def update_session(
        self,
        session_id: str,
        fields: dict[str, Any],
        expected_version: int,
    ) -> InterviewSessionSnapshot:
        values = {
            _COLUMN_FOR_FIELD.get(name, name): _to_column_value(value)
            for name, value in fields.items()
        }
        values["version"] = expected_version + 1
        values["updated_at"] = utcnow()

        updated = (
            self.db.query(InterviewSession)
            .filter(
                InterviewSession.id == session_id,
                InterviewSession.version == expected_version,
            )
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            self.db.rollback()
            logger.warning(
                "Version conflict on session %s (expected version %s)",
                session_id,
                expected_version,
            )
            raise ConcurrentModificationError(session_id, expected_version)

        self.db.commit()
        return self.find_session_by_id(session_id)

    def create_response(
        self,
        session_id: str,
        response: ResponseCreate,
        completed_at: datetime,
    ) -> ResponseRecord:
        started_at = response.started_at or completed_at
        row = SessionResponse(
            id=str(uuid4()),
            session_id=session_id,
            question_id=response.question_id,
            text_response=response.text_response,
            audio_url=response.audio_url,
            video_url=response.video_url,
            started_at=started_at,
            completed_at=completed_at,
            duration=max(0, int((completed_at - started_at).total_seconds())),
            is_skipped=response.is_skipped,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return ResponseRecord.model_validate(row)

    def find_responses_by_session_id(self, session_id: str) -> list[ResponseRecord]:
        rows = (
            self.db.query(SessionResponse)
            .filter(SessionResponse.session_id == session_id)
            .order_by(SessionResponse.started_at.asc(), SessionResponse.created_at.asc())
            .all()
        )
        return [ResponseRecord.model_validate(row) for row in rows]

    @staticmethod
    def _to_snapshot(row: InterviewSession, responses: list[ResponseRecord]) -> InterviewSessionSnapshot:
        return InterviewSessionSnapshot(
            id=row.id,
            user_id=row.user_id,
            config_id=row.config_id,
            config=row.config,
            state=row.state,
            current_question_index=row.current_question_index,
            questions=row.questions or [],
            responses=responses,
            started_at=row.started_at,
            paused_at=row.paused_at,
            resumed_at=row.resumed_at,
            completed_at=row.completed_at,
            duration=row.duration,
            metadata=row.session_metadata or {},
            version=row.version,
        )
