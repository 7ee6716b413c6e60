from sqlalchemy import Column, String, DateTime, Integer, JSON
from session_control.core.database import Base
from session_control.utils.clock import utcnow


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    config_id = Column(String, index=True, nullable=False)

    # CREATED | IN_PROGRESS | PAUSED | COMPLETED | ABANDONED | ERROR
    state = Column(String, default="CREATED", index=True)
    current_question_index = Column(Integer, default=0, nullable=False)

    config = Column(JSON, nullable=False)
    questions = Column(JSON, nullable=False, default=list)

    started_at = Column(DateTime, nullable=True)
    paused_at = Column(DateTime, nullable=True)
    resumed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)

    # "metadata" is reserved on declarative classes
    session_metadata = Column("metadata", JSON, nullable=False, default=dict)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
