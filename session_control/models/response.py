from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text
from session_control.core.database import Base
from session_control.utils.clock import utcnow


class SessionResponse(Base):
    __tablename__ = "session_responses"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, index=True, nullable=False)
    question_id = Column(String, index=True, nullable=False)

    text_response = Column(Text, nullable=True)
    audio_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)

    started_at = Column(DateTime, default=utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration = Column(Integer, default=0)
    is_skipped = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
