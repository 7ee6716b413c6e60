from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from session_control.utils.enums import SessionAction, SessionState


class NotificationSettings(BaseModel):
    time_warnings: bool = True
    # Percent of the session elapsed at which a warning is shown
    warning_thresholds: list[int] = Field(default_factory=lambda: [75, 90])


class InterviewSettings(BaseModel):
    allow_pause: bool = True
    allow_skip: bool = True
    time_per_question: int | None = Field(default=None, gt=0)  # seconds
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


class InterviewSettingsOverride(BaseModel):
    allow_pause: bool | None = None
    allow_skip: bool | None = None
    time_per_question: int | None = Field(default=None, gt=0)
    notifications: NotificationSettings | None = None


class InterviewConfig(BaseModel):
    id: str
    name: str | None = None
    duration: int | None = Field(default=None, gt=0)  # minutes
    settings: InterviewSettings = Field(default_factory=InterviewSettings)


class Question(BaseModel):
    id: str
    text: str
    time_limit: int | None = Field(default=None, gt=0)  # seconds


class ResponseRecord(BaseModel):
    id: str
    question_id: str
    started_at: datetime
    completed_at: datetime | None = None
    duration: int = 0
    is_skipped: bool = False

    class Config:
        from_attributes = True


class SkippedQuestion(BaseModel):
    question_id: str | None
    question_index: int
    reason: str
    skipped_at: datetime


class SessionMetadata(BaseModel):
    # Callers may attach arbitrary keys alongside the tracked counters
    model_config = ConfigDict(extra="allow")

    pause_count: int = 0
    skip_count: int = 0
    total_paused_time: int = 0  # seconds
    skipped_questions: list[SkippedQuestion] = Field(default_factory=list)
    auto_skipped_questions: list[int] = Field(default_factory=list)
    interruptions: int = 0
    technical_issues: list[str] = Field(default_factory=list)

    auto_completed: bool | None = None
    reason: str | None = None
    end_reason: str | None = None
    abandon_reason: str | None = None


class InterviewSessionSnapshot(BaseModel):
    id: str
    user_id: str
    config_id: str
    config: InterviewConfig
    state: SessionState
    current_question_index: int = 0
    questions: list[Question]
    responses: list[ResponseRecord] = Field(default_factory=list)

    started_at: datetime | None = None
    paused_at: datetime | None = None
    resumed_at: datetime | None = None
    completed_at: datetime | None = None
    duration: int | None = None

    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    version: int = 1

    @property
    def current_question(self) -> Question | None:
        if self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None


class SessionCreate(BaseModel):
    user_id: str
    config: InterviewConfig
    questions: list[Question] = Field(min_length=1)
    settings: InterviewSettingsOverride | None = None


class SessionControlRequest(BaseModel):
    action: SessionAction
    metadata: dict[str, Any] = Field(default_factory=dict)
    expected_version: int | None = None


class ResponseCreate(BaseModel):
    question_id: str
    text_response: str | None = None
    audio_url: str | None = None
    video_url: str | None = None
    started_at: datetime | None = None
    is_skipped: bool = False

    @field_validator("started_at")
    @classmethod
    def started_at_as_naive_utc(cls, v: datetime | None) -> datetime | None:
        # Stored timestamps are naive UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class TimeStatus(BaseModel):
    session_time_remaining: int | None = None
    question_time_remaining: int | None = None
    session_time_exceeded: bool = False
    question_time_exceeded: bool = False


class Progress(BaseModel):
    current_question_index: int
    total_questions: int
    completed_questions: int
    skipped_questions: int
    progress_percentage: int


class SessionStatus(BaseModel):
    session: InterviewSessionSnapshot
    time_status: TimeStatus
    progress: Progress
