import os
from datetime import datetime, timedelta

# Must be set before session_control.core.database builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from session_control.core.database import Base, SessionLocal, engine
from session_control.api.deps import get_session_controller
from session_control.main import app
from session_control.schemas.session import InterviewConfig, InterviewSettings, Question
from session_control.services.session_repository import SessionRepository
from session_control.services.session_service import SessionController


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
def repository(db):
    return SessionRepository(db)


@pytest.fixture
def controller(repository, clock):
    return SessionController(repository, clock=clock, conflict_retries=1)


@pytest.fixture
def make_session(controller):
    def _make(
        question_count=3,
        duration=None,
        time_per_question=None,
        question_time_limits=None,
        allow_pause=True,
        allow_skip=True,
        user_id="user-1",
    ):
        limits = question_time_limits or [None] * question_count
        questions = [
            Question(id=f"q{i + 1}", text=f"Question {i + 1}", time_limit=limits[i])
            for i in range(question_count)
        ]
        config = InterviewConfig(
            id="config-1",
            name="Backend Engineer",
            duration=duration,
            settings=InterviewSettings(
                allow_pause=allow_pause,
                allow_skip=allow_skip,
                time_per_question=time_per_question,
            ),
        )
        return controller.create_session(user_id, config, questions)

    return _make


@pytest.fixture
def client(controller):
    app.dependency_overrides[get_session_controller] = lambda: controller
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
