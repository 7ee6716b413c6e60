from fastapi import Depends
from sqlalchemy.orm import Session

from session_control.core.database import get_db
from session_control.services.session_repository import SessionRepository
from session_control.services.session_service import SessionController


def get_session_controller(db: Session = Depends(get_db)) -> SessionController:
    return SessionController(SessionRepository(db))
