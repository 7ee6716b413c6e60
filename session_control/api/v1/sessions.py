from fastapi import APIRouter, Depends, HTTPException

from session_control.api.deps import get_session_controller
from session_control.core.exceptions import SessionControlError
from session_control.schemas.session import (
    InterviewSessionSnapshot,
    ResponseCreate,
    ResponseRecord,
    SessionControlRequest,
    SessionCreate,
)
from session_control.services.session_service import SessionController
from session_control.services.status_report_builder import build_status_view

router = APIRouter()


def _http_error(exc: SessionControlError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())


# Session APIs
@router.post("/sessions", status_code=201, response_model=InterviewSessionSnapshot)
async def create_interview_session(
    payload: SessionCreate,
    controller: SessionController = Depends(get_session_controller),
):
    return controller.create_session(
        payload.user_id,
        payload.config,
        payload.questions,
        settings_override=payload.settings,
    )


@router.get("/sessions/{session_id}", response_model=InterviewSessionSnapshot)
async def get_interview_session(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return controller.get_session(session_id)
    except SessionControlError as e:
        raise _http_error(e)


@router.get("/users/{user_id}/sessions")
async def list_user_sessions(
    user_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    sessions = controller.get_user_sessions(user_id)
    return {"data": sessions, "count": len(sessions)}


@router.post("/sessions/{session_id}/control", response_model=InterviewSessionSnapshot)
async def control_interview_session(
    session_id: str,
    payload: SessionControlRequest,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return controller.control_session(
            session_id,
            payload.action,
            metadata=payload.metadata,
            expected_version=payload.expected_version,
        )
    except SessionControlError as e:
        raise _http_error(e)


# Responses
@router.post("/sessions/{session_id}/responses", status_code=201, response_model=ResponseRecord)
async def submit_session_response(
    session_id: str,
    payload: ResponseCreate,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return controller.submit_response(session_id, payload)
    except SessionControlError as e:
        raise _http_error(e)


@router.get("/sessions/{session_id}/responses")
async def list_session_responses(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        responses = controller.get_session_responses(session_id)
    except SessionControlError as e:
        raise _http_error(e)
    return {"data": responses, "count": len(responses)}


# Status and timing
@router.get("/sessions/{session_id}/status")
async def get_interview_session_status(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return build_status_view(controller.get_session_status(session_id))
    except SessionControlError as e:
        raise _http_error(e)


@router.get("/sessions/{session_id}/current-question")
async def get_current_question(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return controller.get_current_question(session_id)
    except SessionControlError as e:
        raise _http_error(e)


@router.get("/sessions/{session_id}/time-check")
async def check_time_limits(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    try:
        return controller.check_time_limits(session_id)
    except SessionControlError as e:
        raise _http_error(e)
