"""
Routes for session lifecycle, settings and step navigation.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional

from sfl_studio.exceptions import NOT_FOUND_ERRORS, StudioError, create_error_response

from ..models import CreateSessionRequest, SettingsUpdate
from ..services import SessionService

router = APIRouter(prefix="/api", tags=["sessions"])
session_service = SessionService()


@router.post("/sessions")
async def create_session(request: Optional[CreateSessionRequest] = None):
    """Create a new session."""
    try:
        settings = request.settings.model_dump() if request and request.settings else None
        return session_service.create_session(settings)
    except StudioError as e:
        return create_error_response(e)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Get the full session state (source payloads omitted)."""
    try:
        return session_service.get_session(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Discard a session and everything in it."""
    try:
        return session_service.delete_session(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/sessions/{session_id}/reset")
async def reset_session(session_id: str):
    """Start over, keeping model settings."""
    try:
        return session_service.reset_session(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/sessions/{session_id}/error")
async def dismiss_error(session_id: str):
    """Dismiss the error banner."""
    try:
        return session_service.dismiss_error(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/sessions/{session_id}/settings")
async def update_settings(session_id: str, update: SettingsUpdate):
    """Update model id, thinking budget, temperature or search credentials."""
    try:
        return session_service.update_settings(session_id, update.model_dump())
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.post("/sessions/{session_id}/step/next")
async def next_step(session_id: str):
    """Advance one step if the current step is complete."""
    try:
        return session_service.next_step(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.post("/sessions/{session_id}/step/previous")
async def previous_step(session_id: str):
    """Go back one step."""
    try:
        return session_service.previous_step(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/sessions/{session_id}/step/{step}")
async def go_to_step(session_id: str, step: int):
    """Jump back to an earlier step."""
    try:
        return session_service.go_to_step(session_id, step)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.get("/models")
async def list_models():
    """Get the selectable models and defaults."""
    return session_service.list_models()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "SFL Studio API", "sessions": len(session_service.store)}
