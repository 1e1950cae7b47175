"""
Routes for personas, their sources and SFL analysis.
"""

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from typing import List

from sfl_studio.exceptions import NOT_FOUND_ERRORS, StudioError, create_error_response
from sfl_studio.models import SourceKind

from ..models import EncodedSourceRequest, LinkSourceRequest, PersonaUpdate
from ..services import PersonaService

router = APIRouter(prefix="/api/sessions/{session_id}/personas", tags=["personas"])
persona_service = PersonaService()


@router.post("")
async def add_persona(session_id: str):
    """Add an empty persona named 'Speaker N'."""
    try:
        return persona_service.add_persona(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/{persona_id}")
async def update_persona(session_id: str, persona_id: str, update: PersonaUpdate):
    """Edit name, role or speaking style."""
    try:
        return persona_service.update_persona(
            session_id, persona_id, update.name, update.role, update.speaking_style
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{persona_id}")
async def delete_persona(session_id: str, persona_id: str):
    """Delete a persona; host and line references to it are cleared."""
    try:
        return persona_service.delete_persona(session_id, persona_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{persona_id}/sources")
async def upload_sources(
    session_id: str,
    persona_id: str,
    files: List[UploadFile] = File(...),
    kind: SourceKind = Form(SourceKind.TEXT),
):
    """
    Upload a batch of source files of one kind.

    Form fields:
        files: one or more files
        kind: text, audio, video or image
    """
    try:
        return await persona_service.upload_sources(session_id, persona_id, files, kind)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{persona_id}/sources/link")
async def add_link(session_id: str, persona_id: str, request: LinkSourceRequest):
    """Add a link reference as a source."""
    try:
        return persona_service.add_link(session_id, persona_id, request.url, request.name)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.post("/{persona_id}/sources/encoded")
async def add_encoded_source(session_id: str, persona_id: str, request: EncodedSourceRequest):
    """Add a source sent inline (text, or base64 / data URL for media)."""
    try:
        return persona_service.add_encoded_source(
            session_id, persona_id, request.name, request.kind, request.mime_type, request.data
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.delete("/{persona_id}/sources/{source_id}")
async def remove_source(session_id: str, persona_id: str, source_id: str):
    """Remove one source from a persona."""
    try:
        return persona_service.remove_source(session_id, persona_id, source_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{persona_id}/analyze")
async def analyze_persona(session_id: str, persona_id: str):
    """Derive the persona's SFL profile from its sources."""
    try:
        return await persona_service.analyze(session_id, persona_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
