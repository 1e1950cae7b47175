"""
Routes for the show structure: fields, topics and context sources.
"""

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from typing import List

from sfl_studio.exceptions import NOT_FOUND_ERRORS, StudioError, create_error_response
from sfl_studio.models import SourceKind

from ..models import EncodedSourceRequest, LinkSourceRequest, ShowUpdate, TopicRequest, TopicsRequest
from ..services import ShowService

router = APIRouter(prefix="/api/sessions/{session_id}/show", tags=["show"])
show_service = ShowService()


@router.put("")
async def update_show(session_id: str, update: ShowUpdate):
    """Update title, intro or primary host."""
    try:
        return show_service.update_show(
            session_id, update.title, update.intro, update.primary_host_id, update.clear_host
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/topics")
async def set_topics(session_id: str, request: TopicsRequest):
    """Replace the topic list."""
    try:
        return show_service.set_topics(session_id, request.topics)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/topics")
async def add_topic(session_id: str, request: TopicRequest):
    """Append a topic (blank by default)."""
    try:
        return show_service.add_topic(session_id, request.topic)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/topics/{index}")
async def update_topic(session_id: str, index: int, request: TopicRequest):
    """Edit the topic at index."""
    try:
        return show_service.update_topic(session_id, index, request.topic)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.delete("/topics/{index}")
async def remove_topic(session_id: str, index: int):
    """Remove the topic at index."""
    try:
        return show_service.remove_topic(session_id, index)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.post("/sources")
async def upload_context_sources(
    session_id: str,
    files: List[UploadFile] = File(...),
    kind: SourceKind = Form(SourceKind.TEXT),
):
    """Upload a batch of context files of one kind."""
    try:
        return await show_service.upload_context_sources(session_id, files, kind)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/sources/link")
async def add_context_link(session_id: str, request: LinkSourceRequest):
    """Add a link reference as a context source."""
    try:
        return show_service.add_context_link(session_id, request.url, request.name)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.post("/sources/encoded")
async def add_encoded_context_source(session_id: str, request: EncodedSourceRequest):
    """Add a context source sent inline."""
    try:
        return show_service.add_encoded_context_source(
            session_id, request.name, request.kind, request.mime_type, request.data
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.delete("/sources/{source_id}")
async def remove_context_source(session_id: str, source_id: str):
    """Remove one context source."""
    try:
        return show_service.remove_context_source(session_id, source_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/analyze")
async def analyze_context(session_id: str):
    """Derive title, intro and topics from the context sources."""
    try:
        return await show_service.analyze_context(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
