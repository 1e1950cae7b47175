"""
Routes for script generation, refinement, review and export.
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from sfl_studio.exceptions import NOT_FOUND_ERRORS, StudioError, create_error_response

from ..models import RefineLineRequest
from ..services import ScriptService

router = APIRouter(prefix="/api/sessions/{session_id}/script", tags=["script"])
script_service = ScriptService()


@router.post("/generate")
async def generate_script(session_id: str):
    """Generate the full dialogue script and move to the refine step."""
    try:
        return await script_service.generate(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/lines/{line_id}/refine")
async def refine_line(session_id: str, line_id: str, request: RefineLineRequest):
    """
    Rewrite a single line.

    Request body:
    {
        "instruction": "Make it more enthusiastic"
    }
    """
    try:
        return await script_service.refine_line(session_id, line_id, request.instruction)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/next-line")
async def next_line(session_id: str):
    """Append the next line of dialogue."""
    try:
        return await script_service.next_line(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StudioError as e:
        return create_error_response(e)


@router.get("/final")
async def final_script(session_id: str):
    """Get the script as plain text for final review."""
    try:
        return script_service.final_text(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/export")
async def export_script(session_id: str):
    """Download the show, personas and script as a JSON file."""
    try:
        filename, content = script_service.export(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
