"""
Routes for related-resource search.
"""

from fastapi import APIRouter, HTTPException

from sfl_studio.exceptions import NOT_FOUND_ERRORS

from ..services import ResourceService

router = APIRouter(prefix="/api/sessions/{session_id}/resources", tags=["resources"])
resource_service = ResourceService()


@router.post("/search")
async def search_resources(session_id: str):
    """Search related resources for the current topics."""
    try:
        return await resource_service.search(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("")
async def get_resources(session_id: str):
    """Get the last search results and any inline search error."""
    try:
        state = resource_service.store.get(session_id)
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {
        "results": [r.model_dump(by_alias=True) for r in state.search_results],
        "is_searching": state.is_searching,
        "search_error": state.search_error,
    }
