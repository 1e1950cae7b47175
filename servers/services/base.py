"""
Shared state for the API services.

One SessionStore, one Gemini client and one search client serve every
router; services accept replacements so tests can inject fakes.
"""

from typing import Dict, Optional

from sfl_studio.exceptions import StudioError, create_error_response
from sfl_studio.gemini import GeminiClient
from sfl_studio.models import SessionState
from sfl_studio.resources import GoogleSearchClient
from sfl_studio.session import SessionStore, set_error

from ..logging_config import get_logger, session_logger

logger = get_logger(__name__)

shared_store = SessionStore()
gemini_client = GeminiClient()
search_client = GoogleSearchClient()


class SessionBoundService:
    """Base for services that read and write session state."""

    def __init__(self, store: Optional[SessionStore] = None, client: Optional[GeminiClient] = None):
        self.store = store if store is not None else shared_store
        self.client = client if client is not None else gemini_client

    def _session_response(self, state: SessionState, **extra) -> Dict:
        return {"success": True, "session": state.to_public_dict(), **extra}

    def _fail(self, session_id: str, error: StudioError) -> Dict:
        """Record the failure in the session's error banner and build the error response."""
        session_logger(logger, session_id).error(f"{error.error_code}: {error.message}")
        self.store.update(session_id, lambda s: set_error(s, error.message))
        return create_error_response(error)

    def _busy_response(self, what: str) -> Dict:
        """Response for a request whose in-flight flag is already set."""
        return {"success": False, "error": f"{what} is already in progress.", "error_code": "IN_PROGRESS"}
