"""Business logic services for the SFL Studio backend."""

from .base import SessionBoundService, shared_store, gemini_client, search_client
from .session_service import SessionService
from .persona_service import PersonaService
from .show_service import ShowService
from .resource_service import ResourceService
from .script_service import ScriptService

__all__ = [
    "SessionBoundService",
    "shared_store",
    "gemini_client",
    "search_client",
    "SessionService",
    "PersonaService",
    "ShowService",
    "ResourceService",
    "ScriptService"
]
