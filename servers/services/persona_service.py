"""
Persona business logic.
Handles persona CRUD, source capture and SFL profile analysis.
"""

from typing import Dict, Iterable, List, Optional

from sfl_studio.analyzer import ProfileAnalyzer
from sfl_studio.exceptions import PersonaNotFoundError, StudioError, ValidationError
from sfl_studio.gemini import GeminiClient
from sfl_studio.models import SourceItem, SourceKind
from sfl_studio.session import (
    SessionStore,
    add_persona,
    add_persona_sources,
    apply_profile,
    delete_persona,
    remove_persona_source,
    set_error,
    set_persona_analyzing,
    update_persona,
)
from sfl_studio.sources import UploadLike, capture_batch, make_encoded_source, make_link_source

from ..logging_config import get_logger, session_logger
from .base import SessionBoundService

logger = get_logger(__name__)


class PersonaService(SessionBoundService):
    """Service for personas, their sources and their profiles."""

    def __init__(self, store: Optional[SessionStore] = None, client: Optional[GeminiClient] = None):
        super().__init__(store, client)
        self.analyzer = ProfileAnalyzer(self.client)

    def _require_persona(self, session_id: str, persona_id: str):
        persona = self.store.get(session_id).find_persona(persona_id)
        if persona is None:
            raise PersonaNotFoundError(persona_id)
        return persona

    def add_persona(self, session_id: str) -> Dict:
        state = self.store.update(session_id, add_persona)
        persona = state.personas[-1]
        session_logger(logger, session_id).info(f"Added persona {persona.id}")
        return self._session_response(state, persona_id=persona.id)

    def update_persona(
        self,
        session_id: str,
        persona_id: str,
        name: Optional[str] = None,
        role: Optional[str] = None,
        speaking_style: Optional[str] = None,
    ) -> Dict:
        state = self.store.update(
            session_id, lambda s: update_persona(s, persona_id, name, role, speaking_style)
        )
        return self._session_response(state)

    def delete_persona(self, session_id: str, persona_id: str) -> Dict:
        state = self.store.update(session_id, lambda s: delete_persona(s, persona_id))
        session_logger(logger, session_id).info(f"Deleted persona {persona_id}")
        return self._session_response(state)

    def _commit_sources(self, session_id: str, persona_id: str, items: List[SourceItem]) -> None:
        if not items:
            return
        if self.store.get(session_id).find_persona(persona_id) is None:
            session_logger(logger, session_id).warning(f"Persona {persona_id} deleted during capture; dropping {len(items)} source(s)")
            return
        self.store.update(session_id, lambda s: add_persona_sources(s, persona_id, items))

    async def upload_sources(
        self,
        session_id: str,
        persona_id: str,
        files: Iterable[UploadLike],
        kind: SourceKind,
    ) -> Dict:
        """Capture a batch of uploads; the successful ones are appended in one update."""
        self._require_persona(session_id, persona_id)
        files = list(files)
        captured = await capture_batch(
            files, kind, on_complete=lambda items: self._commit_sources(session_id, persona_id, items)
        )
        return self._session_response(
            self.store.get(session_id),
            captured=len(captured),
            failed=len(files) - len(captured),
        )

    def add_link(self, session_id: str, persona_id: str, url: str, name: Optional[str] = None) -> Dict:
        self._require_persona(session_id, persona_id)
        try:
            item = make_link_source(url, name)
        except ValueError as e:
            raise ValidationError(str(e), field="url") from e
        state = self.store.update(session_id, lambda s: add_persona_sources(s, persona_id, [item]))
        return self._session_response(state)

    def add_encoded_source(
        self,
        session_id: str,
        persona_id: str,
        name: str,
        kind: SourceKind,
        mime_type: Optional[str],
        data: str,
    ) -> Dict:
        self._require_persona(session_id, persona_id)
        try:
            item = make_encoded_source(name, kind, mime_type, data)
        except ValueError as e:
            raise ValidationError(f"Invalid base64 payload for '{name}'", field="data") from e
        state = self.store.update(session_id, lambda s: add_persona_sources(s, persona_id, [item]))
        return self._session_response(state)

    def remove_source(self, session_id: str, persona_id: str, source_id: str) -> Dict:
        state = self.store.update(session_id, lambda s: remove_persona_source(s, persona_id, source_id))
        return self._session_response(state)

    async def analyze(self, session_id: str, persona_id: str) -> Dict:
        """
        Run SFL analysis for one persona.

        On success the profile and speaking style are replaced; on failure the
        existing profile is kept and the message goes to the error banner.
        """
        persona = self._require_persona(session_id, persona_id)
        if persona.is_analyzing:
            return self._busy_response(f"Analysis for '{persona.name or persona_id}'")

        settings = self.store.get(session_id).settings
        self.store.update(
            session_id, lambda s: set_error(set_persona_analyzing(s, persona_id, True), None)
        )
        try:
            profile = await self.analyzer.analyze(persona.sources, settings)
        except StudioError as e:
            return self._fail(session_id, e)
        finally:
            self.store.update(session_id, lambda s: set_persona_analyzing(s, persona_id, False))

        state = self.store.update(session_id, lambda s: apply_profile(s, persona_id, profile))
        session_logger(logger, session_id).info(f"Analyzed persona {persona_id}")
        return self._session_response(state)
