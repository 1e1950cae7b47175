"""
Show structure business logic.
Handles episode fields, topics, context sources and context analysis.
"""

from typing import Dict, Iterable, List, Optional

from sfl_studio.analyzer import ShowContextAnalyzer
from sfl_studio.exceptions import StudioError, ValidationError
from sfl_studio.gemini import GeminiClient
from sfl_studio.models import SourceItem, SourceKind
from sfl_studio.session import (
    SessionStore,
    add_context_sources,
    add_topic,
    apply_show_context,
    remove_context_source,
    remove_topic,
    set_error,
    set_status,
    set_topics,
    update_show,
    update_topic,
)
from sfl_studio.sources import UploadLike, capture_batch, make_encoded_source, make_link_source

from ..logging_config import get_logger, session_logger
from .base import SessionBoundService

logger = get_logger(__name__)


class ShowService(SessionBoundService):
    """Service for the show structure shared by all personas."""

    def __init__(self, store: Optional[SessionStore] = None, client: Optional[GeminiClient] = None):
        super().__init__(store, client)
        self.analyzer = ShowContextAnalyzer(self.client)

    def update_show(
        self,
        session_id: str,
        title: Optional[str] = None,
        intro: Optional[str] = None,
        primary_host_id: Optional[str] = None,
        clear_host: bool = False,
    ) -> Dict:
        state = self.store.update(
            session_id, lambda s: update_show(s, title, intro, primary_host_id, clear_host)
        )
        return self._session_response(state)

    def set_topics(self, session_id: str, topics: List[str]) -> Dict:
        state = self.store.update(session_id, lambda s: set_topics(s, topics))
        return self._session_response(state)

    def add_topic(self, session_id: str, topic: str = "") -> Dict:
        state = self.store.update(session_id, lambda s: add_topic(s, topic))
        return self._session_response(state)

    def update_topic(self, session_id: str, index: int, topic: str) -> Dict:
        state = self.store.update(session_id, lambda s: update_topic(s, index, topic))
        return self._session_response(state)

    def remove_topic(self, session_id: str, index: int) -> Dict:
        state = self.store.update(session_id, lambda s: remove_topic(s, index))
        return self._session_response(state)

    def _commit_sources(self, session_id: str, items: List[SourceItem]) -> None:
        if items:
            self.store.update(session_id, lambda s: add_context_sources(s, items))

    async def upload_context_sources(self, session_id: str, files: Iterable[UploadLike], kind: SourceKind) -> Dict:
        """Capture a batch of context uploads; the successful ones are appended in one update."""
        self.store.get(session_id)
        files = list(files)
        captured = await capture_batch(files, kind, on_complete=lambda items: self._commit_sources(session_id, items))
        return self._session_response(
            self.store.get(session_id),
            captured=len(captured),
            failed=len(files) - len(captured),
        )

    def add_context_link(self, session_id: str, url: str, name: Optional[str] = None) -> Dict:
        try:
            item = make_link_source(url, name)
        except ValueError as e:
            raise ValidationError(str(e), field="url") from e
        state = self.store.update(session_id, lambda s: add_context_sources(s, [item]))
        return self._session_response(state)

    def add_encoded_context_source(
        self,
        session_id: str,
        name: str,
        kind: SourceKind,
        mime_type: Optional[str],
        data: str,
    ) -> Dict:
        try:
            item = make_encoded_source(name, kind, mime_type, data)
        except ValueError as e:
            raise ValidationError(f"Invalid base64 payload for '{name}'", field="data") from e
        state = self.store.update(session_id, lambda s: add_context_sources(s, [item]))
        return self._session_response(state)

    def remove_context_source(self, session_id: str, source_id: str) -> Dict:
        state = self.store.update(session_id, lambda s: remove_context_source(s, source_id))
        return self._session_response(state)

    async def analyze_context(self, session_id: str) -> Dict:
        """
        Derive title, intro and topics from the context sources.

        A successful result overwrites all three; a failure leaves them as they were.
        """
        state = self.store.get(session_id)
        if state.is_analyzing_context:
            return self._busy_response("Context analysis")

        self.store.update(session_id, lambda s: set_error(set_status(s, is_analyzing_context=True), None))
        try:
            result = await self.analyzer.analyze(state.show.context_sources, state.settings)
        except StudioError as e:
            return self._fail(session_id, e)
        finally:
            self.store.update(session_id, lambda s: set_status(s, is_analyzing_context=False))

        state = self.store.update(session_id, lambda s: apply_show_context(s, result))
        session_logger(logger, session_id).info(f"Show context applied: '{result.title}'")
        return self._session_response(state)
