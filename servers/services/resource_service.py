"""
Related-resource search business logic.
Search failures are shown inline in the resource panel, not in the error banner.
"""

from typing import Dict, Optional

from sfl_studio.exceptions import ProviderError, StudioError, create_error_response
from sfl_studio.resources import GoogleSearchClient, build_query
from sfl_studio.session import SessionStore, set_status

from ..logging_config import get_logger, session_logger
from .base import SessionBoundService, search_client

logger = get_logger(__name__)


class ResourceService(SessionBoundService):
    """Service for topic-driven resource lookup."""

    def __init__(self, store: Optional[SessionStore] = None, searcher: Optional[GoogleSearchClient] = None):
        super().__init__(store)
        self.searcher = searcher if searcher is not None else search_client

    async def search(self, session_id: str) -> Dict:
        """Search using all current topics; results replace the previous ones wholesale."""
        state = self.store.get(session_id)
        if not state.show.topics:
            return self._session_response(state, results=[])
        if state.is_searching:
            return self._busy_response("A search")

        self.store.update(session_id, lambda s: set_status(s, is_searching=True, search_error=None))
        try:
            results = await self.searcher.search(
                build_query(state.show.topics),
                state.settings.google_api_key,
                state.settings.google_cse_id,
            )
        except StudioError as e:
            session_logger(logger, session_id).error(f"Search failed: {e.message}")
            return self._search_failed(session_id, e)
        except Exception as e:
            session_logger(logger, session_id).error(f"Search failed unexpectedly: {e}", exc_info=True)
            return self._search_failed(session_id, ProviderError(f"Search failed: {e}", provider="google-search"))
        finally:
            self.store.update(session_id, lambda s: set_status(s, is_searching=False))

        state = self.store.update(session_id, lambda s: set_status(s, search_results=results))
        return self._session_response(state, results=[r.model_dump(by_alias=True) for r in results])

    def _search_failed(self, session_id: str, error: StudioError) -> Dict:
        self.store.update(session_id, lambda s: set_status(s, search_error=error.message))
        return create_error_response(error)

    async def maybe_auto_search(self, session_id: str) -> bool:
        """
        Search once, automatically, the first time the script is non-empty.

        Returns:
            True when a search was started
        """
        state = self.store.get(session_id)
        if (
            state.auto_search_done
            or not state.script
            or state.search_results
            or state.search_error
            or state.is_searching
        ):
            return False

        self.store.update(session_id, lambda s: set_status(s, auto_search_done=True))
        session_logger(logger, session_id).info("Running automatic resource search")
        await self.search(session_id)
        return True
