"""
Script business logic.
Handles generation, line refinement, continuation, final review and export.
"""

from typing import Dict, Optional, Tuple

from sfl_studio.exceptions import LineNotFoundError, StudioError, ValidationError
from sfl_studio.export import export_filename, export_json, render_script_text
from sfl_studio.gemini import GeminiClient
from sfl_studio.script_writer import ScriptWriter, parse_script
from sfl_studio.session import (
    SessionStore,
    append_line,
    apply_generated_script,
    replace_line_text,
    set_error,
    set_status,
)

from ..logging_config import get_logger, session_logger
from .base import SessionBoundService
from .resource_service import ResourceService

logger = get_logger(__name__)


class ScriptService(SessionBoundService):
    """Service for the dialogue script."""

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        client: Optional[GeminiClient] = None,
        resources: Optional[ResourceService] = None,
    ):
        super().__init__(store, client)
        self.writer = ScriptWriter(self.client)
        self.resources = resources or ResourceService(self.store)

    async def generate(self, session_id: str) -> Dict:
        """Generate and parse a full script, then move to the refine step."""
        state = self.store.get(session_id)
        if state.is_generating:
            return self._busy_response("Script generation")

        self.store.update(session_id, lambda s: set_error(set_status(s, is_generating=True), None))
        try:
            text = await self.writer.generate(state.personas, state.show, state.settings)
        except StudioError as e:
            return self._fail(session_id, e)
        finally:
            self.store.update(session_id, lambda s: set_status(s, is_generating=False))

        lines = parse_script(text, state.personas)
        session_logger(logger, session_id).info(f"Parsed {len(lines)} dialogue line(s)")
        self.store.update(session_id, lambda s: apply_generated_script(s, lines))
        try:
            await self.resources.maybe_auto_search(session_id)
        except Exception as e:
            session_logger(logger, session_id).error(f"Automatic search failed: {e}", exc_info=True)
        return self._session_response(self.store.get(session_id), line_count=len(lines))

    async def refine_line(self, session_id: str, line_id: str, instruction: str) -> Dict:
        """Rewrite one line; every other line is left untouched."""
        state = self.store.get(session_id)
        if state.find_line(line_id) is None:
            raise LineNotFoundError(line_id)
        if state.refining_line_id is not None:
            return self._busy_response("A line refinement")

        self.store.update(session_id, lambda s: set_error(set_status(s, refining_line_id=line_id), None))
        try:
            text = await self.writer.refine_line(
                state.script, line_id, instruction, state.personas, state.settings
            )
        except StudioError as e:
            return self._fail(session_id, e)
        finally:
            self.store.update(session_id, lambda s: set_status(s, refining_line_id=None))

        if self.store.get(session_id).find_line(line_id) is None:
            session_logger(logger, session_id).warning(f"Line {line_id} replaced during refinement; dropping result")
            raise LineNotFoundError(line_id)
        state = self.store.update(session_id, lambda s: replace_line_text(s, line_id, text))
        return self._session_response(state)

    async def next_line(self, session_id: str) -> Dict:
        """Append one generated line from a speaker other than the last one."""
        state = self.store.get(session_id)
        if not state.script:
            raise ValidationError("Generate a script before adding lines.", field="script")
        if state.is_adding_next_line:
            return self._busy_response("Next-line generation")

        self.store.update(session_id, lambda s: set_error(set_status(s, is_adding_next_line=True), None))
        try:
            line = await self.writer.continue_script(state.script, state.personas, state.settings)
        except StudioError as e:
            return self._fail(session_id, e)
        finally:
            self.store.update(session_id, lambda s: set_status(s, is_adding_next_line=False))

        state = self.store.update(session_id, lambda s: append_line(s, line))
        return self._session_response(state, line=line.model_dump(by_alias=True))

    def final_text(self, session_id: str) -> Dict:
        state = self.store.get(session_id)
        return {"success": True, "title": state.show.title, "text": render_script_text(state.script)}

    def export(self, session_id: str) -> Tuple[str, str]:
        """Return (filename, JSON document) for the download."""
        state = self.store.get(session_id)
        filename = export_filename(state.show.title)
        session_logger(logger, session_id).info(f"Exporting {len(state.script)} line(s) as {filename}")
        return filename, export_json(state)
