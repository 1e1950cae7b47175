"""
Session business logic.
Handles session lifecycle, model settings and step navigation.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from sfl_studio.config import AVAILABLE_MODELS, config
from sfl_studio.exceptions import ValidationError
from sfl_studio.models import AppStep, ModelSettings
from sfl_studio.session import go_to_step, is_next_enabled, next_step, previous_step, set_error, update_settings

from ..logging_config import get_logger, session_logger
from .base import SessionBoundService

logger = get_logger(__name__)


def _settings_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset fields; clear_thinking_budget turns extended thinking off."""
    changes = dict(changes)
    clear_budget = changes.pop("clear_thinking_budget", False)
    cleaned = {k: v for k, v in changes.items() if v is not None}
    if clear_budget:
        cleaned["thinking_budget"] = None
    if "model" in cleaned and config.get_model_info(cleaned["model"]) is None:
        raise ValidationError(f"Unknown model '{cleaned['model']}'", field="model")
    return cleaned


class SessionService(SessionBoundService):
    """Service for session lifecycle and the step machine."""

    def create_session(self, settings: Optional[Dict[str, Any]] = None) -> Dict:
        """Create a session, optionally with initial settings."""
        model_settings = None
        if settings:
            try:
                model_settings = ModelSettings.model_validate(_settings_changes(settings))
            except PydanticValidationError as e:
                raise ValidationError(str(e.errors()[0]["msg"]), field="settings") from e
        state = self.store.create(model_settings)
        return self._session_response(state)

    def get_session(self, session_id: str) -> Dict:
        state = self.store.get(session_id)
        return self._session_response(state, next_enabled=is_next_enabled(state))

    def reset_session(self, session_id: str) -> Dict:
        """Start over with the same id and settings."""
        state = self.store.reset(session_id)
        logger.info(f"Reset session {session_id}")
        return self._session_response(state)

    def delete_session(self, session_id: str) -> Dict:
        self.store.get(session_id)
        self.store.delete(session_id)
        logger.info(f"Deleted session {session_id}")
        return {"success": True}

    def dismiss_error(self, session_id: str) -> Dict:
        state = self.store.update(session_id, lambda s: set_error(s, None))
        return self._session_response(state)

    def update_settings(self, session_id: str, changes: Dict[str, Any]) -> Dict:
        cleaned = _settings_changes(changes)
        try:
            state = self.store.update(session_id, lambda s: update_settings(s, **cleaned))
        except PydanticValidationError as e:
            first = e.errors()[0]
            raise ValidationError(first["msg"], field=".".join(str(p) for p in first["loc"])) from e
        return self._session_response(state)

    def next_step(self, session_id: str) -> Dict:
        state = self.store.update(session_id, next_step)
        logger.info(f"Session {session_id} -> step {state.step.name}")
        return self._session_response(state, next_enabled=is_next_enabled(state))

    def previous_step(self, session_id: str) -> Dict:
        state = self.store.update(session_id, previous_step)
        return self._session_response(state, next_enabled=is_next_enabled(state))

    def go_to_step(self, session_id: str, step: int) -> Dict:
        try:
            target = AppStep(step)
        except ValueError as e:
            raise ValidationError(f"Unknown step {step}", field="step") from e
        state = self.store.update(session_id, lambda s: go_to_step(s, target))
        return self._session_response(state, next_enabled=is_next_enabled(state))

    def list_models(self) -> Dict:
        return {
            "models": AVAILABLE_MODELS,
            "default_model": config.default_model,
            "default_thinking_budget": config.default_thinking_budget,
        }
