"""API models for the SFL Studio backend."""

from .api_models import (
    SettingsUpdate,
    CreateSessionRequest,
    PersonaUpdate,
    LinkSourceRequest,
    EncodedSourceRequest,
    ShowUpdate,
    TopicRequest,
    TopicsRequest,
    RefineLineRequest
)

__all__ = [
    "SettingsUpdate",
    "CreateSessionRequest",
    "PersonaUpdate",
    "LinkSourceRequest",
    "EncodedSourceRequest",
    "ShowUpdate",
    "TopicRequest",
    "TopicsRequest",
    "RefineLineRequest"
]
