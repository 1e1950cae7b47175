"""
Pydantic models for API requests.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from sfl_studio.models import SourceKind


class SettingsUpdate(BaseModel):
    """Partial update of a session's model and search settings."""
    model: Optional[str] = None
    thinking_budget: Optional[int] = Field(default=None, ge=0)
    clear_thinking_budget: bool = False
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    google_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None


class CreateSessionRequest(BaseModel):
    """Optional initial settings for a new session."""
    settings: Optional[SettingsUpdate] = None


class PersonaUpdate(BaseModel):
    """Free-text persona fields; omitted fields stay unchanged."""
    name: Optional[str] = None
    role: Optional[str] = None
    speaking_style: Optional[str] = None


class LinkSourceRequest(BaseModel):
    """A link reference entered by hand."""
    url: str
    name: Optional[str] = None


class EncodedSourceRequest(BaseModel):
    """A source sent inline, e.g. a browser data URL."""
    name: str
    kind: SourceKind
    mime_type: Optional[str] = None
    data: str


class ShowUpdate(BaseModel):
    """Show structure fields; omitted fields stay unchanged."""
    title: Optional[str] = None
    intro: Optional[str] = None
    primary_host_id: Optional[str] = None
    clear_host: bool = False


class TopicRequest(BaseModel):
    topic: str = ""


class TopicsRequest(BaseModel):
    topics: List[str]


class RefineLineRequest(BaseModel):
    """Instruction for rewriting one dialogue line."""
    instruction: str = Field(min_length=1)
