"""
Domain models for SFL Studio.

All models serialise with camelCase aliases (the shape the browser and the
generative model exchange) and are frozen: state changes are made with
model_copy(update=...) so every mutation produces a new value.
"""

import uuid
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import config


def new_id(prefix: str) -> str:
    """Generate a unique identifier such as 'persona-3f2a9c1b7d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class CamelModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes, immutable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SourceKind(str, Enum):
    """Media kind of a captured source."""
    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    LINK = "link"

    @property
    def is_binary(self) -> bool:
        return self in (SourceKind.AUDIO, SourceKind.VIDEO, SourceKind.IMAGE)

    @property
    def needs_media_model(self) -> bool:
        return self in (SourceKind.VIDEO, SourceKind.IMAGE)


class SourceItem(CamelModel):
    """One uploaded or linked artifact. Binary kinds carry base64 without any data-URL prefix."""
    id: str
    name: str
    kind: SourceKind
    mime_type: str
    data: str


class ProcessDistribution(CamelModel):
    """Percentages of material, mental, relational and verbal processes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")

    material: float = Field(ge=0, le=100)
    mental: float = Field(ge=0, le=100)
    relational: float = Field(ge=0, le=100)
    verbal: float = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _sums_to_hundred(self):
        total = self.material + self.mental + self.relational + self.verbal
        if abs(total - 100) > 0.01:
            raise ValueError(f"process distribution must sum to 100, got {total:g}")
        return self


class StyleProfile(CamelModel):
    """The SFL linguistic fingerprint of one persona."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")

    persona_style: str
    tone: str
    explanation_tendency: str
    dialogue_pattern: str
    confidence_level: str
    hedging_frequency: str
    statement_strength: str
    information_packaging: str
    topic_development: str
    reference_style: str
    process_distribution: ProcessDistribution
    technicality_level: int = Field(ge=1, le=10)
    topics: List[str] = Field(default_factory=list)
    analysis_explanation: Optional[str] = None

    @field_validator("topics")
    @classmethod
    def _unique_topics(cls, topics: List[str]) -> List[str]:
        return unique_topics(topics)


class ShowContextResult(CamelModel):
    """Episode-level title, intro and topics derived from context sources."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")

    title: str
    intro: str
    topics: List[str]

    @field_validator("topics")
    @classmethod
    def _unique_topics(cls, topics: List[str]) -> List[str]:
        return unique_topics(topics)


class Persona(CamelModel):
    """One configured speaker."""
    id: str
    name: str = ""
    role: str = ""
    speaking_style: str = ""
    sources: List[SourceItem] = Field(default_factory=list)
    sfl_profile: Optional[StyleProfile] = None
    is_analyzing: bool = False


class ShowStructure(CamelModel):
    """Episode configuration shared by all personas."""
    title: str = "Untitled Episode"
    primary_host_id: Optional[str] = None
    intro: str = ""
    topics: List[str] = Field(default_factory=list)
    context_sources: List[SourceItem] = Field(default_factory=list)


class DialogueLine(CamelModel):
    """One turn of the script. speaker_name is the source of truth for display."""
    id: str
    speaker_name: str
    persona_id: Optional[str] = None
    line: str


class SearchResultItem(CamelModel):
    """One related resource from the search provider."""
    title: str
    link: str
    snippet: str = ""
    thumbnail: Optional[str] = None


class ModelSettings(CamelModel):
    """Interactive model and search settings for one session."""
    model: str = Field(default_factory=lambda: config.default_model)
    thinking_budget: Optional[int] = Field(default_factory=lambda: config.default_thinking_budget, ge=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    google_api_key: str = ""
    google_cse_id: str = ""

    def temperature_or(self, default: float) -> float:
        """The user's temperature, or the operation default when none was chosen."""
        return default if self.temperature is None else self.temperature

    def effective_thinking_budget(self) -> Optional[int]:
        """The budget to send, or None when the model has no thinking mode."""
        model_info = config.get_model_info(self.model)
        if model_info and model_info.get("has_thinking") and self.thinking_budget is not None:
            return self.thinking_budget
        return None


class AppStep(IntEnum):
    PERSONA_CONFIG = 1
    SHOW_STRUCTURE = 2
    GENERATE_DIALOGUE = 3
    REFINE_SCRIPT = 4
    FINAL_REVIEW = 5


class SessionState(CamelModel):
    """Everything one browser session has configured and generated."""
    id: str = Field(default_factory=lambda: new_id("session"))
    step: AppStep = AppStep.PERSONA_CONFIG
    personas: List[Persona] = Field(default_factory=list)
    show: ShowStructure = Field(default_factory=ShowStructure)
    script: List[DialogueLine] = Field(default_factory=list)
    settings: ModelSettings = Field(default_factory=ModelSettings)

    is_generating: bool = False
    is_analyzing_context: bool = False
    refining_line_id: Optional[str] = None
    is_adding_next_line: bool = False
    is_searching: bool = False

    error: Optional[str] = None
    search_results: List[SearchResultItem] = Field(default_factory=list)
    search_error: Optional[str] = None
    auto_search_done: bool = False

    def find_persona(self, persona_id: str) -> Optional[Persona]:
        return next((p for p in self.personas if p.id == persona_id), None)

    def find_line(self, line_id: str) -> Optional[DialogueLine]:
        return next((l for l in self.script if l.id == line_id), None)

    @property
    def host_name(self) -> Optional[str]:
        host = self.find_persona(self.show.primary_host_id) if self.show.primary_host_id else None
        return host.name if host else None

    def to_public_dict(self) -> Dict[str, Any]:
        """JSON view for the browser, with source payloads left out."""
        data = self.model_dump(by_alias=True, mode="json")
        for persona in data["personas"]:
            for source in persona["sources"]:
                source.pop("data", None)
        for source in data["show"]["contextSources"]:
            source.pop("data", None)
        return data


def unique_topics(topics: List[str]) -> List[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    seen = set()
    result = []
    for topic in topics:
        cleaned = topic.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result
