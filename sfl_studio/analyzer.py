"""
SFL profile and show-context analysis.

Both analyzers send a rubric plus one part per source and expect a JSON object
back. The response is fence-stripped, parsed, and validated field by field;
anything that does not fit the schema is a MalformedResponseError.
"""

import json
from typing import Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MalformedResponseError, ValidationError
from .gemini import ANALYSIS_TEMPERATURE, GeminiClient, GenerationRequest, choose_model, strip_code_fence
from .logging_config import get_logger
from .models import ModelSettings, ShowContextResult, SourceItem, StyleProfile
from .prompts import (
    SFL_ANALYSIS_SYSTEM_INSTRUCTION,
    SHOW_CONTEXT_SYSTEM_INSTRUCTION,
    build_analysis_contents,
    build_show_context_contents,
)

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


def parse_json_response(text: str, model_cls: Type[T], context: str) -> T:
    """
    Parse fenced or bare JSON into model_cls.

    Raises:
        MalformedResponseError: not JSON, or JSON that fails schema validation
    """
    cleaned = strip_code_fence(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Malformed JSON in {context} response: {e}")
        raise MalformedResponseError(context) from e

    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "response"
        detail = f"{location}: {first['msg']}"
        logger.error(f"Invalid {context} response: {detail}")
        raise MalformedResponseError(context, detail=detail) from e


class ProfileAnalyzer:
    """Derives a StyleProfile from one persona's sources."""

    context = "analysis"

    def __init__(self, client: GeminiClient):
        self.client = client

    def build_request(self, sources: Sequence[SourceItem], settings: ModelSettings) -> GenerationRequest:
        if not sources:
            raise ValidationError("Add at least one source before analyzing.", field="sources")
        return GenerationRequest(
            model=choose_model(settings.model, sources),
            contents=build_analysis_contents(sources),
            temperature=ANALYSIS_TEMPERATURE,
            context=self.context,
            thinking_budget=settings.effective_thinking_budget(),
            system_instruction=SFL_ANALYSIS_SYSTEM_INSTRUCTION,
            json_response=True,
        )

    async def analyze(self, sources: Sequence[SourceItem], settings: ModelSettings) -> StyleProfile:
        request = self.build_request(sources, settings)
        text = await self.client.generate(request)
        profile = parse_json_response(text, StyleProfile, self.context)
        logger.info(
            f"Profile: {profile.persona_style} / {profile.tone}, technicality {profile.technicality_level}"
        )
        return profile


class ShowContextAnalyzer:
    """Derives an episode title, intro and topics from context sources."""

    context = "show context analysis"

    def __init__(self, client: GeminiClient):
        self.client = client

    def build_request(self, sources: Sequence[SourceItem], settings: ModelSettings) -> GenerationRequest:
        if not sources:
            raise ValidationError("Add at least one context source before analyzing.", field="context_sources")
        return GenerationRequest(
            model=choose_model(settings.model, sources),
            contents=build_show_context_contents(sources),
            temperature=ANALYSIS_TEMPERATURE,
            context=self.context,
            thinking_budget=settings.effective_thinking_budget(),
            system_instruction=SHOW_CONTEXT_SYSTEM_INSTRUCTION,
            json_response=True,
        )

    async def analyze(self, sources: Sequence[SourceItem], settings: ModelSettings) -> ShowContextResult:
        request = self.build_request(sources, settings)
        text = await self.client.generate(request)
        result = parse_json_response(text, ShowContextResult, self.context)
        logger.info(f"Show context: '{result.title}' with {len(result.topics)} topic(s)")
        return result
