"""
Gemini Executor

Thin async wrapper around the google-genai client. Callers describe a request
with provider-neutral RequestParts; this module turns it into SDK types,
applies the fixed safety settings and classifies failures.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from google import genai
from google.genai import types

from .config import config
from .exceptions import ConfigurationError, EmptyResponseError, ProviderError, ValidationError
from .logging_config import get_logger
from .models import SourceItem

logger = get_logger(__name__)

ANALYSIS_TEMPERATURE = 0.2
DIALOGUE_TEMPERATURE = 0.7
CONTINUATION_TEMPERATURE = 0.75

SAFETY_CATEGORIES = [
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
]

_FENCE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass
class RequestPart:
    """A text segment or an inline base64 payload tagged with its MIME type."""
    text: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "RequestPart":
        return cls(text=text)

    @classmethod
    def inline(cls, data: str, mime_type: str) -> "RequestPart":
        return cls(data=data, mime_type=mime_type)

    @property
    def is_inline(self) -> bool:
        return self.text is None

    def to_sdk(self) -> types.Part:
        if self.text is not None:
            return types.Part.from_text(text=self.text)
        return types.Part.from_bytes(data=base64.b64decode(self.data, validate=True), mime_type=self.mime_type)


@dataclass
class GenerationRequest:
    """Everything needed for one generate_content call."""
    model: str
    contents: Union[str, List[RequestPart]]
    temperature: float
    context: str
    thinking_budget: Optional[int] = None
    system_instruction: Optional[str] = None
    json_response: bool = False


def build_generate_config(request: GenerationRequest) -> types.GenerateContentConfig:
    """SDK config for a request; thinking is only configured when a budget is given."""
    kwargs = {
        "temperature": request.temperature,
        "safety_settings": [
            types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
            for category in SAFETY_CATEGORIES
        ],
    }
    if request.system_instruction:
        kwargs["system_instruction"] = request.system_instruction
    if request.json_response:
        kwargs["response_mime_type"] = "application/json"
    if request.thinking_budget is not None:
        kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=request.thinking_budget)
    return types.GenerateContentConfig(**kwargs)


def choose_model(selected: str, sources: Iterable[SourceItem]) -> str:
    """Route to the media-capable model when any source is video or image."""
    if any(s.kind.needs_media_model for s in sources):
        if selected != config.media_model:
            logger.info(f"Video/image source present: routing {selected} -> {config.media_model}")
        return config.media_model
    return selected


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```lang ... ``` fence, if any."""
    cleaned = text.strip()
    match = _FENCE.match(cleaned)
    if match and match.group(2):
        cleaned = match.group(2).strip()
    return cleaned


class GeminiClient:
    """Executes GenerationRequests against the Gemini API."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None):
        self._api_key = api_key if api_key is not None else config.gemini_api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("GEMINI_API_KEY environment variable not set", config_key="GEMINI_API_KEY")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, request: GenerationRequest) -> str:
        """
        Run one request and return the response text.

        Raises:
            EmptyResponseError: the model returned no text (e.g. safety block)
            ProviderError: the API call itself failed
            ValidationError: an inline part is not valid base64
        """
        if isinstance(request.contents, str):
            contents = request.contents
            part_count = 1
        else:
            try:
                contents = [part.to_sdk() for part in request.contents]
            except binascii.Error as e:
                logger.error(f"Undecodable inline payload in {request.context}: {e}")
                raise ValidationError(f"An attached source for {request.context} is not valid base64", field="data") from e
            part_count = len(contents)

        client = self.client
        logger.info(
            f"Gemini {request.context}: model={request.model} parts={part_count} "
            f"temperature={request.temperature} thinking_budget={request.thinking_budget}"
        )

        try:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=build_generate_config(request),
            )
        except Exception as e:
            logger.error(f"Error during {request.context} with Gemini: {e}", exc_info=True)
            raise ProviderError(f"Failed to complete {request.context}: {e}", provider="gemini") from e

        text = getattr(response, "text", None)
        if not text or not text.strip():
            logger.error(f"Gemini {request.context} response was empty or blocked")
            raise EmptyResponseError(request.context, model=request.model)
        return text
