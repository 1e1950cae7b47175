"""
SCRIPT WRITER - Dialogue generation, line refinement and continuation

Generates a full multi-speaker script from the persona roster and show
structure, parses the raw "Speaker: text" output into DialogueLines, rewrites
single lines on instruction and appends the next turn of the conversation.
"""

from typing import List, Optional, Sequence

from .exceptions import InvalidFormatError, ValidationError
from .gemini import CONTINUATION_TEMPERATURE, DIALOGUE_TEMPERATURE, GeminiClient, GenerationRequest, choose_model
from .logging_config import get_logger
from .models import DialogueLine, ModelSettings, Persona, ShowStructure, new_id
from .prompts import build_dialogue_contents, build_next_line_prompt, build_refine_prompt, format_history

logger = get_logger(__name__)


def resolve_persona_id(speaker_name: str, personas: Sequence[Persona]) -> Optional[str]:
    """Case-insensitive exact match of a trimmed speaker name against persona names."""
    wanted = speaker_name.strip().lower()
    for persona in personas:
        if persona.name.strip().lower() == wanted:
            return persona.id
    return None


def parse_line(raw: str, personas: Sequence[Persona]) -> Optional[DialogueLine]:
    """Parse one 'Speaker: text' line; None when there is no colon."""
    if ":" not in raw:
        return None
    speaker, text = raw.split(":", 1)
    speaker = speaker.strip()
    return DialogueLine(
        id=new_id("line"),
        speaker_name=speaker,
        persona_id=resolve_persona_id(speaker, personas),
        line=text.strip(),
    )


def parse_script(text: str, personas: Sequence[Persona]) -> List[DialogueLine]:
    """
    Parse raw script text into dialogue lines.

    Lines without a ':' are dropped; every other line is split at its first
    colon and both halves trimmed.
    """
    lines = []
    for raw in text.split("\n"):
        parsed = parse_line(raw, personas)
        if parsed is not None:
            lines.append(parsed)
    return lines


def script_history(lines: Sequence[DialogueLine], until_line_id: Optional[str] = None) -> str:
    """Script text up to, but excluding, until_line_id (the whole script when None)."""
    history = []
    for line in lines:
        if line.id == until_line_id:
            break
        history.append(line)
    return format_history(history)


class ScriptWriter:
    """Generates, refines and continues podcast scripts."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def build_generation_request(
        self,
        personas: Sequence[Persona],
        show: ShowStructure,
        settings: ModelSettings,
    ) -> GenerationRequest:
        host = next((p for p in personas if p.id == show.primary_host_id), None)
        if not personas or host is None:
            raise ValidationError(
                "Please configure at least one persona and select a primary host.", field="primary_host_id"
            )
        return GenerationRequest(
            model=choose_model(settings.model, show.context_sources),
            contents=build_dialogue_contents(list(personas), show, host.name),
            temperature=settings.temperature_or(DIALOGUE_TEMPERATURE),
            context="script generation",
            thinking_budget=settings.effective_thinking_budget(),
        )

    async def generate(self, personas: Sequence[Persona], show: ShowStructure, settings: ModelSettings) -> str:
        """Generate the raw script text for the whole episode."""
        request = self.build_generation_request(personas, show, settings)
        text = await self.client.generate(request)
        logger.info(f"Generated script for '{show.title}' ({len(text)} chars)")
        return text

    async def refine_line(
        self,
        lines: Sequence[DialogueLine],
        line_id: str,
        instruction: str,
        personas: Sequence[Persona],
        settings: ModelSettings,
    ) -> Optional[str]:
        """
        Rewrite one line according to an instruction.

        Returns:
            The replacement text with no speaker prefix, or None (and no
            request) when line_id is not in the script
        """
        target = next((l for l in lines if l.id == line_id), None)
        if target is None:
            logger.warning(f"Refine skipped: line {line_id} not in script")
            return None

        prompt = build_refine_prompt(script_history(lines, line_id), target, instruction, list(personas))
        request = GenerationRequest(
            model=settings.model,
            contents=prompt,
            temperature=settings.temperature_or(DIALOGUE_TEMPERATURE),
            context="line refinement",
            thinking_budget=settings.effective_thinking_budget(),
        )
        text = await self.client.generate(request)
        return text.strip()

    async def continue_script(
        self,
        lines: Sequence[DialogueLine],
        personas: Sequence[Persona],
        settings: ModelSettings,
    ) -> Optional[DialogueLine]:
        """
        Generate the next line, spoken by someone other than the last speaker.

        Returns:
            The new DialogueLine, or None (and no request) for an empty script

        Raises:
            InvalidFormatError: the response has no ':', no text after it, or
                repeats the previous speaker while others are available
        """
        if not lines:
            logger.warning("Next line skipped: script is empty")
            return None

        prompt = build_next_line_prompt(script_history(lines), list(personas), lines[-1].speaker_name)
        request = GenerationRequest(
            model=settings.model,
            contents=prompt,
            temperature=settings.temperature_or(CONTINUATION_TEMPERATURE),
            context="next line generation",
            thinking_budget=settings.effective_thinking_budget(),
        )
        text = (await self.client.generate(request)).strip()

        parsed = parse_script(text, personas)
        line = parsed[0] if parsed else None
        if line is None or not line.line:
            logger.error(f"Invalid next-line format: {text!r}")
            raise InvalidFormatError(text)

        if len(personas) > 1 and line.speaker_name.lower() == lines[-1].speaker_name.strip().lower():
            logger.error(f"Next line repeated the previous speaker: {text!r}")
            raise InvalidFormatError(text, "AI gave the next line to the previous speaker.")
        return line
