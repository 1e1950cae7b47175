"""
Prompt text for every generative call.

The analysis prompts embed the JSON schema and the SFL scoring rubric; the
dialogue prompts embed the serialised persona roster and show structure.
Sources become request parts: text and links as labelled text blocks, media
as inline payloads.
"""

import json
from typing import Iterable, List, Optional

from .gemini import RequestPart
from .logging_config import get_logger
from .models import DialogueLine, Persona, ShowStructure, SourceItem, SourceKind

logger = get_logger(__name__)

MAX_INPUT_CHARS = 850_000


SFL_ANALYSIS_SYSTEM_INSTRUCTION = """You are an expert linguistics analyst specializing in Systemic Functional Linguistics (SFL). \
Your task is to analyze the supplied material (text, transcripts, audio, video or images of a speaker) \
and provide a detailed linguistic profile in a specific JSON format."""

SFL_ANALYSIS_PROMPT = """
Analyze the speaker represented by the SOURCE MATERIAL that follows, based on SFL principles, and return a single,
valid JSON object. Do not include any text or markdown formatting before or after the JSON object.
For audio and video, analyze what the speaker says and how they say it.

**REQUIRED JSON OUTPUT STRUCTURE:**
{
  "personaStyle": "string",
  "tone": "string",
  "explanationTendency": "string",
  "dialoguePattern": "string",
  "confidenceLevel": "string",
  "hedgingFrequency": "string",
  "statementStrength": "string",
  "informationPackaging": "string",
  "topicDevelopment": "string",
  "referenceStyle": "string",
  "processDistribution": {
    "material": number,
    "mental": number,
    "relational": number,
    "verbal": number
  },
  "technicalityLevel": number,
  "topics": ["string"],
  "analysisExplanation": "string"
}

**ANALYSIS GUIDELINES:**
1.  **Process Distribution**: Calculate the percentage of Material, Mental, Relational and Verbal processes.
    Each value is between 0 and 100 and the four values MUST sum to exactly 100.
2.  **Ideational Mapping**:
    - IF Relational > 50%: personaStyle = "Definitional Expert", explanationTendency = "Classification-focused", dialoguePattern = "What X is/means/represents"
    - ELIF Material > 40%: personaStyle = "Action-Oriented Practitioner", explanationTendency = "Process-focused", dialoguePattern = "How X works/happens/is done"
    - ELIF Mental > 35%: personaStyle = "Reflective Analyst", explanationTendency = "Interpretation-focused", dialoguePattern = "What X means/implies/suggests"
    - ELIF Verbal > 20%: personaStyle = "Research Communicator", explanationTendency = "Evidence-focused", dialoguePattern = "Studies show/experts say/research indicates"
    - ELSE: use a best-fit description.
3.  **Interpersonal Mapping** (modality: certainty, obligation):
    - Strong and frequent: confidenceLevel = "Highly Certain", hedgingFrequency = "Low", statementStrength = "Definitive".
    - Mixed: confidenceLevel = "Moderately Certain", hedgingFrequency = "Medium", statementStrength = "Qualified".
    - Weak or questioning: confidenceLevel = "Cautious", hedgingFrequency = "High", statementStrength = "Tentative".
4.  **Textual Mapping** (cohesion):
    - High (many connectors, reference chains): informationPackaging = "Highly Integrated", topicDevelopment = "Cumulative Building", referenceStyle = "Complex Chains".
    - Moderate: informationPackaging = "Moderately Connected", topicDevelopment = "Stepped Progression", referenceStyle = "Clear Links".
    - Low: informationPackaging = "Discrete Segments", topicDevelopment = "Independent Points", referenceStyle = "Explicit Reference".
5.  **Tone**: One or two words describing the overall emotional register (e.g. "Energetic", "Calm", "Authoritative").
6.  **Technicality Level**: An integer from 1 (conversational) to 10 (highly technical) based on lexical density and specialized terms.
7.  **Topic Extraction**: List up to 5 distinct main topics, keywords or key phrases.
8.  **Analysis Explanation**: Two or three sentences justifying the profile.

**SOURCE MATERIAL:**
"""

SHOW_CONTEXT_SYSTEM_INSTRUCTION = """You are an experienced podcast producer. You read research material and \
turn it into a crisp episode plan in a specific JSON format."""

SHOW_CONTEXT_PROMPT = """
Read the CONTEXT MATERIAL that follows and plan a podcast episode that discusses it.
Return a single, valid JSON object and nothing else:
{
  "title": "A catchy episode title (3-8 words)",
  "intro": "An outline of the host's introduction (2-3 sentences)",
  "topics": ["3 to 5 distinct talking points, in the order they should be discussed"]
}

**CONTEXT MATERIAL:**
"""

DIALOGUE_GENERATION_PROMPT = """
You are a master podcast scriptwriter, an expert in generating natural, multi-speaker dialogue based on detailed
Systemic Functional Linguistics (SFL) profiles.

**SHOW STRUCTURE:**
- Title: "{title}"
- Primary Host: "{host}" (This person leads the intro and transitions)
- Intro Outline: "{intro}"
- Key Topics: {topics}

**SPEAKER PERSONAS & SFL PROFILES:**
{roster}

**YOUR TASK:**
1.  Generate a complete, flowing dialogue script for a podcast episode.
2.  Each line MUST be prefixed with the speaker's name and a colon (e.g., "Jane Doe: ...").
3.  Each speaker's dialogue MUST strictly adhere to their SFL profile, role and speaking style. The speaking style is a
    direct instruction that should strongly influence the tone, word choice and pacing of their lines.
    -   A "Definitional Expert" (high relational) defines and classifies concepts.
    -   An "Action-Oriented Practitioner" (high material) talks about processes and implementation.
    -   A "Highly Certain" speaker uses definitive language. A "Cautious" one hedges.
4.  The Primary Host guides the conversation, introduces each topic and creates smooth transitions.
5.  Draw on the speakers' domains (implied by their profiles and topics){context_note}.
6.  **Pacing & Flow:**
    -   Information Packaging sets the pacing. "Highly Integrated" speakers use longer sentences that connect several
        ideas. "Discrete Segments" speakers use shorter, direct sentences, as if listing points.
    -   Confidence Level sets the rhythm. "Highly Certain" speakers are fluid and direct. "Cautious" speakers pause,
        hesitate and use fillers ("Well, I suppose...", "It's sort of like...").
    -   Dialogue Pattern shapes the purpose. "What X is/means" leads to explanatory, methodical pacing; "How X works"
        can be more energetic and sequential.
7.  **Interruptions & Overlaps:** Do not write a simple turn-by-turn exchange.
    -   "Highly Certain" speakers, especially "Action-Oriented Practitioners", interject to correct a detail or pivot
        ("Right, but the key thing is...").
    -   "Cautious" speakers are more likely to be interrupted, to yield, or to have false starts
        ("And I think... oh, sorry, go ahead.").
    -   Use overlaps to show agreement or excitement, with one speaker finishing another's thought.
8.  The output MUST be only the raw script text. Do not include titles, headers or other commentary.
"""

REFINE_LINE_PROMPT = """
You are a master podcast scriptwriter. Refine a single line of dialogue according to the user's instruction while
keeping the speaker's SFL profile, role and speaking style.

**SPEAKER PERSONAS & SFL PROFILES:**
{roster}

**SCRIPT SO FAR (for context):**
{history}

**LINE TO REFINE:**
{speaker}: {line}

**USER INSTRUCTION:**
"{instruction}"

**YOUR TASK:**
Rewrite ONLY the "LINE TO REFINE" according to the instruction. The new line must strictly adhere to the speaker's SFL
profile, role and speaking style.
Output ONLY the new line of text. Do NOT include the speaker's name, any prefix, or any other formatting.
"""

NEXT_LINE_PROMPT = """
You are a master podcast scriptwriter. Generate the next line of dialogue in a podcast with natural turn-taking.

**SPEAKER PERSONAS & SFL PROFILES:**
{roster}

**SCRIPT SO FAR:**
{history}

**YOUR TASK:**
Generate the next single line of dialogue. The previous speaker was "{last_speaker}".
The new line MUST be spoken by a different speaker. Their dialogue must strictly adhere to their SFL profile, role and
speaking style.
Output ONLY the speaker's name, a colon and their line (e.g., "Jane Doe: ..."). Do not include any other commentary.
"""


def serialize_roster(personas: Iterable[Persona]) -> str:
    """JSON roster of name, role, speaking style and profile for every persona."""
    roster = [
        {
            "name": p.name,
            "role": p.role,
            "speakingStyle": p.speaking_style,
            "sflProfile": p.sfl_profile.model_dump(by_alias=True, exclude_none=True) if p.sfl_profile else None,
        }
        for p in personas
    ]
    return json.dumps(roster, indent=2, ensure_ascii=False)


def _truncate(text: str, name: str) -> str:
    if len(text) > MAX_INPUT_CHARS:
        logger.warning(
            f"Source '{name}' is too long ({len(text)} chars). Truncating to {MAX_INPUT_CHARS} characters."
        )
        return text[:MAX_INPUT_CHARS]
    return text


def source_part(source: SourceItem) -> RequestPart:
    """One request part per source: labelled text for text/link kinds, inline payload otherwise."""
    if source.kind == SourceKind.TEXT:
        body = _truncate(source.data, source.name)
        return RequestPart.from_text(f"--- SOURCE: {source.name} (text) ---\n{body}\n--- END SOURCE ---")
    if source.kind == SourceKind.LINK:
        return RequestPart.from_text(
            f"--- SOURCE: {source.name} (link) ---\nReference URL: {source.data}\n--- END SOURCE ---"
        )
    return RequestPart.inline(source.data, source.mime_type)


def build_source_parts(sources: Iterable[SourceItem]) -> List[RequestPart]:
    return [source_part(s) for s in sources]


def build_analysis_contents(sources: Iterable[SourceItem]) -> List[RequestPart]:
    return [RequestPart.from_text(SFL_ANALYSIS_PROMPT), *build_source_parts(sources)]


def build_show_context_contents(sources: Iterable[SourceItem]) -> List[RequestPart]:
    return [RequestPart.from_text(SHOW_CONTEXT_PROMPT), *build_source_parts(sources)]


def build_dialogue_prompt(
    personas: List[Persona],
    show: ShowStructure,
    host_name: Optional[str],
    has_context: bool = False,
) -> str:
    context_note = " and the CONTEXT MATERIAL attached after these instructions" if has_context else ""
    return DIALOGUE_GENERATION_PROMPT.format(
        title=show.title,
        host=host_name or "N/A",
        intro=show.intro,
        topics=", ".join(show.topics),
        roster=serialize_roster(personas),
        context_note=context_note,
    )


def build_dialogue_contents(
    personas: List[Persona],
    show: ShowStructure,
    host_name: Optional[str],
) -> List[RequestPart]:
    contents = [RequestPart.from_text(build_dialogue_prompt(personas, show, host_name, bool(show.context_sources)))]
    if show.context_sources:
        contents.append(RequestPart.from_text("**CONTEXT MATERIAL:**"))
        contents.extend(build_source_parts(show.context_sources))
    return contents


def format_history(lines: Iterable[DialogueLine]) -> str:
    return "\n".join(f"{l.speaker_name}: {l.line}" for l in lines)


def build_refine_prompt(history: str, line: DialogueLine, instruction: str, personas: List[Persona]) -> str:
    return REFINE_LINE_PROMPT.format(
        roster=serialize_roster(personas),
        history=history,
        speaker=line.speaker_name,
        line=line.line,
        instruction=instruction,
    )


def build_next_line_prompt(history: str, personas: List[Persona], last_speaker: str) -> str:
    return NEXT_LINE_PROMPT.format(
        roster=serialize_roster(personas),
        history=history,
        last_speaker=last_speaker,
    )
