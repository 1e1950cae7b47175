"""
Session state transitions.

Every function here takes a SessionState and returns a new one; nothing is
mutated in place. SessionStore holds the current state per session and applies
updates as whole-object replacements (last write wins).
"""

from typing import Callable, Dict, Iterable, List, Optional

from .exceptions import LineNotFoundError, PersonaNotFoundError, SessionNotFoundError, ValidationError
from .logging_config import get_logger
from .models import (
    AppStep,
    DialogueLine,
    ModelSettings,
    Persona,
    SessionState,
    ShowContextResult,
    SourceItem,
    StyleProfile,
    new_id,
    unique_topics,
)

logger = get_logger(__name__)

MAX_SEEDED_TOPICS = 5
FALLBACK_TOPIC = "Main Topic"


# --- Personas ---

def add_persona(state: SessionState) -> SessionState:
    persona = Persona(id=new_id("persona"), name=f"Speaker {len(state.personas) + 1}")
    return state.model_copy(update={"personas": [*state.personas, persona]})


def _replace_persona(state: SessionState, persona_id: str, fn: Callable[[Persona], Persona]) -> SessionState:
    if state.find_persona(persona_id) is None:
        raise PersonaNotFoundError(persona_id)
    personas = [fn(p) if p.id == persona_id else p for p in state.personas]
    return state.model_copy(update={"personas": personas})


def update_persona(
    state: SessionState,
    persona_id: str,
    name: Optional[str] = None,
    role: Optional[str] = None,
    speaking_style: Optional[str] = None,
) -> SessionState:
    """Edit a persona's free-text fields; None leaves a field unchanged."""
    changes = {
        key: value
        for key, value in (("name", name), ("role", role), ("speaking_style", speaking_style))
        if value is not None
    }
    return _replace_persona(state, persona_id, lambda p: p.model_copy(update=changes))


def delete_persona(state: SessionState, persona_id: str) -> SessionState:
    """
    Remove a persona and every reference to it.

    The primary host is unset if it was this persona, and dialogue lines keep
    their speaker name but lose the persona link.
    """
    if state.find_persona(persona_id) is None:
        raise PersonaNotFoundError(persona_id)

    show = state.show
    if show.primary_host_id == persona_id:
        show = show.model_copy(update={"primary_host_id": None})

    script = [
        line.model_copy(update={"persona_id": None}) if line.persona_id == persona_id else line
        for line in state.script
    ]
    return state.model_copy(update={
        "personas": [p for p in state.personas if p.id != persona_id],
        "show": show,
        "script": script,
    })


def add_persona_sources(state: SessionState, persona_id: str, items: Iterable[SourceItem]) -> SessionState:
    items = list(items)
    return _replace_persona(state, persona_id, lambda p: p.model_copy(update={"sources": [*p.sources, *items]}))


def remove_persona_source(state: SessionState, persona_id: str, source_id: str) -> SessionState:
    return _replace_persona(
        state, persona_id,
        lambda p: p.model_copy(update={"sources": [s for s in p.sources if s.id != source_id]}),
    )


def set_persona_analyzing(state: SessionState, persona_id: str, analyzing: bool) -> SessionState:
    """Set one persona's in-flight flag. A persona deleted meanwhile is ignored."""
    if state.find_persona(persona_id) is None:
        return state
    return _replace_persona(state, persona_id, lambda p: p.model_copy(update={"is_analyzing": analyzing}))


def apply_profile(state: SessionState, persona_id: str, profile: StyleProfile) -> SessionState:
    """Replace the persona's profile and seed its speaking style from tone and style labels."""
    if state.find_persona(persona_id) is None:
        logger.info(f"Persona {persona_id} was deleted during analysis; dropping profile")
        return state
    speaking_style = f"{profile.tone}, {profile.persona_style}"
    return _replace_persona(
        state, persona_id,
        lambda p: p.model_copy(update={"sfl_profile": profile, "speaking_style": speaking_style}),
    )


# --- Show structure ---

def update_show(
    state: SessionState,
    title: Optional[str] = None,
    intro: Optional[str] = None,
    primary_host_id: Optional[str] = None,
    clear_host: bool = False,
) -> SessionState:
    changes = {}
    if title is not None:
        changes["title"] = title
    if intro is not None:
        changes["intro"] = intro
    if clear_host:
        changes["primary_host_id"] = None
    elif primary_host_id is not None:
        if state.find_persona(primary_host_id) is None:
            raise PersonaNotFoundError(primary_host_id)
        changes["primary_host_id"] = primary_host_id
    return state.model_copy(update={"show": state.show.model_copy(update=changes)})


def set_topics(state: SessionState, topics: List[str]) -> SessionState:
    return state.model_copy(update={"show": state.show.model_copy(update={"topics": list(topics)})})


def add_topic(state: SessionState, topic: str = "") -> SessionState:
    return set_topics(state, [*state.show.topics, topic])


def update_topic(state: SessionState, index: int, topic: str) -> SessionState:
    topics = list(state.show.topics)
    if not 0 <= index < len(topics):
        raise ValidationError(f"Topic index {index} out of range", field="topics")
    topics[index] = topic
    return set_topics(state, topics)


def remove_topic(state: SessionState, index: int) -> SessionState:
    topics = list(state.show.topics)
    if not 0 <= index < len(topics):
        raise ValidationError(f"Topic index {index} out of range", field="topics")
    del topics[index]
    return set_topics(state, topics)


def add_context_sources(state: SessionState, items: Iterable[SourceItem]) -> SessionState:
    sources = [*state.show.context_sources, *items]
    return state.model_copy(update={"show": state.show.model_copy(update={"context_sources": sources})})


def remove_context_source(state: SessionState, source_id: str) -> SessionState:
    sources = [s for s in state.show.context_sources if s.id != source_id]
    return state.model_copy(update={"show": state.show.model_copy(update={"context_sources": sources})})


def apply_show_context(state: SessionState, result: ShowContextResult) -> SessionState:
    """Overwrite title, intro and topics wholesale."""
    show = state.show.model_copy(update={
        "title": result.title,
        "intro": result.intro,
        "topics": list(result.topics),
    })
    return state.model_copy(update={"show": show})


# --- Script ---

def set_script(state: SessionState, lines: List[DialogueLine]) -> SessionState:
    return state.model_copy(update={"script": list(lines)})


def replace_line_text(state: SessionState, line_id: str, text: str) -> SessionState:
    """Change one line's text; order, length and every other line stay as they are."""
    if state.find_line(line_id) is None:
        raise LineNotFoundError(line_id)
    script = [l.model_copy(update={"line": text}) if l.id == line_id else l for l in state.script]
    return state.model_copy(update={"script": script})


def append_line(state: SessionState, line: DialogueLine) -> SessionState:
    return state.model_copy(update={"script": [*state.script, line]})


def apply_generated_script(state: SessionState, lines: List[DialogueLine]) -> SessionState:
    """Store a freshly generated script and move on to refinement."""
    return state.model_copy(update={"script": list(lines), "step": AppStep.REFINE_SCRIPT})


# --- Settings and banners ---

def update_settings(state: SessionState, **changes) -> SessionState:
    settings = ModelSettings.model_validate({**state.settings.model_dump(), **changes})
    return state.model_copy(update={"settings": settings})


def set_error(state: SessionState, message: Optional[str]) -> SessionState:
    return state.model_copy(update={"error": message})


def set_status(state: SessionState, **flags) -> SessionState:
    """Set in-flight flags and search panel fields (is_generating, search_error, ...)."""
    return state.model_copy(update=flags)


# --- Step machine ---

def is_next_enabled(state: SessionState) -> bool:
    if state.step == AppStep.PERSONA_CONFIG:
        return bool(state.personas) and all(p.sfl_profile is not None for p in state.personas)
    if state.step == AppStep.SHOW_STRUCTURE:
        show = state.show
        return (
            show.title.strip() != ""
            and show.primary_host_id is not None
            and len(show.topics) > 0
            and all(t.strip() != "" for t in show.topics)
        )
    if state.step in (AppStep.GENERATE_DIALOGUE, AppStep.REFINE_SCRIPT):
        return len(state.script) > 0
    return False


def seed_topics(state: SessionState) -> SessionState:
    """Fill empty topics from the personas' profile topics (first five), else a placeholder."""
    if state.show.topics:
        return state
    collected = [t for p in state.personas if p.sfl_profile for t in p.sfl_profile.topics]
    topics = unique_topics(collected)[:MAX_SEEDED_TOPICS] or [FALLBACK_TOPIC]
    return set_topics(state, topics)


def next_step(state: SessionState) -> SessionState:
    if not is_next_enabled(state):
        raise ValidationError(f"Step {state.step.name} is not complete yet", field="step")
    if state.step == AppStep.PERSONA_CONFIG:
        state = seed_topics(state)
    return state.model_copy(update={"step": AppStep(state.step + 1)})


def previous_step(state: SessionState) -> SessionState:
    if state.step > AppStep.PERSONA_CONFIG:
        return state.model_copy(update={"step": AppStep(state.step - 1)})
    return state


def go_to_step(state: SessionState, step: AppStep) -> SessionState:
    """Jump back to an earlier step; forward jumps must go through next_step()."""
    if step >= state.step:
        raise ValidationError("Only completed steps can be revisited", field="step")
    return state.model_copy(update={"step": step})


class SessionStore:
    """
    In-memory session states keyed by session id.

    update() reads the latest state, applies a transformation and stores the
    result, so concurrent completions for different targets never overwrite
    each other with stale snapshots.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}

    def create(self, settings: Optional[ModelSettings] = None) -> SessionState:
        state = SessionState(settings=settings) if settings else SessionState()
        self._sessions[state.id] = state
        logger.info(f"Created session {state.id}")
        return state

    def get(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is None:
            raise SessionNotFoundError(session_id)
        return state

    def replace(self, state: SessionState) -> SessionState:
        self._sessions[state.id] = state
        return state

    def update(self, session_id: str, fn: Callable[[SessionState], SessionState]) -> SessionState:
        return self.replace(fn(self.get(session_id)))

    def reset(self, session_id: str) -> SessionState:
        """Start over, keeping only the model settings."""
        current = self.get(session_id)
        return self.replace(SessionState(id=session_id, settings=current.settings))

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
