"""Test session transitions, persona deletion policy and the step machine"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from sfl_studio.exceptions import LineNotFoundError, PersonaNotFoundError, SessionNotFoundError, ValidationError
from sfl_studio.models import AppStep, DialogueLine, ModelSettings, StyleProfile
from sfl_studio.session import (
    SessionStore,
    add_persona,
    add_topic,
    apply_profile,
    delete_persona,
    go_to_step,
    is_next_enabled,
    next_step,
    previous_step,
    remove_topic,
    replace_line_text,
    set_script,
    update_persona,
    update_settings,
    update_show,
)


@pytest.fixture
def profile(profile_payload):
    return StyleProfile.model_validate(profile_payload)


def _two_personas(store):
    state = store.create()
    state = add_persona(add_persona(state))
    return store.replace(state)


def test_add_persona_names_speakers_in_order():
    state = _two_personas(SessionStore())

    assert [p.name for p in state.personas] == ["Speaker 1", "Speaker 2"]
    assert state.personas[0].id != state.personas[1].id


def test_deleting_host_clears_host_and_line_links():
    state = _two_personas(SessionStore())
    host, guest = state.personas
    state = update_persona(state, host.id, name="Alex")
    state = update_show(state, primary_host_id=host.id)
    state = set_script(state, [
        DialogueLine(id="l1", speaker_name="Alex", persona_id=host.id, line="Welcome"),
        DialogueLine(id="l2", speaker_name="Speaker 2", persona_id=guest.id, line="Thanks"),
    ])

    state = delete_persona(state, host.id)

    assert state.show.primary_host_id is None
    assert state.script[0].persona_id is None
    assert state.script[0].speaker_name == "Alex"
    assert state.script[1].persona_id == guest.id
    assert [p.id for p in state.personas] == [guest.id]


def test_host_must_exist():
    state = SessionStore().create()
    with pytest.raises(PersonaNotFoundError):
        update_show(state, primary_host_id="persona-missing")


def test_apply_profile_sets_speaking_style(profile):
    state = add_persona(SessionStore().create())
    persona_id = state.personas[0].id

    state = apply_profile(state, persona_id, profile)

    persona = state.personas[0]
    assert persona.sfl_profile == profile
    assert persona.speaking_style == "Energetic, Action-Oriented Practitioner"
    assert profile.topics == ["Solar power", "Grid storage"]


def test_apply_profile_to_deleted_persona_is_ignored(profile):
    state = add_persona(SessionStore().create())
    persona_id = state.personas[0].id
    state = delete_persona(state, persona_id)

    assert apply_profile(state, persona_id, profile) == state


def test_step_one_requires_every_persona_profiled(profile):
    state = _two_personas(SessionStore())
    assert not is_next_enabled(state)
    with pytest.raises(ValidationError):
        next_step(state)

    state = apply_profile(state, state.personas[0].id, profile)
    assert not is_next_enabled(state)

    state = apply_profile(state, state.personas[1].id, profile)
    assert is_next_enabled(state)


def test_leaving_step_one_seeds_topics_from_profiles(profile):
    state = add_persona(SessionStore().create())
    state = apply_profile(state, state.personas[0].id, profile)

    state = next_step(state)

    assert state.step == AppStep.SHOW_STRUCTURE
    assert state.show.topics == ["Solar power", "Grid storage"]


def test_seeding_falls_back_to_placeholder_topic(profile_payload):
    profile_payload["topics"] = []
    state = add_persona(SessionStore().create())
    state = apply_profile(state, state.personas[0].id, StyleProfile.model_validate(profile_payload))

    state = next_step(state)

    assert state.show.topics == ["Main Topic"]


def test_show_step_gate(profile):
    state = add_persona(SessionStore().create())
    state = next_step(apply_profile(state, state.personas[0].id, profile))
    assert not is_next_enabled(state)

    state = update_show(state, primary_host_id=state.personas[0].id)
    assert is_next_enabled(state)

    state = add_topic(state, "   ")
    assert not is_next_enabled(state)
    state = remove_topic(state, len(state.show.topics) - 1)

    state = update_show(state, title="  ")
    assert not is_next_enabled(state)


def test_refine_step_requires_lines():
    state = SessionStore().create().model_copy(update={"step": AppStep.REFINE_SCRIPT})
    assert not is_next_enabled(state)

    state = set_script(state, [DialogueLine(id="l1", speaker_name="A", line="hi")])
    assert is_next_enabled(state)
    assert next_step(state).step == AppStep.FINAL_REVIEW
    assert not is_next_enabled(next_step(state))


def test_generate_step_cannot_be_skipped():
    state = SessionStore().create().model_copy(update={"step": AppStep.GENERATE_DIALOGUE})

    assert not is_next_enabled(state)
    with pytest.raises(ValidationError):
        next_step(state)

    state = set_script(state, [DialogueLine(id="l1", speaker_name="A", line="hi")])
    assert next_step(state).step == AppStep.REFINE_SCRIPT


def test_previous_and_go_to_step():
    state = SessionStore().create().model_copy(update={"step": AppStep.REFINE_SCRIPT})

    assert previous_step(state).step == AppStep.GENERATE_DIALOGUE
    assert go_to_step(state, AppStep.PERSONA_CONFIG).step == AppStep.PERSONA_CONFIG
    with pytest.raises(ValidationError):
        go_to_step(state, AppStep.FINAL_REVIEW)

    first = SessionStore().create()
    assert previous_step(first).step == AppStep.PERSONA_CONFIG


def test_replace_line_text_touches_one_line():
    state = set_script(SessionStore().create(), [
        DialogueLine(id="l1", speaker_name="A", line="one"),
        DialogueLine(id="l2", speaker_name="B", line="two"),
        DialogueLine(id="l3", speaker_name="A", line="three"),
    ])

    refined = replace_line_text(state, "l2", "TWO")

    assert [l.line for l in refined.script] == ["one", "TWO", "three"]
    assert [l.id for l in refined.script] == ["l1", "l2", "l3"]
    with pytest.raises(LineNotFoundError):
        replace_line_text(state, "missing", "x")


def test_settings_validation():
    state = SessionStore().create()

    state = update_settings(state, temperature=1.2, thinking_budget=0)
    assert state.settings.temperature == 1.2
    assert state.settings.thinking_budget == 0

    with pytest.raises(PydanticValidationError):
        update_settings(state, temperature=3.5)


def test_store_reset_keeps_settings_and_id():
    store = SessionStore()
    state = store.create(ModelSettings(temperature=0.3))
    store.update(state.id, add_persona)

    fresh = store.reset(state.id)

    assert fresh.id == state.id
    assert fresh.personas == []
    assert fresh.settings.temperature == 0.3


def test_store_unknown_session():
    with pytest.raises(SessionNotFoundError):
        SessionStore().get("session-nope")


def test_updates_for_different_personas_do_not_clobber(profile):
    store = SessionStore()
    state = _two_personas(store)
    first, second = state.personas

    # two completions applied to the latest state, one after the other
    store.update(state.id, lambda s: apply_profile(s, first.id, profile))
    store.update(state.id, lambda s: update_persona(s, second.id, role="Guest"))

    latest = store.get(state.id)
    assert latest.find_persona(first.id).sfl_profile == profile
    assert latest.find_persona(second.id).role == "Guest"
