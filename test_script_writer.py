"""Test script parsing, generation requests, refinement and continuation"""
import asyncio

import pytest

from sfl_studio.exceptions import EmptyResponseError, InvalidFormatError, ValidationError
from sfl_studio.gemini import CONTINUATION_TEMPERATURE, DIALOGUE_TEMPERATURE
from sfl_studio.models import DialogueLine, ModelSettings, Persona, ShowStructure, SourceItem, SourceKind
from sfl_studio.script_writer import ScriptWriter, parse_script, script_history


PERSONAS = [
    Persona(id="p-jane", name="jane doe", role="Host"),
    Persona(id="p-sam", name="Sam", role="Engineer"),
]

SCRIPT = [
    DialogueLine(id="l1", speaker_name="Jane Doe", persona_id="p-jane", line="Welcome to the show."),
    DialogueLine(id="l2", speaker_name="Sam", persona_id="p-sam", line="Glad to be here."),
    DialogueLine(id="l3", speaker_name="Jane Doe", persona_id="p-jane", line="Let's start with storage."),
]


def test_lines_without_colon_are_dropped():
    lines = parse_script("A: hi\nnot a line\nB: bye", PERSONAS)

    assert [(l.speaker_name, l.line) for l in lines] == [("A", "hi"), ("B", "bye")]
    assert all(l.persona_id is None for l in lines)


def test_speaker_resolution_is_trimmed_and_case_insensitive():
    lines = parse_script("  Jane Doe :  Hello ", PERSONAS)

    assert len(lines) == 1
    assert lines[0].persona_id == "p-jane"
    assert lines[0].speaker_name == "Jane Doe"
    assert lines[0].line == "Hello"


def test_split_happens_at_first_colon_only():
    lines = parse_script("Sam: The ratio is 3:1, roughly.", PERSONAS)

    assert lines[0].line == "The ratio is 3:1, roughly."
    assert lines[0].persona_id == "p-sam"


def test_parsing_is_stable_apart_from_ids():
    text = "Sam: one\nJane Doe: two"
    first = parse_script(text, PERSONAS)
    second = parse_script(text, PERSONAS)

    assert [(l.speaker_name, l.persona_id, l.line) for l in first] == \
        [(l.speaker_name, l.persona_id, l.line) for l in second]
    assert len({l.id for l in first + second}) == 4


def test_empty_output_parses_to_no_lines():
    assert parse_script("", PERSONAS) == []


def test_script_history_stops_before_target():
    assert script_history(SCRIPT, "l2") == "Jane Doe: Welcome to the show."
    assert script_history(SCRIPT).count("\n") == 2


def test_generation_requires_persona_and_host(fake_gemini):
    writer = ScriptWriter(fake_gemini("unused"))

    with pytest.raises(ValidationError):
        asyncio.run(writer.generate(PERSONAS, ShowStructure(), ModelSettings()))
    with pytest.raises(ValidationError):
        asyncio.run(writer.generate([], ShowStructure(primary_host_id="p-jane"), ModelSettings()))


def test_generation_request_carries_show_and_context(fake_gemini):
    client = fake_gemini("Jane Doe: Hi\nSam: Hello")
    writer = ScriptWriter(client)
    show = ShowStructure(
        title="Storage Hour",
        primary_host_id="p-jane",
        topics=["Batteries"],
        context_sources=[
            SourceItem(id="c1", name="chart.png", kind=SourceKind.IMAGE, mime_type="image/png", data="aGk="),
        ],
    )
    settings = ModelSettings(model="gemini-3-pro-preview", temperature=0.9)

    text = asyncio.run(writer.generate(PERSONAS, show, settings))

    request = client.requests[0]
    assert text.startswith("Jane Doe:")
    assert request.temperature == 0.9
    assert request.model == "gemini-2.5-flash"
    assert 'Primary Host: "jane doe"' in request.contents[0].text
    assert "Storage Hour" in request.contents[0].text
    assert request.contents[-1].is_inline


def test_refine_returns_stripped_text_and_sends_history(fake_gemini):
    client = fake_gemini("  Honestly? Glad to be here!  \n")
    writer = ScriptWriter(client)

    text = asyncio.run(writer.refine_line(SCRIPT, "l2", "more excited", PERSONAS, ModelSettings()))

    assert text == "Honestly? Glad to be here!"
    prompt = client.requests[0].contents
    assert "Jane Doe: Welcome to the show." in prompt
    assert "Let's start with storage." not in prompt
    assert '"more excited"' in prompt


def test_refine_missing_line_sends_nothing(fake_gemini):
    client = fake_gemini()
    writer = ScriptWriter(client)

    assert asyncio.run(writer.refine_line(SCRIPT, "nope", "x", PERSONAS, ModelSettings())) is None
    assert client.requests == []


def test_continue_parses_new_line(fake_gemini):
    client = fake_gemini("Sam: Storage is where it gets interesting.")
    writer = ScriptWriter(client)

    line = asyncio.run(writer.continue_script(SCRIPT, PERSONAS, ModelSettings()))

    assert line.speaker_name == "Sam"
    assert line.persona_id == "p-sam"
    assert line.line == "Storage is where it gets interesting."
    assert client.requests[0].temperature == CONTINUATION_TEMPERATURE
    assert 'previous speaker was "Jane Doe"' in client.requests[0].contents


@pytest.mark.parametrize("raw", ["just text no colon", "Sam:   "])
def test_continue_rejects_bad_format(fake_gemini, raw):
    writer = ScriptWriter(fake_gemini(raw))

    with pytest.raises(InvalidFormatError):
        asyncio.run(writer.continue_script(SCRIPT, PERSONAS, ModelSettings()))


def test_continue_on_empty_script_sends_nothing(fake_gemini):
    client = fake_gemini()

    assert asyncio.run(ScriptWriter(client).continue_script([], PERSONAS, ModelSettings())) is None
    assert client.requests == []


def test_empty_response_propagates(fake_gemini):
    writer = ScriptWriter(fake_gemini(EmptyResponseError("next line generation")))

    with pytest.raises(EmptyResponseError):
        asyncio.run(writer.continue_script(SCRIPT, PERSONAS, ModelSettings()))


def test_continue_rejects_repeated_speaker(fake_gemini):
    writer = ScriptWriter(fake_gemini("jane doe: And another thing."))

    with pytest.raises(InvalidFormatError, match="previous speaker"):
        asyncio.run(writer.continue_script(SCRIPT, PERSONAS, ModelSettings()))


def test_single_persona_may_continue_itself(fake_gemini):
    solo = [PERSONAS[0]]
    script = [DialogueLine(id="l1", speaker_name="Jane Doe", persona_id="p-jane", line="Welcome.")]
    writer = ScriptWriter(fake_gemini("Jane Doe: Let's begin."))

    line = asyncio.run(writer.continue_script(script, solo, ModelSettings()))

    assert line.line == "Let's begin."


def test_continue_uses_session_temperature_when_set(fake_gemini):
    client = fake_gemini("Sam: Storage first.")

    asyncio.run(ScriptWriter(client).continue_script(SCRIPT, PERSONAS, ModelSettings(temperature=1.1)))

    assert client.requests[0].temperature == 1.1


def test_unset_temperature_falls_back_to_dialogue_default():
    show = ShowStructure(title="Storage Hour", primary_host_id="p-jane", topics=["Batteries"])

    request = ScriptWriter(None).build_generation_request(PERSONAS, show, ModelSettings())

    assert request.temperature == DIALOGUE_TEMPERATURE
