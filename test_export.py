"""Test the JSON export document and filename"""
import json
from datetime import datetime, timezone

from sfl_studio.export import build_export, export_filename, export_json, render_script_text
from sfl_studio.models import DialogueLine, Persona, SessionState, ShowStructure


def _session():
    alex = Persona(id="p-alex", name="Alex", role="Host", speaking_style="Warm, Reflective Analyst")
    return SessionState(
        personas=[alex],
        show=ShowStructure(title="My Show", primary_host_id="p-alex", intro="Hi all", topics=["News"]),
        script=[DialogueLine(id="l1", speaker_name="Alex", persona_id="p-alex", line="Hello")],
    )


def test_export_document():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    doc = build_export(_session(), now)

    assert doc["script"] == [{"speaker": "Alex", "text": "Hello"}]
    assert doc["personas"][0]["name"] == "Alex"
    assert doc["personas"][0]["style"] == "Warm, Reflective Analyst"
    assert doc["personas"][0]["sflProfile"] is None
    assert doc["show"]["host"] == "Alex"
    assert doc["show"]["generatedAt"] == "2024-05-01T12:00:00+00:00"
    assert doc["show"]["topics"] == ["News"]


def test_export_json_is_valid():
    assert json.loads(export_json(_session()))["show"]["title"] == "My Show"


def test_filename_slug():
    assert export_filename("My Show") == "my_show_script.json"
    assert export_filename("  Ep. 4: AI!  ") == "ep__4__ai__script.json"
    assert export_filename("   ") == "podcast_script.json"


def test_host_missing_after_delete():
    state = _session()
    state = state.model_copy(update={"show": state.show.model_copy(update={"primary_host_id": None})})

    assert build_export(state)["show"]["host"] is None


def test_render_script_text():
    lines = [
        DialogueLine(id="1", speaker_name="A", line="hi"),
        DialogueLine(id="2", speaker_name="B", line="bye"),
    ]
    assert render_script_text(lines) == "A: hi\n\nB: bye"
