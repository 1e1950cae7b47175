"""Test the HTTP API end to end with the Gemini client and search transport faked"""
import json

import pytest
from fastapi.testclient import TestClient

from servers.services import gemini_client, search_client
from servers.studio_server import app
from sfl_studio.exceptions import EmptyResponseError


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def scripted(monkeypatch, fake_gemini):
    """Queue Gemini responses for the shared client."""
    def _script(*responses):
        fake = fake_gemini(*responses)
        monkeypatch.setattr(gemini_client, "generate", fake.generate)
        return fake
    return _script


@pytest.fixture
def search_calls(monkeypatch):
    calls = []

    async def fake_fetch(params):
        calls.append(params)
        return 200, {"items": [{"title": "Grid storage explained", "link": "https://example.com/grid"}]}

    monkeypatch.setattr(search_client, "_fetch", fake_fetch)
    return calls


def _new_session(client):
    data = client.post("/api/sessions").json()
    assert data["success"]
    return data["session"]["id"]


def _profiled_host(client, scripted, session_id, profile_payload, name="Alex"):
    persona_id = client.post(f"/api/sessions/{session_id}/personas").json()["persona_id"]
    client.put(f"/api/sessions/{session_id}/personas/{persona_id}", json={"name": name, "role": "Host"})
    client.post(
        f"/api/sessions/{session_id}/personas/{persona_id}/sources",
        files=[("files", ("talk.txt", b"We build things.", "text/plain"))],
        data={"kind": "text"},
    )
    scripted(json.dumps(profile_payload))
    result = client.post(f"/api/sessions/{session_id}/personas/{persona_id}/analyze").json()
    assert result["success"], result
    return persona_id


def test_health_and_models(client):
    assert client.get("/api/health").json()["status"] == "ok"
    models = client.get("/api/models").json()["models"]
    assert {m["id"] for m in models} == {"gemini-2.5-flash", "gemini-3-pro-preview"}


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/session-missing").status_code == 404
    assert client.post("/api/sessions/session-missing/script/generate").status_code == 404


def test_upload_batch_reports_failures_and_omits_payloads(client):
    session_id = _new_session(client)
    persona_id = client.post(f"/api/sessions/{session_id}/personas").json()["persona_id"]

    data = client.post(
        f"/api/sessions/{session_id}/personas/{persona_id}/sources",
        files=[
            ("files", ("a.mp3", b"\x01\x02", "audio/mpeg")),
            ("files", ("b.mp3", b"\x03\x04", "audio/mpeg")),
        ],
        data={"kind": "audio"},
    ).json()

    assert data["captured"] == 2
    sources = data["session"]["personas"][0]["sources"]
    assert {s["name"] for s in sources} == {"a.mp3", "b.mp3"}
    assert all("data" not in s for s in sources)


def test_analysis_failure_keeps_profile_and_sets_banner(client, scripted, profile_payload):
    session_id = _new_session(client)
    persona_id = _profiled_host(client, scripted, session_id, profile_payload)

    scripted("```json\n{broken\n```")
    result = client.post(f"/api/sessions/{session_id}/personas/{persona_id}/analyze").json()

    assert not result["success"]
    assert result["error_code"] == "MALFORMED_RESPONSE"
    session = client.get(f"/api/sessions/{session_id}").json()["session"]
    persona = session["personas"][0]
    assert persona["sflProfile"]["personaStyle"] == "Action-Oriented Practitioner"
    assert persona["isAnalyzing"] is False
    assert session["error"] == result["error"]

    cleared = client.delete(f"/api/sessions/{session_id}/error").json()["session"]
    assert cleared["error"] is None


def test_full_flow(client, scripted, search_calls, profile_payload):
    session_id = _new_session(client)
    client.put(
        f"/api/sessions/{session_id}/settings",
        json={"google_api_key": "key", "google_cse_id": "cx", "temperature": 0.8},
    )
    host_id = _profiled_host(client, scripted, session_id, profile_payload)

    persona = client.get(f"/api/sessions/{session_id}").json()["session"]["personas"][0]
    assert persona["speakingStyle"] == "Energetic, Action-Oriented Practitioner"

    moved = client.post(f"/api/sessions/{session_id}/step/next").json()
    assert moved["session"]["step"] == 2
    assert moved["session"]["show"]["topics"] == ["Solar power", "Grid storage"]

    blocked = client.post(f"/api/sessions/{session_id}/step/next").json()
    assert blocked["error_code"] == "VALIDATION_ERROR"

    client.put(f"/api/sessions/{session_id}/show", json={"title": "My Show", "primary_host_id": host_id})
    assert client.post(f"/api/sessions/{session_id}/step/next").json()["session"]["step"] == 3

    fake = scripted("Alex: Welcome!\nstage direction\nalex : Let's talk grids.")
    generated = client.post(f"/api/sessions/{session_id}/script/generate").json()
    assert generated["success"], generated
    session = generated["session"]
    assert session["step"] == 4
    assert [l["line"] for l in session["script"]] == ["Welcome!", "Let's talk grids."]
    assert all(l["personaId"] == host_id for l in session["script"])
    assert fake.requests[0].temperature == 0.8

    # automatic search ran once with the session credentials
    assert search_calls == [{"key": "key", "cx": "cx", "q": "Solar power Grid storage"}]
    assert session["searchResults"][0]["title"] == "Grid storage explained"

    first_line = session["script"][0]["id"]
    scripted("Welcome, everyone!")
    refined = client.post(
        f"/api/sessions/{session_id}/script/lines/{first_line}/refine",
        json={"instruction": "address the audience"},
    ).json()
    assert [l["line"] for l in refined["session"]["script"]] == ["Welcome, everyone!", "Let's talk grids."]

    scripted("just text no colon")
    bad = client.post(f"/api/sessions/{session_id}/script/next-line").json()
    assert bad["error_code"] == "INVALID_FORMAT"
    assert len(client.get(f"/api/sessions/{session_id}").json()["session"]["script"]) == 2

    # Alex is the only persona, so consecutive lines from Alex are allowed
    scripted("Alex: One more thing.")
    added = client.post(f"/api/sessions/{session_id}/script/next-line").json()
    assert added["line"]["line"] == "One more thing."

    final = client.get(f"/api/sessions/{session_id}/script/final").json()
    assert final["text"].startswith("Alex: Welcome, everyone!")

    export = client.get(f"/api/sessions/{session_id}/script/export")
    assert export.headers["content-disposition"] == 'attachment; filename="my_show_script.json"'
    doc = export.json()
    assert doc["show"]["host"] == "Alex"
    assert doc["script"][-1] == {"speaker": "Alex", "text": "One more thing."}

    # regenerating does not trigger another automatic search
    scripted("Alex: Take two.")
    client.post(f"/api/sessions/{session_id}/script/generate")
    assert len(search_calls) == 1


def test_generate_requires_host(client, scripted, profile_payload):
    session_id = _new_session(client)
    _profiled_host(client, scripted, session_id, profile_payload)
    fake = scripted()

    result = client.post(f"/api/sessions/{session_id}/script/generate").json()

    assert result["error"] == "Please configure at least one persona and select a primary host."
    assert fake.requests == []


def test_empty_generation_is_reported(client, scripted, profile_payload):
    session_id = _new_session(client)
    host_id = _profiled_host(client, scripted, session_id, profile_payload)
    client.put(f"/api/sessions/{session_id}/show", json={"primary_host_id": host_id})

    scripted(EmptyResponseError("script generation"))
    result = client.post(f"/api/sessions/{session_id}/script/generate").json()

    assert result["error_code"] == "EMPTY_RESPONSE"
    session = client.get(f"/api/sessions/{session_id}").json()["session"]
    assert session["script"] == []
    assert session["isGenerating"] is False


def test_deleting_host_clears_show_reference(client, scripted, profile_payload):
    session_id = _new_session(client)
    host_id = _profiled_host(client, scripted, session_id, profile_payload)
    client.put(f"/api/sessions/{session_id}/show", json={"primary_host_id": host_id})

    session = client.delete(f"/api/sessions/{session_id}/personas/{host_id}").json()["session"]

    assert session["personas"] == []
    assert session["show"]["primaryHostId"] is None


def test_show_context_analysis_overwrites_fields(client, scripted):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/show/topics", json={"topic": "Old topic"})
    client.post(f"/api/sessions/{session_id}/show/sources/link", json={"url": "https://example.com/report"})

    scripted(json.dumps({"title": "Grid Futures", "intro": "Two experts debate.", "topics": ["Storage", "Pricing"]}))
    show = client.post(f"/api/sessions/{session_id}/show/analyze").json()["session"]["show"]

    assert show["title"] == "Grid Futures"
    assert show["topics"] == ["Storage", "Pricing"]
    assert show["contextSources"][0]["kind"] == "link"


def test_reset_keeps_settings_and_delete_discards(client):
    session_id = _new_session(client)
    client.put(f"/api/sessions/{session_id}/settings", json={"temperature": 1.1})
    client.post(f"/api/sessions/{session_id}/personas")

    reset = client.post(f"/api/sessions/{session_id}/reset").json()["session"]
    assert reset["personas"] == []
    assert reset["settings"]["temperature"] == 1.1

    assert client.delete(f"/api/sessions/{session_id}").json() == {"success": True}
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


@pytest.mark.parametrize(
    "failure, message",
    [
        ((502, None), "Search request failed with status 502"),
        (RuntimeError("connection pool exhausted"), "Search failed: connection pool exhausted"),
    ],
)
def test_failing_search_does_not_fail_generation(client, scripted, profile_payload, monkeypatch, failure, message):
    async def failing_fetch(params):
        if isinstance(failure, Exception):
            raise failure
        return failure

    monkeypatch.setattr(search_client, "_fetch", failing_fetch)
    session_id = _new_session(client)
    client.put(f"/api/sessions/{session_id}/settings", json={"google_api_key": "key", "google_cse_id": "cx"})
    host_id = _profiled_host(client, scripted, session_id, profile_payload)
    client.put(f"/api/sessions/{session_id}/show", json={"primary_host_id": host_id, "title": "Grid Talk"})
    client.post(f"/api/sessions/{session_id}/show/topics", json={"topic": "Grid storage"})

    scripted("Alex: Welcome!")
    response = client.post(f"/api/sessions/{session_id}/script/generate")

    assert response.status_code == 200
    generated = response.json()
    assert generated["success"], generated
    session = generated["session"]
    assert [l["line"] for l in session["script"]] == ["Welcome!"]
    assert session["searchError"] == message
    assert session["isSearching"] is False
    assert session["error"] is None
