"""Shared pytest fixtures: a canned SFL profile and a scripted Gemini fake."""
import pytest


PROFILE_PAYLOAD = {
    "personaStyle": "Action-Oriented Practitioner",
    "tone": "Energetic",
    "explanationTendency": "Process-focused",
    "dialoguePattern": "How X works/happens/is done",
    "confidenceLevel": "Highly Certain",
    "hedgingFrequency": "Low",
    "statementStrength": "Definitive",
    "informationPackaging": "Discrete Segments",
    "topicDevelopment": "Independent Points",
    "referenceStyle": "Explicit Reference",
    "processDistribution": {"material": 45, "mental": 20, "relational": 25, "verbal": 10},
    "technicalityLevel": 6,
    "topics": ["Solar power", "Grid storage", "Solar power"],
    "analysisExplanation": "Mostly material processes with definitive modality.",
}


class FakeGemini:
    """Stands in for GeminiClient: returns queued responses and records requests."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def profile_payload():
    return {**PROFILE_PAYLOAD, "processDistribution": dict(PROFILE_PAYLOAD["processDistribution"])}


@pytest.fixture
def fake_gemini():
    """Factory: fake_gemini("text", EmptyResponseError(...), ...)."""
    def _make(*responses):
        return FakeGemini(responses)
    return _make
