import json
from types import SimpleNamespace

import pytest
from langchain_core.runnables import Runnable

import CardsModule.card_generator as cg
from tools.config import Settings
from tools.database import build_engine, ensure_schema, make_session_factory

HOUSE_REPLY = {
    "initial_form": "House",
    "forms": ["House", "Houses", "Housed", "Housing"],
    "synonyms": ["Home", "Dwelling", "Residence"],
    "pronunciation": "haʊs",
    "usage_examples": [
        {"example": "They bought a house.", "part_of_speech": "noun"},
        {"example": "The museum houses old maps.", "part_of_speech": "verb"},
        {"example": "A house party.", "part_of_speech": "noun"},
    ],
    "common_phrases": [
        {"phrase": "On the house", "meaning": "Free of charge"},
        {"phrase": "Bring the house down", "meaning": "Make an audience applaud"},
        {"phrase": "Safe as houses", "meaning": "Very safe"},
    ],
}


def make_fake_llm(reply, calls=None):
    """Build a stand-in for ``ChatOpenAI`` answering every prompt with ``reply``.

    ``reply`` may be a string, a dict (sent as JSON) or an exception to raise.
    """

    class FakeLLM(Runnable):
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs

        def invoke(self, prompt, config=None, **kwargs):
            if calls is not None:
                calls.append(prompt.to_string() if hasattr(prompt, "to_string") else str(prompt))
            if isinstance(reply, Exception):
                raise reply
            content = json.dumps(reply) if isinstance(reply, dict) else reply
            return SimpleNamespace(content=content, response_metadata={"model_name": "fake"})

    return FakeLLM


@pytest.fixture
def fake_llm(monkeypatch):
    """Patch ``ChatOpenAI`` in the generator; returns the list of prompts sent."""
    calls = []

    def _install(reply):
        monkeypatch.setattr(cg, "ChatOpenAI", make_fake_llm(reply, calls))
        return calls

    return _install


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_key="sk-test",
        database_url="sqlite://",
        llm_log_path=str(tmp_path / "Log" / "llm_log.json"),
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)
