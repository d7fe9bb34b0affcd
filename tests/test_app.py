import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from backend.app import WORD_NOT_FOUND, create_app
from TracksModule.tracks import TrackRow
from tools.database import build_engine, make_session_factory

from conftest import HOUSE_REPLY


@pytest.fixture
def app_engine():
    return build_engine("sqlite://")


@pytest.fixture
def client(settings, app_engine):
    app = create_app(settings, engine=app_engine)
    with TestClient(app) as client:
        yield client


def test_root_liveness(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "OK"


def test_create_card_then_serve_from_storage(client, fake_llm):
    calls = fake_llm(HOUSE_REPLY)

    created = client.post("/api/cards/create", json={"new_word": "houses"})
    assert created.status_code == 200
    card = created.json()
    assert card["initial_form"] == "House"
    assert card["pronunciation"] == "[haʊs]"
    assert card["forms"] == ["House", "Houses", "Housed", "Housing"]
    assert card["common_phrases"][0]["phrase"] == "On the house"

    fetched = client.post("/api/cards/create", json={"new_word": "housing"})
    assert fetched.status_code == 200
    assert fetched.json() == card
    assert len(calls) == 1


def test_unknown_word_is_404(client, fake_llm):
    fake_llm("null")
    response = client.post("/api/cards/create", json={"new_word": "blorf"})
    assert response.status_code == 404
    assert response.text == WORD_NOT_FOUND


def test_unparseable_reply_is_404_not_500(client, fake_llm):
    fake_llm("Here is your card: {initial_form: House")
    response = client.post("/api/cards/create", json={"new_word": "house"})
    assert response.status_code == 404
    assert response.text == WORD_NOT_FOUND
    assert client.get("/api/cards/getAll").json() == []


def test_model_outage_is_502(client, fake_llm):
    fake_llm(TimeoutError("request timed out"))
    response = client.post("/api/cards/create", json={"new_word": "house"})
    assert response.status_code == 502


@pytest.mark.parametrize("body", [{}, {"new_word": ""}, {"new_word": "   "}, {"new_word": 5}])
def test_invalid_body_is_rejected_before_generation(client, fake_llm, body):
    calls = fake_llm(HOUSE_REPLY)
    response = client.post("/api/cards/create", json=body)
    assert response.status_code == 422
    assert calls == []


def test_get_all_returns_only_initial_forms(client, fake_llm):
    fake_llm(HOUSE_REPLY)
    client.post("/api/cards/create", json={"new_word": "house"})
    response = client.get("/api/cards/getAll")
    assert response.status_code == 200
    assert response.json() == [{"initial_form": "House"}]


def test_storage_failure_is_503(client, app_engine, fake_llm):
    calls = fake_llm(HOUSE_REPLY)
    with app_engine.begin() as conn:
        conn.execute(text("DROP TABLE cards"))
    assert client.post("/api/cards/create", json={"new_word": "house"}).status_code == 503
    assert client.get("/api/cards/getAll").status_code == 503
    assert calls == []


def test_tracks_pagination(client, app_engine):
    factory = make_session_factory(app_engine)
    with factory() as session, session.begin():
        session.add_all(
            [TrackRow(title=f"Track {i}", artist="Band", duration=180 + i) for i in range(25)]
        )

    first = client.get("/api/tracks/getAll", params={"page": 0, "page_count": 10}).json()
    assert len(first["data"]) == 10
    assert first["count"] == 25
    assert first["data"][0]["title"] == "Track 0"

    last = client.get("/api/tracks/getAll", params={"page": 2, "page_count": 10}).json()
    assert [t["title"] for t in last["data"]] == [f"Track {i}" for i in range(20, 25)]
    assert last["count"] == 25

    beyond = client.get("/api/tracks/getAll", params={"page": 9, "page_count": 10}).json()
    assert beyond == {"data": [], "count": 25}


def test_tracks_pagination_rejects_bad_params(client):
    assert client.get("/api/tracks/getAll", params={"page": -1}).status_code == 422
    assert client.get("/api/tracks/getAll", params={"page_count": 0}).status_code == 422


def test_llm_logs_endpoint(client, fake_llm):
    assert client.get("/api/llm-logs").json() == []
    fake_llm(HOUSE_REPLY)
    client.post("/api/cards/create", json={"new_word": "house"})
    logs = client.get("/api/llm-logs").json()
    assert len(logs) == 1
    assert logs[0]["metadata"]["word"] == "house"
    assert logs[0]["metadata"]["status"] == "found"
