import pytest

import main
from engine import VisualizerSession
from translator import TranslatorError

from conftest import ARRAY_PAYLOAD, GRAPH_PAYLOAD, FakeTimerFactory, make_algorithm


class FakeTranslator:
    def __init__(self, fail=False):
        self.fail = fail
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.fail:
            raise TranslatorError("model unavailable")
        return make_algorithm(ARRAY_PAYLOAD, steps=5)

    def generate_audio_script(self, data):
        return f"Let me explain {data.name}."


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def client(translator):
    saved = dict(main.app.config)
    main.app.config["TESTING"] = True
    main.app.config["TRANSLATOR"] = translator
    main.app.config["SESSION_FACTORY"] = lambda: VisualizerSession(timer_factory=FakeTimerFactory())
    try:
        with main.app.test_client() as c:
            yield c
    finally:
        main.drop_all_sessions()
        main.app.config.clear()
        main.app.config.update(saved)


def _load(client, visualization=ARRAY_PAYLOAD, steps=3):
    resp = client.post("/api/load", json=make_algorithm(visualization, steps=steps).to_dict())
    assert resp.status_code == 200
    return resp.get_json()


def test_index_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert 'id="search-query"' in html
    assert "speechSynthesis" in html


def test_search_loads_result(client, translator):
    resp = client.post("/api/search", json={"query": "bubble sort", "customData": "4,2,3"})
    assert resp.status_code == 200
    frame = resp.get_json()
    assert translator.queries == ["bubble sort with array [4, 2, 3]"]
    assert frame["loaded"]
    assert frame["kind"] == "array"
    assert frame["playback"]["totalSteps"] == 5
    assert "Bubble Sort" in frame["panels"]["header"]
    assert "Step 1 of 5" in frame["panels"]["playback"]


def test_search_requires_query(client):
    resp = client.post("/api/search", json={"query": "  "})
    assert resp.status_code == 400


def test_search_reports_translator_failure(client, translator):
    translator.fail = True
    resp = client.post("/api/search", json={"query": "bfs"})
    assert resp.status_code == 502
    assert "check your API key" in resp.get_json()["error"]


def test_load_rejects_non_object(client):
    assert client.post("/api/load", json=[1, 2]).status_code == 400


def test_frame_polling(client):
    _load(client)
    first = client.get("/api/frame").get_json()
    again = client.get(f"/api/frame?since={first['utterance']['seq']}").get_json()
    assert again["utterance"] is None
    assert again["frame"] == first["frame"]


def test_playback_routes(client):
    _load(client, steps=3)
    assert client.post("/api/playback/next").get_json()["currentStep"] == 1
    assert client.post("/api/playback/play").get_json()["status"] == "playing"
    assert client.post("/api/playback/pause").get_json()["status"] == "paused"
    assert client.post("/api/playback/previous").get_json()["currentStep"] == 0
    assert client.post("/api/playback/goto", json={"step": 2}).get_json()["currentStep"] == 2
    assert client.post("/api/playback/reset").get_json() == {
        "status": "stopped", "currentStep": 0, "speedMs": 1000, "totalSteps": 3,
    }
    frame = client.get("/api/frame?since=0").get_json()
    assert frame["utterance"]["text"] == "step 1"


def test_playback_errors(client):
    assert client.post("/api/playback/play").status_code == 404
    assert client.post("/api/playback/goto", json={"step": 0}).status_code == 404
    assert client.post("/api/playback/rewind").status_code == 400
    _load(client)
    assert client.post("/api/playback/goto", json={"step": 9}).status_code == 400
    assert client.post("/api/playback/speed", json={"speed_ms": 0}).status_code == 400
    assert client.post("/api/playback/speed", json={"speed_ms": "fast"}).status_code == 400


def test_speed_route(client):
    _load(client)
    resp = client.post("/api/playback/speed", json={"speed_ms": 400})
    assert resp.get_json()["speedMs"] == 400


def test_graph_routes(client):
    _load(client, GRAPH_PAYLOAD)
    assert client.post("/api/graph/drag", json={"id": "A", "x": 10, "y": 20}).status_code == 200
    assert client.post("/api/graph/release", json={"id": "A"}).status_code == 200
    assert client.post("/api/graph/pulse", json={"id": "B"}).status_code == 200
    assert client.post("/api/graph/pulse", json={"id": "Q"}).status_code == 404
    assert client.post("/api/graph/drag", json={"id": "A"}).status_code == 400
    assert client.post("/api/graph/release", json={}).status_code == 400
    zoom = client.post("/api/graph/zoom", json={"k": 0.1, "x": 3, "y": 4}).get_json()
    assert zoom == {"x": 3.0, "y": 4.0, "k": 0.5}


def test_zoom_needs_loaded_data(client):
    assert client.post("/api/graph/zoom", json={"k": 1}).status_code == 404


def test_speech_feedback(client):
    _load(client)
    client.post("/api/playback/next")
    seq = client.get("/api/frame?since=0").get_json()["utterance"]["seq"]
    assert client.post("/api/speech/ended", json={"seq": seq}).status_code == 200
    assert client.post("/api/speech/ended", json={}).status_code == 400
    client.post("/api/playback/play")
    state = client.post("/api/speech/unsupported").get_json()
    assert state["status"] == "paused"


def test_audio_routes(client):
    assert client.post("/api/audio/script").status_code == 404
    _load(client)
    assert client.post("/api/audio/play").status_code == 400
    resp = client.post("/api/audio/script").get_json()
    assert resp["script"] == "Let me explain Bubble Sort."
    assert "btn-audio-play" in resp["panel"]
    assert client.post("/api/audio/play").get_json() == {"speaking": True}
    assert client.post("/api/audio/stop").get_json() == {"speaking": False}


def test_export(client):
    assert client.get("/api/export").status_code == 404
    _load(client, GRAPH_PAYLOAD)
    out = client.get("/api/export").get_json()
    assert out["algorithm"]["name"] == "Bubble Sort"
    assert set(out["positions"]) == {"A", "B", "C", "D"}


def test_each_browser_gets_its_own_session(client):
    _load(client)
    with main.app.test_client() as other:
        assert other.get("/api/frame").get_json()["loaded"] is False
    assert client.get("/api/frame").get_json()["loaded"] is True


def test_oldest_sessions_are_evicted(client, monkeypatch):
    monkeypatch.setattr(main, "MAX_SESSIONS", 2)
    _load(client)
    first = next(iter(main._sessions.values()))
    for _ in range(2):
        with main.app.test_client() as other:
            other.get("/api/frame")
    assert len(main._sessions) == 2
    assert first.controller.disposed
