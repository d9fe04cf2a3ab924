import threading

import pytest

from engine.narration import BrowserNarrator, NarrationError
from engine.session import VisualizerSession

from conftest import (
    ARRAY_PAYLOAD,
    GRAPH_PAYLOAD,
    FakeTimerFactory,
    RecordingNarrator,
    make_algorithm,
)


@pytest.fixture
def session(timers):
    vis = VisualizerSession(timer_factory=timers)
    yield vis
    vis.dispose()


def test_unloaded_session_renders_nothing(session):
    assert not session.loaded
    assert session.render() == ""
    frame = session.frame()
    assert frame["loaded"] is False
    assert frame["step"] is None
    assert frame["kind"] is None


def test_load_renders_step_zero(session):
    session.load(make_algorithm(ARRAY_PAYLOAD, steps=5))
    frame = session.frame()
    assert frame["loaded"]
    assert frame["kind"] == "array"
    assert frame["frame"] == 1
    assert frame["svg"].count('class="bar"') == 5
    assert frame["playback"]["currentStep"] == 0
    assert frame["step"]["description"] == "step 1"


def test_each_step_change_renders_a_new_frame(session, timers):
    session.load(make_algorithm(ARRAY_PAYLOAD, steps=5))
    session.playback("play")
    timers.tick(2)
    frame = session.frame()
    assert frame["frame"] == 3
    assert frame["playback"]["status"] == "playing"
    assert 'data-state="current"' in frame["svg"]


def test_frame_carries_only_new_utterances(session):
    session.load(make_algorithm(ARRAY_PAYLOAD))
    session.playback("next")
    utterance = session.frame(since=0)["utterance"]
    assert utterance["text"] == "step 2"
    assert session.frame(since=utterance["seq"])["utterance"] is None


def test_unknown_playback_action(session):
    session.load(make_algorithm(ARRAY_PAYLOAD))
    with pytest.raises(ValueError):
        session.playback("rewind")


def test_goto_and_speed(session):
    session.load(make_algorithm(ARRAY_PAYLOAD, steps=4))
    assert session.goto(3)["currentStep"] == 3
    assert session.set_speed(600)["speedMs"] == 600


def test_speech_unsupported_pauses_playback(session):
    session.load(make_algorithm(ARRAY_PAYLOAD))
    session.playback("play")
    session.speech_unsupported()
    assert session.controller.state().status.value == "paused"
    session.playback("next")
    assert session.controller.current_step == 1


def test_speech_ended_clears_active_utterance(session):
    session.load(make_algorithm(ARRAY_PAYLOAD))
    session.playback("next")
    seq = session.narrator.state().seq
    session.speech_ended(seq)
    assert not session.narrator.speaking


def test_play_script_pauses_step_playback():
    narrator = RecordingNarrator()
    vis = VisualizerSession(narrator=narrator, timer_factory=FakeTimerFactory())
    vis.load(make_algorithm(ARRAY_PAYLOAD))
    assert not vis.play_script()
    vis.playback("play")
    assert vis.play_script("The whole story.")
    assert vis.controller.state().status.value == "paused"
    assert narrator.calls[-1] == ("speak", "The whole story.")
    assert vis.audio_script == "The whole story."
    vis.stop_audio()
    assert narrator.calls[-1] == ("stop", None)


def test_play_script_fails_quietly_without_speech():
    vis = VisualizerSession(narrator=RecordingNarrator(fail=True),
                            timer_factory=FakeTimerFactory())
    vis.load(make_algorithm(ARRAY_PAYLOAD))
    assert not vis.play_script("text")


def test_graph_interaction_rerenders(session):
    session.load(make_algorithm(GRAPH_PAYLOAD))
    before = session.frame_seq
    assert session.drag("A", 100.0, 120.0)
    assert session.release("A")
    assert session.pulse("B")
    assert not session.pulse("nope")
    assert session.frame_seq == before + 3
    assert session.zoom(3.0, 5, 6) == {"x": 5.0, "y": 6.0, "k": 1.0}


def test_export_snapshot(session):
    session.load(make_algorithm(GRAPH_PAYLOAD))
    session.zoom(0.75)
    out = session.export()
    assert out["algorithm"]["name"] == "Bubble Sort"
    assert set(out["positions"]) == {"A", "B", "C", "D"}
    assert all(len(p) == 2 for p in out["positions"].values())
    assert out["zoom"] == {"x": 0.0, "y": 0.0, "k": 0.75}
    assert out["playback"]["totalSteps"] == 3


def test_reload_resets_renderer_and_script(session):
    session.load(make_algorithm(GRAPH_PAYLOAD))
    session.audio_script = "old"
    sim = session.renderer.simulation
    session.load(make_algorithm(ARRAY_PAYLOAD))
    assert sim.stopped
    assert session.audio_script is None
    assert session.frame()["kind"] == "array"


def test_dispose_stops_everything(timers):
    vis = VisualizerSession(timer_factory=timers)
    vis.load(make_algorithm(ARRAY_PAYLOAD))
    vis.playback("play")
    vis.dispose()
    assert timers.live == 0
    assert vis.controller.disposed
    assert isinstance(vis.narrator, BrowserNarrator)
    with pytest.raises(NarrationError):
        vis.narrator.speak("after")


def test_set_audio_script_waits_for_session_lock(session):
    session.load(make_algorithm(ARRAY_PAYLOAD))
    worker = threading.Thread(target=session.set_audio_script, args=("Narrated.",))
    with session._lock:
        worker.start()
        worker.join(0.1)
        assert session.audio_script is None
    worker.join(5)
    assert session.audio_script == "Narrated."
    assert session.play_script()
