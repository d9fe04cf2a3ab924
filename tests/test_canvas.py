import copy

from config import Config
from layout import Transform, build_scene
from payload import parse_structure
from ui.canvas import SceneRenderer, render_scene

from conftest import ARRAY_PAYLOAD, GRAPH_PAYLOAD, LINKED_PAYLOAD


def test_render_is_idempotent():
    renderer = SceneRenderer()
    first = renderer.render(ARRAY_PAYLOAD, 2)
    second = renderer.render(ARRAY_PAYLOAD, 2)
    assert first == second
    assert first.count('class="bar"') == 5
    assert renderer.renders == 2


def test_render_replaces_rather_than_accumulates():
    renderer = SceneRenderer()
    renderer.render(LINKED_PAYLOAD, 0)
    svg = renderer.render(ARRAY_PAYLOAD, 0)
    assert "linkedlist-node" not in svg
    assert svg.count("<svg") == 1


def test_empty_scene_shows_message():
    svg = render_scene(build_scene(parse_structure(None), 0))
    assert "empty-message" in svg
    assert "No visualization available" in svg


def test_unrenderable_payload_renders_empty():
    svg = SceneRenderer().render({"type": "array", "data": ["x", "y"]}, 0)
    assert "empty-message" in svg


def test_graph_svg_is_zoomable_with_markers_only_when_needed():
    graph_svg = SceneRenderer().render(GRAPH_PAYLOAD, 1)
    assert 'data-zoomable="true"' in graph_svg
    list_svg = SceneRenderer().render(LINKED_PAYLOAD, 0)
    assert 'data-zoomable="false"' in list_svg
    assert '<marker id="arrowhead"' in list_svg


def test_text_is_escaped():
    payload = copy.deepcopy(LINKED_PAYLOAD)
    payload["data"]["nodes"][0]["value"] = "<b>"
    svg = SceneRenderer().render(payload, 0)
    assert "&lt;b&gt;" in svg
    assert "<b>" not in svg


def test_simulation_kept_for_same_topology():
    renderer = SceneRenderer()
    renderer.render(GRAPH_PAYLOAD, 0)
    sim = renderer.simulation
    renderer.render(GRAPH_PAYLOAD, 2)
    assert renderer.simulation is sim


def test_new_topology_stops_old_simulation():
    renderer = SceneRenderer()
    renderer.render(GRAPH_PAYLOAD, 0)
    old = renderer.simulation
    changed = copy.deepcopy(GRAPH_PAYLOAD)
    changed["data"]["E"] = ["A"]
    renderer.render(changed, 0)
    assert old.stopped
    assert renderer.simulation is not old


def test_non_graph_render_drops_simulation():
    renderer = SceneRenderer()
    renderer.render(GRAPH_PAYLOAD, 0)
    old = renderer.simulation
    renderer.render(ARRAY_PAYLOAD, 0)
    assert renderer.simulation is None
    assert old.stopped


def test_set_zoom_clamps():
    renderer = SceneRenderer()
    assert renderer.set_zoom(5, 1, 2) == Transform(1.0, 2.0, Config.zoom_max)
    assert renderer.set_zoom(0.01).k == Config.zoom_min


def test_zoom_reaches_container_transform():
    renderer = SceneRenderer()
    renderer.set_zoom(0.5, 10, 20)
    svg = renderer.render(GRAPH_PAYLOAD, 0)
    assert 'transform="translate(10,20) scale(0.5)"' in svg


def test_drag_pins_node_in_next_render():
    renderer = SceneRenderer()
    renderer.render(GRAPH_PAYLOAD, 0)
    assert renderer.drag("A", 42.0, 24.0)
    scene = renderer.scene_for(parse_structure(GRAPH_PAYLOAD), 0)
    a = next(n for n in scene.find("node") if n.data_id == "A")
    assert (a.cx, a.cy) == (42.0, 24.0)
    assert renderer.release("A")


def test_pulse_is_one_shot():
    renderer = SceneRenderer()
    renderer.render(GRAPH_PAYLOAD, 0)
    assert not renderer.pulse("nope")
    assert renderer.pulse("B")
    assert "animateTransform" in renderer.render(GRAPH_PAYLOAD, 0)
    assert "animateTransform" not in renderer.render(GRAPH_PAYLOAD, 0)


def test_interaction_without_graph_is_refused():
    renderer = SceneRenderer()
    renderer.render(ARRAY_PAYLOAD, 0)
    assert not renderer.drag("A", 1, 1)
    assert not renderer.release("A")
    assert not renderer.pulse("A")


def test_reset_forgets_state():
    renderer = SceneRenderer()
    renderer.set_zoom(0.7)
    renderer.render(GRAPH_PAYLOAD, 0)
    sim = renderer.simulation
    renderer.reset()
    assert sim.stopped
    assert renderer.simulation is None
    assert renderer.zoom == Transform()
    assert renderer.last_svg == ""
