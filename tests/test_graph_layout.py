from layout import GraphView, Transform, build_scene, layout_graph
from layout.force import ForceSimulation
from layout.scene import PALETTE
from payload import GraphData, parse_structure

from conftest import GRAPH_PAYLOAD


def test_rendered_edges_only_touch_declared_nodes():
    graph = parse_structure(GRAPH_PAYLOAD)
    scene = layout_graph(graph, 1)
    ids = {c.data_id for c in scene.find("node")}
    assert ids == {"A", "B", "C", "D"}
    links = scene.find("link")
    assert len(links) == len(graph.edges) == 8
    for link in links:
        source, target = link.data_id.split("->")
        assert source in ids and target in ids
    assert not any("Z" in link.data_id for link in links)


def test_step_zero_is_neutral():
    scene = layout_graph(parse_structure(GRAPH_PAYLOAD), 0)
    nodes = scene.find("node")
    assert {n.state for n in nodes} == {"start"}
    assert {n.fill for n in nodes} == {PALETTE.graph_start}


def test_visited_current_default_colours():
    scene = layout_graph(parse_structure(GRAPH_PAYLOAD), 2)
    by_id = {n.data_id: n for n in scene.find("node")}
    assert by_id["D"].state == "visited"
    assert by_id["D"].fill == PALETTE.graph_visited
    assert by_id["B"].state == "current"
    assert by_id["B"].stroke_width == 6
    assert by_id["A"].state == "default"
    assert by_id["A"].stroke_width == 3


def test_caption_and_flags():
    scene = layout_graph(parse_structure(GRAPH_PAYLOAD), 2)
    caption = scene.find("step-info")[0]
    assert caption.text == "Step 3 | Nodes: 4 | Edges: 8"
    assert scene.flags["nodes"] == 4
    assert scene.flags["edges"] == 8
    assert scene.zoomable


def test_tooltip_lists_neighbours():
    scene = layout_graph(parse_structure(GRAPH_PAYLOAD), 1)
    c = next(n for n in scene.find("node") if n.data_id == "C")
    assert c.title == "C\nVisited: No\nNeighbors: A, D"


def test_zero_nodes_renders_nothing():
    scene = build_scene(GraphData(), 3)
    assert scene.is_empty


def test_zoom_transforms_container_not_nodes():
    graph = parse_structure(GRAPH_PAYLOAD)
    sim = ForceSimulation.for_graph(graph)
    plain = layout_graph(graph, 1, view=GraphView(simulation=sim))
    zoomed = layout_graph(graph, 1, view=GraphView(simulation=sim, zoom=Transform(10, 5, 0.5)))
    assert zoomed.find("graph-container-group")[0].transform == Transform(10, 5, 0.5)
    assert [(n.cx, n.cy) for n in plain.find("node")] == [(n.cx, n.cy) for n in zoomed.find("node")]


def test_pulse_marks_only_that_node():
    scene = layout_graph(parse_structure(GRAPH_PAYLOAD), 1, view=GraphView(pulse="C"))
    pulsed = [n.data_id for n in scene.find("node") if n.pulse]
    assert pulsed == ["C"]
