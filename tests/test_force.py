import math

import pytest

from config import Config
from layout import Frame
from layout.force import ForceSimulation
from payload import parse_structure

from conftest import GRAPH_PAYLOAD


def _sim():
    return ForceSimulation.for_graph(parse_structure(GRAPH_PAYLOAD), Frame())


def test_seed_is_a_circle_around_the_inner_centre():
    frame = Frame()
    sim = ForceSimulation.for_graph(parse_structure(GRAPH_PAYLOAD), frame)
    cx, cy = frame.inner_width / 2, frame.inner_height / 2
    for x, y in sim.positions().values():
        assert math.hypot(x - cx, y - cy) == pytest.approx(Config.force_seed_radius)
    first = sim.positions()["A"]
    assert first == pytest.approx((cx + Config.force_seed_radius, cy))


def test_run_settles_within_max_ticks():
    sim = _sim()
    taken = sim.run()
    assert 0 < taken <= Config.force_max_ticks
    assert sim.settled


def test_run_is_deterministic():
    a, b = _sim(), _sim()
    a.run()
    b.run()
    assert a.positions() == b.positions()


def test_nodes_end_up_apart():
    sim = _sim()
    sim.run()
    pts = list(sim.positions().values())
    for i, p in enumerate(pts):
        for q in pts[i + 1:]:
            assert math.dist(p, q) > 20


def test_centering_keeps_mean_on_centre():
    sim = _sim()
    sim.run()
    xs = [x for x, _ in sim.positions().values()]
    ys = [y for _, y in sim.positions().values()]
    cx, cy = sim.center
    assert sum(xs) / len(xs) == pytest.approx(cx, abs=5)
    assert sum(ys) / len(ys) == pytest.approx(cy, abs=5)


def test_drag_pins_node_and_reheats():
    sim = _sim()
    sim.run()
    assert sim.drag("A", 10.0, 15.0, ticks=5)
    assert sim.nodes["A"].pinned
    assert sim.positions()["A"] == (10.0, 15.0)
    assert sim.alpha >= Config.drag_alpha_target * 0.5
    assert sim.alpha_target == Config.drag_alpha_target


def test_release_unpins_and_cools():
    sim = _sim()
    sim.drag("A", 10.0, 15.0, ticks=1)
    assert sim.release("A")
    assert not sim.nodes["A"].pinned
    assert sim.alpha_target == 0.0


def test_unknown_node_is_ignored():
    sim = _sim()
    assert not sim.pin("nope", 0, 0)
    assert not sim.drag("nope", 0, 0)
    assert not sim.release("nope")


def test_stop_clears_listeners_and_freezes():
    sim = _sim()
    seen = []
    sim.on_tick(lambda s: seen.append(s.ticks))
    sim.tick()
    assert seen == [1]
    sim.stop()
    before = sim.positions()
    sim.tick(10)
    assert sim.run() == 0
    assert sim.positions() == before
    assert seen == [1]


def test_renders_while_pinned_stay_short():
    sim = _sim()
    sim.run()
    sim.drag("A", 100.0, 100.0)
    taken = [sim.run() for _ in range(3)]
    assert all(t <= Config.drag_ticks for t in taken)
    assert sim.positions()["A"] == (100.0, 100.0)


def test_drag_on_fresh_simulation_is_bounded():
    sim = _sim()
    sim.drag("A", 100.0, 100.0, ticks=1)
    assert sim.run() <= Config.drag_ticks
    sim.release("A")
    assert 0 < sim.run() <= Config.force_max_ticks
