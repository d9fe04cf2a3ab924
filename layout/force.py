"""
force.py — Force-Directed Layout Simulation
============================================
A small, deterministic port of the classic velocity-Verlet style force
layout: many-body repulsion, link springs, centering and collision.

Lifecycle:
    sim = ForceSimulation.for_graph(graph_data, frame)   # circle seed
    sim.run()                        # tick until alpha < alpha_min
    sim.drag("A", 310, 140)          # pin + reheat, a few ticks
    sim.release("A")                 # unpin, cool, settle again
    sim.stop()                       # disposed: ticks become no-ops

Each tick:
    alpha += (alpha_target - alpha) * alpha_decay
    forces add to vx / vy        (link → charge → center → collide)
    pinned nodes snap to fx / fy, others integrate with velocity decay

Design decisions:
  - Nodes are keyed by their stable id.  Pin state (fx, fy) is only
    ever written through pin() / drag() / release().
  - Alpha decay defaults to "reach alpha_min in max_ticks ticks", so a
    cold start always settles inside a bounded number of ticks.
  - Coincident nodes are nudged with a seeded RNG, so two runs from the
    same input give the same layout.
"""

import logging
import math
import random
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from config import Config
from layout.scene import Frame
from payload.types import GraphData

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Simulation node & link
# ---------------------------------------------------------------------------
class SimNode:
    __slots__ = ("id", "index", "x", "y", "vx", "vy", "fx", "fy")

    def __init__(self, node_id: str, index: int, x: float = 0.0, y: float = 0.0):
        self.id:    str             = node_id
        self.index: int             = index
        self.x:     float           = x
        self.y:     float           = y
        self.vx:    float           = 0.0
        self.vy:    float           = 0.0
        self.fx:    Optional[float] = None
        self.fy:    Optional[float] = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def __repr__(self) -> str:
        return f"SimNode({self.id!r}, x={self.x:.1f}, y={self.y:.1f}, pinned={self.pinned})"


class SimLink:
    __slots__ = ("source", "target", "strength", "bias")

    def __init__(self, source: SimNode, target: SimNode):
        self.source:   SimNode = source
        self.target:   SimNode = target
        self.strength: float   = 1.0
        self.bias:     float   = 0.5


# ---------------------------------------------------------------------------
# ForceSimulation
# ---------------------------------------------------------------------------
class ForceSimulation:
    """
    Attributes:
        nodes        : {node_id: SimNode} in declaration order.
        links        : SimLinks between declared nodes.
        alpha        : Current "temperature"; forces scale with it.
        alpha_target : Value alpha relaxes toward (raised while dragging).
        ticks        : Total ticks run so far.
        stopped      : True once stop() has been called.
    """

    def __init__(
        self,
        node_ids: Iterable[str],
        edges: Iterable[Tuple[str, str]] = (),
        center: Tuple[float, float] = (0.0, 0.0),
        *,
        charge: Optional[float] = None,
        link_distance: Optional[float] = None,
        collide_radius: Optional[float] = None,
        alpha_min: Optional[float] = None,
        alpha_decay: Optional[float] = None,
        velocity_decay: Optional[float] = None,
        max_ticks: Optional[int] = None,
        seed: int = 0,
    ):
        self.nodes: Dict[str, SimNode] = {}
        for nid in node_ids:
            if nid not in self.nodes:
                self.nodes[nid] = SimNode(nid, len(self.nodes))

        self.links: List[SimLink] = [
            SimLink(self.nodes[s], self.nodes[t])
            for s, t in edges
            if s in self.nodes and t in self.nodes
        ]
        self.center = center

        self.charge         = Config.force_charge if charge is None else charge
        self.link_distance  = Config.force_link_distance if link_distance is None else link_distance
        self.collide_radius = Config.force_collide_radius if collide_radius is None else collide_radius
        self.alpha_min      = Config.force_alpha_min if alpha_min is None else alpha_min
        self.max_ticks      = Config.force_max_ticks if max_ticks is None else max_ticks
        self.velocity_decay = (Config.force_velocity_decay
                               if velocity_decay is None else velocity_decay)
        if alpha_decay is None:
            alpha_decay = Config.force_alpha_decay
        if alpha_decay is None:
            alpha_decay = 1 - self.alpha_min ** (1 / max(self.max_ticks - 1, 1))
        self.alpha_decay = alpha_decay

        self.alpha:        float = 1.0
        self.alpha_target: float = 0.0
        self.ticks:        int   = 0
        self.stopped:      bool  = False

        self._rng = random.Random(seed)
        self._listeners: List[Callable[["ForceSimulation"], None]] = []
        self._init_links()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def for_graph(cls, data: GraphData, frame: Optional[Frame] = None, **kwargs) -> "ForceSimulation":
        """Simulation for a parsed graph, seeded on a circle around the centre."""
        frame = frame or Frame.from_config()
        cx, cy = frame.inner_width / 2, frame.inner_height / 2
        sim = cls(
            data.node_ids(),
            [(e.source, e.target) for e in data.edges],
            center=(cx, cy),
            **kwargs,
        )
        sim.seed_circle(Config.force_seed_radius)
        return sim

    def seed_circle(self, radius: float) -> None:
        n = len(self.nodes)
        cx, cy = self.center
        for node in self.nodes.values():
            angle = 2 * math.pi * node.index / n
            node.x = cx + radius * math.cos(angle)
            node.y = cy + radius * math.sin(angle)
            node.vx = node.vy = 0.0

    def _init_links(self) -> None:
        count: Dict[str, int] = {nid: 0 for nid in self.nodes}
        for link in self.links:
            count[link.source.id] += 1
            count[link.target.id] += 1
        for link in self.links:
            s, t = count[link.source.id], count[link.target.id]
            link.strength = 1 / min(s, t)
            link.bias = s / (s + t)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------
    def tick(self, iterations: int = 1) -> None:
        if self.stopped:
            return
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
            self._force_link()
            self._force_charge()
            self._force_center()
            self._force_collide()
            self._integrate()
            self.ticks += 1
        for listener in list(self._listeners):
            listener(self)

    def run(self) -> int:
        """
        Tick until cool (or max_ticks).  Returns the number of ticks taken.

        While held hot by a drag, alpha never drops below alpha_min, so a
        run only tracks alpha down to alpha_target and takes at most
        drag_ticks.
        """
        limit = self.max_ticks
        if self.alpha_target > 0:
            limit = min(limit, Config.drag_ticks)
        taken = 0
        while not self.stopped and not self._converged() and taken < limit:
            self.tick()
            taken += 1
        if taken:
            logger.debug("force layout: %d ticks, alpha=%.4f", taken, self.alpha)
        return taken

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    def _converged(self) -> bool:
        if self.alpha_target > 0:
            return abs(self.alpha - self.alpha_target) < self.alpha_min
        return self.settled

    def on_tick(self, listener: Callable[["ForceSimulation"], None]) -> None:
        self._listeners.append(listener)

    def stop(self) -> None:
        """Dispose: drop listeners, refuse further ticks."""
        self.stopped = True
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Interaction setters
    # ------------------------------------------------------------------
    def pin(self, node_id: str, x: float, y: float) -> bool:
        node = self.nodes.get(node_id)
        if node is None:
            return False
        node.fx, node.fy = x, y
        return True

    def release(self, node_id: str) -> bool:
        """Unpin a node and let the layout cool back down."""
        node = self.nodes.get(node_id)
        if node is None:
            return False
        node.fx = node.fy = None
        self.cool()
        return True

    def drag(self, node_id: str, x: float, y: float, ticks: Optional[int] = None) -> bool:
        """Pin at the pointer and reheat so neighbours follow."""
        if not self.pin(node_id, x, y):
            return False
        self.reheat(Config.drag_alpha_target)
        self.tick(Config.drag_ticks if ticks is None else ticks)
        return True

    def reheat(self, target: float) -> None:
        self.alpha_target = target
        if self.alpha < target:
            self.alpha = target

    def cool(self) -> None:
        self.alpha_target = 0.0

    def positions(self) -> Dict[str, Tuple[float, float]]:
        return {nid: (n.x, n.y) for nid, n in self.nodes.items()}

    # ------------------------------------------------------------------
    # Forces
    # ------------------------------------------------------------------
    def _jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def _force_link(self) -> None:
        for link in self.links:
            s, t = link.source, link.target
            x = t.x + t.vx - s.x - s.vx or self._jiggle()
            y = t.y + t.vy - s.y - s.vy or self._jiggle()
            l = math.sqrt(x * x + y * y)
            l = (l - self.link_distance) / l * self.alpha * link.strength
            x *= l
            y *= l
            b = link.bias
            t.vx -= x * b
            t.vy -= y * b
            s.vx += x * (1 - b)
            s.vy += y * (1 - b)

    def _force_charge(self) -> None:
        nodes = list(self.nodes.values())
        for node in nodes:
            for other in nodes:
                if other is node:
                    continue
                x = other.x - node.x
                y = other.y - node.y
                if x == 0:
                    x = self._jiggle()
                if y == 0:
                    y = self._jiggle()
                l = x * x + y * y
                if l < 1:
                    l = math.sqrt(l)
                w = self.charge * self.alpha / l
                node.vx += x * w
                node.vy += y * w

    def _force_center(self) -> None:
        if not self.nodes:
            return
        n = len(self.nodes)
        sx = sum(node.x for node in self.nodes.values()) / n
        sy = sum(node.y for node in self.nodes.values()) / n
        dx = self.center[0] - sx
        dy = self.center[1] - sy
        for node in self.nodes.values():
            node.x += dx
            node.y += dy

    def _force_collide(self) -> None:
        r = self.collide_radius
        rr = r + r
        nodes = list(self.nodes.values())
        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                x = (a.x + a.vx) - (b.x + b.vx)
                y = (a.y + a.vy) - (b.y + b.vy)
                l = x * x + y * y
                if l >= rr * rr:
                    continue
                if x == 0:
                    x = self._jiggle()
                    l += x * x
                if y == 0:
                    y = self._jiggle()
                    l += y * y
                l = math.sqrt(l)
                l = (rr - l) / l
                x *= l
                y *= l
                a.vx += x * 0.5
                a.vy += y * 0.5
                b.vx -= x * 0.5
                b.vy -= y * 0.5

    def _integrate(self) -> None:
        keep = 1 - self.velocity_decay
        for node in self.nodes.values():
            if node.fx is None:
                node.vx *= keep
                node.x += node.vx
            else:
                node.x = node.fx
                node.vx = 0.0
            if node.fy is None:
                node.vy *= keep
                node.y += node.vy
            else:
                node.y = node.fy
                node.vy = 0.0
