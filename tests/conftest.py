import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from engine.narration import NarrationError, Narrator
from payload import AlgorithmData, AlgorithmStep


class FakeTimer:
    def __init__(self, factory, interval_ms, callback):
        self.factory = factory
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False

    def fire(self):
        self.callback(self)

    def cancel(self):
        if not self.cancelled:
            self.cancelled = True
            self.factory.cancelled += 1

    @property
    def active(self):
        return not self.cancelled


class FakeTimerFactory:
    """Creates timers that only tick when a test calls fire()."""

    def __init__(self):
        self.timers = []
        self.created = 0
        self.cancelled = 0

    def __call__(self, interval_ms, callback):
        timer = FakeTimer(self, interval_ms, callback)
        self.timers.append(timer)
        self.created += 1
        return timer

    @property
    def live(self):
        return self.created - self.cancelled

    @property
    def latest(self):
        return self.timers[-1]

    def tick(self, times=1):
        for _ in range(times):
            self.latest.fire()


class RecordingNarrator(Narrator):
    """Keeps an ordered log of ("speak", text) / ("stop", None) calls."""

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail
        self.active = None

    def speak(self, text):
        if self.fail:
            raise NarrationError("no speech backend")
        self.active = text
        self.calls.append(("speak", text))

    def stop(self):
        self.active = None
        self.calls.append(("stop", None))

    @property
    def speaking(self):
        return self.active is not None

    @property
    def spoken(self):
        return [text for kind, text in self.calls if kind == "speak"]


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def narrator():
    return RecordingNarrator()


def make_steps(n):
    return [
        AlgorithmStep(index=i + 1, description=f"step {i + 1}", code=f"line {i + 1}",
                      explanation=f"why {i + 1}")
        for i in range(n)
    ]


def make_algorithm(visualization, steps=3, name="Bubble Sort"):
    return AlgorithmData.from_dict({
        "name": name,
        "description": "Repeatedly swaps adjacent out-of-order elements.",
        "steps": [s.to_dict() for s in make_steps(steps)],
        "pseudocode": "for i in range(n):\n  for j in range(n - i - 1):\n    swap if needed",
        "timeComplexity": "O(n^2)",
        "spaceComplexity": "O(1)",
        "visualizationData": visualization,
    })


ARRAY_PAYLOAD = {"type": "array", "data": [4, 2, 3, 2, 1]}

GRAPH_PAYLOAD = {
    "type": "graph",
    "data": {
        "A": ["B", "C"],
        "B": ["A", "D"],
        "C": ["A", "D", "Z"],
        "D": {"neighbors": ["B", "C"], "visited": True},
    },
    "current": "B",
}

LINKED_PAYLOAD = {
    "type": "linkedlist",
    "data": {
        "nodes": [{"id": "n1", "value": 1}, {"id": "n2", "value": 2}, {"id": "n3", "value": 3}],
        "connections": [{"from": "n1", "to": "n2"}, {"from": "n2", "to": "n3"}],
        "head": "n1",
        "tail": "n3",
    },
}
