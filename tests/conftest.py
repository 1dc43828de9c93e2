import itertools

import pytest

from collaborators import MemoryBestScoreStore
from engine import GameEngine
from game import Grid

# Draws are consumed in pairs (cell, value): 0.99 picks the last empty cell
# in row-major order and 0.0 makes the value a 2.
SPAWN_LAST = (0.99, 0.0)
SPAWN_FIRST = (0.0, 0.0)


def fixed_random(values):
    cycle = itertools.cycle(values)
    return lambda: next(cycle)


class RecordingEvents:
    def __init__(self):
        self.events = []

    def track(self, name, data):
        self.events.append((name, data))

    def names(self):
        return [name for name, _ in self.events]


class RecordingSounds:
    def __init__(self):
        self.tags = []

    def play(self, tag):
        self.tags.append(tag)


class DeferredScheduler:
    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


class Broken:
    """Collaborator whose every method raises."""

    def __call__(self, *args):
        raise RuntimeError("collaborator down")

    def __getattr__(self, name):
        return self


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def sounds():
    return RecordingSounds()


@pytest.fixture
def make_engine(events, sounds):
    def _make(rows=None, spawn=SPAWN_LAST, score=0, **kwargs):
        kwargs.setdefault("events", events)
        kwargs.setdefault("sounds", sounds)
        kwargs.setdefault("best_scores", MemoryBestScoreStore())
        engine = GameEngine(random_source=fixed_random(spawn), **kwargs)
        if rows is not None:
            engine.grid = Grid.from_values(rows)
            engine.score = score
        return engine
    return _make


@pytest.fixture
def single_row():
    """4x4 rows with only the first row filled."""
    def _rows(first):
        return [list(first), [0] * 4, [0] * 4, [0] * 4]
    return _rows


@pytest.fixture
def checkerboard():
    return [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [4, 2, 4, 2],
    ]


@pytest.fixture
def broken():
    return Broken()


@pytest.fixture
def deferred():
    return DeferredScheduler()
