import os
from concurrent.futures import Executor, Future

import pytest

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from generation.gateway import GenerationOutcome  # noqa: E402
from world.registry import ObjectRegistry  # noqa: E402


GLOW_SOURCE = """\
def Glow():
    def pulse(fragment, dt, elapsed):
        fragment.rotate(0, dt, 0)
        fragment.position.y = elapsed
    return Fragment(Cube(size=1.0, color="#00ffff"), on_frame=pulse)
"""

SPHERE_TOOL_SOURCE = """\
def executeTool(context, parameters):
    context.addObject({"kind": "sphere", "position": [0, 1, 0], "properties": {"color": "#ffff00"}})
    return {"success": True}
"""


def ok(text, **metadata):
    return GenerationOutcome(success=True, source_text=text, metadata=dict(metadata))


class FakeGateway:
    """Replays queued outcomes (or raises queued exceptions) and records requests."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    def generate(self, request):
        self.requests.append(request)
        if not self.outcomes:
            return GenerationOutcome.failure("no outcome queued")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingPainter:
    def __init__(self):
        self.calls = []

    def draw_cube(self, position, properties):
        self.calls.append(("cube", position, dict(properties)))

    def draw_sphere(self, position, properties):
        self.calls.append(("sphere", position, dict(properties)))

    def draw_text(self, position, properties):
        self.calls.append(("text", position, dict(properties)))

    def draw_fragment(self, position, fragment):
        self.calls.append(("fragment", position, fragment))

    def highlight(self, position, radius):
        self.calls.append(("highlight", position, radius))

    def kinds(self):
        return [c[0] for c in self.calls]


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Holds submitted work until run_all() so late results can be simulated."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for future, fn, args, kwargs in jobs:
            future.set_result(fn(*args, **kwargs))


@pytest.fixture
def registry():
    return ObjectRegistry()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def painter():
    return RecordingPainter()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def deferred_executor():
    return DeferredExecutor()
