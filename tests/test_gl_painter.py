import numbers

import pytest

from render.frame_driver import FrameDriver
from world.canvas_object import CanvasObject, ObjectKind

try:
    from render import gl_painter
except Exception as e:  # no GL library on this machine
    pytest.skip(f"PyOpenGL unavailable: {e}", allow_module_level=True)


SPOILED_SOURCE = """\
def Spoiled():
    def spoil(fragment, dt, elapsed):
        fragment.shapes[0].size = None
    return Fragment(Cube(size=1.0), Sphere(radius=0.5), on_frame=spoil)
"""


class MatrixStack:
    """Stands in for the GL entry points the painter calls; tracks push depth."""

    def __init__(self):
        self.depth = 0
        self.scales = []

    def push(self):
        self.depth += 1

    def pop(self):
        self.depth -= 1

    def scale(self, x, y, z):
        if not all(isinstance(v, numbers.Real) for v in (x, y, z)):
            raise TypeError(f"glScalef needs numbers, got {(x, y, z)!r}")
        self.scales.append((x, y, z))


@pytest.fixture
def stack(monkeypatch):
    stack = MatrixStack()
    for name in dir(gl_painter):
        if name.startswith("gl") and callable(getattr(gl_painter, name)):
            monkeypatch.setattr(gl_painter, name, lambda *args: None)
    monkeypatch.setattr(gl_painter, "glPushMatrix", stack.push)
    monkeypatch.setattr(gl_painter, "glPopMatrix", stack.pop)
    monkeypatch.setattr(gl_painter, "glScalef", stack.scale)
    return stack


@pytest.fixture
def painter(stack):
    return gl_painter.GLPainter(camera=None, text_renderer=None)


def test_builtin_shapes_leave_stack_balanced(stack, painter):
    painter.draw_cube((0, 0, 0), {"size": 2})
    painter.draw_sphere((1, 0, 0), {"radius": 0.25})
    assert stack.depth == 0
    assert stack.scales == [(2.0, 2.0, 2.0), (0.25, 0.25, 0.25)]


def test_broken_shape_does_not_leak_matrices(stack, painter, registry):
    registry.insert(CanvasObject(id="bad", kind=ObjectKind.SYNTHESIZED, source=SPOILED_SOURCE))
    registry.insert(CanvasObject(id="box", kind=ObjectKind.CUBE, properties={"size": 3}))
    driver = FrameDriver(registry, painter=painter)

    for _ in range(20):
        stats = driver.tick(1 / 60)
        assert stats.faults == 1
        assert stats.skipped == ["bad"]

    assert stack.depth == 0
    assert stack.scales.count((3.0, 3.0, 3.0)) == 20
