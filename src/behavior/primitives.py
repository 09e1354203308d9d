"""Primitive vocabulary available to generated object behaviors.

A behavior factory returns a ``Fragment``: a small group of shapes with its
own transform and an optional per-tick ``on_frame(fragment, dt, elapsed)``
callback. Painters only ever see these types, never arbitrary objects.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

from core.object3d import Object3D
from config import PLACEHOLDER_COLOR

RGB = Tuple[float, float, float]

FrameCallback = Callable[["Fragment", float, float], None]

_NAMED_COLORS = {
    "white": (1.0, 1.0, 1.0),
    "black": (0.0, 0.0, 0.0),
    "red": (1.0, 0.0, 0.0),
    "green": (0.0, 1.0, 0.0),
    "blue": (0.0, 0.0, 1.0),
    "cyan": (0.0, 1.0, 1.0),
    "magenta": (1.0, 0.0, 1.0),
    "yellow": (1.0, 1.0, 0.0),
    "orange": (1.0, 0.55, 0.0),
    "purple": (0.6, 0.2, 0.9),
}


def parse_color(value, default: RGB = (1.0, 1.0, 1.0)) -> RGB:
    """Accept '#rgb', '#rrggbb', a color name, or an (r, g, b) tuple."""
    if value is None:
        return default
    if isinstance(value, (tuple, list)) and len(value) >= 3:
        comps = [float(c) for c in value[:3]]
        if any(c > 1.0 for c in comps):
            comps = [c / 255.0 for c in comps]
        return tuple(max(0.0, min(1.0, c)) for c in comps)  # type: ignore[return-value]
    text = str(value).strip().lower()
    if text in _NAMED_COLORS:
        return _NAMED_COLORS[text]
    if text.startswith("#"):
        text = text[1:]
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        return default
    try:
        r, g, b = (int(text[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError:
        return default
    return (r, g, b)


class Shape(Object3D):
    kind = "shape"

    def __init__(self, *, position=None, rotation=None, scale=1.0, color=None):
        super().__init__(position=position, rotation=rotation, scale=scale)
        self.color = parse_color(color)


class Cube(Shape):
    kind = "cube"

    def __init__(self, size=1.0, **kw):
        super().__init__(**kw)
        self.size = float(size)


class Sphere(Shape):
    kind = "sphere"

    def __init__(self, radius=0.5, **kw):
        super().__init__(**kw)
        self.radius = float(radius)


class Text(Shape):
    kind = "text"

    def __init__(self, text="", font_size=0.5, **kw):
        super().__init__(**kw)
        self.text = str(text)
        self.font_size = float(font_size)


class Fragment(Object3D):
    """Renderable group returned by an object behavior's factory."""

    def __init__(
        self,
        *shapes: Shape,
        on_frame: Optional[FrameCallback] = None,
        position=None,
        rotation=None,
        scale=1.0,
    ):
        super().__init__(position=position, rotation=rotation, scale=scale)
        self.shapes: List[Shape] = []
        self.on_frame = on_frame
        self.extend(shapes)

    def add(self, shape: Shape) -> Shape:
        if not isinstance(shape, Shape):
            raise TypeError(f"fragments hold shapes, got {type(shape).__name__}")
        self.shapes.append(shape)
        return shape

    def extend(self, shapes: Iterable[Shape]) -> None:
        for s in shapes:
            self.add(s)


def placeholder_fragment() -> Fragment:
    """Neutral stand-in drawn when a behavior cannot be compiled or mounted."""
    return Fragment(Cube(size=1.0, color=PLACEHOLDER_COLOR))
