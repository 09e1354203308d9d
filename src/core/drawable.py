from typing import Any, Mapping, Protocol, Tuple

Position = Tuple[float, float, float]


class ShapePainter(Protocol):
    """Backend the frame driver draws through (GL in the app, a recorder in tests)."""

    def draw_cube(self, position: Position, properties: Mapping[str, Any]) -> None: ...

    def draw_sphere(self, position: Position, properties: Mapping[str, Any]) -> None: ...

    def draw_text(self, position: Position, properties: Mapping[str, Any]) -> None: ...

    def draw_fragment(self, position: Position, fragment: Any) -> None: ...

    def highlight(self, position: Position, radius: float) -> None: ...
