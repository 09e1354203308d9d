from dataclasses import dataclass, field
from typing import Callable, List, Optional

Ticker = Callable[[float], None]


@dataclass
class Scene:
    """Base for whatever the engine drives: per-frame tickers plus hooks."""

    camera: Optional[object] = None
    tickers: List[Ticker] = field(default_factory=list)

    def update(self, dt: float):
        for tick in self.tickers:
            tick(dt)

    def handle_event(self, event) -> None:
        return None

    # projection, modelview and HUD are all the scene's job
    def render(self, *, text=None, fps: Optional[float] = None):  # pragma: no cover - visual
        return None

    def close(self) -> None:
        return None
