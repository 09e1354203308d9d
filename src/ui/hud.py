"""Canvas HUD: counters, tool list, generation reports and key help.

Line building is separated from drawing so the text can be checked without a
GL context; ``CanvasHUD.draw`` only lays the lines out through TextRenderer.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from config import HEIGHT, WIDTH
from world.canvas_object import Provenance

Line = Tuple[str, Tuple[int, int, int, int]]

WHITE = (255, 255, 255, 255)
CYAN = (0, 255, 255, 255)
DIM = (170, 170, 190, 255)
LEVEL_COLORS = {
    "info": (120, 255, 160, 255),
    "warning": (255, 210, 80, 255),
    "error": (255, 90, 120, 255),
}

HELP_LINES = (
    "C cube  S sphere  T text",
    "G generate object  M modify selected",
    "1-9 run tool  Tab select  Del remove",
    "drag orbit  right-drag pan  wheel zoom",
)


def status_lines(coordinator, selected_id: Optional[str] = None, fps: Optional[float] = None) -> List[Line]:
    objects = coordinator.registry.list()
    synthesized = sum(1 for o in objects if o.origin is not None and o.origin.provenance is Provenance.SYNTHESIZED)
    lines: List[Line] = []
    if fps is not None:
        lines.append((f"FPS: {fps:5.1f}", DIM))
    lines.append((f"Objects: {len(objects)} | AI-Generated: {synthesized}", CYAN))
    pending = coordinator.pending
    if pending:
        lines.append((f"Generating... ({pending} pending)", LEVEL_COLORS["warning"]))
    if selected_id is not None:
        lines.append((f"Selected: {selected_id}", WHITE))
    return lines


def tool_lines(coordinator) -> List[Line]:
    tools = coordinator.tools.list()
    if not tools:
        return [("No tools yet", DIM)]
    lines: List[Line] = [("Tools:", CYAN)]
    for i, tool in enumerate(tools[:9], start=1):
        lines.append((f"{i}. {tool.name}", WHITE))
    return lines


def report_lines(reports: Sequence) -> List[Line]:
    return [(r.message, LEVEL_COLORS.get(r.level, WHITE)) for r in reports]


class CanvasHUD:
    def __init__(self, scene) -> None:
        self.scene = scene

    def draw(self, text, fps: Optional[float] = None) -> None:  # pragma: no cover - visual
        coordinator = self.scene.coordinator
        text.begin()
        status = status_lines(coordinator, self.scene.selected_id, fps)
        w, h = text.draw_lines(status, 16, 14)
        text.draw_lines(tool_lines(coordinator), 16, 14 + h + 14)
        text.draw_lines([(line, DIM) for line in HELP_LINES], WIDTH - 16, 14, align="topright")
        reports = report_lines(coordinator.reports)
        if reports:
            text.draw_lines(reports, 16, HEIGHT - 14, align="bottomleft")
        text.end()
