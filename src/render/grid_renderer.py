"""Ground grid rendering.

Contains the GridRenderer that draws the reference grid under the canvas:
thin cell lines plus brighter section lines every ``GRID_SECTION`` cells.
Ensure an active OpenGL context exists before calling ``draw``.
"""

from __future__ import annotations

import numpy as np

from config import GRID_CELL, GRID_COLOR, GRID_EXTENT, GRID_SECTION, GRID_SECTION_COLOR, GRID_Y


def build_grid_lines(extent: float = GRID_EXTENT, cell: float = GRID_CELL, section: int = GRID_SECTION):
    """Return (cell_lines, section_lines) as float32 arrays of line endpoints."""
    steps = int(round(extent / cell))
    cells, sections = [], []
    for i in range(-steps, steps + 1):
        c = i * cell
        segment = [(c, 0.0, -extent), (c, 0.0, extent), (-extent, 0.0, c), (extent, 0.0, c)]
        (sections if section and i % section == 0 else cells).extend(segment)
    return np.array(cells, dtype=np.float32).reshape(-1, 3), np.array(sections, dtype=np.float32).reshape(-1, 3)


class GridRenderer:
    """Draws the ground grid at ``y``; vertex data is built once."""

    def __init__(self, y: float = GRID_Y) -> None:
        self.y = y
        self._cells, self._sections = build_grid_lines()

    def draw(self) -> None:  # pragma: no cover - visual
        from OpenGL.GL import (
            glPushMatrix,
            glPopMatrix,
            glTranslatef,
            glColor3f,
            glLineWidth,
            glEnable,
            glDisable,
            glEnableClientState,
            glDisableClientState,
            glVertexPointer,
            glDrawArrays,
            GL_LIGHTING,
            GL_VERTEX_ARRAY,
            GL_FLOAT,
            GL_LINES,
        )

        glDisable(GL_LIGHTING)
        glPushMatrix()
        glTranslatef(0.0, self.y, 0.0)
        glEnableClientState(GL_VERTEX_ARRAY)

        glLineWidth(1.0)
        glColor3f(*GRID_COLOR)
        glVertexPointer(3, GL_FLOAT, 0, self._cells)
        glDrawArrays(GL_LINES, 0, len(self._cells))

        glLineWidth(1.5)
        glColor3f(*GRID_SECTION_COLOR)
        glVertexPointer(3, GL_FLOAT, 0, self._sections)
        glDrawArrays(GL_LINES, 0, len(self._sections))

        glDisableClientState(GL_VERTEX_ARRAY)
        glPopMatrix()
        glLineWidth(1.0)
        glEnable(GL_LIGHTING)
