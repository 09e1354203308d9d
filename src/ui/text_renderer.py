"""pygame.font text as OpenGL textures.

Screen-space HUD labels are drawn between begin() and end(). The same cached
label textures back the camera-facing text billboards in the 3D pass
(``label_slot``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import pygame
from config import HUD_FONT_SIZE
from OpenGL.GL import (
    glGenTextures,
    glDeleteTextures,
    glBindTexture,
    glTexImage2D,
    glTexParameteri,
    glPushMatrix,
    glPopMatrix,
    glBegin,
    glEnd,
    glOrtho,
    glLoadIdentity,
    glTexCoord2f,
    glVertex2f,
    glColor4f,
    glBlendFunc,
    glEnable,
    glDisable,
    glMatrixMode,
    GL_TEXTURE_2D,
    GL_TEXTURE_MIN_FILTER,
    GL_TEXTURE_MAG_FILTER,
    GL_LINEAR,
    GL_RGBA,
    GL_UNSIGNED_BYTE,
    GL_BLEND,
    GL_SRC_ALPHA,
    GL_ONE_MINUS_SRC_ALPHA,
    GL_PROJECTION,
    GL_MODELVIEW,
    GL_QUADS,
    GL_DEPTH_TEST,
    GL_LIGHTING,
    GL_FOG,
)

RGBA = Tuple[int, int, int, int]


@dataclass
class _TexSlot:
    id: int
    size: Tuple[int, int]
    last_text: str | None = None


def anchor(align: str, x: float, y: float, w: float, h: float) -> Tuple[float, float]:
    """Top-left corner for a w*h box placed at (x, y) with ``align``."""
    if align == "center":
        return x - w / 2, y - h / 2
    left = x - w if align.endswith("right") else x
    top = y - h if align.startswith("bottom") else y
    return left, top


class TextRenderer:
    """Text for the canvas: HUD lines in screen space, labels in the world.

    - Call begin() once before drawing HUD lines; call end() after.
    - draw_text() takes a `key` for text that changes every frame (FPS,
      counters); the slot is re-uploaded only when the text differs.
    - Keyless text and world labels are cached by (text, color).
    """

    def __init__(
        self,
        screen_width: int,
        screen_height: int,
        font: Optional[pygame.font.Font] = None,
        size: int = HUD_FONT_SIZE,
    ) -> None:
        self.width = screen_width
        self.height = screen_height
        self.font = font or pygame.font.Font(None, size)
        self._cache: Dict[Tuple[str, RGBA], _TexSlot] = {}
        self._slots: Dict[str, _TexSlot] = {}
        self._in_overlay = False

    # --------------------------- overlay state ---------------------------
    def begin(self) -> None:  # pragma: no cover - visual
        if self._in_overlay:
            return
        glMatrixMode(GL_PROJECTION)
        glPushMatrix()
        glLoadIdentity()
        glOrtho(0, self.width, self.height, 0, -1, 1)
        glMatrixMode(GL_MODELVIEW)
        glPushMatrix()
        glLoadIdentity()

        glDisable(GL_DEPTH_TEST)
        glDisable(GL_LIGHTING)
        glDisable(GL_FOG)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)
        glEnable(GL_TEXTURE_2D)
        self._in_overlay = True

    def end(self) -> None:  # pragma: no cover - visual
        if not self._in_overlay:
            return
        glDisable(GL_TEXTURE_2D)
        glDisable(GL_BLEND)
        glEnable(GL_FOG)
        glEnable(GL_LIGHTING)
        glEnable(GL_DEPTH_TEST)
        glPopMatrix()
        glMatrixMode(GL_PROJECTION)
        glPopMatrix()
        glMatrixMode(GL_MODELVIEW)
        self._in_overlay = False

    # --------------------------- textures -------------------------------
    def _render_into(self, slot: _TexSlot, text: str, color: RGBA) -> None:
        # flipped rows so texture v=0 is the bottom of the glyphs
        surf = self.font.render(text, True, color)
        w, h = surf.get_width(), surf.get_height()
        glBindTexture(GL_TEXTURE_2D, slot.id)
        glTexImage2D(
            GL_TEXTURE_2D,
            0,
            GL_RGBA,
            w,
            h,
            0,
            GL_RGBA,
            GL_UNSIGNED_BYTE,
            pygame.image.tostring(surf, "RGBA", True),
        )
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_LINEAR)
        slot.size = (w, h)
        slot.last_text = text

    def _keyed_slot(self, key: str, text: str, color: RGBA) -> _TexSlot:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _TexSlot(id=glGenTextures(1), size=(0, 0))
        if slot.last_text != text:
            self._render_into(slot, text, color)
        return slot

    def label_slot(self, text: str, color: RGBA) -> _TexSlot:
        """Cached texture for ``text`` in ``color``; shared by HUD and world labels."""
        cache_key = (text, tuple(color))
        slot = self._cache.get(cache_key)
        if slot is None:
            slot = self._cache[cache_key] = _TexSlot(id=glGenTextures(1), size=(0, 0))
            self._render_into(slot, text, cache_key[1])
        return slot

    # --------------------------- HUD drawing ----------------------------
    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        color: RGBA = (255, 255, 255, 255),
        *,
        key: Optional[str] = None,
        align: str = "topleft",
    ) -> Tuple[int, int]:  # pragma: no cover - visual
        """Draw one line at screen coords; returns its (w, h)."""
        slot = self._keyed_slot(key, text, color) if key is not None else self.label_slot(text, color)
        w, h = slot.size
        left, top = anchor(align, x, y, w, h)

        glBindTexture(GL_TEXTURE_2D, slot.id)
        glColor4f(1.0, 1.0, 1.0, 1.0)
        glBegin(GL_QUADS)
        glTexCoord2f(0.0, 1.0)
        glVertex2f(left, top)
        glTexCoord2f(1.0, 1.0)
        glVertex2f(left + w, top)
        glTexCoord2f(1.0, 0.0)
        glVertex2f(left + w, top + h)
        glTexCoord2f(0.0, 0.0)
        glVertex2f(left, top + h)
        glEnd()
        return w, h

    def measure_lines(self, lines: Sequence[Tuple[str, RGBA]], line_spacing: float = 1.2) -> Tuple[int, int]:
        if not lines:
            return 0, 0
        line_h = self.font.get_height()
        max_w = max(self.font.size(text)[0] for text, _ in lines)
        return int(max_w), int(line_h + (len(lines) - 1) * line_h * line_spacing)

    def draw_lines(
        self,
        lines: Sequence[Tuple[str, RGBA]],
        x: float,
        y: float,
        *,
        align: str = "topleft",
        line_spacing: float = 1.2,
    ) -> Tuple[int, int]:  # pragma: no cover - visual
        """Draw (text, color) lines as one block; returns the block's (w, h)."""
        w, h = self.measure_lines(lines, line_spacing)
        if not lines:
            return w, h
        left, top = anchor(align, x, y, w, h)
        step = self.font.get_height() * line_spacing
        for i, (text, color) in enumerate(lines):
            line_left = left + (w - self.font.size(text)[0] if align.endswith("right") else 0)
            self.draw_text(text, line_left, top + int(i * step), tuple(color))
        return w, h

    def draw_panel(
        self, x: float, y: float, w: float, h: float, rgba=(0.0, 0.0, 0.0, 0.55)
    ) -> None:  # pragma: no cover - visual
        """Translucent backdrop rectangle; call inside begin()/end()."""
        glDisable(GL_TEXTURE_2D)
        glColor4f(*rgba)
        glBegin(GL_QUADS)
        glVertex2f(x, y)
        glVertex2f(x + w, y)
        glVertex2f(x + w, y + h)
        glVertex2f(x, y + h)
        glEnd()
        glEnable(GL_TEXTURE_2D)

    def release(self) -> None:  # pragma: no cover - visual
        ids = [s.id for s in self._cache.values()] + [s.id for s in self._slots.values()]
        if ids:
            glDeleteTextures(ids)
        self._cache.clear()
        self._slots.clear()
