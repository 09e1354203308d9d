"""Fixed-function OpenGL painter for canvas shapes.

Unit cube and sphere geometry is built once with numpy and drawn from
client-side vertex arrays; each shape is placed with the matrix stack. Text
is a camera-facing billboard using label textures from ``TextRenderer``.
Requires an active GL context.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Any, Mapping, Tuple

import numpy as np
from OpenGL.GL import (
    glPushMatrix,
    glPopMatrix,
    glTranslatef,
    glRotatef,
    glScalef,
    glColor3f,
    glColor4f,
    glEnableClientState,
    glDisableClientState,
    glVertexPointer,
    glNormalPointer,
    glDrawArrays,
    glBindTexture,
    glBegin,
    glEnd,
    glTexCoord2f,
    glVertex3f,
    glEnable,
    glDisable,
    glBlendFunc,
    glLineWidth,
    GL_VERTEX_ARRAY,
    GL_NORMAL_ARRAY,
    GL_FLOAT,
    GL_QUADS,
    GL_TRIANGLES,
    GL_LINES,
    GL_TEXTURE_2D,
    GL_BLEND,
    GL_SRC_ALPHA,
    GL_ONE_MINUS_SRC_ALPHA,
    GL_LIGHTING,
)

from behavior.primitives import Cube, Fragment, Sphere, Text, parse_color
from config import (
    CUBE_DEFAULT_COLOR,
    SPHERE_DEFAULT_COLOR,
    SPHERE_SLICES,
    SPHERE_STACKS,
    TEXT_DEFAULT,
    TEXT_DEFAULT_COLOR,
)


def build_cube_arrays() -> Tuple[np.ndarray, np.ndarray]:
    """Unit cube centered on the origin as GL_QUADS (24 vertices)."""
    h = 0.5
    faces = [
        ((0, 0, 1), [(-h, -h, h), (h, -h, h), (h, h, h), (-h, h, h)]),
        ((0, 0, -1), [(h, -h, -h), (-h, -h, -h), (-h, h, -h), (h, h, -h)]),
        ((1, 0, 0), [(h, -h, h), (h, -h, -h), (h, h, -h), (h, h, h)]),
        ((-1, 0, 0), [(-h, -h, -h), (-h, -h, h), (-h, h, h), (-h, h, -h)]),
        ((0, 1, 0), [(-h, h, h), (h, h, h), (h, h, -h), (-h, h, -h)]),
        ((0, -1, 0), [(-h, -h, -h), (h, -h, -h), (h, -h, h), (-h, -h, h)]),
    ]
    verts = np.array([v for _, quad in faces for v in quad], dtype=np.float32)
    normals = np.array([n for n, quad in faces for _ in quad], dtype=np.float32)
    return verts, normals


def build_sphere_arrays(slices: int = SPHERE_SLICES, stacks: int = SPHERE_STACKS) -> np.ndarray:
    """Unit-radius sphere as GL_TRIANGLES; positions double as normals."""
    theta = np.linspace(0.0, math.pi, stacks + 1)
    phi = np.linspace(0.0, 2.0 * math.pi, slices + 1)
    t, p = np.meshgrid(theta, phi, indexing="ij")
    grid = np.stack(
        [np.sin(t) * np.cos(p), np.cos(t), np.sin(t) * np.sin(p)],
        axis=-1,
    ).astype(np.float32)
    a = grid[:-1, :-1].reshape(-1, 3)
    b = grid[1:, :-1].reshape(-1, 3)
    c = grid[1:, 1:].reshape(-1, 3)
    d = grid[:-1, 1:].reshape(-1, 3)
    tris = np.stack([a, b, c, a, c, d], axis=1).reshape(-1, 3)
    return np.ascontiguousarray(tris, dtype=np.float32)


@contextmanager
def pushed_matrix():
    """glPushMatrix/glPopMatrix pair that pops even if drawing raises."""
    glPushMatrix()
    try:
        yield
    finally:
        glPopMatrix()


class GLPainter:
    def __init__(self, camera, text_renderer) -> None:
        self.camera = camera
        self.text = text_renderer
        self._cube_verts, self._cube_normals = build_cube_arrays()
        self._sphere = build_sphere_arrays()

    # --------------------------- primitives ------------------------------
    def _draw_arrays(self, verts: np.ndarray, normals: np.ndarray, mode: int) -> None:
        glEnableClientState(GL_VERTEX_ARRAY)
        glEnableClientState(GL_NORMAL_ARRAY)
        try:
            glVertexPointer(3, GL_FLOAT, 0, verts)
            glNormalPointer(GL_FLOAT, 0, normals)
            glDrawArrays(mode, 0, len(verts))
        finally:
            glDisableClientState(GL_NORMAL_ARRAY)
            glDisableClientState(GL_VERTEX_ARRAY)

    def _unit_cube(self, size: float, color) -> None:
        glColor3f(*color)
        with pushed_matrix():
            glScalef(size, size, size)
            self._draw_arrays(self._cube_verts, self._cube_normals, GL_QUADS)

    def _unit_sphere(self, radius: float, color) -> None:
        glColor3f(*color)
        with pushed_matrix():
            glScalef(radius, radius, radius)
            self._draw_arrays(self._sphere, self._sphere, GL_TRIANGLES)

    def _billboard(self, label: str, height: float, color) -> None:
        rgba = tuple(int(c * 255) for c in color) + (255,)
        slot = self.text.label_slot(label, rgba)
        w_px, h_px = slot.size
        if h_px == 0:
            return
        half_h = height * 0.5
        half_w = half_h * (w_px / h_px)
        right = self.camera.right
        up = self.camera.up
        corners = (
            (-half_w, -half_h, 0.0, 1.0),
            (half_w, -half_h, 1.0, 1.0),
            (half_w, half_h, 1.0, 0.0),
            (-half_w, half_h, 0.0, 0.0),
        )

        glDisable(GL_LIGHTING)
        glEnable(GL_TEXTURE_2D)
        glEnable(GL_BLEND)
        try:
            glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)
            glBindTexture(GL_TEXTURE_2D, slot.id)
            glColor4f(1.0, 1.0, 1.0, 1.0)
            glBegin(GL_QUADS)
            try:
                for sx, sy, u, v in corners:
                    p = right * sx + up * sy
                    glTexCoord2f(u, 1.0 - v)
                    glVertex3f(p.x, p.y, p.z)
            finally:
                glEnd()
        finally:
            glDisable(GL_BLEND)
            glDisable(GL_TEXTURE_2D)
            glEnable(GL_LIGHTING)

    # --------------------------- builtin kinds ----------------------------
    def draw_cube(self, position, properties: Mapping[str, Any]) -> None:
        with pushed_matrix():
            glTranslatef(*position)
            self._unit_cube(float(properties.get("size", 1.0)), parse_color(properties.get("color", CUBE_DEFAULT_COLOR)))

    def draw_sphere(self, position, properties: Mapping[str, Any]) -> None:
        with pushed_matrix():
            glTranslatef(*position)
            radius = float(properties.get("radius", properties.get("size", 1.0) * 0.5))
            self._unit_sphere(radius, parse_color(properties.get("color", SPHERE_DEFAULT_COLOR)))

    def draw_text(self, position, properties: Mapping[str, Any]) -> None:
        with pushed_matrix():
            glTranslatef(*position)
            self._billboard(
                str(properties.get("text", TEXT_DEFAULT)),
                float(properties.get("font_size", 0.5)),
                parse_color(properties.get("color", TEXT_DEFAULT_COLOR)),
            )

    # --------------------------- synthesized -------------------------------
    def _apply_transform(self, obj) -> None:
        glTranslatef(obj.position.x, obj.position.y, obj.position.z)
        glRotatef(math.degrees(obj.rotation.y), 0, 1, 0)
        glRotatef(math.degrees(obj.rotation.x), 1, 0, 0)
        glRotatef(math.degrees(obj.rotation.z), 0, 0, 1)
        if obj.scale != 1.0:
            glScalef(obj.scale, obj.scale, obj.scale)

    def draw_fragment(self, position, fragment: Fragment) -> None:
        with pushed_matrix():
            glTranslatef(*position)
            self._apply_transform(fragment)
            for shape in fragment.shapes:
                with pushed_matrix():
                    self._apply_transform(shape)
                    if isinstance(shape, Cube):
                        self._unit_cube(shape.size, shape.color)
                    elif isinstance(shape, Sphere):
                        self._unit_sphere(shape.radius, shape.color)
                    elif isinstance(shape, Text):
                        self._billboard(shape.text, shape.font_size, shape.color)

    def highlight(self, position, radius: float) -> None:  # pragma: no cover - visual
        """Axis cross marking the selected object."""
        glDisable(GL_LIGHTING)
        glLineWidth(2.0)
        glColor3f(1.0, 1.0, 1.0)
        x, y, z = position
        try:
            glBegin(GL_LINES)
            for dx, dy, dz in ((radius, 0, 0), (0, radius, 0), (0, 0, radius)):
                glVertex3f(x - dx, y - dy, z - dz)
                glVertex3f(x + dx, y + dy, z + dz)
            glEnd()
        finally:
            glLineWidth(1.0)
            glEnable(GL_LIGHTING)
