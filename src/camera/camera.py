import math
import numpy as np
from pygame.math import Vector3
from config import CAMERA_DISTANCE, CAMERA_TARGET, FOV, HEIGHT, WIDTH


class Camera:
    """Orbit camera looking at ``target`` from ``distance`` away.

    yaw spins around the world Y axis, pitch tilts above the ground plane
    (both radians). ``position`` and the basis vectors are recomputed by
    ``update_rotation()``; call it after changing yaw, pitch, distance or target.
    """

    def __init__(
        self,
        target=None,
        *,
        distance=CAMERA_DISTANCE,
        yaw=0.0,
        pitch=0.35,
        width=WIDTH,
        height=HEIGHT,
        fov=FOV,
    ):
        self.target = Vector3(target) if target is not None else Vector3(CAMERA_TARGET)
        self.distance = float(distance)
        self.yaw = float(yaw)
        self.pitch = float(pitch)
        self.width = width
        self.height = height
        self.fov = fov

        # pixels per unit at depth 1
        self._fov_scale = (height / 2) / math.tan(math.radians(fov / 2))

        self.position = Vector3()
        self._right = Vector3(1, 0, 0)
        self._up = Vector3(0, 1, 0)
        self._forward = Vector3(0, 0, -1)
        # world -> camera rotation, rows are right, up, back
        self._R = np.eye(3, dtype=np.float64)

        self.update_rotation(0)

    @property
    def right(self) -> Vector3:
        return self._right

    @property
    def up(self) -> Vector3:
        return self._up

    @property
    def forward(self) -> Vector3:
        return self._forward

    def update_rotation(self, dt):
        """Recompute position, direction vectors and the numpy rotation matrix."""
        cp = math.cos(self.pitch)
        sp = math.sin(self.pitch)
        cy = math.cos(self.yaw)
        sy = math.sin(self.yaw)

        offset = Vector3(cp * sy, sp, cp * cy)
        self.position = self.target + offset * self.distance
        self._forward = -offset
        self._right = Vector3(cy, 0, -sy)
        self._up = Vector3(-sy * sp, cp, -cy * sp)

        self._R = np.array(
            [
                [self._right.x, self._right.y, self._right.z],
                [self._up.x, self._up.y, self._up.z],
                [offset.x, offset.y, offset.z],
            ],
            dtype=np.float64,
        )

    def world_to_view(self, point):
        p = np.asarray(point, dtype=np.float64) - np.array(
            [self.position.x, self.position.y, self.position.z]
        )
        return self._R @ p

    def project(self, point):
        """Screen coordinates (x, y, depth) of a world point, or None if behind."""
        vx, vy, vz = self.world_to_view(point)
        depth = -vz
        if depth <= 1e-6:
            return None
        sx = self.width / 2 + vx * self._fov_scale / depth
        sy = self.height / 2 - vy * self._fov_scale / depth
        return float(sx), float(sy), float(depth)

    def orbit(self, d_yaw=0.0, d_pitch=0.0):
        self.yaw = (self.yaw + d_yaw) % math.tau
        self.pitch = max(-math.pi / 2 + 0.01, min(math.pi / 2 - 0.01, self.pitch + d_pitch))
        self.update_rotation(0)

    def pan(self, dx, dy):
        """Slide the orbit target along the view plane."""
        self.target += self._right * dx + self._up * dy
        self.update_rotation(0)

    def pick(self, items, x, y, radius_px=40.0):
        """Key of the item whose projected point is nearest (x, y) within radius_px.

        items: iterable of (key, world_point). Ties go to the nearer depth.
        """
        best = None
        best_score = None
        r2 = radius_px * radius_px
        for key, point in items:
            projected = self.project(point)
            if projected is None:
                continue
            sx, sy, depth = projected
            d2 = (sx - x) ** 2 + (sy - y) ** 2
            if d2 > r2:
                continue
            score = (d2, depth)
            if best_score is None or score < best_score:
                best, best_score = key, score
        return best
