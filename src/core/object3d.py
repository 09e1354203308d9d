from pygame.math import Vector3
import math


class Object3D:
    """Position / rotation / scale shared by fragments and their shapes.

    Rotation is in radians (pitch x, yaw y, roll z). Painters convert to
    degrees when pushing GL matrices.
    """

    def __init__(self, position=None, rotation=None, scale=1.0):
        self.position = Vector3(position) if position is not None else Vector3(0, 0, 0)
        self.rotation = Vector3(rotation) if rotation is not None else Vector3(0, 0, 0)
        self.scale = float(scale)

    def rotate(self, dx=0.0, dy=0.0, dz=0.0):
        self.rotation.x = (self.rotation.x + dx) % math.tau
        self.rotation.y = (self.rotation.y + dy) % math.tau
        self.rotation.z = (self.rotation.z + dz) % math.tau
        return self

    def move(self, dx=0.0, dy=0.0, dz=0.0):
        self.position += Vector3(dx, dy, dz)
        return self

    def to_world(self, point):
        """Transform a local point by scale, yaw then position (no pitch/roll)."""
        p = Vector3(point) * self.scale
        cy = math.cos(self.rotation.y)
        sy = math.sin(self.rotation.y)
        rotated = Vector3(p.x * cy - p.z * sy, p.y, p.x * sy + p.z * cy)
        return rotated + self.position
