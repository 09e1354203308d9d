"""CameraController: orbit, zoom and pan input with smoothing.

Mouse drags and wheel notches only move targets; ``update()`` eases the
camera toward them each frame so motion stays smooth at any frame rate.
"""

from __future__ import annotations

import math
import pygame

from config import (
    CAMERA_MAX_DISTANCE,
    CAMERA_MIN_DISTANCE,
    CAMERA_PAN_SPEED,
    CAMERA_ROTATE_SPEED,
    CAMERA_SMOOTH_HZ,
    CAMERA_ZOOM_STEP,
)

_PITCH_LIMIT = math.pi / 2 - 0.01
_KEY_ORBIT_SPEED = 1.5  # radians per second


class CameraController:
    def __init__(self, camera, *, smooth_hz: float = CAMERA_SMOOTH_HZ):
        self.camera = camera
        self.yaw_target = float(camera.yaw)
        self.pitch_target = float(camera.pitch)
        self.distance_target = float(camera.distance)
        self.smooth_hz = float(smooth_hz)

    def on_mouse_drag(self, buttons, dx: float, dy: float) -> None:
        """Left drag orbits, right (or middle) drag pans."""
        left, middle, right = (tuple(buttons) + (False, False, False))[:3]
        if left:
            self.yaw_target -= dx * CAMERA_ROTATE_SPEED
            cand = self.pitch_target + dy * CAMERA_ROTATE_SPEED
            self.pitch_target = max(-_PITCH_LIMIT, min(_PITCH_LIMIT, cand))
        elif right or middle:
            scale = CAMERA_PAN_SPEED * self.camera.distance / 10.0
            self.camera.pan(-dx * scale, dy * scale)

    def on_wheel(self, notches: float) -> None:
        cand = self.distance_target - notches * CAMERA_ZOOM_STEP
        self.distance_target = max(CAMERA_MIN_DISTANCE, min(CAMERA_MAX_DISTANCE, cand))

    def focus(self, point) -> None:
        self.camera.target.update(*point)
        self.camera.update_rotation(0)

    def update(self, dt: float, keys=None) -> None:
        if keys is None:
            keys = pygame.key.get_pressed()
        if keys[pygame.K_LEFT]:
            self.yaw_target -= _KEY_ORBIT_SPEED * dt
        if keys[pygame.K_RIGHT]:
            self.yaw_target += _KEY_ORBIT_SPEED * dt
        if keys[pygame.K_UP]:
            self.pitch_target = min(_PITCH_LIMIT, self.pitch_target + _KEY_ORBIT_SPEED * dt)
        if keys[pygame.K_DOWN]:
            self.pitch_target = max(-_PITCH_LIMIT, self.pitch_target - _KEY_ORBIT_SPEED * dt)

        cam = self.camera
        if self.smooth_hz <= 0 or dt <= 0:
            cam.yaw = self.yaw_target
            cam.pitch = self.pitch_target
            cam.distance = self.distance_target
        else:
            alpha = 1.0 - math.exp(-self.smooth_hz * dt)
            cam.yaw += (self.yaw_target - cam.yaw) * alpha
            cam.pitch += (self.pitch_target - cam.pitch) * alpha
            cam.distance += (self.distance_target - cam.distance) * alpha
        cam.update_rotation(dt)


__all__ = ["CameraController"]
