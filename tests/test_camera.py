import math
from collections import defaultdict

import pygame
import pytest

from camera import Camera, CameraController
from config import CAMERA_MAX_DISTANCE, CAMERA_MIN_DISTANCE


@pytest.fixture
def camera():
    return Camera(target=(0, 0, 0), distance=10, yaw=0.3, pitch=0.4, width=800, height=600, fov=90)


def test_position_orbits_target(camera):
    offset = camera.position - camera.target
    assert offset.length() == pytest.approx(10)
    assert camera.forward.dot(offset.normalize()) == pytest.approx(-1)


def test_basis_is_orthonormal(camera):
    assert camera.right.dot(camera.up) == pytest.approx(0, abs=1e-9)
    assert camera.right.dot(camera.forward) == pytest.approx(0, abs=1e-9)
    assert camera.up.length() == pytest.approx(1)
    assert camera.up.y > 0


def test_target_projects_to_screen_center(camera):
    x, y, depth = camera.project(camera.target)
    assert x == pytest.approx(400)
    assert y == pytest.approx(300)
    assert depth == pytest.approx(10)


def test_right_and_up_map_to_screen_axes(camera):
    right_x, _, _ = camera.project(camera.target + camera.right)
    _, up_y, _ = camera.project(camera.target + camera.up)
    assert right_x > 400
    assert up_y < 300


def test_points_behind_camera_do_not_project(camera):
    behind = camera.position - camera.forward * 5
    assert camera.project(behind) is None


def test_pick_prefers_nearest_on_screen(camera):
    items = [("far", camera.target + camera.right * 3), ("center", camera.target)]
    assert camera.pick(items, 401, 299) == "center"
    assert camera.pick(items, 0, 0) is None


def test_pan_moves_target_in_view_plane(camera):
    before = camera.position.copy()
    camera.pan(1, 0)
    assert (camera.position - before).dot(camera.right) == pytest.approx(1)


def test_orbit_clamps_pitch(camera):
    camera.orbit(d_pitch=10)
    assert camera.pitch < math.pi / 2


def test_controller_zoom_is_clamped(camera):
    controller = CameraController(camera, smooth_hz=0)
    controller.on_wheel(1000)
    controller.update(0.016, keys=defaultdict(bool))
    assert camera.distance == pytest.approx(CAMERA_MIN_DISTANCE)
    controller.on_wheel(-1000)
    controller.update(0.016, keys=defaultdict(bool))
    assert camera.distance == pytest.approx(CAMERA_MAX_DISTANCE)


def test_controller_drag_orbits_and_smooths(camera):
    controller = CameraController(camera, smooth_hz=10)
    start = camera.yaw
    controller.on_mouse_drag((True, False, False), 100, 0)
    controller.update(0.016, keys=defaultdict(bool))
    assert controller.yaw_target < start
    assert controller.yaw_target < camera.yaw < start


def test_controller_keys_orbit(camera):
    controller = CameraController(camera, smooth_hz=0)
    keys = defaultdict(bool, {pygame.K_RIGHT: True})
    start = camera.yaw
    controller.update(0.5, keys=keys)
    assert camera.yaw > start
