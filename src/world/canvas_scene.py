"""Canvas scene: owns the orbit camera, input, frame driver and full rendering.

The scene turns keyboard and mouse input into coordinator calls, polls
finished generations once per update, and renders the registry through the
frame driver each frame. Selection lives here; it is cleared when the
selected record leaves the registry.
"""

from __future__ import annotations

import logging
import math
from itertools import cycle
from typing import Optional, Sequence

import pygame

from config import BACKGROUND, FOGDENSITY, FOV, HEIGHT, WIDTH
from core.scene import Scene
from camera import Camera, CameraController
from render.frame_driver import FrameDriver
from render.gl_painter import GLPainter
from render.grid_renderer import GridRenderer
from ui.hud import CanvasHUD
from world.canvas_object import ObjectKind
from world.coordinator import SceneCoordinator

from OpenGL.GL import (
    glEnable,
    glFogf,
    glFogi,
    glFogfv,
    glHint,
    glClear,
    glClearColor,
    glMatrixMode,
    glLoadIdentity,
    glRotatef,
    glTranslatef,
    glLightfv,
    glLightModelfv,
    glColorMaterial,
    GL_FOG,
    GL_FOG_MODE,
    GL_FOG_COLOR,
    GL_FOG_DENSITY,
    GL_FOG_HINT,
    GL_EXP2,
    GL_NICEST,
    GL_COLOR_BUFFER_BIT,
    GL_DEPTH_BUFFER_BIT,
    GL_PROJECTION,
    GL_MODELVIEW,
    GL_LIGHTING,
    GL_LIGHT0,
    GL_LIGHT1,
    GL_POSITION,
    GL_DIFFUSE,
    GL_LIGHT_MODEL_AMBIENT,
    GL_COLOR_MATERIAL,
    GL_FRONT_AND_BACK,
    GL_AMBIENT_AND_DIFFUSE,
    GL_NORMALIZE,
)
from OpenGL.GLU import gluPerspective

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS = (
    "a glowing cube that slowly spins",
    "a ring of small orbiting spheres",
    "a pulsing tower of stacked cubes",
)
DEFAULT_MODIFICATION = "make it spin faster and change its color"
_CLICK_SLOP_PX = 4


class CanvasScene(Scene):
    def __init__(
        self,
        coordinator: SceneCoordinator,
        text,
        *,
        prompts: Sequence[str] = (),
        camera: Optional[Camera] = None,
    ) -> None:
        super().__init__()
        self.coordinator = coordinator
        self.camera = camera or Camera()
        self._camera_controller = CameraController(self.camera)
        self.text = text
        self.frame_driver = FrameDriver(
            coordinator.registry,
            coordinator.compiler,
            GLPainter(self.camera, text),
        )
        self.grid = GridRenderer()
        self._hud = CanvasHUD(self)
        self._prompts = cycle(tuple(prompts) or DEFAULT_PROMPTS)
        self.selected_id: Optional[str] = None
        self._press_pos = None
        self._dt = 0.0
        self._unsubscribe = coordinator.registry.subscribe(self._on_registry_event)
        self._setup_graphics()
        logger.info("canvas scene ready")

    def _setup_graphics(self) -> None:
        glEnable(GL_FOG)
        glFogi(GL_FOG_MODE, GL_EXP2)
        glFogf(GL_FOG_DENSITY, FOGDENSITY)
        glFogfv(GL_FOG_COLOR, BACKGROUND)
        glHint(GL_FOG_HINT, GL_NICEST)

        glEnable(GL_LIGHTING)
        glEnable(GL_NORMALIZE)
        glEnable(GL_COLOR_MATERIAL)
        glColorMaterial(GL_FRONT_AND_BACK, GL_AMBIENT_AND_DIFFUSE)
        glLightModelfv(GL_LIGHT_MODEL_AMBIENT, (0.4, 0.4, 0.4, 1.0))
        glEnable(GL_LIGHT0)
        glEnable(GL_LIGHT1)
        glLightfv(GL_LIGHT0, GL_DIFFUSE, (0.0, 1.0, 1.0, 1.0))
        glLightfv(GL_LIGHT1, GL_DIFFUSE, (1.0, 0.0, 1.0, 1.0))

    # --------------------------- selection ------------------------------
    def _on_registry_event(self, event: str, obj) -> None:
        if event == "remove" and obj.id == self.selected_id:
            self.selected_id = None

    def cycle_selection(self) -> Optional[str]:
        ids = self.coordinator.registry.ids()
        if not ids:
            self.selected_id = None
        elif self.selected_id not in ids:
            self.selected_id = ids[0]
        else:
            self.selected_id = ids[(ids.index(self.selected_id) + 1) % len(ids)]
        return self.selected_id

    def select_at(self, x: float, y: float) -> Optional[str]:
        items = ((o.id, o.position) for o in self.coordinator.registry.list())
        self.selected_id = self.camera.pick(items, x, y)
        return self.selected_id

    # --------------------------- input ----------------------------------
    def handle_event(self, event) -> None:
        if event.type == pygame.KEYDOWN:
            self._handle_key(event)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._press_pos = event.pos
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            if self._press_pos is not None:
                px, py = self._press_pos
                x, y = event.pos
                if abs(x - px) <= _CLICK_SLOP_PX and abs(y - py) <= _CLICK_SLOP_PX:
                    self.select_at(x, y)
            self._press_pos = None
        elif event.type == pygame.MOUSEMOTION and any(event.buttons):
            self._camera_controller.on_mouse_drag(event.buttons, *event.rel)
        elif event.type == pygame.MOUSEWHEEL:
            self._camera_controller.on_wheel(event.y)

    def _handle_key(self, event) -> None:
        key = event.key
        coordinator = self.coordinator
        if key == pygame.K_c:
            coordinator.add_builtin(ObjectKind.CUBE)
        elif key == pygame.K_s:
            coordinator.add_builtin(ObjectKind.SPHERE)
        elif key == pygame.K_t:
            coordinator.add_builtin(ObjectKind.TEXT)
        elif key == pygame.K_g:
            coordinator.request_object(next(self._prompts))
        elif key == pygame.K_m and self.selected_id is not None:
            coordinator.request_modification(self.selected_id, DEFAULT_MODIFICATION)
        elif key == pygame.K_u:
            coordinator.request_ui("a panel of quick actions for the selected object")
        elif key == pygame.K_i:
            coordinator.request_self_improvement()
        elif key == pygame.K_TAB:
            self.cycle_selection()
        elif key == pygame.K_f and self.selected_id is not None:
            obj = coordinator.registry.get(self.selected_id)
            if obj is not None:
                self._camera_controller.focus(obj.position)
        elif key in (pygame.K_DELETE, pygame.K_BACKSPACE) and self.selected_id is not None:
            coordinator.delete_object(self.selected_id)
        elif pygame.K_1 <= key <= pygame.K_9:
            tools = coordinator.tools.list()
            index = key - pygame.K_1
            if index < len(tools):
                coordinator.execute_tool(tools[index].id)

    # --------------------------- frame ----------------------------------
    def update(self, dt: float) -> None:
        self._dt = dt
        self.coordinator.poll()
        self._camera_controller.update(dt)
        super().update(dt)

    def render(self, *, text=None, fps: Optional[float] = None):  # pragma: no cover - visual
        glClearColor(*BACKGROUND)
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)

        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        gluPerspective(FOV, WIDTH / HEIGHT, 0.1, 1000.0)

        glMatrixMode(GL_MODELVIEW)
        glLoadIdentity()
        cam = self.camera
        glTranslatef(0.0, 0.0, -cam.distance)
        glRotatef(math.degrees(cam.pitch), 1, 0, 0)
        glRotatef(math.degrees(-cam.yaw), 0, 1, 0)
        glTranslatef(-cam.target.x, -cam.target.y, -cam.target.z)

        # lights are placed in world space after the view transform
        glLightfv(GL_LIGHT0, GL_POSITION, (10.0, 10.0, 10.0, 1.0))
        glLightfv(GL_LIGHT1, GL_POSITION, (-10.0, -10.0, -10.0, 1.0))

        self.grid.draw()
        self.frame_driver.tick(self._dt)
        if self.selected_id is not None:
            obj = self.coordinator.registry.get(self.selected_id)
            if obj is not None:
                self.frame_driver.painter.highlight(obj.position, 1.5)

        self._hud.draw(text or self.text, fps)

    def close(self) -> None:
        self._unsubscribe()
        self.frame_driver.close()
        self.coordinator.shutdown()
