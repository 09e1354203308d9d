"""Core engine loop & orchestration.

Separates concerns:
- Engine: sets up window, GL state, main loop.
- Scene: holds the canvas, input handling and rendering.
- Overlay: HUD text drawn by the scene through the shared TextRenderer.

The cursor stays free: the canvas is driven by mouse drags and clicks.
"""

from __future__ import annotations

import logging
from typing import Callable

import pygame
from OpenGL.GL import (
    glEnable,
    glDisable,
    glClearColor,
    glDepthFunc,
    GL_DEPTH_TEST,
    GL_LEQUAL,
    GL_CULL_FACE,
)

from config import BACKGROUND, FPS, FULLSCREEN, HEIGHT, VSYNC, WIDTH
from core.scene import Scene
from ui.text_renderer import TextRenderer

logger = logging.getLogger(__name__)

SceneFactory = Callable[[TextRenderer], Scene]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class Engine:
    def __init__(self, scene_factory: SceneFactory, *, caption: str = "Genesis Canvas"):
        pygame.init()
        pygame.display.gl_set_attribute(pygame.GL_DEPTH_SIZE, 24)
        pygame.display.gl_set_attribute(pygame.GL_MULTISAMPLEBUFFERS, 1)
        pygame.display.gl_set_attribute(pygame.GL_MULTISAMPLESAMPLES, 4)
        pygame.display.set_caption(caption)
        flags = pygame.DOUBLEBUF | pygame.OPENGL
        if FULLSCREEN:
            flags |= pygame.FULLSCREEN
        try:
            # vsync: 1 to enable, 0 to disable
            pygame.display.set_mode((WIDTH, HEIGHT), flags, vsync=(1 if VSYNC else 0))
        except (TypeError, pygame.error):
            # vsync requested but unavailable on this driver
            logger.info("vsync unavailable, opening window without it")
            pygame.display.set_mode((WIDTH, HEIGHT), flags)
        self.clock = pygame.time.Clock()

        # GL state
        glEnable(GL_DEPTH_TEST)
        glDepthFunc(GL_LEQUAL)
        glDisable(GL_CULL_FACE)
        glClearColor(*BACKGROUND)

        self.text = TextRenderer(WIDTH, HEIGHT)
        # Active scene (owns camera & input); needs the GL context above
        self.scene = scene_factory(self.text)

    # ------------------------------------------------------------------
    def handle_events(self) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False
            self.scene.handle_event(event)
        return True

    # ------------------------------------------------------------------
    def update(self, dt: float):
        self.scene.update(dt)

    # ------------------------------------------------------------------
    def render(self):  # pragma: no cover - visual
        self.scene.render(text=self.text, fps=self.clock.get_fps())
        pygame.display.flip()

    # ------------------------------------------------------------------
    def step(self) -> bool:
        """Run one frame; False once the window should close."""
        dt = self.clock.tick(FPS) / 1000.0
        if not self.handle_events():
            return False
        self.update(dt)
        self.render()
        return True

    def run(self):  # pragma: no cover - visual
        logger.info("canvas running at %dx%d", WIDTH, HEIGHT)
        try:
            while self.step():
                pass
        finally:
            self.scene.close()
            self.text.release()
            pygame.quit()
