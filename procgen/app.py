from __future__ import annotations

import logging
import time

import moderngl
import numpy as np
import pygame

from procgen.config import (
    APP_VERSION,
    DEFAULT_ORBIT_DISTANCE,
    DEFAULT_ORBIT_PITCH,
    FOG_END,
    FOG_START,
    FPS_CAP,
    LIGHT_DIR,
    ORBIT_SMOOTH_K,
    ORBIT_YAW_RATE,
    ORBIT_ZOOM_RATE,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
)
from procgen.render.camera import CameraOrbit
from procgen.render.renderer import Renderer
from procgen.util.math import bounds_center, normalize
from procgen.world.params import TerrainParams
from procgen.world.world import TerrainGenerator

logger = logging.getLogger(__name__)


def _init_pygame_gl() -> None:
    pygame.init()
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MAJOR_VERSION, 3)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MINOR_VERSION, 3)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE)
    pygame.display.gl_set_attribute(pygame.GL_DEPTH_SIZE, 24)
    pygame.display.gl_set_attribute(pygame.GL_DOUBLEBUFFER, 1)


def _axis(keys, neg: int, pos: int) -> float:
    return float(bool(keys[pos])) - float(bool(keys[neg]))


def run_app(params: TerrainParams, *, wireframe: bool = False) -> None:
    """Generate the terrain batch and show it in an orbit viewer."""
    # Fail on bad parameters before a window appears
    generator = TerrainGenerator(params)

    _init_pygame_gl()

    flags = pygame.OPENGL | pygame.DOUBLEBUF | pygame.RESIZABLE
    pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT), flags)
    pygame.display.set_caption(f"procgen v{APP_VERSION} (seed={params.seed})")

    try:
        ctx = moderngl.create_context()
    except Exception as e:
        pygame.quit()
        raise RuntimeError("Failed to create ModernGL context (need OpenGL 3.2+)") from e

    logger.debug(
        "moderngl ctx version_code=%s vendor=%s renderer=%s",
        ctx.version_code, ctx.info.get("GL_VENDOR"), ctx.info.get("GL_RENDERER"),
    )

    ctx.viewport = (0, 0, WINDOW_WIDTH, WINDOW_HEIGHT)
    if wireframe:
        ctx.wireframe = True

    renderer = Renderer(ctx, WINDOW_WIDTH, WINDOW_HEIGHT, atlas_seed=params.seed)

    try:
        results = generator.generate_into(renderer)

        cx, cz = bounds_center(r.bounds for r in results)
        cam = CameraOrbit(
            (cx, 0.0, cz),
            distance=max(DEFAULT_ORBIT_DISTANCE, float(params.chunk_width * (2 * params.radius - 1))),
            pitch=DEFAULT_ORBIT_PITCH,
            smooth_k=ORBIT_SMOOTH_K,
        )
        light_dir = normalize(np.array(LIGHT_DIR, dtype=np.float32))

        clock = pygame.time.Clock()
        running = True
        last_t = time.perf_counter()
        while running:
            now = time.perf_counter()
            dt = min(now - last_t, 0.05)
            last_t = now

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    w, h = max(64, event.w), max(64, event.h)
                    pygame.display.set_mode((w, h), flags)
                    renderer.resize(w, h)

            keys = pygame.key.get_pressed()
            cam.update(
                dt,
                turn=_axis(keys, pygame.K_LEFT, pygame.K_RIGHT),
                zoom=_axis(keys, pygame.K_a, pygame.K_q),
                yaw_rate=ORBIT_YAW_RATE,
                zoom_rate=ORBIT_ZOOM_RATE,
            )

            renderer.begin_frame()
            renderer.draw_sky()
            renderer.set_common_uniforms(
                view=cam.view_matrix(),
                cam_pos=cam.eye(),
                light_dir=light_dir,
                fog_start=FOG_START,
                fog_end=FOG_END,
            )
            renderer.draw_chunks()
            pygame.display.flip()

            if FPS_CAP and FPS_CAP > 0:
                clock.tick(FPS_CAP)
            else:
                clock.tick()
    finally:
        renderer.release()
        pygame.quit()
