from __future__ import annotations

import logging
from dataclasses import dataclass

import moderngl
import numpy as np

from procgen.config import FAR, FOV_DEG, NEAR
from procgen.render.shaders import shader_sources
from procgen.render.textures import build_atlas_texture
from procgen.util.math import perspective
from procgen.world.chunk import ChunkCoord, ChunkResult

logger = logging.getLogger(__name__)

_SKY_VERT = """#version 150
in vec2 in_pos;
out vec2 v_uv;
void main() {
    v_uv = in_pos * 0.5 + 0.5;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

_SKY_FRAG = """#version 150
in vec2 v_uv;
out vec4 f_color;

void main() {
    // Gradient: horizon -> zenith
    vec3 horizon = vec3(0.78, 0.86, 0.96);
    vec3 zenith  = vec3(0.40, 0.60, 0.85);
    float t = smoothstep(0.0, 1.0, v_uv.y);
    f_color = vec4(mix(horizon, zenith, t), 1.0);
}
"""


@dataclass
class ChunkGPU:
    coord: ChunkCoord
    offset: tuple[float, float, float]
    vao: moderngl.VertexArray
    vbo: moderngl.Buffer
    ibo: moderngl.Buffer


class Renderer:
    """Draws finished chunks. Acts as the ChunkConsumer of the viewer."""

    def __init__(self, ctx: moderngl.Context, width: int, height: int, *, atlas_seed: int = 0) -> None:
        self.ctx = ctx
        self.width = width
        self.height = height

        vert, frag = shader_sources(ctx.version_code)
        self.prog = self.ctx.program(vertex_shader=vert, fragment_shader=frag)
        self.atlas = build_atlas_texture(ctx, seed=atlas_seed)

        self._proj = perspective(FOV_DEG, width / height, NEAR, FAR).astype(np.float32)
        self.prog["u_proj"].write(self._proj.tobytes())
        self.prog["u_atlas"].value = 0

        self.ctx.enable(moderngl.DEPTH_TEST)
        self.ctx.disable(moderngl.CULL_FACE)

        # Sky quad
        self._sky_prog = self.ctx.program(vertex_shader=_SKY_VERT, fragment_shader=_SKY_FRAG)
        sky = np.array([
            -1.0, -1.0,
             1.0, -1.0,
            -1.0,  1.0,
             1.0,  1.0,
        ], dtype=np.float32)
        self._sky_vbo = self.ctx.buffer(sky.tobytes())
        self._sky_vao = self.ctx.vertex_array(self._sky_prog, [(self._sky_vbo, "2f", "in_pos")])

        self.chunks: dict[ChunkCoord, ChunkGPU] = {}

    def consume(self, result: ChunkResult) -> None:
        """Upload one chunk. Replaces a previous upload of the same coordinate."""
        old = self.chunks.pop(result.coord, None)
        if old is not None:
            self._release_chunk(old)

        mesh = result.mesh
        vbo = self.ctx.buffer(mesh.interleaved().tobytes())
        ibo = self.ctx.buffer(mesh.indices.astype(np.uint32).tobytes())
        vao = self.ctx.vertex_array(
            self.prog,
            [
                (vbo, "3f 3f 2f", "in_pos", "in_norm", "in_uv"),
            ],
            ibo,
            index_element_size=4,
        )
        offset = (float(result.offset[0]), 0.0, float(result.offset[1]))
        self.chunks[result.coord] = ChunkGPU(coord=result.coord, offset=offset, vao=vao, vbo=vbo, ibo=ibo)
        logger.debug("uploaded chunk (%d, %d): %d vertices", result.coord.cx, result.coord.cz, mesh.vertex_count)

    @staticmethod
    def _release_chunk(ch: ChunkGPU) -> None:
        ch.vao.release()
        ch.vbo.release()
        ch.ibo.release()

    def release(self) -> None:
        for ch in self.chunks.values():
            self._release_chunk(ch)
        self.chunks.clear()
        for obj in [self._sky_vao, self._sky_vbo, self._sky_prog, self.atlas, self.prog]:
            obj.release()

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.ctx.viewport = (0, 0, width, height)
        self._proj = perspective(FOV_DEG, width / height, NEAR, FAR).astype(np.float32)
        self.prog["u_proj"].write(self._proj.tobytes())

    def begin_frame(self) -> None:
        self.ctx.clear(0.70, 0.80, 0.92, 1.0)

    def draw_sky(self) -> None:
        self.ctx.disable(moderngl.DEPTH_TEST)
        self._sky_vao.render(mode=moderngl.TRIANGLE_STRIP)
        self.ctx.enable(moderngl.DEPTH_TEST)

    def set_common_uniforms(
        self,
        view: np.ndarray,
        cam_pos: np.ndarray,
        light_dir: np.ndarray,
        fog_start: float,
        fog_end: float,
    ) -> None:
        self.prog["u_view"].write(view.astype(np.float32).tobytes())
        self.prog["u_cam_pos"].value = (float(cam_pos[0]), float(cam_pos[1]), float(cam_pos[2]))
        self.prog["u_light_dir"].value = (float(light_dir[0]), float(light_dir[1]), float(light_dir[2]))
        self.prog["u_fog_start"].value = float(fog_start)
        self.prog["u_fog_end"].value = float(fog_end)

    def draw_chunks(self) -> None:
        self.atlas.use(location=0)
        for ch in self.chunks.values():
            self.prog["u_offset"].value = ch.offset
            ch.vao.render()
