from __future__ import annotations

import numpy as np
import moderngl

from procgen.config import ATLAS_SIZE
from procgen.world.mesh_builder import ATLAS_TILES, TILE_GRASS, TILE_ROCK, TILE_SAND, TILE_SNOW

# Base colour and per-channel noise strength for each tile
_TILE_COLORS = {
    TILE_SNOW: ((0.92, 0.94, 0.98), 0.05),
    TILE_ROCK: ((0.50, 0.49, 0.47), 0.30),
    TILE_GRASS: ((0.20, 0.48, 0.16), 0.22),
    TILE_SAND: ((0.82, 0.74, 0.52), 0.12),
}


def _soft_noise(h: int, w: int, *, seed: int, octaves: int = 4) -> np.ndarray:
    """Low-frequency value noise in [0, 1] for tile texturing."""
    rng = np.random.default_rng(int(seed) & 0xFFFFFFFF)
    img = np.zeros((h, w), dtype=np.float32)
    amp = 1.0
    total = 0.0
    for o in range(int(octaves)):
        step = max(1, 2 ** (o + 2))
        gh = max(2, h // step)
        gw = max(2, w // step)
        grid = rng.random((gh + 1, gw + 1), dtype=np.float32)

        # Bilinear upsample
        yy = np.linspace(0.0, gh, h, endpoint=False)
        xx = np.linspace(0.0, gw, w, endpoint=False)
        y0 = np.floor(yy).astype(np.int32)
        x0 = np.floor(xx).astype(np.int32)
        y1 = np.minimum(y0 + 1, gh)
        x1 = np.minimum(x0 + 1, gw)
        fy = (yy - y0).astype(np.float32)
        fx = (xx - x0).astype(np.float32)

        g00 = grid[y0[:, None], x0[None, :]]
        g10 = grid[y1[:, None], x0[None, :]]
        g01 = grid[y0[:, None], x1[None, :]]
        g11 = grid[y1[:, None], x1[None, :]]

        a = g00 * (1.0 - fy)[:, None] + g10 * fy[:, None]
        b = g01 * (1.0 - fy)[:, None] + g11 * fy[:, None]
        img += (a * (1.0 - fx)[None, :] + b * fx[None, :]) * amp
        total += amp
        amp *= 0.55

    return img / max(1e-6, total)


def tile_pixel_rect(tile: int, size: int) -> tuple[int, int, int, int]:
    """Pixel rows/cols (r0, r1, c0, c1) of a tile; row index follows v."""
    u0, v0, u1, v1 = (float(c) for c in ATLAS_TILES[int(tile)])
    s = int(size)
    return int(round(v0 * s)), int(round(v1 * s)), int(round(u0 * s)), int(round(u1 * s))


def build_atlas_image(*, seed: int, size: int = ATLAS_SIZE) -> np.ndarray:
    """RGBA uint8 atlas (size, size, 4), row 0 at v = 0.

    Only the four tile rectangles are painted; the rest stays a neutral
    grey, which makes UV mistakes easy to spot.
    """
    s = int(size)
    img = np.zeros((s, s, 4), dtype=np.float32)
    img[..., :3] = 0.5
    img[..., 3] = 1.0

    for tile, (color, strength) in _TILE_COLORS.items():
        r0, r1, c0, c1 = tile_pixel_rect(tile, s)
        th, tw = r1 - r0, c1 - c0
        n = _soft_noise(th, tw, seed=int(seed) + 101 * (tile + 1), octaves=4)
        for ch in range(3):
            img[r0:r1, c0:c1, ch] = color[ch] + strength * (n - 0.5)

    return np.clip(img * 255.0, 0, 255).astype(np.uint8)


def build_atlas_texture(ctx: moderngl.Context, *, seed: int, size: int = ATLAS_SIZE) -> moderngl.Texture:
    img = build_atlas_image(seed=seed, size=size)
    tex = ctx.texture((int(size), int(size)), 4, data=img.tobytes(order="C"))
    tex.repeat_x = False
    tex.repeat_y = False
    tex.filter = (moderngl.LINEAR_MIPMAP_LINEAR, moderngl.LINEAR)
    tex.build_mipmaps()
    return tex
