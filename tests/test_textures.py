from __future__ import annotations

import numpy as np

from procgen.render.textures import build_atlas_image, tile_pixel_rect
from procgen.world.mesh_builder import TILE_GRASS, TILE_ROCK, TILE_SAND, TILE_SNOW


def test_atlas_shape_and_background() -> None:
    img = build_atlas_image(seed=3, size=64)
    assert img.shape == (64, 64, 4)
    assert img.dtype == np.uint8
    assert np.all(img[..., 3] == 255)
    # top-left corner belongs to no tile
    assert img[0, 0, :3].tolist() == [127, 127, 127]


def test_tile_rects_match_uv_layout() -> None:
    assert tile_pixel_rect(TILE_SNOW, 512) == (384, 512, 0, 128)
    assert tile_pixel_rect(TILE_ROCK, 512) == (256, 384, 256, 384)
    assert tile_pixel_rect(TILE_GRASS, 512) == (0, 128, 384, 512)
    assert tile_pixel_rect(TILE_SAND, 512) == (256, 384, 384, 512)


def test_tiles_are_painted() -> None:
    img = build_atlas_image(seed=0, size=128).astype(np.float32)

    def mean(tile: int) -> np.ndarray:
        r0, r1, c0, c1 = tile_pixel_rect(tile, 128)
        return img[r0:r1, c0:c1, :3].reshape(-1, 3).mean(axis=0)

    snow, grass = mean(TILE_SNOW), mean(TILE_GRASS)
    assert snow.mean() > grass.mean() + 80.0
    # grass is green-dominant
    assert grass[1] > grass[0] and grass[1] > grass[2]


def test_atlas_is_seeded() -> None:
    a = build_atlas_image(seed=5, size=64)
    b = build_atlas_image(seed=5, size=64)
    c = build_atlas_image(seed=6, size=64)
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)
