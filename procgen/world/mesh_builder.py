from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from procgen.config import UV_INSET
from procgen.errors import LatticeShapeError
from procgen.world.params import TextureThresholds

TILE_SNOW = 0
TILE_ROCK = 1
TILE_GRASS = 2
TILE_SAND = 3
TILE_NAMES = ("snow", "rock", "grass", "sand")

# Atlas rectangles (u0, v0, u1, v1), indexed by tile id
ATLAS_TILES = np.array(
    [
        [0.00, 0.75, 0.25, 1.00],  # snow
        [0.50, 0.50, 0.75, 0.75],  # rock
        [0.75, 0.00, 1.00, 0.25],  # grass
        [0.75, 0.50, 1.00, 0.75],  # sand
    ],
    dtype=np.float32,
)

# Two triangles per quad over the quad's local vertices v00, v01, v10, v11
_QUAD_PATTERN = np.array([0, 1, 2, 2, 1, 3], dtype=np.uint32)


@dataclass(frozen=True)
class TessellatedMesh:
    positions: np.ndarray  # (N,3) float32, chunk-local
    uvs: np.ndarray  # (N,2) float32
    indices: np.ndarray  # (M,) uint32, M % 3 == 0
    normals: np.ndarray  # (N,3) float32
    tiles: np.ndarray  # (W*D,) int8 tile id per quad
    bounds_min: np.ndarray  # (3,) float32
    bounds_max: np.ndarray  # (3,) float32

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.size // 3)

    def interleaved(self) -> np.ndarray:
        """Vertex buffer rows: pos (3) + norm (3) + uv (2), float32."""
        return np.concatenate([self.positions, self.normals, self.uvs], axis=1).astype(np.float32)


def tile_uv_rect(tile: int, inset: float = UV_INSET) -> tuple[float, float, float, float]:
    u0, v0, u1, v1 = (float(c) for c in ATLAS_TILES[int(tile)])
    return u0 + inset, v0 + inset, u1 - inset, v1 - inset


def select_tiles(avg_heights: np.ndarray, thresholds: TextureThresholds) -> np.ndarray:
    """Map average quad heights to tile ids.

    Priority snow > rock > grass > sand; a height equal to a threshold gets
    the higher tile. Later assignments win, so the order below implements
    "first match" even when the thresholds are not sorted.
    """
    avg = np.asarray(avg_heights)
    tiles = np.full(avg.shape, TILE_SAND, dtype=np.int8)
    tiles[avg >= thresholds.grass] = TILE_GRASS
    tiles[avg >= thresholds.rock] = TILE_ROCK
    tiles[avg >= thresholds.snow] = TILE_SNOW
    return tiles


def world_heights(lattice: np.ndarray, max_height: float) -> np.ndarray:
    """Normalized samples -> world Y, centered vertically around 0."""
    mh = np.float32(max_height)
    return np.asarray(lattice, dtype=np.float32) * mh - mh / np.float32(2.0)


def _vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    # Sum of face normals over the triangles that use each vertex
    tri = indices.reshape(-1, 3).astype(np.int64)
    p0 = positions[tri[:, 0]]
    p1 = positions[tri[:, 1]]
    p2 = positions[tri[:, 2]]
    face = np.cross(p1 - p0, p2 - p0)

    acc = np.zeros_like(positions, dtype=np.float32)
    for k in range(3):
        np.add.at(acc, tri[:, k], face)
    n_norm = np.linalg.norm(acc, axis=-1, keepdims=True)
    return (acc / np.maximum(n_norm, 1e-8)).astype(np.float32)


def tessellate(
    lattice: np.ndarray,
    width: int,
    depth: int,
    max_height: float,
    thresholds: TextureThresholds,
    *,
    inset: float = UV_INSET,
) -> TessellatedMesh:
    """Build faceted chunk geometry from a (width+1) x (depth+1) node lattice.

    Every cell becomes its own quad with four private vertices
    (v00, v01, v10, v11) so that each quad can carry its own atlas tile.
    Quads are emitted x-major: cell (x, z) is quad number ``x * depth + z``.
    """
    w = int(width)
    d = int(depth)
    lat = np.asarray(lattice)
    expected = (w + 1) * (d + 1)
    if w < 1 or d < 1 or lat.size != expected:
        raise LatticeShapeError(f"lattice has {lat.size} samples, expected ({w}+1)*({d}+1)={expected}")

    h = world_heights(lat.reshape(-1), max_height).reshape(w + 1, d + 1)
    y00 = h[:-1, :-1]
    y10 = h[1:, :-1]
    y01 = h[:-1, 1:]
    y11 = h[1:, 1:]

    xs = np.arange(w, dtype=np.float32)[:, None]
    zs = np.arange(d, dtype=np.float32)[None, :]
    gx = np.broadcast_to(xs, (w, d))
    gz = np.broadcast_to(zs, (w, d))

    pos = np.empty((w, d, 4, 3), dtype=np.float32)
    pos[:, :, 0] = np.stack([gx, y00, gz], axis=-1)
    pos[:, :, 1] = np.stack([gx, y01, gz + 1.0], axis=-1)
    pos[:, :, 2] = np.stack([gx + 1.0, y10, gz], axis=-1)
    pos[:, :, 3] = np.stack([gx + 1.0, y11, gz + 1.0], axis=-1)

    avg = (y00 + y01 + y10 + y11) * np.float32(0.25)
    tiles = select_tiles(avg, thresholds)

    rect = ATLAS_TILES[tiles] + np.array([inset, inset, -inset, -inset], dtype=np.float32)
    u0, v0, u1, v1 = rect[..., 0], rect[..., 1], rect[..., 2], rect[..., 3]
    uv = np.empty((w, d, 4, 2), dtype=np.float32)
    uv[:, :, 0] = np.stack([u0, v0], axis=-1)
    uv[:, :, 1] = np.stack([u0, v1], axis=-1)
    uv[:, :, 2] = np.stack([u1, v0], axis=-1)
    uv[:, :, 3] = np.stack([u1, v1], axis=-1)

    positions = pos.reshape(-1, 3)
    uvs = uv.reshape(-1, 2)

    base = np.arange(w * d, dtype=np.uint32) * np.uint32(4)
    indices = (base[:, None] + _QUAD_PATTERN[None, :]).reshape(-1).astype(np.uint32)

    normals = _vertex_normals(positions, indices)

    return TessellatedMesh(
        positions=positions,
        uvs=uvs,
        indices=indices,
        normals=normals,
        tiles=tiles.reshape(-1),
        bounds_min=positions.min(axis=0),
        bounds_max=positions.max(axis=0),
    )
