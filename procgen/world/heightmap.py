from __future__ import annotations

import logging

import numpy as np

from procgen.config import SEED_HASH_X, SEED_HASH_Z
from procgen.errors import ChunkGenerationError, ProcgenError
from procgen.world.chunk import ChunkCoord, ChunkRecord
from procgen.world.erosion import DropletErosion
from procgen.world.noise import NoiseField

logger = logging.getLogger(__name__)


def _wrap_i32(v: int) -> int:
    v &= 0xFFFFFFFF
    return v - (1 << 32) if v >= (1 << 31) else v


def chunk_seed(base_seed: int, offset_x: int, offset_z: int) -> int:
    """Deterministic erosion seed for the chunk at a world sample offset.

    ``(base + offset_x * 73856093) ^ (offset_z * 19349663)`` in signed 32-bit
    arithmetic. Depends only on the offset, never on generation order.
    """
    hx = _wrap_i32(int(base_seed) + _wrap_i32(int(offset_x) * SEED_HASH_X))
    hz = _wrap_i32(int(offset_z) * SEED_HASH_Z)
    return _wrap_i32(hx ^ hz)


class HeightmapBuilder:
    """Samples and (optionally) erodes one chunk lattice at a time.

    Holds no per-chunk state: every chunk gets its own lattice and its own
    erosion seed, so chunks can be built in any order.
    """

    def __init__(
        self,
        noise: NoiseField,
        width: int,
        depth: int,
        *,
        erosion: DropletErosion | None = None,
        erosion_iterations: int = 0,
        base_seed: int = 0,
    ) -> None:
        self.noise = noise
        self.width = int(width)
        self.depth = int(depth)
        self.erosion = erosion
        self.erosion_iterations = int(erosion_iterations)
        self.base_seed = int(base_seed)

    @property
    def erosion_enabled(self) -> bool:
        return self.erosion is not None and self.erosion_iterations > 0

    @property
    def lattice_size(self) -> int:
        return (self.width + 1) * (self.depth + 1)

    def build_lattice(self, offset_x: int, offset_z: int) -> np.ndarray:
        """Sample the noise window at the given world offset, then erode it."""
        nw = self.width + 1
        nd = self.depth + 1
        lattice = np.ascontiguousarray(self.noise.sample(nw, nd, offset_x, offset_z), dtype=np.float32)
        if lattice.size != self.lattice_size:
            raise ProcgenError(f"noise field returned {lattice.size} samples, expected {self.lattice_size}")

        if self.erosion_enabled:
            seed = chunk_seed(self.base_seed, offset_x, offset_z)
            self.erosion.erode(lattice, nw, nd, self.erosion_iterations, seed, deposit_on_boundary=True)
            if lattice.size != self.lattice_size:
                raise ProcgenError("erosion changed the lattice length")
        return lattice

    def build(self, coord: ChunkCoord) -> ChunkRecord:
        offset_x = coord.cx * self.width
        offset_z = coord.cz * self.depth
        try:
            lattice = self.build_lattice(offset_x, offset_z)
        except Exception as e:
            raise ChunkGenerationError(coord.cx, coord.cz, str(e) or type(e).__name__) from e

        logger.debug(
            "built chunk (%d, %d) offset=(%d, %d) range=[%.4f, %.4f]",
            coord.cx, coord.cz, offset_x, offset_z, float(lattice.min()), float(lattice.max()),
        )
        return ChunkRecord(coord=coord, lattice=lattice, offset_x=offset_x, offset_z=offset_z)
