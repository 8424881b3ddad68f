from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from procgen.world.mesh_builder import TessellatedMesh


@dataclass(frozen=True, order=True)
class ChunkCoord:
    cx: int
    cz: int

    def right(self) -> "ChunkCoord":
        return ChunkCoord(self.cx + 1, self.cz)

    def forward(self) -> "ChunkCoord":
        return ChunkCoord(self.cx, self.cz + 1)


@dataclass
class ChunkRecord:
    coord: ChunkCoord
    lattice: np.ndarray  # float32 (W+1)*(D+1), index x*(D+1)+z
    offset_x: int
    offset_z: int


@dataclass(frozen=True)
class ChunkResult:
    coord: ChunkCoord
    offset: tuple[int, int]
    bounds: tuple[float, float, float, float]  # x_min, x_max, z_min, z_max (world)
    mesh: TessellatedMesh


class ChunkConsumer(Protocol):
    """Receives finished chunks (rendering, collision, object placement...)."""

    def consume(self, result: ChunkResult) -> None: ...
