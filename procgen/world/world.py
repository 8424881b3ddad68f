from __future__ import annotations

import logging
import time
from typing import Dict, Iterable

from procgen.world.chunk import ChunkConsumer, ChunkCoord, ChunkRecord, ChunkResult
from procgen.world.erosion import DropletErosion
from procgen.world.heightmap import HeightmapBuilder
from procgen.world.mesh_builder import tessellate
from procgen.world.noise import NoiseField
from procgen.world.params import TerrainParams
from procgen.world.stitch import stitch_chunks

logger = logging.getLogger(__name__)


def chunk_coords(radius: int) -> list[ChunkCoord]:
    """Square of chunk coordinates centered on the origin.

    radius 1 -> just (0, 0); radius 2 -> 3x3; radius 3 -> 5x5.
    """
    half = int(radius) - 1
    return [ChunkCoord(dx, dz) for dx in range(-half, half + 1) for dz in range(-half, half + 1)]


class TerrainGenerator:
    """Runs the three generation phases over one batch of chunks.

    1. build every lattice (noise + erosion),
    2. stitch all shared edges,
    3. tessellate each chunk.

    Each phase finishes for the whole batch before the next one starts.
    Stitching has to see every eroded lattice, otherwise neighbours that
    eroded differently leave visible seams.
    """

    def __init__(
        self,
        params: TerrainParams,
        *,
        noise: NoiseField | None = None,
        erosion: DropletErosion | None = None,
    ) -> None:
        self.params = params.validate()
        self.noise = noise or NoiseField(params.seed, params.noise)
        if erosion is None and params.erosion.enabled:
            erosion = DropletErosion()
        self.builder = HeightmapBuilder(
            self.noise,
            params.chunk_width,
            params.chunk_depth,
            erosion=erosion,
            erosion_iterations=params.erosion.iterations,
            base_seed=params.seed,
        )

    def build_table(self, coords: Iterable[ChunkCoord]) -> Dict[ChunkCoord, ChunkRecord]:
        """Phase 1. Any failing chunk aborts the batch (ChunkGenerationError)."""
        table: Dict[ChunkCoord, ChunkRecord] = {}
        for coord in coords:
            table[coord] = self.builder.build(coord)
        return table

    def stitch(self, table: Dict[ChunkCoord, ChunkRecord]) -> int:
        """Phase 2."""
        return stitch_chunks(table, self.params.chunk_width, self.params.chunk_depth)

    def mesh(self, rec: ChunkRecord) -> ChunkResult:
        """Phase 3 for one chunk."""
        p = self.params
        mesh = tessellate(rec.lattice, p.chunk_width, p.chunk_depth, p.max_height, p.thresholds)
        bounds = (
            float(rec.offset_x),
            float(rec.offset_x + p.chunk_width),
            float(rec.offset_z),
            float(rec.offset_z + p.chunk_depth),
        )
        return ChunkResult(coord=rec.coord, offset=(rec.offset_x, rec.offset_z), bounds=bounds, mesh=mesh)

    def generate(self) -> list[ChunkResult]:
        p = self.params
        coords = chunk_coords(p.radius)

        t0 = time.perf_counter()
        table = self.build_table(coords)
        t1 = time.perf_counter()
        logger.info(
            "phase 1: built %d chunks (%dx%d cells, erosion=%s) in %.2fs",
            len(table), p.chunk_width, p.chunk_depth,
            p.erosion.iterations if self.builder.erosion_enabled else "off", t1 - t0,
        )

        seams = self.stitch(table)
        t2 = time.perf_counter()
        logger.info("phase 2: stitched %d seams in %.3fs", seams, t2 - t1)

        results = [self.mesh(table[coord]) for coord in coords]
        t3 = time.perf_counter()
        logger.info(
            "phase 3: tessellated %d chunks (%d vertices) in %.2fs",
            len(results), sum(r.mesh.vertex_count for r in results), t3 - t2,
        )
        return results

    def generate_into(self, consumer: ChunkConsumer) -> list[ChunkResult]:
        """Generate the batch, then hand each finished chunk to ``consumer``."""
        results = self.generate()
        for res in results:
            consumer.consume(res)
        return results
