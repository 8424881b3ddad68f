from __future__ import annotations

import numpy as np
import pytest

from procgen.errors import ChunkGenerationError
from procgen.world.chunk import ChunkCoord
from procgen.world.erosion import DropletErosion
from procgen.world.heightmap import HeightmapBuilder, chunk_seed
from procgen.world.noise import NoiseField
from procgen.world.params import NoiseParams


class RecordingErosion:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def erode(self, lattice, width, height, iterations, seed, deposit_on_boundary=True) -> None:
        self.calls.append((lattice.size, width, height, iterations, seed, deposit_on_boundary))
        lattice += np.float32(0.125)


class BrokenNoise:
    def sample(self, width, height, offset_x=0.0, offset_z=0.0):
        raise RuntimeError("sampler exploded")


def _field(seed: int = 10) -> NoiseField:
    return NoiseField(seed, NoiseParams(octaves=4))


def test_chunk_seed_values() -> None:
    assert chunk_seed(0, 0, 0) == 0
    assert chunk_seed(5, 0, 0) == 5
    assert chunk_seed(0, 1, 0) == 73856093
    assert chunk_seed(0, 1, 1) == 73856093 ^ 19349663
    assert chunk_seed(7, 2, 3) == (7 + 2 * 73856093) ^ (3 * 19349663)


def test_chunk_seed_wraps_to_int32() -> None:
    # 64 * 73856093 overflows 32 bits
    assert chunk_seed(0, 64, 0) == 431822656
    assert chunk_seed(0, -64, 0) == -431822656
    for ox in (-640, -64, 0, 64, 640):
        for oz in (-640, 0, 640):
            s = chunk_seed(12345, ox, oz)
            assert -(2**31) <= s < 2**31


def test_chunk_seed_matches_int32_arithmetic() -> None:
    base = 12345
    ox = (np.arange(-4, 5, dtype=np.int32) * np.int32(16))[:, None]
    oz = (np.arange(-4, 5, dtype=np.int32) * np.int32(16))[None, :]
    ref = (np.int32(base) + ox * np.int32(73856093)) ^ (oz * np.int32(19349663))
    got = np.array([[chunk_seed(base, int(x), int(z)) for z in oz[0]] for x in ox[:, 0]])
    assert np.array_equal(got, ref.astype(np.int64))


def test_chunk_seed_differs_between_axis_neighbours() -> None:
    for dx in range(-2, 3):
        for dz in range(-2, 3):
            s = chunk_seed(1, dx * 16, dz * 16)
            assert s != chunk_seed(1, (dx + 1) * 16, dz * 16)
            assert s != chunk_seed(1, dx * 16, (dz + 1) * 16)


def test_chunk_seed_mirrored_offsets_can_collide() -> None:
    assert chunk_seed(1, -16, -16) == chunk_seed(1, 16, 16)
    assert chunk_seed(1, -32, 32) == chunk_seed(1, 32, -32)


def test_build_offsets_and_shape() -> None:
    b = HeightmapBuilder(_field(), 8, 6)
    rec = b.build(ChunkCoord(2, -1))
    assert rec.coord == ChunkCoord(2, -1)
    assert (rec.offset_x, rec.offset_z) == (16, -6)
    assert rec.lattice.shape == (9 * 7,)
    assert rec.lattice.dtype == np.float32


def test_build_is_deterministic_across_builders() -> None:
    a = HeightmapBuilder(_field(), 8, 8, erosion=DropletErosion(), erosion_iterations=40, base_seed=10)
    b = HeightmapBuilder(_field(), 8, 8, erosion=DropletErosion(), erosion_iterations=40, base_seed=10)
    # b builds other chunks first
    b.build(ChunkCoord(0, 0))
    b.build(ChunkCoord(-1, 1))
    ra = a.build(ChunkCoord(1, 0))
    rb = b.build(ChunkCoord(1, 0))
    assert np.array_equal(ra.lattice, rb.lattice)


def test_neighbours_agree_before_erosion() -> None:
    b = HeightmapBuilder(_field(), 8, 8)
    left = b.build(ChunkCoord(0, 0)).lattice.reshape(9, 9)
    right = b.build(ChunkCoord(1, 0)).lattice.reshape(9, 9)
    assert np.array_equal(left[8, :], right[0, :])


def test_erosion_called_with_node_dims_and_chunk_seed() -> None:
    sim = RecordingErosion()
    b = HeightmapBuilder(_field(), 8, 6, erosion=sim, erosion_iterations=25, base_seed=3)
    plain = HeightmapBuilder(_field(), 8, 6).build(ChunkCoord(1, 2)).lattice
    rec = b.build(ChunkCoord(1, 2))

    assert sim.calls == [(63, 9, 7, 25, chunk_seed(3, 8, 12), True)]
    assert np.allclose(rec.lattice, plain + np.float32(0.125))


def test_erosion_skipped_when_disabled() -> None:
    sim = RecordingErosion()
    b = HeightmapBuilder(_field(), 4, 4, erosion=sim, erosion_iterations=0)
    assert not b.erosion_enabled
    b.build(ChunkCoord(0, 0))
    assert sim.calls == []


def test_sampler_failure_is_fatal_for_the_chunk() -> None:
    b = HeightmapBuilder(BrokenNoise(), 4, 4)
    with pytest.raises(ChunkGenerationError) as exc:
        b.build(ChunkCoord(-1, 3))
    assert (exc.value.cx, exc.value.cz) == (-1, 3)
    assert isinstance(exc.value.__cause__, RuntimeError)
