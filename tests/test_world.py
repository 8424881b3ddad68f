from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from procgen.errors import ChunkGenerationError, ConfigError
from procgen.world.chunk import ChunkCoord
from procgen.world.heightmap import chunk_seed
from procgen.world.params import ErosionParams, NoiseParams, TerrainParams
from procgen.world.world import TerrainGenerator, chunk_coords


def _params(**kw) -> TerrainParams:
    base = dict(seed=21, chunk_width=4, chunk_depth=4, max_height=40.0, radius=2, noise=NoiseParams(octaves=4))
    base.update(kw)
    return TerrainParams(**base)


class Collector:
    def __init__(self) -> None:
        self.results = []

    def consume(self, result) -> None:
        self.results.append(result)


class FailingErosion:
    """Fails for one chunk offset, succeeds (no-op) for the others."""

    def __init__(self, bad_offset: tuple[int, int], base_seed: int) -> None:
        self.bad_seed = chunk_seed(base_seed, *bad_offset)
        self.calls = 0

    def erode(self, lattice, width, height, iterations, seed, deposit_on_boundary=True) -> None:
        self.calls += 1
        if seed == self.bad_seed:
            raise FloatingPointError("droplet diverged")


def test_chunk_coords() -> None:
    assert chunk_coords(1) == [ChunkCoord(0, 0)]
    three = chunk_coords(2)
    assert len(three) == 9
    assert three[0] == ChunkCoord(-1, -1)
    assert three[1] == ChunkCoord(-1, 0)
    assert three[-1] == ChunkCoord(1, 1)
    assert len(set(chunk_coords(3))) == 25
    assert {c.cx for c in chunk_coords(3)} == {-2, -1, 0, 1, 2}


def test_end_to_end_three_by_three() -> None:
    gen = TerrainGenerator(_params())
    results = gen.generate()
    assert len(results) == 9
    assert {r.coord for r in results} == set(chunk_coords(2))
    for r in results:
        assert r.mesh.vertex_count == 64
        assert r.mesh.indices.size == 96
        assert r.offset == (r.coord.cx * 4, r.coord.cz * 4)
        assert r.bounds == (r.offset[0], r.offset[0] + 4, r.offset[1], r.offset[1] + 4)


def test_seam_column_after_stitching() -> None:
    gen = TerrainGenerator(_params())
    table = gen.build_table(chunk_coords(2))
    gen.stitch(table)
    a = table[ChunkCoord(0, 0)].lattice.reshape(5, 5)
    b = table[ChunkCoord(1, 0)].lattice.reshape(5, 5)
    assert np.array_equal(a[4, :], b[0, :])


def test_meshes_meet_on_the_seam() -> None:
    results = {r.coord: r for r in TerrainGenerator(_params()).generate()}
    left = results[ChunkCoord(0, 0)].mesh.positions.reshape(4, 4, 4, 3)
    right = results[ChunkCoord(1, 0)].mesh.positions.reshape(4, 4, 4, 3)
    # v10 of the last x column vs v00 of the first, per z cell
    assert np.array_equal(left[3, :, 2, 1], right[0, :, 0, 1])
    # v11 vs v01
    assert np.array_equal(left[3, :, 3, 1], right[0, :, 1, 1])


def test_bounds_for_negative_coords() -> None:
    results = {r.coord: r for r in TerrainGenerator(_params()).generate()}
    assert results[ChunkCoord(-1, -1)].bounds == (-4.0, 0.0, -4.0, 0.0)
    assert results[ChunkCoord(1, 0)].bounds == (4.0, 8.0, 0.0, 4.0)


def test_eroded_seams_are_continuous() -> None:
    w = d = 8
    gen = TerrainGenerator(_params(chunk_width=w, chunk_depth=d, erosion=ErosionParams(iterations=60)))
    assert gen.builder.erosion_enabled
    table = gen.build_table(chunk_coords(2))
    gen.stitch(table)
    for coord, rec in table.items():
        cur = rec.lattice.reshape(w + 1, d + 1)
        right = table.get(coord.right())
        if right is not None:
            # corners are reconciled twice, compare the rest of the edge
            assert np.array_equal(cur[w, 1:-1], right.lattice.reshape(w + 1, d + 1)[0, 1:-1])
        fwd = table.get(coord.forward())
        if fwd is not None:
            assert np.array_equal(cur[1:-1, d], fwd.lattice.reshape(w + 1, d + 1)[1:-1, 0])


def test_prestitch_lattice_independent_of_batch() -> None:
    p = _params(erosion=ErosionParams(iterations=30))
    small = TerrainGenerator(replace(p, radius=1))
    big = TerrainGenerator(p)
    lone = small.build_table(chunk_coords(1))[ChunkCoord(0, 0)].lattice
    in_batch = big.build_table(chunk_coords(2))[ChunkCoord(0, 0)].lattice
    assert np.array_equal(lone, in_batch)


def test_generation_is_reproducible() -> None:
    p = _params(erosion=ErosionParams(iterations=30))
    a = TerrainGenerator(p).generate()
    b = TerrainGenerator(p).generate()
    for ra, rb in zip(a, b):
        assert ra.coord == rb.coord
        assert np.array_equal(ra.mesh.positions, rb.mesh.positions)
        assert np.array_equal(ra.mesh.uvs, rb.mesh.uvs)


def test_generate_into_feeds_consumer_in_order() -> None:
    sink = Collector()
    results = TerrainGenerator(_params()).generate_into(sink)
    assert [r.coord for r in sink.results] == [r.coord for r in results] == chunk_coords(2)


@pytest.mark.parametrize(
    "kw",
    [dict(chunk_width=0), dict(radius=0), dict(noise=NoiseParams(octaves=0))],
)
def test_bad_configuration_fails_before_any_work(kw) -> None:
    sink = Collector()
    with pytest.raises(ConfigError):
        TerrainGenerator(_params(**kw)).generate_into(sink)
    assert sink.results == []


def test_one_failing_chunk_aborts_the_batch() -> None:
    p = _params(erosion=ErosionParams(iterations=5))
    sim = FailingErosion(bad_offset=(4, -4), base_seed=p.seed)
    sink = Collector()
    with pytest.raises(ChunkGenerationError) as exc:
        TerrainGenerator(p, erosion=sim).generate_into(sink)
    assert (exc.value.cx, exc.value.cz) == (1, -1)
    assert sink.results == []
