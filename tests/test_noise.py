from __future__ import annotations

import numpy as np
import pytest

import procgen.world.noise as noise_mod
from procgen.errors import NoiseBackendError
from procgen.world.noise import FastPerlin2D, NoiseField, sample_lattice
from procgen.world.params import NoiseParams


def test_sample_shape_and_dtype() -> None:
    out = NoiseField(7).sample(5, 9, 0, 0)
    assert out.dtype == np.float32
    assert out.shape == (45,)


def test_sample_is_deterministic() -> None:
    a = NoiseField(123).sample(17, 17, 32, -16)
    b = NoiseField(123).sample(17, 17, 32, -16)
    assert np.array_equal(a, b)


def test_seed_changes_the_field() -> None:
    a = NoiseField(1).sample(17, 17, 0, 0)
    b = NoiseField(2).sample(17, 17, 0, 0)
    assert not np.array_equal(a, b)


def test_adjacent_windows_share_their_edge() -> None:
    # Chunk with 4x4 cells at x offset 0 and its +X neighbour at offset 4
    field = NoiseField(99)
    left = field.sample(5, 5, 0, 0).reshape(5, 5)
    right = field.sample(5, 5, 4, 0).reshape(5, 5)
    assert np.array_equal(left[4, :], right[0, :])

    fwd = field.sample(5, 5, 0, 4).reshape(5, 5)
    assert np.array_equal(left[:, 4], fwd[:, 0])


def test_indexing_is_x_major() -> None:
    field = NoiseField(5)
    lat = field.sample(4, 6, 10, 20)
    # Node (x=3, z=0) of this window is node (0, 0) of a window starting at x=13
    single = field.sample(1, 1, 13, 20)
    assert lat[3 * 6 + 0] == single[0]


def test_values_are_normalized() -> None:
    out = NoiseField(3, NoiseParams(amplitude=0.5, normalize_bias=1.0)).sample(33, 33, -100, 250)
    assert out.min() >= 0.0
    assert out.max() <= 1.0
    assert out.std() > 0.0


def test_one_shot_matches_field() -> None:
    params = NoiseParams(octaves=3)
    a = sample_lattice(9, 9, 11, 8, 8, params)
    b = NoiseField(11, params).sample(9, 9, 8, 8)
    assert np.array_equal(a, b)


def test_perlin_is_zero_on_lattice_points() -> None:
    p = FastPerlin2D(4)
    x = np.array([0.0, 1.0, -3.0, 12.0])
    z = np.array([0.0, 5.0, 2.0, -7.0])
    assert np.allclose(p.noise(x, z), 0.0)


def test_simplex_backend() -> None:
    pytest.importorskip("opensimplex")
    field = NoiseField(8, NoiseParams(mode="simplex", octaves=3))
    left = field.sample(5, 5, 0, 0).reshape(5, 5)
    right = field.sample(5, 5, 4, 0).reshape(5, 5)
    assert left.dtype == np.float32
    assert np.array_equal(left[4, :], right[0, :])
    assert left.min() >= 0.0 and left.max() <= 1.0


def test_simplex_without_opensimplex(monkeypatch) -> None:
    monkeypatch.setattr(noise_mod, "OpenSimplex", None)
    with pytest.raises(NoiseBackendError):
        NoiseField(1, NoiseParams(mode="simplex"))
