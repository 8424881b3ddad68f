from __future__ import annotations

import numpy as np

from procgen.errors import NoiseBackendError
from procgen.world.params import NoiseParams

try:
    from opensimplex import OpenSimplex  # optional
except ImportError:  # pragma: no cover
    OpenSimplex = None  # type: ignore


_DIAG = float(np.sqrt(0.5))
_GRAD_X = np.array([1.0, -1.0, 0.0, 0.0, _DIAG, -_DIAG, _DIAG, -_DIAG], dtype=np.float64)
_GRAD_Z = np.array([0.0, 0.0, 1.0, -1.0, _DIAG, _DIAG, -_DIAG, -_DIAG], dtype=np.float64)


def _seed32(seed: int) -> np.uint32:
    return np.uint32(int(seed) & 0xFFFFFFFF)


class FastPerlin2D:
    """Vectorized 2D gradient (Perlin) noise.

    Lattice gradients come from an integer hash of the corner coordinates, so
    the field is a pure function of (seed, x, z) and needs no permutation
    table. Output is roughly in [-1, 1].
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._seed32 = _seed32(seed)

    @staticmethod
    def _fade(t: np.ndarray) -> np.ndarray:
        # smootherstep
        return t * t * t * (t * (t * 6 - 15) + 10)

    def _gradient(self, xi: np.ndarray, zi: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        h = (xi.astype(np.uint32) * np.uint32(374761393)) ^ (zi.astype(np.uint32) * np.uint32(668265263)) ^ self._seed32
        h ^= (h >> np.uint32(13))
        h *= np.uint32(1274126177)
        h ^= (h >> np.uint32(16))
        # Table lookup, not trig: shared nodes must come out bit-identical
        # wherever they sit in the sampled array
        k = (h >> np.uint32(29)).astype(np.intp)
        return _GRAD_X[k], _GRAD_Z[k]

    def _corner(self, xi: np.ndarray, zi: np.ndarray, dx: np.ndarray, dz: np.ndarray) -> np.ndarray:
        gx, gz = self._gradient(xi, zi)
        return gx * dx + gz * dz

    def noise(self, x: np.ndarray, z: np.ndarray) -> np.ndarray:
        # x,z: float arrays (same shape)
        fx = np.floor(x)
        fz = np.floor(z)
        xi0 = fx.astype(np.int64)
        zi0 = fz.astype(np.int64)
        tx = x - fx
        tz = z - fz

        n00 = self._corner(xi0, zi0, tx, tz)
        n10 = self._corner(xi0 + 1, zi0, tx - 1.0, tz)
        n01 = self._corner(xi0, zi0 + 1, tx, tz - 1.0)
        n11 = self._corner(xi0 + 1, zi0 + 1, tx - 1.0, tz - 1.0)

        u = self._fade(tx)
        v = self._fade(tz)
        a = n00 + (n10 - n00) * u
        b = n01 + (n11 - n01) * u
        # |gradient noise| <= sqrt(2)/2 for unit gradients
        return (a + (b - a) * v) * np.sqrt(2.0)


class FBMFastNoise:
    def __init__(self, seed: int, cfg: NoiseParams | None = None) -> None:
        self.seed = int(seed)
        self.cfg = cfg or NoiseParams()
        self.base = FastPerlin2D(seed)

    def grid(self, x: np.ndarray, z: np.ndarray) -> np.ndarray:
        """Fractal sum at world positions, divided by the octave weights."""
        freq = self.cfg.frequency * self.cfg.scale
        amp = 1.0
        total = np.zeros_like(x, dtype=np.float64)
        norm = 0.0
        for octave in range(self.cfg.octaves):
            # Per-octave offset keeps octaves from sharing lattice zeros at the origin
            shift = 17.31 * octave
            total += self.base.noise(x * freq + shift, z * freq - shift) * amp
            norm += amp
            freq *= self.cfg.lacunarity
            amp *= self.cfg.gain
        return total / max(norm, 1e-9)


class FBMSimplexNoise:
    """Simplex-based fBm. Slower, kept for reference/quality."""

    def __init__(self, seed: int, cfg: NoiseParams | None = None) -> None:
        if OpenSimplex is None:
            raise NoiseBackendError("simplex noise needs the 'opensimplex' package")
        self.seed = int(seed)
        self.cfg = cfg or NoiseParams()
        self._simp = OpenSimplex(self.seed)

    def lattice(self, xs: np.ndarray, zs: np.ndarray) -> np.ndarray:
        """fBm over the outer product of 1-D world coordinates, shape (len(xs), len(zs))."""
        freq = self.cfg.frequency * self.cfg.scale
        amp = 1.0
        total = np.zeros((xs.size, zs.size), dtype=np.float64)
        norm = 0.0
        for _ in range(self.cfg.octaves):
            # noise2array returns [z, x]
            total += self._simp.noise2array(xs * freq, zs * freq).T * amp
            norm += amp
            freq *= self.cfg.lacunarity
            amp *= self.cfg.gain
        return total / max(norm, 1e-9)


class NoiseField:
    """Normalized fractal noise sampled on a regular node lattice.

    The field depends only on world coordinates, so two chunks sampled with
    the same seed and parameters agree exactly on the nodes they share.
    """

    def __init__(self, seed: int, params: NoiseParams | None = None) -> None:
        self.seed = int(seed)
        self.params = params or NoiseParams()
        if self.params.mode == "simplex":
            self._fbm = FBMSimplexNoise(self.seed, self.params)
        else:
            self._fbm = FBMFastNoise(self.seed, self.params)

    @property
    def mode(self) -> str:
        return self.params.mode

    def normalize(self, fbm: np.ndarray) -> np.ndarray:
        bias = float(self.params.normalize_bias)
        return (fbm * float(self.params.amplitude) + bias) / (2.0 * bias)

    def sample(self, width: int, height: int, offset_x: float = 0.0, offset_z: float = 0.0) -> np.ndarray:
        """Return ``width * height`` float32 samples, index ``x * height + z``.

        Node (x, z) is evaluated at world position (offset_x + x, offset_z + z).
        """
        xs = float(offset_x) + np.arange(int(width), dtype=np.float64)
        zs = float(offset_z) + np.arange(int(height), dtype=np.float64)
        if isinstance(self._fbm, FBMSimplexNoise):
            fbm = self._fbm.lattice(xs, zs)
        else:
            grid_x, grid_z = np.meshgrid(xs, zs, indexing="ij")
            fbm = self._fbm.grid(grid_x, grid_z)
        return self.normalize(fbm).astype(np.float32).reshape(-1)


def sample_lattice(
    width: int,
    height: int,
    seed: int,
    offset_x: float,
    offset_z: float,
    params: NoiseParams | None = None,
) -> np.ndarray:
    """One-shot form of :meth:`NoiseField.sample`."""
    return NoiseField(seed, params).sample(width, height, offset_x, offset_z)
