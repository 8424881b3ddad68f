from __future__ import annotations

from dataclasses import dataclass, field

from procgen.config import (
    DEFAULT_AMPLITUDE,
    DEFAULT_CHUNK_DEPTH,
    DEFAULT_CHUNK_WIDTH,
    DEFAULT_EROSION_ITERATIONS,
    DEFAULT_FREQUENCY,
    DEFAULT_GAIN,
    DEFAULT_GRASS_START,
    DEFAULT_LACUNARITY,
    DEFAULT_MAX_HEIGHT,
    DEFAULT_NOISE,
    DEFAULT_NORMALIZE_BIAS,
    DEFAULT_OCTAVES,
    DEFAULT_RADIUS,
    DEFAULT_ROCK_START,
    DEFAULT_SAND_START,
    DEFAULT_SCALE,
    DEFAULT_SEED,
    DEFAULT_SNOW_START,
)
from procgen.errors import ConfigError

NOISE_MODES = ("fast", "simplex")


@dataclass(frozen=True)
class NoiseParams:
    frequency: float = DEFAULT_FREQUENCY
    amplitude: float = DEFAULT_AMPLITUDE
    octaves: int = DEFAULT_OCTAVES
    lacunarity: float = DEFAULT_LACUNARITY
    gain: float = DEFAULT_GAIN
    scale: float = DEFAULT_SCALE
    normalize_bias: float = DEFAULT_NORMALIZE_BIAS
    mode: str = DEFAULT_NOISE  # "fast" | "simplex"


@dataclass(frozen=True)
class ErosionParams:
    iterations: int = DEFAULT_EROSION_ITERATIONS  # droplets per chunk

    @property
    def enabled(self) -> bool:
        return self.iterations > 0


@dataclass(frozen=True)
class TextureThresholds:
    """Height bands for the atlas tiles.

    Compared in fixed order (snow, rock, grass); anything below ``grass``
    falls into sand, so ``sand`` only documents the intended lower band.
    """

    snow: float = DEFAULT_SNOW_START
    rock: float = DEFAULT_ROCK_START
    grass: float = DEFAULT_GRASS_START
    sand: float = DEFAULT_SAND_START


@dataclass(frozen=True)
class TerrainParams:
    seed: int = DEFAULT_SEED
    chunk_width: int = DEFAULT_CHUNK_WIDTH
    chunk_depth: int = DEFAULT_CHUNK_DEPTH
    max_height: float = DEFAULT_MAX_HEIGHT
    radius: int = DEFAULT_RADIUS
    noise: NoiseParams = field(default_factory=NoiseParams)
    erosion: ErosionParams = field(default_factory=ErosionParams)
    thresholds: TextureThresholds = field(default_factory=TextureThresholds)

    @property
    def node_width(self) -> int:
        return self.chunk_width + 1

    @property
    def node_depth(self) -> int:
        return self.chunk_depth + 1

    def validate(self) -> "TerrainParams":
        """Raise ConfigError on the first invalid field; return self otherwise."""
        if int(self.chunk_width) < 1 or int(self.chunk_depth) < 1:
            raise ConfigError(f"chunk dimensions must be positive, got {self.chunk_width}x{self.chunk_depth}")
        if not self.max_height > 0:
            raise ConfigError(f"max_height must be positive, got {self.max_height}")
        if int(self.radius) < 1:
            raise ConfigError(f"radius must be >= 1, got {self.radius}")
        if int(self.erosion.iterations) < 0:
            raise ConfigError(f"erosion iterations must be >= 0, got {self.erosion.iterations}")

        n = self.noise
        if int(n.octaves) < 1:
            raise ConfigError(f"octave count must be >= 1, got {n.octaves}")
        if not n.frequency > 0:
            raise ConfigError(f"noise frequency must be positive, got {n.frequency}")
        if not n.scale > 0:
            raise ConfigError(f"noise scale must be positive, got {n.scale}")
        if not n.normalize_bias > 0:
            raise ConfigError(f"normalize bias must be positive, got {n.normalize_bias}")
        if n.mode not in NOISE_MODES:
            raise ConfigError(f"unknown noise mode {n.mode!r} (expected one of {', '.join(NOISE_MODES)})")
        return self
