from __future__ import annotations


class ProcgenError(Exception):
    """Base class for terrain generation errors."""


class ConfigError(ProcgenError, ValueError):
    """Invalid generation parameters. Raised before any chunk is built."""


class NoiseBackendError(ProcgenError, RuntimeError):
    pass


class ErosionError(ProcgenError, ValueError):
    pass


class LatticeShapeError(ProcgenError, ValueError):
    """A height lattice does not have (width + 1) * (depth + 1) samples."""


class ChunkGenerationError(ProcgenError, RuntimeError):
    """Building one chunk failed; the whole batch is abandoned."""

    def __init__(self, cx: int, cz: int, message: str) -> None:
        super().__init__(f"chunk ({cx}, {cz}): {message}")
        self.cx = cx
        self.cz = cz
