from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from procgen.errors import ErosionError

logger = logging.getLogger(__name__)


@dataclass
class DropletErosion:
    """Particle-based hydraulic erosion over a node lattice.

    Each droplet starts at a random position, runs downhill along the
    bilinear gradient (with inertia), picks up sediment while it can carry
    more and drops it when it slows down, climbs, or evaporates.

    The simulator holds tunables only. The seed is a per-call argument, so a
    single instance can be shared by any number of chunks.
    """

    erosion_radius: int = 3
    inertia: float = 0.05  # 0 = follow gradient exactly, 1 = never turn
    sediment_capacity_factor: float = 4.0
    min_sediment_capacity: float = 0.01
    erode_speed: float = 0.3
    deposit_speed: float = 0.3
    evaporate_speed: float = 0.01
    gravity: float = 4.0
    max_droplet_lifetime: int = 30
    initial_water_volume: float = 1.0
    initial_speed: float = 1.0

    def __post_init__(self) -> None:
        r = int(self.erosion_radius)
        if r < 1:
            raise ErosionError(f"erosion radius must be >= 1, got {r}")
        # Circular brush, weights fall off linearly with distance
        offs = np.arange(-r, r + 1)
        dx, dz = np.meshgrid(offs, offs, indexing="ij")
        d = np.sqrt(dx * dx + dz * dz)
        inside = d < r
        self._brush_dx = dx[inside].astype(np.int64)
        self._brush_dz = dz[inside].astype(np.int64)
        self._brush_w = (1.0 - d[inside] / r).astype(np.float64)

    def erode(
        self,
        lattice: np.ndarray,
        width: int,
        height: int,
        iterations: int,
        seed: int,
        deposit_on_boundary: bool = True,
    ) -> None:
        """Erode ``lattice`` in place.

        ``lattice`` is a flat array indexed ``x * height + z`` with
        ``width`` nodes along x and ``height`` nodes along z. The result is
        a pure function of the input heights, ``iterations`` and ``seed``.
        """
        width = int(width)
        height = int(height)
        iterations = int(iterations)
        if width < 2 or height < 2:
            raise ErosionError(f"lattice must have at least 2x2 nodes, got {width}x{height}")
        if lattice.ndim != 1 or lattice.size != width * height:
            raise ErosionError(f"lattice has {lattice.size} samples, expected {width}*{height}={width * height}")
        if iterations < 0:
            raise ErosionError(f"iterations must be >= 0, got {iterations}")
        if iterations == 0:
            return

        h = lattice.reshape(width, height)  # view, writes land in lattice
        rng = np.random.default_rng(int(seed) & 0xFFFFFFFF)
        starts = rng.random((iterations, 2))
        starts[:, 0] *= width - 1
        starts[:, 1] *= height - 1

        for pos_x, pos_z in starts:
            self._run_droplet(h, float(pos_x), float(pos_z), bool(deposit_on_boundary))

        logger.debug("eroded %dx%d lattice with %d droplets (seed=%d)", width, height, iterations, seed)

    def _height_and_gradient(self, h: np.ndarray, pos_x: float, pos_z: float) -> tuple[float, float, float]:
        nx = int(pos_x)
        nz = int(pos_z)
        x = pos_x - nx
        z = pos_z - nz

        h00 = float(h[nx, nz])
        h10 = float(h[nx + 1, nz])
        h01 = float(h[nx, nz + 1])
        h11 = float(h[nx + 1, nz + 1])

        grad_x = (h10 - h00) * (1.0 - z) + (h11 - h01) * z
        grad_z = (h01 - h00) * (1.0 - x) + (h11 - h10) * x
        value = h00 * (1.0 - x) * (1.0 - z) + h10 * x * (1.0 - z) + h01 * (1.0 - x) * z + h11 * x * z
        return value, grad_x, grad_z

    def _deposit(self, h: np.ndarray, nx: int, nz: int, fx: float, fz: float, amount: float, on_boundary: bool) -> None:
        w, d = h.shape
        for ix, iz, wt in (
            (nx, nz, (1.0 - fx) * (1.0 - fz)),
            (nx + 1, nz, fx * (1.0 - fz)),
            (nx, nz + 1, (1.0 - fx) * fz),
            (nx + 1, nz + 1, fx * fz),
        ):
            if not on_boundary and (ix == 0 or iz == 0 or ix == w - 1 or iz == d - 1):
                continue
            h[ix, iz] += amount * wt

    def _erode_brush(self, h: np.ndarray, nx: int, nz: int, amount: float) -> float:
        w, d = h.shape
        bx = self._brush_dx + nx
        bz = self._brush_dz + nz
        valid = (bx >= 0) & (bx < w) & (bz >= 0) & (bz < d)
        bx = bx[valid]
        bz = bz[valid]
        wt = self._brush_w[valid]
        wt = wt / wt.sum()

        current = h[bx, bz].astype(np.float64)
        delta = np.minimum(current, amount * wt)
        h[bx, bz] = (current - delta).astype(h.dtype)
        return float(delta.sum())

    def _run_droplet(self, h: np.ndarray, pos_x: float, pos_z: float, on_boundary: bool) -> None:
        w, d = h.shape
        dir_x = 0.0
        dir_z = 0.0
        speed = float(self.initial_speed)
        water = float(self.initial_water_volume)
        sediment = 0.0
        inertia = float(self.inertia)

        for _ in range(int(self.max_droplet_lifetime)):
            nx = min(int(pos_x), w - 2)
            nz = min(int(pos_z), d - 2)
            fx = pos_x - nx
            fz = pos_z - nz

            cur_h, grad_x, grad_z = self._height_and_gradient(h, pos_x, pos_z)

            dir_x = dir_x * inertia - grad_x * (1.0 - inertia)
            dir_z = dir_z * inertia - grad_z * (1.0 - inertia)
            length = math.sqrt(dir_x * dir_x + dir_z * dir_z)
            if length < 1e-12:
                break
            dir_x /= length
            dir_z /= length
            pos_x += dir_x
            pos_z += dir_z

            # Left the lattice: the carried sediment is lost
            if pos_x < 0 or pos_x >= w - 1 or pos_z < 0 or pos_z >= d - 1:
                break

            new_h, _, _ = self._height_and_gradient(h, pos_x, pos_z)
            delta_h = new_h - cur_h

            capacity = max(-delta_h * speed * water * self.sediment_capacity_factor, self.min_sediment_capacity)

            if sediment > capacity or delta_h > 0:
                # Uphill: fill the pit behind us; otherwise drop a share of the surplus
                amount = min(delta_h, sediment) if delta_h > 0 else (sediment - capacity) * self.deposit_speed
                sediment -= amount
                self._deposit(h, nx, nz, fx, fz, amount, on_boundary)
            else:
                amount = min((capacity - sediment) * self.erode_speed, -delta_h)
                sediment += self._erode_brush(h, nx, nz, amount)

            speed = math.sqrt(max(0.0, speed * speed + delta_h * self.gravity))
            water *= (1.0 - self.evaporate_speed)
