from __future__ import annotations

import numpy as np

from procgen.util.math import exp_smooth, look_at


def _clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


class CameraOrbit:
    """Camera circling a fixed target (the terrain centre).

    Yaw and distance are driven by input and smoothed exponentially so the
    view keeps moving briefly after a key is released.
    """

    def __init__(
        self,
        target: tuple[float, float, float],
        *,
        distance: float,
        pitch: float,
        smooth_k: float,
        min_distance: float = 10.0,
        max_distance: float = 1500.0,
    ) -> None:
        self.target = np.array(target, dtype=np.float32)
        self.pitch = float(pitch)
        self.smooth_k = float(smooth_k)
        self.min_distance = float(min_distance)
        self.max_distance = float(max_distance)

        self.yaw = 0.0
        self.distance = float(distance)
        self._yaw_target = 0.0
        self._distance_target = float(distance)

    def update(self, dt: float, *, turn: float, zoom: float, yaw_rate: float, zoom_rate: float) -> None:
        """Advance the orbit.

        Args:
            turn: -1..1 (left..right)
            zoom: -1..1 (out..in)
        """
        dt = float(dt)
        self._yaw_target += _clamp(float(turn), -1.0, 1.0) * float(yaw_rate) * dt
        self._distance_target = _clamp(
            self._distance_target - _clamp(float(zoom), -1.0, 1.0) * float(zoom_rate) * dt,
            self.min_distance,
            self.max_distance,
        )
        self.yaw = exp_smooth(self.yaw, self._yaw_target, self.smooth_k, dt)
        self.distance = exp_smooth(self.distance, self._distance_target, self.smooth_k, dt)

    def eye(self) -> np.ndarray:
        cp = float(np.cos(self.pitch))
        offset = np.array(
            [np.sin(self.yaw) * cp, np.sin(self.pitch), np.cos(self.yaw) * cp],
            dtype=np.float32,
        )
        return self.target + offset * np.float32(self.distance)

    def view_matrix(self) -> np.ndarray:
        up = np.array([0.0, 1.0, 0.0], dtype=np.float32)
        return look_at(self.eye(), self.target, up)
