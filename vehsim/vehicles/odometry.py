# Wheel odometry
# Velocity reconstructed from wheel encoders and geometry only.

from typing import Sequence
import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import Twist2D


class OdometryEstimator:
    """Estimate the reference point twist from wheel spin.

    Every wheel contributes two rolling-contact constraints on the local
    twist (vx, vy, omega), written in the wheel frame rotated by its steer
    angle yaw:

        cos(yaw) (vx - omega y) + sin(yaw) (vy + omega x) = omega_w r   (rolling)
       -sin(yaw) (vx - omega y) + cos(yaw) (vy + omega x) = 0           (no side slip)

    The stacked system is solved in the least-squares sense, which is exact
    whenever the wheels roll without slipping and over-determined layouts
    (4 wheels, Ackermann) simply average out any slip.

    Ground-truth pose and velocity are never consulted.
    """

    def __init__(self, use_lateral_constraint: bool = True):
        self.use_lateral_constraint = use_lateral_constraint

    @staticmethod
    def _constraint_rows(wheels: Sequence) -> np.ndarray:
        rows = []
        for w in wheels:
            cos_a, sin_a = np.cos(w.yaw), np.sin(w.yaw)
            # d(v_lon)/d(vx, vy, omega)
            rows.append([cos_a, sin_a, -cos_a * w.y + sin_a * w.x])
            # d(v_lat)/d(vx, vy, omega)
            rows.append([-sin_a, cos_a, sin_a * w.y + cos_a * w.x])
        return np.array(rows, dtype=np.float64)

    def check_layout(self, wheels: Sequence) -> None:
        """Raise ConfigurationError if the wheels cannot observe the twist."""
        if len(wheels) < 2:
            raise ConfigurationError(f"Odometry needs at least 2 wheels, got {len(wheels)}")
        a = self._constraint_rows(wheels)
        if not self.use_lateral_constraint:
            a = a[0::2]
        if np.linalg.matrix_rank(a) < min(3, len(a)):
            raise ConfigurationError("Wheel layout is degenerate for odometry")

    def estimate(self, wheels: Sequence) -> Twist2D:
        """Compute the odometry twist.

        Args:
            wheels: WheelState sequence (radius, omega, x, y, yaw are used)

        Returns:
            Estimated reference point twist in the local frame
        """
        a = self._constraint_rows(wheels)
        b = np.zeros(len(a))
        b[0::2] = [w.omega * w.radius for w in wheels]

        if not self.use_lateral_constraint:
            a = a[0::2]
            b = b[0::2]

        solution, *_ = np.linalg.lstsq(a, b, rcond=None)
        return Twist2D.from_array(solution)
