# Chassis geometry
# FORBIDDEN: torch, logging, any I/O

from typing import Optional, Sequence
import numpy as np

from .errors import ConfigurationError


def max_radius_from_polygon(polygon: np.ndarray) -> float:
    """Largest distance from the local origin to any vertex."""
    pts = np.asarray(polygon, dtype=np.float64)
    return float(np.max(np.hypot(pts[:, 0], pts[:, 1])))


def rectangle_polygon(length: float, width: float, x_offset: float = 0.0) -> np.ndarray:
    """Axis-aligned rectangle, counter-clockwise, centred at (x_offset, 0)."""
    hl = 0.5 * length
    hw = 0.5 * width
    return np.array([
        [x_offset - hl, -hw],
        [x_offset + hl, -hw],
        [x_offset + hl, hw],
        [x_offset - hl, hw],
    ])


class ChassisGeometry:
    """2D chassis shape, mass and vertical extent.

    The bounding radius is derived from the polygon and recomputed on every
    polygon assignment; it cannot be set directly.
    """

    def __init__(
        self,
        polygon: Sequence[Sequence[float]],
        mass: float,
        center_of_mass: Optional[Sequence[float]] = None,
        z_min: float = 0.05,
        z_max: float = 0.6,
    ):
        """Initialize chassis geometry.

        Args:
            polygon: Ordered vertices in the local frame, shape (N, 2), N >= 3
            mass: Chassis mass excluding wheels (kg)
            center_of_mass: Chassis center of mass, local frame (default origin)
            z_min: Height of the chassis bottom (m)
            z_max: Height of the chassis top (m)
        """
        if not np.isfinite(mass) or mass <= 0:
            raise ConfigurationError(f"Chassis mass must be positive, got {mass}")
        if z_max < z_min:
            raise ConfigurationError(f"Chassis z_max ({z_max}) below z_min ({z_min})")

        self.mass = float(mass)
        self.z_min = float(z_min)
        self.z_max = float(z_max)
        self._polygon = None
        self._max_radius = 0.0
        self.polygon = polygon

        if center_of_mass is None:
            center_of_mass = (0.0, 0.0)
        com = np.asarray(center_of_mass, dtype=np.float64)
        if com.shape != (2,) or not np.all(np.isfinite(com)):
            raise ConfigurationError(f"Invalid chassis center of mass: {center_of_mass}")
        self.center_of_mass = com

    @property
    def polygon(self) -> np.ndarray:
        return self._polygon

    @polygon.setter
    def polygon(self, polygon: Sequence[Sequence[float]]) -> None:
        pts = np.array(polygon, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ConfigurationError(f"Chassis polygon must be a list of (x, y) points, got shape {pts.shape}")
        if len(pts) < 3:
            raise ConfigurationError(f"Chassis polygon needs at least 3 vertices, got {len(pts)}")
        if not np.all(np.isfinite(pts)):
            raise ConfigurationError("Chassis polygon contains non-finite coordinates")
        pts.setflags(write=False)
        self._polygon = pts
        self._max_radius = max_radius_from_polygon(pts)

    @property
    def max_radius(self) -> float:
        """Bounding radius about the reference point (m)."""
        return self._max_radius

    @property
    def num_vertices(self) -> int:
        return len(self._polygon)

    def world_polygon(self, x: float, y: float, yaw: float) -> np.ndarray:
        """Polygon vertices placed at a global pose."""
        cos_a = np.cos(yaw)
        sin_a = np.sin(yaw)
        rot = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
        return self._polygon @ rot.T + np.array([x, y])

    @classmethod
    def from_config(cls, node: dict, default_polygon: np.ndarray) -> "ChassisGeometry":
        """Build from a ``chassis`` config node.

        Args:
            node: Dict with mass, polygon, com, zmin, zmax keys
            default_polygon: Shape used when the node gives none

        Returns:
            ChassisGeometry
        """
        node = node or {}
        if "mass" not in node:
            raise ConfigurationError("chassis.mass is required")
        try:
            return cls(
                polygon=node.get("polygon", default_polygon),
                mass=float(node["mass"]),
                center_of_mass=node.get("com"),
                z_min=float(node.get("zmin", 0.05)),
                z_max=float(node.get("zmax", 0.6)),
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid chassis description: {e}") from e
