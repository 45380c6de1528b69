# Per-wheel kinematic and dynamic attributes

from dataclasses import dataclass, replace
from typing import Optional
import numpy as np

from ..core.errors import ConfigurationError
from ..core.physics import wheel_inertia


@dataclass
class WheelState:
    """One wheel of a vehicle.

    Position and yaw are in the chassis local frame. Angular velocity is
    positive when the wheel rolls forward along its own x axis.
    """
    x: float = 0.0
    y: float = 0.0
    yaw: float = 0.0              # steering angle (rad)
    diameter: float = 0.4
    width: float = 0.2
    mass: float = 2.0
    inertia: Optional[float] = None   # spin inertia Iyy, disc by default
    mu: float = 0.8
    phi: float = 0.0              # spin angle (rad)
    omega: float = 0.0            # spin rate (rad/s)
    torque: float = 0.0           # last applied motor torque (N.m)
    weight: float = 0.0           # static normal load (N)

    def __post_init__(self):
        if self.diameter <= 0:
            raise ConfigurationError(f"Wheel diameter must be positive, got {self.diameter}")
        if self.mass <= 0:
            raise ConfigurationError(f"Wheel mass must be positive, got {self.mass}")
        if self.mu < 0:
            raise ConfigurationError(f"Wheel friction coefficient must be >= 0, got {self.mu}")
        if self.width <= 0:
            raise ConfigurationError(f"Wheel width must be positive, got {self.width}")
        if self.inertia is None:
            self.inertia = wheel_inertia(self.mass, self.radius)
        if self.inertia <= 0:
            raise ConfigurationError(f"Wheel spin inertia must be positive, got {self.inertia}")

    @property
    def radius(self) -> float:
        return 0.5 * self.diameter

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    def copy(self) -> "WheelState":
        return replace(self)

    @classmethod
    def from_config(cls, node: Optional[dict], default: "WheelState") -> "WheelState":
        """Override a default wheel with the keys present in a config node.

        Recognised keys: pos [x, y], yaw (deg), diameter, width, mass,
        inertia, mu.
        """
        if not node:
            return default.copy()

        params = {
            "x": default.x,
            "y": default.y,
            "yaw": default.yaw,
            "diameter": default.diameter,
            "width": default.width,
            "mass": default.mass,
            "mu": default.mu,
            "inertia": None,
        }
        try:
            if "pos" in node:
                pos = [float(v) for v in node["pos"]]
                if len(pos) != 2:
                    raise ConfigurationError(f"Wheel pos must have 2 components, got {node['pos']}")
                params["x"], params["y"] = pos
            if "yaw" in node:
                params["yaw"] = float(np.deg2rad(float(node["yaw"])))
            for key in ("diameter", "width", "mass", "mu", "inertia"):
                if key in node:
                    params[key] = float(node[key])
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid wheel description {node}: {e}") from e

        return cls(**params)
