# Backend state validation
# FORBIDDEN: torch, models.*

import numpy as np
from typing import Tuple, List


class StateValidator:
    """Check values read back from the physics backend."""
    
    # Physical bounds, only used to flag suspicious states
    BOUNDS = {
        "position": (-1e6, 1e6),          # m
        "velocity": (-150.0, 150.0),      # m/s
        "angular_velocity": (-100.0, 100.0),  # rad/s
        "wheel_omega": (-2000.0, 2000.0), # rad/s
    }
    
    @classmethod
    def check_nan_inf(cls, *values) -> bool:
        """Quick check for NaN or Inf values.
        
        Args:
            values: Scalars or arrays
            
        Returns:
            True if all values are finite
        """
        for v in values:
            if not np.all(np.isfinite(np.asarray(v, dtype=np.float64))):
                return False
        return True
    
    @classmethod
    def validate(
        cls,
        position: np.ndarray,
        yaw: float,
        velocity: np.ndarray,
        omega: float,
    ) -> Tuple[bool, List[str]]:
        """Check a chassis state is finite and physically plausible.
        
        Args:
            position: (x, y) in the global frame
            yaw: Heading (rad)
            velocity: (vx, vy) in the global frame
            omega: Yaw rate (rad/s)
            
        Returns:
            (is_valid, list of violations). Non-finite values make the state
            invalid; out-of-bounds values are reported but still valid.
        """
        violations = []
        
        if not cls.check_nan_inf(position, yaw):
            violations.append(f"Pose contains NaN/Inf: position={position}, yaw={yaw}")
        if not cls.check_nan_inf(velocity, omega):
            violations.append(f"Velocity contains NaN/Inf: velocity={velocity}, omega={omega}")
        if violations:
            return False, violations
        
        low, high = cls.BOUNDS["position"]
        if np.any(np.asarray(position) < low) or np.any(np.asarray(position) > high):
            violations.append(f"Position out of bounds: {position}")
        
        low, high = cls.BOUNDS["velocity"]
        if np.any(np.asarray(velocity) < low) or np.any(np.asarray(velocity) > high):
            violations.append(f"Velocity out of bounds: {velocity}")
        
        low, high = cls.BOUNDS["angular_velocity"]
        if omega < low or omega > high:
            violations.append(f"Angular velocity out of bounds: {omega}")
        
        return True, violations
    
    @classmethod
    def check_wheel_omega(cls, omega: np.ndarray) -> List[str]:
        """Report wheel spin rates outside the plausible range."""
        low, high = cls.BOUNDS["wheel_omega"]
        omega = np.asarray(omega)
        if np.any(omega < low) or np.any(omega > high):
            return [f"Wheel spin out of bounds: {omega}"]
        return []
