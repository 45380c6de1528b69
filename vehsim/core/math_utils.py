# Mathematical utilities
# FORBIDDEN: torch, logging, any I/O

import numpy as np


def normalize_angle(angle: float) -> float:
    """Normalize angle to [-pi, pi] range.
    
    Args:
        angle: Angle in radians
        
    Returns:
        Normalized angle in [-pi, pi]
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def rotation_matrix(angle: float) -> np.ndarray:
    """2x2 rotation matrix for a planar angle."""
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    return np.array([[cos_a, -sin_a], [sin_a, cos_a]])


def rigid_point_velocity(
    vx: float,
    vy: float,
    omega: float,
    point: np.ndarray,
) -> np.ndarray:
    """Velocity of points rigidly attached to a moving frame.
    
    v_p = v + omega x p, all quantities in the same frame.
    
    Args:
        vx, vy: Linear velocity of the frame origin
        omega: Angular velocity (rad/s)
        point: Point(s) relative to the origin, shape (2,) or (N, 2)
        
    Returns:
        Velocity of each point, same shape as ``point``
    """
    p = np.asarray(point, dtype=np.float64)
    return np.stack(
        [vx - omega * p[..., 1], vy + omega * p[..., 0]],
        axis=-1,
    )

