# Metrics computation

import numpy as np
from typing import Dict, List, Sequence


def compute_trajectory_metrics(
    times: Sequence[float],
    xs: Sequence[float],
    ys: Sequence[float],
    speeds: Sequence[float],
) -> Dict[str, float]:
    """Compute summary metrics of a ground-truth trajectory.
    
    Args:
        times: Timestamps (s)
        xs, ys: Reference point positions (m)
        speeds: Planar speed per tick (m/s)
        
    Returns:
        Dict of computed metrics
    """
    metrics = {}
    
    if len(times) > 0:
        metrics["duration"] = float(times[-1] - times[0])
    
    if len(xs) > 1:
        steps = np.hypot(np.diff(xs), np.diff(ys))
        metrics["distance"] = float(np.sum(steps))
        metrics["displacement"] = float(np.hypot(xs[-1] - xs[0], ys[-1] - ys[0]))
    
    if len(speeds) > 0:
        metrics["mean_speed"] = float(np.mean(speeds))
        metrics["max_speed"] = float(np.max(speeds))
    
    return metrics


def compute_odometry_error(
    true_velocities: np.ndarray,
    odometry_velocities: np.ndarray,
) -> Dict[str, float]:
    """Compare odometry twists against ground truth.
    
    Args:
        true_velocities: Local-frame ground truth, shape (T, 3) [vx, vy, omega]
        odometry_velocities: Odometry estimates, shape (T, 3)
        
    Returns:
        RMSE and worst-case error per component
    """
    true_velocities = np.asarray(true_velocities, dtype=np.float64).reshape(-1, 3)
    odometry_velocities = np.asarray(odometry_velocities, dtype=np.float64).reshape(-1, 3)
    metrics = {}
    
    if len(true_velocities) == 0:
        return metrics
    
    err = odometry_velocities - true_velocities
    for i, name in enumerate(["vx", "vy", "omega"]):
        metrics[f"odometry_rmse_{name}"] = float(np.sqrt(np.mean(err[:, i] ** 2)))
        metrics[f"odometry_max_error_{name}"] = float(np.max(np.abs(err[:, i])))
    
    return metrics


def check_run_health(metrics: Dict[str, float]) -> List[str]:
    """Flag signs of an unstable simulation.
    
    Args:
        metrics: Metrics from compute_trajectory_metrics / compute_odometry_error
        
    Returns:
        List of warnings (empty if healthy)
    """
    warnings = []
    
    max_speed = metrics.get("max_speed", 0.0)
    if max_speed > 100.0:
        warnings.append(f"HIGH SPEED: {max_speed:.1f} m/s - integration may be unstable")
    
    rmse_vx = metrics.get("odometry_rmse_vx", 0.0)
    if rmse_vx > 1.0:
        warnings.append(f"LARGE ODOMETRY ERROR: {rmse_vx:.2f} m/s - wheels slipping heavily")
    
    return warnings
