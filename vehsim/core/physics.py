# Physics calculations
# FORBIDDEN: torch, logging, any I/O
# Mass distribution helpers used when a vehicle is assembled

import numpy as np

GRAVITY = 9.81


def polygon_area(polygon: np.ndarray) -> float:
    """Signed area of a simple polygon (shoelace formula).

    Positive for counter-clockwise vertex order.

    Args:
        polygon: Vertices, shape (N, 2)

    Returns:
        Signed area in m²
    """
    pts = np.asarray(polygon, dtype=np.float64)
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def polygon_centroid(polygon: np.ndarray) -> np.ndarray:
    """Centroid of a simple polygon.

    Falls back to the vertex mean for degenerate (zero-area) polygons.

    Args:
        polygon: Vertices, shape (N, 2)

    Returns:
        Centroid (x, y)
    """
    pts = np.asarray(polygon, dtype=np.float64)
    area = polygon_area(pts)
    if abs(area) < 1e-12:
        return pts.mean(axis=0)

    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    cx = np.sum((x + x1) * cross) / (6.0 * area)
    cy = np.sum((y + y1) * cross) / (6.0 * area)
    return np.array([cx, cy])


def polygon_inertia(
    polygon: np.ndarray,
    mass: float,
    about: np.ndarray = None,
) -> float:
    """Polar moment of inertia of a uniform-density polygon.

    Args:
        polygon: Vertices, shape (N, 2)
        mass: Total mass in kg
        about: Point the inertia is taken about (default: centroid)

    Returns:
        Moment of inertia in kg·m²
    """
    pts = np.asarray(polygon, dtype=np.float64)
    centroid = polygon_centroid(pts)
    area = polygon_area(pts)

    if abs(area) < 1e-12:
        # Degenerate shape: treat vertices as equal point masses
        d2 = np.sum((pts - centroid) ** 2, axis=1)
        inertia_c = mass * float(np.mean(d2))
    else:
        # Second moment about the centroid, triangle fan decomposition
        rel = pts - centroid
        x, y = rel[:, 0], rel[:, 1]
        x1, y1 = np.roll(x, -1), np.roll(y, -1)
        cross = x * y1 - x1 * y
        j = np.sum(cross * (x * x + x * x1 + x1 * x1 + y * y + y * y1 + y1 * y1)) / 12.0
        inertia_c = mass * abs(j / area)

    if about is None:
        return inertia_c

    # Parallel axis theorem
    offset = np.asarray(about, dtype=np.float64) - centroid
    return inertia_c + mass * float(offset @ offset)


def wheel_inertia(mass: float, radius: float) -> float:
    """Spin inertia of a wheel modelled as a solid disc.

    I = 0.5 * m * r^2
    """
    return 0.5 * mass * radius ** 2


def static_wheel_loads(
    total_mass: float,
    center_of_mass: np.ndarray,
    wheel_positions: np.ndarray,
    gravity: float = GRAVITY,
) -> np.ndarray:
    """Distribute the vehicle weight over its wheels.

    Solves the static equilibrium (vertical force and both tilting moments)
    in the least-norm sense, so it is exact for statically determinate
    layouts (3 non-collinear wheels) and yields the smoothest distribution
    for 4 or more. Two-wheel layouts (axle through the contact points) get
    the force and roll-moment balance only.

    Args:
        total_mass: Vehicle mass including wheels (kg)
        center_of_mass: Overall center of mass, local frame
        wheel_positions: Wheel contact points, shape (N, 2)
        gravity: Gravitational acceleration

    Returns:
        Normal load per wheel in Newtons, shape (N,)
    """
    pos = np.asarray(wheel_positions, dtype=np.float64).reshape(-1, 2)
    com = np.asarray(center_of_mass, dtype=np.float64)
    weight = total_mass * gravity
    n = len(pos)

    if n == 0:
        return np.zeros(0)
    if n == 1:
        return np.array([weight])

    # sum(N_i) = W ; sum(N_i x_i) = W x_c ; sum(N_i y_i) = W y_c
    a = np.vstack([np.ones(n), pos[:, 0], pos[:, 1]])
    b = np.array([weight, weight * com[0], weight * com[1]])

    loads = np.linalg.pinv(a) @ b

    # A COM outside the support polygon would imply pulling wheels
    loads = np.clip(loads, 0.0, None)
    total = loads.sum()
    if total <= 0:
        return np.full(n, weight / n)
    return loads * (weight / total)
