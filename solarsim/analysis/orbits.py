import math
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ..constants import G
from ..physics import calculate_eccentricity, semi_major_axis


def apsides(a: float, e: float) -> Tuple[float, float]:
    """Perihelion and aphelion distances of an ellipse."""
    return a * (1.0 - e), a * (1.0 + e)


def wrapped_angle_diff(a: float, b: float) -> float:
    # a - b folded into [-pi, pi]
    return math.remainder(a - b, 2.0 * math.pi)


def orbit_from_state(
    offset: Sequence[float], relative_velocity: Sequence[float], total_mass: float = 1.0
) -> Tuple[float, float]:
    """
    Semi-major axis and eccentricity of a bound two-body orbit from the
    relative position and velocity (vis-viva plus the eccentricity vector).
    """
    r = np.asarray(offset, dtype=float)
    v = np.asarray(relative_velocity, dtype=float)
    mu = G * total_mass
    distance = float(np.linalg.norm(r))
    energy = 0.5 * float(np.dot(v, v)) - mu / distance
    if energy >= 0:
        raise ValueError("orbit is not bound")
    a = -mu / (2.0 * energy)
    e_vec = ((float(np.dot(v, v)) - mu / distance) * r - float(np.dot(r, v)) * v) / mu
    return a, float(np.linalg.norm(e_vec))


def _find_body(sample: Dict[str, Any], name: str) -> np.ndarray:
    for body in sample.get("bodies", []):
        if body.get("name") == name:
            return np.asarray(body["position"], dtype=float)
    raise ValueError(f"No body named {name!r} in sample at t={sample.get('t')}")


def min_max_separation(samples: List[Dict[str, Any]], first: str, second: str) -> Tuple[float, float]:
    """
    Min and max separation of two named bodies across trajectory samples.
    """
    if not samples:
        raise ValueError("No samples provided for separation statistics.")
    distances = [
        float(np.linalg.norm(_find_body(sample, first) - _find_body(sample, second)))
        for sample in samples
    ]
    return min(distances), max(distances)
