"""
Mutable representation of a body that belongs to a System.
"""

from __future__ import annotations

import math
from typing import Iterable, TYPE_CHECKING

import numpy as np

from .errors import InvalidBodyError

if TYPE_CHECKING:  # Avoid circular import during runtime
    from .system import System


def _vector3(values: Iterable[float], label: str) -> np.ndarray:
    try:
        vec = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidBodyError(f"{label} must be a 3-element vector of numbers") from exc
    if vec.shape != (3,):
        raise InvalidBodyError(f"{label} must be a 3-element vector, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise InvalidBodyError(f"{label} must be finite, got {vec.tolist()}")
    return vec


class Body:
    """
    A single point mass tracked by a System. Positions are in AU, velocities in
    AU/year and the mass in solar masses. The owning System is stored on the
    body as ``self.system`` and ``self.index`` is its stable position in
    ``system.bodies``.
    """

    def __init__(
        self,
        system: System,
        index: int,
        position: Iterable[float],
        velocity: Iterable[float],
        mass: float,
        radius: float,
        name: str,
        id: int,
    ) -> None:
        mass = float(mass)
        radius = float(radius)
        if not math.isfinite(mass) or mass <= 0:
            raise InvalidBodyError(f"mass of {name!r} must be positive, got {mass}")
        if not math.isfinite(radius) or radius < 0:
            raise InvalidBodyError(f"radius of {name!r} must be non-negative, got {radius}")
        self.system = system
        self.index = index
        self.name = name
        self.id = int(id)
        self.mass = mass
        self.radius = radius
        self.position = _vector3(position, "position")
        self.velocity = _vector3(velocity, "velocity")
        self._force = np.zeros(3, dtype=float)

    def __repr__(self) -> str:
        return (
            f"Body(name={self.name!r}, id={self.id}, mass={self.mass:g}, "
            f"position={self.position.tolist()}, velocity={self.velocity.tolist()})"
        )

    @property
    def force(self) -> np.ndarray:
        return self._force

    def reset_force(self) -> None:
        self._force.fill(0.0)

    def apply_force(self, force: np.ndarray) -> None:
        self._force += force

    def acceleration(self) -> np.ndarray:
        return self._force / self.mass

    def offset_from(self, other: Body) -> np.ndarray:
        """Position of this body relative to ``other``."""
        return self.position - other.position

    def distance_to(self, other: Body) -> float:
        """Return Euclidean distance to another body."""
        return float(np.linalg.norm(self.position - other.position))
