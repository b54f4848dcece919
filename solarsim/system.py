"""
Main class for handling a solar system.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .body import Body
from .constants import DEFAULT_MIN_SEPARATION, G, SPEED_OF_LIGHT_AU_PER_YEAR
from .errors import (
    AmbiguousBodyError,
    BodyNotFoundError,
    CloseEncounterError,
    InvalidBodyError,
    InvalidRunError,
    NonFiniteStateError,
    SameBodyError,
    UninitializedDiagnosticError,
)

logger = logging.getLogger(__name__)

# A body can be referred to by the handle create_body returned, its index or a
# unique name.
BodyRef = Union[Body, int, str]


class System:
    """
    Container that owns Body instances, computes pairwise gravity and energy,
    and keeps the diagnostics a run accumulates.

    Forces are only refreshed by ``evaluate_forces_and_energy``; integrators
    call it once per sub-step. The energy accessors report whatever the most
    recent evaluation measured.
    """

    def __init__(
        self,
        name: str = "Unnamed system",
        gravitational_constant: float = G,
        relativity: bool = False,
        speed_of_light: float = SPEED_OF_LIGHT_AU_PER_YEAR,
        min_separation: float = DEFAULT_MIN_SEPARATION,
        initial_bodies: Optional[Sequence[dict]] = None,
    ):
        if not min_separation >= 0:
            raise InvalidRunError(f"min_separation must be non-negative, got {min_separation}")
        self.name = name
        self.gravitational_constant = float(gravitational_constant)
        self.min_separation_floor = float(min_separation)
        self.bodies: List[Body] = []
        self._relativity = bool(relativity)

        self._kinetic_energy: Optional[float] = None
        self._potential_energy: Optional[float] = None
        self._evaluated_state: Optional[np.ndarray] = None
        self.speed_of_light = speed_of_light

        self._min_separation: Optional[float] = None
        self._max_separation: Optional[float] = None
        self._perihelion_coordinates: Optional[np.ndarray] = None

        if initial_bodies:
            self.create_bodies(initial_bodies)

    def __repr__(self) -> str:
        return f"System(name={self.name!r}, bodies={[b.name for b in self.bodies]})"

    def create_body(
        self,
        position: Iterable[float],
        velocity: Iterable[float],
        mass: float,
        radius: float = 0.0,
        name: str = "",
        id: int = 0,
    ) -> Body:
        body = Body(self, len(self.bodies), position, velocity, mass, radius, name, id)
        self.bodies.append(body)
        self._evaluated_state = None
        logger.debug("Created body %r (id=%d) in %r", name, body.id, self.name)
        return body

    def create_bodies(self, configs: Sequence[dict]) -> List[Body]:
        created = []
        for cfg in configs:
            created.append(
                self.create_body(
                    position=cfg["position"],
                    velocity=cfg["velocity"],
                    mass=cfg["mass"],
                    radius=cfg.get("radius", 0.0),
                    name=cfg.get("name", ""),
                    id=cfg.get("id", len(self.bodies)),
                )
            )
        return created

    @property
    def body_count(self) -> int:
        return len(self.bodies)

    def total_mass(self) -> float:
        return sum(body.mass for body in self.bodies)

    def get_body(self, ref: BodyRef) -> Body:
        """
        Resolve a handle, an index or a name to one of this system's bodies.
        Names are only accepted while they are unique.
        """
        if isinstance(ref, Body):
            if ref.system is not self or ref.index >= len(self.bodies) or self.bodies[ref.index] is not ref:
                raise BodyNotFoundError(f"{ref!r} does not belong to {self.name!r}")
            return ref
        if isinstance(ref, (int, np.integer)) and not isinstance(ref, bool):
            if not 0 <= ref < len(self.bodies):
                raise BodyNotFoundError(f"No body at index {ref} in {self.name!r}")
            return self.bodies[ref]
        if isinstance(ref, str):
            matches = [body for body in self.bodies if body.name == ref]
            if not matches:
                raise BodyNotFoundError(f"No body named {ref!r} in {self.name!r}")
            if len(matches) > 1:
                raise AmbiguousBodyError(
                    f"{len(matches)} bodies are named {ref!r}; refer to them by handle or index"
                )
            return matches[0]
        raise TypeError(f"Cannot resolve a body from {type(ref).__name__}")

    def resolve_pair(self, first: BodyRef, second: BodyRef) -> Tuple[Body, Body]:
        body_a = self.get_body(first)
        body_b = self.get_body(second)
        if body_a is body_b:
            raise SameBodyError(
                f"{first!r} and {second!r} both refer to {body_a.name!r}; two distinct bodies are required"
            )
        return body_a, body_b

    @property
    def relativity(self) -> bool:
        return self._relativity

    @relativity.setter
    def relativity(self, enabled: bool) -> None:
        self._relativity = bool(enabled)
        self._evaluated_state = None

    def set_general_relativity(self, enabled: bool = True) -> None:
        self.relativity = enabled

    @property
    def speed_of_light(self) -> float:
        return self._speed_of_light

    @speed_of_light.setter
    def speed_of_light(self, value: float) -> None:
        value = float(value)
        if not (math.isfinite(value) and value > 0):
            raise InvalidRunError(f"speed_of_light must be positive and finite, got {value}")
        self._speed_of_light = value
        self._evaluated_state = None

    def _state_snapshot(self) -> np.ndarray:
        positions = [body.position for body in self.bodies]
        if not self._relativity:
            return np.array(positions, dtype=float)
        # The correction term depends on velocities as well.
        velocities = [body.velocity for body in self.bodies]
        return np.array(positions + velocities, dtype=float)

    def forces_current(self) -> bool:
        """True if the stored forces were evaluated for the present state."""
        if self._evaluated_state is None:
            return False
        return np.array_equal(self._evaluated_state, self._state_snapshot())

    def evaluate_forces_and_energy(self) -> None:
        """
        Zero every force accumulator, then add the gravitational pull of each
        unordered pair and record the kinetic and potential energy.

        With relativity enabled each pair force is scaled by
        ``1 + 3 l**2 / (r**2 c**2)`` where ``l`` is the pair's specific orbital
        angular momentum. Raises CloseEncounterError when a pair is closer than
        ``min_separation_floor`` and NonFiniteStateError on NaN or infinite state.
        """
        for body in self.bodies:
            body.reset_force()

        grav = self.gravitational_constant
        c2 = self.speed_of_light ** 2
        floor = self.min_separation_floor
        kinetic = 0.0
        potential = 0.0

        for i, body in enumerate(self.bodies):
            kinetic += 0.5 * body.mass * float(np.dot(body.velocity, body.velocity))
            for other in self.bodies[i + 1:]:
                offset = other.position - body.position
                distance = float(np.linalg.norm(offset))
                if not math.isfinite(distance):
                    raise NonFiniteStateError(
                        f"Separation of {body.name!r} and {other.name!r} is {distance}"
                    )
                if distance <= floor:
                    raise CloseEncounterError(body.name, other.name, distance, floor)

                pair_mass = grav * body.mass * other.mass
                magnitude = pair_mass / distance ** 2
                if self._relativity:
                    ang = np.cross(offset, other.velocity - body.velocity)
                    magnitude *= 1.0 + 3.0 * float(np.dot(ang, ang)) / (distance ** 2 * c2)
                force = magnitude * offset / distance
                body.apply_force(force)
                other.apply_force(-force)
                potential -= pair_mass / distance

        if not (math.isfinite(kinetic) and math.isfinite(potential)):
            raise NonFiniteStateError(
                f"Energy is not finite (kinetic={kinetic}, potential={potential})"
            )
        for body in self.bodies:
            if not np.all(np.isfinite(body.force)):
                raise NonFiniteStateError(f"Force on {body.name!r} is not finite")

        self._kinetic_energy = kinetic
        self._potential_energy = potential
        self._evaluated_state = self._state_snapshot()

    def collision_predicate(self, first: BodyRef, second: BodyRef) -> bool:
        """True if the two bodies touch or overlap. Does not change any state."""
        body_a, body_b = self.resolve_pair(first, second)
        return body_a.distance_to(body_b) <= body_a.radius + body_b.radius

    def _energy(self, value: Optional[float], label: str) -> float:
        if value is None:
            raise UninitializedDiagnosticError(
                f"{label} energy is not available before evaluate_forces_and_energy()"
            )
        return value

    @property
    def kinetic_energy(self) -> float:
        return self._energy(self._kinetic_energy, "Kinetic")

    @property
    def potential_energy(self) -> float:
        return self._energy(self._potential_energy, "Potential")

    @property
    def total_energy(self) -> float:
        return self.kinetic_energy + self.potential_energy

    def track_separation_extremes(self, first: BodyRef, second: BodyRef) -> float:
        """
        Measure the current separation of two bodies and fold it into the
        running minimum and maximum. Returns the separation.
        """
        body_a, body_b = self.resolve_pair(first, second)
        distance = body_a.distance_to(body_b)
        if self._min_separation is None:
            self._min_separation = distance
            self._max_separation = distance
        else:
            self._min_separation = min(self._min_separation, distance)
            self._max_separation = max(self._max_separation, distance)
        return distance

    def reset_separation_extremes(self) -> None:
        self._min_separation = None
        self._max_separation = None

    @property
    def min_separation(self) -> float:
        if self._min_separation is None:
            raise UninitializedDiagnosticError("No separation has been tracked yet")
        return self._min_separation

    @property
    def max_separation(self) -> float:
        if self._max_separation is None:
            raise UninitializedDiagnosticError("No separation has been tracked yet")
        return self._max_separation

    def capture_perihelion_if_close(
        self, first: BodyRef, second: BodyRef, threshold_distance: float
    ) -> bool:
        """
        Record the offset of ``first`` from ``second`` if they are within
        ``threshold_distance``. Returns whether the coordinate was captured.
        """
        body_a, body_b = self.resolve_pair(first, second)
        offset = body_a.offset_from(body_b)
        if float(np.linalg.norm(offset)) > threshold_distance:
            return False
        self._perihelion_coordinates = offset
        return True

    @property
    def perihelion_coordinates(self) -> np.ndarray:
        if self._perihelion_coordinates is None:
            raise UninitializedDiagnosticError("No perihelion coordinate has been captured yet")
        return self._perihelion_coordinates.copy()

    def compute_center_of_mass(self) -> np.ndarray:
        total = self.total_mass()
        if total == 0:
            return np.zeros(3, dtype=float)
        weighted = sum((body.mass * body.position for body in self.bodies), np.zeros(3))
        return weighted / total

    def apply_center_of_mass_shift(self) -> np.ndarray:
        """Translate every body so the center of mass sits at the origin."""
        center = self.compute_center_of_mass()
        for body in self.bodies:
            body.position -= center
        logger.debug("Shifted %r by %s to its center of mass", self.name, center.tolist())
        return center

    def compute_momentum(self) -> np.ndarray:
        return sum((body.mass * body.velocity for body in self.bodies), np.zeros(3))

    def compute_angular_momentum(self) -> np.ndarray:
        return sum(
            (body.mass * np.cross(body.position, body.velocity) for body in self.bodies),
            np.zeros(3),
        )

    def apply_momentum_correction(self, ref: BodyRef = 0) -> np.ndarray:
        """
        Adjust the velocity of one body (the first by default, usually the
        star) so the total momentum vanishes. Returns the velocity change.
        """
        if not self.bodies:
            raise InvalidBodyError(f"{self.name!r} has no bodies to correct")
        body = self.get_body(ref)
        delta = -self.compute_momentum() / body.mass
        body.velocity += delta
        return delta

    def diagnostics(self) -> Dict[str, Any]:
        """JSON-ready snapshot of every diagnostic that has been computed."""
        summary: Dict[str, Any] = {
            "bodyCount": self.body_count,
            "relativity": self.relativity,
            "centerOfMass": self.compute_center_of_mass().tolist(),
            "momentum": self.compute_momentum().tolist(),
            "angularMomentum": self.compute_angular_momentum().tolist(),
        }
        if self._kinetic_energy is not None:
            summary["kineticEnergy"] = self.kinetic_energy
            summary["potentialEnergy"] = self.potential_energy
            summary["totalEnergy"] = self.total_energy
        if self._min_separation is not None:
            summary["minSeparation"] = self._min_separation
            summary["maxSeparation"] = self._max_separation
        if self._perihelion_coordinates is not None:
            summary["perihelionCoordinates"] = self._perihelion_coordinates.tolist()
        return summary
