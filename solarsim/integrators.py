"""
Fixed-timestep integrators that advance a System by one step at a time.

Both strategies share the ``integrate_one_step(system)`` contract so a driver
can swap one for the other. Velocity Verlet is symplectic and keeps the energy
error bounded over very long runs; forward Euler is kept for comparison and
drifts steadily.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Type

from .errors import InvalidRunError
from .system import System


class Integrator(ABC):
    """Advances a System by one fixed timestep ``dt`` (in years)."""

    name = "integrator"

    def __init__(self, dt: float) -> None:
        dt = float(dt)
        if not dt > 0:
            raise InvalidRunError(f"dt must be positive, got {dt}")
        self.dt = dt

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dt={self.dt})"

    @abstractmethod
    def integrate_one_step(self, system: System) -> None:
        """Mutate the system's bodies in place to the state one ``dt`` later."""


class VerletIntegrator(Integrator):
    """
    Velocity Verlet (kick-drift-kick leapfrog).

    The forces evaluated at the end of a step are reused at the start of the
    next one whenever they are still current, so a step costs one force
    evaluation in the Newtonian case.
    """

    name = "verlet"

    def integrate_one_step(self, system: System) -> None:
        half_dt = 0.5 * self.dt
        if not system.forces_current():
            system.evaluate_forces_and_energy()

        for body in system.bodies:
            body.velocity += half_dt * body.acceleration()
        for body in system.bodies:
            body.position += self.dt * body.velocity

        system.evaluate_forces_and_energy()
        for body in system.bodies:
            body.velocity += half_dt * body.acceleration()


class EulerIntegrator(Integrator):
    """
    Forward Euler. By default the drift uses the velocity from the start of
    the step, which makes the energy error grow every step. With
    ``semi_implicit=True`` the drift uses the freshly kicked velocity instead
    (Euler-Cromer).
    """

    name = "euler"

    def __init__(self, dt: float, semi_implicit: bool = False) -> None:
        super().__init__(dt)
        self.semi_implicit = semi_implicit

    def integrate_one_step(self, system: System) -> None:
        system.evaluate_forces_and_energy()
        for body in system.bodies:
            acceleration = body.acceleration()
            if self.semi_implicit:
                body.velocity += self.dt * acceleration
                body.position += self.dt * body.velocity
            else:
                body.position += self.dt * body.velocity
                body.velocity += self.dt * acceleration


INTEGRATORS: Dict[str, Type[Integrator]] = {
    VerletIntegrator.name: VerletIntegrator,
    EulerIntegrator.name: EulerIntegrator,
}


def make_integrator(name: str, dt: float, **kwargs) -> Integrator:
    try:
        cls = INTEGRATORS[name.lower()]
    except KeyError:
        raise InvalidRunError(
            f"Unknown integrator {name!r}; choose one of {sorted(INTEGRATORS)}"
        ) from None
    return cls(dt, **kwargs)
