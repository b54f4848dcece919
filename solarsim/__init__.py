from .body import Body
from .errors import SingularityError, SolarSimError
from .integrators import EulerIntegrator, Integrator, VerletIntegrator, make_integrator
from .physics import RunResult, run_simulation
from .system import System

__all__ = [
    "Body",
    "System",
    "Integrator",
    "VerletIntegrator",
    "EulerIntegrator",
    "make_integrator",
    "RunResult",
    "run_simulation",
    "SolarSimError",
    "SingularityError",
]
