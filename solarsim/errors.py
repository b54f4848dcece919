"""
Exceptions raised by the simulation core.

Each error also derives from the builtin exception it most resembles so callers
that only catch ``ValueError`` or ``LookupError`` keep working.
"""


class SolarSimError(Exception):
    """Base class for every error raised by solarsim."""


class InvalidBodyError(SolarSimError, ValueError):
    """A body was created with a non-positive mass, negative radius or bad vector."""


class BodyNotFoundError(SolarSimError, LookupError):
    """A body reference (name or index) did not resolve to any body."""


class AmbiguousBodyError(SolarSimError, LookupError):
    """A name matched more than one body; use the handle returned by create_body."""


class SameBodyError(SolarSimError, ValueError):
    """Two references that must name distinct bodies resolved to the same one."""


class UninitializedDiagnosticError(SolarSimError, RuntimeError):
    """A diagnostic was read before anything computed it."""


class InvalidRunError(SolarSimError, ValueError):
    """Run parameters such as the timestep or step count are unusable."""


class UnknownScenarioError(SolarSimError, KeyError):
    """No scenario is registered under the requested name."""


class SingularityError(SolarSimError, ArithmeticError):
    """
    The force evaluation hit a state it cannot represent. Fatal to the run:
    the integration cannot meaningfully continue past it.
    """


class CloseEncounterError(SingularityError):
    def __init__(self, first: str, second: str, separation: float, floor: float) -> None:
        self.first = first
        self.second = second
        self.separation = separation
        self.floor = floor
        super().__init__(
            f"{first!r} and {second!r} are {separation:.3e} AU apart, "
            f"below the minimum separation of {floor:.3e} AU"
        )


class NonFiniteStateError(SingularityError):
    """Forces, energies or coordinates became NaN or infinite."""
