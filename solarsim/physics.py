"""
Utilities for running a System forward in time and collecting the
diagnostics and trajectory samples a run produces.
"""

from __future__ import annotations

import json
import logging
import math
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import G
from .errors import InvalidRunError, SingularityError
from .integrators import Integrator
from .system import BodyRef, System
from .trajectory import TrajectoryWriter, sample_bodies

logger = logging.getLogger(__name__)


def period_years(a_au: float, central_mass: float = 1.0) -> float:
    # Kepler's third law, T^2 = a^3 / M in AU, years and solar masses
    return math.sqrt(a_au ** 3 / central_mass)


def circular_velocity(r_au: float, central_mass: float = 1.0) -> float:
    """Speed in AU/yr of a circular orbit; 2*pi at 1 AU around one solar mass."""
    return math.sqrt(G * central_mass / r_au)


def calculate_eccentricity(min_r: float, max_r: float) -> float:
    """Eccentricity of an ellipse from its closest and farthest separation."""
    total = min_r + max_r
    return (max_r - min_r) / total if total else 0.0


def semi_major_axis(min_r: float, max_r: float) -> float:
    return 0.5 * (min_r + max_r)


@dataclass
class RunResult:
    system_name: str
    integrator: str
    dt: float
    steps_requested: int
    steps_completed: int = 0
    completed: bool = False
    stop_reason: str = ""
    error: Optional[str] = None
    initial_energy: Optional[float] = None
    final_energy: Optional[float] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    samples: List[Dict[str, Any]] = field(default_factory=list)
    timings_ms: Dict[str, float] = field(default_factory=dict)

    @property
    def simulated_years(self) -> float:
        return self.steps_completed * self.dt

    @property
    def relative_energy_drift(self) -> Optional[float]:
        if self.initial_energy is None or self.final_energy is None or self.initial_energy == 0:
            return None
        return abs((self.final_energy - self.initial_energy) / self.initial_energy)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["simulated_years"] = self.simulated_years
        payload["relative_energy_drift"] = self.relative_energy_drift
        return payload


def run_simulation(
    system: System,
    integrator: Integrator,
    num_steps: int,
    *,
    track: Optional[Tuple[BodyRef, BodyRef]] = None,
    perihelion: Optional[Tuple[BodyRef, BodyRef, float]] = None,
    perihelion_from: float = 0.9,
    writer: Optional[TrajectoryWriter] = None,
    sample_every: int = 0,
    sample_steps: Optional[Sequence[int]] = None,
) -> RunResult:
    """
    Advance ``system`` by ``num_steps`` steps of ``integrator``.

    ``track`` names a pair whose separation extremes are updated after every
    step; the eccentricity and semi-major axis implied by those extremes are
    added to the diagnostics. ``perihelion`` is ``(body, reference, threshold)``; the coordinate is
    captured on steps from ``perihelion_from * num_steps`` onward. Samples are
    taken every ``sample_every`` steps and/or on the explicit ``sample_steps``
    (0-based step indices, e.g. from ``logarithmic_cadence``); the same
    samples are written to ``writer`` when one is given.

    A numerical singularity stops the run early: the result then has
    ``completed == False`` and ``stop_reason == "singularity"``.
    """
    if num_steps < 0:
        raise InvalidRunError(f"num_steps must be non-negative, got {num_steps}")
    if sample_every < 0:
        raise InvalidRunError(f"sample_every must be non-negative, got {sample_every}")
    if not 0.0 <= perihelion_from <= 1.0:
        raise InvalidRunError(f"perihelion_from must lie in [0, 1], got {perihelion_from}")
    # Resolve early so lookup errors surface before any integration happens.
    if track is not None:
        track = system.resolve_pair(*track)
    if perihelion is not None:
        body, reference, threshold = perihelion
        perihelion = (*system.resolve_pair(body, reference), float(threshold))

    result = RunResult(
        system_name=system.name,
        integrator=integrator.name,
        dt=integrator.dt,
        steps_requested=num_steps,
    )
    chosen_steps = set(sample_steps or ())
    capture_start = int(num_steps * perihelion_from)

    def record(t: float) -> None:
        result.samples.append(sample_bodies(system, t))
        if writer is not None:
            writer.write(system, t)

    logger.info(
        "Running %r with %s for %d steps (dt=%g yr, relativity=%s)",
        system.name, integrator.name, num_steps, integrator.dt, system.relativity,
    )
    start = time.perf_counter()
    try:
        system.evaluate_forces_and_energy()
        result.initial_energy = system.total_energy
        if sample_every:
            record(0.0)

        for step in range(num_steps):
            integrator.integrate_one_step(system)
            result.steps_completed = step + 1
            if track is not None:
                system.track_separation_extremes(*track)
            if perihelion is not None and step >= capture_start:
                system.capture_perihelion_if_close(*perihelion)
            if (sample_every and (step + 1) % sample_every == 0) or step in chosen_steps:
                record((step + 1) * integrator.dt)

        # Re-evaluate so the energies match the final velocities.
        system.evaluate_forces_and_energy()
        result.final_energy = system.total_energy
        result.completed = True
        result.stop_reason = "completed"
    except SingularityError as exc:
        result.stop_reason = "singularity"
        result.error = str(exc)
        logger.error(
            "Run of %r stopped after %d of %d steps: %s",
            system.name, result.steps_completed, num_steps, exc,
        )
    result.timings_ms["integrate"] = (time.perf_counter() - start) * 1000.0
    result.diagnostics = system.diagnostics()
    if track is not None and "minSeparation" in result.diagnostics:
        closest = result.diagnostics["minSeparation"]
        farthest = result.diagnostics["maxSeparation"]
        result.diagnostics["eccentricity"] = calculate_eccentricity(closest, farthest)
        result.diagnostics["semiMajorAxis"] = semi_major_axis(closest, farthest)

    logger.info(
        "Finished %r: %d steps (%.3f yr), stop_reason=%s, energy drift=%s",
        system.name, result.steps_completed, result.simulated_years,
        result.stop_reason, result.relative_energy_drift,
    )
    if os.getenv("SOLARSIM_DEBUG", "false").lower() == "true":
        with open("run_summary.json", "w") as f:
            json.dump({k: v for k, v in result.to_dict().items() if k != "samples"}, f, indent=2)
    return result
