"""
Measuring how the perihelion of an orbit rotates over time.

The general-relativistic advance per orbit is 6 pi G M / (c^2 a (1 - e^2));
for Mercury it adds up to roughly 43 arcseconds per century.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..constants import ARCSEC_PER_RADIAN, G, SPEED_OF_LIGHT_AU_PER_YEAR
from ..physics import period_years
from ..system import BodyRef, System
from .orbits import wrapped_angle_diff


def perihelion_angle_arcsec(offset) -> float:
    """Angle of a perihelion coordinate in the orbital (x, y) plane, in arcseconds."""
    return math.atan2(float(offset[1]), float(offset[0])) * ARCSEC_PER_RADIAN


def expected_precession_per_orbit(
    a: float,
    e: float,
    central_mass: float = 1.0,
    speed_of_light: float = SPEED_OF_LIGHT_AU_PER_YEAR,
) -> float:
    """Relativistic perihelion advance in radians per revolution."""
    return 6.0 * math.pi * G * central_mass / (speed_of_light ** 2 * a * (1.0 - e ** 2))


def expected_precession_arcsec_per_century(
    a: float,
    e: float,
    central_mass: float = 1.0,
    speed_of_light: float = SPEED_OF_LIGHT_AU_PER_YEAR,
) -> float:
    per_orbit = expected_precession_per_orbit(a, e, central_mass, speed_of_light)
    orbits_per_century = 100.0 / period_years(a, central_mass)
    return per_orbit * orbits_per_century * ARCSEC_PER_RADIAN


@dataclass
class PerihelionPassage:
    t: float
    distance: float
    angle: float  # radians, in the x-y plane


class PerihelionTracker:
    """
    Watches the separation of ``body`` from ``reference`` after every step and
    records each local minimum as a perihelion passage. The passage time,
    distance and angle are refined with a parabola through the three samples
    around the minimum, so the result is much finer than the timestep.
    """

    def __init__(self, system: System, body: BodyRef, reference: BodyRef) -> None:
        self.system = system
        self.body, self.reference = system.resolve_pair(body, reference)
        self.passages: List[PerihelionPassage] = []
        self._window: List[tuple] = []

    def update(self, t: float) -> Optional[PerihelionPassage]:
        offset = self.body.offset_from(self.reference)
        sample = (t, float(np.linalg.norm(offset)), math.atan2(offset[1], offset[0]))
        self._window.append(sample)
        if len(self._window) > 3:
            self._window.pop(0)
        if len(self._window) < 3:
            return None

        (t0, d0, a0), (t1, d1, a1), (t2, d2, a2) = self._window
        if not (d1 < d0 and d1 <= d2):
            return None

        curvature = d0 - 2.0 * d1 + d2
        s = 0.5 * (d0 - d2) / curvature if curvature > 0 else 0.0
        # Angles relative to the middle sample so the fit never straddles the branch cut.
        da0 = wrapped_angle_diff(a0, a1)
        da2 = wrapped_angle_diff(a2, a1)
        angle = a1 + 0.5 * s * (da2 - da0) + 0.5 * s * s * (da0 + da2)
        distance = d1 + 0.5 * s * (d2 - d0) + 0.5 * s * s * curvature
        passage = PerihelionPassage(
            t=t1 + s * 0.5 * (t2 - t0),
            distance=distance,
            angle=math.atan2(math.sin(angle), math.cos(angle)),
        )
        self.passages.append(passage)
        return passage

    def unwrapped_angles(self) -> np.ndarray:
        return np.unwrap([p.angle for p in self.passages])

    def precession_per_orbit(self) -> float:
        """Least-squares perihelion advance in radians per passage."""
        if len(self.passages) < 2:
            raise ValueError("At least two perihelion passages are needed")
        angles = self.unwrapped_angles()
        return float(np.polyfit(np.arange(len(angles)), angles, 1)[0])

    def precession_rate_arcsec_per_century(self) -> float:
        if len(self.passages) < 2:
            raise ValueError("At least two perihelion passages are needed")
        times = np.array([p.t for p in self.passages])
        slope = np.polyfit(times, self.unwrapped_angles(), 1)[0]
        return float(slope * 100.0 * ARCSEC_PER_RADIAN)
