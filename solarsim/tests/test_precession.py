import math

import numpy as np
import pytest

from solarsim.analysis.orbits import orbit_from_state
from solarsim.analysis.precession import (
    PerihelionTracker,
    expected_precession_arcsec_per_century,
    expected_precession_per_orbit,
    perihelion_angle_arcsec,
)
from solarsim.constants import SPEED_OF_LIGHT_AU_PER_YEAR
from solarsim.integrators import VerletIntegrator
from solarsim.scenarios import sun_mercury

# A slow speed of light magnifies the relativistic term so a few orbits show it.
SLOW_LIGHT = 300.0
DT = 1e-4
STEPS = 12800  # about 5.3 Mercury years
# Verlet alone turns the Newtonian perihelion by about -1050"/century at this DT.
VERLET_DRIFT_BOUND = 1500.0


def measure(relativity, speed_of_light=SLOW_LIGHT, steps=STEPS):
    system = sun_mercury(relativity=relativity, speed_of_light=speed_of_light)
    sun, mercury = system.get_body("sun"), system.get_body("mercury")
    a, e = orbit_from_state(
        mercury.offset_from(sun), mercury.velocity - sun.velocity, sun.mass + mercury.mass
    )
    tracker = PerihelionTracker(system, mercury, sun)
    integrator = VerletIntegrator(DT)
    for step in range(1, steps + 1):
        integrator.integrate_one_step(system)
        tracker.update(step * DT)
    return tracker, a, e


def test_mercury_analytic_rate_is_43_arcsec_per_century():
    rate = expected_precession_arcsec_per_century(0.387098, 0.205630)
    assert 42.0 < rate < 44.0


def test_perihelion_angle_arcsec():
    assert perihelion_angle_arcsec([1.0, 0.0, 0.0]) == 0.0
    assert perihelion_angle_arcsec([0.0, 1.0, 0.0]) == pytest.approx(90 * 3600)
    assert perihelion_angle_arcsec(np.array([1.0, 1e-6, 0.0])) == pytest.approx(
        1e-6 * 180 / math.pi * 3600, rel=1e-6
    )


def test_relativistic_precession_matches_theory():
    tracker, a, e = measure(relativity=True)
    assert len(tracker.passages) >= 4
    for passage in tracker.passages:
        assert passage.distance == pytest.approx(0.3075, rel=1e-3)

    expected = expected_precession_per_orbit(a, e, speed_of_light=SLOW_LIGHT)
    measured = tracker.precession_per_orbit()
    assert measured > 0
    assert measured == pytest.approx(expected, rel=0.15)
    assert tracker.precession_rate_arcsec_per_century() > 0


def test_newtonian_orbit_does_not_precess():
    tracker, a, e = measure(relativity=False)
    assert len(tracker.passages) >= 4
    expected = expected_precession_per_orbit(a, e, speed_of_light=SLOW_LIGHT)
    assert abs(tracker.precession_per_orbit()) < 0.05 * expected
    assert abs(tracker.precession_rate_arcsec_per_century()) < VERLET_DRIFT_BOUND


def test_mercury_advances_43_arcsec_per_century_at_real_speed_of_light():
    relativistic, a, e = measure(True, SPEED_OF_LIGHT_AU_PER_YEAR, 13000)
    newtonian, _, _ = measure(False, SPEED_OF_LIGHT_AU_PER_YEAR, 13000)
    assert len(relativistic.passages) >= 4 and len(newtonian.passages) >= 4

    # Both runs share the same Verlet drift, so the difference is the relativistic term.
    advance = (
        relativistic.precession_rate_arcsec_per_century()
        - newtonian.precession_rate_arcsec_per_century()
    )
    assert 38.0 < advance < 48.0
    assert advance == pytest.approx(expected_precession_arcsec_per_century(a, e), rel=0.1)


def test_tracker_needs_two_passages():
    system = sun_mercury(relativity=False)
    tracker = PerihelionTracker(system, "mercury", "sun")
    with pytest.raises(ValueError):
        tracker.precession_per_orbit()
