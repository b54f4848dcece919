import math

import numpy as np
import pytest

from solarsim.analysis.orbits import apsides, orbit_from_state
from solarsim.constants import G
from solarsim.errors import InvalidRunError
from solarsim.integrators import EulerIntegrator, Integrator, VerletIntegrator, make_integrator
from solarsim.scenarios import sun_earth, sun_earth_jupiter
from solarsim.system import System


def two_body(speed_factor=1.0, planet_mass=1e-6):
    """Sun and a light planet at 1 AU with zero total momentum."""
    system = System(name="two_body")
    v_rel = speed_factor * math.sqrt(G * (1.0 + planet_mass))
    v_planet = v_rel / (1.0 + planet_mass)
    sun = system.create_body((0, 0, 0), (0, -planet_mass * v_planet, 0), 1.0, 0.0, "sun", 1)
    planet = system.create_body((1, 0, 0), (0, v_planet, 0), planet_mass, 0.0, "planet", 2)
    return system, sun, planet


def relative_energy_errors(integrator, steps, every):
    system = sun_earth()
    system.evaluate_forces_and_energy()
    e0 = system.total_energy
    errors = []
    for step in range(1, steps + 1):
        integrator.integrate_one_step(system)
        if step % every == 0:
            system.evaluate_forces_and_energy()
            errors.append(abs((system.total_energy - e0) / e0))
    return errors


def test_integrators_share_contract():
    for integrator in (VerletIntegrator(0.01), EulerIntegrator(0.01)):
        assert isinstance(integrator, Integrator)
        assert integrator.dt == 0.01
    assert isinstance(make_integrator("verlet", 0.1), VerletIntegrator)
    assert isinstance(make_integrator("Euler", 0.1), EulerIntegrator)


@pytest.mark.parametrize("dt", [0.0, -1e-3])
def test_timestep_must_be_positive(dt):
    with pytest.raises(InvalidRunError):
        VerletIntegrator(dt)


def test_unknown_integrator():
    with pytest.raises(InvalidRunError):
        make_integrator("rk4", 0.1)


def test_verlet_closed_orbit():
    system = sun_earth()
    earth = system.get_body("earth")
    start_position = earth.position.copy()
    start_velocity = earth.velocity.copy()

    integrator = VerletIntegrator(0.001)
    for _ in range(1000):
        integrator.integrate_one_step(system)

    assert np.linalg.norm(earth.position - start_position) < 1e-3
    assert np.linalg.norm(earth.velocity - start_velocity) < 1e-2


def test_verlet_conserves_energy_while_euler_drifts():
    verlet = relative_energy_errors(VerletIntegrator(0.001), 2000, 100)
    euler = relative_energy_errors(EulerIntegrator(0.001), 2000, 100)

    assert max(verlet) < 1e-4
    assert all(later > earlier for earlier, later in zip(euler, euler[1:]))
    assert euler[-1] > 100 * max(verlet)


def test_semi_implicit_euler_stays_bounded():
    errors = relative_energy_errors(EulerIntegrator(0.001, semi_implicit=True), 2000, 100)
    explicit = relative_energy_errors(EulerIntegrator(0.001), 2000, 100)
    assert max(errors) < explicit[-1]


@pytest.mark.parametrize("integrator", [VerletIntegrator(0.001), EulerIntegrator(0.001)])
def test_momentum_is_conserved(integrator):
    system = sun_earth_jupiter()
    p0 = system.compute_momentum()
    for _ in range(500):
        integrator.integrate_one_step(system)
        np.testing.assert_allclose(system.compute_momentum(), p0, rtol=0, atol=1e-12)


def test_verlet_reuses_forces(monkeypatch):
    system = sun_earth()
    calls = []
    original = system.evaluate_forces_and_energy

    def counting():
        calls.append(1)
        original()

    monkeypatch.setattr(system, "evaluate_forces_and_energy", counting)
    integrator = VerletIntegrator(0.001)
    for _ in range(10):
        integrator.integrate_one_step(system)
    assert len(calls) == 11

    calls.clear()
    system.relativity = True
    for _ in range(10):
        integrator.integrate_one_step(system)
    assert len(calls) == 20


def test_separation_extremes_circular_orbit():
    system, sun, planet = two_body()
    integrator = VerletIntegrator(0.001)
    for _ in range(1100):
        integrator.integrate_one_step(system)
        system.track_separation_extremes(planet, sun)

    assert system.min_separation == pytest.approx(1.0, abs=5e-4)
    assert system.max_separation == pytest.approx(1.0, abs=5e-4)
    assert system.max_separation - system.min_separation < 5e-4


def test_separation_extremes_eccentric_orbit():
    system, sun, planet = two_body(speed_factor=1.2)
    a, e = orbit_from_state(
        planet.offset_from(sun), planet.velocity - sun.velocity, sun.mass + planet.mass
    )
    perihelion, aphelion = apsides(a, e)
    assert perihelion == pytest.approx(1.0)

    integrator = VerletIntegrator(0.001)
    for _ in range(2500):  # slightly more than one 2.39 yr period
        integrator.integrate_one_step(system)
        system.track_separation_extremes(planet, sun)

    assert system.min_separation < system.max_separation
    assert system.min_separation == pytest.approx(perihelion, rel=1e-3)
    assert system.max_separation == pytest.approx(aphelion, rel=1e-3)
