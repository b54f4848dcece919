"""
Initial conditions for the reference systems.

Every builder returns a freshly populated System. Masses are converted from
kilograms to solar masses and radii from kilometres to AU; ephemeris velocities
are given in AU/day and converted to AU/year.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List

from .constants import AU_KM, DAYS_PER_YEAR, SOLAR_MASS_KG
from .errors import UnknownScenarioError
from .physics import circular_velocity
from .system import System

SUN_RADIUS_AU = 6.955e5 / AU_KM

# name -> (mass kg, radius km)
PLANETS = {
    "mercury": (3.301e23, 2440.0),
    "venus": (4.867e24, 6051.893),
    "earth": (5.972e24, 6378.14),
    "mars": (6.417e23, 3394.0),
    "jupiter": (1.898e27, 71492.0),
    "saturn": (5.683e26, 60268.0),
    "uranus": (8.681e25, 25559.0),
    "neptune": (1.024e26, 24766.0),
}

# Heliocentric state vectors: (id, position AU, velocity AU/day).
EPHEMERIS = {
    "sun": (
        1,
        (3.583187837707098e-03, 3.347917208376574e-03, -1.601566243263295e-04),
        (-1.916797473876860e-06, 6.860577040555349e-06, 3.852105421771686e-08),
    ),
    "mercury": (
        2,
        (-1.689638050644479e-01, 2.746185253985868e-01, 3.783565039667143e-02),
        (-2.941090431599825e-02, -1.400673667979914e-02, 1.552995718374029e-03),
    ),
    "venus": (
        3,
        (2.261833743605355e-02, -7.233613245242075e-01, -1.122302675795243e-02),
        (2.008241010304477e-02, 4.625021426170730e-04, -1.152705875157388e-03),
    ),
    "earth": (
        4,
        (9.779167444303752e-01, 2.272281606873612e-01, -1.762900112459768e-04),
        (-4.140900006551348e-03, 1.671297229409165e-02, -6.071663121998971e-07),
    ),
    "mars": (
        6,
        (1.083484179334264, -8.630838246913118e-01, -4.481984242527660e-02),
        (9.286451652444910e-03, 1.212119447482730e-02, 2.594581334177116e-05),
    ),
    "jupiter": (
        7,
        (-5.433021216987578, -3.890762583943597e-01, 1.231202671627251e-01),
        (4.512629769156300e-04, -7.169976033688688e-03, 1.969934735867556e-05),
    ),
    "saturn": (
        11,
        (-2.313180120049030, -9.763200920369798, 2.618183143745622e-01),
        (5.123311296208641e-03, -1.303286396807794e-03, -1.814530920780186e-04),
    ),
    "uranus": (
        13,
        (1.847687170457543e01, 7.530306462979262, -2.114037101346196e-01),
        (-1.513092405140061e-03, 3.458857885545459e-03, 3.234920926043226e-05),
    ),
    "neptune": (
        18,
        (2.825174937236003e01, -9.949114169366872, -4.462071175746522e-01),
        (1.021996736183022e-03, 2.979258351346539e-03, -8.531373744879276e-05),
    ),
}

MERCURY_PERIHELION_AU = 0.3075
MERCURY_PERIHELION_SPEED = 12.44  # AU/yr


def planet_mass(name: str) -> float:
    return PLANETS[name][0] / SOLAR_MASS_KG


def planet_radius(name: str) -> float:
    return PLANETS[name][1] / AU_KM


def sun_earth() -> System:
    system = System(name="sun_earth")
    system.create_body((0, 0, 0), (0, 0, 0), 1.0, 0.2, "sun", 1)
    system.create_body((1, 0, 0), (0, 2 * math.pi, 0), 3e-6, 0.1, "earth", 4)
    return system


def sun_earth_jupiter() -> System:
    system = System(name="sun_earth_jupiter")
    system.create_body((0, 0, 0), (0, 0, 0), 1.0, 0.4, "sun", 1)
    system.create_body((1, 0, 0), (0, 2 * math.pi, 0), 3e-6, 0.1, "earth", 4)
    system.create_body(
        (5.2, 0, 0), (0, circular_velocity(5.2), 0), planet_mass("jupiter"), 0.3, "jupiter", 7
    )
    return system


def sun_mercury(relativity: bool = True, **system_kwargs) -> System:
    """
    Mercury released at perihelion with the sun recoiling so the total
    momentum is zero.
    """
    name = "sun_mercury_gr" if relativity else "sun_mercury"
    system = System(name=name, relativity=relativity, **system_kwargs)
    mercury_mass = planet_mass("mercury")
    system.create_body(
        (0, 0, 0),
        (0, -MERCURY_PERIHELION_SPEED * mercury_mass, 0),
        1.0,
        SUN_RADIUS_AU,
        "sun",
        1,
    )
    system.create_body(
        (MERCURY_PERIHELION_AU, 0, 0),
        (0, MERCURY_PERIHELION_SPEED, 0),
        mercury_mass,
        planet_radius("mercury"),
        "mercury",
        2,
    )
    return system


def solar_system(barycentric: bool = False) -> System:
    """The sun and the eight planets from a single ephemeris epoch."""
    system = System(name="solar_system")
    sun_id, sun_pos, sun_vel = EPHEMERIS["sun"]
    system.create_body(
        sun_pos, [v * DAYS_PER_YEAR for v in sun_vel], 1.0, SUN_RADIUS_AU, "sun", sun_id
    )
    for name in PLANETS:
        body_id, position, velocity = EPHEMERIS[name]
        system.create_body(
            position,
            [v * DAYS_PER_YEAR for v in velocity],
            planet_mass(name),
            planet_radius(name),
            name,
            body_id,
        )
    if barycentric:
        system.apply_center_of_mass_shift()
        system.apply_momentum_correction("sun")
    return system


def sun_jupiter_crash() -> System:
    """Jupiter thrown straight at the sun; used to exercise collision checks."""
    system = System(name="sun_jupiter_crash")
    system.create_body((0, 0, 0), (0, 0, 0), 1.0, 0.2, "sun crash test", 1)
    system.create_body((5, 0, 0), (-1, 0, 0), planet_mass("jupiter"), 0.1, "crashing jupiter", 25)
    return system


SCENARIOS: Dict[str, Callable[..., System]] = {
    "sun_earth": sun_earth,
    "sun_earth_jupiter": sun_earth_jupiter,
    "sun_mercury": sun_mercury,
    "solar_system": solar_system,
    "sun_jupiter_crash": sun_jupiter_crash,
}


def scenario_names() -> List[str]:
    return sorted(SCENARIOS)


def build_scenario(name: str, **kwargs) -> System:
    try:
        builder = SCENARIOS[name]
    except KeyError:
        raise UnknownScenarioError(
            f"Unknown scenario {name!r}; choose one of {scenario_names()}"
        ) from None
    return builder(**kwargs)
