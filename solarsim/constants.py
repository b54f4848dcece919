"""
Unit conventions shared by the simulation.

Lengths are in astronomical units, times in years and masses in solar masses.
With those units Kepler's third law reads T**2 = a**3, which fixes G = 4*pi**2.
"""

import math

G = 4.0 * math.pi ** 2  # AU^3 / (Msun yr^2)

AU_KM = 149597871.0
AU_M = AU_KM * 1000.0
DAYS_PER_YEAR = 365.242199
SECONDS_PER_YEAR = 365.25 * 86400.0  # Julian year
SOLAR_MASS_KG = 1.989e30

SPEED_OF_LIGHT_M_S = 299792458.0
SPEED_OF_LIGHT_AU_PER_YEAR = SPEED_OF_LIGHT_M_S * SECONDS_PER_YEAR / AU_M  # ~63241 AU/yr

# Pair separations below this are treated as a numerical singularity.
DEFAULT_MIN_SEPARATION = 1e-8  # AU, about 1.5 km

ARCSEC_PER_RADIAN = 180.0 / math.pi * 3600.0
