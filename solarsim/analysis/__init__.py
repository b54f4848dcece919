from .orbits import calculate_eccentricity, min_max_separation, orbit_from_state, semi_major_axis
from .precession import PerihelionTracker, expected_precession_arcsec_per_century, perihelion_angle_arcsec

__all__ = [
    "calculate_eccentricity",
    "min_max_separation",
    "orbit_from_state",
    "semi_major_axis",
    "PerihelionTracker",
    "expected_precession_arcsec_per_century",
    "perihelion_angle_arcsec",
]
