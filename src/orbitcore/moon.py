"""
orbitcore.moon — Lunar Ephemeris & Illumination
================================================

Low-precision analytical Moon position (about 0.3° in longitude and
0.2° in latitude) from the principal periodic terms, evaluated in the
mean-of-date frame and precessed to J2000 [km].

Reference
---------
Vallado, D.A. (2013). *Fundamentals of Astrodynamics*, 4th ed., §5.3.
"""

import math
from datetime import datetime
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .sun import _mean_of_date_to_j2000, angular_diameter, sun_position
from .utils import DEG2RAD, R_EARTH, angle_between, datetime_to_jd, julian_centuries

# ── Constants ───────────────────────────────────────────────────────────────
R_MOON = 1738.0                     # equatorial radius               [km]
MU_MOON = 4902.799                  # [km³/s²]


def moon_position(epoch: datetime) -> NDArray:
    """Geocentric Moon position in J2000 [km].

    Parameters
    ----------
    epoch : datetime — UTC instant

    Returns
    -------
    r_moon : (3,) ndarray
    """
    T = julian_centuries(datetime_to_jd(epoch))

    def s(a, b):
        return math.sin((a + b * T) * DEG2RAD)

    def c(a, b):
        return math.cos((a + b * T) * DEG2RAD)

    # ecliptic longitude / latitude [deg] and horizontal parallax [deg]
    lam = (218.32 + 481267.8813 * T
           + 6.29 * s(134.9, 477198.85) - 1.27 * s(259.2, -413335.38)
           + 0.66 * s(235.7, 890534.23) + 0.21 * s(269.9, 954397.7)
           - 0.19 * s(357.5, 35999.05) - 0.11 * s(186.6, 966404.05)) * DEG2RAD
    phi = (5.13 * s(93.3, 483202.03) + 0.28 * s(228.2, 960400.87)
           - 0.28 * s(318.3, 6003.18) - 0.17 * s(217.6, -407332.2)) * DEG2RAD
    parallax = (0.9508 + 0.0518 * c(134.9, 477198.85)
                + 0.0095 * c(259.2, -413335.38) + 0.0078 * c(235.7, 890534.23)
                + 0.0028 * c(269.9, 954397.7)) * DEG2RAD
    obliq = (23.439291 - 0.0130042 * T) * DEG2RAD

    r_mag = R_EARTH / math.sin(parallax)
    cos_phi = math.cos(phi)
    r_mod = r_mag * np.array([
        cos_phi * math.cos(lam),
        math.cos(obliq) * cos_phi * math.sin(lam) - math.sin(obliq) * math.sin(phi),
        math.sin(obliq) * cos_phi * math.sin(lam) + math.cos(obliq) * math.sin(phi),
    ])
    return _mean_of_date_to_j2000(epoch) @ r_mod


def moon_distance(epoch: datetime) -> float:
    """Earth-Moon distance [km]."""
    return float(np.linalg.norm(moon_position(epoch)))


def moon_illumination(epoch: datetime, origin: Optional[NDArray] = None) -> float:
    """Illuminated fraction of the lunar disk seen from ``origin`` [0..1].

    ``origin`` defaults to the Earth's centre (J2000 [km]).
    """
    orig = np.zeros(3) if origin is None else np.asarray(origin, dtype=np.float64)
    elongation = angle_between(sun_position(epoch) - orig, moon_position(epoch) - orig)
    return 0.5 * (1.0 - math.cos(elongation))


def moon_angular_diameter(r_observer: NDArray, r_moon: NDArray) -> float:
    """Apparent diameter of the Moon [rad] from ``r_observer``."""
    distance = float(np.linalg.norm(np.asarray(r_moon) - np.asarray(r_observer)))
    return angular_diameter(2.0 * R_MOON, distance)
