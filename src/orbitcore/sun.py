"""
orbitcore.sun — Solar Ephemeris & Earth Shadow
===============================================

Low-precision analytical Sun position (about 0.01° in ecliptic longitude
over ±50 years from J2000) and the Earth-shadow geometry built on it.

The series is evaluated in the mean-of-date frame and precessed back to
J2000, so every position returned here is J2000 in kilometres.

Capabilities
------------
- Sun position, apparent (light-time delayed) position, RA / Dec
- Eclipse angles and the fraction of the solar disk that is visible
- Penumbra-cone shadow test and a conical umbra / penumbra classification

Reference
---------
Vallado, D.A. (2013). *Fundamentals of Astrodynamics*, 4th ed., §5.1.
Meeus, J. (1998). *Astronomical Algorithms*, 2nd ed., Willmann-Bell.
"""

import math
from datetime import datetime, timedelta

import numpy as np
from numpy.typing import NDArray

from .earth import precession
from .utils import (
    DEG2RAD, R_EARTH, SPEED_OF_LIGHT, angle_between, clamp, datetime_to_jd,
    julian_centuries, normalize, rot_y, rot_z, wrap_two_pi,
)

# ── Constants ───────────────────────────────────────────────────────────────
AU = 149597870.7                    # astronomical unit               [km]
R_SUN = 695500.0                    # solar radius                    [km]
MU_SUN = 1.32712428e11              # [km³/s²]
PENUMBRA_ANGLE = 0.26900424 * DEG2RAD
UMBRA_ANGLE = 0.26411888 * DEG2RAD


def _mean_of_date_to_j2000(epoch: datetime) -> NDArray:
    p = precession(epoch)
    return rot_z(p.zeta) @ rot_y(-p.theta) @ rot_z(p.zed)


def angular_diameter(diameter: float, distance: float) -> float:
    """Angular diameter [rad] of a sphere seen from ``distance``."""
    return 2.0 * math.asin(clamp(diameter / (2.0 * distance), -1.0, 1.0))


# ════════════════════════════════════════════════════════════════════════════
#  Solar Ephemeris
# ════════════════════════════════════════════════════════════════════════════

def sun_position(epoch: datetime) -> NDArray:
    """Geocentric Sun position in J2000 [km].

    Parameters
    ----------
    epoch : datetime — UTC instant

    Returns
    -------
    r_sun : (3,) ndarray
    """
    T = julian_centuries(datetime_to_jd(epoch))

    lam_sun = 280.46 + 36000.77 * T                   # mean longitude [deg]
    m_sun = (357.5291092 + 35999.05034 * T) * DEG2RAD  # mean anomaly
    lam_ecl = (lam_sun + 1.914666471 * math.sin(m_sun)
               + 0.019994643 * math.sin(2.0 * m_sun)) * DEG2RAD
    obliq = (23.439291 - 0.0130042 * T) * DEG2RAD
    r_au = (1.000140612 - 0.016708617 * math.cos(m_sun)
            - 0.000139589 * math.cos(2.0 * m_sun))

    r_mod = r_au * AU * np.array([
        math.cos(lam_ecl),
        math.cos(obliq) * math.sin(lam_ecl),
        math.sin(obliq) * math.sin(lam_ecl),
    ])
    return _mean_of_date_to_j2000(epoch) @ r_mod


def sun_position_apparent(epoch: datetime) -> NDArray:
    """Sun position delayed by the light travel time to Earth [km]."""
    delay = np.linalg.norm(sun_position(epoch)) / SPEED_OF_LIGHT
    return sun_position(epoch - timedelta(seconds=float(delay)))


def sun_direction(epoch: datetime) -> NDArray:
    """Unit vector from Earth to Sun in J2000."""
    return normalize(sun_position(epoch))


def sun_distance(epoch: datetime) -> float:
    """Earth-Sun distance [km]."""
    return float(np.linalg.norm(sun_position(epoch)))


def solar_declination_ra(epoch: datetime) -> tuple[float, float]:
    """Solar right ascension and declination [rad].

    Returns
    -------
    ra : float — right ascension [rad, 0..2π]
    dec : float — declination [rad, -π/2..π/2]
    """
    r = sun_position(epoch)
    ra = wrap_two_pi(math.atan2(r[1], r[0]))
    dec = math.asin(clamp(r[2] / np.linalg.norm(r), -1.0, 1.0))
    return ra, dec


def sun_angular_diameter(r_observer: NDArray, r_sun: NDArray) -> float:
    """Apparent diameter of the Sun [rad] from ``r_observer``."""
    distance = float(np.linalg.norm(np.asarray(r_sun) - np.asarray(r_observer)))
    return angular_diameter(2.0 * R_SUN, distance)


# ════════════════════════════════════════════════════════════════════════════
#  Earth Shadow / Eclipse Geometry
# ════════════════════════════════════════════════════════════════════════════

def eclipse_angles(r_sat: NDArray, r_sun: NDArray) -> tuple[float, float, float]:
    """Angles seen from the satellite.

    Returns
    -------
    separation : float — angle between the Sun and the Earth's centre [rad]
    earth_radius : float — apparent angular radius of the Earth [rad]
    sun_radius : float — apparent angular radius of the Sun [rad]
    """
    r_sat = np.asarray(r_sat, dtype=np.float64)
    sat_sun = np.asarray(r_sun, dtype=np.float64) - r_sat
    r = float(np.linalg.norm(r_sat))
    return (angle_between(sat_sun, -r_sat),
            math.asin(clamp(R_EARTH / r, -1.0, 1.0)),
            math.asin(clamp(R_SUN / float(np.linalg.norm(sat_sun)), -1.0, 1.0)))


def lighting_ratio(r_sat: NDArray, r_sun: NDArray) -> float:
    """Visible fraction of the solar disk: 0 in umbra, 1 in full sunlight.

    The partial case is the overlap area of two circles (Sun and Earth
    disks) on the satellite's sky.
    """
    sep, a_cent, a_sun = eclipse_angles(r_sat, r_sun)

    if sep - a_cent + a_sun <= 1e-10:
        return 0.0
    if sep - a_cent - a_sun >= -1e-10:
        return 1.0

    sep2 = sep * sep
    ac2 = a_cent * a_cent
    as2 = a_sun * a_sun
    a1 = (sep2 - (ac2 - as2)) / (2.0 * sep)
    a2 = (sep2 + (ac2 - as2)) / (2.0 * sep)
    p1 = as2 * math.acos(clamp(a1 / a_sun, -1.0, 1.0)) - a1 * math.sqrt(max(as2 - a1 * a1, 0.0))
    p2 = ac2 * math.acos(clamp(a2 / a_cent, -1.0, 1.0)) - a2 * math.sqrt(max(ac2 - a2 * a2, 0.0))
    return 1.0 - (p1 + p2) / (math.pi * as2)


def in_shadow(epoch: datetime, r_sat: NDArray) -> bool:
    """True if ``r_sat`` (J2000 [km]) lies inside the Earth's penumbra cone."""
    r_sat = np.asarray(r_sat, dtype=np.float64)
    r_sun = sun_position_apparent(epoch)
    if np.dot(r_sun, r_sat) >= 0.0:
        return False

    # measured from the anti-Sun axis so the cone widens behind the Earth
    angle = angle_between(-r_sun, r_sat)
    r = float(np.linalg.norm(r_sat))
    horizontal = r * math.cos(angle)
    vertical = r * math.sin(angle)
    return vertical <= R_EARTH + math.tan(PENUMBRA_ANGLE) * horizontal


def eclipse_state(r_sat: NDArray, epoch: datetime) -> str:
    """Conical shadow classification: ``'sunlit'``, ``'penumbra'`` or ``'umbra'``.

    Parameters
    ----------
    r_sat : (3,) — satellite position in J2000 [km]
    epoch : datetime — UTC instant
    """
    r = np.asarray(r_sat, dtype=np.float64)
    r_sun = sun_position(epoch)
    d_sun = float(np.linalg.norm(r_sun))
    s_hat = r_sun / d_sun

    alpha_umbra = math.asin((R_SUN - R_EARTH) / d_sun)
    alpha_penumbra = math.asin((R_SUN + R_EARTH) / d_sun)

    r_mag = float(np.linalg.norm(r))
    cos_theta = float(np.dot(r, s_hat)) / r_mag
    if cos_theta > 0.0:
        return "sunlit"

    perp_dist = r_mag * math.sqrt(max(1.0 - cos_theta * cos_theta, 0.0))
    behind = -r_mag * cos_theta          # distance behind the Earth

    r_umbra = R_EARTH - behind * math.tan(alpha_umbra)
    r_penumbra = R_EARTH + behind * math.tan(alpha_penumbra)

    if r_umbra > 0.0 and perp_dist < r_umbra:
        return "umbra"
    if perp_dist < r_penumbra:
        return "penumbra"
    return "sunlit"
