"""
orbitcore.earth — Earth Orientation Model
==========================================

Precession (IAU 1976), the four leading IAU 1980 nutation terms, and
apparent sidereal time, all as pure functions of a UTC epoch.

Polynomials are evaluated in Terrestrial Time Julian centuries since
J2000.0 and are listed highest degree first.

Reference
---------
Vallado, D.A. (2013). *Fundamentals of Astrodynamics*, 4th ed., §3.7.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .cache import TransformCache
from .utils import (
    ASEC2RAD, DEG2RAD, MU_EARTH, OMEGA_EARTH, TWO_PI, SIDEREAL_DAY_SECONDS,
    datetime_to_jd, eval_poly, gmst, tt_centuries,
)

# ── Precession polynomials [arcsec] ─────────────────────────────────────────
_ZETA = (0.017998, 0.30188, 2306.2181, 0.0)
_THETA = (-0.041833, -0.42665, 2004.3109, 0.0)
_ZED = (0.018203, 1.09468, 2306.2181, 0.0)

# ── Fundamental arguments [deg] ─────────────────────────────────────────────
_MOON_ANOM = (1.4343e-5, 0.0088553, 1325.0 * 360.0 + 198.8675605, 134.96340251)
_SUN_ANOM = (3.8e-8, -0.0001537, 99.0 * 360.0 + 359.0502911, 357.52910918)
_MOON_LAT = (-2.88e-7, -0.003542, 1342.0 * 360.0 + 82.0174577, 93.27209062)
_SUN_ELONG = (1.831e-6, -0.0017696, 1236.0 * 360.0 + 307.1114469, 297.85019547)
_MOON_RAAN = (2.139e-6, 0.0020756, -(5.0 * 360.0 + 134.1361851), 125.04455501)

# Mean obliquity of the ecliptic [arcsec]
_MEAN_EPS = (0.001813, -0.00059, -46.815, 84381.448)

# IAU 1980 leading terms:
#   (l, l', F, D, Ω multipliers, ψ coeff, ψ rate, ε coeff, ε rate)  [1e-4 arcsec]
IAU1980_TERMS = (
    (0, 0, 0, 0, 1, -171996.0, -174.2, 92025.0, 8.9),
    (0, 0, 2, -2, 2, -13187.0, -1.6, 5736.0, -3.1),
    (0, 0, 2, 0, 2, -2274.0, -0.2, 977.0, -0.5),
    (0, 0, 0, 0, 2, 2062.0, 0.2, -895.0, 0.5),
)


@dataclass(frozen=True)
class PrecessionAngles:
    zeta: float   # [rad]
    theta: float
    zed: float


@dataclass(frozen=True)
class NutationAngles:
    d_psi: float   # nutation in longitude [rad]
    d_eps: float   # nutation in obliquity [rad]
    m_eps: float   # mean obliquity [rad]
    eps: float     # true obliquity [rad]
    eq_eq: float   # equation of the equinoxes [rad]
    gast: float    # Greenwich apparent sidereal time [rad]


@dataclass(frozen=True)
class EarthOrientation:
    epoch: datetime
    precession: PrecessionAngles
    nutation: NutationAngles


# ════════════════════════════════════════════════════════════════════════════
#  Precession & Nutation
# ════════════════════════════════════════════════════════════════════════════

def precession(epoch: datetime) -> PrecessionAngles:
    """IAU 1976 precession angles (ζ, θ, z) for a UTC epoch."""
    t = tt_centuries(epoch)
    return PrecessionAngles(
        zeta=eval_poly(t, _ZETA) * ASEC2RAD,
        theta=eval_poly(t, _THETA) * ASEC2RAD,
        zed=eval_poly(t, _ZED) * ASEC2RAD,
    )


def nutation(epoch: datetime) -> NutationAngles:
    """Nutation angles and apparent sidereal time for a UTC epoch.

    Parameters
    ----------
    epoch : datetime — UTC instant

    Returns
    -------
    NutationAngles — Δψ, Δε, mean and true obliquity, equation of the
        equinoxes and GAST, all in radians
    """
    t = tt_centuries(epoch)
    moon_anom = eval_poly(t, _MOON_ANOM) * DEG2RAD
    sun_anom = eval_poly(t, _SUN_ANOM) * DEG2RAD
    moon_lat = eval_poly(t, _MOON_LAT) * DEG2RAD
    sun_elong = eval_poly(t, _SUN_ELONG) * DEG2RAD
    moon_raan = eval_poly(t, _MOON_RAAN) * DEG2RAD

    d_psi = 0.0
    d_eps = 0.0
    for a1, a2, a3, a4, a5, psi, psi_t, eps, eps_t in IAU1980_TERMS:
        arg = (a1 * moon_anom + a2 * sun_anom + a3 * moon_lat
               + a4 * sun_elong + a5 * moon_raan)
        d_psi += (psi + psi_t * t) * math.sin(arg)
        d_eps += (eps + eps_t * t) * math.cos(arg)
    d_psi *= ASEC2RAD / 1e4
    d_eps *= ASEC2RAD / 1e4

    m_eps = eval_poly(t, _MEAN_EPS) * ASEC2RAD
    eq_eq = (d_psi * math.cos(m_eps)
             + 0.00264 * ASEC2RAD * math.sin(moon_raan)
             + 0.000063 * ASEC2RAD * math.sin(2.0 * moon_raan))
    gast = gmst(datetime_to_jd(epoch)) + eq_eq

    return NutationAngles(
        d_psi=d_psi, d_eps=d_eps, m_eps=m_eps, eps=m_eps + d_eps,
        eq_eq=eq_eq, gast=gast,
    )


def orientation(epoch: datetime,
                cache: Optional[TransformCache] = None) -> EarthOrientation:
    """Precession and nutation for ``epoch``, memoised in ``cache`` if given."""
    def compute():
        return EarthOrientation(epoch, precession(epoch), nutation(epoch))

    if cache is None:
        return compute()
    return cache.get_or_compute(("earth-orientation", epoch), compute)


def gast(epoch: datetime) -> float:
    """Greenwich apparent sidereal time [rad]."""
    return nutation(epoch).gast


# ════════════════════════════════════════════════════════════════════════════
#  Two-Body Helpers
# ════════════════════════════════════════════════════════════════════════════

def sma_to_mean_motion(semimajor_axis: float) -> float:
    """Semi-major axis [km] → mean motion [rad/s]."""
    return math.sqrt(MU_EARTH / semimajor_axis ** 3)


def revs_per_day_to_sma(revs_per_day: float) -> float:
    """Revolutions per (solar) day → semi-major axis [km]."""
    n = revs_per_day * TWO_PI / 86400.0
    return (MU_EARTH / n ** 2) ** (1.0 / 3.0)


def sma_to_drift(semimajor_axis: float) -> float:
    """Longitudinal drift rate [deg/day] relative to a geosynchronous orbit."""
    t = TWO_PI * math.sqrt(semimajor_axis ** 3 / MU_EARTH) / SIDEREAL_DAY_SECONDS
    return (1.0 - t) * 360.0


def drift_to_sma(drift: float) -> float:
    """Longitudinal drift rate [deg/day] → semi-major axis [km]."""
    t = (1.0 - drift / 360.0) * SIDEREAL_DAY_SECONDS
    return (MU_EARTH * (t / TWO_PI) ** 2) ** (1.0 / 3.0)


# Earth rotation vector in the Earth-fixed frame [rad/s]
EARTH_ROTATION = (0.0, 0.0, OMEGA_EARTH)
