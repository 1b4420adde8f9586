"""
orbitcore.kepler — Kepler's Equation
=====================================

Conversions between mean, eccentric and true anomaly for elliptical
orbits.  Every iteration has a fixed cap; when the cap is reached the last
estimate is returned and a DEBUG message is logged.
"""

import logging
import math

from .utils import TWO_PI, clamp, wrap_two_pi

logger = logging.getLogger(__name__)

KEPLER_TOL = 1e-12
KEPLER_MAX_ITER = 32
NEWTON_TOL = 1e-8
NEWTON_MAX_ITER = 50


def match_half_plane(angle: float, match: float) -> float:
    """Choose ``angle`` or ``2π − angle``, whichever lies closest to ``match``.

    ``acos`` only returns [0, π]; this recovers the correct half-plane from
    a reference angle known to be in the same half.
    """
    a1 = angle
    a2 = TWO_PI - angle
    d1 = math.atan2(math.sin(a1 - match), math.cos(a1 - match))
    d2 = math.atan2(math.sin(a2 - match), math.cos(a2 - match))
    return a1 if abs(d1) < abs(d2) else a2


def solve_kepler(M: float, e: float, tol: float = KEPLER_TOL,
                 max_iter: int = KEPLER_MAX_ITER) -> float:
    """Eccentric anomaly from mean anomaly by fixed-point iteration.

    Parameters
    ----------
    M : float — mean anomaly [rad]
    e : float — eccentricity (0 ≤ e < 1)

    Returns
    -------
    E : float — eccentric anomaly [rad]
    """
    E = M
    for _ in range(max_iter):
        E_next = M + e * math.sin(E)
        if abs(E_next - E) < tol:
            return E_next
        E = E_next
    logger.debug("Kepler iteration hit %d-step cap (M=%.6f, e=%.6f)",
                 max_iter, M, e)
    return E


def eccentric_to_true_anomaly(E: float, e: float) -> float:
    return 2.0 * math.atan2(
        math.sqrt(1.0 + e) * math.sin(E / 2.0),
        math.sqrt(1.0 - e) * math.cos(E / 2.0),
    )


def true_to_eccentric_anomaly(nu: float, e: float) -> float:
    return 2.0 * math.atan2(
        math.sqrt(1.0 - e) * math.sin(nu / 2.0),
        math.sqrt(1.0 + e) * math.cos(nu / 2.0),
    )


def mean_to_true_anomaly(e: float, M: float) -> float:
    """True anomaly [rad, 0..2π) from mean anomaly."""
    E = solve_kepler(M, e)
    return wrap_two_pi(eccentric_to_true_anomaly(E, e))


def true_to_mean_anomaly(e: float, nu: float) -> float:
    """Mean anomaly [rad, 0..2π) from true anomaly."""
    E = true_to_eccentric_anomaly(nu, e)
    return wrap_two_pi(E - e * math.sin(E))


def newton_m(e: float, m: float) -> tuple[float, float]:
    """Newton-Raphson solve of Kepler's equation.

    Parameters
    ----------
    e : float — eccentricity
    m : float — mean anomaly [rad]

    Returns
    -------
    e0 : float — eccentric anomaly [rad]
    nu : float — true anomaly [rad]
    """
    if abs(e) < NEWTON_TOL:
        return m, m

    if (-math.pi < m < 0.0) or m > math.pi:
        e0 = m - e
    else:
        e0 = m + e

    for _ in range(NEWTON_MAX_ITER):
        e1 = e0 + (m - e0 + e * math.sin(e0)) / (1.0 - e * math.cos(e0))
        converged = abs(e1 - e0) < NEWTON_TOL
        e0 = e1
        if converged:
            break
    else:
        logger.debug("Newton-Raphson hit %d-step cap (M=%.6f, e=%.6f)",
                     NEWTON_MAX_ITER, m, e)

    sinv = math.sqrt(1.0 - e * e) * math.sin(e0) / (1.0 - e * math.cos(e0))
    cosv = (math.cos(e0) - e) / (1.0 - e * math.cos(e0))
    return e0, math.atan2(sinv, cosv)


def newton_nu(e: float, nu: float) -> tuple[float, float]:
    """Eccentric and mean anomaly [rad, 0..2π) from true anomaly (closed form)."""
    if abs(e) < NEWTON_TOL:
        return wrap_two_pi(nu), wrap_two_pi(nu)

    denom = 1.0 + e * math.cos(nu)
    sine = math.sqrt(1.0 - e * e) * math.sin(nu) / denom
    cose = (e + math.cos(nu)) / denom
    e0 = math.atan2(sine, cose)
    m = e0 - e * math.sin(e0)
    return wrap_two_pi(e0), wrap_two_pi(m)


def propagate_anomaly(e: float, nu0: float, n: float, dt: float) -> float:
    """Advance a true anomaly by ``dt`` seconds of two-body motion.

    Parameters
    ----------
    e : float — eccentricity
    nu0 : float — true anomaly at the start [rad]
    n : float — mean motion [rad/s]
    dt : float — elapsed time [s]

    Returns
    -------
    nu : float — true anomaly after ``dt`` [rad, 0..2π)
    """
    cos_nu0 = math.cos(nu0)
    E0 = math.acos(clamp((e + cos_nu0) / (1.0 + e * cos_nu0), -1.0, 1.0))
    E0 = match_half_plane(E0, nu0)
    M0 = E0 - e * math.sin(E0)
    M0 = match_half_plane(M0, E0)

    Mf = math.fmod(M0 + n * dt, TWO_PI)
    E = solve_kepler(Mf, e)

    nu = math.acos(clamp((math.cos(E) - e) / (1.0 - e * math.cos(E)), -1.0, 1.0))
    return wrap_two_pi(match_half_plane(nu, E))
