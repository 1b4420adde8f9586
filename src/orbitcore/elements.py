"""
orbitcore.elements — Classical & Equinoctial Orbital Elements
==============================================================

Two-body element sets and their conversions to and from inertial state
vectors.  Distances in km, angles in radians, ``mu`` in km³/s².

Equinoctial elements use a retrograde factor ``fr`` (+1 prograde, −1 when
``i > π/2``) so that the set stays regular at zero eccentricity and at
either equatorial inclination.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .errors import GeometryError
from .kepler import newton_m, newton_nu, propagate_anomaly
from .state import FrameKind, StateVector
from .utils import (
    DAILY_SECONDS, HALF_PI, MU_EARTH, RAD2DEG, TWO_PI, angle_between, clamp,
    wrap_two_pi,
)

logger = logging.getLogger(__name__)

# Below this |n| or e the node / perigee is undefined and taken as zero.
_SINGULAR_TOL = 1e-11


class OrbitRegime(Enum):
    LEO = "Low Earth Orbit"
    MEO = "Medium Earth Orbit"
    HEO = "Highly Eccentric Orbit"
    GEO = "Geosynchronous Orbit"
    OTHER = "Uncategorized Orbit"


def pqw_to_inertial_matrix(raan: float, argp: float, inc: float) -> NDArray:
    """Perifocal → inertial DCM."""
    cos_raan, sin_raan = math.cos(raan), math.sin(raan)
    cos_argp, sin_argp = math.cos(argp), math.sin(argp)
    cos_i, sin_i = math.cos(inc), math.sin(inc)

    return np.array([
        [cos_raan * cos_argp - sin_raan * sin_argp * cos_i,
         -cos_raan * sin_argp - sin_raan * cos_argp * cos_i,
         sin_raan * sin_i],
        [sin_raan * cos_argp + cos_raan * sin_argp * cos_i,
         -sin_raan * sin_argp + cos_raan * cos_argp * cos_i,
         -cos_raan * sin_i],
        [sin_argp * sin_i,
         cos_argp * sin_i,
         cos_i],
    ])


# ════════════════════════════════════════════════════════════════════════════
#  Classical Elements
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassicalElements:
    """Keplerian elements at an epoch.

    Parameters
    ----------
    epoch : datetime — element epoch (UTC)
    semimajor_axis : float — [km]
    eccentricity : float — 0 ≤ e < 1
    inclination : float — [rad]
    raan : float — right ascension of the ascending node [rad]
    arg_perigee : float — argument of perigee [rad]
    true_anomaly : float — [rad]
    mu : float — gravitational parameter [km³/s²]
    """
    epoch: datetime
    semimajor_axis: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    true_anomaly: float
    mu: float = MU_EARTH

    @classmethod
    def from_state_vector(cls, state: StateVector,
                          mu: float = MU_EARTH) -> "ClassicalElements":
        """Osculating elements of an inertial state.

        Raises
        ------
        GeometryError
            If ``state`` is Earth-fixed.
        """
        if not state.inertial:
            raise GeometryError(
                f"Element conversion needs an inertial state, got {state.frame.name}.")

        r = state.position
        v = state.velocity
        r_mag = float(np.linalg.norm(r))
        v_mag = float(np.linalg.norm(v))

        energy = 0.5 * v_mag**2 - mu / r_mag
        a = -mu / (2.0 * energy)

        e_vec = ((v_mag**2 - mu / r_mag) * r - np.dot(r, v) * v) / mu
        e = float(np.linalg.norm(e_vec))

        h = np.cross(r, v)
        h_mag = float(np.linalg.norm(h))
        if h_mag == 0.0:
            raise GeometryError("Rectilinear state has no orbit plane.")
        inc = math.acos(clamp(h[2] / h_mag, -1.0, 1.0))

        n = np.cross([0.0, 0.0, 1.0], h)
        n_mag = float(np.linalg.norm(n))
        if n_mag < _SINGULAR_TOL * h_mag:
            # equatorial: node along +X
            n = np.array([1.0, 0.0, 0.0])
            raan = 0.0
        else:
            raan = math.acos(clamp(n[0] / n_mag, -1.0, 1.0))
            if n[1] < 0.0:
                raan = TWO_PI - raan

        if e < _SINGULAR_TOL:
            # circular: perigee at the node, anomaly measured along h
            argp = 0.0
            nu = angle_between(n, r)
            if np.dot(np.cross(n, r), h) < 0.0:
                nu = TWO_PI - nu
        else:
            argp = angle_between(n, e_vec)
            if np.dot(np.cross(n, e_vec), h) < 0.0:
                argp = TWO_PI - argp
            nu = angle_between(e_vec, r)
            if np.dot(r, v) < 0.0:
                nu = TWO_PI - nu

        return cls(state.epoch, a, e, inc, raan, argp, nu, mu)

    # ── Degree accessors ──

    @property
    def inclination_deg(self) -> float:
        return self.inclination * RAD2DEG

    @property
    def raan_deg(self) -> float:
        return self.raan * RAD2DEG

    @property
    def arg_perigee_deg(self) -> float:
        return self.arg_perigee * RAD2DEG

    @property
    def true_anomaly_deg(self) -> float:
        return self.true_anomaly * RAD2DEG

    # ── Derived quantities ──

    @property
    def apogee(self) -> float:
        """Apogee radius [km]."""
        return self.semimajor_axis * (1.0 + self.eccentricity)

    @property
    def perigee(self) -> float:
        """Perigee radius [km]."""
        return self.semimajor_axis * (1.0 - self.eccentricity)

    @property
    def mean_motion(self) -> float:
        """[rad/s]"""
        return math.sqrt(self.mu / self.semimajor_axis**3)

    @property
    def period(self) -> float:
        """[s]"""
        return TWO_PI * math.sqrt(self.semimajor_axis**3 / self.mu)

    @property
    def revs_per_day(self) -> float:
        return DAILY_SECONDS / self.period

    @property
    def mean_anomaly(self) -> float:
        return newton_nu(self.eccentricity, self.true_anomaly)[1]

    def orbit_regime(self) -> OrbitRegime:
        n = self.revs_per_day
        p = self.period / 60.0
        e = self.eccentricity

        if 0.99 <= n <= 1.01 and e < 0.01:
            return OrbitRegime.GEO
        if 600.0 <= p <= 800.0 and e <= 0.25:
            return OrbitRegime.MEO
        if n >= 11.25 and e <= 0.25:
            return OrbitRegime.LEO
        if e > 0.25:
            return OrbitRegime.HEO
        return OrbitRegime.OTHER

    # ── Conversions ──

    def to_position_velocity(self) -> tuple[NDArray, NDArray]:
        """Inertial position [km] and velocity [km/s] via the PQW frame."""
        a, e, nu = self.semimajor_axis, self.eccentricity, self.true_anomaly
        p = a * (1.0 - e**2)                # semi-latus rectum
        r_mag = p / (1.0 + e * math.cos(nu))

        r_pqw = r_mag * np.array([math.cos(nu), math.sin(nu), 0.0])
        v_pqw = math.sqrt(self.mu / p) * np.array([-math.sin(nu), e + math.cos(nu), 0.0])

        R = pqw_to_inertial_matrix(self.raan, self.arg_perigee, self.inclination)
        return R @ r_pqw, R @ v_pqw

    def to_state_vector(self, frame: FrameKind = FrameKind.J2000) -> StateVector:
        if not frame.inertial:
            raise GeometryError(f"Elements map to an inertial frame, not {frame.name}.")
        r, v = self.to_position_velocity()
        return StateVector(self.epoch, r, v, frame)

    def to_equinoctial(self) -> "EquinoctialElements":
        fr = -1 if self.inclination > HALF_PI else 1
        e = self.eccentricity
        lon_peri = self.arg_perigee + fr * self.raan
        tan_half = math.tan(0.5 * self.inclination) ** fr

        return EquinoctialElements(
            epoch=self.epoch,
            af=e * math.cos(lon_peri),
            ag=e * math.sin(lon_peri),
            mean_longitude=wrap_two_pi(self.mean_anomaly + lon_peri),
            mean_motion=self.mean_motion,
            chi=tan_half * math.sin(self.raan),
            psi=tan_half * math.cos(self.raan),
            mu=self.mu,
            fr=fr,
        )

    def propagate(self, epoch: datetime) -> "ClassicalElements":
        """Two-body advance of the true anomaly to ``epoch``."""
        dt = (epoch - self.epoch).total_seconds()
        nu = propagate_anomaly(self.eccentricity, self.true_anomaly,
                               self.mean_motion, dt)
        return ClassicalElements(epoch, self.semimajor_axis, self.eccentricity,
                                 self.inclination, self.raan, self.arg_perigee,
                                 nu, self.mu)

    def __str__(self) -> str:
        return "\n".join([
            "[ClassicalElements]",
            f"  Epoch: {self.epoch.isoformat()}",
            f"  Semimajor Axis (a):       {self.semimajor_axis:.4f} km",
            f"  Eccentricity (e):         {self.eccentricity:.7f}",
            f"  Inclination (i):          {self.inclination_deg:.4f}°",
            f"  Right Ascension (Ω):      {self.raan_deg:.4f}°",
            f"  Argument of Perigee (ω):  {self.arg_perigee_deg:.4f}°",
            f"  True Anomaly (ν):         {self.true_anomaly_deg:.4f}°",
        ])


# ════════════════════════════════════════════════════════════════════════════
#  Equinoctial Elements
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EquinoctialElements:
    """Non-singular element set.

    ``af, ag`` are the eccentricity-vector components, ``chi, psi`` the
    node-vector components, ``mean_longitude`` [rad], ``mean_motion``
    [rad/s] and ``fr`` the retrograde factor (±1).
    """
    epoch: datetime
    af: float
    ag: float
    mean_longitude: float
    mean_motion: float
    chi: float
    psi: float
    mu: float = MU_EARTH
    fr: int = 1

    @property
    def semimajor_axis(self) -> float:
        return (self.mu / self.mean_motion**2) ** (1.0 / 3.0)

    @property
    def eccentricity(self) -> float:
        return math.hypot(self.af, self.ag)

    @property
    def period(self) -> float:
        """[s]"""
        return TWO_PI / self.mean_motion

    @property
    def revs_per_day(self) -> float:
        return DAILY_SECONDS / self.period

    def to_classical(self) -> ClassicalElements:
        fr = self.fr
        e = self.eccentricity
        inc = (math.pi * (1.0 - fr) * 0.5
               + 2.0 * fr * math.atan(math.hypot(self.chi, self.psi)))
        raan = math.atan2(self.chi, self.psi)
        argp = math.atan2(self.ag, self.af) - fr * raan
        m = self.mean_longitude - fr * raan - argp
        nu = newton_m(e, m)[1]

        return ClassicalElements(
            epoch=self.epoch,
            semimajor_axis=self.semimajor_axis,
            eccentricity=e,
            inclination=inc,
            raan=wrap_two_pi(raan),
            arg_perigee=wrap_two_pi(argp),
            true_anomaly=wrap_two_pi(nu),
            mu=self.mu,
        )

    def to_position_velocity(self) -> tuple[NDArray, NDArray]:
        return self.to_classical().to_position_velocity()
