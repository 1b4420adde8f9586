"""
orbitcore.frames — Reference Frame Transformations
===================================================

Rotations between the propagator's TEME frame, the J2000 inertial frame
and the Earth-fixed ITRF, plus a single ``convert`` entry point and the
RIC relative frame.

Frame Definitions
-----------------
**TEME**  (True Equator, Mean Equinox)
    SGP4 output frame.  Z along the true pole of date, X toward the mean
    equinox of date.

**J2000**  (Mean equator and equinox at J2000.0)
    Inertial hub.  Every Cartesian conversion routes through it.

**ITRF**  (Earth-fixed)
    Rotates with the Earth; velocity picks up the transport term ω⊕ × r.

**RIC**  (Radial / In-track / Cross-track)
    R = r̂,  C = (r × v)̂,  I = C × R.
    Right-handed orbital frame centred on an origin satellite.

All rotation matrices are direction-cosine matrices (DCMs) built from the
passive ``rot_x`` / ``rot_y`` / ``rot_z`` in ``orbitcore.utils``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from .cache import TransformCache
from .earth import EARTH_ROTATION, EarthOrientation, orientation
from .errors import GeometryError
from .geodetic import Geodetic, itrf_to_geodetic
from .sensor import GroundObserver, TopocentricObservation, itrf_to_topocentric
from .state import FrameKind, StateVector
from .utils import normalize, rot_x, rot_y, rot_z

logger = logging.getLogger(__name__)

FRAMES = frozenset(FrameKind)

_OMEGA = np.array(EARTH_ROTATION)


# ════════════════════════════════════════════════════════════════════════════
#  Internal Helpers
# ════════════════════════════════════════════════════════════════════════════

def _apply_dcm(R: NDArray, vec: NDArray) -> NDArray:
    """Apply a 3×3 DCM to a single (3,) vector or a batch (N, 3)."""
    vec = np.asarray(vec, dtype=np.float64)
    if vec.ndim == 1:
        return R @ vec
    return (R @ vec.T).T


def _require(state: StateVector, frame: FrameKind) -> None:
    if state.frame != frame:
        raise GeometryError(
            f"Expected a {frame.name} state, got {state.frame.name}.")


def _precession_matrix(eo: EarthOrientation) -> NDArray:
    """J2000 → mean-of-date."""
    p = eo.precession
    return rot_z(-p.zed) @ rot_y(p.theta) @ rot_z(-p.zeta)


def _nutation_matrix(eo: EarthOrientation) -> NDArray:
    """Mean-of-date → true-of-date."""
    n = eo.nutation
    return rot_x(-n.eps) @ rot_z(-n.d_psi) @ rot_x(n.m_eps)


# ════════════════════════════════════════════════════════════════════════════
#  TEME ↔ J2000
# ════════════════════════════════════════════════════════════════════════════
#
#  TEME differs from true-of-date only by the equation of the equinoxes
#  (Δψ·cos ε about Z); the rest is the nutation and precession chain.
#  The same DCM applies to position and velocity.
# ════════════════════════════════════════════════════════════════════════════

def teme_to_j2000_matrix(eo: EarthOrientation) -> NDArray:
    """DCM such that r_J2000 = R @ r_TEME."""
    p, n = eo.precession, eo.nutation
    return (rot_z(p.zeta) @ rot_y(-p.theta) @ rot_z(p.zed)
            @ rot_x(-n.m_eps) @ rot_z(n.d_psi) @ rot_x(n.eps)
            @ rot_z(-n.d_psi * np.cos(n.eps)))


def j2000_to_teme_matrix(eo: EarthOrientation) -> NDArray:
    return teme_to_j2000_matrix(eo).T


def teme_to_j2000(state: StateVector,
                  cache: Optional[TransformCache] = None) -> StateVector:
    _require(state, FrameKind.TEME)
    R = teme_to_j2000_matrix(orientation(state.epoch, cache))
    return StateVector(state.epoch, R @ state.position, R @ state.velocity,
                       FrameKind.J2000)


def j2000_to_teme(state: StateVector,
                  cache: Optional[TransformCache] = None) -> StateVector:
    _require(state, FrameKind.J2000)
    R = j2000_to_teme_matrix(orientation(state.epoch, cache))
    return StateVector(state.epoch, R @ state.position, R @ state.velocity,
                       FrameKind.TEME)


# ════════════════════════════════════════════════════════════════════════════
#  J2000 ↔ ITRF
# ════════════════════════════════════════════════════════════════════════════
#
#  Position :  r_itrf = R_z(GAST) · N · P · r_j2000
#  Velocity :  v_itrf = R_z(GAST) · N · P · v_j2000 − ω × r_itrf
#
#  where ω = [0, 0, ω_⊕].  Polar motion is neglected.
# ════════════════════════════════════════════════════════════════════════════

def j2000_to_itrf_matrix(eo: EarthOrientation) -> NDArray:
    """Rotation part of J2000 → ITRF (no transport term)."""
    return rot_z(eo.nutation.gast) @ _nutation_matrix(eo) @ _precession_matrix(eo)


def itrf_to_j2000_matrix(eo: EarthOrientation) -> NDArray:
    return j2000_to_itrf_matrix(eo).T


def j2000_to_itrf(state: StateVector,
                  cache: Optional[TransformCache] = None) -> StateVector:
    """J2000 state → Earth-fixed state, including the Coriolis term.

    Parameters
    ----------
    state : StateVector — J2000 position [km] / velocity [km/s]
    cache : TransformCache, optional — memoises the Earth orientation

    Returns
    -------
    StateVector tagged ``ITRF``
    """
    _require(state, FrameKind.J2000)
    R = j2000_to_itrf_matrix(orientation(state.epoch, cache))
    r = R @ state.position
    v = R @ state.velocity + np.cross(-_OMEGA, r)
    return StateVector(state.epoch, r, v, FrameKind.ITRF)


def itrf_to_j2000(state: StateVector,
                  cache: Optional[TransformCache] = None) -> StateVector:
    """Earth-fixed state → J2000 state."""
    _require(state, FrameKind.ITRF)
    eo = orientation(state.epoch, cache)
    spin = rot_z(-eo.nutation.gast)
    r_tod = spin @ state.position
    v_tod = spin @ (state.velocity + np.cross(_OMEGA, state.position))
    NP_T = (_nutation_matrix(eo) @ _precession_matrix(eo)).T
    return StateVector(state.epoch, NP_T @ r_tod, NP_T @ v_tod, FrameKind.J2000)


# ── Composite (via the J2000 hub) ──

def teme_to_itrf(state: StateVector,
                 cache: Optional[TransformCache] = None) -> StateVector:
    return j2000_to_itrf(teme_to_j2000(state, cache), cache)


def itrf_to_teme(state: StateVector,
                 cache: Optional[TransformCache] = None) -> StateVector:
    return j2000_to_teme(itrf_to_j2000(state, cache), cache)


# ════════════════════════════════════════════════════════════════════════════
#  Dispatcher
# ════════════════════════════════════════════════════════════════════════════

_TO_J2000 = {
    FrameKind.TEME: teme_to_j2000,
    FrameKind.J2000: lambda s, cache=None: s,
    FrameKind.ITRF: itrf_to_j2000,
}

_FROM_J2000 = {
    FrameKind.TEME: j2000_to_teme,
    FrameKind.J2000: lambda s, cache=None: s,
    FrameKind.ITRF: j2000_to_itrf,
}


def _to_cartesian(state: StateVector, target: FrameKind,
                  cache: Optional[TransformCache]) -> StateVector:
    if state.frame == target:
        return state
    # TEME ↔ ITRF also goes through the hub
    return _FROM_J2000[target](_TO_J2000[state.frame](state, cache), cache)


def convert(state: StateVector, target: Union[FrameKind, str],
            observer: Optional[GroundObserver] = None,
            cache: Optional[TransformCache] = None,
            ) -> Union[StateVector, Geodetic, TopocentricObservation]:
    """Convert a state to any supported frame.

    Parameters
    ----------
    state : StateVector — source state (TEME, J2000 or ITRF)
    target : FrameKind or str — destination frame name
    observer : GroundObserver — required for ``TOPOCENTRIC``
    cache : TransformCache, optional

    Returns
    -------
    StateVector for Cartesian targets, ``Geodetic`` for ``GEODETIC``,
    ``TopocentricObservation`` for ``TOPOCENTRIC``.
    """
    if isinstance(target, str):
        try:
            target = FrameKind[target.upper()]
        except KeyError:
            valid = sorted(f.name for f in FRAMES)
            raise GeometryError(
                f"Unknown frame '{target}'. Valid frames: {valid}") from None

    if not isinstance(state, StateVector) or not state.frame.cartesian:
        raise GeometryError(
            f"Cannot convert from {getattr(state, 'frame', state)!s}: "
            "source must be a Cartesian state.")

    if target.cartesian:
        return _to_cartesian(state, target, cache)

    itrf = _to_cartesian(state, FrameKind.ITRF, cache)
    if target == FrameKind.GEODETIC:
        return itrf_to_geodetic(itrf)

    if observer is None:
        raise GeometryError("Topocentric conversion requires an observer.")
    return itrf_to_topocentric(itrf, observer)


# ════════════════════════════════════════════════════════════════════════════
#  Inertial ↔ RIC
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class RelativeState:
    """Position [km] and velocity [km/s] in an origin's RIC frame."""
    epoch: datetime
    position: NDArray
    velocity: NDArray

    @property
    def range(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def range_rate(self) -> float:
        return float(np.dot(self.position, self.velocity)) / self.range

    def __repr__(self) -> str:
        r, v = self.position, self.velocity
        return (f"RelativeState(RIC, r=[{r[0]:.6f}, {r[1]:.6f}, {r[2]:.6f}] km, "
                f"v=[{v[0]:.9f}, {v[1]:.9f}, {v[2]:.9f}] km/s)")


def ric_matrix(r: NDArray, v: NDArray) -> NDArray:
    """Build the inertial→RIC direction-cosine matrix.

    Parameters
    ----------
    r : (3,) array — origin position [km]
    v : (3,) array — origin velocity [km/s]

    Returns
    -------
    R : (3,3) ndarray — DCM such that x_ric = R @ x_inertial
    """
    R_hat = normalize(r)                     # radial outward
    C_hat = normalize(np.cross(r, v))        # orbit normal
    I_hat = normalize(np.cross(C_hat, R_hat))  # ~ along-track

    return np.array([R_hat, I_hat, C_hat])   # rows = local axes


def relative_state(state: StateVector, origin: StateVector) -> RelativeState:
    """Express ``state`` relative to ``origin`` in the origin's RIC frame.

    Both states must share the same inertial frame.
    """
    if not (state.inertial and origin.inertial):
        raise GeometryError("RIC states need inertial inputs.")
    if state.frame != origin.frame:
        raise GeometryError(
            f"Frame mismatch: {state.frame.name} vs {origin.frame.name}.")

    R = ric_matrix(origin.position, origin.velocity)
    dr = state.position - origin.position
    dv = state.velocity - origin.velocity
    return RelativeState(state.epoch, _apply_dcm(R, dr), _apply_dcm(R, dv))


def relative_to_inertial(rel: RelativeState, origin: StateVector) -> StateVector:
    """Inverse of ``relative_state``: RIC offset → state in the origin's frame."""
    if not origin.inertial:
        raise GeometryError("RIC origin must be inertial.")
    Rt = ric_matrix(origin.position, origin.velocity).T
    return StateVector(origin.epoch,
                       origin.position + _apply_dcm(Rt, rel.position),
                       origin.velocity + _apply_dcm(Rt, rel.velocity),
                       origin.frame)
