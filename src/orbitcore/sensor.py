"""
orbitcore.sensor — Ground Observers & Topocentric Geometry
===========================================================

Range / azimuth / elevation (with rates) of a target seen from a ground
observer, the inverse mapping back to an Earth-fixed state, and the
Doppler factor for a radio link, plus geocentric and topocentric
right ascension / declination of inertial states.

SEZ Frame
---------
::

    S  horizontal, pointing south
    E  horizontal, pointing east
    Z  local vertical (zenith)

Azimuth is measured clockwise from north (0 = N, π/2 = E), elevation
from the horizon (π/2 = zenith).
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .errors import GeometryError
from .geodetic import Geodetic
from .state import FrameKind, StateVector
from .utils import (
    DEG2RAD, HALF_PI, RAD2DEG, SPEED_OF_LIGHT, TWO_PI, clamp, rot_y, rot_z,
    wrap_two_pi,
)

# Earth rotation rate used for the observer's inertial velocity [rad/s]
DOPPLER_OMEGA = 7.292115e-5


# ════════════════════════════════════════════════════════════════════════════
#  Observer & Observation Dataclasses
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GroundObserver:
    """Fixed site on the Earth's surface.

    Parameters
    ----------
    location : Geodetic — site latitude, longitude [rad] and altitude [km]
    name : str — site identifier
    min_elevation : float — elevation mask for ``is_visible`` [rad]
    max_range : float — slant range limit for ``is_visible`` [km]
    """
    location: Geodetic
    name: str = "Observer"
    min_elevation: float = 0.0
    max_range: float = math.inf

    @classmethod
    def from_degrees(cls, latitude: float, longitude: float,
                     altitude: float = 0.0, **kwargs) -> "GroundObserver":
        return cls(Geodetic.from_degrees(latitude, longitude, altitude), **kwargs)

    @property
    def latitude(self) -> float:
        return self.location.latitude

    @property
    def longitude(self) -> float:
        return self.location.longitude

    @property
    def altitude(self) -> float:
        return self.location.altitude

    def itrf_position(self) -> NDArray:
        """Observer position in ITRF [km]."""
        return self.location.to_position()

    def itrf(self, epoch: datetime) -> StateVector:
        return self.location.to_itrf(epoch)

    def is_visible(self, obs: "TopocentricObservation") -> bool:
        """Elevation-mask and range check for an observation from this site."""
        return obs.elevation >= self.min_elevation and obs.range <= self.max_range


@dataclass(frozen=True)
class TopocentricObservation:
    """Range [km], azimuth and elevation [rad] with optional rates."""
    epoch: datetime
    range: float
    azimuth: float
    elevation: float
    range_rate: Optional[float] = None       # [km/s]
    azimuth_rate: Optional[float] = None     # [rad/s]
    elevation_rate: Optional[float] = None   # [rad/s]

    @property
    def azimuth_deg(self) -> float:
        return self.azimuth * RAD2DEG

    @property
    def elevation_deg(self) -> float:
        return self.elevation * RAD2DEG

    @property
    def has_rates(self) -> bool:
        return (self.range_rate is not None and self.azimuth_rate is not None
                and self.elevation_rate is not None)

    def angle(self, other: "TopocentricObservation") -> float:
        """Angular separation on the sky [rad]."""
        c = (math.sin(self.elevation) * math.sin(other.elevation)
             + math.cos(self.elevation) * math.cos(other.elevation)
             * math.cos(self.azimuth - other.azimuth))
        return math.acos(clamp(c, -1.0, 1.0))


# ════════════════════════════════════════════════════════════════════════════
#  ITRF ↔ SEZ
# ════════════════════════════════════════════════════════════════════════════

def itrf_to_sez_matrix(lat: float, lon: float) -> NDArray:
    """DCM rotating an Earth-fixed vector into the observer's SEZ axes."""
    return rot_y(HALF_PI - lat) @ rot_z(lon)


def sez_to_itrf_matrix(lat: float, lon: float) -> NDArray:
    return itrf_to_sez_matrix(lat, lon).T


def topocentric_azel(r_observer_itrf: NDArray, lat: float, lon: float,
                     r_target_itrf: NDArray) -> tuple[float, float, float]:
    """Compute azimuth, elevation, and range from observer to target.

    Parameters
    ----------
    r_observer_itrf : (3,) — observer ITRF position [km]
    lat, lon : float — observer geodetic latitude/longitude [rad]
    r_target_itrf : (3,) — target ITRF position [km]

    Returns
    -------
    az : float — azimuth [rad], 0=North, π/2=East
    el : float — elevation [rad], 0=horizon, π/2=zenith
    rng : float — slant range [km]
    """
    delta = np.asarray(r_target_itrf) - np.asarray(r_observer_itrf)
    s, e, z = itrf_to_sez_matrix(lat, lon) @ delta
    rng = math.sqrt(s * s + e * e + z * z)
    el = math.asin(clamp(z / rng, -1.0, 1.0))
    az = math.fmod(math.atan2(-e, s) + math.pi, TWO_PI)
    return az, el, rng


def itrf_to_topocentric(state: StateVector,
                        observer: GroundObserver) -> TopocentricObservation:
    """Range, azimuth, elevation and their rates of an ITRF state.

    Parameters
    ----------
    state : StateVector — target in ITRF
    observer : GroundObserver — viewing site

    Returns
    -------
    TopocentricObservation
    """
    if state.frame != FrameKind.ITRF:
        raise GeometryError(
            f"Topocentric conversion needs an ITRF state, got {state.frame.name}.")

    lat, lon = observer.latitude, observer.longitude
    R = itrf_to_sez_matrix(lat, lon)
    p = R @ (state.position - observer.itrf_position())
    p_dot = R @ state.velocity

    s, e, z = p
    s_dot, e_dot, z_dot = p_dot
    rng = float(np.linalg.norm(p))
    if rng == 0.0:
        raise GeometryError("Target coincides with the observer.")
    se = math.hypot(s, e)

    el = math.asin(clamp(z / rng, -1.0, 1.0))
    if el != HALF_PI and se > 0.0:
        az = math.atan2(-e, s) + math.pi
    else:
        az = math.atan2(-e_dot, s_dot) + math.pi

    range_rate = float(np.dot(p, p_dot)) / rng
    if se > 0.0:
        az_rate = (s_dot * e - e_dot * s) / (se * se)
        el_rate = (z_dot - range_rate * math.sin(el)) / se
    else:
        az_rate = 0.0
        el_rate = 0.0

    return TopocentricObservation(
        epoch=state.epoch, range=rng, azimuth=math.fmod(az, TWO_PI),
        elevation=el, range_rate=range_rate, azimuth_rate=az_rate,
        elevation_rate=el_rate,
    )


def topocentric_to_itrf(obs: TopocentricObservation,
                        observer: GroundObserver) -> StateVector:
    """Earth-fixed state of an observed target.

    Velocity is reconstructed from the rates when all three are present
    and is zero otherwise.
    """
    s_az, c_az = math.sin(obs.azimuth), math.cos(obs.azimuth)
    s_el, c_el = math.sin(obs.elevation), math.cos(obs.elevation)
    rho = obs.range

    p_sez = np.array([-rho * c_el * c_az, rho * c_el * s_az, rho * s_el])
    if obs.has_rates:
        rho_dot, az_dot, el_dot = obs.range_rate, obs.azimuth_rate, obs.elevation_rate
        p_dot_sez = np.array([
            -rho_dot * c_el * c_az + rho * s_el * c_az * el_dot
            + rho * c_el * s_az * az_dot,
            rho_dot * c_el * s_az - rho * s_el * s_az * el_dot
            + rho * c_el * c_az * az_dot,
            rho_dot * s_el + rho * c_el * el_dot,
        ])
    else:
        p_dot_sez = np.zeros(3)

    R = sez_to_itrf_matrix(observer.latitude, observer.longitude)
    position = R @ p_sez + observer.itrf_position()
    return StateVector(obs.epoch, position, R @ p_dot_sez, FrameKind.ITRF)


# ════════════════════════════════════════════════════════════════════════════
#  Right Ascension / Declination
# ════════════════════════════════════════════════════════════════════════════
#
#  Geocentric RA/Dec is measured from the Earth's centre, topocentric from
#  a site.  Both are taken in the inertial frame of the input states.
# ════════════════════════════════════════════════════════════════════════════

def _radec_from_relative(p: NDArray, p_dot: NDArray) -> tuple:
    """(ra, dec, range, ra_rate, dec_rate, range_rate) of a relative state."""
    x, y, z = p
    x_dot, y_dot, z_dot = p_dot
    rng = float(np.linalg.norm(p))
    if rng == 0.0:
        raise GeometryError("Right ascension is undefined at zero range.")
    xy = math.hypot(x, y)

    dec = math.asin(clamp(z / rng, -1.0, 1.0))
    if xy > 0.0:
        ra = math.atan2(y, x)
    else:
        ra = math.atan2(y_dot, x_dot)

    range_rate = float(np.dot(p, p_dot)) / rng
    if xy > 0.0:
        ra_rate = (x_dot * y - y_dot * x) / -(xy * xy)
        dec_rate = (z_dot - range_rate * math.sin(dec)) / xy
    else:
        ra_rate = 0.0
        dec_rate = 0.0
    return wrap_two_pi(ra), dec, rng, ra_rate, dec_rate, range_rate


def radec_to_position(ra: float, dec: float, rng: float) -> NDArray:
    cd = math.cos(dec)
    return rng * np.array([cd * math.cos(ra), cd * math.sin(ra), math.sin(dec)])


def radec_to_velocity(ra: float, dec: float, rng: float, ra_rate: float,
                      dec_rate: float, range_rate: float) -> NDArray:
    ca, sa = math.cos(ra), math.sin(ra)
    cd, sd = math.cos(dec), math.sin(dec)
    return np.array([
        range_rate * cd * ca - rng * sd * ca * dec_rate - rng * cd * sa * ra_rate,
        range_rate * cd * sa - rng * sd * sa * dec_rate + rng * cd * ca * ra_rate,
        range_rate * sd + rng * cd * dec_rate,
    ])


def _require_inertial(state: StateVector) -> None:
    if not state.inertial:
        raise GeometryError(
            f"RA/Dec needs an inertial state, got {state.frame.name}.")


@dataclass(frozen=True)
class RadecGeocentric:
    """Geocentric right ascension and declination [rad].

    Range [km] and the rates [rad/s, km/s] are optional; ``velocity``
    needs the angular rates.
    """
    epoch: datetime
    right_ascension: float
    declination: float
    range: Optional[float] = None
    right_ascension_rate: Optional[float] = None
    declination_rate: Optional[float] = None
    range_rate: Optional[float] = None

    @classmethod
    def from_degrees(cls, epoch: datetime, right_ascension: float,
                     declination: float, range: Optional[float] = None,
                     right_ascension_rate: Optional[float] = None,
                     declination_rate: Optional[float] = None,
                     range_rate: Optional[float] = None) -> "RadecGeocentric":
        return cls(epoch, right_ascension * DEG2RAD, declination * DEG2RAD,
                   range, _scaled(right_ascension_rate, DEG2RAD),
                   _scaled(declination_rate, DEG2RAD), range_rate)

    @classmethod
    def from_state_vector(cls, state: StateVector) -> "RadecGeocentric":
        _require_inertial(state)
        return cls(state.epoch,
                   *_radec_from_relative(state.position, state.velocity))

    @property
    def right_ascension_deg(self) -> float:
        return self.right_ascension * RAD2DEG

    @property
    def declination_deg(self) -> float:
        return self.declination * RAD2DEG

    def position(self, range: Optional[float] = None) -> NDArray:
        """Geocentric position [km]; unit range when none is known."""
        rng = _first(range, self.range, 1.0)
        return radec_to_position(self.right_ascension, self.declination, rng)

    def velocity(self, range: Optional[float] = None,
                 range_rate: Optional[float] = None) -> NDArray:
        """Geocentric velocity [km/s].

        Raises
        ------
        GeometryError
            If the angular rates are missing.
        """
        if self.right_ascension_rate is None or self.declination_rate is None:
            raise GeometryError("Velocity unsolvable, missing RA/Dec rates.")
        return radec_to_velocity(
            self.right_ascension, self.declination,
            _first(range, self.range, 1.0), self.right_ascension_rate,
            self.declination_rate, _first(range_rate, self.range_rate, 0.0))

    def angle(self, other: "RadecGeocentric") -> float:
        """Angular separation [rad]."""
        return _angular_distance(self, other)


@dataclass(frozen=True)
class RadecTopocentric:
    """Right ascension and declination [rad] seen from a site.

    Same fields as ``RadecGeocentric``; positions and velocities are
    rebuilt relative to a site state given in the same inertial frame.
    """
    epoch: datetime
    right_ascension: float
    declination: float
    range: Optional[float] = None
    right_ascension_rate: Optional[float] = None
    declination_rate: Optional[float] = None
    range_rate: Optional[float] = None

    @classmethod
    def from_degrees(cls, epoch: datetime, right_ascension: float,
                     declination: float, range: Optional[float] = None,
                     right_ascension_rate: Optional[float] = None,
                     declination_rate: Optional[float] = None,
                     range_rate: Optional[float] = None) -> "RadecTopocentric":
        return cls(epoch, right_ascension * DEG2RAD, declination * DEG2RAD,
                   range, _scaled(right_ascension_rate, DEG2RAD),
                   _scaled(declination_rate, DEG2RAD), range_rate)

    @classmethod
    def from_state_vectors(cls, state: StateVector,
                           site: StateVector) -> "RadecTopocentric":
        """Observation of ``state`` from ``site`` (both inertial, same frame)."""
        _require_inertial(state)
        if site.frame != state.frame:
            raise GeometryError(
                f"Site frame {site.frame.name} differs from target frame "
                f"{state.frame.name}.")
        return cls(state.epoch, *_radec_from_relative(
            state.position - site.position, state.velocity - site.velocity))

    @property
    def right_ascension_deg(self) -> float:
        return self.right_ascension * RAD2DEG

    @property
    def declination_deg(self) -> float:
        return self.declination * RAD2DEG

    def line_of_sight(self) -> NDArray:
        """Unit vector from the site toward the target."""
        return radec_to_position(self.right_ascension, self.declination, 1.0)

    def position(self, site: StateVector,
                 range: Optional[float] = None) -> NDArray:
        rng = _first(range, self.range, 1.0)
        return (radec_to_position(self.right_ascension, self.declination, rng)
                + site.position)

    def velocity(self, site: StateVector, range: Optional[float] = None,
                 range_rate: Optional[float] = None) -> NDArray:
        if self.right_ascension_rate is None or self.declination_rate is None:
            raise GeometryError("Velocity unsolvable, missing RA/Dec rates.")
        return radec_to_velocity(
            self.right_ascension, self.declination,
            _first(range, self.range, 1.0), self.right_ascension_rate,
            self.declination_rate,
            _first(range_rate, self.range_rate, 0.0)) + site.velocity

    def angle(self, other: "RadecTopocentric") -> float:
        return _angular_distance(self, other)


def _scaled(value: Optional[float], factor: float) -> Optional[float]:
    return None if value is None else value * factor


def _first(*values):
    return next(v for v in values if v is not None)


def _angular_distance(a, b) -> float:
    c = (math.sin(a.declination) * math.sin(b.declination)
         + math.cos(a.declination) * math.cos(b.declination)
         * math.cos(a.right_ascension - b.right_ascension))
    return math.acos(clamp(c, -1.0, 1.0))


# ════════════════════════════════════════════════════════════════════════════
#  Doppler
# ════════════════════════════════════════════════════════════════════════════

def doppler_factor(r_observer: NDArray, r_target: NDArray,
                   v_target: NDArray) -> float:
    """Received-over-transmitted frequency ratio for a ground link.

    Parameters
    ----------
    r_observer : (3,) — observer position in an inertial frame [km]
    r_target, v_target : (3,) — target position [km] / velocity [km/s],
        same frame

    Returns
    -------
    factor : float — 1 − ρ̇/c (above 1 while approaching)
    """
    loc = np.asarray(r_observer, dtype=np.float64)
    rng = np.asarray(r_target, dtype=np.float64) - loc
    v = np.asarray(v_target, dtype=np.float64)
    range_vel = np.array([v[0] + DOPPLER_OMEGA * loc[1],
                          v[1] - DOPPLER_OMEGA * loc[0],
                          v[2]])
    range_rate = float(np.dot(rng, range_vel)) / float(np.linalg.norm(rng))
    return 1.0 - range_rate / SPEED_OF_LIGHT
