"""
orbitcore — SGP4/SDP4 Propagation & Earth Frame Library
========================================================

A NumPy library that propagates satellites from NORAD mean elements (TLE or
OMM) with SGP4/SDP4 and carries the resulting state through the reference
frames needed for ground-based observation.

All Cartesian frames route through J2000 as the canonical inertial hub::

    TEME  ←→  J2000  ←→  ITRF  →  Geodetic
                           ↓
                      Topocentric (SEZ → range / azimuth / elevation)

Frame Definitions
-----------------

**TEME (True Equator, Mean Equinox)**
  - SGP4's native output frame.

**J2000 (Mean equator and equinox of J2000.0)**
  - Inertial.  Two-body element conversions happen here.

**ITRF (Earth-fixed)**
  - Rotates with the Earth; velocities include the ω⊕ × r transport term.
  - Polar motion is neglected.

**RIC (Radial / In-track / Cross-track)**
  - R: along position.  C: along angular momentum.  I: completes RHS.

Units are kilometres, seconds (minutes for SGP4 offsets) and radians.
"""

import logging

from .cache import TransformCache

from .earth import (
    precession, nutation, orientation, gast,
    PrecessionAngles, NutationAngles, EarthOrientation,
    sma_to_mean_motion, revs_per_day_to_sma, sma_to_drift, drift_to_sma,
)

from .elements import ClassicalElements, EquinoctialElements, OrbitRegime

from .errors import (
    Sgp4ErrorCode, PropagationResult,
    OrbitCoreError, GeometryError, PropagationError, TLEFormatError,
)

from .frames import (
    # ── TEME ↔ J2000 ↔ ITRF ──
    teme_to_j2000, j2000_to_teme,
    j2000_to_itrf, itrf_to_j2000,
    teme_to_itrf, itrf_to_teme,
    # ── RIC ──
    RelativeState, ric_matrix, relative_state, relative_to_inertial,
    # ── Unified API ──
    convert, FRAMES,
)

from .geodetic import Geodetic, lla_to_itrf, itrf_to_lla, itrf_to_geodetic

from .gravity import (
    GravityModel, OpsMode, WGS72OLD, WGS72, WGS84,
    DEFAULT_GRAVITY, DEFAULT_OPSMODE, get_gravity_model,
)

from .kepler import (
    solve_kepler, mean_to_true_anomaly, true_to_mean_anomaly,
    eccentric_to_true_anomaly, true_to_eccentric_anomaly,
    newton_m, newton_nu, match_half_plane,
)

from .satellite import Satellite

from .sensor import (
    GroundObserver, TopocentricObservation,
    itrf_to_topocentric, topocentric_to_itrf, topocentric_azel,
    RadecGeocentric, RadecTopocentric, radec_to_position, radec_to_velocity,
    doppler_factor,
)

from .sun import (
    AU, R_SUN, sun_position, sun_position_apparent, sun_direction,
    sun_distance, solar_declination_ra, lighting_ratio, in_shadow,
    eclipse_state,
)

from .moon import R_MOON, moon_position, moon_distance, moon_illumination

from .sgp4 import (
    MeanElementSet, PropagatorState,
    sgp4_init, propagate, propagate_datetime, propagate_many, gstime,
)

from .state import FrameKind, StateVector

from .tle import (
    TLE, parse_tle, parse_tle_batch, parse_omm,
    tle_checksum, verify_checksum, verify_tle,
    tle_to_lines, tle_to_string,
    alpha5_to_int, int_to_alpha5,
)

from .utils import (
    julian_date, jday, datetime_to_jd, jd_to_datetime, gmst,
    MU_EARTH, R_EARTH, OMEGA_EARTH, F_EARTH, E2_EARTH, SPEED_OF_LIGHT,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    # ── Constants ──
    "MU_EARTH", "R_EARTH", "OMEGA_EARTH", "F_EARTH", "E2_EARTH",
    "SPEED_OF_LIGHT",
    # ── Errors ──
    "Sgp4ErrorCode", "PropagationResult",
    "OrbitCoreError", "GeometryError", "PropagationError", "TLEFormatError",
    # ── Propagation ──
    "MeanElementSet", "PropagatorState",
    "sgp4_init", "propagate", "propagate_datetime", "propagate_many", "gstime",
    "GravityModel", "OpsMode", "WGS72OLD", "WGS72", "WGS84",
    "DEFAULT_GRAVITY", "DEFAULT_OPSMODE", "get_gravity_model",
    # ── Element sets ──
    "TLE", "parse_tle", "parse_tle_batch", "parse_omm",
    "tle_checksum", "verify_checksum", "verify_tle",
    "tle_to_lines", "tle_to_string", "alpha5_to_int", "int_to_alpha5",
    # ── Frames (recommended entry point: convert) ──
    "FrameKind", "StateVector", "convert", "FRAMES",
    "teme_to_j2000", "j2000_to_teme", "j2000_to_itrf", "itrf_to_j2000",
    "teme_to_itrf", "itrf_to_teme",
    "RelativeState", "ric_matrix", "relative_state", "relative_to_inertial",
    # ── Earth orientation ──
    "precession", "nutation", "orientation", "gast",
    "PrecessionAngles", "NutationAngles", "EarthOrientation",
    "sma_to_mean_motion", "revs_per_day_to_sma", "sma_to_drift", "drift_to_sma",
    "TransformCache",
    # ── Geodetic / topocentric ──
    "Geodetic", "lla_to_itrf", "itrf_to_lla", "itrf_to_geodetic",
    "GroundObserver", "TopocentricObservation",
    "itrf_to_topocentric", "topocentric_to_itrf", "topocentric_azel",
    "RadecGeocentric", "RadecTopocentric", "radec_to_position", "radec_to_velocity",
    "doppler_factor",
    # ── Sun / Moon ──
    "AU", "R_SUN", "sun_position", "sun_position_apparent", "sun_direction",
    "sun_distance", "solar_declination_ra", "lighting_ratio", "in_shadow",
    "eclipse_state",
    "R_MOON", "moon_position", "moon_distance", "moon_illumination",
    # ── Orbital mechanics ──
    "ClassicalElements", "EquinoctialElements", "OrbitRegime",
    "solve_kepler", "mean_to_true_anomaly", "true_to_mean_anomaly",
    "eccentric_to_true_anomaly", "true_to_eccentric_anomaly",
    "newton_m", "newton_nu", "match_half_plane",
    # ── Facade ──
    "Satellite",
    # ── Utilities ──
    "julian_date", "jday", "datetime_to_jd", "jd_to_datetime", "gmst",
]
