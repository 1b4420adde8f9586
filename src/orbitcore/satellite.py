"""
orbitcore.satellite — Satellite Facade
=======================================

One object that owns a propagator state and a transform cache and answers
"where is it, and how does it look from here" questions at any UTC instant.

Unlike the functional layer, failures are raised: a propagation error
surfaces as ``PropagationError``.

Example
-------
>>> sat = Satellite.from_tle(line1, line2)
>>> obs = GroundObserver.from_degrees(40.0, -75.0, 0.1)
>>> sat.rae(obs, when).elevation_deg
"""

import logging
from datetime import datetime
from typing import Optional, Union

from .cache import TransformCache
from .errors import PropagationError, Sgp4ErrorCode
from .frames import (
    RelativeState, convert, itrf_to_j2000, relative_state, teme_to_itrf,
    teme_to_j2000,
)
from .geodetic import Geodetic
from .gravity import DEFAULT_GRAVITY, DEFAULT_OPSMODE, GravityModel, OpsMode
from .sensor import (
    GroundObserver, RadecGeocentric, RadecTopocentric, TopocentricObservation,
    doppler_factor,
)
from .sgp4 import MeanElementSet, PropagatorState, propagate_datetime, sgp4_init
from .state import FrameKind, StateVector
from .sun import lighting_ratio as solar_lighting_ratio, sun_position
from .tle import TLE, parse_omm, parse_tle
from .utils import TWO_PI, datetime_to_jd, gmst, rot_z

logger = logging.getLogger(__name__)


class Satellite:
    """SGP4-propagated satellite with frame, look-angle and Doppler views.

    Parameters
    ----------
    elements : MeanElementSet or TLE — initial mean elements
    gravity : GravityModel — constants used by SGP4 (default WGS-72)
    opsmode : OpsMode — ``IMPROVED`` or ``AFSPC``
    cache : TransformCache, optional — Earth-orientation memo; a private
        one is created when omitted

    Raises
    ------
    PropagationError
        If the element set fails SGP4 initialisation.
    """

    def __init__(self, elements: Union[MeanElementSet, TLE],
                 gravity: GravityModel = DEFAULT_GRAVITY,
                 opsmode: OpsMode = DEFAULT_OPSMODE,
                 cache: Optional[TransformCache] = None):
        if isinstance(elements, TLE):
            elements = elements.to_mean_elements()
        self.elements = elements
        self.cache = cache if cache is not None else TransformCache()
        self.state: PropagatorState = sgp4_init(elements, gravity, opsmode)
        if self.state.error != Sgp4ErrorCode.NO_ERROR:
            raise PropagationError(self.state.error, elements.catalog_number)

    @classmethod
    def from_tle(cls, *lines: str, **kwargs) -> "Satellite":
        return cls(parse_tle(*lines), **kwargs)

    @classmethod
    def from_omm(cls, record: dict, **kwargs) -> "Satellite":
        return cls(parse_omm(record), **kwargs)

    # ── Identity ──

    @property
    def name(self) -> str:
        return self.elements.name

    @property
    def catalog_number(self) -> str:
        return self.elements.catalog_number

    @property
    def epoch(self) -> datetime:
        return self.elements.epoch

    # ── Mean-motion orbit figures ──

    @property
    def period(self) -> float:
        """[min]"""
        return TWO_PI / self.elements.mean_motion

    @property
    def semimajor_axis(self) -> float:
        """[km] from the Kozai mean motion."""
        n = self.elements.mean_motion / 60.0   # rad/s
        return (self.state.gravity.mu / (n * n)) ** (1.0 / 3.0)

    @property
    def apogee(self) -> float:
        """Apogee altitude [km]."""
        return (self.semimajor_axis * (1.0 + self.elements.eccentricity)
                - self.state.gravity.radius)

    @property
    def perigee(self) -> float:
        """Perigee altitude [km]."""
        return (self.semimajor_axis * (1.0 - self.elements.eccentricity)
                - self.state.gravity.radius)

    # ── Frame views ──

    def teme(self, when: datetime) -> StateVector:
        return propagate_datetime(self.state, when).unwrap()

    def j2000(self, when: datetime) -> StateVector:
        return teme_to_j2000(self.teme(when), self.cache)

    def itrf(self, when: datetime) -> StateVector:
        return teme_to_itrf(self.teme(when), self.cache)

    def geodetic(self, when: datetime) -> Geodetic:
        return convert(self.teme(when), FrameKind.GEODETIC, cache=self.cache)

    def rae(self, observer: GroundObserver,
            when: datetime) -> TopocentricObservation:
        """Range, azimuth, elevation and rates seen from ``observer``."""
        return convert(self.teme(when), FrameKind.TOPOCENTRIC,
                       observer=observer, cache=self.cache)

    def range(self, observer: GroundObserver, when: datetime) -> float:
        """Slant range [km]."""
        return self.rae(observer, when).range

    def is_visible(self, observer: GroundObserver, when: datetime) -> bool:
        return observer.is_visible(self.rae(observer, when))

    # ── Right ascension / declination ──

    def radec_geocentric(self, when: datetime) -> RadecGeocentric:
        """J2000 right ascension and declination from the Earth's centre."""
        return RadecGeocentric.from_state_vector(self.j2000(when))

    def radec_topocentric(self, observer: GroundObserver,
                          when: datetime) -> RadecTopocentric:
        """J2000 right ascension and declination seen from ``observer``."""
        site = itrf_to_j2000(observer.itrf(when), self.cache)
        return RadecTopocentric.from_state_vectors(self.j2000(when), site)

    # ── Illumination ──

    def lighting_ratio(self, when: datetime) -> float:
        """Visible fraction of the solar disk (0 in umbra, 1 in sunlight)."""
        return solar_lighting_ratio(self.j2000(when).position, sun_position(when))

    def is_sunlit(self, when: datetime) -> bool:
        return self.lighting_ratio(when) > 0.0

    # ── Doppler ──

    def doppler_factor(self, observer: GroundObserver, when: datetime) -> float:
        """Received / transmitted frequency ratio at ``observer``.

        The observer is rotated into TEME by GMST, the same sidereal
        angle SGP4 uses.
        """
        target = self.teme(when)
        r_obs = rot_z(-gmst(datetime_to_jd(when))) @ observer.itrf_position()
        return doppler_factor(r_obs, target.position, target.velocity)

    def apply_doppler(self, frequency: float, observer: GroundObserver,
                      when: datetime) -> float:
        """Doppler-shifted frequency (same unit as ``frequency``)."""
        return frequency * self.doppler_factor(observer, when)

    # ── Relative motion ──

    def ric(self, reference: "Satellite", when: datetime) -> RelativeState:
        """This satellite's state in ``reference``'s RIC frame."""
        return relative_state(self.j2000(when), reference.j2000(when))

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (f"Satellite({self.catalog_number}{label}, "
                f"epoch={self.epoch.isoformat()}, period={self.period:.2f} min)")
