"""
orbitcore.geodetic — Geodetic Coordinates
==========================================

Latitude / longitude / altitude on the WGS-84 ellipsoid and the
conversions to and from Earth-fixed (ITRF) Cartesian coordinates.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from .errors import GeometryError
from .state import FrameKind, StateVector
from .utils import (
    DEG2RAD, E2_EARTH, HALF_PI, R_EARTH, R_EARTH_MEAN, R_EARTH_POLAR, RAD2DEG,
)

logger = logging.getLogger(__name__)

GEODETIC_ITERATIONS = 20


@dataclass(frozen=True)
class Geodetic:
    """Geodetic latitude [rad], longitude [rad] and altitude [km].

    Raises ``GeometryError`` on construction when the coordinates are
    outside ``|lat| ≤ π/2``, ``|lon| ≤ π`` or ``alt ≥ −polar radius``.
    """
    latitude: float
    longitude: float
    altitude: float = 0.0

    def __post_init__(self):
        if abs(self.latitude) > HALF_PI:
            raise GeometryError(
                f"Latitude {self.latitude:.6f} rad outside [-π/2, π/2].")
        if abs(self.longitude) > math.pi:
            raise GeometryError(
                f"Longitude {self.longitude:.6f} rad outside [-π, π].")
        if self.altitude < -R_EARTH_POLAR:
            raise GeometryError(
                f"Altitude {self.altitude:.3f} km is below the Earth's centre.")

    @classmethod
    def from_degrees(cls, latitude: float, longitude: float,
                     altitude: float = 0.0) -> "Geodetic":
        return cls(latitude * DEG2RAD, longitude * DEG2RAD, altitude)

    @property
    def latitude_deg(self) -> float:
        return self.latitude * RAD2DEG

    @property
    def longitude_deg(self) -> float:
        return self.longitude * RAD2DEG

    # ── Conversions ──

    def to_position(self) -> NDArray:
        """Earth-fixed position [km]."""
        return lla_to_itrf(self.latitude, self.longitude, self.altitude)

    def to_itrf(self, epoch: datetime) -> StateVector:
        """Earth-fixed state at ``epoch`` (zero velocity)."""
        return StateVector(epoch, self.to_position(), np.zeros(3), FrameKind.ITRF)

    # ── Surface geometry ──

    def angle(self, other: "Geodetic") -> float:
        """Great-circle angle to ``other`` [rad] (haversine)."""
        dlat = other.latitude - self.latitude
        dlon = other.longitude - self.longitude
        h = (math.sin(0.5 * dlat) ** 2
             + math.cos(self.latitude) * math.cos(other.latitude)
             * math.sin(0.5 * dlon) ** 2)
        return 2.0 * math.asin(min(1.0, math.sqrt(h)))

    def distance(self, other: "Geodetic") -> float:
        """Great-circle distance on the mean-radius sphere [km]."""
        return self.angle(other) * R_EARTH_MEAN

    def field_of_view(self) -> float:
        """Earth-central half-angle visible from this altitude [rad]."""
        return math.acos(R_EARTH_MEAN / (R_EARTH_MEAN + self.altitude))

    def sight(self, other: "Geodetic") -> bool:
        """True when either point is within the other's field of view."""
        return self.angle(other) <= max(self.field_of_view(), other.field_of_view())

    def __repr__(self) -> str:
        return (f"Geodetic(lat={self.latitude_deg:.6f}°, "
                f"lon={self.longitude_deg:.6f}°, alt={self.altitude:.3f} km)")


# ════════════════════════════════════════════════════════════════════════════
#  ITRF ↔ Geodetic
# ════════════════════════════════════════════════════════════════════════════

def lla_to_itrf(lat: float, lon: float, alt: float = 0.0) -> NDArray:
    """Geodetic LLA → Earth-fixed position [km].

    Parameters
    ----------
    lat, lon : float — geodetic latitude / longitude [rad]
    alt : float — altitude above the ellipsoid [km]
    """
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    N = R_EARTH / math.sqrt(1.0 - E2_EARTH * sin_lat ** 2)
    x = (N + alt) * cos_lat * cos_lon
    y = (N + alt) * cos_lat * sin_lon
    z = (N * (1.0 - E2_EARTH) + alt) * sin_lat
    return np.array([x, y, z])


def itrf_to_lla(r_itrf: NDArray) -> tuple[float, float, float]:
    """Earth-fixed position [km] → (latitude [rad], longitude [rad], altitude [km]).

    Fixed-point iteration on latitude (20 passes).  At the poles the
    longitude is undefined and reported as zero.
    """
    x, y, z = (float(c) for c in np.asarray(r_itrf, dtype=np.float64))
    p = math.hypot(x, y)

    if p == 0.0:
        lat = HALF_PI if z >= 0.0 else -HALF_PI
        alt = z - R_EARTH_POLAR if z > 0.0 else -z - R_EARTH_POLAR
        return lat, 0.0, alt

    lon = math.atan2(y, x)
    lat = math.atan2(z, p)
    for _ in range(GEODETIC_ITERATIONS):
        sin_lat = math.sin(lat)
        c = 1.0 / math.sqrt(1.0 - E2_EARTH * sin_lat * sin_lat)
        lat = math.atan2(z + R_EARTH * c * E2_EARTH * sin_lat, p)

    # projection form stays well conditioned as cos(lat) goes to zero
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    alt = (p * cos_lat + z * sin_lat
           - R_EARTH * math.sqrt(1.0 - E2_EARTH * sin_lat * sin_lat))
    return lat, lon, alt


def itrf_to_geodetic(state: StateVector) -> Geodetic:
    """Sub-satellite point of an Earth-fixed state."""
    if state.frame != FrameKind.ITRF:
        raise GeometryError(
            f"Geodetic conversion needs an ITRF state, got {state.frame.name}.")
    return Geodetic(*itrf_to_lla(state.position))
