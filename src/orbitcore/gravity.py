"""
orbitcore.gravity — Propagator Gravity Models
==============================================

The three constant bundles the mean-element propagator can be initialised
with.  A ``PropagatorState`` records the bundle it was built from so the
variants are never mixed within one computation.
"""

import math
from enum import Enum
from typing import NamedTuple


class OpsMode(Enum):
    """Historical ephemeris conventions."""
    AFSPC = "a"       # legacy AFSPC sidereal time and angle handling
    IMPROVED = "i"


class GravityModel(NamedTuple):
    name: str
    mu: float         # [km³/s²]
    radius: float     # equatorial radius [km]
    xke: float        # sqrt(mu / radius³) in earth radii per minute [1/min]
    tumin: float      # minutes per time unit
    j2: float
    j3: float
    j4: float
    j3oj2: float
    deep_space_period: float = 225.0  # SDP4 at or above this period [min]

    @property
    def vkmpersec(self) -> float:
        """Earth radii per minute expressed in km/s."""
        return self.radius * self.xke / 60.0


def _model(name: str, mu: float, radius: float, j2: float, j3: float,
           j4: float, xke: float = None) -> GravityModel:
    if xke is None:
        xke = 60.0 / math.sqrt(radius ** 3 / mu)
    return GravityModel(name, mu, radius, xke, 1.0 / xke, j2, j3, j4, j3 / j2)


WGS72OLD = _model("wgs72old", 398600.79964, 6378.135,
                  0.001082616, -0.00000253881, -0.00000165597,
                  xke=0.0743669161)
WGS72 = _model("wgs72", 398600.8, 6378.135,
               0.001082616, -0.00000253881, -0.00000165597)
WGS84 = _model("wgs84", 398600.5, 6378.137,
               0.00108262998905, -0.00000253215306, -0.00000161098761)

GRAVITY_MODELS = {m.name: m for m in (WGS72OLD, WGS72, WGS84)}

DEFAULT_GRAVITY = WGS72
DEFAULT_OPSMODE = OpsMode.IMPROVED


def get_gravity_model(name: str) -> GravityModel:
    try:
        return GRAVITY_MODELS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown gravity model '{name}'. Valid: {sorted(GRAVITY_MODELS)}"
        ) from None
