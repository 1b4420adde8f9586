"""
orbitcore.state — Frame-Tagged State Vector
============================================

One value type for every Cartesian state.  The ``frame`` tag decides which
transforms apply; ``frames.convert`` dispatches on it.

**TEME**   True Equator, Mean Equinox of date; the propagator's native frame
**J2000**  Mean equator and equinox at J2000.0 (inertial)
**ITRF**   Earth-fixed, rotating with the crust (non-inertial)

``GEODETIC`` and ``TOPOCENTRIC`` are valid conversion *targets* producing
``Geodetic`` and ``TopocentricObservation`` values; a ``StateVector`` is
never tagged with them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import numpy as np
from numpy.typing import NDArray


class FrameKind(Enum):
    TEME = "TEME"
    J2000 = "J2000"
    ITRF = "ITRF"
    GEODETIC = "GEODETIC"
    TOPOCENTRIC = "TOPOCENTRIC"

    @property
    def inertial(self) -> bool:
        return self in (FrameKind.TEME, FrameKind.J2000)

    @property
    def cartesian(self) -> bool:
        return self in (FrameKind.TEME, FrameKind.J2000, FrameKind.ITRF)


def _frozen_vector(v) -> NDArray:
    arr = np.array(v, dtype=np.float64).reshape(3)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class StateVector:
    """Epoch, position [km] and velocity [km/s] in a tagged frame."""
    epoch: datetime
    position: NDArray
    velocity: NDArray
    frame: FrameKind = FrameKind.TEME

    def __post_init__(self):
        if not self.frame.cartesian:
            raise ValueError(f"StateVector frame must be Cartesian, got {self.frame.name}")
        epoch = self.epoch
        if epoch.tzinfo is None:
            epoch = epoch.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "epoch", epoch)
        object.__setattr__(self, "position", _frozen_vector(self.position))
        object.__setattr__(self, "velocity", _frozen_vector(self.velocity))

    @property
    def inertial(self) -> bool:
        return self.frame.inertial

    @property
    def range(self) -> float:
        """Distance from the Earth's centre [km]."""
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def state(self) -> NDArray:
        """(6,) concatenated position and velocity."""
        return np.concatenate([self.position, self.velocity])

    def __repr__(self) -> str:
        r, v = self.position, self.velocity
        return (f"StateVector({self.frame.name}, {self.epoch.isoformat()}, "
                f"r=[{r[0]:.6f}, {r[1]:.6f}, {r[2]:.6f}] km, "
                f"v=[{v[0]:.9f}, {v[1]:.9f}, {v[2]:.9f}] km/s)")
