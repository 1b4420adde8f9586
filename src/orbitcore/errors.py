"""
orbitcore.errors — Error Taxonomy
==================================

Propagation failures are *values* (``PropagationResult`` carrying an
``Sgp4ErrorCode``) so that bulk propagation never unwinds the stack;
precondition violations on geometric inputs are raised eagerly as
``GeometryError``.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class Sgp4ErrorCode(IntEnum):
    """Propagator validity codes, numbered as in the reference SGP4."""
    NO_ERROR = 0
    MEAN_ELEMENTS_INVALID = 1
    MEAN_MOTION_NEGATIVE = 2
    PERT_ELEMENTS_INVALID = 3
    SEMI_LATUS_RECTUM_NEGATIVE = 4
    EPOCH_ELEMENTS_SUBORBITAL = 5
    SATELLITE_DECAYED = 6

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Sgp4ErrorCode.NO_ERROR: "no error",
    Sgp4ErrorCode.MEAN_ELEMENTS_INVALID:
        "mean eccentricity out of range 0 <= e < 1, or semi-major axis below 0.95 earth radii",
    Sgp4ErrorCode.MEAN_MOTION_NEGATIVE: "mean motion less than or equal to zero",
    Sgp4ErrorCode.PERT_ELEMENTS_INVALID: "perturbed eccentricity out of range 0 <= e <= 1",
    Sgp4ErrorCode.SEMI_LATUS_RECTUM_NEGATIVE: "semi-latus rectum less than zero",
    Sgp4ErrorCode.EPOCH_ELEMENTS_SUBORBITAL: "epoch elements are sub-orbital",
    Sgp4ErrorCode.SATELLITE_DECAYED: "satellite has decayed",
}


class OrbitCoreError(Exception):
    """Base class for orbitcore exceptions."""


class GeometryError(OrbitCoreError, ValueError):
    """Invalid geometric input (out-of-range geodetic, wrong frame, ...)."""


class TLEFormatError(OrbitCoreError, ValueError):
    """Malformed or unsupported element-set text."""


class PropagationError(OrbitCoreError):
    """Raised by callers that choose exceptions over ``PropagationResult``."""

    def __init__(self, code: Sgp4ErrorCode, catalog_number: Optional[str] = None):
        self.code = Sgp4ErrorCode(code)
        self.catalog_number = catalog_number
        prefix = f"[{catalog_number}] " if catalog_number else ""
        super().__init__(f"{prefix}SGP4 error {int(self.code)}: {self.code.message}")


@dataclass(frozen=True)
class PropagationResult:
    """Outcome of one propagation: an error code and, on success, a state."""
    error: Sgp4ErrorCode
    state: Optional["StateVector"] = None  # noqa: F821
    catalog_number: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error == Sgp4ErrorCode.NO_ERROR

    def unwrap(self):
        """Return the state vector or raise ``PropagationError``."""
        if not self.ok:
            raise PropagationError(self.error, self.catalog_number)
        return self.state
