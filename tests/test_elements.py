"""
test_elements.py — classical and equinoctial elements
"""

import math
from datetime import datetime, timedelta, timezone

import numpy as np
import numpy.testing as npt
import pytest

from orbitcore.elements import ClassicalElements, EquinoctialElements, OrbitRegime
from orbitcore.errors import GeometryError
from orbitcore.state import FrameKind, StateVector
from orbitcore.utils import DEG2RAD, MU_EARTH, TWO_PI

EPOCH = datetime(2024, 5, 1, tzinfo=timezone.utc)


def elements(a=7000.0, e=0.1, i=0.9, raan=1.0, argp=2.0, nu=0.5):
    return ClassicalElements(EPOCH, a, e, i, raan, argp, nu)


def assert_same_elements(a, b, atol=1e-9):
    npt.assert_allclose(a.semimajor_axis, b.semimajor_axis, rtol=1e-10)
    npt.assert_allclose(a.eccentricity, b.eccentricity, atol=atol)
    for name in ("inclination", "raan", "arg_perigee", "true_anomaly"):
        x, y = getattr(a, name), getattr(b, name)
        npt.assert_allclose(math.cos(x), math.cos(y), atol=atol, err_msg=name)
        npt.assert_allclose(math.sin(x), math.sin(y), atol=atol, err_msg=name)


# ═══════════════════════════════════════════════════════════════════════════
#  State Vector ↔ Classical
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("kwargs", [
    dict(),
    dict(e=0.74, i=63.4 * DEG2RAD, argp=270.0 * DEG2RAD, nu=3.0),
    dict(a=42164.0, e=0.001, i=0.2, nu=5.5),
    dict(i=2.6, raan=4.0, nu=4.0),                 # retrograde
])
def test_state_round_trip(kwargs):
    original = elements(**kwargs)
    state = original.to_state_vector()
    assert state.frame == FrameKind.J2000
    assert_same_elements(ClassicalElements.from_state_vector(state), original)


def test_known_circular_velocity():
    r, v = elements(e=0.0, nu=0.0).to_position_velocity()
    npt.assert_allclose(np.linalg.norm(r), 7000.0)
    npt.assert_allclose(np.linalg.norm(v), math.sqrt(MU_EARTH / 7000.0))
    npt.assert_allclose(np.dot(r, v), 0.0, atol=1e-9)


def test_circular_equatorial_singularities():
    state = StateVector(EPOCH, [0.0, 7000.0, 0.0],
                        [-math.sqrt(MU_EARTH / 7000.0), 0.0, 0.0], FrameKind.J2000)
    coe = ClassicalElements.from_state_vector(state)
    assert coe.eccentricity < 1e-11
    assert coe.inclination == 0.0
    assert coe.raan == 0.0 and coe.arg_perigee == 0.0
    npt.assert_allclose(coe.true_anomaly, math.pi / 2, atol=1e-12)
    npt.assert_allclose(coe.to_state_vector().position, state.position, atol=1e-8)


def test_circular_inclined_measures_from_node():
    original = elements(e=0.0, i=0.5, raan=1.0, argp=0.0, nu=4.0)
    coe = ClassicalElements.from_state_vector(original.to_state_vector())
    assert coe.arg_perigee == 0.0
    npt.assert_allclose(coe.true_anomaly, 4.0, atol=1e-9)


def test_teme_state_is_accepted():
    state = elements().to_state_vector(FrameKind.TEME)
    assert ClassicalElements.from_state_vector(state).semimajor_axis > 0.0


def test_earth_fixed_frames_rejected():
    with pytest.raises(GeometryError):
        elements().to_state_vector(FrameKind.ITRF)
    itrf = StateVector(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], FrameKind.ITRF)
    with pytest.raises(GeometryError):
        ClassicalElements.from_state_vector(itrf)


def test_rectilinear_state_rejected():
    state = StateVector(EPOCH, [7000.0, 0.0, 0.0], [1.0, 0.0, 0.0], FrameKind.J2000)
    with pytest.raises(GeometryError):
        ClassicalElements.from_state_vector(state)


# ═══════════════════════════════════════════════════════════════════════════
#  Derived Quantities
# ═══════════════════════════════════════════════════════════════════════════

def test_apsides_and_period():
    coe = elements(a=10000.0, e=0.2)
    assert coe.apogee == pytest.approx(12000.0)
    assert coe.perigee == pytest.approx(8000.0)
    npt.assert_allclose(coe.period, TWO_PI / coe.mean_motion)
    npt.assert_allclose(coe.revs_per_day * coe.period, 86400.0)


def test_degree_accessors():
    coe = elements(i=math.pi / 2)
    npt.assert_allclose(coe.inclination_deg, 90.0)


@pytest.mark.parametrize("a, e, regime", [
    (42164.0, 0.0001, OrbitRegime.GEO),
    (26560.0, 0.01, OrbitRegime.MEO),
    (6778.0, 0.001, OrbitRegime.LEO),
    (26600.0, 0.74, OrbitRegime.HEO),
    (15000.0, 0.1, OrbitRegime.OTHER),
])
def test_orbit_regime(a, e, regime):
    assert elements(a=a, e=e).orbit_regime() == regime


def test_str_lists_elements():
    text = str(elements())
    assert "Semimajor Axis" in text and "True Anomaly" in text


# ═══════════════════════════════════════════════════════════════════════════
#  Two-Body Propagation
# ═══════════════════════════════════════════════════════════════════════════

def test_propagate_one_period_returns_to_start():
    coe = elements(e=0.2, nu=1.3)
    later = coe.propagate(EPOCH + timedelta(seconds=coe.period))
    assert later.epoch == EPOCH + timedelta(seconds=coe.period)
    npt.assert_allclose(math.cos(later.true_anomaly), math.cos(1.3), atol=1e-8)
    npt.assert_allclose(math.sin(later.true_anomaly), math.sin(1.3), atol=1e-8)


def test_propagate_half_period_circular():
    coe = elements(e=0.0, nu=0.25)
    later = coe.propagate(EPOCH + timedelta(seconds=coe.period / 2))
    npt.assert_allclose(later.true_anomaly, 0.25 + math.pi, atol=1e-6)


# ═══════════════════════════════════════════════════════════════════════════
#  Equinoctial
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("kwargs", [
    dict(),
    dict(e=0.3, i=0.1, raan=5.0, argp=0.4, nu=2.2),
    dict(i=2.8, raan=3.5, argp=1.0, nu=5.0),       # retrograde
])
def test_equinoctial_round_trip(kwargs):
    original = elements(**kwargs)
    eq = original.to_equinoctial()
    assert eq.fr == (-1 if original.inclination > math.pi / 2 else 1)
    npt.assert_allclose(eq.eccentricity, original.eccentricity, atol=1e-15)
    assert_same_elements(eq.to_classical(), original, atol=1e-7)


def test_equinoctial_circular_equatorial_is_regular():
    eq = elements(e=0.0, i=0.0, raan=0.0, argp=0.0, nu=1.0).to_equinoctial()
    assert (eq.af, eq.ag, eq.chi, eq.psi) == (0.0, 0.0, 0.0, 0.0)
    npt.assert_allclose(eq.mean_longitude, 1.0)


def test_equinoctial_position_matches_classical():
    original = elements(e=0.05, i=1.2)
    r0, v0 = original.to_position_velocity()
    r1, v1 = original.to_equinoctial().to_position_velocity()
    npt.assert_allclose(r1, r0, atol=1e-6)
    npt.assert_allclose(v1, v0, atol=1e-9)


def test_equinoctial_mean_motion_gives_axis():
    eq = EquinoctialElements(EPOCH, 0.0, 0.0, 0.0,
                             math.sqrt(MU_EARTH / 7000.0**3), 0.0, 0.0)
    npt.assert_allclose(eq.semimajor_axis, 7000.0)
    npt.assert_allclose(eq.revs_per_day * eq.period, 86400.0)
