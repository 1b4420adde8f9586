"""
test_frames.py — TEME / J2000 / ITRF rotations, convert, RIC
"""

from datetime import datetime, timezone

import numpy as np
import numpy.testing as npt
import pytest

from orbitcore.cache import TransformCache
from orbitcore.earth import orientation
from orbitcore.errors import GeometryError
from orbitcore.frames import (
    FRAMES, convert, itrf_to_j2000, itrf_to_teme, j2000_to_itrf,
    j2000_to_itrf_matrix, j2000_to_teme, relative_state, relative_to_inertial,
    ric_matrix, teme_to_itrf, teme_to_j2000, teme_to_j2000_matrix,
)
from orbitcore.geodetic import Geodetic
from orbitcore.sensor import GroundObserver, TopocentricObservation
from orbitcore.state import FrameKind, StateVector
from orbitcore.utils import (
    OMEGA_EARTH, angle_between, datetime_to_jd, gmst, rot_z,
)

J2000_EPOCH = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)
EPOCH = datetime(2024, 3, 20, 3, 6, tzinfo=timezone.utc)

R_LEO = np.array([6524.834, 6862.875, 6448.296])
V_LEO = np.array([4.901327, 5.533756, -1.976341])


@pytest.fixture
def teme():
    return StateVector(EPOCH, R_LEO, V_LEO, FrameKind.TEME)


@pytest.fixture
def j2000():
    return StateVector(EPOCH, R_LEO, V_LEO, FrameKind.J2000)


# ═══════════════════════════════════════════════════════════════════════════
#  StateVector
# ═══════════════════════════════════════════════════════════════════════════

def test_state_vector_is_read_only(teme):
    with pytest.raises(ValueError):
        teme.position[0] = 0.0


def test_state_vector_rejects_non_cartesian_tag():
    with pytest.raises(ValueError):
        StateVector(EPOCH, R_LEO, V_LEO, FrameKind.GEODETIC)


def test_naive_epoch_becomes_utc():
    sv = StateVector(datetime(2024, 1, 1), R_LEO, V_LEO)
    assert sv.epoch.tzinfo is not None
    assert sv.frame == FrameKind.TEME


# ═══════════════════════════════════════════════════════════════════════════
#  TEME ↔ J2000
# ═══════════════════════════════════════════════════════════════════════════

def test_teme_j2000_matrix_orthonormal():
    R = teme_to_j2000_matrix(orientation(EPOCH))
    npt.assert_allclose(R @ R.T, np.eye(3), atol=1e-14)
    npt.assert_allclose(np.linalg.det(R), 1.0, atol=1e-14)


def test_teme_j2000_round_trip(teme):
    back = j2000_to_teme(teme_to_j2000(teme))
    assert back.frame == FrameKind.TEME
    npt.assert_allclose(back.position, teme.position, atol=1e-8)
    npt.assert_allclose(back.velocity, teme.velocity, atol=1e-11)


def test_teme_close_to_j2000_at_j2000_epoch():
    sv = StateVector(J2000_EPOCH, R_LEO, V_LEO, FrameKind.TEME)
    out = teme_to_j2000(sv)
    # only nutation (~1e-4 rad) separates the frames
    assert angle_between(out.position, R_LEO) < 2e-4
    npt.assert_allclose(out.range, sv.range, rtol=1e-14)


def test_precession_grows_with_time(teme):
    out = teme_to_j2000(teme)
    # ~24 years of precession at ~50"/yr
    assert 3e-3 < angle_between(out.position, teme.position) < 1e-2


def test_wrong_input_frame_rejected(teme, j2000):
    with pytest.raises(GeometryError):
        teme_to_j2000(j2000)
    with pytest.raises(GeometryError):
        j2000_to_teme(teme)
    with pytest.raises(GeometryError):
        j2000_to_itrf(teme)
    with pytest.raises(GeometryError):
        itrf_to_j2000(j2000)


# ═══════════════════════════════════════════════════════════════════════════
#  J2000 ↔ ITRF
# ═══════════════════════════════════════════════════════════════════════════

def test_j2000_itrf_round_trip(j2000):
    itrf = j2000_to_itrf(j2000)
    assert itrf.frame == FrameKind.ITRF
    back = itrf_to_j2000(itrf)
    npt.assert_allclose(back.position, j2000.position, atol=1e-8)
    npt.assert_allclose(back.velocity, j2000.velocity, atol=1e-11)


def test_teme_to_itrf_is_sidereal_rotation(teme):
    # TEME → ITRF reduces to a rotation by GMST about Z
    itrf = teme_to_itrf(teme)
    expected = rot_z(gmst(datetime_to_jd(EPOCH))) @ R_LEO
    npt.assert_allclose(itrf.position, expected, atol=1e-3)
    npt.assert_allclose(itrf_to_teme(itrf).position, R_LEO, atol=1e-8)


def test_earth_fixed_point_has_inertial_speed():
    r = np.array([42164.17, 0.0, 0.0])
    fixed = StateVector(J2000_EPOCH, r, np.zeros(3), FrameKind.ITRF)
    inertial = itrf_to_j2000(fixed)
    npt.assert_allclose(inertial.speed, OMEGA_EARTH * 42164.17, rtol=1e-9)
    npt.assert_allclose(j2000_to_itrf(inertial).velocity, np.zeros(3), atol=1e-12)


def test_geostationary_inertial_state_nearly_fixed():
    eo = orientation(J2000_EPOCH)
    r_itrf = np.array([42164.17, 0.0, 0.0])
    R = j2000_to_itrf_matrix(eo)
    r = R.T @ r_itrf
    v = np.cross([0.0, 0.0, OMEGA_EARTH], r)
    itrf = j2000_to_itrf(StateVector(J2000_EPOCH, r, v, FrameKind.J2000))
    assert itrf.speed < 0.01


# ═══════════════════════════════════════════════════════════════════════════
#  convert
# ═══════════════════════════════════════════════════════════════════════════

def test_convert_same_frame_is_identity(teme):
    assert convert(teme, FrameKind.TEME) is teme
    assert convert(teme, "teme") is teme


def test_convert_matches_direct_functions(teme):
    npt.assert_allclose(convert(teme, "ITRF").position, teme_to_itrf(teme).position)
    npt.assert_allclose(convert(teme, FrameKind.J2000).velocity,
                        teme_to_j2000(teme).velocity)


def test_convert_itrf_back_to_teme(teme):
    back = convert(convert(teme, "itrf"), "teme")
    npt.assert_allclose(back.position, teme.position, atol=1e-8)
    npt.assert_allclose(back.velocity, teme.velocity, atol=1e-11)


def test_convert_to_geodetic(teme):
    geo = convert(teme, "geodetic")
    assert isinstance(geo, Geodetic)
    assert geo.altitude > 0.0


def test_convert_to_topocentric_needs_observer(teme):
    with pytest.raises(GeometryError):
        convert(teme, FrameKind.TOPOCENTRIC)
    site = GroundObserver.from_degrees(40.0, -75.0)
    obs = convert(teme, "topocentric", observer=site)
    assert isinstance(obs, TopocentricObservation)
    assert obs.range > 0.0


def test_convert_unknown_frame(teme):
    with pytest.raises(GeometryError, match="Valid frames"):
        convert(teme, "GCRF")


def test_convert_rejects_non_state(teme):
    with pytest.raises(GeometryError):
        convert(convert(teme, "geodetic"), "teme")


def test_convert_reuses_cache(teme):
    cache = TransformCache()
    convert(teme, "itrf", cache=cache)
    convert(teme, "itrf", cache=cache)
    assert cache.hits >= 2


def test_frame_registry():
    assert FrameKind.TOPOCENTRIC in FRAMES
    assert {f for f in FRAMES if f.inertial} == {FrameKind.TEME, FrameKind.J2000}


# ═══════════════════════════════════════════════════════════════════════════
#  RIC
# ═══════════════════════════════════════════════════════════════════════════

def test_ric_matrix_orthonormal_rows():
    R = ric_matrix(R_LEO, V_LEO)
    npt.assert_allclose(R @ R.T, np.eye(3), atol=1e-14)
    npt.assert_allclose(R[0], R_LEO / np.linalg.norm(R_LEO))
    h = np.cross(R_LEO, V_LEO)
    npt.assert_allclose(R[2], h / np.linalg.norm(h))


def test_relative_state_of_self_is_zero(j2000):
    rel = relative_state(j2000, j2000)
    npt.assert_array_equal(rel.position, np.zeros(3))
    npt.assert_array_equal(rel.velocity, np.zeros(3))


def test_radial_offset():
    origin = StateVector(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], FrameKind.J2000)
    other = StateVector(EPOCH, [7001.0, 0.0, 0.0], [0.0, 7.5, 0.0], FrameKind.J2000)
    rel = relative_state(other, origin)
    npt.assert_allclose(rel.position, [1.0, 0.0, 0.0], atol=1e-12)
    npt.assert_allclose(rel.range, 1.0)


def test_in_track_and_cross_track_axes():
    origin = StateVector(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], FrameKind.J2000)
    ahead = StateVector(EPOCH, [7000.0, 2.0, 3.0], [0.0, 7.5, 0.0], FrameKind.J2000)
    npt.assert_allclose(relative_state(ahead, origin).position, [0.0, 2.0, 3.0],
                        atol=1e-12)


def test_ric_round_trip(j2000):
    other = StateVector(EPOCH, R_LEO + [3.0, -1.0, 0.5], V_LEO + [0.001, 0.0, -0.002],
                        FrameKind.J2000)
    rel = relative_state(other, j2000)
    back = relative_to_inertial(rel, j2000)
    assert back.frame == FrameKind.J2000
    npt.assert_allclose(back.position, other.position, atol=1e-9)
    npt.assert_allclose(back.velocity, other.velocity, atol=1e-12)


def test_ric_frame_checks(teme, j2000):
    with pytest.raises(GeometryError):
        relative_state(teme, j2000)
    itrf = convert(j2000, "itrf")
    with pytest.raises(GeometryError):
        relative_state(itrf, itrf)
    with pytest.raises(GeometryError):
        relative_to_inertial(relative_state(j2000, j2000), itrf)
