"""
test_sensor.py — observers, range / azimuth / elevation, Doppler
"""

import math
from datetime import datetime, timezone

import numpy as np
import numpy.testing as npt
import pytest

from orbitcore.errors import GeometryError
from orbitcore.geodetic import lla_to_itrf
from orbitcore.sensor import (
    GroundObserver, RadecGeocentric, RadecTopocentric, TopocentricObservation,
    doppler_factor, itrf_to_topocentric, topocentric_azel, topocentric_to_itrf,
)
from orbitcore.state import FrameKind, StateVector
from orbitcore.utils import DEG2RAD, HALF_PI, R_EARTH, SPEED_OF_LIGHT, TWO_PI

EPOCH = datetime(2024, 6, 1, 3, tzinfo=timezone.utc)


@pytest.fixture
def equator_site():
    return GroundObserver.from_degrees(0.0, 0.0, 0.0, name="EQ")


@pytest.fixture
def mid_site():
    return GroundObserver.from_degrees(38.8, -104.7, 1.9, name="COS",
                                       min_elevation=10.0 * DEG2RAD)


def itrf(position, velocity=(0.0, 0.0, 0.0)):
    return StateVector(EPOCH, position, velocity, FrameKind.ITRF)


# ═══════════════════════════════════════════════════════════════════════════
#  Azimuth / Elevation
# ═══════════════════════════════════════════════════════════════════════════

def test_target_at_zenith(mid_site):
    overhead = lla_to_itrf(mid_site.latitude, mid_site.longitude,
                           mid_site.altitude + 500.0)
    obs = itrf_to_topocentric(itrf(overhead), mid_site)
    npt.assert_allclose(obs.elevation, HALF_PI, atol=1e-6)
    npt.assert_allclose(obs.range, 500.0, atol=1e-6)


def test_target_due_east_on_horizon(equator_site):
    obs = itrf_to_topocentric(itrf([R_EARTH, 1000.0, 0.0]), equator_site)
    npt.assert_allclose(obs.azimuth, HALF_PI, atol=1e-12)
    npt.assert_allclose(obs.elevation, 0.0, atol=1e-12)
    npt.assert_allclose(obs.range, 1000.0)


def test_target_due_north_on_horizon(equator_site):
    obs = itrf_to_topocentric(itrf([R_EARTH, 0.0, 1000.0]), equator_site)
    assert min(obs.azimuth, TWO_PI - obs.azimuth) < 1e-12
    npt.assert_allclose(obs.elevation, 0.0, atol=1e-12)


def test_antipode_below_horizon(equator_site):
    obs = itrf_to_topocentric(itrf([-R_EARTH, 0.0, 0.0]), equator_site)
    npt.assert_allclose(obs.elevation, -HALF_PI, atol=1e-6)
    npt.assert_allclose(obs.range, 2.0 * R_EARTH)


def test_azel_helper_agrees(mid_site):
    target = np.array([-1200.0, -4800.0, 4500.0])
    az, el, rng = topocentric_azel(mid_site.itrf_position(), mid_site.latitude,
                                   mid_site.longitude, target)
    obs = itrf_to_topocentric(itrf(target), mid_site)
    npt.assert_allclose((az, el, rng), (obs.azimuth, obs.elevation, obs.range),
                        atol=1e-12)


def test_topocentric_requires_itrf(mid_site):
    state = StateVector(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], FrameKind.TEME)
    with pytest.raises(GeometryError):
        itrf_to_topocentric(state, mid_site)


def test_observer_coincident_target_rejected(equator_site):
    with pytest.raises(GeometryError):
        itrf_to_topocentric(itrf(equator_site.itrf_position()), equator_site)


# ═══════════════════════════════════════════════════════════════════════════
#  Rates & Inverse
# ═══════════════════════════════════════════════════════════════════════════

def test_round_trip_with_rates(mid_site):
    target = itrf([-1500.0, -5200.0, 4600.0], [5.1, -1.2, 3.3])
    obs = itrf_to_topocentric(target, mid_site)
    assert obs.has_rates
    back = topocentric_to_itrf(obs, mid_site)
    npt.assert_allclose(back.position, target.position, atol=1e-7)
    npt.assert_allclose(back.velocity, target.velocity, atol=1e-9)


def test_range_rate_sign(equator_site):
    receding = itrf([R_EARTH + 800.0, 0.0, 0.0], [1.0, 0.0, 0.0])
    npt.assert_allclose(itrf_to_topocentric(receding, equator_site).range_rate,
                        1.0, atol=1e-12)


def test_inverse_without_rates_has_zero_velocity(mid_site):
    obs = TopocentricObservation(EPOCH, 1000.0, 1.0, 0.5)
    assert not obs.has_rates
    state = topocentric_to_itrf(obs, mid_site)
    npt.assert_array_equal(state.velocity, np.zeros(3))
    npt.assert_allclose(np.linalg.norm(state.position - mid_site.itrf_position()),
                        1000.0)


def test_observation_angle():
    a = TopocentricObservation(EPOCH, 1000.0, 0.0, 0.0)
    b = TopocentricObservation(EPOCH, 1000.0, HALF_PI, 0.0)
    assert a.angle(a) == 0.0
    npt.assert_allclose(a.angle(b), HALF_PI)


# ═══════════════════════════════════════════════════════════════════════════
#  Right Ascension / Declination
# ═══════════════════════════════════════════════════════════════════════════

def j2000(position, velocity=(0.0, 0.0, 0.0)):
    return StateVector(EPOCH, position, velocity, FrameKind.J2000)


def test_radec_on_inertial_axes():
    obs = RadecGeocentric.from_state_vector(j2000([0.0, 7000.0, 0.0]))
    npt.assert_allclose(obs.right_ascension, HALF_PI)
    npt.assert_allclose(obs.declination, 0.0, atol=1e-15)
    npt.assert_allclose(obs.range, 7000.0)

    south = RadecGeocentric.from_state_vector(j2000([-1.0, -1.0, -math.sqrt(2.0)]))
    npt.assert_allclose(south.right_ascension_deg, 225.0)
    npt.assert_allclose(south.declination_deg, -45.0)


def test_radec_geocentric_round_trip():
    state = j2000([6524.834, 6862.875, 6448.296], [4.901327, 5.533756, -1.976341])
    obs = RadecGeocentric.from_state_vector(state)
    assert 0.0 <= obs.right_ascension < TWO_PI
    npt.assert_allclose(obs.position(), state.position, atol=1e-8)
    npt.assert_allclose(obs.velocity(), state.velocity, atol=1e-11)
    npt.assert_allclose(obs.range_rate,
                        np.dot(state.position, state.velocity) / obs.range)


def test_radec_rates_match_finite_difference():
    state = j2000([6524.834, 6862.875, 6448.296], [4.901327, 5.533756, -1.976341])
    dt = 1e-3
    later = j2000(state.position + dt * state.velocity, state.velocity)
    a = RadecGeocentric.from_state_vector(state)
    b = RadecGeocentric.from_state_vector(later)
    npt.assert_allclose((b.right_ascension - a.right_ascension) / dt,
                        a.right_ascension_rate, rtol=1e-5)
    npt.assert_allclose((b.declination - a.declination) / dt,
                        a.declination_rate, rtol=1e-5)


def test_radec_velocity_needs_rates():
    obs = RadecGeocentric.from_degrees(EPOCH, 10.0, 20.0, range=7000.0)
    npt.assert_allclose(np.linalg.norm(obs.position()), 7000.0)
    npt.assert_allclose(np.linalg.norm(obs.position(range=1.0)), 1.0)
    with pytest.raises(GeometryError):
        obs.velocity()


def test_radec_requires_inertial_state():
    with pytest.raises(GeometryError):
        RadecGeocentric.from_state_vector(itrf([7000.0, 0.0, 0.0]))


def test_radec_zero_range_rejected():
    with pytest.raises(GeometryError):
        RadecGeocentric.from_state_vector(j2000([0.0, 0.0, 0.0]))


def test_radec_polar_target_takes_ra_from_velocity():
    obs = RadecGeocentric.from_state_vector(j2000([0.0, 0.0, 7000.0], [0.0, 7.5, 0.0]))
    npt.assert_allclose(obs.declination, HALF_PI)
    npt.assert_allclose(obs.right_ascension, HALF_PI)
    assert obs.right_ascension_rate == 0.0 and obs.declination_rate == 0.0


def test_topocentric_from_geocentre_matches_geocentric():
    state = j2000([-2000.0, 5000.0, 3000.0], [-5.0, -3.0, 2.0])
    centre = j2000(np.zeros(3))
    topo = RadecTopocentric.from_state_vectors(state, centre)
    geo = RadecGeocentric.from_state_vector(state)
    npt.assert_allclose(
        (topo.right_ascension, topo.declination, topo.range, topo.range_rate),
        (geo.right_ascension, geo.declination, geo.range, geo.range_rate))


def test_topocentric_round_trip_from_site():
    site = j2000([4000.0, 4000.0, 2500.0], [-0.29, 0.29, 0.0])
    state = j2000([-2000.0, 8000.0, 3000.0], [-5.0, -3.0, 2.0])
    topo = RadecTopocentric.from_state_vectors(state, site)
    los = topo.line_of_sight()
    npt.assert_allclose(np.linalg.norm(los), 1.0)
    npt.assert_allclose(los, (state.position - site.position) / topo.range)
    npt.assert_allclose(topo.position(site), state.position, atol=1e-8)
    npt.assert_allclose(topo.velocity(site), state.velocity, atol=1e-11)


def test_topocentric_frames_must_match():
    state = j2000([7000.0, 0.0, 0.0])
    site = StateVector(EPOCH, [6378.0, 0.0, 0.0], np.zeros(3), FrameKind.TEME)
    with pytest.raises(GeometryError):
        RadecTopocentric.from_state_vectors(state, site)


def test_radec_angle():
    a = RadecGeocentric.from_degrees(EPOCH, 0.0, 0.0)
    b = RadecGeocentric.from_degrees(EPOCH, 90.0, 0.0)
    c = RadecGeocentric.from_degrees(EPOCH, 123.0, 90.0)
    assert a.angle(a) == 0.0
    npt.assert_allclose(a.angle(b), HALF_PI)
    npt.assert_allclose(b.angle(c), HALF_PI)


# ═══════════════════════════════════════════════════════════════════════════
#  Visibility & Doppler
# ═══════════════════════════════════════════════════════════════════════════

def test_elevation_mask(mid_site):
    assert mid_site.is_visible(TopocentricObservation(EPOCH, 900.0, 1.0, 0.3))
    assert not mid_site.is_visible(TopocentricObservation(EPOCH, 900.0, 1.0, 0.1))


def test_range_limit():
    site = GroundObserver.from_degrees(0.0, 0.0, max_range=2000.0)
    assert not site.is_visible(TopocentricObservation(EPOCH, 2500.0, 0.0, 1.0))


def test_doppler_receding_target():
    factor = doppler_factor([0.0, 0.0, 0.0], [1000.0, 0.0, 0.0], [1.0, 0.0, 0.0])
    npt.assert_allclose(factor, 1.0 - 1.0 / SPEED_OF_LIGHT, rtol=1e-15)


def test_doppler_approaching_target_above_one():
    factor = doppler_factor([R_EARTH, 0.0, 0.0], [R_EARTH + 1000.0, 0.0, 0.0],
                            [-2.0, 0.0, 0.0])
    assert factor > 1.0


def test_doppler_accounts_for_observer_rotation():
    # target co-rotating with the observer shows no Doppler shift
    r_obs = np.array([R_EARTH, 0.0, 0.0])
    r_tgt = np.array([R_EARTH, 0.0, 500.0])
    v_tgt = np.cross([0.0, 0.0, 7.292115e-5], r_tgt)
    npt.assert_allclose(doppler_factor(r_obs, r_tgt, v_tgt), 1.0, atol=1e-15)
