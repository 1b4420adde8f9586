"""
orbitcore.utils — Foundational Utilities
=========================================

Physical constants, passive rotation matrices, time scales (Julian Date,
UTC → TT, GMST) and angle helpers shared by every other module.

All lengths are kilometres and all angles are radians unless a name says
otherwise.
"""

import math
from datetime import datetime, timedelta, timezone

import numpy as np
from numpy.typing import NDArray

# ── Physical Constants ──────────────────────────────────────────────────────
MU_EARTH = 398600.4415              # Earth gravitational parameter  [km³/s²]
R_EARTH = 6378.1363                 # equatorial radius               [km]
F_EARTH = 1.0 / 298.257223563       # WGS-84 flattening
R_EARTH_POLAR = R_EARTH * (1.0 - F_EARTH)                # [km]
R_EARTH_MEAN = (2.0 * R_EARTH + R_EARTH_POLAR) / 3.0     # [km]
E2_EARTH = F_EARTH * (2.0 - F_EARTH)  # first eccentricity squared
OMEGA_EARTH = 7.292115146706979e-5  # Earth rotation rate              [rad/s]
J2 = 1.08262668355315e-3            # zonal harmonics
J3 = -2.53265648533224e-6
J4 = -1.619621591367e-6
SIDEREAL_DAY_SECONDS = 86164.0905   # [s]
SPEED_OF_LIGHT = 299792.458         # [km/s]

TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi
DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi
ASEC2RAD = DEG2RAD / 3600.0
TT_MINUS_TAI = 32.184               # [s]

DAILY_SECONDS = 86400.0
JD_UNIX_EPOCH = 2440587.5
JD_J2000 = 2451545.0
DAYS_PER_CENTURY = 36525.0

# (Julian Date of change, TAI − UTC [s])
LEAP_SECONDS = (
    (2441317.5, 10), (2441499.5, 11), (2441683.5, 12), (2442048.5, 13),
    (2442413.5, 14), (2442778.5, 15), (2443144.5, 16), (2443509.5, 17),
    (2443874.5, 18), (2444239.5, 19), (2444786.5, 20), (2445151.5, 21),
    (2445516.5, 22), (2446247.5, 23), (2447161.5, 24), (2447892.5, 25),
    (2448257.5, 26), (2448804.5, 27), (2449169.5, 28), (2449534.5, 29),
    (2450083.5, 30), (2450630.5, 31), (2451179.5, 32), (2453736.5, 33),
    (2454832.5, 34), (2456109.5, 35), (2457204.5, 36), (2457754.5, 37),
)


# ── Vector Helpers ──────────────────────────────────────────────────────────

def normalize(v: NDArray) -> NDArray:
    """Return unit vector."""
    v = np.asarray(v, dtype=np.float64)
    mag = np.linalg.norm(v)
    if mag < 1e-15:
        raise ValueError("Cannot normalize a near-zero vector.")
    return v / mag


def angle_between(a: NDArray, b: NDArray) -> float:
    """Angle between two vectors [rad], clamped against round-off."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    c = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
    return math.acos(clamp(c, -1.0, 1.0))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def wrap_two_pi(angle: float) -> float:
    """Wrap an angle into [0, 2π)."""
    a = math.fmod(angle, TWO_PI)
    if a < 0.0:
        a += TWO_PI
    return a


def eval_poly(x: float, coeffs) -> float:
    """Evaluate a polynomial by Horner's rule, highest degree first."""
    result = 0.0
    for c in coeffs:
        result = result * x + c
    return result


# ── Rotation Matrices ───────────────────────────────────────────────────────
#
# Passive (frame) rotations: rot_z(θ) @ v expresses v in axes turned by +θ
# about Z.  A chain v.rotA(a).rotB(b) is rot_b(b) @ rot_a(a) @ v.

def rot_x(theta: float) -> NDArray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, s],
        [0.0, -s, c],
    ])


def rot_y(theta: float) -> NDArray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([
        [c, 0.0, -s],
        [0.0, 1.0, 0.0],
        [s, 0.0, c],
    ])


def rot_z(theta: float) -> NDArray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


# ── Time Utilities ──────────────────────────────────────────────────────────

def julian_date(year: int, month: int, day: int,
                hour: float = 0.0, minute: float = 0.0,
                second: float = 0.0) -> float:
    """Compute Julian Date from calendar date (UTC)."""
    if month <= 2:
        year -= 1
        month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0
    return JD


def jday(year: int, mon: int, day: int,
         hr: int = 0, minute: int = 0, sec: float = 0.0) -> tuple[float, float]:
    """Two-part Julian Date (Vallado's ``jday``), valid 1900–2100.

    Returns
    -------
    jd : float — whole-day part (ending in .5)
    jdfrac : float — fraction of a day
    """
    jd = (367.0 * year
          - math.floor((7 * (year + math.floor((mon + 9) / 12.0))) * 0.25)
          + math.floor(275 * mon / 9.0)
          + day + 1721013.5)
    jdfrac = (sec + minute * 60.0 + hr * 3600.0) / DAILY_SECONDS
    if abs(jdfrac) > 1.0:
        whole = math.floor(jdfrac)
        jd += whole
        jdfrac -= whole
    return jd, jdfrac


def days2mdhms(year: int, days: float) -> tuple[int, int, int, int, float]:
    """Day-of-year (with fraction) → month, day, hour, minute, second."""
    lmonth = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
    if year % 4 == 0:
        lmonth[1] = 29

    dayofyr = math.floor(days)
    i = 1
    inttemp = 0
    while dayofyr > inttemp + lmonth[i - 1] and i < 12:
        inttemp += lmonth[i - 1]
        i += 1
    mon = i
    day = dayofyr - inttemp

    temp = (days - dayofyr) * 24.0
    hr = math.floor(temp)
    temp = (temp - hr) * 60.0
    minute = math.floor(temp)
    sec = (temp - minute) * 60.0
    return mon, int(day), int(hr), int(minute), sec


def invjday(jd: float, jdfrac: float = 0.0) -> datetime:
    """Two-part Julian Date → aware UTC datetime."""
    seconds = ((jd - JD_UNIX_EPOCH) + jdfrac) * DAILY_SECONDS
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)


def datetime_to_jd(dt: datetime) -> float:
    """Aware (or naive-UTC) datetime → Julian Date."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp() / DAILY_SECONDS + JD_UNIX_EPOCH


def jd_to_datetime(jd: float) -> datetime:
    """Julian Date → aware UTC datetime (microsecond resolution)."""
    seconds = (jd - JD_UNIX_EPOCH) * DAILY_SECONDS
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)


def leap_seconds(jd: float) -> int:
    """TAI − UTC [s] at a UTC Julian Date, clamped to the table's ends."""
    if jd >= LEAP_SECONDS[-1][0]:
        return LEAP_SECONDS[-1][1]
    if jd <= LEAP_SECONDS[0][0]:
        return LEAP_SECONDS[0][1]
    offset = LEAP_SECONDS[0][1]
    for start, value in LEAP_SECONDS:
        if jd < start:
            break
        offset = value
    return offset


def julian_centuries(jd: float) -> float:
    """Julian centuries since J2000.0."""
    return (jd - JD_J2000) / DAYS_PER_CENTURY


def tt_centuries(epoch: datetime) -> float:
    """Terrestrial Time in Julian centuries since J2000.0 from a UTC epoch."""
    jd_utc = datetime_to_jd(epoch)
    jd_tt = jd_utc + (leap_seconds(jd_utc) + TT_MINUS_TAI) / DAILY_SECONDS
    return julian_centuries(jd_tt)


_GMST_POLY = (-6.2e-6, 0.093104, 876600.0 * 3600.0 + 8640184.812866,
              67310.54841)


def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time [rad] from a UTC Julian Date (IAU 1982)."""
    T = julian_centuries(jd)
    theta_sec = eval_poly(T, _GMST_POLY)
    return wrap_two_pi(theta_sec / 240.0 * DEG2RAD)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0
