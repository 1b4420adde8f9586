"""
test_tle.py — TLE parsing, Alpha-5, checksums, export, OMM
"""

import math
from dataclasses import replace
from datetime import datetime, timezone

import numpy.testing as npt
import pytest

from orbitcore.errors import TLEFormatError
from orbitcore.sgp4 import propagate, sgp4_init
from orbitcore.tle import (
    _format_exp_field, _format_ndot,
    alpha5_to_int, int_to_alpha5, parse_omm, parse_tle, parse_tle_batch,
    tle_checksum, tle_to_lines, tle_to_string, verify_checksum, verify_tle,
)
from orbitcore.utils import DEG2RAD, TWO_PI

L1 = "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753"
L2 = "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667"

ISS_NAME = "ISS (ZARYA)"
ISS_L1 = "1 25544U 98067A   26054.50000000  .00016717  00000-0  10270-3 0  9009"
ISS_L2 = "2 25544  51.6400 210.0000 0007000  90.0000 270.0000 15.50000000400001"

VANGUARD_OMM = {
    "OBJECT_NAME": "VANGUARD 1",
    "OBJECT_ID": "1958-002B",
    "EPOCH": "2000-06-27T18:50:19.733568",
    "MEAN_MOTION": 10.82419157,
    "ECCENTRICITY": 0.1859667,
    "INCLINATION": 34.2682,
    "RA_OF_ASC_NODE": 348.7242,
    "ARG_OF_PERICENTER": 331.7664,
    "MEAN_ANOMALY": 19.3264,
    "EPHEMERIS_TYPE": 0,
    "CLASSIFICATION_TYPE": "U",
    "NORAD_CAT_ID": 5,
    "ELEMENT_SET_NO": 475,
    "REV_AT_EPOCH": 41366,
    "BSTAR": 2.8098e-5,
    "MEAN_MOTION_DOT": 2.3e-7,
    "MEAN_MOTION_DDOT": 0,
}


def with_ephemeris_type(line1, value):
    body = line1[:62] + value + line1[63:68]
    return body + str(tle_checksum(body))


# ═══════════════════════════════════════════════════════════════════════════
#  Parsing
# ═══════════════════════════════════════════════════════════════════════════

def test_parse_vanguard_fields():
    t = parse_tle(L1, L2)
    assert t.catalog_number == 5 and t.catalog_id == "00005"
    assert t.classification == "U"
    assert t.intl_designator == "58002B"
    assert (t.epoch_year, t.epoch_day) == (2000, 179.78495062)
    assert t.ndot == pytest.approx(2.3e-7)
    assert t.nddot == 0.0
    assert t.bstar == pytest.approx(2.8098e-5)
    assert t.element_set == 475
    assert t.inclination == 34.2682
    assert t.raan == 348.7242
    assert t.eccentricity == pytest.approx(0.1859667)
    assert t.arg_perigee == 331.7664
    assert t.mean_anomaly == 19.3264
    assert t.mean_motion == 10.82419157
    assert t.rev_number == 41366


def test_parse_three_line_with_name():
    t = parse_tle(ISS_NAME, ISS_L1, ISS_L2)
    assert t.name == ISS_NAME
    assert t.catalog_number == 25544
    assert t.epoch_year == 2026
    npt.assert_allclose(t.period, 1440.0 / 15.5)


def test_celestrak_name_prefix_stripped():
    assert parse_tle("0 ISS (ZARYA)", ISS_L1, ISS_L2).name == ISS_NAME


def test_twentieth_century_epoch_year():
    line1 = L1[:18] + "98" + L1[20:]
    assert parse_tle(line1, L2).epoch_year == 1998


def test_mean_elements_units():
    t = parse_tle(L1, L2)
    m = t.to_mean_elements()
    assert m.catalog_number == "00005"
    npt.assert_allclose(m.inclination, 34.2682 * DEG2RAD)
    npt.assert_allclose(m.mean_motion, 10.82419157 * TWO_PI / 1440.0)
    npt.assert_allclose(m.ndot, 2.3e-7 * TWO_PI / 1440.0**2)
    assert m.epoch == t.epoch
    assert m.epoch.tzinfo is not None
    assert (m.epoch.month, m.epoch.day, m.epoch.hour, m.epoch.minute) == (6, 27, 18, 50)


def test_catalog_mismatch_rejected():
    line2 = L2[:2] + "00006" + L2[7:]
    with pytest.raises(TLEFormatError, match="mismatch"):
        parse_tle(L1, line2)


def test_wrong_line_order_rejected():
    with pytest.raises(TLEFormatError):
        parse_tle(L2, L1)


def test_short_line_rejected():
    with pytest.raises(TLEFormatError):
        parse_tle(L1[:40], L2)


def test_sgp4_xp_rejected():
    with pytest.raises(TLEFormatError, match="SGP4-XP"):
        parse_tle(with_ephemeris_type(L1, "4"), L2)


def test_unknown_ephemeris_type_rejected():
    with pytest.raises(TLEFormatError, match="ephemeris type"):
        parse_tle(with_ephemeris_type(L1, "2"), L2)


@pytest.mark.parametrize("mean_motion", [" 0.00000000", "19.00000000"])
def test_invalid_mean_motion_rejected(mean_motion):
    line2 = L2[:52] + mean_motion + L2[63:]
    with pytest.raises(TLEFormatError, match="mean motion"):
        parse_tle(L1, line2)


def test_out_of_range_inclination_rejected():
    line2 = L2[:8] + "190.0000" + L2[16:]
    with pytest.raises(TLEFormatError, match="inclination"):
        parse_tle(L1, line2)


def test_malformed_eccentricity_rejected():
    line2 = L2[:26] + "18x9667" + L2[33:]
    with pytest.raises(TLEFormatError, match="eccentricity"):
        parse_tle(L1, line2)


def test_wrong_number_of_lines():
    with pytest.raises(TLEFormatError):
        parse_tle(L1)


def test_checksum_not_enforced_by_parser():
    assert parse_tle(L1[:68] + "0", L2).catalog_number == 5


# ═══════════════════════════════════════════════════════════════════════════
#  Alpha-5
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("field, number", [
    ("00005", 5), ("99999", 99999), ("A0000", 100000), ("A0005", 100005),
    ("H1234", 171234), ("J0000", 180000), ("Z9999", 339999),
])
def test_alpha5_mapping(field, number):
    assert alpha5_to_int(field) == number
    assert int_to_alpha5(number) == field


@pytest.mark.parametrize("field", ["I0001", "O0001", "", "1A000"])
def test_alpha5_invalid(field):
    with pytest.raises(TLEFormatError):
        alpha5_to_int(field)


def test_alpha5_out_of_range():
    with pytest.raises(TLEFormatError):
        int_to_alpha5(340000)


def test_parse_alpha5_catalog():
    t = parse_tle(L1.replace("00005", "A0005"), L2.replace("00005", "A0005"))
    assert t.catalog_number == 100005
    assert t.to_mean_elements().catalog_number == "A0005"


# ═══════════════════════════════════════════════════════════════════════════
#  Checksums
# ═══════════════════════════════════════════════════════════════════════════

def test_checksum_values():
    assert tle_checksum(L1) == 3
    assert tle_checksum(L2) == 7
    assert verify_checksum(ISS_L1) and verify_checksum(ISS_L2)


def test_checksum_counts_minus_as_one():
    assert tle_checksum("1-") == 2
    assert tle_checksum("1+A") == 1


def test_verify_tle_reports_problems():
    good = verify_tle(L1, L2)
    assert good["valid"] and good["catalog_match"] and not good["errors"]

    bad = verify_tle(L1[:68] + "0", L2.replace("00005", "00006"))
    assert not bad["valid"]
    assert not bad["line1_checksum"]
    assert not bad["catalog_match"]
    assert len(bad["errors"]) >= 2


# ═══════════════════════════════════════════════════════════════════════════
#  Export
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("lines", [(L1, L2), (ISS_L1, ISS_L2)])
def test_export_reproduces_lines(lines):
    assert tle_to_lines(parse_tle(*lines)) == lines


def test_export_string_with_name():
    t = parse_tle(ISS_NAME, ISS_L1, ISS_L2)
    assert tle_to_string(t) == f"{ISS_NAME}\n{ISS_L1}\n{ISS_L2}"
    assert tle_to_string(t, include_name=False) == f"{ISS_L1}\n{ISS_L2}"


def test_export_alpha5():
    t = parse_tle(L1.replace("00005", "A0005"), L2.replace("00005", "A0005"))
    line1, line2 = tle_to_lines(t)
    assert line1[2:7] == line2[2:7] == "A0005"
    assert verify_checksum(line1) and verify_checksum(line2)


@pytest.mark.parametrize("value, expected", [
    (0.0, " 00000-0"),
    (1.2345e-4, " 12345-3"),
    (-4.56e-3, "-45600-2"),
    (3.2e-10, " 32000-9"),
    (2.5e-11, " 02500-9"),
    (1.0e-16, " 00000-0"),
])
def test_exponent_field_formats(value, expected):
    assert _format_exp_field(value) == expected


@pytest.mark.parametrize("value", [1.2e10, -3.0e12, math.inf, math.nan])
def test_exponent_field_overflow_raises(value):
    with pytest.raises(TLEFormatError):
        _format_exp_field(value)


@pytest.mark.parametrize("value", [1.0, -1.5, 0.999999999])
def test_ndot_field_overflow_raises(value):
    with pytest.raises(TLEFormatError):
        _format_ndot(value)


def test_ndot_field_largest_value():
    assert _format_ndot(-0.99999999) == "-.99999999"
    assert len(_format_ndot(0.5)) == 10


def test_export_rejects_unrepresentable_bstar():
    t = replace(parse_tle(L1, L2), bstar=2.0e11)
    with pytest.raises(TLEFormatError):
        tle_to_lines(t)


# ═══════════════════════════════════════════════════════════════════════════
#  Batch
# ═══════════════════════════════════════════════════════════════════════════

def test_batch_three_line_sets():
    tles = parse_tle_batch(f"{ISS_NAME}\n{ISS_L1}\n{ISS_L2}\n" * 3)
    assert len(tles) == 3 and all(t.name == ISS_NAME for t in tles)


def test_batch_mixed_formats_and_noise():
    text = f"{L1}\n{L2}\n\nstray line\n{ISS_NAME}\n{ISS_L1}\n{ISS_L2}\n"
    tles = parse_tle_batch(text)
    assert [t.catalog_number for t in tles] == [5, 25544]
    assert tles[0].name == "" and tles[1].name == ISS_NAME


# ═══════════════════════════════════════════════════════════════════════════
#  OMM
# ═══════════════════════════════════════════════════════════════════════════

def test_omm_matches_tle_elements():
    omm = parse_omm(VANGUARD_OMM)
    tle = parse_tle(L1, L2).to_mean_elements()
    assert omm.catalog_number == "00005"
    assert omm.name == "VANGUARD 1"
    npt.assert_allclose(omm.jd, tle.jd, atol=1e-9)
    for name in ("inclination", "raan", "eccentricity", "arg_perigee",
                 "mean_anomaly", "mean_motion", "bstar", "ndot"):
        npt.assert_allclose(getattr(omm, name), getattr(tle, name),
                            rtol=1e-12, err_msg=name)


def test_omm_propagates_like_tle():
    omm_state = sgp4_init(parse_omm(VANGUARD_OMM))
    tle_state = sgp4_init(parse_tle(L1, L2).to_mean_elements())
    npt.assert_allclose(propagate(omm_state, 360.0).unwrap().position,
                        propagate(tle_state, 360.0).unwrap().position,
                        atol=1e-3)


def test_omm_optional_fields_default():
    record = {k: VANGUARD_OMM[k] for k in (
        "EPOCH", "MEAN_MOTION", "ECCENTRICITY", "INCLINATION",
        "RA_OF_ASC_NODE", "ARG_OF_PERICENTER", "MEAN_ANOMALY", "NORAD_CAT_ID")}
    omm = parse_omm(record)
    assert omm.bstar == 0.0 and omm.classification == "U"
    expected = datetime(2000, 6, 27, 18, 50, 19, 733568, tzinfo=timezone.utc)
    assert abs((omm.epoch - expected).total_seconds()) < 1e-3


def test_omm_missing_key():
    record = dict(VANGUARD_OMM)
    del record["MEAN_MOTION"]
    with pytest.raises(TLEFormatError, match="MEAN_MOTION"):
        parse_omm(record)


def test_omm_bad_values():
    with pytest.raises(TLEFormatError):
        parse_omm(dict(VANGUARD_OMM, ECCENTRICITY="abc"))
    with pytest.raises(TLEFormatError):
        parse_omm(dict(VANGUARD_OMM, EPOCH="yesterday"))
    with pytest.raises(TLEFormatError, match="SGP4-XP"):
        parse_omm(dict(VANGUARD_OMM, EPHEMERIS_TYPE=4))
    with pytest.raises(TLEFormatError, match="mean motion"):
        parse_omm(dict(VANGUARD_OMM, MEAN_MOTION=-1.0))


def test_omm_epoch_with_zulu_suffix():
    omm = parse_omm(dict(VANGUARD_OMM, EPOCH="2000-06-27T18:50:19.733568Z"))
    assert omm.epoch.tzinfo is not None
    assert not math.isnan(omm.jd)
