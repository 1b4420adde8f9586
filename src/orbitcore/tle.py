"""
orbitcore.tle — Two-Line Element Set & OMM Codec
=================================================

Parses NORAD Two-Line Element sets (and CCSDS OMM records) into SGP4
``MeanElementSet`` inputs, validates field ranges, and formats element
sets back into checksummed 69-column lines.

TLE Line Layout (1-based columns)
---------------------------------
::

    Line 1:  1 NNNNNC NNNNNAAA NNNNN.NNNNNNNN +.NNNNNNNN +NNNNN-N +NNNNN-N N NNNNC
             |  |    |         |              |          |        |       |  |
             |  3-7  10-17     19-32          34-43      45-52    54-61  63 65-68
    Line 2:  2 NNNNN NNN.NNNN NNN.NNNN NNNNNNN NNN.NNNN NNN.NNNN NN.NNNNNNNNNNNNNN
                     9-16     18-25    27-33   35-42    44-51    53-63      64-68

Catalog numbers above 99999 use the Alpha-5 scheme: the leading digit is
replaced by a letter (A=10 … Z=33, skipping I and O).

Reference
---------
Vallado, D.A. et al. (2006). *Revisiting Spacetrack Report #3*, AIAA 2006-6753.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import TLEFormatError
from .sgp4 import MeanElementSet
from .utils import DEG2RAD, TWO_PI, days2mdhms, jday

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440.0
_REV_PER_DAY = TWO_PI / MINUTES_PER_DAY     # rev/day → rad/min

_ALPHA5_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"   # no I, no O
ALPHA5_MAX = 339999


# ════════════════════════════════════════════════════════════════════════════
#  Alpha-5 Catalog Numbers
# ════════════════════════════════════════════════════════════════════════════

def alpha5_to_int(field: str) -> int:
    """Decode a 5-character catalog field, e.g. ``'A0001'`` → 100001."""
    s = field.strip()
    if not s:
        raise TLEFormatError("Empty catalog number.")
    head = s[0].upper()
    if not head.isdigit() and head not in _ALPHA5_LETTERS:
        raise TLEFormatError(f"Invalid Alpha-5 catalog number: {field!r}")
    try:
        if head.isdigit():
            return int(s)
        return (_ALPHA5_LETTERS.index(head) + 10) * 10000 + int(s[1:])
    except ValueError:
        raise TLEFormatError(f"Invalid catalog number: {field!r}") from None


def int_to_alpha5(number: int) -> str:
    """Encode a catalog number as a 5-character (Alpha-5) field."""
    if number < 0 or number > ALPHA5_MAX:
        raise TLEFormatError(
            f"Catalog number {number} outside 0..{ALPHA5_MAX}.")
    if number < 100000:
        return f"{number:05d}"
    lead, rest = divmod(number, 10000)
    return f"{_ALPHA5_LETTERS[lead - 10]}{rest:04d}"


# ════════════════════════════════════════════════════════════════════════════
#  TLE Record
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TLE:
    """Parsed Two-Line Element set in its native units.

    Angles in degrees, mean motion in rev/day, ``ndot`` in rev/day²,
    ``nddot`` in rev/day³, ``bstar`` in inverse earth radii.
    """
    # ── Line 1 ──
    catalog_number: int
    classification: str
    intl_designator: str
    epoch_year: int             # four-digit
    epoch_day: float            # 1.0 = Jan 1 00:00 UTC
    ndot: float
    nddot: float
    bstar: float
    ephemeris_type: int
    element_set: int
    # ── Line 2 ──
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    rev_number: int
    name: str = ""

    @property
    def catalog_id(self) -> str:
        """Catalog number as written in the TLE (Alpha-5 above 99999)."""
        return int_to_alpha5(self.catalog_number)

    @property
    def period(self) -> float:
        """Orbit period [min]."""
        return MINUTES_PER_DAY / self.mean_motion

    @property
    def epoch(self) -> datetime:
        return self.to_mean_elements().epoch

    def to_mean_elements(self) -> MeanElementSet:
        """Convert to SGP4 units (radians, rad/min)."""
        mon, day, hr, minute, sec = days2mdhms(self.epoch_year, self.epoch_day)
        jd, jdfrac = jday(self.epoch_year, mon, day, hr, minute, sec)
        return MeanElementSet(
            catalog_number=self.catalog_id,
            epoch_jd=jd,
            epoch_fraction=jdfrac,
            inclination=self.inclination * DEG2RAD,
            raan=self.raan * DEG2RAD,
            eccentricity=self.eccentricity,
            arg_perigee=self.arg_perigee * DEG2RAD,
            mean_anomaly=self.mean_anomaly * DEG2RAD,
            mean_motion=self.mean_motion * _REV_PER_DAY,
            bstar=self.bstar,
            ndot=self.ndot * TWO_PI / MINUTES_PER_DAY**2,
            nddot=self.nddot * TWO_PI / MINUTES_PER_DAY**3,
            ephemeris_type=self.ephemeris_type,
            element_set_number=self.element_set,
            classification=self.classification,
            international_designator=self.intl_designator,
            revolution_number=self.rev_number,
            name=self.name,
        )


# ════════════════════════════════════════════════════════════════════════════
#  Field Parsing
# ════════════════════════════════════════════════════════════════════════════

def _float(line: str, start: int, stop: int, label: str) -> float:
    text = line[start:stop].strip()
    try:
        return float(text)
    except ValueError:
        raise TLEFormatError(f"Invalid {label}: {text!r}") from None


def _int(line: str, start: int, stop: int, label: str, default: int = 0) -> int:
    text = line[start:stop].strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        raise TLEFormatError(f"Invalid {label}: {text!r}") from None


def _in_range(value: float, lo: float, hi: float, label: str) -> float:
    if not lo <= value <= hi:
        raise TLEFormatError(f"Invalid {label}: {value}")
    return value


def _parse_exp_field(field: str, label: str) -> float:
    """Decode TLE exponent notation: ``' 28098-4'`` → 0.28098e-4."""
    s = field.strip()
    if not s:
        return 0.0
    sign = -1.0 if s[0] == "-" else 1.0
    s = s.lstrip("+-")
    if len(s) < 3 or s[-2] not in "+- ":
        raise TLEFormatError(f"Invalid {label}: {field!r}")
    try:
        digits = s[:-2].replace(" ", "0")
        mantissa = int(digits) / 10.0 ** len(digits)
        exponent = int(s[-2:].replace(" ", "+"))
    except ValueError:
        raise TLEFormatError(f"Invalid {label}: {field!r}") from None
    return sign * mantissa * 10.0 ** exponent


def _check_line(line: str, number: int) -> None:
    if len(line) < 64:
        raise TLEFormatError(f"Line {number} too short ({len(line)} characters).")
    if line[0] != str(number):
        raise TLEFormatError(f"Invalid line number: {line[0]!r}, expected {number}")


def parse_tle(*lines: str) -> TLE:
    """Parse a two-line or three-line (name + line 1 + line 2) element set.

    Parameters
    ----------
    lines : str — ``(line1, line2)`` or ``(name, line1, line2)``

    Returns
    -------
    tle : TLE

    Raises
    ------
    TLEFormatError
        On any malformed or out-of-range field.
    """
    name = ""
    if len(lines) == 3:
        name, line1, line2 = lines
    elif len(lines) == 2:
        line1, line2 = lines
    else:
        raise TLEFormatError(f"Expected 2 or 3 lines, got {len(lines)}.")

    name = name.strip()
    if name.startswith("0 "):
        name = name[2:].strip()
    line1 = line1.rstrip()
    line2 = line2.rstrip()
    _check_line(line1, 1)
    _check_line(line2, 2)

    # ── Line 1 ──
    catalog = alpha5_to_int(line1[2:7])
    if alpha5_to_int(line2[2:7]) != catalog:
        raise TLEFormatError(
            f"Catalog number mismatch: {line1[2:7]!r} vs {line2[2:7]!r}")

    yr = int(_in_range(_int(line1, 18, 20, "epoch year"), 0, 99, "epoch year"))
    epoch_year = yr + (1900 if yr >= 57 else 2000)
    epoch_day = _in_range(_float(line1, 20, 32, "epoch day"),
                          1.0, 366.99999999, "epoch day")

    ephemeris_type = _int(line1, 62, 63, "ephemeris type")
    if ephemeris_type == 4:
        raise TLEFormatError("SGP4-XP not supported")
    if ephemeris_type != 0:
        raise TLEFormatError(f"Invalid ephemeris type: {ephemeris_type}")

    # ── Line 2 ──
    ecc_text = line2[26:33].strip()
    if not ecc_text.isdigit():
        raise TLEFormatError(f"Invalid eccentricity: {ecc_text!r}")

    tle = TLE(
        catalog_number=catalog,
        classification=line1[7].strip() or "U",
        intl_designator=line1[9:17].strip(),
        epoch_year=epoch_year,
        epoch_day=epoch_day,
        ndot=_float(line1, 33, 43, "first derivative of mean motion"),
        nddot=_parse_exp_field(line1[44:52], "second derivative of mean motion"),
        bstar=_parse_exp_field(line1[53:61], "BSTAR"),
        ephemeris_type=ephemeris_type,
        element_set=_int(line1, 64, 68, "element set number"),
        inclination=_in_range(_float(line2, 8, 16, "inclination"), 0.0, 180.0,
                              "inclination"),
        raan=_in_range(_float(line2, 17, 25, "right ascension"), 0.0, 360.0,
                       "right ascension"),
        eccentricity=float("0." + ecc_text),
        arg_perigee=_in_range(_float(line2, 34, 42, "argument of perigee"),
                              0.0, 360.0, "argument of perigee"),
        mean_anomaly=_in_range(_float(line2, 43, 51, "mean anomaly"), 0.0, 360.0,
                               "mean anomaly"),
        mean_motion=_float(line2, 52, 63, "mean motion"),
        rev_number=_int(line2, 63, 68, "revolution number"),
        name=name,
    )
    if not 0.0 < tle.mean_motion <= 18.0:
        raise TLEFormatError(f"Invalid mean motion: {tle.mean_motion}")

    logger.debug("Parsed TLE %s (%s) epoch %d/%.8f", tle.catalog_id,
                 tle.name or "unnamed", tle.epoch_year, tle.epoch_day)
    return tle


def parse_tle_batch(text: str) -> list[TLE]:
    """Parse multiple TLEs from a multi-line string.

    Handles both 2-line (no name) and 3-line (name + lines) formats.
    Lines that do not form a complete set are skipped.

    Parameters
    ----------
    text : str — concatenated TLE text

    Returns
    -------
    tles : list[TLE]
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    tles = []
    i = 0
    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            tles.append(parse_tle(lines[i], lines[i + 1]))
            i += 2
        elif (i + 2 < len(lines) and lines[i + 1].startswith("1 ")
              and lines[i + 2].startswith("2 ")):
            tles.append(parse_tle(lines[i], lines[i + 1], lines[i + 2]))
            i += 3
        else:
            logger.debug("Skipping unmatched TLE line %d: %r", i, lines[i])
            i += 1
    return tles


# ════════════════════════════════════════════════════════════════════════════
#  OMM (CCSDS Orbit Mean-Elements Message)
# ════════════════════════════════════════════════════════════════════════════

def _parse_epoch(text: str) -> datetime:
    try:
        epoch = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        raise TLEFormatError(f"Invalid OMM EPOCH: {text!r}") from None
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)
    return epoch.astimezone(timezone.utc)


def parse_omm(record: dict) -> MeanElementSet:
    """Build a ``MeanElementSet`` from an OMM record (JSON / KVN keys).

    Parameters
    ----------
    record : dict — CCSDS keys such as ``EPOCH``, ``MEAN_MOTION`` [rev/day],
        ``ECCENTRICITY``, ``INCLINATION`` [deg], ``RA_OF_ASC_NODE``,
        ``ARG_OF_PERICENTER``, ``MEAN_ANOMALY``, ``NORAD_CAT_ID``, ``BSTAR``,
        ``MEAN_MOTION_DOT``, ``MEAN_MOTION_DDOT``

    Returns
    -------
    elements : MeanElementSet
    """
    try:
        epoch = _parse_epoch(record["EPOCH"])
        mean_motion = float(record["MEAN_MOTION"])
        eccentricity = float(record["ECCENTRICITY"])
        inclination = float(record["INCLINATION"])
        raan = float(record["RA_OF_ASC_NODE"])
        arg_perigee = float(record["ARG_OF_PERICENTER"])
        mean_anomaly = float(record["MEAN_ANOMALY"])
        catalog = int(record["NORAD_CAT_ID"])
        ephemeris_type = int(record.get("EPHEMERIS_TYPE", 0))
        bstar = float(record.get("BSTAR", 0.0))
        ndot = float(record.get("MEAN_MOTION_DOT", 0.0))
        nddot = float(record.get("MEAN_MOTION_DDOT", 0.0))
        element_set = int(record.get("ELEMENT_SET_NO", 0))
        rev_number = int(record.get("REV_AT_EPOCH", 0))
    except KeyError as exc:
        raise TLEFormatError(f"OMM record missing {exc.args[0]}") from None
    except (TypeError, ValueError) as exc:
        raise TLEFormatError(f"Invalid OMM field: {exc}") from None

    if ephemeris_type == 4:
        raise TLEFormatError("SGP4-XP not supported")
    if not 0.0 < mean_motion <= 18.0:
        raise TLEFormatError(f"Invalid mean motion: {mean_motion}")

    sec = epoch.second + epoch.microsecond * 1e-6
    jd, jdfrac = jday(epoch.year, epoch.month, epoch.day,
                      epoch.hour, epoch.minute, sec)

    return MeanElementSet(
        catalog_number=int_to_alpha5(catalog),
        epoch_jd=jd,
        epoch_fraction=jdfrac,
        inclination=inclination * DEG2RAD,
        raan=raan * DEG2RAD,
        eccentricity=eccentricity,
        arg_perigee=arg_perigee * DEG2RAD,
        mean_anomaly=mean_anomaly * DEG2RAD,
        mean_motion=mean_motion * _REV_PER_DAY,
        bstar=bstar,
        ndot=ndot * TWO_PI / MINUTES_PER_DAY**2,
        nddot=nddot * TWO_PI / MINUTES_PER_DAY**3,
        ephemeris_type=ephemeris_type,
        element_set_number=element_set,
        classification=str(record.get("CLASSIFICATION_TYPE", "U")),
        international_designator=str(record.get("OBJECT_ID", "")),
        revolution_number=rev_number,
        name=str(record.get("OBJECT_NAME", "")),
    )


# ════════════════════════════════════════════════════════════════════════════
#  TLE Checksum
# ════════════════════════════════════════════════════════════════════════════

def tle_checksum(line: str) -> int:
    """Compute the modulo-10 checksum for a TLE line.

    Each digit contributes its face value, '-' counts as 1,
    all other characters count as 0.  The result is sum mod 10.

    Parameters
    ----------
    line : str — a TLE line (characters 0..67; column 69 is the checksum)

    Returns
    -------
    checksum : int — single digit 0-9
    """
    s = 0
    for ch in line[:68]:
        if ch.isdigit():
            s += int(ch)
        elif ch == '-':
            s += 1
    return s % 10


def verify_checksum(line: str) -> bool:
    """True if column 69 holds the line's checksum."""
    if len(line) < 69 or not line[68].isdigit():
        return False
    return tle_checksum(line) == int(line[68])


def verify_tle(line1: str, line2: str) -> dict:
    """Verify checksums and basic structural validity of a TLE pair.

    Parameters
    ----------
    line1, line2 : str — TLE lines 1 and 2

    Returns
    -------
    dict with:
        'valid' : bool — both lines pass all checks
        'line1_checksum' : bool — line 1 checksum valid
        'line2_checksum' : bool — line 2 checksum valid
        'line1_prefix' : bool — line 1 starts with '1 '
        'line2_prefix' : bool — line 2 starts with '2 '
        'catalog_match' : bool — catalog numbers match between lines
        'errors' : list[str]
    """
    errors = []

    l1_pfx = line1.startswith("1 ")
    l2_pfx = line2.startswith("2 ")
    if not l1_pfx:
        errors.append("line1 does not start with '1 '")
    if not l2_pfx:
        errors.append("line2 does not start with '2 '")

    l1_ck = verify_checksum(line1)
    l2_ck = verify_checksum(line2)
    if not l1_ck:
        errors.append(f"line1 checksum: expected {tle_checksum(line1)}, "
                      f"got {line1[68] if len(line1) >= 69 else '?'}")
    if not l2_ck:
        errors.append(f"line2 checksum: expected {tle_checksum(line2)}, "
                      f"got {line2[68] if len(line2) >= 69 else '?'}")

    try:
        id1 = alpha5_to_int(line1[2:7])
        id2 = alpha5_to_int(line2[2:7])
        catalog_ok = id1 == id2
        if not catalog_ok:
            errors.append(f"catalog number mismatch: line1={id1}, line2={id2}")
    except TLEFormatError:
        catalog_ok = False
        errors.append("could not parse catalog numbers")

    return {
        "valid": l1_pfx and l2_pfx and l1_ck and l2_ck and catalog_ok,
        "line1_checksum": l1_ck,
        "line2_checksum": l2_ck,
        "line1_prefix": l1_pfx,
        "line2_prefix": l2_pfx,
        "catalog_match": catalog_ok,
        "errors": errors,
    }


# ════════════════════════════════════════════════════════════════════════════
#  TLE Export (Format to Strings)
# ════════════════════════════════════════════════════════════════════════════

def _format_exp_field(value: float) -> str:
    """Format a value in TLE's special exponent notation.

    TLE format: ±NNNNN±E  where value = ±0.NNNNN × 10^±E
    Example: 0.000123 → ' 12300-3'  (note: leading space or minus)
             -0.00456 → '-45600-2'
    """
    if not math.isfinite(value):
        raise TLEFormatError(f"Value {value!r} does not fit the TLE exponent field.")
    if value == 0.0:
        return " 00000-0"

    sign = '-' if value < 0 else ' '
    val = abs(value)

    # mantissa in [0.1, 1.0)
    exp = math.floor(math.log10(val)) + 1
    digits = round(val / 10.0 ** exp * 1e5)
    if digits >= 100000:
        digits //= 10
        exp += 1
    if exp < -9:
        # denormalised mantissa at the smallest exponent the field holds
        exp = -9
        digits = round(val / 10.0 ** exp * 1e5)
        if digits == 0:
            return " 00000-0"
    if exp > 9:
        raise TLEFormatError(f"Value {value!r} does not fit the TLE exponent field.")

    exp_sign = '+' if exp >= 0 else '-'
    return f"{sign}{digits:05d}{exp_sign}{abs(exp)}"


def _format_ndot(value: float) -> str:
    """``' .NNNNNNNN'`` / ``'-.NNNNNNNN'`` (10 columns)."""
    sign = '-' if value < 0 else ' '
    text = f"{abs(value):.8f}"
    if not text.startswith("0."):
        raise TLEFormatError(f"Mean motion derivative {value!r} does not fit the TLE field.")
    return sign + text[1:]


def tle_to_lines(tle: TLE) -> tuple[str, str]:
    """Format a TLE back into two 69-character lines with checksums.

    Parameters
    ----------
    tle : TLE — parsed or constructed TLE

    Returns
    -------
    line1, line2 : str
    """
    epoch_str = f"{tle.epoch_year % 100:02d}{tle.epoch_day:012.8f}"

    line1_body = (
        f"1 {tle.catalog_id}{tle.classification} "
        f"{tle.intl_designator:<8s} "
        f"{epoch_str} "
        f"{_format_ndot(tle.ndot)} "
        f"{_format_exp_field(tle.nddot)} "
        f"{_format_exp_field(tle.bstar)} "
        f"{tle.ephemeris_type}"
        f" {tle.element_set % 10000:4d}"
    )
    line1_body = f"{line1_body:<68s}"[:68]
    line1 = line1_body + str(tle_checksum(line1_body))

    ecc_str = f"{tle.eccentricity:.7f}"[2:]  # drop "0."
    line2_body = (
        f"2 {tle.catalog_id} "
        f"{tle.inclination:8.4f} "
        f"{tle.raan % 360.0:8.4f} "
        f"{ecc_str} "
        f"{tle.arg_perigee % 360.0:8.4f} "
        f"{tle.mean_anomaly % 360.0:8.4f} "
        f"{tle.mean_motion:11.8f}"
        f"{tle.rev_number % 100000:5d}"
    )
    line2_body = f"{line2_body:<68s}"[:68]
    line2 = line2_body + str(tle_checksum(line2_body))

    return line1, line2


def tle_to_string(tle: TLE, include_name: bool = True) -> str:
    """Export a TLE to a 2- or 3-line string."""
    line1, line2 = tle_to_lines(tle)
    if include_name and tle.name:
        return f"{tle.name}\n{line1}\n{line2}"
    return f"{line1}\n{line2}"
