"""
orbitcore.sgp4 — SGP4 / SDP4 Mean-Element Propagator
=====================================================

Initialise once per element set with ``sgp4_init``; propagate repeatedly
with ``propagate``.  Output is position [km] and velocity [km/s] in the
TEME frame.

Propagation never raises on physical failure.  ``propagate`` returns a
``PropagationResult`` holding an ``Sgp4ErrorCode``; callers that prefer
exceptions use ``PropagationResult.unwrap()``.

Reference
---------
Hoots, F.R. & Roehrich, R.L. (1980). SPACETRACK Report No. 3.
Vallado, D.A., Crawford, P., Hujsak, R. & Kelso, T.S. (2006).
*Revisiting Spacetrack Report #3*, AIAA 2006-6753.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from .deep_space import (
    DeepSpaceCursor, LuniSolarTerms, Regime, Resonance, ResonanceTerms,
    dpper, dscom, dsinit, dspace,
)
from .errors import PropagationResult, Sgp4ErrorCode
from .gravity import DEFAULT_GRAVITY, DEFAULT_OPSMODE, GravityModel, OpsMode
from .state import FrameKind, StateVector
from .utils import TWO_PI, datetime_to_jd, gmst, invjday, minutes_between

logger = logging.getLogger(__name__)

X2O3 = 2.0 / 3.0
TEMP4 = 1.5e-12
JD_1950 = 2433281.5          # epoch origin for the propagator [JD]


# ════════════════════════════════════════════════════════════════════════════
#  Element Set & Propagator State
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MeanElementSet:
    """SGP4 mean elements at epoch.

    Angles in radians, mean motion in radians per minute, ``ndot`` and
    ``nddot`` in rad/min² and rad/min³ (informational only: SGP4 derives
    its own drag from ``bstar``), ``bstar`` in inverse earth radii.

    The epoch is a two-part Julian Date (``epoch_jd`` + ``epoch_fraction``)
    to keep sub-millisecond resolution.
    """
    catalog_number: str
    epoch_jd: float
    epoch_fraction: float
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    bstar: float = 0.0
    ndot: float = 0.0
    nddot: float = 0.0
    ephemeris_type: int = 0
    element_set_number: int = 0
    classification: str = "U"
    international_designator: str = ""
    revolution_number: int = 0
    name: str = ""

    @property
    def jd(self) -> float:
        return self.epoch_jd + self.epoch_fraction

    @property
    def epoch(self) -> datetime:
        return invjday(self.epoch_jd, self.epoch_fraction)

    @property
    def period(self) -> float:
        """Kozai mean-motion period [min]."""
        return TWO_PI / self.mean_motion

    @classmethod
    def from_datetime(cls, catalog_number: str, epoch: datetime,
                      **elements) -> "MeanElementSet":
        jd = datetime_to_jd(epoch)
        whole = math.floor(jd - 0.5) + 0.5
        return cls(catalog_number, whole, jd - whole, **elements)


@dataclass(frozen=True)
class PropagatorState:
    """Everything ``propagate`` needs, derived once by ``sgp4_init``.

    Immutable except for ``cursor``, the deep-space resonance integrator
    position, which advances as successive calls move away from epoch.
    """
    elements: MeanElementSet
    gravity: GravityModel
    opsmode: OpsMode
    error: Sgp4ErrorCode = Sgp4ErrorCode.NO_ERROR
    regime: Regime = Regime.NEAR_EARTH
    suborbital_epoch: bool = False
    isimp: bool = False

    # Brouwer mean elements at epoch
    epoch_days: float = 0.0   # days since 1950 Jan 0.0
    no: float = 0.0           # un-Kozai'd mean motion [rad/min]
    ecco: float = 0.0
    inclo: float = 0.0
    nodeo: float = 0.0
    argpo: float = 0.0
    mo: float = 0.0
    bstar: float = 0.0
    a: float = 0.0            # semi-major axis [earth radii]
    alta: float = 0.0         # apogee altitude [earth radii]
    altp: float = 0.0         # perigee altitude [earth radii]
    gsto: float = 0.0         # sidereal time at epoch [rad]

    # secular rates & drag
    mdot: float = 0.0
    argpdot: float = 0.0
    nodedot: float = 0.0
    nodecf: float = 0.0
    omgcof: float = 0.0
    xmcof: float = 0.0
    eta: float = 0.0
    cc1: float = 0.0
    cc4: float = 0.0
    cc5: float = 0.0
    d2: float = 0.0
    d3: float = 0.0
    d4: float = 0.0
    delmo: float = 0.0
    sinmao: float = 0.0
    t2cof: float = 0.0
    t3cof: float = 0.0
    t4cof: float = 0.0
    t5cof: float = 0.0

    # short-period auxiliaries
    con41: float = 0.0
    x1mth2: float = 0.0
    x7thm1: float = 0.0
    xlcof: float = 0.0
    aycof: float = 0.0

    periodics: LuniSolarTerms = field(default_factory=LuniSolarTerms)
    resonance_terms: ResonanceTerms = field(default_factory=ResonanceTerms)
    cursor: DeepSpaceCursor = field(default_factory=DeepSpaceCursor)

    @property
    def resonance(self) -> Resonance:
        return self.resonance_terms.resonance

    @property
    def deep_space(self) -> bool:
        return self.regime == Regime.DEEP_SPACE

    @property
    def semimajor_axis(self) -> float:
        """Recovered semi-major axis [km]."""
        return self.a * self.gravity.radius

    @property
    def apogee(self) -> float:
        """Apogee altitude [km]."""
        return self.alta * self.gravity.radius

    @property
    def perigee(self) -> float:
        """Perigee altitude [km]."""
        return self.altp * self.gravity.radius


# ════════════════════════════════════════════════════════════════════════════
#  Initialisation
# ════════════════════════════════════════════════════════════════════════════

def gstime(jdut1: float) -> float:
    """Greenwich mean sidereal time [rad] for a UT1 Julian Date."""
    return gmst(jdut1)


def _gstime_afspc(epoch_days: float) -> float:
    """Legacy 1970-based sidereal time used in AFSPC mode."""
    ts70 = epoch_days - 7305.0
    ds70 = math.floor(ts70 + 1.0e-8)
    tfrac = ts70 - ds70
    c1 = 1.72027916940703639e-2
    thgr70 = 1.7321343856509374
    fk5r = 5.07551419432269442e-15
    c1p2p = c1 + TWO_PI
    gsto = math.fmod(thgr70 + c1 * ds70 + c1p2p * tfrac + ts70 * ts70 * fk5r,
                     TWO_PI)
    if gsto < 0.0:
        gsto += TWO_PI
    return gsto


@dataclass(frozen=True)
class InitlResult:
    no: float
    ao: float
    con41: float
    con42: float
    cosio: float
    cosio2: float
    eccsq: float
    omeosq: float
    posq: float
    rp: float
    rteosq: float
    sinio: float
    gsto: float


def initl(gravity: GravityModel, opsmode: OpsMode, ecco: float,
          epoch_days: float, inclo: float, no_kozai: float) -> InitlResult:
    """Recover Brouwer mean motion and the epoch auxiliaries.

    Parameters
    ----------
    ecco : float — eccentricity
    epoch_days : float — days since 1950 Jan 0.0
    inclo : float — inclination [rad]
    no_kozai : float — Kozai mean motion [rad/min]
    """
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(inclo)
    cosio2 = cosio * cosio

    ak = (gravity.xke / no_kozai) ** X2O3
    d1 = 0.75 * gravity.j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    del_ = d1 / (ak * ak)
    adel = ak * (1.0 - del_ * del_ - del_ * (1.0 / 3.0 + 134.0 * del_ * del_ / 81.0))
    del_ = d1 / (adel * adel)
    no = no_kozai / (1.0 + del_)

    ao = (gravity.xke / no) ** X2O3
    sinio = math.sin(inclo)
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)

    if opsmode == OpsMode.AFSPC:
        gsto = _gstime_afspc(epoch_days)
    else:
        gsto = gstime(epoch_days + JD_1950)

    return InitlResult(no=no, ao=ao, con41=con41, con42=con42, cosio=cosio,
                       cosio2=cosio2, eccsq=eccsq, omeosq=omeosq, posq=posq,
                       rp=rp, rteosq=rteosq, sinio=sinio, gsto=gsto)


def sgp4_init(elements: MeanElementSet,
              gravity: GravityModel = DEFAULT_GRAVITY,
              opsmode: OpsMode = DEFAULT_OPSMODE) -> PropagatorState:
    """Build a ``PropagatorState`` from mean elements.

    Invalid element sets do not raise: the returned state carries a
    non-zero ``error`` and every later ``propagate`` call reports it.

    Parameters
    ----------
    elements : MeanElementSet — mean elements at epoch
    gravity : GravityModel — WGS72OLD, WGS72 (default) or WGS84
    opsmode : OpsMode — IMPROVED (default) or AFSPC

    Returns
    -------
    state : PropagatorState
    """
    epoch_days = elements.jd - JD_1950
    base = dict(elements=elements, gravity=gravity, opsmode=opsmode,
                epoch_days=epoch_days, ecco=elements.eccentricity,
                inclo=elements.inclination, nodeo=elements.raan,
                argpo=elements.arg_perigee, mo=elements.mean_anomaly,
                bstar=elements.bstar, no=elements.mean_motion)

    ecco = elements.eccentricity
    if ecco >= 1.0 or ecco < -0.001:
        return _invalid(base, Sgp4ErrorCode.MEAN_ELEMENTS_INVALID)
    if not 0.0 <= elements.inclination <= math.pi:
        return _invalid(base, Sgp4ErrorCode.MEAN_ELEMENTS_INVALID)
    if elements.mean_motion <= 0.0:
        return _invalid(base, Sgp4ErrorCode.MEAN_MOTION_NEGATIVE)

    radius = gravity.radius
    j2, j4, j3oj2 = gravity.j2, gravity.j4, gravity.j3oj2
    ss = 78.0 / radius + 1.0
    qzms2t = ((120.0 - 78.0) / radius) ** 4

    il = initl(gravity, opsmode, ecco, epoch_days, elements.inclination,
               elements.mean_motion)
    no = il.no
    if il.ao < 0.95:
        return _invalid(dict(base, no=no, gsto=il.gsto),
                        Sgp4ErrorCode.MEAN_ELEMENTS_INVALID)

    inclo, argpo, mo, nodeo = (elements.inclination, elements.arg_perigee,
                               elements.mean_anomaly, elements.raan)
    bstar = elements.bstar
    cosio, cosio2, sinio = il.cosio, il.cosio2, il.sinio
    ao, omeosq, rteosq = il.ao, il.omeosq, il.rteosq
    con41 = il.con41

    a = (no * gravity.tumin) ** (-X2O3)
    alta = a * (1.0 + ecco) - 1.0
    altp = a * (1.0 - ecco) - 1.0

    isimp = il.rp < 220.0 / radius + 1.0

    # atmosphere parameter for low perigees
    sfour = ss
    qzms24 = qzms2t
    perige = (il.rp - 1.0) * radius
    if perige < 156.0:
        sfour = perige - 78.0
        if perige < 98.0:
            sfour = 20.0
        qzms24 = ((120.0 - sfour) / radius) ** 4
        sfour = sfour / radius + 1.0

    pinvsq = 1.0 / il.posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * tsi ** 4
    coef1 = coef / psisq ** 3.5
    cc2 = coef1 * no * (ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
                        + 0.375 * j2 * tsi / psisq * con41
                        * (8.0 + 3.0 * etasq * (8.0 + etasq)))
    cc1 = bstar * cc2
    cc3 = 0.0
    if ecco > 1.0e-4:
        cc3 = -2.0 * coef * tsi * j3oj2 * no * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = 2.0 * no * coef1 * ao * omeosq * (
        eta * (2.0 + 0.5 * etasq) + ecco * (0.5 + 2.0 * etasq)
        - j2 * tsi / (ao * psisq) * (
            -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq))
            * math.cos(2.0 * argpo)))
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * j4 * pinvsq * pinvsq * no
    mdot = (no + 0.5 * temp1 * rteosq * con41
            + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4))
    argpdot = (-0.5 * temp1 * il.con42
               + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
               + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4))
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * cosio2)
                        + 2.0 * temp3 * (3.0 - 7.0 * cosio2)) * cosio
    xpidot = argpdot + nodedot
    omgcof = bstar * cc3 * math.cos(argpo)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -X2O3 * coef * bstar / eeta
    nodecf = 3.5 * omeosq * xhdot1 * cc1
    t2cof = 1.5 * cc1
    xlcof = _xlcof(j3oj2, sinio, cosio)
    aycof = -0.5 * j3oj2 * sinio
    delmo = (1.0 + eta * math.cos(mo)) ** 3
    sinmao = math.sin(mo)
    x7thm1 = 7.0 * cosio2 - 1.0

    regime = Regime.NEAR_EARTH
    periodics = LuniSolarTerms()
    resonance_terms = ResonanceTerms()
    if TWO_PI / no >= gravity.deep_space_period:
        regime = Regime.DEEP_SPACE
        isimp = True
        tc = 0.0
        geom = dscom(epoch_days, ecco, argpo, tc, inclo, nodeo, no)
        periodics = geom.periodics
        resonance_terms = dsinit(
            geom, xke=gravity.xke, argpo=argpo, tc=tc, gsto=il.gsto, mo=mo,
            mdot=mdot, no=no, nodeo=nodeo, nodedot=nodedot, xpidot=xpidot,
            ecco=ecco, eccsq=il.eccsq, inclm=inclo)

    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not isimp:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        t3cof = d2 + 2.0 * cc1sq
        t4cof = 0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq))
        t5cof = 0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2
                       + 15.0 * cc1sq * (2.0 * d2 + cc1sq))

    state = PropagatorState(
        **dict(base, no=no),
        regime=regime, suborbital_epoch=il.rp < 1.0, isimp=isimp,
        a=a, alta=alta, altp=altp, gsto=il.gsto,
        mdot=mdot, argpdot=argpdot, nodedot=nodedot, nodecf=nodecf,
        omgcof=omgcof, xmcof=xmcof, eta=eta, cc1=cc1, cc4=cc4, cc5=cc5,
        d2=d2, d3=d3, d4=d4, delmo=delmo, sinmao=sinmao,
        t2cof=t2cof, t3cof=t3cof, t4cof=t4cof, t5cof=t5cof,
        con41=con41, x1mth2=x1mth2, x7thm1=x7thm1, xlcof=xlcof, aycof=aycof,
        periodics=periodics, resonance_terms=resonance_terms,
    )

    # seed at epoch; a failure here is the element set's error
    error = propagate(state, 0.0).error
    if error != Sgp4ErrorCode.NO_ERROR:
        logger.warning("Catalog %s failed initial propagation: %s",
                       elements.catalog_number, error.message)
        state = replace(state, error=error)

    logger.debug("Initialised %s: regime=%s resonance=%s a=%.1f km",
                 elements.catalog_number, regime.name, state.resonance.name,
                 state.semimajor_axis)
    return state


def _invalid(base: dict, error: Sgp4ErrorCode) -> PropagatorState:
    logger.warning("Catalog %s rejected at initialisation: %s",
                   base["elements"].catalog_number, error.message)
    return PropagatorState(**base, error=error)


def _valid_perturbed_eccentricity(ep: float) -> bool:
    return 0.0 <= ep < 1.0


def _xlcof(j3oj2: float, sinio: float, cosio: float) -> float:
    denom = 1.0 + cosio
    if abs(cosio + 1.0) <= 1.5e-12:
        denom = TEMP4
    return -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / denom


# ════════════════════════════════════════════════════════════════════════════
#  Propagation
# ════════════════════════════════════════════════════════════════════════════

def propagate(state: PropagatorState, tsince: float) -> PropagationResult:
    """Propagate to ``tsince`` minutes from epoch.

    Parameters
    ----------
    state : PropagatorState — from ``sgp4_init``; its cursor may advance
    tsince : float — minutes from epoch (negative for earlier times)

    Returns
    -------
    PropagationResult — TEME ``StateVector`` or an error code
    """
    catalog = state.elements.catalog_number

    def fail(code: Sgp4ErrorCode) -> PropagationResult:
        return PropagationResult(code, None, catalog)

    if state.error != Sgp4ErrorCode.NO_ERROR:
        return fail(state.error)
    if state.suborbital_epoch and tsince < 0.0:
        return fail(Sgp4ErrorCode.EPOCH_ELEMENTS_SUBORBITAL)

    grav = state.gravity
    xke, j2, j3oj2 = grav.xke, grav.j2, grav.j3oj2
    t = tsince

    # ── secular gravity and atmospheric drag ──
    xmdf = state.mo + state.mdot * t
    argpdf = state.argpo + state.argpdot * t
    nodedf = state.nodeo + state.nodedot * t
    argpm = argpdf
    mm = xmdf
    t2 = t * t
    nodem = nodedf + state.nodecf * t2
    tempa = 1.0 - state.cc1 * t
    tempe = state.bstar * state.cc4 * t
    templ = state.t2cof * t2

    if not state.isimp:
        delomg = state.omgcof * t
        delm = state.xmcof * ((1.0 + state.eta * math.cos(xmdf)) ** 3 - state.delmo)
        temp = delomg + delm
        mm = xmdf + temp
        argpm = argpdf - temp
        t3 = t2 * t
        t4 = t3 * t
        tempa = tempa - state.d2 * t2 - state.d3 * t3 - state.d4 * t4
        tempe += state.bstar * state.cc5 * (math.sin(mm) - state.sinmao)
        templ = templ + state.t3cof * t3 + t4 * (state.t4cof + t * state.t5cof)

    nm = state.no
    em = state.ecco
    inclm = state.inclo
    if state.deep_space:
        em, argpm, inclm, mm, nodem, nm = dspace(
            state.resonance_terms, state.cursor, t=t, tc=t, gsto=state.gsto,
            argpo=state.argpo, argpdot=state.argpdot, no=state.no,
            em=em, argpm=argpm, inclm=inclm, mm=mm, nodem=nodem, nm=nm)

    if nm <= 0.0:
        return fail(Sgp4ErrorCode.MEAN_MOTION_NEGATIVE)

    am = (xke / nm) ** X2O3 * tempa * tempa
    nm = xke / am ** 1.5
    em -= tempe
    if em >= 1.0 or em < -0.001:
        return fail(Sgp4ErrorCode.MEAN_ELEMENTS_INVALID)
    if em < 1.0e-6:
        em = 1.0e-6

    mm += state.no * templ
    xlm = mm + argpm + nodem
    nodem = math.fmod(nodem, TWO_PI)
    argpm = math.fmod(argpm, TWO_PI)
    xlm = math.fmod(xlm, TWO_PI)
    mm = math.fmod(xlm - argpm - nodem, TWO_PI)

    # ── luni-solar periodics ──
    sinim = math.sin(inclm)
    cosim = math.cos(inclm)
    ep, xincp, argpp, nodep, mp = em, inclm, argpm, nodem, mm
    sinip, cosip = sinim, cosim
    aycof, xlcof = state.aycof, state.xlcof
    con41, x1mth2, x7thm1 = state.con41, state.x1mth2, state.x7thm1

    if state.deep_space:
        ep, xincp, nodep, argpp, mp = dpper(
            state.periodics, t, ep, xincp, nodep, argpp, mp,
            afspc_mode=state.opsmode == OpsMode.AFSPC)
        if xincp < 0.0:
            xincp = -xincp
            nodep += math.pi
            argpp -= math.pi
        if not _valid_perturbed_eccentricity(ep):
            return fail(Sgp4ErrorCode.PERT_ELEMENTS_INVALID)

        sinip = math.sin(xincp)
        cosip = math.cos(xincp)
        aycof = -0.5 * j3oj2 * sinip
        xlcof = _xlcof(j3oj2, sinip, cosip)

    # ── long-period periodics and Kepler's equation ──
    axnl = ep * math.cos(argpp)
    temp = 1.0 / (am * (1.0 - ep * ep))
    aynl = ep * math.sin(argpp) + temp * aycof
    xl = mp + argpp + nodep + temp * xlcof * axnl

    u = math.fmod(xl - nodep, TWO_PI)
    eo1 = u
    tem5 = 9999.9
    ktr = 1
    sineo1 = coseo1 = 0.0
    while abs(tem5) >= 1.0e-12 and ktr <= 10:
        sineo1 = math.sin(eo1)
        coseo1 = math.cos(eo1)
        tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
        tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
        if abs(tem5) >= 0.95:
            tem5 = 0.95 if tem5 > 0.0 else -0.95
        eo1 += tem5
        ktr += 1

    # ── short-period periodics ──
    ecose = axnl * coseo1 + aynl * sineo1
    esine = axnl * sineo1 - aynl * coseo1
    el2 = axnl * axnl + aynl * aynl
    pl = am * (1.0 - el2)
    if pl < 0.0:
        return fail(Sgp4ErrorCode.SEMI_LATUS_RECTUM_NEGATIVE)

    rl = am * (1.0 - ecose)
    rdotl = math.sqrt(am) * esine / rl
    rvdotl = math.sqrt(pl) / rl
    betal = math.sqrt(1.0 - el2)
    temp = esine / (1.0 + betal)
    sinu = am / rl * (sineo1 - aynl - axnl * temp)
    cosu = am / rl * (coseo1 - axnl + aynl * temp)
    su = math.atan2(sinu, cosu)
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    temp = 1.0 / pl
    temp1 = 0.5 * j2 * temp
    temp2 = temp1 * temp

    if state.deep_space:
        cosisq = cosip * cosip
        con41 = 3.0 * cosisq - 1.0
        x1mth2 = 1.0 - cosisq
        x7thm1 = 7.0 * cosisq - 1.0

    mrt = (rl * (1.0 - 1.5 * temp2 * betal * con41)
           + 0.5 * temp1 * x1mth2 * cos2u)
    if mrt < 1.0:
        return fail(Sgp4ErrorCode.SATELLITE_DECAYED)

    su -= 0.25 * temp2 * x7thm1 * sin2u
    xnode = nodep + 1.5 * temp2 * cosip * sin2u
    xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
    mvt = rdotl - nm * temp1 * x1mth2 * sin2u / xke
    rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / xke

    # ── orientation vectors ──
    sinsu, cossu = math.sin(su), math.cos(su)
    snod, cnod = math.sin(xnode), math.cos(xnode)
    sini, cosi = math.sin(xinc), math.cos(xinc)
    xmx = -snod * cosi
    xmy = cnod * cosi
    ux = xmx * sinsu + cnod * cossu
    uy = xmy * sinsu + snod * cossu
    uz = sini * sinsu
    vx = xmx * cossu - cnod * sinsu
    vy = xmy * cossu - snod * sinsu
    vz = sini * cossu

    radius = grav.radius
    vkmpersec = grav.vkmpersec
    position = (mrt * ux * radius, mrt * uy * radius, mrt * uz * radius)
    velocity = ((mvt * ux + rvdot * vx) * vkmpersec,
                (mvt * uy + rvdot * vy) * vkmpersec,
                (mvt * uz + rvdot * vz) * vkmpersec)

    epoch = state.elements.epoch + timedelta(minutes=tsince)
    return PropagationResult(
        Sgp4ErrorCode.NO_ERROR,
        StateVector(epoch, position, velocity, FrameKind.TEME),
        catalog,
    )


def propagate_datetime(state: PropagatorState,
                       when: datetime) -> PropagationResult:
    """Propagate to an absolute UTC instant."""
    return propagate(state, minutes_between(state.elements.epoch, when))


def propagate_many(state: PropagatorState, offsets) -> list[PropagationResult]:
    """Propagate to each offset [min] in turn, sharing the deep-space cursor."""
    return [propagate(state, float(t)) for t in offsets]


def reset_cursor(state: PropagatorState) -> None:
    """Rewind the deep-space integrator to epoch."""
    state.cursor.reseed(state.no, state.resonance_terms.xlamo)
