"""
orbitcore.deep_space — SDP4 Luni-Solar and Resonance Terms
===========================================================

Deep-space extension of the mean-element propagator, used for orbits
with a period of 225 minutes or more.

``dscom``   — Sun / Moon geometry and long-period coefficients at epoch
``dpper``   — luni-solar periodic corrections at an offset from epoch
``dsinit``  — secular rates and resonance classification at epoch
``dspace``  — secular update plus Euler-Maclaurin resonance integration

The resonance integration advances a ``DeepSpaceCursor`` in fixed
720-minute steps.  The cursor persists between calls so that successive
forward propagations continue from the last integrated epoch; it is
re-seeded whenever the requested time is behind the cursor or on the
other side of epoch.

Reference
---------
Vallado, D.A., Crawford, P., Hujsak, R. & Kelso, T.S. (2006).
*Revisiting Spacetrack Report #3*, AIAA 2006-6753.
"""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum

from .utils import TWO_PI

# ── Solar / lunar constants ─────────────────────────────────────────────────
ZES = 0.01675
ZEL = 0.0549
ZNS = 1.19459e-5
ZNL = 1.5835218e-4
C1SS = 2.9864797e-6
C1L = 4.7968065e-7
ZSINIS = 0.39785416
ZCOSIS = 0.91744867
ZCOSGS = 0.1945905
ZSINGS = -0.98088458

# ── Resonance constants ─────────────────────────────────────────────────────
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
ROOT22 = 1.7891679e-6
ROOT44 = 7.3636953e-9
ROOT54 = 2.1765803e-9
ROOT32 = 3.7393792e-7
ROOT52 = 1.1428639e-7
RPTIM = 4.37526908801129966e-3   # Earth rotation [rad/min]

FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.050833
G54 = 4.4108898

STEP = 720.0                     # integrator step [min]
STEP2 = 259200.0                 # STEP² / 2


class Regime(Enum):
    NEAR_EARTH = "n"
    DEEP_SPACE = "d"


class Resonance(IntEnum):
    NONE = 0
    ONE_DAY = 1      # geosynchronous
    HALF_DAY = 2     # Molniya-type, e ≥ 0.5


@dataclass
class DeepSpaceCursor:
    """Resonance integrator position: last integrated time and its integrals."""
    atime: float = 0.0   # [min from epoch]
    xli: float = 0.0     # integrated mean longitude [rad]
    xni: float = 0.0     # integrated mean motion [rad/min]

    def reseed(self, no: float, xlamo: float) -> None:
        self.atime = 0.0
        self.xni = no
        self.xli = xlamo

    def needs_reseed(self, t: float) -> bool:
        return (self.atime == 0.0 or t * self.atime <= 0.0
                or abs(t) < abs(self.atime))


@dataclass(frozen=True)
class LuniSolarTerms:
    """Long-period periodic coefficients consumed by ``dpper``."""
    e3: float = 0.0
    ee2: float = 0.0
    peo: float = 0.0
    pgho: float = 0.0
    pho: float = 0.0
    pinco: float = 0.0
    plo: float = 0.0
    se2: float = 0.0
    se3: float = 0.0
    sgh2: float = 0.0
    sgh3: float = 0.0
    sgh4: float = 0.0
    sh2: float = 0.0
    sh3: float = 0.0
    si2: float = 0.0
    si3: float = 0.0
    sl2: float = 0.0
    sl3: float = 0.0
    sl4: float = 0.0
    xgh2: float = 0.0
    xgh3: float = 0.0
    xgh4: float = 0.0
    xh2: float = 0.0
    xh3: float = 0.0
    xi2: float = 0.0
    xi3: float = 0.0
    xl2: float = 0.0
    xl3: float = 0.0
    xl4: float = 0.0
    zmol: float = 0.0
    zmos: float = 0.0


@dataclass(frozen=True)
class DeepSpaceGeometry:
    """Intermediate solar (s*, ss*, sz*) and lunar (s*, z*) products from ``dscom``."""
    periodics: LuniSolarTerms
    sinim: float
    cosim: float
    em: float
    emsq: float
    nm: float
    s1: float
    s2: float
    s3: float
    s4: float
    s5: float
    ss1: float
    ss2: float
    ss3: float
    ss4: float
    ss5: float
    sz1: float
    sz3: float
    sz11: float
    sz13: float
    sz21: float
    sz23: float
    sz31: float
    sz33: float
    z1: float
    z3: float
    z11: float
    z13: float
    z21: float
    z23: float
    z31: float
    z33: float


@dataclass(frozen=True)
class ResonanceTerms:
    """Deep-space secular rates and resonance coefficients from ``dsinit``."""
    resonance: Resonance = Resonance.NONE
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0
    dedt: float = 0.0
    didt: float = 0.0
    dmdt: float = 0.0
    dnodt: float = 0.0
    domdt: float = 0.0
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    xfact: float = 0.0
    xlamo: float = 0.0


# ════════════════════════════════════════════════════════════════════════════
#  dscom
# ════════════════════════════════════════════════════════════════════════════

def dscom(epoch: float, ep: float, argpp: float, tc: float, inclp: float,
          nodep: float, np_: float) -> DeepSpaceGeometry:
    """Solar and lunar terms common to deep-space initialisation.

    Parameters
    ----------
    epoch : float — days since 1950 Jan 0.0 UT
    ep, argpp, inclp, nodep : float — eccentricity and angles [rad] at epoch
    tc : float — offset from epoch [min]
    np_ : float — mean motion [rad/min]
    """
    nm = np_
    em = ep
    snodm = math.sin(nodep)
    cnodm = math.cos(nodep)
    sinomm = math.sin(argpp)
    cosomm = math.cos(argpp)
    sinim = math.sin(inclp)
    cosim = math.cos(inclp)
    emsq = em * em
    betasq = 1.0 - emsq
    rtemsq = math.sqrt(betasq)

    day = epoch + 18261.5 + tc / 1440.0
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, TWO_PI)
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = math.atan2(zx, zy) + gam - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)

    # Solar pass first, then lunar
    zcosg, zsing = ZCOSGS, ZSINGS
    zcosi, zsini = ZCOSIS, ZSINIS
    zcosh, zsinh = cnodm, snodm
    cc = C1SS
    xnoi = 1.0 / nm

    solar = None
    for lunar in (False, True):
        a1 = zcosg * zcosh + zsing * zcosi * zsinh
        a3 = -zsing * zcosh + zcosg * zcosi * zsinh
        a7 = -zcosg * zsinh + zsing * zcosi * zcosh
        a8 = zsing * zsini
        a9 = zsing * zsinh + zcosg * zcosi * zcosh
        a10 = zcosg * zsini
        a2 = cosim * a7 + sinim * a8
        a4 = cosim * a9 + sinim * a10
        a5 = -sinim * a7 + cosim * a8
        a6 = -sinim * a9 + cosim * a10

        x1 = a1 * cosomm + a2 * sinomm
        x2 = a3 * cosomm + a4 * sinomm
        x3 = -a1 * sinomm + a2 * cosomm
        x4 = -a3 * sinomm + a4 * cosomm
        x5 = a5 * sinomm
        x6 = a6 * sinomm
        x7 = a5 * cosomm
        x8 = a6 * cosomm

        z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
        z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
        z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
        z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
        z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
        z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
        z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
        z12 = (-6.0 * (a1 * a6 + a3 * a5)
               + emsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)))
        z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
        z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
        z22 = (6.0 * (a4 * a5 + a2 * a6)
               + emsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)))
        z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
        z1 = z1 + z1 + betasq * z31
        z2 = z2 + z2 + betasq * z32
        z3 = z3 + z3 + betasq * z33

        s3 = cc * xnoi
        s2 = -0.5 * s3 / rtemsq
        s4 = s3 * rtemsq
        s1 = -15.0 * em * s4
        s5 = x1 * x3 + x2 * x4
        s6 = x2 * x3 + x1 * x4
        s7 = x2 * x4 - x1 * x3

        if not lunar:
            solar = (s1, s2, s3, s4, s5, s6, s7,
                     z1, z2, z3, z11, z12, z13, z21, z22, z23, z31, z32, z33)
            zcosg, zsing = zcosgl, zsingl
            zcosi, zsini = zcosil, zsinil
            zcosh = zcoshl * cnodm + zsinhl * snodm
            zsinh = snodm * zcoshl - cnodm * zsinhl
            cc = C1L

    (ss1, ss2, ss3, ss4, ss5, ss6, ss7,
     sz1, sz2, sz3, sz11, sz12, sz13, sz21, sz22, sz23, sz31, sz32, sz33) = solar

    zmol = math.fmod(4.7199672 + 0.22997150 * day - gam, TWO_PI)
    zmos = math.fmod(6.2565837 + 0.017201977 * day, TWO_PI)

    periodics = LuniSolarTerms(
        # solar
        se2=2.0 * ss1 * ss6,
        se3=2.0 * ss1 * ss7,
        si2=2.0 * ss2 * sz12,
        si3=2.0 * ss2 * (sz13 - sz11),
        sl2=-2.0 * ss3 * sz2,
        sl3=-2.0 * ss3 * (sz3 - sz1),
        sl4=-2.0 * ss3 * (-21.0 - 9.0 * emsq) * ZES,
        sgh2=2.0 * ss4 * sz32,
        sgh3=2.0 * ss4 * (sz33 - sz31),
        sgh4=-18.0 * ss4 * ZES,
        sh2=-2.0 * ss2 * sz22,
        sh3=-2.0 * ss2 * (sz23 - sz21),
        # lunar
        ee2=2.0 * s1 * s6,
        e3=2.0 * s1 * s7,
        xi2=2.0 * s2 * z12,
        xi3=2.0 * s2 * (z13 - z11),
        xl2=-2.0 * s3 * z2,
        xl3=-2.0 * s3 * (z3 - z1),
        xl4=-2.0 * s3 * (-21.0 - 9.0 * emsq) * ZEL,
        xgh2=2.0 * s4 * z32,
        xgh3=2.0 * s4 * (z33 - z31),
        xgh4=-18.0 * s4 * ZEL,
        xh2=-2.0 * s2 * z22,
        xh3=-2.0 * s2 * (z23 - z21),
        zmol=zmol,
        zmos=zmos,
    )

    return DeepSpaceGeometry(
        periodics=periodics, sinim=sinim, cosim=cosim, em=em, emsq=emsq, nm=nm,
        s1=s1, s2=s2, s3=s3, s4=s4, s5=s5,
        ss1=ss1, ss2=ss2, ss3=ss3, ss4=ss4, ss5=ss5,
        sz1=sz1, sz3=sz3, sz11=sz11, sz13=sz13, sz21=sz21, sz23=sz23,
        sz31=sz31, sz33=sz33,
        z1=z1, z3=z3, z11=z11, z13=z13, z21=z21, z23=z23, z31=z31, z33=z33,
    )


# ════════════════════════════════════════════════════════════════════════════
#  dpper
# ════════════════════════════════════════════════════════════════════════════

def dpper(terms: LuniSolarTerms, t: float, ep: float, inclp: float,
          nodep: float, argpp: float, mp: float, afspc_mode: bool = False,
          init: bool = False) -> tuple[float, float, float, float, float]:
    """Apply luni-solar periodics to the mean elements at ``t`` minutes.

    With ``init=True`` the elements are returned unchanged (the periodics
    are evaluated against their own epoch values).

    Returns
    -------
    ep, inclp, nodep, argpp, mp
    """
    zm = terms.zmos if init else terms.zmos + ZNS * t
    zf = zm + 2.0 * ZES * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    ses = terms.se2 * f2 + terms.se3 * f3
    sis = terms.si2 * f2 + terms.si3 * f3
    sls = terms.sl2 * f2 + terms.sl3 * f3 + terms.sl4 * sinzf
    sghs = terms.sgh2 * f2 + terms.sgh3 * f3 + terms.sgh4 * sinzf
    shs = terms.sh2 * f2 + terms.sh3 * f3

    zm = terms.zmol if init else terms.zmol + ZNL * t
    zf = zm + 2.0 * ZEL * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    sel = terms.ee2 * f2 + terms.e3 * f3
    sil = terms.xi2 * f2 + terms.xi3 * f3
    sll = terms.xl2 * f2 + terms.xl3 * f3 + terms.xl4 * sinzf
    sghl = terms.xgh2 * f2 + terms.xgh3 * f3 + terms.xgh4 * sinzf
    shll = terms.xh2 * f2 + terms.xh3 * f3

    if init:
        return ep, inclp, nodep, argpp, mp

    pe = ses + sel - terms.peo
    pinc = sis + sil - terms.pinco
    pl = sls + sll - terms.plo
    pgh = sghs + sghl - terms.pgho
    ph = shs + shll - terms.pho

    inclp += pinc
    ep += pe
    sinip = math.sin(inclp)
    cosip = math.cos(inclp)

    # Lyddane modification below 0.2 rad
    if inclp >= 0.2:
        ph /= sinip
        pgh -= cosip * ph
        argpp += pgh
        nodep += ph
        mp += pl
    else:
        sinop = math.sin(nodep)
        cosop = math.cos(nodep)
        alfdp = sinip * sinop
        betdp = sinip * cosop
        dalf = ph * cosop + pinc * cosip * sinop
        dbet = -ph * sinop + pinc * cosip * cosop
        alfdp += dalf
        betdp += dbet
        nodep = math.fmod(nodep, TWO_PI)
        if nodep < 0.0 and afspc_mode:
            nodep += TWO_PI
        xls = mp + argpp + cosip * nodep
        dls = pl + pgh - pinc * nodep * sinip
        xls += dls
        xnoh = nodep
        nodep = math.atan2(alfdp, betdp)
        if nodep < 0.0 and afspc_mode:
            nodep += TWO_PI
        if abs(xnoh - nodep) > math.pi:
            if nodep < xnoh:
                nodep += TWO_PI
            else:
                nodep -= TWO_PI
        mp += pl
        argpp = xls - mp - cosip * nodep

    return ep, inclp, nodep, argpp, mp


# ════════════════════════════════════════════════════════════════════════════
#  dsinit
# ════════════════════════════════════════════════════════════════════════════

def classify_resonance(nm: float, em: float) -> Resonance:
    """Resonance class from Brouwer mean motion [rad/min] and eccentricity."""
    if 0.0034906585 < nm < 0.0052359877:
        return Resonance.ONE_DAY
    if 8.26e-3 <= nm <= 9.24e-3 and em >= 0.5:
        return Resonance.HALF_DAY
    return Resonance.NONE


def dsinit(geom: DeepSpaceGeometry, *, xke: float, argpo: float, tc: float,
           gsto: float, mo: float, mdot: float, no: float, nodeo: float,
           nodedot: float, xpidot: float, ecco: float, eccsq: float,
           inclm: float) -> ResonanceTerms:
    """Deep-space secular rates and resonance coefficients at epoch."""
    cosim, sinim = geom.cosim, geom.sinim
    emsq = geom.emsq
    nm = geom.nm

    resonance = classify_resonance(nm, geom.em)

    # ── solar secular terms ──
    ses = geom.ss1 * ZNS * geom.ss5
    sis = geom.ss2 * ZNS * (geom.sz11 + geom.sz13)
    sls = -ZNS * geom.ss3 * (geom.sz1 + geom.sz3 - 14.0 - 6.0 * emsq)
    sghs = geom.ss4 * ZNS * (geom.sz31 + geom.sz33 - 6.0)
    shs = -ZNS * geom.ss2 * (geom.sz21 + geom.sz23)
    near_equatorial = inclm < 5.2359877e-2 or inclm > math.pi - 5.2359877e-2
    if near_equatorial:
        shs = 0.0
    if sinim != 0.0:
        shs /= sinim
    sgs = sghs - cosim * shs

    # ── lunar secular terms ──
    dedt = ses + geom.s1 * ZNL * geom.s5
    didt = sis + geom.s2 * ZNL * (geom.z11 + geom.z13)
    dmdt = sls - ZNL * geom.s3 * (geom.z1 + geom.z3 - 14.0 - 6.0 * emsq)
    sghl = geom.s4 * ZNL * (geom.z31 + geom.z33 - 6.0)
    shll = -ZNL * geom.s2 * (geom.z21 + geom.z23)
    if near_equatorial:
        shll = 0.0
    domdt = sgs + sghl
    dnodt = shs
    if sinim != 0.0:
        domdt -= cosim / sinim * shll
        dnodt += shll / sinim

    rates = dict(dedt=dedt, didt=didt, dmdt=dmdt, dnodt=dnodt, domdt=domdt)
    if resonance == Resonance.NONE:
        return ResonanceTerms(resonance=resonance, **rates)

    theta = math.fmod(gsto + tc * RPTIM, TWO_PI)
    aonv = (nm / xke) ** (2.0 / 3.0)

    if resonance == Resonance.HALF_DAY:
        cosisq = cosim * cosim
        em = ecco
        emsq = eccsq
        eoc = em * emsq
        g201 = -0.306 - (em - 0.64) * 0.440

        if em <= 0.65:
            g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
            g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
            g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
            g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
            g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
            g520 = -532.114 + 3017.977 * em - 5740.032 * emsq + 3708.2760 * eoc
        else:
            g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
            g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
            g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
            g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
            g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
            if em > 0.715:
                g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
            else:
                g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq

        if em < 0.7:
            g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
            g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
            g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
        else:
            g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
            g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
            g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

        sini2 = sinim * sinim
        f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
        f221 = 1.5 * sini2
        f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
        f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
        f441 = 35.0 * sini2 * f220
        f442 = 39.3750 * sini2 * sini2
        f522 = 9.84375 * sinim * (sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
                                  + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq))
        f523 = sinim * (4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
                        + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq))
        f542 = 29.53125 * sinim * (2.0 - 8.0 * cosim
                                   + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq))
        f543 = 29.53125 * sinim * (-2.0 - 8.0 * cosim
                                   + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq))

        xno2 = nm * nm
        ainv2 = aonv * aonv
        temp1 = 3.0 * xno2 * ainv2
        temp = temp1 * ROOT22
        d2201 = temp * f220 * g201
        d2211 = temp * f221 * g211
        temp1 *= aonv
        temp = temp1 * ROOT32
        d3210 = temp * f321 * g310
        d3222 = temp * f322 * g322
        temp1 *= aonv
        temp = 2.0 * temp1 * ROOT44
        d4410 = temp * f441 * g410
        d4422 = temp * f442 * g422
        temp1 *= aonv
        temp = temp1 * ROOT52
        d5220 = temp * f522 * g520
        d5232 = temp * f523 * g532
        temp = 2.0 * temp1 * ROOT54
        d5421 = temp * f542 * g521
        d5433 = temp * f543 * g533

        xlamo = math.fmod(mo + nodeo + nodeo - theta - theta, TWO_PI)
        xfact = mdot + dmdt + 2.0 * (nodedot + dnodt - RPTIM) - no
        return ResonanceTerms(
            resonance=resonance,
            d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222,
            d4410=d4410, d4422=d4422, d5220=d5220, d5232=d5232,
            d5421=d5421, d5433=d5433,
            xfact=xfact, xlamo=xlamo, **rates,
        )

    # one-day (synchronous) resonance
    g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
    g310 = 1.0 + 2.0 * emsq
    g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
    f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
    f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
    f330 = 1.0 + cosim
    f330 = 1.875 * f330 * f330 * f330
    del1 = 3.0 * nm * nm * aonv * aonv
    del2 = 2.0 * del1 * f220 * g200 * Q22
    del3 = 3.0 * del1 * f330 * g300 * Q33 * aonv
    del1 = del1 * f311 * g310 * Q31 * aonv
    xlamo = math.fmod(mo + nodeo + argpo - theta, TWO_PI)
    xfact = mdot + xpidot - RPTIM + dmdt + domdt + dnodt - no
    return ResonanceTerms(
        resonance=resonance, del1=del1, del2=del2, del3=del3,
        xfact=xfact, xlamo=xlamo, **rates,
    )


# ════════════════════════════════════════════════════════════════════════════
#  dspace
# ════════════════════════════════════════════════════════════════════════════

def _resonance_rates(res: ResonanceTerms, xli: float, xni: float,
                     argpo: float, argpdot: float,
                     atime: float) -> tuple[float, float, float]:
    """(ẋl, ẋn, ẍn) of the resonance integrals at the cursor."""
    xldot = xni + res.xfact
    if res.resonance != Resonance.HALF_DAY:
        xndt = (res.del1 * math.sin(xli - FASX2)
                + res.del2 * math.sin(2.0 * (xli - FASX4))
                + res.del3 * math.sin(3.0 * (xli - FASX6)))
        xnddt = (res.del1 * math.cos(xli - FASX2)
                 + 2.0 * res.del2 * math.cos(2.0 * (xli - FASX4))
                 + 3.0 * res.del3 * math.cos(3.0 * (xli - FASX6)))
        return xldot, xndt, xnddt * xldot

    xomi = argpo + argpdot * atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndt = (res.d2201 * math.sin(x2omi + xli - G22)
            + res.d2211 * math.sin(xli - G22)
            + res.d3210 * math.sin(xomi + xli - G32)
            + res.d3222 * math.sin(-xomi + xli - G32)
            + res.d4410 * math.sin(x2omi + x2li - G44)
            + res.d4422 * math.sin(x2li - G44)
            + res.d5220 * math.sin(xomi + xli - G52)
            + res.d5232 * math.sin(-xomi + xli - G52)
            + res.d5421 * math.sin(xomi + x2li - G54)
            + res.d5433 * math.sin(-xomi + x2li - G54))
    xnddt = (res.d2201 * math.cos(x2omi + xli - G22)
             + res.d2211 * math.cos(xli - G22)
             + res.d3210 * math.cos(xomi + xli - G32)
             + res.d3222 * math.cos(-xomi + xli - G32)
             + res.d5220 * math.cos(xomi + xli - G52)
             + res.d5232 * math.cos(-xomi + xli - G52)
             + 2.0 * (res.d4410 * math.cos(x2omi + x2li - G44)
                      + res.d4422 * math.cos(x2li - G44)
                      + res.d5421 * math.cos(xomi + x2li - G54)
                      + res.d5433 * math.cos(-xomi + x2li - G54)))
    return xldot, xndt, xnddt * xldot


def dspace(res: ResonanceTerms, cursor: DeepSpaceCursor, *, t: float,
           tc: float, gsto: float, argpo: float, argpdot: float, no: float,
           em: float, argpm: float, inclm: float, mm: float, nodem: float,
           nm: float) -> tuple[float, float, float, float, float, float]:
    """Deep-space secular update and resonance integration to ``t`` minutes.

    ``cursor`` is advanced in place.

    Returns
    -------
    em, argpm, inclm, mm, nodem, nm
    """
    theta = math.fmod(gsto + tc * RPTIM, TWO_PI)
    em += res.dedt * t
    inclm += res.didt * t
    argpm += res.domdt * t
    nodem += res.dnodt * t
    mm += res.dmdt * t

    if res.resonance == Resonance.NONE:
        return em, argpm, inclm, mm, nodem, nm

    if cursor.needs_reseed(t):
        cursor.reseed(no, res.xlamo)

    delt = STEP if t > 0.0 else -STEP
    while True:
        xldot, xndt, xnddt = _resonance_rates(
            res, cursor.xli, cursor.xni, argpo, argpdot, cursor.atime)
        if abs(t - cursor.atime) < STEP:
            ft = t - cursor.atime
            break
        cursor.xli += xldot * delt + xndt * STEP2
        cursor.xni += xndt * delt + xnddt * STEP2
        cursor.atime += delt

    nm = cursor.xni + xndt * ft + xnddt * ft * ft * 0.5
    xl = cursor.xli + xldot * ft + xndt * ft * ft * 0.5
    if res.resonance == Resonance.ONE_DAY:
        mm = xl - nodem - argpm + theta
    else:
        mm = xl - 2.0 * nodem + 2.0 * theta
    return em, argpm, inclm, mm, nodem, nm
