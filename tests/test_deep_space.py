"""
test_deep_space.py — resonance classification and the integrator cursor
"""

import pytest

from orbitcore.deep_space import (
    STEP, DeepSpaceCursor, Resonance, classify_resonance,
)
from orbitcore.utils import TWO_PI


def rev_per_day(n):
    return n * TWO_PI / 1440.0


# ═══════════════════════════════════════════════════════════════════════════
#  Resonance Classification
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("n, e, expected", [
    (1.0027, 0.0001, Resonance.ONE_DAY),
    (1.0027, 0.6, Resonance.ONE_DAY),
    (2.005, 0.74, Resonance.HALF_DAY),
    (2.005, 0.1, Resonance.NONE),        # half-day needs e ≥ 0.5
    (1.5, 0.2, Resonance.NONE),
    (0.5, 0.0, Resonance.NONE),
])
def test_classify_resonance(n, e, expected):
    assert classify_resonance(rev_per_day(n), e) == expected


# ═══════════════════════════════════════════════════════════════════════════
#  Integrator Cursor
# ═══════════════════════════════════════════════════════════════════════════

def test_fresh_cursor_needs_reseed():
    assert DeepSpaceCursor().needs_reseed(100.0)


def test_cursor_reseed_rules():
    cursor = DeepSpaceCursor(atime=2 * STEP, xli=1.0, xni=0.004)
    assert not cursor.needs_reseed(3 * STEP)      # further out, same side
    assert not cursor.needs_reseed(2 * STEP)
    assert cursor.needs_reseed(STEP)              # back toward epoch
    assert cursor.needs_reseed(-STEP)             # other side of epoch


def test_cursor_reseed_resets_integrals():
    cursor = DeepSpaceCursor(atime=-STEP, xli=9.0, xni=9.0)
    cursor.reseed(0.0043, 1.25)
    assert (cursor.atime, cursor.xni, cursor.xli) == (0.0, 0.0043, 1.25)
