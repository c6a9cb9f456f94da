# horocore/core/angles.py
"""
Angle algebra: the single gateway for degree arithmetic.

All results are in degrees. normalize / shortest_distance / directed_separation
are total over the reals; the strict inverse-trig helpers are the only place
that turns a trigonometric domain violation into an error.
"""

from __future__ import annotations

import math
import sys

from horocore.core.errors import LatitudeDomainError

__all__ = [
    "normalize",
    "shortest_distance",
    "directed_separation",
    "signed_separation",
    "sind", "cosd", "tand", "atan2d", "atand",
    "asin_strict", "acos_strict",
    "ensure_finite",
]

DEG_R = math.pi / 180.0
EPS_NUM = 4.0 * sys.float_info.epsilon   # ULP-aware tolerance for domain checks


def normalize(angle: float) -> float:
    """Wrap to [0, 360). Non-finite input yields NaN."""
    if not math.isfinite(angle):
        return math.nan
    r = math.fmod(angle, 360.0)
    if r < 0.0:
        r += 360.0
    # fmod of a tiny negative lands on exactly 360.0 after the shift
    return 0.0 if r >= 360.0 else r


def shortest_distance(a: float, b: float) -> float:
    """Smallest absolute angular difference on the circle, in [0, 180]."""
    diff = a - b
    if not math.isfinite(diff):
        return math.nan
    # IEEE remainder is exact and odd, so the result is symmetric in (a, b)
    return abs(math.remainder(diff, 360.0))


def directed_separation(from_: float, to: float) -> float:
    """Counter-clockwise arc from `from_` to `to`, in [0, 360)."""
    return normalize(to - from_)


def signed_separation(from_: float, to: float) -> float:
    """Shortest signed arc from `from_` to `to`, in [-180, 180)."""
    d = directed_separation(from_, to)
    return d - 360.0 if d >= 180.0 else d


# --------------------------- degree trig ---------------------------

def sind(a: float) -> float: return math.sin(a * DEG_R)
def cosd(a: float) -> float: return math.cos(a * DEG_R)
def tand(a: float) -> float: return math.tan(a * DEG_R)
def atand(x: float) -> float: return math.degrees(math.atan(x))


def atan2d(y: float, x: float) -> float:
    """atan2 in degrees, normalized to [0, 360)."""
    if x == 0.0 and y == 0.0:
        raise LatitudeDomainError("atan2(0,0) undefined in coordinate transformation")
    return normalize(math.degrees(math.atan2(y, x)))


def asin_strict(x: float, ctx: str) -> float:
    if not math.isfinite(x) or x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise LatitudeDomainError(
            f"domain error asin({x:.16e}) in {ctx}", field=ctx, value=x, valid_range=(-1.0, 1.0)
        )
    x = max(-1.0, min(1.0, x))
    return math.degrees(math.asin(x))


def acos_strict(x: float, ctx: str) -> float:
    if not math.isfinite(x) or x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise LatitudeDomainError(
            f"domain error acos({x:.16e}) in {ctx}", field=ctx, value=x, valid_range=(-1.0, 1.0)
        )
    x = max(-1.0, min(1.0, x))
    return math.degrees(math.acos(x))


def ensure_finite(x: float, ctx: str) -> float:
    """Re-raise NaN/inf intermediates as a domain error instead of propagating them."""
    if not math.isfinite(x):
        raise LatitudeDomainError(f"non-finite intermediate in {ctx}: {x!r}", field=ctx, value=x)
    return x
