# horocore/core/ephemeris.py
# -----------------------------------------------------------------------------
# Low-order ephemeris (mean elements + equation of center)
#
# Highlights
# • Closed Body enum with hinting parser (UnsupportedBodyError on miss)
# • Sun: geometric mean longitude + equation of center (Meeus ch. 25)
# • Moon: mean longitude + six largest periodic terms (Meeus ch. 47)
# • Planets: heliocentric J2000 mean elements (Standish, JPL "Keplerian
#   elements for approximate positions") + equation of center to e²
# • IAU 1980 mean obliquity; ecliptic ↔ equatorial transforms
# • EphemerisApproximator protocol so callers can plug in a verified source
#
# Accuracy is arc-minute order for Sun/Moon near J2000 and degree order for
# planets (heliocentric, no light time, no geocentric reduction). Every
# longitude is strictly increasing in T; the return solver relies on it.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol, Tuple, Union
import difflib
import logging
import math
import os

from horocore.core.angles import (
    asin_strict, atan2d, cosd, normalize, signed_separation, sind, tand,
)
from horocore.core.constants import MEAN_DAILY_MOTION_DEG
from horocore.core.errors import InvalidArgumentError, UnsupportedBodyError
from horocore.core.timescales import Instant, julian_centuries

log = logging.getLogger(__name__)

__all__ = [
    "Body",
    "BodyPosition",
    "EphemerisApproximator",
    "MeanElementEphemeris",
    "DEFAULT_EPHEMERIS",
    "mean_longitude",
    "obliquity",
    "mean_daily_motion",
    "body_position",
    "positions_at",
    "ecliptic_to_equatorial",
    "equatorial_to_ecliptic",
]

# Half-width (days) of the central difference used for speeds
_SPEED_STEP_D = float(os.getenv("HOROCORE_SPEED_STEP_D", "0.01"))

# ─────────────────────────────────────────────────────────────────────────────
# Bodies
# ─────────────────────────────────────────────────────────────────────────────
class Body(str, Enum):
    SUN = "Sun"
    MOON = "Moon"
    MERCURY = "Mercury"
    VENUS = "Venus"
    MARS = "Mars"
    JUPITER = "Jupiter"
    SATURN = "Saturn"
    URANUS = "Uranus"
    NEPTUNE = "Neptune"
    PLUTO = "Pluto"

    @classmethod
    def parse(cls, name: Union[str, "Body"]) -> "Body":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for b in cls:
            if b.value.lower() == key or b.name.lower() == key:
                return b
        labels = [b.value for b in cls]
        hints = difflib.get_close_matches(str(name).strip().title(), labels, n=3, cutoff=0.5)
        msg = f"unsupported body '{name}'"
        if hints:
            msg += f" (did you mean: {', '.join(hints)}?)"
        raise UnsupportedBodyError(msg, field="body", value=name, valid_range=tuple(labels))


# (L0, L1, ϖ0, ϖ1, e0, e1): L = L0 + L1·T, ϖ = ϖ0 + ϖ1·T, e = e0 + e1·T, T from J2000
_PLANET_ELEMENTS: Dict[Body, Tuple[float, float, float, float, float, float]] = {
    Body.MERCURY: (252.25032350, 149472.67411175, 77.45779628, 0.16047689, 0.20563593, 0.00001906),
    Body.VENUS:   (181.97909950, 58517.81538729, 131.60246718, 0.00268329, 0.00677672, -0.00004107),
    Body.MARS:    (-4.55343205, 19140.30268499, -23.94362959, 0.44441088, 0.09339410, 0.00007882),
    Body.JUPITER: (34.39644051, 3034.74612775, 14.72847983, 0.21252668, 0.04838624, -0.00013253),
    Body.SATURN:  (49.95424423, 1222.49362201, 92.59887831, -0.41897216, 0.05386179, -0.00050991),
    Body.URANUS:  (313.23810451, 428.48202785, 170.95427630, 0.40805281, 0.04725744, -0.00004397),
    Body.NEPTUNE: (-55.12002969, 218.45945325, 44.96476227, -0.32241464, 0.00859048, 0.00005105),
    Body.PLUTO:   (238.92903833, 145.20780515, 224.06891629, -0.04062942, 0.24882730, 0.00005170),
}

# ─────────────────────────────────────────────────────────────────────────────
# Longitude models
# ─────────────────────────────────────────────────────────────────────────────
def _sun(t: float) -> float:
    l0 = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
    m = 357.52911 + 35999.05029 * t - 0.0001537 * t * t
    c = ((1.914602 - 0.004817 * t - 0.000014 * t * t) * sind(m)
         + (0.019993 - 0.000101 * t) * sind(2 * m)
         + 0.000289 * sind(3 * m))
    return l0 + c


def _moon(t: float) -> float:
    t2 = t * t
    lp = 218.3164477 + 481267.88123421 * t - 0.0015786 * t2
    d = 297.8501921 + 445267.1114034 * t - 0.0018819 * t2
    m = 357.5291092 + 35999.0502909 * t - 0.0001536 * t2
    mp = 134.9633964 + 477198.8675055 * t + 0.0087414 * t2
    f = 93.2720950 + 483202.0175233 * t - 0.0036539 * t2
    return (lp
            + 6.288774 * sind(mp)
            + 1.274027 * sind(2 * d - mp)
            + 0.658314 * sind(2 * d)
            + 0.213618 * sind(2 * mp)
            - 0.185116 * sind(m)
            - 0.114332 * sind(2 * f))


def _planet(body: Body, t: float) -> float:
    l0, l1, w0, w1, e0, e1 = _PLANET_ELEMENTS[body]
    mean_lon = l0 + l1 * t
    m = mean_lon - (w0 + w1 * t)
    e = e0 + e1 * t
    c = (2.0 * e - e ** 3 / 4.0) * sind(m) + 1.25 * e * e * sind(2 * m)
    return mean_lon + math.degrees(c)


def mean_longitude(body: Union[str, Body], T: float) -> float:
    """Ecliptic longitude of `body` at T Julian centuries from J2000, [0, 360)."""
    b = Body.parse(body)
    if not math.isfinite(T):
        raise InvalidArgumentError(f"T must be finite, got {T!r}", field="T", value=T)
    if b is Body.SUN:
        lon = _sun(T)
    elif b is Body.MOON:
        lon = _moon(T)
    else:
        lon = _planet(b, T)
    return normalize(lon)


def obliquity(T: float) -> float:
    """IAU 1980 mean obliquity of the ecliptic, degrees."""
    if not math.isfinite(T):
        raise InvalidArgumentError(f"T must be finite, got {T!r}", field="T", value=T)
    arcsec = 46.8150 * T + 0.00059 * T * T - 0.001813 * T * T * T
    return 23.0 + 26.0 / 60.0 + 21.448 / 3600.0 - arcsec / 3600.0


def mean_daily_motion(body: Union[str, Body]) -> float:
    return MEAN_DAILY_MOTION_DEG[Body.parse(body).value]

# ─────────────────────────────────────────────────────────────────────────────
# Pluggable source
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisApproximator(Protocol):
    """Anything that can give a monotonic longitude for a body at a Julian Day."""

    def longitude(self, body: Body, jd: float) -> float: ...

    def mean_daily_motion(self, body: Body) -> float: ...


class MeanElementEphemeris:
    """Default source backed by `mean_longitude`."""

    def longitude(self, body: Body, jd: float) -> float:
        return mean_longitude(body, julian_centuries(jd))

    def mean_daily_motion(self, body: Body) -> float:
        return mean_daily_motion(body)

    def __repr__(self) -> str:
        return "MeanElementEphemeris()"


DEFAULT_EPHEMERIS: EphemerisApproximator = MeanElementEphemeris()

# ─────────────────────────────────────────────────────────────────────────────
# Positions
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BodyPosition:
    body: Body
    longitude: float
    instant: Instant
    speed: float            # deg/day, central difference

    @property
    def retrograde(self) -> bool:
        return self.speed < 0.0


def body_position(
    body: Union[str, Body],
    instant: Instant,
    *,
    ephemeris: Optional[EphemerisApproximator] = None,
) -> BodyPosition:
    b = Body.parse(body)
    eph = ephemeris or DEFAULT_EPHEMERIS
    jd = instant.julian_day
    lon = eph.longitude(b, jd)
    h = _SPEED_STEP_D
    speed = signed_separation(eph.longitude(b, jd - h), eph.longitude(b, jd + h)) / (2.0 * h)
    return BodyPosition(body=b, longitude=lon, instant=instant, speed=speed)


def positions_at(
    instant: Instant,
    bodies: Optional[Iterable[Union[str, Body]]] = None,
    *,
    ephemeris: Optional[EphemerisApproximator] = None,
) -> Dict[str, BodyPosition]:
    """Positions keyed by body name, in the order given (all ten by default)."""
    wanted = list(bodies) if bodies is not None else list(Body)
    out: Dict[str, BodyPosition] = {}
    for name in wanted:
        pos = body_position(name, instant, ephemeris=ephemeris)
        out[pos.body.value] = pos
    log.debug("positions_at jd=%.6f bodies=%s", instant.julian_day, list(out))
    return out

# ─────────────────────────────────────────────────────────────────────────────
# Coordinate transforms
# ─────────────────────────────────────────────────────────────────────────────
def ecliptic_to_equatorial(lon: float, lat: float, eps: float) -> Tuple[float, float]:
    """(λ, β) → (α, δ), degrees."""
    ra = atan2d(sind(lon) * cosd(eps) - tand(lat) * sind(eps), cosd(lon))
    dec = asin_strict(sind(lat) * cosd(eps) + cosd(lat) * sind(eps) * sind(lon), "ecliptic_to_equatorial")
    return ra, dec


def equatorial_to_ecliptic(ra: float, dec: float, eps: float) -> Tuple[float, float]:
    """(α, δ) → (λ, β), degrees."""
    lon = atan2d(sind(ra) * cosd(eps) + tand(dec) * sind(eps), cosd(ra))
    lat = asin_strict(sind(dec) * cosd(eps) - cosd(dec) * sind(eps) * sind(ra), "equatorial_to_ecliptic")
    return lon, lat
