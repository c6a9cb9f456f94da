# horocore/core/houses.py
"""
House cusp solver: nine systems over one set of anchors.

Inputs are the local sidereal time (LST = RAMC, degrees), the geographic
latitude and the obliquity of the ecliptic. Every system shares the same
Ascendant / Midheaven formulas, so a Placidus and an Equal chart cast for the
same moment always agree on cusp 1.

Systems
- equal, whole_sign     angular arithmetic from the Ascendant
- porphyry              trisection of each ecliptic quadrant
- placidus              semi-arc time division (fixed-point on declination)
- koch                  trisection of the MC's ascensional interval
- morinus               equator in 30° steps from RAMC, projected to ecliptic
- regiomontanus         equator divided, projected through the house poles
- campanus              prime vertical divided, same pole projection
- topocentric           placidus on the geocentric (parallax) latitude

Domain policy
- |latitude| >= 90 is always rejected; each system has a further limit
  (60° for the time-based ones) carried by LatitudeLimits.
- Inside the polar circle (|latitude| > 90 − obliquity) the eastern horizon
  point can lie west of the MC; the Ascendant is then replaced by its
  opposite, so every quadrant runs MC -> Asc -> IC counter-clockwise.
- A strict asin/acos domain violation, a non-finite intermediate, Placidus
  non-convergence or a cusp set that fails closure is a LatitudeDomainError.
  Nothing is clamped, nothing falls back to another system.

Env knobs (read once at import):
  HOROCORE_PLACIDUS_MAX_ITERS   default 100
  HOROCORE_PLACIDUS_TOL_DEG     default 1e-9
"""

from __future__ import annotations

import difflib
import logging
import math
import os
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from horocore.core.angles import (
    asin_strict, atan2d, atand, cosd, directed_separation, ensure_finite,
    normalize, shortest_distance, sind, tand,
)
from horocore.core.constants import (
    DEFAULT_LATITUDE_LIMITS, DEGREES_PER_SIGN, HOUSES_COUNT, POLAR_LATITUDE_LIMIT,
)
from horocore.core.errors import (
    InvalidArgumentError, LatitudeDomainError, UnsupportedSystemError,
)
from horocore.core.geo import GeoCoordinate, geocentric_latitude
from horocore.core.timescales import Instant, local_sidereal_time

log = logging.getLogger(__name__)

__all__ = [
    "HouseSystem",
    "LatitudeLimits",
    "HouseOptions",
    "HouseCuspSet",
    "ascendant",
    "midheaven",
    "equal_cusps",
    "solve",
    "solve_for",
    "house_of_longitude",
    "bodies_in_house",
]

# --------------------------- numeric policy ---------------------------

CLOSURE_TOL_DEG = 1e-6
COINCIDENT_TOL_DEG = 1e-9


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring malformed %s=%r; using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring malformed %s=%r; using %g", name, raw, default)
        return default


PLACIDUS_MAX_ITERS = _env_int("HOROCORE_PLACIDUS_MAX_ITERS", 100)
PLACIDUS_TOL_DEG = _env_float("HOROCORE_PLACIDUS_TOL_DEG", 1e-9)

# --------------------------- systems ---------------------------

_ALIASES = {
    "whole": "whole_sign",
    "wholesign": "whole_sign",
    "regio": "regiomontanus",
    "topo": "topocentric",
    "polich_page": "topocentric",
}


class HouseSystem(str, Enum):
    EQUAL = "equal"
    PLACIDUS = "placidus"
    KOCH = "koch"
    PORPHYRY = "porphyry"
    REGIOMONTANUS = "regiomontanus"
    CAMPANUS = "campanus"
    MORINUS = "morinus"
    TOPOCENTRIC = "topocentric"
    WHOLE_SIGN = "whole_sign"

    @classmethod
    def parse(cls, name: Union[str, "HouseSystem"]) -> "HouseSystem":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("-", "_").replace(" ", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            pass
        labels = [s.value for s in cls]
        hints = difflib.get_close_matches(key, labels, n=3, cutoff=0.5)
        msg = f"unsupported house system '{name}'"
        if hints:
            msg += f" (did you mean: {', '.join(hints)}?)"
        raise UnsupportedSystemError(msg, field="system", value=name, valid_range=tuple(labels))


@dataclass(frozen=True)
class LatitudeLimits:
    """Immutable system -> max |latitude| (degrees) table."""

    limits: Mapping[HouseSystem, float]

    def __post_init__(self) -> None:
        clean: Dict[HouseSystem, float] = {}
        for k, v in dict(self.limits).items():
            sys_ = HouseSystem.parse(k)
            lim = float(v)
            if not (math.isfinite(lim) and 0.0 < lim <= POLAR_LATITUDE_LIMIT):
                raise InvalidArgumentError(
                    f"latitude limit for {sys_.value} must be in (0, 90], got {v!r}",
                    field=f"latitude_limits.{sys_.value}", value=v, valid_range=(0.0, 90.0),
                )
            clean[sys_] = lim
        for s in HouseSystem:
            clean.setdefault(s, DEFAULT_LATITUDE_LIMITS[s.value])
        object.__setattr__(self, "limits", MappingProxyType(clean))

    @classmethod
    def default(cls) -> "LatitudeLimits":
        return cls({})

    def for_system(self, system: Union[str, HouseSystem]) -> float:
        return self.limits[HouseSystem.parse(system)]

    def with_limit(self, system: Union[str, HouseSystem], limit: float) -> "LatitudeLimits":
        merged = dict(self.limits)
        merged[HouseSystem.parse(system)] = limit
        return LatitudeLimits(merged)

    def as_dict(self) -> Dict[str, float]:
        return {s.value: v for s, v in self.limits.items()}


@dataclass(frozen=True)
class HouseOptions:
    altitude_m: float = 0.0
    latitude_limits: LatitudeLimits = field(default_factory=LatitudeLimits.default)
    max_iterations: int = PLACIDUS_MAX_ITERS
    tolerance_deg: float = PLACIDUS_TOL_DEG

    def __post_init__(self) -> None:
        if not math.isfinite(self.altitude_m):
            raise InvalidArgumentError("altitude_m must be finite", field="altitude_m", value=self.altitude_m)
        if int(self.max_iterations) < 1:
            raise InvalidArgumentError(
                "max_iterations must be >= 1", field="max_iterations", value=self.max_iterations
            )
        if not (math.isfinite(self.tolerance_deg) and self.tolerance_deg > 0.0):
            raise InvalidArgumentError(
                "tolerance_deg must be > 0", field="tolerance_deg", value=self.tolerance_deg
            )


@dataclass(frozen=True)
class HouseCuspSet:
    system: HouseSystem
    cusps: Tuple[float, ...]
    ascendant: float
    midheaven: float
    lst: float
    latitude: float
    obliquity: float
    instant: Optional[Instant] = None
    geo: Optional[GeoCoordinate] = None

    def house_of(self, longitude: float) -> int:
        return house_of_longitude(longitude, self.cusps)

    def spans(self) -> Tuple[float, ...]:
        c = self.cusps
        return tuple(directed_separation(c[i], c[(i + 1) % HOUSES_COUNT]) for i in range(HOUSES_COUNT))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["system"] = self.system.value
        d["cusps"] = list(self.cusps)
        return d

# --------------------------- anchors ---------------------------

def _asc(ramc: float, phi: float, eps: float) -> float:
    # λ_asc = atan2(cos RAMC, −(sin RAMC cos ε + tan φ sin ε))
    y = cosd(ramc)
    x = -(sind(ramc) * cosd(eps) + tand(phi) * sind(eps))
    return atan2d(ensure_finite(y, "ascendant"), ensure_finite(x, "ascendant"))


def _mc(ramc: float, eps: float) -> float:
    return atan2d(sind(ramc), cosd(ramc) * cosd(eps))


def _lambda_of_ra(ra: float, eps: float) -> float:
    return atan2d(sind(ra), cosd(ra) * cosd(eps))


def _check_lst_obliquity(lst: float, obliquity: float) -> None:
    if not math.isfinite(lst):
        raise InvalidArgumentError(f"lst must be finite, got {lst!r}", field="lst", value=lst)
    if not (math.isfinite(obliquity) and 0.0 < obliquity < 90.0):
        raise InvalidArgumentError(
            f"obliquity={obliquity!r} outside (0, 90)",
            field="obliquity", value=obliquity, valid_range=(0.0, 90.0),
        )


def _check_latitude(latitude: float, limit: float, system: Optional[HouseSystem]) -> None:
    label = system.value if system is not None else "ascendant"
    if not math.isfinite(latitude) or abs(latitude) >= POLAR_LATITUDE_LIMIT:
        raise LatitudeDomainError(
            f"{label}: latitude={latitude!r} must satisfy |latitude| < 90",
            field="latitude", value=latitude, valid_range=(-POLAR_LATITUDE_LIMIT, POLAR_LATITUDE_LIMIT),
        )
    if abs(latitude) > limit:
        raise LatitudeDomainError(
            f"{label}: latitude={latitude!r} beyond system limit ±{limit:g}",
            field="latitude", value=latitude, valid_range=(-limit, limit),
        )


def ascendant(lst: float, latitude: float, obliquity: float) -> float:
    """Ecliptic longitude rising on the eastern horizon."""
    _check_lst_obliquity(lst, obliquity)
    _check_latitude(latitude, POLAR_LATITUDE_LIMIT, None)
    return _asc(lst, latitude, obliquity)


def midheaven(lst: float, obliquity: float) -> float:
    """Ecliptic longitude culminating on the upper meridian."""
    _check_lst_obliquity(lst, obliquity)
    return _mc(lst, obliquity)


def equal_cusps(asc: float) -> Tuple[float, ...]:
    return tuple(normalize(asc + 30.0 * k) for k in range(HOUSES_COUNT))

# --------------------------- cusp list helpers ---------------------------

def _blank() -> List[Optional[float]]:
    return [None] * HOUSES_COUNT


def _fill_opposites(cusps: List[Optional[float]]) -> List[float]:
    """Houses 4..9 sit exactly opposite 10..3."""
    for i in (9, 10, 11, 0, 1, 2):
        j = (i + 6) % HOUSES_COUNT
        if cusps[i] is not None and cusps[j] is None:
            cusps[j] = normalize(cusps[i] + 180.0)  # type: ignore[operator]
    return [normalize(c) for c in cusps]  # type: ignore[arg-type]

# --------------------------- engines ---------------------------
# Each engine: (ramc, phi, eps, asc, mc, options) -> 12 cusps, index 0 = house 1

_Engine = Callable[[float, float, float, float, float, HouseOptions], List[float]]


def _equal(ramc, phi, eps, asc, mc, opts) -> List[float]:
    return list(equal_cusps(asc))


def _whole_sign(ramc, phi, eps, asc, mc, opts) -> List[float]:
    first = math.floor(asc / DEGREES_PER_SIGN) * DEGREES_PER_SIGN
    return [normalize(first + DEGREES_PER_SIGN * k) for k in range(HOUSES_COUNT)]


def _porphyry(ramc, phi, eps, asc, mc, opts) -> List[float]:
    cusps = _blank()
    cusps[0], cusps[9] = asc, mc
    s = directed_separation(mc, asc)      # MC -> Asc, houses 10..12
    cusps[10] = normalize(mc + s / 3.0)
    cusps[11] = normalize(mc + 2.0 * s / 3.0)
    ic = normalize(mc + 180.0)
    s = directed_separation(asc, ic)      # Asc -> IC, houses 1..3
    cusps[1] = normalize(asc + s / 3.0)
    cusps[2] = normalize(asc + 2.0 * s / 3.0)
    return _fill_opposites(cusps)


def _morinus(ramc, phi, eps, asc, mc, opts) -> List[float]:
    # tan λ = cos ε · tan F, F = RAMC + 30k; cusp 1 is NOT the Ascendant here
    cusps = _blank()
    for idx, step in ((9, 0.0), (10, 30.0), (11, 60.0), (0, 90.0), (1, 120.0), (2, 150.0)):
        f = ramc + step
        cusps[idx] = atan2d(sind(f) * cosd(eps), cosd(f))
    return _fill_opposites(cusps)


def _koch(ramc, phi, eps, asc, mc, opts) -> List[float]:
    dec_mc = asin_strict(sind(mc) * sind(eps), "koch:decl_mc")
    ad_mc = asin_strict(tand(dec_mc) * tand(phi), "koch:asc_diff")
    third = (90.0 + ad_mc) / 3.0
    cusps = _blank()
    cusps[0], cusps[9] = asc, mc
    # sidereal time at which each intermediate cusp rises
    for idx, k in ((10, -2.0), (11, -1.0), (1, 1.0), (2, 2.0)):
        cusps[idx] = _asc(ramc + k * third, phi, eps)
    return _fill_opposites(cusps)


def _pole_projection(
    ramc: float, phi: float, eps: float, asc: float, mc: float,
    circle: Callable[[float, float], Tuple[float, float]],
) -> List[float]:
    """
    Shared Regiomontanus / Campanus engine: for each house circle at angle H
    (30, 60, 120, 150) `circle` gives the equatorial offset from RAMC and the
    pole height; the cusp is the Ascendant of that pole at RAMC + offset − 90.

    All house circles pass through the north and south points of the horizon,
    so their ecliptic crossings advance monotonically from the MC. Inside the
    polar circle they advance the other way; ordering the crossings by their
    distance from the MC keeps houses 11, 12, 2 and 3 in sequence either way.
    """
    points = []
    for h in (30.0, 60.0, 120.0, 150.0):
        offset, pole = circle(h, phi)
        lon = _asc(ramc + offset - 90.0, pole, eps)
        # each circle meets the ecliptic twice; keep the crossing on the MC->IC half
        if directed_separation(mc, lon) >= 180.0:
            lon = normalize(lon + 180.0)
        points.append(lon)
    points.sort(key=lambda lon: directed_separation(mc, lon))
    cusps = _blank()
    cusps[0], cusps[9] = asc, mc
    cusps[10], cusps[11], cusps[1], cusps[2] = points
    return _fill_opposites(cusps)


def _regio_circle(h: float, phi: float) -> Tuple[float, float]:
    return h, atand(tand(phi) * sind(h))


def _campanus_circle(h: float, phi: float) -> Tuple[float, float]:
    offset = atan2d(sind(h) * cosd(phi), cosd(h))
    return offset, asin_strict(sind(phi) * sind(h), "campanus:pole")


def _regiomontanus(ramc, phi, eps, asc, mc, opts) -> List[float]:
    return _pole_projection(ramc, phi, eps, asc, mc, _regio_circle)


def _campanus(ramc, phi, eps, asc, mc, opts) -> List[float]:
    return _pole_projection(ramc, phi, eps, asc, mc, _campanus_circle)


# house index -> (fraction of semi-arc, below horizon)
_PLACIDUS_DIVISIONS: Dict[int, Tuple[float, bool]] = {
    10: (1.0 / 3.0, False),
    11: (2.0 / 3.0, False),
    1: (2.0 / 3.0, True),
    2: (1.0 / 3.0, True),
}


def _placidus_cusp(ramc: float, phi: float, eps: float, fraction: float, below: bool,
                   opts: HouseOptions, label: str) -> float:
    """
    Fixed point on λ: declination δ(λ) -> ascensional difference AD = asin(tan φ tan δ)
    -> RA on the fractional semi-arc -> λ(RA).
    """
    def ra_for(ad: float) -> float:
        if below:
            return ramc + 180.0 - fraction * (90.0 - ad)
        return ramc + fraction * (90.0 + ad)

    lam = _lambda_of_ra(ra_for(0.0), eps)
    step = math.inf
    for it in range(1, opts.max_iterations + 1):
        dec = asin_strict(sind(eps) * sind(lam), f"{label}:declination")
        ad = asin_strict(tand(phi) * tand(dec), f"{label}:ascensional_difference")
        nxt = _lambda_of_ra(ra_for(ad), eps)
        step = shortest_distance(nxt, lam)
        lam = nxt
        if step < opts.tolerance_deg:
            log.debug("%s converged in %d iterations (last step %.3e°)", label, it, step)
            return lam
    raise LatitudeDomainError(
        f"{label}: no convergence after {opts.max_iterations} iterations (last step {step:.3e}°)",
        field="latitude", value=phi,
    )


def _placidus(ramc, phi, eps, asc, mc, opts) -> List[float]:
    cusps = _blank()
    cusps[0], cusps[9] = asc, mc
    for idx, (fraction, below) in _PLACIDUS_DIVISIONS.items():
        cusps[idx] = _placidus_cusp(ramc, phi, eps, fraction, below, opts, f"placidus:C{idx + 1}")
    return _fill_opposites(cusps)


_ENGINES: Mapping[HouseSystem, _Engine] = MappingProxyType({
    HouseSystem.EQUAL: _equal,
    HouseSystem.WHOLE_SIGN: _whole_sign,
    HouseSystem.PORPHYRY: _porphyry,
    HouseSystem.PLACIDUS: _placidus,
    HouseSystem.KOCH: _koch,
    HouseSystem.MORINUS: _morinus,
    HouseSystem.REGIOMONTANUS: _regiomontanus,
    HouseSystem.CAMPANUS: _campanus,
    # same time division; the latitude is swapped in `solve`
    HouseSystem.TOPOCENTRIC: _placidus,
})

# --------------------------- verification ---------------------------

def _verify(system: HouseSystem, cusps: List[float]) -> Tuple[float, ...]:
    if len(cusps) != HOUSES_COUNT:
        raise LatitudeDomainError(f"{system.value}: expected 12 cusps, got {len(cusps)}")
    for i, c in enumerate(cusps):
        ensure_finite(c, f"{system.value}:cusp{i + 1}")
    spans = [directed_separation(cusps[i], cusps[(i + 1) % HOUSES_COUNT]) for i in range(HOUSES_COUNT)]
    total = math.fsum(spans)
    if abs(total - 360.0) > CLOSURE_TOL_DEG:
        raise LatitudeDomainError(
            f"{system.value}: cusps do not close (sum of spans {total:.9f}°)",
            field="cusps", value=list(cusps),
        )
    for i, s in enumerate(spans):
        if s < COINCIDENT_TOL_DEG:
            raise LatitudeDomainError(
                f"{system.value}: cusps {i + 1} and {(i + 1) % HOUSES_COUNT + 1} coincide",
                field="cusps", value=list(cusps),
            )
    return tuple(cusps)

# --------------------------- public entry points ---------------------------

def solve(
    system: Union[str, HouseSystem],
    lst: float,
    latitude: float,
    obliquity: float,
    options: Optional[HouseOptions] = None,
) -> HouseCuspSet:
    """Cast twelve cusps for `system`; raises instead of returning a degenerate set."""
    hs = HouseSystem.parse(system)
    opts = options or HouseOptions()
    _check_lst_obliquity(lst, obliquity)
    _check_latitude(latitude, opts.latitude_limits.for_system(hs), hs)

    ramc = normalize(lst)
    phi = latitude
    if hs is HouseSystem.TOPOCENTRIC:
        phi = geocentric_latitude(latitude, opts.altitude_m)
        log.debug("topocentric: latitude %.6f° -> geocentric %.6f° (h=%.1fm)", latitude, phi, opts.altitude_m)

    asc = _asc(ramc, phi, obliquity)
    mc = _mc(ramc, obliquity)
    if directed_separation(mc, asc) >= 180.0:
        # inside the polar circle the horizon point can fall west of the MC
        asc = normalize(asc + 180.0)
        log.debug("%s: latitude %.6f° inside polar circle, ascendant taken as %.6f°", hs.value, latitude, asc)
    cusps = _verify(hs, _ENGINES[hs](ramc, phi, obliquity, asc, mc, opts))
    return HouseCuspSet(
        system=hs,
        cusps=cusps,
        ascendant=asc,
        midheaven=mc,
        lst=ramc,
        latitude=latitude,
        obliquity=obliquity,
    )


def solve_for(
    system: Union[str, HouseSystem],
    instant: Instant,
    geo: GeoCoordinate,
    options: Optional[HouseOptions] = None,
) -> HouseCuspSet:
    """Derive LST and mean obliquity from `instant` / `geo`, then `solve`."""
    from horocore.core.ephemeris import obliquity as mean_obliquity

    opts = replace(options or HouseOptions(), altitude_m=geo.altitude_m)
    lst = local_sidereal_time(instant.julian_day, geo.longitude)
    eps = mean_obliquity(instant.centuries)
    result = solve(system, lst, geo.latitude, eps, opts)
    return replace(result, instant=instant, geo=geo)


def house_of_longitude(longitude: float, cusps: Tuple[float, ...]) -> int:
    """1..12 house holding `longitude`, intervals [cusp[i], cusp[i+1]) wrapping forward."""
    if len(cusps) != HOUSES_COUNT:
        raise InvalidArgumentError(
            f"expected 12 cusps, got {len(cusps)}", field="cusps", value=len(cusps)
        )
    if not math.isfinite(longitude):
        raise InvalidArgumentError("longitude must be finite", field="longitude", value=longitude)
    lam = normalize(longitude)
    for i in range(HOUSES_COUNT):
        start = normalize(cusps[i])
        span = directed_separation(start, cusps[(i + 1) % HOUSES_COUNT])
        if directed_separation(start, lam) < span:
            return i + 1
    return HOUSES_COUNT


def bodies_in_house(positions: Mapping[str, Any], cusps: Tuple[float, ...]) -> Dict[int, List[str]]:
    """Group named longitudes (floats or objects with `.longitude`) by house."""
    out: Dict[int, List[str]] = {h: [] for h in range(1, HOUSES_COUNT + 1)}
    for name, pos in positions.items():
        lon = getattr(pos, "longitude", pos)
        out[house_of_longitude(float(lon), cusps)].append(name)
    return out
