# horocore/core/composite.py
"""
Circular midpoints and composite / Davison charts.

midpoint(a, b) bisects the shorter arc between two longitudes; it is
commutative and midpoint(a, a) == a. Composite charts take per-point
midpoints of two natal charts; the Davison chart takes the midpoint in
time and space instead and is cast like any natal chart.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from horocore.core.angles import normalize
from horocore.core.errors import InvalidArgumentError
from horocore.core.geo import GeoCoordinate
from horocore.core.houses import HouseCuspSet
from horocore.core.timescales import Instant

__all__ = ["midpoint", "CompositeChart", "composite_chart", "davison_midpoint"]


def midpoint(a: float, b: float) -> float:
    if not (math.isfinite(a) and math.isfinite(b)):
        raise InvalidArgumentError(f"midpoint of non-finite longitudes {a!r}, {b!r}", value=(a, b))
    a, b = normalize(a), normalize(b)
    if abs(a - b) <= 180.0:
        return normalize((a + b) / 2.0)
    return normalize((a + b + 360.0) / 2.0)


@dataclass(frozen=True)
class CompositeChart:
    positions: Mapping[str, float]
    ascendant: Optional[float] = None
    midheaven: Optional[float] = None
    cusps: Optional[Tuple[float, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["positions"] = dict(self.positions)
        d["cusps"] = list(self.cusps) if self.cusps is not None else None
        return d


def _lon(v: Any) -> float:
    return float(getattr(v, "longitude", v))


def composite_chart(
    positions_a: Mapping[str, Any],
    positions_b: Mapping[str, Any],
    *,
    houses_a: Optional[HouseCuspSet] = None,
    houses_b: Optional[HouseCuspSet] = None,
) -> CompositeChart:
    """Midpoint composite over the points both charts share (chart A order)."""
    mids = {name: midpoint(_lon(v), _lon(positions_b[name]))
            for name, v in positions_a.items() if name in positions_b}
    if houses_a is None or houses_b is None:
        return CompositeChart(positions=mids)
    return CompositeChart(
        positions=mids,
        ascendant=midpoint(houses_a.ascendant, houses_b.ascendant),
        midheaven=midpoint(houses_a.midheaven, houses_b.midheaven),
        cusps=tuple(midpoint(x, y) for x, y in zip(houses_a.cusps, houses_b.cusps)),
    )


def davison_midpoint(
    instant_a: Instant,
    geo_a: GeoCoordinate,
    instant_b: Instant,
    geo_b: GeoCoordinate,
) -> Tuple[Instant, GeoCoordinate]:
    """Time midpoint and space midpoint (longitude along the shorter arc)."""
    jd = math.fsum((instant_a.julian_day, instant_b.julian_day)) / 2.0
    lon = midpoint(geo_a.longitude, geo_b.longitude)
    if lon > 180.0:
        lon -= 360.0
    geo = GeoCoordinate(
        latitude=(geo_a.latitude + geo_b.latitude) / 2.0,
        longitude=lon,
        altitude_m=(geo_a.altitude_m + geo_b.altitude_m) / 2.0,
    )
    return Instant(jd), geo
