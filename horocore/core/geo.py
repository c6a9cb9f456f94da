# horocore/core/geo.py
"""
Observer location.

GeoCoordinate is validated on construction: latitude must lie in [-90, 90]
(LatitudeDomainError otherwise), longitude in [-180, 180] east-positive and
altitude must be finite (InvalidArgumentError otherwise). House systems apply
their own, tighter latitude limits at solve time.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict
import math

from horocore.core.angles import atan2d, atand, cosd, sind, tand
from horocore.core.constants import EARTH_EQUATORIAL_RADIUS_M, EARTH_POLAR_AXIS_RATIO
from horocore.core.errors import InvalidArgumentError, LatitudeDomainError

__all__ = ["GeoCoordinate", "geocentric_latitude"]


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float
    altitude_m: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise LatitudeDomainError(
                f"latitude={self.latitude!r} outside [-90, 90]",
                field="latitude", value=self.latitude, valid_range=(-90.0, 90.0),
            )
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 180.0):
            raise InvalidArgumentError(
                f"longitude={self.longitude!r} outside [-180, 180]",
                field="longitude", value=self.longitude, valid_range=(-180.0, 180.0),
            )
        if not math.isfinite(self.altitude_m):
            raise InvalidArgumentError(
                f"altitude_m must be finite, got {self.altitude_m!r}",
                field="altitude_m", value=self.altitude_m,
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def geocentric_latitude(latitude: float, altitude_m: float = 0.0) -> float:
    """
    Geocentric latitude φ' of an observer at geographic latitude φ and height H
    above the reference ellipsoid (Meeus, Astronomical Algorithms, ch. 11):

        tan u       = (b/a) tan φ
        ρ sin φ'    = (b/a) sin u + (H/a) sin φ
        ρ cos φ'    = cos u + (H/a) cos φ
    """
    if abs(latitude) >= 90.0:
        return latitude
    u = atand(EARTH_POLAR_AXIS_RATIO * tand(latitude))
    h = altitude_m / EARTH_EQUATORIAL_RADIUS_M
    rho_sin = EARTH_POLAR_AXIS_RATIO * sind(u) + h * sind(latitude)
    rho_cos = cosd(u) + h * cosd(latitude)
    phi = atan2d(rho_sin, rho_cos)
    # atan2d wraps to [0, 360); fold back to a signed latitude
    return phi - 360.0 if phi > 180.0 else phi
