# horocore/core/returns.py
# -*- coding: utf-8 -*-
"""
Return-time solver (solar, lunar, any body)

APIs
----
solve(body, target_longitude, search_start, search_end, geo=None,
      max_iterations=20, tolerance_seconds=60, *, ephemeris=None) -> ReturnEvent
solar_return(natal_instant, year, geo=None, ...) -> ReturnEvent
lunar_return(natal_instant, after, geo=None, ...) -> ReturnEvent

Notes
-----
- Newton-Raphson on error(t) = wrap(lon_body(t) - target) in degrees; the
  derivative is a forward difference over 0.01 day.
- Seed: first crossing after `search_start` predicted from the mean daily
  motion; the window midpoint if that prediction leaves the window.
- Converged when the Newton step |error / rate| is shorter than
  tolerance_seconds, using the local rate rather than the mean motion;
  that final step is still applied before returning.
- No retries: exhausting iterations, a stationary derivative or a root
  outside the window raises ConvergenceFailureError. Widening the window is
  the caller's decision.
- `geo` is carried on the event for casting the return chart; the body
  longitudes themselves are geocentric.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union

from horocore.core.angles import directed_separation, signed_separation
from horocore.core.constants import LUNAR_SIDEREAL_D, SECONDS_PER_DAY, SOLAR_YEAR_D
from horocore.core.ephemeris import DEFAULT_EPHEMERIS, Body, EphemerisApproximator
from horocore.core.errors import ConvergenceFailureError, InvalidArgumentError
from horocore.core.geo import GeoCoordinate
from horocore.core.timescales import Instant

log = logging.getLogger(__name__)

__all__ = ["ReturnEvent", "solve", "solar_return", "lunar_return"]

DERIVATIVE_STEP_D = 0.01
STATIONARY_DEG_PER_DAY = 1e-9
SOLAR_WINDOW_HALF_D = 3.0
LUNAR_WINDOW_MARGIN_D = 1.0      # the Moon's true period wanders around the sidereal month


@dataclass(frozen=True)
class ReturnEvent:
    body: Body
    target_longitude: float
    search_start: Instant
    search_end: Instant
    instant: Instant
    iterations: int
    residual_deg: float
    geo: Optional[GeoCoordinate] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["body"] = self.body.value
        return d


def _validate(target: float, start: Instant, end: Instant, max_iterations: int, tolerance_seconds: float) -> None:
    if not math.isfinite(target):
        raise InvalidArgumentError(
            f"target_longitude must be finite, got {target!r}", field="target_longitude", value=target
        )
    if not end.julian_day > start.julian_day:
        raise InvalidArgumentError(
            f"search window is empty: start={start.julian_day} end={end.julian_day}",
            field="search_end", value=end.julian_day,
        )
    if int(max_iterations) < 1:
        raise InvalidArgumentError("max_iterations must be >= 1", field="max_iterations", value=max_iterations)
    if not (math.isfinite(tolerance_seconds) and tolerance_seconds > 0.0):
        raise InvalidArgumentError(
            "tolerance_seconds must be > 0", field="tolerance_seconds", value=tolerance_seconds
        )


def solve(
    body: Union[str, Body],
    target_longitude: float,
    search_start: Instant,
    search_end: Instant,
    geo: Optional[GeoCoordinate] = None,
    max_iterations: int = 20,
    tolerance_seconds: float = 60.0,
    *,
    ephemeris: Optional[EphemerisApproximator] = None,
) -> ReturnEvent:
    b = Body.parse(body)
    eph = ephemeris or DEFAULT_EPHEMERIS
    _validate(target_longitude, search_start, search_end, max_iterations, tolerance_seconds)

    motion = eph.mean_daily_motion(b)
    start, end = search_start.julian_day, search_end.julian_day

    def error(jd: float) -> float:
        return signed_separation(target_longitude, eph.longitude(b, jd))

    jd = start + directed_separation(eph.longitude(b, start), target_longitude) / motion
    if not (start <= jd <= end):
        jd = 0.5 * (start + end)

    def rate(jd: float) -> float:
        return signed_separation(eph.longitude(b, jd), eph.longitude(b, jd + DERIVATIVE_STEP_D)) / DERIVATIVE_STEP_D

    iterations = 0
    while True:
        err = error(jd)
        deriv = rate(jd)
        if abs(deriv) < STATIONARY_DEG_PER_DAY:
            raise ConvergenceFailureError(
                f"{b.value} return: stationary derivative at jd={jd:.6f}",
                iterations=iterations, last_error_deg=err,
            )
        step = err / deriv
        if abs(step) * SECONDS_PER_DAY < tolerance_seconds:
            # converged in time; the final correction is still applied
            jd -= step
            err = error(jd)
            break
        if iterations >= max_iterations:
            raise ConvergenceFailureError(
                f"{b.value} return: no convergence after {iterations} iterations "
                f"(|error|={abs(err):.3e}°, {abs(step) * SECONDS_PER_DAY:.1f}s)",
                iterations=iterations, last_error_deg=err,
            )
        jd -= step
        iterations += 1
        log.debug("%s return iter=%d jd=%.8f step=%.3es", b.value, iterations, jd, step * SECONDS_PER_DAY)

    if not (start <= jd <= end):
        raise ConvergenceFailureError(
            f"{b.value} return: root jd={jd:.6f} outside window [{start:.6f}, {end:.6f}]",
            iterations=iterations, last_error_deg=err,
            field="instant", value=jd, valid_range=(start, end),
        )

    log.debug("%s return converged: jd=%.8f iterations=%d residual=%.3e°", b.value, jd, iterations, err)
    return ReturnEvent(
        body=b,
        target_longitude=target_longitude,
        search_start=search_start,
        search_end=search_end,
        instant=Instant(jd),
        iterations=iterations,
        residual_deg=abs(err),
        geo=geo,
    )


def solar_return(
    natal_instant: Instant,
    year: int,
    geo: Optional[GeoCoordinate] = None,
    *,
    max_iterations: int = 20,
    tolerance_seconds: float = 60.0,
    ephemeris: Optional[EphemerisApproximator] = None,
) -> ReturnEvent:
    """Sun's return to its natal longitude in calendar `year` (±3 days of the anniversary)."""
    eph = ephemeris or DEFAULT_EPHEMERIS
    natal_year = natal_instant.to_calendar().year
    anniversary = natal_instant.shifted((int(year) - natal_year) * SOLAR_YEAR_D)
    return solve(
        Body.SUN,
        eph.longitude(Body.SUN, natal_instant.julian_day),
        anniversary.shifted(-SOLAR_WINDOW_HALF_D),
        anniversary.shifted(SOLAR_WINDOW_HALF_D),
        geo,
        max_iterations,
        tolerance_seconds,
        ephemeris=eph,
    )


def lunar_return(
    natal_instant: Instant,
    after: Instant,
    geo: Optional[GeoCoordinate] = None,
    *,
    max_iterations: int = 20,
    tolerance_seconds: float = 60.0,
    ephemeris: Optional[EphemerisApproximator] = None,
) -> ReturnEvent:
    """First Moon return to its natal longitude within a sidereal month of `after`."""
    eph = ephemeris or DEFAULT_EPHEMERIS
    return solve(
        Body.MOON,
        eph.longitude(Body.MOON, natal_instant.julian_day),
        after,
        after.shifted(LUNAR_SIDEREAL_D + LUNAR_WINDOW_MARGIN_D),
        geo,
        max_iterations,
        tolerance_seconds,
        ephemeris=eph,
    )
