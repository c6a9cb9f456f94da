# horocore/core/timescales.py
# -----------------------------------------------------------------------------
# Calendar ↔ Julian Day and sidereal time (ERFA aligned)
#
# Public API:
#   to_julian_day(year, month, day, hour, minute, second) -> float
#   calendar_from_julian_day(jd) -> CalendarFields
#   julian_centuries(jd) -> float
#   greenwich_sidereal_time(jd) -> degrees [0, 360)
#   local_sidereal_time(jd, east_longitude) -> degrees [0, 360)
#   equation_of_time(jd) -> minutes
#   Instant (frozen value; calendar / JD / aware datetime constructors)
#
# Guarantees:
#   • Fields are validated here, before ERFA sees them; every failure is an
#     InvalidCalendarError naming field, value and accepted range.
#   • Day number via erfa.cal2jd; the day fraction is added with math.fsum.
#   • Inverse via erfa.jd2cal.
#   • No TT/UT split: all Julian Days are UT based.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import calendar
import math
import numbers

import erfa  # pyERFA

from horocore.core.angles import normalize, sind, cosd, tand
from horocore.core.constants import DAYS_PER_CENTURY, JD_J2000, SECONDS_PER_DAY
from horocore.core.errors import InvalidArgumentError, InvalidCalendarError

__all__ = [
    "CalendarFields",
    "Instant",
    "to_julian_day",
    "calendar_from_julian_day",
    "julian_centuries",
    "greenwich_sidereal_time",
    "local_sidereal_time",
    "equation_of_time",
]

MIN_YEAR = -4799                 # erfa.cal2jd lower bound
MIN_JD = -68569.5                # erfa.jd2cal lower bound
MAX_JD = 1e9                     # erfa.jd2cal upper bound

# ───────────────────────────── Dataclasses ─────────────────────────────

@dataclass(frozen=True)
class CalendarFields:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, order=True)
class Instant:
    """A point in time as a (UT based) Julian Day."""

    julian_day: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.julian_day):
            raise InvalidArgumentError(
                f"julian_day must be finite, got {self.julian_day!r}",
                field="julian_day", value=self.julian_day,
            )

    @property
    def centuries(self) -> float:
        return julian_centuries(self.julian_day)

    @classmethod
    def from_calendar(cls, year: int, month: int, day: int,
                      hour: int = 0, minute: int = 0, second: float = 0.0) -> "Instant":
        return cls(to_julian_day(year, month, day, hour, minute, second))

    @classmethod
    def from_julian_day(cls, jd: float) -> "Instant":
        return cls(float(jd))

    @classmethod
    def from_datetime(cls, dt: datetime, tz_name: Optional[str] = None) -> "Instant":
        """
        Build from a datetime. Aware datetimes are converted to UTC; a naive
        datetime is only accepted together with an IANA `tz_name`.
        """
        if dt.tzinfo is None:
            if not tz_name:
                raise InvalidArgumentError(
                    "naive datetime requires tz_name (IANA zone, e.g. 'Asia/Kolkata')",
                    field="tz_name", value=tz_name,
                )
            try:
                dt = dt.replace(tzinfo=ZoneInfo(tz_name))
            except ZoneInfoNotFoundError as e:
                raise InvalidArgumentError(
                    f"unknown time zone '{tz_name}'", field="tz_name", value=tz_name
                ) from e
        u = dt.astimezone(timezone.utc)
        return cls(to_julian_day(u.year, u.month, u.day, u.hour, u.minute,
                                 u.second + u.microsecond / 1e6))

    def to_calendar(self) -> CalendarFields:
        return calendar_from_julian_day(self.julian_day)

    def to_datetime(self) -> datetime:
        """UTC-aware datetime (years 1..9999 only)."""
        cf = self.to_calendar()
        if not (1 <= cf.year <= 9999):
            raise InvalidArgumentError(
                f"year {cf.year} not representable as datetime",
                field="year", value=cf.year, valid_range=(1, 9999),
            )
        base = datetime(cf.year, cf.month, cf.day, tzinfo=timezone.utc)
        return base + timedelta(hours=cf.hour, minutes=cf.minute, seconds=cf.second)

    def shifted(self, days: float) -> "Instant":
        return Instant(self.julian_day + days)

# ───────────────────────────── Validation ─────────────────────────────

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _check(field: str, value: Any, ok: bool, lo: Any, hi: Any) -> None:
    if not ok:
        raise InvalidCalendarError(
            f"{field}={value!r} out of range [{lo}, {hi}]",
            field=field, value=value, valid_range=(lo, hi),
        )


def _check_int(field: str, value: Any, lo: Any, hi: Any) -> None:
    # bool is an int subclass but never a calendar field
    if not isinstance(value, numbers.Integral) or isinstance(value, bool):
        raise InvalidCalendarError(
            f"{field}={value!r} must be an integer",
            field=field, value=value, valid_range=(lo, hi),
        )


def _validate_fields(year: int, month: int, day: int,
                     hour: int, minute: int, second: float) -> None:
    _check_int("year", year, MIN_YEAR, "inf")
    _check("year", year, year >= MIN_YEAR, MIN_YEAR, "inf")
    _check_int("month", month, 1, 12)
    _check("month", month, 1 <= month <= 12, 1, 12)
    _check_int("day", day, 1, 31)
    # proleptic Gregorian leap rule, any year
    dim = (29 if calendar.isleap(year) else 28) if month == 2 else _DAYS_IN_MONTH[month - 1]
    _check("day", day, 1 <= day <= dim, 1, dim)
    _check_int("hour", hour, 0, 23)
    _check("hour", hour, 0 <= hour <= 23, 0, 23)
    _check_int("minute", minute, 0, 59)
    _check("minute", minute, 0 <= minute <= 59, 0, 59)
    real = isinstance(second, numbers.Real) and not isinstance(second, bool)
    _check("second", second, real and math.isfinite(second) and 0.0 <= second < 60.0, 0, "60 (exclusive)")

# ───────────────────────────── Conversions ─────────────────────────────

def to_julian_day(year: int, month: int, day: int,
                  hour: int = 0, minute: int = 0, second: float = 0.0) -> float:
    """Proleptic Gregorian calendar fields (UT) → Julian Day."""
    _validate_fields(year, month, day, hour, minute, second)
    djm0, djm = erfa.cal2jd(year, month, day)
    dayfrac = (hour * 3600.0 + minute * 60.0 + second) / SECONDS_PER_DAY
    return math.fsum((float(djm0), float(djm), dayfrac))


def calendar_from_julian_day(jd: float) -> CalendarFields:
    if not (math.isfinite(jd) and MIN_JD <= jd <= MAX_JD):
        raise InvalidArgumentError(
            f"julian_day={jd!r} outside convertible range",
            field="julian_day", value=jd, valid_range=(MIN_JD, MAX_JD),
        )
    # split on the integer part for the best fraction resolution
    whole = math.floor(jd)
    iy, im, iday, fd = erfa.jd2cal(whole, jd - whole)
    secs = float(fd) * SECONDS_PER_DAY
    hour = min(23, int(secs // 3600.0))
    secs -= hour * 3600.0
    minute = min(59, int(secs // 60.0))
    secs -= minute * 60.0
    second = min(max(secs, 0.0), math.nextafter(60.0, 0.0))
    return CalendarFields(int(iy), int(im), int(iday), hour, minute, second)


def julian_centuries(jd: float) -> float:
    """Julian centuries since J2000.0."""
    return (jd - JD_J2000) / DAYS_PER_CENTURY

# ───────────────────────────── Sidereal time ─────────────────────────────

def greenwich_sidereal_time(jd: float) -> float:
    """Mean sidereal time at Greenwich (IAU 1982, Meeus 12.4), degrees."""
    t = julian_centuries(jd)
    d = jd - JD_J2000
    gmst = math.fsum((
        280.46061837,
        360.98564736629 * d,
        0.000387933 * t * t,
        -(t * t * t) / 38710000.0,
    ))
    return normalize(gmst)


def local_sidereal_time(jd: float, geographic_longitude: float) -> float:
    """GST plus east longitude, degrees [0, 360)."""
    if not (math.isfinite(geographic_longitude) and -180.0 <= geographic_longitude <= 180.0):
        raise InvalidArgumentError(
            f"longitude={geographic_longitude!r} outside [-180, 180]",
            field="longitude", value=geographic_longitude, valid_range=(-180.0, 180.0),
        )
    return normalize(greenwich_sidereal_time(jd) + geographic_longitude)


def equation_of_time(jd: float) -> float:
    """
    Apparent minus mean solar time in minutes (Smart's series, Meeus 28.3).
    Positive when the sundial is ahead of the clock.
    """
    from horocore.core.ephemeris import obliquity  # ephemeris imports Instant from here

    t = julian_centuries(jd)
    l0 = normalize(280.46646 + 36000.76983 * t + 0.0003032 * t * t)
    m = normalize(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
    e = 0.016708634 - 0.000042037 * t - 0.0000001267 * t * t
    y = tand(obliquity(t) / 2.0) ** 2

    eot_rad = (
        y * sind(2 * l0)
        - 2 * e * sind(m)
        + 4 * e * y * sind(m) * cosd(2 * l0)
        - 0.5 * y * y * sind(4 * l0)
        - 1.25 * e * e * sind(2 * m)
    )
    return math.degrees(eot_rad) * 4.0
