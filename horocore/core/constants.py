# horocore/core/constants.py
# -*- coding: utf-8 -*-
"""
Core constants

Purpose
-------
Single source of truth for:
- epochs and time constants
- canonical body names and mean daily motions
- aspect angles and default orbs
- house-system latitude limits
- Earth figure (topocentric latitude correction)

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
- Tables are read-only mappings; treat everything here as immutable.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Mapping, Tuple

__all__ = [
    # time
    "JD_J2000", "DAYS_PER_CENTURY", "SECONDS_PER_DAY",
    "SOLAR_YEAR_D", "LUNAR_SIDEREAL_D",
    # bodies
    "MAJOR_BODIES", "MEAN_DAILY_MOTION_DEG",
    # aspects
    "ASPECT_ANGLES_DEG", "DEFAULT_ORBS_DEG",
    # houses
    "HOUSES_COUNT", "DEGREES_PER_SIGN", "TIME_BASED_MAX_LATITUDE",
    "POLAR_LATITUDE_LIMIT", "DEFAULT_LATITUDE_LIMITS",
    # earth figure
    "EARTH_EQUATORIAL_RADIUS_M", "EARTH_POLAR_AXIS_RATIO",
]

# ── time ─────────────────────────────────────────────────────────────────────
JD_J2000: float = 2451545.0
DAYS_PER_CENTURY: float = 36525.0
SECONDS_PER_DAY: float = 86400.0

SOLAR_YEAR_D: float = 365.242189
LUNAR_SIDEREAL_D: float = 27.321582

# ── canonical bodies ─────────────────────────────────────────────────────────
MAJOR_BODIES: Tuple[str, ...] = (
    "Sun", "Moon", "Mercury", "Venus", "Mars",
    "Jupiter", "Saturn", "Uranus", "Neptune", "Pluto",
)

# Mean daily motion (deg/day). Sun/Moon: geocentric; planets: heliocentric
# mean motion of the J2000 mean elements.
MEAN_DAILY_MOTION_DEG: Mapping[str, float] = MappingProxyType({
    "Sun": 0.98564736,
    "Moon": 13.17639648,
    "Mercury": 4.09233880,
    "Venus": 1.60213047,
    "Mars": 0.52403293,
    "Jupiter": 0.08308682,
    "Saturn": 0.03347005,
    "Uranus": 0.01173119,
    "Neptune": 0.00598109,
    "Pluto": 0.00397557,
})

# ── aspect geometry ──────────────────────────────────────────────────────────
# Ordered by nominal angle; order breaks ties in aspect matching.
ASPECT_ANGLES_DEG: Mapping[str, float] = MappingProxyType({
    "conjunction": 0.0,
    "semisextile": 30.0,
    "semisquare": 45.0,
    "sextile": 60.0,
    "quintile": 72.0,
    "square": 90.0,
    "trine": 120.0,
    "sesquiquadrate": 135.0,
    "biquintile": 144.0,
    "quincunx": 150.0,
    "opposition": 180.0,
})

DEFAULT_ORBS_DEG: Mapping[str, float] = MappingProxyType({
    # majors (conservative but practical)
    "conjunction": 8.0,
    "opposition": 8.0,
    "trine": 7.0,
    "square": 6.0,
    "sextile": 5.0,
    # minors
    "quincunx": 3.0,
    "semisextile": 2.0,
    "semisquare": 2.0,
    "sesquiquadrate": 2.0,
    "quintile": 2.0,
    "biquintile": 2.0,
})

# ── houses ───────────────────────────────────────────────────────────────────
HOUSES_COUNT: int = 12
DEGREES_PER_SIGN: float = 30.0

# Time-based systems lose real solutions toward the polar circles.
TIME_BASED_MAX_LATITUDE: float = 60.0
# tan(latitude) diverges at the poles; every system is undefined there.
POLAR_LATITUDE_LIMIT: float = 90.0

DEFAULT_LATITUDE_LIMITS: Mapping[str, float] = MappingProxyType({
    "equal": POLAR_LATITUDE_LIMIT,
    "whole_sign": POLAR_LATITUDE_LIMIT,
    "porphyry": POLAR_LATITUDE_LIMIT,
    "regiomontanus": POLAR_LATITUDE_LIMIT,
    "campanus": POLAR_LATITUDE_LIMIT,
    "placidus": TIME_BASED_MAX_LATITUDE,
    "koch": TIME_BASED_MAX_LATITUDE,
    "morinus": TIME_BASED_MAX_LATITUDE,
    "topocentric": TIME_BASED_MAX_LATITUDE,
})

# ── earth figure (IAU 1976, as used by Meeus ch. 11) ─────────────────────────
EARTH_EQUATORIAL_RADIUS_M: float = 6378140.0
EARTH_POLAR_AXIS_RATIO: float = 0.99664719   # b/a
