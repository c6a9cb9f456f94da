# tests/test_angles.py
from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from horocore.core.angles import (
    acos_strict,
    asin_strict,
    atan2d,
    directed_separation,
    normalize,
    shortest_distance,
    signed_separation,
)
from horocore.core.errors import ErrorKind, LatitudeDomainError

finite = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


@given(finite)
def test_normalize_range(x: float) -> None:
    v = normalize(x)
    assert 0.0 <= v < 360.0


@given(finite)
def test_normalize_idempotent(x: float) -> None:
    v = normalize(x)
    assert normalize(v) == v


def test_normalize_known_values() -> None:
    assert normalize(360.0) == 0.0
    assert normalize(-30.0) == 330.0
    assert normalize(725.0) == pytest.approx(5.0)
    assert normalize(-1e-20) == 0.0
    assert math.isnan(normalize(float("nan")))
    assert math.isnan(normalize(float("inf")))


@given(finite, finite)
def test_shortest_distance_symmetric_and_bounded(a: float, b: float) -> None:
    d = shortest_distance(a, b)
    assert 0.0 <= d <= 180.0
    assert d == pytest.approx(shortest_distance(b, a), abs=1e-9)


@given(finite)
def test_shortest_distance_to_self_is_zero(a: float) -> None:
    assert shortest_distance(a, a) == 0.0


def test_shortest_distance_across_zero() -> None:
    assert shortest_distance(350.0, 10.0) == pytest.approx(20.0)
    assert shortest_distance(0.0, 180.0) == 180.0


@given(finite, finite)
def test_directed_and_signed_agree(a: float, b: float) -> None:
    d = directed_separation(a, b)
    s = signed_separation(a, b)
    assert 0.0 <= d < 360.0
    assert -180.0 <= s < 180.0
    assert abs(s) == pytest.approx(shortest_distance(a, b), abs=1e-9)


def test_directed_separation_is_counter_clockwise() -> None:
    assert directed_separation(350.0, 10.0) == pytest.approx(20.0)
    assert directed_separation(10.0, 350.0) == pytest.approx(340.0)
    assert signed_separation(10.0, 350.0) == pytest.approx(-20.0)


def test_strict_inverse_trig_tolerates_rounding_but_rejects_domain() -> None:
    assert asin_strict(1.0 + 1e-16, "t") == pytest.approx(90.0)
    assert acos_strict(-1.0, "t") == pytest.approx(180.0)
    with pytest.raises(LatitudeDomainError) as ei:
        asin_strict(1.0001, "ctx")
    assert ei.value.kind is ErrorKind.LATITUDE_DOMAIN
    assert ei.value.valid_range == (-1.0, 1.0)
    with pytest.raises(LatitudeDomainError):
        acos_strict(float("nan"), "ctx")


def test_atan2d_degenerate() -> None:
    assert atan2d(1.0, 0.0) == pytest.approx(90.0)
    assert atan2d(-1.0, 0.0) == pytest.approx(270.0)
    with pytest.raises(LatitudeDomainError):
        atan2d(0.0, 0.0)
