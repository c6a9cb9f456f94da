# tests/conftest.py
"""
Pytest configuration for the horocore suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (we always pass IANA zones explicitly).
- Sanity-checks ERFA availability and basic tzdata presence.
- Clears HOROCORE_* env overrides so config tests start from defaults.
"""

from __future__ import annotations

import os
import pytest
from hypothesis import settings, HealthCheck


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # avoid flaky timeouts on slower runners
        max_examples=60,         # fast local runs
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=150,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "HOROCORE_CONFIG",
        "HOROCORE_ORBS",
        "HOROCORE_PLACIDUS_MAX_ITERS",
        "HOROCORE_PLACIDUS_TOL_DEG",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(scope="session")
def ensure_erfa():
    """Fail early if pyERFA isn't importable or lacks the routines we cross-check against."""
    import erfa
    for fn in ("cal2jd", "jd2cal", "gmst82", "obl80"):
        assert hasattr(erfa, fn), f"ERFA.{fn} not available"
    return erfa


@pytest.fixture(scope="session")
def ensure_tzdata():
    """If tzdata is missing on a CI runner, add 'tzdata' to the test extra."""
    from zoneinfo import ZoneInfo
    for name in ("UTC", "Asia/Kolkata", "America/New_York"):
        ZoneInfo(name)
