# horocore/core/errors.py
"""
Closed error taxonomy for the computation core.

Every failure raised by horocore is a HorocoreError (a ValueError, so legacy
`except ValueError` call-sites keep working) tagged with an ErrorKind and the
structured context needed to branch without string matching:

  kind         ErrorKind member
  field        name of the offending input ("month", "latitude", ...)
  value        the offending value
  valid_range  (low, high) tuple, a tuple of accepted names, or None
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "ErrorKind",
    "HorocoreError",
    "InvalidCalendarError",
    "LatitudeDomainError",
    "UnsupportedSystemError",
    "UnsupportedBodyError",
    "ConvergenceFailureError",
    "InvalidArgumentError",
]


class ErrorKind(str, Enum):
    INVALID_CALENDAR = "invalid_calendar"
    LATITUDE_DOMAIN = "latitude_domain"
    UNSUPPORTED_SYSTEM = "unsupported_system"
    UNSUPPORTED_BODY = "unsupported_body"
    CONVERGENCE_FAILURE = "convergence_failure"
    INVALID_ARGUMENT = "invalid_argument"


class HorocoreError(ValueError):
    """Base error; subclasses pin `kind`."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        valid_range: Optional[Tuple[Any, ...]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value
        self.valid_range = valid_range

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "msg": self.message,
            "field": self.field,
            "value": self.value,
            "valid_range": list(self.valid_range) if self.valid_range is not None else None,
        }


class InvalidCalendarError(HorocoreError):
    kind = ErrorKind.INVALID_CALENDAR


class LatitudeDomainError(HorocoreError):
    """Latitude outside a system's domain, or degenerate trigonometry."""
    kind = ErrorKind.LATITUDE_DOMAIN


class UnsupportedSystemError(HorocoreError):
    kind = ErrorKind.UNSUPPORTED_SYSTEM


class UnsupportedBodyError(HorocoreError):
    kind = ErrorKind.UNSUPPORTED_BODY


class InvalidArgumentError(HorocoreError):
    kind = ErrorKind.INVALID_ARGUMENT


class ConvergenceFailureError(HorocoreError):
    """Root finder gave up; terminal for the call (callers may widen the window)."""

    kind = ErrorKind.CONVERGENCE_FAILURE

    def __init__(
        self,
        message: str,
        *,
        iterations: int,
        last_error_deg: Optional[float] = None,
        field: Optional[str] = None,
        value: Any = None,
        valid_range: Optional[Tuple[Any, ...]] = None,
    ):
        super().__init__(message, field=field, value=value, valid_range=valid_range)
        self.iterations = iterations
        self.last_error_deg = last_error_deg

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["iterations"] = self.iterations
        d["last_error_deg"] = self.last_error_deg
        return d
