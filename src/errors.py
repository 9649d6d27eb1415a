"""Exception types raised by the DataEye client.

Per-datum problems reported by the Prophet server never raise; they are
carried on the normalized records as an ``error`` field. The exceptions below
cover the structural failures that abort a whole call.
"""

from __future__ import annotations

from typing import Optional

from .schemas.prophet_contract import ErrorCode, ErrorDetails


class DataEyeError(Exception):
    """Base class for all DataEye client failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def to_details(self) -> ErrorDetails:
        """Return a structured description suitable for logging or JSON."""
        return ErrorDetails(code=self.code, message=str(self))


class TransportError(DataEyeError):
    """The round trip to the Prophet server failed.

    Parameters
    ----------
    message: str
        Human-readable description of the failure.
    code: ErrorCode
        Classification of the failure (timeout, unavailable, ...).
    status_code: Optional[int]
        HTTP status returned by the server, when one was received.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code

    def to_details(self) -> ErrorDetails:
        details = {"status_code": self.status_code} if self.status_code else None
        return ErrorDetails(code=self.code, message=str(self), details=details)


class MissingParserError(DataEyeError, LookupError):
    """A method response arrived whose kind has no registered parser."""

    code = ErrorCode.UNSUPPORTED_METHOD

    def __init__(self, kind: Optional[str]) -> None:
        super().__init__(f"No parser registered for method response kind {kind!r}")
        self.kind = kind


class ValueCoercionError(DataEyeError, ValueError):
    """A merged record carries metadata that cannot drive value coercion."""

    code = ErrorCode.INVALID_RECORD
