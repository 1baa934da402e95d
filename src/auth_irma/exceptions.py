"""
Exceptions raised by the IRMA authentication bridge.

Every error carries the HTTP status code the web layer answers with. Errors
from underlying libraries are chained with ``raise ... from`` so the original
cause stays available on ``__cause__``.
"""

from __future__ import annotations

from http import HTTPStatus


class AuthIrmaError(Exception):
    """Base exception class for the bridge."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = (
            status_code if status_code is not None else HTTPStatus.INTERNAL_SERVER_ERROR
        )


class ConfigurationError(AuthIrmaError):
    """Exception raised for malformed configuration or key material."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, status_code)


class UnknownAttribute(ConfigurationError):
    """Raised when a logical attribute name has no configured identifiers."""

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Unknown attribute {attribute}", HTTPStatus.BAD_REQUEST)
        self.attribute = attribute


class DuplicateAttribute(ConfigurationError):
    """Raised when a request names the same logical attribute twice."""

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Attribute {attribute} requested more than once", HTTPStatus.BAD_REQUEST)
        self.attribute = attribute


class TransportError(AuthIrmaError):
    """Network failure or malformed response from the disclosure server."""

    def __init__(self, message: str = "Error communicating with the IRMA server") -> None:
        super().__init__(message, HTTPStatus.BAD_GATEWAY)


class PackagingError(AuthIrmaError):
    """Signing, encryption or unsealing of an authentication result failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, HTTPStatus.INTERNAL_SERVER_ERROR)


class DecodeError(AuthIrmaError):
    """A path segment on a redirect hop could not be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(message, HTTPStatus.BAD_REQUEST)


class SessionError(AuthIrmaError):
    """
    Terminal failure outcome of a disclosure session.

    Subclasses define ``reason``, the stable identifier placed in sealed
    failure results.
    """

    reason = "failed"

    def __init__(self, message: str) -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED)


class SessionIncomplete(SessionError):
    reason = "incomplete"

    def __init__(self, message: str = "Incomplete session") -> None:
        super().__init__(message)


class SessionCancelled(SessionError):
    reason = "cancelled"

    def __init__(self, message: str = "Cancelled session") -> None:
        super().__init__(message)


class SessionTimedOut(SessionError):
    reason = "timeout"

    def __init__(self, message: str = "Session timed out") -> None:
        super().__init__(message)


class InvalidProof(SessionError):
    reason = "invalid_proof"

    def __init__(self, message: str = "Invalid proof") -> None:
        super().__init__(message)


class ResponseMismatch(SessionError):
    """Number of disclosed groups differs from the number of requested attributes."""

    reason = "response_mismatch"

    def __init__(self, message: str = "mismatch between request and response") -> None:
        super().__init__(message)


class InvalidResponse(SessionError):
    """Disclosed attributes do not fit the requested conjunction structure."""

    reason = "invalid_response"

    def __init__(self, description: str) -> None:
        super().__init__(f"Invalid irma response: {description}")
        self.description = description
