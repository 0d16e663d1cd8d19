"""
Exception hierarchy for easyconnect.

All exceptions inherit from EasyConnectError. Transports raise them; the
connection layer catches them and turns them into error events plus a
boolean result, so callers of SerialConnection rarely see them directly.
"""

from __future__ import annotations


class EasyConnectError(Exception):
    """
    Base exception for all easyconnect errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all easyconnect errors with a single except clause.
    """

    pass


class TransportError(EasyConnectError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Port cannot be opened or framing is rejected
    - I/O errors during read or write
    - Failures while closing the port
    """

    pass


class TimeoutError(TransportError):  # noqa: A001 - intentionally shadows builtin
    """
    Transfer timeout.

    Raised when a blocking write or read does not complete within its
    configured timeout.
    """

    def __init__(
        self,
        message: str = "Transfer timed out",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class ConnectionError(EasyConnectError):  # noqa: A001 - intentionally shadows builtin
    """
    Link state error.

    Raised when an operation requires a live link that is not there, or
    when the connection object has already been closed.
    """

    pass
