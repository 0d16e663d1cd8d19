"""
Pydantic models for the payloads carried by connection events.

Every model is frozen so one instance can be handed to several
subscribers without any of them being able to alter what the next one sees.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from easyconnect.constants import PinChange


class ConnectedEvent(BaseModel):
    """Raised once a port has been opened."""

    model_config = ConfigDict(frozen=True)

    port: str
    baudrate: int


class DisconnectedEvent(BaseModel):
    """Raised when a live link goes down, whichever side ended it."""

    model_config = ConfigDict(frozen=True)

    port: str | None = None


class DataReceivedEvent(BaseModel):
    """
    Bytes pushed to data-received subscribers.

    Example:
        >>> DataReceivedEvent(data=b"ABC").data
        b'ABC'
    """

    model_config = ConfigDict(frozen=True)

    data: bytes

    def __len__(self) -> int:
        return len(self.data)


class PinChangedEvent(BaseModel):
    """A modem line changed state."""

    model_config = ConfigDict(frozen=True)

    pin: PinChange


class ErrorEvent(BaseModel):
    """Human-readable description of a failure on the link."""

    model_config = ConfigDict(frozen=True)

    message: str

    def __str__(self) -> str:
        return self.message
