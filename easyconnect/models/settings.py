"""
Pydantic models for link configuration.

Both models are frozen. Changing a setting means building a new model,
which runs validation again.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from easyconnect.constants import Handshake, LinkConstants, Parity, StopBits


class Framing(BaseModel):
    """
    Bit-level character format applied to every byte on the wire.

    Example:
        >>> str(Framing())
        '8N1'
        >>> str(Framing(parity=Parity.EVEN, stop_bits=StopBits.TWO))
        '8E2'
    """

    model_config = ConfigDict(frozen=True)

    data_bits: int = Field(default=LinkConstants.DATA_BITS, ge=5, le=8)
    parity: Parity = LinkConstants.PARITY
    stop_bits: StopBits = LinkConstants.STOP_BITS
    handshake: Handshake = LinkConstants.HANDSHAKE

    def __str__(self) -> str:
        stop = f"{self.stop_bits.value:g}"
        return f"{self.data_bits}{self.parity.value}{stop}"


DEFAULT_FRAMING = Framing()
"""8 data bits, no parity, one stop bit, no handshake."""


class LinkSettings(BaseModel):
    """
    Timeouts used by a SerialConnection.

    Attributes:
        receive_timeout: Timeout in seconds for each blocking transport read.
        send_timeout: Timeout in seconds for each blocking transport write.
        idle_interval: Longest wait of the send loop on an empty queue.
    """

    model_config = ConfigDict(frozen=True)

    receive_timeout: float = Field(default=LinkConstants.DEFAULT_RECEIVE_TIMEOUT, gt=0)
    send_timeout: float = Field(default=LinkConstants.DEFAULT_SEND_TIMEOUT, gt=0)
    idle_interval: float = Field(default=LinkConstants.IDLE_INTERVAL, gt=0)

    def with_changes(self, **changes: float) -> LinkSettings:
        """Return a validated copy with the given fields replaced."""
        return LinkSettings(**{**self.model_dump(), **changes})
