"""
Serial link constants and enumerations.

Timing values are expressed in seconds. The framing defaults describe the
fixed 8-N-1 line format, without handshake, that SerialConnection opens
every port with.
"""

from __future__ import annotations

from enum import Enum, IntEnum, auto
from typing import Final


class Parity(str, Enum):
    """Parity modes. Values match pyserial's PARITY_* constants."""

    NONE = "N"
    EVEN = "E"
    ODD = "O"
    MARK = "M"
    SPACE = "S"


class StopBits(float, Enum):
    """Stop bit counts. Values match pyserial's STOPBITS_* constants."""

    ONE = 1
    ONE_POINT_FIVE = 1.5
    TWO = 2


class Handshake(Enum):
    """Flow control modes passed through to the port."""

    NONE = auto()
    """No flow control."""

    XON_XOFF = auto()
    """Software flow control."""

    RTS_CTS = auto()
    """Hardware flow control on the RTS/CTS pair."""

    DSR_DTR = auto()
    """Hardware flow control on the DSR/DTR pair."""


class PinChange(IntEnum):
    """
    Modem line transitions reported by a transport.

    Each value names the input line whose state changed.
    """

    CTS_CHANGED = 0x08
    """Clear To Send changed state."""

    DSR_CHANGED = 0x10
    """Data Set Ready changed state."""

    CD_CHANGED = 0x20
    """Carrier Detect changed state."""

    BREAK = 0x40
    """A break was detected on input."""

    RING = 0x100
    """A ring indicator was detected."""


class LineError(IntEnum):
    """Line-level error conditions a transport can report."""

    TX_FULL = 0x100
    """The output buffer was full."""

    RX_OVER = 0x01
    """An input buffer overflow occurred."""

    OVERRUN = 0x02
    """A character-buffer overrun occurred; the next character is lost."""

    RX_PARITY = 0x04
    """The hardware detected a parity error."""

    FRAME = 0x08
    """The hardware detected a framing error."""

    IO = 0x1000
    """The port failed with an I/O error, e.g. the device was unplugged."""


class LinkConstants:
    """
    Serial link defaults.

    Contains timing values and the fixed framing used throughout the
    connection and transport implementations.
    """

    # ===== Timing Constants (in seconds) =====

    DEFAULT_RECEIVE_TIMEOUT: Final[float] = 1.0
    """Default timeout for a blocking read."""

    DEFAULT_SEND_TIMEOUT: Final[float] = 1.0
    """Default timeout for a blocking write."""

    IDLE_INTERVAL: Final[float] = 0.05
    """Longest time the send loop waits on an empty queue before rechecking the link."""

    POLL_INTERVAL: Final[float] = 0.01
    """Sleep between two polls of the serial watcher thread."""

    JOIN_TIMEOUT: Final[float] = 1.0
    """How long close() waits for a background thread to finish."""

    # ===== Framing =====

    DATA_BITS: Final[int] = 8
    """Data bits per character."""

    PARITY: Final[Parity] = Parity.NONE
    """Parity mode."""

    STOP_BITS: Final[StopBits] = StopBits.ONE
    """Stop bits per character."""

    HANDSHAKE: Final[Handshake] = Handshake.NONE
    """Flow control mode."""
