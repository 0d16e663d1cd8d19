"""
easyconnect - Python library for point-to-point serial links.

This library opens a serial port at a fixed 8-N-1 framing, queues outbound
writes for a background sender thread, and delivers inbound bytes either
as events or through a polled buffer.

Example:
    >>> from easyconnect import SerialConnection
    >>>
    >>> with SerialConnection() as conn:
    ...     conn.on_data_received += lambda event: print(event.data.hex())
    ...     if conn.connect("/dev/ttyUSB0", 9600):
    ...         conn.send(b"\\x01\\x02")
"""

from easyconnect.connection import ConnectionState, SerialConnection
from easyconnect.constants import Handshake, LineError, LinkConstants, Parity, PinChange, StopBits
from easyconnect.events import EventChannel
from easyconnect.exceptions import (
    ConnectionError,
    EasyConnectError,
    TimeoutError,
    TransportError,
)
from easyconnect.models import (
    ConnectedEvent,
    DataReceivedEvent,
    DisconnectedEvent,
    ErrorEvent,
    Framing,
    LinkSettings,
    PinChangedEvent,
)
from easyconnect.port import ConnectionPort
from easyconnect.transport import AbstractTransport, MockTransport, SerialTransport

__version__ = "0.1.0"
__all__ = [
    # Connection
    "SerialConnection",
    "ConnectionState",
    "ConnectionPort",
    "EventChannel",
    # Models
    "Framing",
    "LinkSettings",
    "ConnectedEvent",
    "DisconnectedEvent",
    "DataReceivedEvent",
    "PinChangedEvent",
    "ErrorEvent",
    # Constants
    "LinkConstants",
    "Parity",
    "StopBits",
    "Handshake",
    "PinChange",
    "LineError",
    # Exceptions
    "EasyConnectError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    # Transport
    "AbstractTransport",
    "SerialTransport",
    "MockTransport",
    # Version
    "__version__",
]
