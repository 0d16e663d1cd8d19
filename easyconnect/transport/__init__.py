"""
Transport layer for serial links.

This package provides the transports a SerialConnection talks through.

Available transports:
- SerialTransport: Serial port using pyserial
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from easyconnect.transport import SerialTransport
    >>> SerialTransport.list_ports()
    ['/dev/ttyS0', '/dev/ttyUSB0']

Testing Example:
    >>> from easyconnect.exceptions import TransportError
    >>> from easyconnect.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.fail_next_open(TransportError("port busy"))
"""

from easyconnect.transport.abc import AbstractTransport
from easyconnect.transport.mock import MockTransport, ScriptedMockTransport
from easyconnect.transport.serial_port import SerialTransport

__all__ = [
    "AbstractTransport",
    "SerialTransport",
    "MockTransport",
    "ScriptedMockTransport",
]
