"""
Structural interface shared by connection implementations.

Code that only needs to move bytes over a link can depend on ConnectionPort
instead of SerialConnection, and accept any object with the same surface.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from easyconnect.events import EventChannel


@runtime_checkable
class ConnectionPort(Protocol):
    """
    Protocol defining a byte-stream connection with event channels.

    SerialConnection satisfies it without inheriting from it.
    """

    on_connected: EventChannel
    on_disconnected: EventChannel
    on_data_received: EventChannel
    on_error: EventChannel

    @property
    def port(self) -> str | None:
        """Name of the current or last endpoint."""
        ...

    @property
    def baudrate(self) -> int | None:
        """Speed of the current or last connection."""
        ...

    @property
    def is_connected(self) -> bool:
        """Whether the link is up."""
        ...

    def connect(self, port: str, baudrate: int) -> bool:
        """Open the link; False on failure."""
        ...

    def disconnect(self) -> bool:
        """Close the link; False if closing failed."""
        ...

    def send(self, data: bytes) -> bool:
        """Queue data for transmission; False when not connected."""
        ...

    def read(self) -> bytes:
        """Drain bytes received since the last read."""
        ...
