"""
Abstract transport interface for serial links.

This module defines the abstract base class for all transport
implementations. A transport owns one physical port and is responsible for:
- Opening/closing the port with a given speed and framing
- Blocking reads and writes bounded by a timeout
- Reporting how many received bytes are waiting
- Raising asynchronous signals (data ready, line error, pin changed)

Signals are plain callables assigned by the owner of the transport. They
may be invoked from a thread the transport owns, so handlers must be
thread-safe.

Implementations:
- SerialTransport: pyserial based serial port
- MockTransport: in-memory transport for testing without hardware
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

from easyconnect.models.settings import DEFAULT_FRAMING, Framing

if TYPE_CHECKING:
    from types import TracebackType

    from easyconnect.constants import LineError, PinChange


class AbstractTransport(ABC):
    """
    Abstract base class for serial link transports.

    All methods are synchronous and may be called from any thread.
    Transports support the context manager protocol for safe resource
    management once opened:

        transport = SerialTransport()
        transport.open("/dev/ttyUSB0", 9600)
        with transport:
            transport.write(b"AT\\r")

    Attributes:
        on_data_ready: Called with no arguments when received bytes are waiting.
        on_error: Called with a LineError and a detail string.
        on_pin_changed: Called with the PinChange that occurred.
    """

    def __init__(self) -> None:
        self.on_data_ready: Callable[[], None] | None = None
        self.on_error: Callable[[LineError, str], None] | None = None
        self.on_pin_changed: Callable[[PinChange], None] | None = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the port is currently open.

        Returns:
            True if open and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def port_name(self) -> str | None:
        """
        Get the name of the open port.

        Returns:
            Port name (e.g., "/dev/ttyUSB0", "COM3"), or None before open().
        """
        ...

    @property
    @abstractmethod
    def bytes_available(self) -> int:
        """
        Get the number of received bytes waiting to be read.

        Returns:
            Byte count; 0 when the port is closed.
        """
        ...

    @abstractmethod
    def open(
        self,
        port: str,
        baudrate: int,
        *,
        framing: Framing = DEFAULT_FRAMING,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ) -> None:
        """
        Open the port.

        Args:
            port: Port name.
            baudrate: Line speed in bits per second.
            framing: Character format and flow control.
            read_timeout: Default timeout in seconds for read().
            write_timeout: Default timeout in seconds for write().

        Raises:
            TransportError: If the port is unavailable or rejects the framing.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """
        Close the port and release its resources.

        Safe to call multiple times and from any thread, including the
        thread that delivers the transport's signals.

        Raises:
            TransportError: If the port fails to close cleanly.
        """
        ...

    @abstractmethod
    def write(self, data: bytes, timeout: float | None = None) -> int:
        """
        Write data to the port.

        Args:
            data: Bytes to send.
            timeout: Write timeout in seconds. None uses the open() default.

        Returns:
            Number of bytes written.

        Raises:
            TimeoutError: If the write does not complete in time.
            TransportError: If the port is not open or the write fails.
        """
        ...

    @abstractmethod
    def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read up to ``size`` bytes from the port.

        Args:
            size: Maximum number of bytes to read.
            timeout: Read timeout in seconds. None uses the open() default.

        Returns:
            Between 1 and ``size`` bytes, or b"" when ``size`` is 0.

        Raises:
            TimeoutError: If no byte arrives before the timeout.
            TransportError: If the port is not open or the read fails.
        """
        ...

    @staticmethod
    @abstractmethod
    def list_ports() -> list[str]:
        """
        List the names of the ports present on this machine.

        Returns:
            Port names, sorted.
        """
        ...

    def _signal_data_ready(self) -> None:
        if self.on_data_ready is not None:
            self.on_data_ready()

    def _signal_error(self, kind: LineError, detail: str = "") -> None:
        if self.on_error is not None:
            self.on_error(kind, detail)

    def _signal_pin_changed(self, pin: PinChange) -> None:
        if self.on_pin_changed is not None:
            self.on_pin_changed(pin)

    def __enter__(self) -> AbstractTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit - closes the transport."""
        self.close()
