"""
Serial transport using pyserial.

This module provides the transport implementation for real hardware.
pyserial only offers blocking calls, so every open port gets a daemon
watcher thread that turns the port's state into signals:

- on_data_ready while received bytes are waiting
- on_pin_changed on every edge of the CTS, DSR, CD and RI input lines
- on_error(LineError.IO, ...) followed by on_data_ready when the port
  fails (e.g. a USB adapter was unplugged); is_open is False from then on

Example:
    >>> transport = SerialTransport()
    >>> transport.on_data_ready = lambda: print(transport.read(transport.bytes_available))
    >>> transport.open("/dev/ttyUSB0", 9600, read_timeout=1.0, write_timeout=1.0)
    >>> try:
    ...     transport.write(b"AT\\r")
    ... finally:
    ...     transport.close()
"""

from __future__ import annotations

import logging
import threading

import serial
from serial.tools import list_ports as serial_list_ports

from easyconnect.constants import Handshake, LineError, LinkConstants, PinChange
from easyconnect.exceptions import TimeoutError, TransportError
from easyconnect.models.settings import DEFAULT_FRAMING, Framing
from easyconnect.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)

# Input lines watched for pin-change signals, as (pyserial attribute, change kind)
_MODEM_LINES: tuple[tuple[str, PinChange], ...] = (
    ("cts", PinChange.CTS_CHANGED),
    ("dsr", PinChange.DSR_CHANGED),
    ("cd", PinChange.CD_CHANGED),
    ("ri", PinChange.RING),
)


def _read_modem_lines(ser: serial.Serial) -> dict[PinChange, bool] | None:
    """Snapshot the input lines, or None when the port cannot report them (e.g. a pty)."""
    try:
        return {pin: bool(getattr(ser, attr)) for attr, pin in _MODEM_LINES}
    except (serial.SerialException, OSError):
        return None


class SerialTransport(AbstractTransport):
    """
    Serial port transport built on pyserial.

    Attributes:
        port_name: Serial port path (e.g., "/dev/ttyUSB0", "COM3").
        is_open: Whether the port is currently open and healthy.
    """

    def __init__(self, poll_interval: float = LinkConstants.POLL_INTERVAL) -> None:
        """
        Initialize the serial transport.

        Args:
            poll_interval: Sleep in seconds between two polls of the watcher thread.
        """
        super().__init__()
        self._poll_interval = poll_interval
        self._port: str | None = None
        self._baudrate: int | None = None
        self._serial: serial.Serial | None = None
        self._watcher: threading.Thread | None = None
        self._stop = threading.Event()
        self._failed = False
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        """Check if the serial port is open and has not failed."""
        ser = self._serial
        return ser is not None and ser.is_open and not self._failed

    @property
    def port_name(self) -> str | None:
        """Get the serial port path."""
        return self._port

    @property
    def baudrate(self) -> int | None:
        """Get the configured baud rate."""
        return self._baudrate

    @property
    def bytes_available(self) -> int:
        """
        Get the number of bytes waiting in the receive buffer.

        Raises:
            TransportError: If the port fails while being queried.
        """
        ser = self._serial
        if ser is None or not self.is_open:
            return 0
        try:
            return ser.in_waiting
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Cannot query {self._port}: {e}") from e

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
        Open the serial port and start the watcher thread.

        Raises:
            TransportError: If the port is already open, cannot be opened,
                or rejects the requested settings.
        """
        if self.is_open:
            raise TransportError(f"Serial port {self._port} is already open")
        if self._serial is not None:
            # A port that failed is still held until closed
            try:
                self.close()
            except TransportError as e:
                logger.warning("Releasing failed port %s: %s", self._port, e)

        try:
            ser = serial.Serial(
                port=port,
                baudrate=baudrate,
                bytesize=framing.data_bits,
                parity=framing.parity.value,
                stopbits=framing.stop_bits.value,
                timeout=read_timeout,
                write_timeout=write_timeout,
                xonxoff=framing.handshake is Handshake.XON_XOFF,
                rtscts=framing.handshake is Handshake.RTS_CTS,
                dsrdtr=framing.handshake is Handshake.DSR_DTR,
            )
        except serial.SerialException as e:
            raise TransportError(f"Failed to open serial port {port}: {e}") from e
        except ValueError as e:
            raise TransportError(f"Invalid settings for {port}: {e}") from e
        except OSError as e:
            raise TransportError(f"OS error opening {port}: {e}") from e

        stop = threading.Event()
        with self._lock:
            self._serial = ser
            self._port = port
            self._baudrate = baudrate
            self._failed = False
            self._stop = stop
            self._watcher = threading.Thread(
                target=self._watch,
                args=(ser, stop),
                name=f"easyconnect-watch[{port}]",
                daemon=True,
            )
        logger.debug("Opened %s at %d baud (%s)", port, baudrate, framing)
        self._watcher.start()

    def close(self) -> None:
        """
        Close the serial port and stop the watcher thread.

        Safe to call multiple times, and from the watcher thread itself.

        Raises:
            TransportError: If pyserial fails to close the port.
        """
        with self._lock:
            self._stop.set()
            ser, self._serial = self._serial, None
            watcher, self._watcher = self._watcher, None

        try:
            if ser is not None:
                ser.close()
                logger.debug("Closed %s", self._port)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Failed to close serial port {self._port}: {e}") from e
        finally:
            if watcher is not None and watcher is not threading.current_thread():
                watcher.join(LinkConstants.JOIN_TIMEOUT)

    def write(self, data: bytes, timeout: float | None = None) -> int:
        """
        Write data to the serial port.

        Raises:
            TimeoutError: If the write timeout expires.
            TransportError: If the port is not open or the write fails.
        """
        ser = self._require_open()
        try:
            if timeout is not None and timeout != ser.write_timeout:
                ser.write_timeout = timeout
            written = ser.write(data)
        except serial.SerialTimeoutException as e:
            raise TimeoutError(
                f"Write to {self._port} timed out",
                timeout_seconds=ser.write_timeout,
            ) from e
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Write failed: {e}") from e
        return written if written is not None else len(data)

    def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read up to ``size`` bytes from the serial port.

        Raises:
            TimeoutError: If no byte arrives before the timeout.
            TransportError: If the port is not open or the read fails.
        """
        ser = self._require_open()
        if size <= 0:
            return b""

        try:
            if timeout is not None and timeout != ser.timeout:
                ser.timeout = timeout
            data = ser.read(size)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Read failed: {e}") from e

        if not data:
            raise TimeoutError(
                f"No data from {self._port}",
                timeout_seconds=ser.timeout,
            )
        return bytes(data)

    @staticmethod
    def list_ports() -> list[str]:
        """List the serial ports present on this machine."""
        return sorted(info.device for info in serial_list_ports.comports())

    def _require_open(self) -> serial.Serial:
        ser = self._serial
        if ser is None or not self.is_open:
            raise TransportError("Serial port is not open")
        return ser

    def _watch(self, ser: serial.Serial, stop: threading.Event) -> None:
        lines = _read_modem_lines(ser)
        while not stop.is_set():
            try:
                if not ser.is_open:
                    raise serial.SerialException("port closed underneath the transport")
                waiting = ser.in_waiting
            except (serial.SerialException, OSError) as e:
                if not stop.is_set():
                    self._fail(str(e))
                return

            try:
                current = _read_modem_lines(ser)
                if current is not None:
                    previous, lines = lines, current
                    if previous is not None:
                        for pin, state in current.items():
                            if state != previous[pin]:
                                self._signal_pin_changed(pin)
                if waiting:
                    self._signal_data_ready()
            except Exception:
                logger.exception("Signal handler failed for %s", self._port)

            stop.wait(self._poll_interval)

    def _fail(self, detail: str) -> None:
        logger.warning("Serial port %s failed: %s", self._port, detail)
        self._failed = True
        try:
            self._signal_error(LineError.IO, detail)
            self._signal_data_ready()
        except Exception:
            logger.exception("Signal handler failed for %s", self._port)

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self._port!r}, baudrate={self._baudrate}, {status})"
