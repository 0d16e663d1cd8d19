"""
Serial connection.

This module provides the connection object callers work with. It owns the
link lifecycle, an outbound queue drained by a background send loop, and
the inbound side that turns the transport's data-ready signal into either
a data-received event or bytes accumulated for read().

The connection implements a two-state machine:
    DISCONNECTED -> connect() -> CONNECTED
    CONNECTED -> disconnect() / link lost -> DISCONNECTED

Threads involved while connected:
- the callers' threads (connect, send, read, disconnect)
- one send loop thread per connect()
- the transport's notification thread (data ready, errors, pin changes)

Example:
    >>> from easyconnect import SerialConnection
    >>>
    >>> conn = SerialConnection()
    >>> conn.on_error += lambda event: print("error:", event.message)
    >>> if conn.connect("/dev/ttyUSB0", 9600):
    ...     conn.send(b"AT\\r")
    ...     reply = conn.read()
    ...     conn.close()
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum, auto
from functools import partial
from typing import TYPE_CHECKING, Callable

from easyconnect.constants import LinkConstants
from easyconnect.events import EventChannel
from easyconnect.exceptions import ConnectionError, EasyConnectError
from easyconnect.models.events import (
    ConnectedEvent,
    DataReceivedEvent,
    DisconnectedEvent,
    ErrorEvent,
    PinChangedEvent,
)
from easyconnect.models.settings import DEFAULT_FRAMING, LinkSettings
from easyconnect.transport.serial_port import SerialTransport

if TYPE_CHECKING:
    from types import TracebackType

    from easyconnect.constants import LineError, PinChange
    from easyconnect.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

TransportFactory = Callable[[], "AbstractTransport"]


class ConnectionState(Enum):
    """Serial connection states."""

    DISCONNECTED = auto()
    """No port is open."""

    CONNECTED = auto()
    """A port is open and the send loop is running."""


class SerialConnection:
    """
    Point-to-point serial connection with queued writes.

    send() only queues data; a background thread writes queued items to
    the port one at a time, in order. Received bytes are pushed to the
    on_data_received subscribers when there are any, and otherwise
    accumulate until read() drains them. Failures never raise out of the
    connection's operations: they are reported through on_error and, where
    there is a caller, a False result.

    Event channels (subscribe with ``+=``):
        on_connected: ConnectedEvent, after a successful connect().
        on_disconnected: DisconnectedEvent, once per live link that goes down.
        on_data_received: DataReceivedEvent, per chunk read from the port.
        on_pin_changed: PinChangedEvent, per modem line transition.
        on_error: ErrorEvent, per failure.

    Handlers run synchronously on whichever thread raised the event.

    Example:
        >>> from easyconnect.transport import MockTransport
        >>> conn = SerialConnection(transport_factory=MockTransport)
        >>> conn.send(b"\\x01")
        False
        >>> conn.connect("COM_TEST", 9600)
        True
        >>> conn.send(b"\\x01")
        True
    """

    def __init__(
        self,
        port: str | None = None,
        baudrate: int | None = None,
        *,
        transport_factory: TransportFactory = SerialTransport,
        settings: LinkSettings | None = None,
    ) -> None:
        """
        Initialize the connection, connecting immediately when a port is given.

        Args:
            port: Port to connect to right away.
            baudrate: Line speed for ``port``; required when ``port`` is given.
            transport_factory: Builds a fresh transport for every connect().
            settings: Timeouts; defaults to LinkSettings().

        Raises:
            ValueError: If ``port`` is given without ``baudrate``.
        """
        self._transport_factory = transport_factory
        self._settings = settings or LinkSettings()
        self._active_settings = self._settings
        self._state = ConnectionState.DISCONNECTED
        self._port: str | None = None
        self._baudrate: int | None = None
        self._transport: AbstractTransport | None = None
        self._outbound: queue.Queue[bytes] = queue.Queue()
        self._inbound = bytearray()
        self._cancel = threading.Event()
        self._sender: threading.Thread | None = None
        self._closed = False

        self._lifecycle_lock = threading.RLock()
        self._drain_lock = threading.Lock()
        self._buffer_lock = threading.Lock()

        self.on_connected = EventChannel("connected")
        self.on_disconnected = EventChannel("disconnected")
        self.on_data_received = EventChannel("data_received")
        self.on_pin_changed = EventChannel("pin_changed")
        self.on_error = EventChannel("error")

        if port is not None:
            if baudrate is None:
                raise ValueError("baudrate is required when port is given")
            self.connect(port, baudrate)

    # ===== Properties =====

    @property
    def state(self) -> ConnectionState:
        """Get the current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the link is up: connected and the port still open."""
        transport = self._transport
        return (
            self._state is ConnectionState.CONNECTED
            and transport is not None
            and transport.is_open
        )

    @property
    def port(self) -> str | None:
        """Get the port name of the current or last connection."""
        return self._port

    @property
    def baudrate(self) -> int | None:
        """Get the line speed of the current or last connection."""
        return self._baudrate

    @property
    def settings(self) -> LinkSettings:
        """Get the settings the next connect() will use."""
        return self._settings

    @property
    def receive_timeout(self) -> float:
        """Get the read timeout in seconds; a new value applies at the next connect()."""
        return self._settings.receive_timeout

    @receive_timeout.setter
    def receive_timeout(self, value: float) -> None:
        self._settings = self._settings.with_changes(receive_timeout=value)

    @property
    def send_timeout(self) -> float:
        """Get the write timeout in seconds; a new value applies at the next connect()."""
        return self._settings.send_timeout

    @send_timeout.setter
    def send_timeout(self, value: float) -> None:
        self._settings = self._settings.with_changes(send_timeout=value)

    @property
    def pending(self) -> int:
        """Get the number of queued items not yet taken by the send loop."""
        return self._outbound.qsize()

    @property
    def transport(self) -> AbstractTransport | None:
        """Get the transport of the current or last connection."""
        return self._transport

    @staticmethod
    def list_ports() -> list[str]:
        """List the serial ports present on this machine."""
        return SerialTransport.list_ports()

    # ===== Lifecycle =====

    def connect(self, port: str, baudrate: int) -> bool:
        """
        Open ``port`` at ``baudrate`` with 8-N-1 framing and start the send loop.

        Queued outbound data and unread inbound data from earlier
        connections are discarded. A live link is disconnected first.
        Returns as soon as the port is open; it does not wait for the send
        loop to start.

        Args:
            port: Port name (e.g., "/dev/ttyUSB0", "COM3").
            baudrate: Line speed in bits per second.

        Returns:
            True if the port was opened, False otherwise (see on_error).

        Raises:
            ConnectionError: If the connection has been closed.
        """
        if self._closed:
            raise ConnectionError("Cannot connect: connection has been closed")

        with self._lifecycle_lock:
            if self._state is ConnectionState.CONNECTED:
                logger.info("Reconnecting: closing link to %s first", self._port)
                self.disconnect()

            settings = self._settings
            self._active_settings = settings
            self._port = port
            self._baudrate = baudrate
            outbound: queue.Queue[bytes] = queue.Queue()
            self._outbound = outbound
            with self._buffer_lock:
                self._inbound.clear()
            cancel = threading.Event()
            self._cancel = cancel

            transport = self._transport_factory()
            transport.on_data_ready = partial(self._on_data_ready, transport, cancel)
            transport.on_error = partial(self._on_line_error, cancel)
            transport.on_pin_changed = partial(self._on_pin_changed, cancel)
            self._transport = transport

            logger.info("Connecting to %s at %d baud (%s)", port, baudrate, DEFAULT_FRAMING)
            try:
                transport.open(
                    port,
                    baudrate,
                    framing=DEFAULT_FRAMING,
                    read_timeout=settings.receive_timeout,
                    write_timeout=settings.send_timeout,
                )
            except EasyConnectError as e:
                logger.warning("Failed to open %s: %s", port, e)
                self.disconnect()
                self._raise_error(str(e))
                return False

            self._state = ConnectionState.CONNECTED
            sender = threading.Thread(
                target=self._send_loop,
                args=(transport, outbound, cancel, settings),
                name=f"easyconnect-send[{port}]",
                daemon=True,
            )
            self._sender = sender

        self.on_connected.fire(ConnectedEvent(port=port, baudrate=baudrate))
        sender.start()
        return True

    def disconnect(self) -> bool:
        """
        Stop the send loop and close the port.

        Idempotent: calling it again, or when never connected, only
        re-attempts closing the transport. Items still queued are not
        written. Raises on_disconnected if a live link went down.

        Returns:
            False if closing the port failed (see on_error), True otherwise.
        """
        return self._teardown_link()

    def close(self) -> None:
        """
        Release the connection: disconnect and discard queued data.

        Safe to call before any connect() and safe to call twice. The
        object cannot be connected again afterwards.
        """
        self._closed = True
        self._teardown_link()
        self._outbound = queue.Queue()

        sender = self._sender
        if sender is not None and sender is not threading.current_thread():
            sender.join(self._active_settings.send_timeout + LinkConstants.JOIN_TIMEOUT)

    def _teardown_link(self, cancel: threading.Event | None = None) -> bool:
        """Disconnect; when ``cancel`` is given, only if its connection is still the live one."""
        with self._lifecycle_lock:
            if cancel is not None and self._is_stale(cancel):
                return True
            transport = self._transport
            self._cancel.set()
            was_connected = self._state is ConnectionState.CONNECTED
            self._state = ConnectionState.DISCONNECTED

        if was_connected:
            logger.info("Disconnecting from %s", self._port)

        closed = True
        if transport is not None:
            try:
                transport.close()
            except EasyConnectError as e:
                logger.warning("Failed to close %s: %s", self._port, e)
                self._raise_error(str(e))
                closed = False

        if was_connected:
            self.on_disconnected.fire(DisconnectedEvent(port=self._port))
        return closed

    def _is_stale(self, cancel: threading.Event) -> bool:
        return cancel is not self._cancel or cancel.is_set()

    # ===== Outbound =====

    def send(self, data: bytes) -> bool:
        """
        Queue ``data`` for transmission.

        Returns once the data is queued; it may not have been written yet.

        Args:
            data: Bytes to send.

        Returns:
            True if queued, False when not connected.
        """
        if not self.is_connected:
            logger.debug("Not connected, rejecting %d byte(s)", len(data))
            return False

        self._outbound.put_nowait(bytes(data))
        return True

    def _send_loop(
        self,
        transport: AbstractTransport,
        outbound: queue.Queue[bytes],
        cancel: threading.Event,
        settings: LinkSettings,
    ) -> None:
        logger.debug("Send loop started for %s", transport.port_name)
        while not cancel.is_set():
            try:
                self._send_next(transport, outbound, cancel, settings)
            except Exception:
                logger.exception("Event handler failed in send loop for %s", transport.port_name)
        logger.debug("Send loop stopped for %s", transport.port_name)

    def _send_next(
        self,
        transport: AbstractTransport,
        outbound: queue.Queue[bytes],
        cancel: threading.Event,
        settings: LinkSettings,
    ) -> None:
        if not transport.is_open:
            logger.info("Link to %s lost", transport.port_name)
            self._teardown_link(cancel)
            return

        try:
            data = outbound.get(timeout=settings.idle_interval)
        except queue.Empty:
            return

        if cancel.is_set():
            return

        try:
            written = transport.write(data, timeout=settings.send_timeout)
        except EasyConnectError as e:
            logger.warning("Dropping %d byte(s), write to %s failed: %s", len(data), transport.port_name, e)
            self._raise_error(str(e))
            return
        logger.debug("Wrote %d byte(s) to %s", written, transport.port_name)

    # ===== Inbound =====

    def read(self) -> bytes:
        """
        Drain the bytes received since the last read().

        Only bytes that were not pushed to on_data_received subscribers end
        up here.

        Returns:
            Received bytes in arrival order; b"" if there are none.
        """
        with self._buffer_lock:
            data = bytes(self._inbound)
            self._inbound.clear()
        return data

    def _on_data_ready(self, transport: AbstractTransport, cancel: threading.Event) -> None:
        if self._is_stale(cancel):
            return
        if not transport.is_open:
            self._teardown_link(cancel)
            return

        with self._drain_lock:
            if self._is_stale(cancel):
                return
            try:
                available = transport.bytes_available
                if available <= 0:
                    return
                data = transport.read(available, timeout=self._active_settings.receive_timeout)
            except EasyConnectError as e:
                logger.warning("Read from %s failed: %s", transport.port_name, e)
                self._raise_error(str(e))
                return

            # The handlers seen here are the ones that get the bytes, even if
            # one unsubscribes before they are called.
            with self._buffer_lock:
                handlers = self.on_data_received.handlers()
                if not handlers:
                    self._inbound.extend(data)

            if not handlers:
                logger.debug("Buffered %d byte(s) from %s", len(data), transport.port_name)
                return
            event = DataReceivedEvent(data=data)
            for handler in handlers:
                handler(event)

    # ===== Transport signals =====

    def _on_line_error(self, cancel: threading.Event, kind: LineError, detail: str) -> None:
        if self._is_stale(cancel):
            return
        self._raise_error(f"{kind.name}: {detail}" if detail else kind.name)

    def _on_pin_changed(self, cancel: threading.Event, pin: PinChange) -> None:
        if self._is_stale(cancel):
            return
        self.on_pin_changed.fire(PinChangedEvent(pin=pin))

    def _raise_error(self, message: str) -> None:
        self.on_error.fire(ErrorEvent(message=message))

    # ===== Context manager =====

    def __enter__(self) -> SerialConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit - releases the connection."""
        self.close()

    def __repr__(self) -> str:
        return (
            f"SerialConnection(port={self._port!r}, "
            f"baudrate={self._baudrate}, "
            f"state={self._state.name})"
        )
