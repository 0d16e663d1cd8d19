"""
Mock transport for testing.

This module provides an in-memory transport that lets the connection layer
be tested without hardware. Inbound data is injected with feed(), which
raises the data-ready signal on the calling thread, the way a real port's
notification thread would. Outbound data is recorded for verification.

Example:
    >>> from easyconnect import SerialConnection
    >>> from easyconnect.transport import MockTransport
    >>>
    >>> mock = MockTransport()
    >>> conn = SerialConnection(transport_factory=lambda: mock)
    >>> conn.connect("COM_TEST", 9600)
    True
    >>> mock.feed(b"ABC")
    >>> conn.read()
    b'ABC'
"""

from __future__ import annotations

import threading
from collections import deque
from typing import ClassVar

from easyconnect.constants import LineError, PinChange
from easyconnect.exceptions import TimeoutError, TransportError
from easyconnect.models.settings import DEFAULT_FRAMING, Framing
from easyconnect.transport.abc import AbstractTransport


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    All state is guarded by one condition variable, so tests may drive the
    mock from their own thread while a connection's send loop writes to it.

    Attributes:
        written_data: List of all bytes successfully written.
        open_calls: Arguments of every open() call, as dicts.

    Example:
        >>> mock = MockTransport()
        >>> mock.open("mock://test", 9600)
        >>> mock.write(b"test")
        4
        >>> mock.written_data
        [b'test']
    """

    PORTS: ClassVar[list[str]] = ["mock://test"]
    """Port names returned by list_ports()."""

    def __init__(self) -> None:
        super().__init__()
        self._cond = threading.Condition()
        self._is_open = False
        self._port_name: str | None = None
        self._framing: Framing | None = None
        self._read_timeout: float | None = None
        self._write_timeout: float | None = None
        self._read_buffer = bytearray()
        self._written_data: list[bytes] = []
        self._open_failures: deque[Exception] = deque()
        self._write_failures: deque[Exception] = deque()
        self._read_failures: deque[Exception] = deque()
        self._close_failures: deque[Exception] = deque()
        self._write_gate = threading.Event()
        self._write_gate.set()
        self.open_calls: list[dict[str, object]] = []
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def port_name(self) -> str | None:
        """Get the port name passed to open()."""
        return self._port_name

    @property
    def framing(self) -> Framing | None:
        """Get the framing passed to open()."""
        return self._framing

    @property
    def bytes_available(self) -> int:
        """Get the number of fed bytes not yet read."""
        with self._cond:
            return len(self._read_buffer) if self._is_open else 0

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        with self._cond:
            return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        with self._cond:
            return self._written_data[-1] if self._written_data else None

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
        Open the mock transport.

        Raises:
            TransportError: If already open, or a failure was queued with fail_next_open().
        """
        with self._cond:
            self.open_calls.append(
                {
                    "port": port,
                    "baudrate": baudrate,
                    "framing": framing,
                    "read_timeout": read_timeout,
                    "write_timeout": write_timeout,
                }
            )
            if self._open_failures:
                raise self._open_failures.popleft()
            if self._is_open:
                raise TransportError("Mock transport already open")
            self._is_open = True
            self._port_name = port
            self._framing = framing
            self._read_timeout = read_timeout
            self._write_timeout = write_timeout

    def close(self) -> None:
        """
        Close the mock transport.

        Raises:
            Exception: A failure queued with fail_next_close(); the transport is closed anyway.
        """
        with self._cond:
            self.close_count += 1
            self._is_open = False
            self._cond.notify_all()
            if self._close_failures:
                raise self._close_failures.popleft()

    def write(self, data: bytes, timeout: float | None = None) -> int:
        """
        Write data to the mock transport.

        Blocks while writes are held with hold_writes().

        Raises:
            TransportError: If transport is not open.
            Exception: A failure queued with fail_next_write().
        """
        self._write_gate.wait()
        with self._cond:
            if not self._is_open:
                raise TransportError("Mock transport not open")
            if self._write_failures:
                raise self._write_failures.popleft()
            self._written_data.append(bytes(data))
            self._cond.notify_all()
        return len(data)

    def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read up to ``size`` fed bytes.

        Raises:
            TimeoutError: If no data has been fed.
            TransportError: If transport is not open.
            Exception: A failure queued with fail_next_read().
        """
        with self._cond:
            if not self._is_open:
                raise TransportError("Mock transport not open")
            if self._read_failures:
                raise self._read_failures.popleft()
            if size <= 0:
                return b""
            if not self._read_buffer:
                raise TimeoutError(
                    "No mock data available",
                    timeout_seconds=timeout if timeout is not None else self._read_timeout,
                )
            result = bytes(self._read_buffer[:size])
            del self._read_buffer[:size]
            return result

    @staticmethod
    def list_ports() -> list[str]:
        """List the mock port names."""
        return sorted(MockTransport.PORTS)

    # ===== Test controls =====

    def feed(self, data: bytes, *, notify: bool = True) -> None:
        """
        Make bytes available for reading, as if they arrived on the wire.

        Args:
            data: Bytes to deliver.
            notify: Raise the data-ready signal on the calling thread.
        """
        with self._cond:
            self._read_buffer.extend(data)
        if notify:
            self._signal_data_ready()

    def notify_data_ready(self) -> None:
        """Raise the data-ready signal without adding data."""
        self._signal_data_ready()

    def drop(self) -> None:
        """Simulate link loss: the port stops being open without close()."""
        with self._cond:
            self._is_open = False
            self._cond.notify_all()
        self._signal_data_ready()

    def raise_line_error(self, kind: LineError, detail: str = "") -> None:
        """Raise the error signal."""
        self._signal_error(kind, detail)

    def raise_pin_change(self, pin: PinChange) -> None:
        """Raise the pin-changed signal."""
        self._signal_pin_changed(pin)

    def fail_next_open(self, error: Exception) -> None:
        """Make the next open() raise ``error``."""
        with self._cond:
            self._open_failures.append(error)

    def fail_next_write(self, error: Exception) -> None:
        """Make the next write() raise ``error``; failures queue up in order."""
        with self._cond:
            self._write_failures.append(error)

    def fail_next_read(self, error: Exception) -> None:
        """Make the next read() raise ``error``."""
        with self._cond:
            self._read_failures.append(error)

    def fail_next_close(self, error: Exception) -> None:
        """Make the next close() raise ``error``."""
        with self._cond:
            self._close_failures.append(error)

    def hold_writes(self) -> None:
        """Block every write() until release_writes() is called."""
        self._write_gate.clear()

    def release_writes(self) -> None:
        """Let held writes proceed."""
        self._write_gate.set()

    def wait_for_writes(self, count: int, timeout: float = 2.0) -> bool:
        """
        Wait until at least ``count`` writes have been recorded.

        Returns:
            True if the count was reached before the timeout.
        """
        with self._cond:
            return self._cond.wait_for(lambda: len(self._written_data) >= count, timeout)

    def wait_until_closed(self, timeout: float = 2.0) -> bool:
        """Wait until the transport is no longer open."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._is_open, timeout)

    def clear(self) -> None:
        """Clear written data, pending input and queued failures."""
        with self._cond:
            self._written_data.clear()
            self._read_buffer.clear()
            self._open_failures.clear()
            self._write_failures.clear()
            self._read_failures.clear()
            self._close_failures.clear()

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        written = self.written_data
        if not written:
            raise AssertionError("No data written to mock transport")

        actual = written[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of successful write operations.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self.written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")


class ScriptedMockTransport(MockTransport):
    """
    Mock transport that answers scripted requests.

    Each write consumes the next script step: the written data is checked
    against the expected request (if any) and the scripted response is fed
    back as inbound data, raising the data-ready signal from the writing
    thread.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(request=b"PING\\r", response=b"PONG\\r")
    """

    def __init__(self) -> None:
        super().__init__()
        self._script: list[tuple[bytes | None, bytes]] = []
        self._script_index = 0

    def expect(
        self,
        response: bytes,
        request: bytes | None = None,
    ) -> None:
        """
        Add an expected request/response pair.

        Args:
            response: Bytes fed back after the matching write.
            request: Expected request (None to match any).
        """
        self._script.append((request, response))

    def write(self, data: bytes, timeout: float | None = None) -> int:
        """Write with script validation, then feed the scripted response."""
        response = None
        if self._script_index < len(self._script):
            expected_request, response = self._script[self._script_index]
            if expected_request is not None and data != expected_request:
                raise AssertionError(
                    f"Script mismatch at step {self._script_index}: "
                    f"expected {expected_request!r}, got {data!r}"
                )
            self._script_index += 1

        written = super().write(data, timeout)
        if response:
            self.feed(response)
        return written

    def reset_script(self) -> None:
        """Reset script to beginning."""
        self._script_index = 0

    def clear_script(self) -> None:
        """Clear all scripted expectations."""
        self._script.clear()
        self._script_index = 0
