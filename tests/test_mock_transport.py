"""Tests for MockTransport."""

import threading

import pytest

from easyconnect.constants import LineError, PinChange
from easyconnect.exceptions import TimeoutError, TransportError
from easyconnect.models.settings import DEFAULT_FRAMING
from easyconnect.transport.mock import MockTransport, ScriptedMockTransport


class TestMockTransport:
    """Tests for MockTransport class."""

    @pytest.fixture
    def transport(self):
        """Create a MockTransport instance."""
        return MockTransport()

    def test_open_close(self, transport):
        """Test opening and closing transport."""
        assert not transport.is_open
        transport.open("mock://test", 9600)
        assert transport.is_open
        assert transport.port_name == "mock://test"
        transport.close()
        assert not transport.is_open
        assert transport.close_count == 1

    def test_open_records_arguments(self, transport):
        """Test that open() records its settings."""
        transport.open("COM_TEST", 9600, read_timeout=0.5, write_timeout=0.25)
        assert transport.open_calls == [
            {
                "port": "COM_TEST",
                "baudrate": 9600,
                "framing": DEFAULT_FRAMING,
                "read_timeout": 0.5,
                "write_timeout": 0.25,
            }
        ]
        assert transport.framing == DEFAULT_FRAMING

    def test_double_open_raises(self, transport):
        """Test that opening twice raises error."""
        transport.open("mock://test", 9600)
        with pytest.raises(TransportError):
            transport.open("mock://test", 9600)

    def test_fail_next_open(self, transport):
        """Test queued open failure."""
        transport.fail_next_open(TransportError("port busy"))
        with pytest.raises(TransportError, match="port busy"):
            transport.open("mock://test", 9600)
        assert not transport.is_open
        transport.open("mock://test", 9600)
        assert transport.is_open

    def test_write_records_data(self, transport):
        """Test that write records data."""
        transport.open("mock://test", 9600)
        assert transport.write(b"hello") == 5
        transport.write(b"world")
        assert transport.written_data == [b"hello", b"world"]
        assert transport.last_written == b"world"

    def test_write_when_closed_raises(self, transport):
        """Test that writing to closed transport raises."""
        with pytest.raises(TransportError):
            transport.write(b"test")

    def test_fail_next_write(self, transport):
        """Test queued write failure is raised once and not recorded."""
        transport.open("mock://test", 9600)
        transport.fail_next_write(TimeoutError("Write timed out", timeout_seconds=1.0))
        with pytest.raises(TimeoutError):
            transport.write(b"lost")
        transport.write(b"kept")
        assert transport.written_data == [b"kept"]

    def test_feed_and_read(self, transport):
        """Test reading fed data."""
        transport.open("mock://test", 9600)
        transport.feed(b"hello world", notify=False)
        assert transport.bytes_available == 11
        assert transport.read(5) == b"hello"
        assert transport.read(100) == b" world"
        assert transport.bytes_available == 0

    def test_read_no_data_raises(self, transport):
        """Test that reading with no data raises timeout."""
        transport.open("mock://test", 9600)
        with pytest.raises(TimeoutError):
            transport.read(1)

    def test_read_zero_bytes(self, transport):
        """Test that a zero-size read returns nothing."""
        transport.open("mock://test", 9600)
        assert transport.read(0) == b""

    def test_bytes_available_when_closed(self, transport):
        """Test that a closed transport reports no data."""
        transport.feed(b"abc", notify=False)
        assert transport.bytes_available == 0

    def test_feed_signals_data_ready(self, transport):
        """Test that feed raises the data-ready signal."""
        calls = []
        transport.on_data_ready = lambda: calls.append(transport.bytes_available)
        transport.open("mock://test", 9600)
        transport.feed(b"abc")
        assert calls == [3]

    def test_feed_without_handler(self, transport):
        """Test that signals without a bound handler are ignored."""
        transport.open("mock://test", 9600)
        transport.feed(b"abc")
        transport.raise_line_error(LineError.FRAME)
        transport.raise_pin_change(PinChange.RING)

    def test_line_error_and_pin_change_signals(self, transport):
        """Test error and pin-change signals reach their handlers."""
        errors, pins = [], []
        transport.on_error = lambda kind, detail: errors.append((kind, detail))
        transport.on_pin_changed = pins.append
        transport.raise_line_error(LineError.OVERRUN, "lost a byte")
        transport.raise_pin_change(PinChange.CTS_CHANGED)
        assert errors == [(LineError.OVERRUN, "lost a byte")]
        assert pins == [PinChange.CTS_CHANGED]

    def test_drop(self, transport):
        """Test simulated link loss."""
        calls = []
        transport.on_data_ready = lambda: calls.append(transport.is_open)
        transport.open("mock://test", 9600)
        transport.drop()
        assert not transport.is_open
        assert calls == [False]
        assert transport.close_count == 0

    def test_fail_next_close_still_closes(self, transport):
        """Test that a queued close failure is raised after closing."""
        transport.open("mock://test", 9600)
        transport.fail_next_close(TransportError("close failed"))
        with pytest.raises(TransportError):
            transport.close()
        assert not transport.is_open
        transport.close()  # Should not raise

    def test_hold_and_release_writes(self, transport):
        """Test that held writes block until released."""
        transport.open("mock://test", 9600)
        transport.hold_writes()
        writer = threading.Thread(target=transport.write, args=(b"held",))
        writer.start()

        assert not transport.wait_for_writes(1, timeout=0.1)
        transport.release_writes()
        assert transport.wait_for_writes(1, timeout=2.0)
        writer.join(2.0)
        assert transport.written_data == [b"held"]

    def test_clear(self, transport):
        """Test clearing transport state."""
        transport.open("mock://test", 9600)
        transport.write(b"test")
        transport.feed(b"\x86", notify=False)
        transport.fail_next_write(TransportError("never raised"))
        transport.clear()
        assert transport.written_data == []
        with pytest.raises(TimeoutError):
            transport.read(1)
        transport.write(b"ok")

    def test_list_ports(self):
        """Test static port listing."""
        assert MockTransport.list_ports() == ["mock://test"]

    def test_context_manager(self):
        """Test context manager protocol closes the transport."""
        transport = MockTransport()
        transport.open("mock://test", 9600)
        with transport:
            assert transport.is_open
        assert not transport.is_open

    def test_assert_written(self, transport):
        """Test assert_written helper."""
        transport.open("mock://test", 9600)
        transport.write(b"test")
        transport.assert_written(b"test")
        transport.assert_written(b"test", 0)
        transport.assert_written(b"test", -1)

    def test_assert_written_fails(self, transport):
        """Test assert_written raises on mismatch."""
        transport.open("mock://test", 9600)
        with pytest.raises(AssertionError):
            transport.assert_written(b"anything")
        transport.write(b"test")
        with pytest.raises(AssertionError):
            transport.assert_written(b"wrong")

    def test_assert_write_count(self, transport):
        """Test assert_write_count helper."""
        transport.open("mock://test", 9600)
        transport.write(b"a")
        transport.write(b"b")
        transport.assert_write_count(2)
        with pytest.raises(AssertionError):
            transport.assert_write_count(3)


class TestScriptedMockTransport:
    """Tests for ScriptedMockTransport class."""

    @pytest.fixture
    def transport(self):
        """Create an open ScriptedMockTransport instance."""
        transport = ScriptedMockTransport()
        transport.open("mock://scripted", 9600)
        return transport

    def test_scripted_responses(self, transport):
        """Test scripted request/response pairs."""
        transport.expect(response=b"\x86", request=b"request1")
        transport.expect(response=b"\x87", request=b"request2")

        transport.write(b"request1")
        assert transport.read(1) == b"\x86"

        transport.write(b"request2")
        assert transport.read(1) == b"\x87"

    def test_scripted_response_signals_data_ready(self, transport):
        """Test that a scripted response raises data ready."""
        seen = []
        transport.on_data_ready = lambda: seen.append(transport.read(transport.bytes_available))
        transport.expect(response=b"PONG")
        transport.write(b"PING")
        assert seen == [b"PONG"]

    def test_scripted_any_request(self, transport):
        """Test scripted response for any request."""
        transport.expect(response=b"\x86")  # No specific request

        transport.write(b"anything")
        assert transport.read(1) == b"\x86"

    def test_scripted_wrong_request_raises(self, transport):
        """Test that wrong request raises assertion."""
        transport.expect(response=b"\x86", request=b"expected")

        with pytest.raises(AssertionError) as exc_info:
            transport.write(b"wrong")
        assert "Script mismatch" in str(exc_info.value)
        assert transport.written_data == []

    def test_write_beyond_script(self, transport):
        """Test that writes past the end of the script just get recorded."""
        transport.write(b"extra")
        assert transport.written_data == [b"extra"]
        assert transport.bytes_available == 0

    def test_reset_script(self, transport):
        """Test resetting script to beginning."""
        transport.expect(response=b"\x86")
        transport.expect(response=b"\x87")

        transport.write(b"a")
        transport.read(1)

        transport.reset_script()

        transport.write(b"b")
        assert transport.read(1) == b"\x86"  # Back to first response

    def test_clear_script(self, transport):
        """Test clearing the script."""
        transport.expect(response=b"\x86")
        transport.clear_script()
        transport.write(b"a")
        assert transport.bytes_available == 0
