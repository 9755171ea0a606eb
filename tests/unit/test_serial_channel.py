import threading

import pytest
import serial

from app.rfidpos.core.error_catalog import DeviceError, ErrorCatalog, ValidationError
from app.rfidpos.services.serial_channel import SerialDeviceChannel, build_kill_frame, validate_kill_password
from tests.rfidpos_helpers import FakeSerialFactory, FakeTimerFactory, wait_for


class _Recorder:
    def __init__(self):
        self.frames: list[tuple[str, str]] = []
        self.confirmations: list[tuple[str, bool]] = []

    def on_frame(self, frame: str, source: str) -> None:
        self.frames.append((frame, source))

    def on_kill_confirmation(self, tag_id: str, confirmed: bool) -> None:
        self.confirmations.append((tag_id, confirmed))


def _channel(recorder: _Recorder, ports: FakeSerialFactory, timers: FakeTimerFactory, port: str = "loop://") -> SerialDeviceChannel:
    return SerialDeviceChannel(
        on_frame=recorder.on_frame,
        on_kill_confirmation=recorder.on_kill_confirmation,
        port=port,
        read_timeout=0.01,
        debounce_ms=100,
        serial_factory=ports,
        timer_factory=timers,
    )


@pytest.fixture()
def parts():
    recorder = _Recorder()
    ports = FakeSerialFactory()
    timers = FakeTimerFactory()
    channel = _channel(recorder, ports, timers)
    yield channel, recorder, ports, timers
    channel.disconnect()


def test_connect_opens_port_and_reports_session(parts) -> None:
    channel, _recorder, ports, _timers = parts

    session = channel.connect()

    assert session.connected
    assert session.port == "loop://"
    assert ports.calls == [("loop://", {"baudrate": 9600, "timeout": 0.01})]


def test_connect_without_port_is_unavailable() -> None:
    channel = _channel(_Recorder(), FakeSerialFactory(), FakeTimerFactory(), port="")

    with pytest.raises(DeviceError) as exc:
        channel.connect()

    assert exc.value.error is ErrorCatalog.DEVICE_UNAVAILABLE
    assert not channel.connected


def test_connect_failure_is_unavailable() -> None:
    ports = FakeSerialFactory(error=serial.SerialException("permission denied"))
    channel = _channel(_Recorder(), ports, FakeTimerFactory())

    with pytest.raises(DeviceError) as exc:
        channel.connect()

    assert exc.value.error is ErrorCatalog.DEVICE_UNAVAILABLE
    assert exc.value.details["reason"] == "permission denied"


def test_second_connect_is_rejected(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()

    with pytest.raises(DeviceError) as exc:
        channel.connect()

    assert exc.value.error is ErrorCatalog.DEVICE_UNAVAILABLE
    assert len(ports.ports) == 1


def test_frames_are_dispatched_after_debounce_in_arrival_order(parts) -> None:
    channel, recorder, ports, timers = parts
    channel.connect()

    ports.last.feed(b"RFID001\n")
    ports.last.feed(b"RFID002\r\n")
    assert wait_for(lambda: len(timers.timers) == 2)
    assert recorder.frames == []

    timers.fire_all()

    assert recorder.frames == [("RFID001", "serial"), ("RFID002", "serial")]


def test_partial_frames_are_joined_until_newline(parts) -> None:
    channel, recorder, ports, timers = parts
    channel.connect()

    ports.last.feed(b"RFI")
    ports.last.feed(b"D001\n")
    assert wait_for(lambda: len(timers.timers) == 1)
    timers.fire_all()

    assert recorder.frames == [("RFID001", "serial")]


def test_kill_confirmation_frames_bypass_scan_dispatch(parts) -> None:
    channel, recorder, ports, timers = parts
    channel.connect()

    ports.last.feed(b"KILLED:RFID001\n")
    ports.last.feed(b"KILL_FAILED:RFID002\n")
    assert wait_for(lambda: len(recorder.confirmations) == 2)

    assert recorder.confirmations == [("RFID001", True), ("RFID002", False)]
    assert timers.timers == []
    assert recorder.frames == []


def test_disconnect_is_idempotent_and_closes_handle(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()
    handle = ports.last

    first = channel.disconnect()
    second = channel.disconnect()

    assert first == second
    assert first.connected is False
    assert handle.is_open is False
    assert handle.close_calls == 1


def test_disconnect_flushes_frames_waiting_for_debounce(parts) -> None:
    channel, recorder, ports, timers = parts
    channel.connect()
    ports.last.feed(b"RFID001\n")
    assert wait_for(lambda: len(timers.timers) == 1)

    channel.disconnect()

    assert recorder.frames == [("RFID001", "serial")]


def test_stream_end_releases_session(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()

    ports.last.end_stream()

    assert wait_for(lambda: not channel.connected)
    assert channel.session().port is None


def test_read_error_releases_session(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()
    handle = ports.last

    handle.fail_read(serial.SerialException("device reports readiness to read but returned no data"))

    assert wait_for(lambda: not channel.connected)
    assert handle.close_calls == 1


def test_unexpected_read_failure_is_not_reported_as_device_error(parts, monkeypatch) -> None:
    channel, _recorder, ports, _timers = parts
    raised: list[type] = []
    monkeypatch.setattr(threading, "excepthook", lambda args: raised.append(args.exc_type))
    channel.connect()

    ports.last.fail_read(TypeError("bad chunk"))

    assert wait_for(lambda: raised == [TypeError])
    assert not channel.connected


def test_reconnect_after_disconnect(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()
    channel.disconnect()

    assert channel.connect().connected
    assert len(ports.ports) == 2


def test_send_kill_command_writes_protocol_frame(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()

    channel.send_kill_command("RFID001", "00000000")

    assert ports.last.written == [b"KILL:RFID001:00000000\n"]


def test_send_kill_command_without_connection_fails() -> None:
    channel = _channel(_Recorder(), FakeSerialFactory(), FakeTimerFactory())

    with pytest.raises(DeviceError) as exc:
        channel.send_kill_command("RFID001")

    assert exc.value.error is ErrorCatalog.DEVICE_WRITE_ERROR


def test_send_kill_command_write_failure(parts) -> None:
    channel, _recorder, ports, _timers = parts
    channel.connect()
    ports.last.fail_writes = True

    with pytest.raises(DeviceError) as exc:
        channel.send_kill_command("RFID001")

    assert exc.value.error is ErrorCatalog.DEVICE_WRITE_ERROR


@pytest.mark.parametrize("password", ["", "1234567", "123456789", "ZZZZZZZZ"])
def test_kill_password_must_be_eight_hex_characters(password) -> None:
    with pytest.raises(ValidationError) as exc:
        validate_kill_password(password)

    assert exc.value.error is ErrorCatalog.INVALID_KILL_PASSWORD


def test_kill_frame_format() -> None:
    assert validate_kill_password("deadBEEF") == "DEADBEEF"
    assert build_kill_frame("E200-01", "DEADBEEF") == b"KILL:E200-01:DEADBEEF\n"
