from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from datetime import datetime

import serial

from app.rfidpos.core.error_catalog import DeviceError, ErrorCatalog, ValidationError
from app.rfidpos.core.logging import log_event
from app.rfidpos.domain.models import DeviceSession
from app.rfidpos.services.debounce import Debouncer, TimerFactory

logger = logging.getLogger("rfidpos.serial")

SOURCE_SERIAL = "serial"
KILL_PASSWORD_PATTERN = re.compile(r"^[0-9A-Fa-f]{8}$")
KILL_CONFIRMED_PREFIX = "KILLED:"
KILL_FAILED_PREFIX = "KILL_FAILED:"

SerialFactory = Callable[..., object]


def validate_kill_password(password: str) -> str:
    if not isinstance(password, str) or not KILL_PASSWORD_PATTERN.match(password):
        raise ValidationError(ErrorCatalog.INVALID_KILL_PASSWORD, details={"length": len(password or "")})
    return password.upper()


def build_kill_frame(tag_id: str, password: str) -> bytes:
    return f"KILL:{tag_id}:{password}\n".encode("utf-8")


def open_serial_port(port: str, *, baudrate: int, timeout: float):
    return serial.serial_for_url(
        port,
        baudrate=baudrate,
        timeout=timeout,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
    )


class SerialDeviceChannel:
    """Line-protocol connection to a wired RFID reader/writer.

    Inbound bytes are split into newline-terminated UTF-8 frames. Each frame
    is a raw tag read and is handed to ``on_frame`` after a short debounce so
    that both scan paths share dispatch timing. ``KILLED:<tag>`` and
    ``KILL_FAILED:<tag>`` frames are kill confirmations and go to
    ``on_kill_confirmation`` instead.
    """

    def __init__(
        self,
        *,
        on_frame: Callable[[str, str], None],
        on_kill_confirmation: Callable[[str, bool], None] | None = None,
        port: str = "",
        baudrate: int = 9600,
        read_timeout: float = 0.2,
        debounce_ms: int = 100,
        serial_factory: SerialFactory | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._on_frame = on_frame
        self._on_kill_confirmation = on_kill_confirmation
        self.default_port = port
        self.baudrate = baudrate
        self.read_timeout = read_timeout
        self._serial_factory = serial_factory or open_serial_port
        self._debouncer = Debouncer(debounce_ms, self._flush_frames, timer_factory)
        self._lock = threading.RLock()
        self._write_lock = threading.Lock()
        self._frames_lock = threading.Lock()
        self._pending_frames: list[str] = []
        self._handle = None
        self._port_name: str | None = None
        self._opened_at: datetime | None = None
        self._stop_event: threading.Event | None = None
        self._reader: threading.Thread | None = None

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._handle is not None

    def session(self) -> DeviceSession:
        with self._lock:
            return DeviceSession(
                connected=self._handle is not None,
                port=self._port_name,
                opened_at=self._opened_at,
            )

    def connect(self, port: str | None = None) -> DeviceSession:
        target = (port or self.default_port or "").strip()
        with self._lock:
            if self._handle is not None:
                raise DeviceError(
                    ErrorCatalog.DEVICE_UNAVAILABLE,
                    details={"message": "a serial connection is already open", "port": self._port_name},
                )
            if not target:
                raise DeviceError(ErrorCatalog.DEVICE_UNAVAILABLE, details={"message": "no serial port configured"})
            try:
                handle = self._serial_factory(target, baudrate=self.baudrate, timeout=self.read_timeout)
            except (serial.SerialException, OSError, ValueError) as exc:
                log_event(logger, "device_connect_failed", port=target, error=str(exc))
                raise DeviceError(
                    ErrorCatalog.DEVICE_UNAVAILABLE,
                    details={"port": target, "reason": str(exc)},
                ) from exc
            stop_event = threading.Event()
            self._handle = handle
            self._port_name = target
            self._opened_at = datetime.utcnow()
            self._stop_event = stop_event
            self._reader = threading.Thread(
                target=self._read_loop,
                args=(handle, stop_event),
                name=f"serial-reader-{target}",
                daemon=True,
            )
            self._reader.start()
        log_event(logger, "device_connected", port=target, baudrate=self.baudrate)
        return self.session()

    def disconnect(self) -> DeviceSession:
        with self._lock:
            handle = self._handle
            stop_event = self._stop_event
            reader = self._reader
            port = self._port_name
            self._handle = None
            self._port_name = None
            self._opened_at = None
            self._stop_event = None
            self._reader = None
        if handle is None:
            return self.session()
        stop_event.set()
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=max(self.read_timeout * 5, 1.0))
        self._close_handle(handle)
        self._debouncer.cancel()
        self._flush_frames()
        log_event(logger, "device_disconnected", port=port)
        return self.session()

    def send_kill_command(self, tag_id: str, password: str = "00000000") -> None:
        password = validate_kill_password(password)
        with self._lock:
            handle = self._handle
        if handle is None:
            raise DeviceError(ErrorCatalog.DEVICE_WRITE_ERROR, details={"message": "no serial connection", "tag_id": tag_id})
        frame = build_kill_frame(tag_id, password)
        try:
            with self._write_lock:
                handle.write(frame)
                handle.flush()
        except (serial.SerialException, OSError) as exc:
            log_event(logger, "device_write_failed", tag_id=tag_id, error=str(exc))
            raise DeviceError(
                ErrorCatalog.DEVICE_WRITE_ERROR,
                details={"tag_id": tag_id, "reason": str(exc)},
            ) from exc
        log_event(logger, "kill_command_sent", tag_id=tag_id)

    def _read_loop(self, handle, stop_event: threading.Event) -> None:
        partial = b""
        try:
            while not stop_event.is_set():
                if not getattr(handle, "is_open", True):
                    break
                chunk = handle.readline()
                if not chunk:
                    continue
                partial += chunk
                if not partial.endswith(b"\n"):
                    continue
                frame = partial.decode("utf-8", errors="replace").strip()
                partial = b""
                if frame:
                    self._handle_frame(frame)
        except (serial.SerialException, OSError) as exc:
            if not stop_event.is_set():
                log_event(
                    logger,
                    "device_read_error",
                    code=ErrorCatalog.DEVICE_READ_ERROR.code,
                    error=str(exc),
                )
        finally:
            self._release_after_loop(handle)

    def _handle_frame(self, frame: str) -> None:
        if frame.startswith(KILL_CONFIRMED_PREFIX) or frame.startswith(KILL_FAILED_PREFIX):
            confirmed = frame.startswith(KILL_CONFIRMED_PREFIX)
            tag_id = frame.split(":", 1)[1].strip()
            log_event(logger, "kill_confirmation", tag_id=tag_id, confirmed=confirmed)
            if self._on_kill_confirmation is not None and tag_id:
                self._on_kill_confirmation(tag_id, confirmed)
            return
        log_event(logger, "serial_frame", frame=frame)
        with self._frames_lock:
            self._pending_frames.append(frame)
        self._debouncer.trigger()

    def _flush_frames(self) -> None:
        with self._frames_lock:
            frames = self._pending_frames
            self._pending_frames = []
        for frame in frames:
            self._on_frame(frame, SOURCE_SERIAL)

    def _release_after_loop(self, handle) -> None:
        # Stream end or read error: drop the session if it still belongs to this loop.
        with self._lock:
            owned = self._handle is handle
            if owned:
                self._handle = None
                self._port_name = None
                self._opened_at = None
                self._stop_event = None
                self._reader = None
        self._close_handle(handle)
        if owned:
            log_event(logger, "device_stream_closed")

    @staticmethod
    def _close_handle(handle) -> None:
        try:
            if getattr(handle, "is_open", True):
                handle.close()
        except (serial.SerialException, OSError) as exc:
            logger.warning("Failed to close serial handle: %s", exc)
