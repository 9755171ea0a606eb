import queue
import threading
import time

import serial
from sqlalchemy.exc import OperationalError


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeTimer:
    def __init__(self, seconds: float, callback):
        self.seconds = seconds
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


class FakeTimerFactory:
    def __init__(self):
        self.timers: list[FakeTimer] = []
        self._lock = threading.Lock()

    def __call__(self, seconds: float, callback) -> FakeTimer:
        timer = FakeTimer(seconds, callback)
        with self._lock:
            self.timers.append(timer)
        return timer

    def live(self) -> list[FakeTimer]:
        with self._lock:
            return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def fire_all(self) -> int:
        fired = 0
        for timer in self.live():
            timer.fire()
            fired += 1
        return fired


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSerialPort:
    def __init__(self, read_timeout: float = 0.01):
        self.is_open = True
        self.read_timeout = read_timeout
        self.written: list[bytes] = []
        self.fail_writes = False
        self.close_calls = 0
        self._chunks: queue.Queue = queue.Queue()

    def feed(self, data: bytes) -> None:
        self._chunks.put(data)

    def end_stream(self) -> None:
        self.is_open = False

    def fail_read(self, error: Exception) -> None:
        self._chunks.put(error)

    def readline(self) -> bytes:
        try:
            chunk = self._chunks.get(timeout=self.read_timeout)
        except queue.Empty:
            return b""
        if isinstance(chunk, Exception):
            raise chunk
        return chunk

    def write(self, data: bytes) -> int:
        if self.fail_writes:
            raise serial.SerialException("write timeout")
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False


class FakeSerialFactory:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.ports: list[FakeSerialPort] = []
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, port: str, **kwargs) -> FakeSerialPort:
        self.calls.append((port, kwargs))
        if self.error is not None:
            raise self.error
        handle = FakeSerialPort()
        self.ports.append(handle)
        return handle

    @property
    def last(self) -> FakeSerialPort:
        return self.ports[-1]


class FlakySessionFactory:
    """Wraps a session factory; while ``fail_commit`` is set every commit raises."""

    def __init__(self, factory):
        self.factory = factory
        self.fail_commit = False

    def __call__(self):
        session = self.factory()
        if self.fail_commit:
            def _fail():
                raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

            session.commit = _fail
        return session


def product_spec(tag_id: str = "RFID001", name: str = "Test Product", code: str = "TP001", price="10.99", **extra):
    spec = {"tag_id": tag_id, "name": name, "code": code, "price": price}
    spec.update(extra)
    return spec
