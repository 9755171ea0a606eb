from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from decimal import Decimal

from app.rfidpos.core.config import Settings, settings
from app.rfidpos.core.error_catalog import ErrorCatalog, StateError
from app.rfidpos.core.logging import log_event
from app.rfidpos.domain.models import CartItem, DeviceSession, SaleResult
from app.rfidpos.schemas.exports import ExportDocument, ImportSummary
from app.rfidpos.schemas.invoices import CustomerDetails, Invoice
from app.rfidpos.services.activity_log import ActivityLog
from app.rfidpos.services.cart import CartSession
from app.rfidpos.services.data_transfer import DataTransferService
from app.rfidpos.services.debounce import TimerFactory
from app.rfidpos.services.input_classifier import ClassifierState, InputClassifier
from app.rfidpos.services.inventory import InventoryStore
from app.rfidpos.services.invoices import billing_settings_from, build_invoice
from app.rfidpos.services.scan_dispatcher import ScanDispatcher, ScanOutcome
from app.rfidpos.services.serial_channel import SerialDeviceChannel, SerialFactory
from app.rfidpos.services.transactions import TransactionProcessor

logger = logging.getLogger("rfidpos.terminal")

EVENT_SCAN = "scan"
EVENT_KILL_CONFIRMATION = "kill_confirmation"


@dataclass
class TerminalEvent:
    kind: str
    payload: dict
    future: Future = field(default_factory=Future)


_STOP = object()


class Terminal:
    """One checkout counter.

    Every catalog, cart and transaction mutation happens under one lock.
    Scans arriving from timers or the serial reader thread are queued and
    applied by a single consumer in the order they completed classification.
    """

    def __init__(
        self,
        session_factory,
        *,
        app_settings: Settings | None = None,
        serial_factory: SerialFactory | None = None,
        timer_factory: TimerFactory | None = None,
        clock=None,
    ) -> None:
        self.settings = app_settings or settings
        self._session_factory = session_factory
        self.activity = ActivityLog(session_factory, durable_limit=self.settings.ACTIVITY_LOG_DURABLE_LIMIT)
        self.inventory = InventoryStore(session_factory, on_activity=self.activity.add)
        self.cart = CartSession()
        self.dispatcher = ScanDispatcher(self.inventory, self.cart, on_activity=self.activity.add)
        self.channel = SerialDeviceChannel(
            on_frame=self.enqueue_scan,
            on_kill_confirmation=self._enqueue_kill_confirmation,
            port=self.settings.SERIAL_PORT,
            baudrate=self.settings.SERIAL_BAUDRATE,
            read_timeout=self.settings.SERIAL_READ_TIMEOUT_SEC,
            debounce_ms=self.settings.READER_DEBOUNCE_MS,
            serial_factory=serial_factory,
            timer_factory=timer_factory,
        )
        self.processor = TransactionProcessor(
            self.inventory,
            self.cart,
            session_factory,
            channel=self.channel,
            on_activity=self.activity.add,
            tax_rate=self.settings.TAX_RATE,
            kill_after_sale=self.settings.KILL_TAG_AFTER_SALE,
            kill_password=self.settings.KILL_PASSWORD,
        )
        self.transfer = DataTransferService(
            session_factory,
            self.inventory,
            self.processor,
            self.activity,
            version=self.settings.EXPORT_VERSION,
        )
        self.classifier = InputClassifier(
            self.enqueue_scan,
            debounce_ms=self.settings.READER_DEBOUNCE_MS,
            clock=clock,
            timer_factory=timer_factory,
        )
        self.billing = billing_settings_from(self.settings)
        self._lock = threading.RLock()
        self._events: queue.Queue = queue.Queue()
        self._consumer: threading.Thread | None = None

    def load(self) -> None:
        with self._lock:
            count = self.inventory.load()
            self.activity.load()
        log_event(logger, "terminal_loaded", products=count)
        self.activity.add("System initialized with saved data")

    def start(self) -> None:
        if self._consumer is not None and self._consumer.is_alive():
            return
        self._consumer = threading.Thread(target=self._consume, name="terminal-events", daemon=True)
        self._consumer.start()

    def stop(self, timeout: float = 5.0) -> None:
        self.classifier.reset()
        self.channel.disconnect()
        consumer = self._consumer
        if consumer is not None and consumer.is_alive():
            self._events.put(_STOP)
            consumer.join(timeout=timeout)
        self._consumer = None

    @property
    def running(self) -> bool:
        return self._consumer is not None and self._consumer.is_alive()

    def enqueue_scan(self, raw_tag: str, source: str) -> Future:
        event = TerminalEvent(kind=EVENT_SCAN, payload={"raw_tag": raw_tag, "source": source})
        self._events.put(event)
        return event.future

    def process_pending(self) -> int:
        """Apply queued events on the calling thread (used when no consumer runs)."""
        processed = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return processed
            if event is _STOP:
                self._events.put(_STOP)
                return processed
            self._apply(event)
            processed += 1

    def scan(self, raw_tag: str, source: str = "manual", timeout: float = 5.0) -> ScanOutcome | None:
        return self._await(self.enqueue_scan(raw_tag, source), timeout)

    def feed_input(self, value: str) -> ClassifierState:
        self.classifier.on_input(value)
        return self.classifier.state()

    def confirm_input(self, timeout: float = 5.0) -> ScanOutcome | None:
        future = self.classifier.confirm()
        if future is None:
            return None
        return self._await(future, timeout)

    def cart_items(self) -> list[CartItem]:
        with self._lock:
            return self.cart.items()

    def cart_total(self) -> Decimal:
        with self._lock:
            return self.cart.total()

    def remove_from_cart(self, tag_id: str) -> CartItem | None:
        with self._lock:
            item = self.cart.remove(tag_id)
        if item is not None:
            self.activity.add(f"Removed from cart: {item.name} (RFID: {tag_id})")
        return item

    def clear_cart(self) -> None:
        with self._lock:
            self.cart.clear()
        self.activity.add("Cart cleared")

    def checkout(self, **options) -> SaleResult:
        with self._lock:
            return self.processor.finalize(**options)

    def invoice_for(self, transaction_id: str, customer: CustomerDetails | None = None) -> Invoice:
        return build_invoice(self.processor.get(transaction_id), self.billing, customer)

    def add_product(self, spec):
        with self._lock:
            return self.inventory.add_product(spec)

    def update_product(self, tag_id: str, changes):
        with self._lock:
            return self.inventory.update_product(tag_id, changes)

    def connect_device(self, port: str | None = None) -> DeviceSession:
        session = self.channel.connect(port)
        self.activity.add("Serial RFID reader connected")
        return session

    def disconnect_device(self) -> DeviceSession:
        was_connected = self.channel.connected
        session = self.channel.disconnect()
        if was_connected:
            self.activity.add("Serial RFID reader disconnected")
        return session

    def export_document(self) -> ExportDocument:
        with self._lock:
            return self.transfer.export_document()

    def import_document(self, document: ExportDocument, source: str = "upload") -> ImportSummary:
        with self._lock:
            summary = self.transfer.import_document(document, source)
            if document.products is not None:
                self.cart.clear()
            return summary

    def wipe(self) -> None:
        with self._lock:
            self.transfer.wipe()
            self.cart.clear()

    def _enqueue_kill_confirmation(self, tag_id: str, confirmed: bool) -> None:
        self._events.put(
            TerminalEvent(kind=EVENT_KILL_CONFIRMATION, payload={"tag_id": tag_id, "confirmed": confirmed})
        )

    def _await(self, future: Future, timeout: float):
        if not self.running:
            self.process_pending()
        try:
            return future.result(timeout=timeout)
        except FutureTimeout as exc:
            log_event(logger, "terminal_event_timeout", timeout=timeout, pending=self._events.qsize())
            raise StateError(ErrorCatalog.TERMINAL_BUSY, details={"timeout": timeout}) from exc

    def _consume(self) -> None:
        while True:
            event = self._events.get()
            if event is _STOP:
                return
            self._apply(event)

    def _apply(self, event: TerminalEvent) -> None:
        try:
            with self._lock:
                if event.kind == EVENT_SCAN:
                    result = self.dispatcher.dispatch(**event.payload)
                else:
                    result = self._record_kill_confirmation(**event.payload)
        except Exception as exc:
            logger.exception("Terminal event failed: %s", event.kind)
            event.future.set_exception(exc)
        else:
            event.future.set_result(result)

    def _record_kill_confirmation(self, tag_id: str, confirmed: bool) -> bool:
        if confirmed:
            self.activity.add(f"Tag {tag_id} killed successfully")
        else:
            self.activity.add(f"Tag {tag_id} kill failed")
        return confirmed
