from decimal import Decimal

import pytest

from app.rfidpos.core.config import Settings
from app.rfidpos.core.error_catalog import ErrorCatalog, StateError
from app.rfidpos.domain.models import ProductStatus
from app.rfidpos.schemas.exports import ExportDocument
from app.rfidpos.services.terminal import Terminal
from tests.rfidpos_helpers import FakeSerialFactory, FakeTimerFactory, product_spec, wait_for


@pytest.fixture()
def timers():
    return FakeTimerFactory()


@pytest.fixture()
def ports():
    return FakeSerialFactory()


@pytest.fixture()
def terminal(session_factory, app_settings, timers, ports):
    terminal = Terminal(session_factory, app_settings=app_settings, serial_factory=ports, timer_factory=timers)
    terminal.load()
    terminal.add_product(product_spec())
    terminal.add_product(product_spec(tag_id="RFID002", name="Second", code="TP002", price="5.00"))
    yield terminal
    terminal.stop()


def test_scan_without_consumer_applies_inline(terminal) -> None:
    outcome = terminal.scan("RFID001")

    assert outcome.outcome == "ADDED"
    assert terminal.cart_total() == Decimal("10.99")


def test_reader_burst_auto_submits_through_queue(terminal, timers) -> None:
    terminal.feed_input("R")
    state = terminal.feed_input("RFID001")
    assert state.auto_submit_pending

    timers.fire_all()
    terminal.process_pending()

    assert [item.tag_id for item in terminal.cart_items()] == ["RFID001"]
    assert terminal.classifier.state().buffer == ""
    assert "Added to cart: Test Product - 10.99 (RFID Reader)" in terminal.activity.lines()[-1]


def test_confirm_input_returns_outcome(terminal) -> None:
    terminal.feed_input("N")
    terminal.feed_input("NO")

    outcome = terminal.confirm_input()

    assert outcome.outcome == "NOT_FOUND"
    assert terminal.confirm_input() is None


def test_stalled_consumer_reports_terminal_busy(terminal) -> None:
    terminal.start()

    with terminal._lock:
        with pytest.raises(StateError) as exc:
            terminal.scan("RFID001", timeout=0.05)

    assert exc.value.error is ErrorCatalog.TERMINAL_BUSY
    assert exc.value.error.status_code == 503
    assert wait_for(lambda: [item.tag_id for item in terminal.cart_items()] == ["RFID001"])


def test_serial_and_manual_scans_share_one_ordered_queue(terminal, timers, ports) -> None:
    terminal.start()
    terminal.connect_device("loop://")
    ports.last.feed(b"RFID002\n")
    assert wait_for(lambda: len(timers.live()) == 1)
    timers.fire_all()

    outcome = terminal.scan("RFID001", "manual")

    assert outcome.outcome == "ADDED"
    assert [item.tag_id for item in terminal.cart_items()] == ["RFID002", "RFID001"]


def test_kill_confirmation_is_logged(terminal, ports) -> None:
    terminal.start()
    terminal.connect_device("loop://")

    ports.last.feed(b"KILLED:RFID001\n")

    assert wait_for(lambda: any("Tag RFID001 killed successfully" in line for line in terminal.activity.lines()))


def test_checkout_end_to_end(terminal) -> None:
    terminal.scan("RFID001")

    result = terminal.checkout(tax_rate=Decimal("0"))

    assert result.transaction.total == Decimal("10.99")
    assert terminal.inventory.require("RFID001").status is ProductStatus.DISABLED
    assert terminal.scan("RFID001").outcome == "ALREADY_SOLD"
    invoice = terminal.invoice_for(result.transaction.id)
    assert invoice.number == f"INV-{result.transaction.id}"
    assert invoice.customer_display_name == "Walk-in Customer"


def test_kill_after_sale_setting_without_device_degrades_to_simulation(session_factory, database_url, timers, ports) -> None:
    settings = Settings(_env_file=None, DATABASE_URL=database_url, KILL_TAG_AFTER_SALE=True)
    terminal = Terminal(session_factory, app_settings=settings, serial_factory=ports, timer_factory=timers)
    terminal.load()
    terminal.add_product(product_spec())
    terminal.scan("RFID001")

    result = terminal.checkout()

    assert result.transaction.tags_killed
    assert result.kill_requests[0].mode.value == "SIMULATED"
    assert any("SIMULATED: Tag RFID001" in line for line in terminal.activity.lines())


def test_import_replaces_collections_and_clears_cart(terminal) -> None:
    terminal.scan("RFID001")
    terminal.checkout()
    terminal.scan("RFID002")

    document = ExportDocument.model_validate(
        {
            "products": [
                {
                    "tagId": "NEW001",
                    "name": "Imported",
                    "code": "IM1",
                    "price": "3.50",
                    "status": "active",
                    "createdAt": "2024-01-01T10:00:00",
                }
            ],
            "logs": ["[10:00:00] imported line"],
        }
    )

    summary = terminal.import_document(document, "backup.json")

    assert summary.products == 1
    assert summary.transactions is None
    assert [product.tag_id for product in terminal.inventory.list(include_sold=True)] == ["NEW001"]
    assert len(terminal.cart_items()) == 0
    assert len(terminal.processor.list_transactions()) == 1
    assert terminal.activity.lines()[0] == "[10:00:00] imported line"
    assert terminal.activity.lines()[-1].endswith("Data imported from backup.json")


def test_export_then_import_round_trip_preserves_history(terminal) -> None:
    terminal.scan("RFID001")
    sale = terminal.checkout().transaction

    document = terminal.export_document()
    terminal.wipe()
    assert terminal.inventory.list(include_sold=True) == []
    assert terminal.processor.list_transactions() == []

    terminal.import_document(ExportDocument.model_validate_json(document.model_dump_json(by_alias=True)))

    assert terminal.inventory.require("RFID001").status is ProductStatus.DISABLED
    assert terminal.processor.get(sale.id).total == sale.total
    assert document.version == "1.0"
