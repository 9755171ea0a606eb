from datetime import datetime
from decimal import Decimal

from app.rfidpos.domain.models import CartItem, Transaction
from app.rfidpos.schemas.invoices import BillingSettings, CustomerDetails
from app.rfidpos.services.invoices import build_invoice


def _transaction() -> Transaction:
    return Transaction(
        id="ABCDEF012345",
        items=(
            CartItem(tag_id="RFID001", name="Test Product", code="TP001", price=Decimal("10.99")),
            CartItem(tag_id="RFID002", name="Second", code="TP002", price=Decimal("5.00"), category="Gifts"),
        ),
        subtotal=Decimal("15.99"),
        tax_rate=Decimal("8.5"),
        tax_amount=Decimal("1.36"),
        total=Decimal("17.35"),
        timestamp=datetime(2024, 5, 1, 12, 0),
        payment_method="card",
    )


def _billing(prefix: str = "INV") -> BillingSettings:
    return BillingSettings(
        company_name="Corner Shop",
        company_address="1 Main St",
        company_phone="555",
        company_email="shop@example.com",
        invoice_prefix=prefix,
    )


def test_invoice_projects_transaction_amounts() -> None:
    invoice = build_invoice(_transaction(), _billing(), CustomerDetails(name="Ada"))

    assert invoice.number == "INV-ABCDEF012345"
    assert invoice.customer_display_name == "Ada"
    assert [line.position for line in invoice.lines] == [1, 2]
    assert invoice.lines[1].category == "Gifts"
    assert invoice.total == Decimal("17.35")
    payload = invoice.model_dump(mode="json")
    assert payload["tax_amount"] == "1.36"
    assert payload["tax_rate"] == "8.5"


def test_invoice_without_prefix_or_customer() -> None:
    invoice = build_invoice(_transaction(), _billing(prefix=""))

    assert invoice.number == "ABCDEF012345"
    assert invoice.customer_display_name == "Walk-in Customer"
