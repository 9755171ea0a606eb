from __future__ import annotations

from app.rfidpos.core.config import Settings
from app.rfidpos.domain.models import Transaction
from app.rfidpos.schemas.invoices import BillingSettings, CustomerDetails, Invoice, InvoiceLine

WALK_IN_CUSTOMER = "Walk-in Customer"


def billing_settings_from(app_settings: Settings) -> BillingSettings:
    return BillingSettings(
        company_name=app_settings.COMPANY_NAME,
        company_address=app_settings.COMPANY_ADDRESS,
        company_phone=app_settings.COMPANY_PHONE,
        company_email=app_settings.COMPANY_EMAIL,
        invoice_prefix=app_settings.INVOICE_PREFIX,
        terms=app_settings.INVOICE_TERMS,
    )


def invoice_number(prefix: str, transaction_id: str) -> str:
    return f"{prefix}-{transaction_id}" if prefix else transaction_id


def build_invoice(
    transaction: Transaction,
    billing: BillingSettings,
    customer: CustomerDetails | None = None,
) -> Invoice:
    """Read-only projection of a committed transaction; amounts are never recomputed."""
    customer = customer or CustomerDetails()
    return Invoice(
        number=invoice_number(billing.invoice_prefix, transaction.id),
        transaction_id=transaction.id,
        issued_at=transaction.timestamp,
        company=billing,
        customer=customer,
        customer_display_name=customer.name.strip() or WALK_IN_CUSTOMER,
        lines=[
            InvoiceLine(
                position=position,
                tag_id=item.tag_id,
                name=item.name,
                code=item.code,
                category=item.category,
                price=item.price,
            )
            for position, item in enumerate(transaction.items, start=1)
        ],
        subtotal=transaction.subtotal,
        tax_rate=transaction.tax_rate,
        tax_amount=transaction.tax_amount,
        total=transaction.total,
        payment_method=transaction.payment_method,
        tags_killed=transaction.tags_killed,
    )
