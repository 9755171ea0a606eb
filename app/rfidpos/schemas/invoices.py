from datetime import datetime

from pydantic import BaseModel, Field

from app.rfidpos.schemas.common import MoneyValue, RateValue


class CustomerDetails(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_id: str = ""


class BillingSettings(BaseModel):
    company_name: str
    company_address: str
    company_phone: str
    company_email: str
    invoice_prefix: str = "INV"
    terms: str = ""


class InvoiceLine(BaseModel):
    position: int
    tag_id: str
    name: str
    code: str
    category: str
    price: MoneyValue


class Invoice(BaseModel):
    number: str
    transaction_id: str
    issued_at: datetime
    company: BillingSettings
    customer: CustomerDetails
    customer_display_name: str
    lines: list[InvoiceLine] = Field(default_factory=list)
    subtotal: MoneyValue
    tax_rate: RateValue
    tax_amount: MoneyValue
    total: MoneyValue
    payment_method: str
    tags_killed: bool
