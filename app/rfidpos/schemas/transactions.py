from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.rfidpos.domain.models import KillRequest, Transaction
from app.rfidpos.schemas.cart import CartItemResponse
from app.rfidpos.schemas.common import MoneyValue, RateValue
from app.rfidpos.schemas.invoices import CustomerDetails, Invoice


class CheckoutRequest(BaseModel):
    payment_method: Literal["cash", "card", "digital", "check"] = "cash"
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    kill_after_sale: bool | None = None
    kill_password: str | None = None
    customer: CustomerDetails | None = None


class TransactionResponse(BaseModel):
    id: str
    items: list[CartItemResponse]
    subtotal: MoneyValue
    tax_rate: RateValue
    tax_amount: MoneyValue
    total: MoneyValue
    timestamp: datetime
    tags_killed: bool
    payment_method: str

    @classmethod
    def from_domain(cls, transaction: Transaction) -> TransactionResponse:
        return cls(
            id=transaction.id,
            items=[CartItemResponse.from_domain(item) for item in transaction.items],
            subtotal=transaction.subtotal,
            tax_rate=transaction.tax_rate,
            tax_amount=transaction.tax_amount,
            total=transaction.total,
            timestamp=transaction.timestamp,
            tags_killed=transaction.tags_killed,
            payment_method=transaction.payment_method,
        )


class KillRequestResponse(BaseModel):
    tag_id: str
    mode: Literal["SENT", "SIMULATED", "FAILED"]
    requested_at: datetime
    error: str | None = None

    @classmethod
    def from_domain(cls, request: KillRequest) -> KillRequestResponse:
        return cls(
            tag_id=request.tag_id,
            mode=request.mode.value,
            requested_at=request.requested_at,
            error=request.error,
        )


class CheckoutResponse(BaseModel):
    transaction: TransactionResponse
    invoice: Invoice
    kill_requests: list[KillRequestResponse]


class TransactionListResponse(BaseModel):
    rows: list[TransactionResponse]
    total: int
