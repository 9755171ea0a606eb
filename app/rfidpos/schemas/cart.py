from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from app.rfidpos.domain.models import CartItem
from app.rfidpos.schemas.common import MoneyValue
from app.rfidpos.schemas.products import ProductResponse


class CartItemResponse(BaseModel):
    tag_id: str
    name: str
    code: str
    price: MoneyValue
    category: str

    @classmethod
    def from_domain(cls, item: CartItem) -> CartItemResponse:
        return cls(tag_id=item.tag_id, name=item.name, code=item.code, price=item.price, category=item.category)


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    count: int
    total: MoneyValue


class ScanRequest(BaseModel):
    tag_id: str
    source: Literal["manual", "reader", "serial"] = "manual"


class ScanResponse(BaseModel):
    outcome: Literal["ADDED", "NOT_FOUND", "ALREADY_SOLD", "ALREADY_IN_CART", "IGNORED"]
    tag_id: str | None
    message: str
    product: ProductResponse | None = None
    cart: CartResponse


class ScanInputRequest(BaseModel):
    value: str
    confirm: bool = False


class ScanInputResponse(BaseModel):
    mode: Literal["MANUAL", "READER_BURST"]
    buffer: str
    auto_submit_pending: bool
    scan: ScanResponse | None = None
