from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

CENTS = Decimal("0.01")


class ProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class KillMode(str, Enum):
    SENT = "SENT"
    SIMULATED = "SIMULATED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CartItem:
    """Price snapshot of a product taken when it entered the cart."""

    tag_id: str
    name: str
    code: str
    price: Decimal
    category: str = "N/A"


@dataclass(frozen=True)
class Product:
    id: int
    tag_id: str
    name: str
    code: str
    price: Decimal
    category: str
    status: ProductStatus
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status is ProductStatus.ACTIVE

    def snapshot(self) -> CartItem:
        return CartItem(
            tag_id=self.tag_id,
            name=self.name,
            code=self.code,
            price=self.price,
            category=self.category,
        )

    def disabled(self) -> Product:
        return replace(self, status=ProductStatus.DISABLED)

    def with_changes(self, **changes) -> Product:
        return replace(self, **changes)


@dataclass(frozen=True)
class Transaction:
    id: str
    items: tuple[CartItem, ...]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    timestamp: datetime
    tags_killed: bool = False
    payment_method: str = "cash"

    @property
    def tag_ids(self) -> list[str]:
        return [item.tag_id for item in self.items]


@dataclass(frozen=True)
class KillRequest:
    tag_id: str
    mode: KillMode
    requested_at: datetime
    error: str | None = None


@dataclass(frozen=True)
class DeviceSession:
    connected: bool = False
    port: str | None = None
    opened_at: datetime | None = None


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class SaleResult:
    transaction: Transaction
    kill_requests: tuple[KillRequest, ...] = field(default_factory=tuple)
