from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.rfidpos.domain.models import CartItem, Product, ProductStatus, Transaction
from app.rfidpos.schemas.common import MoneyValue, RateValue


class ExportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportProduct(ExportModel):
    tag_id: str
    name: str
    code: str
    price: MoneyValue
    category: str = "N/A"
    status: Literal["ACTIVE", "DISABLED"] = "ACTIVE"
    created_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_domain(cls, product: Product) -> ExportProduct:
        return cls(
            tag_id=product.tag_id,
            name=product.name,
            code=product.code,
            price=product.price,
            category=product.category,
            status=product.status.value,
            created_at=product.created_at,
        )

    def to_domain(self) -> Product:
        return Product(
            id=0,
            tag_id=self.tag_id,
            name=self.name,
            code=self.code,
            price=self.price,
            category=self.category,
            status=ProductStatus(self.status),
            created_at=self.created_at,
        )


class ExportTransactionItem(ExportModel):
    tag_id: str
    name: str
    code: str
    price: MoneyValue
    category: str = "N/A"


class ExportTransaction(ExportModel):
    id: str = Field(min_length=1, max_length=32)
    items: list[ExportTransactionItem]
    subtotal: MoneyValue
    tax_rate: RateValue
    tax_amount: MoneyValue
    total: MoneyValue
    timestamp: datetime
    tags_killed: bool = False
    payment_method: str = "cash"

    @classmethod
    def from_domain(cls, transaction: Transaction) -> ExportTransaction:
        return cls(
            id=transaction.id,
            items=[
                ExportTransactionItem(
                    tag_id=item.tag_id,
                    name=item.name,
                    code=item.code,
                    price=item.price,
                    category=item.category,
                )
                for item in transaction.items
            ],
            subtotal=transaction.subtotal,
            tax_rate=transaction.tax_rate,
            tax_amount=transaction.tax_amount,
            total=transaction.total,
            timestamp=transaction.timestamp,
            tags_killed=transaction.tags_killed,
            payment_method=transaction.payment_method,
        )

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            items=tuple(
                CartItem(tag_id=item.tag_id, name=item.name, code=item.code, price=item.price, category=item.category)
                for item in self.items
            ),
            subtotal=self.subtotal,
            tax_rate=Decimal(self.tax_rate),
            tax_amount=self.tax_amount,
            total=self.total,
            timestamp=self.timestamp,
            tags_killed=self.tags_killed,
            payment_method=self.payment_method,
        )


class ExportDocument(ExportModel):
    products: list[ExportProduct] | None = None
    transactions: list[ExportTransaction] | None = None
    logs: list[str] | None = None
    export_date: datetime | None = None
    version: str | None = None


class ImportSummary(BaseModel):
    products: int | None
    transactions: int | None
    logs: int | None
