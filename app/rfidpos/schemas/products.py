from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.rfidpos.domain.models import Product
from app.rfidpos.schemas.common import MoneyValue


class ProductCreateRequest(BaseModel):
    tag_id: str | None = Field(default=None, examples=["RFID001"])
    name: str | None = Field(default=None, examples=["Test Product"])
    code: str | None = Field(default=None, examples=["TP001"])
    price: Decimal | str | None = Field(default=None, examples=["10.99"])
    category: str | None = Field(default=None, examples=["Apparel"])


class ProductUpdateRequest(BaseModel):
    name: str | None = None
    code: str | None = None
    price: Decimal | None = None
    category: str | None = None


class ProductResponse(BaseModel):
    id: int
    tag_id: str
    name: str
    code: str
    price: MoneyValue
    category: str
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            tag_id=product.tag_id,
            name=product.name,
            code=product.code,
            price=product.price,
            category=product.category,
            status=product.status.value,
            created_at=product.created_at,
        )


class ProductListResponse(BaseModel):
    rows: list[ProductResponse]
    total: int
