from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, select, update

from app.rfidpos.db.models import PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_DISABLED, Product as ProductRow
from app.rfidpos.domain.models import Product, ProductStatus


def to_domain(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        tag_id=row.tag_id,
        name=row.name,
        code=row.code,
        price=Decimal(str(row.price)),
        category=row.category,
        status=ProductStatus(row.status),
        created_at=row.created_at,
    )


class ProductRepository:
    def __init__(self, db):
        self.db = db

    def list_products(self) -> list[Product]:
        rows = self.db.execute(select(ProductRow).order_by(ProductRow.id)).scalars().all()
        return [to_domain(row) for row in rows]

    def create(
        self,
        *,
        tag_id: str,
        name: str,
        code: str,
        price: Decimal,
        category: str,
        created_at: datetime,
    ) -> ProductRow:
        row = ProductRow(
            tag_id=tag_id,
            name=name,
            code=code,
            price=price,
            category=category,
            status=PRODUCT_STATUS_ACTIVE,
            created_at=created_at,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def update_fields(self, tag_id: str, changes: dict, *, updated_at: datetime) -> int:
        result = self.db.execute(
            update(ProductRow)
            .where(ProductRow.tag_id == tag_id, ProductRow.status == PRODUCT_STATUS_ACTIVE)
            .values(**changes, updated_at=updated_at)
        )
        return result.rowcount

    def mark_disabled(self, tag_ids: list[str], *, updated_at: datetime) -> int:
        if not tag_ids:
            return 0
        result = self.db.execute(
            update(ProductRow)
            .where(ProductRow.tag_id.in_(tag_ids), ProductRow.status == PRODUCT_STATUS_ACTIVE)
            .values(status=PRODUCT_STATUS_DISABLED, updated_at=updated_at)
        )
        return result.rowcount

    def replace_all(self, products: list[Product]) -> None:
        self.db.execute(delete(ProductRow))
        self.db.add_all(
            [
                ProductRow(
                    tag_id=product.tag_id,
                    name=product.name,
                    code=product.code,
                    price=product.price,
                    category=product.category,
                    status=product.status.value,
                    created_at=product.created_at,
                )
                for product in products
            ]
        )
        self.db.flush()

    def delete_all(self) -> None:
        self.db.execute(delete(ProductRow))
