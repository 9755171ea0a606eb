from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from app.rfidpos.db.models import SaleTransaction, TransactionItem
from app.rfidpos.domain.models import CartItem, Transaction


def to_domain(row: SaleTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        items=tuple(
            CartItem(
                tag_id=item.tag_id,
                name=item.name,
                code=item.code,
                price=Decimal(str(item.price)),
                category=item.category,
            )
            for item in row.items
        ),
        subtotal=Decimal(str(row.subtotal)),
        tax_rate=Decimal(str(row.tax_rate)),
        tax_amount=Decimal(str(row.tax_amount)),
        total=Decimal(str(row.total)),
        timestamp=row.created_at,
        tags_killed=row.tags_killed,
        payment_method=row.payment_method,
    )


class TransactionRepository:
    def __init__(self, db):
        self.db = db

    def add(self, transaction: Transaction) -> SaleTransaction:
        row = SaleTransaction(
            id=transaction.id,
            subtotal=transaction.subtotal,
            tax_rate=transaction.tax_rate,
            tax_amount=transaction.tax_amount,
            total=transaction.total,
            payment_method=transaction.payment_method,
            tags_killed=transaction.tags_killed,
            created_at=transaction.timestamp,
        )
        row.items = [
            TransactionItem(
                position=position,
                tag_id=item.tag_id,
                name=item.name,
                code=item.code,
                price=item.price,
                category=item.category,
            )
            for position, item in enumerate(transaction.items)
        ]
        self.db.add(row)
        self.db.flush()
        return row

    def list_transactions(self) -> list[Transaction]:
        rows = (
            self.db.execute(
                select(SaleTransaction)
                .options(selectinload(SaleTransaction.items))
                .order_by(SaleTransaction.created_at, SaleTransaction.id)
            )
            .scalars()
            .all()
        )
        return [to_domain(row) for row in rows]

    def get_by_id(self, transaction_id: str) -> Transaction | None:
        row = (
            self.db.execute(
                select(SaleTransaction)
                .options(selectinload(SaleTransaction.items))
                .where(SaleTransaction.id == transaction_id)
            )
            .scalars()
            .first()
        )
        return to_domain(row) if row is not None else None

    def exists(self, transaction_id: str) -> bool:
        return self.db.get(SaleTransaction, transaction_id) is not None

    def replace_all(self, transactions: list[Transaction]) -> None:
        self.delete_all()
        for transaction in transactions:
            self.add(transaction)

    def delete_all(self) -> None:
        self.db.execute(delete(TransactionItem))
        self.db.execute(delete(SaleTransaction))
