from __future__ import annotations

import logging
import secrets
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError

from app.rfidpos.core.error_catalog import (
    AppError,
    DeviceError,
    ErrorCatalog,
    PersistenceError,
    StateError,
    ValidationError,
)
from app.rfidpos.core.logging import log_event
from app.rfidpos.core.metrics import metrics
from app.rfidpos.domain.models import (
    CENTS,
    KillMode,
    KillRequest,
    SaleResult,
    SaleTotals,
    Transaction,
)
from app.rfidpos.repos.transactions import TransactionRepository
from app.rfidpos.services.cart import CartSession
from app.rfidpos.services.inventory import InventoryStore
from app.rfidpos.services.serial_channel import SerialDeviceChannel, validate_kill_password

logger = logging.getLogger("rfidpos.transactions")

PAYMENT_METHODS = ("cash", "card", "digital", "check")
_ID_ATTEMPTS = 5


def compute_totals(prices: Iterable[Decimal], tax_rate: Decimal) -> SaleTotals:
    rate = Decimal(str(tax_rate))
    subtotal = sum((Decimal(str(price)) for price in prices), Decimal("0")).quantize(CENTS)
    tax_amount = (subtotal * rate / Decimal("100")).quantize(CENTS, rounding=ROUND_HALF_UP)
    return SaleTotals(
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=(subtotal + tax_amount).quantize(CENTS),
    )


def new_transaction_id() -> str:
    return secrets.token_hex(6).upper()


class TransactionProcessor:
    """Turns the cart into a committed sale.

    The commit point disables every sold product and stores the transaction
    in one database transaction. Kill requests run only after that commit
    and never undo it.
    """

    def __init__(
        self,
        inventory: InventoryStore,
        cart: CartSession,
        session_factory,
        *,
        channel: SerialDeviceChannel | None = None,
        on_activity: Callable[[str], object] | None = None,
        tax_rate: Decimal = Decimal("8.5"),
        kill_after_sale: bool = False,
        kill_password: str = "00000000",
        id_factory: Callable[[], str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.inventory = inventory
        self.cart = cart
        self.channel = channel
        self._session_factory = session_factory
        self._on_activity = on_activity
        self.tax_rate = Decimal(str(tax_rate))
        self.kill_after_sale = kill_after_sale
        self.kill_password = kill_password
        self._id_factory = id_factory or new_transaction_id
        self._now = now or datetime.utcnow

    def finalize(
        self,
        *,
        tax_rate: Decimal | None = None,
        payment_method: str = "cash",
        kill_after_sale: bool | None = None,
        kill_password: str | None = None,
    ) -> SaleResult:
        items = self.cart.items()
        if not items:
            raise StateError(ErrorCatalog.EMPTY_CART)
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "payment_method", "allowed": list(PAYMENT_METHODS)},
            )
        kill = self.kill_after_sale if kill_after_sale is None else kill_after_sale
        password = kill_password or self.kill_password
        if kill:
            password = validate_kill_password(password)
        totals = compute_totals(
            [item.price for item in items],
            self.tax_rate if tax_rate is None else tax_rate,
        )
        tag_ids = [item.tag_id for item in items]

        with self.inventory.mark_sold(tag_ids) as db:
            repo = TransactionRepository(db)
            transaction = Transaction(
                id=self._unique_id(repo),
                items=tuple(items),
                subtotal=totals.subtotal,
                tax_rate=totals.tax_rate,
                tax_amount=totals.tax_amount,
                total=totals.total,
                timestamp=self._now(),
                tags_killed=kill,
                payment_method=payment_method,
            )
            repo.add(transaction)

        self.cart.clear()
        metrics.increment_sales_completed()
        log_event(
            logger,
            "sale_committed",
            transaction_id=transaction.id,
            total=str(transaction.total),
            items=len(items),
            payment_method=payment_method,
        )
        self._activity(f"Transaction completed: {transaction.id}")
        self._activity(f"Amount: {transaction.total}")
        self._activity(f"Sold {len(items)} products")

        kill_requests: tuple[KillRequest, ...] = ()
        if kill:
            kill_requests = tuple(self._request_kill(tag_id, password) for tag_id in tag_ids)
            self._activity(f"{len(kill_requests)} RFID tag kill requests issued")
        return SaleResult(transaction=transaction, kill_requests=kill_requests)

    def list_transactions(self) -> list[Transaction]:
        try:
            with self._session_factory() as db:
                return TransactionRepository(db).list_transactions()
        except SQLAlchemyError as exc:
            raise PersistenceError(ErrorCatalog.PERSISTENCE_ERROR, details={"operation": "list_transactions"}) from exc

    def get(self, transaction_id: str) -> Transaction:
        try:
            with self._session_factory() as db:
                transaction = TransactionRepository(db).get_by_id(transaction_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(ErrorCatalog.PERSISTENCE_ERROR, details={"operation": "get_transaction"}) from exc
        if transaction is None:
            raise AppError(ErrorCatalog.TRANSACTION_NOT_FOUND, details={"transaction_id": transaction_id})
        return transaction

    def stage_replace(self, db, transactions: list[Transaction]) -> None:
        TransactionRepository(db).replace_all(transactions)

    def stage_wipe(self, db) -> None:
        TransactionRepository(db).delete_all()

    def _unique_id(self, repo: TransactionRepository) -> str:
        for _ in range(_ID_ATTEMPTS):
            candidate = self._id_factory()
            if not repo.exists(candidate):
                return candidate
        raise PersistenceError(ErrorCatalog.PERSISTENCE_ERROR, details={"message": "could not allocate transaction id"})

    def _request_kill(self, tag_id: str, password: str) -> KillRequest:
        requested_at = self._now()
        if self.channel is None or not self.channel.connected:
            self._activity(f"SIMULATED: Tag {tag_id} would be permanently killed")
            request = KillRequest(tag_id=tag_id, mode=KillMode.SIMULATED, requested_at=requested_at)
        else:
            try:
                self.channel.send_kill_command(tag_id, password)
            except DeviceError as exc:
                self._activity(f"Error killing tag {tag_id}: {exc.error.message}")
                request = KillRequest(
                    tag_id=tag_id,
                    mode=KillMode.FAILED,
                    requested_at=requested_at,
                    error=exc.error.code,
                )
            else:
                self._activity(f"Kill command sent for tag: {tag_id}")
                request = KillRequest(tag_id=tag_id, mode=KillMode.SENT, requested_at=requested_at)
        metrics.record_kill_request(request.mode.value)
        log_event(logger, "kill_requested", tag_id=tag_id, mode=request.mode.value)
        return request

    def _activity(self, message: str) -> None:
        if self._on_activity is not None:
            self._on_activity(message)
