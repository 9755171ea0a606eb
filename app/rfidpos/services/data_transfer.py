from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from app.rfidpos.core.error_catalog import ErrorCatalog, PersistenceError, ValidationError
from app.rfidpos.core.logging import log_event
from app.rfidpos.domain.models import Product
from app.rfidpos.schemas.exports import ExportDocument, ExportProduct, ExportTransaction, ImportSummary
from app.rfidpos.services.activity_log import ActivityLog
from app.rfidpos.services.inventory import InventoryStore, normalize_spec
from app.rfidpos.services.transactions import TransactionProcessor

logger = logging.getLogger("rfidpos.data")


class DataTransferService:
    """Whole-store export, import and wipe.

    Import and wipe run in one database transaction; memory is reloaded only
    after that transaction commits.
    """

    def __init__(
        self,
        session_factory,
        inventory: InventoryStore,
        processor: TransactionProcessor,
        activity: ActivityLog,
        *,
        version: str = "1.0",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.inventory = inventory
        self.processor = processor
        self.activity = activity
        self.version = version
        self._now = now or (lambda: datetime.now(timezone.utc))

    def export_document(self) -> ExportDocument:
        document = ExportDocument(
            products=[ExportProduct.from_domain(product) for product in self.inventory.list(include_sold=True)],
            transactions=[ExportTransaction.from_domain(txn) for txn in self.processor.list_transactions()],
            logs=self.activity.lines(),
            export_date=self._now(),
            version=self.version,
        )
        log_event(
            logger,
            "data_exported",
            products=len(document.products),
            transactions=len(document.transactions),
        )
        self.activity.add("Data exported successfully")
        return document

    def import_document(self, document: ExportDocument, source: str = "upload") -> ImportSummary:
        if document.products is not None:
            products = self._normalized_products(document.products)
            tags = [product.tag_id for product in products]
            if len(set(tags)) != len(tags):
                raise ValidationError(ErrorCatalog.DUPLICATE_TAG, details={"message": "duplicate tag in import"})
        if document.transactions is not None:
            ids = [transaction.id for transaction in document.transactions]
            if len(set(ids)) != len(ids):
                raise ValidationError(ErrorCatalog.VALIDATION_ERROR, details={"message": "duplicate transaction id"})

        def stage(db) -> None:
            if document.products is not None:
                self.inventory.stage_replace(db, products)
            if document.transactions is not None:
                self.processor.stage_replace(db, [txn.to_domain() for txn in document.transactions])
            if document.logs is not None:
                self.activity.stage_replace(db, document.logs)

        self._commit("import", stage)
        if document.products is not None:
            self.inventory.load()
        if document.logs is not None:
            self.activity.reset(document.logs)
        summary = ImportSummary(
            products=len(document.products) if document.products is not None else None,
            transactions=len(document.transactions) if document.transactions is not None else None,
            logs=len(document.logs) if document.logs is not None else None,
        )
        log_event(logger, "data_imported", **summary.model_dump())
        self.activity.add(f"Data imported from {source}")
        return summary

    @staticmethod
    def _normalized_products(rows: list[ExportProduct]) -> list[Product]:
        products = []
        for index, row in enumerate(rows):
            try:
                values = normalize_spec(row.model_dump())
            except ValidationError as exc:
                raise ValidationError(ErrorCatalog.INVALID_SPEC, details={"index": index, **exc.details}) from exc
            products.append(row.to_domain().with_changes(**values))
        return products

    def wipe(self) -> None:
        def stage(db) -> None:
            self.processor.stage_wipe(db)
            self.inventory.stage_wipe(db)
            self.activity.stage_replace(db, [])

        self._commit("wipe", stage)
        self.inventory.reset()
        self.activity.reset()
        log_event(logger, "data_wiped")
        self.activity.add("All data cleared")

    def _commit(self, operation: str, stage: Callable[[object], None]) -> None:
        with self._session_factory() as db:
            try:
                stage(db)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                log_event(logger, "data_transfer_failed", operation=operation, error=str(exc))
                raise PersistenceError(ErrorCatalog.PERSISTENCE_ERROR, details={"operation": operation}) from exc
