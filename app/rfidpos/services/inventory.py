from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.rfidpos.core.error_catalog import (
    ErrorCatalog,
    PersistenceError,
    TagLookupError,
    ValidationError,
)
from app.rfidpos.core.logging import log_event
from app.rfidpos.domain.models import CENTS, Product
from app.rfidpos.repos.products import ProductRepository, to_domain

logger = logging.getLogger("rfidpos.inventory")

EDITABLE_FIELDS = ("name", "code", "price", "category")
DEFAULT_CATEGORY = "N/A"


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_price(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price.quantize(CENTS)


def normalize_spec(spec: Mapping[str, object]) -> dict:
    """Validate a product spec; return its normalized field values."""
    errors: list[dict] = []
    values = {field: _text(spec.get(field)) for field in ("tag_id", "name", "code")}
    for field, value in values.items():
        if not value:
            errors.append({"field": field, "message": "required"})
    raw_price = spec.get("price")
    price = _parse_price(raw_price)
    if raw_price is None or (isinstance(raw_price, str) and not raw_price.strip()):
        errors.append({"field": "price", "message": "required"})
    elif price is None:
        errors.append({"field": "price", "message": "must be a number"})
    elif price < 0:
        errors.append({"field": "price", "message": "must be non-negative"})
    if errors:
        raise ValidationError(ErrorCatalog.INVALID_SPEC, details={"errors": errors})
    values["price"] = price
    values["category"] = _text(spec.get("category")) or DEFAULT_CATEGORY
    return values


class InventoryStore:
    """Authoritative product catalog.

    Products are indexed by tag id in insertion order. Writes go to the
    database first; the in-memory index only changes after a commit succeeds.
    """

    def __init__(
        self,
        session_factory,
        *,
        on_activity: Callable[[str], object] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._on_activity = on_activity
        self._now = now or datetime.utcnow
        self._products: dict[str, Product] = {}
        self._lock = threading.RLock()

    def load(self) -> int:
        try:
            with self._session_factory() as db:
                products = ProductRepository(db).list_products()
        except SQLAlchemyError as exc:
            raise PersistenceError(ErrorCatalog.PERSISTENCE_ERROR, details={"operation": "load_products"}) from exc
        self.reset(products)
        return len(products)

    def reset(self, products: Iterable[Product] = ()) -> None:
        with self._lock:
            self._products = {product.tag_id: product for product in products}

    def get(self, tag_id: str) -> Product | None:
        with self._lock:
            return self._products.get(tag_id)

    def require(self, tag_id: str) -> Product:
        product = self.get(tag_id)
        if product is None:
            raise TagLookupError(ErrorCatalog.TAG_NOT_FOUND, details={"tag_id": tag_id})
        return product

    def list(self, include_sold: bool = False) -> list[Product]:
        with self._lock:
            products = list(self._products.values())
        if include_sold:
            return products
        return [product for product in products if product.is_active]

    def add_product(self, spec: Mapping[str, object]) -> Product:
        values = normalize_spec(spec)
        tag_id = values["tag_id"]
        with self._lock:
            if tag_id in self._products:
                raise ValidationError(ErrorCatalog.DUPLICATE_TAG, details={"tag_id": tag_id})
            try:
                with self._session_factory() as db:
                    row = ProductRepository(db).create(created_at=self._now(), **values)
                    db.commit()
                    product = to_domain(row)
            except IntegrityError as exc:
                raise ValidationError(ErrorCatalog.DUPLICATE_TAG, details={"tag_id": tag_id}) from exc
            except SQLAlchemyError as exc:
                raise PersistenceError(
                    ErrorCatalog.PERSISTENCE_ERROR,
                    details={"operation": "add_product", "tag_id": tag_id},
                ) from exc
            self._products[tag_id] = product
        log_event(logger, "product_added", tag_id=tag_id, price=str(product.price))
        self._activity(f"Added product: {product.name} (RFID: {tag_id})")
        return product

    def update_product(self, tag_id: str, changes: Mapping[str, object]) -> Product:
        with self._lock:
            current = self.require(tag_id)
            if not current.is_active:
                raise TagLookupError(ErrorCatalog.TAG_ALREADY_SOLD, details={"tag_id": tag_id})
            unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
            if unknown:
                raise ValidationError(
                    ErrorCatalog.INVALID_SPEC,
                    details={"errors": [{"field": field, "message": "not editable"} for field in unknown]},
                )
            merged = normalize_spec(
                {
                    "tag_id": tag_id,
                    "name": changes.get("name", current.name),
                    "code": changes.get("code", current.code),
                    "price": changes.get("price", current.price),
                    "category": changes.get("category", current.category),
                }
            )
            merged.pop("tag_id")
            try:
                with self._session_factory() as db:
                    ProductRepository(db).update_fields(tag_id, merged, updated_at=self._now())
                    db.commit()
            except SQLAlchemyError as exc:
                raise PersistenceError(
                    ErrorCatalog.PERSISTENCE_ERROR,
                    details={"operation": "update_product", "tag_id": tag_id},
                ) from exc
            updated = current.with_changes(**merged)
            self._products[tag_id] = updated
        self._activity(f"Updated product: {updated.name} (RFID: {tag_id})")
        return updated

    @contextmanager
    def mark_sold(self, tag_ids: list[str]):
        """Unit of work disabling ``tag_ids``.

        Yields the open session so the caller can record the paired
        transaction in the same commit. Nothing changes, in the database or
        in memory, unless every tag is active and the commit succeeds.
        """
        with self._lock:
            if len(set(tag_ids)) != len(tag_ids):
                raise ValidationError(ErrorCatalog.VALIDATION_ERROR, details={"message": "duplicate tag in sale"})
            for tag_id in tag_ids:
                if not self.require(tag_id).is_active:
                    raise TagLookupError(ErrorCatalog.TAG_ALREADY_SOLD, details={"tag_id": tag_id})
            with self._session_factory() as db:
                try:
                    changed = ProductRepository(db).mark_disabled(tag_ids, updated_at=self._now())
                    if changed != len(tag_ids):
                        db.rollback()
                        raise PersistenceError(
                            ErrorCatalog.PERSISTENCE_ERROR,
                            details={"operation": "mark_sold", "expected": len(tag_ids), "updated": changed},
                        )
                    yield db
                    db.commit()
                except SQLAlchemyError as exc:
                    db.rollback()
                    log_event(logger, "mark_sold_failed", tag_ids=tag_ids, error=str(exc))
                    raise PersistenceError(
                        ErrorCatalog.PERSISTENCE_ERROR,
                        details={"operation": "mark_sold", "tag_ids": tag_ids},
                    ) from exc
                except Exception:
                    db.rollback()
                    raise
            for tag_id in tag_ids:
                self._products[tag_id] = self._products[tag_id].disabled()

    def stage_replace(self, db, products: list[Product]) -> None:
        ProductRepository(db).replace_all(products)

    def stage_wipe(self, db) -> None:
        ProductRepository(db).delete_all()

    def _activity(self, message: str) -> None:
        if self._on_activity is not None:
            self._on_activity(message)
