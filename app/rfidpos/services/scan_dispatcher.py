from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from app.rfidpos.core.logging import log_event
from app.rfidpos.core.metrics import metrics
from app.rfidpos.domain.models import Product
from app.rfidpos.services.cart import CartSession
from app.rfidpos.services.inventory import InventoryStore

logger = logging.getLogger("rfidpos.scan")

SOURCE_LABELS = {
    "manual": "Manual",
    "reader": "RFID Reader",
    "serial": "Serial RFID",
}


@dataclass(frozen=True)
class Added:
    tag_id: str
    product: Product
    source: str = "manual"
    outcome: str = "ADDED"


@dataclass(frozen=True)
class NotFound:
    tag_id: str
    source: str = "manual"
    outcome: str = "NOT_FOUND"


@dataclass(frozen=True)
class AlreadySold:
    tag_id: str
    product: Product
    source: str = "manual"
    outcome: str = "ALREADY_SOLD"


@dataclass(frozen=True)
class AlreadyInCart:
    tag_id: str
    product: Product
    source: str = "manual"
    outcome: str = "ALREADY_IN_CART"


ScanOutcome = Union[Added, NotFound, AlreadySold, AlreadyInCart]


class ScanDispatcher:
    def __init__(
        self,
        inventory: InventoryStore,
        cart: CartSession,
        *,
        on_activity: Callable[[str], object] | None = None,
    ) -> None:
        self.inventory = inventory
        self.cart = cart
        self._on_activity = on_activity

    def dispatch(self, raw_tag: str, source: str = "manual") -> ScanOutcome | None:
        tag_id = (raw_tag or "").strip()
        if not tag_id:
            return None
        outcome = self._resolve(tag_id, source)
        metrics.record_scan(outcome=outcome.outcome, source=source)
        log_event(logger, "scan", tag_id=tag_id, source=source, outcome=outcome.outcome)
        self._activity(self.describe(outcome))
        return outcome

    def _resolve(self, tag_id: str, source: str) -> ScanOutcome:
        product = self.inventory.get(tag_id)
        if product is None:
            return NotFound(tag_id=tag_id, source=source)
        if not product.is_active:
            return AlreadySold(tag_id=tag_id, product=product, source=source)
        if tag_id in self.cart or not self.cart.add(product.snapshot()):
            return AlreadyInCart(tag_id=tag_id, product=product, source=source)
        return Added(tag_id=tag_id, product=product, source=source)

    @staticmethod
    def describe(outcome: ScanOutcome) -> str:
        if isinstance(outcome, NotFound):
            return f"RFID not found: {outcome.tag_id}"
        if isinstance(outcome, AlreadySold):
            return f"Attempted to scan sold product: {outcome.tag_id}"
        if isinstance(outcome, AlreadyInCart):
            return f"Item already in cart: {outcome.tag_id}"
        label = SOURCE_LABELS.get(outcome.source, outcome.source)
        return f"Added to cart: {outcome.product.name} - {outcome.product.price} ({label})"

    def _activity(self, message: str) -> None:
        if self._on_activity is not None:
            self._on_activity(message)
