from __future__ import annotations

from decimal import Decimal

from app.rfidpos.domain.models import CENTS, CartItem


class CartSession:
    """The sale currently being assembled, keyed by tag id in scan order."""

    def __init__(self) -> None:
        self._items: dict[str, CartItem] = {}

    def add(self, item: CartItem) -> bool:
        if item.tag_id in self._items:
            return False
        self._items[item.tag_id] = item
        return True

    def remove(self, tag_id: str) -> CartItem | None:
        return self._items.pop(tag_id, None)

    def clear(self) -> None:
        self._items.clear()

    def items(self) -> list[CartItem]:
        return list(self._items.values())

    def tag_ids(self) -> list[str]:
        return list(self._items)

    def total(self) -> Decimal:
        return sum((item.price for item in self._items.values()), Decimal("0")).quantize(CENTS)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._items
