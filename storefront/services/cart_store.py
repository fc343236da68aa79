"""
Cart Store

Owns the buyer's cart. Every mutation is persisted to client-side storage
so that a reload rebuilds the same cart.
"""

import json
import logging
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from ..core.storage import KeyValueStorage
from ..models.cart import Cart, CartItem
from .errors import OutOfStockError

logger = logging.getLogger(__name__)

CartListener = Callable[[Cart], None]

_items_adapter = TypeAdapter(list[CartItem])


class CartStore:
    """
    The only writer of the cart.

    Quantities are always clamped to the item's available stock when it is
    known; that applies to adding and to setting a quantity alike.
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str = "cart"):
        self._storage = storage
        self._storage_key = storage_key
        self._items: list[CartItem] = self._load()
        self._listeners: list[CartListener] = []

    @property
    def cart(self) -> Cart:
        """Current cart snapshot"""
        return Cart(items=list(self._items))

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_item(self, item: CartItem, quantity: Optional[int] = None) -> Cart:
        """Add quantity units of item, merging with an existing line"""
        quantity = item.quantity if quantity is None else quantity
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        if item.available_stock is not None and item.available_stock <= 0:
            raise OutOfStockError(item.product_id, item.available_stock)

        existing = self._find(item.product_id)
        if existing:
            # Newer stock figure wins over the one captured when first added
            stock = item.available_stock if item.available_stock is not None else existing.available_stock
            new_quantity = self._clamp(existing.quantity + quantity, stock)
            items = self._replaced(existing.model_copy(update={"quantity": new_quantity, "available_stock": stock}))
        else:
            new_quantity = self._clamp(quantity, item.available_stock)
            items = self._items + [item.model_copy(update={"quantity": new_quantity})]

        return self._commit(items)

    def update_quantity(self, product_id: str, quantity: int) -> Cart:
        """Set an item's quantity; zero or less removes it"""
        if quantity <= 0:
            return self.remove_item(product_id)

        existing = self._find(product_id)
        if existing is None:
            return self.cart

        new_quantity = self._clamp(quantity, existing.available_stock)
        return self._commit(self._replaced(existing.model_copy(update={"quantity": new_quantity})))

    def remove_item(self, product_id: str) -> Cart:
        """Remove an item; absent items are ignored"""
        return self._commit([item for item in self._items if item.product_id != product_id])

    def clear(self) -> Cart:
        """
        Empty the cart by dropping its snapshot.

        Only called once an order has been created.
        """
        self._storage.delete(self._storage_key)
        return self._publish([])

    def _find(self, product_id: str) -> Optional[CartItem]:
        return next(
            (item for item in self._items if item.product_id == product_id),
            None,
        )

    def _replaced(self, updated: CartItem) -> list[CartItem]:
        return [
            updated if item.product_id == updated.product_id else item
            for item in self._items
        ]

    @staticmethod
    def _clamp(quantity: int, available_stock: Optional[int]) -> int:
        if available_stock is None:
            return quantity
        return max(1, min(quantity, available_stock))

    def _load(self) -> list[CartItem]:
        try:
            raw = self._storage.get(self._storage_key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding unreadable cart snapshot: {e}")
            return []
        if not raw:
            return []
        try:
            items = _items_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cart snapshot: {e}")
            return []

        # Collapse duplicate lines a hand-edited snapshot may contain
        merged: dict[str, CartItem] = {}
        for item in items:
            if item.product_id in merged:
                previous = merged[item.product_id]
                item = previous.model_copy(update={"quantity": previous.quantity + item.quantity})
            merged[item.product_id] = item.model_copy(
                update={"quantity": self._clamp(item.quantity, item.available_stock)}
            )
        return list(merged.values())

    def _commit(self, items: list[CartItem]) -> Cart:
        """Persist items, then make them the current cart"""
        self._storage.set(
            self._storage_key,
            json.dumps(_items_adapter.dump_python(items, mode="json", by_alias=True)),
        )
        return self._publish(items)

    def _publish(self, items: list[CartItem]) -> Cart:
        self._items = items
        cart = self.cart
        for listener in list(self._listeners):
            listener(cart)
        return cart
