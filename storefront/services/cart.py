import json
import logging
from typing import Callable, List, Mapping

from storefront.services.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "amv_cart"

Listener = Callable[[List[dict]], None]


def line_key(line: Mapping) -> tuple:
    """Identity of a cart line: (product_id, size, color)."""
    return line.get("product_id"), line.get("size"), line.get("color")


def load_cart(storage: Storage, key: str = DEFAULT_STORAGE_KEY) -> List[dict]:
    """Restore a persisted cart snapshot; anything unreadable yields an empty cart."""
    raw = storage.get_item(key)
    if not raw:
        return []

    try:
        lines = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable cart snapshot: {str(e)}")
        return []

    if not isinstance(lines, list):
        logger.warning(f"Discarding cart snapshot of type {type(lines).__name__}")
        return []

    return lines


def save_cart(storage: Storage, lines: List[dict], key: str = DEFAULT_STORAGE_KEY):
    """Write the full line sequence to storage as JSON."""
    storage.set_item(key, json.dumps(lines))


class CartStore:
    """
    Ordered cart lines persisted to a key-value storage.

    Lines are plain dicts mirroring the persisted JSON. Every mutation writes
    the whole sequence back to storage and then notifies subscribers.
    """

    def __init__(self, storage: Storage, key: str = DEFAULT_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._lines: List[dict] = load_cart(storage, key)
        self._listeners: List[Listener] = []

    @property
    def lines(self) -> List[dict]:
        # Line dicts are copied too; only the store's own operations may mutate them
        return [dict(line) for line in self._lines]

    @property
    def cart_count(self) -> int:
        return sum(line.get("quantity", 0) for line in self._lines)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_to_cart(self, item: Mapping) -> None:
        quantity = item.get("quantity") or 1
        key = line_key(item)

        existing_line = next((line for line in self._lines if line_key(line) == key), None)

        if existing_line:
            existing_line["quantity"] += quantity
        else:
            self._lines.append({**item, "quantity": quantity})

        logger.info(
            f"Added to cart: product_id={item.get('product_id')}, size={item.get('size')}, "
            f"color={item.get('color')}, quantity={quantity}"
        )
        self._commit()

    def update_cart(self, product_id: int, quantity: int) -> None:
        # Matches every variant of the product, not just one (size, color) line
        quantity = max(1, quantity)
        for line in self._lines:
            if line.get("product_id") == product_id:
                line["quantity"] = quantity

        logger.info(f"Updated cart item: product_id={product_id}, quantity={quantity}")
        self._commit()

    def remove_from_cart(self, product_id: int) -> None:
        self._lines = [line for line in self._lines if line.get("product_id") != product_id]
        logger.info(f"Removed from cart: product_id={product_id}")
        self._commit()

    def clear_cart(self) -> None:
        self._lines = []
        logger.info("Cart cleared")
        self._commit()

    def _commit(self):
        try:
            save_cart(self.storage, self._lines, self.key)
        except Exception as e:
            # Previous snapshot stays in place until the next successful write
            logger.error(f"Failed to persist cart: {str(e)}")

        snapshot = self.lines
        for listener in list(self._listeners):
            listener(snapshot)
