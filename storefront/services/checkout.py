import logging
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from storefront.schemas.cart import CartLineResponse
from storefront.schemas.order import CheckoutForm, OrderConfirmation
from storefront.schemas.product import Product
from storefront.services import pricing
from storefront.services.cart import CartStore
from storefront.services.catalog import hydrate_lines
from storefront.services.storage import Storage, StorageFullError

logger = logging.getLogger(__name__)

CLEAR_AT_KEY = "amv_checkout_clear_at"


def generate_order_number(prefix: str = "AMV", clock: Callable[[], float] = time.time) -> str:
    """Prefix plus the last 8 digits of the millisecond timestamp. Not unique."""
    return prefix + str(int(clock() * 1000))[-8:]


def form_errors(error: ValidationError) -> Dict[str, str]:
    """Map a CheckoutForm validation error to {field: message}, first message per field."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "__all__"
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return errors


def line_responses(lines) -> list[CartLineResponse]:
    return [
        CartLineResponse(**line, line_total=line["price"] * line["quantity"])
        for line in lines
    ]


class CheckoutFlow:
    """
    Simulated order placement.

    Placing an order records a clear deadline in storage instead of emptying
    the cart right away, so the confirmation can still show what was bought.
    ``settle()`` performs the clear once the deadline has passed.
    """

    def __init__(
        self,
        store: CartStore,
        storage: Storage,
        clear_delay: float = 3.0,
        order_prefix: str = "AMV",
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.storage = storage
        self.clear_delay = clear_delay
        self.order_prefix = order_prefix
        self.clock = clock

    @property
    def pending_clear_at(self) -> Optional[float]:
        raw = self.storage.get_item(CLEAR_AT_KEY)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    def place_order(self, form: CheckoutForm, products: Optional[List[Product]] = None) -> OrderConfirmation:
        lines = self.store.lines
        if not lines:
            raise ValueError("Cart is empty")

        now = self.clock()
        order_number = generate_order_number(self.order_prefix, self.clock)
        clear_at = now + self.clear_delay

        confirmation = OrderConfirmation(
            order_number=order_number,
            customer=form,
            items=line_responses(hydrate_lines(lines, products or [])),
            summary=pricing.summarize(lines),
            placed_at=datetime.fromtimestamp(now),
            clear_at=clear_at,
        )

        try:
            self.storage.set_item(CLEAR_AT_KEY, repr(clear_at))
        except StorageFullError as e:
            # No room to record the deadline; clear now instead of never
            logger.warning(f"Could not schedule cart clear, clearing immediately: {str(e)}")
            self.store.clear_cart()
        logger.info(
            f"Order placed: {order_number}, items={confirmation.summary.item_count}, "
            f"total={confirmation.summary.total}"
        )
        return confirmation

    def settle(self) -> bool:
        """Clear the cart if a placed order's display delay has elapsed."""
        clear_at = self.pending_clear_at
        if clear_at is None or self.clock() < clear_at:
            return False

        self.store.clear_cart()
        self.storage.remove_item(CLEAR_AT_KEY)
        logger.info("Cart cleared after checkout")
        return True
